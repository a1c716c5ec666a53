from fastapi import FastAPI, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging
import os

from database import get_db, engine
from models import Base, User
from schemas import (
    LoginRequest, LoginResponse, SessionResponse,
    ClientCreate, ClientUpdate, ClientResponse,
    ServiceCreate, ServiceUpdate, ServiceResponse,
    EmployeeCreate, EmployeeUpdate, EmployeeResponse,
    SupplyCreate, SupplyUpdate, SupplyResponse,
    ServiceSupplyCreate, ServiceSupplyUpdate, ServiceSupplyResponse,
    AppointmentCreate, AppointmentUpdate, AppointmentResponse, TimeSlot,
    ServiceOrderCreate, ServiceOrderUpdate, ServiceOrderResponse,
    ServiceOrderStatusUpdate, ServiceOrderStatusResponse,
    EmployeeServiceLogResponse, EmployeeServiceLogUpdate,
    SupplyMovementCreate, SupplyMovementResponse,
    FinancialTransactionCreate, FinancialTransactionUpdate, FinancialTransactionResponse,
    BusinessSettingsUpdate, BusinessSettingsResponse
)
from services import (
    auth_service, client_service, service_service,
    employee_service, employee_log_service,
    supply_service, supply_movement_service, service_supply_service,
    appointment_service, service_order_service,
    financial_service, report_service, settings_service,
    OrderCompletionError
)
from auth import get_current_user

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Criar tabelas
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Car Wash Manager API",
    description="API para gestão de lava jato",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderCompletionError)
async def order_completion_error_handler(request: Request, exc: OrderCompletionError):
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Falha ao finalizar a ordem de serviço; nenhuma alteração foi aplicada",
            "step": exc.step,
            "order_id": exc.order_id,
        },
    )

# Health check
@app.get("/health")
async def health_check():
    """Verificar status da API"""
    return {"status": "healthy", "message": "Car Wash Manager API funcionando"}

# Rotas de Autenticação
@app.post("/auth/login", response_model=LoginResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login por email e senha"""
    return auth_service.login(db, login_data)

@app.get("/auth/me", response_model=SessionResponse)
def me(current_user: User = Depends(get_current_user)):
    """Usuário e empresa da sessão atual"""
    return auth_service.session_info(current_user)

@app.post("/auth/logout")
def logout():
    """Token é descartado pelo cliente"""
    return {"ok": True}

# Rotas de Cliente
@app.get("/clients", response_model=List[ClientResponse])
def list_clients(
    sort: Optional[str] = Query(None, description="Campo de ordenação; prefixo '-' para decrescente"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Listar clientes"""
    return client_service.list(db, sort)

@app.get("/clients/{client_id}", response_model=ClientResponse)
def get_client(client_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter cliente por ID"""
    return client_service.get(db, client_id)

@app.post("/clients", response_model=ClientResponse)
def create_client(client: ClientCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Cadastrar novo cliente"""
    return client_service.create(db, client)

@app.put("/clients/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: str,
    client_update: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar cliente"""
    return client_service.update(db, client_id, client_update)

@app.delete("/clients/{client_id}")
def delete_client(client_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Excluir cliente"""
    client_service.delete(db, client_id)
    return {"message": "Cliente excluído com sucesso"}

# Rotas de Serviços
@app.get("/services", response_model=List[ServiceResponse])
def list_services(
    sort: Optional[str] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Listar serviços"""
    if active_only:
        return service_service.get_active_services(db)
    return service_service.list(db, sort)

@app.get("/services/{service_id}", response_model=ServiceResponse)
def get_service(service_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter serviço por ID"""
    return service_service.get(db, service_id)

@app.post("/services", response_model=ServiceResponse)
def create_service(service: ServiceCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Criar novo serviço"""
    return service_service.create(db, service)

@app.put("/services/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: str,
    service_update: ServiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar serviço"""
    return service_service.update(db, service_id, service_update)

@app.delete("/services/{service_id}")
def delete_service(service_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Excluir serviço"""
    service_service.delete(db, service_id)
    return {"message": "Serviço excluído com sucesso"}

# Rotas de Funcionários
@app.get("/employees", response_model=List[EmployeeResponse])
def list_employees(sort: Optional[str] = None, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Listar funcionários"""
    return employee_service.list(db, sort)

@app.get("/employees/{employee_id}", response_model=EmployeeResponse)
def get_employee(employee_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter funcionário por ID"""
    return employee_service.get(db, employee_id)

@app.get("/employees/{employee_id}/stats")
def get_employee_stats(employee_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Serviços, meta mensal e comissões do funcionário"""
    return employee_service.get_stats(db, employee_id)

@app.get("/employees/{employee_id}/logs", response_model=List[EmployeeServiceLogResponse])
def get_employee_logs(employee_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Histórico de comissões do funcionário"""
    employee_service.get(db, employee_id)
    return employee_log_service.list_for_employee(db, employee_id)

@app.post("/employees", response_model=EmployeeResponse)
def create_employee(employee: EmployeeCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Cadastrar funcionário"""
    return employee_service.create(db, employee)

@app.put("/employees/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: str,
    employee_update: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar funcionário"""
    return employee_service.update(db, employee_id, employee_update)

@app.delete("/employees/{employee_id}")
def delete_employee(employee_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Excluir funcionário"""
    employee_service.delete(db, employee_id)
    return {"message": "Funcionário excluído com sucesso"}

# Rotas de Comissões
@app.get("/employee-logs", response_model=List[EmployeeServiceLogResponse])
def list_employee_logs(sort: Optional[str] = None, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Listar registros de comissão"""
    return employee_log_service.list(db, sort)

@app.get("/employee-logs/{log_id}", response_model=EmployeeServiceLogResponse)
def get_employee_log(log_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter registro de comissão"""
    return employee_log_service.get(db, log_id)

@app.put("/employee-logs/{log_id}", response_model=EmployeeServiceLogResponse)
def update_employee_log(
    log_id: str,
    log_update: EmployeeServiceLogUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Alterar situação de pagamento da comissão"""
    return employee_log_service.update(db, log_id, log_update)

@app.post("/employee-logs/{log_id}/pay", response_model=EmployeeServiceLogResponse)
def pay_employee_log(log_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Marcar comissão como paga"""
    return employee_log_service.mark_paid(db, log_id)

# Rotas de Insumos
@app.get("/supplies", response_model=List[SupplyResponse])
def list_supplies(sort: Optional[str] = None, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Listar insumos"""
    return supply_service.list(db, sort)

@app.get("/supplies/low-stock", response_model=List[SupplyResponse])
def list_low_stock_supplies(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Insumos ativos com estoque no mínimo ou abaixo"""
    return supply_service.get_low_stock(db)

@app.get("/supplies/{supply_id}", response_model=SupplyResponse)
def get_supply(supply_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter insumo por ID"""
    return supply_service.get(db, supply_id)

@app.get("/supplies/{supply_id}/consumption")
def get_supply_consumption(supply_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Consumo médio dos últimos 30 dias e previsão de término"""
    return supply_service.get_consumption(db, supply_id)

@app.post("/supplies", response_model=SupplyResponse)
def create_supply(supply: SupplyCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Cadastrar insumo"""
    return supply_service.create(db, supply)

@app.put("/supplies/{supply_id}", response_model=SupplyResponse)
def update_supply(
    supply_id: str,
    supply_update: SupplyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar insumo"""
    return supply_service.update(db, supply_id, supply_update)

@app.delete("/supplies/{supply_id}")
def delete_supply(supply_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Excluir insumo"""
    supply_service.delete(db, supply_id)
    return {"message": "Insumo excluído com sucesso"}

# Rotas de Ficha Técnica
@app.get("/service-supplies", response_model=List[ServiceSupplyResponse])
def list_service_supplies(
    service_id: Optional[str] = None,
    sort: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Listar insumos consumidos por serviço"""
    if service_id:
        return service_supply_service.list_for_service(db, service_id)
    return service_supply_service.list(db, sort)

@app.get("/service-supplies/{service_supply_id}", response_model=ServiceSupplyResponse)
def get_service_supply(service_supply_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter vínculo serviço/insumo"""
    return service_supply_service.get(db, service_supply_id)

@app.post("/service-supplies", response_model=ServiceSupplyResponse)
def create_service_supply(
    service_supply: ServiceSupplyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Vincular insumo a um serviço"""
    return service_supply_service.create(db, service_supply)

@app.put("/service-supplies/{service_supply_id}", response_model=ServiceSupplyResponse)
def update_service_supply(
    service_supply_id: str,
    service_supply_update: ServiceSupplyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Alterar quantidade consumida por serviço"""
    return service_supply_service.update(db, service_supply_id, service_supply_update)

@app.delete("/service-supplies/{service_supply_id}")
def delete_service_supply(service_supply_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Remover vínculo serviço/insumo"""
    service_supply_service.delete(db, service_supply_id)
    return {"message": "Vínculo removido com sucesso"}

# Rotas de Movimentação de Estoque
@app.get("/supply-movements", response_model=List[SupplyMovementResponse])
def list_supply_movements(sort: Optional[str] = None, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Listar movimentações de estoque"""
    return supply_movement_service.list(db, sort)

@app.get("/supply-movements/{movement_id}", response_model=SupplyMovementResponse)
def get_supply_movement(movement_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter movimentação"""
    return supply_movement_service.get(db, movement_id)

@app.post("/supply-movements", response_model=SupplyMovementResponse)
def create_supply_movement(
    movement: SupplyMovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Registrar entrada, saída ou ajuste manual de estoque"""
    return supply_movement_service.create(db, movement)

# Rotas de Agendamento
@app.get("/appointments", response_model=List[AppointmentResponse])
def list_appointments(sort: Optional[str] = None, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Listar agendamentos"""
    return appointment_service.list(db, sort)

@app.get("/appointments/available-slots", response_model=List[TimeSlot])
def get_available_slots(
    date: Optional[date] = None,
    exclude_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Grade de horários do dia com indicação de ocupado"""
    return appointment_service.get_available_slots(db, date, exclude_id)

@app.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(appointment_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter agendamento"""
    return appointment_service.get(db, appointment_id)

@app.post("/appointments", response_model=AppointmentResponse)
def create_appointment(
    appointment: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Criar agendamento"""
    return appointment_service.create(db, appointment)

@app.put("/appointments/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    appointment_update: AppointmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar agendamento"""
    return appointment_service.update(db, appointment_id, appointment_update)

@app.delete("/appointments/{appointment_id}")
def delete_appointment(appointment_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Excluir agendamento"""
    appointment_service.delete(db, appointment_id)
    return {"message": "Agendamento excluído com sucesso"}

# Rotas de Ordem de Serviço
@app.get("/service-orders", response_model=List[ServiceOrderResponse])
def list_service_orders(
    sort: Optional[str] = Query("-created_date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Listar ordens de serviço"""
    return service_order_service.list(db, sort)

@app.get("/service-orders/{order_id}", response_model=ServiceOrderResponse)
def get_service_order(order_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter ordem de serviço"""
    return service_order_service.get(db, order_id)

@app.post("/service-orders", response_model=ServiceOrderResponse)
def create_service_order(
    order: ServiceOrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Abrir ordem de serviço"""
    return service_order_service.create(db, order)

@app.put("/service-orders/{order_id}", response_model=ServiceOrderResponse)
def update_service_order(
    order_id: str,
    order_update: ServiceOrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar ordem de serviço (o total é recalculado)"""
    return service_order_service.update(db, order_id, order_update)

@app.post("/service-orders/{order_id}/status", response_model=ServiceOrderStatusResponse)
def change_service_order_status(
    order_id: str,
    status_update: ServiceOrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Alterar status; ao finalizar registra comissão e dá baixa nos insumos"""
    result = service_order_service.change_status(db, order_id, status_update.status)
    return {
        "order": result.order,
        "already_completed": result.already_completed,
        "commission_log": result.commission_log,
        "movements_created": result.movements_created,
        "skipped_supplies": result.skipped_supplies,
    }

@app.delete("/service-orders/{order_id}")
def delete_service_order(order_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Excluir ordem de serviço"""
    service_order_service.delete(db, order_id)
    return {"message": "Ordem de serviço excluída com sucesso"}

# Rotas Financeiras
@app.get("/financial-transactions", response_model=List[FinancialTransactionResponse])
def list_financial_transactions(
    sort: Optional[str] = Query("-date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Listar lançamentos"""
    return financial_service.list(db, sort)

@app.get("/financial-transactions/summary")
def get_financial_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Entradas, saídas e saldo do período"""
    return financial_service.get_summary(db, start_date, end_date)

@app.get("/financial-transactions/{transaction_id}", response_model=FinancialTransactionResponse)
def get_financial_transaction(transaction_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Obter lançamento"""
    return financial_service.get(db, transaction_id)

@app.post("/financial-transactions", response_model=FinancialTransactionResponse)
def create_financial_transaction(
    transaction: FinancialTransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Criar lançamento"""
    return financial_service.create(db, transaction)

@app.put("/financial-transactions/{transaction_id}", response_model=FinancialTransactionResponse)
def update_financial_transaction(
    transaction_id: str,
    transaction_update: FinancialTransactionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar lançamento"""
    return financial_service.update(db, transaction_id, transaction_update)

@app.delete("/financial-transactions/{transaction_id}")
def delete_financial_transaction(transaction_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Excluir lançamento"""
    financial_service.delete(db, transaction_id)
    return {"message": "Lançamento excluído com sucesso"}

# Rotas de Relatórios
@app.get("/reports/monthly")
def get_monthly_report(
    month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$", description="Mês no formato YYYY-MM"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Resumo mensal: receita, despesas, OS finalizadas, comissões e serviços mais vendidos"""
    return report_service.get_monthly_report(db, month)

# Rotas de Configurações
@app.get("/settings", response_model=BusinessSettingsResponse)
def get_settings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Configurações do estabelecimento"""
    return settings_service.get_settings(db)

@app.put("/settings", response_model=BusinessSettingsResponse)
def update_settings(
    settings_update: BusinessSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Atualizar configurações (horário de funcionamento define a grade de agendamento)"""
    return settings_service.update_settings(db, settings_update)
