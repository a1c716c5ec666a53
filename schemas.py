from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List, Literal
import datetime as dt

EmployeeRole = Literal["washer", "polisher", "attendant", "manager"]
SupplyUnit = Literal["liter", "milliliter", "kilogram", "gram", "unit"]
AppointmentStatus = Literal["scheduled", "confirmed", "completed", "no_show", "cancelled"]
OrderStatus = Literal["waiting", "in_progress", "completed", "cancelled"]
PaymentMethod = Literal["cash", "pix", "credit_card", "debit_card"]
MovementType = Literal["in", "out", "adjustment"]
MovementReason = Literal["purchase", "service_consumption", "waste", "expired", "inventory_adjustment"]
TransactionType = Literal["income", "expense"]

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# Itens compartilhados
class Vehicle(BaseModel):
    plate: str
    model: str
    color: Optional[str] = None
    year: Optional[int] = None

class ServiceLine(BaseModel):
    service_id: str
    service_name: str
    price: float = Field(ge=0)

# Schemas de Cliente
class ClientBase(BaseModel):
    name: str
    phone: str
    email: Optional[EmailStr] = None
    vehicles: List[Vehicle] = []
    notes: Optional[str] = None
    loyalty_points: int = Field(default=0, ge=0)
    total_visits: int = Field(default=0, ge=0)

class ClientCreate(ClientBase):
    pass

class ClientUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    vehicles: Optional[List[Vehicle]] = None
    notes: Optional[str] = None
    loyalty_points: Optional[int] = Field(default=None, ge=0)
    total_visits: Optional[int] = Field(default=None, ge=0)

class ClientResponse(ClientBase):
    id: str
    email: Optional[str] = None
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

# Schemas de Serviço
class ServiceBase(BaseModel):
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    duration_minutes: int = Field(default=30, gt=0)
    is_combo: bool = False
    active: bool = True

class ServiceCreate(ServiceBase):
    pass

class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    is_combo: Optional[bool] = None
    active: Optional[bool] = None

class ServiceResponse(ServiceBase):
    id: str
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

# Schemas de Funcionário
class EmployeeBase(BaseModel):
    name: str
    phone: Optional[str] = None
    role: EmployeeRole = "washer"
    commission_percent: float = Field(default=0, ge=0, le=100)
    hire_date: Optional[dt.date] = None
    active: bool = True
    monthly_goal: Optional[int] = Field(default=None, ge=0)

class EmployeeCreate(EmployeeBase):
    pass

class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[EmployeeRole] = None
    commission_percent: Optional[float] = Field(default=None, ge=0, le=100)
    hire_date: Optional[dt.date] = None
    active: Optional[bool] = None
    monthly_goal: Optional[int] = Field(default=None, ge=0)

class EmployeeResponse(EmployeeBase):
    id: str
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

# Schemas de Insumo
class SupplyBase(BaseModel):
    name: str
    unit: SupplyUnit = "unit"
    current_stock: float = Field(default=0, ge=0)
    minimum_stock: float = Field(default=0, ge=0)
    cost_per_unit: float = Field(default=0, ge=0)
    category: Optional[str] = None
    active: bool = True

class SupplyCreate(SupplyBase):
    pass

class SupplyUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[SupplyUnit] = None
    current_stock: Optional[float] = Field(default=None, ge=0)
    minimum_stock: Optional[float] = Field(default=None, ge=0)
    cost_per_unit: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    active: Optional[bool] = None

class SupplyResponse(SupplyBase):
    id: str
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

# Schemas de Ficha Técnica (serviço -> insumo)
class ServiceSupplyBase(BaseModel):
    service_id: str
    supply_id: str
    quantity_per_service: float = Field(gt=0)

class ServiceSupplyCreate(ServiceSupplyBase):
    pass

class ServiceSupplyUpdate(BaseModel):
    quantity_per_service: Optional[float] = Field(default=None, gt=0)

class ServiceSupplyResponse(ServiceSupplyBase):
    id: str
    service_name: Optional[str] = None
    supply_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# Schemas de Agendamento
class AppointmentBase(BaseModel):
    client_id: Optional[str] = None
    client_name: str
    client_phone: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_model: Optional[str] = None
    services: List[ServiceLine] = []
    date: dt.date
    time: str = Field(pattern=TIME_PATTERN)
    notes: Optional[str] = None

class AppointmentCreate(AppointmentBase):
    status: AppointmentStatus = "scheduled"

class AppointmentUpdate(BaseModel):
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_model: Optional[str] = None
    services: Optional[List[ServiceLine]] = None
    date: Optional[dt.date] = None
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

class AppointmentResponse(AppointmentBase):
    id: str
    status: str
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

class TimeSlot(BaseModel):
    time: str
    taken: bool

# Schemas de Ordem de Serviço
class ServiceOrderBase(BaseModel):
    client_id: Optional[str] = None
    client_name: str
    vehicle_plate: str
    vehicle_model: Optional[str] = None
    services: List[ServiceLine] = []
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    discount: float = Field(default=0, ge=0)
    notes: Optional[str] = None

class ServiceOrderCreate(ServiceOrderBase):
    pass

class ServiceOrderUpdate(BaseModel):
    # status só muda via /service-orders/{id}/status
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_model: Optional[str] = None
    services: Optional[List[ServiceLine]] = None
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    discount: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None

class ServiceOrderResponse(ServiceOrderBase):
    id: str
    order_number: str
    total: float
    status: str
    started_at: Optional[dt.datetime] = None
    finished_at: Optional[dt.datetime] = None
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

class ServiceOrderStatusUpdate(BaseModel):
    status: OrderStatus

# Schemas de Comissão
class EmployeeServiceLogResponse(BaseModel):
    id: str
    employee_id: str
    employee_name: Optional[str] = None
    service_order_id: str
    order_number: Optional[str] = None
    service_name: Optional[str] = None
    service_value: float
    commission_percent: float
    commission_value: float
    date: dt.date
    paid: bool

    model_config = ConfigDict(from_attributes=True)

class EmployeeServiceLogUpdate(BaseModel):
    paid: bool

class ServiceOrderStatusResponse(BaseModel):
    order: ServiceOrderResponse
    already_completed: bool = False
    commission_log: Optional[EmployeeServiceLogResponse] = None
    movements_created: int = 0
    skipped_supplies: int = 0

# Schemas de Movimentação de Estoque
class SupplyMovementCreate(BaseModel):
    supply_id: str
    type: MovementType
    quantity: float = Field(gt=0)
    reason: MovementReason
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None

class SupplyMovementResponse(BaseModel):
    id: str
    supply_id: str
    supply_name: Optional[str] = None
    type: str
    quantity: float
    reason: str
    service_order_id: Optional[str] = None
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    date: dt.date
    notes: Optional[str] = None
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

# Schemas Financeiros
class FinancialTransactionBase(BaseModel):
    type: TransactionType
    category: str
    description: Optional[str] = None
    amount: float = Field(ge=0)
    payment_method: Optional[PaymentMethod] = None
    date: dt.date

class FinancialTransactionCreate(FinancialTransactionBase):
    pass

class FinancialTransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    date: Optional[dt.date] = None

class FinancialTransactionResponse(FinancialTransactionBase):
    id: str
    created_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)

# Schemas de Configurações
class BusinessSettingsUpdate(BaseModel):
    business_name: Optional[str] = None
    opening_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    closing_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    slot_interval_minutes: Optional[int] = Field(default=None, gt=0, le=240)
    notifications_enabled: Optional[bool] = None
    loyalty_enabled: Optional[bool] = None
    loyalty_points_per_visit: Optional[int] = Field(default=None, ge=1)
    loyalty_reward_threshold: Optional[int] = Field(default=None, ge=1)

class BusinessSettingsResponse(BaseModel):
    business_name: str
    opening_time: str
    closing_time: str
    slot_interval_minutes: int
    notifications_enabled: bool
    loyalty_enabled: bool
    loyalty_points_per_visit: int
    loyalty_reward_threshold: int

    model_config = ConfigDict(from_attributes=True)

# Schemas de Autenticação
class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TenantResponse(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)

class UserResponse(BaseModel):
    id: str
    email: str
    name: str

    model_config = ConfigDict(from_attributes=True)

class SessionResponse(BaseModel):
    user: UserResponse
    tenant: TenantResponse

class LoginResponse(SessionResponse):
    access_token: str
    token_type: str
