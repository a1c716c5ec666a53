from sqlalchemy import Column, Integer, String, DateTime, Date, Float, Boolean, ForeignKey, Text, JSON, Index, text
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import uuid

Base = declarative_base()


def generate_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_date = Column(DateTime, default=datetime.utcnow, index=True)
    updated_date = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(150), nullable=False)
    created_date = Column(DateTime, default=datetime.utcnow)

    users = relationship("User", back_populates="tenant")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True)
    last_login_at = Column(DateTime, nullable=True)
    created_date = Column(DateTime, default=datetime.utcnow)

    tenant = relationship("Tenant", back_populates="users")


class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    email = Column(String(100), nullable=True)
    # Lista de {plate, model, color, year} na ordem de cadastro
    vehicles = Column(JSON, default=list)
    notes = Column(Text, nullable=True)
    loyalty_points = Column(Integer, default=0)
    total_visits = Column(Integer, default=0)


class Service(TimestampMixin, Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, default=30)
    is_combo = Column(Boolean, default=False)
    active = Column(Boolean, default=True)


class Employee(TimestampMixin, Base):
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), default="washer")  # washer, polisher, attendant, manager
    commission_percent = Column(Float, default=0)
    hire_date = Column(Date, nullable=True)
    active = Column(Boolean, default=True)
    monthly_goal = Column(Integer, nullable=True)


class Supply(TimestampMixin, Base):
    __tablename__ = "supplies"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    unit = Column(String(20), default="unit")  # liter, milliliter, kilogram, gram, unit
    current_stock = Column(Float, default=0)
    minimum_stock = Column(Float, default=0)
    cost_per_unit = Column(Float, default=0)
    category = Column(String(50), nullable=True)
    active = Column(Boolean, default=True)


class ServiceSupply(TimestampMixin, Base):
    """Ficha técnica: quanto de cada insumo um serviço consome"""
    __tablename__ = "service_supplies"

    id = Column(String(36), primary_key=True, default=generate_id)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)
    service_name = Column(String(100), nullable=True)
    # Sem ForeignKey: o insumo pode ser excluído e a linha continuar existindo
    supply_id = Column(String(36), nullable=False, index=True)
    supply_name = Column(String(100), nullable=True)
    quantity_per_service = Column(Float, nullable=False)


class Appointment(TimestampMixin, Base):
    __tablename__ = "appointments"
    # Um agendamento ativo por data e horário
    __table_args__ = (
        Index(
            "uq_appointments_active_slot", "date", "time", unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    client_id = Column(String(36), nullable=True)
    client_name = Column(String(100), nullable=False)
    client_phone = Column(String(20), nullable=True)
    vehicle_plate = Column(String(10), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    # Cópia de {service_id, service_name, price} no momento do agendamento
    services = Column(JSON, default=list)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)
    status = Column(String(20), default="scheduled")  # scheduled, confirmed, completed, no_show, cancelled
    notes = Column(Text, nullable=True)


class ServiceOrder(TimestampMixin, Base):
    __tablename__ = "service_orders"

    id = Column(String(36), primary_key=True, default=generate_id)
    order_number = Column(String(20), unique=True, nullable=False, index=True)
    client_id = Column(String(36), nullable=True)
    client_name = Column(String(100), nullable=False)
    vehicle_plate = Column(String(10), nullable=False)
    vehicle_model = Column(String(100), nullable=True)
    # Cópia de {service_id, service_name, price}; o preço fica congelado
    services = Column(JSON, default=list)
    employee_id = Column(String(36), nullable=True)
    employee_name = Column(String(100), nullable=True)
    payment_method = Column(String(20), nullable=True)  # cash, pix, credit_card, debit_card
    discount = Column(Float, default=0)
    total = Column(Float, default=0)
    status = Column(String(20), default="waiting")  # waiting, in_progress, completed, cancelled
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)


class EmployeeServiceLog(TimestampMixin, Base):
    __tablename__ = "employee_service_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), nullable=False, index=True)
    employee_name = Column(String(100), nullable=True)
    service_order_id = Column(String(36), nullable=False, index=True)
    order_number = Column(String(20), nullable=True)
    service_name = Column(Text, nullable=True)
    service_value = Column(Float, default=0)
    commission_percent = Column(Float, default=0)
    commission_value = Column(Float, default=0)
    date = Column(Date, nullable=False)
    paid = Column(Boolean, default=False)


class SupplyMovement(TimestampMixin, Base):
    __tablename__ = "supply_movements"

    id = Column(String(36), primary_key=True, default=generate_id)
    supply_id = Column(String(36), nullable=False, index=True)
    supply_name = Column(String(100), nullable=True)
    type = Column(String(20), nullable=False)  # in, out, adjustment
    quantity = Column(Float, nullable=False)
    reason = Column(String(30), nullable=False)  # purchase, service_consumption, waste, expired, inventory_adjustment
    service_order_id = Column(String(36), nullable=True, index=True)
    employee_id = Column(String(36), nullable=True)
    employee_name = Column(String(100), nullable=True)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)


class FinancialTransaction(TimestampMixin, Base):
    __tablename__ = "financial_transactions"

    id = Column(String(36), primary_key=True, default=generate_id)
    type = Column(String(10), nullable=False)  # income, expense
    category = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(20), nullable=True)
    date = Column(Date, nullable=False, index=True)


class BusinessSettings(Base):
    __tablename__ = "business_settings"

    id = Column(Integer, primary_key=True, index=True)
    business_name = Column(String(150), default="Meu Lava Jato")
    opening_time = Column(String(5), default="08:00")
    closing_time = Column(String(5), default="18:00")
    slot_interval_minutes = Column(Integer, default=30)
    notifications_enabled = Column(Boolean, default=True)
    loyalty_enabled = Column(Boolean, default=False)
    loyalty_points_per_visit = Column(Integer, default=1)
    loyalty_reward_threshold = Column(Integer, default=10)
    updated_date = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
