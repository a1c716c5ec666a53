from .auth_service import auth_service
from .client_service import client_service
from .service_service import service_service
from .employee_service import employee_service, employee_log_service
from .supply_service import supply_service, supply_movement_service, service_supply_service
from .appointment_service import appointment_service
from .order_service import service_order_service
from .order_completion_service import order_completion_service, OrderCompletionError
from .financial_service import financial_service
from .report_service import report_service
from .settings_service import settings_service
from .whatsapp_service import whatsapp_service

__all__ = [
    "auth_service",
    "client_service",
    "service_service",
    "employee_service",
    "employee_log_service",
    "supply_service",
    "supply_movement_service",
    "service_supply_service",
    "appointment_service",
    "service_order_service",
    "order_completion_service",
    "OrderCompletionError",
    "financial_service",
    "report_service",
    "settings_service",
    "whatsapp_service"
]
