from typing import Any, Dict

from sqlalchemy.orm import Session

from models import Employee, EmployeeServiceLog, ServiceOrder
from services.entity_service import EntityService
from utils.date_utils import month_bounds, utc_to_local


class EmployeeService(EntityService):
    def __init__(self):
        super().__init__(Employee, "Funcionário não encontrado")

    def get_stats(self, db: Session, employee_id: str) -> Dict[str, Any]:
        """Serviços finalizados, meta do mês e comissões do funcionário"""
        employee = self.get(db, employee_id)
        first_day, last_day = month_bounds()

        completed_orders = db.query(ServiceOrder).filter(
            ServiceOrder.employee_id == employee_id,
            ServiceOrder.status == "completed"
        ).all()
        month_orders = [
            order for order in completed_orders
            if order.finished_at and first_day <= utc_to_local(order.finished_at).date() <= last_day
        ]

        logs = db.query(EmployeeServiceLog).filter(EmployeeServiceLog.employee_id == employee_id).all()
        total_commission = sum(log.commission_value or 0 for log in logs)
        pending_commission = sum(log.commission_value or 0 for log in logs if not log.paid)

        goal_progress = None
        if employee.monthly_goal:
            goal_progress = round(len(month_orders) / employee.monthly_goal * 100, 1)

        return {
            "employee_id": employee.id,
            "employee_name": employee.name,
            "total_services": len(completed_orders),
            "month_services": len(month_orders),
            "month_revenue": round(sum(order.total or 0 for order in month_orders), 2),
            "monthly_goal": employee.monthly_goal,
            "goal_progress_percent": goal_progress,
            "total_commission": round(total_commission, 2),
            "pending_commission": round(pending_commission, 2),
        }


class EmployeeServiceLogService(EntityService):
    def __init__(self):
        super().__init__(EmployeeServiceLog, "Registro de comissão não encontrado")

    def list_for_employee(self, db: Session, employee_id: str):
        return db.query(EmployeeServiceLog).filter(
            EmployeeServiceLog.employee_id == employee_id
        ).order_by(EmployeeServiceLog.date.desc()).all()

    def mark_paid(self, db: Session, log_id: str) -> EmployeeServiceLog:
        return self.update(db, log_id, {"paid": True})

employee_service = EmployeeService()
employee_log_service = EmployeeServiceLogService()
