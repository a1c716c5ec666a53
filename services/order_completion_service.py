"""
Efeitos colaterais da finalização de uma ordem de serviço: registro de
comissão do funcionário e baixa dos insumos da ficha técnica de cada serviço.

O cálculo (build_completion_plan) é puro e trabalha sobre cópias já
carregadas. A aplicação (OrderCompletionService.complete_order) roda em uma
única transação, que começa reivindicando a ordem com um UPDATE condicional
em finished_at IS NULL: só quem reivindica executa os efeitos.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import ServiceOrder, Employee, EmployeeServiceLog, ServiceSupply, Supply, SupplyMovement
from utils.date_utils import get_local_date

logger = logging.getLogger(__name__)

COMPLETED = "completed"


class OrderCompletionError(Exception):
    """Falha de escrita durante a finalização; nada foi gravado (rollback)."""

    def __init__(self, step: str, order_id: str):
        self.step = step
        self.order_id = order_id
        super().__init__(f"Falha ao finalizar a ordem {order_id} na etapa '{step}'")


@dataclass
class CompletionPlan:
    commission_log: Optional[Dict[str, Any]] = None
    movements: List[Dict[str, Any]] = field(default_factory=list)
    # supply_id -> estoque final após todas as baixas da ordem
    stock_levels: Dict[str, float] = field(default_factory=dict)
    skipped_supplies: int = 0


@dataclass
class CompletionResult:
    order: ServiceOrder
    already_completed: bool = False
    commission_log: Optional[EmployeeServiceLog] = None
    movements_created: int = 0
    skipped_supplies: int = 0


def calculate_commission(service_value: float, commission_percent: float) -> float:
    return round((service_value or 0) * (commission_percent or 0) / 100, 2)


def build_completion_plan(
    order: ServiceOrder,
    employee: Optional[Employee],
    service_supplies: Iterable[ServiceSupply],
    supplies: Iterable[Supply],
    today: date,
) -> CompletionPlan:
    plan = CompletionPlan()
    lines = order.services or []

    if order.employee_id and employee is not None and (employee.commission_percent or 0) > 0:
        total = order.total or 0
        plan.commission_log = {
            "employee_id": order.employee_id,
            "employee_name": order.employee_name or employee.name,
            "service_order_id": order.id,
            "order_number": order.order_number,
            "service_name": ", ".join(line.get("service_name", "") for line in lines),
            "service_value": total,
            "commission_percent": employee.commission_percent,
            "commission_value": calculate_commission(total, employee.commission_percent),
            "date": today,
            "paid": False,
        }

    service_supplies = list(service_supplies)
    supplies_by_id = {supply.id: supply for supply in supplies}

    # Sem agrupamento: o mesmo insumo usado por dois serviços gera duas baixas
    for line in lines:
        for service_supply in service_supplies:
            if service_supply.service_id != line.get("service_id"):
                continue

            supply = supplies_by_id.get(service_supply.supply_id)
            if supply is None:
                plan.skipped_supplies += 1
                logger.warning(
                    "Insumo %s da ficha técnica do serviço %s não existe; baixa ignorada (OS %s)",
                    service_supply.supply_id, service_supply.service_id, order.order_number,
                )
                continue

            quantity = service_supply.quantity_per_service
            current_stock = plan.stock_levels.get(supply.id, supply.current_stock or 0)
            plan.stock_levels[supply.id] = max(0.0, current_stock - quantity)
            plan.movements.append({
                "supply_id": supply.id,
                "supply_name": supply.name,
                "type": "out",
                "quantity": quantity,
                "reason": "service_consumption",
                "service_order_id": order.id,
                "employee_id": order.employee_id,
                "employee_name": order.employee_name,
                "date": today,
            })

    return plan


class OrderCompletionService:
    def complete_order(self, db: Session, order_id: str) -> CompletionResult:
        step = "claim"
        try:
            now = datetime.utcnow()
            claimed = db.query(ServiceOrder).filter(
                ServiceOrder.id == order_id,
                ServiceOrder.finished_at.is_(None)
            ).update(
                {"status": COMPLETED, "finished_at": now, "updated_date": now},
                synchronize_session=False
            )

            if not claimed:
                return self._already_completed(db, order_id)

            order = db.query(ServiceOrder).populate_existing().filter(ServiceOrder.id == order_id).one()
            employee = db.get(Employee, order.employee_id) if order.employee_id else None

            service_ids = [line.get("service_id") for line in (order.services or []) if line.get("service_id")]
            service_supplies = []
            if service_ids:
                service_supplies = db.query(ServiceSupply).filter(ServiceSupply.service_id.in_(service_ids)).all()

            supply_ids = {service_supply.supply_id for service_supply in service_supplies}
            supplies = []
            if supply_ids:
                supplies = db.query(Supply).filter(Supply.id.in_(supply_ids)).with_for_update().all()

            plan = build_completion_plan(order, employee, service_supplies, supplies, get_local_date())

            step = "commission_log"
            commission_log = None
            if plan.commission_log:
                commission_log = EmployeeServiceLog(**plan.commission_log)
                db.add(commission_log)
                db.flush()

            step = "supply_movement"
            for movement in plan.movements:
                db.add(SupplyMovement(**movement))
            db.flush()

            step = "stock_update"
            for supply in supplies:
                if supply.id in plan.stock_levels:
                    supply.current_stock = plan.stock_levels[supply.id]
            db.flush()

            step = "commit"
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Falha ao finalizar OS %s na etapa %s: %s", order_id, step, e)
            raise OrderCompletionError(step, order_id) from e

        db.refresh(order)
        if commission_log is not None:
            db.refresh(commission_log)

        logger.info(
            "OS %s finalizada: comissão=%s, baixas=%d, insumos ausentes=%d",
            order.order_number,
            commission_log.commission_value if commission_log else 0,
            len(plan.movements),
            plan.skipped_supplies,
        )
        return CompletionResult(
            order=order,
            commission_log=commission_log,
            movements_created=len(plan.movements),
            skipped_supplies=plan.skipped_supplies,
        )

    def _already_completed(self, db: Session, order_id: str) -> CompletionResult:
        order = db.query(ServiceOrder).filter(ServiceOrder.id == order_id).first()
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ordem de serviço não encontrada"
            )

        # finished_at já preenchido: só o campo status volta a "completed", sem efeitos
        if order.status != COMPLETED:
            order.status = COMPLETED
            db.commit()
            db.refresh(order)

        logger.info("OS %s já havia sido finalizada; efeitos não reaplicados", order.order_number)
        return CompletionResult(order=order, already_completed=True)

order_completion_service = OrderCompletionService()
