import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from models import ServiceOrder
from schemas import ServiceOrderCreate, ServiceOrderUpdate
from services.entity_service import EntityService
from services.order_completion_service import order_completion_service, CompletionResult

logger = logging.getLogger(__name__)

BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def calculate_order_total(services: Optional[List[Dict[str, Any]]], discount: Optional[float]) -> float:
    """Soma dos preços dos serviços menos o desconto"""
    subtotal = sum((line.get("price") or 0) for line in (services or []))
    return round(subtotal - (discount or 0), 2)


class ServiceOrderService(EntityService):
    def __init__(self):
        super().__init__(ServiceOrder, "Ordem de serviço não encontrada")

    def generate_order_number(self, db: Session) -> str:
        millis = int(time.time() * 1000)
        order_number = f"OS-{to_base36(millis)}"
        # Duas OS no mesmo milissegundo: avança até achar um número livre
        while db.query(ServiceOrder.id).filter(ServiceOrder.order_number == order_number).first():
            millis += 1
            order_number = f"OS-{to_base36(millis)}"
        return order_number

    def create(self, db: Session, order: ServiceOrderCreate) -> ServiceOrder:
        payload = order.model_dump()
        payload["order_number"] = self.generate_order_number(db)
        payload["total"] = calculate_order_total(payload["services"], payload["discount"])
        payload["status"] = "waiting"
        return super().create(db, payload)

    def update(self, db: Session, order_id: str, order_update: ServiceOrderUpdate) -> ServiceOrder:
        db_order = self.get(db, order_id)
        update_data = self._update_fields(order_update)

        services = update_data["services"] if "services" in update_data else db_order.services
        discount = update_data["discount"] if "discount" in update_data else db_order.discount
        update_data["total"] = calculate_order_total(services, discount)

        return super().update(db, order_id, update_data)

    def change_status(self, db: Session, order_id: str, new_status: str) -> CompletionResult:
        if new_status == "completed":
            return order_completion_service.complete_order(db, order_id)

        db_order = self.get(db, order_id)
        updates = {"status": new_status}
        if new_status == "in_progress" and not db_order.started_at:
            updates["started_at"] = datetime.utcnow()

        logger.info("OS %s: %s -> %s", db_order.order_number, db_order.status, new_status)
        return CompletionResult(order=super().update(db, order_id, updates))

service_order_service = ServiceOrderService()
