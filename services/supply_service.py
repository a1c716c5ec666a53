import logging
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models import Supply, SupplyMovement, ServiceSupply, Service
from schemas import SupplyMovementCreate, ServiceSupplyCreate
from services.entity_service import EntityService
from utils.date_utils import get_local_date

logger = logging.getLogger(__name__)

CONSUMPTION_WINDOW_DAYS = 30
# Sem consumo no período, o estoque "não acaba"
NO_CONSUMPTION_DAYS = 999


def apply_movement(current_stock: float, movement_type: str, quantity: float) -> float:
    """Entrada soma; saída e ajuste subtraem. Nunca abaixo de zero."""
    if movement_type == "in":
        new_stock = (current_stock or 0) + quantity
    else:
        new_stock = (current_stock or 0) - quantity
    return max(0.0, new_stock)


class SupplyService(EntityService):
    def __init__(self):
        super().__init__(Supply, "Insumo não encontrado")

    def get_low_stock(self, db: Session) -> List[Supply]:
        return db.query(Supply).filter(
            Supply.active == True,
            Supply.current_stock <= Supply.minimum_stock
        ).order_by(Supply.name).all()

    def get_consumption(self, db: Session, supply_id: str) -> Dict[str, Any]:
        """Consumo médio diário (saídas dos últimos 30 dias) e previsão de término"""
        supply = self.get(db, supply_id)
        since = get_local_date() - timedelta(days=CONSUMPTION_WINDOW_DAYS)

        movements = db.query(SupplyMovement).filter(
            SupplyMovement.supply_id == supply_id,
            SupplyMovement.type == "out",
            SupplyMovement.date >= since
        ).all()

        total_out = sum(movement.quantity for movement in movements)
        average_daily = total_out / CONSUMPTION_WINDOW_DAYS
        if average_daily > 0:
            days_until_empty = int((supply.current_stock or 0) // average_daily)
        else:
            days_until_empty = NO_CONSUMPTION_DAYS

        return {
            "supply_id": supply.id,
            "supply_name": supply.name,
            "current_stock": supply.current_stock,
            "consumed_last_30_days": round(total_out, 3),
            "average_daily_consumption": round(average_daily, 3),
            "days_until_empty": days_until_empty,
            "low_stock": (supply.current_stock or 0) <= (supply.minimum_stock or 0),
        }


class SupplyMovementService(EntityService):
    def __init__(self):
        super().__init__(SupplyMovement, "Movimentação não encontrada")

    def create(self, db: Session, movement: SupplyMovementCreate) -> SupplyMovement:
        """Movimentação manual: grava o registro e atualiza o estoque no mesmo commit"""
        supply = supply_service.get(db, movement.supply_id)

        payload = movement.model_dump()
        payload["supply_name"] = supply.name
        payload["date"] = payload.get("date") or get_local_date()

        db_movement = SupplyMovement(**payload)
        supply.current_stock = apply_movement(supply.current_stock, movement.type, movement.quantity)

        db.add(db_movement)
        db.commit()
        db.refresh(db_movement)

        logger.info(
            "Movimentação %s de %s %s (%s); estoque atual %s",
            movement.type, movement.quantity, supply.name, movement.reason, supply.current_stock,
        )
        return db_movement


class ServiceSupplyService(EntityService):
    def __init__(self):
        super().__init__(ServiceSupply, "Vínculo serviço/insumo não encontrado")

    def create(self, db: Session, service_supply: ServiceSupplyCreate) -> ServiceSupply:
        service = db.query(Service).filter(Service.id == service_supply.service_id).first()
        if not service:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Serviço não encontrado"
            )
        supply = supply_service.get(db, service_supply.supply_id)

        payload = service_supply.model_dump()
        payload["service_name"] = service.name
        payload["supply_name"] = supply.name
        return super().create(db, payload)

    def list_for_service(self, db: Session, service_id: str) -> List[ServiceSupply]:
        return db.query(ServiceSupply).filter(ServiceSupply.service_id == service_id).all()

supply_service = SupplyService()
supply_movement_service = SupplyMovementService()
service_supply_service = ServiceSupplyService()
