from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List
from sqlalchemy import and_

from models import Service, ServiceSupply
from schemas import ServiceCreate, ServiceUpdate
from services.entity_service import EntityService

class ServiceService(EntityService):
    def __init__(self):
        super().__init__(Service, "Serviço não encontrado")

    def create(self, db: Session, service: ServiceCreate) -> Service:
        # Verificar se nome do serviço já existe
        if db.query(Service).filter(Service.name == service.name).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Serviço com este nome já existe"
            )

        return super().create(db, service)

    def get_active_services(self, db: Session) -> List[Service]:
        return db.query(Service).filter(Service.active == True).order_by(Service.name).all()

    def update(self, db: Session, service_id: str, service_update: ServiceUpdate) -> Service:
        db_service = self.get(db, service_id)

        # Verificar se nome já existe (se foi alterado)
        if service_update.name and service_update.name != db_service.name:
            if db.query(Service).filter(and_(Service.name == service_update.name, Service.id != service_id)).first():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Serviço com este nome já existe"
                )

        return super().update(db, service_id, service_update)

    def delete(self, db: Session, service_id: str):
        db_service = self.get(db, service_id)
        # A ficha técnica pertence ao serviço e sai junto com ele
        db.query(ServiceSupply).filter(ServiceSupply.service_id == service_id).delete()
        db.delete(db_service)
        db.commit()

service_service = ServiceService()
