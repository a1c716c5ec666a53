from typing import Optional

from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models import Client
from schemas import ClientCreate, ClientUpdate
from services.entity_service import EntityService


def _only_digits(value: str) -> str:
    return ''.join(ch for ch in (value or '') if ch.isdigit())


def _normalize_email(value: Optional[str]) -> Optional[str]:
    return (value or '').strip().lower() or None


def _normalize_plate(value: str) -> str:
    return ''.join(ch for ch in (value or '') if ch.isalnum()).upper()


class ClientService(EntityService):
    def __init__(self):
        super().__init__(Client, "Cliente não encontrado")

    def _sanitize(self, payload: dict) -> dict:
        if "phone" in payload and payload["phone"] is not None:
            phone_digits = _only_digits(payload["phone"])
            if len(phone_digits) not in (10, 11):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Telefone inválido")
            payload["phone"] = phone_digits
        if "email" in payload:
            payload["email"] = _normalize_email(payload["email"])
        if payload.get("name"):
            payload["name"] = payload["name"].strip()
        if payload.get("vehicles"):
            for vehicle in payload["vehicles"]:
                vehicle["plate"] = _normalize_plate(vehicle["plate"])
        return payload

    def create(self, db: Session, client: ClientCreate) -> Client:
        return super().create(db, self._sanitize(client.model_dump()))

    def update(self, db: Session, client_id: str, client_update: ClientUpdate) -> Client:
        return super().update(db, client_id, self._sanitize(client_update.model_dump(exclude_unset=True)))

client_service = ClientService()
