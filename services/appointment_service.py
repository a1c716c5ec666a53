import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models import Appointment
from schemas import AppointmentCreate, AppointmentUpdate
from services.entity_service import EntityService
from services.settings_service import settings_service
from services.slot_service import is_time_slot_taken, available_slots, CANCELLED
from services.whatsapp_service import whatsapp_service

logger = logging.getLogger(__name__)


class AppointmentService(EntityService):
    def __init__(self):
        super().__init__(Appointment, "Agendamento não encontrado")

    def get_appointments_on(self, db: Session, target_date: date) -> List[Appointment]:
        return db.query(Appointment).filter(Appointment.date == target_date).all()

    def get_available_slots(self, db: Session, target_date: Optional[date], exclude_id: Optional[str] = None):
        slots = settings_service.get_time_slots(db)
        appointments = self.get_appointments_on(db, target_date) if target_date else []
        return available_slots(target_date, appointments, slots, exclude_id)

    def _ensure_slot_available(self, db: Session, target_date: date, time: str, exclude_id: Optional[str] = None):
        if time not in settings_service.get_time_slots(db):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Horário fora da grade de atendimento"
            )

        if is_time_slot_taken(target_date, time, self.get_appointments_on(db, target_date), exclude_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Horário já ocupado"
            )

    def create(self, db: Session, appointment: AppointmentCreate) -> Appointment:
        if appointment.status != CANCELLED:
            self._ensure_slot_available(db, appointment.date, appointment.time)

        try:
            db_appointment = super().create(db, appointment)
        except IntegrityError:
            self._slot_taken_concurrently(db, appointment.date, appointment.time)
        if db_appointment.status == "confirmed":
            self._notify_confirmation(db, db_appointment)
        return db_appointment

    def update(self, db: Session, appointment_id: str, appointment_update: AppointmentUpdate) -> Appointment:
        db_appointment = self.get(db, appointment_id)
        update_data = self._update_fields(appointment_update)

        previous_status = db_appointment.status
        new_date = update_data.get("date") or db_appointment.date
        new_time = update_data.get("time") or db_appointment.time
        new_status = update_data.get("status") or db_appointment.status

        slot_changed = (
            new_date != db_appointment.date
            or new_time != db_appointment.time
            or (previous_status == CANCELLED and new_status != CANCELLED)
        )
        if slot_changed and new_status != CANCELLED:
            self._ensure_slot_available(db, new_date, new_time, exclude_id=appointment_id)

        try:
            db_appointment = super().update(db, appointment_id, appointment_update)
        except IntegrityError:
            self._slot_taken_concurrently(db, new_date, new_time)

        if db_appointment.status == "confirmed" and previous_status != "confirmed":
            self._notify_confirmation(db, db_appointment)
        return db_appointment

    def _slot_taken_concurrently(self, db: Session, target_date: date, time: str):
        # Outra requisição gravou o mesmo horário entre a verificação e o commit
        db.rollback()
        logger.warning("Conflito de horário ao gravar agendamento em %s %s", target_date, time)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Horário já ocupado"
        )

    def _notify_confirmation(self, db: Session, appointment: Appointment):
        if not appointment.client_phone or not settings_service.get_settings(db).notifications_enabled:
            return
        services = ", ".join(s.get("service_name", "") for s in (appointment.services or []))
        try:
            whatsapp_service.send_appointment_confirmation(
                appointment.client_phone,
                appointment.client_name,
                services,
                appointment.date.strftime("%d/%m/%Y"),
                appointment.time,
            )
        except Exception:
            logger.exception("Erro ao enviar confirmação do agendamento %s", appointment.id)

appointment_service = AppointmentService()
