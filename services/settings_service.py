import os
from typing import List

from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models import BusinessSettings
from schemas import BusinessSettingsUpdate
from services.slot_service import (
    generate_time_slots,
    DEFAULT_OPENING_TIME,
    DEFAULT_CLOSING_TIME,
    DEFAULT_SLOT_INTERVAL_MINUTES,
)


class SettingsService:
    def get_settings(self, db: Session) -> BusinessSettings:
        settings = db.query(BusinessSettings).first()
        if settings is None:
            # Primeiro acesso: valores padrão, sobrescrevíveis por variável de ambiente
            settings = BusinessSettings(
                opening_time=os.getenv("DEFAULT_OPENING_TIME", DEFAULT_OPENING_TIME),
                closing_time=os.getenv("DEFAULT_CLOSING_TIME", DEFAULT_CLOSING_TIME),
                slot_interval_minutes=DEFAULT_SLOT_INTERVAL_MINUTES,
            )
            db.add(settings)
            db.commit()
            db.refresh(settings)
        return settings

    def update_settings(self, db: Session, settings_update: BusinessSettingsUpdate) -> BusinessSettings:
        settings = self.get_settings(db)
        update_data = settings_update.model_dump(exclude_unset=True)

        opening_time = update_data.get("opening_time") or settings.opening_time
        closing_time = update_data.get("closing_time") or settings.closing_time
        # "HH:MM" com zero à esquerda: comparação de string equivale à de horário
        if closing_time <= opening_time:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Horário de fechamento deve ser posterior ao de abertura"
            )

        for field, value in update_data.items():
            if value is not None:
                setattr(settings, field, value)

        db.commit()
        db.refresh(settings)
        return settings

    def get_time_slots(self, db: Session) -> List[str]:
        settings = self.get_settings(db)
        return generate_time_slots(
            settings.opening_time,
            settings.closing_time,
            settings.slot_interval_minutes or DEFAULT_SLOT_INTERVAL_MINUTES,
        )

settings_service = SettingsService()
