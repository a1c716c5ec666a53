"""
Grade de horários de agendamento e verificação de conflito de horário.

Funções puras: recebem a lista de agendamentos já carregada e não
acessam o banco, podendo ser chamadas a cada alteração do formulário.
"""

from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Optional, Union

DEFAULT_OPENING_TIME = "08:00"
DEFAULT_CLOSING_TIME = "18:00"
DEFAULT_SLOT_INTERVAL_MINUTES = 30

CANCELLED = "cancelled"


def generate_time_slots(
    opening_time: str = DEFAULT_OPENING_TIME,
    closing_time: str = DEFAULT_CLOSING_TIME,
    interval_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES,
) -> List[str]:
    """
    Horários de opening_time até closing_time (inclusive) a cada interval_minutes.
    Com os valores padrão: 08:00, 08:30, ..., 18:00 (21 horários).
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes deve ser positivo")

    current = datetime.strptime(opening_time, "%H:%M")
    end = datetime.strptime(closing_time, "%H:%M")
    step = timedelta(minutes=interval_minutes)

    slots = []
    while current <= end:
        slots.append(current.strftime("%H:%M"))
        current += step
    return slots


def _field(record: Any, name: str):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _as_iso_date(value: Union[str, date, None]) -> Optional[str]:
    if not value:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def is_time_slot_taken(
    target_date: Union[str, date, None],
    time: str,
    appointments: Iterable[Any],
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    """
    True se outro agendamento não cancelado ocupa (target_date, time).
    O agendamento em edição é ignorado via exclude_appointment_id.
    """
    wanted_date = _as_iso_date(target_date)
    if wanted_date is None:
        return False

    for appointment in appointments:
        if (
            _as_iso_date(_field(appointment, "date")) == wanted_date
            and _field(appointment, "time") == time
            and _field(appointment, "id") != exclude_appointment_id
            and _field(appointment, "status") != CANCELLED
        ):
            return True
    return False


def available_slots(
    target_date: Union[str, date, None],
    appointments: Iterable[Any],
    slots: List[str],
    exclude_appointment_id: Optional[str] = None,
) -> List[dict]:
    appointments = list(appointments)
    return [
        {
            "time": slot,
            "taken": is_time_slot_taken(target_date, slot, appointments, exclude_appointment_id),
        }
        for slot in slots
    ]
