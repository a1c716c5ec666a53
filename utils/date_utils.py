"""
Utilitários para datas e horários no fuso horário do estabelecimento
(deslocamento fixo em relação a UTC, padrão UTC-3)
"""

import os
from datetime import datetime, timezone, timedelta

TIMEZONE_OFFSET_HOURS = int(os.getenv("APP_TIMEZONE_OFFSET_HOURS", "-3"))


def get_local_timezone():
    return timezone(timedelta(hours=TIMEZONE_OFFSET_HOURS))


def get_local_datetime():
    """
    Obtém a data/hora atual no fuso horário do estabelecimento
    """
    utc_now = datetime.now(timezone.utc)
    return utc_now.astimezone(get_local_timezone())


def get_local_date():
    """
    Obtém apenas a data atual no fuso horário do estabelecimento
    """
    return get_local_datetime().date()


def utc_to_local(utc_datetime):
    """
    Converte uma data UTC para o fuso horário do estabelecimento
    """
    if utc_datetime.tzinfo is None:
        utc_datetime = utc_datetime.replace(tzinfo=timezone.utc)

    return utc_datetime.astimezone(get_local_timezone())


def month_bounds(month: str = None):
    """
    Retorna (primeiro_dia, ultimo_dia) do mês no formato YYYY-MM.
    Sem mês informado, usa o mês corrente.
    """
    if month:
        first_day = datetime.strptime(month, "%Y-%m").date()
    else:
        first_day = get_local_date().replace(day=1)

    if first_day.month == 12:
        last_day = first_day.replace(year=first_day.year + 1, month=1, day=1) - timedelta(days=1)
    else:
        last_day = first_day.replace(month=first_day.month + 1, day=1) - timedelta(days=1)
    return first_day, last_day
