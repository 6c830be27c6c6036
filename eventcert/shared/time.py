from datetime import date, datetime, time
from zoneinfo import ZoneInfo

BRAZIL_TZ = ZoneInfo("America/Sao_Paulo")

MONTHS_PT_BR = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


def to_brazil(value: datetime) -> datetime:
    """Aware datetimes are shifted to São Paulo time; naive ones are kept as is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(BRAZIL_TZ)


def format_date_brazil(value: datetime | date | None) -> str:
    """Render dates as ``DD de <mês> de AAAA``."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = to_brazil(value).date()
    return f"{value.day:02d} de {MONTHS_PT_BR[value.month - 1]} de {value.year}"


def format_time_brazil(value: datetime | time | str | None) -> str:
    """Render times as HH:MM; missing values render as midnight."""
    if not value:
        return "00:00"
    if isinstance(value, str):
        try:
            value = time.fromisoformat(value)
        except ValueError:
            return "00:00"
    if isinstance(value, datetime):
        value = to_brazil(value)
    return value.strftime("%H:%M")


def format_time_range(start, end) -> str:
    return f"{format_time_brazil(start)} às {format_time_brazil(end)}"


def format_issued_at(value: datetime | date) -> str:
    if isinstance(value, datetime):
        value = to_brazil(value)
    return value.strftime("%d/%m/%Y")


def now_brazil() -> datetime:
    return datetime.now(BRAZIL_TZ)
