from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Приводит дату к UTC; наивные значения (SQLite) считаются UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock:
    """Источник текущего времени для всех сравнений дат в бизнес-логике."""

    def now(self) -> datetime:
        return utcnow()
