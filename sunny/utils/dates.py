from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # sqlite renvoie des datetimes naïfs même avec DateTime(timezone=True)
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso(dt: Optional[datetime]) -> Optional[str]:
    dt = as_utc(dt)
    return dt.isoformat() if dt else None


def parse_iso_day(value: str) -> date:
    """
    Accepte "2025-03-14" ou un datetime ISO complet, renvoie la date.
    Lève ValueError si le format est invalide.
    """
    value = (value or "").strip()
    if len(value) == 10:
        return date.fromisoformat(value)
    return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def previous_day(day: date) -> date:
    return day - timedelta(days=1)
