# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""UTC time helpers shared by the buffer, trigger, status and maintenance layers."""
from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def from_millis(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes coming back from the DB are UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp_ms(raw: Optional[str], fallback_ms: int) -> int:
    """Parse an ISO-8601 timestamp to epoch millis; anything unparseable becomes ``fallback_ms``."""
    if not raw:
        return fallback_ms
    try:
        dt = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return fallback_ms
    return to_millis(ensure_utc(dt))


def start_of_month(dt: datetime) -> datetime:
    return ensure_utc(dt).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
