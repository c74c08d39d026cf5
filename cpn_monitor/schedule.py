from datetime import datetime, timezone, tzinfo
from typing import Optional

SATURDAY = 5


def off_hours_delay(
    now: datetime,
    start_hour: int,
    end_hour: int,
    off_hours_delay: float,
    weekend_delay: float,
) -> Optional[float]:
    """Return how long to sleep instead of polling, or ``None`` to poll now."""
    if now.weekday() >= SATURDAY:
        return weekend_delay
    if now.hour < start_hour or now.hour >= end_hour:
        return off_hours_delay
    return None


def format_end_time(epoch_seconds: float, tz: Optional[tzinfo] = None) -> str:
    """Wall-clock ``hh:mm AM`` for an epoch timestamp, host local time by default."""
    end = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    end = end.astimezone(tz) if tz is not None else end.astimezone()
    return end.strftime("%I:%M %p")
