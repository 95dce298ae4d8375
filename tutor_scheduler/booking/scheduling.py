from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Optional, Tuple

from tutor_scheduler.config import get_settings
from tutor_scheduler.errors import ValidationError
from tutor_scheduler.models.tutor import DAYS, Slot

# datetime.weekday(): Monday == 0
WEEKDAY_INDEX = {d.lower(): i for i, d in enumerate(DAYS)}

_START_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(?:-|$)")


def slot_start(time_range: str) -> Tuple[int, int]:
    """(hour, minute) of the start of an "H:MM-H:MM" range."""
    m = _START_RE.match(time_range or "")
    if not m:
        raise ValidationError(f"Unparseable slot time: {time_range!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValidationError(f"Unparseable slot time: {time_range!r}")
    return hour, minute


def next_occurrence(day: str, time_range: str, now: datetime) -> datetime:
    """Next start of the weekly slot at or after `now`.

    A slot on today's weekday whose start has already passed rolls to next week.
    """
    target = WEEKDAY_INDEX.get((day or "").strip().lower())
    if target is None:
        raise ValidationError(f"Unknown weekday: {day!r}")
    hour, minute = slot_start(time_range)

    days_ahead = (target - now.weekday()) % 7
    start = (now + timedelta(days=days_ahead)).replace(hour=hour, minute=minute, second=0, microsecond=0)
    if start < now:
        start += timedelta(days=7)
    return start


def build_scheduling_link(
    slot: Slot,
    now: Optional[datetime] = None,
    base_url: Optional[str] = None,
    utc_offset: Optional[str] = None,
) -> str:
    settings = get_settings()
    base = (base_url or settings.scheduling_base_url).rstrip("/")
    offset = utc_offset or settings.scheduling_utc_offset

    start = next_occurrence(slot.day, slot.time, now or datetime.now())
    date = start.strftime("%Y-%m-%d")
    timestamp = f"{date}T{start.strftime('%H:%M')}:00{offset}"
    return f"{base}/{timestamp}?back=1&month={start.strftime('%Y-%m')}&date={date}"
