"""Week schedule computation for the doctor availability grid.

Everything here is a pure function of its arguments: the current instant and
the timezone are always passed in, never read from the environment.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pytz

from telehealth_availability import config
from telehealth_availability.models import DaySchedule, RemoteSlot, SlotStatus, TimeSlotView
from telehealth_availability.template import generate_time_slots, parse_time

logger = logging.getLogger(__name__)

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def get_timezone(tz=None):
    """Resolves a zone name (or None for the configured zone) to a pytz zone."""
    if tz is None:
        return pytz.timezone(config.TIMEZONE)
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def to_local(moment: datetime, tz) -> datetime:
    """Converts an instant to the local zone. Naive values are taken as local already."""
    if moment.tzinfo is None:
        return tz.localize(moment)
    return moment.astimezone(tz)


def local_datetime(day: date, time_str: str, tz) -> datetime:
    hours, minutes = parse_time(time_str)
    return tz.localize(datetime(day.year, day.month, day.day, hours, minutes))


def epoch_ms(moment: datetime) -> int:
    # Remote instants without an offset are UTC
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return round(moment.timestamp() * 1000)


def to_utc_iso(moment: datetime) -> str:
    """Serializes an instant as e.g. "2026-10-16T07:00:00.000Z"."""
    utc = moment.astimezone(pytz.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def week_start(today: date, week_offset: int = 0) -> date:
    """Returns the Monday of the week `week_offset` weeks away from `today`'s week."""
    monday = today - timedelta(days=today.weekday())
    return monday + timedelta(days=week_offset * 7)


def find_existing_slot(remote_slots: Sequence[RemoteSlot], start: datetime) -> Optional[RemoteSlot]:
    """Finds the remote slot whose start instant equals `start` to the millisecond."""
    target = epoch_ms(start)
    for slot in remote_slots:
        if epoch_ms(slot.start_time) == target:
            return slot
    return None


def is_slot_exists(remote_slots: Sequence[RemoteSlot], day: date, time_str: str, tz=None) -> bool:
    tz = get_timezone(tz)
    return find_existing_slot(remote_slots, local_datetime(day, time_str, tz)) is not None


def is_slot_available(remote_slots: Sequence[RemoteSlot], day: date, time_str: str, tz=None) -> bool:
    """True only when a remote slot exists at that time and is not booked."""
    tz = get_timezone(tz)
    existing = find_existing_slot(remote_slots, local_datetime(day, time_str, tz))
    return existing is not None and not existing.is_booked


def _index_by_start(remote_slots: Sequence[RemoteSlot]) -> Dict[int, RemoteSlot]:
    index: Dict[int, RemoteSlot] = {}
    for slot in remote_slots:
        # First record wins, as with a linear search
        index.setdefault(epoch_ms(slot.start_time), slot)
    return index


def compute_schedule(
    week_offset: int,
    remote_slots: Sequence[RemoteSlot],
    now: datetime,
    tz=None,
    template: Optional[List[str]] = None,
    duration: int = config.APPOINTMENT_DURATION_DEFAULT,
) -> List[DaySchedule]:
    """Builds the 7-day grid for the week `week_offset` weeks from the week of `now`.

    Every day carries the full template. A slot is unavailable only when a
    booked remote slot starts at exactly the same instant.
    """
    tz = get_timezone(tz)
    if template is None:
        template = generate_time_slots()

    today = to_local(now, tz).date()
    monday = week_start(today, week_offset)
    by_start = _index_by_start(remote_slots)
    length = timedelta(minutes=duration)

    days = []
    for i in range(7):
        local_date = monday + timedelta(days=i)
        day_slots = []
        for time_str in template:
            start = local_datetime(local_date, time_str, tz)
            end = tz.normalize(start + length)
            existing = by_start.get(epoch_ms(start))
            day_slots.append(
                TimeSlotView(
                    time=time_str,
                    available=existing is None or not existing.is_booked,
                    exists=existing is not None,
                    start=start,
                    end=end,
                )
            )

        days.append(
            DaySchedule(
                day=DAY_NAMES[i],
                date=local_date.day,
                month=local_date.month,
                year=local_date.year,
                full_date=local_date,
                slots=day_slots,
            )
        )

    logger.debug(f"Computed schedule for week offset {week_offset} starting {monday.isoformat()}")
    return days


def is_past_day(day: DaySchedule, now: datetime, tz=None) -> bool:
    """True when the day ends before today starts. Today itself is never past."""
    tz = get_timezone(tz)
    return day.full_date < to_local(now, tz).date()


def is_past_slot(day: DaySchedule, time_str: str, now: datetime, tz=None) -> bool:
    tz = get_timezone(tz)
    return local_datetime(day.full_date, time_str, tz) < to_local(now, tz)


def is_past(day: DaySchedule, time_str: str, now: datetime, tz=None) -> bool:
    return is_past_day(day, now, tz) or is_past_slot(day, time_str, now, tz)


def slot_status(
    day: DaySchedule,
    slot: TimeSlotView,
    remote_slots: Sequence[RemoteSlot],
    now: datetime,
    loading: bool = False,
    tz=None,
) -> SlotStatus:
    """Classifies how a grid cell should look, in priority order."""
    if loading:
        return SlotStatus.LOADING
    if is_past(day, slot.time, now, tz):
        return SlotStatus.PAST

    existing = find_existing_slot(remote_slots, slot.start)
    if existing:
        if existing.is_booked:
            return SlotStatus.BOOKED
        return SlotStatus.OPEN
    return SlotStatus.EMPTY


def is_slot_disabled(
    day: DaySchedule,
    slot: TimeSlotView,
    remote_slots: Sequence[RemoteSlot],
    now: datetime,
    loading: bool = False,
    tz=None,
) -> bool:
    return slot_status(day, slot, remote_slots, now, loading, tz) in (
        SlotStatus.LOADING,
        SlotStatus.PAST,
        SlotStatus.BOOKED,
    )


def date_range_text(schedule: Sequence[DaySchedule]) -> str:
    """Formats the visible week, e.g. "Oct 12 - 18, 2026" or "Sep 28 - Oct 4, 2026"."""
    if not schedule:
        return ""
    first_day = schedule[0]
    last_day = schedule[-1]
    month_str = MONTH_NAMES[first_day.month - 1]

    if first_day.month == last_day.month:
        return f"{month_str} {first_day.date} - {last_day.date}, {first_day.year}"
    end_month_str = MONTH_NAMES[last_day.month - 1]
    return f"{month_str} {first_day.date} - {end_month_str} {last_day.date}, {first_day.year}"


def week_label(week_offset: int) -> str:
    if week_offset == 0:
        return "This Week"
    return f"Week {'+' if week_offset > 0 else ''}{week_offset}"
