import logging
from typing import List, Tuple

from telehealth_availability import config

logger = logging.getLogger(__name__)


def generate_time_slots(
    start_hour: int = config.SLOT_START_HOUR,
    end_hour: int = config.SLOT_END_HOUR,
    duration: int = config.SLOT_INTERVAL_MINUTES,
    include_end_time: bool = config.INCLUDE_END_TIME,
) -> List[str]:
    """Generates the fixed list of daily slot start times ("HH:MM").

    Slots run from start_hour:00 up to (not including) end_hour:00 in steps of
    `duration` minutes. With include_end_time, "end_hour:00" is appended as a
    final slot.
    """
    if start_hour < 0 or start_hour > 23:
        raise ValueError("Start hour must be between 0 and 23")
    if end_hour < 0 or end_hour > 23:
        raise ValueError("End hour must be between 0 and 23")
    if end_hour <= start_hour:
        raise ValueError("End hour must be greater than start hour")
    if duration <= 0 or duration > 60:
        raise ValueError("Duration must be between 1 and 60 minutes")
    if 60 % duration != 0:
        raise ValueError("Duration must evenly divide 60 minutes")

    total_slots = (end_hour - start_hour) * 60 // duration

    slots = []
    for i in range(total_slots):
        minutes_from_start = i * duration
        hours = start_hour + minutes_from_start // 60
        minutes = minutes_from_start % 60
        slots.append(f"{hours:02d}:{minutes:02d}")

    if include_end_time:
        end_time = f"{end_hour:02d}:00"
        if not slots or slots[-1] != end_time:
            slots.append(end_time)

    logger.debug(f"Generated {len(slots)} slots: {slots}")
    return slots


def parse_time(time_str: str) -> Tuple[int, int]:
    """Splits "HH:MM" into (hour, minute)."""
    hours, minutes = time_str.split(":")
    return int(hours), int(minutes)
