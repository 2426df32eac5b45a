from datetime import datetime

import pytz

from telehealth_availability.models import RemoteSlot

# Wednesday; the visible week runs Mon 2026-10-12 .. Sun 2026-10-18
NOW = pytz.utc.localize(datetime(2026, 10, 14, 8, 0))


def make_slot(slot_id, start, end, is_booked=False):
    return RemoteSlot.model_validate(
        {"id": slot_id, "startTime": start, "endTime": end, "duration": 15, "isBooked": is_booked}
    )
