from datetime import datetime
from typing import Sequence

from telehealth_availability.models import Appointment, AppointmentStats, AppointmentStatus
from telehealth_availability.schedule import get_timezone, to_local


def appointment_stats(appointments: Sequence[Appointment], now: datetime, tz=None) -> AppointmentStats:
    """Counts appointments for the stat cards shown above the availability grid."""
    tz = get_timezone(tz)
    local_now = to_local(now, tz)
    today = local_now.date()

    return AppointmentStats(
        today=sum(1 for a in appointments if to_local(a.appointment_date, tz).date() == today),
        upcoming=sum(1 for a in appointments if to_local(a.appointment_date, tz) > local_now),
        completed=sum(1 for a in appointments if a.status == AppointmentStatus.COMPLETED),
        cancelled=sum(1 for a in appointments if a.status == AppointmentStatus.CANCELLED),
    )
