import asyncio
import logging
from typing import Optional

from telehealth_availability import config, persist
from telehealth_availability.api import SlotsApi, create_http_client
from telehealth_availability.engine import AvailabilityGrid
from telehealth_availability.exceptions import ApiError
from telehealth_availability.models import AppointmentStats, SlotStatus, ToggleOutcome
from telehealth_availability.notifier import ConsoleNotifier, TelegramNotifier
from telehealth_availability.stats import appointment_stats
from telehealth_availability.store import SlotStore

logger = logging.getLogger(__name__)

STATUS_MARKERS = {
    SlotStatus.LOADING: "…",
    SlotStatus.PAST: "-",
    SlotStatus.BOOKED: "B",
    SlotStatus.OPEN: "+",
    SlotStatus.EMPTY: " ",
}


def make_notifier():
    if config.TELEGRAM_BOT_TOKEN and config.TELEGRAM_CHAT_ID:
        return TelegramNotifier()
    return ConsoleNotifier()


def print_day(grid: AvailabilityGrid, day_index: int):
    """Prints one day of the grid, one cell per slot."""
    day = grid.schedule()[day_index]
    cells = []
    for slot_index, slot in enumerate(day.slots):
        marker = STATUS_MARKERS[grid.slot_status(day_index, slot_index)]
        cells.append(f"{slot.time}[{marker}]")
    print(f"{day_index} {day.day} {day.full_date.isoformat()}: {' '.join(cells)}")


def print_week_report(grid: AvailabilityGrid):
    """Prints the formatted week grid to stdout."""
    print(f"\n--- Availability for {grid.date_range_text()} ({grid.week_label()}) ---")
    print(f"Timezone: {grid.tz.zone} • All times displayed in your local time")
    for day_index in range(len(grid.schedule())):
        print_day(grid, day_index)

    open_count = sum(1 for day in grid.schedule() for slot in day.slots if slot.exists and slot.available)
    booked_count = sum(1 for day in grid.schedule() for slot in day.slots if not slot.available)
    print(f"Summary: {open_count} open and {booked_count} booked slots this week.")
    print("Legend: [+] open  [B] booked  [-] past  [ ] not offered")


def print_stats(stats: AppointmentStats):
    print(
        f"Today: {stats.today} | Upcoming: {stats.upcoming} | "
        f"Completed: {stats.completed} | Cancelled: {stats.cancelled}"
    )


async def _fetch_stats(api: SlotsApi, grid: AvailabilityGrid) -> Optional[AppointmentStats]:
    try:
        appointments = await api.list_appointments()
    except ApiError as e:
        logger.error(f"Failed to fetch appointments: {e.message}")
        return None
    return appointment_stats(appointments, grid.now(), grid.tz)


async def _load_slots(grid: AvailabilityGrid) -> bool:
    """Fetches the slot snapshot, reporting a failure instead of raising it."""
    try:
        await grid.load()
    except ApiError as e:
        logger.error(f"Failed to fetch slots: {e.message}")
        grid.notifier.error(f"Could not load availability: {e.message}")
        return False
    return True


async def show_week_async(week_offset: int = 0, api: Optional[SlotsApi] = None):
    """Loads the doctor's slots, prints the requested week and saves it as a report."""
    api = api or SlotsApi(create_http_client())
    try:
        grid = AvailabilityGrid(SlotStore(api), notifier=make_notifier())
        grid.week_offset = week_offset
        if not await _load_slots(grid):
            return None

        stats = await _fetch_stats(api, grid)
        if stats:
            print_stats(stats)
        print_week_report(grid)
        persist.save_report(grid.schedule(), week_offset)
        return grid
    finally:
        await api.aclose()


async def toggle_async(
    week_offset: int, day_index: int, slot_index: int, api: Optional[SlotsApi] = None
) -> ToggleOutcome:
    """Toggles a single grid cell and prints the refreshed day."""
    api = api or SlotsApi(create_http_client())
    try:
        grid = AvailabilityGrid(SlotStore(api), notifier=make_notifier())
        grid.week_offset = week_offset
        if not await _load_slots(grid):
            return ToggleOutcome.FAILED

        if not 0 <= slot_index < len(grid.template):
            logger.error(f"Slot index must be between 0 and {len(grid.template) - 1}.")
            return ToggleOutcome.REJECTED

        outcome = await grid.toggle_slot(day_index, slot_index)
        logger.info(f"Toggle of {day_index}-{slot_index} in week {week_offset}: {outcome.value}")
        print_day(grid, day_index)
        return outcome
    finally:
        await api.aclose()


def show_week(week_offset: int = 0):
    return asyncio.run(show_week_async(week_offset))


def toggle(week_offset: int, day_index: int, slot_index: int) -> ToggleOutcome:
    return asyncio.run(toggle_async(week_offset, day_index, slot_index))
