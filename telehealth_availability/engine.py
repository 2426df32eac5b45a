import logging
from datetime import datetime, time
from typing import Callable, List, Optional, Set

import pytz

from telehealth_availability import config, schedule as sched
from telehealth_availability.models import (
    DaySchedule,
    SlotCreateRequest,
    SlotStatus,
    TimeSlotView,
    ToggleOutcome,
)
from telehealth_availability.notifier import ConsoleNotifier
from telehealth_availability.store import SlotStore
from telehealth_availability.template import generate_time_slots

logger = logging.getLogger(__name__)

PAST_SLOT_MESSAGE = "Cannot add or modify slots for past dates or times"
BOOKED_SLOT_MESSAGE = "Cannot remove a booked slot"
SLOT_REMOVED_MESSAGE = "Time slot removed successfully"
SLOT_ADDED_MESSAGE = "Time slot added successfully"
FALLBACK_ERROR_MESSAGE = "This slot overlaps with an existing appointment"


def slot_key(day_index: int, slot_index: int) -> str:
    return f"{day_index}-{slot_index}"


class AvailabilityGrid:
    """State and actions behind one doctor's weekly availability view.

    The grid never edits the slot snapshot itself: after a successful create
    or delete it asks the store for a fresh snapshot and recomputes.
    """

    def __init__(
        self,
        store: SlotStore,
        notifier=None,
        clock: Optional[Callable[[], datetime]] = None,
        tz=None,
        template: Optional[List[str]] = None,
        duration: int = config.APPOINTMENT_DURATION_DEFAULT,
        visible_slots: int = config.VISIBLE_SLOTS,
    ) -> None:
        self.store = store
        self.notifier = notifier or ConsoleNotifier()
        self.tz = sched.get_timezone(tz)
        self.clock = clock or (lambda: datetime.now(pytz.utc))
        self.template = template if template is not None else generate_time_slots()
        self.duration = duration
        self.visible_slots = visible_slots

        self.week_offset = 0
        self.loading_slots: Set[str] = set()
        self.expanded_days: Set[int] = set()

        self._schedule_key = None
        self._schedule: List[DaySchedule] = []

    def now(self) -> datetime:
        return self.clock()

    async def load(self):
        """Fetches the remote slots the grid is drawn against."""
        await self.store.refresh()

    def schedule(self) -> List[DaySchedule]:
        today = sched.to_local(self.now(), self.tz).date()
        key = (self.week_offset, self.store.slots, self.tz.zone, today)
        if key != self._schedule_key:
            self._schedule = sched.compute_schedule(
                self.week_offset,
                self.store.slots,
                self.now(),
                tz=self.tz,
                template=self.template,
                duration=self.duration,
            )
            self._schedule_key = key
        return self._schedule

    # --- Navigation ---

    def next_week(self) -> int:
        self.week_offset += 1
        self.expanded_days.clear()
        return self.week_offset

    def previous_week(self) -> int:
        if self.week_offset > 0:
            self.week_offset -= 1
            self.expanded_days.clear()
        return self.week_offset

    def date_range_text(self) -> str:
        return sched.date_range_text(self.schedule())

    def week_label(self) -> str:
        return sched.week_label(self.week_offset)

    # --- Expansion ---

    def toggle_expanded(self, day_index: int) -> bool:
        """Shows or hides the slots past the first `visible_slots`. Past days stay collapsed."""
        day = self.schedule()[day_index]
        if sched.is_past_day(day, self.now(), self.tz):
            return False
        if day_index in self.expanded_days:
            self.expanded_days.discard(day_index)
        else:
            self.expanded_days.add(day_index)
        return day_index in self.expanded_days

    def visible_slots_for(self, day_index: int) -> List[TimeSlotView]:
        slots = self.schedule()[day_index].slots
        if day_index in self.expanded_days:
            return slots
        return slots[: self.visible_slots]

    def hidden_slot_count(self) -> int:
        return max(len(self.template) - self.visible_slots, 0)

    # --- Slot state ---

    def is_busy(self) -> bool:
        return bool(self.loading_slots)

    def is_loading(self, day_index: int, slot_index: int) -> bool:
        return slot_key(day_index, slot_index) in self.loading_slots

    def slot_status(self, day_index: int, slot_index: int) -> SlotStatus:
        day = self.schedule()[day_index]
        return sched.slot_status(
            day,
            day.slots[slot_index],
            self.store.slots,
            self.now(),
            loading=self.is_loading(day_index, slot_index),
            tz=self.tz,
        )

    def is_slot_disabled(self, day_index: int, slot_index: int) -> bool:
        day = self.schedule()[day_index]
        return sched.is_slot_disabled(
            day,
            day.slots[slot_index],
            self.store.slots,
            self.now(),
            loading=self.is_loading(day_index, slot_index),
            tz=self.tz,
        )

    # --- Actions ---

    async def toggle_slot(self, day_index: int, slot_index: int) -> ToggleOutcome:
        """Creates the slot at this grid position, or removes it if it exists unbooked.

        Failures are reported through the notifier and never raised.
        """
        key = slot_key(day_index, slot_index)
        if key in self.loading_slots:
            logger.debug(f"Slot {key} already has a request in flight")
            return ToggleOutcome.SKIPPED

        day = self.schedule()[day_index]
        slot = day.slots[slot_index]
        label = f"{day.day} {day.full_date.isoformat()} {slot.time}"

        if sched.is_past(day, slot.time, self.now(), self.tz):
            self.notifier.error(PAST_SLOT_MESSAGE, slot_label=label)
            return ToggleOutcome.REJECTED

        self.loading_slots.add(key)
        try:
            existing = sched.find_existing_slot(self.store.slots, slot.start)

            if existing:
                if existing.is_booked:
                    self.notifier.error(BOOKED_SLOT_MESSAGE, slot_label=label)
                    return ToggleOutcome.REJECTED

                await self.store.delete_slot(existing.id)
                self.notifier.success(SLOT_REMOVED_MESSAGE, slot_label=label)
                outcome = ToggleOutcome.REMOVED
            else:
                local_midnight = self.tz.localize(datetime.combine(day.full_date, time()))
                await self.store.create_slot(
                    SlotCreateRequest(
                        date=sched.to_utc_iso(local_midnight),
                        start_time=sched.to_utc_iso(slot.start),
                        end_time=sched.to_utc_iso(slot.end),
                        duration=self.duration,
                    )
                )
                self.notifier.success("Success", SLOT_ADDED_MESSAGE, slot_label=label)
                outcome = ToggleOutcome.CREATED

            await self.store.refresh()
            return outcome
        except Exception as e:
            logger.error(f"Toggling slot {key} ({label}) failed: {e}")
            self.notifier.error(
                getattr(e, "message", None) or str(e) or FALLBACK_ERROR_MESSAGE, slot_label=label
            )
            return ToggleOutcome.FAILED
        finally:
            self.loading_slots.discard(key)
