import asyncio

import pytest

from telehealth_availability import engine
from telehealth_availability.engine import AvailabilityGrid
from telehealth_availability.exceptions import ApiError
from telehealth_availability.models import SlotStatus, ToggleOutcome
from telehealth_availability.notifier import RecordingNotifier
from telehealth_availability.store import SlotStore

from helpers import NOW, make_slot

WEDNESDAY = 2
NINE_AM = 0


class FakeApi:
    """In-memory stand-in for SlotsApi that records every call."""

    def __init__(self, slots=None, create_error=None, delete_error=None):
        self.slots = list(slots or [])
        self.create_error = create_error
        self.delete_error = delete_error
        self.created = []
        self.deleted = []
        self.list_calls = 0
        self.release = None

    async def list_slots(self):
        self.list_calls += 1
        return list(self.slots)

    async def create_slot(self, request):
        self.created.append(request)
        if self.release is not None:
            await self.release.wait()
        if self.create_error:
            raise self.create_error
        slot = make_slot(f"s{len(self.created)}", request.start_time, request.end_time)
        self.slots.append(slot)
        return slot

    async def delete_slot(self, slot_id):
        self.deleted.append(slot_id)
        if self.delete_error:
            raise self.delete_error
        self.slots = [s for s in self.slots if s.id != slot_id]


def make_grid(api, now=NOW, tz="UTC"):
    return AvailabilityGrid(SlotStore(api), notifier=RecordingNotifier(), clock=lambda: now, tz=tz)


@pytest.mark.asyncio
async def test_create_slot_sends_utc_instants_and_refetches():
    api = FakeApi()
    grid = make_grid(api)
    await grid.load()

    outcome = await grid.toggle_slot(WEDNESDAY, NINE_AM)

    assert outcome == ToggleOutcome.CREATED
    assert len(api.created) == 1
    body = api.created[0].model_dump(by_alias=True)
    assert body == {
        "date": "2026-10-14T00:00:00.000Z",
        "startTime": "2026-10-14T09:00:00.000Z",
        "endTime": "2026-10-14T09:15:00.000Z",
        "duration": 15,
    }
    assert api.list_calls == 2
    assert grid.notifier.successes == [engine.SLOT_ADDED_MESSAGE]
    # The refreshed snapshot drives the recomputed grid
    slot = grid.schedule()[WEDNESDAY].slots[NINE_AM]
    assert slot.exists is True
    assert slot.available is True
    assert grid.slot_status(WEDNESDAY, NINE_AM) == SlotStatus.OPEN


@pytest.mark.asyncio
async def test_create_slot_uses_local_midnight():
    api = FakeApi()
    grid = make_grid(api, tz="Europe/Berlin")
    await grid.load()

    await grid.toggle_slot(WEDNESDAY, NINE_AM)

    request = api.created[0]
    assert request.date == "2026-10-13T22:00:00.000Z"
    assert request.start_time == "2026-10-14T07:00:00.000Z"


@pytest.mark.asyncio
async def test_delete_unbooked_slot():
    api = FakeApi([make_slot("abc", "2026-10-14T09:00:00.000Z", "2026-10-14T09:15:00.000Z")])
    grid = make_grid(api)
    await grid.load()

    outcome = await grid.toggle_slot(WEDNESDAY, NINE_AM)

    assert outcome == ToggleOutcome.REMOVED
    assert api.deleted == ["abc"]
    assert api.list_calls == 2
    assert grid.notifier.successes == [engine.SLOT_REMOVED_MESSAGE]
    assert grid.schedule()[WEDNESDAY].slots[NINE_AM].exists is False


@pytest.mark.asyncio
async def test_booked_slot_is_never_deleted():
    api = FakeApi([make_slot("abc", "2026-10-14T09:00:00.000Z", "2026-10-14T09:15:00.000Z", is_booked=True)])
    grid = make_grid(api)
    await grid.load()

    assert grid.schedule()[WEDNESDAY].slots[NINE_AM].available is False

    outcome = await grid.toggle_slot(WEDNESDAY, NINE_AM)

    assert outcome == ToggleOutcome.REJECTED
    assert api.deleted == []
    assert api.created == []
    assert api.list_calls == 1
    assert grid.notifier.errors == [engine.BOOKED_SLOT_MESSAGE]
    assert grid.notifier.messages[-1][2] == "Wed 2026-10-14 09:00"
    assert not grid.is_busy()


@pytest.mark.asyncio
async def test_past_day_is_rejected_without_remote_call():
    api = FakeApi()
    grid = make_grid(api)
    await grid.load()

    outcome = await grid.toggle_slot(0, NINE_AM)

    assert outcome == ToggleOutcome.REJECTED
    assert api.created == []
    assert grid.notifier.errors == [engine.PAST_SLOT_MESSAGE]


@pytest.mark.asyncio
async def test_earlier_slot_today_is_rejected():
    api = FakeApi()
    grid = make_grid(api, now=NOW.replace(hour=10))
    await grid.load()

    assert await grid.toggle_slot(WEDNESDAY, NINE_AM) == ToggleOutcome.REJECTED
    # 10:15 later the same day is still allowed
    assert await grid.toggle_slot(WEDNESDAY, 5) == ToggleOutcome.CREATED
    assert [r.start_time for r in api.created] == ["2026-10-14T10:15:00.000Z"]


@pytest.mark.asyncio
async def test_remote_error_message_is_shown_verbatim():
    api = FakeApi(create_error=ApiError("Slot overlaps with an existing appointment", status_code=409))
    grid = make_grid(api)
    await grid.load()

    outcome = await grid.toggle_slot(WEDNESDAY, NINE_AM)

    assert outcome == ToggleOutcome.FAILED
    assert grid.notifier.errors == ["Slot overlaps with an existing appointment"]
    assert "2-0" not in grid.loading_slots
    # No refetch after a failure
    assert api.list_calls == 1


@pytest.mark.asyncio
async def test_remote_error_without_message_uses_fallback():
    api = FakeApi(delete_error=ApiError(""))
    api.slots = [make_slot("abc", "2026-10-14T09:00:00.000Z", "2026-10-14T09:15:00.000Z")]
    grid = make_grid(api)
    await grid.load()

    outcome = await grid.toggle_slot(WEDNESDAY, NINE_AM)

    assert outcome == ToggleOutcome.FAILED
    assert grid.notifier.errors == [engine.FALLBACK_ERROR_MESSAGE]
    assert not grid.is_busy()


@pytest.mark.asyncio
async def test_unexpected_exception_releases_loading_state():
    api = FakeApi(create_error=RuntimeError("connection reset"))
    grid = make_grid(api)
    await grid.load()

    outcome = await grid.toggle_slot(WEDNESDAY, NINE_AM)

    assert outcome == ToggleOutcome.FAILED
    assert grid.notifier.errors == ["connection reset"]
    assert grid.loading_slots == set()


@pytest.mark.asyncio
async def test_second_toggle_while_in_flight_is_ignored():
    api = FakeApi()
    api.release = asyncio.Event()
    grid = make_grid(api)
    await grid.load()

    first = asyncio.create_task(grid.toggle_slot(WEDNESDAY, NINE_AM))
    await asyncio.sleep(0)

    assert grid.is_loading(WEDNESDAY, NINE_AM)
    assert grid.slot_status(WEDNESDAY, NINE_AM) == SlotStatus.LOADING
    assert grid.is_slot_disabled(WEDNESDAY, NINE_AM)

    second = await grid.toggle_slot(WEDNESDAY, NINE_AM)
    assert second == ToggleOutcome.SKIPPED

    api.release.set()
    assert await first == ToggleOutcome.CREATED
    assert len(api.created) == 1
    assert not grid.is_loading(WEDNESDAY, NINE_AM)


@pytest.mark.asyncio
async def test_different_slots_run_concurrently():
    api = FakeApi()
    api.release = asyncio.Event()
    grid = make_grid(api)
    await grid.load()

    tasks = [
        asyncio.create_task(grid.toggle_slot(WEDNESDAY, 0)),
        asyncio.create_task(grid.toggle_slot(WEDNESDAY, 1)),
    ]
    await asyncio.sleep(0)
    assert grid.loading_slots == {"2-0", "2-1"}

    api.release.set()
    assert await asyncio.gather(*tasks) == [ToggleOutcome.CREATED, ToggleOutcome.CREATED]
    assert grid.loading_slots == set()


@pytest.mark.asyncio
async def test_schedule_is_memoized_until_snapshot_changes():
    api = FakeApi()
    grid = make_grid(api)
    await grid.load()

    first = grid.schedule()
    assert grid.schedule() is first

    await grid.toggle_slot(WEDNESDAY, NINE_AM)
    assert grid.schedule() is not first


def test_week_navigation():
    grid = make_grid(FakeApi())
    assert grid.previous_week() == 0
    assert grid.week_label() == "This Week"
    assert grid.next_week() == 1
    assert grid.week_label() == "Week +1"
    assert grid.date_range_text() == "Oct 19 - 25, 2026"
    assert grid.previous_week() == 0


def test_expansion():
    grid = make_grid(FakeApi())

    assert len(grid.visible_slots_for(WEDNESDAY)) == 9
    assert grid.hidden_slot_count() == 24

    assert grid.toggle_expanded(WEDNESDAY) is True
    assert len(grid.visible_slots_for(WEDNESDAY)) == 33
    assert grid.toggle_expanded(WEDNESDAY) is False
    assert len(grid.visible_slots_for(WEDNESDAY)) == 9

    # Past days cannot be expanded
    assert grid.toggle_expanded(0) is False
    assert 0 not in grid.expanded_days


def test_navigation_collapses_days():
    grid = make_grid(FakeApi())
    grid.toggle_expanded(WEDNESDAY)
    grid.next_week()
    assert grid.expanded_days == set()
