import logging
from typing import Tuple

from telehealth_availability.api import SlotsApi
from telehealth_availability.models import RemoteSlot, SlotCreateRequest

logger = logging.getLogger(__name__)


class SlotStore:
    """Holds the last confirmed snapshot of the doctor's remote slots.

    The snapshot is only ever replaced wholesale by `refresh`. Mutations go
    straight to the API and are visible after the next refresh.
    """

    def __init__(self, api: SlotsApi) -> None:
        self.api = api
        self.slots: Tuple[RemoteSlot, ...] = ()

    async def refresh(self) -> Tuple[RemoteSlot, ...]:
        self.slots = tuple(await self.api.list_slots())
        logger.debug(f"Slot snapshot replaced with {len(self.slots)} records")
        return self.slots

    async def create_slot(self, request: SlotCreateRequest) -> RemoteSlot:
        return await self.api.create_slot(request)

    async def delete_slot(self, slot_id: str) -> None:
        await self.api.delete_slot(slot_id)
