import logging
from typing import Dict, List, Optional

import httpx

from telehealth_availability import config
from telehealth_availability.exceptions import ApiError
from telehealth_availability.models import Appointment, RemoteSlot, SlotCreateRequest

logger = logging.getLogger(__name__)


def build_headers(token: Optional[str]) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def create_http_client(
    base_url: Optional[str] = None,
    token: Optional[str] = None,
    timeout: float = config.REQUEST_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Creates the async HTTP client used for every call to the API."""
    return httpx.AsyncClient(
        base_url=base_url or config.API_BASE_URL or "",
        headers=build_headers(token if token is not None else config.AUTH_TOKEN),
        timeout=timeout,
        transport=transport,
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase or f"Request failed with status {response.status_code}"


class SlotsApi:
    """Thin client for the slot and appointment endpoints."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        logger.debug(f"API Request: {method} {url}")
        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Request {method} {url} failed: {e}")
            raise ApiError(str(e) or "Network error") from e

        if response.is_error:
            message = _error_message(response)
            if response.status_code in (401, 403):
                logger.error(f"Authentication failed for {method} {url}")
            logger.error(f"API error {response.status_code} for {method} {url}: {message}")
            raise ApiError(message, status_code=response.status_code)
        return response

    async def list_slots(self) -> List[RemoteSlot]:
        response = await self._request("GET", "/slots")
        data = response.json()
        slots = [RemoteSlot.model_validate(item) for item in data.get("slots", [])]
        logger.info(f"Fetched {len(slots)} slots")
        return slots

    async def create_slot(self, request: SlotCreateRequest) -> RemoteSlot:
        response = await self._request("POST", "/slots", json=request.model_dump(by_alias=True))
        slot = RemoteSlot.model_validate(response.json()["slot"])
        logger.info(f"Created slot {slot.id} starting {slot.start_time.isoformat()}")
        return slot

    async def delete_slot(self, slot_id: str) -> None:
        await self._request("DELETE", f"/slots/{slot_id}")
        logger.info(f"Deleted slot {slot_id}")

    async def list_appointments(self) -> List[Appointment]:
        response = await self._request("GET", "/appointments")
        data = response.json()
        return [Appointment.model_validate(item) for item in data.get("appointments") or []]

    async def aclose(self) -> None:
        await self.http_client.aclose()
