"""
REST hub client (httpx)

Thin adapter from HubClient to the hub's HAL/JSON management API:
- client-credentials token handling
- HAL page walking for list operations
- backoff retry for rate limiting and gateway errors
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx

from ..config import HubConfig
from ..models import ContentItem, Edition, Event, Hub, HubResource, Slot, Snapshot
from .hub_client import HubApiError, HubClient, HubNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=HubResource)

RETRY_STATUS_CODES = {429, 502, 503, 504}
PAGE_SIZE = 100


class RestHubClient(HubClient):
    """
    Hub management API client
    - one AsyncClient per base URL (API / auth)
    - token refreshed shortly before expiry
    - only GET requests are retried on gateway errors; 429 is retried for all methods
    """

    def __init__(self, config: HubConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.http = httpx.AsyncClient(
            base_url=config.api_url,
            timeout=config.timeout_seconds,
            transport=transport
        )
        self.auth_http = httpx.AsyncClient(
            base_url=config.auth_url,
            timeout=config.timeout_seconds,
            transport=transport
        )

        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

    async def __aenter__(self) -> "RestHubClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()
        await self.auth_http.aclose()

    async def _get_access_token(self) -> str:
        if self._access_token and time.time() < self._token_expires_at - 30:
            return self._access_token

        try:
            response = await self.auth_http.post(
                "/oauth/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret
                }
            )
        except httpx.RequestError as e:
            raise HubApiError(f"Failed to connect to auth server: {e}") from e

        if response.is_error:
            raise HubApiError(
                f"Authentication failed ({response.status_code})",
                status_code=response.status_code,
                data=self._parse_body(response)
            )

        body = response.json()
        self._access_token = body["access_token"]
        self._token_expires_at = time.time() + float(body.get("expires_in", 300))
        logger.debug("Access token refreshed")
        return self._access_token

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        max_attempts = max(1, self.config.max_retry_attempts)

        for attempt in range(max_attempts):
            last_attempt = attempt == max_attempts - 1
            token = await self._get_access_token()

            try:
                response = await self.http.request(
                    method,
                    path,
                    json=json,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"}
                )
            except httpx.RequestError as e:
                if method == "GET" and not last_attempt:
                    logger.warning(f"{method} {path} attempt {attempt + 1} failed: {e}")
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise HubApiError(f"{method} {path} failed: {e}") from e

            retryable = response.status_code == 429 or (
                method == "GET" and response.status_code in RETRY_STATUS_CODES
            )
            if retryable and not last_attempt:
                retry_after = response.headers.get("Retry-After")
                delay = float(retry_after) if retry_after and retry_after.isdigit() else 2 ** attempt
                logger.info(f"{method} {path} returned {response.status_code}, retrying in {delay}s")
                await asyncio.sleep(delay)
                continue

            if response.status_code == 404:
                raise HubNotFoundError(
                    f"{method} {path}: not found",
                    status_code=404,
                    data=self._parse_body(response)
                )

            if response.is_error:
                raise HubApiError(
                    f"{method} {path} failed ({response.status_code})",
                    status_code=response.status_code,
                    data=self._parse_body(response)
                )

            return self._parse_body(response)

    async def _get(self, path: str, model: Type[T]) -> T:
        return model.from_dict(await self._request("GET", path))

    async def _list(self, path: str, embedded_key: str, model: Type[T]) -> List[T]:
        """Fetch every page of a HAL collection"""
        results: List[T] = []
        page = 0

        while True:
            data = await self._request("GET", path, params={"page": page, "size": PAGE_SIZE}) or {}
            items = data.get("_embedded", {}).get(embedded_key, [])
            results.extend(model.from_dict(item) for item in items)

            page_info = data.get("page")
            if not page_info or page_info.get("number", page) + 1 >= page_info.get("totalPages", 0):
                return results

            page += 1

    async def get_hub(self, hub_id: str) -> Hub:
        return await self._get(f"/hubs/{hub_id}", Hub)

    async def get_event(self, event_id: str) -> Event:
        return await self._get(f"/events/{event_id}", Event)

    async def list_events(self, hub_id: str) -> List[Event]:
        return await self._list(f"/hubs/{hub_id}/events", "events", Event)

    async def create_event(self, hub_id: str, event: Event) -> Event:
        data = await self._request("POST", f"/hubs/{hub_id}/events", json=event.to_payload())
        return Event.from_dict(data)

    async def update_event(self, event_id: str, event: Event) -> Event:
        data = await self._request("PATCH", f"/events/{event_id}", json=event.to_payload())
        return Event.from_dict(data)

    async def get_edition(self, edition_id: str) -> Edition:
        return await self._get(f"/editions/{edition_id}", Edition)

    async def list_editions(self, event_id: str) -> List[Edition]:
        return await self._list(f"/events/{event_id}/editions", "editions", Edition)

    async def create_edition(self, event_id: str, edition: Edition) -> Edition:
        data = await self._request("POST", f"/events/{event_id}/editions", json=edition.to_payload())
        return Edition.from_dict(data)

    async def update_edition(self, edition_id: str, edition: Edition) -> Edition:
        data = await self._request("PATCH", f"/editions/{edition_id}", json=edition.to_payload())
        return Edition.from_dict(data)

    async def schedule_edition(
        self,
        edition_id: str,
        ignore_warnings: bool,
        last_modified_date: Optional[str]
    ) -> None:
        body = {"lastModifiedDate": last_modified_date} if last_modified_date else {}
        await self._request(
            "POST",
            f"/editions/{edition_id}/schedule",
            json=body,
            params={"ignoreWarnings": str(ignore_warnings).lower()}
        )

    async def unschedule_edition(self, edition_id: str) -> None:
        await self._request("POST", f"/editions/{edition_id}/unschedule")

    async def list_slots(self, edition_id: str) -> List[Slot]:
        return await self._list(f"/editions/{edition_id}/slots", "slots", Slot)

    async def create_slot(self, edition_id: str, content_item_id: str) -> Slot:
        data = await self._request("POST", f"/editions/{edition_id}/slots", json=[{"slot": content_item_id}])
        slots = (data or {}).get("_embedded", {}).get("slots", [])
        if not slots:
            raise HubApiError(f"Slot creation on edition {edition_id} returned no slot", data=data)
        return Slot.from_dict(slots[0])

    async def update_slot_content(self, edition_id: str, slot_id: str, content: Dict[str, Any]) -> Slot:
        data = await self._request("PUT", f"/editions/{edition_id}/slots/{slot_id}/content", json=content)
        return Slot.from_dict(data)

    async def get_snapshot(self, snapshot_id: str) -> Snapshot:
        return await self._get(f"/snapshots/{snapshot_id}", Snapshot)

    async def get_snapshot_content_item(self, snapshot_id: str, content_item_id: str) -> ContentItem:
        return await self._get(f"/snapshots/{snapshot_id}/content-items/{content_item_id}", ContentItem)

    async def get_content_item(self, content_item_id: str) -> ContentItem:
        return await self._get(f"/content-items/{content_item_id}", ContentItem)

    async def create_snapshot(self, hub_id: str, snapshot: Snapshot) -> Snapshot:
        data = await self._request("POST", f"/hubs/{hub_id}/snapshots/batch", json=[snapshot.to_dict()])
        snapshots = (data or {}).get("snapshots", [])
        if not snapshots:
            raise HubApiError(f"Snapshot creation on hub {hub_id} returned no snapshot", data=data)
        return Snapshot.from_dict(snapshots[0])
