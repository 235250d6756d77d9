from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import httpx

from event_calendar import schemas
from event_calendar.config import Settings
from event_calendar.timeparse import to_iso

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
RESPONSE_ERROR_MESSAGE = "An error occurred"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class ApiError(Exception):
    """Any failed API call, reduced to a message fit for a notification."""

    def __init__(self, message: str, status_code: Optional[int] = None, kind: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.kind = kind
        super().__init__(message)


def _error_from_response(response: httpx.Response) -> ApiError:
    message = RESPONSE_ERROR_MESSAGE
    kind = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("message") or RESPONSE_ERROR_MESSAGE
        kind = body.get("kind")
    return ApiError(message, status_code=response.status_code, kind=kind)


class EventClient:
    """Async client for the ``/events`` API. No retries."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "EventClient":
        return cls(settings.api_base_url, timeout=settings.request_timeout_seconds, **kwargs)

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"No response from {method} {url}: {e!r}")
            raise ApiError(NETWORK_ERROR_MESSAGE) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Request {method} {url} failed: {e!r}")
            raise ApiError(str(e) or UNEXPECTED_ERROR_MESSAGE) from e

        if response.is_error:
            error = _error_from_response(response)
            logger.warning(f"{method} {url} -> {response.status_code}: {error.message}")
            raise error
        return response.json()

    async def get_events(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[schemas.EventResponse]:
        params: Dict[str, str] = {}
        if start:
            params["startDate"] = to_iso(start)
        if end:
            params["endDate"] = to_iso(end)
        data = await self._request("GET", "/events", params=params)
        return [schemas.EventResponse.model_validate(item) for item in data]

    async def get_event(self, event_id: Union[str, UUID]) -> schemas.EventResponse:
        data = await self._request("GET", f"/events/{event_id}")
        return schemas.EventResponse.model_validate(data)

    async def create_event(self, payload: Dict[str, Any]) -> schemas.EventResponse:
        data = await self._request("POST", "/events", json=payload)
        return schemas.EventResponse.model_validate(data)

    async def update_event(
        self,
        event_id: Union[str, UUID],
        payload: Dict[str, Any],
        version: Optional[int] = None,
    ) -> schemas.EventResponse:
        headers = {"If-Match": f'"{version}"'} if version is not None else None
        data = await self._request("PUT", f"/events/{event_id}", json=payload, headers=headers)
        return schemas.EventResponse.model_validate(data)

    async def delete_event(self, event_id: Union[str, UUID]) -> schemas.EventDeleteResponse:
        data = await self._request("DELETE", f"/events/{event_id}")
        return schemas.EventDeleteResponse.model_validate(data)
