from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from collegedesk.schemas.schedule import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictOut,
    ScheduleCreate,
    ScheduleOut,
    ScheduleScope,
    ScheduleUpdate,
)
from collegedesk.services.optimistic import GatewayError

logger = logging.getLogger(__name__)


class HttpScheduleGateway:
    """``ScheduleGateway`` backed by the schedule REST endpoints.

    Every failure surfaces as ``GatewayError``: transport errors, error
    statuses, and success responses whose body does not decode.
    """

    def __init__(self, client: httpx.AsyncClient, *, prefix: str = "/api/schedule"):
        self.client = client
        self.prefix = prefix.rstrip("/")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("message") or body.get("detail") or body)
        return str(body)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, f"{self.prefix}{path}", **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s%s failed: %s", method, self.prefix, path, exc)
            raise GatewayError(str(exc)) from exc
        if response.is_error:
            raise GatewayError(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _decode(response: httpx.Response, parse) -> Any:
        try:
            return parse(response.json())
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Unreadable %s response from %s: %s", response.status_code, response.request.url, exc)
            raise GatewayError("Unexpected response from server", status_code=response.status_code) from exc

    async def list_scope(self, scope: ScheduleScope) -> list[ScheduleOut]:
        params = scope.model_dump(by_alias=True, exclude_none=True, mode="json")
        response = await self._request("GET", "", params=params)
        return self._decode(response, lambda body: [ScheduleOut.model_validate(item) for item in body])

    async def create(self, payload: ScheduleCreate) -> ScheduleOut:
        response = await self._request("POST", "", json=payload.model_dump(by_alias=True, mode="json"))
        return self._decode(response, ScheduleOut.model_validate)

    async def update(self, schedule_id: str, payload: ScheduleUpdate) -> ScheduleOut:
        response = await self._request(
            "PUT", f"/{schedule_id}", json=payload.model_dump(by_alias=True, mode="json")
        )
        return self._decode(response, ScheduleOut.model_validate)

    async def delete(self, schedule_id: str) -> None:
        await self._request("DELETE", f"/{schedule_id}")

    async def check_conflicts(self, payload: ConflictCheckRequest) -> list[ConflictOut]:
        response = await self._request(
            "POST", "/check-conflicts", json=payload.model_dump(by_alias=True, mode="json")
        )
        return self._decode(response, lambda body: ConflictCheckResponse.model_validate(body).conflicts)
