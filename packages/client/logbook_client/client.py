"""
Async HTTP client for the establishment API.

Errors come back in the API's envelope and are raised as LogbookApiError with
the machine-readable code intact, so callers can branch on NOT_FOUND versus
UNAUTHORIZED without parsing messages.
"""

from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional, Union

import httpx
import structlog

from logbook_shared.schemas.common import ErrorCode
from logbook_shared.schemas.establishments import (
    EstablishmentCreate,
    EstablishmentRead,
    EstablishmentUpdate,
)

log = structlog.get_logger()

ESTABLISHMENTS_PATH = "/api/v1/establishments"


class LogbookApiError(Exception):
    """An error response from the API."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int,
        fields: Optional[list[dict[str, str]]] = None,
    ):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status = status
        self.fields = fields or []

    @property
    def is_not_found(self) -> bool:
        return self.code == ErrorCode.NOT_FOUND.value

    @property
    def is_unauthorized(self) -> bool:
        return self.code == ErrorCode.UNAUTHORIZED.value

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "LogbookApiError":
        try:
            body = resp.json().get("error") or {}
        except ValueError:
            body = {}
        return cls(
            code=body.get("code", ErrorCode.INTERNAL_SERVER_ERROR.value),
            message=body.get("message", resp.reason_phrase or "Request failed"),
            status=body.get("status", resp.status_code),
            fields=body.get("fields"),
        )


class LogbookClient:
    """Thin async wrapper over the /api/v1/establishments endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        verify_tls: bool = True,
        request_timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._verify_tls = verify_tls
        self._request_timeout = request_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(self._request_timeout),
            verify=self._verify_tls,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LogbookClient":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        assert self._client
        resp = await self._client.request(method, path, **kwargs)
        if resp.is_error:
            error = LogbookApiError.from_response(resp)
            log.debug("client.request_failed", method=method, path=path, code=error.code)
            raise error
        return resp.json()

    # --- Establishments ---

    async def list_establishments(self) -> list[EstablishmentRead]:
        data = await self._request("GET", ESTABLISHMENTS_PATH)
        return [EstablishmentRead.model_validate(item) for item in data]

    async def get_establishment(self, establishment_id: Union[str, uuid.UUID]) -> EstablishmentRead:
        data = await self._request("GET", f"{ESTABLISHMENTS_PATH}/{establishment_id}")
        return EstablishmentRead.model_validate(data)

    async def create_establishment(
        self, payload: Union[EstablishmentCreate, Mapping[str, Any]]
    ) -> EstablishmentRead:
        body = payload.model_dump() if isinstance(payload, EstablishmentCreate) else dict(payload)
        data = await self._request("POST", ESTABLISHMENTS_PATH, json=body)
        return EstablishmentRead.model_validate(data)

    async def update_establishment(
        self,
        establishment_id: Union[str, uuid.UUID],
        changes: Union[EstablishmentUpdate, Mapping[str, Any]],
    ) -> Optional[EstablishmentRead]:
        """PATCH only the given fields. None means the row vanished mid-update."""
        body = changes.changes() if isinstance(changes, EstablishmentUpdate) else dict(changes)
        data = await self._request(
            "PATCH", f"{ESTABLISHMENTS_PATH}/{establishment_id}", json=body
        )
        return EstablishmentRead.model_validate(data) if data is not None else None

    async def delete_establishment(self, establishment_id: Union[str, uuid.UUID]) -> bool:
        data = await self._request("DELETE", f"{ESTABLISHMENTS_PATH}/{establishment_id}")
        return bool(data.get("success"))
