"""
Shared fixtures for client tests: a temporary state file and an in-memory
fake of the establishments API served through httpx.MockTransport.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest

from logbook_client.main import configure_logging
from logbook_client.state import SelectionState

NOT_FOUND = {
    "error": {
        "code": "NOT_FOUND",
        "message": "Establishment not found or you do not have access",
        "status": 404,
    }
}


class FakeApi:
    """Just enough of /api/v1/establishments to drive the client."""

    def __init__(self, token: str = "test-token"):
        self.token = token
        self.rows: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []

    def add(self, **fields) -> dict:
        now = datetime.now(timezone.utc).isoformat()
        row = {
            "id": str(uuid.uuid4()),
            "user_id": "user_test",
            "name": "Acme Manufacturing",
            "address": "100 Industrial Way",
            "city": "Fresno",
            "state": "CA",
            "zip_code": "93721",
            "naics_code": None,
            "industry_description": None,
            "average_employees": 10,
            "created_at": now,
            "updated_at": now,
            **fields,
        }
        self.rows[row["id"]] = row
        return row

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"error": {
                "code": "UNAUTHORIZED",
                "message": "You must be signed in to perform this action",
                "status": 401,
            }})

        parts = request.url.path.rstrip("/").split("/")
        est_id = parts[4] if len(parts) > 4 else None

        if est_id is None and request.method == "GET":
            return httpx.Response(200, json=list(self.rows.values()))
        if est_id is None and request.method == "POST":
            row = self.add(**json.loads(request.content))
            return httpx.Response(201, json=row)
        if est_id not in self.rows:
            return httpx.Response(404, json=NOT_FOUND)
        if request.method == "GET":
            return httpx.Response(200, json=self.rows[est_id])
        if request.method == "PATCH":
            self.rows[est_id].update(json.loads(request.content))
            return httpx.Response(200, json=self.rows[est_id])
        if request.method == "DELETE":
            del self.rows[est_id]
            return httpx.Response(200, json={"success": True})
        return httpx.Response(405)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def _quiet_logging():
    configure_logging("warning")


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "state" / "client.db")


@pytest.fixture
async def state(state_path):
    async with SelectionState(state_path) as s:
        yield s
