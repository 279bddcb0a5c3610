"""
Shared test fixtures and helpers for the Dynaform test suite.

Provides MockBackend, an in-process fake of the form backend built on
httpx.MockTransport, so client, loader, upload and API tests run
without a network.
"""

import asyncio
import json
import re
from pathlib import Path
from typing import Any

import httpx
import pytest

from dynaform.client.api_client import FormApiClient
from dynaform.config import ApiConfig
from dynaform.core.schema import FormVersion

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"

BASE_URL = "http://forms.test/api"

_VERSION_PATH = re.compile(r"^/api/form-versions/(?P<version_id>[^/]+)(?P<rest>/.*)?$")
_FILENAME = re.compile(rb'name="file"; filename="(?P<filename>[^"]+)"')


def load_schema_document(filename: str) -> dict:
    """Load an example form version document as raw JSON."""
    with open(SCHEMAS_DIR / filename) as f:
        return json.load(f)


class MockBackend:
    """Fake form backend.

    Usage:
        backend = MockBackend({"3": document})
        client = backend.client()
        version = await client.fetch_form_version(3)
        backend.requests  # every request seen, in order
    """

    def __init__(self, versions: dict[str, Any] | None = None):
        self.versions: dict[str, Any] = dict(versions or {})
        self.version_status: dict[str, int] = {}
        self.submission_status = 201
        self.failing_uploads: set[str] = set()
        self.fetch_gate: asyncio.Event | None = None
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match = _VERSION_PATH.match(request.url.path)
        if match is None:
            return httpx.Response(404, json={"message": "Not found"})

        version_id = match.group("version_id")
        rest = match.group("rest") or ""

        if request.method == "GET" and rest == "":
            if self.fetch_gate is not None:
                await self.fetch_gate.wait()
            status = self.version_status.get(version_id, 200)
            if status != 200:
                return httpx.Response(status, json={"message": "error"})
            if version_id not in self.versions:
                return httpx.Response(404, json={"message": "Not found"})
            return httpx.Response(200, json=self.versions[version_id])

        if request.method == "POST" and rest == "/submissions":
            return httpx.Response(self.submission_status, json={"id": 1})

        if request.method == "POST" and rest == "/uploads":
            found = _FILENAME.search(request.content)
            filename = found.group("filename").decode() if found else "unknown"
            if filename in self.failing_uploads:
                return httpx.Response(500, json={"message": "storage unavailable"})
            return httpx.Response(201, json={"data": {"id": f"id-{filename}"}})

        return httpx.Response(405)

    def client(self) -> FormApiClient:
        transport = httpx.MockTransport(self.handler)
        return FormApiClient(
            ApiConfig(base_url=BASE_URL),
            http_client=httpx.AsyncClient(transport=transport),
        )

    def requests_to(self, method: str, suffix: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.endswith(suffix)
        ]


# --- Fixtures ---


@pytest.fixture
def support_document() -> dict:
    """The support_request form version as served (unwrapped)."""
    return load_schema_document("support_request.json")


@pytest.fixture
def newsletter_document() -> dict:
    """The newsletter_signup form version as served (wrapped in `data`)."""
    return load_schema_document("newsletter_signup.json")


@pytest.fixture
def support_version(support_document) -> FormVersion:
    return FormVersion.model_validate(support_document)


@pytest.fixture
def mock_backend(support_document, newsletter_document) -> MockBackend:
    return MockBackend({"3": support_document, "7": newsletter_document})
