"""Pytest configuration and fixtures for the Coda server tests.

The export pipeline is exercised against ``FakeCodaClient``, an in-memory
stand-in for ``utils.coda_client.CodaClient``; time is driven by
``FakeClock`` so backoff and timeout behaviour is deterministic. The HTTP
layer itself is covered with ``httpx.MockTransport``.

Run with: uv run pytest tests/ -v
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from models.export import ExportFormat, ExportJob, PageRef, PollPolicy
from utils.coda_client import CodaClient

BASE_URL = "https://coda.test/apis/v1"


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeCodaClient:
    """Scripted Coda backend.

    ``statuses`` is consumed one entry per status query; the last entry
    repeats forever. Entries are response dicts or exceptions to raise.
    """

    def __init__(
        self,
        *,
        submit: dict[str, Any] | Exception | None = None,
        statuses: list[dict[str, Any] | Exception] | None = None,
        downloads: dict[str, str | Exception] | None = None,
    ) -> None:
        self.submit = submit if submit is not None else {"id": "j1", "status": "inProgress"}
        self.statuses = list(statuses or [{"status": "inProgress"}])
        self.downloads = downloads or {}
        self.calls: list[tuple[Any, ...]] = []
        self.created_pages: list[dict[str, Any]] = []
        self.updates: list[dict[str, Any]] = []

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def submit_export(
        self, doc_id: str, page_id_or_name: str, fmt: ExportFormat
    ) -> dict[str, Any]:
        self.calls.append(("submit_export", doc_id, page_id_or_name, fmt))
        if isinstance(self.submit, Exception):
            raise self.submit
        return self.submit

    async def get_export_status(self, job: ExportJob) -> dict[str, Any]:
        self.calls.append(("get_export_status", job.job_id))
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def download_content(self, locator: str) -> str:
        self.calls.append(("download_content", locator))
        item = self.downloads[locator]
        if isinstance(item, Exception):
            raise item
        return item

    async def create_page(
        self,
        doc_id: str,
        name: str,
        *,
        content: str | None = None,
        parent_page_id: str | None = None,
    ) -> dict[str, Any]:
        self.calls.append(("create_page", doc_id, name))
        page = {"doc_id": doc_id, "name": name, "content": content}
        self.created_pages.append(page)
        return {"id": "canvas-new", "name": name}

    async def update_page(
        self, doc_id: str, page_id_or_name: str, **kwargs: Any
    ) -> dict[str, Any]:
        self.calls.append(("update_page", doc_id, page_id_or_name))
        self.updates.append({"doc_id": doc_id, "page": page_id_or_name, **kwargs})
        return {"id": page_id_or_name, "requestId": "mutate-1"}


@pytest.fixture
def page_ref() -> PageRef:
    return PageRef(doc_id="doc1", page_id_or_name="canvas-1")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_policy() -> PollPolicy:
    return PollPolicy(
        max_attempts=10,
        initial_delay=0.1,
        backoff_multiplier=2,
        max_delay=1.0,
        overall_timeout=100,
    )


def completed_export(*, text: str, job_id: str = "j1", locator: str = "L1") -> FakeCodaClient:
    """Backend whose export goes Pending -> InProgress x2 -> Complete."""
    return FakeCodaClient(
        submit={"id": job_id, "status": "pending"},
        statuses=[
            {"id": job_id, "status": "inProgress"},
            {"id": job_id, "status": "inProgress"},
            {"id": job_id, "status": "complete", "downloadLink": locator},
        ],
        downloads={locator: text},
    )


class CodaApi:
    """Minimal Coda REST emulation for ``httpx.MockTransport``.

    Exports complete on the second status query. ``pages`` maps page id to
    markdown; unknown pages answer 404.
    """

    def __init__(self, pages: dict[str, str] | None = None) -> None:
        self.pages = pages if pages is not None else {"canvas-1": "# Title\nBody"}
        self.requests: list[httpx.Request] = []
        self._polls: dict[str, int] = {}
        self.overrides: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        override = self.overrides.get((request.method, path))
        if override is not None:
            return override(request)

        if request.url.host == "downloads.coda.test":
            page_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, text=self.pages[page_id])

        prefix = "/apis/v1"
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        parts = path[len(prefix) :].strip("/").split("/")

        if parts[:1] == ["docs"] and len(parts) >= 4 and parts[2] == "pages":
            page_id = parts[3]
            if page_id not in self.pages:
                return httpx.Response(404, json={"statusCode": 404, "message": "Page not found"})
            if len(parts) == 5 and request.method == "POST":
                return httpx.Response(
                    202, json={"id": f"export-{page_id}", "status": "inProgress"}
                )
            if len(parts) == 6 and request.method == "GET":
                job_id = parts[5]
                self._polls[job_id] = self._polls.get(job_id, 0) + 1
                if self._polls[job_id] < 2:
                    return httpx.Response(200, json={"id": job_id, "status": "inProgress"})
                return httpx.Response(
                    200,
                    json={
                        "id": job_id,
                        "status": "complete",
                        "downloadLink": f"https://downloads.coda.test/export/{page_id}",
                    },
                )
            if len(parts) == 4 and request.method == "PUT":
                return httpx.Response(202, json={"id": page_id, "requestId": "mutate-1"})

        if parts == ["docs", "doc1", "pages"] and request.method == "POST":
            body = json.loads(request.content)
            return httpx.Response(201, json={"id": "canvas-new", "name": body["name"]})
        if parts == ["docs", "doc1", "pages"] and request.method == "GET":
            return httpx.Response(200, json={"items": [{"id": p} for p in self.pages]})
        if parts == ["docs"]:
            return httpx.Response(200, json={"items": [{"id": "doc1", "name": "Roadmap"}]})
        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def coda_api() -> CodaApi:
    return CodaApi()


@pytest.fixture
def patched_client(monkeypatch: pytest.MonkeyPatch, coda_api: CodaApi) -> CodaApi:
    """Route every ``CodaClient.from_settings()`` through ``coda_api``."""
    transport = httpx.MockTransport(coda_api)

    def from_settings(cls, transport_override=None):
        return cls("test-key", base_url=BASE_URL, transport=transport)

    monkeypatch.setattr(CodaClient, "from_settings", classmethod(from_settings))
    monkeypatch.setattr(
        PollPolicy,
        "from_settings",
        classmethod(
            lambda cls: cls(
                max_attempts=5,
                initial_delay=0.001,
                backoff_multiplier=1,
                max_delay=0.001,
                overall_timeout=5,
            )
        ),
    )
    return coda_api
