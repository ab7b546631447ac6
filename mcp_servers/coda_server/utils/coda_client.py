"""Async client for the subset of the Coda REST API this server uses.

Failures are classified into the ``utils.errors`` taxonomy here so callers
never inspect HTTP status codes:

- httpx request errors, 429, 5xx -> ``TransientServiceError``
- 404 and 410                    -> ``NotFoundError``
- any other 4xx                  -> ``InvalidRequestError``

Content downloads go through a separate client without credentials, since
the download link is a pre-signed URL outside the API host. Download
failures of any kind are ``FetchError``.
"""

from typing import Any, Literal
from urllib.parse import quote

import httpx
from loguru import logger
from models.export import ExportFormat, ExportJob
from utils.config import get_settings
from utils.errors import (
    CodaError,
    FetchError,
    InvalidRequestError,
    NotFoundError,
    TransientServiceError,
)

InsertionMode = Literal["replace", "append"]


def _segment(value: str) -> str:
    # Page names may contain spaces or slashes.
    return quote(value, safe="")


def _describe(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("statusMessage") or body)
    return str(body)


def classify_response(response: httpx.Response, *, stage: str) -> CodaError:
    """Build the error matching a non-2xx Coda API response."""
    status = response.status_code
    message = _describe(response)
    if status in (404, 410):
        return NotFoundError(message, stage=stage, status_code=status)
    if status == 429 or status >= 500:
        return TransientServiceError(message, stage=stage, status_code=status)
    return InvalidRequestError(message, stage=stage, status_code=status)


class CodaClient:
    """Thin async wrapper around ``httpx.AsyncClient`` for the Coda API.

    Use as an async context manager; one instance per tool invocation.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://coda.io/apis/v1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._api = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._downloads = httpx.AsyncClient(
            timeout=timeout, transport=transport, follow_redirects=True
        )

    @classmethod
    def from_settings(
        cls, transport: httpx.AsyncBaseTransport | None = None
    ) -> "CodaClient":
        settings = get_settings()
        if not settings.CODA_API_KEY:
            logger.warning("CODA_API_KEY is not set; requests will be unauthenticated")
        return cls(
            settings.CODA_API_KEY,
            base_url=settings.CODA_API_BASE_URL,
            timeout=settings.CODA_HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "CodaClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._api.aclose()
        await self._downloads.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        stage: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._api.request(method, path, params=params, json=json)
        except httpx.RequestError as exc:
            raise TransientServiceError(
                f"Could not reach Coda: {exc!r}", stage=stage
            ) from exc

        if response.is_error:
            raise classify_response(response, stage=stage)
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise TransientServiceError(
                "Coda returned a non-JSON response",
                stage=stage,
                status_code=response.status_code,
            ) from exc
        return data if isinstance(data, dict) else {"items": data}

    # ---- export ---------------------------------------------------------

    async def submit_export(
        self, doc_id: str, page_id_or_name: str, fmt: ExportFormat
    ) -> dict[str, Any]:
        """Start a page export. Returns ``{"id", "status", "href"}``."""
        return await self._request(
            "POST",
            f"/docs/{_segment(doc_id)}/pages/{_segment(page_id_or_name)}/export",
            stage="request",
            json={"outputFormat": fmt.value},
        )

    async def get_export_status(self, job: ExportJob) -> dict[str, Any]:
        """Returns ``{"status", "downloadLink"?, "error"?}`` for an export."""
        ref = job.page_ref
        return await self._request(
            "GET",
            f"/docs/{_segment(ref.doc_id)}/pages/{_segment(ref.page_id_or_name)}"
            f"/export/{_segment(job.job_id)}",
            stage="poll",
        )

    async def download_content(self, locator: str) -> str:
        """Download exported content. No retries."""
        try:
            response = await self._downloads.get(locator)
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise FetchError(
                f"Could not download exported content: {exc!r}", stage="fetch"
            ) from exc

        if response.is_error:
            raise FetchError(
                f"Content download returned HTTP {response.status_code}",
                stage="fetch",
                status_code=response.status_code,
            )
        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FetchError(
                "Exported content is not valid UTF-8 text", stage="fetch"
            ) from exc

    # ---- documents and pages -------------------------------------------

    async def list_docs(self, query: str | None = None) -> dict[str, Any]:
        return await self._request("GET", "/docs", stage="list_docs", params={"query": query})

    async def list_pages(
        self, doc_id: str, *, limit: int | None = None, page_token: str | None = None
    ) -> dict[str, Any]:
        # The continuation token already encodes the page size.
        params = {"limit": None if page_token else limit, "pageToken": page_token}
        return await self._request(
            "GET", f"/docs/{_segment(doc_id)}/pages", stage="list_pages", params=params
        )

    async def create_page(
        self,
        doc_id: str,
        name: str,
        *,
        content: str | None = None,
        parent_page_id: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name": name,
            "pageContent": {
                "type": "canvas",
                # Coda rejects an empty canvas body.
                "canvasContent": {"format": "markdown", "content": content or " "},
            },
        }
        if parent_page_id:
            body["parentPageId"] = parent_page_id
        return await self._request(
            "POST", f"/docs/{_segment(doc_id)}/pages", stage="create", json=body
        )

    async def update_page(
        self,
        doc_id: str,
        page_id_or_name: str,
        *,
        name: str | None = None,
        content: str | None = None,
        insertion_mode: InsertionMode | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if content is not None:
            body["contentUpdate"] = {
                "insertionMode": insertion_mode or "replace",
                "canvasContent": {"format": "markdown", "content": content},
            }
        if not body:
            raise InvalidRequestError("Nothing to update", stage="update")
        return await self._request(
            "PUT",
            f"/docs/{_segment(doc_id)}/pages/{_segment(page_id_or_name)}",
            stage="update",
            json=body,
        )

    async def resolve_browser_link(self, url: str) -> dict[str, Any]:
        return await self._request(
            "GET", "/resolveBrowserLink", stage="resolve_link", params={"url": url}
        )
