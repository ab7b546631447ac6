import json

import httpx
import pytest
from conftest import BASE_URL, CodaApi
from models.export import ExportFormat, ExportJob, PageRef
from utils.coda_client import CodaClient
from utils.errors import (
    FetchError,
    InvalidRequestError,
    NotFoundError,
    TransientServiceError,
)


def client_for(handler) -> CodaClient:
    return CodaClient("test-key", base_url=BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_submit_export_posts_output_format(coda_api: CodaApi) -> None:
    async with client_for(coda_api) as client:
        data = await client.submit_export("doc1", "canvas-1", ExportFormat.MARKDOWN)

    assert data == {"id": "export-canvas-1", "status": "inProgress"}
    request = coda_api.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/apis/v1/docs/doc1/pages/canvas-1/export"
    assert json.loads(request.content) == {"outputFormat": "markdown"}
    assert request.headers["Authorization"] == "Bearer test-key"


@pytest.mark.asyncio
async def test_page_names_are_escaped() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "e1", "status": "inProgress"})

    async with client_for(handler) as client:
        await client.submit_export("doc1", "Q3/Plan v2", ExportFormat.HTML)

    assert seen[0].url.raw_path.startswith(b"/apis/v1/docs/doc1/pages/Q3%2FPlan%20v2/export")


@pytest.mark.asyncio
async def test_export_status_uses_job_path(coda_api: CodaApi) -> None:
    page_ref = PageRef(doc_id="doc1", page_id_or_name="canvas-1")
    job = ExportJob(job_id="export-canvas-1", page_ref=page_ref)
    async with client_for(coda_api) as client:
        first = await client.get_export_status(job)
        second = await client.get_export_status(job)

    assert first["status"] == "inProgress"
    assert second["status"] == "complete"
    assert second["downloadLink"] == "https://downloads.coda.test/export/canvas-1"
    assert coda_api.requests[0].url.path.endswith("/export/export-canvas-1")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (404, NotFoundError),
        (410, NotFoundError),
        (400, InvalidRequestError),
        (401, InvalidRequestError),
        (403, InvalidRequestError),
        (429, TransientServiceError),
        (500, TransientServiceError),
        (503, TransientServiceError),
    ],
)
async def test_error_statuses_are_classified(status_code, error_type) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"message": "nope"})

    async with client_for(handler) as client:
        with pytest.raises(error_type) as exc_info:
            await client.submit_export("doc1", "canvas-1", ExportFormat.MARKDOWN)

    assert exc_info.value.status_code == status_code
    assert exc_info.value.stage == "request"
    assert "nope" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_failure_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with client_for(handler) as client:
        with pytest.raises(TransientServiceError) as exc_info:
            await client.list_docs()

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_corrupt_status_response_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

    job = ExportJob(job_id="j1", page_ref=PageRef(doc_id="doc1", page_id_or_name="canvas-1"))
    async with client_for(handler) as client:
        with pytest.raises(TransientServiceError) as exc_info:
            await client.get_export_status(job)

    assert exc_info.value.stage == "poll"
    assert isinstance(exc_info.value.__cause__, httpx.DecodingError)


@pytest.mark.asyncio
async def test_non_json_response_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    async with client_for(handler) as client:
        with pytest.raises(TransientServiceError):
            await client.list_docs()


class TestDownload:
    @pytest.mark.asyncio
    async def test_download_is_sent_without_credentials(self, coda_api: CodaApi) -> None:
        async with client_for(coda_api) as client:
            text = await client.download_content("https://downloads.coda.test/export/canvas-1")

        assert text == "# Title\nBody"
        assert "Authorization" not in coda_api.requests[0].headers

    @pytest.mark.asyncio
    async def test_empty_download_is_empty_text(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"")

        async with client_for(handler) as client:
            assert await client.download_content("https://downloads.coda.test/x") == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [403, 404, 500])
    async def test_error_status_is_fetch_error(self, status_code) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code)

        async with client_for(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.download_content("https://downloads.coda.test/x")

        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"\xff\xfe\xfa")

        async with client_for(handler) as client:
            with pytest.raises(FetchError):
                await client.download_content("https://downloads.coda.test/x")

    @pytest.mark.asyncio
    async def test_redirect_loop_is_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": str(request.url)})

        async with client_for(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.download_content("https://downloads.coda.test/x")

        assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)

    @pytest.mark.asyncio
    async def test_corrupt_encoding_is_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"not gzip"
            )

        async with client_for(handler) as client:
            with pytest.raises(FetchError):
                await client.download_content("https://downloads.coda.test/x")

    @pytest.mark.asyncio
    async def test_unreachable_host_is_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with client_for(handler) as client:
            with pytest.raises(FetchError):
                await client.download_content("https://downloads.coda.test/x")


class TestPages:
    @pytest.mark.asyncio
    async def test_list_pages_drops_limit_with_token(self, coda_api: CodaApi) -> None:
        async with client_for(coda_api) as client:
            await client.list_pages("doc1", limit=10)
            await client.list_pages("doc1", limit=10, page_token="tok")

        first, second = coda_api.requests
        assert first.url.params["limit"] == "10"
        assert "limit" not in second.url.params
        assert second.url.params["pageToken"] == "tok"

    @pytest.mark.asyncio
    async def test_create_page_sends_placeholder_for_empty_content(
        self, coda_api: CodaApi
    ) -> None:
        async with client_for(coda_api) as client:
            created = await client.create_page("doc1", "Copy")

        assert created == {"id": "canvas-new", "name": "Copy"}
        body = json.loads(coda_api.requests[0].content)
        assert body["pageContent"] == {
            "type": "canvas",
            "canvasContent": {"format": "markdown", "content": " "},
        }
        assert "parentPageId" not in body

    @pytest.mark.asyncio
    async def test_update_page_content_mode(self, coda_api: CodaApi) -> None:
        async with client_for(coda_api) as client:
            await client.update_page("doc1", "canvas-1", content="more", insertion_mode="append")

        body = json.loads(coda_api.requests[0].content)
        assert body == {
            "contentUpdate": {
                "insertionMode": "append",
                "canvasContent": {"format": "markdown", "content": "more"},
            }
        }

    @pytest.mark.asyncio
    async def test_update_page_requires_a_change(self, coda_api: CodaApi) -> None:
        async with client_for(coda_api) as client:
            with pytest.raises(InvalidRequestError):
                await client.update_page("doc1", "canvas-1")
        assert coda_api.requests == []

    @pytest.mark.asyncio
    async def test_list_docs_passes_query(self, coda_api: CodaApi) -> None:
        async with client_for(coda_api) as client:
            docs = await client.list_docs("road")

        assert docs["items"][0]["name"] == "Roadmap"
        assert coda_api.requests[0].url.params["query"] == "road"
