"""Read, preview, duplicate and rewrite Coda page content.

Reading goes through the export pipeline (request -> poll -> fetch). Each
call starts a fresh export job; nothing is cached or shared between calls.
Writing (replace/append) goes straight to the page update endpoint.
"""

from typing import TYPE_CHECKING, Any

from loguru import logger
from models.export import ExportFormat, ExportStatus, PageContent, PageRef, PollPolicy
from services.content_fetcher import fetch_content
from services.export_poller import ExportPoller
from services.export_requester import request_export
from utils.config import get_settings
from utils.errors import CodaError, JobFailedError

if TYPE_CHECKING:
    from utils.coda_client import CodaClient, InsertionMode


class PageContentService:
    def __init__(
        self,
        client: "CodaClient",
        *,
        policy: PollPolicy | None = None,
        fmt: ExportFormat | str | None = None,
        poller: ExportPoller | None = None,
    ):
        self._client = client
        self._policy = policy or PollPolicy.from_settings()
        self._fmt = fmt or get_settings().CODA_EXPORT_FORMAT
        self._poller = poller or ExportPoller(client)

    async def get_full_content(self, page_ref: PageRef) -> PageContent | None:
        """Export a page and return its text, or ``None`` for an empty page.

        The first failing stage's error propagates with its kind unchanged;
        only the page reference is attached.
        """
        try:
            job = await request_export(self._client, page_ref, self._fmt)
            job = await self._poller.await_completion(job, self._policy)
            if job.status is ExportStatus.FAILED:
                raise JobFailedError(job)
            content = await fetch_content(self._client, job)
        except CodaError as exc:
            exc.with_context(page_ref=page_ref)
            logger.info(f"Reading {page_ref} failed: {exc}")
            raise

        if content.is_empty:
            logger.debug(f"Page {page_ref} exported with no content")
            return None
        return content

    async def peek(self, page_ref: PageRef, num_lines: int) -> str:
        """Return the first ``num_lines`` lines of a page joined with ``\\n``."""
        if isinstance(num_lines, bool) or not isinstance(num_lines, int) or num_lines < 1:
            raise ValueError("num_lines must be a positive integer")

        content = await self.get_full_content(page_ref)
        if content is None:
            return ""
        return content.head(num_lines)

    async def duplicate(self, page_ref: PageRef, new_name: str) -> dict[str, Any]:
        """Copy a page's content into a new page of the same doc.

        No page is created unless the source content was read successfully.
        """
        content = await self.get_full_content(page_ref)
        text = content.text if content else None
        try:
            created = await self._client.create_page(page_ref.doc_id, new_name, content=text)
        except CodaError as exc:
            exc.with_context(page_ref=page_ref)
            raise
        logger.info(f"Duplicated {page_ref} as '{new_name}'")
        return created

    async def write(
        self, page_ref: PageRef, content: str, mode: "InsertionMode"
    ) -> dict[str, Any]:
        try:
            return await self._client.update_page(
                page_ref.doc_id,
                page_ref.page_id_or_name,
                content=content,
                insertion_mode=mode,
            )
        except CodaError as exc:
            exc.with_context(page_ref=page_ref)
            raise

    async def replace(self, page_ref: PageRef, content: str) -> dict[str, Any]:
        return await self.write(page_ref, content, "replace")

    async def append(self, page_ref: PageRef, content: str) -> dict[str, Any]:
        return await self.write(page_ref, content, "append")
