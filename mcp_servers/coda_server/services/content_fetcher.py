from typing import TYPE_CHECKING

from loguru import logger
from models.export import ExportJob, ExportStatus, PageContent
from utils.errors import FetchError

if TYPE_CHECKING:
    from utils.coda_client import CodaClient


async def fetch_content(client: "CodaClient", job: ExportJob) -> PageContent:
    """Download the rendered page of a completed export, exactly once.

    An empty body is a valid empty page. Retrying is left to whoever re-runs
    the whole export.
    """
    if job.status is not ExportStatus.COMPLETE or not job.content_locator:
        raise FetchError(
            f"Export is {job.status.value}, no content to fetch",
            stage="fetch",
            page_ref=job.page_ref,
            job_id=job.job_id,
        )

    try:
        text = await client.download_content(job.content_locator)
    except FetchError as exc:
        exc.with_context(page_ref=job.page_ref, job_id=job.job_id)
        raise

    logger.debug(f"Fetched {len(text)} characters for export {job.job_id}")
    return PageContent(text=text, source_page=job.page_ref)
