from typing import TYPE_CHECKING

from loguru import logger
from models.export import ExportFormat, ExportJob, ExportStatus, PageRef
from utils.errors import CodaError, InvalidRequestError, TransientServiceError

if TYPE_CHECKING:
    from utils.coda_client import CodaClient


async def request_export(
    client: "CodaClient",
    page_ref: PageRef,
    fmt: ExportFormat | str = ExportFormat.MARKDOWN,
) -> ExportJob:
    """Ask Coda to render a page and return the pending export job.

    Raises:
        NotFoundError: the doc or page does not exist.
        InvalidRequestError: unsupported format or a rejected request.
        TransientServiceError: Coda was unreachable or answered 5xx/429, or
            accepted the request without issuing a request id.
    """
    try:
        fmt = ExportFormat(fmt)
    except ValueError:
        allowed = ", ".join(f.value for f in ExportFormat)
        raise InvalidRequestError(
            f"Unsupported export format '{fmt}' (expected one of: {allowed})",
            stage="request",
            page_ref=page_ref,
        ) from None

    try:
        data = await client.submit_export(page_ref.doc_id, page_ref.page_id_or_name, fmt)
    except CodaError as exc:
        exc.with_context(page_ref=page_ref)
        raise

    job_id = data.get("id")
    if not job_id:
        raise TransientServiceError(
            "Export was accepted without a request id",
            stage="request",
            page_ref=page_ref,
        )

    # Coda acknowledges with "inProgress"; anything else still starts pending.
    status = ExportStatus.parse(data.get("status"))
    if status is not ExportStatus.IN_PROGRESS:
        status = ExportStatus.PENDING

    job = ExportJob(job_id=str(job_id), page_ref=page_ref, status=status)
    logger.debug(f"Export {job.job_id} submitted for {page_ref} as {fmt.value}")
    return job
