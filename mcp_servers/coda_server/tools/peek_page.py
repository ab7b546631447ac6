from loguru import logger
from models.requests import PeekPageRequest
from services.page_content import PageContentService
from utils.coda_client import CodaClient
from utils.errors import CodaError, validation_error


async def peek_page(request: PeekPageRequest) -> str:
    """Core preview logic. Raises ``CodaError`` or ``ValueError``."""
    async with CodaClient.from_settings() as client:
        return await PageContentService(client).peek(request.page_ref, request.num_lines)


async def coda_peek_page(request: PeekPageRequest) -> str:
    """Peek into the beginning of a page and return a limited number of lines."""
    try:
        return await peek_page(request)
    except ValueError as exc:
        return f"Failed to peek page: {validation_error(str(exc), field='num_lines')}"
    except CodaError as exc:
        logger.warning(f"coda_peek_page failed: {exc}")
        return f"Failed to peek page: {exc}"
