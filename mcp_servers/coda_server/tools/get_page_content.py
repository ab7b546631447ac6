from loguru import logger
from models.requests import GetPageContentRequest
from services.page_content import PageContentService
from utils.coda_client import CodaClient
from utils.errors import CodaError


async def get_page_content(request: GetPageContentRequest) -> str:
    """Core read logic. Returns "" for an empty page, raises ``CodaError``."""
    async with CodaClient.from_settings() as client:
        content = await PageContentService(client).get_full_content(request.page_ref)
    return content.text if content else ""


async def coda_get_page_content(request: GetPageContentRequest) -> str:
    """Get the full content of a page as markdown. Use peek_page first for long pages."""
    try:
        return await get_page_content(request)
    except CodaError as exc:
        logger.warning(f"coda_get_page_content failed: {exc}")
        return f"Failed to get page content: {exc}"
