import json
from typing import Any

from loguru import logger
from models.requests import DuplicatePageRequest
from services.page_content import PageContentService
from utils.coda_client import CodaClient
from utils.errors import CodaError


async def duplicate_page(request: DuplicatePageRequest) -> dict[str, Any]:
    async with CodaClient.from_settings() as client:
        return await PageContentService(client).duplicate(request.page_ref, request.new_name)


async def coda_duplicate_page(request: DuplicatePageRequest) -> str:
    """Duplicate a page into a new page with the given name in the same document."""
    try:
        return json.dumps(await duplicate_page(request))
    except CodaError as exc:
        logger.warning(f"coda_duplicate_page failed: {exc}")
        return f"Failed to duplicate page: {exc}"
