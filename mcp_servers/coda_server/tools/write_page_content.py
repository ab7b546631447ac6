import json
from typing import Any

from models.requests import WritePageContentRequest
from services.page_content import PageContentService
from utils.coda_client import CodaClient, InsertionMode
from utils.errors import CodaError


async def write_page_content(
    request: WritePageContentRequest, mode: InsertionMode
) -> dict[str, Any]:
    async with CodaClient.from_settings() as client:
        service = PageContentService(client)
        if mode == "append":
            return await service.append(request.page_ref, request.content)
        return await service.replace(request.page_ref, request.content)


async def coda_replace_page_content(request: WritePageContentRequest) -> str:
    """Replace the content of a page with new markdown content."""
    try:
        return json.dumps(await write_page_content(request, "replace"))
    except CodaError as exc:
        return f"Failed to replace page content: {exc}"


async def coda_append_page_content(request: WritePageContentRequest) -> str:
    """Append new markdown content to the end of a page."""
    try:
        return json.dumps(await write_page_content(request, "append"))
    except CodaError as exc:
        return f"Failed to append page content: {exc}"
