"""Document and page passthroughs: the JSON response is returned as-is."""

import json
from typing import Any

from models.requests import (
    CreatePageRequest,
    ListDocumentsRequest,
    ListPagesRequest,
    RenamePageRequest,
    ResolveLinkRequest,
)
from utils.coda_client import CodaClient
from utils.config import get_settings
from utils.errors import CodaError


async def list_documents(request: ListDocumentsRequest) -> dict[str, Any]:
    async with CodaClient.from_settings() as client:
        return await client.list_docs(request.query)


async def list_pages(request: ListPagesRequest) -> dict[str, Any]:
    limit = request.limit or get_settings().DEFAULT_PAGE_LIST_LIMIT
    async with CodaClient.from_settings() as client:
        return await client.list_pages(
            request.doc_id, limit=limit, page_token=request.next_page_token
        )


async def create_page(request: CreatePageRequest) -> dict[str, Any]:
    async with CodaClient.from_settings() as client:
        return await client.create_page(
            request.doc_id,
            request.name,
            content=request.content,
            parent_page_id=request.parent_page_id,
        )


async def rename_page(request: RenamePageRequest) -> dict[str, Any]:
    async with CodaClient.from_settings() as client:
        try:
            return await client.update_page(
                request.doc_id, request.page_id_or_name, name=request.new_name
            )
        except CodaError as exc:
            exc.with_context(page_ref=request.page_ref)
            raise


async def resolve_link(request: ResolveLinkRequest) -> dict[str, Any]:
    async with CodaClient.from_settings() as client:
        return await client.resolve_browser_link(request.url)


async def coda_list_documents(request: ListDocumentsRequest) -> str:
    """List or search available documents."""
    try:
        return json.dumps(await list_documents(request))
    except CodaError as exc:
        return f"Failed to list documents: {exc}"


async def coda_list_pages(request: ListPagesRequest) -> str:
    """List pages in a document with pagination."""
    try:
        return json.dumps(await list_pages(request))
    except CodaError as exc:
        return f"Failed to list pages: {exc}"


async def coda_create_page(request: CreatePageRequest) -> str:
    """Create a page in a document, optionally with markdown content and a parent page."""
    try:
        return json.dumps(await create_page(request))
    except CodaError as exc:
        return f"Failed to create page: {exc}"


async def coda_rename_page(request: RenamePageRequest) -> str:
    """Rename a page in a document."""
    try:
        return json.dumps(await rename_page(request))
    except CodaError as exc:
        return f"Failed to rename page: {exc}"


async def coda_resolve_link(request: ResolveLinkRequest) -> str:
    """Resolve metadata given a browser link to a Coda object."""
    try:
        return json.dumps(await resolve_link(request))
    except CodaError as exc:
        return f"Failed to resolve link: {exc}"
