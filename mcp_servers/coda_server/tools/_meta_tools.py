"""Meta-tools for LLM agents - consolidated interface with action-based routing."""

from typing import Any, Literal

from mcp_schema import FlatBaseModel, OutputBaseModel
from models.requests import (
    CreatePageRequest,
    DuplicatePageRequest,
    GetPageContentRequest,
    ListDocumentsRequest,
    ListPagesRequest,
    PeekPageRequest,
    RenamePageRequest,
    ResolveLinkRequest,
    WritePageContentRequest,
)
from pydantic import ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from tools.documents import create_page, list_documents, list_pages, rename_page, resolve_link
from tools.duplicate_page import duplicate_page
from tools.get_page_content import get_page_content
from tools.peek_page import peek_page
from tools.write_page_content import write_page_content
from utils.errors import CodaError, validation_error


# ============ Help Response ============
class ActionInfo(OutputBaseModel):
    """Information about an action."""

    model_config = ConfigDict(extra="forbid")
    description: str
    required_params: list[str]
    optional_params: list[str]


class HelpResponse(OutputBaseModel):
    """Help response listing available actions."""

    model_config = ConfigDict(extra="forbid")
    tool_name: str
    description: str
    actions: dict[str, ActionInfo]


# ============ Result Models ============
class ApiResult(OutputBaseModel):
    """Raw Coda API response for passthrough actions."""

    model_config = ConfigDict(extra="forbid")
    data: dict[str, Any] = Field(
        ...,
        description="JSON body returned by Coda, unchanged (e.g., page objects with id, name, href; or a request id for updates).",
    )


class ContentResult(OutputBaseModel):
    """Result from reading a page's content."""

    model_config = ConfigDict(extra="forbid")
    page: str = Field(..., description="Page that was read, as 'doc_id/page_id_or_name'.")
    content: str = Field(
        ..., description="Markdown content of the page. Empty string for an empty page."
    )


class PeekResult(OutputBaseModel):
    """Result from peeking at a page."""

    model_config = ConfigDict(extra="forbid")
    page: str = Field(..., description="Page that was read, as 'doc_id/page_id_or_name'.")
    content: str = Field(..., description="First lines of the page joined with newlines.")
    lines_returned: int = Field(
        ...,
        description="Number of lines in content. Less than num_lines when the page is shorter.",
    )


# ============ Input Model ============
class CodaInput(FlatBaseModel):
    """Input for coda meta-tool."""

    model_config = ConfigDict(extra="forbid")

    action: Literal[
        "help",
        "list_documents",
        "list_pages",
        "create_page",
        "get_content",
        "peek",
        "replace_content",
        "append_content",
        "duplicate",
        "rename",
        "resolve_link",
    ] = Field(
        ...,
        description="Action to perform. REQUIRED. Use 'help' to see detailed action requirements.",
    )

    doc_id: str | None = Field(
        None,
        description="Document ID (e.g., 'AbCDeFGH'). REQUIRED for every page action. Obtain from list_documents.",
    )
    page_id_or_name: str | None = Field(
        None,
        description="Page ID (e.g., 'canvas-IjkLmnO') or exact page name. REQUIRED for get_content, peek, replace_content, append_content, duplicate, rename.",
    )
    name: str | None = Field(
        None,
        description="Page name. REQUIRED for create_page; new page name for duplicate and rename.",
    )
    content: str | None = Field(
        None,
        description="Markdown content. REQUIRED for replace_content and append_content; optional for create_page.",
    )
    parent_page_id: str | None = Field(
        None, description="Parent page ID for create_page. Optional."
    )
    num_lines: int | None = Field(
        None,
        description="Number of lines to return for peek. REQUIRED for peek. Must be >= 1 (e.g., 30).",
    )
    query: str | None = Field(
        None, description="Search term for list_documents. Optional."
    )
    url: str | None = Field(
        None, description="Coda browser URL. REQUIRED for resolve_link."
    )
    limit: int | None = Field(
        None, description="Page size for list_pages. Default: 25."
    )
    next_page_token: str | None = Field(
        None, description="Continuation token from a previous list_pages call."
    )


# ============ Output Model ============
class CodaOutput(OutputBaseModel):
    """Output for coda meta-tool."""

    model_config = ConfigDict(extra="forbid")

    action: str = Field(
        ..., description="The action that was executed (e.g., 'peek'). Always present."
    )
    error: str | None = Field(
        None,
        description="Error message if the action failed, formatted as '[CODE] message (details)'. When present, result fields are null.",
    )

    help: HelpResponse | None = Field(
        None, description="Help response when action='help'."
    )
    content: ContentResult | None = Field(
        None, description="Result when action='get_content'."
    )
    peek: PeekResult | None = Field(None, description="Result when action='peek'.")
    result: ApiResult | None = Field(
        None,
        description="Raw Coda response for list_documents, list_pages, create_page, replace_content, append_content, duplicate, rename, resolve_link.",
    )


# ============ Help Definition ============
_PAGE = ["doc_id", "page_id_or_name"]

CODA_HELP = HelpResponse(
    tool_name="coda",
    description="Coda document operations: list documents and pages, read, preview, write, duplicate and rename pages.",
    actions={
        "help": ActionInfo(
            description="List all available actions",
            required_params=[],
            optional_params=[],
        ),
        "list_documents": ActionInfo(
            description="List or search accessible documents",
            required_params=[],
            optional_params=["query"],
        ),
        "list_pages": ActionInfo(
            description="List pages in a document",
            required_params=["doc_id"],
            optional_params=["limit", "next_page_token"],
        ),
        "create_page": ActionInfo(
            description="Create a page with optional markdown content",
            required_params=["doc_id", "name"],
            optional_params=["content", "parent_page_id"],
        ),
        "get_content": ActionInfo(
            description="Read the full content of a page as markdown",
            required_params=_PAGE,
            optional_params=[],
        ),
        "peek": ActionInfo(
            description="Read the first num_lines lines of a page",
            required_params=[*_PAGE, "num_lines"],
            optional_params=[],
        ),
        "replace_content": ActionInfo(
            description="Replace the content of a page with markdown",
            required_params=[*_PAGE, "content"],
            optional_params=[],
        ),
        "append_content": ActionInfo(
            description="Append markdown to the end of a page",
            required_params=[*_PAGE, "content"],
            optional_params=[],
        ),
        "duplicate": ActionInfo(
            description="Copy a page's content into a new page named 'name'",
            required_params=[*_PAGE, "name"],
            optional_params=[],
        ),
        "rename": ActionInfo(
            description="Rename a page to 'name'",
            required_params=[*_PAGE, "name"],
            optional_params=[],
        ),
        "resolve_link": ActionInfo(
            description="Resolve a Coda browser URL to object metadata",
            required_params=["url"],
            optional_params=[],
        ),
    },
)


def _missing(request: CodaInput) -> list[str]:
    info = CODA_HELP.actions[request.action]
    return [p for p in info.required_params if getattr(request, p) in (None, "")]


def _page_fields(request: CodaInput) -> dict[str, Any]:
    return {"doc_id": request.doc_id, "page_id_or_name": request.page_id_or_name}


# ============ Meta-Tool Implementation ============
async def coda(request: CodaInput) -> CodaOutput:
    """Coda document and page operations; call action='help' to see all actions and their required parameters."""
    action = request.action
    if action == "help":
        return CodaOutput(action="help", help=CODA_HELP)

    missing = _missing(request)
    if missing:
        return CodaOutput(action=action, error=f"Required: {', '.join(missing)}")

    try:
        match action:
            case "list_documents":
                data = await list_documents(ListDocumentsRequest(query=request.query))
            case "list_pages":
                data = await list_pages(
                    ListPagesRequest(
                        doc_id=request.doc_id,
                        limit=request.limit,
                        next_page_token=request.next_page_token,
                    )
                )
            case "create_page":
                data = await create_page(
                    CreatePageRequest(
                        doc_id=request.doc_id,
                        name=request.name,
                        content=request.content,
                        parent_page_id=request.parent_page_id,
                    )
                )
            case "get_content":
                req = GetPageContentRequest(**_page_fields(request))
                text = await get_page_content(req)
                return CodaOutput(
                    action=action,
                    content=ContentResult(page=str(req.page_ref), content=text),
                )
            case "peek":
                req = PeekPageRequest(**_page_fields(request), num_lines=request.num_lines)
                text = await peek_page(req)
                return CodaOutput(
                    action=action,
                    peek=PeekResult(
                        page=str(req.page_ref),
                        content=text,
                        lines_returned=len(text.split("\n")) if text else 0,
                    ),
                )
            case "replace_content" | "append_content":
                mode = "replace" if action == "replace_content" else "append"
                data = await write_page_content(
                    WritePageContentRequest(**_page_fields(request), content=request.content),
                    mode,
                )
            case "duplicate":
                data = await duplicate_page(
                    DuplicatePageRequest(**_page_fields(request), new_name=request.name)
                )
            case "rename":
                data = await rename_page(
                    RenamePageRequest(**_page_fields(request), new_name=request.name)
                )
            case "resolve_link":
                data = await resolve_link(ResolveLinkRequest(url=request.url))
            case _:
                return CodaOutput(action=action, error=f"Unknown action: {action}")
    except PydanticValidationError as exc:
        err = exc.errors()[0]
        field = ".".join(str(part) for part in err["loc"]) or None
        return CodaOutput(action=action, error=validation_error(err["msg"], field=field))
    except ValueError as exc:
        return CodaOutput(action=action, error=validation_error(str(exc)))
    except CodaError as exc:
        return CodaOutput(action=action, error=str(exc))

    return CodaOutput(action=action, result=ApiResult(data=data))


# ============ Schema Tool ============
class SchemaInput(FlatBaseModel):
    """Input for schema introspection."""

    model_config = ConfigDict(extra="forbid")
    model: str = Field(
        ...,
        description="Model name to get schema for. Valid values: 'input', 'output', 'ApiResult', 'ContentResult', 'PeekResult'.",
    )


class SchemaOutput(OutputBaseModel):
    """Output for schema introspection."""

    model_config = ConfigDict(extra="forbid")
    model: str = Field(..., description="The model name that was requested.")
    json_schema: dict[str, Any] = Field(
        ...,
        description="JSON Schema for the requested model. Contains 'error' key if the model name was invalid.",
    )


SCHEMAS: dict[str, type[FlatBaseModel | OutputBaseModel]] = {
    "input": CodaInput,
    "output": CodaOutput,
    "ApiResult": ApiResult,
    "ContentResult": ContentResult,
    "PeekResult": PeekResult,
}


def coda_schema(request: SchemaInput) -> SchemaOutput:
    """Get JSON schema for coda input/output models."""
    if request.model not in SCHEMAS:
        available = ", ".join(sorted(SCHEMAS.keys()))
        return SchemaOutput(
            model=request.model,
            json_schema={"error": f"Unknown model. Available: {available}"},
        )
    return SchemaOutput(
        model=request.model,
        json_schema=SCHEMAS[request.model].model_json_schema(),
    )
