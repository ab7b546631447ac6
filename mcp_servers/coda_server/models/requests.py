from mcp_schema import FlatBaseModel as BaseModel
from models.export import PageRef
from pydantic import ConfigDict, Field


class ListDocumentsRequest(BaseModel):
    """Request model for listing documents."""

    model_config = ConfigDict(extra="forbid")

    query: str | None = Field(
        default=None,
        description="Search term to filter documents by name (e.g., 'Roadmap'). Omit to list all accessible documents.",
    )


class ListPagesRequest(BaseModel):
    """Request model for listing pages in a document."""

    model_config = ConfigDict(extra="forbid")

    doc_id: str = Field(
        ...,
        description="ID of the document to list pages from (e.g., 'AbCDeFGH'). Obtain from list_documents.",
    )
    limit: int | None = Field(
        default=None,
        ge=1,
        description="Number of pages to return. Default: 25. Ignored when next_page_token is given.",
    )
    next_page_token: str | None = Field(
        default=None,
        description="Token returned by a previous call to fetch the next page of results.",
    )


class PageRequest(BaseModel):
    """Fields shared by every request addressing a single page."""

    model_config = ConfigDict(extra="forbid")

    doc_id: str = Field(
        ...,
        min_length=1,
        description="ID of the document that contains the page (e.g., 'AbCDeFGH').",
    )
    page_id_or_name: str = Field(
        ...,
        min_length=1,
        description="ID (e.g., 'canvas-IjkLmnO') or exact name of the page.",
    )

    @property
    def page_ref(self) -> PageRef:
        return PageRef(doc_id=self.doc_id, page_id_or_name=self.page_id_or_name)


class CreatePageRequest(BaseModel):
    """Request model for creating a page."""

    model_config = ConfigDict(extra="forbid")

    doc_id: str = Field(..., description="ID of the document to create the page in.")
    name: str = Field(..., min_length=1, description="Name of the new page.")
    content: str | None = Field(
        default=None,
        description="Markdown body of the new page. Omit to create an empty page.",
    )
    parent_page_id: str | None = Field(
        default=None,
        description="ID of the page to nest the new page under. Omit for a top-level page.",
    )


class GetPageContentRequest(PageRequest):
    """Request model for reading a page's full content as markdown."""


class PeekPageRequest(PageRequest):
    """Request model for previewing the first lines of a page."""

    num_lines: int = Field(
        ...,
        ge=1,
        description="Number of lines to return from the start of the page. Usually 30 lines is enough.",
    )


class WritePageContentRequest(PageRequest):
    """Request model for replacing or appending page content."""

    content: str = Field(..., description="Markdown content to write to the page.")


class DuplicatePageRequest(PageRequest):
    """Request model for duplicating a page."""

    new_name: str = Field(..., min_length=1, description="Name of the copy.")


class RenamePageRequest(PageRequest):
    """Request model for renaming a page."""

    new_name: str = Field(..., min_length=1, description="New name of the page.")


class ResolveLinkRequest(BaseModel):
    """Request model for resolving a Coda browser link."""

    model_config = ConfigDict(extra="forbid")

    url: str = Field(
        ...,
        description="Browser URL of a Coda object (e.g., 'https://coda.io/d/_dAbCDeFGH/Launch_su123').",
    )
