"""Coda MCP Server.

Tool registration is controlled by the USE_INDIVIDUAL_TOOLS environment variable:
- USE_INDIVIDUAL_TOOLS=true: 10 individual tools for UI display
- USE_INDIVIDUAL_TOOLS unset/false (default): 2 meta-tools for LLM agents

Meta-tools:
| Tool        | Actions                                                          |
|-------------|------------------------------------------------------------------|
| coda        | help, list_documents, list_pages, create_page, get_content,      |
|             | peek, replace_content, append_content, duplicate, rename,        |
|             | resolve_link                                                     |
| coda_schema | Get JSON schema for any input/output model                       |

Individual tools:
- coda_list_documents, coda_list_pages, coda_create_page
- coda_get_page_content, coda_peek_page
- coda_replace_page_content, coda_append_page_content
- coda_duplicate_page, coda_rename_page, coda_resolve_link

Page content is read through Coda's asynchronous export API: each read
submits an export, polls it to completion and downloads the result.
"""

import os

from fastmcp import FastMCP
from fastmcp.server.middleware.error_handling import ErrorHandlingMiddleware
from middleware.logging import LoggingMiddleware
from middleware.validation_error_sanitizer import ValidationErrorSanitizerMiddleware
from utils.logging import setup_logger

setup_logger()

mcp = FastMCP(
    "coda-server",
    instructions="Coda documents and pages over the Coda REST API. List documents and pages, read full page content as markdown or peek at the first lines, replace or append markdown, create, duplicate and rename pages. Requires CODA_API_KEY.",
)
mcp.add_middleware(ErrorHandlingMiddleware(include_traceback=False))
mcp.add_middleware(LoggingMiddleware())
mcp.add_middleware(ValidationErrorSanitizerMiddleware())

# Mutually exclusive: USE_INDIVIDUAL_TOOLS gets individual tools, otherwise meta-tools
if os.getenv("USE_INDIVIDUAL_TOOLS", "").lower() in ("true", "1", "yes"):
    from tools.documents import (
        coda_create_page,
        coda_list_documents,
        coda_list_pages,
        coda_rename_page,
        coda_resolve_link,
    )
    from tools.duplicate_page import coda_duplicate_page
    from tools.get_page_content import coda_get_page_content
    from tools.peek_page import coda_peek_page
    from tools.write_page_content import (
        coda_append_page_content,
        coda_replace_page_content,
    )

    mcp.tool(coda_list_documents)
    mcp.tool(coda_list_pages)
    mcp.tool(coda_create_page)
    mcp.tool(coda_get_page_content)
    mcp.tool(coda_peek_page)
    mcp.tool(coda_replace_page_content)
    mcp.tool(coda_append_page_content)
    mcp.tool(coda_duplicate_page)
    mcp.tool(coda_rename_page)
    mcp.tool(coda_resolve_link)
else:
    # Register meta-tools (2 tools instead of 10)
    from tools._meta_tools import coda, coda_schema

    mcp.tool(coda)
    mcp.tool(coda_schema)

if __name__ == "__main__":
    transport = os.getenv("MCP_TRANSPORT", "http").lower()
    if transport == "http":
        port = int(os.getenv("MCP_PORT", "5000"))
        mcp.run(transport="http", host="0.0.0.0", port=port)
    else:
        mcp.run(transport="stdio")
