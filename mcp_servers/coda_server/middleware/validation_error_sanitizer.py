"""Turn pydantic validation failures into one-line tool errors.

Raw ``ValidationError`` text carries input echoes, type metadata and
``https://errors.pydantic.dev/`` links. Agents only need the field path and
the reason, in the same ``[CODE] message`` shape the tools use.
"""

from typing_extensions import override

from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools.tool import ToolResult
from loguru import logger
from mcp.types import CallToolRequestParams
from pydantic import ValidationError as PydanticValidationError
from utils.errors import validation_error


def format_validation_error(exc: PydanticValidationError) -> str:
    """Collapse every error entry into ``loc: msg`` pairs."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(segment) for segment in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return validation_error("; ".join(parts))


class ValidationErrorSanitizerMiddleware(Middleware):
    @override
    async def on_call_tool(
        self,
        context: MiddlewareContext[CallToolRequestParams],
        call_next: CallNext[CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        try:
            return await call_next(context)
        except PydanticValidationError as exc:
            clean = format_validation_error(exc)
            logger.debug(f"Rejected arguments for {context.message.name}: {clean}")
            raise ToolError(clean) from None
