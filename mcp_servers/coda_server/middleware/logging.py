import time
from typing_extensions import override

from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools.tool import ToolResult
from loguru import logger
from mcp.types import CallToolRequestParams


class LoggingMiddleware(Middleware):
    """Log every tool call with its duration."""

    @override
    async def on_call_tool(
        self,
        context: MiddlewareContext[CallToolRequestParams],
        call_next: CallNext[CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        name = context.message.name
        started = time.perf_counter()
        logger.info(f"Tool call started: {name}")
        try:
            result = await call_next(context)
        except Exception as exc:
            elapsed = time.perf_counter() - started
            logger.error(f"Tool call failed: {name} after {elapsed:.2f}s: {exc!r}")
            raise
        elapsed = time.perf_counter() - started
        logger.info(f"Tool call finished: {name} in {elapsed:.2f}s")
        return result
