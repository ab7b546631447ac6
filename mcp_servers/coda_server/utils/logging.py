import sys

from loguru import logger
from utils.config import Environment, get_settings


def setup_logger() -> None:
    # stdout carries MCP frames under the stdio transport; log to stderr.
    settings = get_settings()
    logger.remove()

    if settings.ENV == Environment.LOCAL:
        logger.add(
            sys.stderr,
            level=settings.LOG_LEVEL,
            backtrace=True,
            diagnose=True,
            colorize=True,
        )
    else:
        # Structured logger
        logger.add(
            sys.stderr,
            level=settings.LOG_LEVEL,
            backtrace=True,
            diagnose=False,
            serialize=True,
        )
