"""Undo-history bracket around a batch."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from boardmill.host.base import HostDocument
from boardmill.logging_config import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def history(host: HostDocument, name: str) -> AsyncIterator[Any]:
    """Collapse every change made inside the block into one undo step.

    History is resumed on the way out whether the block succeeds, fails or
    raises. A failure to resume is logged and does not mask the block's own
    exception.

    Example:
        async with history(host, "Generate artboards"):
            await host.duplicate(source)
    """
    token = await host.suspend_history(name)
    logger.debug("History suspended: %s", name)
    failed = False
    try:
        yield token
    except BaseException:
        failed = True
        raise
    finally:
        try:
            await host.resume_history(token)
            logger.debug("History resumed: %s", name)
        except Exception as e:
            if not failed:
                raise
            logger.error("Could not resume history '%s': %s", name, e)
