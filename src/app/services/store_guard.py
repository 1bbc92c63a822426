"""
Bounded store access.

Runs a use-case body under a timeout and folds any infrastructure failure into
a generic INTERNAL_ERROR result. Full detail goes to the server log only.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from src.domain.errors import internal_error
from src.libs.result import Result, Return

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def guarded(operation: Awaitable[Result[T]], timeout: float, action: str) -> Result[T]:
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"{action} timed out after {timeout}s")
        return Return.err(internal_error())
    except Exception:
        logger.exception(f"{action} failed")
        return Return.err(internal_error())
