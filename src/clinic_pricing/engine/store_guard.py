"""Bounded store round trips that fail as StoreUnavailable."""
import asyncio
from typing import Awaitable, TypeVar

from ..errors import StoreUnavailable

T = TypeVar('T')


async def call_store(call: Awaitable[T], operation: str, timeout: float) -> T:
    """Await a store call, mapping timeouts and adapter errors to StoreUnavailable."""
    try:
        return await asyncio.wait_for(call, timeout)
    except StoreUnavailable:
        raise
    except asyncio.TimeoutError:
        raise StoreUnavailable(operation, f"timed out after {timeout}s")
    except Exception as e:
        raise StoreUnavailable(operation, f"{type(e).__name__}: {e}") from e
