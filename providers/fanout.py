"""
Fan-out - Concurrent provider slices that degrade to empty results.

A slice is one independent fetch (one chain, one token, one tier). Any
slice that raises or times out is logged and contributes ``[]``; the
other slices are unaffected.
"""

import asyncio
import logging
from typing import Any, Awaitable, Iterable, Mapping, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_slice(
    name: str,
    awaitable: Awaitable[list[T]],
    timeout: Optional[float] = None,
) -> list[T]:
    """Await one slice, converting failure into an empty list."""
    try:
        if timeout is not None:
            result = await asyncio.wait_for(awaitable, timeout=timeout)
        else:
            result = await awaitable
    except asyncio.TimeoutError:
        logger.warning(f"[FanOut] Slice '{name}' timed out after {timeout}s")
        return []
    except Exception as e:
        logger.warning(f"[FanOut] Slice '{name}' failed: {e}")
        return []

    return list(result or [])


async def gather_slices(
    slices: Mapping[str, Awaitable[list[T]]],
    timeout: Optional[float] = None,
) -> dict[str, list[T]]:
    """
    Run named slices concurrently.

    Args:
        slices: Slice name -> awaitable returning a list
        timeout: Per-slice budget in seconds

    Returns:
        Slice name -> results (empty for failed slices), in input order
    """
    tasks = {
        name: asyncio.create_task(run_slice(name, awaitable, timeout))
        for name, awaitable in slices.items()
    }

    results: dict[str, list[T]] = {}
    for name, task in tasks.items():
        results[name] = await task

    failed = [name for name, items in results.items() if not items]
    logger.debug(
        f"[FanOut] {len(results)} slices, "
        f"{sum(len(items) for items in results.values())} records, "
        f"{len(failed)} empty"
    )
    return results


def flatten(results: Iterable[list[Any]]) -> list[Any]:
    return [item for items in results for item in items]
