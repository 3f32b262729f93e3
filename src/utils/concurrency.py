"""Shared concurrency primitives for the provider fan-out.

Provides :func:`gather_named`, the fan-out/join helper the search service
uses to query every upstream provider at once.  It differs from a bare
``asyncio.gather`` in three ways:

1. **Named results** -- awaitables are passed as a ``{name: awaitable}``
   mapping and results come back under the same keys, in the same order,
   so provider-to-result association is never positional.
2. **Failures are collected, not raised** -- an exception from one
   awaitable is returned in place of its result and never cancels the
   siblings.  The caller decides whether a partial set is acceptable.
3. **Bounded wall time** -- with a ``timeout``, awaitables still running
   when it elapses are cancelled and reported as :class:`TimeoutError`.

If the *caller* is cancelled while waiting, every in-flight task is
cancelled before the ``CancelledError`` propagates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from typing import TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def gather_named(
    coros: Mapping[str, Awaitable[_T]],
    timeout: float | None = None,
) -> dict[str, _T | BaseException]:
    """Run named awaitables concurrently and join on all of them.

    Parameters
    ----------
    coros:
        Mapping of name to awaitable.  All are scheduled immediately.
    timeout:
        Optional wall-clock limit in seconds for the whole batch.

    Returns
    -------
    dict[str, _T | BaseException]
        One entry per input name, in input order.  Failed awaitables map
        to the exception they raised; timed-out ones to ``TimeoutError``.
    """
    if not coros:
        return {}

    tasks = {name: asyncio.ensure_future(coro) for name, coro in coros.items()}
    pending: set[asyncio.Future] = set()
    try:
        _done, pending = await asyncio.wait(tasks.values(), timeout=timeout)
    finally:
        # Either the timeout elapsed or the caller was cancelled.
        for task in tasks.values():
            if not task.done():
                task.cancel()

    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        _logger.warning(
            "gather_timeout",
            timeout=timeout,
            timed_out=[name for name, task in tasks.items() if task in pending],
        )

    results: dict[str, _T | BaseException] = {}
    for name, task in tasks.items():
        if task in pending:
            results[name] = TimeoutError(f"{name} did not finish within {timeout}s")
        elif task.cancelled():
            results[name] = asyncio.CancelledError()
        elif task.exception() is not None:
            results[name] = task.exception()
        else:
            results[name] = task.result()
    return results
