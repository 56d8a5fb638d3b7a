"""
Lift — helpers for lifting gateway calls into lazy results.

Re-exports from combinators.lift with storefront-specific additions.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

from kungfu import LazyCoroResult, Result

from combinators.lift import catching_async

from storefront._errors import GatewayError


def deferred[T, E](call: Callable[[], Awaitable[Result[T, E]]]) -> LazyCoroResult[T, E]:
    """
    Defer a Result-returning coroutine function.

    Nothing runs until the returned value is awaited.
    """
    async def _run() -> Result[T, E]:
        return await call()
    return LazyCoroResult(_run)


def guarded[T](
    operation: str,
    call: Callable[[], Awaitable[T]],
) -> LazyCoroResult[T, GatewayError]:
    """
    Run a raising backend call, mapping any exception to GatewayError.

    Example:
        rows = await guarded("list_orders", lambda: session.scalars(stmt))
    """
    return catching_async(
        call,
        on_error=lambda e: GatewayError(operation, str(e) or type(e).__name__, e),
    )


__all__ = (
    "catching_async",
    "deferred",
    "guarded",
)
