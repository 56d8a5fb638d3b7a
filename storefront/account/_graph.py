"""
Graph runner — sugar over nodnod.

Builds an agent for the target node, pushes the inputs into a scope by
their runtime type, runs, and returns the target's instance.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any, cast

from nodnod import EventLoopAgent, Node, Scope, Value
from nodnod import scalar_node as node


async def compose[T](target: type[T], *inputs: object) -> T:
    """
    One-shot composition.

    Example:
        history = await compose(OrderHistoryNode, AccountQuery(gateway, user_id))
    """
    agent = EventLoopAgent.build({cast(type[Node[Any, Any]], target)})
    scope = Scope(detail="account")

    async with scope:
        for value in inputs:
            scope.push(Value(cast(type[Any], type(value)), value))

        run = cast(
            Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]],
            getattr(agent, "run"),
        )
        await run(scope, {})

        found = scope.get(target)
        if found is None:
            raise KeyError(f"{target.__name__} not found in scope")
        return cast(T, found.value)


__all__ = ("node", "compose")
