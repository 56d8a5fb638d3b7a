"""
Forward-only step chains.

Steps run strictly in sequence; each starts only after the previous
one returned Ok. The first Error stops the chain. Nothing is undone:
completed steps stay completed and are reported as such.

    chain = (
        Step("order", create_order)
        .then(lambda order: Step("lines", create_lines(order)))
        .then(lambda order: Step("clear", clear_cart(order)))
    )

    match await run_chain(chain):
        case Ok(done):
            print(done.value, done.trail)
        case Error(failure):
            print(f"{failure.step_failed} failed after {failure.completed}")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Step
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Step[T, E]:
    """A named action. No compensator."""

    name: str
    action: LazyCoroResult[T, E]

    def then[U, E2](self, f: Callable[[T], Step[U, E2]]) -> Chain:
        """Run the step produced by `f` after this one succeeds."""
        return Chain(self, (f,))


@dataclass(frozen=True, slots=True)
class Chain:
    """First step plus the continuations that build the following ones."""

    first: Step[Any, Any]
    rest: tuple[Callable[[Any], Step[Any, Any]], ...]

    def then(self, f: Callable[[Any], Step[Any, Any]]) -> Chain:
        return Chain(self.first, (*self.rest, f))

    def __len__(self) -> int:
        return 1 + len(self.rest)


# ═══════════════════════════════════════════════════════════════════════════════
# Result Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ChainResult[T]:
    value: T
    steps_executed: int
    trail: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class StepFailure[E]:
    """Which step failed and which ones had already completed."""

    error: E
    step_failed: str
    completed: tuple[str, ...]


# ═══════════════════════════════════════════════════════════════════════════════
# run_chain()
# ═══════════════════════════════════════════════════════════════════════════════


async def run_chain(
    chain: Chain | Step[Any, Any],
) -> Result[ChainResult[Any], StepFailure[Any]]:
    if isinstance(chain, Step):
        chain = Chain(chain, ())

    completed: list[str] = []
    step: Step[Any, Any] = chain.first
    continuations = iter(chain.rest)

    while True:
        result = await step.action
        match result:
            case Error(e):
                return Error(StepFailure(
                    error=e,
                    step_failed=step.name,
                    completed=tuple(completed),
                ))
            case Ok(value):
                completed.append(step.name)

        following = next(continuations, None)
        if following is None:
            return Ok(ChainResult(
                value=value,
                steps_executed=len(completed),
                trail=tuple(completed),
            ))
        step = following(value)


__all__ = (
    "Step",
    "Chain",
    "ChainResult",
    "StepFailure",
    "run_chain",
)
