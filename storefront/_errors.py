"""
Error values.

Operations return Result[T, E] with E drawn from here; none of these
are raised across a public operation boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront._types import OrderId


@dataclass(frozen=True, slots=True)
class ValidationError:
    """Malformed or missing input. The operation was not attempted."""

    message: str
    field: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class GatewayError:
    """A durable read or write failed. Not retried."""

    operation: str
    message: str
    cause: Exception | None = None

    def __str__(self) -> str:
        return f"{self.operation}: {self.message}"


@dataclass(frozen=True, slots=True)
class ConsistencyGap:
    """
    Order persisted, its lines did not.

    Left as is for out-of-band reconciliation.
    """

    order_id: OrderId
    message: str
    cause: GatewayError

    def __str__(self) -> str:
        return f"order {self.order_id.value}: {self.message}"


type CartError = ValidationError | GatewayError
type CheckoutError = ValidationError | GatewayError | ConsistencyGap


__all__ = (
    "ValidationError",
    "GatewayError",
    "ConsistencyGap",
    "CartError",
    "CheckoutError",
)
