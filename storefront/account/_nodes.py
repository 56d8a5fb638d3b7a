"""
Account nodes — order history and address book as a dependency graph.

    AccountNode ──▶ OrdersNode ──▶ OrderLinesNode ──▶ OrderHistoryNode
         │
         └────────▶ AddressesNode ──▶ AddressBookNode

Fetch nodes hold a Result; a failed fetch flows through to the view node
unchanged. Order lines are fetched for every order in parallel.
"""

from dataclasses import dataclass

from kungfu import Ok, Error, Result, LazyCoroResult

import combinators as C

from storefront._errors import GatewayError
from storefront._types import Address, Order, OrderId, OrderLine, UserId
from storefront.account._graph import node, compose
from storefront.gateway import Gateway
from storefront.lift import deferred

type OrderLines = dict[OrderId, tuple[OrderLine, ...]]


@dataclass(frozen=True, slots=True)
class AccountQuery:
    gateway: Gateway
    user_id: UserId


@dataclass(frozen=True, slots=True)
class OrderWithLines:
    order: Order
    lines: tuple[OrderLine, ...]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


# ═══════════════════════════════════════════════════════════════════════════════
# Input
# ═══════════════════════════════════════════════════════════════════════════════


@node
class AccountNode:
    """Entry point: wraps the query input."""

    def __init__(self, data: AccountQuery) -> None:
        self.data = data

    @classmethod
    def __compose__(cls, query: AccountQuery) -> "AccountNode":
        return cls(query)


# ═══════════════════════════════════════════════════════════════════════════════
# Fetch
# ═══════════════════════════════════════════════════════════════════════════════


@node
class OrdersNode:
    """Orders of the user, newest first."""

    def __init__(self, data: Result[list[Order], GatewayError]) -> None:
        self.data = data

    @classmethod
    async def __compose__(cls, account: AccountNode) -> "OrdersNode":
        return cls(await account.data.gateway.list_orders(account.data.user_id))


@node
class OrderLinesNode:
    """Lines of every order, fetched in parallel."""

    def __init__(self, data: Result[OrderLines, GatewayError]) -> None:
        self.data = data

    @classmethod
    async def __compose__(
        cls, account: AccountNode, orders: OrdersNode
    ) -> "OrderLinesNode":
        gateway = account.data.gateway

        def fetch(order: Order) -> LazyCoroResult[tuple[OrderId, tuple[OrderLine, ...]], GatewayError]:
            return deferred(
                lambda: gateway.list_order_lines(order.id)
            ).map(lambda lines: (order.id, tuple(lines)))

        match orders.data:
            case Ok(found):
                fetched = await C.traverse_par(found, fetch)()
            case Error(e):
                return cls(Error(e))

        match fetched:
            case Ok(pairs):
                return cls(Ok(dict(pairs)))
            case Error(e):
                return cls(Error(e))


@node
class AddressesNode:
    """Saved addresses, default first."""

    def __init__(self, data: Result[list[Address], GatewayError]) -> None:
        self.data = data

    @classmethod
    async def __compose__(cls, account: AccountNode) -> "AddressesNode":
        return cls(await account.data.gateway.list_addresses(account.data.user_id))


# ═══════════════════════════════════════════════════════════════════════════════
# Views
# ═══════════════════════════════════════════════════════════════════════════════


@node
class OrderHistoryNode:
    def __init__(self, data: Result[tuple[OrderWithLines, ...], GatewayError]) -> None:
        self.data = data

    @classmethod
    def __compose__(
        cls, orders: OrdersNode, lines: OrderLinesNode
    ) -> "OrderHistoryNode":
        match (orders.data, lines.data):
            case (Ok(found), Ok(by_order)):
                return cls(Ok(tuple(
                    OrderWithLines(order, by_order.get(order.id, ()))
                    for order in found
                )))
            case (Error(e), _) | (_, Error(e)):
                return cls(Error(e))

    @classmethod
    async def execute(
        cls, gateway: Gateway, user_id: UserId
    ) -> Result[tuple[OrderWithLines, ...], GatewayError]:
        result = await compose(cls, AccountQuery(gateway, user_id))
        return result.data


@node
class AddressBookNode:
    def __init__(self, data: Result[tuple[Address, ...], GatewayError]) -> None:
        self.data = data

    @classmethod
    def __compose__(cls, addresses: AddressesNode) -> "AddressBookNode":
        match addresses.data:
            case Ok(found):
                return cls(Ok(tuple(found)))
            case Error(e):
                return cls(Error(e))

    @classmethod
    async def execute(
        cls, gateway: Gateway, user_id: UserId
    ) -> Result[tuple[Address, ...], GatewayError]:
        result = await compose(cls, AccountQuery(gateway, user_id))
        return result.data


async def order_history(
    gateway: Gateway, user_id: UserId
) -> Result[tuple[OrderWithLines, ...], GatewayError]:
    """Orders newest first, each with its lines."""
    return await OrderHistoryNode.execute(gateway, user_id)


async def address_book(
    gateway: Gateway, user_id: UserId
) -> Result[tuple[Address, ...], GatewayError]:
    return await AddressBookNode.execute(gateway, user_id)


__all__ = (
    "AccountQuery",
    "OrderWithLines",
    "AccountNode",
    "OrdersNode",
    "OrderLinesNode",
    "AddressesNode",
    "OrderHistoryNode",
    "AddressBookNode",
    "order_history",
    "address_book",
)
