"""
Account — order history and address book for a signed-in user.

    match await order_history(gateway, user.id):
        case Ok(history):
            for entry in history:
                print(entry.order.id.value, entry.item_count)
"""

from storefront.account._nodes import (
    AccountQuery,
    OrderWithLines,
    AccountNode,
    OrdersNode,
    OrderLinesNode,
    AddressesNode,
    OrderHistoryNode,
    AddressBookNode,
    order_history,
    address_book,
)
from storefront.account._graph import compose

__all__ = (
    # Entry points
    "order_history",
    "address_book",
    # Types
    "AccountQuery",
    "OrderWithLines",
    # Nodes
    "AccountNode",
    "OrdersNode",
    "OrderLinesNode",
    "AddressesNode",
    "OrderHistoryNode",
    "AddressBookNode",
    "compose",
)
