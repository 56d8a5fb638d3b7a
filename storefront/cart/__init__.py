"""
Cart — the signed-in user's cart lines, reconciled with the gateway.

    from storefront.cart import CartStore

    cart = CartStore(gateway, session)
    await cart.add_line(product_id, 2)
    await cart.update_quantity(line_id, 0)   # removes the line
"""

from storefront.cart._store import CartStore, clamp_quantity

__all__ = (
    "CartStore",
    "clamp_quantity",
)
