"""
Interactive shell over a local database.

    python -m storefront

Every command goes through the same Storefront facade a UI would use:
catalog reads, cart mutations, checkout flow, account history.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from kungfu import Ok, Error
from sqlalchemy.ext.asyncio import AsyncEngine

from storefront._errors import ConsistencyGap
from storefront._log import configure_logging
from storefront._types import AddressDraft, CartLine, ProductId
from storefront.app import Storefront
from storefront.catalog import ProductQuery, SortOrder, gallery
from storefront.checkout import CheckoutFlow, CheckoutStep, PaymentDetails
from storefront.config import Settings
from storefront.gateway import SQLAlchemyGateway, create_database, seed_catalog
from storefront.pricing import discount_percent, format_money, line_total


# ═══════════════════════════════════════════════════════════════════════════════
# Help
# ═══════════════════════════════════════════════════════════════════════════════

HELP_TEXT = """
┌─────────────────────────────────────────────────────────────────────────────┐
│                              COMMANDS                                        │
├─────────────────────────────────────────────────────────────────────────────┤
│  products [search]          List products (optionally matching a name)      │
│  category <slug|all>        Filter the product list by category             │
│  sort <order>               featured | price-low | price-high | rating      │
│  product <id>               Product details and reviews                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  add <id> [qty]             Add a product to the cart                       │
│  cart                       Show the cart with totals                       │
│  qty <line#> <n>            Set a line's quantity (0 removes it)            │
│  remove <line#>             Remove a line                                   │
│  checkout                   Choose an address, pay, place the order         │
├─────────────────────────────────────────────────────────────────────────────┤
│  signup <email> <password>  Create an account                               │
│  signin <email> <password>  Sign in                                         │
│  signout                    Sign out                                        │
│  orders                     Order history                                   │
│  addresses                  Saved addresses                                 │
├─────────────────────────────────────────────────────────────────────────────┤
│  help                       Show this help                                  │
│  quit                       Exit                                            │
└─────────────────────────────────────────────────────────────────────────────┘
"""


def print_help() -> None:
    print(HELP_TEXT)


# ═══════════════════════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════════════════════


def parse_count(text: str, name: str = "quantity") -> int:
    """Parse a whole number, raising ValueError with a readable message."""
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"{name} must be a whole number, got {text!r}") from None


def pick_line(lines: Sequence[CartLine], ref: str) -> CartLine:
    """Resolve a 1-based line number as shown by `cart`."""
    index = parse_count(ref, "line number")
    if not 1 <= index <= len(lines):
        raise ValueError(f"no cart line #{index}")
    return lines[index - 1]


def parse_sort(text: str) -> SortOrder:
    try:
        return SortOrder(text.lower())
    except ValueError:
        options = ", ".join(s.value for s in SortOrder)
        raise ValueError(f"sort must be one of: {options}") from None


def ask(label: str) -> str:
    return input(f"  {label}: ").strip()


# ═══════════════════════════════════════════════════════════════════════════════
# Display
# ═══════════════════════════════════════════════════════════════════════════════


async def cmd_products(store: Storefront, sort: SortOrder) -> None:
    nav = store.navigator
    query = ProductQuery(search=nav.search, category=nav.category, sort=sort)
    result = await store.browse(query)

    match result:
        case Ok(products):
            print("\n┌────────────────────────────────────────────────────────────┐")
            print(f"│  PRODUCTS  category={nav.category:<12} search={nav.search!r:<18}│")
            print("├────────────────────────────────────────────────────────────┤")
            for p in products:
                off = discount_percent(p)
                badge = f"-{off}%" if off else ""
                stock = "sold out" if p.stock < 1 else f"{p.stock} left"
                print(f"│  [{p.id.value:10}] {p.name:22} {format_money(p.price):>9} {badge:>5} {stock:>8} │")
            if not products:
                print("│  (nothing matches)                                         │")
            print("└────────────────────────────────────────────────────────────┘")
        case Error(e):
            print(f"  ✗ Failed to load products: {e}")


async def cmd_product(store: Storefront, product_id: ProductId) -> None:
    match await store.product(product_id):
        case Ok(None):
            print(f"  ✗ No product {product_id.value}")
            return
        case Error(e):
            print(f"  ✗ {e}")
            return
        case Ok(product):
            pass

    assert product is not None
    print(f"\n  {product.name}  ({product.brand or 'no brand'})")
    print(f"  {format_money(product.price)}", end="")
    if product.original_price is not None and discount_percent(product):
        print(f"  was {format_money(product.original_price)} (-{discount_percent(product)}%)", end="")
    print(f"\n  Rating {product.rating:.1f} from {product.review_count} reviews, {product.stock} in stock")
    print(f"  {product.description}")
    for feature in product.features:
        print(f"    • {feature}")
    print(f"  Images: {len(gallery(product))}")

    match await store.reviews(product_id):
        case Ok(reviews):
            for review in reviews:
                check = " ✓" if review.verified_purchase else ""
                print(f"    {'★' * review.rating:5} {review.title}{check}")
                print(f"          {review.comment}")
        case Error(e):
            print(f"  ✗ Reviews unavailable: {e}")


def print_cart(store: Storefront) -> None:
    lines = store.cart.lines
    if not lines:
        print("\n  Your cart is empty.")
        return

    totals = store.breakdown().rounded()
    print("\n┌────────────────────────────────────────────────────────┐")
    print(f"│  CART  ({store.cart.count} items)                                      │")
    print("├────────────────────────────────────────────────────────┤")
    for n, line in enumerate(lines, start=1):
        name = line.product.name if line.product is not None else line.product_id.value
        print(f"│  {n:>2}. {line.quantity:>2}x {name:26} {format_money(line_total(line)):>12} │")
    print("├────────────────────────────────────────────────────────┤")
    print(f"│  Subtotal:  {format_money(totals.subtotal):>12}                               │")
    print(f"│  Shipping:  {'FREE' if totals.ships_free else format_money(totals.shipping):>12}                               │")
    print(f"│  Tax:       {format_money(totals.tax):>12}                               │")
    print("├────────────────────────────────────────────────────────┤")
    print(f"│  TOTAL:     {format_money(totals.total):>12}                               │")
    print("└────────────────────────────────────────────────────────┘")
    if totals.free_shipping_remaining:
        print(f"  Add {format_money(totals.free_shipping_remaining)} more for free shipping.")


async def cmd_orders(store: Storefront) -> None:
    match await store.order_history():
        case Ok(history):
            if not history:
                print("\n  No orders yet.")
            for entry in history:
                order = entry.order
                print(f"\n  Order {order.id.value}  {order.created_at:%Y-%m-%d %H:%M}  "
                      f"{order.status.value}  {format_money(order.total_amount)}")
                for line in entry.lines:
                    name = line.product.name if line.product is not None else line.product_id.value
                    print(f"    {line.quantity}x {name} @ {format_money(line.price)}")
        case Error(e):
            print(f"  ✗ {e}")


async def cmd_addresses(store: Storefront) -> None:
    match await store.address_book():
        case Ok(addresses):
            if not addresses:
                print("\n  No saved addresses.")
            for a in addresses:
                default = " (default)" if a.is_default else ""
                print(f"\n  {a.full_name}{default}")
                print(f"    {a.address_line1} {a.address_line2}".rstrip())
                print(f"    {a.city}, {a.state} {a.postal_code}, {a.country}")
        case Error(e):
            print(f"  ✗ {e}")


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout
# ═══════════════════════════════════════════════════════════════════════════════


def prompt_address() -> AddressDraft:
    print("\n  New shipping address")
    return AddressDraft(
        full_name=ask("Full name"),
        phone=ask("Phone"),
        address_line1=ask("Address line 1"),
        address_line2=ask("Address line 2 (optional)"),
        city=ask("City"),
        state=ask("State"),
        postal_code=ask("Postal code"),
    )


def prompt_payment() -> PaymentDetails:
    print("\n  Payment (demo only, nothing is charged)")
    return PaymentDetails(
        card_number=ask("Card number"),
        cardholder_name=ask("Name on card"),
        expiry=ask("Expiry MM/YY"),
        cvv=ask("CVV"),
    )


async def choose_address(flow: CheckoutFlow) -> bool:
    """Drive the address step until an address is selected. False to abort."""
    while True:
        if flow.step is CheckoutStep.ADDRESS_FORM:
            match await flow.save_address(prompt_address()):
                case Ok(address):
                    print(f"  ✓ Saved address for {address.full_name}")
                case Error(e):
                    print(f"  ✗ {e}")
                    if ask("Try again? [y/N]").lower() != "y":
                        return False
            continue

        for n, a in enumerate(flow.addresses, start=1):
            mark = "→" if a.id == flow.selected_address_id else " "
            print(f"  {mark} {n}. {a.full_name}, {a.address_line1}, {a.city}")
        choice = ask("Address # (Enter keeps selection, n for new, q to cancel)").lower()
        if choice == "q":
            return False
        if choice == "n":
            flow.open_address_form()
            continue
        if choice:
            try:
                index = parse_count(choice, "address number")
            except ValueError as e:
                print(f"  ✗ {e}")
                continue
            if 1 <= index <= len(flow.addresses):
                flow.select_address(flow.addresses[index - 1].id)
        match flow.continue_to_payment():
            case Ok(_):
                return True
            case Error(e):
                print(f"  ✗ {e}")


async def cmd_checkout(store: Storefront) -> None:
    match store.begin_checkout():
        case Error(e):
            print(f"  ✗ {e}")
            return
        case Ok(flow):
            pass

    match await flow.load_addresses():
        case Error(e):
            print(f"  ✗ Could not load addresses: {e}")
            return

    if not await choose_address(flow):
        cancel_checkout(store)
        return

    while True:
        print(f"\n  Total due: {format_money(flow.summary().total)}")
        match await flow.place_order(prompt_payment()):
            case Ok(order):
                delay = store.order_placed()
                print(f"\n  ✓ Order {order.id.value} placed, {format_money(order.total_amount)}.")
                if not flow.cart_cleared:
                    print("    Your cart still holds these items; remove them before shopping again.")
                print(f"    Returning to products in {delay:.0f}s...")
                await asyncio.sleep(delay)
                store.navigator.redirect_home()
                return
            case Error(ConsistencyGap() as gap):
                print(f"  ✗ Order {gap.order_id.value} was saved without its items; "
                      "it will be reconciled.")
            case Error(e):
                print(f"  ✗ {e}")

        if flow.step is CheckoutStep.FAILED:
            answer = ask("Retry payment (p), change address (a), or cancel (Enter)").lower()
            if answer == "p":
                flow.retry_payment()
            elif answer == "a":
                flow.change_address()
                if not await choose_address(flow):
                    cancel_checkout(store)
                    return
            else:
                cancel_checkout(store)
                return
        elif ask("Try again? [Y/n]").lower() == "n":
            cancel_checkout(store)
            return


def cancel_checkout(store: Storefront) -> None:
    print("  Checkout cancelled.")
    store.navigator.redirect_home()


# ═══════════════════════════════════════════════════════════════════════════════
# Main Loop
# ═══════════════════════════════════════════════════════════════════════════════

BANNER = """
╔════════════════════════════════════════════════════════════════════════════╗
║                               STOREFRONT                                    ║
╠════════════════════════════════════════════════════════════════════════════╣
║  Browse the catalog, fill a cart, check out. Sign up first to buy.          ║
╚════════════════════════════════════════════════════════════════════════════╝
"""


async def open_store(settings: Settings) -> tuple[Storefront, AsyncEngine]:
    """Create the schema, seed an empty catalog, return (store, engine)."""
    session_factory, engine = await create_database(settings.database_url)
    gateway = SQLAlchemyGateway(session_factory)

    match await gateway.list_categories():
        case Ok([]):
            match await seed_catalog(gateway):
                case Error(e):
                    print(f"  ✗ Seeding failed: {e}")
        case Error(e):
            print(f"  ✗ Database unavailable: {e}")

    store = Storefront(gateway, settings)
    await store.start()
    return store, engine


async def dispatch(store: Storefront, parts: list[str], sort: SortOrder) -> SortOrder:
    """Run one command. Returns the (possibly changed) sort order."""
    cmd = parts[0].lower()
    args = parts[1:]

    match cmd:
        case "help" | "h" | "?":
            print_help()

        case "products" | "ls":
            store.navigator.set_search(" ".join(args))
            await cmd_products(store, sort)

        case "category":
            if len(args) != 1:
                print("  Usage: category <slug|all>")
                return sort
            store.navigator.set_category(args[0].lower())
            await cmd_products(store, sort)

        case "sort":
            if len(args) != 1:
                print("  Usage: sort <featured|price-low|price-high|rating>")
                return sort
            sort = parse_sort(args[0])
            await cmd_products(store, sort)

        case "product":
            if len(args) != 1:
                print("  Usage: product <id>")
                return sort
            await cmd_product(store, ProductId(args[0]))

        case "add":
            if len(args) not in (1, 2):
                print("  Usage: add <id> [qty]")
                return sort
            if not store.session.is_signed_in:
                print("  ✗ Please sign in to add items to your cart")
                return sort
            qty = parse_count(args[1]) if len(args) == 2 else 1
            match await store.cart.add_line(ProductId(args[0]), qty):
                case Ok(line) if line is not None:
                    print(f"  ✓ {line.quantity}x in cart ({store.cart.count} items total)")
                case Ok(_):
                    print("  ✓ Cart updated")
                case Error(e):
                    print(f"  ✗ {e}")

        case "cart":
            print_cart(store)

        case "qty":
            if len(args) != 2:
                print("  Usage: qty <line#> <n>")
                return sort
            line = pick_line(store.cart.lines, args[0])
            match await store.cart.update_quantity(line.id, parse_count(args[1])):
                case Ok(_):
                    print_cart(store)
                case Error(e):
                    print(f"  ✗ {e}")

        case "remove" | "rm":
            if len(args) != 1:
                print("  Usage: remove <line#>")
                return sort
            line = pick_line(store.cart.lines, args[0])
            match await store.cart.remove_line(line.id):
                case Ok(_):
                    print_cart(store)
                case Error(e):
                    print(f"  ✗ {e}")

        case "checkout":
            await cmd_checkout(store)

        case "signup":
            if len(args) != 2:
                print("  Usage: signup <email> <password>")
                return sort
            match await store.sign_up(args[0], args[1]):
                case Ok(user):
                    print(f"  ✓ Account created for {user.email}. Sign in to continue.")
                case Error(e):
                    print(f"  ✗ {e}")

        case "signin" | "login":
            if len(args) != 2:
                print("  Usage: signin <email> <password>")
                return sort
            match await store.sign_in(args[0], args[1]):
                case Ok(user):
                    print(f"  ✓ Welcome back, {user.email} ({store.cart.count} items in cart)")
                case Error(e):
                    print(f"  ✗ {e}")

        case "signout" | "logout":
            match await store.sign_out():
                case Ok(_):
                    print("  ✓ Signed out")
                case Error(e):
                    print(f"  ✗ {e}")

        case "orders":
            await cmd_orders(store)

        case "addresses":
            await cmd_addresses(store)

        case _:
            print(f"  ✗ Unknown command: {cmd}")
            print("  Type 'help' for available commands.")

    return sort


async def run_cli(settings: Settings | None = None) -> None:
    settings = settings if settings is not None else Settings()
    configure_logging(settings)
    store, engine = await open_store(settings)
    sort = SortOrder.FEATURED

    print(BANNER)
    print_help()
    await cmd_products(store, sort)

    try:
        while True:
            try:
                line = input("\n> ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nBye!")
                break

            if not line:
                continue

            parts = line.split()
            if parts[0].lower() in ("quit", "exit", "q"):
                print("Bye!")
                break

            try:
                sort = await dispatch(store, parts, sort)
            except ValueError as e:
                print(f"  ✗ {e}")
    finally:
        await engine.dispose()


def main() -> None:
    asyncio.run(run_cli())


__all__ = (
    "HELP_TEXT",
    "parse_count",
    "parse_sort",
    "pick_line",
    "dispatch",
    "run_cli",
    "main",
)
