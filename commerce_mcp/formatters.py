"""Text formatting of commerce API resources.

Pure functions turning upstream JSON into display text for MCP clients.
Upstream records are partially populated (the ``fields`` query parameter
decides what comes back), so every lookup tolerates a missing key.
"""

from datetime import datetime
from typing import Any


def money(value: dict[str, Any] | None) -> str | None:
    """Return the upstream's preformatted amount, if any."""
    if not value:
        return None
    formatted = value.get("formattedValue")
    if formatted:
        return formatted
    if value.get("value") is not None:
        return f"{value['value']} {value.get('currencyIso', '')}".strip()
    return None


def format_date(raw: str | None) -> str | None:
    """Render an ISO timestamp as ``M/D/YYYY``; unparseable input is kept as-is."""
    if not raw:
        return None
    parsed = None
    for parse in (
        datetime.fromisoformat,
        lambda s: datetime.strptime(s, "%Y-%m-%dT%H:%M:%S%z"),
    ):
        try:
            parsed = parse(raw)
            break
        except ValueError:
            continue
    if parsed is None:
        return raw
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def _lines(*items: str | None) -> list[str]:
    return [item for item in items if item]


def address_lines(address: dict[str, Any]) -> list[str]:
    """Name, street, town and country lines of an address."""
    first, last = address.get("firstName"), address.get("lastName")
    town = address.get("town") or ""
    postal_code = address.get("postalCode")
    country = address.get("country") or {}
    return _lines(
        f"{first} {last}" if first and last else None,
        address.get("line1"),
        address.get("line2"),
        f"{town} {postal_code}".strip() if postal_code else town,
        country.get("name"),
    )


def _status(record: dict[str, Any]) -> str:
    return record.get("statusDisplay") or record.get("status") or "Unknown"


def _total(record: dict[str, Any], label: str = "Total") -> str | None:
    with_tax = money(record.get("totalPriceWithTax"))
    if with_tax:
        return f"{label} (incl. tax): {with_tax}"
    total = money(record.get("totalPrice"))
    return f"{label}: {total}" if total else None


def _named(record: dict[str, Any] | None, key: str = "code") -> str | None:
    if not record:
        return None
    return f"{record.get('name')} ({record.get(key)})"


# ============================================================================
# Products
# ============================================================================


def format_product(product: dict[str, Any]) -> str:
    stock = product.get("stock")
    price = money(product.get("price"))
    sections = _lines(
        f"**{product.get('name', 'Product')}** ({product.get('code', 'N/A')})",
        f"Description: {product['description']}" if product.get("description") else None,
        f"Price: {price}" if price else None,
        f"Stock: {stock.get('stockLevel')} ({stock.get('stockLevelStatus')})" if stock else None,
        f"URL: {product['url']}" if product.get("url") else None,
    )
    return "\n".join(sections) + "\n---"


def format_product_search(
    data: dict[str, Any],
    base_site_id: str,
    query: str | None,
) -> str:
    """Render a product search page, including the empty case."""
    products = data.get("products") or []
    if not products:
        if query:
            return f'No products found for query "{query}" in base site "{base_site_id}"'
        return f'No products found in base site "{base_site_id}"'

    summary = (
        f'Product search results for "{query}" in {base_site_id}:'
        if query
        else f"Product listing for {base_site_id}:"
    )
    pagination = data.get("pagination")
    if pagination:
        summary += (
            f"\n\nShowing page {pagination.get('currentPage', 0) + 1} of "
            f"{pagination.get('totalPages', 1)} "
            f"({pagination.get('totalResults', len(products))} total results)"
        )
    return f"{summary}\n\n" + "\n".join(format_product(p) for p in products)


def format_base_sites(sites: list[dict[str, Any]]) -> str:
    lines = [f"- **{site.get('uid')}**: {site.get('name') or site.get('uid')}" for site in sites]
    return "Available base sites:\n\n" + "\n".join(lines)


# ============================================================================
# Orders
# ============================================================================


def format_order_history(order: dict[str, Any]) -> str:
    placed = format_date(order.get("placed"))
    total = money(order.get("total"))
    org_unit = order.get("orgUnit")
    sections = _lines(
        f"**Order {order.get('code')}**",
        f"Status: {_status(order)}",
        f"Placed: {placed}" if placed else None,
        f"Total: {total}" if total else None,
        f"PO Number: {order['purchaseOrderNumber']}" if order.get("purchaseOrderNumber") else None,
        f"Cost Center: {_named(order.get('costCenter'))}" if order.get("costCenter") else None,
        f"Organization: {org_unit.get('name')}" if org_unit else None,
    )
    return "\n".join(sections) + "\n---"


def format_order_list(
    data: dict[str, Any],
    user_id: str,
    base_site_id: str,
) -> str:
    orders = data.get("orders") or []
    if not orders:
        return f'No orders found for user "{user_id}" in base site "{base_site_id}"'
    summary = (
        f"Order history for {user_id} in {base_site_id} "
        f"({len(orders)} most recent orders):"
    )
    pagination = data.get("pagination")
    if pagination:
        summary += (
            f"\n\nShowing {len(orders)} of "
            f"{pagination.get('totalResults', len(orders))} total orders"
        )
    return f"{summary}\n\n" + "\n".join(format_order_history(o) for o in orders)


def format_order_details(order: dict[str, Any]) -> str:
    placed = format_date(order.get("placed"))
    sections = _lines(
        f"**Order {order.get('code')}**",
        f"Status: {_status(order)}",
        f"Placed: {placed}" if placed else None,
    )
    sections.append("")
    sections.append("**Pricing:**")
    for label, key in (
        ("Subtotal", "subTotal"),
        ("Delivery", "deliveryCost"),
        ("Tax", "totalTax"),
    ):
        amount = money(order.get(key))
        if amount:
            sections.append(f"{label}: {amount}")
    total = _total(order)
    if total:
        sections.append(total)
    sections.append("")

    delivery_mode = order.get("deliveryMode")
    if delivery_mode:
        sections.append("**Delivery:**")
        sections.append(f"Mode: {delivery_mode.get('name')}")
        if order.get("deliveryAddress"):
            sections.append(f"Address: {', '.join(address_lines(order['deliveryAddress']))}")
        sections.append("")

    org_unit = order.get("orgUnit")
    business = _lines(
        f"PO Number: {order['purchaseOrderNumber']}" if order.get("purchaseOrderNumber") else None,
        f"Cost Center: {_named(order.get('costCenter'))}" if order.get("costCenter") else None,
        f"Organization: {org_unit.get('name')}" if org_unit else None,
    )
    if business:
        sections.append("**Business Info:**")
        sections.extend(business)
        sections.append("")

    entries = order.get("entries") or []
    if entries:
        sections.append("**Items:**")
        for index, entry in enumerate(entries):
            product = entry.get("product") or {}
            price = money(entry.get("totalPrice"))
            mode = entry.get("deliveryMode")
            sections.extend(
                _lines(
                    f"{index + 1}. {product.get('name') or 'Product'} ({product.get('code') or 'N/A'})",
                    f"   Quantity: {entry.get('quantity')}",
                    f"   Price: {price}" if price else None,
                    f"   Delivery: {mode.get('name')}" if mode else None,
                )
            )

    return "\n".join(sections)


def format_placed_order(order: dict[str, Any]) -> str:
    text = "**ORDER PLACED SUCCESSFULLY!**\n\n"
    text += f"**Order Number:** {order.get('code')}\n"
    text += f"**Order Status:** {_status(order)}\n"
    total = money(order.get("totalPriceWithTax")) or money(order.get("totalPrice"))
    if total:
        text += f"**Total Amount:** {total}\n"
    return text + f"\n{format_order_details(order)}"


def format_b2b_order(order: dict[str, Any]) -> str:
    created = format_date(order.get("created"))
    total = money(order.get("totalPriceWithTax"))
    org_unit = order.get("orgUnit")
    customer = order.get("orgCustomer")
    return "\n".join(
        _lines(
            "**B2B Order Placed Successfully**",
            f"Order Code: {order.get('code')}",
            f"Status: {order['status']}" if order.get("status") else None,
            f"Created: {created}" if created else None,
            f"Total: {total}" if total else None,
            f"Cost Center: {_named(order.get('costCenter'))}" if order.get("costCenter") else None,
            f"Organization Unit: {org_unit.get('name')}" if org_unit else None,
            f"Customer: {_named(customer, 'uid')}" if customer else None,
            f"PO Number: {order['purchaseOrderNumber']}" if order.get("purchaseOrderNumber") else None,
            f"Quote Code: {order['sapQuoteCode']}" if order.get("sapQuoteCode") else None,
        )
    )


# ============================================================================
# Carts
# ============================================================================


def _pickup(entry: dict[str, Any]) -> str | None:
    store = entry.get("deliveryPointOfService")
    if not store:
        return None
    return store.get("displayName") or store.get("name")


def format_cart_entry(entry: dict[str, Any], index: int) -> str:
    product = entry.get("product") or {}
    base_price = money(entry.get("basePrice"))
    total = money(entry.get("totalPrice"))
    mode = entry.get("deliveryMode")
    pickup = _pickup(entry)
    return "\n".join(
        _lines(
            f"{index + 1}. **{product.get('name') or 'Product'}** ({product.get('code') or 'N/A'})",
            f"   Quantity: {entry.get('quantity')}",
            f"   Unit Price: {base_price}" if base_price else None,
            f"   Total: {total}" if total else None,
            f"   Delivery: {mode.get('name')}" if mode else None,
            f"   Pickup: {pickup}" if pickup else None,
        )
    )


def format_cart(cart: dict[str, Any]) -> str:
    user = cart.get("user")
    sections = _lines(
        f"**Cart {cart.get('code')}**",
        f"Customer: {user.get('name')} ({user.get('uid')})" if user else None,
    )
    sections.append("")
    sections.append("**Summary:**")
    if cart.get("totalItems"):
        sections.append(f"Total Items: {cart['totalItems']}")
    if cart.get("totalUnitCount"):
        sections.append(f"Total Units: {cart['totalUnitCount']}")
    for label, key in (
        ("Subtotal", "subTotal"),
        ("Delivery", "deliveryCost"),
        ("Tax", "totalTax"),
    ):
        amount = money(cart.get(key))
        if amount:
            sections.append(f"{label}: {amount}")
    total = _total(cart)
    if total:
        sections.append(total)
    sections.append("")

    mode = cart.get("deliveryMode")
    if mode:
        sections.append("**Delivery Method:**")
        description = f" - {mode['description']}" if mode.get("description") else ""
        sections.append(f"{mode.get('name')}{description}")
        cost = money(mode.get("deliveryCost"))
        if cost:
            sections.append(f"Cost: {cost}")
        sections.append("")

    address = cart.get("deliveryAddress")
    if address:
        sections.append("**Delivery Address:**")
        sections.append(", ".join(address_lines(address)))
        if address.get("phone"):
            sections.append(f"Phone: {address['phone']}")
        sections.append("")

    payment = cart.get("paymentInfo")
    if payment:
        sections.append("**Payment Method:**")
        card_type = payment.get("cardType")
        if card_type and payment.get("cardNumber"):
            sections.append(f"{card_type.get('name')} ending in {payment['cardNumber'][-4:]}")
        if payment.get("accountHolderName"):
            sections.append(f"Cardholder: {payment['accountHolderName']}")
        if payment.get("expiryMonth") and payment.get("expiryYear"):
            sections.append(f"Expires: {payment['expiryMonth']}/{payment['expiryYear']}")
        sections.append("")

    business = _lines(
        f"PO Number: {cart['purchaseOrderNumber']}" if cart.get("purchaseOrderNumber") else None,
        f"Cost Center: {_named(cart.get('costCenter'))}" if cart.get("costCenter") else None,
    )
    if business:
        sections.append("**Business Info:**")
        sections.extend(business)
        sections.append("")

    entries = cart.get("entries") or []
    if entries:
        sections.append("**Items:**")
        sections.extend(format_cart_entry(entry, i) for i, entry in enumerate(entries))
        sections.append("")

    promotions = cart.get("appliedOrderPromotions") or []
    if promotions:
        sections.append("**Applied Promotions:**")
        for promo in promotions:
            details = promo.get("promotion") or {}
            title = details.get("title") or details.get("code") or "Promotion"
            sections.append(f"- {title}: {promo.get('description') or 'Discount applied'}")
        sections.append("")

    vouchers = cart.get("appliedVouchers") or []
    if vouchers:
        sections.append("**Applied Vouchers:**")
        for voucher in vouchers:
            value = ""
            if voucher.get("value"):
                currency = (voucher.get("currency") or {}).get("isocode", "")
                value = f" ({currency} {voucher['value']})"
            sections.append(f"- {voucher.get('name') or voucher.get('code')}{value}")
        sections.append("")

    messages = cart.get("_messages") or []
    if messages:
        sections.append("**Messages:**")
        for message in messages:
            sections.append(f"- {str(message.get('type', 'info')).upper()}: {message.get('message')}")

    return "\n".join(sections)


def format_b2b_cart(cart: dict[str, Any]) -> str:
    total = money(cart.get("totalPriceWithTax"))
    customer = cart.get("orgCustomer") or {}
    org_unit = customer.get("orgUnit")
    payment_type = cart.get("paymentType")
    created = format_date(cart.get("created"))
    sections = _lines(
        f"**B2B Cart {cart.get('code')}**",
        f"Name: {cart['name']}" if cart.get("name") else None,
        f"Total: {total}" if total else None,
        f"Items: {cart['totalItems']}" if cart.get("totalItems") else None,
        f"Cost Center: {_named(cart.get('costCenter'))}" if cart.get("costCenter") else None,
        f"Organization User: {_named(customer, 'uid')}" if customer else None,
        f"Organization Unit: {org_unit.get('name')}" if org_unit else None,
        f"Payment Type: {payment_type.get('displayName')}" if payment_type else None,
        f"PO Number: {cart['purchaseOrderNumber']}" if cart.get("purchaseOrderNumber") else None,
        f"Created: {created}" if created else None,
    )
    entries = cart.get("entries") or []
    if entries:
        sections.extend(["", "**Cart Items:**"])
        sections.extend(format_cart_entry(entry, i) for i, entry in enumerate(entries))
    return "\n".join(sections)


def format_modification_status(modification: dict[str, Any]) -> str:
    """Trailing status line for non-success cart modifications."""
    status_code = modification.get("statusCode")
    if not status_code or status_code == "success":
        return ""
    text = f"\n**Status:** {status_code}"
    if modification.get("statusMessage"):
        text += f" - {modification['statusMessage']}"
    return text


# ============================================================================
# Delivery
# ============================================================================


def format_delivery_modes(modes: list[dict[str, Any]]) -> str:
    if not modes:
        return "No delivery modes available for this cart."
    text = "Available delivery modes:\n\n"
    for index, mode in enumerate(modes):
        text += f"{index + 1}. **{mode.get('name')}** ({mode.get('code')})\n"
        if mode.get("description"):
            text += f"   {mode['description']}\n"
        cost = money(mode.get("deliveryCost"))
        if cost:
            text += f"   Cost: {cost}\n"
        text += "\n"
    return text


def format_delivery_address(address: dict[str, Any]) -> str:
    text = "Delivery address set successfully!\n\n"
    text += "**Address:**\n" + "\n".join(address_lines(address))
    if address.get("phone"):
        text += f"\n**Phone:** {address['phone']}"
    return text
