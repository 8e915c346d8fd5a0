"""MCP Tools for the commerce API.

Each tool is a thin adapter: one (sometimes two) upstream calls plus text
shaping of the JSON result. Argument validation and the credential check
happen in the registry before a handler runs, so handlers only implement
the upstream call and the success path.
"""

from typing import Any

import structlog

from commerce_mcp import formatters
from commerce_mcp.api_client import CommerceAPIClient
from commerce_mcp.context import ExecutionContext
from commerce_mcp.envelope import error_result
from commerce_mcp.exceptions import EmptyResponseError
from commerce_mcp.registry import ToolDescriptor, ToolRegistry
from commerce_mcp.schemas import (
    AddToCartInput,
    B2BAddToCartInput,
    B2BGetCartInput,
    B2BPlaceOrderInput,
    B2BUpdateCartEntryInput,
    GetBaseSitesInput,
    GetCartInput,
    GetDeliveryModesInput,
    OrderDetailsInput,
    OrderHistoryInput,
    PlaceOrderInput,
    ProductSearchInput,
    SetDeliveryAddressInput,
    SetDeliveryModeInput,
    UpdateCartEntryInput,
)

logger = structlog.get_logger()

MAX_ORDER_HISTORY = 5


def require(data: Any, message: str) -> Any:
    """Return upstream data, or fail the call when there is none."""
    if data is None:
        raise EmptyResponseError(message)
    return data


class CommerceTools:
    """Handlers for every commerce MCP tool."""

    def __init__(self, api_client: CommerceAPIClient) -> None:
        """Initialize tools.

        Args:
            api_client: Commerce API client.
        """
        self.api = api_client

    # =========================================================================
    # Catalog
    # =========================================================================

    async def product_search(self, args: ProductSearchInput, ctx: ExecutionContext) -> str:
        data = require(
            await self.api.search_products(
                ctx.credential,
                args.base_site_id,
                query=args.query,
                page_size=args.page_size,
                current_page=args.current_page,
                fields=args.response_fields,
            ),
            "Failed to retrieve product search data from Commerce API",
        )
        return formatters.format_product_search(data, args.base_site_id, args.query)

    async def get_base_sites(self, args: GetBaseSitesInput, ctx: ExecutionContext) -> Any:
        data = await self.api.get_base_sites(ctx.credential, fields=args.response_fields)
        sites = (data or {}).get("baseSites")
        if sites is None:
            return error_result("No base sites found or failed to retrieve base sites")
        return formatters.format_base_sites(sites)

    # =========================================================================
    # Orders
    # =========================================================================

    async def order_history(self, args: OrderHistoryInput, ctx: ExecutionContext) -> str:
        data = require(
            await self.api.get_orders(
                ctx.credential,
                args.base_site_id,
                args.user_id,
                page_size=min(args.page_size, MAX_ORDER_HISTORY),
                statuses=args.statuses,
                fields=args.response_fields,
            ),
            "Failed to retrieve order history from Commerce API",
        )
        return formatters.format_order_list(data, args.user_id, args.base_site_id)

    async def order_details(self, args: OrderDetailsInput, ctx: ExecutionContext) -> str:
        order = require(
            await self.api.get_order(
                ctx.credential,
                args.base_site_id,
                args.user_id,
                args.order_code,
                fields=args.response_fields,
            ),
            f'Failed to retrieve order details for order "{args.order_code}" from Commerce API',
        )
        return (
            f"Order details for {args.order_code}:\n\n"
            f"{formatters.format_order_details(order)}"
        )

    async def place_order(self, args: PlaceOrderInput, ctx: ExecutionContext) -> Any:
        if not args.terms_checked:
            return error_result(
                "Error: Terms and conditions must be accepted before placing an order."
            )
        order = require(
            await self.api.place_order(
                ctx.credential,
                args.base_site_id,
                args.user_id,
                cart_id=args.cart_id,
                terms_checked=args.terms_checked,
                security_code=args.security_code,
                fields=args.response_fields,
            ),
            "Failed to place order via Commerce API",
        )
        logger.info("Order placed", order_code=order.get("code"))
        return formatters.format_placed_order(order)

    # =========================================================================
    # Cart
    # =========================================================================

    async def add_to_cart(self, args: AddToCartInput, ctx: ExecutionContext) -> str:
        modification = require(
            await self.api.add_cart_entry(
                ctx.credential,
                args.base_site_id,
                args.user_id,
                args.product_code,
                quantity=args.quantity,
                pickup_store=args.pickup_store,
                fields=args.response_fields,
            ),
            "Failed to add product to cart via Commerce API",
        )
        text = "Product added to cart successfully!\n\n"
        entry = modification.get("entry")
        if entry:
            product = entry.get("product") or {}
            text += f"**Product:** {product.get('name') or args.product_code}\n"
            text += f"**Quantity Added:** {modification.get('quantityAdded') or args.quantity}\n"
            line_total = formatters.money(entry.get("totalPrice"))
            if line_total:
                text += f"**Line Total:** {line_total}\n"
            store = entry.get("deliveryPointOfService")
            if args.pickup_store and store:
                text += f"**Pickup Store:** {store.get('displayName') or store.get('name')}\n"
        return text + formatters.format_modification_status(modification)

    async def get_cart(self, args: GetCartInput, ctx: ExecutionContext) -> str:
        cart = require(
            await self.api.get_cart(
                ctx.credential,
                args.base_site_id,
                args.user_id,
                cart_id=args.cart_id,
                fields=args.response_fields,
            ),
            f'Failed to retrieve cart "{args.cart_id}" from Commerce API',
        )
        return f"Cart details:\n\n{formatters.format_cart(cart)}"

    async def update_cart_entry(
        self, args: UpdateCartEntryInput, ctx: ExecutionContext
    ) -> str:
        removing = args.quantity == 0
        if removing:
            modification = await self.api.delete_cart_entry(
                ctx.credential,
                args.base_site_id,
                args.user_id,
                args.entry_number,
                cart_id=args.cart_id,
                fields=args.response_fields,
            )
            text = "Cart entry removed successfully!\n\n"
        else:
            modification = require(
                await self.api.update_cart_entry(
                    ctx.credential,
                    args.base_site_id,
                    args.user_id,
                    args.entry_number,
                    args.quantity,
                    cart_id=args.cart_id,
                    fields=args.response_fields,
                ),
                "Failed to update cart entry via Commerce API",
            )
            text = "Cart entry updated successfully!\n\n"

        modification = modification or {}
        entry = modification.get("entry")
        if entry:
            product = entry.get("product") or {}
            text += f"**Product:** {product.get('name') or 'Product'}\n"
            if not removing:
                text += f"**New Quantity:** {modification.get('quantity') or args.quantity}\n"
                line_total = formatters.money(entry.get("totalPrice"))
                if line_total:
                    text += f"**Line Total:** {line_total}\n"
        return text + formatters.format_modification_status(modification)

    async def set_delivery_address(
        self, args: SetDeliveryAddressInput, ctx: ExecutionContext
    ) -> Any:
        if args.address_id:
            body: dict[str, Any] = {"addressId": args.address_id}
        else:
            required = (
                args.first_name,
                args.last_name,
                args.line1,
                args.town,
                args.country_isocode,
            )
            if not all(required):
                return error_result(
                    "Error: When not using an existing addressId, firstName, lastName, "
                    "line1, town, and countryIsocode are required."
                )
            body = {
                "firstName": args.first_name,
                "lastName": args.last_name,
                "line1": args.line1,
                "town": args.town,
                "country": {"isocode": args.country_isocode},
            }
            if args.line2:
                body["line2"] = args.line2
            if args.postal_code:
                body["postalCode"] = args.postal_code
            if args.region_isocode:
                body["region"] = {"isocode": args.region_isocode}
            if args.phone:
                body["phone"] = args.phone

        address = await self.api.set_delivery_address(
            ctx.credential,
            args.base_site_id,
            args.user_id,
            body,
            cart_id=args.cart_id,
        )
        if not address:
            # Some API versions answer 200 with no body; echo what was sent.
            if args.address_id:
                return (
                    "Delivery address set successfully!\n\n"
                    f"**Address ID:** {args.address_id}"
                )
            address = body
        return formatters.format_delivery_address(address)

    async def set_delivery_mode(
        self, args: SetDeliveryModeInput, ctx: ExecutionContext
    ) -> str:
        await self.api.set_delivery_mode(
            ctx.credential,
            args.base_site_id,
            args.user_id,
            args.delivery_mode_id,
            cart_id=args.cart_id,
        )
        return (
            "Delivery mode set successfully!\n\n"
            f"**Delivery Mode:** {args.delivery_mode_id}"
        )

    async def get_delivery_modes(
        self, args: GetDeliveryModesInput, ctx: ExecutionContext
    ) -> str:
        data = require(
            await self.api.get_delivery_modes(
                ctx.credential,
                args.base_site_id,
                args.user_id,
                cart_id=args.cart_id,
            ),
            "Failed to retrieve delivery modes from Commerce API",
        )
        return formatters.format_delivery_modes(data.get("deliveryModes") or [])

    # =========================================================================
    # B2B
    # =========================================================================

    async def b2b_add_to_cart(self, args: B2BAddToCartInput, ctx: ExecutionContext) -> str:
        entry = require(
            await self.api.b2b_add_cart_entry(
                ctx.credential,
                args.base_site_id,
                args.org_user_id,
                args.product_code,
                quantity=args.quantity,
                pickup_store=args.pickup_store,
                fields=args.response_fields,
                cart_id=args.cart_id,
            ),
            "Failed to add product to B2B cart. The API returned no data.",
        )
        product = entry.get("product") or {}
        total = formatters.money(entry.get("totalPrice"))
        store = entry.get("deliveryPointOfService")
        lines = [
            "**Product Added to B2B Cart**",
            f"Product: {product.get('name') or args.product_code}",
            f"Quantity: {entry.get('quantity')}",
            f"Entry Number: {entry.get('entryNumber')}",
        ]
        if total:
            lines.append(f"Total Price: {total}")
        if store:
            lines.append(f"Pickup Store: {store.get('displayName') or store.get('name')}")
        return "\n".join(lines)

    async def b2b_get_cart(self, args: B2BGetCartInput, ctx: ExecutionContext) -> str:
        cart = require(
            await self.api.b2b_get_cart(
                ctx.credential,
                args.base_site_id,
                args.org_user_id,
                cart_id=args.cart_id,
                fields=args.response_fields,
            ),
            "Failed to retrieve B2B cart. The cart may not exist or you may not have access.",
        )
        return f"B2B Cart details:\n\n{formatters.format_b2b_cart(cart)}"

    async def b2b_update_cart_entry(
        self, args: B2BUpdateCartEntryInput, ctx: ExecutionContext
    ) -> str:
        if args.quantity == 0:
            await self.api.b2b_delete_cart_entry(
                ctx.credential,
                args.base_site_id,
                args.org_user_id,
                args.entry_number,
                cart_id=args.cart_id,
                fields=args.response_fields,
            )
            return f"Entry {args.entry_number} has been removed from the B2B cart."

        entry = require(
            await self.api.b2b_update_cart_entry(
                ctx.credential,
                args.base_site_id,
                args.org_user_id,
                args.entry_number,
                args.quantity,
                cart_id=args.cart_id,
                fields=args.response_fields,
            ),
            "Failed to update B2B cart entry. The API returned no data.",
        )
        product = entry.get("product") or {}
        total = formatters.money(entry.get("totalPrice"))
        lines = [
            "**B2B Cart Entry Updated**",
            f"Product: {product.get('name') or 'N/A'}",
            f"Entry Number: {entry.get('entryNumber')}",
            f"New Quantity: {entry.get('quantity')}",
        ]
        if total:
            lines.append(f"Total Price: {total}")
        return "\n".join(lines)

    async def b2b_place_order(self, args: B2BPlaceOrderInput, ctx: ExecutionContext) -> str:
        order = require(
            await self.api.b2b_place_order(
                ctx.credential,
                args.base_site_id,
                args.org_user_id,
                cart_id=args.cart_id,
                purchase_order_number=args.purchase_order_number,
                terms_checked=args.terms_checked,
                fields=args.response_fields,
            ),
            "Failed to place B2B order. The API returned no data.",
        )
        logger.info("B2B order placed", order_code=order.get("code"))
        return formatters.format_b2b_order(order)

    # =========================================================================
    # Registration
    # =========================================================================

    def descriptors(self) -> list[ToolDescriptor]:
        """Describe every tool, in catalog order."""
        return [
            ToolDescriptor(
                name="product-search",
                description="Search for products in the commerce catalog",
                input_model=ProductSearchInput,
                handler=self.product_search,
                failure_prefix="Error searching products",
            ),
            ToolDescriptor(
                name="get-base-sites",
                description="Get available base sites",
                input_model=GetBaseSitesInput,
                handler=self.get_base_sites,
                failure_prefix="Error retrieving base sites",
            ),
            ToolDescriptor(
                name="order-history",
                description=(
                    "Get user's order history "
                    f"(limited to {MAX_ORDER_HISTORY} most recent orders)"
                ),
                input_model=OrderHistoryInput,
                handler=self.order_history,
                failure_prefix="Error retrieving order history",
            ),
            ToolDescriptor(
                name="order-details",
                description=(
                    "Get detailed information about a specific order. The user will "
                    "provide the order code, also known as order number or order id."
                ),
                input_model=OrderDetailsInput,
                handler=self.order_details,
                failure_prefix="Error retrieving order details",
            ),
            ToolDescriptor(
                name="add-to-cart",
                description="Add a product to the user's shopping cart",
                input_model=AddToCartInput,
                handler=self.add_to_cart,
                failure_prefix="Error adding product to cart",
            ),
            ToolDescriptor(
                name="get-cart",
                description="Get the current shopping cart details",
                input_model=GetCartInput,
                handler=self.get_cart,
                failure_prefix="Error retrieving cart",
            ),
            ToolDescriptor(
                name="update-cart-entry",
                description=(
                    "Update the quantity of a product in the user's cart "
                    "or remove it entirely"
                ),
                input_model=UpdateCartEntryInput,
                handler=self.update_cart_entry,
                failure_prefix="Error updating cart entry",
            ),
            ToolDescriptor(
                name="set-delivery-address",
                description="Set the delivery address for the user's cart",
                input_model=SetDeliveryAddressInput,
                handler=self.set_delivery_address,
                failure_prefix="Error setting delivery address",
            ),
            ToolDescriptor(
                name="set-delivery-mode",
                description="Set the delivery mode for the user's cart",
                input_model=SetDeliveryModeInput,
                handler=self.set_delivery_mode,
                failure_prefix="Error setting delivery mode",
            ),
            ToolDescriptor(
                name="get-delivery-modes",
                description="Get available delivery modes for the user's cart",
                input_model=GetDeliveryModesInput,
                handler=self.get_delivery_modes,
                failure_prefix="Error retrieving delivery modes",
            ),
            ToolDescriptor(
                name="place-order",
                description="Place an order from the user's current cart",
                input_model=PlaceOrderInput,
                handler=self.place_order,
                failure_prefix="Error placing order",
            ),
            ToolDescriptor(
                name="b2b-add-to-cart",
                description="Add a product to an organization user's B2B cart",
                input_model=B2BAddToCartInput,
                handler=self.b2b_add_to_cart,
                failure_prefix="Error adding product to B2B cart",
            ),
            ToolDescriptor(
                name="b2b-get-cart",
                description="Get organization user's current B2B cart details",
                input_model=B2BGetCartInput,
                handler=self.b2b_get_cart,
                failure_prefix="Error retrieving B2B cart",
            ),
            ToolDescriptor(
                name="b2b-update-cart-entry",
                description=(
                    "Update the quantity of a product in an organization user's "
                    "B2B cart or remove it entirely"
                ),
                input_model=B2BUpdateCartEntryInput,
                handler=self.b2b_update_cart_entry,
                failure_prefix="Error updating B2B cart entry",
            ),
            ToolDescriptor(
                name="b2b-place-order",
                description="Place an order from an organization user's B2B cart",
                input_model=B2BPlaceOrderInput,
                handler=self.b2b_place_order,
                failure_prefix="Error placing B2B order",
            ),
        ]


def build_registry(api_client: CommerceAPIClient) -> ToolRegistry:
    """Create the registry holding every commerce tool."""
    registry = ToolRegistry()
    for descriptor in CommerceTools(api_client).descriptors():
        registry.register(descriptor)
    return registry
