"""Tool input schemas.

One pydantic model per MCP tool. Attributes are snake_case in Python and
camelCase on the wire; the JSON Schema advertised by ``tools/list`` is
generated from these models.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolInput(BaseModel):
    """Base for tool inputs: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


BASE_SITE = "Base site identifier (e.g., 'electronics-spa')"
B2B_BASE_SITE = "Base site identifier (e.g., 'powertools-spa')"
USER_ID = "User identifier (use 'current' for authenticated user)"
ORG_USER_ID = "Organization user identifier (e.g., 'mark.rivers@pronto-hw.com')"
CART_ID = "Cart identifier (default: 'current')"
FIELDS = "Response field configuration (DEFAULT, BASIC, FULL)"


# ============================================================================
# Catalog
# ============================================================================


class ProductSearchInput(ToolInput):
    """Input schema for product-search tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    query: str | None = Field(None, description="Search query for products")
    page_size: int = Field(default=20, ge=1, description="Number of results per page")
    current_page: int = Field(default=0, ge=0, description="Page number (0-based)")
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)


class GetBaseSitesInput(ToolInput):
    """Input schema for get-base-sites tool."""

    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)


# ============================================================================
# Orders
# ============================================================================


class OrderHistoryInput(ToolInput):
    """Input schema for order-history tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    page_size: int = Field(default=5, ge=1, description="Number of orders to retrieve (max 5)")
    statuses: str | None = Field(None, description="Filter by order statuses (comma-separated)")
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)


class OrderDetailsInput(ToolInput):
    """Input schema for order-details tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    order_code: str = Field(..., description="Order code/identifier to retrieve details for")
    response_fields: str = Field(default="FULL", alias="fields", description=FIELDS)


class PlaceOrderInput(ToolInput):
    """Input schema for place-order tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    cart_id: str = Field(default="current", description=CART_ID)
    security_code: str | None = Field(
        None, description="Credit card security code (CVV) if required"
    )
    terms_checked: bool = Field(
        default=True, description="Confirm terms and conditions are accepted"
    )
    response_fields: str = Field(default="FULL", alias="fields", description=FIELDS)


# ============================================================================
# Cart
# ============================================================================


class AddToCartInput(ToolInput):
    """Input schema for add-to-cart tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    product_code: str = Field(..., description="Product code to add to cart")
    quantity: int = Field(default=1, ge=1, description="Quantity to add (default: 1)")
    pickup_store: str | None = Field(
        None, description="Pickup store name for in-store pickup"
    )
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)


class GetCartInput(ToolInput):
    """Input schema for get-cart tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    cart_id: str = Field(default="current", description=CART_ID)
    response_fields: str = Field(default="FULL", alias="fields", description=FIELDS)


class UpdateCartEntryInput(ToolInput):
    """Input schema for update-cart-entry tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    entry_number: int = Field(..., ge=0, description="Cart entry number to update")
    quantity: int = Field(..., ge=0, description="New quantity (use 0 to remove the item)")
    cart_id: str = Field(default="current", description=CART_ID)
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)


class SetDeliveryAddressInput(ToolInput):
    """Input schema for set-delivery-address tool.

    Either ``addressId`` or the new-address fields are required; the
    handler enforces that rule.
    """

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    address_id: str | None = Field(None, description="Existing address ID to use")
    first_name: str | None = Field(
        None, description="First name (required if creating new address)"
    )
    last_name: str | None = Field(
        None, description="Last name (required if creating new address)"
    )
    line1: str | None = Field(
        None, description="Address line 1 (required if creating new address)"
    )
    line2: str | None = Field(None, description="Address line 2")
    town: str | None = Field(
        None, description="City/Town (required if creating new address)"
    )
    postal_code: str | None = Field(None, description="Postal/ZIP code")
    country_isocode: str | None = Field(
        None, description="Country ISO code (e.g., 'US', 'DE')"
    )
    region_isocode: str | None = Field(None, description="Region/State ISO code")
    phone: str | None = Field(None, description="Phone number")
    cart_id: str = Field(default="current", description=CART_ID)


class SetDeliveryModeInput(ToolInput):
    """Input schema for set-delivery-mode tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    delivery_mode_id: str = Field(
        ...,
        description="Delivery mode code (e.g., 'standard-gross', 'premium-gross')",
    )
    cart_id: str = Field(default="current", description=CART_ID)


class GetDeliveryModesInput(ToolInput):
    """Input schema for get-delivery-modes tool."""

    base_site_id: str = Field(..., description=BASE_SITE)
    user_id: str = Field(..., description=USER_ID)
    cart_id: str = Field(default="current", description=CART_ID)


# ============================================================================
# B2B
# ============================================================================


class B2BAddToCartInput(ToolInput):
    """Input schema for b2b-add-to-cart tool."""

    base_site_id: str = Field(..., description=B2B_BASE_SITE)
    org_user_id: str = Field(
        ...,
        description="Organization user identifier (use 'current' for authenticated user)",
    )
    product_code: str = Field(..., description="Product code to add to cart")
    quantity: int = Field(default=1, ge=1, description="Quantity to add (default: 1)")
    pickup_store: str | None = Field(
        None, description="Pickup store name for in-store pickup"
    )
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)
    cart_id: str = Field(default="current", description=CART_ID)


class B2BGetCartInput(ToolInput):
    """Input schema for b2b-get-cart tool."""

    base_site_id: str = Field(..., description=B2B_BASE_SITE)
    org_user_id: str = Field(..., description=ORG_USER_ID)
    cart_id: str = Field(default="current", description=CART_ID)
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)


class B2BUpdateCartEntryInput(ToolInput):
    """Input schema for b2b-update-cart-entry tool."""

    base_site_id: str = Field(..., description=B2B_BASE_SITE)
    org_user_id: str = Field(..., description=ORG_USER_ID)
    entry_number: int = Field(..., ge=0, description="Cart entry number to update")
    quantity: int = Field(..., ge=0, description="New quantity (use 0 to remove the item)")
    cart_id: str = Field(default="current", description=CART_ID)
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)


class B2BPlaceOrderInput(ToolInput):
    """Input schema for b2b-place-order tool."""

    base_site_id: str = Field(..., description=B2B_BASE_SITE)
    org_user_id: str = Field(..., description=ORG_USER_ID)
    cart_id: str = Field(default="current", description=CART_ID)
    purchase_order_number: str | None = Field(
        None, description="Purchase order number for B2B tracking"
    )
    response_fields: str = Field(default="DEFAULT", alias="fields", description=FIELDS)
    terms_checked: bool = Field(default=False, description="Accept terms and conditions")
