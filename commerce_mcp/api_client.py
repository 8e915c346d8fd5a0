"""Commerce API Client.

Thin HTTP client for the remote commerce REST API. Every call carries the
caller's bearer credential; failures are normalized into
:class:`UpstreamHTTPError` or :class:`UpstreamTransportError`. There are no
retries: each call is a single attempt.
"""

import json
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from commerce_mcp.exceptions import UpstreamHTTPError, UpstreamTransportError

logger = structlog.get_logger()

RETRIEVAL_METHODS = {"GET", "HEAD"}


def _segment(value: Any) -> str:
    """Percent-encode a single path segment."""
    return quote(str(value), safe="@")


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class CommerceAPIClient:
    """HTTP client for the commerce REST API.

    Provides a generic authenticated :meth:`call` plus one method per remote
    resource used by the MCP tools.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str = "commerce-mcp/1.0",
        timeout: float = 30.0,
        verify: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            base_url: Commerce API base URL.
            user_agent: User-Agent header sent on every call.
            timeout: Request timeout in seconds.
            verify: Whether to verify the upstream TLS certificate.
            http_client: Optional preconfigured client (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self.verify = verify
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                verify=self.verify,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def call(
        self,
        path: str,
        credential: str,
        method: str = "GET",
        body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated API call.

        Args:
            path: Endpoint path relative to the base URL.
            credential: Bearer token for the Authorization header.
            method: HTTP method.
            body: JSON body; ignored for retrieval methods.
            params: Query parameters; ``None`` values are dropped.

        Returns:
            Parsed JSON, or ``None`` when the upstream sent an empty body.

        Raises:
            UpstreamHTTPError: The upstream returned a non-success status.
            UpstreamTransportError: The request failed or the body was not JSON.
        """
        client = await self._get_client()
        method = method.upper()

        if params:
            params = {k: _query_value(v) for k, v in params.items() if v is not None}

        content = None
        if body is not None and method not in RETRIEVAL_METHODS:
            content = json.dumps(body)

        logger.debug(
            "Making commerce API request",
            method=method,
            path=path,
            has_body=content is not None,
        )

        try:
            response = await client.request(
                method=method,
                url=path,
                params=params or None,
                content=content,
                headers={
                    "User-Agent": self.user_agent,
                    "Authorization": f"Bearer {credential}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            logger.error("Commerce API request timeout", path=path, error=str(e))
            raise UpstreamTransportError(f"request timed out: {path}", url=path) from e
        except httpx.RequestError as e:
            logger.error("Commerce API request failed", path=path, error=str(e))
            raise UpstreamTransportError(str(e) or type(e).__name__, url=path) from e

        if not response.is_success:
            logger.warning(
                "Commerce API error response",
                path=path,
                status_code=response.status_code,
            )
            raise UpstreamHTTPError(response.status_code, response.text)

        if response.status_code == 204 or not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error("Malformed commerce API response", path=path, error=str(e))
            raise UpstreamTransportError("malformed response body", url=path) from e

    # =========================================================================
    # Catalog Endpoints
    # =========================================================================

    async def search_products(
        self,
        credential: str,
        base_site_id: str,
        query: str | None = None,
        page_size: int = 20,
        current_page: int = 0,
        fields: str = "DEFAULT",
    ) -> Any:
        """Search products in a base site."""
        return await self.call(
            f"/{_segment(base_site_id)}/products/search",
            credential,
            params={
                "pageSize": page_size,
                "currentPage": current_page,
                "fields": fields,
                "query": query or None,
            },
        )

    async def get_base_sites(self, credential: str, fields: str = "DEFAULT") -> Any:
        """List base sites."""
        return await self.call("/basesites", credential, params={"fields": fields})

    # =========================================================================
    # Order Endpoints
    # =========================================================================

    async def get_orders(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        page_size: int = 5,
        statuses: str | None = None,
        fields: str = "DEFAULT",
    ) -> Any:
        """Get a user's order history (first page only)."""
        return await self.call(
            f"/{_segment(base_site_id)}/users/{_segment(user_id)}/orders",
            credential,
            params={
                "pageSize": page_size,
                "currentPage": 0,
                "fields": fields,
                "statuses": statuses or None,
            },
        )

    async def get_order(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        order_code: str,
        fields: str = "FULL",
    ) -> Any:
        """Get one order of a user."""
        return await self.call(
            f"/{_segment(base_site_id)}/users/{_segment(user_id)}"
            f"/orders/{_segment(order_code)}",
            credential,
            params={"fields": fields},
        )

    async def place_order(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        cart_id: str,
        terms_checked: bool,
        security_code: str | None = None,
        fields: str = "FULL",
    ) -> Any:
        """Place an order from a cart."""
        body: dict[str, Any] = {"cartId": cart_id, "termsChecked": terms_checked}
        if security_code:
            body["securityCode"] = security_code
        return await self.call(
            f"/{_segment(base_site_id)}/users/{_segment(user_id)}/orders",
            credential,
            method="POST",
            body=body,
            params={"fields": fields},
        )

    # =========================================================================
    # Cart Endpoints
    # =========================================================================

    def _cart_path(self, base_site_id: str, user_id: str, cart_id: str) -> str:
        return (
            f"/{_segment(base_site_id)}/users/{_segment(user_id)}"
            f"/carts/{_segment(cart_id)}"
        )

    async def get_cart(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        cart_id: str = "current",
        fields: str = "FULL",
    ) -> Any:
        """Get a cart."""
        return await self.call(
            self._cart_path(base_site_id, user_id, cart_id),
            credential,
            params={"fields": fields},
        )

    async def add_cart_entry(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        product_code: str,
        quantity: int = 1,
        pickup_store: str | None = None,
        fields: str = "DEFAULT",
        cart_id: str = "current",
    ) -> Any:
        """Add a product to a cart."""
        body: dict[str, Any] = {"product": {"code": product_code}, "quantity": quantity}
        if pickup_store:
            body["deliveryPointOfService"] = {"name": pickup_store}
        return await self.call(
            f"{self._cart_path(base_site_id, user_id, cart_id)}/entries",
            credential,
            method="POST",
            body=body,
            params={"fields": fields},
        )

    async def update_cart_entry(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        entry_number: int,
        quantity: int,
        cart_id: str = "current",
        fields: str = "DEFAULT",
    ) -> Any:
        """Set the quantity of a cart entry."""
        return await self.call(
            f"{self._cart_path(base_site_id, user_id, cart_id)}/entries/{entry_number}",
            credential,
            method="PUT",
            body={"quantity": quantity},
            params={"fields": fields},
        )

    async def delete_cart_entry(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        entry_number: int,
        cart_id: str = "current",
        fields: str = "DEFAULT",
    ) -> Any:
        """Remove a cart entry."""
        return await self.call(
            f"{self._cart_path(base_site_id, user_id, cart_id)}/entries/{entry_number}",
            credential,
            method="DELETE",
            params={"fields": fields},
        )

    async def set_delivery_address(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        address: dict[str, Any],
        cart_id: str = "current",
    ) -> Any:
        """Set the cart's delivery address (existing id or new address)."""
        return await self.call(
            f"{self._cart_path(base_site_id, user_id, cart_id)}/addresses/delivery",
            credential,
            method="PUT",
            body=address,
        )

    async def set_delivery_mode(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        delivery_mode_id: str,
        cart_id: str = "current",
    ) -> Any:
        """Set the cart's delivery mode."""
        return await self.call(
            f"{self._cart_path(base_site_id, user_id, cart_id)}/deliverymode",
            credential,
            method="PUT",
            params={"deliveryModeId": delivery_mode_id},
        )

    async def get_delivery_modes(
        self,
        credential: str,
        base_site_id: str,
        user_id: str,
        cart_id: str = "current",
    ) -> Any:
        """List delivery modes available for a cart."""
        return await self.call(
            f"{self._cart_path(base_site_id, user_id, cart_id)}/deliverymodes",
            credential,
        )

    # =========================================================================
    # B2B Endpoints
    # =========================================================================

    def _org_cart_path(self, base_site_id: str, org_user_id: str, cart_id: str) -> str:
        return (
            f"/{_segment(base_site_id)}/orgUsers/{_segment(org_user_id)}"
            f"/carts/{_segment(cart_id)}"
        )

    async def b2b_add_cart_entry(
        self,
        credential: str,
        base_site_id: str,
        org_user_id: str,
        product_code: str,
        quantity: int = 1,
        pickup_store: str | None = None,
        fields: str = "DEFAULT",
        cart_id: str = "current",
    ) -> Any:
        """Add a product to an organization user's cart."""
        return await self.call(
            f"{self._org_cart_path(base_site_id, org_user_id, cart_id)}/entries",
            credential,
            method="POST",
            params={
                "quantity": quantity,
                "code": product_code,
                "lang": "en",
                "curr": "USD",
                "pickupStore": pickup_store or None,
                "fields": fields or None,
            },
        )

    async def b2b_get_cart(
        self,
        credential: str,
        base_site_id: str,
        org_user_id: str,
        cart_id: str = "current",
        fields: str = "DEFAULT",
    ) -> Any:
        """Get an organization user's cart."""
        return await self.call(
            self._org_cart_path(base_site_id, org_user_id, cart_id),
            credential,
            params={"fields": fields or None},
        )

    async def b2b_update_cart_entry(
        self,
        credential: str,
        base_site_id: str,
        org_user_id: str,
        entry_number: int,
        quantity: int,
        cart_id: str = "current",
        fields: str = "DEFAULT",
    ) -> Any:
        """Set the quantity of an organization cart entry."""
        return await self.call(
            f"{self._org_cart_path(base_site_id, org_user_id, cart_id)}"
            f"/entries/{entry_number}",
            credential,
            method="PUT",
            body={"quantity": quantity},
            params={"fields": fields or None},
        )

    async def b2b_delete_cart_entry(
        self,
        credential: str,
        base_site_id: str,
        org_user_id: str,
        entry_number: int,
        cart_id: str = "current",
        fields: str = "DEFAULT",
    ) -> Any:
        """Remove an organization cart entry."""
        return await self.call(
            f"{self._org_cart_path(base_site_id, org_user_id, cart_id)}"
            f"/entries/{entry_number}",
            credential,
            method="DELETE",
            params={"fields": fields or None},
        )

    async def b2b_place_order(
        self,
        credential: str,
        base_site_id: str,
        org_user_id: str,
        cart_id: str = "current",
        purchase_order_number: str | None = None,
        terms_checked: bool = False,
        fields: str = "DEFAULT",
    ) -> Any:
        """Place an order from an organization user's cart."""
        return await self.call(
            f"/{_segment(base_site_id)}/orgUsers/{_segment(org_user_id)}/orders",
            credential,
            method="POST",
            params={
                "cartId": cart_id,
                "purchaseOrderNumber": purchase_order_number or None,
                "termsChecked": True if terms_checked else None,
                "fields": fields or None,
            },
        )
