"""Tests for text formatting helpers."""

from commerce_mcp.formatters import (
    address_lines,
    format_b2b_cart,
    format_cart,
    format_date,
    format_delivery_modes,
    format_modification_status,
    format_product_search,
    money,
)


class TestFormatHelpers:
    """Tests for small formatting helpers."""

    def test_money_prefers_formatted_value(self):
        assert money({"formattedValue": "$1.00", "value": 1.0}) == "$1.00"

    def test_money_fallback(self):
        assert money({"value": 12.5, "currencyIso": "EUR"}) == "12.5 EUR"

    def test_money_missing(self):
        assert money(None) is None
        assert money({}) is None

    def test_format_date(self):
        assert format_date("2024-11-05T09:30:00+0000") == "11/5/2024"
        assert format_date("2024-11-05T09:30:00Z") == "11/5/2024"

    def test_format_date_unparseable(self):
        assert format_date("yesterday") == "yesterday"
        assert format_date(None) is None

    def test_address_lines(self):
        address = {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "line1": "1 Main St",
            "town": "London",
            "postalCode": "N1",
            "country": {"name": "United Kingdom"},
        }
        assert address_lines(address) == [
            "Ada Lovelace",
            "1 Main St",
            "London N1",
            "United Kingdom",
        ]


class TestProductSearch:
    """Tests for product search rendering."""

    def test_no_query_empty(self):
        text = format_product_search({"products": []}, "electronics-spa", None)
        assert text == 'No products found in base site "electronics-spa"'

    def test_listing_without_query(self):
        text = format_product_search(
            {"products": [{"code": "1", "name": "Lens"}]}, "electronics-spa", None
        )
        assert text.startswith("Product listing for electronics-spa:")
        assert "**Lens** (1)" in text


class TestCarts:
    """Tests for cart rendering."""

    def test_cart_sections(self):
        cart = {
            "code": "00099",
            "user": {"name": "Ada", "uid": "ada@example.com"},
            "totalItems": 1,
            "totalPriceWithTax": {"formattedValue": "$21.00"},
            "deliveryMode": {"name": "Standard", "deliveryCost": {"formattedValue": "$1.00"}},
            "paymentInfo": {
                "cardType": {"name": "Visa"},
                "cardNumber": "************1111",
                "expiryMonth": "12",
                "expiryYear": "2030",
            },
            "appliedVouchers": [
                {"code": "SAVE5", "value": 5, "currency": {"isocode": "USD"}}
            ],
            "entries": [
                {
                    "product": {"name": "Tripod", "code": "T1"},
                    "quantity": 2,
                    "basePrice": {"formattedValue": "$10.00"},
                }
            ],
        }

        text = format_cart(cart)

        assert "**Cart 00099**" in text
        assert "Customer: Ada (ada@example.com)" in text
        assert "Total (incl. tax): $21.00" in text
        assert "Visa ending in 1111" in text
        assert "Expires: 12/2030" in text
        assert "- SAVE5 (USD 5)" in text
        assert "1. **Tripod** (T1)" in text
        assert "   Unit Price: $10.00" in text

    def test_b2b_cart(self):
        text = format_b2b_cart(
            {
                "code": "B-1",
                "costCenter": {"name": "Custom Retail", "code": "CC1"},
                "paymentType": {"displayName": "Account"},
            }
        )
        assert "Cost Center: Custom Retail (CC1)" in text
        assert "Payment Type: Account" in text

    def test_modification_status(self):
        assert format_modification_status({"statusCode": "success"}) == ""
        assert format_modification_status({"statusCode": "noStock"}) == "\n**Status:** noStock"


class TestDeliveryModes:
    """Tests for delivery mode rendering."""

    def test_empty(self):
        assert format_delivery_modes([]) == "No delivery modes available for this cart."
