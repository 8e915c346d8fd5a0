"""Commerce MCP Gateway.

Exposes commerce REST API operations as MCP tools over a session-oriented
HTTP transport.

This package provides:
- A session registry binding each client connection to a transport
- Per-call bearer credential extraction from tool arguments
- A tool registry with schema validation and uniform error envelopes
- A thin authenticated client for the remote commerce API

Tools:
- product-search, get-base-sites
- order-history, order-details
- add-to-cart, get-cart, update-cart-entry
- set-delivery-address, set-delivery-mode, get-delivery-modes, place-order
- b2b-add-to-cart, b2b-get-cart, b2b-update-cart-entry, b2b-place-order
"""

__version__ = "1.0.0"
