"""Storefront session, cart and checkout engine with MCP and HTTP surfaces."""

__version__ = "0.1.0"
