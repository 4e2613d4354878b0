"""HTTP transport for the Lekka API."""

from lekka_core.api.client import LekkaAPIClient

__all__ = ["LekkaAPIClient"]
