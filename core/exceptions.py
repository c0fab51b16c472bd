from typing import List, Optional


class ConfigError(Exception):
    """Missing or invalid settings at startup."""


class GatewayError(Exception):
    """Base for every failure talking to the Shopify Admin API."""


class TransportFault(GatewayError):
    """Network error, timeout or non-200 HTTP answer."""


class PayloadError(GatewayError):
    """The API answered but flagged `errors` or mutation `userErrors`."""

    def __init__(self, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self):
        base = super().__str__()
        if self.errors:
            return f"{base}: {self.errors}"
        return base


class DataShapeError(PayloadError):
    """Response or record is missing fields we rely on."""
