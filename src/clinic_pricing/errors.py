"""
Error types raised by the pricing engine and its store adapters.

A missing price at a tier is not an error: lookups return None.
"""


class PricingError(Exception):
    """Base class for pricing engine errors."""


class StoreUnavailable(PricingError):
    """The external price store failed or did not answer in time."""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Price store unavailable during {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MalformedInput(PricingError, ValueError):
    """The caller passed an invalid code, scope, price or date."""
