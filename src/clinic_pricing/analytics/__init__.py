"""Analytics subpackage."""
from .price_analytics import pricing_analytics

__all__ = ['pricing_analytics']
