"""Engine subpackage - core price resolution logic."""
from .price_engine import PriceEngine
from .models import Confidence, ImportSummary, PriceRecord, PriceSource, ResolutionResult

__all__ = [
    'PriceEngine',
    'PriceRecord',
    'ResolutionResult',
    'PriceSource',
    'Confidence',
    'ImportSummary',
]
