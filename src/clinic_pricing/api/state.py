"""Shared engine instance for the API process."""
from typing import Optional

from ..config.settings import get_settings
from ..engine import PriceEngine
from ..logging_config import configure_logging
from ..store import CsvPriceStore

_engine: Optional[PriceEngine] = None


def get_engine() -> PriceEngine:
    """Build the engine over the configured CSV store on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        store = CsvPriceStore(settings.price_records_csv, settings.organization_scope)
        _engine = PriceEngine(store, settings)
    return _engine
