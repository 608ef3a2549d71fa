"""Store subpackage - adapters over the external price record store."""
from .base import PriceStore
from .memory import InMemoryPriceStore
from .csv_store import CsvPriceStore

__all__ = ['PriceStore', 'InMemoryPriceStore', 'CsvPriceStore']
