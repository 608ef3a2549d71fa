"""
Suggestion Heuristic - estimate a price for a code with no price on file.

Billable codes are grouped by their leading characters (e.g. "800" for
the 8000x chemistry panels). The estimate is the mean of organization
default prices sharing that category prefix. It is never authoritative.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
import logging

from ..errors import StoreUnavailable
from .inputs import round_currency
from .models import PriceRecord
from .store_guard import call_store

if TYPE_CHECKING:
    from ..store.base import PriceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Suggestion:
    price: Decimal
    category: str
    records: tuple[PriceRecord, ...]


class SuggestionHeuristic:
    """Category-average price estimate."""

    def __init__(self, store: 'PriceStore', prefix_length: int = 3, sample_limit: int = 10,
                 timeout: float = 10.0):
        self.store = store
        self.prefix_length = prefix_length
        self.sample_limit = sample_limit
        self.timeout = timeout

    def category_for(self, code: str) -> Optional[str]:
        """Leading prefix of the code, or None if the code is too short to have one."""
        if len(code) < self.prefix_length:
            return None
        return code[:self.prefix_length]

    async def suggest_price(self, code: str,
                            failures: Optional[list[str]] = None) -> Optional[Suggestion]:
        """Category average for the code; a failed category query is appended to `failures`."""
        category = self.category_for(code)
        if category is None:
            logger.debug("Code %s is shorter than the category prefix; no suggestion", code)
            return None

        try:
            records = await call_store(
                self.store.query_default_prices_by_code_prefix(category, self.sample_limit),
                "query_default_prices_by_code_prefix",
                self.timeout,
            )
        except StoreUnavailable as e:
            logger.warning("Category lookup failed for %s (prefix %s): %s", code, category, e)
            if failures is not None:
                failures.append(f"category {category}")
            return None

        # Adapters may over-return; hold them to the contract
        records = [r for r in records if r.code.startswith(category)][:self.sample_limit]
        if not records:
            return None

        total = sum((Decimal(r.price) for r in records), Decimal("0"))
        average = round_currency(total / len(records))

        logger.info(
            "Suggested %s for %s from %d default price(s) in category %s",
            average, code, len(records), category,
        )
        return Suggestion(price=average, category=category, records=tuple(records))
