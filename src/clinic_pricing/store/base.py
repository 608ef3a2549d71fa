"""
Price Store interface - the operations the engine needs from persistence.

Implementations may return False from a write or raise StoreUnavailable
(or any other exception); the engine treats both as a failed round trip.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional

from ..engine.models import PriceRecord


class PriceStore(ABC):
    """Async adapter over the external price record store."""

    @abstractmethod
    async def query_open_price_record(
        self,
        scope_id: str,
        code: str,
        as_of: date,
    ) -> Optional[PriceRecord]:
        """
        Point-in-time lookup for one (scope, code).

        Returns the record effective on `as_of`, preferring the latest
        effective_from when several overlap, or None.
        """

    @abstractmethod
    async def query_default_prices_by_code_prefix(
        self,
        prefix: str,
        limit: int,
    ) -> list[PriceRecord]:
        """Open organization-default records whose code starts with `prefix`."""

    @abstractmethod
    async def close_open_price_record(self, scope_id: str, code: str, closed_at: date) -> bool:
        """Set effective_to on the open record for (scope, code), if any."""

    @abstractmethod
    async def insert_price_record(self, record: PriceRecord) -> bool:
        """Append a new record."""


def pick_effective(records: Iterable[PriceRecord], as_of: date) -> Optional[PriceRecord]:
    """Choose the winning record among candidates effective on `as_of`."""
    effective = [r for r in records if r.is_effective(as_of)]
    if not effective:
        return None
    return max(effective, key=lambda r: r.sort_key())
