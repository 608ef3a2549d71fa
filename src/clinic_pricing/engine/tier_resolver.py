"""
Tier Resolver - point-in-time lookup of the authoritative price for a code.

Resolution order:
1. Clinic override effective on the service date
2. Organization default effective on the service date
3. Absent

A store failure at a tier counts as "absent at that tier" so resolution
falls through instead of aborting the caller's import. Callers that pass a
`failures` list get the name of every tier that could not be read, so an
outage is not mistaken for a real miss.
"""
from datetime import date
from typing import TYPE_CHECKING, Optional
import logging

from ..errors import StoreUnavailable
from .models import PriceRecord, PriceSource
from .store_guard import call_store

if TYPE_CHECKING:
    from ..store.base import PriceStore

logger = logging.getLogger(__name__)


class TierResolver:
    """Looks up clinic override, then organization default."""

    def __init__(self, store: 'PriceStore', organization_scope: str, timeout: float):
        self.store = store
        self.organization_scope = organization_scope
        self.timeout = timeout

    def source_for(self, record: PriceRecord) -> PriceSource:
        if record.scope_id == self.organization_scope:
            return PriceSource.ORGANIZATION_DEFAULT
        return PriceSource.CLINIC_OVERRIDE

    async def resolve_tier(self, scope_id: str, code: str, service_date: date,
                           failures: Optional[list[str]] = None) -> Optional[PriceRecord]:
        """
        Return the winning record for (scope, code) on the date, or None.

        If `failures` is given, the scope of each tier that failed to
        answer is appended to it.
        """
        if scope_id != self.organization_scope:
            record = await self._lookup(scope_id, code, service_date, failures)
            if record:
                return record

        return await self._lookup(self.organization_scope, code, service_date, failures)

    async def _lookup(self, scope_id: str, code: str, service_date: date,
                      failures: Optional[list[str]]) -> Optional[PriceRecord]:
        try:
            record = await call_store(
                self.store.query_open_price_record(scope_id, code, service_date),
                "query_open_price_record",
                self.timeout,
            )
        except StoreUnavailable as e:
            logger.warning("Price lookup failed for %s/%s on %s: %s", scope_id, code, service_date, e)
            if failures is not None:
                failures.append(scope_id)
            return None

        if record is None:
            return None

        # Adapter returned something outside the window or for another key
        if record.scope_id != scope_id or record.code != code or not record.is_effective(service_date):
            logger.warning(
                "Ignoring non-matching record from store for %s/%s on %s: %s",
                scope_id, code, service_date, record,
            )
            return None

        return record
