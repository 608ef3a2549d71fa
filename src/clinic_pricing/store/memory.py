"""In-memory price store for tests and embedded use."""
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional

from ..engine.models import PriceRecord
from .base import PriceStore, pick_effective


class InMemoryPriceStore(PriceStore):
    """List-backed store. Records are closed by replacement, never removed."""

    def __init__(self, organization_scope: str = "organization-default",
                 records: Optional[Iterable[PriceRecord]] = None):
        self.organization_scope = organization_scope
        self.records: list[PriceRecord] = list(records or [])

    async def query_open_price_record(self, scope_id: str, code: str, as_of: date) -> Optional[PriceRecord]:
        candidates = [r for r in self.records if r.scope_id == scope_id and r.code == code]
        return pick_effective(candidates, as_of)

    async def query_default_prices_by_code_prefix(self, prefix: str, limit: int) -> list[PriceRecord]:
        matches = [
            r for r in self.records
            if r.scope_id == self.organization_scope and r.is_open and r.code.startswith(prefix)
        ]
        matches.sort(key=lambda r: r.code)
        return matches[:limit]

    async def close_open_price_record(self, scope_id: str, code: str, closed_at: date) -> bool:
        for i, record in enumerate(self.records):
            if record.scope_id == scope_id and record.code == code and record.is_open:
                self.records[i] = record.closed(closed_at)
        return True

    async def insert_price_record(self, record: PriceRecord) -> bool:
        if record.created_at is None:
            record = replace(record, created_at=datetime.now())
        self.records.append(record)
        return True

    def open_records(self, scope_id: str, code: str) -> list[PriceRecord]:
        """Open records for (scope, code); more than one means the invariant broke."""
        return [r for r in self.records if r.scope_id == scope_id and r.code == code and r.is_open]
