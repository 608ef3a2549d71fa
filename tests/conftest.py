import asyncio
import os
import sys
from datetime import date
from decimal import Decimal

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from clinic_pricing.config.settings import Settings
from clinic_pricing.engine import PriceEngine, PriceRecord
from clinic_pricing.errors import StoreUnavailable
from clinic_pricing.store import InMemoryPriceStore

ORG = "organization-default"


def run(coro):
    """Drive an engine coroutine from a synchronous test."""
    return asyncio.run(coro)


def record(scope_id, code, price, effective_from="2025-01-01", effective_to=None):
    return PriceRecord(
        scope_id=scope_id,
        code=code,
        price=Decimal(str(price)),
        effective_from=date.fromisoformat(effective_from),
        effective_to=date.fromisoformat(effective_to) if effective_to else None,
    )


class FakeClock:
    """Monotonic clock the tests can move forward."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FlakyStore(InMemoryPriceStore):
    """In-memory store with switchable failures and call counters."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_scopes: set[str] = set()
        self.fail_codes: set[str] = set()
        self.fail_prefix = False
        self.fail_close = False
        self.fail_insert = False
        self.reject_insert = False
        self.delay_seconds = 0.0
        self.query_calls = 0
        self.prefix_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def query_open_price_record(self, scope_id, code, as_of):
        self.query_calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so concurrent lookups overlap
            await asyncio.sleep(self.delay_seconds)
            if scope_id in self.fail_scopes:
                raise StoreUnavailable("query_open_price_record", "connection reset")
            if code in self.fail_codes:
                raise RuntimeError(f"query exploded for {code}")
            return await super().query_open_price_record(scope_id, code, as_of)
        finally:
            self.in_flight -= 1

    async def query_default_prices_by_code_prefix(self, prefix, limit):
        self.prefix_calls += 1
        if self.fail_prefix:
            raise StoreUnavailable("query_default_prices_by_code_prefix", "connection reset")
        return await super().query_default_prices_by_code_prefix(prefix, limit)

    async def close_open_price_record(self, scope_id, code, closed_at):
        if self.fail_close:
            raise StoreUnavailable("close_open_price_record", "read-only replica")
        return await super().close_open_price_record(scope_id, code, closed_at)

    async def insert_price_record(self, rec):
        if self.fail_insert:
            raise StoreUnavailable("insert_price_record", "write timeout")
        if self.reject_insert:
            return False
        return await super().insert_price_record(rec)


@pytest.fixture
def settings(tmp_path):
    return Settings(project_root=tmp_path, price_records_csv=tmp_path / "price_records.csv")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FlakyStore(ORG, [
        record(ORG, "80053", "58.00"),
        record(ORG, "80048", "42.50"),
        record(ORG, "85025", "21.00"),
        record("C1", "85025", "18.00"),
        record("C2", "80053", "55.00"),
    ])


@pytest.fixture
def engine(store, settings, clock):
    return PriceEngine(store, settings, clock=clock)
