"""Bulk resolution used by billing imports."""
from decimal import Decimal

import pytest

from clinic_pricing.engine import Confidence, PriceEngine, PriceSource
from clinic_pricing.errors import MalformedInput

from conftest import run

SERVICE_DATE = "2026-03-02"


def test_every_code_gets_an_entry(engine):
    codes = ["80053", "85025", "80099", "99999"]

    results = run(engine.resolve_batch("C1", codes, SERVICE_DATE))

    assert set(results) == set(codes)
    assert results["80053"].source == PriceSource.ORGANIZATION_DEFAULT
    assert results["85025"].source == PriceSource.CLINIC_OVERRIDE
    assert results["80099"].source == PriceSource.SUGGESTED_ESTIMATE
    assert results["99999"].price == Decimal("0.00")


def test_duplicate_codes_collapse(engine):
    results = run(engine.resolve_batch("C1", ["80053", "80053", "85025"], SERVICE_DATE))
    assert len(results) == 2


def test_bad_codes_degrade_individually(engine, store):
    store.fail_codes = {"80048"}

    results = run(engine.resolve_batch("C1", ["80053", "", "80048"], SERVICE_DATE))

    assert len(results) == 3
    assert results["80053"].confidence == Confidence.HIGH
    assert results[""].confidence == Confidence.LOW
    assert results[""].price == Decimal("0.00")
    assert "Error retrieving price" in results[""].note
    assert results["80048"].source == PriceSource.SUGGESTED_ESTIMATE


def test_chunks_bound_concurrency(store, settings, clock):
    settings.batch_size = 50
    store.delay_seconds = 0.001
    engine = PriceEngine(store, settings, clock=clock)
    codes = [f"7{i:04d}" for i in range(120)]

    results = run(engine.resolve_batch("C1", codes, SERVICE_DATE))

    assert len(results) == 120
    assert 1 < store.max_in_flight <= 50


def test_batch_results_are_cached(engine, store):
    run(engine.resolve_batch("C1", ["80053", "85025"], SERVICE_DATE))
    calls = store.query_calls

    result = run(engine.resolve("C1", "85025", SERVICE_DATE))

    assert result.price == Decimal("18.00")
    assert store.query_calls == calls


def test_empty_batch(engine):
    assert run(engine.resolve_batch("C1", [], SERVICE_DATE)) == {}


def test_batch_rejects_bad_scope_or_date(engine):
    with pytest.raises(MalformedInput):
        run(engine.resolve_batch("", ["80053"], SERVICE_DATE))
    with pytest.raises(MalformedInput):
        run(engine.resolve_batch("C1", ["80053"], "yesterday"))
