"""Category-average suggestion heuristic."""
from decimal import Decimal

from clinic_pricing.engine import PriceEngine, PriceSource
from clinic_pricing.engine.suggestion import SuggestionHeuristic

from conftest import ORG, FlakyStore, record, run


def test_rounds_half_up_to_cents():
    store = FlakyStore(ORG, [
        record(ORG, "10001", "10.00"),
        record(ORG, "10002", "10.01"),
    ])
    heuristic = SuggestionHeuristic(store)

    suggestion = run(heuristic.suggest_price("10009"))

    # Mean is 10.005
    assert suggestion.price == Decimal("10.01")
    assert suggestion.category == "100"


def test_sample_limit_caps_records():
    store = FlakyStore(ORG, [record(ORG, f"800{i:02d}", str(10 + i)) for i in range(15)])
    heuristic = SuggestionHeuristic(store, sample_limit=10)

    suggestion = run(heuristic.suggest_price("80099"))

    assert len(suggestion.records) == 10
    # 10..19 in code order
    assert suggestion.price == Decimal("14.50")


def test_closed_defaults_are_not_sampled():
    store = FlakyStore(ORG, [
        record(ORG, "80001", "100.00", "2024-01-01", "2024-12-31"),
        record(ORG, "80002", "20.00"),
    ])
    heuristic = SuggestionHeuristic(store)

    assert run(heuristic.suggest_price("80009")).price == Decimal("20.00")


def test_clinic_prices_are_not_sampled():
    store = FlakyStore(ORG, [record("C1", "80001", "100.00")])
    heuristic = SuggestionHeuristic(store)

    assert run(heuristic.suggest_price("80009")) is None


def test_code_shorter_than_prefix_has_no_category():
    store = FlakyStore(ORG, [record(ORG, "G1234", "30.00")])
    heuristic = SuggestionHeuristic(store, prefix_length=3)

    assert heuristic.category_for("G1") is None
    assert run(heuristic.suggest_price("G1")) is None
    assert store.prefix_calls == 0


def test_code_exactly_prefix_length():
    store = FlakyStore(ORG, [record(ORG, "G12", "30.00"), record(ORG, "G1234", "40.00")])
    heuristic = SuggestionHeuristic(store, prefix_length=3)

    assert run(heuristic.suggest_price("G12")).price == Decimal("35.00")


def test_alphanumeric_codes_use_literal_prefix(settings, clock):
    store = FlakyStore(ORG, [
        record(ORG, "G0101", "30.00"),
        record(ORG, "G0102", "40.00"),
        record(ORG, "80053", "58.00"),
    ])
    engine = PriceEngine(store, settings, clock=clock)

    result = run(engine.resolve("C1", "g0103", "2026-03-02"))

    assert result.source == PriceSource.SUGGESTED_ESTIMATE
    assert result.price == Decimal("35.00")
    assert {r.code for r in result.records} == {"G0101", "G0102"}


def test_configurable_prefix_length(settings, clock):
    settings.suggestion_prefix_length = 2
    store = FlakyStore(ORG, [
        record(ORG, "80053", "58.00"),
        record(ORG, "81001", "10.00"),
    ])
    engine = PriceEngine(store, settings, clock=clock)

    result = run(engine.resolve("C1", "80999", "2026-03-02"))

    assert result.price == Decimal("58.00")
    assert result.source == PriceSource.SUGGESTED_ESTIMATE


def test_store_failure_gives_no_suggestion():
    store = FlakyStore(ORG, [record(ORG, "80053", "58.00")])
    store.fail_prefix = True
    heuristic = SuggestionHeuristic(store)

    assert run(heuristic.suggest_price("80099")) is None


def test_store_failure_is_reported():
    store = FlakyStore(ORG, [record(ORG, "80053", "58.00")])
    store.fail_prefix = True
    heuristic = SuggestionHeuristic(store)
    failures = []

    assert run(heuristic.suggest_price("80099", failures)) is None
    assert failures == ["category 800"]
