"""
Price Engine - resolves the unit price of a billable code for a clinic and date.

Resolution order:
1. Cached result for (clinic, code, day) within the TTL
2. Clinic override effective on the service date
3. Organization default effective on the service date
4. Category-average suggestion (low confidence, needs review)
5. Zero price (low confidence, needs manual pricing)

resolve() and resolve_batch() never raise for data or store problems; a
billing import must not abort because one price could not be looked up.
Only malformed caller input (empty code, unparseable date) raises.
"""
import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from ..config.settings import Settings, get_settings
from ..errors import MalformedInput, StoreUnavailable
from .cache import ResolutionCache
from .inputs import DateLike, normalize_code, normalize_scope, round_currency, to_day, to_price
from .models import (
    Confidence,
    ImportSummary,
    PriceRecord,
    PriceSource,
    ResolutionResult,
    TraceStep,
)
from .store_guard import call_store
from .suggestion import SuggestionHeuristic
from .tier_resolver import TierResolver

if TYPE_CHECKING:
    from ..store.base import PriceStore

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class PriceEngine:
    """
    Tiered price resolution with fallback and a per-instance cache.

    One engine per organization/session; the cache is never shared between
    instances.
    """

    def __init__(self, store: 'PriceStore', settings: Optional[Settings] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.settings = settings or get_settings()
        self.store = store
        self.organization_scope = self.settings.organization_scope
        self.timeout = self.settings.store_timeout_seconds

        self.tier_resolver = TierResolver(store, self.organization_scope, self.timeout)
        self.suggestion = SuggestionHeuristic(
            store,
            prefix_length=self.settings.suggestion_prefix_length,
            sample_limit=self.settings.suggestion_sample_limit,
            timeout=self.timeout,
        )
        self.cache = ResolutionCache(self.settings.cache_ttl_seconds, clock=clock)

    def reload_data(self):
        """Drop every cached price so the next lookups hit the store."""
        self.cache.clear()

    def cache_stats(self) -> dict:
        return self.cache.stats()

    # Resolution

    async def resolve(self, scope_id: str, code: str,
                      service_date: Optional[DateLike] = None) -> ResolutionResult:
        """
        Resolve the price for one code.

        Args:
            scope_id: Clinic identifier
            code: Billable code, e.g. a CPT code
            service_date: Date of service; defaults to today, truncated to the day

        Returns:
            ResolutionResult; never raises except for malformed input
        """
        scope_id = normalize_scope(scope_id)
        code = normalize_code(code)
        day = to_day(service_date)
        return await self._resolve(scope_id, code, day)

    async def resolve_batch(self, scope_id: str, codes: Iterable[str],
                            service_date: Optional[DateLike] = None) -> dict[str, ResolutionResult]:
        """
        Resolve many codes for one clinic, e.g. for an import.

        Codes are processed in chunks of `batch_size`; each chunk is resolved
        concurrently and finished before the next starts. Every distinct
        input code gets an entry, keyed by the code as given.
        """
        scope_id = normalize_scope(scope_id)
        day = to_day(service_date)

        pending = list(dict.fromkeys(codes))
        results: dict[str, ResolutionResult] = {}
        size = self.settings.batch_size

        for start in range(0, len(pending), size):
            chunk = pending[start:start + size]
            outcomes = await asyncio.gather(
                *(self._resolve_raw(scope_id, code, day) for code in chunk),
                return_exceptions=True,
            )
            for code, outcome in zip(chunk, outcomes):
                if isinstance(outcome, Exception):
                    logger.warning("Batch price lookup failed for %s/%r: %s", scope_id, code, outcome)
                    outcome = self._failure_result(code, f"Error retrieving price: {outcome}")
                elif isinstance(outcome, BaseException):
                    raise outcome
                results[code] = outcome

        return results

    async def _resolve_raw(self, scope_id: str, raw_code, day: date) -> ResolutionResult:
        return await self._resolve(scope_id, normalize_code(raw_code), day)

    async def _resolve(self, scope_id: str, code: str, day: date) -> ResolutionResult:
        key = (scope_id, code, day)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            result = await self._compute(scope_id, code, day)
        except Exception as e:
            # Even on error, return something to keep the import going
            logger.exception("Error resolving price for %s/%s on %s", scope_id, code, day)
            return self._failure_result(code, f"Error retrieving price: {e}")

        # A store outage must not pin a fallback price for the whole TTL
        if not result.degraded:
            self.cache.put(key, result)
        return result

    async def _compute(self, scope_id: str, code: str, day: date) -> ResolutionResult:
        trace = [TraceStep("Lookup", f"Resolving {code} for {scope_id}", day.isoformat())]
        failures: list[str] = []

        record = await self.tier_resolver.resolve_tier(scope_id, code, day, failures)
        if record is not None:
            source = self.tier_resolver.source_for(record)
            price = round_currency(Decimal(record.price))
            if source == PriceSource.CLINIC_OVERRIDE:
                note = f"Custom price for clinic {scope_id}"
                trace.append(TraceStep("Clinic Override", "Found effective clinic price", f"${price}"))
            else:
                note = f"Organization default price for code {code}"
                if failures:
                    note += f". Clinic price lookup failed ({_describe(failures)}); clinic override not checked"
                    trace.append(TraceStep("Clinic Override", "Store unavailable"))
                else:
                    trace.append(TraceStep("Clinic Override", "No effective clinic price"))
                trace.append(TraceStep("Organization Default", "Found effective default price", f"${price}"))
            return ResolutionResult(
                price=price,
                source=source,
                confidence=Confidence.HIGH,
                note=note,
                records=(record,),
                trace=tuple(trace),
                degraded=bool(failures),
            )

        if failures:
            trace.append(TraceStep("Tiers", f"Store unavailable for {_describe(failures)}"))
        else:
            trace.append(TraceStep("Tiers", "No clinic override or organization default in effect"))

        suggestion = await self.suggestion.suggest_price(code, failures)
        if suggestion is not None:
            trace.append(TraceStep(
                "Suggestion",
                f"Average of {len(suggestion.records)} default price(s) in category {suggestion.category}",
                f"${suggestion.price}",
            ))
            return ResolutionResult(
                price=suggestion.price,
                source=PriceSource.SUGGESTED_ESTIMATE,
                confidence=Confidence.LOW,
                note=_with_failures(
                    f"No price found for code {code}. Suggested from similar codes "
                    f"in category {suggestion.category}. Manual review required.",
                    failures,
                ),
                records=suggestion.records,
                trace=tuple(trace),
                degraded=bool(failures),
            )

        trace.append(TraceStep("Suggestion", "No similar codes with default prices", "$0.00"))
        return ResolutionResult(
            price=ZERO,
            source=PriceSource.SUGGESTED_ESTIMATE,
            confidence=Confidence.LOW,
            note=_with_failures(f"No price found for code {code}. Manual pricing required.", failures),
            trace=tuple(trace),
            degraded=bool(failures),
        )

    def _failure_result(self, code, message: str) -> ResolutionResult:
        return ResolutionResult(
            price=ZERO,
            source=PriceSource.SUGGESTED_ESTIMATE,
            confidence=Confidence.LOW,
            note=message,
            trace=(TraceStep("Error", message, str(code)),),
            degraded=True,
        )

    # Mutations

    async def set_clinic_price(self, scope_id: str, code: str, price,
                               effective_from: Optional[DateLike] = None) -> bool:
        """
        Replace the open clinic price for (scope, code).

        Returns False if the store rejected the change; on success every
        cached price for the clinic is dropped.
        """
        scope_id = normalize_scope(scope_id)
        if scope_id == self.organization_scope:
            raise MalformedInput(
                f"'{scope_id}' is the organization default scope; use set_organization_default_price"
            )
        code = normalize_code(code)
        amount = to_price(price)
        start = to_day(effective_from)

        if not await self._replace_open_record(scope_id, code, amount, start):
            return False

        removed = self.cache.invalidate_scope(scope_id)
        logger.info("Set clinic price %s/%s = %s from %s (%d cached)", scope_id, code, amount, start, removed)
        return True

    async def set_organization_default_price(self, code: str, price,
                                             effective_from: Optional[DateLike] = None) -> bool:
        """
        Replace the open organization default for a code.

        Defaults feed every clinic's fallback and the category suggestions,
        so success clears the whole cache.
        """
        code = normalize_code(code)
        amount = to_price(price)
        start = to_day(effective_from)

        if not await self._replace_open_record(self.organization_scope, code, amount, start):
            return False

        self.cache.clear()
        logger.info("Set organization default %s = %s from %s", code, amount, start)
        return True

    async def import_default_prices(self, rows: Iterable,
                                    effective_from: Optional[DateLike] = None) -> ImportSummary:
        """
        Import a default price schedule.

        Rows are (code, price) pairs or dicts with 'code' and 'price'. Bad
        rows are counted as failures rather than raised; an unparseable
        `effective_from` applies to every row and raises MalformedInput.
        The cache is cleared once, after the last row.
        """
        start = to_day(effective_from)
        summary = ImportSummary()

        try:
            for row in rows:
                try:
                    code, price = _unpack_row(row)
                    code = normalize_code(code)
                    amount = to_price(price)
                except MalformedInput as e:
                    summary.failed += 1
                    summary.errors.append(f"Invalid row {row!r}: {e}")
                    continue

                if await self._replace_open_record(self.organization_scope, code, amount, start):
                    summary.success += 1
                else:
                    summary.failed += 1
                    summary.errors.append(f"Failed to import price for code {code}")
        finally:
            if summary.success:
                self.cache.clear()

        logger.info("Default price import: %d imported, %d failed", summary.success, summary.failed)
        return summary

    async def _replace_open_record(self, scope_id: str, code: str, price: Decimal,
                                   effective_from: date) -> bool:
        """Close the open record, then insert the new one. False on any store failure."""
        try:
            closed = await call_store(
                self.store.close_open_price_record(scope_id, code, date.today()),
                "close_open_price_record",
                self.timeout,
            )
            if closed is False:
                raise StoreUnavailable("close_open_price_record", "store rejected the update")

            record = PriceRecord(
                scope_id=scope_id,
                code=code,
                price=price,
                effective_from=effective_from,
                effective_to=None,
                created_at=datetime.now(),
            )
            inserted = await call_store(
                self.store.insert_price_record(record),
                "insert_price_record",
                self.timeout,
            )
            if inserted is False:
                raise StoreUnavailable("insert_price_record", "store rejected the insert")
        except StoreUnavailable as e:
            logger.error("Price update failed for %s/%s: %s", scope_id, code, e)
            return False

        return True


def _unpack_row(row) -> tuple:
    if isinstance(row, dict):
        return row.get('code'), row.get('price')
    try:
        code, price = row
    except (TypeError, ValueError):
        raise MalformedInput("expected a (code, price) pair")
    return code, price


def _describe(failures: list[str]) -> str:
    return ", ".join(failures)


def _with_failures(note: str, failures: list[str]) -> str:
    if not failures:
        return note
    return f"{note} Store unavailable for {_describe(failures)}; price may be wrong, retry later."
