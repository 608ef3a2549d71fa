"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class PriceSource(str, Enum):
    """Tier that produced a resolved price."""
    CLINIC_OVERRIDE = "clinic_override"
    ORGANIZATION_DEFAULT = "organization_default"
    SUGGESTED_ESTIMATE = "suggested_estimate"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class PriceRecord:
    """A price for one code within one scope over a date window."""
    scope_id: str
    code: str
    price: Decimal
    effective_from: date
    effective_to: Optional[date] = None  # None = open-ended
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.effective_to is None

    def is_effective(self, on: date) -> bool:
        """True if this record applies on the given day."""
        if self.effective_from > on:
            return False
        return self.effective_to is None or self.effective_to >= on

    def closed(self, on: date) -> 'PriceRecord':
        """Copy of this record ended on the given day."""
        return replace(self, effective_to=on)

    def sort_key(self) -> tuple:
        """Ordering used to pick the winner among overlapping records."""
        return (
            self.effective_from,
            self.effective_to is None,
            self.created_at or datetime.min,
        )

    def to_dict(self) -> dict:
        return {
            "scope_id": self.scope_id,
            "code": self.code,
            "price": str(self.price),
            "effective_from": self.effective_from.isoformat(),
            "effective_to": self.effective_to.isoformat() if self.effective_to else None,
        }


@dataclass(frozen=True)
class TraceStep:
    """A single step in the price resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class ResolutionResult:
    """Resolved price for one (scope, code, day). Never mutated once returned."""
    price: Decimal
    source: PriceSource
    confidence: Confidence
    note: str
    records: tuple[PriceRecord, ...] = ()
    trace: tuple[TraceStep, ...] = ()
    # Some lookup failed against the store; the result is not cached
    degraded: bool = False

    @property
    def needs_review(self) -> bool:
        """Flag for staff review of estimated or low-confidence prices."""
        return (
            self.source == PriceSource.SUGGESTED_ESTIMATE
            or self.confidence == Confidence.LOW
        )

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "price": str(self.price),
            "source": self.source.value,
            "confidence": self.confidence.value,
            "note": self.note,
            "needs_review": self.needs_review,
            "degraded": self.degraded,
            "records": [r.to_dict() for r in self.records],
            "trace": [
                {"step": t.step, "description": t.description, "value": t.value}
                for t in self.trace
            ],
        }


# (scope_id, code, service day)
CacheKey = tuple[str, str, date]


@dataclass(frozen=True)
class CacheEntry:
    result: ResolutionResult
    inserted_at: float


@dataclass
class ImportSummary:
    """Outcome of a bulk default price import."""
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"success": self.success, "failed": self.failed, "errors": list(self.errors)}
