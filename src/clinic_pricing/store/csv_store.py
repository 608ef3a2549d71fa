"""
CSV Price Store - price records kept in a pandas DataFrame and persisted to CSV.

Dates are stored as ISO strings so point-in-time filters compare as text,
the same way the policy rules filter start/end dates. Writes rewrite the
whole file on a worker thread.
"""
import asyncio
import threading
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Optional
import logging

import pandas as pd

from ..errors import StoreUnavailable
from ..engine.models import PriceRecord
from .base import PriceStore, pick_effective

logger = logging.getLogger(__name__)

COLUMNS = ['scope_id', 'code', 'price', 'effective_from', 'effective_to', 'created_at']


def _row_to_record(row) -> PriceRecord:
    return PriceRecord(
        scope_id=row['scope_id'],
        code=row['code'],
        price=Decimal(row['price']),
        effective_from=date.fromisoformat(row['effective_from']),
        effective_to=date.fromisoformat(row['effective_to']) if row['effective_to'] else None,
        created_at=datetime.fromisoformat(row['created_at']) if row['created_at'] else None,
    )


def _record_to_row(record: PriceRecord) -> dict:
    return {
        'scope_id': record.scope_id,
        'code': record.code,
        'price': str(record.price),
        'effective_from': record.effective_from.isoformat(),
        'effective_to': record.effective_to.isoformat() if record.effective_to else '',
        'created_at': (record.created_at or datetime.now()).isoformat(),
    }


class CsvPriceStore(PriceStore):
    """Store backed by a single CSV file."""

    def __init__(self, csv_path: Path, organization_scope: str = "organization-default"):
        self.csv_path = Path(csv_path)
        self.organization_scope = organization_scope
        self._write_lock = threading.Lock()
        self.frame = self._load()

    def _load(self) -> pd.DataFrame:
        if not self.csv_path.exists():
            return pd.DataFrame(columns=COLUMNS, dtype=str)

        try:
            df = pd.read_csv(self.csv_path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError) as e:
            raise StoreUnavailable("load", f"{self.csv_path}: {e}")

        missing = [c for c in COLUMNS if c not in df.columns]
        if missing:
            raise StoreUnavailable("load", f"{self.csv_path} is missing columns {missing}")

        # Normalize all columns
        for col in COLUMNS:
            df[col] = df[col].astype(str).str.strip()
        return df[COLUMNS].reset_index(drop=True)

    def reload_data(self):
        """Re-read the CSV file from disk."""
        self.frame = self._load()

    def _save(self, updated: pd.DataFrame):
        """Persist `updated` and adopt it; the previous frame survives a failed write."""
        try:
            self.csv_path.parent.mkdir(parents=True, exist_ok=True)
            updated.to_csv(self.csv_path, index=False)
        except OSError as e:
            raise StoreUnavailable("write", f"{self.csv_path}: {e}")
        self.frame = updated

    def _mutate(self, change: Callable[[pd.DataFrame], Optional[pd.DataFrame]]):
        """
        Apply `change` to a copy of the frame and persist the result.

        Runs on a worker thread so file writes stay off the event loop;
        the lock serializes concurrent writers. `change` returns None when
        there is nothing to write.
        """
        with self._write_lock:
            updated = change(self.frame.copy())
            if updated is not None:
                self._save(updated)

    def _records(self, rows: pd.DataFrame) -> list[PriceRecord]:
        try:
            return [_row_to_record(row) for _, row in rows.iterrows()]
        except (ValueError, InvalidOperation) as e:
            raise StoreUnavailable("query", f"corrupt price record in {self.csv_path}: {e}")

    async def query_open_price_record(self, scope_id: str, code: str, as_of: date) -> Optional[PriceRecord]:
        df = self.frame
        as_of_str = as_of.isoformat()
        matches = df[
            (df['scope_id'] == scope_id) &
            (df['code'] == code) &
            (df['effective_from'] <= as_of_str) &
            ((df['effective_to'] == '') | (df['effective_to'] >= as_of_str))
        ]
        if matches.empty:
            return None
        return pick_effective(self._records(matches), as_of)

    async def query_default_prices_by_code_prefix(self, prefix: str, limit: int) -> list[PriceRecord]:
        df = self.frame
        matches = df[
            (df['scope_id'] == self.organization_scope) &
            (df['effective_to'] == '') &
            (df['code'].str.startswith(prefix))
        ]
        matches = matches.sort_values('code').head(limit)
        return self._records(matches)

    async def close_open_price_record(self, scope_id: str, code: str, closed_at: date) -> bool:
        def close(frame: pd.DataFrame) -> Optional[pd.DataFrame]:
            mask = (
                (frame['scope_id'] == scope_id) &
                (frame['code'] == code) &
                (frame['effective_to'] == '')
            )
            if not mask.any():
                return None
            frame.loc[mask, 'effective_to'] = closed_at.isoformat()
            logger.debug("Closing %d open record(s) for %s/%s", int(mask.sum()), scope_id, code)
            return frame

        await asyncio.to_thread(self._mutate, close)
        return True

    async def insert_price_record(self, record: PriceRecord) -> bool:
        new_row = pd.DataFrame([_record_to_row(record)], columns=COLUMNS)
        await asyncio.to_thread(
            self._mutate, lambda frame: pd.concat([frame, new_row], ignore_index=True)
        )
        return True
