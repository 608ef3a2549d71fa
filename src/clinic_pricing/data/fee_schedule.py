"""
Fee Schedule Loader - reads an organization default price schedule file.

Accepts CSV or Excel exports with a code column and a price column,
normalizes codes, drops unusable rows and reports what it did.
"""
import hashlib
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterator

import pandas as pd

CODE_ALIASES = ('code', 'cpt_code', 'cpt code', 'cpt', 'procedure code')
PRICE_ALIASES = ('price', 'base_price', 'base price', 'default price', 'fee')


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def _find_column(columns, aliases) -> str:
    lookup = {str(c).strip().lower(): c for c in columns}
    for alias in aliases:
        if alias in lookup:
            return lookup[alias]
    return ""


def _read_frame(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in ('.xlsx', '.xls'):
        return pd.read_excel(path, dtype=str)
    return pd.read_csv(path, dtype=str)


def load_fee_schedule(path: Path) -> tuple[pd.DataFrame, dict]:
    """
    Load and clean a fee schedule.

    Args:
        path: CSV or Excel file

    Returns:
        (frame with 'code' and 'price' columns, build report dict)
    """
    path = Path(path)
    frame = pd.DataFrame(columns=['code', 'price'])

    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_file": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }

    if not path.exists():
        report["errors"].append(f"Fee schedule not found: {path}")
        report["status"] = "failed"
        return frame, report

    report["input_file"] = {"path": str(path), "hash": get_file_hash(path)}

    try:
        raw = _read_frame(path)
    except Exception as e:
        report["errors"].append(f"Failed to read {path}. {e}")
        report["status"] = "failed"
        return frame, report

    code_col = _find_column(raw.columns, CODE_ALIASES)
    price_col = _find_column(raw.columns, PRICE_ALIASES)
    if not code_col or not price_col:
        report["errors"].append(
            f"{path} needs a code column and a price column, found {list(raw.columns)}"
        )
        report["status"] = "failed"
        return frame, report

    frame = raw[[code_col, price_col]].rename(columns={code_col: 'code', price_col: 'price'})
    report["metrics"]["input_rows"] = len(frame)

    frame['code'] = frame['code'].astype(str).str.strip().str.upper()
    frame = frame[(frame['code'] != '') & (frame['code'] != 'NAN')].copy()
    blank_codes = report["metrics"]["input_rows"] - len(frame)
    report["metrics"]["blank_codes"] = int(blank_codes)

    # Strip currency formatting before numeric conversion
    cleaned = frame['price'].astype(str).str.replace(r'[$,\s]', '', regex=True)
    frame['price'] = pd.to_numeric(cleaned, errors='coerce')
    invalid = frame['price'].isna() | (frame['price'] < 0)
    report["metrics"]["invalid_prices"] = int(invalid.sum())
    if invalid.any():
        bad_codes = frame.loc[invalid, 'code'].tolist()
        report["warnings"].append(f"{len(bad_codes)} rows with missing or negative price: {bad_codes[:10]}")
    frame = frame[~invalid]

    duplicates = frame['code'].duplicated(keep='last').sum()
    frame = frame.drop_duplicates('code', keep='last')
    report["metrics"]["duplicates_removed"] = int(duplicates)
    if duplicates > 0:
        report["warnings"].append(f"Removed {duplicates} duplicate codes (kept last row)")

    frame = frame.reset_index(drop=True)
    report["metrics"]["final_code_count"] = len(frame)
    report["status"] = "success"
    return frame, report


def iter_price_rows(frame: pd.DataFrame) -> Iterator[tuple[str, Decimal]]:
    """Yield (code, price) pairs ready for import."""
    for code, price in zip(frame['code'], frame['price']):
        yield code, Decimal(str(price))
