#!/usr/bin/env python
"""
Import a fee schedule file as organization default prices.

Usage:
    python scripts/import_fee_schedule.py path/to/fee_schedule.xlsx [--effective-from 2026-01-01]
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from clinic_pricing.config.settings import get_settings
from clinic_pricing.data.fee_schedule import iter_price_rows, load_fee_schedule
from clinic_pricing.engine import PriceEngine
from clinic_pricing.logging_config import configure_logging
from clinic_pricing.store import CsvPriceStore


def main():
    parser = argparse.ArgumentParser(description="Import organization default prices")
    parser.add_argument("path", type=Path, help="CSV or Excel fee schedule")
    parser.add_argument("--effective-from", default=None, help="ISO date; defaults to today")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    print("=" * 60)
    print("FEE SCHEDULE IMPORT")
    print("=" * 60)

    frame, report = load_fee_schedule(args.path)
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")
    if report["status"] != "success":
        print("\n❌ LOAD FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print(f"Loaded {report['metrics']['final_code_count']} codes from {args.path}")

    store = CsvPriceStore(settings.price_records_csv, settings.organization_scope)
    engine = PriceEngine(store, settings)
    summary = asyncio.run(engine.import_default_prices(iter_price_rows(frame), args.effective_from))

    print()
    print(f"  Imported: {summary.success}")
    print(f"  Failed:   {summary.failed}")
    for error in summary.errors:
        print(f"  ERROR: {error}")

    if summary.failed:
        sys.exit(1)
    print(f"\n✅ IMPORT COMPLETE: {settings.price_records_csv}")


if __name__ == "__main__":
    main()
