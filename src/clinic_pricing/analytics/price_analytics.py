"""
Pricing analytics over billed line items.

Summarizes what was actually charged per code over a date window and how
many lines went out without a price.
"""
import pandas as pd

from ..engine.inputs import DateLike, to_day

REQUIRED_COLUMNS = ('code', 'unit_price', 'service_date')


def pricing_analytics(items: pd.DataFrame, start_date: DateLike, end_date: DateLike) -> dict:
    """
    Summarize unit prices of line items with service dates in [start, end].

    Args:
        items: DataFrame with code, unit_price and service_date columns
        start_date: First day included
        end_date: Last day included

    Returns:
        Dict with total_items, unique_codes, missing_prices, average_price
        and per-code price_ranges {code: {min, max, avg}}
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in items.columns]
    if missing:
        raise ValueError(f"Line items are missing columns {missing}")

    start = to_day(start_date, default_today=False)
    end = to_day(end_date, default_today=False)

    df = items.copy()
    df['service_date'] = pd.to_datetime(df['service_date'], errors='coerce').dt.date
    df = df[df['service_date'].notna()]
    df = df[(df['service_date'] >= start) & (df['service_date'] <= end)]

    prices = pd.to_numeric(df['unit_price'], errors='coerce')
    unpriced = prices.isna() | (prices == 0)
    priced = df.assign(unit_price=prices)[~unpriced]

    price_ranges = {}
    if not priced.empty:
        grouped = priced.groupby('code')['unit_price'].agg(['min', 'max', 'mean'])
        for code, row in grouped.iterrows():
            price_ranges[str(code)] = {
                "min": float(row['min']),
                "max": float(row['max']),
                "avg": round(float(row['mean']), 2),
            }

    average_price = 0.0
    if not priced.empty:
        average_price = round(float(priced['unit_price'].mean()), 2)

    return {
        "total_items": int(len(df)),
        "unique_codes": int(df['code'].nunique()),
        "missing_prices": int(unpriced.sum()),
        "average_price": average_price,
        "price_ranges": price_ranges,
    }
