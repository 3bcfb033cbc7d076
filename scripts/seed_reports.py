# -*- coding: utf-8 -*-
"""
Seed the report store with synthetic crowd reports.

One report per stop every 5 minutes between 07:30 and 21:30 UTC, for the
last N days. Demand follows three weekday peaks (morning, noon, evening)
with shoulder hours in between; weekends run at 70%. Buses rotate across
stops and about 12% of reports come from drivers.
"""
import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.levels import fraction_to_level
from src.store import SOURCE_DRIVER, SOURCE_RIDER, Report, SQLiteReportStore

ROUTE = "CC"
STOPS = ["A", "B", "C", "D", "E", "F", "G"]
BUSES = ["01", "02", "03", "04", "05"]
STEP_MIN = 5
START_MIN = 7 * 60 + 30
END_MIN = 21 * 60 + 30

PEAKS = [
    (7 * 60 + 30, 9 * 60 + 30),
    (11 * 60 + 30, 13 * 60 + 30),
    (16 * 60 + 30, 19 * 60 + 30),
]
SHOULDERS = [
    (9 * 60 + 30, 11 * 60),
    (13 * 60 + 30, 16 * 60),
    (19 * 60, 21 * 60 + 30),
]


def demand_factor(ts):
    """Base occupancy fraction for a time of day."""
    minutes = ts.hour * 60 + ts.minute
    base = 0.15
    if any(s <= minutes < e for s, e in PEAKS):
        base = 0.8
    elif any(s <= minutes < e for s, e in SHOULDERS):
        base = 0.35
    if ts.weekday() >= 5:
        base *= 0.7
    return base


def time_slots(start_day, days):
    for d in range(days):
        day = start_day + timedelta(days=d)
        for minute in range(START_MIN, END_MIN + 1, STEP_MIN):
            yield day + timedelta(minutes=minute)


def generate_reports(start_day, days, capacity, rng):
    reports = []
    for ts in time_slots(start_day, days):
        slot = int(ts.timestamp() // (STEP_MIN * 60))
        for si, stop in enumerate(STOPS):
            frac = float(np.clip(demand_factor(ts) + rng.normal(0.0, 0.05), 0.02, 0.98))
            headcount = max(0, int(round(frac * capacity + rng.uniform(-2, 2))))
            reports.append(Report(
                route=ROUTE,
                stop=stop,
                source=SOURCE_DRIVER if rng.random() < 0.12 else SOURCE_RIDER,
                level=fraction_to_level(headcount / capacity),
                timestamp=ts,
                bus_id=BUSES[(slot + si) % len(BUSES)],
                headcount=headcount,
            ))
    return reports


def main():
    parser = argparse.ArgumentParser(description='Seed the report store with synthetic crowd reports')
    parser.add_argument('--db', type=str, default=str(PROJECT_ROOT / 'data' / 'reports.db'), help='Path to report SQLite database')
    parser.add_argument('--days', type=int, default=7, help='Number of days to generate (ending today)')
    parser.add_argument('--capacity', type=int, default=60, help='Vehicle capacity used to derive levels')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible data')
    args = parser.parse_args()

    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    start_day = today - timedelta(days=args.days - 1)
    rng = np.random.default_rng(args.seed)

    reports = generate_reports(start_day, args.days, args.capacity, rng)
    store = SQLiteReportStore(args.db)
    written = store.append_many(reports)

    print(f"Seeded {written:,} reports for route {ROUTE} ({len(STOPS)} stops, {args.days} days) into {args.db}")


if __name__ == '__main__':
    main()
