"""
Hand-entered monthly figures for months before the ledger was adopted.

Format: coach name -> year -> month -> figures. A month listed here is
reported from this table instead of being computed.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class HistoricalMonth:
    checked_in: int
    executed_revenue: int
    collected: int


HISTORICAL_MONTHLY_STATS: dict[str, dict[int, dict[int, HistoricalMonth]]] = {
    "Winnie": {
        2026: {
            1: HistoricalMonth(checked_in=41, executed_revenue=52200, collected=53800),
        },
    },
}


def find_historical_month(
    coach_name: str,
    year: int,
    month: int,
    table: dict[str, dict[int, dict[int, HistoricalMonth]]] | None = None,
) -> HistoricalMonth | None:
    table = HISTORICAL_MONTHLY_STATS if table is None else table
    return table.get(coach_name, {}).get(year, {}).get(month)
