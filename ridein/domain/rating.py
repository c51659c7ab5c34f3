"""Driver rating aggregation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable


def round_rating(value: float) -> float:
    """Round half-up to one decimal (4.25 -> 4.3, not banker's 4.2)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def aggregate_rating(ratings: Iterable[float]) -> float | None:
    """Unweighted mean of every rating, rendered to one decimal place."""
    values = list(ratings)
    if not values:
        return None
    return round_rating(sum(values) / len(values))
