"""
Category Pricing  (Strategy Pattern)
====================================

Formula
-------
Price = Base_Price                                      if distance <= 3 km
Price = Base_Price + (distance - 3 km) x Rate_Per_KM    otherwise

Each vehicle type has its own category table.  An unknown category falls
back to the cheapest tariff and is logged, so a stale client never blocks a
booking.  Riders may still propose any price; this only yields the
suggestion shown next to the proposal.

Complexity: O(1) per price calculation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .enums import VehicleType
from .errors import InputError

logger = logging.getLogger(__name__)

BASE_DISTANCE_KM = 3.0


@dataclass(frozen=True)
class Tariff:
    base_price: float  # covers the first BASE_DISTANCE_KM
    price_per_km: float


PASSENGER_TARIFFS: dict[str, Tariff] = {
    "Standard": Tariff(2.0, 0.5),
    "Premium": Tariff(5.0, 0.5),
    "Luxury": Tariff(10.0, 1.0),
}

FREIGHT_TARIFFS: dict[str, Tariff] = {
    "Bike Delivery (Up to 20kg)": Tariff(2.0, 0.5),
    "1–2 Tonne Truck": Tariff(10.0, 1.0),
    "3–5 Tonne Truck": Tariff(25.0, 1.0),
    "7–10 Tonne Truck": Tariff(50.0, 1.0),
}

DEFAULT_TARIFF = Tariff(2.0, 0.5)


# ── Strategy hierarchy ────────────────────────────────────────────────


class PricingStrategy(ABC):
    @abstractmethod
    def tariff_for(self, category: str) -> Tariff: ...

    def calculate(self, distance_km: float, category: str) -> float:
        if distance_km < 0:
            raise InputError("Distance cannot be negative")
        if distance_km == 0:
            return 0.0
        tariff = self.tariff_for(category)
        extra = max(0.0, distance_km - BASE_DISTANCE_KM)
        return round(tariff.base_price + extra * tariff.price_per_km, 2)


class TablePricing(PricingStrategy):
    def __init__(self, table: dict[str, Tariff], vehicle_type: VehicleType):
        self.table = table
        self.vehicle_type = vehicle_type

    def tariff_for(self, category: str) -> Tariff:
        tariff = self.table.get(category)
        if tariff is None:
            logger.warning(
                "Unknown category %r for %s; using default tariff",
                category,
                self.vehicle_type.value,
            )
            return DEFAULT_TARIFF
        return tariff


# ── Engine facade ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class PriceQuote:
    distance_km: float
    category: str
    vehicle_type: VehicleType
    base_price: float
    price_per_km: float
    additional_distance_km: float
    additional_charge: float
    total_price: float


class PricingEngine:
    """High-level API used by trip creation and the quote endpoint."""

    def __init__(self):
        self._strategies: dict[VehicleType, PricingStrategy] = {
            VehicleType.PASSENGER: TablePricing(
                PASSENGER_TARIFFS, VehicleType.PASSENGER
            ),
            VehicleType.FREIGHT: TablePricing(FREIGHT_TARIFFS, VehicleType.FREIGHT),
        }

    def calculate_price(
        self, distance_km: float, category: str, vehicle_type: VehicleType
    ) -> float:
        return self._strategies[vehicle_type].calculate(distance_km, category)

    def quote(
        self, distance_km: float, category: str, vehicle_type: VehicleType
    ) -> PriceQuote:
        strategy = self._strategies[vehicle_type]
        total = strategy.calculate(distance_km, category)
        tariff = strategy.tariff_for(category)
        extra = max(0.0, distance_km - BASE_DISTANCE_KM)
        return PriceQuote(
            distance_km=distance_km,
            category=category,
            vehicle_type=vehicle_type,
            base_price=tariff.base_price,
            price_per_km=tariff.price_per_km,
            additional_distance_km=round(extra, 2),
            additional_charge=round(extra * tariff.price_per_km, 2),
            total_price=total,
        )
