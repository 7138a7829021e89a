"""
Deterministic fare pricing.

Fare = (base fare + distance x rate per km) x passenger count,
rounded half-up to 2 decimal places.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from services.exceptions import InvalidInputError

CENTS = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert ints/floats/strings to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class FareConfig:
    """Pricing policy. Built once and handed to the calculator."""
    base_fare: Decimal = Decimal("200.00")
    rate_per_km: Decimal = Decimal("50.00")
    currency: str = "NGN"

    @classmethod
    def from_settings(cls) -> "FareConfig":
        return cls(
            base_fare=to_decimal(getattr(settings, "FARE_BASE_AMOUNT", cls.base_fare)),
            rate_per_km=to_decimal(getattr(settings, "FARE_RATE_PER_KM", cls.rate_per_km)),
            currency=getattr(settings, "FARE_CURRENCY", cls.currency),
        )


class FareCalculator:
    """Prices a trip from its distance and passenger count."""

    def __init__(self, config: FareConfig = None):
        self.config = config or FareConfig()

    def compute_fare(self, distance_km, passenger_count=1) -> Decimal:
        if passenger_count is None or int(passenger_count) <= 0:
            passenger_count = 1

        distance = to_decimal(distance_km)
        if distance < 0:
            raise InvalidInputError("Distance cannot be negative", distance_km=str(distance))

        total = (self.config.base_fare + distance * self.config.rate_per_km) * int(passenger_count)
        return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_fare(distance_km, passenger_count=1, config: FareConfig = None) -> Decimal:
    """Shortcut using the configured pricing policy."""
    return FareCalculator(config or FareConfig.from_settings()).compute_fare(distance_km, passenger_count)
