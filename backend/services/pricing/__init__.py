"""
Pricing service - fare computation for bookings.
"""

from .fare_calculator import FareCalculator, FareConfig, compute_fare, to_decimal

__all__ = [
    "FareCalculator",
    "FareConfig",
    "compute_fare",
    "to_decimal",
]
