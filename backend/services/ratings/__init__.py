"""
Rating service - running-average user ratings.
"""

from .aggregator import apply_rating, record_rating, validate_rating

__all__ = [
    "apply_rating",
    "record_rating",
    "validate_rating",
]
