"""Running-average rating updates for users."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from django.contrib.auth import get_user_model
from django.db import transaction

from services.exceptions import InvalidRatingError

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating) -> int:
    """Return the rating as an int, or raise InvalidRatingError."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRatingError("Rating must be a whole number between 1 and 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidRatingError("Rating must be between 1 and 5", rating=rating)
    return rating


def apply_rating(current_average, current_count: int, new_rating: int) -> Tuple[Decimal, int]:
    """
    Fold one rating into a running average.

    Args:
        current_average: Average so far (0.00-5.00)
        current_count: Number of ratings already included
        new_rating: Rating to add (1-5)

    Returns:
        (new_average rounded half-up to 2 dp, new_count)
    """
    validate_rating(new_rating)
    average = Decimal(str(current_average or 0))
    count = int(current_count or 0)

    total = average * count + new_rating
    new_count = count + 1
    new_average = (total / new_count).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return new_average, new_count


@transaction.atomic
def record_rating(user_id, rating: int):
    """Apply a rating to the user's stored average under a row lock."""
    User = get_user_model()
    user = User.objects.select_for_update().get(pk=user_id)
    user.rating, user.total_ratings = apply_rating(user.rating, user.total_ratings, rating)
    user.save(update_fields=["rating", "total_ratings"])
    logger.info("User %s rating now %s over %s ratings", user.pk, user.rating, user.total_ratings)
    return user
