import re
from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from bookings.models import BookingStatus
from services.booking_management import BookingAction, allowed_actions, can_cancel, next_status
from services.booking_management.references import generate_reference_number
from services.exceptions import IllegalStateError, InvalidInputError, InvalidRatingError
from services.matching import MatchingConfig
from services.pricing import FareCalculator, FareConfig, compute_fare
from services.ratings import apply_rating, validate_rating


class FareCalculatorTests(SimpleTestCase):
    def setUp(self):
        self.calculator = FareCalculator(FareConfig())

    def test_base_plus_distance(self):
        self.assertEqual(self.calculator.compute_fare(Decimal("3.2"), 1), Decimal("360.00"))

    def test_scales_with_passengers(self):
        self.assertEqual(self.calculator.compute_fare(Decimal("3.2"), 2), Decimal("720.00"))

    def test_zero_distance_is_base_fare(self):
        self.assertEqual(self.calculator.compute_fare(0, 1), Decimal("200.00"))

    def test_missing_or_zero_passengers_priced_as_one(self):
        self.assertEqual(self.calculator.compute_fare(2, None), Decimal("300.00"))
        self.assertEqual(self.calculator.compute_fare(2, 0), Decimal("300.00"))

    def test_rounds_half_up(self):
        # 200 + 0.333 * 50 = 216.65 exactly
        self.assertEqual(self.calculator.compute_fare(Decimal("0.333"), 1), Decimal("216.65"))
        # 200 + 0.0001 * 50 = 200.005
        self.assertEqual(self.calculator.compute_fare(Decimal("0.0001"), 1), Decimal("200.01"))

    def test_float_distance_has_no_binary_noise(self):
        self.assertEqual(self.calculator.compute_fare(0.1, 1), Decimal("205.00"))

    def test_negative_distance_rejected(self):
        with self.assertRaisesMessage(InvalidInputError, "Distance cannot be negative") as ctx:
            self.calculator.compute_fare(-1, 1)

        self.assertEqual(ctx.exception.code, "invalid_input")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_custom_policy(self):
        calculator = FareCalculator(FareConfig(base_fare=Decimal("100"), rate_per_km=Decimal("10")))
        self.assertEqual(calculator.compute_fare(5, 3), Decimal("450.00"))

    @override_settings(FARE_BASE_AMOUNT="150.00", FARE_RATE_PER_KM="20.00", FARE_CURRENCY="GHS")
    def test_config_from_settings(self):
        config = FareConfig.from_settings()

        self.assertEqual(config.base_fare, Decimal("150.00"))
        self.assertEqual(config.currency, "GHS")
        self.assertEqual(compute_fare(1, 1), Decimal("170.00"))


class RatingAggregationTests(SimpleTestCase):
    def test_first_rating(self):
        self.assertEqual(apply_rating(Decimal("0.00"), 0, 5), (Decimal("5.00"), 1))

    def test_running_average(self):
        self.assertEqual(apply_rating(Decimal("4.50"), 2, 3), (Decimal("4.00"), 3))
        self.assertEqual(apply_rating(Decimal("4.67"), 3, 5), (Decimal("4.75"), 4))

    def test_out_of_range_rejected(self):
        for rating in (0, 6, -1):
            with self.assertRaises(InvalidRatingError):
                apply_rating(Decimal("4.00"), 1, rating)

    def test_non_integers_rejected(self):
        for rating in (4.5, "5", True, None):
            with self.assertRaises(InvalidRatingError):
                validate_rating(rating)

    def test_bounds_accepted(self):
        self.assertEqual(validate_rating(1), 1)
        self.assertEqual(validate_rating(5), 5)


class BookingTransitionTests(SimpleTestCase):
    def test_happy_path(self):
        status = BookingStatus.PENDING
        for action, expected in [
            (BookingAction.CONFIRM, BookingStatus.CONFIRMED),
            (BookingAction.START, BookingStatus.IN_PROGRESS),
            (BookingAction.COMPLETE, BookingStatus.COMPLETED),
        ]:
            status = next_status(status, action)
            self.assertEqual(status, expected)

    def test_cancel_allowed_before_pickup_only(self):
        self.assertTrue(can_cancel(BookingStatus.PENDING))
        self.assertTrue(can_cancel(BookingStatus.CONFIRMED))
        self.assertFalse(can_cancel(BookingStatus.IN_PROGRESS))
        self.assertFalse(can_cancel(BookingStatus.COMPLETED))

    def test_illegal_transitions(self):
        illegal = [
            (BookingStatus.PENDING, BookingAction.START),
            (BookingStatus.PENDING, BookingAction.COMPLETE),
            (BookingStatus.CONFIRMED, BookingAction.COMPLETE),
            (BookingStatus.CONFIRMED, BookingAction.CONFIRM),
            (BookingStatus.IN_PROGRESS, BookingAction.CANCEL),
            (BookingStatus.CANCELLED, BookingAction.CANCEL),
            (BookingStatus.COMPLETED, BookingAction.START),
        ]
        for status, action in illegal:
            with self.subTest(status=status, action=action):
                with self.assertRaises(IllegalStateError):
                    next_status(status, action)

    def test_terminal_statuses_allow_nothing(self):
        for status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
            self.assertEqual(allowed_actions(status), [])

    def test_accepts_raw_values(self):
        self.assertEqual(next_status("PENDING", "confirm"), BookingStatus.CONFIRMED)

    def test_error_message_names_state(self):
        with self.assertRaisesMessage(IllegalStateError, "Cannot cancel a booking that is cancelled"):
            next_status(BookingStatus.CANCELLED, BookingAction.CANCEL)


class ReferenceNumberTests(SimpleTestCase):
    def test_format(self):
        pattern = re.compile(r"^MS-[ABCDEFGHJKMNPQRSTUVWXYZ23456789]{8}$")
        for _ in range(50):
            self.assertRegex(generate_reference_number(), pattern)


class MatchingConfigTests(SimpleTestCase):
    @override_settings(
        ROUTE_SEARCH_RADIUS_METERS=800,
        ROUTE_HEADING_TOLERANCE_DEGREES=30,
        ROUTE_SEARCH_MAX_RESULTS=5,
    )
    def test_from_settings(self):
        self.assertEqual(
            MatchingConfig.from_settings(),
            MatchingConfig(default_radius_meters=800.0, heading_tolerance_degrees=30.0, max_results=5),
        )
