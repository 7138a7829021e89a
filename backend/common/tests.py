from django.test import SimpleTestCase
from rest_framework.exceptions import NotAuthenticated

from common.api import api_exception_handler, error_response
from common.utils import (
    InvalidGeometryError,
    angular_difference,
    bearing_degrees,
    calculate_distance,
    closest_point_index,
    distance_along_line_km,
    distance_meters,
    distance_to_line_meters,
    line_length_km,
    point_near_line,
    validate_line,
    validate_point,
)
from services.exceptions import CapacityExceededError, NotFoundError

# North-south line through Abuja, (lon, lat)
ROUTE_LINE = [(7.49, 9.0), (7.49, 9.1)]

# One degree of arc on the mean-radius sphere
ONE_DEGREE_METERS = 111195.08


class GeoDistanceTests(SimpleTestCase):
    def test_one_degree_along_equator(self):
        self.assertAlmostEqual(distance_meters((0, 0), (1, 0)), ONE_DEGREE_METERS, delta=1)

    def test_latitude_first_wrapper_matches(self):
        self.assertAlmostEqual(
            calculate_distance(9.0, 7.49, 9.1, 7.49),
            distance_meters((7.49, 9.0), (7.49, 9.1)),
        )

    def test_line_length_sums_segments(self):
        self.assertEqual(line_length_km([(0, 0), (1, 0), (1, 1)]), 222.39)

    def test_invalid_points_rejected(self):
        with self.assertRaises(InvalidGeometryError):
            validate_point((7.49, 91))
        with self.assertRaises(InvalidGeometryError):
            validate_point("not a point")
        with self.assertRaises(InvalidGeometryError):
            validate_line([(7.49, 9.0)])


class GeoBearingTests(SimpleTestCase):
    def test_cardinal_bearings(self):
        self.assertAlmostEqual(bearing_degrees((0, 0), (0, 1)), 0.0)
        self.assertAlmostEqual(bearing_degrees((0, 0), (1, 0)), 90.0)
        self.assertAlmostEqual(bearing_degrees((0, 0), (0, -1)), 180.0)
        self.assertAlmostEqual(bearing_degrees((0, 0), (-1, 0)), 270.0)

    def test_angular_difference_wraps(self):
        self.assertEqual(angular_difference(350, 10), 20)
        self.assertEqual(angular_difference(10, 350), 20)
        self.assertEqual(angular_difference(0, 180), 180)
        self.assertEqual(angular_difference(90, 90), 0)


class GeoLineTests(SimpleTestCase):
    def test_point_within_tolerance(self):
        # ~99m east of the line
        point = (7.4909, 9.05)
        self.assertAlmostEqual(distance_to_line_meters(ROUTE_LINE, point), 98.8, delta=1)
        self.assertTrue(point_near_line(ROUTE_LINE, point, 500))

    def test_point_outside_tolerance(self):
        # ~604m east of the line
        point = (7.4955, 9.05)
        self.assertAlmostEqual(distance_to_line_meters(ROUTE_LINE, point), 604, delta=2)
        self.assertFalse(point_near_line(ROUTE_LINE, point, 500))

    def test_point_past_end_measures_to_endpoint(self):
        distance = distance_to_line_meters(ROUTE_LINE, (7.49, 9.11))
        self.assertAlmostEqual(distance, ONE_DEGREE_METERS / 100, delta=1)

    def test_negative_tolerance_rejected(self):
        with self.assertRaises(InvalidGeometryError):
            point_near_line(ROUTE_LINE, (7.49, 9.05), -1)

    def test_distance_along_line(self):
        along = distance_along_line_km(ROUTE_LINE, (7.4909, 9.02), (7.49, 9.08))
        self.assertAlmostEqual(along, 6.67, delta=0.01)
        # Direction agnostic
        self.assertAlmostEqual(
            distance_along_line_km(ROUTE_LINE, (7.49, 9.08), (7.4909, 9.02)), along
        )

    def test_closest_point_index(self):
        stops = [(7.49, 9.0), (7.49, 9.05), (7.49, 9.1)]
        self.assertEqual(closest_point_index(stops, (7.491, 9.06)), 1)
        self.assertEqual(closest_point_index([], (7.491, 9.06)), -1)


class ErrorHandlingTests(SimpleTestCase):
    def test_error_response_shape(self):
        response = error_response(NotFoundError("Route not found", route_id=3))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data, {
            "error": "Route not found",
            "code": "not_found",
            "details": {"route_id": 3},
        })

    def test_subclass_keeps_parent_status(self):
        response = error_response(CapacityExceededError("Route is full"))

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "capacity_exceeded")
        self.assertNotIn("details", response.data)

    def test_handler_translates_geometry_errors(self):
        response = api_exception_handler(InvalidGeometryError("Latitude 91 outside [-90, 90]"), {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid_input")

    def test_handler_defers_to_rest_framework(self):
        response = api_exception_handler(NotAuthenticated(), {})

        self.assertEqual(response.status_code, 401)
