from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from drivers.models import Vehicle
from routes.models import Route, VirtualStop
from routes.views import NearbyRoutesView, RouteListView, RoutePublishView, RoutesHeadingToView, ValidatePickupView
from services.exceptions import (
    ConflictError,
    IllegalStateError,
    InvalidInputError,
    LocationTooFarError,
    NotFoundError,
    UnauthorizedError,
)
from services.matching import (
    MatchingConfig,
    RouteMatcher,
    add_virtual_stop,
    create_route,
    deactivate_route,
    publish_route,
)

NORTH_SOUTH = [(7.49, 9.0), (7.49, 9.1)]


class RouteBuilderTests(TestCase):
    def setUp(self):
        self.driver = User.objects.create_user(username="driver", password="pass1234", roles="DRIVER")
        self.rider = User.objects.create_user(username="rider", password="pass1234", roles="RIDER")

    def test_create_route_measures_path(self):
        route = create_route(self.driver, "Lugbe - Central", NORTH_SOUTH)

        self.assertEqual(str(route.distance_km), "11.12")
        self.assertEqual(route.path, [[7.49, 9.0], [7.49, 9.1]])
        self.assertTrue(route.is_active)
        self.assertFalse(route.is_published)

    def test_create_route_requires_driver(self):
        with self.assertRaises(UnauthorizedError):
            create_route(self.rider, "Nope", NORTH_SOUTH)

    def test_create_route_rejects_bad_geometry(self):
        with self.assertRaises(InvalidInputError):
            create_route(self.driver, "One point", [(7.49, 9.0)])
        with self.assertRaises(InvalidInputError):
            create_route(self.driver, "Off the map", [(7.49, 9.0), (7.49, 95)])

    def test_vehicle_must_belong_to_driver(self):
        other = User.objects.create_user(username="other", password="pass1234", roles="DRIVER")
        vehicle = Vehicle.objects.create(
            owner=other, make="Toyota", model="Corolla", year=2018,
            color="Blue", license_plate="ABJ-123", capacity=4,
        )
        with self.assertRaises(NotFoundError):
            create_route(self.driver, "Borrowed", NORTH_SOUTH, vehicle_id=vehicle.id)

    def test_publish_and_deactivate(self):
        route = create_route(self.driver, "Lugbe - Central", NORTH_SOUTH)

        route = publish_route(route.id, self.driver)
        self.assertTrue(route.is_published)

        route = deactivate_route(route.id, self.driver)
        self.assertFalse(route.is_active)
        self.assertFalse(route.is_published)

        with self.assertRaises(IllegalStateError):
            publish_route(route.id, self.driver)

    def test_only_owner_can_publish(self):
        route = create_route(self.driver, "Lugbe - Central", NORTH_SOUTH)
        other = User.objects.create_user(username="other", password="pass1234", roles="DRIVER")

        with self.assertRaises(UnauthorizedError):
            publish_route(route.id, other)

    def test_stops_are_sequenced(self):
        route = create_route(self.driver, "Lugbe - Central", NORTH_SOUTH)

        first = add_virtual_stop(route.id, self.driver, "Start", 9.0, 7.49)
        second = add_virtual_stop(route.id, self.driver, "Middle", 9.05, 7.4909)

        self.assertEqual((first.sequence_order, second.sequence_order), (0, 1))

        with self.assertRaises(ConflictError):
            add_virtual_stop(route.id, self.driver, "Duplicate", 9.06, 7.49, sequence_order=1)

    def test_stop_must_be_near_route(self):
        route = create_route(self.driver, "Lugbe - Central", NORTH_SOUTH)

        with self.assertRaises(LocationTooFarError):
            add_virtual_stop(route.id, self.driver, "Far", 9.05, 7.4955)


class RouteMatcherTests(TestCase):
    def setUp(self):
        self.driver = User.objects.create_user(username="driver", password="pass1234", roles="DRIVER")
        self.matcher = RouteMatcher(MatchingConfig())

        self.north_south = self._route("North-south", NORTH_SOUTH)
        self.north_east = self._route("North-east", [(7.40, 9.00), (7.45, 9.05)])
        self.southbound = self._route("Southbound", [(7.40, 9.20), (7.40, 9.00)])
        self.unpublished = self._route("Draft", NORTH_SOUTH, publish=False)

    def _route(self, name, path, publish=True):
        route = create_route(self.driver, name, path)
        if publish:
            route = publish_route(route.id, self.driver)
        return route

    def test_find_nearby_sorted_and_published_only(self):
        matches = self.matcher.find_nearby((7.4909, 9.05))

        self.assertEqual([m.route for m in matches], [self.north_south])
        self.assertAlmostEqual(matches[0].distance_meters, 98.8, delta=1)

    def test_find_nearby_respects_radius(self):
        self.assertEqual(self.matcher.find_nearby((7.4955, 9.05)), [])
        self.assertEqual(len(self.matcher.find_nearby((7.4955, 9.05), radius_meters=700)), 1)

    def test_find_nearby_caps_results(self):
        matcher = RouteMatcher(MatchingConfig(max_results=1))
        # Both westerly routes pass within 1km of this point
        matches = matcher.find_nearby((7.40, 9.00), radius_meters=1000)
        self.assertEqual(len(matches), 1)

    def test_heading_towards_filters_direction(self):
        matches = self.matcher.find_heading_towards((7.40, 9.00), (7.50, 9.10))

        routes = [m.route for m in matches]
        self.assertIn(self.north_east, routes)
        self.assertNotIn(self.southbound, routes)

    def test_heading_search_looks_past_result_cap(self):
        crowded = [self._route(f"Southbound {i}", [(7.40, 9.20), (7.40, 8.99)]) for i in range(20)]
        # ~300m east of the origin, further than all the southbound routes
        north_east = self._route("North-east offset", [(7.4027, 9.00), (7.4527, 9.05)])
        candidates = crowded + [north_east]

        nearby = self.matcher.find_nearby((7.40, 9.00), routes=candidates)
        self.assertEqual(len(nearby), 20)
        self.assertNotIn(north_east, [m.route for m in nearby])

        matches = self.matcher.find_heading_towards((7.40, 9.00), (7.50, 9.10), routes=candidates)
        self.assertEqual([m.route for m in matches], [north_east])

    def test_validate_pickup(self):
        self.assertTrue(self.matcher.validate_pickup(self.north_south.id, (7.4909, 9.05)))
        self.assertFalse(self.matcher.validate_pickup(self.north_south.id, (7.4955, 9.05)))

        with self.assertRaises(NotFoundError):
            self.matcher.validate_pickup(99999, (7.49, 9.05))

    def test_validate_location_message(self):
        with self.assertRaisesMessage(LocationTooFarError, "Pickup location is too far from route (max 500m)"):
            self.matcher.validate_location(self.north_south, (7.4955, 9.05), "Pickup")

    def test_nearest_stop(self):
        self.assertIsNone(self.matcher.nearest_stop(self.north_south, (7.49, 9.05)))

        add_virtual_stop(self.north_south.id, self.driver, "Start", 9.0, 7.49)
        add_virtual_stop(self.north_south.id, self.driver, "End", 9.1, 7.49)

        stop = self.matcher.nearest_stop(self.north_south, (7.49, 9.09))
        self.assertEqual(stop.name, "End")


class RouteViewTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.driver = User.objects.create_user(username="driver", password="pass1234", roles="DRIVER")
        self.rider = User.objects.create_user(username="rider", password="pass1234", roles="RIDER")

    def test_driver_creates_route(self):
        request = self.factory.post("/api/routes/", {
            "name": "Lugbe - Central",
            "coordinates": [
                {"latitude": 9.0, "longitude": 7.49},
                {"latitude": 9.1, "longitude": 7.49},
            ],
        }, format="json")
        force_authenticate(request, user=self.driver)
        response = RouteListView.as_view()(request)

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["route"]["distance_km"], "11.12")
        self.assertEqual(response.data["route"]["coordinates"][1], {"latitude": 9.1, "longitude": 7.49})

    def test_rider_cannot_create_route(self):
        request = self.factory.post("/api/routes/", {
            "name": "Nope",
            "coordinates": [
                {"latitude": 9.0, "longitude": 7.49},
                {"latitude": 9.1, "longitude": 7.49},
            ],
        }, format="json")
        force_authenticate(request, user=self.rider)
        response = RouteListView.as_view()(request)

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["code"], "unauthorized")

    def test_rider_cannot_publish(self):
        route = create_route(self.driver, "Lugbe - Central", NORTH_SOUTH)

        request = self.factory.post(f"/api/routes/{route.id}/publish/")
        force_authenticate(request, user=self.rider)
        response = RoutePublishView.as_view()(request, route_id=route.id)

        self.assertEqual(response.status_code, 403)

    def test_nearby_search(self):
        route = publish_route(create_route(self.driver, "Lugbe - Central", NORTH_SOUTH).id, self.driver)

        request = self.factory.get("/api/routes/nearby/", {"latitude": 9.05, "longitude": 7.4909})
        force_authenticate(request, user=self.rider)
        response = NearbyRoutesView.as_view()(request)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["routes"][0]["route"]["id"], route.id)

    def test_nearby_search_requires_coordinates(self):
        request = self.factory.get("/api/routes/nearby/", {"latitude": 9.05})
        force_authenticate(request, user=self.rider)
        response = NearbyRoutesView.as_view()(request)

        self.assertEqual(response.status_code, 400)

    def test_heading_search(self):
        publish_route(create_route(self.driver, "North-east", [(7.40, 9.00), (7.45, 9.05)]).id, self.driver)

        request = self.factory.get("/api/routes/heading-to/", {
            "origin_latitude": 9.0,
            "origin_longitude": 7.40,
            "destination_latitude": 9.1,
            "destination_longitude": 7.5,
        })
        force_authenticate(request, user=self.rider)
        response = RoutesHeadingToView.as_view()(request)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)

    def test_validate_pickup_unknown_route(self):
        request = self.factory.get("/api/routes/99999/validate-pickup/", {"latitude": 9.05, "longitude": 7.49})
        force_authenticate(request, user=self.rider)
        response = ValidatePickupView.as_view()(request, route_id=99999)

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "not_found")

    def test_stop_model_point(self):
        route = create_route(self.driver, "Lugbe - Central", NORTH_SOUTH)
        stop = VirtualStop.objects.create(route=route, name="A", latitude=9.05, longitude=7.49, sequence_order=0)
        stop.refresh_from_db()

        self.assertEqual(stop.point, (7.49, 9.05))
        self.assertEqual(Route.objects.get(pk=route.id).start_point, (7.49, 9.0))
