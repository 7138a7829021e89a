from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from drivers import services
from drivers.models import Vehicle
from drivers.views import DriverDashboardView, DriverVehicleListView
from services.booking_management import complete_ride, confirm_booking, create_booking, start_ride
from services.exceptions import ConflictError, InvalidInputError, UnauthorizedError
from services.matching import add_virtual_stop, create_route, publish_route


VEHICLE = {
    "make": "Toyota",
    "model": "HiAce",
    "year": 2020,
    "color": "White",
    "license_plate": " abj-101 ",
    "capacity": 14,
    "vehicle_type": "MINIVAN",
}


class VehicleRegistrationTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.driver = User.objects.create_user(username="driver", password="pass1234", roles="DRIVER")
        self.rider = User.objects.create_user(username="rider", password="pass1234", roles="RIDER")

    def test_register_normalises_plate(self):
        vehicle = services.register_vehicle(self.driver, **VEHICLE)

        self.assertEqual(vehicle.license_plate, "ABJ-101")
        self.assertEqual(list(services.get_driver_vehicles(self.driver)), [vehicle])

    def test_duplicate_plate_is_conflict(self):
        services.register_vehicle(self.driver, **VEHICLE)
        other = User.objects.create_user(username="other", password="pass1234", roles="DRIVER")

        with self.assertRaises(ConflictError):
            services.register_vehicle(other, **dict(VEHICLE, license_plate="ABJ-101"))

        self.assertEqual(Vehicle.objects.count(), 1)

    def test_riders_cannot_register(self):
        with self.assertRaises(UnauthorizedError):
            services.register_vehicle(self.rider, **VEHICLE)

    def test_capacity_bounds(self):
        with self.assertRaises(InvalidInputError):
            services.register_vehicle(self.driver, **dict(VEHICLE, capacity=0))

    def test_vehicle_endpoint(self):
        request = self.factory.post("/api/driver/vehicles/", VEHICLE, format="json")
        force_authenticate(request, user=self.driver)
        response = DriverVehicleListView.as_view()(request)

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["vehicle"]["license_plate"], "ABJ-101")
        self.assertIsNone(response.data["vehicle"]["vehicle_image_url"])

        request = self.factory.get("/api/driver/vehicles/")
        force_authenticate(request, user=self.driver)
        response = DriverVehicleListView.as_view()(request)

        self.assertEqual(response.data["count"], 1)

    def test_vehicle_endpoint_drivers_only(self):
        request = self.factory.get("/api/driver/vehicles/")
        force_authenticate(request, user=self.rider)
        response = DriverVehicleListView.as_view()(request)

        self.assertEqual(response.status_code, 403)


class DriverDashboardTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.driver = User.objects.create_user(username="driver", password="pass1234", roles="DRIVER")
        self.rider = User.objects.create_user(username="rider", password="pass1234", roles="RIDER")

        route = create_route(self.driver, "Lugbe - Central", [(7.49, 9.0), (7.49, 9.1)])
        self.route = publish_route(route.id, self.driver)
        add_virtual_stop(self.route.id, self.driver, "Start", 9.0, 7.49)

    def book(self, passengers=1):
        return create_booking(
            rider=self.rider,
            route_id=self.route.id,
            pickup_latitude=9.01,
            pickup_longitude=7.49,
            dropoff_latitude=9.08,
            dropoff_longitude=7.49,
            scheduled_pickup_time=timezone.now() + timedelta(hours=2),
            passenger_count=passengers,
        ).booking

    def test_empty_dashboard(self):
        dashboard = services.get_driver_dashboard(self.driver)

        self.assertEqual(dashboard["route_count"], 1)
        self.assertEqual(dashboard["active_passengers"], 0)
        self.assertIsNone(dashboard["next_stop"])
        self.assertEqual(dashboard["earnings_today"], "0.00")

    def test_dashboard_metrics(self):
        done = self.book()
        confirm_booking(done.id, self.driver)
        start_ride(done.id, self.driver)
        complete_ride(done.id, self.driver)

        riding = self.book(passengers=2)
        confirm_booking(riding.id, self.driver)
        start_ride(riding.id, self.driver)

        self.book()

        upcoming = self.book()
        confirm_booking(upcoming.id, self.driver)

        dashboard = services.get_driver_dashboard(self.driver)

        self.assertEqual(dashboard["active_passengers"], 2)
        self.assertEqual(dashboard["pending_requests"], 1)
        self.assertEqual(dashboard["completed_today"], 1)
        self.assertEqual(Decimal(dashboard["earnings_today"]), done.fare_amount)
        self.assertEqual(dashboard["next_stop"], "Start")
        self.assertIn(dashboard["next_stop_eta_minutes"], (118, 119, 120))

    def test_dashboard_endpoint(self):
        request = self.factory.get("/api/driver/dashboard/")
        force_authenticate(request, user=self.driver)
        response = DriverDashboardView.as_view()(request)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["pending_requests"], 0)
        self.assertEqual(response.data["rating"], "0.00")
