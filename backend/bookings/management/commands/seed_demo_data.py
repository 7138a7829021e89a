from django.core.management.base import BaseCommand
from django.db import transaction
from accounts.models import User
from drivers.models import Vehicle
from routes.models import Route
from services.matching import add_virtual_stop, create_route, publish_route
import logging

logger = logging.getLogger(__name__)

DEMO_ROUTE_NAME = "Lugbe - Central Area"
DEMO_ROUTE_PATH = [
    (7.3986, 8.9806),
    (7.4420, 9.0165),
    (7.4891, 9.0579),
]
DEMO_STOPS = [
    ("Lugbe Junction", 8.9806, 7.3986),
    ("Area 1 Roundabout", 9.0165, 7.4420),
    ("Central Area", 9.0579, 7.4891),
]


class Command(BaseCommand):
    help = "Create a demo driver, rider, vehicle and published route. Safe to run repeatedly."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="demo-pass-123",
            help="Password for the demo accounts (default: demo-pass-123).",
        )

    def _user(self, username, roles, password):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"full_name": username.replace("_", " ").title()},
        )
        if created:
            user.set_roles(roles)
            user.set_password(password)
            user.save()
        return user, created

    @transaction.atomic
    def handle(self, *args, **options):
        password = options["password"]

        driver, driver_created = self._user("demo_driver", {User.DRIVER}, password)
        rider, rider_created = self._user("demo_rider", {User.RIDER}, password)

        vehicle, _ = Vehicle.objects.get_or_create(
            license_plate="DEMO-001",
            defaults={
                "owner": driver,
                "make": "Toyota",
                "model": "HiAce",
                "year": 2020,
                "color": "White",
                "capacity": 14,
                "vehicle_type": "MINIVAN",
            },
        )

        route = Route.objects.filter(driver=driver, name=DEMO_ROUTE_NAME).first()
        route_created = route is None
        if route_created:
            route = create_route(
                driver=driver,
                name=DEMO_ROUTE_NAME,
                coordinates=DEMO_ROUTE_PATH,
                description="Morning commute into the city centre",
                vehicle_id=vehicle.id,
            )
            for name, latitude, longitude in DEMO_STOPS:
                add_virtual_stop(route.id, driver, name, latitude, longitude)

        if not route.is_published:
            publish_route(route.id, driver)

        logger.info(
            "Demo data ready: driver=%s rider=%s route=%s", driver.id, rider.id, route.id
        )
        created = [
            label
            for label, flag in (("driver", driver_created), ("rider", rider_created), ("route", route_created))
            if flag
        ]
        if created:
            self.stdout.write(self.style.SUCCESS(f"Created demo {', '.join(created)} (route #{route.id})."))
        else:
            self.stdout.write(self.style.WARNING(f"Demo data already present (route #{route.id})."))
