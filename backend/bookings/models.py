import uuid

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class BookingStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'              # awaiting driver confirmation
    CONFIRMED = 'CONFIRMED', 'Confirmed'        # driver confirmed, waiting for pickup time
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'  # rider picked up
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'        # by rider or driver
    NO_SHOW = 'NO_SHOW', 'No Show'              # no transition leads here yet


class Booking(models.Model):
    """A rider's reservation of seats on a route for a scheduled pickup."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reference_number = models.CharField(max_length=50, unique=True)

    # Foreign keys
    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    route = models.ForeignKey(
        'routes.Route',
        on_delete=models.PROTECT,
        related_name='bookings'
    )

    # Pickup & dropoff
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    dropoff_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    dropoff_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_stop = models.ForeignKey(
        'routes.VirtualStop',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='pickup_bookings'
    )
    dropoff_stop = models.ForeignKey(
        'routes.VirtualStop',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='dropoff_bookings'
    )

    status = models.CharField(max_length=20, choices=BookingStatus.choices, default=BookingStatus.PENDING)

    # Schedule
    scheduled_pickup_time = models.DateTimeField()
    estimated_dropoff_time = models.DateTimeField(null=True, blank=True)
    actual_pickup_time = models.DateTimeField(null=True, blank=True)
    actual_dropoff_time = models.DateTimeField(null=True, blank=True)

    # Pricing (fixed at creation)
    passenger_count = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(10)]
    )
    fare_amount = models.DecimalField(max_digits=10, decimal_places=2)
    distance_km = models.DecimalField(max_digits=10, decimal_places=2)
    special_instructions = models.CharField(max_length=500, null=True, blank=True)

    # Ratings: rider_rating is given by the rider, driver_rating by the driver
    rider_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    driver_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    rider_feedback = models.CharField(max_length=1000, null=True, blank=True)
    driver_feedback = models.CharField(max_length=1000, null=True, blank=True)

    # Cancellation
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_bookings'
    )
    cancellation_reason = models.CharField(max_length=500, null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['-scheduled_pickup_time']
        indexes = [
            models.Index(fields=['rider', 'status'], name='idx_booking_rider_status'),
            models.Index(fields=['route', 'status'], name='idx_booking_route_status'),
            models.Index(fields=['route', 'scheduled_pickup_time'], name='idx_booking_route_sched'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(passenger_count__gte=1) & models.Q(passenger_count__lte=10),
                name='chk_passenger_count',
            ),
            models.CheckConstraint(
                condition=models.Q(fare_amount__gte=0),
                name='chk_fare_amount',
            ),
            models.CheckConstraint(
                condition=models.Q(rider_rating__isnull=True) | models.Q(rider_rating__gte=1, rider_rating__lte=5),
                name='chk_rider_rating',
            ),
            models.CheckConstraint(
                condition=models.Q(driver_rating__isnull=True) | models.Q(driver_rating__gte=1, driver_rating__lte=5),
                name='chk_driver_rating',
            ),
            models.CheckConstraint(
                condition=models.Q(status__in=BookingStatus.values),
                name='chk_booking_status',
            ),
        ]

    def __str__(self):
        return f"Booking {self.reference_number} - {self.rider} - {self.status}"

    @property
    def pickup_point(self):
        return float(self.pickup_longitude), float(self.pickup_latitude)

    @property
    def dropoff_point(self):
        return float(self.dropoff_longitude), float(self.dropoff_latitude)
