from django.conf import settings
from django.db import models


class Route(models.Model):
    """A driver-published path that riders can book seats along."""

    name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)

    # Ordered [longitude, latitude] vertices; never edited once created
    path = models.JSONField()
    distance_km = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='routes'
    )
    vehicle = models.ForeignKey(
        'drivers.Vehicle',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='routes'
    )

    is_active = models.BooleanField(default=True)
    is_published = models.BooleanField(default=False)
    max_deviation_meters = models.PositiveIntegerField(default=500)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'routes'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(is_published=False) | models.Q(is_active=True),
                name='chk_route_published_is_active',
            ),
        ]

    def __str__(self):
        return f"Route #{self.id} - {self.name}"

    @property
    def coordinates(self):
        return [(float(lon), float(lat)) for lon, lat in self.path]

    @property
    def start_point(self):
        return self.coordinates[0]

    @property
    def end_point(self):
        return self.coordinates[-1]


class VirtualStop(models.Model):
    """A named point along a route usable as a pickup/dropoff anchor."""

    route = models.ForeignKey(Route, on_delete=models.CASCADE, related_name='stops')

    name = models.CharField(max_length=200)
    description = models.CharField(max_length=500, null=True, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)

    sequence_order = models.PositiveIntegerField()  # 0 = first stop
    time_offset_minutes = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'virtual_stops'
        ordering = ['route', 'sequence_order']
        constraints = [
            models.UniqueConstraint(
                fields=['route', 'sequence_order'],
                name='unique_route_stop_order'
            )
        ]

    def __str__(self):
        return f"{self.name} (#{self.sequence_order} on route {self.route_id})"

    @property
    def point(self):
        return float(self.longitude), float(self.latitude)
