from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

User = settings.AUTH_USER_MODEL


class Vehicle(models.Model):
    """A vehicle registered by a driver; its capacity bounds route bookings"""
    TYPE_CHOICES = [
        ('SEDAN', 'Sedan'),
        ('SUV', 'SUV'),
        ('HATCHBACK', 'Hatchback'),
        ('MINIVAN', 'Minivan'),
        ('BUS', 'Bus'),
        ('TRICYCLE', 'Tricycle'),
    ]

    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name='vehicles')

    make = models.CharField(max_length=50)
    model = models.CharField(max_length=50)
    year = models.PositiveIntegerField(validators=[MinValueValidator(1900), MaxValueValidator(2100)])
    color = models.CharField(max_length=30)
    license_plate = models.CharField(max_length=20, unique=True)
    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1), MaxValueValidator(50)])
    vehicle_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='SEDAN')
    vehicle_image_url = models.URLField(max_length=500, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    is_verified = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vehicles'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(capacity__gte=1) & models.Q(capacity__lte=50),
                name='chk_vehicle_capacity',
            ),
        ]

    def __str__(self):
        return f"{self.make} {self.model} - {self.license_plate}"
