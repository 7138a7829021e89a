from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class User(AbstractUser):
    """Extended user model with a multi-valued role set"""
    RIDER = 'RIDER'
    DRIVER = 'DRIVER'
    ADMIN = 'ADMIN'
    ROLE_CHOICES = [
        (RIDER, 'Rider'),
        (DRIVER, 'Driver'),
        (ADMIN, 'Administrator'),
    ]

    # Comma separated subset of ROLE_CHOICES, e.g. "RIDER,DRIVER"
    roles = models.CharField(max_length=100, default=RIDER)
    full_name = models.CharField(max_length=100, blank=True)
    phone_number = models.CharField(max_length=20, unique=True, null=True, blank=True)
    profile_image_url = models.URLField(max_length=500, null=True, blank=True)

    # Running average of ratings received from the other party
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('5.00'))],
    )
    total_ratings = models.PositiveIntegerField(default=0)

    is_verified = models.BooleanField(default=False)
    current_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.username} ({self.roles})"

    @property
    def role_set(self):
        return {role.strip() for role in (self.roles or '').split(',') if role.strip()}

    def set_roles(self, roles):
        valid = {choice for choice, _ in self.ROLE_CHOICES}
        unknown = set(roles) - valid
        if unknown:
            raise ValueError(f"Unknown roles: {', '.join(sorted(unknown))}")
        # Keep a stable order so the stored value is deterministic
        self.roles = ','.join(choice for choice, _ in self.ROLE_CHOICES if choice in roles)

    def add_role(self, role):
        self.set_roles(self.role_set | {role})

    def has_role(self, role):
        return role in self.role_set

    @property
    def is_rider(self):
        return self.has_role(self.RIDER)

    @property
    def is_driver(self):
        return self.has_role(self.DRIVER)
