from django.contrib import admin
from drivers.models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    """Admin panel for managing driver vehicles"""

    list_display = [
        "license_plate",
        "owner",
        "make",
        "model",
        "capacity",
        "vehicle_type",
        "is_active",
        "is_verified",
    ]

    list_filter = [
        "vehicle_type",
        "is_active",
        "is_verified",
    ]

    search_fields = [
        "owner__username",
        "license_plate",
    ]

    readonly_fields = [
        "created_at",
        "updated_at",
    ]

    ordering = ("license_plate",)
