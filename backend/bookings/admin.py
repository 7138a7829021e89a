from django.contrib import admin
from bookings.models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin panel for managing bookings"""

    list_display = [
        "reference_number",
        "rider",
        "route",
        "status",
        "passenger_count",
        "fare_amount",
        "scheduled_pickup_time",
        "created_at",
    ]

    list_filter = [
        "status",
        "scheduled_pickup_time",
        "created_at",
    ]

    search_fields = [
        "reference_number",
        "rider__username",
        "route__name",
    ]

    readonly_fields = [
        "reference_number",
        "fare_amount",
        "distance_km",
        "created_at",
        "updated_at",
        "confirmed_at",
        "completed_at",
        "cancelled_at",
    ]

    ordering = ("-created_at",)
