from django.contrib import admin
from routes.models import Route, VirtualStop


class VirtualStopInline(admin.TabularInline):
    model = VirtualStop
    extra = 0
    ordering = ("sequence_order",)


@admin.register(Route)
class RouteAdmin(admin.ModelAdmin):
    """Admin panel for driver routes"""

    list_display = [
        "id",
        "name",
        "driver",
        "vehicle",
        "distance_km",
        "is_active",
        "is_published",
        "created_at",
    ]

    list_filter = [
        "is_active",
        "is_published",
        "created_at",
    ]

    search_fields = [
        "name",
        "driver__username",
    ]

    readonly_fields = [
        "distance_km",
        "created_at",
        "updated_at",
    ]

    inlines = [VirtualStopInline]
