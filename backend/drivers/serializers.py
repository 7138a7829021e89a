from rest_framework import serializers
from drivers.models import Vehicle


class VehicleSerializer(serializers.ModelSerializer):
    """
    Full vehicle representation returned to its owner
    """
    class Meta:
        model = Vehicle
        fields = [
            "id",
            "make",
            "model",
            "year",
            "color",
            "license_plate",
            "capacity",
            "vehicle_type",
            "vehicle_image_url",
            "is_active",
            "is_verified",
            "created_at",
        ]
        read_only_fields = ["id", "is_verified", "created_at"]


class VehicleCreateSerializer(serializers.Serializer):
    """
    Serializer for registering a vehicle.
    """
    make = serializers.CharField(max_length=50)
    model = serializers.CharField(max_length=50)
    year = serializers.IntegerField(min_value=1900, max_value=2100)
    color = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    license_plate = serializers.CharField(max_length=20)
    capacity = serializers.IntegerField(min_value=1, max_value=50)
    vehicle_type = serializers.ChoiceField(choices=Vehicle.TYPE_CHOICES, default="SEDAN")
    vehicle_image_url = serializers.URLField(required=False, allow_blank=True, default="")


class DriverDashboardSerializer(serializers.Serializer):
    route_count = serializers.IntegerField()
    active_passengers = serializers.IntegerField()
    pending_requests = serializers.IntegerField()
    next_stop = serializers.CharField(allow_null=True)
    next_stop_eta_minutes = serializers.IntegerField(allow_null=True)
    completed_today = serializers.IntegerField()
    earnings_today = serializers.CharField()
    rating = serializers.CharField()
    total_ratings = serializers.IntegerField()
