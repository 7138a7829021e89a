from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from bookings.models import Booking
from services.booking_management import allowed_actions


class BookingSerializer(serializers.ModelSerializer):
    """Serializer for bookings"""
    rider = UserBasicSerializer(read_only=True)
    route_name = serializers.CharField(source="route.name", read_only=True)
    pickup_stop_name = serializers.CharField(source="pickup_stop.name", read_only=True, default=None)
    dropoff_stop_name = serializers.CharField(source="dropoff_stop.name", read_only=True, default=None)
    cancelled_by = UserBasicSerializer(read_only=True)
    allowed_actions = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "reference_number",
            "rider",
            "route",
            "route_name",
            "pickup_latitude",
            "pickup_longitude",
            "dropoff_latitude",
            "dropoff_longitude",
            "pickup_stop_name",
            "dropoff_stop_name",
            "status",
            "allowed_actions",
            "scheduled_pickup_time",
            "estimated_dropoff_time",
            "actual_pickup_time",
            "actual_dropoff_time",
            "passenger_count",
            "fare_amount",
            "distance_km",
            "special_instructions",
            "rider_rating",
            "driver_rating",
            "rider_feedback",
            "driver_feedback",
            "cancelled_by",
            "cancellation_reason",
            "cancelled_at",
            "confirmed_at",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_allowed_actions(self, obj):
        return [action.value for action in allowed_actions(obj.status)]


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for creating bookings"""
    route_id = serializers.IntegerField()
    pickup_latitude = serializers.FloatField(min_value=-90, max_value=90)
    pickup_longitude = serializers.FloatField(min_value=-180, max_value=180)
    dropoff_latitude = serializers.FloatField(min_value=-90, max_value=90)
    dropoff_longitude = serializers.FloatField(min_value=-180, max_value=180)
    scheduled_pickup_time = serializers.DateTimeField()
    passenger_count = serializers.IntegerField(required=False, default=1)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class BookingCancelSerializer(serializers.Serializer):
    """Serializer for booking cancellation"""
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RatingSerializer(serializers.Serializer):
    # 1-5 range enforced by services.ratings
    rating = serializers.IntegerField()
    feedback = serializers.CharField(required=False, allow_blank=True, default="")
