from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from routes.models import Route, VirtualStop


class CoordinateSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class VirtualStopSerializer(serializers.ModelSerializer):
    class Meta:
        model = VirtualStop
        fields = [
            "id",
            "name",
            "description",
            "latitude",
            "longitude",
            "sequence_order",
            "time_offset_minutes",
            "is_active",
        ]
        read_only_fields = fields


class VirtualStopCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    sequence_order = serializers.IntegerField(min_value=0, required=False)
    time_offset_minutes = serializers.IntegerField(min_value=0, required=False)


class RouteSerializer(serializers.ModelSerializer):
    """
    Route with its geometry as latitude/longitude pairs and its stops
    """
    driver = UserBasicSerializer(read_only=True)
    coordinates = serializers.SerializerMethodField()
    stops = serializers.SerializerMethodField()

    class Meta:
        model = Route
        fields = [
            "id",
            "name",
            "description",
            "coordinates",
            "distance_km",
            "driver",
            "vehicle",
            "is_active",
            "is_published",
            "max_deviation_meters",
            "stops",
            "created_at",
        ]
        read_only_fields = fields

    def get_coordinates(self, obj):
        return [{"latitude": lat, "longitude": lon} for lon, lat in obj.coordinates]

    def get_stops(self, obj):
        return VirtualStopSerializer(obj.stops.filter(is_active=True), many=True).data


class RouteMatchSerializer(serializers.Serializer):
    """A search hit: the route plus how far it passes from the rider."""
    route = RouteSerializer(read_only=True)
    distance_meters = serializers.SerializerMethodField()

    def get_distance_meters(self, obj):
        return round(obj.distance_meters, 1)


class RouteCreateSerializer(serializers.Serializer):
    """
    Serializer for creating a route.

    ``coordinates`` is the ordered path, at least two points.
    """
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    coordinates = CoordinateSerializer(many=True)
    vehicle_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    max_deviation_meters = serializers.IntegerField(min_value=1, required=False, default=500)

    def validate_coordinates(self, value):
        if len(value) < 2:
            raise serializers.ValidationError("A route needs at least two points")
        return value


class NearbyRoutesSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    radius_meters = serializers.FloatField(min_value=0, required=False)


class HeadingSearchSerializer(serializers.Serializer):
    origin_latitude = serializers.FloatField(min_value=-90, max_value=90)
    origin_longitude = serializers.FloatField(min_value=-180, max_value=180)
    destination_latitude = serializers.FloatField(min_value=-90, max_value=90)
    destination_longitude = serializers.FloatField(min_value=-180, max_value=180)
    radius_meters = serializers.FloatField(min_value=0, required=False)
    tolerance_degrees = serializers.FloatField(min_value=0, max_value=180, required=False)
