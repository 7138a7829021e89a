from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsDriver
from drivers.serializers import (
    DriverDashboardSerializer,
    VehicleCreateSerializer,
    VehicleSerializer,
)

from drivers import services


class DriverVehicleListView(APIView):
    """
    GET: vehicles owned by the driver.
    POST: register a new vehicle.
    """
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        vehicles = services.get_driver_vehicles(request.user)
        serializer = VehicleSerializer(vehicles, many=True)
        return Response({"vehicles": serializer.data, "count": len(serializer.data)})

    def post(self, request):
        serializer = VehicleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        fields = dict(serializer.validated_data)
        fields["vehicle_image_url"] = fields.get("vehicle_image_url") or None

        vehicle = services.register_vehicle(request.user, **fields)

        return Response(
            {
                "message": "Vehicle registered",
                "vehicle": VehicleSerializer(vehicle).data,
            },
            status=status.HTTP_201_CREATED,
        )


class DriverDashboardView(APIView):
    """GET: today's passengers, requests, next stop and earnings."""
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        dashboard = services.get_driver_dashboard(request.user)
        return Response(DriverDashboardSerializer(dashboard).data)
