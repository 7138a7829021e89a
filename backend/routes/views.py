from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsDriver
from routes.serializers import (
    HeadingSearchSerializer,
    NearbyRoutesSerializer,
    RouteCreateSerializer,
    RouteMatchSerializer,
    RouteSerializer,
    VirtualStopCreateSerializer,
    VirtualStopSerializer,
)
from services.matching import (
    RouteMatcher,
    add_virtual_stop,
    create_route,
    deactivate_route,
    get_driver_routes,
    get_published_routes,
    get_route,
    publish_route,
    unpublish_route,
)


class RouteListView(APIView):
    """
    GET: published routes riders can book.
    POST: driver creates a route (unpublished until published).

    POST Body:
    {
        "name": "Lugbe - Central Area",
        "coordinates": [
            {"latitude": 9.0, "longitude": 7.49},
            {"latitude": 9.1, "longitude": 7.49}
        ],
        "vehicle_id": 1,
        "max_deviation_meters": 500
    }
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = RouteSerializer(get_published_routes(), many=True)
        return Response({"routes": serializer.data, "count": len(serializer.data)})

    def post(self, request):
        serializer = RouteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        route = create_route(
            driver=request.user,
            name=data["name"],
            description=data["description"],
            coordinates=[(point["longitude"], point["latitude"]) for point in data["coordinates"]],
            vehicle_id=data["vehicle_id"],
            max_deviation_meters=data["max_deviation_meters"],
        )

        return Response(
            {"message": "Route created", "route": RouteSerializer(route).data},
            status=status.HTTP_201_CREATED,
        )


class RouteDetailView(APIView):
    """
    GET: route with its stops.
    DELETE: driver retires the route.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, route_id: int):
        return Response(RouteSerializer(get_route(route_id)).data)

    def delete(self, request, route_id: int):
        route = deactivate_route(route_id, request.user)
        return Response({"message": "Route deactivated", "route": RouteSerializer(route).data})


class RoutePublishView(APIView):
    """POST publishes the route, DELETE takes it off the market."""
    permission_classes = [IsAuthenticated, IsDriver]

    def post(self, request, route_id: int):
        route = publish_route(route_id, request.user)
        return Response({"message": "Route published", "route": RouteSerializer(route).data})

    def delete(self, request, route_id: int):
        route = unpublish_route(route_id, request.user)
        return Response({"message": "Route unpublished", "route": RouteSerializer(route).data})


class RouteStopsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, route_id: int):
        route = get_route(route_id)
        stops = VirtualStopSerializer(route.stops.filter(is_active=True), many=True).data
        return Response({"stops": stops, "count": len(stops)})

    def post(self, request, route_id: int):
        serializer = VirtualStopCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        stop = add_virtual_stop(route_id, request.user, **serializer.validated_data)

        return Response(
            {"message": "Stop added", "stop": VirtualStopSerializer(stop).data},
            status=status.HTTP_201_CREATED,
        )


class NearbyRoutesView(APIView):
    """
    GET: published routes passing near a point.

    Query params: latitude, longitude, radius_meters (optional)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = NearbyRoutesSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        matches = RouteMatcher().find_nearby(
            (data["longitude"], data["latitude"]),
            radius_meters=data.get("radius_meters"),
        )
        serialized = RouteMatchSerializer(matches, many=True).data
        return Response({"routes": serialized, "count": len(serialized)})


class RoutesHeadingToView(APIView):
    """
    GET: routes near the origin travelling towards the destination.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = HeadingSearchSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        matches = RouteMatcher().find_heading_towards(
            (data["origin_longitude"], data["origin_latitude"]),
            (data["destination_longitude"], data["destination_latitude"]),
            radius_meters=data.get("radius_meters"),
            tolerance_degrees=data.get("tolerance_degrees"),
        )
        serialized = RouteMatchSerializer(matches, many=True).data
        return Response({"routes": serialized, "count": len(serialized)})


class ValidatePickupView(APIView):
    """GET: whether latitude/longitude is close enough to board the route."""
    permission_classes = [IsAuthenticated]

    def get(self, request, route_id: int):
        serializer = NearbyRoutesSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        valid = RouteMatcher().validate_pickup(route_id, (data["longitude"], data["latitude"]))
        return Response({"route_id": route_id, "valid": valid})


class DriverRoutesView(APIView):
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        serializer = RouteSerializer(get_driver_routes(request.user), many=True)
        return Response({"routes": serializer.data, "count": len(serializer.data)})
