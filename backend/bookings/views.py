from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsDriver, IsRider
from bookings.models import BookingStatus
from bookings.serializers import (
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    RatingSerializer,
)
from services import booking_management
from services.exceptions import InvalidInputError, UnauthorizedError
from services.matching import get_route


def result_response(result, status_code=status.HTTP_200_OK):
    """Render a BookingResult with the booking and any extra fields."""
    body = {
        "message": result.message,
        "booking": BookingSerializer(result.booking).data,
    }
    if result.extra:
        body.update(result.extra)
    return Response(body, status=status_code)


# ==================== Rider APIs ====================

class BookingCreateView(APIView):
    """
    POST: rider requests seats on a published route.

    POST Body:
    {
        "route_id": 1,
        "pickup_latitude": 9.02,
        "pickup_longitude": 7.49,
        "dropoff_latitude": 9.08,
        "dropoff_longitude": 7.49,
        "scheduled_pickup_time": "2026-01-05T07:30:00+01:00",
        "passenger_count": 2
    }
    """
    permission_classes = [IsAuthenticated, IsRider]

    def post(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = booking_management.create_booking(rider=request.user, **serializer.validated_data)
        return result_response(result, status.HTTP_201_CREATED)


class BookingDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, booking_id):
        booking = booking_management.get_booking(booking_id, user=request.user)
        return Response(BookingSerializer(booking).data)


class BookingCancelView(APIView):
    """
    POST: rider or route driver cancels a pending/confirmed booking.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, booking_id):
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = booking_management.cancel_booking(
            booking_id, request.user, reason=serializer.validated_data["reason"]
        )
        return result_response(result)


class BookingRateView(APIView):
    """
    POST: either party rates the other after completion.

    POST Body:
    {
        "rating": 5,
        "feedback": "Smooth ride"
    }
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, booking_id):
        serializer = RatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = booking_management.submit_rating(
            booking_id,
            request.user,
            serializer.validated_data["rating"],
            feedback=serializer.validated_data["feedback"],
        )
        return result_response(result)


class RiderBookingsView(APIView):
    """
    GET: rider's booking history.

    ?upcoming=true limits to pending/confirmed bookings still ahead.
    """
    permission_classes = [IsAuthenticated, IsRider]

    def get(self, request):
        if request.query_params.get("upcoming", "").lower() == "true":
            bookings = booking_management.get_upcoming_rider_bookings(request.user)
        else:
            bookings = booking_management.get_rider_bookings(request.user)

        serialized = BookingSerializer(bookings, many=True).data
        return Response({"bookings": serialized, "count": len(serialized)})


# ==================== Driver APIs ====================

class BookingConfirmView(APIView):
    permission_classes = [IsAuthenticated, IsDriver]

    def post(self, request, booking_id):
        result = booking_management.confirm_booking(booking_id, request.user)
        return result_response(result)


class BookingStartView(APIView):
    permission_classes = [IsAuthenticated, IsDriver]

    def post(self, request, booking_id):
        result = booking_management.start_ride(booking_id, request.user)
        return result_response(result)


class BookingCompleteView(APIView):
    permission_classes = [IsAuthenticated, IsDriver]

    def post(self, request, booking_id):
        result = booking_management.complete_ride(booking_id, request.user)
        return result_response(result)


class DriverBookingsView(APIView):
    """GET: bookings across the driver's routes, ?status= to filter."""
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        bookings = booking_management.get_driver_bookings(
            request.user, status=request.query_params.get("status")
        )
        serialized = BookingSerializer(bookings, many=True).data
        return Response({"bookings": serialized, "count": len(serialized)})


class RouteBookingsView(APIView):
    """
    GET: bookings on one of the driver's routes.

    Defaults to confirmed and in-progress bookings; ?status=PENDING,CONFIRMED
    selects others.
    """
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request, route_id: int):
        route = get_route(route_id)
        if route.driver_id != request.user.id:
            raise UnauthorizedError("Driver does not own this route")

        requested = request.query_params.get("status")
        if requested:
            statuses = [value.strip().upper() for value in requested.split(",") if value.strip()]
            unknown = [value for value in statuses if value not in BookingStatus.values]
            if unknown:
                raise InvalidInputError(f"Unknown booking status: {', '.join(unknown)}")
            bookings = booking_management.get_route_bookings(route_id, statuses)
        else:
            bookings = booking_management.get_route_active_bookings(route_id)

        serialized = BookingSerializer(bookings, many=True).data
        return Response({"route_id": route_id, "bookings": serialized, "count": len(serialized)})
