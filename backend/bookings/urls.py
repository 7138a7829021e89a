from django.urls import path

from .views import (
    BookingCancelView,
    BookingCompleteView,
    BookingConfirmView,
    BookingCreateView,
    BookingDetailView,
    BookingRateView,
    BookingStartView,
    DriverBookingsView,
    RiderBookingsView,
    RouteBookingsView,
)

urlpatterns = [
    path("", BookingCreateView.as_view(), name="booking-create"),
    path("mine/", RiderBookingsView.as_view(), name="booking-mine"),
    path("driver/", DriverBookingsView.as_view(), name="booking-driver"),
    path("route/<int:route_id>/", RouteBookingsView.as_view(), name="booking-route"),
    path("<uuid:booking_id>/", BookingDetailView.as_view(), name="booking-detail"),
    path("<uuid:booking_id>/confirm/", BookingConfirmView.as_view(), name="booking-confirm"),
    path("<uuid:booking_id>/start/", BookingStartView.as_view(), name="booking-start"),
    path("<uuid:booking_id>/complete/", BookingCompleteView.as_view(), name="booking-complete"),
    path("<uuid:booking_id>/cancel/", BookingCancelView.as_view(), name="booking-cancel"),
    path("<uuid:booking_id>/rate/", BookingRateView.as_view(), name="booking-rate"),
]
