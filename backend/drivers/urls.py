from django.urls import path
from .views import (
    DriverVehicleListView,
    DriverDashboardView,
)

urlpatterns = [
    path("vehicles/", DriverVehicleListView.as_view(), name="driver-vehicles"),
    path("dashboard/", DriverDashboardView.as_view(), name="driver-dashboard"),
]
