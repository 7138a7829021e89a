from django.contrib import admin
from django.urls import path, include

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("api/health/", health_check),  # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # register, login, refresh, me

    # Driver APIs (vehicles, dashboard)
    path('api/driver/', include('drivers.urls')),

    # Route publishing and search (at /api/routes/)
    path('api/routes/', include('routes.urls')),

    # Booking lifecycle (at /api/bookings/)
    path('api/bookings/', include('bookings.urls')),
]
