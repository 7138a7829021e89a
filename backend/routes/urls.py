from django.urls import path

from .views import (
    DriverRoutesView,
    NearbyRoutesView,
    RouteDetailView,
    RouteListView,
    RoutePublishView,
    RoutesHeadingToView,
    RouteStopsView,
    ValidatePickupView,
)

urlpatterns = [
    path("", RouteListView.as_view(), name="route-list"),
    path("mine/", DriverRoutesView.as_view(), name="route-mine"),
    path("nearby/", NearbyRoutesView.as_view(), name="route-nearby"),
    path("heading-to/", RoutesHeadingToView.as_view(), name="route-heading-to"),
    path("<int:route_id>/", RouteDetailView.as_view(), name="route-detail"),
    path("<int:route_id>/publish/", RoutePublishView.as_view(), name="route-publish"),
    path("<int:route_id>/stops/", RouteStopsView.as_view(), name="route-stops"),
    path("<int:route_id>/validate-pickup/", ValidatePickupView.as_view(), name="route-validate-pickup"),
]
