from django.urls import path

from .views import (
    capabilities_view,
    dashboard_view,
    logout_view,
    session_view,
    signin_view,
    sleep_view,
    water_view,
)

urlpatterns = [
    path("session/", session_view, name="session"),
    path("auth/signin/", signin_view, name="signin"),
    path("auth/logout/", logout_view, name="logout"),
    path("dashboard/", dashboard_view, name="dashboard"),
    path("dashboard/sleep/", sleep_view, name="dashboard-sleep"),
    path("dashboard/water/", water_view, name="dashboard-water"),
    path("capabilities/", capabilities_view, name="capabilities"),
]
