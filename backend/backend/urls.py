from django.urls import include, path

urlpatterns = [
    path("", include("core.urls")),
    path("health/", include("health.urls")),
    path("api/", include("api.urls")),
]
