"""Root URL configuration for the Users & Posts API."""
from django.urls import include, path, re_path
from drf_spectacular.views import SpectacularAPIView

from authentication.urls import users_router
from posts.urls import posts_router

from .health import DetailedHealthView, HealthView
from .views import not_found

handler404 = "core.views.not_found"
handler500 = "core.views.server_error"

urlpatterns = [
    path("auth/", include("authentication.urls")),
    path("api/v1/", include(users_router.urls)),
    path("api/v1/", include(posts_router.urls)),
    path("api/v1/files/", include("files.urls")),
    path("health/", HealthView.as_view(), name="health"),
    path("health/detailed/", DetailedHealthView.as_view(), name="health-detailed"),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    # Unmatched slash-terminated paths get the JSON envelope even with DEBUG on;
    # slashless ones still reach APPEND_SLASH first.
    re_path(r"^.*/$", not_found, name="not-found"),
]
