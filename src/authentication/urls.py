"""URL patterns for authentication endpoints and the users API."""

from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import LoginView, LogoutAllView, LogoutView, MeView, RefreshView, RegisterView, UserViewSet

urlpatterns = [
    path("register/", RegisterView.as_view(), name="auth-register"),
    path("login/", LoginView.as_view(), name="auth-login"),
    path("refresh/", RefreshView.as_view(), name="auth-refresh"),
    path("logout/", LogoutView.as_view(), name="auth-logout"),
    path("logout-all/", LogoutAllView.as_view(), name="auth-logout-all"),
    path("me/", MeView.as_view(), name="auth-me"),
]

users_router = DefaultRouter(trailing_slash=True)
users_router.include_root_view = False
users_router.register(r"users", UserViewSet, basename="user")
