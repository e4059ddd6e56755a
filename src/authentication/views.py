"""Authentication endpoints and the users API."""

from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import AuthenticationFailed

from access_control.identity import resolve_identity
from access_control.permissions import IsAuthenticatedCaller, RequiresPermission
from core.projection import ProjectionContext
from core.response import BaseAPIView, BaseViewSet, api_response, created_response, error_response, no_content_response
from core.views import QueryListMixin

from .queries import USER_DETAIL_QUERY, USER_QUERY, USERS_WITH_ROLES_QUERY
from .resources import UserResource
from .serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    RoleAssignmentSerializer,
    UserUpdateSerializer,
)
from .services import REFRESH, TokenService, bearer_token

User = get_user_model()

MANAGE_USERS = "manage users"

QUERY_PARAMETERS = [
    OpenApiParameter("filter[name]", str, description="Partial, case-insensitive match."),
    OpenApiParameter("filter[email]", str, description="Partial, case-insensitive match."),
    OpenApiParameter("filter[has_role]", str),
    OpenApiParameter("filter[has_any_role]", str, description="Comma-separated role names."),
    OpenApiParameter("filter[has_permission]", str),
    OpenApiParameter("filter[created_after]", str, description="ISO date or datetime."),
    OpenApiParameter("filter[created_before]", str, description="ISO date or datetime."),
    OpenApiParameter("sort", str, description="Comma-separated keys, '-' prefix for descending."),
    OpenApiParameter("include", str, description="roles, permissions, roles.permissions"),
    OpenApiParameter("page[size]", int),
    OpenApiParameter("page[number]", int),
]

WITH_ROLES_PARAMETERS = [
    OpenApiParameter("filter[role]", str),
    OpenApiParameter("filter[roles]", str, description="Comma-separated role names."),
    OpenApiParameter("sort", str, description="name, email or created_at; default name."),
    OpenApiParameter("include", str, description="roles, permissions"),
    OpenApiParameter("page[size]", int),
    OpenApiParameter("page[number]", int),
]

def _profile(request, user, identity=None) -> dict[str, Any]:
    """Render a user's own record with roles and permissions loaded."""
    user = User.objects.prefetch_related("roles", "permissions").get(pk=user.pk)
    context = ProjectionContext(identity=identity or resolve_identity(user), request=request)
    return UserResource(context).to_representation(user)


class RegisterView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Register a new user and return their profile with tokens."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        access, refresh = TokenService.generate_tokens(user)
        return created_response(
            {"user": _profile(request, user), "access": access, "refresh": refresh},
            "User registered successfully",
        )


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue access + refresh tokens."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        access, refresh = TokenService.generate_tokens(user)
        return api_response({"access": access, "refresh": refresh}, "Login successful")


class RefreshView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Exchange a valid refresh token for new access/refresh tokens."""
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            raise AuthenticationFailed("Refresh token required")

        payload = TokenService.decode_token(refresh_token, expected_type=REFRESH)
        user = TokenService.resolve_user(payload)
        access, new_refresh = TokenService.generate_tokens(user)
        return api_response({"access": access, "refresh": new_refresh}, "Token refreshed")


class LogoutView(BaseAPIView):
    """Invalidate the current access token by blocklisting its jti."""

    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Blocklist the bearer access token and return 204 No Content."""
        token = bearer_token(request)
        if not token:
            return error_response("Unauthenticated.", status=status.HTTP_401_UNAUTHORIZED)
        TokenService.revoke(token)
        return no_content_response()


class LogoutAllView(BaseAPIView):
    """Invalidate all existing tokens for the current user across devices."""

    permission_classes = [IsAuthenticatedCaller]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Increment token_version and blocklist the current access token."""
        TokenService.revoke_all(request.user)
        token = bearer_token(request)
        if token:
            TokenService.revoke(token)
        return no_content_response()


class MeView(BaseAPIView):
    permission_classes = [IsAuthenticatedCaller]

    def get(self, request):
        """Return the current user's profile."""
        return api_response(self._render(request.user), "Profile retrieved successfully")

    def patch(self, request):
        """Update profile fields for the current user."""
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(self._render(request.user), "Profile updated successfully")

    # noinspection PyMethodMayBeStatic
    def delete(self, request):
        """Soft-delete the current user and blocklist the current access token."""
        token = bearer_token(request)
        if token:
            TokenService.revoke(token)
        request.user.is_active = False
        request.user.save(update_fields=["is_active"])
        return no_content_response()

    def _render(self, user) -> dict[str, Any]:
        return _profile(self.request, user, self.get_identity())


class UserViewSet(QueryListMixin, BaseViewSet):
    """CRUD over users plus role assignment.

    Listing and single reads accept ``include``; writes other than self-updates
    need the ``manage users`` permission.
    """

    queryset = User.objects.all()
    resource_class = UserResource
    permission_classes = [IsAuthenticatedCaller, RequiresPermission]
    required_permissions = {
        "create": MANAGE_USERS,
        "update": MANAGE_USERS,
        "partial_update": MANAGE_USERS,
        "destroy": MANAGE_USERS,
        "roles": MANAGE_USERS,
    }
    self_service_actions = ("update", "partial_update")
    query_configs = {"list": USER_QUERY, "retrieve": USER_DETAIL_QUERY, "with_roles": USERS_WITH_ROLES_QUERY}

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == "retrieve":
            return self.with_includes(USER_DETAIL_QUERY, queryset)
        return queryset

    @extend_schema(parameters=QUERY_PARAMETERS)
    def list(self, request):
        page = self.run_query(USER_QUERY, self.get_queryset())
        return self.page_response(page, "Users retrieved successfully")

    @extend_schema(parameters=WITH_ROLES_PARAMETERS)
    @action(detail=False, methods=["get"], url_path="with-roles")
    def with_roles(self, request):
        page = self.run_query(USERS_WITH_ROLES_QUERY, self.get_queryset())
        return self.page_response(page, "Users with roles retrieved successfully")

    def create(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return self.record_response(user, "User created successfully", status.HTTP_201_CREATED)

    @extend_schema(parameters=[OpenApiParameter("include", str)])
    def retrieve(self, request, pk=None):
        return self.record_response(self.get_object(), "User retrieved successfully")

    def update(self, request, pk=None, partial=False):
        user = self.get_object()
        serializer = UserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return self.record_response(user, "User updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        user = self.get_object()
        # Posts go with their author (FK cascade).
        user.delete()
        return api_response(None, "User deleted successfully")

    @action(detail=True, methods=["post", "delete"], url_path="roles")
    def roles(self, request, pk=None):
        """Attach (POST) or detach (DELETE) roles by name."""
        user = self.get_object()
        serializer = RoleAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        roles = serializer.validated_data["roles"]
        with transaction.atomic():
            if request.method == "POST":
                user.roles.add(*roles)
                message = "Roles assigned successfully"
            else:
                user.roles.remove(*roles)
                message = "Roles removed successfully"
        user = User.objects.prefetch_related("roles").get(pk=user.pk)
        return self.record_response(user, message)
