"""Serializers for authentication flows and user management input."""

from typing import cast

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from access_control.models import DEFAULT_GUARD, Role

from .managers import UserManager

User = get_user_model()


class PasswordConfirmationMixin:
    """Require ``password_confirmation`` to match ``password`` when one is given."""

    def validate(self, attrs):
        """Ensure provided passwords match before saving."""
        if "password" in attrs and attrs.get("password") != attrs.get("password_confirmation"):
            raise serializers.ValidationError({"password": ["The password confirmation does not match."]})
        attrs.pop("password_confirmation", None)
        return attrs


class RegisterSerializer(PasswordConfirmationMixin, serializers.Serializer):
    """Validate and create a user, attaching the default role when it exists."""

    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(write_only=True, min_length=8)
    password_confirmation = serializers.CharField(write_only=True)

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("The email has already been taken.")
        return value

    def create(self, validated_data):
        """Create a user with a hashed password and the configured default role."""
        role = Role.objects.filter(name=settings.DEFAULT_USER_ROLE).first()
        manager = cast(UserManager, User.objects)
        return manager.create_user(roles=[role] if role else (), **validated_data)


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via email/password using bcrypt verification."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        email = attrs.get("email")
        password = attrs.get("password")
        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        if not user.check_password(password):
            raise AuthenticationFailed("Invalid credentials")

        attrs["user"] = user
        return attrs


class UserUpdateSerializer(PasswordConfirmationMixin, serializers.Serializer):
    """Partial update of name, email and password for the users API."""

    name = serializers.CharField(max_length=255, required=False)
    email = serializers.EmailField(max_length=255, required=False)
    password = serializers.CharField(write_only=True, min_length=8, required=False)
    password_confirmation = serializers.CharField(write_only=True, required=False)

    def validate_email(self, value):
        """Email stays unique, ignoring the user being updated."""
        qs = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("The email has already been taken.")
        return value

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        if password is not None:
            instance.set_password(password)
        instance.save()
        return instance


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Patchable fields for /auth/me updates."""

    class Meta:
        """Allow partial updates of the display name."""
        model = User
        fields = ["name"]
        extra_kwargs = {"name": {"required": False}}

    def validate(self, attrs):
        """Disallow attempts to change email via this endpoint.

        Any payload that includes an 'email' field should be rejected with a
        validation error rather than silently ignored, to make the restriction
        explicit to API consumers.
        """
        if "email" in getattr(self, "initial_data", {}):
            raise serializers.ValidationError({"email": ["Email cannot be updated via this endpoint."]})
        return super().validate(attrs)


class RoleAssignmentSerializer(serializers.Serializer):
    """Role names to add to (or remove from) a user."""

    roles = serializers.SlugRelatedField(
        many=True, slug_field="name", queryset=Role.objects.filter(guard_name=DEFAULT_GUARD), allow_empty=False
    )


__all__ = [
    "LoginSerializer",
    "ProfileUpdateSerializer",
    "RegisterSerializer",
    "RoleAssignmentSerializer",
    "UserUpdateSerializer",
]
