"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from django.contrib.auth.password_validation import validate_password  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public profile of an account."""

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "phone",
            "role",
            "is_active",
            "last_login",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class UserShortSerializer(serializers.ModelSerializer):
    """Driver/owner contact details embedded in bookings and lots."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "phone"]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Only the name and phone can be changed from the profile screen."""

    phone = serializers.CharField(required=False, validators=[PHONE_VALIDATOR])

    class Meta:
        model = User
        fields = ["name", "phone"]
        extra_kwargs = {"name": {"required": False}}

    def validate_phone(self, value: str) -> str:
        phone = User.objects.normalize_phone(value)
        if User.objects.filter(phone=phone).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("This phone number is already in use.")
        return phone


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=8)

    def validate_current_password(self, value: str) -> str:
        user = self.context["request"].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect.")
        return value

    def validate_new_password(self, value: str) -> str:
        validate_password(value, user=self.context["request"].user)
        return value

    def save(self, **kwargs):  # type: ignore
        user = self.context["request"].user
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user
