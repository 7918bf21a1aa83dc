"""Serializers for authentication flows (register, login)."""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.exceptions import AuthError

from .models import PHONE_VALIDATOR, CustomUser

User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(validators=[PHONE_VALIDATOR])
    password = serializers.CharField(min_length=8, write_only=True)
    role = serializers.ChoiceField(
        choices=CustomUser.RoleChoices.choices,
        default=CustomUser.RoleChoices.DRIVER,
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        email = attrs.get("email")
        phone = User.objects.normalize_phone(attrs.get("phone", ""))
        if User.objects.filter(email__iexact=email).exists() or User.objects.filter(phone=phone).exists():
            raise serializers.ValidationError(
                {"non_field_errors": ["User already exists with this email or phone number."]}
            )
        attrs["phone"] = phone
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        try:
            user = User.objects.get(email__iexact=attrs["email"])
        except User.DoesNotExist:
            raise AuthError("Invalid email or password.", code="invalid_credentials")

        if not user.check_password(attrs["password"]):
            raise AuthError("Invalid email or password.", code="invalid_credentials")

        if not user.is_active:
            raise AuthError("Your account has been deactivated.", code="account_disabled")

        attrs["user"] = user
        return attrs
