"""Role-based permission classes shared by the API apps."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


class IsDriver(permissions.BasePermission):
    """
    Only drivers may book, arrive, extend or cancel.

    Platform staff pass every role check.
    """

    message = "This action is available to drivers only."

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return hasattr(user, "is_driver") and user.is_driver()


class IsParkingOwner(permissions.BasePermission):
    """Only parking owners may manage lots and run the on-site flow."""

    message = "This action is available to parking owners only."

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return hasattr(user, "is_owner") and user.is_owner()


class IsOwnerOrReadOnly(permissions.BasePermission):
    """
    Object-level permission: writes are limited to the object's owner.

    Works with any model exposing ``owner_id``.
    """

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        return getattr(obj, "owner_id", None) == user.id
