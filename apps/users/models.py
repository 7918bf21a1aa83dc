"""User domain models for Parkly.

The platform has two roles: drivers book parking time, owners list
parking lots and run them (confirm arrivals, check cars out, scan QR
codes). Accounts log in with their email address.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone number. Use the international format without spaces."),
)


class CustomUserManager(BaseUserManager):
    """User manager that uses the email address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("Email is required to create a user.")
        email = self.normalize_email(email)

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.DRIVER)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.OWNER)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Strip spaces and dashes so phones are stored uniformly."""
        return phone.replace(" ", "").replace("-", "")


class CustomUser(AbstractUser):
    """Platform account: a driver or a parking owner."""

    class RoleChoices(models.TextChoices):
        DRIVER = "driver", _("Driver")
        OWNER = "owner", _("Parking owner")

    username = models.CharField(
        _("Display name"),
        max_length=150,
        blank=True,
    )
    name = models.CharField(_("Full name"), max_length=150)
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(
        _("Phone"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.DRIVER,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    def is_driver(self) -> bool:
        return self.role == self.RoleChoices.DRIVER

    def is_owner(self) -> bool:
        return self.role == self.RoleChoices.OWNER

    def touch_last_login(self) -> None:
        self.last_login = timezone.now()
        self.save(update_fields=["last_login"])


# Short alias used across apps and tests
User = CustomUser
