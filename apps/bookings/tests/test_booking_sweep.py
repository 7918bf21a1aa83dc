"""Tests for the periodic booking status sweep and booking services."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase

from apps.bookings import services
from apps.bookings.domain.lifecycle import Completed
from apps.bookings.models import Booking
from apps.bookings.tasks import update_booking_statuses
from apps.parkings.models import ParkingLot
from apps.users.models import User
from shared.domain.exceptions import ConflictError, StateError

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=dt_timezone.utc)


class BookingSweepTests(TestCase):
    def setUp(self) -> None:
        self.driver = User.objects.create_user(email="driver@example.com", password="DriverPass123", name="Driver")
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="OwnerPass123",
            name="Owner",
            role=User.RoleChoices.OWNER,
        )
        self.lot = ParkingLot.objects.create(
            owner=self.owner,
            name="Central Garage",
            address="1 Main St",
            city="Almaty",
            zone=ParkingLot.Zone.A,
            total_spots=5,
            price_per_hour=Decimal("100.00"),
        )

    def _booking(self, start: datetime, duration: int, status: str) -> Booking:
        return Booking.objects.create(
            driver=self.driver,
            parking=self.lot,
            start_time=start,
            duration=duration,
            total_amount=Decimal("100.00") * duration,
            status=status,
        )

    def test_sweep_activates_started_bookings(self) -> None:
        started = self._booking(NOW - timedelta(minutes=30), 2, Booking.Status.CONFIRMED)
        upcoming = self._booking(NOW + timedelta(minutes=30), 2, Booking.Status.CONFIRMED)

        result = services.sweep_booking_statuses(now=NOW)

        started.refresh_from_db()
        upcoming.refresh_from_db()
        self.assertEqual(result, {"activated": 1, "completed": 0})
        self.assertEqual(started.status, Booking.Status.ACTIVE)
        self.assertIsNone(started.actual_start_time)
        self.assertEqual(upcoming.status, Booking.Status.CONFIRMED)

    def test_sweep_completes_finished_bookings_without_billing(self) -> None:
        finished_active = self._booking(NOW - timedelta(hours=3), 2, Booking.Status.ACTIVE)
        finished_confirmed = self._booking(NOW - timedelta(hours=5), 1, Booking.Status.CONFIRMED)

        result = services.sweep_booking_statuses(now=NOW)

        self.assertEqual(result, {"activated": 0, "completed": 2})
        for booking in (finished_active, finished_confirmed):
            booking.refresh_from_db()
            self.assertEqual(booking.status, Booking.Status.COMPLETED)
            self.assertIsNone(booking.overstay_charge)

    def test_sweep_leaves_other_states_alone(self) -> None:
        pending = self._booking(NOW - timedelta(minutes=30), 2, Booking.Status.PENDING)
        cancelled = self._booking(NOW - timedelta(hours=5), 1, Booking.Status.CANCELLED)

        services.sweep_booking_statuses(now=NOW)

        pending.refresh_from_db()
        cancelled.refresh_from_db()
        self.assertEqual(pending.status, Booking.Status.PENDING)
        self.assertEqual(cancelled.status, Booking.Status.CANCELLED)

    def test_sweep_is_idempotent(self) -> None:
        self._booking(NOW - timedelta(minutes=30), 2, Booking.Status.CONFIRMED)
        self._booking(NOW - timedelta(hours=3), 1, Booking.Status.ACTIVE)

        services.sweep_booking_statuses(now=NOW)
        second = services.sweep_booking_statuses(now=NOW)

        self.assertEqual(second, {"activated": 0, "completed": 0})

    def test_sweep_activated_booking_cannot_be_completed_by_owner(self) -> None:
        booking = self._booking(NOW - timedelta(minutes=30), 2, Booking.Status.CONFIRMED)
        services.sweep_booking_statuses(now=NOW)

        with self.assertRaises(StateError):
            services.complete_booking(booking.id, self.owner, now=NOW)

    def test_task_runs_the_sweep(self) -> None:
        past = datetime(2000, 1, 1, tzinfo=dt_timezone.utc)
        booking = self._booking(past, 1, Booking.Status.CONFIRMED)

        result = update_booking_statuses()

        booking.refresh_from_db()
        self.assertEqual(result["completed"], 1)
        self.assertEqual(booking.status, Booking.Status.COMPLETED)


class BookingServiceTests(TestCase):
    """Service calls with an explicit clock."""

    def setUp(self) -> None:
        self.driver = User.objects.create_user(email="driver@example.com", password="DriverPass123", name="Driver")
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="OwnerPass123",
            name="Owner",
            role=User.RoleChoices.OWNER,
        )
        self.lot = ParkingLot.objects.create(
            owner=self.owner,
            name="Single Spot",
            address="2 Main St",
            city="Almaty",
            zone=ParkingLot.Zone.B,
            total_spots=1,
            price_per_hour=Decimal("100.00"),
        )
        self.ten = datetime(2030, 1, 1, 10, 0, tzinfo=dt_timezone.utc)

    def _create(self, start: datetime, duration: int = 2) -> Booking:
        return services.create_booking(self.driver, parking_id=self.lot.id, start_time=start, duration=duration)

    def test_capacity_one_overlap_and_touching(self) -> None:
        self._create(self.ten)

        with self.assertRaises(ConflictError):
            self._create(self.ten + timedelta(hours=1))

        touching = self._create(self.ten + timedelta(hours=2))
        self.assertEqual(touching.status, Booking.Status.CONFIRMED)

    def test_qr_code_uses_creation_clock(self) -> None:
        now = datetime(2029, 12, 31, 9, 0, tzinfo=dt_timezone.utc)

        booking = services.create_booking(
            self.driver,
            parking_id=self.lot.id,
            start_time=self.ten,
            duration=1,
            now=now,
        )

        self.assertEqual(booking.qr_code, f"PARKLY-{booking.id}-{int(now.timestamp() * 1000)}")

    def test_cancel_boundaries_with_explicit_clock(self) -> None:
        booking = self._create(self.ten)

        with self.assertRaises(StateError):
            services.cancel_booking(booking.id, self.driver, now=self.ten - timedelta(minutes=59))

        cancelled = services.cancel_booking(booking.id, self.driver, now=self.ten - timedelta(minutes=61))
        self.assertEqual(cancelled.status, Booking.Status.CANCELLED)

    def test_overstay_billing_with_explicit_clock(self) -> None:
        booking = self._create(self.ten)
        services.mark_arrived(booking.id, self.driver, now=self.ten - timedelta(minutes=5))
        services.confirm_booking(booking.id, self.owner, now=self.ten)

        completed = services.complete_booking(booking.id, self.owner, now=self.ten + timedelta(minutes=150))

        self.assertEqual(completed.actual_duration, 150)
        self.assertEqual(completed.overstay_duration, 30)
        self.assertEqual(completed.overstay_charge, Decimal("150.00"))
        self.assertEqual(completed.final_amount, Decimal("350.00"))

    def test_confirmation_survives_status_override(self) -> None:
        booking = self._create(self.ten)
        services.mark_arrived(booking.id, self.driver, now=self.ten)
        services.confirm_booking(booking.id, self.owner, now=self.ten)

        services.set_booking_status(booking.id, self.owner, "confirmed", now=self.ten + timedelta(minutes=20))

        with self.assertRaises(StateError):
            services.confirm_booking(booking.id, self.owner, now=self.ten + timedelta(minutes=30))
        booking.refresh_from_db()
        self.assertTrue(booking.is_confirmed)
        self.assertEqual(booking.actual_start_time, self.ten)
        self.assertFalse(services.booking_status_info(booking, self.owner, now=self.ten)["can_confirm"])

    def test_completion_without_overstay_clears_previous_charge(self) -> None:
        booking = self._create(self.ten)
        services.mark_arrived(booking.id, self.driver, now=self.ten)
        services.confirm_booking(booking.id, self.owner, now=self.ten)
        services.complete_booking(booking.id, self.owner, now=self.ten + timedelta(minutes=150))
        booking.refresh_from_db()
        self.assertEqual(booking.overstay_charge, Decimal("150.00"))

        on_time = Completed(
            actual_start=self.ten,
            actual_end=self.ten + timedelta(minutes=100),
            actual_duration=100,
            arrived=True,
            confirmed=True,
        )
        booking.save(update_fields=booking.apply_state(on_time))

        booking.refresh_from_db()
        self.assertIsNone(booking.overstay_duration)
        self.assertIsNone(booking.overstay_charge)
        self.assertEqual(booking.final_amount, booking.total_amount)

    def test_notification_failure_does_not_roll_back_booking(self) -> None:
        from unittest import mock

        with mock.patch(
            "apps.notifications.services.create_notification",
            side_effect=RuntimeError("storage down"),
        ):
            booking = self._create(self.ten)

        self.assertTrue(Booking.objects.filter(pk=booking.id).exists())

    def test_lifecycle_rules_follow_settings(self) -> None:
        with self.settings(BOOKING_ARRIVAL_WINDOW_MINUTES=5, BOOKING_OVERSTAY_RATE_MULTIPLIER="2"):
            rules = services.lifecycle_rules()

        self.assertEqual(rules.arrival_window, timedelta(minutes=5))
        self.assertEqual(rules.overstay_multiplier, Decimal("2"))
