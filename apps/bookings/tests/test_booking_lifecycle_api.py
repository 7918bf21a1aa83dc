"""Integration tests for the on-site booking flow and status endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.parkings.models import ParkingLot
from apps.users.models import User


class BookingLifecycleAPITests(APITestCase):
    """Arrival, owner confirmation, completion with overstay and cancellation."""

    def setUp(self) -> None:
        self.driver = User.objects.create_user(
            email="driver@example.com",
            phone="+77000000002",
            password="DriverPass123",
            name="Driver",
        )
        self.other_driver = User.objects.create_user(
            email="driver2@example.com",
            phone="+77000000005",
            password="DriverPass123",
            name="Second Driver",
        )
        self.owner = User.objects.create_user(
            email="owner@example.com",
            phone="+77000000003",
            password="OwnerPass123",
            name="Owner",
            role=User.RoleChoices.OWNER,
        )
        self.other_owner = User.objects.create_user(
            email="owner2@example.com",
            phone="+77000000004",
            password="OwnerPass123",
            name="Other Owner",
            role=User.RoleChoices.OWNER,
        )
        self.lot = ParkingLot.objects.create(
            owner=self.owner,
            name="Central Garage",
            address="1 Main St",
            city="Almaty",
            zone=ParkingLot.Zone.A,
            total_spots=3,
            price_per_hour=Decimal("100.00"),
        )

    def _booking(self, starts_in: timedelta, duration: int = 2, **fields) -> Booking:
        fields.setdefault("status", Booking.Status.CONFIRMED)
        booking = Booking.objects.create(
            driver=self.driver,
            parking=self.lot,
            start_time=timezone.now() + starts_in,
            duration=duration,
            total_amount=self.lot.price_per_hour * duration,
            **fields,
        )
        booking.qr_code = booking.generate_qr_code()
        booking.save(update_fields=["qr_code"])
        return booking

    def _patch(self, name: str, booking: Booking, user: User, data: dict | None = None):
        self.client.force_authenticate(user)
        return self.client.patch(reverse(name, args=[booking.id]), data or {}, format="json")

    # ----- arrival and confirmation -----

    def test_full_on_site_flow(self) -> None:
        booking = self._booking(timedelta(minutes=10))

        arrived = self._patch("booking-arrived", booking, self.driver)
        self.assertEqual(arrived.status_code, status.HTTP_200_OK, arrived.data)
        self.assertTrue(arrived.data["is_arrived"])
        self.assertEqual(arrived.data["status"], Booking.Status.CONFIRMED)

        confirmed = self._patch("booking-confirm", booking, self.owner)
        self.assertEqual(confirmed.status_code, status.HTTP_200_OK, confirmed.data)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.ACTIVE)
        self.assertTrue(booking.is_confirmed)
        self.assertIsNotNone(booking.actual_start_time)

        completed = self._patch("booking-complete", booking, self.owner)
        self.assertEqual(completed.status_code, status.HTTP_200_OK, completed.data)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.COMPLETED)
        self.assertIsNotNone(booking.actual_end_time)
        self.assertEqual(booking.actual_duration, 0)
        self.assertIsNone(booking.overstay_charge)

        types = set(Notification.objects.filter(user=self.driver).values_list("type", flat=True))
        self.assertEqual(types, {Notification.Type.BOOKING_CONFIRMED, Notification.Type.BOOKING_COMPLETED})

    def test_arrival_too_early(self) -> None:
        booking = self._booking(timedelta(hours=2))

        response = self._patch("booking-arrived", booking, self.driver)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "too_early")

    def test_arrival_only_by_booking_driver(self) -> None:
        booking = self._booking(timedelta(minutes=10))

        response = self._patch("booking-arrived", booking, self.other_driver)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        booking.refresh_from_db()
        self.assertFalse(booking.is_arrived)

    def test_arrival_twice(self) -> None:
        booking = self._booking(timedelta(minutes=10), is_arrived=True)

        response = self._patch("booking-arrived", booking, self.driver)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "already_arrived")

    def test_confirm_before_arrival(self) -> None:
        booking = self._booking(timedelta(minutes=10))

        response = self._patch("booking-confirm", booking, self.owner)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "not_arrived")
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)

    def test_confirm_only_by_lot_owner(self) -> None:
        booking = self._booking(timedelta(minutes=10), is_arrived=True)

        response = self._patch("booking-confirm", booking, self.other_owner)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # ----- completion -----

    def test_complete_with_overstay(self) -> None:
        booking = self._booking(
            -timedelta(minutes=150),
            duration=2,
            status=Booking.Status.ACTIVE,
            is_arrived=True,
            is_confirmed=True,
            actual_start_time=timezone.now() - timedelta(minutes=150),
        )

        response = self._patch("booking-complete", booking, self.owner)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        booking.refresh_from_db()
        self.assertEqual(booking.actual_duration, 150)
        self.assertEqual(booking.overstay_duration, 30)
        self.assertEqual(booking.overstay_charge, Decimal("150.00"))
        self.assertEqual(booking.total_amount, Decimal("200.00"))
        self.assertEqual(booking.final_amount, Decimal("350.00"))
        self.assertEqual(response.data["final_amount"], Decimal("350.00"))

        notification = Notification.objects.get(user=self.driver, type=Notification.Type.BOOKING_COMPLETED)
        self.assertIn("350.00", notification.message)

    def test_complete_requires_active_booking(self) -> None:
        booking = self._booking(timedelta(minutes=10), is_arrived=True)

        response = self._patch("booking-complete", booking, self.owner)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_status")

    def test_complete_only_by_lot_owner(self) -> None:
        booking = self._booking(
            -timedelta(minutes=30),
            status=Booking.Status.ACTIVE,
            actual_start_time=timezone.now() - timedelta(minutes=30),
        )

        response = self._patch("booking-complete", booking, self.driver)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # ----- cancellation -----

    def test_cancel_61_minutes_before_start(self) -> None:
        booking = self._booking(timedelta(minutes=61))

        response = self._patch("booking-cancel", booking, self.driver)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CANCELLED)
        self.assertTrue(
            Notification.objects.filter(user=self.owner, type=Notification.Type.BOOKING_CANCELLED).exists()
        )

    def test_cancel_59_minutes_before_start(self) -> None:
        booking = self._booking(timedelta(minutes=59))

        response = self._patch("booking-cancel", booking, self.driver)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "too_late")
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)

    def test_cancel_only_by_driver(self) -> None:
        booking = self._booking(timedelta(hours=3))

        response = self._patch("booking-cancel", booking, self.owner)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cancelled_booking_frees_the_spot(self) -> None:
        self.lot.total_spots = 1
        self.lot.save()
        booking = self._booking(timedelta(hours=3))
        self._patch("booking-cancel", booking, self.driver)

        self.client.force_authenticate(self.other_driver)
        response = self.client.post(
            reverse("booking-list"),
            {"parking": self.lot.id, "start_time": booking.start_time.isoformat(), "duration": 2},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    # ----- status endpoint -----

    def test_status_info_for_driver(self) -> None:
        booking = self._booking(timedelta(minutes=10))
        self.client.force_authenticate(self.driver)

        response = self.client.get(reverse("booking-status", args=[booking.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        info = response.data["status_info"]
        self.assertTrue(info["can_mark_arrived"])
        self.assertFalse(info["can_confirm"])
        self.assertFalse(info["can_cancel"])
        self.assertTrue(info["can_extend"])
        self.assertEqual(info["remaining_time"], 120)
        self.assertEqual(response.data["booking"]["id"], booking.id)

    def test_status_info_for_owner_after_arrival(self) -> None:
        booking = self._booking(timedelta(minutes=10), is_arrived=True)
        self.client.force_authenticate(self.owner)

        response = self.client.get(reverse("booking-status", args=[booking.id]))

        info = response.data["status_info"]
        self.assertTrue(info["can_confirm"])
        self.assertFalse(info["can_mark_arrived"])
        self.assertFalse(info["can_complete"])

    def test_status_info_reports_overstay(self) -> None:
        booking = self._booking(
            -timedelta(minutes=90),
            duration=1,
            status=Booking.Status.ACTIVE,
            actual_start_time=timezone.now() - timedelta(minutes=90),
        )
        self.client.force_authenticate(self.owner)

        info = self.client.get(reverse("booking-status", args=[booking.id])).data["status_info"]

        self.assertTrue(info["is_overstayed"])
        self.assertEqual(info["remaining_time"], 0)
        self.assertTrue(info["can_complete"])

    def test_status_info_hidden_from_strangers(self) -> None:
        booking = self._booking(timedelta(minutes=10))
        self.client.force_authenticate(self.other_driver)

        response = self.client.get(reverse("booking-status", args=[booking.id]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_status_override_by_driver(self) -> None:
        booking = self._booking(timedelta(minutes=10), is_arrived=True)

        response = self._patch("booking-status", booking, self.driver, {"status": "active"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.ACTIVE)
        self.assertTrue(booking.is_arrived)
        self.assertFalse(booking.is_confirmed)

    def test_status_override_by_any_owner(self) -> None:
        booking = self._booking(timedelta(hours=5))

        response = self._patch("booking-status", booking, self.other_owner, {"status": "cancelled"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CANCELLED)

    def test_status_override_rules(self) -> None:
        booking = self._booking(timedelta(hours=5))

        stranger = self._patch("booking-status", booking, self.other_driver, {"status": "completed"})
        self.assertEqual(stranger.status_code, status.HTTP_403_FORBIDDEN)

        invalid = self._patch("booking-status", booking, self.driver, {"status": "expired"})
        self.assertEqual(invalid.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(invalid.data["code"], "invalid_status")

        too_early = self._patch("booking-status", booking, self.driver, {"status": "active"})
        self.assertEqual(too_early.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(too_early.data["code"], "too_early")

    @override_settings(BOOKING_STATUS_OVERRIDE_ENABLED=False)
    def test_status_override_can_be_disabled(self) -> None:
        booking = self._booking(timedelta(minutes=10))

        response = self._patch("booking-status", booking, self.driver, {"status": "completed"})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "override_disabled")

    # ----- QR scan -----

    def _scan(self, user: User, qr_code: str):
        self.client.force_authenticate(user)
        return self.client.post(reverse("booking-scan"), {"qr_code": qr_code}, format="json")

    def test_scan_active_booking_in_window(self) -> None:
        booking = self._booking(
            -timedelta(minutes=30),
            status=Booking.Status.ACTIVE,
            actual_start_time=timezone.now() - timedelta(minutes=30),
        )

        response = self._scan(self.owner, booking.qr_code)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["is_valid"])
        self.assertEqual(response.data["message"], "Booking is valid")
        self.assertEqual(response.data["booking"]["id"], booking.id)

    def test_scan_confirmed_booking_in_window_is_not_valid(self) -> None:
        booking = self._booking(-timedelta(minutes=30))

        response = self._scan(self.owner, booking.qr_code)

        self.assertFalse(response.data["is_valid"])
        self.assertEqual(response.data["message"], "Booking is valid")

    def test_scan_future_booking(self) -> None:
        booking = self._booking(timedelta(hours=3))

        response = self._scan(self.owner, booking.qr_code)

        self.assertFalse(response.data["is_valid"])
        self.assertEqual(response.data["message"], "Booking is not active")

    def test_scan_errors(self) -> None:
        booking = self._booking(timedelta(minutes=10))

        self.assertEqual(self._scan(self.owner, "PARKLY-0-0").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self._scan(self.other_owner, booking.qr_code).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self._scan(self.driver, booking.qr_code).status_code, status.HTTP_403_FORBIDDEN)
