"""API tests for in-app notifications."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.notifications.services import create_notification
from apps.users.models import User


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="user@example.com", password="UserPass123", name="User")
        self.stranger = User.objects.create_user(email="other@example.com", password="UserPass123", name="Other")
        self.first = create_notification(self.user, "First", "Hello")
        self.second = create_notification(self.user, "Second", "Again")
        self.foreign = create_notification(self.stranger, "Private", "Not yours")
        self.client.force_authenticate(self.user)

    def test_list_own_notifications(self) -> None:
        response = self.client.get(reverse("notification-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = {item["id"] for item in response.data["results"]}
        self.assertEqual(ids, {self.first.id, self.second.id})

    def test_list_unread_only(self) -> None:
        self.first.is_read = True
        self.first.save()

        response = self.client.get(reverse("notification-list"), {"unread_only": "true"})

        self.assertEqual([item["id"] for item in response.data["results"]], [self.second.id])

    def test_mark_read(self) -> None:
        url = reverse("notification-read", args=[self.first.id])

        response = self.client.patch(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["is_read"])

        again = self.client.patch(url)
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["code"], "already_read")

    def test_cannot_touch_foreign_notification(self) -> None:
        response = self.client.patch(reverse("notification-read", args=[self.foreign.id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_read_all_and_unread_count(self) -> None:
        count = self.client.get(reverse("notification-unread-count"))
        self.assertEqual(count.data["unread_count"], 2)

        response = self.client.patch(reverse("notification-read-all"))
        self.assertEqual(response.data["modified_count"], 2)

        count = self.client.get(reverse("notification-unread-count"))
        self.assertEqual(count.data["unread_count"], 0)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_delete(self) -> None:
        response = self.client.delete(reverse("notification-detail", args=[self.first.id]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(pk=self.first.id).exists())

        foreign = self.client.delete(reverse("notification-detail", args=[self.foreign.id]))
        self.assertEqual(foreign.status_code, status.HTTP_404_NOT_FOUND)
