"""
Integration tests — complaint flow, end to end over HTTP.

A citizen registers and files a complaint, a supervisor assigns it to
an officer, the officer works it to ``resolved``, the citizen leaves
feedback, and every step is checked against the timeline, the
notification inboxes and the public tracking page.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole
from departments.models import Department

User = get_user_model()


class TestComplaintFlow(TestCase):

    @classmethod
    def setUpTestData(cls) -> None:
        cls.passwords = {
            "supervisor": "Sup3rvisor!Flow1",
            "officer": "0fficer!Flow2",
            "citizen": "C1tizen!Flow3",
        }
        cls.department = Department.objects.create(
            name="Water Works",
            code="WATER",
            categories=["water"],
        )
        cls.supervisor = User.objects.create_user(
            email="sam.supervisor@city.test",
            password=cls.passwords["supervisor"],
            name="Sam Supervisor",
            role=UserRole.SUPERVISOR,
            department=cls.department,
        )
        cls.officer = User.objects.create_user(
            email="olu.officer@city.test",
            password=cls.passwords["officer"],
            name="Olu Officer",
            role=UserRole.OFFICER,
            department=cls.department,
        )

    def setUp(self) -> None:
        self.client = APIClient()
        self.login_url = reverse("accounts:login")
        self.complaints_url = reverse("complaints:complaint-list")
        self.notifications_url = reverse("core:notification-list")

    # ── Helpers ──────────────────────────────────────────────────────

    def login(self, email: str, password: str) -> None:
        response = self.client.post(
            self.login_url,
            {"email": email, "password": password},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def login_staff(self, user: User) -> None:
        self.login(user.email, self.passwords[user.role])

    def patch_complaint(self, pk: int, payload: dict) -> dict:
        response = self.client.patch(
            reverse("complaints:complaint-detail", args=[pk]),
            payload,
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        return response.data

    def inbox_titles(self) -> list[str]:
        response = self.client.get(self.notifications_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return [row["title"] for row in response.data["results"]]

    # ── Scenario ─────────────────────────────────────────────────────

    def test_full_lifecycle(self) -> None:
        # 1. Citizen registers and files a complaint
        response = self.client.post(
            reverse("accounts:register"),
            {
                "name": "Cleo Citizen",
                "email": "cleo@city.test",
                "password": self.passwords["citizen"],
                "password_confirm": self.passwords["citizen"],
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, msg=response.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

        response = self.client.post(
            self.complaints_url,
            {
                "category": "water",
                "description": "No water pressure since Monday",
                "location": "12 Harbour Road",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, msg=response.data)
        pk = response.data["id"]
        tracking_id = response.data["complaint_id"]
        self.assertRegex(tracking_id, r"^CMP-\d{2}-\d{2}-\d{4}$")
        self.assertEqual(response.data["assigned_department"]["code"], "WATER")
        self.assertEqual(response.data["status"], "submitted")

        # 2. Supervisor is notified and assigns the officer
        self.login_staff(self.supervisor)
        self.assertIn("New Complaint Assigned", self.inbox_titles())
        data = self.patch_complaint(pk, {"assigned_to": {"officer": self.officer.pk}})
        self.assertEqual(data["assigned_officer"]["id"], self.officer.pk)

        # 3. Officer works the complaint to resolution, with a stale write in between
        self.login_staff(self.officer)
        self.assertIn("Complaint Assigned to You", self.inbox_titles())
        data = self.patch_complaint(pk, {"status": "under_review", "version": data["version"]})
        stale_version = data["version"] - 1
        response = self.client.patch(
            reverse("complaints:complaint-detail", args=[pk]),
            {"status": "in_progress", "version": stale_version},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        response = self.client.patch(
            reverse("complaints:complaint-detail", args=[pk]),
            {"status": "resolved"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.patch_complaint(pk, {"status": "in_progress", "comment": "Valve replaced"})
        data = self.patch_complaint(pk, {"status": "resolved"})
        self.assertIsNotNone(data["resolved_at"])

        # 4. Citizen sees the resolution and leaves feedback exactly once
        self.login("cleo@city.test", self.passwords["citizen"])
        titles = self.inbox_titles()
        self.assertIn("Complaint Resolved", titles)
        self.assertIn("New Comment on Your Complaint", titles)

        data = self.patch_complaint(pk, {"feedback": {"rating": 5, "comment": "Fast and polite"}})
        self.assertEqual(data["feedback"]["rating"], 5)
        response = self.client.patch(
            reverse("complaints:complaint-detail", args=[pk]),
            {"feedback": {"rating": 1}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        response = self.client.get(reverse("core:dashboard-stats"))
        self.assertEqual(response.data["awaiting_feedback"], 0)

        # 5. Anyone can follow progress by tracking ID
        anonymous = APIClient()
        response = anonymous.get(reverse("complaints:complaint-track", args=[tracking_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "resolved")
        self.assertNotIn("citizen", response.data)
        self.assertEqual(
            [entry["description"] for entry in response.data["timeline"]],
            [
                "Complaint submitted successfully",
                f"Complaint assigned to officer {self.officer.name}",
                "Status updated to under_review",
                "Status updated to in_progress",
                "Comment added by officer",
                "Status updated to resolved",
                "Feedback submitted by citizen",
            ],
        )

        # 6. The supervisor is told about the feedback
        self.login_staff(self.supervisor)
        self.assertIn("Feedback Received", self.inbox_titles())
