"""
Tests for the role-aware dashboard, the analytics helpers and the
public constants endpoint.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from complaints.models import Complaint, ComplaintFeedback
from complaints.services import ComplaintCreationService
from core.services import AnalyticsService, resolve_period
from core.domain.exceptions import DomainError


@pytest.fixture()
def water(create_department):
    return create_department(code="WATER", name="Water Works", categories=["water"])


@pytest.fixture()
def roads(create_department):
    return create_department(code="ROADS", name="Roads Authority", categories=["roads"])


@pytest.fixture()
def citizen(create_user):
    return create_user()


def _file(citizen, category="water", **extra):
    return ComplaintCreationService.create_complaint(
        {"category": category, "description": "Issue", "location": "Somewhere", **extra},
        citizen,
    )


def _resolve(complaint, days_taken, rating=None):
    Complaint.objects.filter(pk=complaint.pk).update(
        status="resolved",
        resolved_at=complaint.created_at + timedelta(days=days_taken),
    )
    if rating is not None:
        ComplaintFeedback.objects.create(complaint=complaint, rating=rating)


def _counts(rows):
    return {row["value"]: row["count"] for row in rows}


@pytest.mark.django_db
class TestAnalyticsService:

    def test_resolution_rate_and_average_time(self, citizen, water):
        first, second, _ = _file(citizen), _file(citizen), _file(citizen)
        _resolve(first, 2)
        _resolve(second, 4)

        qs = Complaint.objects.all()
        assert AnalyticsService.resolution_rate(qs) == pytest.approx(66.67)
        assert AnalyticsService.avg_resolution_time(qs) == pytest.approx(3.0)

    def test_empty_queryset(self):
        qs = Complaint.objects.none()
        assert AnalyticsService.resolution_rate(qs) == 0.0
        assert AnalyticsService.avg_resolution_time(qs) is None

    def test_feedback_stats(self, citizen, water):
        for rating in (5, 5, 2):
            _resolve(_file(citizen), 1, rating=rating)

        stats = AnalyticsService.feedback_stats(Complaint.objects.all())
        assert stats["count"] == 3
        assert stats["average"] == pytest.approx(4.0)
        assert stats["distribution"] == {"1": 0, "2": 1, "3": 0, "4": 0, "5": 2}

    def test_resolution_time_by_category(self, citizen, water, roads):
        _resolve(_file(citizen, "water"), 1)
        _resolve(_file(citizen, "roads"), 5)
        _file(citizen, "roads")

        rows = AnalyticsService.avg_resolution_time_by_category(Complaint.objects.all())
        assert {row["category"]: row["average_days"] for row in rows} == {"roads": 5.0, "water": 1.0}


class TestResolvePeriod:

    def test_default_is_month(self):
        period, since = resolve_period(None)
        assert period == "month"
        assert abs((timezone.now() - since) - timedelta(days=30)) < timedelta(seconds=5)

    def test_unknown_period_rejected(self):
        with pytest.raises(DomainError, match="Invalid period"):
            resolve_period("decade")


@pytest.mark.django_db
class TestDashboardEndpoint:

    def test_citizen_dashboard(self, client_for, citizen, create_user, water):
        resolved = _file(citizen)
        _file(citizen, priority="high")
        _file(create_user())
        _resolve(resolved, 1)

        resp = client_for(citizen).get(reverse("core:dashboard-stats"))
        assert resp.status_code == status.HTTP_200_OK
        data = resp.data
        assert data["role"] == "citizen"
        assert data["total_complaints"] == 2
        assert _counts(data["complaints_by_status"]) == {"resolved": 1, "submitted": 1}
        assert data["awaiting_feedback"] == 1
        assert len(data["recent_complaints"]) == 2
        assert "total_users" not in data
        assert "complaints_by_officer" not in data

    def test_staff_dashboard_is_department_scoped(self, client_for, citizen, create_user, water, roads):
        officer = create_user(role="officer", department=water)
        complaint = _file(citizen, "water", priority="high")
        Complaint.objects.filter(pk=complaint.pk).update(assigned_officer=officer)
        _resolve(_file(citizen, "water"), 2, rating=4)
        _file(citizen, "roads")

        data = client_for(officer).get(reverse("core:dashboard-stats")).data
        assert data["role"] == "officer"
        assert data["total_complaints"] == 2
        assert data["high_priority_unresolved"] == 1
        assert data["average_rating"] == pytest.approx(4.0)
        assert data["complaints_by_officer"] == [
            {"officer_id": officer.pk, "name": officer.name, "count": 1},
        ]
        assert "awaiting_feedback" not in data

    def test_admin_dashboard(self, client_for, citizen, create_user, water):
        admin = create_user(role="admin")
        _resolve(_file(citizen), 3)
        _file(citizen, "other")

        data = client_for(admin).get(reverse("core:dashboard-stats")).data
        assert data["role"] == "admin"
        assert data["total_complaints"] == 2
        assert data["total_users"] == 2
        assert data["total_departments"] == 1
        assert {row["name"]: row["count"] for row in data["complaints_by_department"]} == {
            "Unassigned": 1,
            "Water Works": 1,
        }
        assert data["average_resolution_days"] == pytest.approx(3.0)
        assert len(data["registrations_by_month"]) == 6
        assert data["registrations_by_month"][-1]["count"] == 2

    def test_requires_authentication(self, api_client):
        resp = api_client.get(reverse("core:dashboard-stats"))
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
def test_constants_are_public(api_client):
    resp = api_client.get(reverse("core:system-constants"))

    assert resp.status_code == status.HTTP_200_OK
    assert {"value": "under_review", "label": "Under Review"} in resp.data["complaint_statuses"]
    transitions = {row["status"]: row["allowed"] for row in resp.data["status_transitions"]}
    assert transitions["submitted"] == ["under_review"]
    assert transitions["resolved"] == ["reopened"]
    assert [p["value"] for p in resp.data["report_periods"]] == ["week", "month", "quarter", "year"]
