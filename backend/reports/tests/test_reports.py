"""
Tests for ``/api/reports/``: the complaint, department and system
reports in JSON and CSV.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from complaints.models import Complaint, ComplaintFeedback
from complaints.services import ComplaintCreationService


@pytest.fixture()
def water(create_department):
    return create_department(code="WATER", name="Water Works", categories=["water"])


@pytest.fixture()
def roads(create_department):
    return create_department(code="ROADS", name="Roads Authority", categories=["roads"])


@pytest.fixture()
def citizen(create_user):
    return create_user()


@pytest.fixture()
def admin(create_user):
    return create_user(role="admin")


@pytest.fixture()
def supervisor(create_user, water):
    return create_user(role="supervisor", department=water)


def _file(citizen, category="water", **extra):
    return ComplaintCreationService.create_complaint(
        {"category": category, "description": "Issue", "location": "Somewhere", **extra},
        citizen,
    )


def _csv_lines(resp):
    return resp.content.decode("utf-8").splitlines()


@pytest.mark.django_db
class TestComplaintReport:

    def test_owner_gets_full_report(self, client_for, citizen, water):
        complaint = _file(citizen)
        resp = client_for(citizen).get(reverse("reports:complaint-report", args=[complaint.pk]))

        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["complaint"]["complaint_id"] == complaint.complaint_id
        assert len(resp.data["complaint"]["timeline"]) == 1
        assert "generated_at" in resp.data

    def test_other_citizen_forbidden(self, client_for, citizen, create_user, water):
        complaint = _file(citizen)
        resp = client_for(create_user()).get(reverse("reports:complaint-report", args=[complaint.pk]))
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_complaint_is_404(self, client_for, admin):
        resp = client_for(admin).get(reverse("reports:complaint-report", args=[999]))
        assert resp.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestDepartmentReport:

    def test_supervisor_gets_summary(self, client_for, supervisor, citizen, water, roads):
        resolved = _file(citizen, priority="high")
        Complaint.objects.filter(pk=resolved.pk).update(
            status="resolved", resolved_at=resolved.created_at + timedelta(days=2),
        )
        ComplaintFeedback.objects.create(complaint=resolved, rating=5)
        _file(citizen)
        _file(citizen, "roads")

        resp = client_for(supervisor).get(reverse("reports:department-report", args=[water.pk]))

        assert resp.status_code == status.HTTP_200_OK, resp.data
        assert resp.data["department"]["code"] == "WATER"
        assert resp.data["period"] == "month"
        summary = resp.data["summary"]
        assert summary["total"] == 2
        assert summary["resolved"] == 1
        assert summary["high_priority"] == 1
        assert summary["resolution_rate"] == 50.0
        assert summary["average_resolution_days"] == pytest.approx(2.0)
        assert summary["feedback"]["count"] == 1
        assert len(resp.data["complaints"]) == 2

    def test_period_excludes_older_complaints(self, client_for, admin, citizen, water):
        old = _file(citizen)
        Complaint.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=20))
        _file(citizen)

        resp = client_for(admin).get(
            reverse("reports:department-report", args=[water.pk]), {"period": "week"},
        )
        assert resp.data["period"] == "week"
        assert resp.data["summary"]["total"] == 1

    def test_csv_export(self, client_for, supervisor, citizen, water):
        complaint = _file(citizen)
        resp = client_for(supervisor).get(
            reverse("reports:department-report", args=[water.pk]), {"format": "csv"},
        )

        assert resp.status_code == status.HTTP_200_OK
        assert resp["Content-Type"].startswith("text/csv")
        assert "attachment" in resp["Content-Disposition"]
        lines = _csv_lines(resp)
        assert lines[0] == "complaint_id,category,status,priority,created_at,resolved_at"
        assert lines[1].startswith(f"{complaint.complaint_id},water,submitted,medium,")
        assert len(lines) == 2

    def test_officer_forbidden(self, client_for, create_user, water):
        officer = create_user(role="officer", department=water)
        resp = client_for(officer).get(reverse("reports:department-report", args=[water.pk]))
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_supervisor_of_other_department_forbidden(self, client_for, create_user, water, roads):
        outsider = create_user(role="supervisor", department=roads)
        resp = client_for(outsider).get(reverse("reports:department-report", args=[water.pk]))
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_invalid_period_is_400(self, client_for, admin, water):
        resp = client_for(admin).get(
            reverse("reports:department-report", args=[water.pk]), {"period": "decade"},
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid period" in resp.data["detail"]

    def test_unknown_department_is_404(self, client_for, admin):
        resp = client_for(admin).get(reverse("reports:department-report", args=[999]))
        assert resp.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestSystemReport:

    def test_admin_gets_totals(self, client_for, admin, citizen, water, roads):
        _file(citizen)
        _file(citizen, "roads")
        _file(citizen, "other")

        resp = client_for(admin).get(reverse("reports:system-report"), {"period": "year"})

        assert resp.status_code == status.HTTP_200_OK, resp.data
        assert resp.data["complaints"]["total"] == 3
        assert resp.data["complaints"]["new"] == 3
        assert resp.data["users"]["total"] == 2
        departments = {row["code"]: row for row in resp.data["departments"]}
        assert departments["WATER"]["total"] == 1
        assert departments["ROADS"]["open"] == 1

    def test_non_admin_forbidden(self, client_for, supervisor):
        resp = client_for(supervisor).get(reverse("reports:system-report"))
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert resp.data["detail"] == "Only admins can view system reports."

    def test_csv_export(self, client_for, admin, citizen, water):
        _file(citizen)
        resp = client_for(admin).get(reverse("reports:system-report"), {"format": "csv"})

        assert resp.status_code == status.HTTP_200_OK
        lines = _csv_lines(resp)
        assert lines[0] == "metric,value"
        assert "Total Complaints,1" in lines
        assert "Department: Water Works,1" in lines

    def test_unsupported_format_is_404(self, client_for, admin):
        resp = client_for(admin).get(reverse("reports:system-report"), {"format": "pdf"})
        assert resp.status_code == status.HTTP_404_NOT_FOUND
