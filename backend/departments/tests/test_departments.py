"""
Tests for ``/api/departments/``: CRUD, head hand-over and the
department-scoped complaint and user lists.
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from accounts.models import UserRole
from complaints.services import ComplaintCreationService
from departments.models import Department
from departments.services import DepartmentDirectory


@pytest.fixture()
def admin(create_user):
    return create_user(role="admin")


@pytest.fixture()
def water(create_department):
    return create_department(code="WATER", name="Water Works", categories=["water"])


@pytest.mark.django_db
class TestDepartmentCrud:

    def test_admin_creates_department_with_uppercase_code(self, client_for, admin):
        resp = client_for(admin).post(
            reverse("departments:department-list"),
            {"name": "Electricity Board", "code": "elec", "categories": ["electricity", "electricity"]},
            format="json",
        )
        assert resp.status_code == status.HTTP_201_CREATED, resp.data
        assert resp.data["code"] == "ELEC"
        assert resp.data["categories"] == ["electricity"]
        assert resp.data["status"] == "active"

    def test_duplicate_code_conflicts(self, client_for, admin, water):
        resp = client_for(admin).post(
            reverse("departments:department-list"),
            {"name": "Another Water", "code": "water", "categories": ["water"]},
            format="json",
        )
        assert resp.status_code == status.HTTP_409_CONFLICT

    def test_non_admin_cannot_create(self, client_for, create_user):
        resp = client_for(create_user(role="supervisor")).post(
            reverse("departments:department-list"),
            {"name": "Parks", "code": "PARKS", "categories": ["other"]},
            format="json",
        )
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_any_user_can_list(self, client_for, create_user, water):
        resp = client_for(create_user()).get(reverse("departments:department-list"))
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["count"] == 1
        assert resp.data["results"][0]["code"] == "WATER"

    def test_filter_by_status(self, client_for, admin, water, create_department):
        create_department(code="OLD", status="inactive")
        resp = client_for(admin).get(reverse("departments:department-list"), {"status": "inactive"})
        assert [row["code"] for row in resp.data["results"]] == ["OLD"]

    def test_update_and_retrieve(self, client_for, admin, water):
        client = client_for(admin)
        resp = client.patch(
            reverse("departments:department-detail", args=[water.pk]),
            {"contact_email": "water@city.example", "status": "inactive"},
            format="json",
        )
        assert resp.status_code == status.HTTP_200_OK
        resp = client.get(reverse("departments:department-detail", args=[water.pk]))
        assert resp.data["contact_email"] == "water@city.example"
        assert resp.data["status"] == "inactive"

    def test_missing_department_is_404(self, client_for, admin):
        resp = client_for(admin).get(reverse("departments:department-detail", args=[999]))
        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_empty_department(self, client_for, admin, water):
        resp = client_for(admin).delete(reverse("departments:department-detail", args=[water.pk]))
        assert resp.status_code == status.HTTP_204_NO_CONTENT
        assert not Department.objects.filter(pk=water.pk).exists()

    def test_delete_with_members_conflicts(self, client_for, admin, water, create_user):
        create_user(role="officer", department=water)
        resp = client_for(admin).delete(reverse("departments:department-detail", args=[water.pk]))
        assert resp.status_code == status.HTTP_409_CONFLICT

    def test_delete_with_complaints_conflicts(self, client_for, admin, water, create_user):
        ComplaintCreationService.create_complaint(
            {"category": "water", "description": "Leak", "location": "Here"},
            create_user(),
        )
        resp = client_for(admin).delete(reverse("departments:department-detail", args=[water.pk]))
        assert resp.status_code == status.HTTP_409_CONFLICT


@pytest.mark.django_db
class TestHeadHandOver:

    def test_new_head_promoted_previous_demoted(self, client_for, admin, water, create_user):
        first = create_user(role="supervisor", department=water)
        second = create_user(role="officer", department=water)
        client = client_for(admin)
        url = reverse("departments:department-detail", args=[water.pk])

        client.patch(url, {"head": first.pk}, format="json")
        resp = client.patch(url, {"head": second.pk}, format="json")

        assert resp.status_code == status.HTTP_200_OK, resp.data
        assert resp.data["head"]["id"] == second.pk
        first.refresh_from_db()
        second.refresh_from_db()
        assert second.role == UserRole.SUPERVISOR
        assert first.role == UserRole.OFFICER

    def test_citizen_cannot_be_head(self, client_for, admin, water, create_user):
        resp = client_for(admin).patch(
            reverse("departments:department-detail", args=[water.pk]),
            {"head": create_user(role="citizen").pk},
            format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestDepartmentMembers:

    def test_staff_list_department_complaints(self, client_for, water, create_user):
        officer = create_user(role="officer", department=water)
        ComplaintCreationService.create_complaint(
            {"category": "water", "description": "Leak", "location": "Here"},
            create_user(),
        )
        resp = client_for(officer).get(reverse("departments:department-complaints", args=[water.pk]))
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["count"] == 1

    def test_other_department_forbidden(self, client_for, water, create_department, create_user):
        roads = create_department(code="ROADS", categories=["roads"])
        outsider = create_user(role="officer", department=roads)
        resp = client_for(outsider).get(reverse("departments:department-complaints", args=[water.pk]))
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_users_list_is_supervisor_only(self, client_for, water, create_user):
        supervisor = create_user(role="supervisor", department=water)
        officer = create_user(role="officer", department=water)

        resp = client_for(supervisor).get(reverse("departments:department-users", args=[water.pk]))
        assert resp.status_code == status.HTTP_200_OK
        assert {row["id"] for row in resp.data["results"]} == {supervisor.pk, officer.pk}

        resp = client_for(officer).get(reverse("departments:department-users", args=[water.pk]))
        assert resp.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestDepartmentDirectory:

    def test_first_active_by_lowest_id(self, create_department):
        create_department(code="A", categories=["roads"], status="inactive")
        second = create_department(code="B", categories=["water", "roads"])
        create_department(code="C", categories=["roads"])

        assert DepartmentDirectory.find_active_by_category("roads") == second
        assert DepartmentDirectory.find_active_by_category("electricity") is None

    def test_find_staff_skips_inactive_users(self, create_department, create_user):
        dept = create_department()
        active = create_user(role="officer", department=dept)
        create_user(role="officer", department=dept, status="suspended")
        create_user(role="citizen")

        assert list(DepartmentDirectory.find_staff(dept, ("officer", "supervisor"))) == [active]
        assert not DepartmentDirectory.find_staff(None, ("officer",)).exists()
