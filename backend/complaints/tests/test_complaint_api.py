"""
HTTP-level tests for ``/api/complaints/``.

Creation, role scoping of list and detail, typed filters, attachments,
the timeline sub-resource and public tracking.
"""

from __future__ import annotations

import re

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse
from rest_framework import status

from complaints.models import Complaint, ComplaintAttachment
from complaints.services import ComplaintCreationService, ComplaintIdGenerator
from core.models import Notification

_ID_PATTERN = re.compile(r"^CMP-\d{2}-\d{2}-\d{4}$")


@pytest.fixture()
def water(create_department):
    return create_department(code="WATER", name="Water Works", categories=["water"])


@pytest.fixture()
def roads(create_department):
    return create_department(code="ROADS", name="Roads Authority", categories=["roads"])


@pytest.fixture()
def citizen(create_user):
    return create_user(role="citizen")


@pytest.fixture()
def officer(create_user, water):
    return create_user(role="officer", department=water)


def _file(name="photo.png", content_type="image/png", size=128):
    return SimpleUploadedFile(name, b"x" * size, content_type=content_type)


def _file_complaint(citizen, category="water", **extra):
    data = {"category": category, "description": "Leaking pipe", "location": "Main St", **extra}
    return ComplaintCreationService.create_complaint(data, citizen)


@pytest.mark.django_db
class TestCreateComplaint:

    def test_citizen_files_complaint(self, client_for, citizen, water, officer):
        resp = client_for(citizen).post(
            reverse("complaints:complaint-list"),
            {"category": "water", "description": "No water since Monday", "location": "Block B"},
            format="json",
        )

        assert resp.status_code == status.HTTP_201_CREATED, resp.data
        assert _ID_PATTERN.match(resp.data["complaint_id"])
        assert resp.data["status"] == "submitted"
        assert resp.data["priority"] == "medium"
        assert resp.data["assigned_department"]["id"] == water.pk
        assert resp.data["estimated_resolution_date"] is not None
        assert [e["description"] for e in resp.data["timeline"]] == ["Complaint submitted successfully"]
        assert Notification.objects.filter(recipient=officer, type="assignment").count() == 1

    def test_unserviced_category_stays_unassigned(self, client_for, citizen, water):
        resp = client_for(citizen).post(
            reverse("complaints:complaint-list"),
            {"category": "other", "description": "Stray dogs", "location": "Park"},
            format="json",
        )
        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.data["assigned_department"] is None

    def test_inactive_department_is_skipped(self, client_for, citizen, create_department):
        create_department(code="OLD", categories=["roads"], status="inactive")
        active = create_department(code="NEW", categories=["roads"])

        resp = client_for(citizen).post(
            reverse("complaints:complaint-list"),
            {"category": "roads", "description": "Pothole", "location": "Ring road"},
            format="json",
        )
        assert resp.data["assigned_department"]["id"] == active.pk

    def test_officer_cannot_file(self, client_for, officer):
        resp = client_for(officer).post(
            reverse("complaints:complaint-list"),
            {"category": "water", "description": "x", "location": "y"},
            format="json",
        )
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_files_for_citizen(self, client_for, create_user, citizen, water):
        admin = create_user(role="admin")
        resp = client_for(admin).post(
            reverse("complaints:complaint-list"),
            {"category": "water", "description": "Reported by phone", "location": "Hill", "citizen": citizen.pk},
            format="json",
        )
        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.data["citizen"]["id"] == citizen.pk

    def test_admin_must_name_citizen(self, client_for, create_user, water):
        admin = create_user(role="admin")
        resp = client_for(admin).post(
            reverse("complaints:complaint-list"),
            {"category": "water", "description": "x", "location": "y"},
            format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_blank_description_rejected(self, client_for, citizen):
        resp = client_for(citizen).post(
            reverse("complaints:complaint-list"),
            {"category": "water", "description": "   ", "location": "y"},
            format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert "description" in resp.data

    def test_create_with_attachments(self, client_for, citizen, water):
        resp = client_for(citizen).post(
            reverse("complaints:complaint-list"),
            {
                "category": "water",
                "description": "See photos",
                "location": "Block C",
                "attachments": [_file("a.png"), _file("b.pdf", "application/pdf")],
            },
            format="multipart",
        )
        assert resp.status_code == status.HTTP_201_CREATED, resp.data
        assert {a["filename"] for a in resp.data["attachments"]} == {"a.png", "b.pdf"}
        assert len(resp.data["timeline"]) == 1


@pytest.mark.django_db
class TestComplaintIdGenerator:

    def test_sequence_increments_within_month(self):
        first = ComplaintIdGenerator.next_id()
        second = ComplaintIdGenerator.next_id()
        assert _ID_PATTERN.match(first)
        assert int(second[-4:]) == int(first[-4:]) + 1
        assert first[:-4] == second[:-4]

    @override_settings(COMPLAINT_ID_PREFIX="CIT")
    def test_prefix_is_configurable(self):
        assert ComplaintIdGenerator.next_id().startswith("CIT-")


@pytest.mark.django_db
class TestListAndScope:

    def test_citizen_sees_only_own(self, client_for, create_user, citizen, water):
        mine = _file_complaint(citizen)
        _file_complaint(create_user(role="citizen"))

        resp = client_for(citizen).get(reverse("complaints:complaint-list"))
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["count"] == 1
        assert resp.data["results"][0]["id"] == mine.pk

    def test_staff_see_department_only(self, client_for, citizen, water, roads, officer):
        in_dept = _file_complaint(citizen, "water")
        _file_complaint(citizen, "roads")
        _file_complaint(citizen, "other")

        resp = client_for(officer).get(reverse("complaints:complaint-list"))
        assert [row["id"] for row in resp.data["results"]] == [in_dept.pk]

    def test_admin_sees_all(self, client_for, create_user, citizen, water, roads):
        _file_complaint(citizen, "water")
        _file_complaint(citizen, "roads")
        resp = client_for(create_user(role="admin")).get(reverse("complaints:complaint-list"))
        assert resp.data["count"] == 2

    def test_filters_and_sort(self, client_for, create_user, citizen, water):
        low = _file_complaint(citizen, priority="low")
        high = _file_complaint(citizen, priority="high")
        admin_client = client_for(create_user(role="admin"))

        resp = admin_client.get(reverse("complaints:complaint-list"), {"priority": "high"})
        assert [row["id"] for row in resp.data["results"]] == [high.pk]

        resp = admin_client.get(reverse("complaints:complaint-list"), {"priority[in]": "low,high"})
        assert {row["id"] for row in resp.data["results"]} == {high.pk, low.pk}

    def test_priority_sorts_by_urgency(self, client_for, create_user, citizen, water):
        high = _file_complaint(citizen, priority="high")
        low = _file_complaint(citizen, priority="low")
        medium = _file_complaint(citizen, priority="medium")
        admin_client = client_for(create_user(role="admin"))

        resp = admin_client.get(reverse("complaints:complaint-list"), {"sort": "priority"})
        assert [row["id"] for row in resp.data["results"]] == [low.pk, medium.pk, high.pk]

        resp = admin_client.get(reverse("complaints:complaint-list"), {"sort": "-priority"})
        assert [row["id"] for row in resp.data["results"]] == [high.pk, medium.pk, low.pk]

    def test_unknown_sort_key_rejected(self, client_for, create_user):
        resp = client_for(create_user(role="admin")).get(reverse("complaints:complaint-list"), {"sort": "colour"})
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_bad_filter_operator_rejected(self, client_for, citizen):
        resp = client_for(citizen).get(reverse("complaints:complaint-list"), {"status[gt]": "submitted"})
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_filter_field_ignored(self, client_for, citizen, water):
        _file_complaint(citizen)
        resp = client_for(citizen).get(reverse("complaints:complaint-list"), {"colour": "blue"})
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["count"] == 1

    def test_pagination_limit(self, client_for, citizen, water):
        for _ in range(3):
            _file_complaint(citizen)
        resp = client_for(citizen).get(reverse("complaints:complaint-list"), {"limit": 2, "page": 2})
        assert resp.data["count"] == 3
        assert len(resp.data["results"]) == 1

    def test_detail_forbidden_for_other_citizen(self, client_for, create_user, citizen, water):
        complaint = _file_complaint(citizen)
        resp = client_for(create_user(role="citizen")).get(
            reverse("complaints:complaint-detail", args=[complaint.pk]),
        )
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert resp.data["detail"] == "Not authorized to access this complaint."

    def test_detail_forbidden_for_officer_of_other_department(self, client_for, create_user, citizen, water, roads):
        complaint = _file_complaint(citizen, "water")
        resp = client_for(create_user(role="officer", department=roads)).get(
            reverse("complaints:complaint-detail", args=[complaint.pk]),
        )
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert resp.data["detail"] == "Not authorized to access this complaint."

    def test_detail_forbidden_for_officer_on_unassigned_complaint(self, client_for, citizen, water, officer):
        complaint = _file_complaint(citizen, "other")
        assert complaint.assigned_department is None

        resp = client_for(officer).get(reverse("complaints:complaint-detail", args=[complaint.pk]))
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_detail_allowed_for_officer_of_assigned_department(self, client_for, citizen, water, officer):
        complaint = _file_complaint(citizen, "water")
        resp = client_for(officer).get(reverse("complaints:complaint-detail", args=[complaint.pk]))
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["id"] == complaint.pk

    def test_detail_not_found(self, client_for, citizen):
        resp = client_for(citizen).get(reverse("complaints:complaint-detail", args=[9999]))
        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_unauthenticated_list_rejected(self, api_client):
        resp = api_client.get(reverse("complaints:complaint-list"))
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestUpdateEndpoint:

    def test_patch_status_and_version(self, client_for, citizen, water, officer):
        complaint = _file_complaint(citizen)
        url = reverse("complaints:complaint-detail", args=[complaint.pk])
        client = client_for(officer)

        resp = client.patch(url, {"status": "under_review", "version": 1}, format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["version"] == 2

        stale = client.patch(url, {"priority": "high", "version": 1}, format="json")
        assert stale.status_code == status.HTTP_409_CONFLICT

    def test_illegal_transition_is_400(self, client_for, citizen, water, officer):
        complaint = _file_complaint(citizen)
        resp = client_for(officer).patch(
            reverse("complaints:complaint-detail", args=[complaint.pk]),
            {"status": "resolved"},
            format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_empty_payload_is_400(self, client_for, citizen, water):
        complaint = _file_complaint(citizen)
        resp = client_for(citizen).patch(
            reverse("complaints:complaint-detail", args=[complaint.pk]), {}, format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_assignment_by_payload(self, client_for, create_user, citizen, water, officer):
        complaint = _file_complaint(citizen)
        supervisor = create_user(role="supervisor", department=water)
        resp = client_for(supervisor).patch(
            reverse("complaints:complaint-detail", args=[complaint.pk]),
            {"assigned_to": {"officer": officer.pk}},
            format="json",
        )
        assert resp.status_code == status.HTTP_200_OK, resp.data
        assert resp.data["assigned_officer"]["id"] == officer.pk

    def test_timeline_endpoint(self, client_for, citizen, water, officer):
        complaint = _file_complaint(citizen)
        client_for(officer).patch(
            reverse("complaints:complaint-detail", args=[complaint.pk]),
            {"comment": "Checking"},
            format="json",
        )
        resp = client_for(citizen).get(reverse("complaints:complaint-timeline", args=[complaint.pk]))
        assert resp.status_code == status.HTTP_200_OK
        assert [e["description"] for e in resp.data] == [
            "Complaint submitted successfully",
            "Comment added by officer",
        ]


@pytest.mark.django_db
class TestAttachments:

    def test_upload_and_remove(self, client_for, citizen, water):
        complaint = _file_complaint(citizen)
        client = client_for(citizen)

        resp = client.post(
            reverse("complaints:complaint-attachments", args=[complaint.pk]),
            {"attachments": [_file("leak.jpg", "image/jpeg")]},
            format="multipart",
        )
        assert resp.status_code == status.HTTP_201_CREATED, resp.data
        assert resp.data["timeline"][-1]["description"] == "1 new attachment(s) added"
        attachment_id = resp.data["attachments"][0]["id"]

        resp = client.delete(
            reverse("complaints:complaint-remove-attachment", args=[complaint.pk, attachment_id]),
        )
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["attachments"] == []
        assert resp.data["timeline"][-1]["description"] == "Attachment leak.jpg removed"
        assert not ComplaintAttachment.objects.filter(pk=attachment_id).exists()

    def test_unsupported_type_rejected(self, client_for, citizen, water):
        complaint = _file_complaint(citizen)
        resp = client_for(citizen).post(
            reverse("complaints:complaint-attachments", args=[complaint.pk]),
            {"attachments": [_file("run.exe", "application/x-msdownload")]},
            format="multipart",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    @override_settings(COMPLAINT_ATTACHMENT_MAX_BYTES=100)
    def test_oversized_file_rejected(self, client_for, citizen, water):
        complaint = _file_complaint(citizen)
        resp = client_for(citizen).post(
            reverse("complaints:complaint-attachments", args=[complaint.pk]),
            {"attachments": [_file(size=101)]},
            format="multipart",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_empty_upload_rejected(self, client_for, citizen, water):
        complaint = _file_complaint(citizen)
        resp = client_for(citizen).post(
            reverse("complaints:complaint-attachments", args=[complaint.pk]), {}, format="multipart",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert resp.data["detail"] == "Please upload at least one file."

    def test_missing_attachment_is_404(self, client_for, citizen, water):
        complaint = _file_complaint(citizen)
        resp = client_for(citizen).delete(
            reverse("complaints:complaint-remove-attachment", args=[complaint.pk, 4242]),
        )
        assert resp.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestTracking:

    def test_public_tracking_has_no_pii(self, api_client, citizen, water):
        complaint = _file_complaint(citizen)
        resp = api_client.get(
            reverse("complaints:complaint-track", args=[complaint.complaint_id.lower()]),
        )
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["complaint_id"] == complaint.complaint_id
        assert resp.data["assigned_department"] == "Water Works"
        assert resp.data["timeline"][0]["department"] == "Water Works"
        for private in ("citizen", "description", "location", "comments", "attachments"):
            assert private not in resp.data

    def test_unknown_id_is_404(self, api_client):
        resp = api_client.get(reverse("complaints:complaint-track", args=["CMP-00-00-0000"]))
        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert Complaint.objects.count() == 0
