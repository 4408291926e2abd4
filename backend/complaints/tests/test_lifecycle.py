"""
Service-level tests for the complaint lifecycle.

Covers the transition table, assignment rules, priority and date
updates, comments, feedback and the optimistic version counter.
All calls go through ``ComplaintLifecycleService.update_complaint``.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db.models import QuerySet
from django.utils import timezone

from complaints.models import ComplaintFeedback, ComplaintStatus
from complaints.services import ComplaintCreationService, ComplaintLifecycleService
from core.domain.exceptions import Conflict, DomainError, InvalidTransition, NotFound, PermissionDenied
from core.models import Notification


@pytest.fixture()
def water(create_department):
    return create_department(code="WATER", name="Water Works", categories=["water"])


@pytest.fixture()
def roads(create_department):
    return create_department(code="ROADS", name="Roads Authority", categories=["roads"])


@pytest.fixture()
def citizen(create_user):
    return create_user(role="citizen", name="Cora Citizen")


@pytest.fixture()
def officer(create_user, water):
    return create_user(role="officer", department=water, name="Omar Officer")


@pytest.fixture()
def supervisor(create_user, water):
    return create_user(role="supervisor", department=water, name="Sara Supervisor")


@pytest.fixture()
def admin(create_user):
    return create_user(role="admin", name="Ada Admin")


@pytest.fixture()
def complaint(citizen, water):
    return ComplaintCreationService.create_complaint(
        {"category": "water", "description": "Burst main on 5th street", "location": "5th street"},
        citizen,
    )


def _update(complaint, user, **payload):
    return ComplaintLifecycleService.update_complaint(complaint.pk, payload, user)


def _walk_to_resolved(complaint, user):
    for target in ("under_review", "in_progress", "resolved"):
        complaint = _update(complaint, user, status=target)
    return complaint


@pytest.mark.django_db
class TestStatusTransitions:

    def test_forward_path_records_timeline(self, complaint, officer):
        updated = _update(complaint, officer, status="under_review")

        assert updated.status == ComplaintStatus.UNDER_REVIEW
        descriptions = [e.description for e in updated.timeline.all()]
        assert descriptions == [
            "Complaint submitted successfully",
            "Status updated to under_review",
        ]
        assert updated.timeline.last().department_id == officer.department_id

    def test_status_description_overrides_default_text(self, complaint, officer):
        updated = _update(complaint, officer, status="under_review", status_description="Crew dispatched")
        assert updated.timeline.last().description == "Crew dispatched"

    def test_illegal_transition_leaves_complaint_untouched(self, complaint, officer):
        with pytest.raises(InvalidTransition):
            _update(complaint, officer, status="resolved")

        complaint.refresh_from_db()
        assert complaint.status == ComplaintStatus.SUBMITTED
        assert complaint.version == 1
        assert complaint.timeline.count() == 1

    def test_resolve_stamps_resolved_at_and_notifies_citizen(self, complaint, officer, citizen):
        resolved = _walk_to_resolved(complaint, officer)

        assert resolved.resolved_at is not None
        assert Notification.objects.filter(recipient=citizen, title="Complaint Resolved").count() == 1

    def test_reopen_clears_resolved_at(self, complaint, officer, citizen):
        resolved = _walk_to_resolved(complaint, officer)
        reopened = _update(resolved, citizen, status="reopened")

        assert reopened.status == ComplaintStatus.REOPENED
        assert reopened.resolved_at is None

        back = _update(reopened, officer, status="under_review")
        assert back.status == ComplaintStatus.UNDER_REVIEW

    def test_same_status_is_a_no_op(self, complaint, officer):
        updated = _update(complaint, officer, status="submitted")
        assert updated.version == 1
        assert updated.timeline.count() == 1


@pytest.mark.django_db
class TestAuthorization:

    def test_other_citizen_cannot_update(self, complaint, create_user):
        stranger = create_user(role="citizen")
        with pytest.raises(PermissionDenied, match="Not authorized to update this complaint."):
            _update(complaint, stranger, comment="hello")

    def test_staff_of_other_department_cannot_update(self, complaint, create_user, roads):
        outsider = create_user(role="officer", department=roads)
        with pytest.raises(PermissionDenied):
            _update(complaint, outsider, status="under_review")

    def test_officer_cannot_assign(self, complaint, officer):
        with pytest.raises(PermissionDenied, match="Not authorized to assign complaints."):
            _update(complaint, officer, assigned_to={"officer": officer})

    def test_supervisor_may_claim_unassigned_complaint(self, citizen, create_user, roads):
        unassigned = ComplaintCreationService.create_complaint(
            {"category": "sanitation", "description": "Overflowing bins", "location": "Market"},
            citizen,
        )
        assert unassigned.assigned_department is None
        supervisor = create_user(role="supervisor", department=roads)

        claimed = _update(unassigned, supervisor, assigned_to={"department": roads})
        assert claimed.assigned_department == roads

    def test_supervisor_claim_requires_assignment_only_payload(self, citizen, create_user, roads):
        unassigned = ComplaintCreationService.create_complaint(
            {"category": "sanitation", "description": "Overflowing bins", "location": "Market"},
            citizen,
        )
        supervisor = create_user(role="supervisor", department=roads)
        with pytest.raises(PermissionDenied):
            _update(unassigned, supervisor, assigned_to={"department": roads}, priority="high")


@pytest.mark.django_db
class TestAssignment:

    def test_assign_officer_of_department(self, complaint, supervisor, officer):
        updated = _update(complaint, supervisor, assigned_to={"officer": officer})

        assert updated.assigned_officer == officer
        assert updated.timeline.last().description == f"Complaint assigned to officer {officer.name}"
        assert Notification.objects.filter(recipient=officer, title="Complaint Assigned to You").exists()

    def test_officer_must_belong_to_department(self, complaint, admin, create_user, roads):
        outsider = create_user(role="officer", department=roads)
        with pytest.raises(DomainError, match="must belong"):
            _update(complaint, admin, assigned_to={"officer": outsider})

    def test_citizen_cannot_be_assigned(self, complaint, admin, create_user):
        with pytest.raises(DomainError):
            _update(complaint, admin, assigned_to={"officer": create_user(role="citizen")})

    def test_department_change_clears_officer(self, complaint, admin, officer, roads):
        _update(complaint, admin, assigned_to={"officer": officer})
        moved = _update(complaint, admin, assigned_to={"department": roads})

        assert moved.assigned_department == roads
        assert moved.assigned_officer is None
        assert moved.timeline.last().department == roads

    def test_department_change_records_implicit_officer_removal(self, complaint, admin, officer, water, roads):
        _update(complaint, admin, assigned_to={"officer": officer})
        moved = _update(complaint, admin, assigned_to={"department": roads})

        last_two = list(moved.timeline.order_by("-timestamp", "-id")[:2])[::-1]
        assert [e.description for e in last_two] == [
            f"Officer {officer.name} unassigned",
            "Complaint assigned to Roads Authority",
        ]
        assert last_two[0].department == water

    def test_clearing_officer_is_recorded(self, complaint, admin, officer):
        assigned = _update(complaint, admin, assigned_to={"officer": officer})
        entries_before = assigned.timeline.count()

        cleared = _update(complaint, admin, assigned_to={"officer": None})

        assert cleared.assigned_officer is None
        assert cleared.version == assigned.version + 1
        assert cleared.timeline.count() == entries_before + 1
        assert cleared.timeline.last().description == f"Officer {officer.name} unassigned"

    def test_clearing_department_is_recorded(self, complaint, admin, officer, water):
        _update(complaint, admin, assigned_to={"officer": officer})
        entries_before = complaint.timeline.count()

        cleared = _update(complaint, admin, assigned_to={"department": None})

        assert cleared.assigned_department is None
        assert cleared.assigned_officer is None
        assert [e.description for e in cleared.timeline.all()[entries_before:]] == [
            f"Officer {officer.name} unassigned",
            "Complaint unassigned from Water Works",
        ]
        assert cleared.timeline.last().department == water

    def test_clearing_missing_officer_is_a_no_op(self, complaint, admin):
        _update(complaint, admin, assigned_to={"department": None})
        cleared = _update(complaint, admin, assigned_to={"officer": None})

        assert cleared.timeline.filter(description__contains="unassigned").count() == 1

    def test_inactive_department_rejected(self, complaint, admin, create_department):
        closed = create_department(status="inactive", categories=["water"])
        with pytest.raises(DomainError, match="inactive"):
            _update(complaint, admin, assigned_to={"department": closed})

    def test_department_change_notifies_new_staff(self, complaint, admin, create_user, roads):
        roads_officer = create_user(role="officer", department=roads)
        _update(complaint, admin, assigned_to={"department": roads})
        assert Notification.objects.filter(recipient=roads_officer, type="assignment").count() == 1


@pytest.mark.django_db
class TestPriorityDateAndComments:

    def test_priority_change(self, complaint, officer):
        updated = _update(complaint, officer, priority="high")
        assert updated.priority == "high"
        assert updated.timeline.last().description == "Priority updated to high"

    def test_estimated_date_change_notifies_citizen(self, complaint, officer, citizen):
        new_date = timezone.now() + timedelta(days=10)
        updated = _update(complaint, officer, estimated_resolution_date=new_date)

        assert updated.estimated_resolution_date == new_date
        assert Notification.objects.filter(recipient=citizen, title="Resolution Date Updated").exists()

    def test_staff_comment_notifies_citizen(self, complaint, officer, citizen):
        updated = _update(complaint, officer, comment="We are on it")

        assert updated.comments.get().text == "We are on it"
        assert updated.timeline.last().description == "Comment added by officer"
        assert Notification.objects.filter(recipient=citizen, type="comment").exists()

    def test_citizen_comment_notifies_department_staff(self, complaint, citizen, officer, supervisor):
        _update(complaint, citizen, comment="Any news?")
        recipients = set(
            Notification.objects.filter(type="comment").values_list("recipient_id", flat=True)
        )
        assert recipients == {officer.pk, supervisor.pk}

    def test_blank_comment_is_ignored(self, complaint, officer):
        updated = _update(complaint, officer, comment="   ")
        assert updated.comments.count() == 0
        assert updated.version == 1


@pytest.mark.django_db
class TestFeedback:

    def test_feedback_after_resolution(self, complaint, officer, citizen, supervisor):
        resolved = _walk_to_resolved(complaint, officer)
        updated = _update(resolved, citizen, feedback={"rating": 4, "comment": "Quick fix"})

        assert updated.feedback.rating == 4
        assert Notification.objects.filter(recipient=supervisor, title="Feedback Received").exists()

    def test_feedback_before_resolution_rejected(self, complaint, citizen):
        with pytest.raises(DomainError, match="resolved"):
            _update(complaint, citizen, feedback={"rating": 5})

    def test_second_feedback_conflicts(self, complaint, officer, citizen):
        resolved = _walk_to_resolved(complaint, officer)
        _update(resolved, citizen, feedback={"rating": 3})

        with pytest.raises(Conflict):
            _update(resolved, citizen, feedback={"rating": 5})
        assert ComplaintFeedback.objects.get(complaint=resolved).rating == 3

    def test_only_owner_may_give_feedback(self, complaint, officer):
        resolved = _walk_to_resolved(complaint, officer)
        with pytest.raises(PermissionDenied):
            _update(resolved, officer, feedback={"rating": 1})


@pytest.mark.django_db
class TestVersioning:

    def test_each_applied_update_bumps_version(self, complaint, officer):
        first = _update(complaint, officer, status="under_review", version=1)
        second = _update(first, officer, priority="low", version=2)
        assert second.version == 3

    def test_stale_version_conflicts(self, complaint, officer):
        _update(complaint, officer, status="under_review")
        with pytest.raises(Conflict):
            _update(complaint, officer, priority="high", version=1)

    def test_failure_mid_update_rolls_back_earlier_steps(self, complaint, officer, citizen):
        # status applies first, then feedback fails on the ownership check
        with pytest.raises(PermissionDenied):
            _update(complaint, officer, status="under_review", feedback={"rating": 2})

        complaint.refresh_from_db()
        assert complaint.status == ComplaintStatus.SUBMITTED
        assert complaint.timeline.count() == 1
        assert complaint.version == 1


@pytest.mark.django_db
class TestRowLocking:

    def test_update_locks_only_the_complaint_row(self, complaint, officer):
        # the complaint is loaded with its nullable department/officer joined
        with patch.object(
            QuerySet, "select_for_update", autospec=True, side_effect=QuerySet.select_for_update,
        ) as spy:
            _update(complaint, officer, status="under_review")

        assert spy.called
        assert all(call.kwargs.get("of") == ("self",) for call in spy.call_args_list)

    def test_unknown_complaint_is_not_found(self, officer):
        with pytest.raises(NotFound):
            ComplaintLifecycleService.update_complaint(999, {"priority": "high"}, officer)
