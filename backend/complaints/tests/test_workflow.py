"""
Service-level tests for the complaint workflow: submission, the review
state machine, point awards and the best-effort side channels.
"""

from __future__ import annotations

import pytest

from accounts.models import DeviceToken
from complaints.models import Complaint, ComplaintStatus, ComplaintTimelineEntry, ComplaintType
from complaints.services import (
    ComplaintQueryService,
    ComplaintSubmissionService,
    ComplaintWorkflowService,
    generate_complaint_token,
)
from core.constants import COMPLAINT_TYPES
from core.domain.exceptions import (
    Conflict,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationFailure,
)
from core.models import ActionHistory, Notification
from points.models import PointsEntryType, PointsHistory


def _make_complaint(user=None, **overrides) -> Complaint:
    fields = {
        "token": generate_complaint_token(),
        "type": ComplaintType.CLEANLINESS,
        "description": "Seats covered in litter.",
        "stop": "Central Station",
        "user": user,
        "is_anonymous": user is None,
    }
    fields.update(overrides)
    return Complaint.objects.create(**fields)


def test_category_vocabulary_matches_constants():
    assert tuple(ComplaintType.values) == COMPLAINT_TYPES


def test_token_format():
    token = generate_complaint_token()
    assert token.startswith("BRTS")
    assert len(token) == 10
    assert token[4:].isdigit()


@pytest.mark.django_db
class TestSubmission:

    PAYLOAD = {
        "type": ComplaintType.PUNCTUALITY,
        "description": "Bus 12 was 40 minutes late.",
        "stop": "Market Road",
    }

    def test_owned_submission_awards_points(self, create_user, realtime_publisher,
                                            django_capture_on_commit_callbacks):
        user = create_user()

        with django_capture_on_commit_callbacks(execute=True):
            complaint, awarded = ComplaintSubmissionService(publisher=realtime_publisher).submit(
                dict(self.PAYLOAD), user,
            )

        assert awarded == 5
        assert complaint.user == user
        assert complaint.is_anonymous is False
        assert complaint.status == ComplaintStatus.PENDING
        user.refresh_from_db()
        assert user.points == 5
        entry = PointsHistory.objects.get(user=user)
        assert entry.source == "complaint_submission"
        assert entry.reference_id == str(complaint.pk)
        assert realtime_publisher.events == [
            ("admin", "newComplaint", {"id": complaint.pk, "token": complaint.token, "type": "punctuality"}),
        ]

    def test_anonymous_submission(self, db, realtime_publisher):
        complaint, awarded = ComplaintSubmissionService(publisher=realtime_publisher).submit(
            dict(self.PAYLOAD), None,
        )
        assert awarded == 0
        assert complaint.user is None
        assert complaint.is_anonymous is True
        assert not PointsHistory.objects.exists()

    def test_tokens_are_unique(self, db, realtime_publisher):
        service = ComplaintSubmissionService(publisher=realtime_publisher)
        tokens = {service.submit(dict(self.PAYLOAD), None)[0].token for _ in range(5)}
        assert len(tokens) == 5


@pytest.mark.django_db
class TestUpdateComplaintStatus:

    def _service(self, dispatcher, publisher):
        return ComplaintWorkflowService(dispatcher=dispatcher, publisher=publisher)

    @pytest.mark.parametrize("target", [ComplaintStatus.APPROVED, ComplaintStatus.REJECTED])
    def test_transition_writes_one_timeline_and_one_audit(self, create_user, admin_user, target,
                                                          push_dispatcher, realtime_publisher):
        complaint = _make_complaint(create_user())

        result = self._service(push_dispatcher, realtime_publisher).update_complaint_status(
            complaint, target, "checked on site", "Depot informed.", admin_user,
        )

        assert result.status == target
        assert complaint.status == target
        complaint.refresh_from_db()
        assert complaint.status == target
        assert complaint.reason == "checked on site"
        assert complaint.admin_description == "Depot informed."

        entry = ComplaintTimelineEntry.objects.get(complaint=complaint)
        assert entry.action == "status_update"
        assert entry.status == target
        assert entry.admin == admin_user

        audit = ActionHistory.objects.get()
        assert audit.action == "update_complaint"
        assert audit.resource == "complaint"
        assert audit.resource_id == str(complaint.pk)
        assert audit.details == {"status": target}

    def test_owner_is_notified_after_commit(self, create_user, admin_user, push_dispatcher,
                                            realtime_publisher, django_capture_on_commit_callbacks):
        owner = create_user()
        DeviceToken.objects.create(user=owner, token="tok-phone", platform="android")
        DeviceToken.objects.create(user=owner, token="tok-browser", platform="web")
        complaint = _make_complaint(owner)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            self._service(push_dispatcher, realtime_publisher).update_complaint_status(
                complaint, ComplaintStatus.REJECTED, "duplicate", "", admin_user,
            )
            # Nothing leaves the process before commit.
            assert push_dispatcher.sent == []
            assert realtime_publisher.events == []

        assert len(callbacks) == 2
        assert sorted(p["token"] for p in push_dispatcher.sent) == ["tok-browser", "tok-phone"]
        push = push_dispatcher.sent[0]
        assert push["title"] == "Complaint Update"
        assert push["body"] == f"Your complaint {complaint.token} is now rejected"

        channel, event, payload = realtime_publisher.events[0]
        assert channel == str(owner.pk)
        assert event == "complaintUpdate"
        assert payload["status"] == "rejected"

        notification = Notification.objects.get(recipient=owner)
        assert notification.title == "Complaint Update"

    def test_anonymous_complaint_triggers_no_side_channel(self, admin_user, push_dispatcher,
                                                          realtime_publisher,
                                                          django_capture_on_commit_callbacks):
        complaint = _make_complaint()

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            self._service(push_dispatcher, realtime_publisher).update_complaint_status(
                complaint, ComplaintStatus.APPROVED, "", "", admin_user,
            )

        assert callbacks == []
        assert push_dispatcher.sent == []
        assert realtime_publisher.events == []
        assert not Notification.objects.exists()

    def test_failing_dispatcher_does_not_fail_update(self, create_user, admin_user, failing_dispatcher,
                                                     realtime_publisher,
                                                     django_capture_on_commit_callbacks):
        owner = create_user()
        DeviceToken.objects.create(user=owner, token="tok-1")
        complaint = _make_complaint(owner)

        with django_capture_on_commit_callbacks(execute=True):
            self._service(failing_dispatcher, realtime_publisher).update_complaint_status(
                complaint, ComplaintStatus.APPROVED, "", "", admin_user,
            )

        assert failing_dispatcher.attempts == 1
        complaint.refresh_from_db()
        assert complaint.status == ComplaintStatus.APPROVED
        assert realtime_publisher.names() == ["complaintUpdate"]

    @pytest.mark.parametrize("start", [ComplaintStatus.APPROVED, ComplaintStatus.REJECTED])
    def test_terminal_states_refuse_transition(self, create_user, admin_user, start,
                                               push_dispatcher, realtime_publisher):
        complaint = _make_complaint(create_user(), status=start)

        with pytest.raises(InvalidTransition):
            self._service(push_dispatcher, realtime_publisher).update_complaint_status(
                complaint, ComplaintStatus.REJECTED, "", "", admin_user,
            )

        complaint.refresh_from_db()
        assert complaint.status == start
        assert not ComplaintTimelineEntry.objects.exists()
        assert not ActionHistory.objects.exists()

    def test_pending_to_pending_is_invalid(self, admin_user, push_dispatcher, realtime_publisher):
        complaint = _make_complaint()
        with pytest.raises(InvalidTransition):
            self._service(push_dispatcher, realtime_publisher).update_complaint_status(
                complaint, ComplaintStatus.PENDING, "", "", admin_user,
            )

    def test_unknown_status(self, admin_user, push_dispatcher, realtime_publisher):
        complaint = _make_complaint()
        with pytest.raises(ValidationFailure):
            self._service(push_dispatcher, realtime_publisher).update_complaint_status(
                complaint, "closed", "", "", admin_user,
            )

    def test_requires_review_permission(self, create_user, push_dispatcher, realtime_publisher):
        complaint = _make_complaint()
        with pytest.raises(PermissionDenied):
            self._service(push_dispatcher, realtime_publisher).update_complaint_status(
                complaint, ComplaintStatus.APPROVED, "", "", create_user(),
            )


@pytest.mark.django_db
class TestApproveComplaint:

    def test_owned_complaint_credits_owner(self, create_user, push_dispatcher, realtime_publisher):
        owner = create_user()
        complaint = _make_complaint(owner)

        ComplaintWorkflowService(push_dispatcher, realtime_publisher).approve_complaint(
            complaint.pk, 50, owner.pk,
        )

        owner.refresh_from_db()
        assert owner.points == 50
        entry = PointsHistory.objects.get(user=owner)
        assert entry.type == PointsEntryType.EARNED
        assert entry.source == "complaint_approval"
        assert entry.reference_id == str(complaint.pk)
        complaint.refresh_from_db()
        assert complaint.points == 50

    def test_anonymous_complaint_leaves_ledger_untouched(self, db, push_dispatcher, realtime_publisher):
        complaint = _make_complaint()

        ComplaintWorkflowService(push_dispatcher, realtime_publisher).approve_complaint(
            complaint.pk, 50, None,
        )

        assert not PointsHistory.objects.exists()
        complaint.refresh_from_db()
        assert complaint.points == 50

    def test_negative_points_rejected_before_mutation(self, create_user, push_dispatcher,
                                                      realtime_publisher):
        owner = create_user()
        complaint = _make_complaint(owner)
        with pytest.raises(ValidationFailure):
            ComplaintWorkflowService(push_dispatcher, realtime_publisher).approve_complaint(
                complaint.pk, -10, owner.pk,
            )
        complaint.refresh_from_db()
        assert complaint.points is None
        assert not PointsHistory.objects.exists()

    def test_missing_complaint(self, db, push_dispatcher, realtime_publisher):
        with pytest.raises(NotFound):
            ComplaintWorkflowService(push_dispatcher, realtime_publisher).approve_complaint(
                999_999, 50, None,
            )

    def test_second_award_is_refused(self, create_user, push_dispatcher, realtime_publisher):
        owner = create_user()
        complaint = _make_complaint(owner)
        service = ComplaintWorkflowService(push_dispatcher, realtime_publisher)
        service.approve_complaint(complaint.pk, 50, owner.pk)

        with pytest.raises(Conflict):
            service.approve_complaint(complaint.pk, 50, owner.pk)

        owner.refresh_from_db()
        assert owner.points == 50


@pytest.mark.django_db
class TestReviewComplaint:

    def test_approve_with_default_award(self, create_user, admin_user, push_dispatcher, realtime_publisher):
        owner = create_user()
        complaint = _make_complaint(owner)

        result, credited = ComplaintWorkflowService(push_dispatcher, realtime_publisher).review_complaint(
            complaint.pk, ComplaintStatus.APPROVED, "valid", "", admin_user,
        )

        assert credited == 50
        assert result.status == ComplaintStatus.APPROVED
        assert result.points == 50
        owner.refresh_from_db()
        assert owner.points == 50

    def test_approve_with_explicit_award(self, create_user, admin_user, push_dispatcher, realtime_publisher):
        owner = create_user()
        complaint = _make_complaint(owner)

        _, credited = ComplaintWorkflowService(push_dispatcher, realtime_publisher).review_complaint(
            complaint.pk, ComplaintStatus.APPROVED, "", "", admin_user, points=20,
        )

        assert credited == 20
        owner.refresh_from_db()
        assert owner.points == 20

    def test_approve_with_zero_award(self, create_user, admin_user, push_dispatcher, realtime_publisher):
        owner = create_user()
        complaint = _make_complaint(owner)

        result, credited = ComplaintWorkflowService(push_dispatcher, realtime_publisher).review_complaint(
            complaint.pk, ComplaintStatus.APPROVED, "", "", admin_user, points=0,
        )

        assert credited == 0
        assert result.status == ComplaintStatus.APPROVED
        assert result.points == 0
        owner.refresh_from_db()
        assert owner.points == 0

    def test_reject_awards_nothing(self, create_user, admin_user, push_dispatcher, realtime_publisher):
        owner = create_user()
        complaint = _make_complaint(owner)

        result, credited = ComplaintWorkflowService(push_dispatcher, realtime_publisher).review_complaint(
            complaint.pk, ComplaintStatus.REJECTED, "not reproducible", "", admin_user,
        )

        assert credited == 0
        assert result.points is None
        assert not PointsHistory.objects.exists()

    def test_anonymous_approval(self, admin_user, push_dispatcher, realtime_publisher):
        complaint = _make_complaint()

        result, credited = ComplaintWorkflowService(push_dispatcher, realtime_publisher).review_complaint(
            complaint.pk, ComplaintStatus.APPROVED, "", "", admin_user,
        )

        assert credited == 0
        assert result.points == 50
        assert not PointsHistory.objects.exists()

    def test_invalid_points_write_nothing(self, create_user, admin_user, push_dispatcher, realtime_publisher):
        complaint = _make_complaint(create_user())

        with pytest.raises(ValidationFailure):
            ComplaintWorkflowService(push_dispatcher, realtime_publisher).review_complaint(
                complaint.pk, ComplaintStatus.APPROVED, "", "", admin_user, points=-1,
            )

        complaint.refresh_from_db()
        assert complaint.status == ComplaintStatus.PENDING
        assert not ComplaintTimelineEntry.objects.exists()
        assert not ActionHistory.objects.exists()


@pytest.mark.django_db
class TestQueries:

    def test_track_is_case_insensitive(self):
        complaint = _make_complaint()
        assert ComplaintQueryService.track(complaint.token.lower()) == complaint

    def test_track_unknown(self):
        with pytest.raises(NotFound):
            ComplaintQueryService.track("BRTS000000")

    def test_user_history_filters(self, create_user):
        owner = create_user()
        mine = _make_complaint(owner)
        _make_complaint(owner, status=ComplaintStatus.APPROVED, type=ComplaintType.BEHAVIOR)
        _make_complaint(create_user())

        assert ComplaintQueryService.user_history(owner).count() == 2
        pending = ComplaintQueryService.user_history(owner, {"status": "pending"})
        assert list(pending) == [mine]
        assert ComplaintQueryService.user_history(owner, {"type": "behavior"}).count() == 1

    def test_admin_listing_filters(self, admin_user, create_user):
        _make_complaint(priority="high")
        _make_complaint(priority="low")

        assert ComplaintQueryService.list_for_admin(admin_user).count() == 2
        assert ComplaintQueryService.list_for_admin(admin_user, {"priority": "high"}).count() == 1
        with pytest.raises(PermissionDenied):
            ComplaintQueryService.list_for_admin(create_user())

    def test_detail_hidden_from_strangers(self, create_user, admin_user):
        owner = create_user()
        complaint = _make_complaint(owner)

        assert ComplaintQueryService.get_detail(complaint.pk, owner) == complaint
        assert ComplaintQueryService.get_detail(complaint.pk, admin_user) == complaint
        with pytest.raises(NotFound):
            ComplaintQueryService.get_detail(complaint.pk, create_user())
