"""
End-to-end tests for TimesheetService against SQLite.

Drives the full path: snapshot load -> ApprovalEngine decision ->
atomic write of intents plus audit row -> cache invalidation.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from timesheet_kernel.domain.actors import Admin, Manager, Owner, UserHead
from timesheet_kernel.domain.approval import RejectionReason, TransitionKind
from timesheet_kernel.domain.values import HourKey, WeekStatus
from timesheet_kernel.exceptions import (
    HoursLockedError,
    ImmutabilityViolationError,
    InvalidHoursError,
    InvalidPercentageError,
    PersistenceError,
    UnauthorizedActorError,
    UserNotFoundError,
    WeekNotFoundError,
)
from timesheet_kernel.logging_config import LogContext
from timesheet_kernel.models.transition_audit import TransitionAuditModel
from timesheet_kernel.models.week_hours import WeekHoursModel
from timesheet_kernel.models.week_status import WeekStatusModel
from timesheet_kernel.services.timesheet_service import TimesheetService
from timesheet_kernel.services.timesheet_store import SqlTimesheetStore


def _audit_rows(session) -> list[TransitionAuditModel]:
    return list(
        session.scalars(
            select(TransitionAuditModel).order_by(TransitionAuditModel.recorded_at)
        ).all()
    )


def _count(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def owner(users) -> Owner:
    return Owner(users.employee.id)


@pytest.fixture
def fill_week(timesheet_service, users, owner, client_a, media_tv):
    """Book the full 40 hours of a week on one cell."""

    def _fill(week, hours: Decimal = Decimal("40")):
        return timesheet_service.log_hours(
            owner, users.employee.id, week.id, client_a, media_tv, hours,
        )

    return _fill


class TestChronologicalWorkflow:
    def test_second_week_waits_for_first_approval(
        self, timesheet_service, users, weeks, owner, fill_week,
    ):
        uid = users.employee.id
        fill_week(weeks.w1)
        first = timesheet_service.submit(uid, weeks.w1.id, owner)
        assert first.accepted
        assert first.to_status == WeekStatus.UNDER_REVIEW

        fill_week(weeks.w2)
        blocked = timesheet_service.submit(uid, weeks.w2.id, owner)
        assert not blocked.accepted
        assert blocked.reason == RejectionReason.EARLIER_WEEK_BLOCKING
        assert blocked.blocking_week_id == weeks.w1.id

        approved = timesheet_service.approve(uid, weeks.w1.id, Manager(users.manager.id))
        assert approved.accepted
        assert approved.to_status == WeekStatus.ACCEPTED

        second = timesheet_service.submit(uid, weeks.w2.id, owner)
        assert second.accepted

        statuses = timesheet_service.store.load_statuses(uid)
        assert statuses == {
            weeks.w1.id: WeekStatus.ACCEPTED,
            weeks.w2.id: WeekStatus.UNDER_REVIEW,
        }

    def test_reject_then_resubmit(
        self, timesheet_service, users, weeks, owner, fill_week,
    ):
        uid = users.employee.id
        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)

        rejected = timesheet_service.reject(uid, weeks.w1.id, UserHead(users.head.id))
        assert rejected.accepted
        assert rejected.to_status == WeekStatus.NEEDS_REVISION

        fill_week(weeks.w1, Decimal("40"))
        again = timesheet_service.submit(uid, weeks.w1.id, owner)
        assert again.accepted
        assert again.from_status == WeekStatus.NEEDS_REVISION

    def test_incomplete_week_rejected(self, timesheet_service, users, weeks, owner, fill_week):
        fill_week(weeks.w1, Decimal("32"))
        outcome = timesheet_service.submit(users.employee.id, weeks.w1.id, owner)

        assert not outcome.accepted
        assert outcome.reason == RejectionReason.INCOMPLETE_HOURS
        assert outcome.remaining_hours == Decimal("8")
        assert timesheet_service.store.load_statuses(users.employee.id) == {}


class TestDraftHours:
    def test_draft_hours_persisted_with_submission(
        self, timesheet_service, users, weeks, owner, client_a, client_b, media_tv,
    ):
        uid = users.employee.id
        draft = {
            HourKey(client_a, media_tv): Decimal("24"),
            HourKey(client_b, media_tv): Decimal("16"),
        }
        outcome = timesheet_service.submit(uid, weeks.w1.id, owner, draft_hours=draft)

        assert outcome.accepted
        assert timesheet_service.store.load_hours(uid, weeks.w1.id) == draft

    def test_rejected_draft_writes_nothing(
        self, timesheet_service, session, users, weeks, owner, client_a, media_tv,
    ):
        outcome = timesheet_service.submit(
            users.employee.id,
            weeks.w1.id,
            owner,
            draft_hours={HourKey(client_a, media_tv): Decimal("10")},
        )
        assert not outcome.accepted
        assert _count(session, WeekHoursModel) == 0


class TestPercentageInheritance:
    def test_later_weeks_inherit_reduced_percentage(
        self, timesheet_service, users, weeks,
    ):
        uid = users.employee.id
        timesheet_service.set_percentage(Admin(users.admin.id), uid, weeks.w3.id, Decimal("50"))

        assert timesheet_service.remaining_hours(uid, weeks.w2.id) == Decimal("40")
        assert timesheet_service.remaining_hours(uid, weeks.w3.id) == Decimal("20")
        assert timesheet_service.remaining_hours(uid, weeks.w4.id) == Decimal("20")

    def test_half_week_submission(self, timesheet_service, users, weeks, owner, fill_week):
        uid = users.employee.id
        admin = Admin(users.admin.id, override=True)
        timesheet_service.set_percentage(admin, uid, weeks.w3.id, Decimal("50"))
        for week in (weeks.w1, weeks.w2):
            fill_week(week)
            timesheet_service.submit(uid, week.id, owner)
            timesheet_service.approve(uid, week.id, Manager(users.manager.id))

        remaining = fill_week(weeks.w3, Decimal("20"))
        assert remaining == Decimal("0")
        assert timesheet_service.submit(uid, weeks.w3.id, owner).accepted


class TestAudit:
    def test_applied_transition_audited(
        self, timesheet_service, session, users, weeks, owner, fill_week, deterministic_clock,
    ):
        fill_week(weeks.w1)
        timesheet_service.submit(users.employee.id, weeks.w1.id, owner)

        rows = _audit_rows(session)
        assert len(rows) == 1
        row = rows[0]
        assert row.transition == TransitionKind.SUBMIT.value
        assert row.from_status == WeekStatus.UNCONFIRMED.value
        assert row.to_status == WeekStatus.UNDER_REVIEW.value
        assert row.actor_kind == "owner"
        assert row.actor_id == users.employee.id
        assert row.override is False
        assert row.recorded_at.replace(tzinfo=None) == (
            deterministic_clock.now().replace(tzinfo=None)
        )

    def test_override_submission_flagged(self, timesheet_service, session, users, weeks):
        outcome = timesheet_service.submit(
            users.employee.id, weeks.w3.id, Admin(users.admin.id, override=True),
        )

        assert outcome.accepted
        assert outcome.override
        [row] = _audit_rows(session)
        assert row.override is True
        assert row.actor_kind == "admin_override"

    def test_repeat_submission_not_audited(
        self, timesheet_service, session, users, weeks, owner, fill_week,
    ):
        fill_week(weeks.w1)
        timesheet_service.submit(users.employee.id, weeks.w1.id, owner)
        repeat = timesheet_service.submit(users.employee.id, weeks.w1.id, owner)

        assert repeat.accepted
        assert not repeat.changed
        assert len(_audit_rows(session)) == 1
        assert _count(session, WeekStatusModel) == 1

    def test_audit_rows_are_immutable(
        self, timesheet_service, session, users, weeks, owner, fill_week,
    ):
        fill_week(weeks.w1)
        timesheet_service.submit(users.employee.id, weeks.w1.id, owner)
        [row] = _audit_rows(session)

        row.to_status = WeekStatus.ACCEPTED.value
        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestAdminRevert:
    def test_accepted_week_reopened(
        self, timesheet_service, users, weeks, owner, fill_week,
    ):
        uid = users.employee.id
        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)
        timesheet_service.approve(uid, weeks.w1.id, Manager(users.manager.id))

        outcome = timesheet_service.admin_revert(
            uid, weeks.w1.id, Admin(users.admin.id, override=True),
        )
        assert outcome.accepted
        assert timesheet_service.store.load_statuses(uid)[weeks.w1.id] == WeekStatus.UNCONFIRMED

    def test_requires_override(self, timesheet_service, users, weeks, owner, fill_week):
        uid = users.employee.id
        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)
        timesheet_service.approve(uid, weeks.w1.id, Manager(users.manager.id))

        outcome = timesheet_service.admin_revert(uid, weeks.w1.id, Admin(users.admin.id))
        assert not outcome.accepted
        assert outcome.reason == RejectionReason.NOT_AUTHORIZED


class TestClaimedRoles:
    """Admin and Manager capacities must be backed by the directory role."""

    def test_user_claiming_admin_override_cannot_submit_incomplete_week(
        self, timesheet_service, session, users, weeks,
    ):
        uid = users.employee.id
        outcome = timesheet_service.submit(uid, weeks.w3.id, Admin(uid, override=True))

        assert not outcome.accepted
        assert outcome.reason == RejectionReason.NOT_AUTHORIZED
        assert outcome.reasons == (RejectionReason.NOT_AUTHORIZED,)
        assert _count(session, WeekStatusModel) == 0
        assert _audit_rows(session) == []

    def test_user_claiming_admin_override_cannot_revert(
        self, timesheet_service, users, weeks, owner, fill_week,
    ):
        uid = users.employee.id
        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)
        timesheet_service.approve(uid, weeks.w1.id, Manager(users.manager.id))

        outcome = timesheet_service.admin_revert(uid, weeks.w1.id, Admin(uid, override=True))
        assert outcome.reason == RejectionReason.NOT_AUTHORIZED
        assert timesheet_service.store.load_statuses(uid)[weeks.w1.id] == WeekStatus.ACCEPTED

    def test_manager_relation_without_manager_role(
        self, timesheet_service, directory_service, weeks, client_a, media_tv,
    ):
        lead = directory_service.create_user("Lea Lead")
        worker = directory_service.create_user(
            "Wim Worker", manager_id=lead.id, first_week_id=weeks.w1.id,
        )
        timesheet_service.log_hours(
            Owner(worker.id), worker.id, weeks.w1.id, client_a, media_tv, Decimal("40"),
        )
        assert timesheet_service.submit(worker.id, weeks.w1.id, Owner(worker.id)).accepted

        outcome = timesheet_service.approve(worker.id, weeks.w1.id, Manager(lead.id))
        assert outcome.reason == RejectionReason.NOT_AUTHORIZED
        assert timesheet_service.store.load_statuses(worker.id)[weeks.w1.id] == (
            WeekStatus.UNDER_REVIEW
        )

    def test_admin_id_missing_from_directory(self, timesheet_service, users, weeks):
        outcome = timesheet_service.submit(
            users.employee.id, weeks.w1.id, Admin(uuid4(), override=True),
        )
        assert outcome.reason == RejectionReason.NOT_AUTHORIZED

    def test_unknown_week_reported_before_authorization(
        self, timesheet_service, users,
    ):
        uid = users.employee.id
        outcome = timesheet_service.submit(uid, uuid4(), Admin(uid, override=True))
        assert outcome.reason == RejectionReason.UNKNOWN_WEEK

    def test_user_claiming_admin_cannot_set_percentage(
        self, timesheet_service, session, users, weeks,
    ):
        uid = users.employee.id
        with pytest.raises(UnauthorizedActorError):
            timesheet_service.set_percentage(Admin(uid), uid, weeks.w1.id, Decimal("0"))
        assert timesheet_service.store.load_percentages(uid) == {}

    def test_user_claiming_admin_override_cannot_edit_locked_hours(
        self, timesheet_service, users, weeks, owner, fill_week, client_a, media_tv,
    ):
        uid = users.employee.id
        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)

        with pytest.raises(UnauthorizedActorError):
            timesheet_service.log_hours(
                Admin(uid, override=True), uid, weeks.w1.id, client_a, media_tv, Decimal("1"),
            )
        assert timesheet_service.store.load_hours(uid, weeks.w1.id) == {
            HourKey(client_a, media_tv): Decimal("40"),
        }

    def test_refusal_logged(self, timesheet_service, users, weeks, captured_logs):
        uid = users.employee.id
        timesheet_service.submit(uid, weeks.w1.id, Admin(uid, override=True))

        [record] = [r for r in captured_logs() if r["message"] == "transition_rejected"]
        assert record["reason"] == "NotAuthorized"
        assert record["actor_kind"] == "admin_override"


class TestInjectedStore:
    def test_service_writes_through_given_store(
        self, session, deterministic_clock, users, weeks, client_a, media_tv,
    ):
        class CountingStore(SqlTimesheetStore):
            def __init__(self, session):
                super().__init__(session)
                self.applied = 0

            def apply(self, intents):
                self.applied += 1
                super().apply(intents)

        store = CountingStore(session)
        service = TimesheetService(session, clock=deterministic_clock, store=store)
        uid = users.employee.id
        service.log_hours(Owner(uid), uid, weeks.w1.id, client_a, media_tv, Decimal("40"))

        assert service.store is store
        assert service.submit(uid, weeks.w1.id, Owner(uid)).accepted
        assert store.applied == 1


class TestPersistenceFailure:
    def test_failed_write_leaves_state_unchanged(
        self, timesheet_service, session, users, weeks, owner, client_a, media_tv, monkeypatch,
    ):
        def _boom(*args, **kwargs):
            raise OperationalError("UPDATE week_statuses", {}, Exception("disk I/O error"))

        monkeypatch.setattr(timesheet_service.store, "upsert_status", _boom)
        uid = users.employee.id

        with pytest.raises(PersistenceError) as exc_info:
            timesheet_service.submit(
                uid,
                weeks.w1.id,
                owner,
                draft_hours={HourKey(client_a, media_tv): Decimal("40")},
            )

        assert exc_info.value.operation == "transition"
        assert _count(session, WeekHoursModel) == 0
        assert _count(session, WeekStatusModel) == 0
        assert _audit_rows(session) == []


class TestCache:
    def test_navigation_sees_applied_transition(
        self, timesheet_service, users, weeks, owner, fill_week,
    ):
        uid = users.employee.id
        assert timesheet_service.first_actionable_week(uid) == weeks.w1

        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)
        assert timesheet_service.first_actionable_week(uid) == weeks.w2
        assert timesheet_service.first_actionable_week(uid, TransitionKind.APPROVE) == weeks.w1

    def test_shared_cache_refreshed_after_percentage(
        self, timesheet_service, snapshot_cache, users, weeks,
    ):
        uid = users.employee.id
        assert timesheet_service.remaining_hours(uid, weeks.w4.id) == Decimal("40")

        timesheet_service.set_percentage(Admin(users.admin.id), uid, weeks.w2.id, Decimal("25"))
        assert timesheet_service.remaining_hours(uid, weeks.w4.id) == Decimal("10")


class TestNavigationQueries:
    def test_submitted_weeks(self, timesheet_service, users, weeks, owner, fill_week):
        uid = users.employee.id
        assert timesheet_service.submitted_weeks(uid) == ()

        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)
        assert weeks.w1 in timesheet_service.submitted_weeks(uid)

    def test_unknown_user(self, timesheet_service, weeks):
        with pytest.raises(UserNotFoundError):
            timesheet_service.first_actionable_week(uuid4())


class TestLogHours:
    def test_returns_remaining(self, fill_week, weeks):
        assert fill_week(weeks.w1, Decimal("30")) == Decimal("10")

    def test_zero_removes_cell(self, timesheet_service, session, fill_week, weeks, users):
        fill_week(weeks.w1, Decimal("30"))
        remaining = fill_week(weeks.w1, Decimal("0"))

        assert remaining == Decimal("40")
        assert _count(session, WeekHoursModel) == 0

    def test_negative_rejected(self, fill_week, weeks):
        with pytest.raises(InvalidHoursError):
            fill_week(weeks.w1, Decimal("-1"))

    def test_locked_under_review(self, timesheet_service, users, weeks, owner, fill_week):
        fill_week(weeks.w1)
        timesheet_service.submit(users.employee.id, weeks.w1.id, owner)

        with pytest.raises(HoursLockedError) as exc_info:
            fill_week(weeks.w1, Decimal("38"))
        assert exc_info.value.status == WeekStatus.UNDER_REVIEW.value

    def test_admin_override_edits_locked_week(
        self, timesheet_service, users, weeks, owner, fill_week, client_a, media_tv,
    ):
        uid = users.employee.id
        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)

        remaining = timesheet_service.log_hours(
            Admin(users.admin.id, override=True), uid, weeks.w1.id, client_a, media_tv, 38,
        )
        assert remaining == Decimal("2")

    def test_manager_may_not_log(self, timesheet_service, users, weeks, client_a, media_tv):
        with pytest.raises(UnauthorizedActorError):
            timesheet_service.log_hours(
                Manager(users.manager.id), users.employee.id, weeks.w1.id,
                client_a, media_tv, Decimal("8"),
            )

    def test_user_head_may_log(self, timesheet_service, users, weeks, client_a, media_tv):
        remaining = timesheet_service.log_hours(
            UserHead(users.head.id), users.employee.id, weeks.w1.id,
            client_a, media_tv, Decimal("8"),
        )
        assert remaining == Decimal("32")

    def test_unknown_week(self, timesheet_service, users, owner, client_a, media_tv):
        with pytest.raises(WeekNotFoundError):
            timesheet_service.log_hours(
                owner, users.employee.id, uuid4(), client_a, media_tv, Decimal("8"),
            )


class TestSetPercentage:
    def test_non_admin_refused(self, timesheet_service, users, weeks):
        with pytest.raises(UnauthorizedActorError):
            timesheet_service.set_percentage(
                Manager(users.manager.id), users.employee.id, weeks.w1.id, Decimal("50"),
            )

    @pytest.mark.parametrize("value", [Decimal("-1"), Decimal("100.01"), Decimal("140")])
    def test_out_of_range(self, timesheet_service, users, weeks, value):
        with pytest.raises(InvalidPercentageError):
            timesheet_service.set_percentage(
                Admin(users.admin.id), users.employee.id, weeks.w1.id, value,
            )

    def test_unknown_week(self, timesheet_service, users):
        with pytest.raises(WeekNotFoundError):
            timesheet_service.set_percentage(
                Admin(users.admin.id), users.employee.id, uuid4(), Decimal("50"),
            )

    def test_unknown_user(self, timesheet_service, users, weeks):
        with pytest.raises(UserNotFoundError):
            timesheet_service.set_percentage(
                Admin(users.admin.id), uuid4(), weeks.w1.id, Decimal("50"),
            )


class TestTransitionLogging:
    def test_applied_and_rejected_logged(
        self, timesheet_service, users, weeks, owner, fill_week, captured_logs,
    ):
        uid = users.employee.id
        timesheet_service.submit(uid, weeks.w1.id, owner)
        fill_week(weeks.w1)
        timesheet_service.submit(uid, weeks.w1.id, owner)

        records = captured_logs()
        rejected = [r for r in records if r["message"] == "transition_rejected"]
        applied = [r for r in records if r["message"] == "transition_applied"]

        assert rejected[0]["reason"] == RejectionReason.INCOMPLETE_HOURS.value
        assert rejected[0]["week_id"] == str(weeks.w1.id)
        assert applied[0]["to_status"] == WeekStatus.UNDER_REVIEW.value
        assert applied[0]["override"] is False
        assert applied[0]["actor_kind"] == "owner"
        assert applied[0]["transition"] == TransitionKind.SUBMIT.value
        assert rejected[0]["correlation_id"] != applied[0]["correlation_id"]

    def test_caller_correlation_id_kept(
        self, timesheet_service, users, weeks, owner, captured_logs,
    ):
        with LogContext.bind(correlation_id="req-42"):
            timesheet_service.submit(users.employee.id, weeks.w1.id, owner)

        [record] = [r for r in captured_logs() if r["message"] == "transition_rejected"]
        assert record["correlation_id"] == "req-42"
