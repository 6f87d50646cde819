"""
ApprovalEngine -- pure decision logic for week status transitions.

Responsibility:
    Decides whether a requested transition (submit, approve, reject,
    admin-revert) is legal for one explicit week, given a
    ``LedgerSnapshot`` and an ``Actor``.  Emits the ledger-mutation
    intents of an accepted transition.  Also answers the derived queries
    the callers need: required/remaining hours, earlier-week blockers,
    and the first actionable week.

Architecture position:
    Kernel > Domain -- pure functional core.  Stateless between calls; no
    I/O, no clock, no ambient "current week".

Invariants enforced:
    CHRONOLOGICAL_SUBMISSION -- submit is blocked while an earlier week
        in the window is unconfirmed, needs revision, or (by default) is
        still under review.
    COMPLETE_BEFORE_SUBMIT -- submit requires remaining hours == 0.
    ORDERED_APPROVAL -- approve is blocked while an earlier week in the
        window is under review.
    ROLE_CHECK_NOT_OVERRIDABLE -- override is evaluated only after the
        actor check passed.

Guard evaluation order:
    unknown week -> authorization -> source state -> ordering ->
    completeness.  The first three short-circuit; ordering and
    completeness are both reported when both fail.

Failure modes:
    - Returns TransitionRejected for every expected refusal.
    - WeekNotFoundError when the user's first week is missing from the
      catalog (data integrity).
    - InvalidHoursError for negative draft hours.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from timesheet_kernel.domain.actors import (
    Actor,
    is_override,
    may_revert,
    may_review,
    may_submit,
)
from timesheet_kernel.domain.approval import (
    IDEMPOTENT_KINDS,
    WEEK_TRANSITIONS,
    HoursIntent,
    LedgerIntent,
    RejectionReason,
    StatusIntent,
    TransitionAccepted,
    TransitionKind,
    TransitionOutcome,
    TransitionRejected,
    TransitionRequest,
)
from timesheet_kernel.domain.ledgers import LedgerSnapshot
from timesheet_kernel.domain.values import ZERO, HourKey, Week, WeekStatus
from timesheet_kernel.exceptions import InvalidHoursError


@dataclass(frozen=True)
class EngineSettings:
    """Switches the engine accepts from configuration.

    ``under_review_blocks_submission`` -- an earlier week still under
    review blocks submitting a later week, so weeks are submitted only
    after every earlier week is accepted.  When False, only unconfirmed
    and needs-revision weeks block.
    ``needs_revision_blocks_approval`` -- an earlier week in needs-revision
    also blocks approving a later week.
    """

    under_review_blocks_submission: bool = True
    needs_revision_blocks_approval: bool = False


class ApprovalEngine:
    """
    Stateless evaluator of week status transitions.

    Contract:
        ``evaluate()`` is a pure function of (snapshot, request).  It never
        mutates the snapshot and never raises for a refused transition.

    Guarantees:
        - Accepted results carry ``override=True`` only for Admin actors in
          override mode.
        - Intents of an accepted submit list draft hour cells first, then
          the status change.

    Non-goals:
        - Does NOT persist anything; callers commit the intents.
    """

    def __init__(self, settings: EngineSettings | None = None):
        self._settings = settings or EngineSettings()

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    # -----------------------------------------------------------------
    # Derived facts
    # -----------------------------------------------------------------

    def required_hours(self, snapshot: LedgerSnapshot, week_id: UUID) -> int:
        return snapshot.required_hours(week_id)

    def remaining_hours(self, snapshot: LedgerSnapshot, week_id: UUID) -> Decimal:
        return snapshot.remaining_hours(week_id)

    def blocking_statuses(self, kind: TransitionKind) -> frozenset[WeekStatus]:
        """Statuses of earlier weeks that block ``kind``."""
        match kind:
            case TransitionKind.SUBMIT:
                if self._settings.under_review_blocks_submission:
                    return frozenset({
                        WeekStatus.UNCONFIRMED,
                        WeekStatus.NEEDS_REVISION,
                        WeekStatus.UNDER_REVIEW,
                    })
                return frozenset({WeekStatus.UNCONFIRMED, WeekStatus.NEEDS_REVISION})
            case TransitionKind.APPROVE:
                if self._settings.needs_revision_blocks_approval:
                    return frozenset({WeekStatus.UNDER_REVIEW, WeekStatus.NEEDS_REVISION})
                return frozenset({WeekStatus.UNDER_REVIEW})
            case _:
                raise ValueError(f"No ordering guard for transition {kind.value}")

    def earlier_blockers(
        self,
        snapshot: LedgerSnapshot,
        week_id: UUID,
        kind: TransitionKind,
    ) -> tuple[Week, ...]:
        """Weeks in the window, strictly before ``week_id``, blocking ``kind``."""
        target = snapshot.catalog.get(week_id)
        blocking = self.blocking_statuses(kind)
        return tuple(
            week
            for week in snapshot.window()
            if week.period_from < target.period_from
            and snapshot.statuses.status_of(week.id) in blocking
        )

    def first_actionable_week(
        self,
        snapshot: LedgerSnapshot,
        kind: TransitionKind,
    ) -> Week | None:
        """Earliest week in the window that ``kind`` can act on.

        For SUBMIT this is the first week still to be submitted; for
        APPROVE the first week waiting for review.  A query only.
        """
        sources = WEEK_TRANSITIONS[kind].sources
        for week in snapshot.window():
            if snapshot.statuses.status_of(week.id) in sources:
                return week
        return None

    def submitted_weeks(self, snapshot: LedgerSnapshot) -> tuple[Week, ...]:
        return snapshot.statuses.submitted_weeks(snapshot.catalog)

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------

    def submit(
        self,
        snapshot: LedgerSnapshot,
        week_id: UUID,
        actor: Actor,
        draft_hours: Mapping[HourKey, Decimal] | None = None,
    ) -> TransitionOutcome:
        return self.evaluate(
            snapshot,
            TransitionRequest(
                kind=TransitionKind.SUBMIT,
                week_id=week_id,
                actor=actor,
                draft_hours=dict(draft_hours or {}),
            ),
        )

    def approve(self, snapshot: LedgerSnapshot, week_id: UUID, actor: Actor) -> TransitionOutcome:
        return self.evaluate(snapshot, TransitionRequest(TransitionKind.APPROVE, week_id, actor))

    def reject(self, snapshot: LedgerSnapshot, week_id: UUID, actor: Actor) -> TransitionOutcome:
        return self.evaluate(snapshot, TransitionRequest(TransitionKind.REJECT, week_id, actor))

    def admin_revert(self, snapshot: LedgerSnapshot, week_id: UUID, actor: Actor) -> TransitionOutcome:
        return self.evaluate(snapshot, TransitionRequest(TransitionKind.ADMIN_REVERT, week_id, actor))

    def evaluate(
        self,
        snapshot: LedgerSnapshot,
        request: TransitionRequest,
    ) -> TransitionOutcome:
        """Decide ``request`` against ``snapshot``."""
        user = snapshot.user
        if request.week_id not in snapshot.catalog:
            return self._rejected(
                snapshot,
                request,
                [RejectionReason.UNKNOWN_WEEK],
                detail=f"Week {request.week_id} is not in the catalog",
                current=None,
            )

        current = snapshot.statuses.status_of(request.week_id)

        if not self._authorized(request, snapshot):
            return self._rejected(
                snapshot,
                request,
                [RejectionReason.NOT_AUTHORIZED],
                detail=f"Actor may not {request.kind.value} weeks of user {user.id}",
                current=current,
            )

        rule = WEEK_TRANSITIONS[request.kind]
        if current == rule.target and request.kind in IDEMPOTENT_KINDS:
            return TransitionAccepted(
                kind=request.kind,
                user_id=user.id,
                week_id=request.week_id,
                from_status=current,
                to_status=current,
                override=is_override(request.actor),
                changed=False,
            )

        if current not in rule.sources:
            return self._rejected(
                snapshot,
                request,
                [RejectionReason.INVALID_STATE],
                detail=f"Cannot {request.kind.value} a week that is {current.value}",
                current=current,
            )

        match request.kind:
            case TransitionKind.SUBMIT:
                return self._evaluate_submit(snapshot, request, current)
            case TransitionKind.APPROVE:
                return self._evaluate_approve(snapshot, request, current)
            case TransitionKind.REJECT | TransitionKind.ADMIN_REVERT:
                return self._accepted(snapshot, request, current, ())
        raise ValueError(f"Unknown transition kind: {request.kind}")

    # -----------------------------------------------------------------
    # Per-kind guards
    # -----------------------------------------------------------------

    def _evaluate_submit(
        self,
        snapshot: LedgerSnapshot,
        request: TransitionRequest,
        current: WeekStatus,
    ) -> TransitionOutcome:
        for hours in request.draft_hours.values():
            if Decimal(hours) < ZERO:
                raise InvalidHoursError(str(hours))

        effective = snapshot
        if request.draft_hours:
            effective = snapshot.with_draft_hours(request.week_id, request.draft_hours)

        reasons: list[RejectionReason] = []
        blocking_week_id: UUID | None = None
        remaining: Decimal | None = None

        if not is_override(request.actor):
            blockers = self.earlier_blockers(effective, request.week_id, TransitionKind.SUBMIT)
            if blockers:
                reasons.append(RejectionReason.EARLIER_WEEK_BLOCKING)
                blocking_week_id = blockers[0].id
            remaining = effective.remaining_hours(request.week_id)
            if remaining != ZERO:
                reasons.append(RejectionReason.INCOMPLETE_HOURS)

        if reasons:
            return self._rejected(
                snapshot,
                request,
                reasons,
                detail=self._submit_detail(reasons, effective, request.week_id, blocking_week_id),
                current=current,
                blocking_week_id=blocking_week_id,
                remaining=remaining,
            )

        hour_intents = tuple(
            HoursIntent(
                user_id=snapshot.user.id,
                week_id=request.week_id,
                client_id=key.client_id,
                media_type_id=key.media_type_id,
                hours=Decimal(hours),
            )
            for key, hours in request.draft_hours.items()
        )
        return self._accepted(snapshot, request, current, hour_intents)

    def _evaluate_approve(
        self,
        snapshot: LedgerSnapshot,
        request: TransitionRequest,
        current: WeekStatus,
    ) -> TransitionOutcome:
        blockers = self.earlier_blockers(snapshot, request.week_id, TransitionKind.APPROVE)
        if blockers:
            first = blockers[0]
            return self._rejected(
                snapshot,
                request,
                [RejectionReason.EARLIER_WEEK_BLOCKING],
                detail=f"Earlier week {first.name} must be reviewed first",
                current=current,
                blocking_week_id=first.id,
            )
        return self._accepted(snapshot, request, current, ())

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _authorized(self, request: TransitionRequest, snapshot: LedgerSnapshot) -> bool:
        match request.kind:
            case TransitionKind.SUBMIT:
                return may_submit(request.actor, snapshot.user)
            case TransitionKind.APPROVE | TransitionKind.REJECT:
                return may_review(request.actor, snapshot.user)
            case TransitionKind.ADMIN_REVERT:
                return may_revert(request.actor)
        return False

    def _accepted(
        self,
        snapshot: LedgerSnapshot,
        request: TransitionRequest,
        current: WeekStatus,
        extra_intents: tuple[LedgerIntent, ...],
    ) -> TransitionAccepted:
        target = WEEK_TRANSITIONS[request.kind].target
        return TransitionAccepted(
            kind=request.kind,
            user_id=snapshot.user.id,
            week_id=request.week_id,
            from_status=current,
            to_status=target,
            override=is_override(request.actor),
            changed=True,
            intents=extra_intents + (
                StatusIntent(
                    user_id=snapshot.user.id,
                    week_id=request.week_id,
                    status=target,
                ),
            ),
        )

    @staticmethod
    def _rejected(
        snapshot: LedgerSnapshot,
        request: TransitionRequest,
        reasons: list[RejectionReason],
        *,
        detail: str,
        current: WeekStatus | None,
        blocking_week_id: UUID | None = None,
        remaining: Decimal | None = None,
    ) -> TransitionRejected:
        return TransitionRejected(
            kind=request.kind,
            user_id=snapshot.user.id,
            week_id=request.week_id,
            reason=reasons[0],
            reasons=tuple(reasons),
            detail=detail,
            current_status=current,
            blocking_week_id=blocking_week_id,
            remaining_hours=remaining,
        )

    @staticmethod
    def _submit_detail(
        reasons: list[RejectionReason],
        snapshot: LedgerSnapshot,
        week_id: UUID,
        blocking_week_id: UUID | None,
    ) -> str:
        parts = []
        if blocking_week_id is not None:
            blocker = snapshot.catalog.get(blocking_week_id)
            parts.append(
                f"earlier week {blocker.name} is "
                f"{snapshot.statuses.status_of(blocker.id).value}"
            )
        if RejectionReason.INCOMPLETE_HOURS in reasons:
            parts.append(
                f"log exactly {snapshot.required_hours(week_id)} hours "
                f"(currently: {snapshot.total_hours(week_id)})"
            )
        return "; ".join(parts)
