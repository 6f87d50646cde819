"""
TimesheetService -- applies week status transitions and ledger writes.

Responsibility:
    The imperative shell around ``ApprovalEngine``.  For every request it
    loads a ``LedgerSnapshot`` through a ``TimesheetStore`` (by default
    ``SqlTimesheetStore`` on the same session), asks the
    engine for a decision, and on acceptance writes the emitted intents
    together with a ``TransitionAuditModel`` row inside one SAVEPOINT.
    Also owns the direct ledger writes that are not transitions: logging
    hours for one cell and setting a week's percentage.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - An accepted transition is persisted completely or not at all.
    - Unchanged (idempotent) outcomes write nothing and are not audited.
    - Override-driven transitions are audited with ``override=True``.
    - Hours of a week under review or accepted are locked unless an admin
      in override mode edits them.
    - The snapshot cache is invalidated for the user after every write.
    - An ``Admin`` or ``Manager`` actor is honoured only when the directory
      entry with that id has the admin or manager role; otherwise the
      transition is rejected as NotAuthorized and ledger writes raise
      UnauthorizedActorError.  Override therefore needs a real admin.

Failure modes:
    - TransitionRejected (returned) for every expected refusal.
    - UserNotFoundError / WeekNotFoundError for unknown ids.
    - InvalidHoursError, InvalidPercentageError, HoursLockedError,
      UnauthorizedActorError for bad ledger writes.
    - PersistenceError when the store fails; the SAVEPOINT is rolled back.

Audit relevance:
    ``transition_applied`` and ``transition_rejected`` are logged for
    every decision with actor kind, override flag and reasons.
"""

from collections.abc import Mapping
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from timesheet_kernel.domain.actors import (
    Actor,
    Admin,
    actor_id,
    actor_kind,
    holds_claimed_role,
    is_override,
    may_submit,
)
from timesheet_kernel.domain.approval import (
    RejectionReason,
    TransitionAccepted,
    TransitionKind,
    TransitionOutcome,
    TransitionRejected,
    TransitionRequest,
)
from timesheet_kernel.domain.approval_engine import ApprovalEngine
from timesheet_kernel.domain.clock import Clock, SystemClock
from timesheet_kernel.domain.store import TimesheetStore
from timesheet_kernel.domain.ledgers import (
    HoursLedger,
    LedgerSnapshot,
    PercentageLedger,
    StatusLedger,
)
from timesheet_kernel.domain.values import (
    EDITABLE_STATUSES,
    HUNDRED,
    ZERO,
    HourKey,
    Week,
)
from timesheet_kernel.domain.week_catalog import WeekCatalog
from timesheet_kernel.exceptions import (
    HoursLockedError,
    InvalidHoursError,
    InvalidPercentageError,
    UnauthorizedActorError,
    UserNotFoundError,
)
from timesheet_kernel.logging_config import LogContext, get_logger, new_correlation_id
from timesheet_kernel.models.transition_audit import TransitionAuditModel
from timesheet_kernel.services.base import BaseService
from timesheet_kernel.services.snapshot_cache import SnapshotCache
from timesheet_kernel.services.timesheet_store import SqlTimesheetStore

logger = get_logger("services.timesheet")


def _describe(actor: Actor) -> str:
    return f"{actor_kind(actor)}:{actor_id(actor)}"


class TimesheetService(BaseService[TransitionAuditModel]):
    """
    Entry point for submit / approve / reject / admin-revert and ledger writes.

    Contract:
        Every transition method takes the target ``week_id`` explicitly and
        returns the engine's ``TransitionOutcome``.  Nothing is committed;
        the caller's ``session_scope()`` does that.

    Non-goals:
        - Does NOT decide legality itself; ``ApprovalEngine`` does.
        - Does NOT retry on persistence failure.
    """

    def __init__(
        self,
        session: Session,
        engine: ApprovalEngine | None = None,
        clock: Clock | None = None,
        cache: SnapshotCache | None = None,
        default_percentage: Decimal = HUNDRED,
        store: TimesheetStore | None = None,
    ):
        super().__init__(session)
        self._engine = engine or ApprovalEngine()
        self._clock = clock or SystemClock()
        self._cache = cache or SnapshotCache()
        self._store = store if store is not None else SqlTimesheetStore(session)
        self._default_percentage = Decimal(default_percentage)

    @property
    def engine(self) -> ApprovalEngine:
        return self._engine

    @property
    def store(self) -> TimesheetStore:
        return self._store

    # -----------------------------------------------------------------
    # Snapshots
    # -----------------------------------------------------------------

    def load_snapshot(self, user_id: UUID, week_id: UUID | None = None) -> LedgerSnapshot:
        """
        Build the snapshot the engine decides from.

        Hour entries are loaded for ``week_id`` only; other weeks' hours do
        not take part in any guard.
        """
        user = self._store.load_user(user_id)
        catalog = WeekCatalog(self._cache.weeks(self._store.load_weeks))
        statuses = self._cache.statuses(user_id, self._store.load_statuses)
        percentages = self._cache.percentages(user_id, self._store.load_percentages)

        hours = {}
        if week_id is not None and week_id in catalog:
            hours[week_id] = self._store.load_hours(user_id, week_id)

        return LedgerSnapshot(
            user=user,
            catalog=catalog,
            statuses=StatusLedger(statuses),
            percentages=PercentageLedger(catalog, percentages, self._default_percentage),
            hours=HoursLedger(hours),
        )

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------

    def submit(
        self,
        user_id: UUID,
        week_id: UUID,
        actor: Actor,
        draft_hours: Mapping[HourKey, Decimal] | None = None,
    ) -> TransitionOutcome:
        """Submit ``week_id`` for review, persisting ``draft_hours`` with it."""
        return self._transition(
            TransitionRequest(
                kind=TransitionKind.SUBMIT,
                week_id=week_id,
                actor=actor,
                draft_hours=dict(draft_hours or {}),
            ),
            user_id,
        )

    def approve(self, user_id: UUID, week_id: UUID, actor: Actor) -> TransitionOutcome:
        return self._transition(
            TransitionRequest(TransitionKind.APPROVE, week_id, actor), user_id,
        )

    def reject(self, user_id: UUID, week_id: UUID, actor: Actor) -> TransitionOutcome:
        return self._transition(
            TransitionRequest(TransitionKind.REJECT, week_id, actor), user_id,
        )

    def admin_revert(self, user_id: UUID, week_id: UUID, actor: Actor) -> TransitionOutcome:
        return self._transition(
            TransitionRequest(TransitionKind.ADMIN_REVERT, week_id, actor), user_id,
        )

    def _transition(self, request: TransitionRequest, user_id: UUID) -> TransitionOutcome:
        with LogContext.bind(
            correlation_id=LogContext.get("correlation_id") or new_correlation_id(),
            transition=request.kind.value,
            actor_id=str(actor_id(request.actor)),
            user_id=str(user_id),
            week_id=str(request.week_id),
        ):
            snapshot = self.load_snapshot(user_id, request.week_id)
            known_week = request.week_id in snapshot.catalog
            if known_week and not self._actor_is_backed(request.actor):
                outcome = TransitionRejected(
                    kind=request.kind,
                    user_id=user_id,
                    week_id=request.week_id,
                    reason=RejectionReason.NOT_AUTHORIZED,
                    reasons=(RejectionReason.NOT_AUTHORIZED,),
                    detail=f"{_describe(request.actor)} is not backed by the directory",
                    current_status=snapshot.statuses.status_of(request.week_id),
                )
            else:
                outcome = self._engine.evaluate(snapshot, request)

            if not outcome.accepted:
                logger.info(
                    "transition_rejected",
                    extra={
                        "actor_kind": actor_kind(request.actor),
                        "reason": outcome.reason.value,
                        "reasons": [r.value for r in outcome.reasons],
                        "detail": outcome.detail,
                    },
                )
                return outcome

            if not outcome.changed:
                logger.info(
                    "transition_unchanged",
                    extra={
                        "status": outcome.to_status.value,
                    },
                )
                return outcome

            self._persist(outcome, request.actor)
            self._cache.invalidate(user_id)

            logger.info(
                "transition_applied",
                extra={
                    "actor_kind": actor_kind(request.actor),
                    "from_status": outcome.from_status.value,
                    "to_status": outcome.to_status.value,
                    "override": outcome.override,
                    "intent_count": len(outcome.intents),
                },
            )
            return outcome

    def _actor_is_backed(self, actor: Actor) -> bool:
        """The claimed capacity matches the actor's directory entry."""
        try:
            person = self._store.load_user(actor_id(actor))
        except UserNotFoundError:
            return False
        return holds_claimed_role(actor, person)

    def _persist(self, outcome: TransitionAccepted, actor: Actor) -> None:
        with self.translate_errors("transition"), self.savepoint("transition"):
            self._store.apply(outcome.intents)
            self.session.add(
                TransitionAuditModel(
                    user_id=outcome.user_id,
                    week_id=outcome.week_id,
                    transition=outcome.kind.value,
                    from_status=outcome.from_status.value,
                    to_status=outcome.to_status.value,
                    actor_kind=actor_kind(actor),
                    actor_id=actor_id(actor),
                    override=outcome.override,
                    recorded_at=self._clock.now(),
                )
            )
            self.session.flush()

    # -----------------------------------------------------------------
    # Navigation
    # -----------------------------------------------------------------

    def first_actionable_week(
        self,
        user_id: UUID,
        kind: TransitionKind = TransitionKind.SUBMIT,
    ) -> Week | None:
        """First week still to be submitted (SUBMIT) or reviewed (APPROVE)."""
        return self._engine.first_actionable_week(self.load_snapshot(user_id), kind)

    def submitted_weeks(self, user_id: UUID) -> tuple[Week, ...]:
        return self._engine.submitted_weeks(self.load_snapshot(user_id))

    def remaining_hours(self, user_id: UUID, week_id: UUID) -> Decimal:
        snapshot = self.load_snapshot(user_id, week_id)
        return self._engine.remaining_hours(snapshot, week_id)

    # -----------------------------------------------------------------
    # Ledger writes
    # -----------------------------------------------------------------

    def log_hours(
        self,
        actor: Actor,
        user_id: UUID,
        week_id: UUID,
        client_id: UUID,
        media_type_id: UUID,
        hours: Decimal,
    ) -> Decimal:
        """
        Write one (client, media type) cell of a week.  Zero deletes it.

        Returns:
            Remaining hours of the week after the write.

        Raises:
            InvalidHoursError: ``hours`` is negative.
            UnauthorizedActorError: actor may not edit this user's hours.
            HoursLockedError: week is under review or accepted (no override).
            WeekNotFoundError: ``week_id`` is not in the catalog.
        """
        hours = Decimal(hours)
        if hours < ZERO:
            raise InvalidHoursError(str(hours))

        snapshot = self.load_snapshot(user_id, week_id)
        snapshot.catalog.get(week_id)

        if not (self._actor_is_backed(actor) and may_submit(actor, snapshot.user)):
            raise UnauthorizedActorError(_describe(actor), str(user_id), "log hours")

        status = snapshot.statuses.status_of(week_id)
        if status not in EDITABLE_STATUSES and not is_override(actor):
            raise HoursLockedError(str(user_id), str(week_id), status.value)

        self._store.upsert_hours(user_id, week_id, client_id, media_type_id, hours)
        self._cache.invalidate(user_id)

        remaining = snapshot.with_draft_hours(
            week_id, {HourKey(client_id, media_type_id): hours},
        ).remaining_hours(week_id)

        logger.info(
            "hours_logged",
            extra={
                "user_id": str(user_id),
                "week_id": str(week_id),
                "client_id": str(client_id),
                "media_type_id": str(media_type_id),
                "hours": hours,
                "remaining_hours": remaining,
                "actor_kind": actor_kind(actor),
            },
        )
        return remaining

    def set_percentage(
        self,
        actor: Actor,
        user_id: UUID,
        week_id: UUID,
        percentage: Decimal,
    ) -> Decimal:
        """
        Set the explicit percentage of ``week_id``; later weeks inherit it.

        Returns:
            The stored percentage.
        """
        if not (isinstance(actor, Admin) and self._actor_is_backed(actor)):
            raise UnauthorizedActorError(_describe(actor), str(user_id), "set percentage")

        percentage = Decimal(percentage)
        if percentage < ZERO or percentage > HUNDRED:
            raise InvalidPercentageError(str(percentage))

        self._store.load_user(user_id)
        WeekCatalog(self._cache.weeks(self._store.load_weeks)).get(week_id)

        self._store.upsert_percentage(user_id, week_id, percentage)
        self._cache.invalidate(user_id)

        logger.info(
            "percentage_set",
            extra={
                "user_id": str(user_id),
                "week_id": str(week_id),
                "percentage": percentage,
                "actor_id": str(actor_id(actor)),
            },
        )
        return percentage
