"""Match lifecycle.

PRE_ANALYSIS -> OPERATION_PENDING -> OPERATION_COMPLETED
PRE_ANALYSIS -> NOT_OPERATED

Every transition that touches both a match and its operation is done in
the caller's session and flushed together, so the request transaction
commits or rolls back both rows at once.
"""

from datetime import date, datetime, time, timedelta, timezone

import structlog
from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import Settings, get_settings
from app.models.domain import Match, MatchStatus, Operation, OperationStatus
from app.services.errors import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def _operation_exists(match_id: int) -> ConflictError:
    return ConflictError(
        "Match already has an operation",
        code="OPERATION_EXISTS",
        details={"match_id": match_id},
    )


ALLOWED_TRANSITIONS: dict[MatchStatus, set[MatchStatus]] = {
    MatchStatus.PRE_ANALYSIS: {MatchStatus.OPERATION_PENDING, MatchStatus.NOT_OPERATED},
    # Back to PRE_ANALYSIS only when the pending operation is deleted
    MatchStatus.OPERATION_PENDING: {MatchStatus.OPERATION_COMPLETED, MatchStatus.PRE_ANALYSIS},
    MatchStatus.OPERATION_COMPLETED: set(),
    MatchStatus.NOT_OPERATED: set(),
}


def can_transition(current: MatchStatus | str, target: MatchStatus | str) -> bool:
    """Check the transition table."""
    return MatchStatus(target) in ALLOWED_TRANSITIONS[MatchStatus(current)]


def transition_match_status(match: Match, target: MatchStatus) -> Match:
    """Move a match to `target` or raise ConflictError."""
    if not can_transition(match.status, target):
        raise ConflictError(
            f"Match cannot move from {match.status} to {target.value}",
            code="INVALID_TRANSITION",
            details={"from": match.status, "to": target.value},
        )
    match.status = target.value
    return match


def kickoff_at(match_date: date, match_time: time) -> datetime:
    """Scheduled kick-off as a naive wall-clock datetime."""
    return datetime.combine(match_date, match_time)


def _wall_clock(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now()
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def is_due_for_verification(
    match: Match,
    has_operation: bool,
    now: datetime | None = None,
    threshold_hours: int = 24,
) -> bool:
    """
    Pending-verification rule for a single match.

    A match is due when it is still in PRE_ANALYSIS, was never verified,
    has no operation, and kicked off at least `threshold_hours` ago.
    """
    if match.status != MatchStatus.PRE_ANALYSIS.value:
        return False
    if match.not_operated_verified_at is not None or has_operation:
        return False
    elapsed = _wall_clock(now) - kickoff_at(match.match_date, match.match_time)
    return elapsed >= timedelta(hours=threshold_hours)


class MatchLifecycleManager:
    """
    Owns Match.status and the operation transitions that drive it.

    Methods flush but never commit; the request dependency owns the
    transaction boundary.
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

    async def _get_match(self, match_id: int) -> Match:
        match = await self.session.get(Match, match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        return match

    async def _get_operation(self, operation_id: int, with_items: bool = False) -> Operation:
        query = select(Operation).where(Operation.id == operation_id)
        if with_items:
            query = query.options(selectinload(Operation.items)).execution_options(
                populate_existing=True
            )
        operation = (await self.session.execute(query)).scalar_one_or_none()
        if operation is None:
            raise NotFoundError("Operation", operation_id)
        return operation

    async def _operation_id_for(self, match_id: int) -> int | None:
        result = await self.session.execute(
            select(Operation.id).where(Operation.match_id == match_id)
        )
        return result.scalar_one_or_none()

    async def create_operation(self, match_id: int) -> Operation:
        """
        Open the (single) operation for a match.

        Fails with Conflict when the match already has an operation or is
        in a terminal state.
        """
        match = await self._get_match(match_id)
        if await self._operation_id_for(match_id) is not None:
            raise _operation_exists(match_id)

        transition_match_status(match, MatchStatus.OPERATION_PENDING)
        operation = Operation(match_id=match_id, status=OperationStatus.PENDING.value)
        self.session.add(operation)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Another request opened one between the check and the insert
            logger.warning("operation_insert_conflict", match_id=match_id, error=str(e.orig))
            raise _operation_exists(match_id) from e
        await self.session.refresh(operation)

        logger.info("operation_created", operation_id=operation.id, match_id=match_id)
        return operation

    async def complete_operation(self, operation_id: int) -> Operation:
        """
        Conclude an operation once every item carries a financial result.
        """
        operation = await self._get_operation(operation_id, with_items=True)

        if operation.status == OperationStatus.COMPLETED.value:
            raise ConflictError(
                "Operation is already completed",
                code="OPERATION_COMPLETED",
                details={"operation_id": operation_id},
            )
        if not operation.items:
            raise ValidationError(
                "Operation incomplete: it has no items",
                code="OPERATION_INCOMPLETE",
                details={"items": "At least one item is required"},
            )

        unsettled = [item.id for item in operation.items if item.financial_result is None]
        if unsettled:
            raise ConflictError(
                "Operation incomplete: every item needs a financial result",
                code="OPERATION_INCOMPLETE",
                details={"unsettled_item_ids": unsettled},
            )

        item_count = len(operation.items)
        match = await self._get_match(operation.match_id)
        transition_match_status(match, MatchStatus.OPERATION_COMPLETED)
        operation.status = OperationStatus.COMPLETED.value
        operation.completed_at = datetime.now(timezone.utc)
        await self.session.flush()
        await self.session.refresh(operation)

        logger.info(
            "operation_completed",
            operation_id=operation_id,
            match_id=match.id,
            items=item_count,
        )
        return operation

    async def delete_operation(self, operation_id: int) -> None:
        """Drop a pending operation and its items; the match returns to PRE_ANALYSIS."""
        operation = await self._get_operation(operation_id)
        if operation.status == OperationStatus.COMPLETED.value:
            raise ConflictError(
                "Completed operations cannot be deleted",
                code="OPERATION_COMPLETED",
                details={"operation_id": operation_id},
            )

        match = await self._get_match(operation.match_id)
        if match.status == MatchStatus.OPERATION_PENDING.value:
            transition_match_status(match, MatchStatus.PRE_ANALYSIS)

        await self.session.delete(operation)
        await self.session.flush()
        logger.info("operation_deleted", operation_id=operation_id, match_id=match.id)

    async def mark_not_operated(self, match_id: int, justification: str | None) -> Match:
        """Archive a match the user decided not to trade."""
        text = (justification or "").strip()
        max_length = self.settings.not_operated_justification_max_length
        if not text:
            raise ValidationError.for_field("justification", "Justification is required")
        if len(text) > max_length:
            raise ValidationError.for_field(
                "justification", f"Justification must be at most {max_length} characters"
            )

        match = await self._get_match(match_id)
        transition_match_status(match, MatchStatus.NOT_OPERATED)
        match.not_operated_justification = text
        match.not_operated_verified_at = datetime.now(timezone.utc)
        await self.session.flush()
        await self.session.refresh(match)

        logger.info("match_marked_not_operated", match_id=match_id)
        return match

    async def mark_verified(self, match_id: int) -> Match:
        """Stamp the verification time without touching the status."""
        match = await self._get_match(match_id)
        match.not_operated_verified_at = datetime.now(timezone.utc)
        await self.session.flush()
        await self.session.refresh(match)

        logger.info("match_marked_verified", match_id=match_id, status=match.status)
        return match

    async def pending_verification(self, now: datetime | None = None) -> list[Match]:
        """
        Matches old enough to have been traded that nobody confirmed either way.

        One anti-join query; the date column narrows the scan and the exact
        kick-off cut-off is applied on the fetched rows.
        """
        current = _wall_clock(now)
        threshold = self.settings.pending_verification_hours
        cutoff = current - timedelta(hours=threshold)

        has_operation = exists().where(Operation.match_id == Match.id)
        result = await self.session.execute(
            select(Match)
            .where(
                Match.status == MatchStatus.PRE_ANALYSIS.value,
                Match.not_operated_verified_at.is_(None),
                Match.match_date <= cutoff.date(),
                ~has_operation,
            )
            .order_by(Match.match_date.desc(), Match.match_time.desc())
        )
        matches = [
            m
            for m in result.scalars().all()
            if is_due_for_verification(m, False, current, threshold)
        ]

        logger.debug("pending_verification_scanned", due=len(matches))
        return matches
