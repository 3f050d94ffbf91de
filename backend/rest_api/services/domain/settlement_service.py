"""
Settlement Domain Service.

Owns the rule that a check closes only when its non-void payments cover
its total. The whole decision (lock, recompute, sum payments, conditional
close) runs in one transaction against a locked check row.
"""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from rest_api.models import Check
from rest_api.repositories import CheckRepository, PaymentRepository
from shared.config.constants import CheckStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.clock import as_utc, utcnow
from shared.utils.exceptions import (
    AlreadyClosedError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PaymentIncompleteError,
    ValidationError,
)
from .check_totals import recalculate

logger = get_logger(__name__)


class SettlementService:
    """Closes checks against the payment ledger."""

    def __init__(self, db: Session):
        self._db = db
        self._checks = CheckRepository(db)
        self._payments = PaymentRepository(db)

    def close_check(self, check_id: int, closed_at: datetime | None = None) -> Check:
        """
        Close a check if its payments cover the total.

        Raises:
            NotFoundError: no such check.
            InvalidStateError: the check is void.
            AlreadyClosedError: the check is already closed (409).
            PaymentIncompleteError: payments fall short; closed_at stays NULL.
            ConflictError: a concurrent close or void won the race.
        """
        with transaction(self._db):
            check = self._checks.lock(check_id)
            if check is None:
                raise NotFoundError("Check", check_id)
            self.settle(check, closed_at)

        self._db.refresh(check)
        return check

    def settle(self, check: Check, closed_at: datetime | None = None) -> None:
        """
        Close an already locked check inside the caller's transaction.
        """
        if check.is_void:
            raise InvalidStateError("Check", CheckStatus.VOID, reason="voided checks cannot be closed", check_id=check.id)
        if check.closed_at is not None:
            raise AlreadyClosedError(check.id)

        closed_at = as_utc(closed_at) or utcnow()
        if closed_at < as_utc(check.created_at):
            raise ValidationError("closed_at cannot precede the check's creation", check_id=check.id)

        totals = recalculate(self._db, check)
        covered = self._payments.covered_cents(check.id)
        if covered < totals.total_cents:
            raise PaymentIncompleteError(check.id, totals.total_cents, covered)

        self._db.flush()
        result = self._db.execute(
            update(Check)
            .where(
                Check.id == check.id,
                Check.closed_at.is_(None),
                Check.is_void.is_(False),
            )
            .values(closed_at=closed_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                f"Check {check.id} was closed or voided by another request",
                check_id=check.id,
            )
        set_committed_value(check, "closed_at", closed_at)

        logger.info(
            "Check closed",
            check_id=check.id,
            total_cents=totals.total_cents,
            covered_cents=covered,
            change_cents=covered - totals.total_cents,
        )
