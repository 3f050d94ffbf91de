"""
Check Domain Service.

Opening, listing, editing, printing and voiding checks. The check row is
the synchronization point for everything financial on it: callers that
change its items, payments or discounts first take lock_editable().
"""

from typing import Sequence

from sqlalchemy.orm import Session

from rest_api.models import Check, Discount, User
from rest_api.repositories import CheckFilters, CheckRepository
from shared.config.constants import CheckStatus, ErrorMessages, Limits, LogEvent
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.clock import as_utc, utcnow
from shared.utils.exceptions import (
    InvalidStateError,
    MissingReferenceError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import CheckPatch
from shared.utils.validators import clean_text
from .activity_log_service import ActivityLogService
from .check_totals import recalculate
from .settlement_service import SettlementService

logger = get_logger(__name__)


def ensure_editable(check: Check) -> None:
    """Closed and void checks accept no further financial changes."""
    if check.is_void:
        raise InvalidStateError(
            "Check", CheckStatus.VOID, reason="voided checks cannot be changed", check_id=check.id
        )
    if check.closed_at is not None:
        raise InvalidStateError(
            "Check", CheckStatus.CLOSED, reason="closed checks cannot be changed", check_id=check.id
        )


def _require_label(table_num: int | None, customer: str | None) -> None:
    if table_num is None and customer is None:
        raise ValidationError("A check needs a table number, a customer name, or both")


class CheckService:
    """Domain service for the check lifecycle."""

    def __init__(self, db: Session):
        self._db = db
        self._repo = CheckRepository(db)
        self._log = ActivityLogService(db)

    # =========================================================================
    # Locking helpers (used by order, payment and modifier services)
    # =========================================================================

    def lock(self, check_id: int, as_reference: bool = False) -> Check:
        """
        Lock the check row for this transaction.

        as_reference: the id came from a request body, so a missing check
        is a bad request (400) rather than a missing resource (404).
        """
        check = self._repo.lock(check_id)
        if check is None:
            if as_reference:
                raise MissingReferenceError("Check", check_id)
            raise NotFoundError("Check", check_id)
        return check

    def lock_editable(self, check_id: int, as_reference: bool = False) -> Check:
        check = self.lock(check_id, as_reference=as_reference)
        ensure_editable(check)
        return check

    # =========================================================================
    # Operations
    # =========================================================================

    def open_check(
        self,
        user_id: int,
        num_guests: int,
        table_num: int | None = None,
        customer: str | None = None,
    ) -> Check:
        """
        Open a check for a table, a bar tab, or both.

        Several open checks per table are allowed (split parties, a tab at
        the bar plus a table).
        """
        if num_guests is None or num_guests <= 0:
            raise ValidationError("num_guests must be positive", num_guests=num_guests)
        customer = clean_text(customer, Limits.MAX_CUSTOMER_LENGTH)
        _require_label(table_num, customer)

        if self._db.get(User, user_id) is None:
            raise MissingReferenceError("User", user_id)

        check = Check(
            user_id=user_id,
            table_num=table_num,
            customer=customer,
            num_guests=num_guests,
            subtotal_cents=0,
            discount_total_cents=0,
            local_tax_cents=0,
            state_tax_cents=0,
            federal_tax_cents=0,
            is_void=False,
        )
        with transaction(self._db):
            self._db.add(check)
        self._db.refresh(check)

        logger.info(
            "Check opened",
            check_id=check.id,
            user_id=user_id,
            table_num=table_num,
            customer=customer,
            num_guests=num_guests,
        )
        return check

    def find_checks(self, filters: CheckFilters | None = None) -> Sequence[Check]:
        return self._repo.find_all(filters)

    def get_check(self, check_id: int) -> Check:
        check = self._repo.find_by_id(check_id)
        if check is None:
            raise NotFoundError("Check", check_id)
        return check

    def update_check(self, check_id: int, patch: CheckPatch, actor_id: int) -> Check:
        """
        Apply the fields present in `patch`.

        - is_void=true voids the check and must be sent alone.
        - closed_at closes the check through settlement (payment coverage
          is enforced) after the other fields are applied.
        - discount_id changes are logged as discount-check.

        Raises:
            ValidationError: empty patch, cleared required field, void
                combined with other changes, bar-tab rule broken.
            InvalidStateError: edits to a closed or void check.
        """
        changes = patch.provided()
        if not changes:
            raise ValidationError(ErrorMessages.EMPTY_PATCH, check_id=check_id)

        if changes.get("is_void") is True:
            if len(changes) > 1:
                raise ValidationError("is_void cannot be combined with other changes", check_id=check_id)
            return self.void_check(check_id, actor_id)

        if "closed_at" in changes and changes["closed_at"] is None:
            raise ValidationError("closed_at cannot be cleared", check_id=check_id)
        if "num_guests" in changes and changes["num_guests"] is None:
            raise ValidationError("num_guests cannot be cleared", check_id=check_id)

        with transaction(self._db):
            check = self.lock(check_id)
            if "is_void" in changes and check.is_void:
                raise InvalidStateError(
                    "Check", CheckStatus.VOID, reason="a void cannot be reversed", check_id=check_id
                )
            ensure_editable(check)

            if "table_num" in changes:
                check.table_num = changes["table_num"]
            if "customer" in changes:
                check.customer = clean_text(changes["customer"], Limits.MAX_CUSTOMER_LENGTH)
            _require_label(check.table_num, check.customer)

            if "num_guests" in changes:
                check.num_guests = changes["num_guests"]

            if "printed_at" in changes:
                check.printed_at = as_utc(changes["printed_at"])

            if "discount_id" in changes and changes["discount_id"] != check.discount_id:
                discount_id = changes["discount_id"]
                if discount_id is not None:
                    discount = self._db.get(Discount, discount_id)
                    if discount is None or not discount.is_active:
                        raise MissingReferenceError("Discount", discount_id)
                check.discount_id = discount_id
                self._log.record(actor_id, LogEvent.DISCOUNT_CHECK, entity_id=check.id)

            recalculate(self._db, check)

            if "closed_at" in changes:
                SettlementService(self._db).settle(check, changes["closed_at"])

        self._db.refresh(check)
        logger.info("Check updated", check_id=check_id, fields=sorted(changes), user_id=actor_id)
        return check

    def print_check(self, check_id: int) -> Check:
        """Recompute totals and stamp printed_at (receipt preview)."""
        with transaction(self._db):
            check = self.lock_editable(check_id)
            recalculate(self._db, check)
            check.printed_at = utcnow()
        self._db.refresh(check)

        logger.info("Check printed", check_id=check_id, total_cents=check.total_cents)
        return check

    def void_check(self, check_id: int, actor_id: int) -> Check:
        """
        Void a check from any state. Voiding twice is a no-op: the row is
        returned unchanged and no second log entry is written.
        """
        with transaction(self._db):
            check = self.lock(check_id)
            if check.is_void:
                return check
            check.is_void = True
            self._log.record(actor_id, LogEvent.VOID_CHECK, entity_id=check.id)
        self._db.refresh(check)

        logger.info("Check voided", check_id=check_id, user_id=actor_id)
        return check
