"""
Payment Domain Service.

Records tenders against checks, tip declaration, payment voids and the
close-out totals report. Closing a check against its payments lives in
SettlementService.
"""

from typing import Sequence

from sqlalchemy.orm import Session

from rest_api.models import Check, Payment
from rest_api.repositories import (
    PaymentFilters,
    PaymentRepository,
    TotalsFilters,
)
from shared.config.constants import ErrorMessages
from shared.config.logging import payment_logger as logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import InvalidStateError, NotFoundError, ValidationError
from shared.utils.schemas import PaymentCreate, PaymentPatch, PaymentTotalOut
from .check_service import CheckService


class PaymentService:
    """Domain service for the payment ledger."""

    def __init__(self, db: Session):
        self._db = db
        self._repo = PaymentRepository(db)
        self._checks = CheckService(db)

    def record_payment(self, data: PaymentCreate) -> Payment:
        """
        Record a tender against an open check.

        Raises:
            MissingReferenceError: the check does not exist.
            InvalidStateError: the check is closed or void.
        """
        with transaction(self._db):
            check = self._checks.lock_editable(data.check_id, as_reference=True)
            payment = Payment(
                check_id=check.id,
                type=data.type,
                subtotal_cents=data.subtotal_cents,
                tip_cents=data.tip_cents,
                is_void=False,
            )
            self._db.add(payment)
        self._db.refresh(payment)

        logger.info(
            "Payment recorded",
            payment_id=payment.id,
            check_id=payment.check_id,
            type=payment.type.value,
            subtotal_cents=payment.subtotal_cents,
        )
        return payment

    def find_payments(self, filters: PaymentFilters | None = None) -> Sequence[Payment]:
        return self._repo.find_all(filters)

    def get_payment(self, payment_id: int) -> Payment:
        payment = self._repo.find_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    def _ensure_tippable(self, payment: Payment) -> None:
        if payment.is_void:
            raise InvalidStateError(
                "Payment", "void", reason="tips cannot be declared on a void payment",
                payment_id=payment.id,
            )

    def _ensure_voidable(self, payment: Payment, check: Check) -> None:
        if check.closed_at is not None:
            raise InvalidStateError(
                "Check", "CLOSED", reason="payments on a closed check cannot be voided",
                payment_id=payment.id,
            )

    def declare_tip(self, payment_id: int, tip_cents: int) -> Payment:
        """Set the tip on a card slip. Allowed after the check closes."""
        return self.update_payment(payment_id, PaymentPatch.model_construct(tip_cents=tip_cents))

    def void_payment(self, payment_id: int) -> Payment:
        """
        Void a payment on an open check. Re-voiding is a no-op; payments on
        a closed check are final.
        """
        return self.update_payment(payment_id, PaymentPatch(is_void=True))

    def update_payment(self, payment_id: int, patch: PaymentPatch) -> Payment:
        """
        Apply a tip and/or a void as one unit: every rule is checked under
        the check lock before anything is written.
        """
        changes = patch.provided()
        if not changes:
            raise ValidationError(ErrorMessages.EMPTY_PATCH, payment_id=payment_id)
        if "is_void" in changes and changes["is_void"] is not True:
            raise ValidationError("A payment void cannot be reversed", payment_id=payment_id)
        if "tip_cents" in changes and (changes["tip_cents"] is None or changes["tip_cents"] < 0):
            raise ValidationError("tip_cents must be zero or more", payment_id=payment_id)

        payment = self.get_payment(payment_id)
        if changes == {"is_void": True} and payment.is_void:
            return payment

        with transaction(self._db):
            check = self._checks.lock(payment.check_id)
            self._db.refresh(payment)
            voiding = changes.get("is_void") is True and not payment.is_void

            if "tip_cents" in changes:
                self._ensure_tippable(payment)
            if voiding:
                self._ensure_voidable(payment, check)

            if "tip_cents" in changes:
                payment.tip_cents = changes["tip_cents"]
            if voiding:
                payment.is_void = True
        self._db.refresh(payment)

        if "tip_cents" in changes:
            logger.info("Tip declared", payment_id=payment_id, tip_cents=payment.tip_cents)
        if voiding:
            logger.info("Payment voided", payment_id=payment_id, check_id=payment.check_id)
        return payment

    def get_totals(self, filters: TotalsFilters | None = None) -> list[PaymentTotalOut]:
        """Tender totals for close-out, grouped by type and void flag."""
        return [
            PaymentTotalOut(
                payment_type=row.payment_type,
                is_void=row.is_void,
                tip_sum_cents=row.tip_sum_cents,
                subtotal_sum_cents=row.subtotal_sum_cents,
                count=row.count,
            )
            for row in self._repo.totals(filters)
        ]

    def covered_cents(self, check_id: int) -> int:
        return self._repo.covered_cents(check_id)
