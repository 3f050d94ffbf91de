"""
Tests for PaymentService: tenders, tips, voids and close-out totals.
"""

import pytest

from rest_api.repositories import PaymentFilters, TotalsFilters
from rest_api.services.domain import CheckService, PaymentService, SettlementService
from shared.config.constants import TenderType
from shared.utils.exceptions import (
    InvalidStateError,
    MissingReferenceError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import PaymentCreate, PaymentPatch


def _pay(db_session, check_id, cents, tender=TenderType.CASH, tip=None):
    return PaymentService(db_session).record_payment(
        PaymentCreate(check_id=check_id, type=tender, subtotal_cents=cents, tip_cents=tip)
    )


class TestRecordPayment:

    def test_record_payment(self, db_session, open_check, wings_and_burger):
        payment = _pay(db_session, open_check.id, 2500, TenderType.VISA)

        assert payment.id is not None
        assert payment.type == TenderType.VISA
        assert payment.tip_cents is None
        assert payment.is_void is False
        assert PaymentService(db_session).covered_cents(open_check.id) == 2500

    def test_unknown_check_is_bad_request(self, db_session):
        with pytest.raises(MissingReferenceError) as exc:
            _pay(db_session, 9090, 100)
        assert exc.value.status_code == 400

    def test_closed_check_takes_no_payments(self, db_session, open_check):
        SettlementService(db_session).close_check(open_check.id)

        with pytest.raises(InvalidStateError):
            _pay(db_session, open_check.id, 100)

    def test_void_check_takes_no_payments(self, db_session, open_check, manager):
        CheckService(db_session).void_check(open_check.id, manager.id)

        with pytest.raises(InvalidStateError):
            _pay(db_session, open_check.id, 100)

    def test_subtotal_must_be_positive(self):
        with pytest.raises(ValueError):
            PaymentCreate(check_id=1, type=TenderType.CASH, subtotal_cents=0)


class TestFindPayments:

    def test_filter_by_check_and_type(self, db_session, server, open_check):
        other = CheckService(db_session).open_check(server.id, num_guests=1, customer="Bar tab")
        cash = _pay(db_session, open_check.id, 1000)
        _pay(db_session, open_check.id, 500, TenderType.VENMO)
        _pay(db_session, other.id, 700)

        service = PaymentService(db_session)
        by_check = service.find_payments(PaymentFilters(check_id=open_check.id))
        cash_only = service.find_payments(PaymentFilters(check_id=open_check.id, type=TenderType.CASH))

        assert len(by_check) == 2
        assert [p.id for p in cash_only] == [cash.id]

    def test_open_means_tip_not_declared(self, db_session, open_check):
        undeclared = _pay(db_session, open_check.id, 1000, TenderType.VISA)
        _pay(db_session, open_check.id, 1000, TenderType.VISA, tip=200)

        result = PaymentService(db_session).find_payments(PaymentFilters(is_open=True))

        assert [p.id for p in result] == [undeclared.id]

    def test_get_missing_is_404(self, db_session):
        with pytest.raises(NotFoundError):
            PaymentService(db_session).get_payment(1234)


class TestTipsAndVoids:

    def test_tip_can_be_declared_after_close(self, db_session, open_check, wings_and_burger):
        payment = _pay(db_session, open_check.id, 2500, TenderType.AMERICAN_EXPRESS)
        SettlementService(db_session).close_check(open_check.id)

        updated = PaymentService(db_session).declare_tip(payment.id, 500)

        assert updated.tip_cents == 500

    def test_tips_do_not_cover_the_check(self, db_session, open_check, wings_and_burger):
        _pay(db_session, open_check.id, 2000, TenderType.VISA, tip=500)

        assert PaymentService(db_session).covered_cents(open_check.id) == 2000

    def test_void_is_idempotent(self, db_session, open_check):
        payment = _pay(db_session, open_check.id, 1000)
        service = PaymentService(db_session)

        assert service.void_payment(payment.id).is_void is True
        assert service.void_payment(payment.id).is_void is True
        assert service.covered_cents(open_check.id) == 0

    def test_void_on_closed_check_rejected(self, db_session, open_check, wings_and_burger):
        payment = _pay(db_session, open_check.id, 2500)
        SettlementService(db_session).close_check(open_check.id)

        with pytest.raises(InvalidStateError):
            PaymentService(db_session).void_payment(payment.id)

    def test_no_tip_on_void_payment(self, db_session, open_check):
        payment = _pay(db_session, open_check.id, 1000)
        PaymentService(db_session).void_payment(payment.id)

        with pytest.raises(InvalidStateError):
            PaymentService(db_session).declare_tip(payment.id, 100)


class TestUpdatePayment:

    def test_patch_tip_and_void(self, db_session, open_check):
        payment = _pay(db_session, open_check.id, 1000, TenderType.VISA)

        updated = PaymentService(db_session).update_payment(
            payment.id, PaymentPatch(tip_cents=150, is_void=True)
        )

        assert updated.tip_cents == 150
        assert updated.is_void is True

    @pytest.mark.parametrize(
        "patch",
        [PaymentPatch(), PaymentPatch(is_void=False), PaymentPatch(tip_cents=None)],
        ids=["empty", "unvoid", "clear-tip"],
    )
    def test_rejected_patches(self, db_session, open_check, patch):
        payment = _pay(db_session, open_check.id, 1000)

        with pytest.raises(ValidationError):
            PaymentService(db_session).update_payment(payment.id, patch)

    def test_rejected_void_keeps_the_tip(self, db_session, open_check, wings_and_burger):
        payment = _pay(db_session, open_check.id, 2500, TenderType.VISA)
        SettlementService(db_session).close_check(open_check.id)

        with pytest.raises(InvalidStateError):
            PaymentService(db_session).update_payment(
                payment.id, PaymentPatch(tip_cents=999, is_void=True)
            )

        db_session.expire_all()
        stored = PaymentService(db_session).get_payment(payment.id)
        assert stored.tip_cents is None
        assert stored.is_void is False

    def test_negative_tip_is_rejected(self, db_session, open_check):
        payment = _pay(db_session, open_check.id, 1000)

        with pytest.raises(ValidationError):
            PaymentService(db_session).declare_tip(payment.id, -1)


class TestTotals:
    """Close-out totals by tender type."""

    def test_totals_group_by_type_and_void(self, db_session, open_check):
        _pay(db_session, open_check.id, 1000, TenderType.CASH)
        _pay(db_session, open_check.id, 500, TenderType.CASH)
        _pay(db_session, open_check.id, 2000, TenderType.VISA, tip=300)
        voided = _pay(db_session, open_check.id, 700, TenderType.VISA)
        PaymentService(db_session).void_payment(voided.id)

        rows = PaymentService(db_session).get_totals(TotalsFilters())
        by_key = {(r.payment_type, r.is_void): r for r in rows}

        assert by_key[(TenderType.CASH, False)].subtotal_sum_cents == 1500
        assert by_key[(TenderType.CASH, False)].count == 2
        assert by_key[(TenderType.VISA, False)].tip_sum_cents == 300
        assert by_key[(TenderType.VISA, True)].subtotal_sum_cents == 700

    def test_void_checks_are_excluded(self, db_session, server, open_check, manager):
        other = CheckService(db_session).open_check(server.id, num_guests=1, table_num=40)
        _pay(db_session, open_check.id, 1000)
        _pay(db_session, other.id, 9900)
        CheckService(db_session).void_check(other.id, manager.id)

        rows = PaymentService(db_session).get_totals()

        assert [(r.payment_type, r.subtotal_sum_cents) for r in rows] == [(TenderType.CASH, 1000)]

    def test_totals_by_owner(self, db_session, server, other_server, open_check):
        theirs = CheckService(db_session).open_check(other_server.id, num_guests=1, table_num=41)
        _pay(db_session, open_check.id, 1000)
        _pay(db_session, theirs.id, 400)

        rows = PaymentService(db_session).get_totals(TotalsFilters(user_id=other_server.id))

        assert [r.subtotal_sum_cents for r in rows] == [400]
