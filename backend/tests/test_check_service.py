"""
Tests for CheckService and SettlementService.
"""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine, select, update
from sqlalchemy.orm import sessionmaker

from conftest import make_user
from rest_api.models import ActivityLog, Base, Check
from rest_api.repositories import CheckFilters
from rest_api.services.domain import (
    CheckService,
    OrderService,
    PaymentService,
    SettlementService,
)
from rest_api.services.domain import settlement_service
from shared.config.constants import CheckStatus, LogEvent, Role, TenderType
from shared.utils.clock import as_utc, utcnow
from shared.utils.exceptions import (
    AlreadyClosedError,
    ConflictError,
    InvalidStateError,
    MissingReferenceError,
    NotFoundError,
    PaymentIncompleteError,
    ValidationError,
)
from shared.utils.schemas import CheckPatch, OrderLine, PaymentCreate


def _pay(db_session, check_id, cents, tender=TenderType.CASH):
    return PaymentService(db_session).record_payment(
        PaymentCreate(check_id=check_id, type=tender, subtotal_cents=cents)
    )


class TestOpenCheck:
    """Opening checks for tables and bar tabs."""

    def test_open_table_check_starts_empty(self, db_session, server):
        check = CheckService(db_session).open_check(server.id, num_guests=4, table_num=7)

        assert check.id is not None
        assert check.status == CheckStatus.OPEN
        assert check.subtotal_cents == 0
        assert check.total_cents == 0
        assert check.printed_at is None
        assert check.closed_at is None
        assert check.discount_id is None

    def test_bar_tab_needs_no_table(self, db_session, server):
        check = CheckService(db_session).open_check(server.id, num_guests=1, customer="  Jordan  ")

        assert check.table_num is None
        assert check.customer == "Jordan"

    def test_table_and_customer_may_coexist(self, db_session, server):
        check = CheckService(db_session).open_check(
            server.id, num_guests=2, table_num=3, customer="Lee"
        )
        assert (check.table_num, check.customer) == (3, "Lee")

    def test_requires_table_or_customer(self, db_session, server):
        with pytest.raises(ValidationError):
            CheckService(db_session).open_check(server.id, num_guests=2)

    def test_blank_customer_counts_as_missing(self, db_session, server):
        with pytest.raises(ValidationError):
            CheckService(db_session).open_check(server.id, num_guests=2, customer="   ")

    def test_guests_must_be_positive(self, db_session, server):
        with pytest.raises(ValidationError):
            CheckService(db_session).open_check(server.id, num_guests=0, table_num=1)

    def test_unknown_user_is_rejected(self, db_session):
        with pytest.raises(MissingReferenceError) as exc:
            CheckService(db_session).open_check(999, num_guests=2, table_num=1)
        assert exc.value.status_code == 400

    def test_two_open_checks_on_one_table(self, db_session, server):
        service = CheckService(db_session)
        first = service.open_check(server.id, num_guests=2, table_num=5)
        second = service.open_check(server.id, num_guests=2, table_num=5)

        assert first.id != second.id


class TestFindChecks:
    """Filtering and ordering of check listings."""

    def test_filters_open_checks_by_owner(self, db_session, server, other_server):
        service = CheckService(db_session)
        mine = service.open_check(server.id, num_guests=2, table_num=1)
        service.open_check(other_server.id, num_guests=2, table_num=2)

        result = service.find_checks(CheckFilters(user_id=server.id, is_open=True))

        assert [c.id for c in result] == [mine.id]

    def test_customer_search_is_partial_and_case_insensitive(self, db_session, server):
        service = CheckService(db_session)
        tab = service.open_check(server.id, num_guests=1, customer="Jordan Smith")
        service.open_check(server.id, num_guests=1, customer="Alex")

        result = service.find_checks(CheckFilters(customer="jordan"))

        assert [c.id for c in result] == [tab.id]

    def test_employee_search_matches_owner_name(self, db_session, server, other_server):
        service = CheckService(db_session)
        mine = service.open_check(server.id, num_guests=1, table_num=1)
        service.open_check(other_server.id, num_guests=1, table_num=2)

        result = service.find_checks(CheckFilters(employee="serv", user_id=server.id))

        assert [c.id for c in result] == [mine.id]

    def test_created_order_and_desc(self, db_session, server):
        service = CheckService(db_session)
        ids = [service.open_check(server.id, num_guests=1, table_num=n).id for n in (1, 2, 3)]

        assert [c.id for c in service.find_checks(CheckFilters())] == ids
        assert [c.id for c in service.find_checks(CheckFilters(desc=True))] == ids[::-1]

    def test_limit_is_clamped(self):
        assert CheckFilters(limit=0).limit == 1
        assert CheckFilters(limit=10_000).limit == 500


class TestUpdateCheck:
    """Partial updates through CheckPatch."""

    def test_empty_patch_is_rejected(self, db_session, open_check, server):
        with pytest.raises(ValidationError):
            CheckService(db_session).update_check(open_check.id, CheckPatch(), server.id)

    def test_updates_only_sent_fields(self, db_session, open_check, server):
        updated = CheckService(db_session).update_check(
            open_check.id, CheckPatch(num_guests=5), server.id
        )

        assert updated.num_guests == 5
        assert updated.table_num == 12

    def test_cannot_remove_both_table_and_customer(self, db_session, open_check, server):
        with pytest.raises(ValidationError):
            CheckService(db_session).update_check(
                open_check.id, CheckPatch(table_num=None), server.id
            )

    def test_check_discount_recomputes_and_logs(
        self, db_session, open_check, wings_and_burger, catalog, manager
    ):
        updated = CheckService(db_session).update_check(
            open_check.id, CheckPatch(discount_id=catalog["ten_off"].id), manager.id
        )

        assert updated.subtotal_cents == 2500
        assert updated.discount_total_cents == 250
        assert updated.total_cents == 2250

        entries = db_session.scalars(
            select(ActivityLog).where(ActivityLog.event == LogEvent.DISCOUNT_CHECK)
        ).all()
        assert [(e.user_id, e.entity_id) for e in entries] == [(manager.id, open_check.id)]

    def test_unknown_discount_is_rejected(self, db_session, open_check, manager):
        with pytest.raises(MissingReferenceError):
            CheckService(db_session).update_check(
                open_check.id, CheckPatch(discount_id=4242), manager.id
            )

    def test_void_cannot_be_combined(self, db_session, open_check, manager):
        with pytest.raises(ValidationError):
            CheckService(db_session).update_check(
                open_check.id, CheckPatch(is_void=True, num_guests=3), manager.id
            )

    def test_void_is_terminal(self, db_session, open_check, manager):
        service = CheckService(db_session)
        service.void_check(open_check.id, manager.id)

        with pytest.raises(InvalidStateError):
            service.update_check(open_check.id, CheckPatch(is_void=False), manager.id)

    def test_closed_check_rejects_edits(self, db_session, open_check, server):
        SettlementService(db_session).close_check(open_check.id)

        with pytest.raises(InvalidStateError):
            CheckService(db_session).update_check(
                open_check.id, CheckPatch(num_guests=3), server.id
            )

    def test_closed_at_cannot_be_cleared(self, db_session, open_check, server):
        with pytest.raises(ValidationError):
            CheckService(db_session).update_check(
                open_check.id, CheckPatch(closed_at=None), server.id
            )

    def test_patching_closed_at_runs_settlement(self, db_session, open_check, wings_and_burger, server):
        with pytest.raises(PaymentIncompleteError):
            CheckService(db_session).update_check(
                open_check.id, CheckPatch(closed_at=utcnow()), server.id
            )
        db_session.refresh(open_check)
        assert open_check.closed_at is None

        _pay(db_session, open_check.id, 2500)
        closed = CheckService(db_session).update_check(
            open_check.id, CheckPatch(closed_at=utcnow()), server.id
        )
        assert closed.status == CheckStatus.CLOSED


class TestPrintCheck:

    def test_print_sets_printed_at(self, db_session, open_check, wings_and_burger):
        printed = CheckService(db_session).print_check(open_check.id)

        assert printed.printed_at is not None
        assert printed.status == CheckStatus.PRINTED
        assert printed.subtotal_cents == 2500

    def test_missing_check_is_404(self, db_session):
        with pytest.raises(NotFoundError) as exc:
            CheckService(db_session).print_check(777)
        assert exc.value.status_code == 404


class TestVoidCheck:

    def test_void_is_idempotent_and_logged_once(self, db_session, open_check, manager):
        service = CheckService(db_session)
        first = service.void_check(open_check.id, manager.id)
        second = service.void_check(open_check.id, manager.id)

        assert first.is_void and second.is_void
        assert second.status == CheckStatus.VOID

        entries = db_session.scalars(
            select(ActivityLog).where(ActivityLog.event == LogEvent.VOID_CHECK)
        ).all()
        assert len(entries) == 1
        assert entries[0].entity_id == open_check.id

    def test_void_allowed_after_close(self, db_session, open_check, manager):
        SettlementService(db_session).close_check(open_check.id)

        voided = CheckService(db_session).void_check(open_check.id, manager.id)

        assert voided.status == CheckStatus.VOID

class TestSettlementRace:
    """
    A close that loses the race after reading the check row. Runs on a
    file database so the competing session has its own connection.
    """

    @pytest.fixture
    def sessions(self, tmp_path):
        file_engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
        Base.metadata.create_all(bind=file_engine)
        factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
        ours, theirs = factory(), factory()
        yield ours, theirs
        ours.close()
        theirs.close()
        file_engine.dispose()

    def test_concurrent_close_wins(self, sessions, monkeypatch):
        ours, theirs = sessions
        server = make_user(ours, Role.SERVER)
        check = CheckService(ours).open_check(server.id, num_guests=1, table_num=4)
        their_close = as_utc(check.created_at) + timedelta(minutes=5)
        real_recalculate = settlement_service.recalculate

        def close_elsewhere_first(db, locked):
            theirs.execute(update(Check).where(Check.id == locked.id).values(closed_at=their_close))
            theirs.commit()
            return real_recalculate(db, locked)

        monkeypatch.setattr(settlement_service, "recalculate", close_elsewhere_first)

        with pytest.raises(ConflictError) as exc:
            SettlementService(ours).close_check(check.id)

        assert exc.value.status_code == 409
        assert not isinstance(exc.value, AlreadyClosedError)
        ours.expire_all()
        assert as_utc(ours.get(Check, check.id).closed_at) == their_close



class TestSettlement:
    """Closing a check against its payments."""

    def test_scenario_open_order_pay_close(self, db_session, server, catalog):
        check = CheckService(db_session).open_check(server.id, num_guests=2, table_num=12)
        OrderService(db_session).send_order(
            server.id,
            check.id,
            [OrderLine(item_id=catalog["wings"].id), OrderLine(item_id=catalog["burger"].id)],
        )
        _pay(db_session, check.id, 2500, TenderType.VISA)

        closed = SettlementService(db_session).close_check(check.id)

        assert closed.subtotal_cents == 2500
        assert closed.closed_at is not None
        assert closed.status == CheckStatus.CLOSED

    def test_underpaid_check_stays_open(self, db_session, open_check, wings_and_burger):
        _pay(db_session, open_check.id, 1000)

        with pytest.raises(PaymentIncompleteError) as exc:
            SettlementService(db_session).close_check(open_check.id)

        assert exc.value.status_code == 400
        assert db_session.get(Check, open_check.id).closed_at is None

    def test_split_payments_cover_total(self, db_session, open_check, wings_and_burger):
        _pay(db_session, open_check.id, 1000, TenderType.CASH)
        _pay(db_session, open_check.id, 1500, TenderType.MASTER_CARD)

        closed = SettlementService(db_session).close_check(open_check.id)

        assert closed.status == CheckStatus.CLOSED

    def test_void_payments_do_not_count(self, db_session, open_check, wings_and_burger):
        payment = _pay(db_session, open_check.id, 2500)
        PaymentService(db_session).void_payment(payment.id)

        with pytest.raises(PaymentIncompleteError):
            SettlementService(db_session).close_check(open_check.id)

    def test_empty_check_closes_with_no_payments(self, db_session, open_check):
        closed = SettlementService(db_session).close_check(open_check.id)
        assert closed.total_cents == 0
        assert closed.closed_at is not None

    def test_second_close_conflicts(self, db_session, open_check):
        service = SettlementService(db_session)
        service.close_check(open_check.id)

        with pytest.raises(AlreadyClosedError) as exc:
            service.close_check(open_check.id)
        assert exc.value.status_code == 409

    def test_void_check_cannot_close(self, db_session, open_check, manager):
        CheckService(db_session).void_check(open_check.id, manager.id)

        with pytest.raises(InvalidStateError):
            SettlementService(db_session).close_check(open_check.id)

    def test_closed_at_before_creation_is_rejected(self, db_session, open_check):
        too_early = as_utc(open_check.created_at) - timedelta(hours=1)

        with pytest.raises(ValidationError):
            SettlementService(db_session).close_check(open_check.id, too_early)

    def test_taxes_are_part_of_the_total(self, db_session, open_check, wings_and_burger, monkeypatch):
        from shared.config.settings import settings

        monkeypatch.setattr(settings, "state_tax_bps", 800)
        _pay(db_session, open_check.id, 2500)

        with pytest.raises(PaymentIncompleteError):
            SettlementService(db_session).close_check(open_check.id)

        _pay(db_session, open_check.id, 200)
        closed = SettlementService(db_session).close_check(open_check.id)
        assert closed.state_tax_cents == 200
        assert closed.total_cents == 2700
