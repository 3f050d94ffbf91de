"""
Tests for the activity log.
"""

import pytest

from rest_api.repositories import ActivityLogFilters
from rest_api.services.domain import ActivityLogService
from shared.config.constants import EntityKind, LogEvent
from shared.utils.exceptions import MissingReferenceError, NotFoundError, ValidationError


class TestAppend:

    def test_clock_in_has_no_entity(self, db_session, server):
        entry = ActivityLogService(db_session).append(server.id, LogEvent.CLOCK_IN)

        assert entry.id is not None
        assert entry.entity_kind == EntityKind.NONE
        assert entry.entity_id is None
        assert entry.created_at is not None

    def test_declared_tips(self, db_session, server):
        entry = ActivityLogService(db_session).append(
            server.id, LogEvent.DECLARE_CASH_TIPS, declared_tips_cents=4200
        )
        assert entry.declared_tips_cents == 4200

    def test_declare_tips_requires_amount(self, db_session, server):
        with pytest.raises(ValidationError):
            ActivityLogService(db_session).append(server.id, LogEvent.DECLARE_CASH_TIPS)

    def test_tips_only_on_declare_event(self, db_session, server):
        with pytest.raises(ValidationError):
            ActivityLogService(db_session).append(
                server.id, LogEvent.CLOCK_OUT, declared_tips_cents=100
            )

    def test_void_check_needs_entity(self, db_session, manager):
        with pytest.raises(ValidationError):
            ActivityLogService(db_session).append(manager.id, LogEvent.VOID_CHECK)

    def test_entity_must_exist(self, db_session, manager):
        with pytest.raises(MissingReferenceError):
            ActivityLogService(db_session).append(manager.id, LogEvent.VOID_CHECK, entity_id=8181)

    def test_entity_kind_follows_event(self, db_session, manager, open_check):
        entry = ActivityLogService(db_session).append(
            manager.id, LogEvent.DISCOUNT_CHECK, entity_id=open_check.id
        )
        assert entry.entity_kind == EntityKind.CHECK

    def test_clock_in_rejects_entity(self, db_session, server, open_check):
        with pytest.raises(ValidationError):
            ActivityLogService(db_session).append(server.id, LogEvent.CLOCK_IN, entity_id=open_check.id)


class TestFind:

    def test_filters_by_user_and_event(self, db_session, server, manager):
        service = ActivityLogService(db_session)
        mine = service.append(server.id, LogEvent.CLOCK_IN)
        service.append(server.id, LogEvent.CLOCK_OUT)
        service.append(manager.id, LogEvent.CLOCK_IN)

        result = service.find(ActivityLogFilters(user_id=server.id, event=LogEvent.CLOCK_IN))

        assert [e.id for e in result] == [mine.id]

    def test_get_missing_is_404(self, db_session):
        with pytest.raises(NotFoundError):
            ActivityLogService(db_session).get(404)
