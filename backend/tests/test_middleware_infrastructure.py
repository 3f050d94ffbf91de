"""
Tests for middleware and infrastructure components.
"""

import logging
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from rest_api.core.middlewares import (
    ContentTypeValidationMiddleware,
    SecurityHeadersMiddleware,
    register_middlewares,
)
from shared.infrastructure.correlation import (
    CorrelationIdFilter,
    CorrelationIdMiddleware,
    get_request_id,
    request_id_var,
)
from shared.infrastructure.db import safe_commit, transaction
from shared.utils.exceptions import ConflictError


class _DriverError(Exception):
    """A driver error carrying a SQLSTATE, like psycopg raises."""

    def __init__(self, sqlstate):
        super().__init__(sqlstate)
        self.sqlstate = sqlstate


# =============================================================================
# SecurityHeadersMiddleware Tests
# =============================================================================

class TestSecurityHeadersMiddleware:
    """Tests for security headers middleware."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        def test_endpoint():
            return {"message": "ok"}

        return TestClient(app)

    def test_adds_x_content_type_options(self, client):
        assert client.get("/test").headers.get("X-Content-Type-Options") == "nosniff"

    def test_adds_x_frame_options(self, client):
        assert client.get("/test").headers.get("X-Frame-Options") == "DENY"

    def test_adds_content_security_policy(self, client):
        assert "default-src 'none'" in client.get("/test").headers["Content-Security-Policy"]

    def test_no_hsts_outside_production(self, client):
        assert "Strict-Transport-Security" not in client.get("/test").headers

    def test_adds_hsts_in_production(self, monkeypatch):
        from shared.config.settings import settings

        monkeypatch.setattr(settings, "environment", "production")
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        def test_endpoint():
            return {"message": "ok"}

        response = TestClient(app).get("/test")
        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]


# =============================================================================
# ContentTypeValidationMiddleware Tests
# =============================================================================

class TestContentTypeValidationMiddleware:

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(ContentTypeValidationMiddleware)

        @app.post("/test")
        def post_endpoint():
            return {"ok": True}

        @app.get("/test")
        def get_endpoint():
            return {"ok": True}

        return TestClient(app)

    def test_allows_json(self, client):
        assert client.post("/test", json={"a": 1}).status_code == 200

    def test_allows_empty_body(self, client):
        assert client.post("/test").status_code == 200

    def test_rejects_form_data(self, client):
        response = client.post("/test", data={"a": "1"})
        assert response.status_code == 415

    def test_rejects_plain_text(self, client):
        response = client.post("/test", content=b"hi", headers={"Content-Type": "text/plain"})
        assert response.status_code == 415

    def test_get_is_not_checked(self, client):
        assert client.get("/test", headers={"Content-Type": "text/plain"}).status_code == 200


# =============================================================================
# Correlation id
# =============================================================================

class TestCorrelationIdMiddleware:

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/test")
        def test_endpoint():
            return {"request_id": get_request_id()}

        return TestClient(app)

    def test_generates_request_id_when_not_provided(self, client):
        response = client.get("/test")

        generated = response.headers["X-Request-ID"]
        assert len(generated) == 36
        assert response.json()["request_id"] == generated

    def test_echoes_provided_request_id(self, client):
        response = client.get("/test", headers={"X-Request-ID": "till-7-abc"})

        assert response.headers["X-Request-ID"] == "till-7-abc"
        assert response.json()["request_id"] == "till-7-abc"

    def test_truncates_long_ids(self, client):
        response = client.get("/test", headers={"X-Request-ID": "x" * 200})
        assert len(response.headers["X-Request-ID"]) == CorrelationIdMiddleware.MAX_LENGTH

    def test_blank_id_is_replaced(self, client):
        response = client.get("/test", headers={"X-Request-ID": "   "})
        assert len(response.headers["X-Request-ID"]) == 36

    def test_cleared_after_request(self, client):
        client.get("/test", headers={"X-Request-ID": "gone"})
        assert get_request_id() == ""


class TestCorrelationIdFilter:

    def _record(self):
        return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", (), None)

    def test_adds_request_id_to_log_record(self):
        token = request_id_var.set("req-123")
        try:
            record = self._record()
            assert CorrelationIdFilter().filter(record) is True
            assert record.request_id == "req-123"
        finally:
            request_id_var.reset(token)

    def test_uses_dash_when_no_request_id(self):
        record = self._record()
        CorrelationIdFilter().filter(record)
        assert record.request_id == "-"


# =============================================================================
# Transaction helpers
# =============================================================================

class TestSafeCommit:

    def test_commits_successfully(self):
        db = MagicMock()
        safe_commit(db)
        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_rolls_back_and_reraises(self):
        db = MagicMock()
        db.commit.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError, match="disk full"):
            safe_commit(db)
        db.rollback.assert_called_once()


class TestTransaction:

    def test_commits_on_success(self):
        db = MagicMock()
        with transaction(db):
            pass
        db.commit.assert_called_once()

    def test_rolls_back_on_error(self):
        db = MagicMock()

        with pytest.raises(ValueError):
            with transaction(db):
                raise ValueError("bad line")

        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    @pytest.mark.parametrize("sqlstate", ["40P01", "40001"], ids=["deadlock", "serialization"])
    def test_lock_conflicts_become_409(self, sqlstate):
        db = MagicMock()

        with pytest.raises(ConflictError) as exc:
            with transaction(db):
                raise OperationalError("UPDATE app_check", {}, _DriverError(sqlstate))

        assert exc.value.status_code == 409
        assert isinstance(exc.value.__cause__, OperationalError)
        db.rollback.assert_called()
        db.commit.assert_not_called()

    def test_conflict_at_commit_becomes_409(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("COMMIT", {}, _DriverError("40001"))

        with pytest.raises(ConflictError):
            with transaction(db):
                pass
        db.rollback.assert_called()

    def test_other_database_errors_propagate(self):
        db = MagicMock()

        with pytest.raises(IntegrityError):
            with transaction(db):
                raise IntegrityError("INSERT", {}, _DriverError("23505"))
        db.rollback.assert_called_once()


# =============================================================================
# Registration on the real app
# =============================================================================

class TestRegisterMiddlewares:

    def test_registers_all_middlewares(self):
        app = FastAPI()
        register_middlewares(app)

        classes = {m.cls for m in app.user_middleware}
        assert {SecurityHeadersMiddleware, ContentTypeValidationMiddleware, CorrelationIdMiddleware} <= classes

    def test_api_responses_carry_headers(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "pos-1"})

        assert response.headers["X-Request-ID"] == "pos-1"
        assert response.headers["X-Frame-Options"] == "DENY"
