"""
X-Request-ID handling.

Tills and kitchen screens may send their own id so a failed call can be
matched to server logs; otherwise one is generated. The id lives in
`request_id_var` while the request runs and goes back in the response header.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    return request_id_var.get()


def resolve_request_id(sent: str | None, max_length: int) -> str:
    """Client id trimmed to `max_length`, or a fresh uuid4 when none usable was sent."""
    return (sent or "").strip()[:max_length] or str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    HEADER_NAME = REQUEST_ID_HEADER
    MAX_LENGTH = 64

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(self.HEADER_NAME), self.MAX_LENGTH)
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[self.HEADER_NAME] = request_id
        return response


class CorrelationIdFilter(logging.Filter):
    """Stamps `record.request_id` ("-" outside a request) for the log formatters."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
