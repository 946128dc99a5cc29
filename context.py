import logging
import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

request_id: ContextVar[str] = ContextVar("request_id", default="-")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns each request a short id that log records and the response carry"""

    async def dispatch(self, request: Request, call_next):
        id_token = request_id.set(request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8])
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id.get()
            return response
        finally:
            request_id.reset(id_token)


class RequestIdFilter(logging.Filter):
    """Stamps the active request id on every log record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id.get()
        return True
