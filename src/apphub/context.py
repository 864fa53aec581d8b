from __future__ import annotations

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

# Set per request by RequestContextMiddleware and the auth dependency.
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


@dataclass(frozen=True)
class RequestContext:
    request_id: Optional[str]
    user_id: Optional[str]


def get_request_context() -> RequestContext:
    return RequestContext(request_id=request_id_var.get(), user_id=user_id_var.get())


class RequestContextFilter(logging.Filter):
    """Stamp ``request_id`` and ``user_id`` onto every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_request_context()
        record.request_id = ctx.request_id or "-"
        record.user_id = ctx.user_id or "-"
        return True
