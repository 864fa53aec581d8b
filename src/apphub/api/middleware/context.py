from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from apphub.context import request_id_var, user_id_var


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request_token = request_id_var.set(request_id)
        user_token = user_id_var.set(None)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(request_token)
            user_id_var.reset(user_token)
        response.headers["x-request-id"] = request_id
        return response
