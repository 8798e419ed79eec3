"""ASGI middleware: per-request logging context."""

from __future__ import annotations

import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import bind_contextvars, clear_contextvars

REQUEST_ID_HEADER = b"x-request-id"


class RequestContextMiddleware:
    """Binds request_id, method and path to structlog's contextvars.

    Honors an incoming X-Request-ID header, otherwise generates one, and
    echoes it on the response.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        raw_id = headers.get(REQUEST_ID_HEADER)
        request_id = raw_id.decode("latin-1") if raw_id else uuid.uuid4().hex

        clear_contextvars()
        bind_contextvars(
            request_id=request_id,
            method=scope.get("method", ""),
            path=scope.get("path", ""),
        )

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append(
                    (REQUEST_ID_HEADER, request_id.encode("latin-1"))
                )
                message["headers"] = response_headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
