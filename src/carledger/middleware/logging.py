"""Request ID injection and access logging middleware."""

import time
import uuid

import sentry_sdk
import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from carledger.core.logging import get_logger, set_request_id


class RequestIDMiddleware:
    """
    Bind a request ID to everything logged while serving a request.

    The caller's X-Request-ID is reused when present, otherwise a UUID is
    generated. The ID is also tagged on Sentry events and echoed back as a
    response header.
    """

    def __init__(self, app: ASGIApp):
        self.app = app
        self.logger = get_logger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        raw_id = headers.get(b"x-request-id")
        request_id = raw_id.decode("latin1") if raw_id else str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        set_request_id(request_id)
        structlog.contextvars.bind_contextvars(method=scope["method"], path=scope["path"])
        sentry_sdk.set_tag("request_id", request_id)

        started = time.perf_counter()
        self.logger.info("request.start")

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (b"x-request-id", request_id.encode("latin1")),
                ]
                self.logger.info(
                    "request.complete",
                    status_code=message.get("status"),
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                )
            await send(message)

        await self.app(scope, receive, send_with_request_id)
