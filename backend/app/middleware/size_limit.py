"""
Request body size limit for upload paths.

Pure ASGI middleware: a declared Content-Length above the limit is refused
before any body is read, and streamed bodies are cut off as soon as the
running total passes it.
"""
import logging
from typing import Iterable

from fastapi import HTTPException
from starlette.responses import JSONResponse

from app.exceptions import PayloadTooLarge
from app.utils.logging import log_upload_rejected

logger = logging.getLogger(__name__)

# Multipart boundaries and JSON keys on top of the payload itself
ENVELOPE_ALLOWANCE = 64 * 1024


class BodyTooLarge(HTTPException):
    """
    Raised from receive() once a streamed body passes the limit.

    Subclasses HTTPException because FastAPI turns any other exception
    raised while parsing a body into a generic 400.
    """

    def __init__(self, detail: str):
        super().__init__(status_code=PayloadTooLarge.status_code, detail=detail)


def request_ceiling(max_upload_bytes: int) -> int:
    """Largest request body accepted for a given decoded payload limit."""
    base64_size = -(-max_upload_bytes // 3) * 4
    return base64_size + ENVELOPE_ALLOWANCE


class BodySizeLimitMiddleware:
    """
    ASGI middleware enforcing a maximum request body size.

    Args:
        app: ASGI application
        max_body_bytes: Largest accepted body in bytes
        paths: Path prefixes the limit applies to
    """

    def __init__(self, app, max_body_bytes: int, paths: Iterable[str]):
        self.app = app
        self.max_body_bytes = max_body_bytes
        self.paths = tuple(paths)

    def receive_wrapper(self, receive):
        """Wrap receive to count body bytes."""
        received = 0

        async def inner():
            nonlocal received
            message = await receive()
            if message["type"] != "http.request":
                return message
            received += len(message.get("body", b""))
            if received > self.max_body_bytes:
                raise BodyTooLarge(
                    f"request body exceeded {self.max_body_bytes} bytes while streaming"
                )
            return message

        return inner

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not scope["path"].startswith(self.paths):
            await self.app(scope, receive, send)
            return

        content_length = None
        for key, value in scope.get("headers", []):
            if key == b"content-length":
                try:
                    content_length = int(value)
                except ValueError:
                    content_length = None
                break

        if content_length is not None and content_length > self.max_body_bytes:
            log_upload_rejected(
                logger,
                reason="payload_too_large",
                content_length=content_length,
                limit=self.max_body_bytes
            )
            response = JSONResponse(
                {"ok": False, "error": PayloadTooLarge.reason},
                status_code=PayloadTooLarge.status_code
            )
            await response(scope, receive, send)
            return

        await self.app(scope, self.receive_wrapper(receive), send)
