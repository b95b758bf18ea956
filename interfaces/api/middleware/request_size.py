"""Reject request bodies larger than the upload limit before they are parsed."""

import structlog
from fastapi import status
from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from domain.exceptions import PayloadTooLargeError

logger = structlog.get_logger()

# Multipart boundaries, part headers and the category field
MULTIPART_OVERHEAD_BYTES = 64 * 1024

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class RequestSizeLimitMiddleware:
    """Bound the request body at ``max_upload_bytes`` plus multipart overhead.

    A declared ``Content-Length`` over the bound is answered with 413 without
    reading the body. Bodies without a usable length are counted as they are
    received; once the bound is passed the read fails and whatever response
    the app was about to send is replaced by the 413.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_upload_bytes: int,
        overhead_bytes: int = MULTIPART_OVERHEAD_BYTES,
    ) -> None:
        self.app = app
        self.max_upload_bytes = max_upload_bytes
        self.max_body_bytes = max_upload_bytes + overhead_bytes

    def _too_large_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"error": str(PayloadTooLargeError(self.max_upload_bytes))},
            headers={"Connection": "close"},
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in _BODY_METHODS:
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                response = JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"error": "Invalid Content-Length header"},
                )
                await response(scope, receive, send)
                return
            if declared > self.max_body_bytes:
                await self._reject(scope, receive, send, content_length=declared)
                return

        received = 0
        overflowed = False
        replaced = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, overflowed
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    overflowed = True
                    raise PayloadTooLargeError(self.max_upload_bytes)
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal replaced, response_started
            if message["type"] == "http.response.start":
                response_started = True
                if overflowed:
                    # Body parsing failed on the limit; answer 413 instead of the app's reply
                    replaced = True
                    await self._reject(scope, receive, send, received=received)
                    return
            if not replaced:
                await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except PayloadTooLargeError:
            if replaced:
                return
            if response_started:
                raise
            await self._reject(scope, receive, send, received=received)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, **context: int) -> None:
        logger.warning(
            "request_body_too_large",
            path=scope["path"],
            limit=self.max_body_bytes,
            **context,
        )
        await self._too_large_response()(scope, receive, send)
