"""ASGI response sending — translates recorded renders into ASGI messages.

Rendering is synchronous (template execution and encoding are CPU work),
so ``render_asgi()`` runs the render call in an anyio worker thread
against a fresh ``ResponseRecorder`` and then sends the captured response.
"""

import logging
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

import anyio

from wren.http.response import Response
from wren.http.sink import ResponseRecorder, ResponseSink

logger = logging.getLogger("wren.server")

Message = MutableMapping[str, Any]
Send = Callable[[Message], Awaitable[None]]


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send) -> None:
    """Translate a recorded Response into ASGI send() calls."""
    raw_headers: list[tuple[bytes, bytes]] = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
        if name.lower() != "content-length"
    ]

    body = response.body if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


async def render_asgi(
    send: Send,
    call: Callable[..., None],
    *args: Any,
) -> Response:
    """Run a sync render call off the event loop, then send its response.

    *call* receives a ``ResponseRecorder`` as its first argument followed
    by *args*::

        await render_asgi(send, render.html, 200, "home", {"title": "Home"})
    """
    recorder = ResponseRecorder()

    def _run(sink: ResponseSink) -> None:
        call(sink, *args)

    await anyio.to_thread.run_sync(_run, recorder)  # type: ignore[union-attr]
    response = recorder.to_response()
    logger.debug("%d %s (%d bytes)", response.status, response.content_type, len(response.body))
    await send_response(response, send)
    return response
