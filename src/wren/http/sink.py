"""Response sinks — where engines write headers, status, and body.

Any object satisfying ``ResponseSink`` can receive a render. Writes happen
in a fixed order: headers, then status, then body bytes. Until the first
body byte is written the status may be replaced, which is how the render
façade turns a failed encode into a 500.
"""

from typing import Protocol, runtime_checkable

from wren.http.response import Response


@runtime_checkable
class ResponseSink(Protocol):
    """The write side of an HTTP response."""

    @property
    def body_started(self) -> bool: ...

    def set_header(self, name: str, value: str) -> None: ...

    def write_head(self, status: int) -> None: ...

    def write(self, data: bytes) -> None: ...


class ResponseRecorder:
    """An in-memory ``ResponseSink``.

    Collects everything a render writes and hands it back as a frozen
    ``Response``. Used by tests and by the ASGI bridge, which renders
    into a recorder and then sends the snapshot.

    Usage::

        rec = ResponseRecorder()
        render.json(rec, 200, {"ok": True})
        response = rec.to_response()
    """

    __slots__ = ("_body", "_headers", "_status")

    def __init__(self) -> None:
        self._headers: list[tuple[str, str]] = []
        self._status: int | None = None
        self._body = bytearray()

    @property
    def body_started(self) -> bool:
        return bool(self._body)

    @property
    def status(self) -> int:
        return self._status if self._status is not None else 200

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._headers)

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def set_header(self, name: str, value: str) -> None:
        """Set *name*, replacing any earlier value (case-insensitive)."""
        lowered = name.lower()
        self._headers = [(k, v) for k, v in self._headers if k.lower() != lowered]
        self._headers.append((name, value))

    def write_head(self, status: int) -> None:
        if self.body_started:
            msg = f"cannot change status to {status} after the body has started"
            raise RuntimeError(msg)
        self._status = status

    def write(self, data: bytes) -> None:
        if self._status is None:
            self._status = 200
        self._body.extend(data)

    def to_response(self) -> Response:
        return Response(body=self.body, status=self.status, headers=self.headers)
