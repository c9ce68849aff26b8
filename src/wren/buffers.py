"""Reusable byte buffers for staging encoded output.

Buffered engines encode into a pooled ``BytesIO`` and copy it to the
response sink only after encoding succeeds. The pool is shared by every
in-flight render, so lend/return is guarded by a lock.

Free-threading note (3.14t):
    The idle list is only touched while holding ``_lock``. A borrowed
    buffer is owned by exactly one caller until it is returned.
"""

import io
import threading
from collections.abc import Iterator
from contextlib import contextmanager


class BufferPool:
    """A bounded pool of reusable ``io.BytesIO`` buffers.

    ``size`` caps how many idle buffers are kept; buffers returned to a
    full pool are dropped and left to the garbage collector.

    Usage::

        pool = BufferPool(64)
        with pool.borrow() as buf:
            buf.write(b"...")
            sink.write(buf.getvalue())
    """

    __slots__ = ("_idle", "_lock", "_size")

    def __init__(self, size: int = 64) -> None:
        self._size = max(size, 0)
        self._idle: list[io.BytesIO] = []
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        with self._lock:
            return len(self._idle)

    def get(self) -> io.BytesIO:
        """Take an idle buffer, or allocate a new one if none is idle."""
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return io.BytesIO()

    def put(self, buf: io.BytesIO) -> None:
        """Clear *buf* and return it to the pool (dropped if the pool is full)."""
        buf.seek(0)
        buf.truncate()
        with self._lock:
            if len(self._idle) < self._size:
                self._idle.append(buf)

    @contextmanager
    def borrow(self) -> Iterator[io.BytesIO]:
        """Lend a buffer for the duration of a ``with`` block.

        The buffer is cleared and returned on every exit path.
        """
        buf = self.get()
        try:
            yield buf
        finally:
            self.put(buf)
