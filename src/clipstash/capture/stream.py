"""Closable FIFO channel carrying captures from the detector to a consumer."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator

from clipstash.db.models import CapturedContent

_CLOSED = object()


class CaptureStream:
    """Single-producer, single-consumer capture channel.

    Items come out in the order they were put. ``close()`` ends iteration for
    the consumer once the items already queued have been drained.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, capture: CapturedContent) -> None:
        """Enqueue *capture*. Raises RuntimeError if the stream is closed."""
        with self._lock:
            if self._closed:
                raise RuntimeError("put() on a closed CaptureStream")
            self._queue.put(capture)

    def close(self) -> None:
        """Close the stream (idempotent)."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def get(self, timeout: float | None = None) -> CapturedContent | None:
        """Return the next capture, or None once the stream is closed and drained.

        Raises:
            queue.Empty: If *timeout* elapses with nothing available.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the marker for any later get() call.
            self._queue.put(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[CapturedContent]:
        while True:
            capture = self.get()
            if capture is None:
                return
            yield capture
