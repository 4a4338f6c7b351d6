"""Clipboard change detector.

Polls a ClipboardReader on a fixed interval and emits one CapturedContent per
observed change onto a CaptureStream. States: idle → start() → polling →
stop() → idle. The poll loop waits on a stop event, so stop() interrupts the
wait between samples immediately.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from clipstash.capture.hasher import fingerprint
from clipstash.capture.reader import ClipboardReader, SourceApp
from clipstash.capture.stream import CaptureStream
from clipstash.config import StashConfig
from clipstash.db.models import CapturedContent, utc_now
from clipstash.errors import ClipboardUnavailableError

logger = logging.getLogger(__name__)


class ClipboardDetector:
    """Watch a clipboard and emit captures.

    Args:
        reader: Clipboard access.
        settings: Live configuration. ``capture.poll_interval`` is read once
            per start(); the ignored-source list and the sensitive-content
            flag are read on every change.
        clock: Timestamp source for captures.
    """

    def __init__(
        self,
        reader: ClipboardReader,
        settings: StashConfig,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._reader = reader
        self._settings = settings
        self._clock = clock
        self._last_change_count: int | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._stream: CaptureStream | None = None
        self._state_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    @property
    def stream(self) -> CaptureStream | None:
        """The stream of the current (or most recent) run."""
        return self._stream

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, interval: float | None = None) -> CaptureStream:
        """Begin polling and return the stream captures are emitted on.

        Starting while already running is a no-op and returns the current
        stream. The clipboard's current content is taken as the baseline and
        is not emitted.
        """
        with self._state_lock:
            if self._thread is not None and self._stream is not None:
                logger.debug("Detector already running")
                return self._stream

            poll_interval = interval if interval is not None else self._settings.capture.poll_interval
            if poll_interval <= 0:
                raise ValueError(f"poll interval must be > 0, got {poll_interval}")

            self._last_change_count = self._reader.change_count()
            self._stop_event = threading.Event()
            self._stream = CaptureStream()
            self._thread = threading.Thread(
                target=self._run,
                args=(poll_interval, self._stream, self._stop_event),
                name="clipstash-detector",
                daemon=True,
            )
            self._thread.start()
            logger.info(
                "Clipboard monitoring started (interval %.3fs, change count %s)",
                poll_interval,
                self._last_change_count,
            )
            return self._stream

    def stop(self) -> None:
        """Stop polling and close the stream. No-op when idle."""
        with self._state_lock:
            if self._thread is None:
                return
            self._stop_event.set()
            self._thread.join()
            self._thread = None
            if self._stream is not None:
                self._stream.close()
            logger.info("Clipboard monitoring stopped")

    def _run(self, interval: float, stream: CaptureStream, stop_event: threading.Event) -> None:
        while not stop_event.wait(interval):
            try:
                capture = self.check_now()
            except ClipboardUnavailableError as exc:
                logger.warning("Clipboard read failed: %s", exc)
                continue
            except Exception:
                logger.exception("Unexpected error while polling the clipboard")
                continue
            if capture is not None:
                stream.put(capture)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def check_now(self) -> CapturedContent | None:
        """Poll once and return the capture for a new change, if any.

        Returns None when nothing changed or when the change was filtered
        (sensitive content, ignored source) or empty.
        """
        count = self._reader.change_count()
        if count == self._last_change_count:
            return None
        logger.debug("Clipboard changed: %s -> %s", self._last_change_count, count)
        # Record the change before filtering so it is never processed twice.
        self._last_change_count = count

        capture_cfg = self._settings.capture
        if capture_cfg.filter_sensitive and self._reader.contains_sensitive(
            capture_cfg.sensitive_markers
        ):
            logger.debug("Filtered: sensitive content")
            return None

        source = self._reader.source_app()
        if source is not None and source.bundle_id in capture_cfg.ignored_sources:
            logger.debug("Filtered: ignored source %s", source.bundle_id)
            return None

        capture = self._extract(source)
        if capture.is_empty:
            logger.debug("Discarded empty capture (types: %s)", capture.types)
            return None
        return capture

    def _extract(self, source: SourceApp | None) -> CapturedContent:
        reader = self._reader
        text = reader.read_text()
        image = reader.read_image()
        files = reader.read_file_paths()
        file_paths = tuple(files) if files else None
        images_cfg = self._settings.images

        return CapturedContent(
            captured_at=self._clock(),
            content_hash=fingerprint(
                text,
                image,
                file_paths,
                large_image_threshold=images_cfg.hash_sample_threshold,
                sample_size=images_cfg.hash_sample_size,
            ),
            text=text,
            rtf=reader.read_rtf(),
            html=reader.read_html(),
            image=image,
            file_paths=file_paths,
            url=reader.read_url(),
            source_app_id=source.bundle_id if source else None,
            source_app_name=source.name if source else None,
            types=tuple(reader.types()),
        )
