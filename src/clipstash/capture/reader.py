"""Clipboard reader interface and the pyperclip-backed system reader."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlsplit

import pyperclip

from clipstash.errors import ClipboardUnavailableError

PLAIN_TEXT_TYPE = "public.utf8-plain-text"
URL_TYPE = "public.url"


@dataclass(frozen=True)
class SourceApp:
    """The application that owned the clipboard when it changed."""

    bundle_id: str | None = None
    name: str | None = None


def url_from_text(text: str | None) -> str | None:
    """Return *text* if it is a single absolute URL (scheme + host), else None."""
    if not text:
        return None
    candidate = text.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return None
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    if parts.scheme and parts.netloc:
        return candidate
    return None


class ClipboardReader(ABC):
    """Abstract access to an OS clipboard.

    Subclasses implement ``change_count()`` and ``types()`` and override the
    ``read_*`` methods for the representations their platform offers; the
    defaults report a representation as absent. Reads must be synchronous,
    bounded and must not hold the clipboard.

    Implementations raise ClipboardUnavailableError when the clipboard cannot
    be read.
    """

    @abstractmethod
    def change_count(self) -> int:
        """Return a counter that changes whenever the clipboard content changes."""

    @abstractmethod
    def types(self) -> list[str]:
        """Return the identifiers of the representations currently available."""

    def read_text(self) -> str | None:
        return None

    def read_rtf(self) -> bytes | None:
        return None

    def read_html(self) -> str | None:
        return None

    def read_image(self) -> bytes | None:
        return None

    def read_file_paths(self) -> list[str] | None:
        return None

    def read_url(self) -> str | None:
        """URL representation; falls back to plain text that looks like a URL."""
        return url_from_text(self.read_text())

    def source_app(self) -> SourceApp | None:
        return None

    def contains_sensitive(self, markers: Iterable[str]) -> bool:
        """True if any available representation is one of *markers*."""
        marker_set = set(markers)
        return any(t in marker_set for t in self.types())


class PyperclipReader(ClipboardReader):
    """Text-only system clipboard reader built on pyperclip.

    pyperclip exposes no change counter, so one is synthesised: every call to
    ``change_count()`` reads the clipboard and bumps the counter when the text
    differs from the previous read. The ``read_*`` methods return that
    snapshot, so a poll sees one consistent value.
    """

    def __init__(self) -> None:
        self._count = 0
        self._snapshot: str | None = None
        self._seen_first = False

    def _paste(self) -> str:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            raise ClipboardUnavailableError(str(exc)) from exc

    def change_count(self) -> int:
        text = self._paste()
        if not self._seen_first or text != self._snapshot:
            self._seen_first = True
            self._snapshot = text
            self._count += 1
        return self._count

    def types(self) -> list[str]:
        if not self._snapshot:
            return []
        if url_from_text(self._snapshot):
            return [PLAIN_TEXT_TYPE, URL_TYPE]
        return [PLAIN_TEXT_TYPE]

    def read_text(self) -> str | None:
        return self._snapshot or None
