"""Clipboard capture: classification, fingerprinting, readers and the detector."""

from clipstash.capture.classifier import classify
from clipstash.capture.detector import ClipboardDetector
from clipstash.capture.hasher import fingerprint
from clipstash.capture.reader import ClipboardReader, PyperclipReader, SourceApp
from clipstash.capture.stream import CaptureStream

__all__ = [
    "CaptureStream",
    "ClipboardDetector",
    "ClipboardReader",
    "PyperclipReader",
    "SourceApp",
    "classify",
    "fingerprint",
]
