"""
Fakes shared by the test modules.
"""

import threading
from pathlib import Path


class FakeExtractor:
    """Returns canned text, or raises, for any supported path."""

    def __init__(self, text="", error=None, extensions=(".pdf", ".png", ".jpg", ".jpeg", ".tiff", ".bmp")):
        self.text = text
        self.error = error
        self.extensions = set(extensions)
        self.calls = []
        self._lock = threading.Lock()

    def supports(self, path):
        return Path(path).suffix.lower() in self.extensions

    def extract(self, path):
        with self._lock:
            self.calls.append(Path(path))
        if self.error is not None:
            raise self.error
        return self.text


class BlockingExtractor(FakeExtractor):
    """Holds every extract call until ``release`` is set."""

    def __init__(self, text="Blocked Document"):
        super().__init__(text=text)
        self.entered = threading.Event()
        self.release = threading.Event()

    def extract(self, path):
        self.entered.set()
        self.release.wait(timeout=10)
        return super().extract(path)


class BrokenExtractor(FakeExtractor):
    """Raises a non-OCR error from supports(), outside any handled path."""

    def supports(self, path):
        raise RuntimeError("extractor exploded")


class RecordingSink:
    """Event sink that keeps every event in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events = []
        self.closed = False

    def _record(self, name, *args):
        with self._lock:
            self.events.append((name,) + args)

    def named(self, name):
        with self._lock:
            return [event for event in self.events if event[0] == name]

    @property
    def outcomes(self):
        return [event[1] for event in self.named("operation_result")]

    def file_detected(self, path):
        self._record("file_detected", path)

    def ocr_started(self, path):
        self._record("ocr_started", path)

    def ocr_completed(self, path, text_length, duration):
        self._record("ocr_completed", path, text_length)

    def operation_result(self, outcome):
        self._record("operation_result", outcome)

    def system_started(self, paths):
        self._record("system_started", list(paths))

    def system_stopped(self):
        self._record("system_stopped")

    def rule_changed(self, action, rule):
        self._record("rule_changed", action, rule)

    def error(self, source, message):
        self._record("error", source, message)

    def close(self):
        self.closed = True


class FakeWatcher:
    """In-memory stand-in for FolderWatcher; ``emit`` plays a detection."""

    def __init__(self):
        self.subscribers = []
        self.watching = False
        self.started_with = []
        self.stop_calls = 0

    def subscribe(self, callback):
        self.subscribers.append(callback)

    def unsubscribe(self, callback):
        if callback in self.subscribers:
            self.subscribers.remove(callback)

    def start(self, directories):
        self.started_with = [Path(d) for d in directories]
        self.watching = bool(self.started_with)
        return list(self.started_with)

    def stop(self):
        self.stop_calls += 1
        self.watching = False

    @property
    def is_watching(self):
        return self.watching

    @property
    def directories(self):
        return list(self.started_with) if self.watching else []

    def emit(self, path):
        for callback in list(self.subscribers):
            callback(Path(path))


class ReadyGate:
    """Readiness gate with a fixed answer."""

    def __init__(self, ready=True):
        self.ready = ready
        self.calls = []

    def probe(self, path):
        return self.ready

    def wait_until_ready(self, path, timeout=None):
        self.calls.append(Path(path))
        return self.ready


def make_pdf(path, lines=None):
    """
    Write a minimal single-page PDF.

    Each entry of ``lines`` is drawn as one line of Helvetica text. With no
    lines the page has no text layer at all.
    """
    lines = lines or []
    content_ops = []
    if lines:
        content_ops.append("BT /F1 12 Tf 72 720 Td 14 TL")
        for line in lines:
            escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
            content_ops.append(f"({escaped}) Tj T*")
        content_ops.append("ET")
    content = "\n".join(content_ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length " + str(len(content)).encode() + b" >>\nstream\n" + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]

    output = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(output)
    output += f"xref\n0 {len(objects) + 1}\n".encode()
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += f"{offset:010d} 00000 n \n".encode()
    output += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()

    Path(path).write_bytes(bytes(output))
    return Path(path)
