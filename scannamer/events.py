"""
Pipeline event sink.

The pipeline reports what happens to each file through an ``EventSink``.
Delivery and formatting are the sink's business; the default sink writes
to the standard logging tree under ``scannamer.events``.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

from .models import ProcessingOutcome, RenamingRule

PREVIEW_LENGTH = 50


class EventSink(Protocol):
    """Consumer of pipeline events. Implementations must be thread-safe."""

    def file_detected(self, path: Path) -> None: ...

    def ocr_started(self, path: Path) -> None: ...

    def ocr_completed(self, path: Path, text_length: int, duration: float) -> None: ...

    def operation_result(self, outcome: ProcessingOutcome) -> None: ...

    def system_started(self, paths: Sequence[Path]) -> None: ...

    def system_stopped(self) -> None: ...

    def rule_changed(self, action: str, rule: RenamingRule) -> None: ...

    def error(self, source: str, message: str) -> None: ...

    def close(self) -> None: ...


def preview(text: str, max_length: int = PREVIEW_LENGTH) -> str:
    """Short single-line preview of extracted text."""
    text = ' '.join(text.split())
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class LoggingEventSink:
    """Writes pipeline events to a standard library logger."""

    def __init__(self, logger: Optional[logging.Logger] = None, include_text: bool = True):
        """
        Args:
            logger: Destination logger (default ``scannamer.events``).
            include_text: Append a short preview of the extracted text to
                success records. Disable when documents are sensitive.
        """
        self.logger = logger or logging.getLogger("scannamer.events")
        self.include_text = include_text

    def file_detected(self, path: Path) -> None:
        self.logger.debug(f"File detected: {path}")

    def ocr_started(self, path: Path) -> None:
        self.logger.info(f"Starting OCR extraction for: {path}")

    def ocr_completed(self, path: Path, text_length: int, duration: float) -> None:
        self.logger.info(
            f"OCR extraction completed for {Path(path).name} | "
            f"Text length: {text_length} chars | Duration: {duration * 1000:.0f}ms"
        )

    def operation_result(self, outcome: ProcessingOutcome) -> None:
        if outcome.success:
            message = (
                f"Renamed {outcome.original_path.name} -> {outcome.new_path.name} "
                f"using rule '{outcome.rule_used}' in {outcome.duration * 1000:.0f}ms"
            )
            if self.include_text and outcome.extracted_text:
                message += f" | Extracted: {preview(outcome.extracted_text)}"
            self.logger.info(message)
        else:
            stage = outcome.failed_at or outcome.state
            self.logger.error(
                f"Failed to process {outcome.original_path} at {stage.value} | "
                f"{outcome.error_kind}: {outcome.error}"
            )

    def system_started(self, paths: Sequence[Path]) -> None:
        joined = ", ".join(str(p) for p in paths)
        self.logger.info(f"Monitoring started for {len(paths)} folder(s): {joined}")

    def system_stopped(self) -> None:
        self.logger.info("Monitoring stopped")

    def rule_changed(self, action: str, rule: RenamingRule) -> None:
        self.logger.info(f"Rule {action}: {rule.name} ({rule.kind.value})")

    def error(self, source: str, message: str) -> None:
        self.logger.error(f"{source}: {message}")

    def close(self) -> None:
        """Flush every handler reachable from the sink's logger."""
        logger = self.logger
        while logger is not None:
            for handler in logger.handlers:
                handler.flush()
            logger = logger.parent if logger.propagate else None
