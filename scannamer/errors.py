"""
Exceptions raised while processing a scanned document.

Every ``ProcessingError`` is caught at the pipeline's per-file boundary and
turned into a failure outcome; none of them is allowed to stop the watcher
or the pipeline.
"""

from pathlib import Path
from typing import Union


class ProcessingError(Exception):
    """Base class for per-file processing failures."""

    kind = "processing"

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        super().__init__(message)


class ValidationError(ProcessingError):
    """File is missing, empty, not a regular file, or too large."""
    kind = "validation"


class ReadinessTimeoutError(ProcessingError):
    """File was still locked (or empty) when the readiness wait ran out."""
    kind = "readiness_timeout"


class UnsupportedTypeError(ProcessingError):
    """File extension is not handled by the OCR collaborator."""
    kind = "unsupported_type"


class ExtractionError(ProcessingError):
    """The OCR collaborator failed; the original exception is the cause."""
    kind = "extraction"


class EmptyTextError(ProcessingError):
    """OCR produced no usable text."""
    kind = "empty_text"


class UnsupportedResolutionError(ProcessingError):
    """Interactive conflict resolution requested without a resolver."""
    kind = "unsupported_resolution"


class RenameIOError(ProcessingError):
    """The filesystem move failed; the original file is untouched."""
    kind = "rename_io"


class ResolutionExhaustedError(ProcessingError):
    """Every numbered suffix for a colliding name is already taken."""
    kind = "resolution_exhausted"


class OcrEngineError(Exception):
    """Raised by a text extractor for unsupported or unreadable input."""


class ConfigError(Exception):
    """Configuration file is unreadable or invalid."""
