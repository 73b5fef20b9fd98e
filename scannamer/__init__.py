"""Core naming, renaming and extraction logic for scanned documents."""

from .config import RuleConfig, Settings, load_settings
from .errors import (
    ConfigError,
    EmptyTextError,
    ExtractionError,
    OcrEngineError,
    ProcessingError,
    ReadinessTimeoutError,
    RenameIOError,
    ResolutionExhaustedError,
    UnsupportedResolutionError,
    UnsupportedTypeError,
    ValidationError,
)
from .events import EventSink, LoggingEventSink
from .extractor import TesseractExtractor, TextExtractor
from .logging_config import configure_logging
from .models import (
    SUPPORTED_EXTENSIONS,
    ConflictResolution,
    PipelineStatistics,
    ProcessingOutcome,
    ProcessingState,
    RenamingRule,
    RuleKind,
)
from .naming import NameGenerator
from .readiness import ReadinessGate
from .renamer import FileRenamer, sanitize_filename
from .rules import FALLBACK_RULE, RuleStore, default_rules

__all__ = [
    "RuleConfig", "Settings", "load_settings",
    "ConfigError", "EmptyTextError", "ExtractionError", "OcrEngineError",
    "ProcessingError", "ReadinessTimeoutError", "RenameIOError",
    "ResolutionExhaustedError", "UnsupportedResolutionError",
    "UnsupportedTypeError", "ValidationError",
    "EventSink", "LoggingEventSink",
    "TesseractExtractor", "TextExtractor",
    "configure_logging",
    "SUPPORTED_EXTENSIONS", "ConflictResolution", "PipelineStatistics",
    "ProcessingOutcome", "ProcessingState", "RenamingRule", "RuleKind",
    "NameGenerator", "ReadinessGate", "FileRenamer", "sanitize_filename",
    "FALLBACK_RULE", "RuleStore", "default_rules",
]
