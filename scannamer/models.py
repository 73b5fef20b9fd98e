"""
Data model shared by the naming engine, renamer and pipeline.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


# Extensions accepted at intake (watcher filter and pipeline type check)
SUPPORTED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".tiff", ".bmp", ".pdf"})


class RuleKind(str, Enum):
    """Naming strategies a rule can select."""
    FIRST_LINE = "first_line"
    REGEX = "regex"
    TEMPLATE = "template"
    DATE_BASED = "date_based"
    SMART = "smart"
    DOCUMENT_TYPE = "smart"

    @classmethod
    def _missing_(cls, value):
        # Accept "FirstLine", "first-line", "document_type", ...
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        return _RULE_KIND_ALIASES.get(key)


_RULE_KIND_ALIASES = {
    "firstline": RuleKind.FIRST_LINE,
    "regex": RuleKind.REGEX,
    "template": RuleKind.TEMPLATE,
    "datebased": RuleKind.DATE_BASED,
    "smart": RuleKind.SMART,
    "documenttype": RuleKind.SMART,
}


class ConflictResolution(str, Enum):
    """What to do when the destination filename is already taken."""
    ADD_SUFFIX = "add_suffix"
    ADD_TIMESTAMP = "add_timestamp"
    OVERWRITE = "overwrite"
    SKIP = "skip"
    INTERACTIVE = "interactive"


class ProcessingState(str, Enum):
    """Stages a file passes through in the pipeline."""
    DETECTED = "detected"
    VALIDATING = "validating"
    AWAITING_READINESS = "awaiting_readiness"
    EXTRACTING = "extracting"
    SELECTING_RULE = "selecting_rule"
    NAMING = "naming"
    RENAMING = "renaming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RenamingRule:
    """
    A naming rule.

    Only the parameters belonging to ``kind`` are consulted: ``pattern`` and
    ``replacement`` for REGEX, ``template`` for TEMPLATE.
    """
    name: str
    kind: RuleKind = RuleKind.FIRST_LINE
    pattern: str = ""
    replacement: str = ""
    template: str = ""
    active: bool = True
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class ProcessingOutcome:
    """Result of running one file through the pipeline."""
    original_path: Path
    success: bool
    state: ProcessingState
    new_path: Optional[Path] = None
    extracted_text: str = ""
    error: str = ""
    error_kind: str = ""
    rule_used: str = ""
    failed_at: Optional[ProcessingState] = None
    timestamp: datetime = field(default_factory=datetime.now)
    duration: float = 0.0  # seconds


class PipelineStatistics:
    """
    Processed/failed counters.

    Both counters only ever go up. A single lock serializes increments so
    readers on other threads never see a lost update.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._processed = 0
        self._failed = 0

    def record_processed(self) -> int:
        with self._lock:
            self._processed += 1
            return self._processed

    def record_failed(self) -> int:
        with self._lock:
            self._failed += 1
            return self._failed

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def failed(self) -> int:
        return self._failed

    def snapshot(self) -> tuple[int, int]:
        """Return ``(processed, failed)`` read together."""
        with self._lock:
            return self._processed, self._failed
