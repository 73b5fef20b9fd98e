"""
Processing pipeline.

Ties the folder watcher, readiness gate, OCR extractor, rule store, name
generator and renamer together. Each file is an independent unit of work
on a thread pool; every failure is recorded and counted, never raised out
of the pipeline.

Known risk: the OCR call has no deadline. A hung extractor holds its
worker thread until it returns.
"""

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Iterable, Optional, Set, Union
from uuid import UUID

from scannamer.errors import (
    EmptyTextError,
    ExtractionError,
    ProcessingError,
    ReadinessTimeoutError,
    UnsupportedTypeError,
    ValidationError,
)
from scannamer.events import EventSink, LoggingEventSink
from scannamer.extractor import TextExtractor
from scannamer.models import (
    SUPPORTED_EXTENSIONS,
    ConflictResolution,
    PipelineStatistics,
    ProcessingOutcome,
    ProcessingState,
    RenamingRule,
)
from scannamer.naming import NameGenerator
from scannamer.readiness import ReadinessGate
from scannamer.renamer import FileRenamer
from scannamer.rules import RuleStore

from .watcher import FolderWatcher

logger = logging.getLogger(__name__)


MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB


class _Unit:
    """Book-keeping for one file moving through the state machine."""

    def __init__(self, path: Path):
        self.path = path
        self.state = ProcessingState.DETECTED
        self.started = time.monotonic()
        self.text = ""
        self.rule_name = ""

    def advance(self, state: ProcessingState) -> None:
        logger.debug(f"{self.path.name}: {self.state.value} -> {state.value}")
        self.state = state

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


class ProcessingPipeline:
    """
    Watches folders and renames scanned documents from their OCR text.

    Usage:
        with ProcessingPipeline(TesseractExtractor()) as pipeline:
            pipeline.start_monitoring(["/scans"])
            ...
    """

    def __init__(
        self,
        extractor: TextExtractor,
        *,
        watcher: Optional[FolderWatcher] = None,
        rule_store: Optional[RuleStore] = None,
        generator: Optional[NameGenerator] = None,
        renamer: Optional[FileRenamer] = None,
        readiness_gate: Optional[ReadinessGate] = None,
        events: Optional[EventSink] = None,
        conflict_resolution: ConflictResolution = ConflictResolution.ADD_SUFFIX,
        max_file_size: int = MAX_FILE_SIZE,
        max_workers: int = 4,
    ):
        """
        Initialize pipeline.

        Args:
            extractor: OCR collaborator.
            watcher: Folder watcher (default: 2s settle delay).
            rule_store: Naming rules (default: the built-in rule set).
            generator: Name generator.
            renamer: File renamer.
            readiness_gate: Gate used to re-check files before OCR.
            events: Event sink (default: logs through ``scannamer.events``).
            conflict_resolution: Policy when the new name is taken.
            max_file_size: Files larger than this (bytes) are rejected.
            max_workers: Files processed concurrently.
        """
        self.extractor = extractor
        self.readiness_gate = readiness_gate or ReadinessGate()
        self.watcher = watcher or FolderWatcher(readiness_gate=self.readiness_gate)
        self.rules = rule_store if rule_store is not None else RuleStore.with_defaults()
        self.generator = generator or NameGenerator()
        self.renamer = renamer or FileRenamer()
        self.events = events or LoggingEventSink()
        self.conflict_resolution = conflict_resolution
        self.max_file_size = max_file_size
        self.statistics = PipelineStatistics()

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="scannamer-worker",
        )
        self._lock = threading.Lock()
        self._in_flight: Set[Future] = set()
        self._accepting = False
        self._closed = False

        self.watcher.subscribe(self._on_file_detected)

    # --- control surface ---

    def start_monitoring(self, folder_paths: Iterable[Union[str, Path]]) -> bool:
        """
        Start watching folders.

        Missing folders are reported one by one and skipped.

        Returns:
            True if at least one folder is being watched.
        """
        valid_paths = self._validate_folder_paths(folder_paths)
        if not valid_paths:
            self.events.error("start_monitoring", "No valid folder paths provided")
            return False

        watched = self.watcher.start(valid_paths)
        if not watched:
            self.events.error("start_monitoring", "Watcher did not accept any folder")
            return False

        with self._lock:
            self._accepting = True
        self.events.system_started(watched)
        return True

    def stop_monitoring(self) -> None:
        """
        Stop admitting new files and disarm the watcher.

        Files already being processed run to completion.
        """
        with self._lock:
            was_accepting, self._accepting = self._accepting, False

        self.watcher.stop()
        if was_accepting:
            processed, failed = self.statistics.snapshot()
            logger.info(f"Monitoring stopped. Processed: {processed}, Failed: {failed}")
            self.events.system_stopped()

    @property
    def is_monitoring(self) -> bool:
        with self._lock:
            accepting = self._accepting
        return accepting and self.watcher.is_watching

    @property
    def processed_count(self) -> int:
        return self.statistics.processed

    @property
    def failed_count(self) -> int:
        return self.statistics.failed

    def add_rule(self, rule: RenamingRule) -> None:
        self.rules.add(rule)
        self.events.rule_changed("added", rule)

    def remove_rule(self, rule_id: UUID) -> Optional[RenamingRule]:
        rule = self.rules.remove(rule_id)
        if rule is not None:
            self.events.rule_changed("removed", rule)
        return rule

    def list_rules(self) -> list[RenamingRule]:
        return self.rules.list()

    def process_manually(self, file_path: Union[str, Path]) -> ProcessingOutcome:
        """
        Run one file through the pipeline on the calling thread.

        Independent of whether monitoring is active.
        """
        return self.process_file(Path(file_path))

    def submit(self, file_path: Union[str, Path]) -> Future:
        """Schedule one file on the worker pool."""
        future = self._executor.submit(self.process_file, Path(file_path))
        with self._lock:
            self._in_flight.add(future)
        future.add_done_callback(self._forget)
        return future

    def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for files already submitted to finish.

        Returns:
            True if nothing is left in flight.
        """
        with self._lock:
            pending = set(self._in_flight)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        """Stop monitoring, let in-flight files finish, release resources."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self.stop_monitoring()
        self.watcher.unsubscribe(self._on_file_detected)
        self._executor.shutdown(wait=True)
        self.events.close()

    def __enter__(self) -> "ProcessingPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- processing ---

    def _on_file_detected(self, path: Path) -> None:
        with self._lock:
            accepting = self._accepting and not self._closed
        if not accepting:
            logger.debug(f"Not monitoring, ignoring detected file: {path.name}")
            return
        self.submit(path)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._in_flight.discard(future)

    def process_file(self, path: Path) -> ProcessingOutcome:
        """
        Run the full state machine for one file.

        Never raises. The outcome is reported to the event sink and counted
        before it is returned.
        """
        unit = _Unit(path)
        self.events.file_detected(path)
        logger.info(f"Processing: {path.name}")

        try:
            new_path = self._run(unit)
        except ProcessingError as e:
            outcome = self._failure(unit, e.kind, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error processing {path.name}")
            outcome = self._failure(unit, "unexpected", f"{type(e).__name__}: {e}")
        else:
            unit.advance(ProcessingState.COMPLETED)
            outcome = ProcessingOutcome(
                original_path=path,
                new_path=new_path,
                success=True,
                state=unit.state,
                extracted_text=unit.text,
                rule_used=unit.rule_name,
                duration=unit.elapsed,
            )
            self.statistics.record_processed()
            logger.info(f"Renamed: {path.name} -> {new_path.name}")

        self.events.operation_result(outcome)
        return outcome

    def _run(self, unit: _Unit) -> Path:
        path = unit.path

        unit.advance(ProcessingState.VALIDATING)
        self._validate_file(path)

        unit.advance(ProcessingState.AWAITING_READINESS)
        if not self.readiness_gate.wait_until_ready(path):
            raise ReadinessTimeoutError(path, f"File not ready after timeout: {path.name}")

        unit.advance(ProcessingState.EXTRACTING)
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS or not self.extractor.supports(path):
            raise UnsupportedTypeError(path, f"Unsupported file type: {path.suffix or '(none)'}")

        self.events.ocr_started(path)
        ocr_started = time.monotonic()
        try:
            text = self.extractor.extract(path)
        except Exception as e:
            raise ExtractionError(path, f"Text extraction failed: {e}") from e
        text = text or ""
        self.events.ocr_completed(path, len(text), time.monotonic() - ocr_started)

        if not text.strip():
            raise EmptyTextError(path, f"No text extracted from {path.name}")
        unit.text = text

        unit.advance(ProcessingState.SELECTING_RULE)
        rule = self.rules.active_rule()
        unit.rule_name = rule.name

        unit.advance(ProcessingState.NAMING)
        candidate = self.generator.generate(text, rule)

        unit.advance(ProcessingState.RENAMING)
        return self.renamer.rename(path, candidate, self.conflict_resolution)

    def _failure(self, unit: _Unit, kind: str, message: str) -> ProcessingOutcome:
        failed_at = unit.state
        unit.advance(ProcessingState.FAILED)
        self.statistics.record_failed()
        logger.warning(f"Failed to process {unit.path.name} at {failed_at.value}: {message}")
        return ProcessingOutcome(
            original_path=unit.path,
            success=False,
            state=unit.state,
            failed_at=failed_at,
            extracted_text=unit.text,
            error=message,
            error_kind=kind,
            rule_used=unit.rule_name,
            duration=unit.elapsed,
        )

    def _validate_file(self, path: Path) -> None:
        try:
            if not path.exists():
                raise ValidationError(path, "File does not exist")
            if not path.is_file():
                raise ValidationError(path, "Not a regular file")
            size = os.path.getsize(path)
        except OSError as e:
            raise ValidationError(path, f"File validation error: {e}") from e

        if size == 0:
            raise ValidationError(path, "File is empty")
        if size > self.max_file_size:
            raise ValidationError(
                path,
                f"File too large: {size / (1024 * 1024):.1f}MB "
                f"(limit {self.max_file_size / (1024 * 1024):.0f}MB)",
            )

    def _validate_folder_paths(self, folder_paths: Iterable[Union[str, Path]]) -> list[Path]:
        valid_paths = []
        for folder in folder_paths:
            folder = Path(folder)
            if folder.is_dir():
                valid_paths.append(folder)
            else:
                self.events.error("validate_folder_paths", f"Folder does not exist: {folder}")
        return valid_paths
