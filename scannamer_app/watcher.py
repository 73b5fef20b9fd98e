"""
Folder watcher for scanned documents.

Watches folders (non-recursively) for newly created files with a supported
extension, waits for them to settle, and publishes each path once to the
registered subscribers.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Optional, Set, Union

from watchdog.events import FileCreatedEvent, FileSystemEventHandler
from watchdog.observers import Observer

from scannamer.models import SUPPORTED_EXTENSIONS
from scannamer.readiness import ReadinessGate

logger = logging.getLogger(__name__)


DEFAULT_SETTLE_DELAY = 2.0

Subscriber = Callable[[Path], None]


class _CreatedHandler(FileSystemEventHandler):
    """Forwards file creation events to the watcher."""

    def __init__(self, watcher: "FolderWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_created(self, event):
        """Handle file creation event."""
        if not isinstance(event, FileCreatedEvent) or event.is_directory:
            return
        self.watcher.notify_created(Path(event.src_path))


class FolderWatcher:
    """
    Watches folders for new scanned documents.

    A creation event is not published straight away: the file is given a
    settle delay on a worker thread, then probed once with the readiness
    gate. Only files that pass are published. The watchdog notification
    thread never waits.
    """

    def __init__(
        self,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        readiness_gate: Optional[ReadinessGate] = None,
        extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
        max_workers: int = 4,
    ):
        """
        Args:
            settle_delay: Seconds to wait after a creation event.
            readiness_gate: Gate used for the post-settle probe.
            extensions: Lower-case extensions (with dot) to accept.
            max_workers: Threads available for settle waits.
        """
        self.settle_delay = settle_delay
        self.readiness_gate = readiness_gate or ReadinessGate()
        self.extensions = frozenset(ext.lower() for ext in extensions)
        self.max_workers = max_workers

        self._lock = threading.Lock()
        self._subscribers: list[Subscriber] = []
        self._pending: Set[Path] = set()
        self._observer: Optional[Observer] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._stopped = threading.Event()
        self._directories: list[Path] = []

    # --- subscriptions ---

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    # --- lifecycle ---

    @property
    def is_watching(self) -> bool:
        with self._lock:
            observer = self._observer
            return observer is not None and observer.is_alive() and bool(self._directories)

    @property
    def directories(self) -> list[Path]:
        with self._lock:
            return list(self._directories)

    def start(self, directories: Iterable[Union[str, Path]]) -> list[Path]:
        """
        Start watching directories, replacing any previous set.

        Paths that do not exist or are not directories are logged and
        skipped; they do not prevent the others from being watched.

        Returns:
            The directories that are now watched.
        """
        self.stop()

        valid = []
        for directory in directories:
            directory = Path(directory)
            if directory.is_dir():
                valid.append(directory)
            else:
                logger.error(f"Folder not found, not watching: {directory}")

        if not valid:
            logger.warning("No valid folders to watch")
            return []

        observer = Observer()
        handler = _CreatedHandler(self)
        for directory in valid:
            observer.schedule(handler, str(directory), recursive=False)

        stopped = threading.Event()
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="scannamer-settle",
        )
        observer.start()

        with self._lock:
            self._observer = observer
            self._executor = executor
            self._stopped = stopped
            self._directories = valid
            self._pending.clear()

        for directory in valid:
            logger.info(f"Watching folder: {directory}")
        return list(valid)

    def stop(self) -> None:
        """Stop watching. Safe to call repeatedly or before start."""
        with self._lock:
            observer, self._observer = self._observer, None
            executor, self._executor = self._executor, None
            self._stopped.set()
            self._directories = []
            self._pending.clear()

        if observer is not None:
            observer.unschedule_all()
            observer.stop()
            observer.join()
            logger.info("Stopped watching folders")

        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    # --- event flow ---

    def notify_created(self, path: Path) -> None:
        """Queue a newly created file for settling."""
        if path.suffix.lower() not in self.extensions:
            return

        with self._lock:
            if self._executor is None or path in self._pending:
                return
            self._pending.add(path)
            stopped = self._stopped
            try:
                self._executor.submit(self._settle_and_publish, path, stopped)
            except RuntimeError:
                # Executor shut down between the check and the submit
                self._pending.discard(path)
                return

        logger.debug(f"New file, settling for {self.settle_delay:.1f}s: {path.name}")

    def _settle_and_publish(self, path: Path, stopped: threading.Event) -> None:
        try:
            # Returns early when the watcher is stopped
            if stopped.wait(self.settle_delay):
                return

            if not self.readiness_gate.probe(path):
                logger.info(f"File not ready after settle delay, ignoring: {path.name}")
                return

            self._publish(path)
        finally:
            with self._lock:
                self._pending.discard(path)

    def _publish(self, path: Path) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(path)
            except Exception:
                logger.exception(f"Subscriber failed for {path.name}")
