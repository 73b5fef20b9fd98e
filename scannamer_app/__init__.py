"""Folder watching, pipeline orchestration and command-line entry point."""

from .pipeline import ProcessingPipeline
from .watcher import FolderWatcher

__all__ = ["ProcessingPipeline", "FolderWatcher"]
