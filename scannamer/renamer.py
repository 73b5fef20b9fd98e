"""
File renaming module.

Sanitizes candidate names, resolves collisions and moves files in place.
Extracted text never reaches this module; only paths are logged.
"""

import logging
import os
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .errors import (
    RenameIOError,
    ResolutionExhaustedError,
    UnsupportedResolutionError,
)
from .models import ConflictResolution

logger = logging.getLogger(__name__)


MAX_STEM_LENGTH = 100
MAX_SUFFIX = 999
DEFAULT_STEM = "Document"

# Characters no mainstream filesystem accepts in a name, plus whitespace
# which is folded into the same "_" separator
INVALID_CHARS_PATTERN = re.compile(r'[<>:"/\\|?*\x00-\x1f\s]+')

# Windows device names that cannot be used as a stem
RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)

# Resolver for INTERACTIVE: (original, colliding target) -> policy to apply
ConflictResolver = Callable[[Path, Path], ConflictResolution]


def sanitize_filename(name: str) -> str:
    """
    Turn a candidate name into a safe filename stem.

    Runs of invalid characters and whitespace become a single "_",
    leading/trailing separators and dots are dropped, and the result is
    capped at 100 characters. Never returns an empty string.

    Example:
        "INV_99 due" -> "INV_99_due"
    """
    if not name or not name.strip():
        return DEFAULT_STEM

    parts = [part for part in INVALID_CHARS_PATTERN.split(name) if part]
    sanitized = "_".join(parts)
    sanitized = sanitized[:MAX_STEM_LENGTH].strip("_. ")

    if not sanitized:
        return DEFAULT_STEM

    if sanitized.upper() in RESERVED_NAMES:
        sanitized = f"{sanitized}_"

    return sanitized


class FileRenamer:
    """
    Renames files in their own directory.

    The extension of the original file is always kept verbatim. When the
    target name is taken by another file, ``resolution`` decides:

        ADD_SUFFIX     Name_001.ext, Name_002.ext, ... up to _999
        ADD_TIMESTAMP  Name_YYYYMMDD_HHMMSS.ext
        OVERWRITE      replace the existing file
        SKIP           leave the original where it is
        INTERACTIVE    ask ``resolver``; unsupported without one
    """

    def __init__(
        self,
        resolver: Optional[ConflictResolver] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize renamer.

        Args:
            resolver: Collaborator consulted for INTERACTIVE resolution.
            clock: Source of the current time for timestamp suffixes.
        """
        self.resolver = resolver
        self.clock = clock
        # Serializes collision checks with the move so concurrent renames
        # into one folder cannot pick the same free name
        self._lock = threading.Lock()

    def build_target(self, original_path: Path, candidate_name: str) -> Path:
        """Target path before collision handling."""
        stem = sanitize_filename(candidate_name)
        return original_path.parent / f"{stem}{original_path.suffix}"

    def rename(
        self,
        original_path: Union[str, Path],
        candidate_name: str,
        resolution: ConflictResolution = ConflictResolution.ADD_SUFFIX,
    ) -> Path:
        """
        Rename a file using a candidate name.

        Args:
            original_path: File to rename.
            candidate_name: Unsanitized filename stem.
            resolution: Collision policy.

        Returns:
            The path the file now lives at (the original path when nothing
            was moved).

        Raises:
            RenameIOError: Source missing or the move failed.
            ResolutionExhaustedError: No free numbered suffix was left.
            UnsupportedResolutionError: INTERACTIVE without a resolver.
        """
        original_path = Path(original_path)

        if not original_path.exists():
            raise RenameIOError(original_path, f"Source file not found: {original_path}")

        target_path = self.build_target(original_path, candidate_name)

        with self._lock:
            overwrite = False
            if target_path.exists() and not self._is_same_file(original_path, target_path):
                target_path = self._resolve_collision(original_path, target_path, resolution)
                overwrite = target_path.exists() and target_path != original_path

            if target_path == original_path:
                logger.info(f"Name unchanged, no move: {original_path.name}")
                return original_path

            self._move(original_path, target_path, overwrite=overwrite)
        return target_path

    def _resolve_collision(
        self,
        original_path: Path,
        target_path: Path,
        resolution: ConflictResolution,
    ) -> Path:
        """
        Pick a destination for a name that is already taken.

        Returns:
            The path to move to; ``original_path`` means "do not move".
        """
        if resolution is ConflictResolution.INTERACTIVE:
            if self.resolver is None:
                raise UnsupportedResolutionError(
                    original_path,
                    "Interactive conflict resolution requires a resolver",
                )
            resolution = ConflictResolution(self.resolver(original_path, target_path))
            if resolution is ConflictResolution.INTERACTIVE:
                raise UnsupportedResolutionError(
                    original_path,
                    "Resolver answered with interactive resolution",
                )

        logger.debug(f"Collision on {target_path.name}, resolving with {resolution.value}")

        if resolution is ConflictResolution.ADD_SUFFIX:
            return self._next_free_suffix(original_path, target_path)

        if resolution is ConflictResolution.ADD_TIMESTAMP:
            timestamp = self.clock().strftime("%Y%m%d_%H%M%S")
            stamped = target_path.with_name(f"{target_path.stem}_{timestamp}{target_path.suffix}")
            if stamped.exists():
                return self._next_free_suffix(original_path, stamped)
            return stamped

        if resolution is ConflictResolution.OVERWRITE:
            return target_path

        if resolution is ConflictResolution.SKIP:
            return original_path

        raise UnsupportedResolutionError(original_path, f"Unknown conflict resolution: {resolution}")

    def _next_free_suffix(self, original_path: Path, target_path: Path) -> Path:
        """Probe Name_001, Name_002, ... for the first free name."""
        stem = target_path.stem
        for counter in range(1, MAX_SUFFIX + 1):
            candidate = target_path.with_name(f"{stem}_{counter:03d}{target_path.suffix}")
            if not candidate.exists():
                return candidate

        raise ResolutionExhaustedError(
            original_path,
            f"No free suffix left for {target_path.name} (tried _001.._{MAX_SUFFIX})",
        )

    def _move(self, source: Path, target: Path, overwrite: bool) -> None:
        logger.info(f"Renaming file: {source.name} -> {target.name}")
        try:
            if overwrite:
                os.replace(source, target)
            else:
                os.rename(source, target)
        except OSError as e:
            raise RenameIOError(source, f"Rename to {target.name} failed: {e}") from e

    @staticmethod
    def _is_same_file(original_path: Path, target_path: Path) -> bool:
        # Case-only renames on case-insensitive filesystems hit the original
        try:
            return os.path.samefile(original_path, target_path)
        except OSError:
            return False
