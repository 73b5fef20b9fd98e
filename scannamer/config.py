"""
Configuration loading.

Settings come from an optional JSON file validated with pydantic; the
command line can override individual values afterwards.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError
from .models import ConflictResolution, RenamingRule, RuleKind
from .rules import default_rules

logger = logging.getLogger(__name__)


class RuleConfig(BaseModel):
    """A renaming rule as written in the configuration file."""
    name: str
    kind: RuleKind = RuleKind.FIRST_LINE
    pattern: str = ""
    replacement: str = ""
    template: str = ""
    active: bool = True

    @field_validator("kind", mode="before")
    @classmethod
    def _parse_kind(cls, value):
        # "FirstLine", "document-type", ... all map onto RuleKind members
        if isinstance(value, str):
            try:
                return RuleKind(value)
            except ValueError:
                raise ValueError(f"Unknown rule kind: {value}")
        return value

    def to_rule(self) -> RenamingRule:
        return RenamingRule(
            name=self.name,
            kind=self.kind,
            pattern=self.pattern,
            replacement=self.replacement,
            template=self.template,
            active=self.active,
        )


class Settings(BaseModel):
    """Application settings."""
    watch_folders: list[Path] = Field(default_factory=list)
    conflict_resolution: ConflictResolution = ConflictResolution.ADD_SUFFIX

    # Watcher and readiness timing, in seconds
    settle_delay: float = Field(default=2.0, ge=0)
    readiness_timeout: float = Field(default=5.0, ge=0)
    readiness_poll_interval: float = Field(default=0.5, gt=0)

    max_file_size_mb: int = Field(default=50, gt=0)
    max_workers: int = Field(default=4, ge=1)

    # OCR
    language: str = "eng"
    tesseract_cmd: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_directory: Optional[Path] = None
    log_retention_days: int = Field(default=30, ge=1)
    log_extracted_text: bool = True

    rules: list[RuleConfig] = Field(default_factory=list)

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value):
        # "info" -> "INFO"; unknown names fail here rather than in setLevel
        if isinstance(value, str):
            value = value.strip().upper()
            if not isinstance(logging.getLevelName(value), int):
                raise ValueError(f"Unknown log level: {value}")
        return value

    @property
    def max_file_size(self) -> int:
        """Size ceiling in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    def build_rules(self) -> list[RenamingRule]:
        """Configured rules, or the default set when none are configured."""
        if not self.rules:
            return default_rules()
        return [rule.to_rule() for rule in self.rules]


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from a JSON file.

    Args:
        path: Configuration file. None returns the defaults.

    Raises:
        ConfigError: If the file cannot be read or fails validation.
    """
    if path is None:
        return Settings()

    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e

    logger.debug(f"Loaded configuration from {path}")
    return settings
