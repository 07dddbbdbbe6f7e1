"""
Configuration settings for the hackathon store.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
at startup, ensuring fail-fast behavior if configuration is invalid.

**Why no global settings object?**
  - Store paths used to be module-level constants baked into every entity
    store. Here the bootstrap builds one Settings object and hands the paths
    to Repository and IntegrityManager explicitly.
  - Tests create their own Settings (or skip Settings entirely and pass a
    tmp_path) without resetting any shared state.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (dev/local environments); a missing file is fine
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
TRUE_STRINGS = ("1", "true", "yes", "on")
FALSE_STRINGS = ("0", "false", "no", "off")


def _parse_bool(name: str, raw: str) -> bool:
    """Parse a boolean environment variable or raise ValueError."""
    value = raw.strip().lower()
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    raise ValueError(
        f"{name} must be a boolean ({'/'.join(TRUE_STRINGS)} or "
        f"{'/'.join(FALSE_STRINGS)}), got: {raw}"
    )


@dataclass(frozen=True)
class StoreSettings:
    """
    Filesystem locations used by the store.

    **Conceptual**: Every entity file lives under `data_dir`; the event log
    lives under `log_dir`. Both are relative to the working directory unless
    given as absolute paths.

    Attributes:
        data_dir: Directory holding one store file per entity type.
        log_dir: Directory holding the event log file.
    """
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.data_dir == self.log_dir:
            raise ValueError(
                f"HACKSTORE_DATA_DIR and HACKSTORE_LOG_DIR must differ, both are: {self.data_dir}"
            )

    @classmethod
    def from_env(cls) -> "StoreSettings":
        """
        Load store settings from environment variables.

        **Environment variables**:
          - HACKSTORE_DATA_DIR (optional): store directory, default "data".
          - HACKSTORE_LOG_DIR (optional): log directory, default "logs".

        Returns:
            StoreSettings object with values loaded from environment.

        Raises:
            ValueError: If either directory is set but empty, or both are equal.
        """
        data_dir = os.getenv("HACKSTORE_DATA_DIR", "data")
        log_dir = os.getenv("HACKSTORE_LOG_DIR", "logs")

        # Path("") would silently become the working directory
        for name, value in (("HACKSTORE_DATA_DIR", data_dir), ("HACKSTORE_LOG_DIR", log_dir)):
            if not value.strip():
                raise ValueError(
                    f"{name} must not be empty. "
                    "Please set it in your .env file or environment variables."
                )

        return cls(
            data_dir=Path(data_dir),
            log_dir=Path(log_dir),
        )


@dataclass(frozen=True)
class LoggingSettings:
    """
    Logging configuration.

    Attributes:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_to_file: Whether the event log file under StoreSettings.log_dir
                     is written in addition to stdout.
    """
    level: str = "INFO"
    log_to_file: bool = True

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"HACKSTORE_LOG_LEVEL must be one of {VALID_LOG_LEVELS}, got: {self.level}"
            )

    @property
    def numeric_level(self) -> int:
        return logging.getLevelName(self.level)

    @classmethod
    def from_env(cls) -> "LoggingSettings":
        """
        Load logging settings from environment variables.

        **Environment variables**:
          - HACKSTORE_LOG_LEVEL (optional): default "INFO", case-insensitive.
          - HACKSTORE_LOG_TO_FILE (optional): default "true".

        Raises:
            ValueError: If the level is unknown or the boolean is unparseable.
        """
        level = os.getenv("HACKSTORE_LOG_LEVEL", "INFO").strip().upper()
        log_to_file = _parse_bool(
            "HACKSTORE_LOG_TO_FILE", os.getenv("HACKSTORE_LOG_TO_FILE", "true")
        )

        return cls(level=level, log_to_file=log_to_file)


@dataclass(frozen=True)
class Settings:
    """
    Top-level settings aggregating the store and logging subsystems.

    **Usage pattern**:
      ```python
      from hackstore.config.settings import Settings

      settings = Settings.from_env()
      repository = Repository(settings.store.data_dir)
      ```

    Attributes:
        store: Filesystem locations.
        logging: Logging level and file toggle.
    """
    store: StoreSettings = field(default_factory=StoreSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load global settings from environment variables.

        Returns:
            Settings object with all subsystem settings loaded from environment.

        Raises:
            ValueError: If any subsystem setting fails validation.
        """
        return cls(
            store=StoreSettings.from_env(),
            logging=LoggingSettings.from_env(),
        )
