"""Project configuration loaded from ``.flowcraft/config.yaml``."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_DIR = ".flowcraft"
CONFIG_FILE = "config.yaml"

DEFAULT_CONFIG_YAML = """# flowcraft configuration for this project

history:
  max_states: 50        # Undo steps kept; the oldest is dropped beyond this
  apply_delay: 0.1      # Seconds undo/redo writes are ignored by the recorder
  record_debounce: 0.5  # Quiet period (seconds) before an edit is recorded

storage:
  path: .flowcraft/workflow.json
  autosave_delay: 2.0   # Seconds of inactivity before autosave writes
"""


class ConfigError(Exception):
    """Configuration file is unreadable or invalid."""

    pass


class HistoryConfig(BaseModel):
    max_states: int = Field(default=50, ge=1)
    apply_delay: float = Field(default=0.1, ge=0)
    record_debounce: float = Field(default=0.5, ge=0)


class StorageConfig(BaseModel):
    path: Path = Path(CONFIG_DIR) / "workflow.json"
    autosave_delay: float = Field(default=2.0, ge=0)


class FlowcraftConfig(BaseModel):
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


def config_path(repo_path: Path) -> Path:
    return repo_path / CONFIG_DIR / CONFIG_FILE


def load_config(repo_path: Path | None = None) -> FlowcraftConfig:
    """Load configuration, falling back to defaults when no file exists.

    A relative ``storage.path`` is resolved against ``repo_path``.

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values
    """
    repo_path = repo_path or Path.cwd()
    path = config_path(repo_path)

    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        config = FlowcraftConfig()
    else:
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
            config = FlowcraftConfig.model_validate(raw)
        except (yaml.YAMLError, ValidationError) as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e

    if not config.storage.path.is_absolute():
        config.storage.path = repo_path / config.storage.path
    return config
