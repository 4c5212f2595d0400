"""
Sync configuration.

Loads storysync.yaml from the project directory. If no config file exists,
or it fails to parse or validate, the defaults are used.

Example storysync.yaml:

    todo_sync: true
    similarity_floor: 0.7
    search_radius: 15
    stories_dir: docs/implementation-artifacts/stories
    state_file: ~/.config/storysync/state.json
    history_limit: 100
    section_aliases:
      definition of done: ac
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

from storysync.lib import validate
from storysync.lib.constants import (
    CONFIG_FILENAME,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_SEARCH_RADIUS,
    DEFAULT_SIMILARITY_FLOOR,
    DEFAULT_STATE_FILE,
    DEFAULT_STORIES_DIR,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncConfig:
    """Sync configuration from storysync.yaml."""
    todo_sync: bool = True                       # Master switch for reconciliation
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR
    search_radius: int = DEFAULT_SEARCH_RADIUS
    stories_dir: str = DEFAULT_STORIES_DIR       # Relative to project dir unless absolute
    state_file: Path = DEFAULT_STATE_FILE
    history_limit: int = DEFAULT_HISTORY_LIMIT
    section_aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def stories_path(self, project_dir: Path) -> Path:
        path = Path(self.stories_dir).expanduser()
        return path if path.is_absolute() else Path(project_dir) / path


def load_config(project_dir: Optional[Path]) -> SyncConfig:
    """Load storysync.yaml and return SyncConfig.

    If project_dir is None or the file doesn't exist, returns defaults.
    """
    if project_dir is None:
        return SyncConfig()

    config_path = Path(project_dir) / CONFIG_FILENAME
    if not config_path.exists():
        return SyncConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return SyncConfig()

    result = validate.check(data, "config")
    if isinstance(result, validate.Invalid):
        logger.warning(f"Ignoring invalid {config_path}: {result.reason}")
        return SyncConfig()

    return apply_overrides(SyncConfig(), data)


def apply_overrides(config: SyncConfig, overrides: dict) -> SyncConfig:
    """Return a copy of config with overrides applied. config itself is untouched."""
    changes = dict(overrides)
    if "state_file" in changes:
        changes["state_file"] = Path(changes["state_file"]).expanduser()
    if "section_aliases" in changes:
        changes["section_aliases"] = MappingProxyType(dict(changes["section_aliases"]))
    if "similarity_floor" in changes:
        changes["similarity_floor"] = float(changes["similarity_floor"])
    return replace(config, **changes)
