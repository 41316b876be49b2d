"""Configuration loader for scenery.

Sources are layered, later ones overriding earlier ones:

1. Built-in defaults
2. ``~/.config/scenery/config.yaml``
3. The nearest project file (``.scenery.yaml`` and friends) above the cwd
4. The file named by ``SCENERY_CONFIG``
5. An explicit ``--config`` file
"""

from __future__ import annotations

import os
from functools import reduce
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml
from pydantic import ValidationError

from scenery.config.schema import SceneryConfig


CONFIG_FILENAMES = (".scenery.yaml", ".scenery.yml", "scenery.yaml", "scenery.yml")
CONFIG_ENV_VAR = "SCENERY_CONFIG"
GLOBAL_CONFIG_FILE = Path.home() / ".config" / "scenery" / "config.yaml"


class ConfigFileError(ValueError):
    """A configuration file could not be read or validated."""

    def __init__(self, path: Optional[Path], reason: str):
        super().__init__(f"{path or '<merged config>'}: {reason}")
        self.path = path


def _parents(start: Path) -> Iterator[Path]:
    current = start.resolve()
    yield current
    yield from current.parents


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest project config file at or above ``start_dir``."""
    for directory in _parents(start_dir or Path.cwd()):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def config_sources(
    config_file: Optional[Path] = None,
    project_dir: Optional[Path] = None,
    global_file: Optional[Path] = None,
) -> List[Path]:
    """List the existing config files in merge order."""
    env_file = os.environ.get(CONFIG_ENV_VAR)
    candidates = [
        global_file or GLOBAL_CONFIG_FILE,
        find_config_file(project_dir),
        Path(env_file) if env_file else None,
        config_file,
    ]
    sources: List[Path] = []
    for path in candidates:
        if path is not None and path.is_file() and path not in sources:
            sources.append(path)
    return sources


def read_config_file(path: Path) -> Dict[str, Any]:
    """Parse one YAML file into a mapping (empty files give ``{}``)."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigFileError(path, f"invalid YAML ({e})") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(path, f"expected a mapping, got {type(data).__name__}")
    return data


def load_config(
    config_file: Optional[Path] = None,
    project_dir: Optional[Path] = None,
    global_file: Optional[Path] = None,
) -> SceneryConfig:
    """Merge every config source and validate the result."""
    sources = config_sources(config_file, project_dir, global_file)
    merged = reduce(_deep_merge, (read_config_file(p) for p in sources), {})

    try:
        return SceneryConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigFileError(sources[-1] if sources else None, str(e)) from e


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def save_config(config: SceneryConfig, path: Path) -> None:
    """Write the non-default settings of ``config`` as YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(
            config.model_dump(exclude_defaults=True),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        ),
        encoding="utf-8",
    )
