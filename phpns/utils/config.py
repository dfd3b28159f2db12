import copy
import os
from pathlib import Path
from typing import Any

import tomli
import tomli_w

PROJECT_CONFIG_NAME = ".phpns.toml"


def get_cache_dir() -> Path:
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        base = Path(xdg)
    else:
        base = Path.home() / ".cache"
    return base / "phpns"


def get_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        base = Path(xdg)
    else:
        base = Path.home() / ".config"
    return base / "phpns"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def get_log_dir() -> Path:
    return get_cache_dir() / "log"


DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "info",
    },
    "project": {
        "source_roots": ["src", "app", "lib", "classes"],
        "excluded_dirs": ["vendor", "node_modules"],
    },
    "resolver": {
        "extra_builtin_classes": [],
    },
    "batch": {
        "recursive": True,
        "preserve_structure": True,
    },
}


def load_config(project_root: Path | None = None) -> dict[str, Any]:
    """Defaults, overridden by the user config file, overridden by `.phpns.toml` in the project."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    paths = [get_config_path()]
    if project_root is not None:
        paths.append(project_root / PROJECT_CONFIG_NAME)

    for config_path in paths:
        if config_path.exists():
            with open(config_path, "rb") as f:
                _merge_config(config, tomli.load(f))

    return config


def save_config(config: dict[str, Any]) -> None:
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)


def _merge_config(base: dict, override: dict) -> None:
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value


PROJECT_MARKERS = [
    "composer.json",
    PROJECT_CONFIG_NAME,
    ".git",
]


def detect_project_root(path: Path) -> Path | None:
    """Detect the PHP project root by walking up from path and finding project markers.

    Returns the deepest (closest to path) directory containing a marker.
    """
    path = path.resolve()
    if path.is_file():
        path = path.parent

    current = path
    while current != current.parent:
        for marker in PROJECT_MARKERS:
            if (current / marker).exists():
                return current
        current = current.parent

    return None
