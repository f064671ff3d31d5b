"""Paths and search tuning for poi-log."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import yaml

DATA_ROOT = Path(os.environ.get("POI_LOG_DATA_ROOT", str(Path.home() / ".local" / "share" / "poi-log")))

SEARCH_RADIUS_M = 8040.67
MIN_SEARCH_DISTANCE_M = 45.7  # ~150 ft
MAX_RESULTS = 10
REFRESH_TIMEOUT_S = 10.0


class ConfigError(ValueError):
    """Raised when a config file cannot be used."""


@dataclass(frozen=True)
class SearchConfig:
    radius_m: float = SEARCH_RADIUS_M
    min_search_distance_m: float = MIN_SEARCH_DISTANCE_M
    max_results: int | None = MAX_RESULTS
    refresh_timeout_s: float = REFRESH_TIMEOUT_S


@dataclass(frozen=True)
class AppConfig:
    data_root: Path
    store_path: Path
    legacy_path: Path
    settings_path: Path
    export_dir: Path
    search: SearchConfig = field(default_factory=SearchConfig)

    @classmethod
    def from_env(cls, data_root: Path | None = None) -> AppConfig:
        root = data_root or Path(os.environ.get("POI_LOG_DATA_ROOT", str(DATA_ROOT)))
        return cls(
            data_root=root,
            store_path=_env_path("POI_LOG_STORE_PATH", root / "store" / "checkins.json"),
            legacy_path=_env_path("POI_LOG_LEGACY_PATH", root / "checkins.json"),
            settings_path=_env_path("POI_LOG_SETTINGS_PATH", root / "settings.yaml"),
            export_dir=_env_path("POI_LOG_EXPORT_DIR", root / "exports"),
        )


def load_config(path: str | Path | None = None) -> AppConfig:
    """Resolve config from the environment, overlaid with an optional YAML file.

    Paths in the file are expanded with ``~``. When the file sets
    ``data_root``, the other paths default beneath it.
    """
    if path is None:
        return AppConfig.from_env()

    config_path = Path(path).expanduser()
    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Could not read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse config file {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a mapping at the top of {config_path}")

    path_keys = {"data_root", "store_path", "legacy_path", "settings_path", "export_dir"}
    unknown = set(raw) - path_keys - {"search"}
    if unknown:
        raise ConfigError(f"Unknown config keys in {config_path}: {', '.join(sorted(unknown))}")

    data_root = Path(raw["data_root"]).expanduser() if raw.get("data_root") else None
    config = AppConfig.from_env(data_root)

    overrides = {key: Path(str(raw[key])).expanduser() for key in path_keys - {"data_root"} if raw.get(key)}
    config = replace(config, **overrides)

    search_raw = raw.get("search") or {}
    if not isinstance(search_raw, dict):
        raise ConfigError("'search' must be a mapping")
    known_search = {f.name for f in fields(SearchConfig)}
    unknown_search = set(search_raw) - known_search
    if unknown_search:
        raise ConfigError(f"Unknown search keys: {', '.join(sorted(unknown_search))}")
    return replace(config, search=_search_config(search_raw))


def _search_config(raw: dict) -> SearchConfig:
    for key in ("radius_m", "min_search_distance_m", "refresh_timeout_s"):
        if key in raw:
            value = raw[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"search.{key} must be a non-negative number, got {value!r}")
    if "max_results" in raw:
        value = raw["max_results"]
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
            raise ConfigError(f"search.max_results must be a positive integer or null, got {value!r}")
    return SearchConfig(**raw)


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else default
