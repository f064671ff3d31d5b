from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from .categories import BASE_CATEGORIES, DEFAULT_CATEGORIES
from .fileio import atomic_write_text

logger = logging.getLogger(__name__)

SELECTED_CATEGORIES_KEY = "selected_categories"
DEBUG_MODE_KEY = "debug_mode"
MIGRATION_FLAG_KEY = "did_migrate_from_json_v1"


class SettingsStore:
    """Flat key/value settings persisted as a YAML mapping."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._values = self._read()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key`` and write the file through.

        The in-memory value is kept even when the write fails; the result
        tells the caller whether it reached disk.
        """
        self._values[key] = value
        try:
            atomic_write_text(self.path, yaml.safe_dump(self._values, sort_keys=True))
        except OSError as exc:
            logger.warning("Could not write settings file %s: %s", self.path, exc)
            return False
        return True

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return data


class SearchSettings:
    def __init__(
        self,
        store: SettingsStore,
        selected_categories: Iterable[str],
        debug_mode: bool,
        available: frozenset[str],
    ) -> None:
        self._store = store
        self.available = available
        self._selected = frozenset(selected_categories) & available
        self._debug_mode = debug_mode

    @classmethod
    def load(cls, store: SettingsStore, available: frozenset[str] = BASE_CATEGORIES) -> SearchSettings:
        raw = store.get(SELECTED_CATEGORIES_KEY)
        selected = DEFAULT_CATEGORIES if raw is None else frozenset(str(item) for item in raw)
        return cls(
            store=store,
            selected_categories=selected,
            debug_mode=bool(store.get(DEBUG_MODE_KEY, False)),
            available=available,
        )

    @property
    def selected_categories(self) -> frozenset[str]:
        return self._selected

    @property
    def debug_mode(self) -> bool:
        return self._debug_mode

    def set_selected_categories(self, categories: Iterable[str]) -> bool:
        chosen = frozenset(categories)
        unknown = chosen - self.available
        if unknown:
            raise ValueError(f"Unsupported categories: {', '.join(sorted(unknown))}")
        self._selected = chosen
        return self._store.set(SELECTED_CATEGORIES_KEY, sorted(chosen))

    def set_debug_mode(self, enabled: bool) -> bool:
        self._debug_mode = enabled
        return self._store.set(DEBUG_MODE_KEY, enabled)
