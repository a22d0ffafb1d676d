"""Key-value stores for user preferences (favorites, profile)."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from recipe_data.errors import RecipeDataError

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryPreferenceStore:
    """Dict-backed store; values are deep-copied in both directions."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return copy.deepcopy(self._values[key])

    def set(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)


class JsonFilePreferenceStore:
    """Preferences kept as one JSON object in a file.

    The file is read on every ``get`` and rewritten on every ``set``; a
    missing file reads as empty.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        values = self._load()
        values[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + '.tmp')
        tmp_path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding='utf-8')
        tmp_path.replace(self._path)
        logger.debug('Saved preference %r to %s', key, self._path)

    def _load(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return {}
        try:
            values = json.loads(raw) if raw.strip() else {}
        except ValueError as exc:
            raise RecipeDataError(f'Corrupt preferences file {self._path}: {exc}') from exc
        if not isinstance(values, dict):
            raise RecipeDataError(f'Preferences file {self._path} must hold a JSON object')
        return values
