"""
preferences.py

Responsibility: Load the persisted preference store into a flat, typed mapping.

The store is a YAML file whose top level is a flat mapping of namespaced keys
to booleans, e.g.:

    GenerateInnerBuilder.newBuilderMethod: true
    GenerateInnerBuilder.withJavadoc: "false"

A missing file is an empty store; every key then reads as its default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from innerbuilder.logging import get_logger

DEFAULT_PREFERENCES_FILE = ".innerbuilder.yml"

log = get_logger("preferences")


class PreferenceError(ValueError):
    pass


@dataclass(frozen=True)
class PreferenceStore:
    """Flat key -> bool mapping read from disk."""

    values: dict[str, bool] = field(default_factory=dict)
    source: Path | None = None

    def get_boolean(self, key: str, default: bool = False) -> bool:
        return self.values.get(key, default)


def _coerce_bool(key: str, value: Any) -> bool:
    """
    Accept YAML booleans and the string forms "true"/"false" (case-insensitive).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise PreferenceError(f"Preference `{key}` must be a boolean, got {value!r}.")


def parse_preferences(text: str) -> dict[str, bool]:
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise PreferenceError("Preference store must be a mapping/object at the top level.")

    values: dict[str, bool] = {}
    for raw_key, raw_value in data.items():
        key = str(raw_key).strip()
        if isinstance(raw_value, dict):
            raise PreferenceError(f"Preference store must be flat; `{key}` holds a nested mapping.")
        values[key] = _coerce_bool(key, raw_value)
    return values


def load_preferences(path: str | Path | None = None) -> PreferenceStore:
    """
    Read the preference store at `path` (default: `.innerbuilder.yml` in the
    current directory). A missing file yields an empty store.
    """
    store_path = Path(path) if path is not None else Path(DEFAULT_PREFERENCES_FILE)
    if not store_path.exists():
        log.debug("No preference store at %s; using defaults", store_path)
        return PreferenceStore(source=None)
    if not store_path.is_file():
        raise PreferenceError(f"Preference store is not a file: {store_path}")

    try:
        values = parse_preferences(store_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise PreferenceError(f"Preference store is not valid YAML: {store_path}") from e
    log.debug("Loaded %d preference(s) from %s", len(values), store_path)
    return PreferenceStore(values=values, source=store_path)


__all__ = ["DEFAULT_PREFERENCES_FILE", "PreferenceError", "PreferenceStore", "load_preferences", "parse_preferences"]
