"""
options.py

Responsibility: The fixed set of boolean generation options and the immutable
snapshot of which ones are enabled for a run.

Every option has a stable identifier (`Option.value`) and a namespaced
preference key (`GenerateInnerBuilder.<identifier>`). Options are read once per
run; synthesis only ever sees an `OptionSet`, never the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol

PREFERENCE_PREFIX = "GenerateInnerBuilder"


class Option(Enum):
    FINAL_SETTERS = "finalSetters"
    NEW_BUILDER_METHOD = "newBuilderMethod"
    COPY_CONSTRUCTOR = "copyConstructor"
    WITH_NOTATION = "withNotation"
    JSR305_ANNOTATIONS = "useJSR305Annotations"
    FINDBUGS_ANNOTATION = "useFindbugsAnnotation"
    WITH_JAVADOC = "withJavadoc"
    IMMUTABLE_COLLECTIONS = "immutableCollections"
    VARARGS_OVERLOADS = "createVarargsOverloads"
    JACKSON_ANNOTATIONS = "useJacksonAnnotations"
    FIELD_NAMES = "fieldNames"

    @property
    def preference_key(self) -> str:
        return f"{PREFERENCE_PREFIX}.{self.value}"

    @classmethod
    def from_name(cls, name: str) -> "Option":
        """
        Look up an option by identifier (`newBuilderMethod`), preference key
        (`GenerateInnerBuilder.newBuilderMethod`) or member name (`NEW_BUILDER_METHOD`).
        """
        key = name.strip()
        if key.startswith(f"{PREFERENCE_PREFIX}."):
            key = key[len(PREFERENCE_PREFIX) + 1 :]
        for option in cls:
            if key == option.value or key.upper() == option.name:
                return option
        raise ValueError(f"Unknown option: {name}")


class BooleanStore(Protocol):
    def get_boolean(self, key: str, default: bool = False) -> bool: ...


@dataclass(frozen=True)
class OptionSet:
    """Read-only set of enabled options."""

    enabled: frozenset[Option] = frozenset()

    @classmethod
    def of(cls, *options: Option) -> "OptionSet":
        return cls(frozenset(options))

    @classmethod
    def from_store(cls, store: BooleanStore) -> "OptionSet":
        # One query per recognised option; unknown keys in the store are ignored.
        return cls(frozenset(option for option in Option if store.get_boolean(option.preference_key, False)))

    def __contains__(self, option: object) -> bool:
        return option in self.enabled

    def __iter__(self):
        return iter(sorted(self.enabled, key=lambda option: list(Option).index(option)))

    def __len__(self) -> int:
        return len(self.enabled)

    def with_overrides(
        self,
        *,
        enable: Iterable[Option] = (),
        disable: Iterable[Option] = (),
    ) -> "OptionSet":
        return OptionSet((self.enabled | frozenset(enable)) - frozenset(disable))


__all__ = ["Option", "OptionSet", "PREFERENCE_PREFIX"]
