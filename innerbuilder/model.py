"""
model.py

Responsibility: Typed descriptors shared by synthesis and merge.

- `TypeRef` / `parse_type`: semantic view of a Java type as written in source
- `FieldSpec` / `ClassRef`: immutable description of the target class's fields
- `MemberSpec` / `SynthesisPlan`: what synthesis decided must exist in the source

Nothing here touches the syntax tree; these values are computed once and never
mutated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

PRIMITIVE_TYPES = frozenset({"boolean", "byte", "char", "double", "float", "int", "long", "short"})

_ANNOTATION_RE = re.compile(r"@[\w.]+(?:\s*\([^()]*\))?\s*")
_QUALIFIER_RE = re.compile(r"\b(?:[a-z_$][\w$]*\.)+(?=[A-Z_$])")


class TypeKind(Enum):
    PRIMITIVE = "primitive"
    COLLECTION = "collection"
    LIST = "list"
    SET = "set"
    MAP = "map"
    REFERENCE = "reference"


_CONTAINERS = {
    "java.util.Collection": TypeKind.COLLECTION,
    "java.util.List": TypeKind.LIST,
    "java.util.Set": TypeKind.SET,
    "java.util.Map": TypeKind.MAP,
}


class NameResolver(Protocol):
    def resolve(self, simple_name: str) -> str | None: ...


@dataclass(frozen=True)
class TypeRef:
    """A Java type as written, classified for template selection."""

    text: str
    kind: TypeKind = TypeKind.REFERENCE
    element: "TypeRef | None" = None
    arguments: tuple[str, ...] = ()

    @property
    def is_primitive(self) -> bool:
        return self.kind is TypeKind.PRIMITIVE

    @property
    def is_container(self) -> bool:
        return self.kind in (TypeKind.COLLECTION, TypeKind.LIST, TypeKind.SET, TypeKind.MAP)

    @property
    def is_iterable_container(self) -> bool:
        """Collection, List or Set: the kinds that accept `addAll`."""
        return self.kind in (TypeKind.COLLECTION, TypeKind.LIST, TypeKind.SET)


def strip_annotations(text: str) -> str:
    return _ANNOTATION_RE.sub("", text).strip()


def _split_top_level(text: str, separator: str = ",") -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def _wildcard_bound(argument: str) -> str:
    arg = argument.strip()
    if arg == "?":
        return "Object"
    for keyword in ("? extends ", "? super "):
        if arg.startswith(keyword):
            return arg[len(keyword) :].strip()
    return arg


def _container_kind(base: str, resolver: NameResolver | None) -> TypeKind | None:
    if "." in base:
        return _CONTAINERS.get(base)
    qualified = f"java.util.{base}"
    if qualified not in _CONTAINERS:
        return None
    bound = resolver.resolve(base) if resolver is not None else None
    # A simple name counts as java.util unless an import binds it elsewhere.
    if bound is not None and bound != qualified:
        return None
    return _CONTAINERS[qualified]


def parse_type(text: str, resolver: NameResolver | None = None) -> TypeRef:
    """
    Classify a type as written in source.

    - primitives (without array dimensions) -> PRIMITIVE
    - java.util Collection/List/Set/Map -> container kinds, element type parsed
    - raw containers keep their kind with `element=None`
    - everything else -> REFERENCE
    """
    written = " ".join(strip_annotations(text).split())
    if written in PRIMITIVE_TYPES:
        return TypeRef(text=written, kind=TypeKind.PRIMITIVE)

    open_idx = written.find("<")
    base = written if open_idx == -1 else written[:open_idx].strip()
    if open_idx != -1 and not written.endswith(">"):
        # Arrays of generics and nested types such as Map<K, V>.Entry.
        return TypeRef(text=written)

    kind = _container_kind(base, resolver)
    if kind is None:
        return TypeRef(text=written)
    if open_idx == -1:
        return TypeRef(text=written, kind=kind)

    arguments = tuple(_split_top_level(written[open_idx + 1 : -1]))
    element = None
    if kind is not TypeKind.MAP and len(arguments) == 1:
        element = parse_type(_wildcard_bound(arguments[0]), resolver)
    return TypeRef(text=written, kind=kind, element=element, arguments=arguments)


def _strip_generics(text: str) -> str:
    out: list[str] = []
    depth = 0
    for ch in text:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif depth == 0:
            out.append(ch)
    return "".join(out)


def erase_type(text: str) -> str:
    """
    Erasure used for signature matching: no annotations, generics, package
    qualifiers or whitespace; varargs become arrays.
    """
    erased = "".join(_strip_generics(strip_annotations(text)).split())
    erased = erased.replace("...", "[]")
    dims_idx = erased.find("[")
    base, dims = (erased, "") if dims_idx == -1 else (erased[:dims_idx], erased[dims_idx:])
    return base.rsplit(".", 1)[-1] + dims


def presentable_type(text: str) -> str:
    """Short form used to decide whether two field types are the same."""
    return "".join(_QUALIFIER_RE.sub("", strip_annotations(text)).split())


def capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


@dataclass(frozen=True)
class ClassRef:
    """Query surface of the target class needed by synthesis."""

    name: str
    # (method name, erased parameter type) of every single-argument method.
    setters: frozenset[tuple[str, str]] = frozenset()

    def find_setter(self, spec: "FieldSpec") -> str | None:
        name = f"set{capitalize(spec.name)}"
        if (name, erase_type(spec.type.text)) in self.setters:
            return name
        return None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: TypeRef
    owner: ClassRef
    is_final: bool = False
    annotations: frozenset[str] = frozenset()

    def has_any_annotation(self, qualified_names: frozenset[str]) -> bool:
        return bool(self.annotations & qualified_names)


class MemberKind(Enum):
    FIELD = "field"
    CONSTRUCTOR = "constructor"
    METHOD = "method"


class Owner(Enum):
    TARGET = "target"
    BUILDER = "builder"


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    type: str
    annotations: tuple[str, ...] = ()
    varargs: bool = False


@dataclass(frozen=True)
class AnnotationSpec:
    """A class-level annotation and the attributes it must carry."""

    name: str
    arguments: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class MemberSpec:
    """
    One member the plan requires.

    `replace` marks members regenerated on every run; `chain` names the
    placement sequence (None inserts at the end of the owning class).
    """

    kind: MemberKind
    owner: Owner
    name: str
    template: str
    params: Mapping[str, Any] = field(default_factory=dict)
    parameters: tuple[ParameterSpec, ...] = ()
    doc: tuple[str, ...] | None = None
    replace: bool = False
    chain: str | None = None
    final: bool = False

    def context(self) -> dict[str, Any]:
        """Template context: the member's identity plus its body parameters."""
        return {
            "name": self.name,
            "parameters": list(self.parameters),
            "doc": list(self.doc) if self.doc else None,
            **self.params,
        }


@dataclass(frozen=True)
class SynthesisPlan:
    target_name: str
    builder_name: str
    builder_fields: tuple[MemberSpec, ...]
    target_constructor: MemberSpec
    builder_constructor: MemberSpec
    build_method: MemberSpec
    new_builder_method: MemberSpec | None = None
    copy_member: MemberSpec | None = None
    setters: tuple[MemberSpec, ...] = ()
    builder_doc: tuple[str, ...] | None = None
    builder_annotations: tuple[AnnotationSpec, ...] = ()
    target_annotations: tuple[AnnotationSpec, ...] = ()

    def members(self) -> list[MemberSpec]:
        """Members in application order."""
        ordered: list[MemberSpec] = [self.target_constructor, *self.builder_fields]
        if self.new_builder_method is not None:
            ordered.append(self.new_builder_method)
        ordered.append(self.builder_constructor)
        if self.copy_member is not None:
            ordered.append(self.copy_member)
        ordered.extend(self.setters)
        ordered.append(self.build_method)
        return ordered


__all__ = [
    "AnnotationSpec",
    "ClassRef",
    "FieldSpec",
    "MemberKind",
    "MemberSpec",
    "NameResolver",
    "Owner",
    "ParameterSpec",
    "PRIMITIVE_TYPES",
    "SynthesisPlan",
    "TypeKind",
    "TypeRef",
    "capitalize",
    "erase_type",
    "parse_type",
    "presentable_type",
    "strip_annotations",
]
