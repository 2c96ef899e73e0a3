"""
generator.py

Responsibility: Run the whole pipeline for one Java source text.

High-level flow:
1) Parse the source and resolve the target class
2) Collect candidate fields and apply the caller's selection (order preserved)
3) Synthesize the plan from the fields and the option snapshot
4) Merge the plan into the tree, shorten references
5) Print the file

Nothing is written here: the caller gets the new text and decides what to do
with it. Any exception before step 5 therefore leaves the caller's file as it
was.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from innerbuilder.logging import get_logger
from innerbuilder.model import ClassRef, FieldSpec, SynthesisPlan, erase_type, parse_type
from innerbuilder.options import OptionSet
from innerbuilder.parser import parse_source
from innerbuilder.merge import BuilderMerger
from innerbuilder.references import shorten_class_references
from innerbuilder.renderer import MemberRenderer
from innerbuilder.synthesis import (
    BUILDER_CLASS_NAME,
    DEFAULT_LANGUAGE_LEVEL,
    NULLABILITY_ANNOTATIONS,
    PreconditionError,
    synthesize,
)
from innerbuilder.tree import ClassNode, FieldNode, ImportTable, JavaFile

log = get_logger("generator")


@dataclass(frozen=True)
class GenerationResult:
    text: str
    changed: bool
    target: str
    fields: tuple[str, ...]
    plan: SynthesisPlan


def resolve_target_class(java_file: JavaFile, name: str | None = None) -> ClassNode | None:
    """The class named `name` anywhere in the file, else the first top-level class."""
    if name:
        return java_file.find_class(name)
    return java_file.classes[0] if java_file.classes else None


def is_candidate(field: FieldNode) -> bool:
    # Static fields and initialised finals cannot be set through a builder.
    if field.is_static:
        return False
    return not (field.is_final and field.initializer is not None)


def _qualify_annotation(name: str, imports: ImportTable) -> str:
    for qualified in NULLABILITY_ANNOTATIONS:
        if imports.matches(name, qualified):
            return qualified
    if "." in name:
        return name
    return imports.resolve(name) or name


def class_ref(cls: ClassNode) -> ClassRef:
    setters = frozenset(
        (method.name, erase_type(method.parameters[0].type))
        for method in cls.methods()
        if len(method.parameters) == 1 and not method.parameters[0].varargs
    )
    return ClassRef(name=cls.name, setters=setters)


def collect_fields(cls: ClassNode, imports: ImportTable) -> list[FieldSpec]:
    """Builder candidates of `cls`, in declaration order."""
    owner = class_ref(cls)
    return [
        FieldSpec(
            name=field.name,
            type=parse_type(field.type, imports),
            owner=owner,
            is_final=field.is_final,
            annotations=frozenset(_qualify_annotation(a.name, imports) for a in field.annotations),
        )
        for field in cls.fields()
        if is_candidate(field)
    ]


def select_fields(candidates: Sequence[FieldSpec], names: Sequence[str] | None) -> list[FieldSpec]:
    """
    Apply a selection by name, in the caller's order. `None` selects every
    candidate in declaration order.
    """
    if names is None:
        return list(candidates)
    by_name = {spec.name: spec for spec in candidates}
    unknown = [name for name in names if name not in by_name]
    if unknown:
        raise PreconditionError(f"Not a builder candidate field: {', '.join(unknown)}")
    selected: list[FieldSpec] = []
    for name in names:
        if by_name[name] not in selected:
            selected.append(by_name[name])
    return selected


def generate_builder(
    source: str,
    options: OptionSet,
    *,
    class_name: str | None = None,
    field_names: Sequence[str] | None = None,
    language_level: int = DEFAULT_LANGUAGE_LEVEL,
    renderer: MemberRenderer | None = None,
) -> GenerationResult:
    java_file = parse_source(source)
    target = resolve_target_class(java_file, class_name)
    if target is None:
        raise PreconditionError(f"Target class could not be resolved: {class_name or '(first class)'}")
    if target.name == BUILDER_CLASS_NAME:
        raise PreconditionError(f"Refusing to generate a builder inside a class named {BUILDER_CLASS_NAME}")

    fields = select_fields(collect_fields(target, java_file.imports), field_names)
    plan = synthesize(class_ref(target), fields, options, language_level=language_level)
    log.debug("Options: %s", ", ".join(option.value for option in options) or "(none)")

    builder = BuilderMerger(target, java_file.imports, renderer).apply(plan)
    shorten_class_references(java_file, target)
    text = java_file.render()

    log.info(
        "Generated %s.%s for %d field(s): %s",
        target.name,
        builder.name,
        len(fields),
        ", ".join(spec.name for spec in fields),
    )
    return GenerationResult(
        text=text,
        changed=text != source,
        target=target.name,
        fields=tuple(spec.name for spec in fields),
        plan=plan,
    )


__all__ = [
    "GenerationResult",
    "class_ref",
    "collect_fields",
    "generate_builder",
    "is_candidate",
    "resolve_target_class",
    "select_fields",
]
