"""
synthesis.py

Responsibility: Compute, as a pure function, every builder member that must
exist for a target class, a field selection and an option set.

The result is a `SynthesisPlan`; nothing here reads or writes source text.
Members are described semantically (names, parameter lists, body parameters,
doc lines) and rendered later by `renderer.py`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from innerbuilder.model import (
    AnnotationSpec,
    ClassRef,
    FieldSpec,
    MemberKind,
    MemberSpec,
    Owner,
    ParameterSpec,
    SynthesisPlan,
    TypeKind,
    TypeRef,
    capitalize,
)
from innerbuilder.options import Option, OptionSet

BUILDER_CLASS_NAME = "Builder"
BUILDER_SETTER_DEFAULT_PARAMETER_NAME = "val"
BUILDER_SETTER_ALTERNATIVE_PARAMETER_NAME = "value"
NEW_BUILDER_METHOD_NAME = "newBuilder"
DEFAULT_LANGUAGE_LEVEL = 8

JSR305_NONNULL = "javax.annotation.Nonnull"
JSR303_NOTNULL = "javax.validation.constraints.NotNull"
FINDBUGS_NONNULL = "edu.umd.cs.findbugs.annotations.NonNull"
JACKSON_JSON_IGNORE = "com.fasterxml.jackson.annotation.JsonIgnore"
JACKSON_JSON_SETTER = "com.fasterxml.jackson.annotation.JsonSetter"
JACKSON_JSON_POJO_BUILDER = "com.fasterxml.jackson.databind.annotation.JsonPOJOBuilder"
JACKSON_JSON_DESERIALIZE = "com.fasterxml.jackson.databind.annotation.JsonDeserialize"

# Any of these on a target field makes the generated constructor null-check it.
NULLABILITY_ANNOTATIONS = frozenset({JSR305_NONNULL, FINDBUGS_NONNULL, JSR303_NOTNULL})

FIELD_CHAIN = "fields"
METHOD_CHAIN = "methods"

_UNMODIFIABLE = {
    TypeKind.COLLECTION: ("unmodifiableCollection", "emptyList"),
    TypeKind.LIST: ("unmodifiableList", "emptyList"),
    TypeKind.SET: ("unmodifiableSet", "emptySet"),
    TypeKind.MAP: ("unmodifiableMap", "emptyMap"),
}

_COPY_TYPES = {
    TypeKind.COLLECTION: "java.util.ArrayList",
    TypeKind.LIST: "java.util.ArrayList",
    TypeKind.SET: "java.util.HashSet",
    TypeKind.MAP: "java.util.LinkedHashMap",
}


class PreconditionError(RuntimeError):
    pass


@dataclass(frozen=True)
class FieldAssignment:
    """One statement group of the target class's private constructor."""

    name: str
    null_check: bool = False
    setter: str | None = None
    wrapper: str | None = None
    empty: str | None = None
    type_witness: str = ""


@dataclass(frozen=True)
class CopyAssignment:
    name: str
    copy_type: str | None = None
    type_arguments: str = ""


def is_final_eligible(spec: FieldSpec, options: OptionSet) -> bool:
    return spec.is_final and Option.FINAL_SETTERS not in options


def partition_fields(fields: Sequence[FieldSpec], options: OptionSet) -> tuple[list[FieldSpec], list[FieldSpec]]:
    """Split into (constructor fields, setter fields), keeping selection order in each."""
    final_fields: list[FieldSpec] = []
    setter_fields: list[FieldSpec] = []
    for spec in fields:
        (final_fields if is_final_eligible(spec, options) else setter_fields).append(spec)
    return final_fields, setter_fields


def nonnull_annotations(options: OptionSet) -> tuple[str, ...]:
    names: list[str] = []
    if Option.JSR305_ANNOTATIONS in options:
        names.append(JSR305_NONNULL)
    if Option.FINDBUGS_ANNOTATION in options:
        names.append(FINDBUGS_NONNULL)
    return tuple(names)


def setter_name(field_name: str, options: OptionSet) -> str:
    if Option.WITH_NOTATION in options:
        return f"with{capitalize(field_name)}"
    return field_name


def placeholder_parameter_name(field_name: str) -> str:
    if field_name != BUILDER_SETTER_DEFAULT_PARAMETER_NAME:
        return BUILDER_SETTER_DEFAULT_PARAMETER_NAME
    return BUILDER_SETTER_ALTERNATIVE_PARAMETER_NAME


def setter_parameter_name(field_name: str, options: OptionSet) -> str:
    if Option.FIELD_NAMES in options:
        return field_name
    return placeholder_parameter_name(field_name)


def _type_arguments(type_ref: TypeRef, diamonds: bool) -> str:
    if diamonds:
        return "<>"
    if type_ref.element is not None:
        return f"<{type_ref.element.text}>"
    return f"<{', '.join(type_ref.arguments)}>"


def _final_parameters(final_fields: Sequence[FieldSpec], nonnull: tuple[str, ...]) -> tuple[ParameterSpec, ...]:
    return tuple(
        ParameterSpec(name=f.name, type=f.type.text, annotations=() if f.type.is_primitive else nonnull)
        for f in final_fields
    )


def _builder_field(spec: FieldSpec, final: bool) -> MemberSpec:
    return MemberSpec(
        kind=MemberKind.FIELD,
        owner=Owner.BUILDER,
        name=spec.name,
        template="field",
        params={"type": spec.type.text, "final": final},
        chain=FIELD_CHAIN,
        final=final,
    )


def _assignment(spec: FieldSpec, options: OptionSet, diamonds: bool) -> FieldAssignment:
    null_check = spec.has_any_annotation(NULLABILITY_ANNOTATIONS)
    setter = None if spec.is_final else spec.owner.find_setter(spec)
    if setter is not None:
        return FieldAssignment(name=spec.name, null_check=null_check, setter=setter)
    if Option.IMMUTABLE_COLLECTIONS in options and spec.type.is_container and spec.type.arguments:
        wrapper, empty = _UNMODIFIABLE[spec.type.kind]
        witness = "" if diamonds else _type_arguments(spec.type, diamonds=False)
        return FieldAssignment(
            name=spec.name,
            null_check=null_check,
            wrapper=wrapper,
            empty=empty,
            type_witness=witness,
        )
    return FieldAssignment(name=spec.name, null_check=null_check)


def _target_constructor(
    target: ClassRef, builder_name: str, fields: Sequence[FieldSpec], options: OptionSet, diamonds: bool
) -> MemberSpec:
    return MemberSpec(
        kind=MemberKind.CONSTRUCTOR,
        owner=Owner.TARGET,
        name=target.name,
        template="target_constructor",
        params={"assignments": [_assignment(f, options, diamonds) for f in fields]},
        parameters=(ParameterSpec(name="builder", type=builder_name),),
        replace=True,
    )


def _new_builder_method(
    builder_name: str, final_fields: Sequence[FieldSpec], nonnull: tuple[str, ...]
) -> MemberSpec:
    return MemberSpec(
        kind=MemberKind.METHOD,
        owner=Owner.TARGET,
        name=NEW_BUILDER_METHOD_NAME,
        template="new_builder_method",
        params={"builder_name": builder_name, "arguments": [f.name for f in final_fields]},
        parameters=_final_parameters(final_fields, nonnull),
    )


def _builder_constructor(
    builder_name: str, final_fields: Sequence[FieldSpec], options: OptionSet, nonnull: tuple[str, ...]
) -> MemberSpec:
    visibility = "private" if Option.NEW_BUILDER_METHOD in options else "public"
    return MemberSpec(
        kind=MemberKind.CONSTRUCTOR,
        owner=Owner.BUILDER,
        name=builder_name,
        template="builder_constructor",
        params={"visibility": visibility},
        parameters=_final_parameters(final_fields, nonnull),
    )


def _copy(spec: FieldSpec, diamonds: bool) -> CopyAssignment:
    if spec.type.is_container and spec.type.arguments:
        return CopyAssignment(
            name=spec.name,
            copy_type=_COPY_TYPES[spec.type.kind],
            type_arguments=_type_arguments(spec.type, diamonds),
        )
    return CopyAssignment(name=spec.name)


def _copy_member(
    target: ClassRef,
    builder_name: str,
    fields: Sequence[FieldSpec],
    final_fields: Sequence[FieldSpec],
    setter_fields: Sequence[FieldSpec],
    options: OptionSet,
    nonnull: tuple[str, ...],
    diamonds: bool,
) -> MemberSpec:
    parameters = (ParameterSpec(name="copy", type=target.name, annotations=nonnull),)
    if Option.NEW_BUILDER_METHOD in options:
        return MemberSpec(
            kind=MemberKind.METHOD,
            owner=Owner.TARGET,
            name=NEW_BUILDER_METHOD_NAME,
            template="copy_builder_method",
            params={
                "builder_name": builder_name,
                "arguments": [f"copy.{f.name}" for f in final_fields],
                "copies": [_copy(f, diamonds) for f in setter_fields],
            },
            parameters=parameters,
            replace=True,
        )
    # Final builder fields must be assigned by every constructor, so the copy
    # constructor copies the whole selection.
    return MemberSpec(
        kind=MemberKind.CONSTRUCTOR,
        owner=Owner.BUILDER,
        name=builder_name,
        template="copy_constructor",
        params={"copies": [_copy(f, diamonds) for f in fields]},
        parameters=parameters,
        replace=True,
    )


def _setter_doc(field_name: str, parameter_name: str) -> tuple[str, ...]:
    return (
        f"Sets the {{@code {field_name}}} and returns a reference to this Builder "
        "so that the methods can be chained together.",
        f"@param {parameter_name} the {{@code {field_name}}} to set",
        "@return a reference to this Builder",
    )


def wants_varargs(spec: FieldSpec, options: OptionSet) -> bool:
    return Option.VARARGS_OVERLOADS in options and spec.type.is_iterable_container


def _varargs_setter(spec: FieldSpec, builder_name: str, options: OptionSet, diamonds: bool) -> MemberSpec:
    parameter_name = placeholder_parameter_name(spec.name)
    element = spec.type.element
    params = {
        "builder_name": builder_name,
        "field_name": spec.name,
        "parameter_name": parameter_name,
        "collection_type": "java.util.HashSet" if spec.type.kind is TypeKind.SET else "java.util.ArrayList",
        "annotations": [JACKSON_JSON_IGNORE] if Option.JACKSON_ANNOTATIONS in options else [],
    }
    if element is not None:
        # Raw containers leave these out; rendering then fails on the missing element type.
        params["element_type"] = element.text
        params["type_arguments"] = "<>" if diamonds else f"<{element.text}>"
    return MemberSpec(
        kind=MemberKind.METHOD,
        owner=Owner.BUILDER,
        name=setter_name(spec.name, options),
        template="varargs_setter",
        params=params,
        parameters=(ParameterSpec(name=parameter_name, type=element.text if element else "", varargs=True),),
        doc=_setter_doc(spec.name, parameter_name) if Option.WITH_JAVADOC in options else None,
        chain=METHOD_CHAIN,
    )


def _setter(spec: FieldSpec, builder_name: str, options: OptionSet, nonnull: tuple[str, ...]) -> MemberSpec:
    parameter_name = setter_parameter_name(spec.name, options)
    annotations = list(nonnull)
    if Option.JACKSON_ANNOTATIONS in options:
        annotations.append(JACKSON_JSON_SETTER)
    target = f"this.{spec.name}" if Option.FIELD_NAMES in options else spec.name
    return MemberSpec(
        kind=MemberKind.METHOD,
        owner=Owner.BUILDER,
        name=setter_name(spec.name, options),
        template="setter",
        params={"builder_name": builder_name, "annotations": annotations, "target": target},
        parameters=(
            ParameterSpec(
                name=parameter_name,
                type=spec.type.text,
                annotations=() if spec.type.is_primitive else nonnull,
            ),
        ),
        doc=_setter_doc(spec.name, parameter_name) if Option.WITH_JAVADOC in options else None,
        chain=METHOD_CHAIN,
    )


def _build_method(target: ClassRef, builder_name: str, options: OptionSet, nonnull: tuple[str, ...]) -> MemberSpec:
    doc = None
    if Option.WITH_JAVADOC in options:
        doc = (
            f"Returns a {{@code {target.name}}} built from the parameters previously set.",
            "",
            f"@return a {{@code {target.name}}} built with parameters of this "
            f"{{@code {target.name}.{builder_name}}}",
        )
    return MemberSpec(
        kind=MemberKind.METHOD,
        owner=Owner.BUILDER,
        name="build",
        template="build_method",
        params={"target_name": target.name, "annotations": list(nonnull)},
        doc=doc,
        chain=METHOD_CHAIN,
    )


def _jackson_annotations(
    target: ClassRef, builder_name: str, options: OptionSet
) -> tuple[tuple[AnnotationSpec, ...], tuple[AnnotationSpec, ...]]:
    if Option.JACKSON_ANNOTATIONS not in options:
        return (), ()
    prefix = "with" if Option.WITH_NOTATION in options else ""
    builder_annotations = (AnnotationSpec(JACKSON_JSON_POJO_BUILDER, (("withPrefix", f'"{prefix}"'),)),)
    target_annotations = (
        AnnotationSpec(JACKSON_JSON_DESERIALIZE, (("builder", f"{target.name}.{builder_name}.class"),)),
    )
    return builder_annotations, target_annotations


def synthesize(
    target: ClassRef | None,
    fields: Sequence[FieldSpec],
    options: OptionSet,
    *,
    builder_name: str = BUILDER_CLASS_NAME,
    language_level: int = DEFAULT_LANGUAGE_LEVEL,
) -> SynthesisPlan:
    """
    Compute the full set of builder members for `fields` (in selection order).

    Raises PreconditionError when the target is unresolved or nothing is selected.
    """
    if target is None:
        raise PreconditionError("Target class could not be resolved.")
    if not fields:
        raise PreconditionError("No fields selected; a builder needs at least one field.")

    diamonds = language_level >= 7
    nonnull = nonnull_annotations(options)
    final_fields, setter_fields = partition_fields(fields, options)
    final_names = {f.name for f in final_fields}

    setters: list[MemberSpec] = []
    for spec in setter_fields:
        if wants_varargs(spec, options):
            setters.append(_varargs_setter(spec, builder_name, options, diamonds))
        setters.append(_setter(spec, builder_name, options, nonnull))

    builder_annotations, target_annotations = _jackson_annotations(target, builder_name, options)
    builder_doc = None
    if Option.WITH_JAVADOC in options:
        builder_doc = (f"{{@code {target.name}}} builder static inner class.",)

    return SynthesisPlan(
        target_name=target.name,
        builder_name=builder_name,
        builder_fields=tuple(_builder_field(f, f.name in final_names) for f in fields),
        target_constructor=_target_constructor(target, builder_name, fields, options, diamonds),
        new_builder_method=(
            _new_builder_method(builder_name, final_fields, nonnull) if Option.NEW_BUILDER_METHOD in options else None
        ),
        builder_constructor=_builder_constructor(builder_name, final_fields, options, nonnull),
        copy_member=(
            _copy_member(target, builder_name, fields, final_fields, setter_fields, options, nonnull, diamonds)
            if Option.COPY_CONSTRUCTOR in options
            else None
        ),
        setters=tuple(setters),
        build_method=_build_method(target, builder_name, options, nonnull),
        builder_doc=builder_doc,
        builder_annotations=builder_annotations,
        target_annotations=target_annotations,
    )


__all__ = [
    "BUILDER_CLASS_NAME",
    "CopyAssignment",
    "DEFAULT_LANGUAGE_LEVEL",
    "FieldAssignment",
    "NULLABILITY_ANNOTATIONS",
    "PreconditionError",
    "is_final_eligible",
    "partition_fields",
    "synthesize",
    "wants_varargs",
]
