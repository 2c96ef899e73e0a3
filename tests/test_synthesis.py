"""Plan computation, without any source text involved."""

from __future__ import annotations

import inspect

import pytest

from innerbuilder import synthesis
from innerbuilder.model import ClassRef, FieldSpec, MemberKind, Owner, parse_type
from innerbuilder.options import Option, OptionSet
from innerbuilder.synthesis import (
    JACKSON_JSON_DESERIALIZE,
    JACKSON_JSON_IGNORE,
    JACKSON_JSON_POJO_BUILDER,
    JACKSON_JSON_SETTER,
    JSR305_NONNULL,
    FINDBUGS_NONNULL,
    PreconditionError,
    partition_fields,
    synthesize,
)

PERSON = ClassRef(name="Person")


def _field(name: str, type_text: str, *, final: bool = False, owner: ClassRef = PERSON, annotations=()) -> FieldSpec:
    return FieldSpec(
        name=name,
        type=parse_type(type_text),
        owner=owner,
        is_final=final,
        annotations=frozenset(annotations),
    )


ID = _field("id", "String", final=True)
NAME = _field("name", "String")


def test_scenario_final_and_mutable_field() -> None:
    plan = synthesize(PERSON, [ID, NAME], OptionSet())
    assert [(f.name, f.final) for f in plan.builder_fields] == [("id", True), ("name", False)]
    assert plan.builder_constructor.params["visibility"] == "public"
    assert [p.name for p in plan.builder_constructor.parameters] == ["id"]
    (setter,) = plan.setters
    assert setter.name == "name"
    assert setter.parameters[0].name == "val"
    assert setter.parameters[0].type == "String"
    assert plan.build_method.params["target_name"] == "Person"
    assert plan.new_builder_method is None
    assert plan.copy_member is None


def test_scenario_new_builder_method() -> None:
    plan = synthesize(PERSON, [ID, NAME], OptionSet.of(Option.NEW_BUILDER_METHOD))
    assert plan.builder_constructor.params["visibility"] == "private"
    factory = plan.new_builder_method
    assert factory is not None
    assert factory.owner is Owner.TARGET
    assert factory.name == "newBuilder"
    assert [p.name for p in factory.parameters] == ["id"]
    assert factory.params["arguments"] == ["id"]


def test_scenario_varargs_overload() -> None:
    tags = _field("tags", "List<String>")
    plan = synthesize(PERSON, [tags], OptionSet.of(Option.VARARGS_OVERLOADS))
    varargs, plain = plan.setters
    assert varargs.template == "varargs_setter"
    assert varargs.parameters[0].varargs
    assert varargs.params["element_type"] == "String"
    assert varargs.params["parameter_name"] == "val"
    assert varargs.params["collection_type"] == "java.util.ArrayList"
    assert plain.template == "setter"
    assert plain.parameters[0].type == "List<String>"


def test_varargs_applies_to_sets_but_not_maps() -> None:
    names = _field("names", "Set<String>")
    index = _field("index", "Map<String, Integer>")
    plan = synthesize(PERSON, [names, index], OptionSet.of(Option.VARARGS_OVERLOADS))
    assert [s.template for s in plan.setters] == ["varargs_setter", "setter", "setter"]
    assert plan.setters[0].params["collection_type"] == "java.util.HashSet"


def test_no_varargs_without_option() -> None:
    plan = synthesize(PERSON, [_field("tags", "List<String>")], OptionSet())
    assert [s.template for s in plan.setters] == ["setter"]


def test_raw_collection_varargs_omits_element_type() -> None:
    plan = synthesize(PERSON, [_field("tags", "List")], OptionSet.of(Option.VARARGS_OVERLOADS))
    assert "element_type" not in plan.setters[0].params


def test_scenario_immutable_collections() -> None:
    names = _field("names", "Set<String>")
    plan = synthesize(PERSON, [names], OptionSet.of(Option.IMMUTABLE_COLLECTIONS))
    (assignment,) = plan.target_constructor.params["assignments"]
    assert assignment.wrapper == "unmodifiableSet"
    assert assignment.empty == "emptySet"
    assert assignment.type_witness == ""


def test_immutable_collections_before_java7_spell_type_arguments() -> None:
    index = _field("index", "Map<String, Integer>")
    plan = synthesize(PERSON, [index], OptionSet.of(Option.IMMUTABLE_COLLECTIONS), language_level=6)
    (assignment,) = plan.target_constructor.params["assignments"]
    assert assignment.type_witness == "<String, Integer>"


def test_final_setters_turns_every_field_into_a_setter() -> None:
    options = OptionSet.of(Option.FINAL_SETTERS)
    final_fields, setter_fields = partition_fields([ID, NAME], options)
    assert final_fields == [] and setter_fields == [ID, NAME]
    plan = synthesize(PERSON, [ID, NAME], options)
    assert [s.name for s in plan.setters] == ["id", "name"]
    assert all(not f.final for f in plan.builder_fields)
    assert plan.builder_constructor.parameters == ()


def test_with_notation_and_field_names() -> None:
    plan = synthesize(PERSON, [NAME], OptionSet.of(Option.WITH_NOTATION, Option.FIELD_NAMES))
    (setter,) = plan.setters
    assert setter.name == "withName"
    assert setter.parameters[0].name == "name"
    assert setter.params["target"] == "this.name"


def test_field_called_val_uses_alternate_parameter_name() -> None:
    plan = synthesize(PERSON, [_field("val", "int")], OptionSet())
    assert plan.setters[0].parameters[0].name == "value"


def test_nullability_annotations_on_parameters_skip_primitives() -> None:
    age = _field("age", "int", final=True)
    options = OptionSet.of(Option.JSR305_ANNOTATIONS, Option.FINDBUGS_ANNOTATION)
    plan = synthesize(PERSON, [ID, age, NAME], options)
    id_param, age_param = plan.builder_constructor.parameters
    assert id_param.annotations == (JSR305_NONNULL, FINDBUGS_NONNULL)
    assert age_param.annotations == ()
    assert plan.setters[0].params["annotations"] == [JSR305_NONNULL, FINDBUGS_NONNULL]
    assert plan.build_method.params["annotations"] == [JSR305_NONNULL, FINDBUGS_NONNULL]


def test_null_check_for_annotated_target_fields() -> None:
    checked = _field("name", "String", annotations={"javax.validation.constraints.NotNull"})
    plan = synthesize(PERSON, [checked, _field("nick", "String")], OptionSet())
    first, second = plan.target_constructor.params["assignments"]
    assert first.null_check and not second.null_check


def test_existing_target_setter_is_used_for_non_final_fields() -> None:
    owner = ClassRef(name="Person", setters=frozenset({("setName", "String"), ("setId", "String")}))
    plan = synthesize(owner, [_field("id", "String", final=True, owner=owner), _field("name", "String", owner=owner)], OptionSet())
    id_assignment, name_assignment = plan.target_constructor.params["assignments"]
    assert id_assignment.setter is None
    assert name_assignment.setter == "setName"


def test_copy_constructor_copies_every_field() -> None:
    tags = _field("tags", "List<String>")
    plan = synthesize(PERSON, [ID, tags], OptionSet.of(Option.COPY_CONSTRUCTOR))
    copy = plan.copy_member
    assert copy is not None
    assert copy.kind is MemberKind.CONSTRUCTOR and copy.owner is Owner.BUILDER
    assert copy.replace
    assert copy.parameters[0].type == "Person"
    id_copy, tags_copy = copy.params["copies"]
    assert id_copy.copy_type is None
    assert tags_copy.copy_type == "java.util.ArrayList"
    assert tags_copy.type_arguments == "<>"


def test_copy_factory_with_new_builder_method() -> None:
    options = OptionSet.of(Option.COPY_CONSTRUCTOR, Option.NEW_BUILDER_METHOD)
    plan = synthesize(PERSON, [ID, NAME], options, language_level=6)
    copy = plan.copy_member
    assert copy.kind is MemberKind.METHOD and copy.owner is Owner.TARGET
    assert copy.name == "newBuilder"
    assert copy.params["arguments"] == ["copy.id"]
    assert [c.name for c in copy.params["copies"]] == ["name"]


def test_jackson_annotations() -> None:
    tags = _field("tags", "List<String>")
    options = OptionSet.of(Option.JACKSON_ANNOTATIONS, Option.WITH_NOTATION, Option.VARARGS_OVERLOADS)
    plan = synthesize(PERSON, [tags], options)
    (builder_annotation,) = plan.builder_annotations
    assert builder_annotation.name == JACKSON_JSON_POJO_BUILDER
    assert builder_annotation.arguments == (("withPrefix", '"with"'),)
    (target_annotation,) = plan.target_annotations
    assert target_annotation.name == JACKSON_JSON_DESERIALIZE
    assert target_annotation.arguments == (("builder", "Person.Builder.class"),)
    varargs, setter = plan.setters
    assert varargs.params["annotations"] == [JACKSON_JSON_IGNORE]
    assert setter.params["annotations"] == [JACKSON_JSON_SETTER]


def test_javadoc_lines() -> None:
    plan = synthesize(PERSON, [NAME], OptionSet.of(Option.WITH_JAVADOC))
    assert plan.builder_doc == ("{@code Person} builder static inner class.",)
    assert plan.setters[0].doc[1] == "@param val the {@code name} to set"
    assert plan.build_method.doc[0] == "Returns a {@code Person} built from the parameters previously set."


def test_members_are_ordered_for_placement() -> None:
    options = OptionSet.of(Option.NEW_BUILDER_METHOD, Option.COPY_CONSTRUCTOR)
    plan = synthesize(PERSON, [ID, NAME], options)
    assert [m.template for m in plan.members()] == [
        "target_constructor",
        "field",
        "field",
        "new_builder_method",
        "builder_constructor",
        "copy_builder_method",
        "setter",
        "build_method",
    ]


def test_preconditions() -> None:
    with pytest.raises(PreconditionError, match="could not be resolved"):
        synthesize(None, [NAME], OptionSet())
    with pytest.raises(PreconditionError, match="No fields selected"):
        synthesize(PERSON, [], OptionSet())


@pytest.mark.parametrize(
    "helper",
    [
        synthesis._target_constructor,
        synthesis._new_builder_method,
        synthesis._builder_constructor,
        synthesis._copy_member,
        synthesis._setter,
        synthesis._varargs_setter,
        synthesis._build_method,
        synthesis._jackson_annotations,
    ],
)
def test_member_helpers_are_fully_annotated(helper) -> None:
    signature = inspect.signature(helper)
    assert signature.return_annotation is not inspect.Signature.empty
    assert all(p.annotation is not inspect.Parameter.empty for p in signature.parameters.values())
