from __future__ import annotations

from pathlib import Path

import pytest

from innerbuilder.model import ParameterSpec
from innerbuilder.renderer import MemberRenderer, TemplateError, render
from innerbuilder.synthesis import FieldAssignment
from innerbuilder.tree import ClassNode, FieldNode, MethodNode


def test_field_template() -> None:
    node = render("field", {"name": "id", "type": "String", "final": True})
    assert isinstance(node, FieldNode)
    assert node.text == "private final String id;"
    assert node.generated


def test_setter_template_with_doc_and_annotations() -> None:
    renderer = MemberRenderer()
    text = renderer.render_text(
        "setter",
        {
            "name": "withName",
            "builder_name": "Builder",
            "parameters": [ParameterSpec(name="val", type="String", annotations=("javax.annotation.Nonnull",))],
            "doc": ["Sets the name.", "", "@return this"],
            "annotations": ["javax.annotation.Nonnull"],
            "target": "name",
        },
    )
    assert text == (
        "/**\n"
        " * Sets the name.\n"
        " *\n"
        " * @return this\n"
        " */\n"
        "@javax.annotation.Nonnull\n"
        "public Builder withName(@javax.annotation.Nonnull String val) {\n"
        "    name = val;\n"
        "    return this;\n"
        "}"
    )


def test_target_constructor_template() -> None:
    node = render(
        "target_constructor",
        {
            "name": "Person",
            "parameters": [ParameterSpec(name="builder", type="Builder")],
            "assignments": [
                FieldAssignment(name="id", null_check=True),
                FieldAssignment(name="age", setter="setAge"),
                FieldAssignment(name="tags", wrapper="unmodifiableList", empty="emptyList"),
            ],
        },
    )
    assert isinstance(node, MethodNode) and node.is_constructor
    assert node.signature == ("Builder",)
    assert node.text == (
        "private Person(Builder builder) {\n"
        "    if (builder.id == null) {\n"
        '        throw new java.lang.IllegalArgumentException("id cannot be null");\n'
        "    }\n"
        "    id = builder.id;\n"
        "    setAge(builder.age);\n"
        "    tags = builder.tags == null ? java.util.Collections.emptyList()"
        " : java.util.Collections.unmodifiableList(builder.tags);\n"
        "}"
    )


def test_builder_class_template() -> None:
    node = render("builder_class", {"name": "Builder", "doc": None})
    assert isinstance(node, ClassNode)
    assert node.modifiers == ["public", "static", "final"]
    assert node.header == "class Builder"
    assert node.members == []


def test_required_params_lists_template_variables() -> None:
    required = MemberRenderer().required_params("setter")
    assert required == {"doc", "annotations", "builder_name", "name", "parameters", "target"}


def test_missing_parameter_is_reported() -> None:
    with pytest.raises(TemplateError, match="missing parameter.*element_type"):
        render(
            "varargs_setter",
            {
                "name": "tags",
                "parameters": [],
                "doc": None,
                "annotations": [],
                "builder_name": "Builder",
                "field_name": "tags",
                "parameter_name": "val",
                "collection_type": "java.util.ArrayList",
                "type_arguments": "<>",
            },
        )


def test_unknown_template() -> None:
    with pytest.raises(TemplateError, match="No template"):
        MemberRenderer().render_text("getter", {})


def test_invalid_java_is_a_template_error(tmp_path: Path) -> None:
    (tmp_path / "broken.java.j2").write_text("public void {{ name }}( {\n", encoding="utf-8")
    (tmp_path / "pair.java.j2").write_text("int {{ name }};\nint other;\n", encoding="utf-8")
    renderer = MemberRenderer(tmp_path)
    with pytest.raises(TemplateError, match="invalid Java"):
        renderer.render("broken", {"name": "f"})
    with pytest.raises(TemplateError, match="invalid Java"):
        renderer.render("pair", {"name": "x"})
