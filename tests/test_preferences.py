from __future__ import annotations

from pathlib import Path

import pytest

from innerbuilder.preferences import PreferenceError, load_preferences, parse_preferences


def test_parse_accepts_booleans_and_boolean_strings() -> None:
    values = parse_preferences(
        "GenerateInnerBuilder.newBuilderMethod: true\n"
        'GenerateInnerBuilder.withJavadoc: "FALSE"\n'
        "GenerateInnerBuilder.fieldNames: 'true'\n"
    )
    assert values == {
        "GenerateInnerBuilder.newBuilderMethod": True,
        "GenerateInnerBuilder.withJavadoc": False,
        "GenerateInnerBuilder.fieldNames": True,
    }


def test_parse_empty_document_is_empty_store() -> None:
    assert parse_preferences("") == {}


def test_parse_rejects_non_mapping() -> None:
    with pytest.raises(PreferenceError, match="mapping"):
        parse_preferences("- a\n- b\n")


def test_parse_rejects_nested_mapping() -> None:
    with pytest.raises(PreferenceError, match="flat"):
        parse_preferences("GenerateInnerBuilder:\n  withJavadoc: true\n")


def test_parse_rejects_non_boolean_value() -> None:
    with pytest.raises(PreferenceError, match="must be a boolean"):
        parse_preferences("GenerateInnerBuilder.withJavadoc: 1\n")


def test_load_missing_file_gives_defaults(tmp_path: Path) -> None:
    store = load_preferences(tmp_path / "absent.yml")
    assert store.source is None
    assert store.get_boolean("GenerateInnerBuilder.withJavadoc") is False
    assert store.get_boolean("GenerateInnerBuilder.withJavadoc", True) is True


def test_load_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "prefs.yml"
    path.write_text("GenerateInnerBuilder.copyConstructor: true\n", encoding="utf-8")
    store = load_preferences(path)
    assert store.source == path
    assert store.get_boolean("GenerateInnerBuilder.copyConstructor") is True


def test_load_directory_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(PreferenceError, match="not a file"):
        load_preferences(tmp_path)


def test_load_invalid_yaml_is_wrapped(tmp_path: Path) -> None:
    path = tmp_path / "prefs.yml"
    path.write_text("key: [unclosed\n", encoding="utf-8")
    with pytest.raises(PreferenceError, match="not valid YAML"):
        load_preferences(path)
