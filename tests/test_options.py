"""Option identifiers and the immutable option snapshot."""

from __future__ import annotations

import pytest

from innerbuilder.options import Option, OptionSet
from innerbuilder.preferences import PreferenceStore


def test_there_are_eleven_recognised_options() -> None:
    assert len(list(Option)) == 11
    assert Option.VARARGS_OVERLOADS.value == "createVarargsOverloads"


def test_preference_key_is_namespaced() -> None:
    assert Option.NEW_BUILDER_METHOD.preference_key == "GenerateInnerBuilder.newBuilderMethod"


@pytest.mark.parametrize(
    "name",
    ["withJavadoc", "GenerateInnerBuilder.withJavadoc", "WITH_JAVADOC", " withJavadoc "],
)
def test_from_name_accepts_identifier_key_and_member_name(name: str) -> None:
    assert Option.from_name(name) is Option.WITH_JAVADOC


def test_from_name_rejects_unknown_option() -> None:
    with pytest.raises(ValueError, match="Unknown option"):
        Option.from_name("withLombok")


def test_option_set_reads_each_key_from_store() -> None:
    store = PreferenceStore(
        values={
            "GenerateInnerBuilder.newBuilderMethod": True,
            "GenerateInnerBuilder.withJavadoc": False,
            "GenerateInnerBuilder.somethingElse": True,
        }
    )
    options = OptionSet.from_store(store)
    assert Option.NEW_BUILDER_METHOD in options
    assert Option.WITH_JAVADOC not in options
    assert len(options) == 1


def test_empty_store_enables_nothing() -> None:
    assert len(OptionSet.from_store(PreferenceStore())) == 0


def test_iteration_follows_declaration_order() -> None:
    options = OptionSet.of(Option.FIELD_NAMES, Option.FINAL_SETTERS, Option.WITH_NOTATION)
    assert list(options) == [Option.FINAL_SETTERS, Option.WITH_NOTATION, Option.FIELD_NAMES]


def test_overrides_enable_then_disable() -> None:
    base = OptionSet.of(Option.WITH_JAVADOC, Option.COPY_CONSTRUCTOR)
    updated = base.with_overrides(enable=[Option.NEW_BUILDER_METHOD], disable=[Option.WITH_JAVADOC])
    assert set(updated) == {Option.COPY_CONSTRUCTOR, Option.NEW_BUILDER_METHOD}
    # The original snapshot is untouched.
    assert Option.WITH_JAVADOC in base
