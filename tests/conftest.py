from __future__ import annotations

from pathlib import Path

import pytest

PERSON_SOURCE = """\
package com.example;

public class Person {
    private final String id;
    private String name;
}
"""

TAGGED_SOURCE = """\
package com.example;

import java.util.List;
import java.util.Set;

public class Tagged {
    private List<String> tags;
    private Set<String> names;
}
"""


@pytest.fixture
def person_source() -> str:
    """Scenario class: one final and one mutable field."""
    return PERSON_SOURCE


@pytest.fixture
def tagged_source() -> str:
    return TAGGED_SOURCE


@pytest.fixture
def write_java(tmp_path: Path):
    """Write a Java file under tmp_path and return its path."""

    def _write(text: str, name: str = "Person.java") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
