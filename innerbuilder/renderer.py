"""
renderer.py

Responsibility: Render builder members from Jinja2 templates into tree nodes.

Rules:
- One template per member kind, `templates/<kind>.java.j2`.
- Every variable a template references must be supplied (None is a value,
  absence is an error); nested attributes are checked by StrictUndefined.
- Rendered text is normalised (no blank lines, no trailing whitespace) and
  re-parsed; output that is not exactly one Java member is an error.

This module intentionally does NOT know about the live source file: rendering
never mutates anything, the merge engine decides where nodes go.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound, meta
from jinja2.exceptions import TemplateError as JinjaTemplateError

from innerbuilder.parser import JavaSyntaxError, parse_member
from innerbuilder.tree import Node

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_SUFFIX = ".java.j2"


class TemplateError(RuntimeError):
    pass


def _normalise(text: str) -> str:
    return "\n".join(line.rstrip() for line in text.splitlines() if line.strip())


class MemberRenderer:
    def __init__(self, template_dir: str | Path = TEMPLATE_DIR) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._required: dict[str, frozenset[str]] = {}

    def required_params(self, kind: str) -> frozenset[str]:
        """Top-level variables the template for `kind` references."""
        if kind not in self._required:
            name = f"{kind}{TEMPLATE_SUFFIX}"
            try:
                source, _filename, _uptodate = self._env.loader.get_source(self._env, name)
            except TemplateNotFound as e:
                raise TemplateError(f"No template for member kind `{kind}`") from e
            self._required[kind] = frozenset(meta.find_undeclared_variables(self._env.parse(source)))
        return self._required[kind]

    def render_text(self, kind: str, params: Mapping[str, Any]) -> str:
        missing = sorted(self.required_params(kind) - set(params))
        if missing:
            raise TemplateError(f"Template `{kind}` is missing parameter(s): {', '.join(missing)}")
        try:
            out = self._env.get_template(f"{kind}{TEMPLATE_SUFFIX}").render(**params)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed rendering template `{kind}`: {e}") from e
        return _normalise(out)

    def render(self, kind: str, params: Mapping[str, Any]) -> Node:
        text = self.render_text(kind, params)
        try:
            node = parse_member(text)
        except JavaSyntaxError as e:
            raise TemplateError(f"Template `{kind}` produced invalid Java: {e}\n{text}") from e
        node.generated = True
        return node


@lru_cache(maxsize=1)
def default_renderer() -> MemberRenderer:
    return MemberRenderer()


def render(kind: str, params: Mapping[str, Any]) -> Node:
    """Render one member of `kind` with the packaged templates."""
    return default_renderer().render(kind, params)


__all__ = ["MemberRenderer", "TEMPLATE_DIR", "TemplateError", "default_renderer", "render"]
