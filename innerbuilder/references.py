"""
references.py

Responsibility: Shorten fully-qualified class names in generated members and
add the matching imports.

Templates always spell out qualified names (`java.util.Collections`,
`javax.annotation.Nonnull`, ...) so they never depend on the file's imports.
This pass rewrites them to simple names wherever that is unambiguous. Only
nodes created in the current run are rewritten; hand-written code is left
alone. A name stays qualified when its simple name is already bound to a
different class by an import or by a type declared in the file, and also
when adding an import would be needed while the file has wildcard imports of
other packages, since those may bind the same simple name.
"""

from __future__ import annotations

import re

from innerbuilder.logging import get_logger
from innerbuilder.tree import ClassNode, FieldNode, JavaFile, Node

log = get_logger("references")

# Package roots considered for shortening; `builder.X` / `copy.X` field accesses never match.
_ROOTS = ("java", "javax", "jakarta", "com", "org", "edu", "net", "io")
_QUALIFIED_RE = re.compile(
    r"(?<![\w.$])((?:" + "|".join(_ROOTS) + r")\.(?:[a-z_][\w]*\.)*)([A-Z][\w$]*)"
)


class ReferenceShortener:
    def __init__(self, java_file: JavaFile) -> None:
        self.file = java_file
        self.declared = java_file.declared_class_names()

    def _short_name(self, match: re.Match[str]) -> str:
        qualified = match.group(1) + match.group(2)
        simple = match.group(2)
        imports = self.file.imports
        package = qualified.rpartition(".")[0]

        if simple in self.declared and package != imports.package:
            return qualified
        if imports.covers(qualified):
            return simple
        if simple in imports.single:
            return qualified
        if imports.on_demand - {package}:
            # A wildcard import may already supply a class with this simple name.
            return qualified
        self.file.add_import(qualified)
        log.debug("Importing %s", qualified)
        return simple

    def shorten(self, text: str) -> str:
        return _QUALIFIED_RE.sub(self._short_name, text)

    def apply(self, node: Node) -> None:
        """Rewrite generated nodes under `node` (inclusive)."""
        if node.generated:
            node.text = self.shorten(node.text)
            if node.doc:
                node.doc = self.shorten(node.doc)
            if isinstance(node, FieldNode):
                node.type = self.shorten(node.type)
        if isinstance(node, ClassNode):
            for annotation in node.annotations:
                if annotation.generated:
                    annotation.name = self.shorten(annotation.name)
                    annotation.arguments = [(k, self.shorten(v)) for k, v in annotation.arguments]
            for member in node.members:
                self.apply(member)


def shorten_class_references(java_file: JavaFile, root: ClassNode) -> None:
    ReferenceShortener(java_file).apply(root)


__all__ = ["ReferenceShortener", "shorten_class_references"]
