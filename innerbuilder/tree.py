"""
tree.py

Responsibility: The editable Java syntax tree the merge engine works against.

The tree is deliberately shallow: classes are structural (header, annotations,
ordered members), while fields, methods and everything else keep their source
text. Member text is stored dedented so a member can be re-indented wherever it
ends up. Mutations go through `ClassNode` and mark the enclosing top-level
class dirty; only dirty top-level classes are re-printed by `JavaFile.render`.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, field

from innerbuilder.model import erase_type

DEFAULT_INDENT = "    "

_MODIFIER_ORDER = (
    "public",
    "protected",
    "private",
    "abstract",
    "static",
    "final",
    "transient",
    "volatile",
    "synchronized",
    "native",
    "strictfp",
)


@dataclass(eq=False)
class Annotation:
    name: str
    arguments: list[tuple[str, str]] = field(default_factory=list)
    # `@Foo("x")` rather than `@Foo(value = "x")`.
    bare_value: bool = False
    generated: bool = False

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def get(self, key: str) -> str | None:
        for k, v in self.arguments:
            if k == key:
                return v
        return None

    def set(self, key: str, value: str) -> None:
        for idx, (k, _v) in enumerate(self.arguments):
            if k == key:
                self.arguments[idx] = (key, value)
                break
        else:
            self.arguments.append((key, value))
        if key != "value" or len(self.arguments) > 1:
            self.bare_value = False

    def render(self) -> str:
        if not self.arguments:
            return f"@{self.name}"
        if self.bare_value and len(self.arguments) == 1:
            return f"@{self.name}({self.arguments[0][1]})"
        args = ", ".join(f"{k} = {v}" for k, v in self.arguments)
        return f"@{self.name}({args})"


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str
    varargs: bool = False


@dataclass(eq=False)
class Node:
    text: str = ""
    # Leading comment block (javadoc or line comments) attached to the member.
    doc: str | None = None
    # Comment that follows the member on its last line, e.g. `int x; // px`.
    trailing_comment: str | None = None
    generated: bool = False
    parent: "ClassNode | None" = field(default=None, repr=False)

    def touch(self) -> None:
        if self.parent is not None:
            self.parent.touch()

    def render(self, unit: str = DEFAULT_INDENT) -> str:
        text = f"{self.text} {self.trailing_comment}" if self.trailing_comment else self.text
        if self.doc:
            return f"{self.doc}\n{text}"
        return text


@dataclass(eq=False)
class OtherNode(Node):
    """Any class-body element the engine never inspects (comments, initializers, enums...)."""

    # Simple name of the interface, enum, record or annotation type this node declares.
    declares: str | None = None


@dataclass(eq=False)
class FieldNode(Node):
    name: str = ""
    type: str = ""
    modifiers: list[str] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    initializer: str | None = None

    def __post_init__(self) -> None:
        if not self.text:
            self.text = self.compose()

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_final(self) -> bool:
        return "final" in self.modifiers

    def compose(self) -> str:
        parts = [a.render() for a in self.annotations]
        parts.extend(self.modifiers)
        parts.append(f"{self.type} {self.name}")
        declaration = " ".join(parts)
        if self.initializer is not None:
            declaration += f" = {self.initializer}"
        return declaration + ";"

    def set_modifier(self, modifier: str, value: bool = True) -> None:
        if (modifier in self.modifiers) == value:
            return
        if value:
            rank = _MODIFIER_ORDER.index(modifier) if modifier in _MODIFIER_ORDER else len(_MODIFIER_ORDER)
            idx = len(self.modifiers)
            for i, existing in enumerate(self.modifiers):
                if existing in _MODIFIER_ORDER and _MODIFIER_ORDER.index(existing) > rank:
                    idx = i
                    break
            self.modifiers.insert(idx, modifier)
        else:
            self.modifiers.remove(modifier)
        self.text = self.compose()
        self.touch()


@dataclass(eq=False)
class MethodNode(Node):
    name: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    return_type: str | None = None
    is_constructor: bool = False
    modifiers: list[str] = field(default_factory=list)

    @property
    def signature(self) -> tuple[str, ...]:
        return tuple(erase_type(p.type) + ("[]" if p.varargs else "") for p in self.parameters)


@dataclass(eq=False)
class ClassNode(Node):
    name: str = ""
    header: str = ""
    modifiers: list[str] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    members: list[Node] = field(default_factory=list)
    dirty: bool = False
    # Byte span in the original source, top-level classes only.
    span: tuple[int, int] | None = None

    def __post_init__(self) -> None:
        for member in self.members:
            member.parent = self

    def touch(self) -> None:
        self.dirty = True
        super().touch()

    # queries

    def fields(self) -> list[FieldNode]:
        return [m for m in self.members if isinstance(m, FieldNode)]

    def methods(self) -> list[MethodNode]:
        return [m for m in self.members if isinstance(m, MethodNode) and not m.is_constructor]

    def constructors(self) -> list[MethodNode]:
        return [m for m in self.members if isinstance(m, MethodNode) and m.is_constructor]

    def inner_classes(self) -> list["ClassNode"]:
        return [m for m in self.members if isinstance(m, ClassNode)]

    def find_field(self, name: str) -> FieldNode | None:
        return next((f for f in self.fields() if f.name == name), None)

    def find_inner_class(self, name: str) -> "ClassNode | None":
        return next((c for c in self.inner_classes() if c.name == name), None)

    def declared_type_names(self) -> list[str]:
        """Names of inner types the tree keeps opaque (interfaces, enums, records...)."""
        return [m.declares for m in self.members if isinstance(m, OtherNode) and m.declares]

    def find_method(self, name: str, signature: tuple[str, ...]) -> MethodNode | None:
        return next((m for m in self.methods() if m.name == name and m.signature == signature), None)

    def find_constructor(self, signature: tuple[str, ...]) -> MethodNode | None:
        return next((c for c in self.constructors() if c.signature == signature), None)

    def find_annotation(self, qualified_name: str, imports: "ImportTable") -> Annotation | None:
        return next((a for a in self.annotations if imports.matches(a.name, qualified_name)), None)

    # mutations

    def append(self, node: Node) -> Node:
        node.parent = self
        self.members.append(node)
        self.touch()
        return node

    def insert_after(self, anchor: Node, node: Node) -> Node:
        idx = self._index(anchor)
        node.parent = self
        self.members.insert(idx + 1, node)
        self.touch()
        return node

    def replace(self, old: Node, new: Node) -> Node:
        idx = self._index(old)
        new.parent = self
        self.members[idx] = new
        old.parent = None
        self.touch()
        return new

    def delete(self, node: Node) -> None:
        self.members.pop(self._index(node))
        node.parent = None
        self.touch()

    def add_annotation(self, annotation: Annotation) -> Annotation:
        self.annotations.append(annotation)
        self.touch()
        return annotation

    def set_doc(self, doc: str | None) -> None:
        self.doc = doc
        self.touch()

    def _index(self, node: Node) -> int:
        for idx, member in enumerate(self.members):
            if member is node:
                return idx
        raise ValueError(f"{node!r} is not a member of class {self.name}")

    # printing

    def render(self, unit: str = DEFAULT_INDENT) -> str:
        lines: list[str] = []
        if self.doc:
            lines.append(self.doc)
        lines.extend(a.render() for a in self.annotations)
        declaration = " ".join([*self.modifiers, self.header])
        closing = f"}} {self.trailing_comment}" if self.trailing_comment else "}"
        if not self.members:
            lines.append(f"{declaration} {{\n{closing}")
            return "\n".join(lines)
        lines.append(f"{declaration} {{")
        lines.append(self._render_body(unit))
        lines.append(closing)
        return "\n".join(lines)

    def _render_body(self, unit: str) -> str:
        body = ""
        previous: Node | None = None
        for member in self.members:
            if previous is not None:
                # Consecutive fields stay together; everything else gets a blank line.
                tight = isinstance(previous, FieldNode) and isinstance(member, FieldNode) and not member.doc
                body += "\n" if tight else "\n\n"
            body += textwrap.indent(member.render(unit), unit)
            previous = member
        return body


@dataclass
class ImportTable:
    package: str | None = None
    # simple name -> qualified name for single-type imports
    single: dict[str, str] = field(default_factory=dict)
    on_demand: set[str] = field(default_factory=set)

    def resolve(self, simple_name: str) -> str | None:
        return self.single.get(simple_name)

    def matches(self, written: str, qualified_name: str) -> bool:
        """Whether a name as written in source refers to `qualified_name`."""
        if written == qualified_name:
            return True
        if "." in written:
            return False
        package, _, simple = qualified_name.rpartition(".")
        if written != simple:
            return False
        bound = self.single.get(simple)
        if bound is not None:
            return bound == qualified_name
        return package in self.on_demand or package == self.package

    def covers(self, qualified_name: str) -> bool:
        """Whether `qualified_name` is usable by its simple name without a new import."""
        package, _, simple = qualified_name.rpartition(".")
        if package == "java.lang":
            return simple not in self.single
        return self.matches(simple, qualified_name)


@dataclass(eq=False)
class JavaFile:
    source: bytes
    imports: ImportTable = field(default_factory=ImportTable)
    classes: list[ClassNode] = field(default_factory=list)
    # Top-level interfaces, enums, records and annotation types.
    other_types: set[str] = field(default_factory=set)
    # Byte offset after which new import lines are spliced, and how.
    import_anchor: int = 0
    import_anchor_kind: str = "start"  # "import" | "package" | "comment" | "start"
    indent_unit: str = DEFAULT_INDENT
    new_imports: list[str] = field(default_factory=list)

    def find_class(self, name: str) -> ClassNode | None:
        stack = list(self.classes)
        while stack:
            cls = stack.pop(0)
            if cls.name == name:
                return cls
            stack[0:0] = cls.inner_classes()
        return None

    def declared_class_names(self) -> set[str]:
        names = set(self.other_types)
        stack = list(self.classes)
        while stack:
            cls = stack.pop()
            names.add(cls.name)
            names.update(cls.declared_type_names())
            stack.extend(cls.inner_classes())
        return names

    def add_import(self, qualified_name: str) -> None:
        package, _, simple = qualified_name.rpartition(".")
        if package == "java.lang" or self.imports.covers(qualified_name):
            return
        self.imports.single[simple] = qualified_name
        self.new_imports.append(qualified_name)

    def render(self) -> str:
        out = self.source
        edits: list[tuple[int, int, bytes]] = []
        for cls in self.classes:
            if cls.dirty and cls.span is not None:
                edits.append((cls.span[0], cls.span[1], cls.render(self.indent_unit).encode("utf-8")))
        if self.new_imports:
            lines = "\n".join(f"import {name};" for name in sorted(self.new_imports))
            if self.import_anchor_kind == "import":
                block = f"\n{lines}"
            elif self.import_anchor_kind in ("package", "comment"):
                block = f"\n\n{lines}"
            else:
                block = f"{lines}\n\n"
            edits.append((self.import_anchor, self.import_anchor, block.encode("utf-8")))
        # Apply back to front so earlier offsets stay valid.
        for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
            out = out[:start] + replacement + out[end:]
        return out.decode("utf-8")


__all__ = [
    "Annotation",
    "ClassNode",
    "DEFAULT_INDENT",
    "FieldNode",
    "ImportTable",
    "JavaFile",
    "MethodNode",
    "Node",
    "OtherNode",
    "Parameter",
]
