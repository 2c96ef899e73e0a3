"""
parser.py

Responsibility: Turn Java source text into the editable tree from `tree.py`.

Parsing is done with tree-sitter and the Java grammar. Only the shape the
builder engine needs is extracted:
- package and imports (for name resolution and import insertion)
- classes, recursively, with annotations, modifiers and ordered members
- fields (one node per declarator), methods and constructors with parameters

Everything else inside a class body is kept verbatim as `OtherNode`; inner
interfaces, enums and records remember the name they declare. A comment that
starts on the line where a member ends is kept with that member.
"""

from __future__ import annotations

import tree_sitter_java
from tree_sitter import Language, Parser
from tree_sitter import Node as TSNode

from innerbuilder.tree import (
    DEFAULT_INDENT,
    Annotation,
    ClassNode,
    FieldNode,
    ImportTable,
    JavaFile,
    MethodNode,
    Node,
    OtherNode,
    Parameter,
)

JAVA_LANGUAGE = Language(tree_sitter_java.language())

_COMMENT_TYPES = frozenset({"line_comment", "block_comment"})
_ANNOTATION_TYPES = frozenset({"annotation", "marker_annotation"})
_PARAMETER_TYPES = frozenset({"formal_parameter", "spread_parameter"})
_OTHER_TYPE_DECLARATIONS = frozenset(
    {"interface_declaration", "enum_declaration", "record_declaration", "annotation_type_declaration"}
)


class JavaSyntaxError(ValueError):
    pass


def _first_error(node: TSNode) -> TSNode | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _strip_indent(line: str, width: int) -> str:
    idx = 0
    while idx < width and idx < len(line) and line[idx] in " \t":
        idx += 1
    return line[idx:]


class _Reader:
    def __init__(self, source: bytes) -> None:
        self.source = source
        self.indent_unit: str | None = None

    def text(self, node: TSNode) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def line_indent(self, offset: int) -> str:
        line_start = self.source.rfind(b"\n", 0, offset) + 1
        line = self.source[line_start:offset].decode("utf-8", errors="replace")
        return line[: len(line) - len(line.lstrip(" \t"))]

    def dedented(self, start: int, end: int) -> str:
        """Source between offsets, continuation lines dedented by the first line's indent."""
        width = len(self.line_indent(start))
        raw = self.source[start:end].decode("utf-8", errors="replace").replace("\r\n", "\n")
        lines = raw.split("\n")
        return "\n".join([lines[0], *(_strip_indent(line, width) for line in lines[1:])]).rstrip()

    # declarations

    def modifiers(self, node: TSNode) -> tuple[list[str], list[Annotation]]:
        modifiers_node = next((c for c in node.children if c.type == "modifiers"), None)
        keywords: list[str] = []
        annotations: list[Annotation] = []
        if modifiers_node is None:
            return keywords, annotations
        for child in modifiers_node.children:
            if child.type in _ANNOTATION_TYPES:
                annotations.append(self.annotation(child))
            elif child.type not in _COMMENT_TYPES:
                keywords.append(self.text(child))
        return keywords, annotations

    def annotation(self, node: TSNode) -> Annotation:
        name = "".join(self.text(node.child_by_field_name("name")).split())
        arguments: list[tuple[str, str]] = []
        bare = False
        args_node = node.child_by_field_name("arguments")
        if args_node is not None:
            for child in args_node.named_children:
                if child.type in _COMMENT_TYPES:
                    continue
                if child.type == "element_value_pair":
                    key = self.text(child.child_by_field_name("key"))
                    arguments.append((key, self.text(child.child_by_field_name("value"))))
                else:
                    arguments.append(("value", self.text(child)))
                    bare = True
        return Annotation(name=name, arguments=arguments, bare_value=bare)

    def parameter(self, node: TSNode) -> Parameter:
        if node.type == "formal_parameter":
            type_text = self.text(node.child_by_field_name("type"))
            dims = node.child_by_field_name("dimensions")
            if dims is not None:
                type_text += self.text(dims)
            return Parameter(name=self.text(node.child_by_field_name("name")), type=type_text)

        # spread_parameter: [modifiers] type [annotations] '...' variable_declarator
        type_node = None
        name = ""
        for child in node.named_children:
            if child.type == "variable_declarator":
                name = self.text(child.child_by_field_name("name"))
            elif child.type == "identifier" and type_node is not None:
                name = self.text(child)
            elif type_node is None and child.type not in ("modifiers", *_ANNOTATION_TYPES, *_COMMENT_TYPES):
                type_node = child
        type_text = self.text(type_node) if type_node is not None else ""
        return Parameter(name=name, type=type_text, varargs=True)

    def fields(self, node: TSNode, doc: str | None) -> list[FieldNode]:
        keywords, annotations = self.modifiers(node)
        type_text = " ".join(self.text(node.child_by_field_name("type")).split())
        declarators = node.children_by_field_name("declarator")
        nodes: list[FieldNode] = []
        for declarator in declarators:
            dims = declarator.child_by_field_name("dimensions")
            value = declarator.child_by_field_name("value")
            nodes.append(
                FieldNode(
                    # Multi-declarator fields are split and recomposed one per line.
                    text=self.dedented(node.start_byte, node.end_byte) if len(declarators) == 1 else "",
                    doc=doc if not nodes else None,
                    name=self.text(declarator.child_by_field_name("name")),
                    type=type_text + (self.text(dims) if dims is not None else ""),
                    modifiers=list(keywords),
                    annotations=list(annotations),
                    initializer=self.text(value) if value is not None else None,
                )
            )
        return nodes

    def method(self, node: TSNode, doc: str | None) -> MethodNode:
        keywords, _annotations = self.modifiers(node)
        params_node = node.child_by_field_name("parameters")
        parameters = [
            self.parameter(p) for p in (params_node.named_children if params_node else []) if p.type in _PARAMETER_TYPES
        ]
        is_constructor = node.type == "constructor_declaration"
        return_type = None if is_constructor else self.text(node.child_by_field_name("type"))
        return MethodNode(
            text=self.dedented(node.start_byte, node.end_byte),
            doc=doc,
            name=self.text(node.child_by_field_name("name")),
            parameters=parameters,
            return_type=return_type,
            is_constructor=is_constructor,
            modifiers=keywords,
        )

    def class_node(self, node: TSNode, doc: str | None) -> ClassNode:
        keywords, annotations = self.modifiers(node)
        body = node.child_by_field_name("body")
        modifiers_node = next((c for c in node.children if c.type == "modifiers"), None)
        header_start = modifiers_node.end_byte if modifiers_node is not None else node.start_byte
        header = " ".join(self.source[header_start : body.start_byte].decode("utf-8", errors="replace").split())
        return ClassNode(
            doc=doc,
            name=self.text(node.child_by_field_name("name")),
            header=header,
            modifiers=keywords,
            annotations=annotations,
            members=self.members(body),
        )

    # class bodies

    def member(self, node: TSNode, doc: str | None) -> list[Node]:
        if self.indent_unit is None:
            self.indent_unit = self.line_indent(node.start_byte) or None
        if node.type == "field_declaration":
            return list(self.fields(node, doc))
        if node.type in ("method_declaration", "constructor_declaration"):
            return [self.method(node, doc)]
        if node.type == "class_declaration":
            return [self.class_node(node, doc)]
        declares = None
        if node.type in _OTHER_TYPE_DECLARATIONS:
            declares = self.text(node.child_by_field_name("name"))
        return [OtherNode(text=self.dedented(node.start_byte, node.end_byte), doc=doc, declares=declares)]

    def members(self, body: TSNode) -> list[Node]:
        members: list[Node] = []
        pending: list[TSNode] = []
        # Last line of the previous member and the node that prints it.
        last: tuple[int, Node] | None = None

        def flush() -> None:
            for comment in pending:
                members.append(OtherNode(text=self.dedented(comment.start_byte, comment.end_byte)))
            pending.clear()

        for child in body.named_children:
            if child.type in _COMMENT_TYPES:
                if last is not None and not pending and child.start_point[0] == last[0]:
                    last[1].trailing_comment = self.dedented(child.start_byte, child.end_byte)
                    last = None
                    continue
                last = None
                if pending and child.start_point[0] - pending[-1].end_point[0] > 1:
                    flush()
                pending.append(child)
                continue
            doc = None
            if pending and child.start_point[0] - pending[-1].end_point[0] <= 1:
                doc = self.dedented(pending[0].start_byte, pending[-1].end_byte)
                pending.clear()
            flush()
            nodes = self.member(child, doc)
            members.extend(nodes)
            last = (child.end_point[0], nodes[-1]) if nodes else None
        flush()
        return members


def _parse_tree(source: bytes, what: str) -> TSNode:
    tree = Parser(JAVA_LANGUAGE).parse(source)
    root = tree.root_node
    if root.has_error:
        error = _first_error(root)
        where = f" at line {error.start_point[0] + 1}" if error is not None else ""
        raise JavaSyntaxError(f"Could not parse {what}{where}")
    return root


def _import_name(text: str) -> tuple[str, bool]:
    body = text.strip().removeprefix("import").removesuffix(";").strip()
    is_static = body.startswith("static ")
    if is_static:
        body = body[len("static ") :]
    return "".join(body.split()), is_static


def parse_source(text: str) -> JavaFile:
    """Parse a complete compilation unit."""
    source = text.encode("utf-8")
    root = _parse_tree(source, "source file")
    reader = _Reader(source)

    imports = ImportTable()
    java_file = JavaFile(source=source, imports=imports)
    pending: list[TSNode] = []
    in_header = True

    def header_comments_end() -> None:
        # Imports go below a file header comment (license etc.) when nothing else anchors them.
        if in_header and java_file.import_anchor_kind in ("start", "comment"):
            java_file.import_anchor, java_file.import_anchor_kind = pending[-1].end_byte, "comment"

    for child in root.named_children:
        if child.type in _COMMENT_TYPES:
            if pending and child.start_point[0] - pending[-1].end_point[0] > 1:
                header_comments_end()
                pending.clear()
            pending.append(child)
            continue
        attached = bool(pending) and child.start_point[0] - pending[-1].end_point[0] <= 1
        if pending and not attached:
            header_comments_end()
        if child.type not in ("package_declaration", "import_declaration"):
            in_header = False
        if child.type == "package_declaration":
            name = reader.text(child).strip().removesuffix(";").strip()
            imports.package = "".join(name.split()[-1:])
            java_file.import_anchor, java_file.import_anchor_kind = child.end_byte, "package"
        elif child.type == "import_declaration":
            name, is_static = _import_name(reader.text(child))
            if not is_static:
                if name.endswith(".*"):
                    imports.on_demand.add(name[:-2])
                else:
                    imports.single[name.rsplit(".", 1)[-1]] = name
            java_file.import_anchor, java_file.import_anchor_kind = child.end_byte, "import"
        elif child.type == "class_declaration":
            doc = None
            start = child.start_byte
            if attached:
                doc = reader.dedented(pending[0].start_byte, pending[-1].end_byte)
                start = pending[0].start_byte
            cls = reader.class_node(child, doc)
            cls.span = (start, child.end_byte)
            java_file.classes.append(cls)
        elif child.type in _OTHER_TYPE_DECLARATIONS:
            java_file.other_types.add(reader.text(child.child_by_field_name("name")))
        pending.clear()

    java_file.indent_unit = reader.indent_unit or DEFAULT_INDENT
    return java_file


def parse_member(text: str, class_name: str = "Builder") -> Node:
    """
    Parse a single class member (field, method, constructor or nested class)
    by wrapping it in a throwaway class named `class_name`.
    """
    wrapped = f"class {class_name} {{\n{text.strip()}\n}}\n"
    root = _parse_tree(wrapped.encode("utf-8"), "generated member")
    reader = _Reader(wrapped.encode("utf-8"))
    declarations = [c for c in root.named_children if c.type == "class_declaration"]
    members = reader.members(declarations[0].child_by_field_name("body")) if declarations else []
    if len(members) != 1:
        raise JavaSyntaxError(f"Expected exactly one member, found {len(members)}")
    return members[0]


__all__ = ["JAVA_LANGUAGE", "JavaSyntaxError", "parse_member", "parse_source"]
