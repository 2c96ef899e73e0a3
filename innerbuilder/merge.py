"""
merge.py

Responsibility: Reconcile a `SynthesisPlan` with the target class in place.

Rules:
- The builder is the inner class with the plan's builder name; it is created
  (appended to the target) only when absent. An inner interface, enum or
  record with that name is a precondition failure.
- Fields are matched by name. Same presentable type: reused. Different type:
  deleted and recreated. New fields go after the previously placed field.
- Methods and constructors are matched by name and erased parameter types.
  Unmatched members are inserted after the previous member of their chain, or
  at the end of the class. Matched members are replaced only when the plan
  marks them replace-on-regenerate; otherwise the existing member is kept
  byte-for-byte and becomes the chain anchor.

Every member is rendered before the tree is touched, so a template failure
leaves the tree unchanged.
"""

from __future__ import annotations

from innerbuilder.logging import class_logger
from innerbuilder.model import AnnotationSpec, MemberKind, MemberSpec, Owner, SynthesisPlan, presentable_type
from innerbuilder.renderer import MemberRenderer, default_renderer
from innerbuilder.synthesis import PreconditionError
from innerbuilder.tree import Annotation, ClassNode, FieldNode, ImportTable, MethodNode, Node


class BuilderMerger:
    def __init__(self, target: ClassNode, imports: ImportTable, renderer: MemberRenderer | None = None) -> None:
        self.target = target
        self.imports = imports
        self.renderer = renderer or default_renderer()
        self.log = class_logger("merge", target.name)

    def apply(self, plan: SynthesisPlan) -> ClassNode:
        """Merge `plan` into the target class and return the builder class."""
        rendered = [(spec, self.renderer.render(spec.template, spec.context())) for spec in plan.members()]
        builder_template = self.renderer.render("builder_class", {"name": plan.builder_name, "doc": plan.builder_doc})

        builder = self.find_or_create_builder(plan.builder_name, builder_template)
        anchors: dict[tuple[Owner, str], Node] = {}
        for spec, node in rendered:
            owner = self.target if spec.owner is Owner.TARGET else builder
            key = (spec.owner, spec.chain) if spec.chain else None
            after = anchors.get(key) if key else None
            if spec.kind is MemberKind.FIELD:
                placed = self.merge_field(owner, spec, node, after)
            else:
                placed = self.merge_method(owner, spec, node, after)
            if key:
                anchors[key] = placed

        self.apply_annotations(builder, plan.builder_annotations)
        self.apply_annotations(self.target, plan.target_annotations)
        return builder

    def find_or_create_builder(self, name: str, template: Node) -> ClassNode:
        builder = self.target.find_inner_class(name)
        if builder is not None:
            self.log.debug("Reusing existing inner class %s", name)
            return builder
        if name in self.target.declared_type_names():
            raise PreconditionError(f"{self.target.name} already declares a non-class type named {name}")
        if not isinstance(template, ClassNode):
            raise TypeError(f"builder_class template must produce a class, got {type(template).__name__}")
        self.log.debug("Creating inner class %s", name)
        self.target.append(template)
        return template

    def merge_field(self, cls: ClassNode, spec: MemberSpec, node: Node, after: Node | None) -> Node:
        if not isinstance(node, FieldNode):
            raise TypeError(f"Field template for `{spec.name}` produced {type(node).__name__}")
        existing = cls.find_field(spec.name)
        if existing is not None and presentable_type(existing.type) == presentable_type(node.type):
            self.log.debug("Keeping field %s.%s", cls.name, spec.name)
            existing.set_modifier("final", spec.final)
            return existing
        if existing is not None:
            self.log.debug("Recreating field %s.%s: type changed from %s", cls.name, spec.name, existing.type)
            cls.delete(existing)
        else:
            self.log.debug("Adding field %s.%s", cls.name, spec.name)
        return self._insert(cls, node, after)

    def merge_method(self, cls: ClassNode, spec: MemberSpec, node: Node, after: Node | None) -> Node:
        if not isinstance(node, MethodNode):
            raise TypeError(f"Template `{spec.template}` produced {type(node).__name__}, expected a method")
        if node.is_constructor:
            existing = cls.find_constructor(node.signature)
        else:
            existing = cls.find_method(node.name, node.signature)
        label = f"{cls.name}.{node.name}({', '.join(node.signature)})"
        if existing is None:
            self.log.debug("Adding %s", label)
            return self._insert(cls, node, after)
        if spec.replace:
            self.log.debug("Regenerating %s", label)
            return cls.replace(existing, node)
        self.log.debug("Keeping existing %s", label)
        return existing

    def apply_annotations(self, cls: ClassNode, specs: tuple[AnnotationSpec, ...]) -> None:
        for spec in specs:
            annotation = cls.find_annotation(spec.name, self.imports)
            if annotation is None:
                self.log.debug("Annotating %s with @%s", cls.name, spec.name)
                annotation = cls.add_annotation(Annotation(name=spec.name, generated=True))
            for key, value in spec.arguments:
                if annotation.get(key) != value:
                    annotation.set(key, value)
                    cls.touch()

    @staticmethod
    def _insert(cls: ClassNode, node: Node, after: Node | None) -> Node:
        if after is not None:
            return cls.insert_after(after, node)
        return cls.append(node)


def merge_plan(
    target: ClassNode,
    plan: SynthesisPlan,
    imports: ImportTable,
    renderer: MemberRenderer | None = None,
) -> ClassNode:
    return BuilderMerger(target, imports, renderer).apply(plan)


__all__ = ["BuilderMerger", "merge_plan"]
