"""Structural metrics and summaries of a compilation unit."""

from dataclasses import dataclass, field

from loguru import logger
from tree_sitter import Node

from ..utils.ast_helpers import (
    FIELD_NODE_TYPES,
    METHOD_NODE_TYPES,
    TYPE_DECLARATION_NODE_TYPES,
    find_nodes_by_type,
    get_end_line_number,
    get_line_number,
    get_method_name,
    get_method_parameters,
    get_modifiers,
    get_node_text,
    get_parent_of_type,
)
from .complexity import ComplexityAnalyzer, ComplexityFacts
from .models import ClassInfo, ClassMetrics, FieldInfo, MethodInfo, MethodMetrics

ACCESS_MODIFIERS = ("public", "protected", "private")
PACKAGE_PRIVATE = "package-private"


def access_modifier(node: Node) -> str:
    modifiers = get_modifiers(node)
    for modifier in ACCESS_MODIFIERS:
        if modifier in modifiers:
            return modifier
    return PACKAGE_PRIVATE


def type_members(declaration: Node) -> list[Node]:
    """Direct member declarations of a class, interface, enum or record."""
    body = declaration.child_by_field_name("body")
    if body is None:
        return []
    members = []
    for child in body.named_children:
        if child.type == "enum_body_declarations":
            members.extend(child.named_children)
        else:
            members.append(child)
    return members


def owning_type_name(node: Node) -> str:
    owner = get_parent_of_type(node, TYPE_DECLARATION_NODE_TYPES)
    return get_node_text(owner.child_by_field_name("name")) if owner is not None else ""


@dataclass
class UnitStructure:
    """Metrics of every type and method, keyed the same way the scores are."""

    classes: list[ClassMetrics] = field(default_factory=list)
    methods: list[MethodMetrics] = field(default_factory=list)
    method_nodes: dict[str, Node] = field(default_factory=dict)
    complexity: dict[str, ComplexityFacts] = field(default_factory=dict)

    def line_decisions(self) -> dict[int, int]:
        """Decision points per line across every method."""
        totals: dict[int, int] = {}
        for facts in self.complexity.values():
            for line, count in facts.line_decisions.items():
                totals[line] = totals.get(line, 0) + count
        return dict(sorted(totals.items()))


class StructureAnalyzer:
    """Collects ClassMetrics and MethodMetrics for a compilation unit."""

    def __init__(self, complexity_analyzer: ComplexityAnalyzer | None = None):
        self.complexity_analyzer = complexity_analyzer or ComplexityAnalyzer()

    def extract(self, root: Node) -> UnitStructure:
        structure = UnitStructure()
        keys_by_id: dict[tuple[int, int], str] = {}

        # Keys are assigned in document order so overloads are numbered stably.
        for method in find_nodes_by_type(root, METHOD_NODE_TYPES):
            name = get_method_name(method)
            key = name if name not in structure.method_nodes else f"{name}:{get_line_number(method)}"
            facts = self.complexity_analyzer.analyze(method)
            structure.method_nodes[key] = method
            structure.complexity[key] = facts
            keys_by_id[(method.start_byte, method.end_byte)] = key
            structure.methods.append(
                MethodMetrics(
                    key=key,
                    name=name,
                    class_name=owning_type_name(method),
                    start_line=get_line_number(method),
                    end_line=get_end_line_number(method),
                    parameter_count=len(get_method_parameters(method)),
                    cyclomatic_complexity=facts.cyclomatic,
                )
            )

        for declaration in find_nodes_by_type(root, TYPE_DECLARATION_NODE_TYPES):
            members = type_members(declaration)
            methods = [m for m in members if m.type in METHOD_NODE_TYPES]
            structure.classes.append(
                ClassMetrics(
                    class_name=get_node_text(declaration.child_by_field_name("name")),
                    start_line=get_line_number(declaration),
                    method_count=len(methods),
                    field_count=sum(1 for m in members if m.type in FIELD_NODE_TYPES),
                    method_keys=[keys_by_id[(m.start_byte, m.end_byte)] for m in methods],
                )
            )

        logger.debug(
            f"Extracted {len(structure.classes)} types and {len(structure.methods)} methods"
        )
        return structure


def _method_info(method: Node) -> MethodInfo:
    modifiers = get_modifiers(method)
    if method.type == "constructor_declaration":
        return_type = "void"
    else:
        return_type = get_node_text(method.child_by_field_name("type"))
    return MethodInfo(
        name=get_method_name(method),
        return_type=return_type,
        parameters=tuple(f"{type_text} {name}" for type_text, name in get_method_parameters(method)),
        access_modifier=access_modifier(method),
        is_static="static" in modifiers,
        is_abstract="abstract" in modifiers,
        is_final="final" in modifiers,
    )


def _field_infos(declaration: Node) -> list[FieldInfo]:
    modifiers = get_modifiers(declaration)
    type_text = get_node_text(declaration.child_by_field_name("type"))
    return [
        FieldInfo(
            name=get_node_text(declarator.child_by_field_name("name")),
            type=type_text,
            access_modifier=access_modifier(declaration),
            is_static="static" in modifiers,
            is_final="final" in modifiers,
        )
        for declarator in declaration.children_by_field_name("declarator")
    ]


def _qualified_name(node: Node) -> Node | None:
    return next(
        (c for c in node.named_children if c.type in ("identifier", "scoped_identifier")), None
    )


def extract_class_info(root: Node) -> ClassInfo | None:
    """Summarize the first type declared in the compilation unit."""
    package_name = ""
    imports = []
    primary = None
    for child in root.named_children:
        if child.type == "package_declaration":
            package_name = get_node_text(_qualified_name(child))
        elif child.type == "import_declaration":
            name = _qualified_name(child)
            if name is not None:
                suffix = ".*" if any(c.type == "asterisk" for c in child.named_children) else ""
                imports.append(get_node_text(name) + suffix)
        elif child.type in TYPE_DECLARATION_NODE_TYPES and primary is None:
            primary = child

    if primary is None:
        return None

    members = type_members(primary)
    fields = [info for m in members if m.type in FIELD_NODE_TYPES for info in _field_infos(m)]
    methods = [_method_info(m) for m in members if m.type in METHOD_NODE_TYPES]
    modifiers = get_modifiers(primary)
    return ClassInfo(
        class_name=get_node_text(primary.child_by_field_name("name")),
        package_name=package_name,
        fields=tuple(fields),
        methods=tuple(methods),
        imports=tuple(imports),
        access_modifier=access_modifier(primary),
        is_abstract="abstract" in modifiers,
        is_final="final" in modifiers,
        is_interface=primary.type == "interface_declaration",
    )
