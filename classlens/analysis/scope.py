"""Identifier usage facts for a single method body."""

import re
from dataclasses import dataclass, field

from tree_sitter import Node

from ..utils.ast_helpers import (
    FIELD_NODE_TYPES,
    LOOP_NODE_TYPES,
    METHOD_NODE_TYPES,
    NESTED_SCOPE_NODE_TYPES,
    find_nodes_by_type,
    get_call_arguments,
    get_call_name,
    get_identifier_name,
    get_method_parameters,
    get_node_text,
    get_parent_of_type,
    is_same_node,
    walk,
)
from ..utils.rendering import render

# Names conventionally left unused.
CONVENTIONAL_UNUSED_NAMES = {"args", "e", "ex", "exception", "ignored"}

# Parent kinds whose `name` field declares rather than uses an identifier.
DECLARING_PARENTS = {
    "variable_declarator",
    "formal_parameter",
    "catch_formal_parameter",
    "enhanced_for_statement",
    "resource",
    "method_declaration",
    "constructor_declaration",
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
    "enum_constant",
    "method_invocation",
    "marker_annotation",
    "annotation",
}

NON_USE_PARENTS = {
    "labeled_statement",
    "break_statement",
    "continue_statement",
    "method_reference",
    "inferred_parameters",
    "scoped_identifier",
    "package_declaration",
    "import_declaration",
    "element_value_pair",
}

USAGE_PATTERN_TEMPLATES = (
    r"\.{n}\(",
    r"{n}\.",
    r"\({n}\)",
    r"\({n},",
    r", {n}\)",
    r", {n},",
    r"= {n};",
    r"return {n};",
    r"\+ {n}",
    r"{n} \+",
    r"\[{n}\]",
    r"{n}\[",
    r"if \({n}",
    r"while \({n}",
    r"{n} ==",
    r"{n} !=",
    r"== {n}",
    r"!= {n}",
)


@dataclass
class ScopeFacts:
    """Identifier facts for one method; rebuilt for every method."""

    field_names: frozenset[str]
    parameter_names: frozenset[str]
    declared_vars: set[str] = field(default_factory=set)
    used_vars: set[str] = field(default_factory=set)
    assigned_vars: set[str] = field(default_factory=set)
    null_checked_vars: set[str] = field(default_factory=set)
    initialized_vars: set[str] = field(default_factory=set)
    exception_vars: set[str] = field(default_factory=set)
    enhanced_for_vars: set[str] = field(default_factory=set)
    declared_types: dict[str, str] = field(default_factory=dict)
    body_text: str = ""

    def is_string_typed(self, name: str) -> bool:
        """Heuristic: is ``name`` declared as a String or named like one."""
        if self.declared_types.get(name) == "String":
            return True
        lowered = name.lower()
        return lowered == "result" or any(
            token in lowered for token in ("string", "message", "text", "report", "output")
        )


def _usage_pattern(template: str, name: str) -> re.Pattern:
    escaped = re.escape(name)
    # Match the name as a whole identifier.
    pattern = template.replace("{n}", f"(?<![\\w$]){escaped}(?![\\w$])")
    return re.compile(pattern)


def is_actually_used(name: str, body_text: str) -> bool:
    """Textual fallback: does the rendered body reference ``name``?"""
    if not name or not body_text:
        return False
    return any(_usage_pattern(t, name).search(body_text) for t in USAGE_PATTERN_TEMPLATES)


def is_exempt_from_unused(name: str, facts: ScopeFacts) -> bool:
    """Names never reported as unused regardless of usage."""
    return (
        name.startswith("_")
        or name in CONVENTIONAL_UNUSED_NAMES
        or name in facts.field_names
        or name in facts.parameter_names
    )


def is_loop_control_declarator(declarator: Node) -> bool:
    """Is this local declared by a for/for-each header or driving a while loop?"""
    current = declarator.parent
    while current is not None and current.type not in NESTED_SCOPE_NODE_TYPES:
        if current.type in ("for_statement", "enhanced_for_statement"):
            return True
        if current.type == "while_statement":
            name = get_node_text(declarator.child_by_field_name("name"))
            text = render(current)
            return (f"{name} =" in text and f"{name}++" in text) or (
                f"{name} <" in text or f"{name} >" in text
            )
        if current.type in ("method_declaration", "constructor_declaration"):
            return False
        current = current.parent
    return False


def is_inside_loop(node: Node) -> bool:
    """Is ``node`` nested inside any loop of its own method?"""
    return (
        get_parent_of_type(
            node, LOOP_NODE_TYPES, stop_at=NESTED_SCOPE_NODE_TYPES + METHOD_NODE_TYPES
        )
        is not None
    )


def collect_field_names(root: Node) -> frozenset[str]:
    """Collect every field name declared in the compilation unit."""
    names = set()
    for decl in find_nodes_by_type(root, FIELD_NODE_TYPES):
        for declarator in decl.children_by_field_name("declarator"):
            names.add(get_node_text(declarator.child_by_field_name("name")))
    return frozenset(names)


def collect_field_types(root: Node) -> dict[str, str]:
    """Map field names to their declared type text."""
    types = {}
    for decl in find_nodes_by_type(root, FIELD_NODE_TYPES):
        type_text = get_node_text(decl.child_by_field_name("type"))
        for declarator in decl.children_by_field_name("declarator"):
            types[get_node_text(declarator.child_by_field_name("name"))] = type_text
    return types


class ScopeTracker:
    """Walks one method body and records declared/used/assigned identifiers."""

    def __init__(self, field_names: frozenset[str], field_types: dict[str, str] | None = None):
        self.field_names = field_names
        self.field_types = dict(field_types or {})

    def track(self, method: Node) -> ScopeFacts:
        """Build ScopeFacts for a method or constructor declaration."""
        parameters = get_method_parameters(method)
        facts = ScopeFacts(
            field_names=self.field_names,
            parameter_names=frozenset(name for _, name in parameters if name),
        )
        facts.declared_types.update(self.field_types)
        for type_text, name in parameters:
            facts.declared_types[name] = type_text

        body = method.child_by_field_name("body")
        if body is None:
            return facts

        facts.body_text = render(body)
        for node in walk(body):
            self._visit(node, facts)
        return facts

    def _visit(self, node: Node, facts: ScopeFacts) -> None:
        kind = node.type
        if kind == "identifier":
            if self._is_use(node):
                facts.used_vars.add(get_node_text(node))
        elif kind == "local_variable_declaration":
            type_text = get_node_text(node.child_by_field_name("type"))
            for declarator in node.children_by_field_name("declarator"):
                name = get_node_text(declarator.child_by_field_name("name"))
                facts.declared_vars.add(name)
                facts.declared_types[name] = type_text
                if declarator.child_by_field_name("value") is not None:
                    facts.initialized_vars.add(name)
        elif kind == "resource":
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                name = get_node_text(name_node)
                facts.declared_vars.add(name)
                facts.initialized_vars.add(name)
                facts.declared_types[name] = get_node_text(node.child_by_field_name("type"))
        elif kind == "field_access":
            obj = node.child_by_field_name("object")
            if obj is not None and obj.type == "this":
                facts.used_vars.add(get_node_text(node.child_by_field_name("field")))
        elif kind == "assignment_expression":
            self._visit_assignment(node, facts)
        elif kind == "update_expression":
            operand = next((c for c in node.named_children), None)
            name = get_identifier_name(operand)
            if name:
                facts.used_vars.add(name)
                facts.assigned_vars.add(name)
        elif kind == "binary_expression":
            self._visit_null_comparison(node, facts)
        elif kind == "method_invocation":
            self._visit_null_assertion(node, facts)
        elif kind == "catch_formal_parameter":
            facts.exception_vars.add(get_node_text(node.child_by_field_name("name")))
        elif kind == "enhanced_for_statement":
            name = get_node_text(node.child_by_field_name("name"))
            facts.enhanced_for_vars.add(name)
            facts.declared_types[name] = get_node_text(node.child_by_field_name("type"))

    def _is_use(self, node: Node) -> bool:
        parent = node.parent
        if parent is None:
            return False
        if parent.type in NON_USE_PARENTS:
            return False
        if parent.type in DECLARING_PARENTS:
            return not is_same_node(parent.child_by_field_name("name"), node)
        if parent.type == "field_access":
            return not is_same_node(parent.child_by_field_name("field"), node)
        if parent.type == "lambda_expression":
            return not is_same_node(parent.child_by_field_name("parameters"), node)
        return True

    def _visit_assignment(self, node: Node, facts: ScopeFacts) -> None:
        target = node.child_by_field_name("left")
        name = get_identifier_name(target)
        if name:
            facts.used_vars.add(name)
            facts.assigned_vars.add(name)
            facts.initialized_vars.add(name)
        elif target is not None and target.type == "field_access":
            obj = target.child_by_field_name("object")
            if obj is not None and obj.type == "this":
                field_name = get_node_text(target.child_by_field_name("field"))
                facts.used_vars.add(field_name)
                facts.assigned_vars.add(field_name)

    def _visit_null_comparison(self, node: Node, facts: ScopeFacts) -> None:
        if get_node_text(node.child_by_field_name("operator")) != "!=":
            return
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if right is not None and right.type == "null_literal":
            name = get_identifier_name(left)
        elif left is not None and left.type == "null_literal":
            name = get_identifier_name(right)
        else:
            return
        if name:
            facts.null_checked_vars.add(name)

    def _visit_null_assertion(self, node: Node, facts: ScopeFacts) -> None:
        receiver = get_node_text(node.child_by_field_name("object"))
        if receiver != "Objects" or get_call_name(node) not in ("nonNull", "requireNonNull"):
            return
        args = get_call_arguments(node)
        name = get_identifier_name(args[0]) if args else None
        if name:
            facts.null_checked_vars.add(name)
