"""McCabe cyclomatic complexity and per-line decision points."""

from collections import defaultdict
from dataclasses import dataclass, field

from tree_sitter import Node

from ..utils.ast_helpers import get_line_number, get_node_text, walk

DECISION_NODE_TYPES = {
    "if_statement",
    "for_statement",
    "enhanced_for_statement",
    "while_statement",
    "do_statement",
    "catch_clause",
    "ternary_expression",
}

SHORT_CIRCUIT_OPERATORS = {"&&", "||"}


@dataclass
class ComplexityFacts:
    """Complexity of one method plus the decision points per source line."""

    cyclomatic: int = 1
    line_decisions: dict[int, int] = field(default_factory=lambda: defaultdict(int))

    def decisions_at(self, line: int) -> int:
        return self.line_decisions.get(line, 0)


def is_decision_point(node: Node) -> bool:
    """Does this node add an independent path through the method?"""
    if node.type in DECISION_NODE_TYPES:
        return True
    if node.type == "binary_expression":
        return get_node_text(node.child_by_field_name("operator")) in SHORT_CIRCUIT_OPERATORS
    if node.type == "switch_label":
        # One per case label; `default` adds no path of its own.
        return get_node_text(node).strip() != "default"
    return False


class ComplexityAnalyzer:
    """Computes ComplexityFacts for method bodies."""

    def analyze(self, method: Node) -> ComplexityFacts:
        facts = ComplexityFacts()
        body = method.child_by_field_name("body")
        if body is None:
            return facts

        for node in walk(body):
            if is_decision_point(node):
                facts.cyclomatic += 1
                facts.line_decisions[get_line_number(node)] += 1
        return facts
