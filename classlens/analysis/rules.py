"""Ordered rule tables shared by the optimization and security rule sets."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from loguru import logger
from tree_sitter import Node

from ..utils.ast_helpers import get_line_number, get_method_name, walk
from .complexity import ComplexityFacts
from .scope import ScopeFacts


@dataclass
class MethodContext:
    """Everything a rule may consult about the method under analysis."""

    method: Node
    name: str
    class_name: str
    scope: ScopeFacts
    complexity: ComplexityFacts

    @classmethod
    def build(cls, method: Node, class_name: str, scope: ScopeFacts, complexity: ComplexityFacts):
        return cls(
            method=method,
            name=get_method_name(method),
            class_name=class_name,
            scope=scope,
            complexity=complexity,
        )


@dataclass(frozen=True)
class Rule:
    """One detector bound to the node kinds it inspects.

    ``check`` receives the node and a context object and returns a finding,
    a list of findings, or None.
    """

    name: str
    node_types: frozenset[str]
    check: Callable
    in_fields: bool = False  # also applied inside field initializers


def apply_rule(rule: Rule, node: Node, context) -> list:
    """Run one rule on one node; a rule that raises is logged and does not fire."""
    try:
        finding = rule.check(node, context)
    except Exception as e:
        logger.error(f"Rule {rule.name} failed at line {get_line_number(node)}: {e}")
        return []
    if finding is None:
        return []
    return finding if isinstance(finding, list) else [finding]


def run_rules(rules: Iterable[Rule], root: Node, context) -> list:
    """Apply ``rules`` to every node below ``root`` in document order.

    Within a node the rules fire in table order.
    """
    rules = tuple(rules)
    findings = []
    for node in walk(root):
        for rule in rules:
            if node.type in rule.node_types:
                findings.extend(apply_rule(rule, node, context))
    return findings
