"""Optimization suggestions for Java method bodies."""

from loguru import logger
from tree_sitter import Node

from ..config import AnalysisConfig
from ..utils.ast_helpers import (
    METHOD_NODE_TYPES,
    NESTED_SCOPE_NODE_TYPES,
    STATEMENT_NODE_TYPES,
    find_nodes_by_type,
    get_call_arguments,
    get_call_name,
    get_created_type_name,
    get_identifier_name,
    get_line_number,
    get_method_name,
    get_method_parameters,
    get_modifiers,
    get_node_text,
    get_parent_of_type,
    is_boolean_literal,
    is_within,
    iter_ancestors,
    named_statements,
    parse_int_literal,
    plus_operands,
    unwrap_parentheses,
)
from ..utils.rendering import render, render_declaration
from .heuristics import is_power_of_two, is_primitive_type
from .models import OptimizationFinding, Severity
from .rules import MethodContext, Rule, apply_rule, run_rules
from .scope import is_actually_used, is_exempt_from_unused, is_inside_loop, is_loop_control_declarator

# Locals conventionally declared before a read loop assigns them.
LOOP_SCRATCH_NAMES = {"line", "data", "input"}

EXPENSIVE_MATH_CALLS = {"pow", "sqrt", "sin", "cos", "log", "exp"}
MATH_RECEIVERS = {"Math", "StrictMath"}

WRAPPER_TYPES = {"Boolean", "Byte", "Short", "Integer", "Long", "Float", "Double"}

SIZE_CALLS = {"size", "length"}

LOGGING_TOKENS = ("log", "debug", "info", "error")

INTEGER_LITERAL_TYPES = (
    "decimal_integer_literal",
    "hex_integer_literal",
    "octal_integer_literal",
    "binary_integer_literal",
)

CALL_NODE_TYPES = ("method_invocation", "object_creation_expression", "explicit_constructor_invocation")

WITHIN_METHOD = NESTED_SCOPE_NODE_TYPES + METHOD_NODE_TYPES


def _finding(type_: str, description: str, node: Node, snippet: str, severity: Severity):
    return OptimizationFinding(
        type=type_,
        description=description,
        line_number=get_line_number(node),
        original_snippet=snippet,
        severity=severity,
    )


def _local_declarator(node: Node) -> bool:
    return node.parent is not None and node.parent.type == "local_variable_declaration"


def _is_print_or_log_argument(node: Node) -> bool:
    """Is ``node`` inside a print or logging call within its own statement?"""
    for ancestor in iter_ancestors(node, stop_at=STATEMENT_NODE_TYPES):
        if ancestor.type != "method_invocation":
            continue
        if "print" in get_call_name(ancestor):
            return True
        text = render(ancestor).lower()
        if any(token in text for token in LOGGING_TOKENS):
            return True
    return False


def _inside_while_body(node: Node) -> bool:
    for ancestor in iter_ancestors(node, stop_at=WITHIN_METHOD):
        if ancestor.type == "while_statement" and is_within(node, ancestor.child_by_field_name("body")):
            return True
    return False


class OptimizationRuleSet:
    """Applies the optimization rule table to one method at a time."""

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config or AnalysisConfig()
        self.node_rules = (
            Rule("UNUSED_VARIABLE", frozenset({"variable_declarator"}), self._check_unused_variable),
            Rule(
                "UNINITIALIZED_VARIABLE",
                frozenset({"variable_declarator"}),
                self._check_uninitialized_variable,
            ),
            Rule(
                "STRING_CONCATENATION_IN_LOOP",
                frozenset({"assignment_expression"}),
                self._check_string_concatenation_in_loop,
            ),
            Rule(
                "LOOP_INVARIANT_CALCULATION",
                frozenset({"method_invocation"}),
                self._check_loop_invariant_calculation,
            ),
            Rule(
                "UNNECESSARY_OBJECT_CREATION",
                frozenset({"object_creation_expression"}),
                self._check_unnecessary_object_creation,
            ),
            Rule(
                "WRAPPER_OBJECT_CREATION",
                frozenset({"object_creation_expression"}),
                self._check_wrapper_object_creation,
            ),
            Rule("DIVISION_OPTIMIZATION", frozenset({"binary_expression"}), self._check_division),
            Rule("INEFFICIENT_LOOP", frozenset({"for_statement"}), self._check_inefficient_loop),
            Rule("INFINITE_LOOP", frozenset({"while_statement"}), self._check_infinite_loop),
            Rule("REDUNDANT_CONDITION", frozenset({"if_statement"}), self._check_redundant_condition),
        )
        self.method_rules = (
            Rule("EMPTY_METHOD", frozenset({"method_declaration"}), self._check_empty_method),
            Rule("TOO_MANY_PARAMETERS", frozenset(METHOD_NODE_TYPES), self._check_parameter_count),
            Rule(
                "HIGH_CYCLOMATIC_COMPLEXITY",
                frozenset(METHOD_NODE_TYPES),
                self._check_cyclomatic_complexity,
            ),
        )

    def analyze_method(self, context: MethodContext) -> list[OptimizationFinding]:
        """Run node rules over the body in document order, then the method rules."""
        findings = []
        body = context.method.child_by_field_name("body")
        if body is not None:
            findings.extend(run_rules(self.node_rules, body, context))

        for rule in self.method_rules:
            if context.method.type in rule.node_types:
                findings.extend(apply_rule(rule, context.method, context))

        logger.debug(f"{context.class_name}.{context.name}: {len(findings)} optimization findings")
        return findings

    # Node rules

    def _check_unused_variable(self, node: Node, context: MethodContext):
        if not _local_declarator(node):
            return None
        name = get_node_text(node.child_by_field_name("name"))
        scope = context.scope
        if is_exempt_from_unused(name, scope) or is_loop_control_declarator(node):
            return None
        if name in scope.used_vars or is_actually_used(name, scope.body_text):
            return None
        return _finding(
            "UNUSED_VARIABLE",
            f"Local variable '{name}' is declared but never used",
            node,
            render(node),
            Severity.LOW,
        )

    def _check_uninitialized_variable(self, node: Node, context: MethodContext):
        if not _local_declarator(node) or node.child_by_field_name("value") is not None:
            return None
        name = get_node_text(node.child_by_field_name("name"))
        type_text = get_node_text(node.parent.child_by_field_name("type"))
        if is_primitive_type(type_text) or name in LOOP_SCRATCH_NAMES:
            return None
        if get_parent_of_type(node, ("for_statement", "enhanced_for_statement"), stop_at=WITHIN_METHOD):
            return None
        return _finding(
            "UNINITIALIZED_VARIABLE",
            f"Variable '{name}' declared without initialization",
            node,
            render(node),
            Severity.LOW,
        )

    def _check_string_concatenation_in_loop(self, node: Node, context: MethodContext):
        if not is_inside_loop(node):
            return None
        target = get_identifier_name(node.child_by_field_name("left"))
        if not target:
            return None

        scope = context.scope
        operator = get_node_text(node.child_by_field_name("operator"))
        value = unwrap_parentheses(node.child_by_field_name("right"))
        if operator == "+=":
            concatenates = scope.is_string_typed(target) or (
                value is not None and value.type == "string_literal"
            )
        elif operator == "=":
            operands = plus_operands(value)
            if len(operands) < 2 or get_identifier_name(operands[0]) != target:
                return None
            concatenates = scope.is_string_typed(target) or any(
                op.type == "string_literal" or scope.is_string_typed(get_identifier_name(op) or "")
                for op in operands[1:]
            )
        else:
            return None

        if not concatenates or _is_print_or_log_argument(node):
            return None
        return _finding(
            "STRING_CONCATENATION_IN_LOOP",
            "String concatenation inside loop may impact performance",
            node,
            render(node),
            Severity.HIGH,
        )

    def _check_loop_invariant_calculation(self, node: Node, context: MethodContext):
        name = get_call_name(node)
        receiver = get_identifier_name(node.child_by_field_name("object"))
        if name not in EXPENSIVE_MATH_CALLS or receiver not in MATH_RECEIVERS:
            return None
        if not _inside_while_body(node):
            return None
        return _finding(
            "LOOP_INVARIANT_CALCULATION",
            f"Expensive calculation inside loop: {name}",
            node,
            render(node),
            Severity.MEDIUM,
        )

    def _check_unnecessary_object_creation(self, node: Node, context: MethodContext):
        if get_created_type_name(node) != "String" or get_call_arguments(node):
            return None
        return _finding(
            "UNNECESSARY_OBJECT_CREATION",
            "Unnecessary String object creation",
            node,
            render(node),
            Severity.LOW,
        )

    def _check_wrapper_object_creation(self, node: Node, context: MethodContext):
        if get_created_type_name(node) not in WRAPPER_TYPES or len(get_call_arguments(node)) != 1:
            return None
        parent = node.parent
        if parent is not None and parent.type == "argument_list" and parent.parent.type in CALL_NODE_TYPES:
            return None
        return _finding(
            "WRAPPER_OBJECT_CREATION",
            "Consider using valueOf() method for wrapper objects",
            node,
            render(node),
            Severity.LOW,
        )

    def _check_division(self, node: Node, context: MethodContext):
        if get_node_text(node.child_by_field_name("operator")) != "/":
            return None
        divisor = node.child_by_field_name("right")
        if divisor is None or divisor.type not in INTEGER_LITERAL_TYPES:
            return None
        try:
            value = parse_int_literal(get_node_text(divisor))
        except ValueError:
            logger.debug(f"Skipping malformed integer literal at line {get_line_number(divisor)}")
            return None
        if value <= 1 or not is_power_of_two(value):
            return None
        return _finding(
            "DIVISION_OPTIMIZATION",
            "Division by power of 2 can be optimized",
            node,
            render(node),
            Severity.LOW,
        )

    def _check_inefficient_loop(self, node: Node, context: MethodContext):
        condition = unwrap_parentheses(node.child_by_field_name("condition"))
        if condition is None or condition.type != "binary_expression":
            return None
        bound = condition.child_by_field_name("right")
        if bound is None or bound.type != "method_invocation":
            return None
        name = get_call_name(bound)
        receiver = bound.child_by_field_name("object")
        if name not in SIZE_CALLS or get_identifier_name(receiver):
            return None
        return _finding(
            "INEFFICIENT_LOOP",
            f"Method call '{name}()' in loop condition may be inefficient",
            node,
            render(condition),
            Severity.MEDIUM,
        )

    def _check_infinite_loop(self, node: Node, context: MethodContext):
        condition = unwrap_parentheses(node.child_by_field_name("condition"))
        if condition is None or condition.type != "true":
            return None
        body = node.child_by_field_name("body")
        if body is not None and find_nodes_by_type(body, "break_statement", NESTED_SCOPE_NODE_TYPES):
            return None
        return _finding(
            "INFINITE_LOOP",
            "Potential infinite loop detected - no break statement found",
            node,
            render(node),
            Severity.HIGH,
        )

    def _check_redundant_condition(self, node: Node, context: MethodContext):
        condition = node.child_by_field_name("condition")
        if not is_boolean_literal(condition):
            return None
        return _finding(
            "REDUNDANT_CONDITION",
            "If statement with constant boolean condition",
            node,
            render(unwrap_parentheses(condition)),
            Severity.LOW,
        )

    # Method rules

    def _check_empty_method(self, method: Node, context: MethodContext):
        body = method.child_by_field_name("body")
        if body is None or named_statements(body) or "abstract" in get_modifiers(method):
            return None
        return _finding(
            "EMPTY_METHOD", "Method has empty body", method, render_declaration(method), Severity.LOW
        )

    def _check_parameter_count(self, method: Node, context: MethodContext):
        count = len(get_method_parameters(method))
        if count <= self.config.max_parameters:
            return None
        return _finding(
            "TOO_MANY_PARAMETERS",
            f"Method has too many parameters ({count})",
            method,
            render_declaration(method),
            Severity.MEDIUM,
        )

    def _check_cyclomatic_complexity(self, method: Node, context: MethodContext):
        complexity = context.complexity.cyclomatic
        if complexity <= self.config.complexity_threshold:
            return None
        severity = (
            Severity.HIGH if complexity > self.config.high_complexity_threshold else Severity.MEDIUM
        )
        return _finding(
            "HIGH_CYCLOMATIC_COMPLEXITY",
            f"Method '{get_method_name(method)}' has high cyclomatic complexity: {complexity}",
            method,
            render_declaration(method),
            severity,
        )
