"""Security vulnerability detection for Java compilation units."""

from dataclasses import dataclass

from loguru import logger
from tree_sitter import Node

from ..utils.ast_helpers import (
    FIELD_NODE_TYPES,
    METHOD_NODE_TYPES,
    find_nodes_by_type,
    get_call_arguments,
    get_call_name,
    get_created_type_name,
    get_enclosing_method,
    get_enclosing_statement,
    get_identifier_name,
    get_line_number,
    get_method_name,
    get_modifiers,
    get_node_text,
    get_parent_of_type,
    get_string_literal_value,
    iter_ancestors,
    named_statements,
    plus_operands,
    unwrap_parentheses,
    walk,
)
from ..utils.rendering import render
from .heuristics import (
    has_bounds_check,
    is_config_context,
    is_constant_or_static_name,
    is_credential_name,
    is_from_secure_source,
    is_index_like_name,
    is_lookup_call_name,
    is_placeholder_value,
    is_primitive_type,
    is_security_context,
    is_security_critical_method_name,
    is_sensitive_local_name,
    is_sql_variable_name,
    is_test_method_name,
    is_user_input_name,
    looks_like_credential,
)
from .models import SecurityFinding, Severity
from .rules import MethodContext, Rule, apply_rule, run_rules

SQL_METHODS = ("executeQuery", "executeUpdate", "execute")

PREPARED_STATEMENT_TYPES = {"PreparedStatement", "CallableStatement"}

FILE_TYPES = {
    "File",
    "FileInputStream",
    "FileOutputStream",
    "FileReader",
    "FileWriter",
    "RandomAccessFile",
}

# Operand kinds that carry a runtime value into a concatenated string.
VARIABLE_OPERAND_TYPES = ("identifier", "field_access", "array_access", "method_invocation")


def _finding(type_: str, description: str, node: Node, snippet: str, severity: Severity):
    return SecurityFinding(
        type=type_,
        description=description,
        line_number=get_line_number(node),
        vulnerable_snippet=snippet,
        severity=severity,
    )


def _is_concatenation(node: Node | None) -> bool:
    return len(plus_operands(node)) > 1


def _concatenates_variable(node: Node) -> bool:
    operands = plus_operands(node)
    return len(operands) > 1 and any(op.type in VARIABLE_OPERAND_TYPES for op in operands)


def _concatenates_string(node: Node) -> bool:
    operands = plus_operands(node)
    return len(operands) > 1 and any(op.type in ("string_literal", "identifier") for op in operands)


def _lookup_value(node: Node | None) -> bool:
    """Is ``node`` (possibly cast) the result of a get/find/search/lookup call?"""
    node = unwrap_parentheses(node)
    if node is not None and node.type == "cast_expression":
        node = unwrap_parentheses(node.child_by_field_name("value"))
    return node is not None and node.type == "method_invocation" and is_lookup_call_name(get_call_name(node))


def collect_lookup_assigned(body: Node) -> frozenset[str]:
    """Names of locals assigned from a lookup-style call anywhere in ``body``."""
    names = set()
    for node in walk(body):
        if node.type == "variable_declarator" and _lookup_value(node.child_by_field_name("value")):
            names.add(get_node_text(node.child_by_field_name("name")))
        elif node.type == "assignment_expression" and _lookup_value(node.child_by_field_name("right")):
            name = get_identifier_name(node.child_by_field_name("left"))
            if name:
                names.add(name)
    return frozenset(names)


def is_built_by_concatenation(name: str, body: Node, before: int) -> bool:
    """Was ``name`` given a concatenated value before byte offset ``before``?"""
    for node in walk(body):
        if node.start_byte >= before:
            break
        if node.type == "variable_declarator":
            if get_node_text(node.child_by_field_name("name")) == name and _is_concatenation(
                node.child_by_field_name("value")
            ):
                return True
        elif node.type == "assignment_expression":
            if get_identifier_name(node.child_by_field_name("left")) != name:
                continue
            operator = get_node_text(node.child_by_field_name("operator"))
            if operator == "+=" or _is_concatenation(node.child_by_field_name("right")):
                return True
    return False


def _is_prepared_receiver(call: Node, context: MethodContext) -> bool:
    receiver = call.child_by_field_name("object")
    if receiver is None:
        return False
    name = get_identifier_name(receiver)
    if name and context.scope.declared_types.get(name) in PREPARED_STATEMENT_TYPES:
        return True
    text = render(receiver).lower()
    return "prepare" in text or "callable" in text


def _in_test_method(node: Node) -> bool:
    method = get_enclosing_method(node)
    return method is not None and is_test_method_name(get_method_name(method))


@dataclass(frozen=True)
class DereferenceContext:
    """Input of the deferred null-dereference pass of one method."""

    method: MethodContext
    flagged_lines: frozenset[int]
    lookup_assigned: frozenset[str]


class SecurityRuleSet:
    """Applies the security rule tables to fields and method bodies."""

    def __init__(self):
        self.field_rules = (
            Rule("HARDCODED_CREDENTIALS", frozenset(FIELD_NODE_TYPES), self._check_credential_field),
        )
        self.node_rules = (
            Rule(
                "HARDCODED_CREDENTIALS",
                frozenset({"string_literal"}),
                self._check_credential_literal,
                in_fields=True,
            ),
            Rule("COMMAND_INJECTION", frozenset({"method_invocation"}), self._check_command_injection),
            Rule(
                "DANGEROUS_METHOD_CALL",
                frozenset({"method_invocation"}),
                self._check_dangerous_method_call,
            ),
            Rule("SQL_INJECTION", frozenset({"method_invocation"}), self._check_sql_injection),
            Rule(
                "DYNAMIC_SQL_CONSTRUCTION",
                frozenset({"method_invocation"}),
                self._check_dynamic_sql,
            ),
            Rule("PATH_TRAVERSAL", frozenset({"object_creation_expression"}), self._check_path_traversal),
            Rule(
                "WEAK_RANDOM",
                frozenset({"object_creation_expression"}),
                self._check_weak_random,
                in_fields=True,
            ),
            Rule(
                "SENSITIVE_DATA_EXPOSURE",
                frozenset({"local_variable_declaration"}),
                self._check_sensitive_data_exposure,
            ),
            Rule("ARRAY_BOUNDS_CHECK", frozenset({"array_access"}), self._check_array_bounds),
            Rule("UNSAFE_CASTING", frozenset({"cast_expression"}), self._check_unsafe_cast),
            Rule("EMPTY_CATCH_BLOCK", frozenset({"catch_clause"}), self._check_empty_catch),
            Rule(
                "POOR_EXCEPTION_HANDLING",
                frozenset({"catch_clause"}),
                self._check_print_only_catch,
            ),
        )
        self.null_dereference_rule = Rule(
            "NULL_POINTER_DEREFERENCE", frozenset({"method_invocation"}), self._check_null_dereference
        )

    def analyze_fields(self, root: Node) -> list[SecurityFinding]:
        """Run the class-level rules over every field declaration."""
        field_node_rules = tuple(rule for rule in self.node_rules if rule.in_fields)
        findings = []
        for declaration in find_nodes_by_type(root, FIELD_NODE_TYPES):
            for rule in self.field_rules:
                findings.extend(apply_rule(rule, declaration, None))
            findings.extend(run_rules(field_node_rules, declaration, None))
        return findings

    def analyze_method(
        self, context: MethodContext, flagged_lines: frozenset[int] = frozenset()
    ) -> list[SecurityFinding]:
        """Run the node rules over a method body, then the null-dereference pass.

        The null-dereference pass skips lines that already carry a finding,
        lines in ``flagged_lines`` and lines of SQL sink calls.
        """
        body = context.method.child_by_field_name("body")
        if body is None:
            return []

        findings = run_rules(self.node_rules, body, context)

        sink_lines = {
            get_line_number(call)
            for call in find_nodes_by_type(body, "method_invocation")
            if get_call_name(call) in SQL_METHODS
        }
        deferred = DereferenceContext(
            method=context,
            flagged_lines=frozenset(flagged_lines) | {f.line_number for f in findings} | sink_lines,
            lookup_assigned=collect_lookup_assigned(body),
        )
        findings.extend(run_rules((self.null_dereference_rule,), body, deferred))

        logger.debug(f"{context.class_name}.{context.name}: {len(findings)} security findings")
        return findings

    # Class-level rules

    def _check_credential_field(self, declaration: Node, context: None):
        findings = []
        for declarator in declaration.children_by_field_name("declarator"):
            name = get_node_text(declarator.child_by_field_name("name"))
            value = unwrap_parentheses(declarator.child_by_field_name("value"))
            if not is_credential_name(name) or value is None or value.type != "string_literal":
                continue
            if is_from_secure_source(render(value)):
                continue
            literal = get_string_literal_value(value)
            if not literal or is_placeholder_value(literal):
                continue
            findings.append(
                _finding(
                    "HARDCODED_CREDENTIALS",
                    f"Hardcoded credential found in field: {name}",
                    declaration,
                    render(declarator),
                    Severity.CRITICAL,
                )
            )
        return findings

    # Node rules

    def _check_credential_literal(self, node: Node, context: MethodContext | None):
        if not looks_like_credential(get_string_literal_value(node)):
            return None
        if _in_test_method(node):
            return None
        statement = get_enclosing_statement(node)
        if statement is not None and is_config_context(render(statement)):
            return None
        return _finding(
            "HARDCODED_CREDENTIALS",
            "Potential hardcoded credential in string literal",
            node,
            render(node),
            Severity.HIGH,
        )

    def _check_command_injection(self, node: Node, context: MethodContext):
        receiver = node.child_by_field_name("object")
        if get_call_name(node) != "exec" or receiver is None:
            return None
        name = get_identifier_name(receiver)
        is_runtime = "runtime" in render(receiver).lower() or (
            name is not None and context.scope.declared_types.get(name) == "Runtime"
        )
        if not is_runtime or is_test_method_name(context.name):
            return None
        return _finding(
            "COMMAND_INJECTION",
            "Potentially dangerous Runtime.exec() call",
            node,
            render(node),
            Severity.HIGH,
        )

    def _check_dangerous_method_call(self, node: Node, context: MethodContext):
        if get_call_name(node) != "getRuntime":
            return None
        if get_identifier_name(node.child_by_field_name("object")) != "Runtime":
            return None
        if is_test_method_name(context.name):
            return None
        return _finding(
            "DANGEROUS_METHOD_CALL",
            "Use of Runtime.getRuntime() detected",
            node,
            render(node),
            Severity.MEDIUM,
        )

    def _check_sql_injection(self, node: Node, context: MethodContext):
        if get_call_name(node) not in SQL_METHODS or _is_prepared_receiver(node, context):
            return None
        if not any(_concatenates_variable(arg) for arg in get_call_arguments(node)):
            return None
        return _finding(
            "SQL_INJECTION",
            "SQL injection vulnerability - string concatenation in query",
            node,
            render(node),
            Severity.CRITICAL,
        )

    def _check_dynamic_sql(self, node: Node, context: MethodContext):
        if get_call_name(node) not in SQL_METHODS or _is_prepared_receiver(node, context):
            return None
        arguments = get_call_arguments(node)
        # Direct concatenation is reported as SQL_INJECTION instead.
        if any(_concatenates_variable(arg) for arg in arguments):
            return None
        body = context.method.child_by_field_name("body")
        for arg in arguments:
            name = get_identifier_name(arg)
            if not name or not is_sql_variable_name(name):
                continue
            if is_built_by_concatenation(name, body, node.start_byte):
                return _finding(
                    "DYNAMIC_SQL_CONSTRUCTION",
                    "Dynamic SQL query construction detected",
                    node,
                    render(node),
                    Severity.CRITICAL,
                )
        return None

    def _check_path_traversal(self, node: Node, context: MethodContext):
        if get_created_type_name(node) not in FILE_TYPES:
            return None
        for arg in get_call_arguments(node):
            name = get_identifier_name(arg)
            user_input = (
                name is not None and is_user_input_name(name) and name in context.scope.parameter_names
            )
            if user_input or _concatenates_string(arg):
                return _finding(
                    "PATH_TRAVERSAL",
                    "Potential path traversal vulnerability - user input in file path",
                    node,
                    render(node),
                    Severity.HIGH,
                )
        return None

    def _check_weak_random(self, node: Node, context: MethodContext | None):
        if get_created_type_name(node) != "Random":
            return None
        owner = get_parent_of_type(node, METHOD_NODE_TYPES + FIELD_NODE_TYPES)
        if owner is None or not is_security_context(render(owner)):
            return None
        return _finding(
            "WEAK_RANDOM",
            "Using weak random number generator in security context",
            node,
            render(node),
            Severity.MEDIUM,
        )

    def _check_sensitive_data_exposure(self, node: Node, context: MethodContext):
        if get_node_text(node.child_by_field_name("type")) != "String":
            return None
        if {"static", "final"} <= get_modifiers(node):
            return None
        findings = []
        for declarator in node.children_by_field_name("declarator"):
            name = get_node_text(declarator.child_by_field_name("name"))
            if not is_sensitive_local_name(name):
                continue
            if is_from_secure_source(render(declarator.child_by_field_name("value"))):
                continue
            findings.append(
                _finding(
                    "SENSITIVE_DATA_EXPOSURE",
                    "Sensitive data stored in String (immutable and may appear in memory dumps)",
                    node,
                    render(declarator),
                    Severity.MEDIUM,
                )
            )
        return findings

    def _check_array_bounds(self, node: Node, context: MethodContext):
        index = get_identifier_name(node.child_by_field_name("index"))
        if not index:
            return None
        if index not in context.scope.parameter_names and not is_index_like_name(index):
            return None

        # Enclosing if-conditions plus the nearest block.
        guard_texts = []
        block = None
        for ancestor in iter_ancestors(node, stop_at=METHOD_NODE_TYPES):
            if ancestor.type == "if_statement":
                guard_texts.append(render(ancestor.child_by_field_name("condition")))
            elif ancestor.type == "block" and block is None:
                block = ancestor
        guard_texts.append(render(block))

        array = render(node.child_by_field_name("array"))
        if has_bounds_check(" ".join(guard_texts), index, array):
            return None
        return _finding(
            "ARRAY_BOUNDS_CHECK",
            "Array access without bounds checking - potential ArrayIndexOutOfBoundsException",
            node,
            render(node),
            Severity.MEDIUM,
        )

    def _check_unsafe_cast(self, node: Node, context: MethodContext):
        target_type = get_node_text(node.child_by_field_name("type"))
        if is_primitive_type(target_type):
            return None
        value_text = render(node.child_by_field_name("value"))
        if target_type == "String" and ("toString()" in value_text or "String.valueOf" in value_text):
            return None
        if "instanceof" in render(context.method):
            return None
        return _finding(
            "UNSAFE_CASTING",
            "Unsafe type casting without instanceof check",
            node,
            render(node),
            Severity.LOW,
        )

    def _check_empty_catch(self, node: Node, context: MethodContext):
        if named_statements(node.child_by_field_name("body")):
            return None
        return _finding(
            "EMPTY_CATCH_BLOCK",
            "Empty catch block may hide security issues",
            node,
            render(node),
            Severity.LOW,
        )

    def _check_print_only_catch(self, node: Node, context: MethodContext):
        statements = named_statements(node.child_by_field_name("body"))
        if len(statements) != 1 or statements[0].type != "expression_statement":
            return None
        expression = statements[0].named_children[0] if statements[0].named_children else None
        if expression is None or expression.type != "method_invocation":
            return None
        if get_call_name(expression) != "printStackTrace":
            return None
        return _finding(
            "POOR_EXCEPTION_HANDLING",
            "Exception handling only prints stack trace - consider proper logging",
            node,
            render(node),
            Severity.LOW,
        )

    # Deferred rule

    def _check_null_dereference(self, node: Node, context: DereferenceContext):
        name = get_identifier_name(node.child_by_field_name("object"))
        if not name:
            return None
        method = context.method
        scope = method.scope

        if get_line_number(node) in context.flagged_lines:
            return None
        if is_security_critical_method_name(method.name):
            return None
        if name in ("this", "super") or is_constant_or_static_name(name):
            return None
        if name in scope.exception_vars or name in scope.enhanced_for_vars:
            return None
        if name in scope.field_names and name not in scope.parameter_names:
            return None
        if name in scope.null_checked_vars:
            return None
        if name not in scope.parameter_names and name not in context.lookup_assigned:
            return None
        return _finding(
            "NULL_POINTER_DEREFERENCE",
            f"Potential null pointer dereference on variable: {name}",
            node,
            render(node),
            Severity.MEDIUM,
        )
