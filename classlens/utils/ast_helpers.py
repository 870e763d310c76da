"""AST helper functions for tree-sitter Java trees."""

from collections.abc import Iterator

from tree_sitter import Node

METHOD_NODE_TYPES = ("method_declaration", "constructor_declaration")
TYPE_DECLARATION_NODE_TYPES = (
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
)
LOOP_NODE_TYPES = (
    "for_statement",
    "enhanced_for_statement",
    "while_statement",
    "do_statement",
)

# Traversals inside a method stop here; nested classes own their methods.
NESTED_SCOPE_NODE_TYPES = ("class_body", "enum_body", "interface_body")

STATEMENT_NODE_TYPES = (
    "expression_statement",
    "local_variable_declaration",
    "return_statement",
    "if_statement",
    "while_statement",
    "do_statement",
    "for_statement",
    "enhanced_for_statement",
    "throw_statement",
    "yield_statement",
    "field_declaration",
    "constant_declaration",
    "assert_statement",
)

FIELD_NODE_TYPES = ("field_declaration", "constant_declaration")

COMMENT_NODE_TYPES = ("line_comment", "block_comment")


def get_node_text(node: Node | None) -> str:
    """Extract the raw source text of a node."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def get_line_number(node: Node | None) -> int:
    """Get the line number of a node (1-indexed, 0 when unknown)."""
    if node is None:
        return 0
    return node.start_point[0] + 1


def get_end_line_number(node: Node | None) -> int:
    """Get the last line covered by a node (1-indexed, 0 when unknown)."""
    if node is None:
        return 0
    return node.end_point[0] + 1


def walk(node: Node, stop_at: tuple[str, ...] = NESTED_SCOPE_NODE_TYPES) -> Iterator[Node]:
    """Yield descendants of ``node`` in document order.

    Subtrees rooted at a node whose type is in ``stop_at`` are not entered;
    the node itself is still yielded.
    """
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        yield current
        if current.type in stop_at:
            continue
        stack.extend(reversed(current.children))


def find_nodes_by_type(
    node: Node, node_type: str | tuple[str, ...], stop_at: tuple[str, ...] = ()
) -> list[Node]:
    """Find all nodes of the given type(s) below ``node``."""
    wanted = (node_type,) if isinstance(node_type, str) else node_type
    return [n for n in walk(node, stop_at) if n.type in wanted]


def get_parent_of_type(
    node: Node, parent_type: str | tuple[str, ...], stop_at: tuple[str, ...] = ()
) -> Node | None:
    """Find the nearest ancestor of the given type(s).

    The search gives up when it reaches a node whose type is in ``stop_at``.
    """
    wanted = (parent_type,) if isinstance(parent_type, str) else parent_type
    current = node.parent
    while current is not None:
        if current.type in wanted:
            return current
        if current.type in stop_at:
            return None
        current = current.parent
    return None


def iter_ancestors(node: Node, stop_at: tuple[str, ...] = ()) -> Iterator[Node]:
    """Yield ancestors from the parent outwards, ending with the first ``stop_at`` node."""
    current = node.parent
    while current is not None:
        yield current
        if current.type in stop_at:
            return
        current = current.parent


def get_enclosing_method(node: Node) -> Node | None:
    """Find the method or constructor declaration that owns ``node``."""
    return get_parent_of_type(node, METHOD_NODE_TYPES, stop_at=NESTED_SCOPE_NODE_TYPES)


def get_enclosing_statement(node: Node) -> Node | None:
    """Find the statement (or field declaration) that contains ``node``."""
    if node.type in STATEMENT_NODE_TYPES:
        return node
    return get_parent_of_type(node, STATEMENT_NODE_TYPES)


def is_same_node(a: Node | None, b: Node | None) -> bool:
    """Compare two nodes by position and kind."""
    if a is None or b is None:
        return False
    return (a.start_byte, a.end_byte, a.type) == (b.start_byte, b.end_byte, b.type)


def is_within(node: Node, container: Node | None) -> bool:
    """Check whether ``node`` lies inside the byte range of ``container``."""
    if container is None:
        return False
    return container.start_byte <= node.start_byte and node.end_byte <= container.end_byte


def unwrap_parentheses(node: Node | None) -> Node | None:
    """Strip any number of enclosing parenthesized_expression wrappers."""
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type not in COMMENT_NODE_TYPES]
        if not inner:
            return None
        node = inner[0]
    return node


def named_statements(block: Node | None) -> list[Node]:
    """Return the statements of a block, ignoring comments."""
    if block is None:
        return []
    return [c for c in block.named_children if c.type not in COMMENT_NODE_TYPES]


def plus_operands(node: Node | None) -> list[Node]:
    """Flatten an ``a + b + c`` chain into its operands, left to right."""
    node = unwrap_parentheses(node)
    if node is None:
        return []
    if node.type == "binary_expression" and get_node_text(node.child_by_field_name("operator")) == "+":
        return plus_operands(node.child_by_field_name("left")) + plus_operands(
            node.child_by_field_name("right")
        )
    return [node]


def get_identifier_name(node: Node | None) -> str | None:
    """Return the name when ``node`` is a bare identifier, else None."""
    node = unwrap_parentheses(node)
    if node is not None and node.type == "identifier":
        return get_node_text(node)
    return None


def get_call_name(node: Node) -> str:
    """Return the invoked method name of a method_invocation."""
    return get_node_text(node.child_by_field_name("name"))


def get_call_arguments(node: Node) -> list[Node]:
    """Return the argument expressions of a call or object creation."""
    args = node.child_by_field_name("arguments")
    if args is None:
        return []
    return [c for c in args.named_children if c.type not in COMMENT_NODE_TYPES]


def get_created_type_name(node: Node) -> str:
    """Return the simple type name of an object_creation_expression."""
    type_node = node.child_by_field_name("type")
    if type_node is None:
        return ""
    if type_node.type == "generic_type":
        type_node = type_node.named_children[0] if type_node.named_children else type_node
    text = get_node_text(type_node)
    return text.rsplit(".", 1)[-1]


def get_modifiers(node: Node) -> set[str]:
    """Return the modifier keywords (not annotations) of a declaration."""
    for child in node.children:
        if child.type == "modifiers":
            return {
                get_node_text(m)
                for m in child.children
                if m.type not in ("marker_annotation", "annotation")
            }
    return set()


def get_method_name(node: Node) -> str:
    """Extract the name of a method or constructor declaration."""
    return get_node_text(node.child_by_field_name("name"))


def get_method_parameters(node: Node) -> list[tuple[str, str]]:
    """Return (type, name) pairs for the formal parameters of a method."""
    params_node = node.child_by_field_name("parameters")
    if params_node is None:
        return []
    params = []
    for child in params_node.named_children:
        if child.type == "formal_parameter":
            params.append(
                (
                    get_node_text(child.child_by_field_name("type")),
                    get_node_text(child.child_by_field_name("name")),
                )
            )
        elif child.type == "spread_parameter":
            type_text = ""
            name = ""
            for part in child.named_children:
                if part.type == "variable_declarator":
                    name = get_node_text(part.child_by_field_name("name"))
                elif part.type != "modifiers":
                    type_text = get_node_text(part) + "..."
            params.append((type_text, name))
    return params


def get_string_literal_value(node: Node) -> str:
    """Return the content of a string literal without its quotes."""
    text = get_node_text(node)
    if text.startswith('"""') and text.endswith('"""') and len(text) >= 6:
        return text[3:-3]
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def is_boolean_literal(node: Node | None) -> bool:
    """Check whether the (unwrapped) node is ``true`` or ``false``."""
    node = unwrap_parentheses(node)
    return node is not None and node.type in ("true", "false")


def parse_int_literal(text: str) -> int:
    """Convert Java integer literal text to an int.

    Raises ValueError for text that is not a valid integer literal.
    """
    cleaned = text.replace("_", "").rstrip("lL")
    lowered = cleaned.lower()
    if lowered.startswith("0x"):
        return int(cleaned[2:], 16)
    if lowered.startswith("0b"):
        return int(cleaned[2:], 2)
    if len(cleaned) > 1 and cleaned.startswith("0"):
        return int(cleaned[1:], 8)
    return int(cleaned)
