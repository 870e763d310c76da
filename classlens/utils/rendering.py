"""Canonical text rendering of tree-sitter Java nodes.

Textual heuristics (usage fallbacks, credential and bounds-check lookups) must
not depend on how the analysed source happens to be formatted. ``render``
rebuilds a node's text from its tokens with one fixed spacing policy, close to
what a Java pretty printer emits::

    x=a+b;          ->  x = a + b;
    foo( a,b )      ->  foo(a, b)
    if(x!=null){}   ->  if (x != null) { }
"""

from collections.abc import Iterator

from tree_sitter import Node

from .ast_helpers import COMMENT_NODE_TYPES, get_node_text

# Nodes emitted as a single token even though they have children.
ATOMIC_NODE_TYPES = {"string_literal", "character_literal", "text_block"}

# Parents whose anonymous operator children are surrounded by spaces.
SPACED_OPERATOR_PARENTS = {
    "binary_expression",
    "assignment_expression",
    "variable_declarator",
    "ternary_expression",
    "lambda_expression",
    "enhanced_for_statement",
    "resource",
    "element_value_pair",
    "switch_rule",
}

OPERATORS = {
    "=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>=", ">>>=",
    "+", "-", "*", "/", "%", "==", "!=", "<", ">", "<=", ">=", "&&", "||",
    "&", "|", "^", "<<", ">>", ">>>", "?", ":", "->",
}

CONTROL_KEYWORDS = {"if", "for", "while", "switch", "catch", "synchronized", "try"}
EXPRESSION_KEYWORDS = {"return", "throw", "case", "assert", "yield", "new", "else"}
NO_SPACE_BEFORE = {")", ";", ",", ".", "]", "::"}

WORD, OPERATOR, PUNCT = "word", "op", "punct"


def _is_word(text: str) -> bool:
    first = text[0]
    return first.isalnum() or first in "_$\"'"


def _tokens(node: Node) -> Iterator[tuple[str, str]]:
    if node.type in COMMENT_NODE_TYPES:
        return
    if node.type in ATOMIC_NODE_TYPES or node.child_count == 0:
        text = get_node_text(node)
        if not text:
            return
        if _is_word(text):
            yield text, WORD
        elif (
            not node.is_named
            and text in OPERATORS
            and node.parent is not None
            and node.parent.type in SPACED_OPERATOR_PARENTS
        ):
            yield text, OPERATOR
        else:
            yield text, PUNCT
        return
    for child in node.children:
        yield from _tokens(child)


def _needs_space(prev: tuple[str, str], cur: tuple[str, str]) -> bool:
    prev_text, prev_kind = prev
    cur_text, cur_kind = cur
    if cur_kind == OPERATOR or prev_kind == OPERATOR:
        return True
    if cur_text in NO_SPACE_BEFORE:
        return False
    if prev_text in (",", ";", ":", "{", "}") or cur_text in ("{", "}"):
        return True
    if prev_kind == WORD and cur_kind == WORD:
        return True
    if prev_text in CONTROL_KEYWORDS and cur_text == "(":
        return True
    if prev_text in EXPRESSION_KEYWORDS:
        return True
    return prev_text in (")", "]", ">", "...") and cur_kind == WORD


def _join(tokens: Iterator[tuple[str, str]]) -> str:
    parts: list[str] = []
    prev: tuple[str, str] | None = None
    for token in tokens:
        if prev is not None and _needs_space(prev, token):
            parts.append(" ")
        parts.append(token[0])
        prev = token
    return "".join(parts)


def render(node: Node | None) -> str:
    """Render ``node`` as canonical single-line source text."""
    if node is None:
        return ""
    return _join(_tokens(node))


def render_declaration(method: Node) -> str:
    """Render a method or constructor header without its body."""
    body = method.child_by_field_name("body")

    def header_tokens() -> Iterator[tuple[str, str]]:
        for child in method.children:
            if body is not None and child.start_byte == body.start_byte:
                return
            if child.type == ";":
                continue
            yield from _tokens(child)

    return _join(header_tokens())
