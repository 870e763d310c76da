"""Test canonical rendering of Java nodes."""

import pytest

from classlens.parser_loader import load_parsers
from classlens.utils.ast_helpers import METHOD_NODE_TYPES, find_nodes_by_type, named_statements
from classlens.utils.rendering import render, render_declaration


def first_statement(parser, statement: str):
    code = f"class T {{ void m() {{ {statement} }} }}"
    tree = parser.parse(code.encode())
    method = find_nodes_by_type(tree.root_node, METHOD_NODE_TYPES)[0]
    return named_statements(method.child_by_field_name("body"))[0]


class TestRendering:
    """Test that rendering is independent of source formatting."""

    @pytest.fixture(scope="class")
    def parsers_and_queries(self):
        """Load parsers and queries once for all tests."""
        parsers, queries = load_parsers()
        return parsers, queries

    def test_binary_operators_are_spaced(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        assert render(first_statement(parsers["java"], "x=a+b;")) == "x = a + b;"

    def test_arguments_are_comma_spaced(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        assert render(first_statement(parsers["java"], "foo( a,b );")) == "foo(a, b);"

    def test_control_statement_layout(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        rendered = render(first_statement(parsers["java"], "if(x!=null){}"))
        assert rendered == "if (x != null) { }"

    def test_comments_are_dropped(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        assert render(first_statement(parsers["java"], "foo(/* note */ a);")) == "foo(a);"

    def test_differently_formatted_sources_render_equal(self, parsers_and_queries):
        """Whitespace and line breaks must not change the rendered text."""
        parsers, _ = parsers_and_queries
        compact = first_statement(parsers["java"], "for(int i=0;i<n;i++){total+=i;}")
        spread = first_statement(
            parsers["java"],
            """for (int i = 0;
                     i < n;
                     i++) {
                    total += i;
                }""",
        )
        assert render(compact) == render(spread)
        assert render(compact) == "for (int i = 0; i < n; i++) { total += i; }"

    def test_generic_types(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        statement = first_statement(parsers["java"], "List<String> names=new ArrayList<>();")
        assert render(statement) == "List<String> names = new ArrayList<>();"

    def test_render_declaration_omits_body(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = "class T { public  int   add(int a,int b) { return a+b; } }"
        tree = parsers["java"].parse(code.encode())
        method = find_nodes_by_type(tree.root_node, METHOD_NODE_TYPES)[0]
        assert render_declaration(method) == "public int add(int a, int b)"

    def test_render_none(self):
        assert render(None) == ""
