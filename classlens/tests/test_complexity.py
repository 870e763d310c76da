"""Test cyclomatic complexity and per-line decision counting."""

import pytest

from classlens.analysis.complexity import ComplexityAnalyzer
from classlens.parser_loader import load_parsers
from classlens.utils.ast_helpers import METHOD_NODE_TYPES, find_nodes_by_type, get_method_name

COMPLEXITY_SAMPLE = """
public class Branches {
    public void straight() {
        int x = 1;
    }

    public int count(int[] values) {
        int total = 0;
        for (int v : values) {
            if (v > 0) { total++; } else { total--; }
        }
        return total;
    }

    public boolean check(boolean a, boolean b, boolean c) {
        if (a && b || c) {
            return true;
        }
        return false;
    }

    public int pick(int k) {
        switch (k) {
            case 1: return 10;
            case 2: return 20;
            default: return 0;
        }
    }

    public int guarded(String s) {
        try {
            return Integer.parseInt(s);
        } catch (NumberFormatException e) {
            return s == null ? 0 : -1;
        }
    }

    public Branches() {
        while (ready()) {
            wait();
        }
    }

    public abstract void hook();
}
"""


class TestComplexityAnalyzer:
    """Test McCabe complexity over method bodies."""

    @pytest.fixture(scope="class")
    def parsers_and_queries(self):
        """Load parsers and queries once for all tests."""
        parsers, queries = load_parsers()
        return parsers, queries

    @pytest.fixture(scope="class")
    def facts_by_name(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        tree = parsers["java"].parse(COMPLEXITY_SAMPLE.encode())
        analyzer = ComplexityAnalyzer()
        return {
            get_method_name(method): analyzer.analyze(method)
            for method in find_nodes_by_type(tree.root_node, METHOD_NODE_TYPES)
        }

    def test_straight_line_method(self, facts_by_name):
        assert facts_by_name["straight"].cyclomatic == 1
        assert dict(facts_by_name["straight"].line_decisions) == {}

    def test_if_inside_loop(self, facts_by_name):
        """One for-each plus one if; the else branch adds nothing."""
        assert facts_by_name["count"].cyclomatic == 3

    def test_short_circuit_operators(self, facts_by_name):
        facts = facts_by_name["check"]
        assert facts.cyclomatic == 4
        # The if and both operators share one line.
        line = COMPLEXITY_SAMPLE.splitlines().index("        if (a && b || c) {") + 1
        assert facts.decisions_at(line) == 3

    def test_switch_labels_without_default(self, facts_by_name):
        assert facts_by_name["pick"].cyclomatic == 3

    def test_catch_and_ternary(self, facts_by_name):
        assert facts_by_name["guarded"].cyclomatic == 3

    def test_constructor(self, facts_by_name):
        assert facts_by_name["Branches"].cyclomatic == 2

    def test_method_without_body(self, facts_by_name):
        assert facts_by_name["hook"].cyclomatic == 1

    def test_line_decisions_sum_to_complexity(self, facts_by_name):
        for facts in facts_by_name.values():
            assert sum(facts.line_decisions.values()) == facts.cyclomatic - 1
