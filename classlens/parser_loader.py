"""Grammar loading and parsing of Java compilation units."""

from functools import lru_cache

from loguru import logger
from tree_sitter import Language, Parser, Tree

from .utils.ast_helpers import METHOD_NODE_TYPES, TYPE_DECLARATION_NODE_TYPES

LANGUAGE_NODE_TYPES = {
    "java": {
        "file_extensions": [".java"],
        "class_node_types": list(TYPE_DECLARATION_NODE_TYPES),
        "function_node_types": list(METHOD_NODE_TYPES),
        "call_node_types": ["method_invocation", "object_creation_expression"],
    },
}


def _load_language(name: str) -> Language:
    if name == "java":
        import tree_sitter_java

        return Language(tree_sitter_java.language())
    raise ValueError(f"Unsupported language: {name}")


def load_parsers() -> tuple[dict[str, Parser], dict[str, dict]]:
    """Load a parser and its node-type configuration for every supported language."""
    parsers: dict[str, Parser] = {}
    queries: dict[str, dict] = {}
    for name, config in LANGUAGE_NODE_TYPES.items():
        try:
            parsers[name] = Parser(_load_language(name))
            queries[name] = config
        except ImportError as e:
            logger.warning(f"Grammar for {name} not available: {e}")
    return parsers, queries


@lru_cache(maxsize=1)
def get_java_parser() -> Parser:
    """Return a shared Java parser."""
    return Parser(_load_language("java"))


def parse_java_source(source: str, file_path: str = "<source>") -> Tree:
    """Parse one Java compilation unit."""
    tree = get_java_parser().parse(source.encode("utf-8"))
    if tree.root_node.has_error:
        logger.warning(f"Parse errors in {file_path}")
    return tree
