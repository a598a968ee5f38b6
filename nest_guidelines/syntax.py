"""TypeScript parsing via tree-sitter and a generic syntax-tree walker."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from tree_sitter import Language, Node, Parser, Tree

logger = logging.getLogger(__name__)

TSX_KINDS = frozenset({".tsx", ".jsx"})
SKIPPED_KEYS = frozenset({"parent", "tokens", "comments"})

# Dialect name -> parser (built lazily).
_PARSER_CACHE: dict[str, Parser] = {}


class ParseError(ValueError):
    """Raised when source text cannot be parsed into a clean syntax tree."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def parse(source: str, file_kind: str = ".ts") -> Tree:
    """Parse TypeScript source text.

    ``file_kind`` is a file extension; ``.tsx``/``.jsx`` select the TSX
    grammar. tree-sitter recovers from syntax errors, so any tree that
    contains an error or missing node is rejected with :class:`ParseError`.
    """
    parser = _get_parser(_dialect(file_kind))
    tree = parser.parse(source.encode("utf-8"))
    root = tree.root_node
    if root.has_error:
        raise ParseError(_describe_error(root))
    return tree


def walk(
    node: Any,
    visit: Callable[[Any], None],
    children: Callable[[Any], Iterable[Any]] | None = None,
) -> None:
    """Visit ``node`` and every descendant once, depth-first, in pre-order."""
    enumerate_children = children or iter_children
    stack = [node]
    while stack:
        current = stack.pop()
        visit(current)
        stack.extend(reversed(list(enumerate_children(current))))


def iter_children(node: Any) -> list[Any]:
    """Return the child nodes of a tree-sitter node or a plain object tree.

    For mappings and plain objects, every value that is itself node-like (or a
    sequence of node-like values) is a child. Parent links, token lists and
    comment lists are skipped so cyclic back-references are never followed.
    """
    if isinstance(node, Node):
        return list(node.children)

    if isinstance(node, Mapping):
        items = node.items()
    elif hasattr(node, "__dict__"):
        items = vars(node).items()
    else:
        return []

    found: list[Any] = []
    for key, value in items:
        if key in SKIPPED_KEYS:
            continue
        if isinstance(value, (list, tuple)):
            found.extend(item for item in value if _is_node_like(item))
        elif _is_node_like(value):
            found.append(value)
    return found


def node_text(node: Node | None) -> str:
    """Return the UTF-8 source text of a tree-sitter node."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def clear_cache() -> None:
    """Drop cached parsers (useful for testing)."""
    _PARSER_CACHE.clear()


def _is_node_like(value: Any) -> bool:
    if isinstance(value, (Node, Mapping)):
        return True
    if isinstance(value, (str, bytes, int, float, bool)) or value is None:
        return False
    return hasattr(value, "__dict__")


def _dialect(file_kind: str) -> str:
    return "tsx" if file_kind.lower() in TSX_KINDS else "typescript"


def _get_parser(dialect: str) -> Parser:
    parser = _PARSER_CACHE.get(dialect)
    if parser is not None:
        return parser

    import tree_sitter_typescript as tstypescript

    if dialect == "tsx":
        language = Language(tstypescript.language_tsx())
    else:
        language = Language(tstypescript.language_typescript())
    parser = Parser(language)
    _PARSER_CACHE[dialect] = parser
    logger.debug("Loaded tree-sitter grammar: %s", dialect)
    return parser


def _describe_error(root: Node) -> str:
    culprit: list[Node] = []

    def _find(node: Node) -> None:
        if not culprit and (node.is_error or node.is_missing):
            culprit.append(node)

    walk(root, _find)
    if not culprit:
        return "syntax error"

    node = culprit[0]
    row, column = node.start_point
    if node.is_missing:
        return f"missing '{node.type}' at line {row + 1}, column {column}"
    return f"unexpected syntax at line {row + 1}, column {column}"
