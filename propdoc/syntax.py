"""Helpers for walking tree-sitter syntax trees."""

from __future__ import annotations

from typing import Iterator, List, Optional

from tree_sitter import Node

_WRAPPER_EXPRESSIONS = {
    "parenthesized_expression",
    "as_expression",
    "satisfies_expression",
    "non_null_expression",
    "type_assertion",
}

_DECLARATION_PARENTS = {
    "variable_declarator",
    "lexical_declaration",
    "variable_declaration",
    "export_statement",
}


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def normalise(text: str) -> str:
    """Collapse whitespace runs so multi-line source renders on one line."""
    return " ".join(text.split())


def line_of(node: Node) -> int:
    return node.start_point[0] + 1


def has_token(node: Node, token: str) -> bool:
    return any(child.type == token for child in node.children)


def named_children(node: Node) -> List[Node]:
    """Named children without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def first_named(node: Node) -> Optional[Node]:
    children = named_children(node)
    return children[0] if children else None


def unwrap_expression(node: Node) -> Node:
    """Strip parentheses, ``as``/``satisfies`` casts and non-null assertions."""
    current = node
    while current.type in _WRAPPER_EXPRESSIONS:
        inner = first_named(current)
        if inner is None:
            break
        current = inner
    return current


def iter_descendants(node: Node) -> Iterator[Node]:
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def preceding_doc_comment(node: Node, source: bytes) -> Optional[str]:
    """Return the nearest ``/** ... */`` comment directly before ``node``.

    Separators and plain comments are skipped; any other named node ends the search.
    """
    sibling = node.prev_sibling
    while sibling is not None:
        if sibling.type == "comment":
            text = node_text(sibling, source)
            if text.startswith("/**") and text != "/**/":
                return text
        elif sibling.is_named:
            return None
        sibling = sibling.prev_sibling
    return None


def declaration_doc_comment(node: Node, source: bytes) -> Optional[str]:
    """Doc comment of a declaration, climbing declarator -> declaration -> export."""
    current: Optional[Node] = node
    while current is not None:
        comment = preceding_doc_comment(current, source)
        if comment is not None:
            return comment
        parent = current.parent
        if parent is None or parent.type not in _DECLARATION_PARENTS:
            return None
        current = parent
    return None


__all__ = [
    "declaration_doc_comment",
    "first_named",
    "has_token",
    "iter_descendants",
    "line_of",
    "named_children",
    "node_text",
    "normalise",
    "preceding_doc_comment",
    "unwrap_expression",
]
