"""Syntax-level type terms, detached from the tree-sitter tree they came from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..models import DeclarationSite


@dataclass(frozen=True)
class KeywordNode:
    name: str


@dataclass(frozen=True)
class LiteralNode:
    text: str


@dataclass(frozen=True)
class TypeRefNode:
    name: str
    args: Tuple["TypeNode", ...] = ()


@dataclass(frozen=True)
class ArrayNode:
    element: "TypeNode"


@dataclass(frozen=True)
class UnionNode:
    members: Tuple["TypeNode", ...]


@dataclass(frozen=True)
class IntersectionNode:
    members: Tuple["TypeNode", ...]


@dataclass(frozen=True)
class FunctionNode:
    text: str


@dataclass(frozen=True)
class KeyofNode:
    target: "TypeNode"
    text: str


@dataclass(frozen=True)
class IndexedNode:
    target: "TypeNode"
    index: "TypeNode"
    text: str


@dataclass(frozen=True)
class Member:
    name: str
    type: Optional["TypeNode"]
    optional: bool
    site: DeclarationSite
    method: bool = False


@dataclass(frozen=True)
class ObjectNode:
    members: Tuple[Member, ...]
    text: str


@dataclass(frozen=True)
class RawNode:
    """A type kept by its text.

    ``structural`` terms (tuples, ``typeof`` queries, template literal types)
    are legitimate named types; the others (conditional, mapped, infer) could
    not be reduced.
    """

    text: str
    structural: bool = False


TypeNode = Union[
    KeywordNode,
    LiteralNode,
    TypeRefNode,
    ArrayNode,
    UnionNode,
    IntersectionNode,
    FunctionNode,
    KeyofNode,
    IndexedNode,
    ObjectNode,
    RawNode,
]


@dataclass(frozen=True)
class TypeParam:
    name: str
    constraint: Optional[TypeNode] = None
    default: Optional[TypeNode] = None


def render_node(node: TypeNode) -> str:
    """Return the normalised source text of a type term."""
    if isinstance(node, KeywordNode):
        return node.name
    if isinstance(node, LiteralNode):
        return node.text
    if isinstance(node, TypeRefNode):
        if node.args:
            return f"{node.name}<{', '.join(render_node(arg) for arg in node.args)}>"
        return node.name
    if isinstance(node, ArrayNode):
        inner = render_node(node.element)
        if isinstance(node.element, (UnionNode, IntersectionNode, FunctionNode)):
            inner = f"({inner})"
        return f"{inner}[]"
    if isinstance(node, UnionNode):
        return " | ".join(render_node(member) for member in node.members)
    if isinstance(node, IntersectionNode):
        return " & ".join(render_node(member) for member in node.members)
    return node.text


__all__ = [
    "ArrayNode",
    "FunctionNode",
    "IndexedNode",
    "IntersectionNode",
    "KeyofNode",
    "KeywordNode",
    "LiteralNode",
    "Member",
    "ObjectNode",
    "RawNode",
    "TypeNode",
    "TypeParam",
    "TypeRefNode",
    "UnionNode",
    "render_node",
]
