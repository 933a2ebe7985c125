"""Convert tree-sitter type syntax into detached type terms."""

from __future__ import annotations

from typing import List, Optional, Tuple

from tree_sitter import Node

from ..models import DeclarationSite
from ..syntax import (
    declaration_doc_comment,
    first_named,
    has_token,
    line_of,
    named_children,
    node_text,
    normalise,
    preceding_doc_comment,
)
from .nodes import (
    ArrayNode,
    FunctionNode,
    IndexedNode,
    IntersectionNode,
    KeyofNode,
    KeywordNode,
    LiteralNode,
    Member,
    ObjectNode,
    RawNode,
    TypeNode,
    TypeParam,
    TypeRefNode,
    UnionNode,
    render_node,
)

_KEYWORDS = {"null", "undefined", "void", "never", "any", "unknown", "object", "this"}
_STRUCTURAL_RAW = {"tuple_type", "type_query", "template_literal_type", "constructor_type"}
_MEMBER_NODES = {"property_signature", "method_signature", "public_field_definition"}


class TypeConverter:
    """Turns the type nodes of one source file into :mod:`nodes` terms."""

    def __init__(self, source: bytes, file: str) -> None:
        self._source = source
        self._file = file

    def text(self, node: Node) -> str:
        return normalise(node_text(node, self._source))

    def site(self, node: Node, comment_node: Optional[Node] = None) -> DeclarationSite:
        anchor = comment_node if comment_node is not None else node
        return DeclarationSite(
            file=self._file,
            line=line_of(node),
            comment=preceding_doc_comment(anchor, self._source),
        )

    def declaration_site(self, node: Node) -> DeclarationSite:
        return DeclarationSite(
            file=self._file,
            line=line_of(node),
            comment=declaration_doc_comment(node, self._source),
        )

    def annotation(self, node: Optional[Node]) -> Optional[TypeNode]:
        """Convert a ``type_annotation`` (``: T``) or a bare type node."""
        if node is None:
            return None
        if node.type in {"type_annotation", "opting_type_annotation", "omitting_type_annotation"}:
            inner = first_named(node)
            return self.convert(inner) if inner is not None else None
        return self.convert(node)

    def convert(self, node: Node) -> TypeNode:
        kind = node.type
        if kind == "predefined_type":
            return KeywordNode(self.text(node))
        if kind in {"literal_type", "string", "number", "true", "false", "null", "undefined"}:
            text = self.text(node)
            if text in _KEYWORDS:
                return KeywordNode(text)
            return LiteralNode(text)
        if kind in {"type_identifier", "nested_type_identifier", "identifier"}:
            name = self.text(node).replace(" ", "")
            if name in _KEYWORDS:
                return KeywordNode(name)
            return TypeRefNode(name)
        if kind == "this_type":
            return KeywordNode("this")
        if kind == "generic_type":
            name_node = node.child_by_field_name("name")
            args_node = node.child_by_field_name("type_arguments")
            name = self.text(name_node).replace(" ", "") if name_node is not None else self.text(node)
            return TypeRefNode(name, self.type_arguments(args_node))
        if kind in {"parenthesized_type", "readonly_type"}:
            inner = first_named(node)
            return self.convert(inner) if inner is not None else RawNode(self.text(node))
        if kind == "array_type":
            inner = first_named(node)
            if inner is None:
                return RawNode(self.text(node))
            return ArrayNode(self.convert(inner))
        if kind == "union_type":
            return UnionNode(tuple(self._flatten(node, "union_type")))
        if kind == "intersection_type":
            return IntersectionNode(tuple(self._flatten(node, "intersection_type")))
        if kind == "function_type":
            return FunctionNode(self.text(node))
        if kind == "index_type_query":
            inner = first_named(node)
            if inner is None:
                return RawNode(self.text(node))
            return KeyofNode(self.convert(inner), self.text(node))
        if kind == "lookup_type":
            parts = named_children(node)
            if len(parts) != 2:
                return RawNode(self.text(node))
            return IndexedNode(self.convert(parts[0]), self.convert(parts[1]), self.text(node))
        if kind in {"object_type", "interface_body"}:
            return ObjectNode(self.members(node), self.text(node))
        if kind in _STRUCTURAL_RAW:
            return RawNode(self.text(node), structural=True)
        return RawNode(self.text(node))

    def _flatten(self, node: Node, kind: str) -> List[TypeNode]:
        result: List[TypeNode] = []
        for child in named_children(node):
            if child.type == kind:
                result.extend(self._flatten(child, kind))
            else:
                result.append(self.convert(child))
        return result

    def type_arguments(self, node: Optional[Node]) -> Tuple[TypeNode, ...]:
        if node is None:
            return ()
        return tuple(self.convert(child) for child in named_children(node))

    def type_parameters(self, node: Optional[Node]) -> Tuple[TypeParam, ...]:
        if node is None:
            return ()
        params: List[TypeParam] = []
        for child in named_children(node):
            if child.type != "type_parameter":
                continue
            name_node = child.child_by_field_name("name")
            if name_node is None:
                continue
            constraint = self._wrapped_type(child.child_by_field_name("constraint"))
            default = self._wrapped_type(child.child_by_field_name("value"))
            params.append(TypeParam(name=self.text(name_node), constraint=constraint, default=default))
        return tuple(params)

    def _wrapped_type(self, node: Optional[Node]) -> Optional[TypeNode]:
        # constraint / default_type wrap the actual type after a keyword token
        if node is None:
            return None
        inner = first_named(node)
        return self.convert(inner) if inner is not None else None

    def members(self, body: Node) -> Tuple[Member, ...]:
        members: List[Member] = []
        for child in named_children(body):
            if child.type not in _MEMBER_NODES:
                continue
            if child.type == "public_field_definition" and (
                has_token(child, "static") or self._is_private(child)
            ):
                continue
            name_node = child.child_by_field_name("name")
            if name_node is None:
                continue
            name = self.text(name_node)
            if name_node.type == "string":
                name = name[1:-1]
            optional = has_token(child, "?")
            if child.type == "method_signature":
                members.append(
                    Member(
                        name=name,
                        type=FunctionNode(self._method_signature(child)),
                        optional=optional,
                        site=self.site(child),
                        method=True,
                    )
                )
                continue
            type_node = self.annotation(child.child_by_field_name("type"))
            members.append(
                Member(
                    name=name,
                    type=type_node,
                    optional=optional,
                    site=self.site(child),
                )
            )
        return tuple(members)

    def _method_signature(self, node: Node) -> str:
        params = node.child_by_field_name("parameters")
        returns = self.annotation(node.child_by_field_name("return_type"))
        params_text = self.text(params) if params is not None else "()"
        returns_text = render_node(returns) if returns is not None else "void"
        return f"{params_text} => {returns_text}"

    def _is_private(self, node: Node) -> bool:
        for child in node.children:
            if child.type == "accessibility_modifier" and self.text(child) in {"private", "protected"}:
                return True
            if child.type == "private_property_identifier":
                return True
        return False


__all__ = ["TypeConverter"]
