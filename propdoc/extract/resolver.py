"""Flatten a component's prop type into a finite, ordered property table.

Resolution works on the detached type terms of :mod:`propdoc.typesys` and the
frozen :class:`TypeEnvironment`. Every top-level call threads one
:class:`ResolutionState` through the recursion; its ``seen`` map memoises each
type identity once and turns re-entry into an empty placeholder, so cyclic
type graphs always terminate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..config import ParserOptions
from ..diagnostics import DiagnosticKind, DiagnosticSink
from ..models import (
    EnumType,
    FunctionType,
    IntersectionType,
    LiteralType,
    ParentRef,
    PrimitiveType,
    ReferenceType,
    TypeDescriptor,
    UnionType,
    UnknownType,
    type_name,
)
from ..typesys.environment import AliasDecl, ClassDecl, Declaration, EnumDecl, InterfaceDecl, TypeEnvironment
from ..typesys.nodes import (
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
from .comments import JsDoc, bind_doc

_NUMBER = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")
_NULLISH = {"null", "undefined"}
_PERMISSIVE = {"any", "unknown"}
_ARRAY_NAMES = {"Array", "ReadonlyArray"}
_UTILITY_TYPES = {
    "Partial",
    "Required",
    "Readonly",
    "NonNullable",
    "Pick",
    "Omit",
    "Record",
    "PropsWithChildren",
}


@dataclass(frozen=True)
class Scope:
    """Module a term is read in, plus the generic parameters bound so far."""

    module: str
    bindings: Mapping[str, Tuple[TypeNode, "Scope"]] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedProp:
    name: str
    type: TypeDescriptor
    required: bool
    doc: JsDoc = field(default_factory=JsDoc)
    parent: Optional[ParentRef] = None


ResolvedShape = Dict[str, ResolvedProp]


@dataclass
class ResolutionState:
    """Per top-level call bookkeeping: memoised shapes and aliases in flight."""

    seen: Dict[str, Optional[ResolvedShape]] = field(default_factory=dict)
    aliases: Set[str] = field(default_factory=set)
    described: Dict[str, TypeDescriptor] = field(default_factory=dict)
    component: Optional[str] = None


class PropTypeResolver:
    """Resolves prop type references against a frozen type environment."""

    def __init__(
        self,
        environment: TypeEnvironment,
        options: ParserOptions | None = None,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self._env = environment
        self._options = options or ParserOptions()
        self._diagnostics = diagnostics

    def resolve(
        self,
        type_ref: Optional[TypeNode],
        module: str,
        *,
        type_params: Sequence[TypeParam] = (),
        state: ResolutionState | None = None,
        component: Optional[str] = None,
    ) -> ResolvedShape:
        """Return the flattened ``name -> ResolvedProp`` table for ``type_ref``."""
        if type_ref is None:
            return {}
        state = state or ResolutionState()
        state.component = component
        scope = Scope(module)
        if type_params:
            scope = self._bind(type_params, (), scope, scope, state)
        shape = self._shape(type_ref, scope, state, 0)
        return self._limit(shape, type_ref, state)

    def describe(
        self,
        type_node: Optional[TypeNode],
        module: str,
        *,
        state: ResolutionState | None = None,
    ) -> TypeDescriptor:
        """Describe a single type term (used for member types)."""
        return self._describe(type_node, Scope(module), state or ResolutionState(), 0)

    # ------------------------------------------------------------------
    # Shapes

    def _shape(self, node: TypeNode, scope: Scope, state: ResolutionState, depth: int) -> ResolvedShape:
        if depth > self._options.max_depth:
            self._report(state, f"Type '{render_node(node)}' exceeds the maximum expansion depth")
            return {}
        if isinstance(node, ObjectNode):
            return self._object_shape(node.members, scope, state, depth, parent=None)
        if isinstance(node, TypeRefNode):
            return self._reference_shape(node, scope, state, depth)
        if isinstance(node, UnionNode):
            return self._union_shape(node, scope, state, depth)
        if isinstance(node, IntersectionNode):
            return self._intersection_shape(node, scope, state, depth)
        if isinstance(node, KeywordNode) and node.name in _PERMISSIVE | {"object"} | _NULLISH:
            return {}
        self._report(state, f"Type '{render_node(node)}' is not an object type")
        return {}

    def _object_shape(
        self,
        members: Sequence[Member],
        scope: Scope,
        state: ResolutionState,
        depth: int,
        parent: Optional[ParentRef],
    ) -> ResolvedShape:
        shape: ResolvedShape = {}
        for member in members:
            if member.type is None:
                descriptor: TypeDescriptor = PrimitiveType("any")
            else:
                descriptor = self._describe(member.type, scope, state, depth + 1)
            shape[member.name] = ResolvedProp(
                name=member.name,
                type=descriptor,
                required=not member.optional,
                doc=bind_doc(member.site),
                parent=parent,
            )
        return shape

    def _reference_shape(
        self, node: TypeRefNode, scope: Scope, state: ResolutionState, depth: int
    ) -> ResolvedShape:
        bound = scope.bindings.get(node.name)
        if bound is not None and not node.args:
            bound_node, bound_scope = bound
            return self._shape(bound_node, bound_scope, state, depth + 1)

        declarations = self._env.lookup(scope.module, node.name)
        if not declarations:
            utility = _utility_name(node.name)
            if utility is not None:
                return self._utility_shape(utility, node, scope, state, depth)
            self._report(state, f"Cannot resolve type '{render_node(node)}'")
            return {}

        key = self._identity(declarations[0], node, scope, state, depth)
        if key in state.seen:
            cached = state.seen[key]
            # still in progress: a cycle back into this type
            return {} if cached is None else dict(cached)
        state.seen[key] = None
        shape = self._declaration_shape(declarations, node.args, scope, state, depth)
        state.seen[key] = shape
        return dict(shape)

    def _declaration_shape(
        self,
        declarations: Sequence[Declaration],
        args: Sequence[TypeNode],
        usage: Scope,
        state: ResolutionState,
        depth: int,
    ) -> ResolvedShape:
        first = declarations[0]
        if isinstance(first, AliasDecl):
            inner = self._bind(first.type_params, args, usage, Scope(first.module), state)
            return self._shape(first.value, inner, state, depth + 1)
        if isinstance(first, EnumDecl):
            self._report(state, f"Enum '{first.name}' cannot be used as a props type")
            return {}

        shape: ResolvedShape = {}
        for declaration in declarations:
            if not isinstance(declaration, (InterfaceDecl, ClassDecl)):
                continue
            inner = self._bind(declaration.type_params, args, usage, Scope(declaration.module), state)
            if isinstance(declaration, InterfaceDecl):
                for base in declaration.bases:
                    for name, prop in self._shape(base, inner, state, depth + 1).items():
                        shape.setdefault(name, prop)
            own = self._object_shape(
                declaration.body.members,
                inner,
                state,
                depth,
                parent=ParentRef(name=declaration.name, file_name=declaration.module),
            )
            # the more derived declaration wins, keeping the first-discovered position
            shape.update(own)
        return shape

    def _union_shape(self, node: UnionNode, scope: Scope, state: ResolutionState, depth: int) -> ResolvedShape:
        arms = [member for member in node.members if not _is_nullish(member)]
        shapes = [self._shape(arm, scope, state, depth + 1) for arm in arms]
        if not shapes:
            return {}
        if len(shapes) == 1:
            return shapes[0]

        result: ResolvedShape = {}
        for name in _ordered_names(shapes):
            present = [shape[name] for shape in shapes if name in shape]
            required = len(present) == len(shapes) and all(prop.required for prop in present)
            result[name] = ResolvedProp(
                name=name,
                type=self._union_descriptor([prop.type for prop in present], None, False),
                required=required,
                doc=_first_doc(present),
                parent=present[0].parent,
            )
        return result

    def _intersection_shape(
        self, node: IntersectionNode, scope: Scope, state: ResolutionState, depth: int
    ) -> ResolvedShape:
        shapes = [self._shape(member, scope, state, depth + 1) for member in node.members]
        result: ResolvedShape = {}
        for name in _ordered_names(shapes):
            present = [shape[name] for shape in shapes if name in shape]
            descriptor = present[0].type
            for prop in present[1:]:
                descriptor = _intersect(descriptor, prop.type)
            result[name] = ResolvedProp(
                name=name,
                type=descriptor,
                required=any(prop.required for prop in present),
                doc=_first_doc(present),
                parent=present[0].parent,
            )
        return result

    def _utility_shape(
        self, utility: str, node: TypeRefNode, scope: Scope, state: ResolutionState, depth: int
    ) -> ResolvedShape:
        args = node.args
        if utility in {"Partial", "Required", "Readonly", "NonNullable"} and args:
            inner = self._shape(args[0], scope, state, depth + 1)
            if utility == "Partial":
                return {name: replace(prop, required=False) for name, prop in inner.items()}
            if utility == "Required":
                return {name: replace(prop, required=True) for name, prop in inner.items()}
            return inner
        if utility == "PropsWithChildren" and args:
            inner = self._shape(args[0], scope, state, depth + 1)
            inner.setdefault(
                "children",
                ResolvedProp(name="children", type=ReferenceType("ReactNode"), required=False),
            )
            return inner
        if utility in {"Pick", "Omit"} and len(args) == 2:
            inner = self._shape(args[0], scope, state, depth + 1)
            keys = self._literal_keys(args[1], scope, state, depth + 1)
            if keys is None:
                self._report(state, f"Cannot resolve the keys of '{render_node(node)}'")
                return inner if utility == "Omit" else {}
            if utility == "Pick":
                return {key: inner[key] for key in keys if key in inner}
            return {name: prop for name, prop in inner.items() if name not in keys}
        if utility == "Record" and len(args) == 2:
            keys = self._literal_keys(args[0], scope, state, depth + 1)
            if keys is None:
                return {}
            value = self._describe(args[1], scope, state, depth + 1)
            return {key: ResolvedProp(name=key, type=value, required=True) for key in keys}
        self._report(state, f"Cannot resolve type '{render_node(node)}'")
        return {}

    def _literal_keys(
        self, node: TypeNode, scope: Scope, state: ResolutionState, depth: int
    ) -> Optional[List[str]]:
        descriptor = self._describe(node, scope, state, depth, expand=True)
        if isinstance(descriptor, LiteralType):
            return [_unquote(descriptor.value)]
        if isinstance(descriptor, EnumType):
            return [_unquote(member) for member in descriptor.members]
        if isinstance(descriptor, UnionType) and all(isinstance(m, LiteralType) for m in descriptor.members):
            return [_unquote(m.value) for m in descriptor.members]  # type: ignore[union-attr]
        return None

    # ------------------------------------------------------------------
    # Descriptors

    def _describe(
        self,
        node: Optional[TypeNode],
        scope: Scope,
        state: ResolutionState,
        depth: int,
        expand: Optional[bool] = None,
    ) -> TypeDescriptor:
        if expand is None:
            expand = self._options.expand_enum_literals
        if node is None:
            return PrimitiveType("any")
        if depth > self._options.max_depth:
            self._report(state, f"Type '{render_node(node)}' exceeds the maximum expansion depth")
            return UnknownType(render_node(node))
        if isinstance(node, KeywordNode):
            return PrimitiveType(node.name)
        if isinstance(node, LiteralNode):
            return LiteralType(node.text)
        if isinstance(node, ArrayNode):
            return ReferenceType("Array", (self._describe(node.element, scope, state, depth + 1, expand),))
        if isinstance(node, FunctionNode):
            return FunctionType(node.text)
        if isinstance(node, UnionNode):
            members = [self._describe(member, scope, state, depth + 1, expand) for member in node.members]
            return self._union_descriptor(members, render_node(node), expand)
        if isinstance(node, IntersectionNode):
            members = _dedupe(self._describe(member, scope, state, depth + 1, expand) for member in node.members)
            if len(members) == 1:
                return members[0]
            return IntersectionType(tuple(members))
        if isinstance(node, TypeRefNode):
            return self._describe_reference(node, scope, state, depth, expand)
        if isinstance(node, KeyofNode):
            shape = self._shape(node.target, scope, state, depth + 1)
            if not shape:
                self._report(state, f"Cannot resolve '{node.text}'")
                return UnknownType(node.text)
            literals: List[TypeDescriptor] = [LiteralType(f'"{name}"') for name in shape]
            return self._union_descriptor(literals, node.text, expand)
        if isinstance(node, IndexedNode):
            if isinstance(node.index, LiteralNode):
                prop = self._shape(node.target, scope, state, depth + 1).get(_unquote(node.index.text))
                if prop is not None:
                    return prop.type
            self._report(state, f"Cannot resolve '{node.text}'")
            return UnknownType(node.text)
        if isinstance(node, ObjectNode):
            return ReferenceType(node.text)
        if node.structural:
            return ReferenceType(node.text)
        self._report(state, f"Cannot reduce type '{node.text}'")
        return UnknownType(node.text)

    def _describe_reference(
        self, node: TypeRefNode, scope: Scope, state: ResolutionState, depth: int, expand: bool
    ) -> TypeDescriptor:
        bound = scope.bindings.get(node.name)
        if bound is not None and not node.args:
            bound_node, bound_scope = bound
            return self._describe(bound_node, bound_scope, state, depth + 1, expand)

        args = tuple(self._describe(arg, scope, state, depth + 1, expand) for arg in node.args)
        if node.name in _ARRAY_NAMES and len(args) == 1:
            return ReferenceType("Array", args)
        declarations = self._env.lookup(scope.module, node.name)
        if not declarations:
            return ReferenceType(node.name, args)
        first = declarations[0]
        if isinstance(first, EnumDecl):
            return EnumType(node.name, first.values) if expand else ReferenceType(node.name)
        if not isinstance(first, AliasDecl):
            return ReferenceType(node.name, args)

        key = f"{first.module}#{first.name}{_args_key(args)}|{expand}"
        if key in state.described:
            return state.described[key]
        if key in state.aliases:
            # recursive alias: keep a single named node
            return ReferenceType(node.name, args)
        state.aliases.add(key)
        try:
            inner = self._bind(first.type_params, node.args, scope, Scope(first.module), state)
            body = self._describe(first.value, inner, state, depth + 1, expand)
        finally:
            state.aliases.discard(key)

        if isinstance(body, (PrimitiveType, LiteralType, FunctionType)):
            result: TypeDescriptor = body
        elif isinstance(body, EnumType):
            result = EnumType(node.name, body.members)
        else:
            result = ReferenceType(node.name, args)
        state.described[key] = result
        return result

    def _union_descriptor(
        self, members: Sequence[TypeDescriptor], raw: Optional[str], expand: bool
    ) -> TypeDescriptor:
        flat: List[TypeDescriptor] = []
        for member in members:
            if isinstance(member, UnionType):
                flat.extend(member.members)
            elif expand and isinstance(member, EnumType):
                flat.extend(LiteralType(value) for value in member.members)
            else:
                flat.append(member)
        flat = _dedupe(_collapse_booleans(flat))
        if len(flat) == 1:
            return flat[0]
        if expand and raw is not None and all(isinstance(member, LiteralType) for member in flat):
            return EnumType(raw, tuple(member.value for member in flat))  # type: ignore[union-attr]
        return UnionType(tuple(flat))

    # ------------------------------------------------------------------
    # Helpers

    def _bind(
        self,
        params: Sequence[TypeParam],
        args: Sequence[TypeNode],
        usage: Scope,
        declared: Scope,
        state: ResolutionState,
    ) -> Scope:
        bindings: Dict[str, Tuple[TypeNode, Scope]] = dict(declared.bindings)
        scope = Scope(declared.module, MappingProxyType(bindings))
        for index, param in enumerate(params):
            if index < len(args):
                bindings[param.name] = (args[index], usage)
            elif param.default is not None:
                bindings[param.name] = (param.default, scope)
            elif param.constraint is not None:
                bindings[param.name] = (param.constraint, scope)
            else:
                bindings[param.name] = (RawNode(param.name), scope)
        return scope

    def _identity(
        self, declaration: Declaration, node: TypeRefNode, scope: Scope, state: ResolutionState, depth: int
    ) -> str:
        args = tuple(self._describe(arg, scope, state, depth + 1) for arg in node.args)
        return f"{declaration.module}#{declaration.name}{_args_key(args)}"

    def _limit(self, shape: ResolvedShape, node: TypeNode, state: ResolutionState) -> ResolvedShape:
        limit = self._options.max_members
        if len(shape) <= limit:
            return shape
        self._report(
            state,
            f"Type '{render_node(node)}' has {len(shape)} members; keeping the first {limit}",
        )
        return dict(list(shape.items())[:limit])

    def _report(self, state: ResolutionState, message: str) -> None:
        if self._diagnostics is not None:
            self._diagnostics.add(DiagnosticKind.UNRESOLVED_TYPE, message, component=state.component)


def _utility_name(name: str) -> Optional[str]:
    short = name[len("React.") :] if name.startswith("React.") else name
    return short if short in _UTILITY_TYPES else None


def _is_nullish(node: TypeNode) -> bool:
    return isinstance(node, KeywordNode) and node.name in _NULLISH


def _ordered_names(shapes: Sequence[ResolvedShape]) -> List[str]:
    names: Dict[str, None] = {}
    for shape in shapes:
        for name in shape:
            names.setdefault(name, None)
    return list(names)


def _first_doc(props: Sequence[ResolvedProp]) -> JsDoc:
    for prop in props:
        if prop.doc.description:
            return prop.doc
    return props[0].doc


def _dedupe(items) -> List[TypeDescriptor]:  # type: ignore[no-untyped-def]
    result: List[TypeDescriptor] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


def _collapse_booleans(members: List[TypeDescriptor]) -> List[TypeDescriptor]:
    true, false = LiteralType("true"), LiteralType("false")
    if true not in members or false not in members:
        return members
    result: List[TypeDescriptor] = []
    for member in members:
        if member in (true, false):
            if PrimitiveType("boolean") not in result:
                result.append(PrimitiveType("boolean"))
            continue
        result.append(member)
    return result


def _intersect(left: TypeDescriptor, right: TypeDescriptor) -> TypeDescriptor:
    if left == right:
        return left
    if isinstance(left, PrimitiveType) and left.name in _PERMISSIVE:
        return right
    if isinstance(right, PrimitiveType) and right.name in _PERMISSIVE:
        return left
    for literal, primitive in ((left, right), (right, left)):
        if (
            isinstance(literal, LiteralType)
            and isinstance(primitive, PrimitiveType)
            and _literal_base(literal.value) == primitive.name
        ):
            return literal
    return UnknownType(f"{type_name(left)} & {type_name(right)}")


def _literal_base(value: str) -> Optional[str]:
    if value[:1] in {'"', "'", "`"}:
        return "string"
    if value in {"true", "false"}:
        return "boolean"
    if _NUMBER.match(value):
        return "number"
    return None


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in {'"', "'", "`"} and text[-1] == text[0]:
        return text[1:-1]
    return text


def _args_key(args: Tuple[TypeDescriptor, ...]) -> str:
    if not args:
        return ""
    return "<" + ", ".join(repr(arg) for arg in args) + ">"


__all__ = ["PropTypeResolver", "ResolutionState", "ResolvedProp", "ResolvedShape", "Scope"]
