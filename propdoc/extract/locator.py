"""Find exported component declarations in a parsed source unit.

Only exported bindings are roots. Each exported value is classified by shape
(function, class, wrapper call, aggregate); wrappers and local identifiers are
followed to the innermost target that carries the prop type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node

from ..config import ParserOptions
from ..diagnostics import DiagnosticKind, DiagnosticSink
from ..models import ComponentCandidate, ComponentVariant, DeclarationSite, NameSource
from ..source import ExportBinding, SourceUnit
from ..syntax import (
    declaration_doc_comment,
    has_token,
    iter_descendants,
    line_of,
    named_children,
    preceding_doc_comment,
    unwrap_expression,
)
from ..typesys.convert import TypeConverter
from ..typesys.nodes import ObjectNode, TypeNode, TypeParam, TypeRefNode

FUNCTION_COMPONENT_TYPES = (
    "FC",
    "FunctionComponent",
    "SFC",
    "StatelessComponent",
    "VFC",
    "VoidFunctionComponent",
)
COMPONENT_BASE_CLASSES = ("Component", "PureComponent")
RENDER_RETURN_TYPES = ("JSX.Element", "ReactElement", "ReactNode", "ReactPortal")

_FUNCTION_NODES = {
    "function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "generator_function_declaration",
}
_CLASS_NODES = {"class_declaration", "abstract_class_declaration", "class"}
_JSX_NODES = {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
_RESERVED_STATICS = {"displayName", "defaultProps", "propTypes", "contextTypes", "childContextTypes"}
_IDENTIFIERS = {"identifier", "shorthand_property_identifier"}
_MAX_FOLLOW = 12
_MAX_NESTING = 4


@dataclass
class _Match:
    variant: ComponentVariant
    prop_type: Optional[TypeNode]
    target: Optional[Node]
    type_params: Tuple[TypeParam, ...] = ()
    statics: Dict[str, Node] = field(default_factory=dict)
    members: List[Tuple[str, Node]] = field(default_factory=list)


class ComponentLocator:
    """Classifies the exported values of one unit into component candidates."""

    def __init__(self, options: ParserOptions | None = None, diagnostics: DiagnosticSink | None = None) -> None:
        self._options = options or ParserOptions()
        self._diagnostics = diagnostics
        self._fc_types = set(FUNCTION_COMPONENT_TYPES) | set(self._options.custom_component_types)

    def locate(self, unit: SourceUnit) -> List[ComponentCandidate]:
        converter = TypeConverter(unit.source, unit.path)
        candidates: List[ComponentCandidate] = []
        for export in unit.exports:
            local = unit.locals.get(export.local_name) if export.local_name else None
            value = export.value
            annotation = None
            if local is not None and (value is None or value.type == "identifier"):
                value, annotation = local.value, local.annotation
            elif local is not None and local.value == value:
                annotation = local.annotation
            if value is None:
                # type-only export or uninitialised binding
                continue

            match = self._classify(unit, converter, value, annotation, in_wrapper=False, depth=0)
            if match is None:
                if _looks_like_component(export):
                    self._report(
                        DiagnosticKind.AMBIGUOUS_COMPONENT,
                        f"Export '{export.export_name}' does not match any component shape",
                        line=line_of(value),
                        component=export.export_name,
                    )
                continue

            if export.local_name:
                match.statics.update(unit.statics.get(export.local_name, {}))
            display_name = self._display_name(unit, export, match)
            decl_node = local.declaration if local is not None else value
            site = _site(unit, decl_node, export.statement)
            subcomponents = self._subcomponents(unit, converter, display_name, match)
            candidate = self._candidate(unit, display_name, match, site, subcomponents)
            if candidate is not None:
                candidates.append(candidate)
            else:
                candidates.extend(subcomponents)
        return candidates

    # ------------------------------------------------------------------
    # Classification

    def _classify(
        self,
        unit: SourceUnit,
        converter: TypeConverter,
        node: Node,
        annotation: Optional[Node],
        *,
        in_wrapper: bool,
        depth: int,
    ) -> Optional[_Match]:
        if depth > _MAX_FOLLOW:
            return None
        node = unwrap_expression(node)

        if node.type in _IDENTIFIERS:
            name = unit.text(node)
            binding = unit.locals.get(name)
            if binding is None or binding.value is None or binding.value == node:
                return None
            match = self._classify(
                unit, converter, binding.value, binding.annotation, in_wrapper=in_wrapper, depth=depth + 1
            )
            if match is not None:
                match.statics = {**match.statics, **unit.statics.get(name, {})}
            return match

        if node.type in _FUNCTION_NODES:
            return self._function_match(unit, converter, node, annotation, in_wrapper)
        if node.type in _CLASS_NODES:
            return self._class_match(unit, converter, node)
        if node.type == "call_expression":
            return self._call_match(unit, converter, node, annotation, depth)
        if node.type == "object":
            members = _object_members(unit, node)
            if not any(
                self._classify(unit, converter, value, None, in_wrapper=False, depth=depth + 1)
                for _, value in members
            ):
                return None
            return _Match(ComponentVariant.COMPOUND, prop_type=None, target=None, members=members)
        return None

    def _function_match(
        self,
        unit: SourceUnit,
        converter: TypeConverter,
        node: Node,
        annotation: Optional[Node],
        in_wrapper: bool,
    ) -> Optional[_Match]:
        annotated = self._component_annotation(converter, annotation)
        if annotated is None and not in_wrapper and not _renders(unit, node):
            return None
        takes_props, parameter = _first_parameter(node)
        prop_type: Optional[TypeNode] = annotated
        if prop_type is None and parameter is not None:
            prop_type = converter.annotation(parameter.child_by_field_name("type"))
        if prop_type is None and not takes_props:
            prop_type = ObjectNode((), "{}")
        return _Match(
            ComponentVariant.FUNCTION,
            prop_type=prop_type,
            target=node,
            type_params=converter.type_parameters(node.child_by_field_name("type_parameters")),
        )

    def _class_match(self, unit: SourceUnit, converter: TypeConverter, node: Node) -> Optional[_Match]:
        clause = _extends_clause(node)
        if clause is None:
            return None
        base = clause.child_by_field_name("value")
        if base is None or _short_name(unit.text(base)) not in COMPONENT_BASE_CLASSES:
            return None
        args = converter.type_arguments(clause.child_by_field_name("type_arguments"))
        statics: Dict[str, Node] = {}
        body = node.child_by_field_name("body")
        for member in named_children(body) if body is not None else []:
            if member.type != "public_field_definition" or not has_token(member, "static"):
                continue
            name_node = member.child_by_field_name("name")
            value = member.child_by_field_name("value")
            if name_node is not None and value is not None:
                statics[unit.text(name_node)] = value
        return _Match(
            ComponentVariant.CLASS,
            prop_type=args[0] if args else None,
            target=node,
            type_params=converter.type_parameters(node.child_by_field_name("type_parameters")),
            statics=statics,
        )

    def _call_match(
        self,
        unit: SourceUnit,
        converter: TypeConverter,
        node: Node,
        annotation: Optional[Node],
        depth: int,
    ) -> Optional[_Match]:
        callee = node.child_by_field_name("function")
        if callee is None:
            return None
        qualifier, name = _callee_name(unit, callee)
        arguments_node = node.child_by_field_name("arguments")
        arguments = named_children(arguments_node) if arguments_node is not None else []

        if qualifier == "Object" and name == "assign" and len(arguments) >= 2:
            root = self._classify(unit, converter, arguments[0], annotation, in_wrapper=False, depth=depth + 1)
            if root is None:
                return None
            members: List[Tuple[str, Node]] = []
            for extra in arguments[1:]:
                extra = unwrap_expression(extra)
                if extra.type == "object":
                    members.extend(_object_members(unit, extra))
            root.variant = ComponentVariant.COMPOUND
            root.members = members
            return root

        if name not in self._options.wrapper_functions:
            return None
        variant = ComponentVariant.FORWARD_REF if name.endswith("forwardRef") else ComponentVariant.MEMO
        type_args = converter.type_arguments(node.child_by_field_name("type_arguments"))
        explicit: Optional[TypeNode] = None
        if variant is ComponentVariant.FORWARD_REF and len(type_args) > 1:
            explicit = type_args[1]
        elif variant is ComponentVariant.MEMO and type_args:
            explicit = type_args[0]

        inner = None
        if arguments:
            inner = self._classify(unit, converter, arguments[0], None, in_wrapper=True, depth=depth + 1)
        annotated = self._component_annotation(converter, annotation)
        if inner is None and explicit is None and annotated is None:
            return None

        prop_type = explicit or annotated or (inner.prop_type if inner is not None else None)
        return _Match(
            variant,
            prop_type=prop_type,
            target=inner.target if inner is not None else None,
            type_params=inner.type_params if inner is not None else (),
            statics=dict(inner.statics) if inner is not None else {},
        )

    def _component_annotation(self, converter: TypeConverter, annotation: Optional[Node]) -> Optional[TypeNode]:
        """Props of a ``const X: FC<Props>`` style annotation, if there is one."""
        if annotation is None:
            return None
        converted = converter.annotation(annotation)
        if not isinstance(converted, TypeRefNode) or _short_name(converted.name) not in self._fc_types:
            return None
        if converted.args:
            return converted.args[0]
        return ObjectNode((), "{}")

    # ------------------------------------------------------------------
    # Naming and candidates

    def _display_name(self, unit: SourceUnit, export: ExportBinding, match: _Match) -> str:
        resolver = self._options.component_name_resolver
        if resolver is not None:
            resolved = resolver(NameSource(export.export_name, export.local_name, unit.path))
            if resolved:
                return resolved
        static_name = match.statics.get("displayName")
        if static_name is not None:
            static_name = unwrap_expression(static_name)
            if static_name.type == "string":
                return unit.text(static_name)[1:-1]
        if export.export_name != "default":
            return export.export_name
        if export.local_name:
            return export.local_name
        if match.target is not None:
            name_node = match.target.child_by_field_name("name")
            if name_node is not None:
                return unit.text(name_node)
        return _file_stem(unit.path)

    def _subcomponents(
        self,
        unit: SourceUnit,
        converter: TypeConverter,
        parent: str,
        match: _Match,
        level: int = 0,
    ) -> Tuple[ComponentCandidate, ...]:
        if level >= _MAX_NESTING:
            return ()
        members = list(match.members)
        members.extend(
            (name, value) for name, value in match.statics.items() if name not in _RESERVED_STATICS
        )
        result: List[ComponentCandidate] = []
        seen: set[str] = set()
        for member_name, value in members:
            if member_name in seen:
                continue
            seen.add(member_name)
            inner = self._classify(unit, converter, value, None, in_wrapper=False, depth=1)
            if inner is None or (inner.target is not None and inner.target == match.target):
                continue
            unwrapped = unwrap_expression(value)
            binding = unit.locals.get(unit.text(unwrapped)) if unwrapped.type in _IDENTIFIERS else None
            site = _site(unit, binding.declaration if binding is not None else value, None)
            display_name = f"{parent}.{member_name}"
            nested = self._subcomponents(unit, converter, display_name, inner, level + 1)
            candidate = self._candidate(unit, display_name, inner, site, nested)
            if candidate is not None:
                result.append(candidate)
            else:
                result.extend(nested)
        return tuple(result)

    def _candidate(
        self,
        unit: SourceUnit,
        display_name: str,
        match: _Match,
        site: DeclarationSite,
        subcomponents: Tuple[ComponentCandidate, ...],
    ) -> Optional[ComponentCandidate]:
        if match.prop_type is None:
            if match.target is not None:
                self._report(
                    DiagnosticKind.MISSING_PROP_TYPE,
                    f"Component '{display_name}' has no discoverable prop type",
                    line=site.line,
                    component=display_name,
                )
            return None
        return ComponentCandidate(
            display_name=display_name,
            variant=match.variant,
            prop_type=match.prop_type,
            site=site,
            module=unit.path,
            target=match.target,
            type_params=match.type_params,
            statics=dict(match.statics),
            subcomponents=subcomponents,
        )

    def _report(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        line: Optional[int] = None,
        component: Optional[str] = None,
    ) -> None:
        if self._diagnostics is not None:
            self._diagnostics.add(kind, message, line=line, component=component)


def locate(
    unit: SourceUnit,
    options: ParserOptions | None = None,
    diagnostics: DiagnosticSink | None = None,
) -> List[ComponentCandidate]:
    return ComponentLocator(options, diagnostics).locate(unit)


def _site(unit: SourceUnit, node: Node, fallback: Optional[Node]) -> DeclarationSite:
    comment = declaration_doc_comment(node, unit.source)
    if comment is None and fallback is not None:
        comment = preceding_doc_comment(fallback, unit.source)
    return DeclarationSite(file=unit.path, line=line_of(node), comment=comment)


def _renders(unit: SourceUnit, node: Node) -> bool:
    returns = node.child_by_field_name("return_type")
    if returns is not None:
        text = unit.text(returns)
        if any(name in text for name in RENDER_RETURN_TYPES):
            return True
    body = node.child_by_field_name("body")
    if body is None:
        return False
    for child in _walk(body):
        if child.type in _JSX_NODES:
            return True
        if child.type == "call_expression":
            callee = child.child_by_field_name("function")
            if callee is not None and _short_name(unit.text(callee)) == "createElement":
                return True
    return False


def _walk(node: Node) -> Iterator[Node]:
    yield node
    yield from iter_descendants(node)


def _first_parameter(node: Node) -> Tuple[bool, Optional[Node]]:
    """Whether the function takes an argument, and its parameter node when typed syntax allows one."""
    if node.child_by_field_name("parameter") is not None:
        return True, None
    params = node.child_by_field_name("parameters")
    if params is None:
        return False, None
    for child in named_children(params):
        if child.type in {"required_parameter", "optional_parameter"}:
            return True, child
    return False, None


def _extends_clause(node: Node) -> Optional[Node]:
    for child in named_children(node):
        if child.type == "class_heritage":
            for clause in named_children(child):
                if clause.type == "extends_clause":
                    return clause
    return None


def _callee_name(unit: SourceUnit, callee: Node) -> Tuple[Optional[str], str]:
    callee = unwrap_expression(callee)
    if callee.type == "member_expression":
        target = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        qualifier = unit.text(target) if target is not None else None
        return qualifier, unit.text(prop) if prop is not None else ""
    return None, unit.text(callee)


def _object_members(unit: SourceUnit, node: Node) -> List[Tuple[str, Node]]:
    members: List[Tuple[str, Node]] = []
    for child in named_children(node):
        if child.type == "pair":
            key = child.child_by_field_name("key")
            value = child.child_by_field_name("value")
            if key is None or value is None or key.type not in {"property_identifier", "string"}:
                continue
            name = unit.text(key)
            members.append((name[1:-1] if key.type == "string" else name, value))
        elif child.type == "shorthand_property_identifier":
            members.append((unit.text(child), child))
    return members


def _short_name(name: str) -> str:
    return name.replace(" ", "").rsplit(".", 1)[-1]


def _looks_like_component(export: ExportBinding) -> bool:
    name = export.local_name or export.export_name
    return export.export_name == "default" or name[:1].isupper()


def _file_stem(path: str) -> str:
    file = Path(path)
    stem = file.name.split(".", 1)[0]
    if stem == "index" and file.parent.name:
        return file.parent.name
    return stem


__all__ = [
    "COMPONENT_BASE_CLASSES",
    "ComponentLocator",
    "FUNCTION_COMPONENT_TYPES",
    "RENDER_RETURN_TYPES",
    "locate",
]
