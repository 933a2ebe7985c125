"""Statically determinable default values of component properties."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from tree_sitter import Node

from ..models import ComponentCandidate
from ..source import SourceUnit
from ..syntax import named_children, normalise, unwrap_expression

_FUNCTION_NODES = {
    "function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "generator_function_declaration",
}
_VARIABLE_NODES = {"lexical_declaration", "variable_declaration"}


@dataclass(frozen=True)
class StaticDefault:
    """A literal default: its display text and the equivalent Python value."""

    text: str
    value: Any


class DefaultValueExtractor:
    """Collects literal defaults for one unit's candidates.

    Sources, lowest precedence first: destructuring of the first parameter,
    destructuring of the props parameter at the top of the body, and explicit
    ``defaultProps`` objects.
    """

    def __init__(self, unit: SourceUnit) -> None:
        self._unit = unit

    def extract(self, candidate: ComponentCandidate) -> Dict[str, StaticDefault]:
        defaults: Dict[str, StaticDefault] = {}
        target = candidate.target
        if target is not None and target.type in _FUNCTION_NODES:
            props_name, pattern = self._props_parameter(target)
            if pattern is not None:
                defaults.update(self._pattern_defaults(pattern))
            if props_name is not None:
                defaults.update(self._body_defaults(target, props_name))
        explicit = candidate.statics.get("defaultProps")
        if explicit is not None:
            defaults.update(self._object_defaults(explicit))
        return defaults

    def static_value(self, node: Node) -> Optional[StaticDefault]:
        """Return the literal value of ``node``, or ``None`` when it is not static."""
        node = unwrap_expression(node)
        kind = node.type
        text = self._unit.text(node)
        if kind == "string":
            return StaticDefault(text[1:-1], text[1:-1])
        if kind == "template_string":
            if any(child.type == "template_substitution" for child in node.named_children):
                return None
            return StaticDefault(text[1:-1], text[1:-1])
        if kind == "number":
            return StaticDefault(text, _number(text))
        if kind == "unary_expression":
            operator = node.child_by_field_name("operator")
            argument = node.child_by_field_name("argument")
            if operator is None or argument is None:
                return None
            sign = self._unit.text(operator)
            inner = unwrap_expression(argument)
            if sign not in {"-", "+"} or inner.type != "number":
                return None
            value = _number(self._unit.text(inner))
            if isinstance(value, str):
                return None
            return StaticDefault(normalise(text), -value if sign == "-" else value)
        if kind in {"true", "false"}:
            return StaticDefault(kind, kind == "true")
        if kind in {"null", "undefined"}:
            return StaticDefault(kind, None)
        if kind == "array":
            values = []
            for element in named_children(node):
                item = self.static_value(element)
                if item is None:
                    return None
                values.append(item.value)
            return StaticDefault(normalise(text), values)
        if kind == "object":
            entries: Dict[str, Any] = {}
            for child in named_children(node):
                entry = self._object_entry(child)
                if entry is None:
                    return None
                entries[entry[0]] = entry[1].value
            return StaticDefault(normalise(text), entries)
        return None

    # ------------------------------------------------------------------

    def _props_parameter(self, function: Node) -> Tuple[Optional[str], Optional[Node]]:
        single = function.child_by_field_name("parameter")
        if single is not None:
            return (self._unit.text(single), None) if single.type == "identifier" else (None, None)
        params = function.child_by_field_name("parameters")
        if params is None:
            return None, None
        for child in named_children(params):
            if child.type not in {"required_parameter", "optional_parameter"}:
                continue
            pattern = child.child_by_field_name("pattern")
            if pattern is None:
                return None, None
            if pattern.type == "identifier":
                return self._unit.text(pattern), None
            if pattern.type == "object_pattern":
                return None, pattern
            return None, None
        return None, None

    def _pattern_defaults(self, pattern: Node) -> Dict[str, StaticDefault]:
        defaults: Dict[str, StaticDefault] = {}
        for child in named_children(pattern):
            name: Optional[str] = None
            value: Optional[Node] = None
            if child.type == "object_assignment_pattern":
                left = child.child_by_field_name("left")
                value = child.child_by_field_name("right")
                if left is not None:
                    name = self._unit.text(left)
            elif child.type == "pair_pattern":
                key = child.child_by_field_name("key")
                target = child.child_by_field_name("value")
                if key is not None and target is not None and target.type == "assignment_pattern":
                    name = _key_name(self._unit.text(key), key.type)
                    value = target.child_by_field_name("right")
            if name is None or value is None:
                continue
            static = self.static_value(value)
            if static is not None:
                defaults[name] = static
        return defaults

    def _body_defaults(self, function: Node, props_name: str) -> Dict[str, StaticDefault]:
        body = function.child_by_field_name("body")
        if body is None or body.type != "statement_block":
            return {}
        defaults: Dict[str, StaticDefault] = {}
        for statement in named_children(body):
            if statement.type not in _VARIABLE_NODES:
                continue
            for declarator in named_children(statement):
                if declarator.type != "variable_declarator":
                    continue
                pattern = declarator.child_by_field_name("name")
                value = declarator.child_by_field_name("value")
                if pattern is None or value is None or pattern.type != "object_pattern":
                    continue
                value = unwrap_expression(value)
                if value.type == "identifier" and self._unit.text(value) == props_name:
                    defaults.update(self._pattern_defaults(pattern))
        return defaults

    def _object_defaults(self, node: Node) -> Dict[str, StaticDefault]:
        node = unwrap_expression(node)
        if node.type == "identifier":
            binding = self._unit.locals.get(self._unit.text(node))
            if binding is None or binding.value is None:
                return {}
            node = unwrap_expression(binding.value)
        if node.type != "object":
            return {}
        defaults: Dict[str, StaticDefault] = {}
        for child in named_children(node):
            entry = self._object_entry(child)
            if entry is not None:
                defaults[entry[0]] = entry[1]
        return defaults

    def _object_entry(self, node: Node) -> Optional[Tuple[str, StaticDefault]]:
        if node.type != "pair":
            return None
        key = node.child_by_field_name("key")
        value = node.child_by_field_name("value")
        if key is None or value is None or key.type not in {"property_identifier", "string", "number"}:
            return None
        static = self.static_value(value)
        if static is None:
            return None
        return _key_name(self._unit.text(key), key.type), static


def extract_defaults(unit: SourceUnit, candidate: ComponentCandidate) -> Dict[str, StaticDefault]:
    return DefaultValueExtractor(unit).extract(candidate)


def _key_name(text: str, kind: str) -> str:
    return text[1:-1] if kind == "string" else text


def _number(text: str) -> Any:
    cleaned = text.replace("_", "")
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    try:
        return float(cleaned)
    except ValueError:
        return cleaned


__all__ = ["DefaultValueExtractor", "StaticDefault", "extract_defaults"]
