"""Core data models shared across propdoc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union


# Type descriptors


@dataclass(frozen=True)
class PrimitiveType:
    name: str


@dataclass(frozen=True)
class LiteralType:
    value: str


@dataclass(frozen=True)
class EnumType:
    """An enum or an all-literal union, expanded to its member literals."""

    name: str
    members: Tuple[str, ...]


@dataclass(frozen=True)
class UnionType:
    members: Tuple["TypeDescriptor", ...]


@dataclass(frozen=True)
class IntersectionType:
    members: Tuple["TypeDescriptor", ...]


@dataclass(frozen=True)
class ReferenceType:
    """A named type that is not expanded in place (interfaces, external types, cycles)."""

    name: str
    type_args: Tuple["TypeDescriptor", ...] = ()


@dataclass(frozen=True)
class FunctionType:
    signature: str


@dataclass(frozen=True)
class UnknownType:
    """A type term that could not be reduced within bounds."""

    raw: str


TypeDescriptor = Union[
    PrimitiveType,
    LiteralType,
    EnumType,
    UnionType,
    IntersectionType,
    ReferenceType,
    FunctionType,
    UnknownType,
]


def type_name(descriptor: TypeDescriptor) -> str:
    """Render a descriptor the way it is written in TypeScript source."""
    if isinstance(descriptor, PrimitiveType):
        return descriptor.name
    if isinstance(descriptor, LiteralType):
        return descriptor.value
    if isinstance(descriptor, EnumType):
        return "enum"
    if isinstance(descriptor, UnionType):
        return " | ".join(_member_name(member) for member in descriptor.members)
    if isinstance(descriptor, IntersectionType):
        return " & ".join(_member_name(member) for member in descriptor.members)
    if isinstance(descriptor, ReferenceType):
        if descriptor.name in {"Array", "ReadonlyArray"} and len(descriptor.type_args) == 1:
            return f"{_member_name(descriptor.type_args[0], array=True)}[]"
        if descriptor.type_args:
            args = ", ".join(type_name(arg) for arg in descriptor.type_args)
            return f"{descriptor.name}<{args}>"
        return descriptor.name
    if isinstance(descriptor, FunctionType):
        return descriptor.signature
    return descriptor.raw


def _member_name(descriptor: TypeDescriptor, *, array: bool = False) -> str:
    text = type_name(descriptor)
    if isinstance(descriptor, FunctionType):
        return f"({text})"
    if array and isinstance(descriptor, (UnionType, IntersectionType)):
        return f"({text})"
    return text


def type_to_dict(descriptor: TypeDescriptor) -> Dict[str, Any]:
    if isinstance(descriptor, EnumType):
        return {
            "name": "enum",
            "raw": descriptor.name,
            "value": [{"value": member} for member in descriptor.members],
        }
    return {"name": type_name(descriptor)}


# Component documentation


@dataclass(frozen=True)
class DefaultValue:
    value: str


@dataclass(frozen=True)
class ParentRef:
    """The declaration a property was inherited from."""

    name: str
    file_name: str


@dataclass
class PropDescriptor:
    """Documentation record for one configurable property."""

    name: str
    type: TypeDescriptor
    required: bool = True
    description: str = ""
    default_value: Optional[DefaultValue] = None
    parent: Optional[ParentRef] = None
    tags: Dict[str, str] = field(default_factory=dict)

    def to_dict(self, *, include_tags: bool = False, include_parent: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": type_to_dict(self.type),
            "required": self.required,
            "description": self.description,
        }
        if self.default_value is not None:
            data["defaultValue"] = {"value": self.default_value.value}
        if include_parent and self.parent is not None:
            data["parent"] = {"fileName": self.parent.file_name, "name": self.parent.name}
        if include_tags:
            data["tags"] = dict(self.tags)
        return data


@dataclass
class ComponentDoc:
    """Final documentation record for one UI component."""

    display_name: str
    description: str = ""
    props: Dict[str, PropDescriptor] = field(default_factory=dict)
    file_path: str = ""
    tags: Dict[str, str] = field(default_factory=dict)

    def to_dict(self, *, include_tags: bool = False, include_parent: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "displayName": self.display_name,
            "description": self.description,
        }
        if include_parent:
            data["filePath"] = self.file_path
        if include_tags:
            data["tags"] = dict(self.tags)
        data["props"] = {
            name: prop.to_dict(include_tags=include_tags, include_parent=include_parent)
            for name, prop in self.props.items()
        }
        return data


# Candidates


class ComponentVariant(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    FORWARD_REF = "forward_ref"
    MEMO = "memo"
    COMPOUND = "compound"


@dataclass(frozen=True)
class DeclarationSite:
    """Where a declaration lives, with its raw preceding doc comment."""

    file: str
    line: int
    comment: Optional[str] = None


@dataclass(frozen=True)
class NameSource:
    """Inputs handed to a custom component name resolver."""

    export_name: str
    local_name: Optional[str]
    file_path: str


@dataclass
class ComponentCandidate:
    """A provisional detection of an exported component."""

    display_name: str
    variant: ComponentVariant
    prop_type: Any
    site: DeclarationSite
    module: str
    target: Any = None
    type_params: Tuple[Any, ...] = ()
    statics: Mapping[str, Any] = field(default_factory=dict)
    subcomponents: Tuple["ComponentCandidate", ...] = ()


__all__ = [
    "ComponentCandidate",
    "ComponentDoc",
    "ComponentVariant",
    "DeclarationSite",
    "DefaultValue",
    "EnumType",
    "FunctionType",
    "IntersectionType",
    "LiteralType",
    "NameSource",
    "ParentRef",
    "PrimitiveType",
    "PropDescriptor",
    "ReferenceType",
    "TypeDescriptor",
    "UnionType",
    "UnknownType",
    "type_name",
    "type_to_dict",
]
