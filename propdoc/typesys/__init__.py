"""Type terms, their conversion from syntax trees, and the shared type environment."""

from .convert import TypeConverter
from .environment import (
    AliasDecl,
    ClassDecl,
    Declaration,
    EnumDecl,
    ImportBinding,
    InterfaceDecl,
    ModuleScope,
    TypeEnvironment,
)

__all__ = [
    "AliasDecl",
    "ClassDecl",
    "Declaration",
    "EnumDecl",
    "ImportBinding",
    "InterfaceDecl",
    "ModuleScope",
    "TypeConverter",
    "TypeEnvironment",
]
