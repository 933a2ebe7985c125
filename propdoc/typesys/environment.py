"""The read-only set of type declarations visible to the source units of a run."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from ..models import DeclarationSite
from .nodes import ObjectNode, TypeNode, TypeParam

_MAX_IMPORT_HOPS = 16


@dataclass(frozen=True)
class InterfaceDecl:
    module: str
    name: str
    type_params: Tuple[TypeParam, ...]
    bases: Tuple[TypeNode, ...]
    body: ObjectNode
    site: DeclarationSite


@dataclass(frozen=True)
class AliasDecl:
    module: str
    name: str
    type_params: Tuple[TypeParam, ...]
    value: TypeNode
    site: DeclarationSite


@dataclass(frozen=True)
class EnumDecl:
    module: str
    name: str
    # literal text of each member value, ``Name.Member`` when it has no literal initializer
    values: Tuple[str, ...]
    site: DeclarationSite


@dataclass(frozen=True)
class ClassDecl:
    module: str
    name: str
    type_params: Tuple[TypeParam, ...]
    body: ObjectNode
    site: DeclarationSite


Declaration = Union[InterfaceDecl, AliasDecl, EnumDecl, ClassDecl]


@dataclass(frozen=True)
class ImportBinding:
    """A name bound from another module; ``name`` is ``*`` for namespace imports."""

    module: Optional[str]
    name: str


@dataclass(frozen=True)
class ModuleScope:
    module: str
    declarations: Mapping[str, Tuple[Declaration, ...]]
    imports: Mapping[str, ImportBinding]
    exports: Mapping[str, str]
    reexports: Mapping[str, ImportBinding]
    star_exports: Tuple[str, ...] = ()


class EnvironmentFrozenError(RuntimeError):
    """Raised when a frozen environment is modified."""


class TypeEnvironment:
    """Arena of declarations addressed by ``(module, name)``.

    Built once by the loader, then frozen; every read after that is safe from
    any number of threads.
    """

    def __init__(self) -> None:
        self._modules: Dict[str, ModuleScope] = {}
        self._view: Mapping[str, ModuleScope] = self._modules
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_module(self, scope: ModuleScope) -> None:
        if self._frozen:
            raise EnvironmentFrozenError(f"Cannot add module {scope.module} to a frozen environment")
        self._modules[scope.module] = scope

    def freeze(self) -> "TypeEnvironment":
        self._view = MappingProxyType(dict(self._modules))
        self._frozen = True
        return self

    def module(self, module: str) -> Optional[ModuleScope]:
        return self._view.get(module)

    @property
    def modules(self) -> Tuple[str, ...]:
        return tuple(self._view)

    def lookup(self, module: str, name: str) -> Tuple[Declaration, ...]:
        """Return the declarations ``name`` refers to from inside ``module``."""
        return self._lookup(module, name, 0)

    def _lookup(self, module: str, name: str, hops: int) -> Tuple[Declaration, ...]:
        if hops > _MAX_IMPORT_HOPS:
            return ()
        scope = self._view.get(module)
        if scope is None:
            return ()
        if "." in name:
            head, rest = name.split(".", 1)
            binding = scope.imports.get(head)
            if binding is not None and binding.name == "*" and binding.module is not None:
                return self._exported(binding.module, rest, hops + 1)
            return ()
        declared = scope.declarations.get(name)
        if declared:
            return declared
        binding = scope.imports.get(name)
        if binding is not None and binding.module is not None and binding.name != "*":
            return self._exported(binding.module, binding.name, hops + 1)
        return ()

    def _exported(self, module: str, export_name: str, hops: int) -> Tuple[Declaration, ...]:
        if hops > _MAX_IMPORT_HOPS:
            return ()
        scope = self._view.get(module)
        if scope is None:
            return ()
        local = scope.exports.get(export_name)
        if local is not None:
            return self._lookup(module, local, hops)
        reexport = scope.reexports.get(export_name)
        if reexport is not None and reexport.module is not None:
            return self._exported(reexport.module, reexport.name, hops + 1)
        for star in scope.star_exports:
            found = self._exported(star, export_name, hops + 1)
            if found:
                return found
        return ()


__all__ = [
    "AliasDecl",
    "ClassDecl",
    "Declaration",
    "EnumDecl",
    "EnvironmentFrozenError",
    "ImportBinding",
    "InterfaceDecl",
    "ModuleScope",
    "TypeEnvironment",
]
