"""Tree-sitter powered source loader.

Parses TSX/TS modules into :class:`SourceUnit` objects and builds the shared
:class:`TypeEnvironment` from their type declarations, following relative
imports so inherited prop types from sibling modules are visible.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Deque, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from .diagnostics import MalformedSourceError, UnitFailure
from .logging import get_logger
from .syntax import (
    has_token,
    iter_descendants,
    line_of,
    named_children,
    node_text,
)
from .typesys.convert import TypeConverter
from .typesys.environment import (
    AliasDecl,
    ClassDecl,
    Declaration,
    EnumDecl,
    ImportBinding,
    InterfaceDecl,
    ModuleScope,
    TypeEnvironment,
)
from .typesys.nodes import ObjectNode

TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())
TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())

_SOURCE_SUFFIXES = (".tsx", ".ts", ".d.ts")
_INDEX_FILES = ("index.tsx", "index.ts")
_CLASS_NODES = {"class_declaration", "abstract_class_declaration"}
_VARIABLE_NODES = {"lexical_declaration", "variable_declaration"}

logger = get_logger("source")


@dataclass(frozen=True)
class LocalBinding:
    """A top-level value binding of a module."""

    name: str
    declaration: Node
    value: Optional[Node]
    annotation: Optional[Node] = None


@dataclass(frozen=True)
class ExportBinding:
    """One exported value, in source order."""

    export_name: str
    local_name: Optional[str]
    value: Optional[Node]
    statement: Node


@dataclass
class SourceUnit:
    """Parsed form of one module plus its local bindings and exports."""

    path: str
    source: bytes
    tree: Tree
    locals: Dict[str, LocalBinding] = field(default_factory=dict)
    statics: Dict[str, Dict[str, Node]] = field(default_factory=dict)
    exports: List[ExportBinding] = field(default_factory=list)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        return node_text(node, self.source)


@dataclass
class Program:
    """Requested units (or their load failures) in submission order plus the frozen environment."""

    entries: List[Union[SourceUnit, UnitFailure]]
    environment: TypeEnvironment

    @property
    def units(self) -> List[SourceUnit]:
        return [entry for entry in self.entries if isinstance(entry, SourceUnit)]

    @property
    def failures(self) -> List[UnitFailure]:
        return [entry for entry in self.entries if isinstance(entry, UnitFailure)]


def module_id(path: str | Path) -> str:
    return Path(path).expanduser().resolve().as_posix()


class SourceLoader:
    """Reads and parses modules and assembles the type environment."""

    def __init__(self, *, follow_imports: bool = True, max_modules: int = 2000) -> None:
        self._follow_imports = follow_imports
        self._max_modules = max_modules
        self._parsers: Dict[str, Parser] = {}

    def load(
        self,
        paths: Sequence[str | Path],
        sources: Mapping[str, str] | None = None,
    ) -> Program:
        overlay = {module_id(name): text for name, text in (sources or {}).items()}
        requested = [module_id(path) for path in paths]
        environment = TypeEnvironment()
        units: Dict[str, SourceUnit] = {}
        errors: Dict[str, str] = {}
        visited: set[str] = set()
        queue: Deque[str] = deque(requested)

        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            if len(visited) >= self._max_modules:
                logger.warning("Module limit of %d reached; not loading %s", self._max_modules, current)
                break
            visited.add(current)
            is_requested = current in requested
            try:
                unit = self.parse_unit(current, overlay.get(current))
            except MalformedSourceError as exc:
                if is_requested:
                    errors[current] = exc.message
                else:
                    logger.debug("Skipping imported module %s: %s", current, exc.message)
                continue
            scope, imported = self._build_scope(unit, overlay)
            environment.add_module(scope)
            if is_requested:
                units[current] = unit
            if self._follow_imports:
                queue.extend(target for target in imported if target not in visited)

        environment.freeze()
        program = Program(entries=[], environment=environment)
        for path in requested:
            if path in units:
                program.entries.append(units[path])
            else:
                message = errors.get(path, "source was not loaded")
                program.entries.append(UnitFailure(path=path, message=message))
        logger.debug(
            "Loaded %d units (%d modules in environment, %d failures)",
            len(program.units),
            len(environment.modules),
            len(program.failures),
        )
        return program

    def parse_unit(self, path: str, text: Optional[str] = None) -> SourceUnit:
        """Parse one module; raise :class:`MalformedSourceError` if it cannot be parsed."""
        if text is None:
            try:
                text = Path(path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise MalformedSourceError(path, f"cannot read source: {exc}") from exc
        source = text.encode("utf-8")
        tree = self._get_parser(path).parse(source)
        if tree.root_node.has_error:
            raise MalformedSourceError(path, _describe_syntax_error(tree.root_node))
        unit = SourceUnit(path=path, source=source, tree=tree)
        self._collect_bindings(unit)
        return unit

    def _get_parser(self, path: str) -> Parser:
        # angle-bracket type assertions only parse with the plain TypeScript grammar
        grammar = "typescript" if path.endswith(".ts") else "tsx"
        parser = self._parsers.get(grammar)
        if parser is None:
            parser = Parser(TS_LANGUAGE if grammar == "typescript" else TSX_LANGUAGE)
            self._parsers[grammar] = parser
        return parser

    # ------------------------------------------------------------------
    # Value bindings

    def _collect_bindings(self, unit: SourceUnit) -> None:
        for statement in named_children(unit.root):
            if statement.type == "export_statement":
                self._collect_export(unit, statement)
                declaration = statement.child_by_field_name("declaration")
                if declaration is not None:
                    self._collect_local(unit, declaration)
            elif statement.type == "expression_statement":
                self._collect_static(unit, statement)
            else:
                self._collect_local(unit, statement)

    def _collect_local(self, unit: SourceUnit, node: Node) -> None:
        if node.type == "function_declaration" or node.type in _CLASS_NODES:
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                name = unit.text(name_node)
                unit.locals[name] = LocalBinding(name=name, declaration=node, value=node)
        elif node.type in _VARIABLE_NODES:
            for declarator in named_children(node):
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is None or name_node.type != "identifier":
                    continue
                name = unit.text(name_node)
                unit.locals[name] = LocalBinding(
                    name=name,
                    declaration=declarator,
                    value=declarator.child_by_field_name("value"),
                    annotation=declarator.child_by_field_name("type"),
                )

    def _collect_static(self, unit: SourceUnit, statement: Node) -> None:
        expression = statement.named_children[0] if statement.named_children else None
        if expression is None or expression.type != "assignment_expression":
            return
        left = expression.child_by_field_name("left")
        right = expression.child_by_field_name("right")
        if left is None or right is None or left.type != "member_expression":
            return
        target = left.child_by_field_name("object")
        prop = left.child_by_field_name("property")
        if target is None or prop is None or target.type != "identifier":
            return
        unit.statics.setdefault(unit.text(target), {})[unit.text(prop)] = right

    def _collect_export(self, unit: SourceUnit, statement: Node) -> None:
        if statement.child_by_field_name("source") is not None:
            return
        is_default = has_token(statement, "default")
        declaration = statement.child_by_field_name("declaration")
        if declaration is not None:
            if declaration.type == "function_declaration" or declaration.type in _CLASS_NODES:
                name_node = declaration.child_by_field_name("name")
                name = unit.text(name_node) if name_node is not None else None
                export_name = "default" if is_default or name is None else name
                unit.exports.append(
                    ExportBinding(export_name=export_name, local_name=name, value=declaration, statement=statement)
                )
            elif declaration.type in _VARIABLE_NODES:
                for declarator in named_children(declaration):
                    name_node = declarator.child_by_field_name("name")
                    if declarator.type != "variable_declarator" or name_node is None:
                        continue
                    if name_node.type != "identifier":
                        continue
                    name = unit.text(name_node)
                    unit.exports.append(
                        ExportBinding(
                            export_name=name,
                            local_name=name,
                            value=declarator.child_by_field_name("value"),
                            statement=statement,
                        )
                    )
            return
        value = statement.child_by_field_name("value")
        if value is not None:
            local = unit.text(value) if value.type == "identifier" else None
            unit.exports.append(
                ExportBinding(export_name="default", local_name=local, value=value, statement=statement)
            )
            return
        for clause in named_children(statement):
            if clause.type != "export_clause":
                continue
            for specifier in named_children(clause):
                if specifier.type != "export_specifier":
                    continue
                name_node = specifier.child_by_field_name("name")
                alias_node = specifier.child_by_field_name("alias")
                if name_node is None:
                    continue
                local = unit.text(name_node)
                exported = unit.text(alias_node) if alias_node is not None else local
                unit.exports.append(
                    ExportBinding(export_name=exported, local_name=local, value=None, statement=statement)
                )

    # ------------------------------------------------------------------
    # Type scope

    def _build_scope(self, unit: SourceUnit, overlay: Mapping[str, str]) -> Tuple[ModuleScope, List[str]]:
        converter = TypeConverter(unit.source, unit.path)
        declarations: Dict[str, List[Declaration]] = {}
        imports: Dict[str, ImportBinding] = {}
        exports: Dict[str, str] = {}
        reexports: Dict[str, ImportBinding] = {}
        star_exports: List[str] = []
        targets: List[str] = []

        def _declare(node: Node, exported: bool, default: bool) -> None:
            declaration = self._declaration(unit, converter, node)
            if declaration is None:
                name_node = node.child_by_field_name("name")
                if exported and name_node is not None:
                    name = unit.text(name_node)
                    exports["default" if default else name] = name
                return
            declarations.setdefault(declaration.name, []).append(declaration)
            if exported:
                exports["default" if default else declaration.name] = declaration.name

        for statement in named_children(unit.root):
            if statement.type == "import_statement":
                target = self._resolve_import(unit.path, statement, unit, overlay)
                if target is not None:
                    targets.append(target)
                self._collect_imports(unit, statement, target, imports)
            elif statement.type == "export_statement":
                source_node = statement.child_by_field_name("source")
                target = None
                if source_node is not None:
                    target = self._resolve_specifier(unit.path, _unquote(unit.text(source_node)), overlay)
                    if target is not None:
                        targets.append(target)
                    if has_token(statement, "*") and not any(
                        child.type == "namespace_export" for child in statement.named_children
                    ):
                        if target is not None:
                            star_exports.append(target)
                        continue
                declaration = statement.child_by_field_name("declaration")
                if declaration is not None:
                    for inner in _unwrap_ambient(declaration):
                        _declare(inner, True, has_token(statement, "default"))
                    continue
                value = statement.child_by_field_name("value")
                if value is not None and value.type == "identifier":
                    exports["default"] = unit.text(value)
                    continue
                for clause in named_children(statement):
                    if clause.type != "export_clause":
                        continue
                    for specifier in named_children(clause):
                        name_node = specifier.child_by_field_name("name")
                        if specifier.type != "export_specifier" or name_node is None:
                            continue
                        alias_node = specifier.child_by_field_name("alias")
                        name = unit.text(name_node)
                        exported = unit.text(alias_node) if alias_node is not None else name
                        if source_node is not None:
                            reexports[exported] = ImportBinding(module=target, name=name)
                        else:
                            exports[exported] = name
            else:
                for inner in _unwrap_ambient(statement):
                    _declare(inner, False, False)

        scope = ModuleScope(
            module=unit.path,
            declarations=MappingProxyType({name: tuple(items) for name, items in declarations.items()}),
            imports=MappingProxyType(imports),
            exports=MappingProxyType(exports),
            reexports=MappingProxyType(reexports),
            star_exports=tuple(star_exports),
        )
        return scope, targets

    def _declaration(self, unit: SourceUnit, converter: TypeConverter, node: Node) -> Optional[Declaration]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = unit.text(name_node)
        site = converter.declaration_site(node)
        type_params = converter.type_parameters(node.child_by_field_name("type_parameters"))
        if node.type == "interface_declaration":
            bases = []
            for child in named_children(node):
                if child.type == "extends_type_clause":
                    bases.extend(converter.convert(base) for base in named_children(child))
            body = node.child_by_field_name("body")
            members = converter.members(body) if body is not None else ()
            text = converter.text(body) if body is not None else "{}"
            return InterfaceDecl(
                module=unit.path,
                name=name,
                type_params=type_params,
                bases=tuple(bases),
                body=ObjectNode(members, text),
                site=site,
            )
        if node.type == "type_alias_declaration":
            value = node.child_by_field_name("value")
            if value is None:
                return None
            return AliasDecl(
                module=unit.path,
                name=name,
                type_params=type_params,
                value=converter.convert(value),
                site=site,
            )
        if node.type == "enum_declaration":
            body = node.child_by_field_name("body")
            return EnumDecl(
                module=unit.path,
                name=name,
                values=_enum_values(unit, name, body),
                site=site,
            )
        if node.type in _CLASS_NODES:
            body = node.child_by_field_name("body")
            members = converter.members(body) if body is not None else ()
            return ClassDecl(
                module=unit.path,
                name=name,
                type_params=type_params,
                body=ObjectNode(members, name),
                site=site,
            )
        return None

    def _collect_imports(
        self,
        unit: SourceUnit,
        statement: Node,
        target: Optional[str],
        imports: Dict[str, ImportBinding],
    ) -> None:
        for clause in named_children(statement):
            if clause.type != "import_clause":
                continue
            for part in named_children(clause):
                if part.type == "identifier":
                    imports[unit.text(part)] = ImportBinding(module=target, name="default")
                elif part.type == "namespace_import":
                    for alias in named_children(part):
                        if alias.type == "identifier":
                            imports[unit.text(alias)] = ImportBinding(module=target, name="*")
                elif part.type == "named_imports":
                    for specifier in named_children(part):
                        name_node = specifier.child_by_field_name("name")
                        if specifier.type != "import_specifier" or name_node is None:
                            continue
                        alias_node = specifier.child_by_field_name("alias")
                        local = unit.text(alias_node) if alias_node is not None else unit.text(name_node)
                        imports[local] = ImportBinding(module=target, name=unit.text(name_node))

    def _resolve_import(
        self, importer: str, statement: Node, unit: SourceUnit, overlay: Mapping[str, str]
    ) -> Optional[str]:
        source_node = statement.child_by_field_name("source")
        if source_node is None:
            return None
        return self._resolve_specifier(importer, _unquote(unit.text(source_node)), overlay)

    @staticmethod
    def _resolve_specifier(importer: str, specifier: str, overlay: Mapping[str, str]) -> Optional[str]:
        if not specifier.startswith("."):
            return None
        base = Path(importer).parent / specifier
        candidates: List[Path] = []
        if base.suffix in {".ts", ".tsx"}:
            candidates.append(base)
        elif base.suffix in {".js", ".jsx"}:
            stem = base.with_suffix("")
            candidates.extend(stem.with_name(stem.name + suffix) for suffix in _SOURCE_SUFFIXES)
        candidates.extend(base.with_name(base.name + suffix) for suffix in _SOURCE_SUFFIXES)
        candidates.extend(base / index for index in _INDEX_FILES)
        for candidate in candidates:
            resolved = module_id(candidate)
            if resolved in overlay or Path(resolved).is_file():
                return resolved
        return None


def _unwrap_ambient(node: Node) -> List[Node]:
    if node.type == "ambient_declaration":
        return [child for child in named_children(node)]
    return [node]


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in {"'", '"', "`"} and text[-1] == text[0]:
        return text[1:-1]
    return text


def _enum_values(unit: SourceUnit, enum_name: str, body: Optional[Node]) -> Tuple[str, ...]:
    if body is None:
        return ()
    values: List[str] = []
    next_number: Optional[int] = 0
    for member in named_children(body):
        if member.type == "enum_assignment":
            name_node = member.child_by_field_name("name")
            value_node = member.child_by_field_name("value")
            name = _unquote(unit.text(name_node)) if name_node is not None else ""
            value_text = unit.text(value_node) if value_node is not None else ""
            if value_node is not None and value_node.type == "string":
                values.append(value_text)
                next_number = None
            elif value_node is not None and value_node.type == "number":
                values.append(value_text)
                try:
                    next_number = int(value_text) + 1
                except ValueError:
                    next_number = None
            else:
                values.append(f"{enum_name}.{name}")
                next_number = None
        elif member.type in {"property_identifier", "string"}:
            if next_number is not None:
                values.append(str(next_number))
                next_number += 1
            else:
                values.append(f"{enum_name}.{_unquote(unit.text(member))}")
    return tuple(values)


def _describe_syntax_error(root: Node) -> str:
    for node in iter_descendants(root):
        if node.type == "ERROR" or node.is_missing:
            return f"syntax error at line {line_of(node)}"
    return "syntax error"


__all__ = [
    "ExportBinding",
    "LocalBinding",
    "Program",
    "SourceLoader",
    "SourceUnit",
    "TSX_LANGUAGE",
    "TS_LANGUAGE",
    "module_id",
]
