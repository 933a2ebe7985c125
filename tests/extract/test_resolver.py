"""Tests for prop type resolution."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from propdoc.config import ParserOptions
from propdoc.diagnostics import Diagnostic, DiagnosticKind, DiagnosticSink
from propdoc.extract.resolver import PropTypeResolver, ResolvedShape
from propdoc.models import (
    EnumType,
    FunctionType,
    LiteralType,
    ParentRef,
    PrimitiveType,
    ReferenceType,
    UnionType,
    UnknownType,
    type_name,
    type_to_dict,
)
from propdoc.typesys.nodes import TypeParam, TypeRefNode
from tests._fixtures.source_builder import SourceBuilder


def _resolve(
    builder: SourceBuilder,
    source: str,
    *,
    type_ref: str = "Props",
    options: Optional[ParserOptions] = None,
    extra: Optional[Mapping[str, str]] = None,
    type_params: Tuple[TypeParam, ...] = (),
) -> Tuple[ResolvedShape, List[Diagnostic]]:
    files: Dict[str, str] = {"Props.tsx": source}
    files.update(extra or {})
    builder.write(files)
    program = builder.program("Props.tsx")
    module = builder.module("Props.tsx")
    sink = DiagnosticSink(module)
    resolver = PropTypeResolver(program.environment, options, sink)
    shape = resolver.resolve(TypeRefNode(type_ref), module, type_params=type_params)
    return shape, sink.items


def _types(shape: ResolvedShape) -> Dict[str, str]:
    return {name: type_name(prop.type) for name, prop in shape.items()}


def _required(shape: ResolvedShape) -> Dict[str, bool]:
    return {name: prop.required for name, prop in shape.items()}


def test_interface_members_with_docs_and_optionality(source_builder: SourceBuilder) -> None:
    shape, diagnostics = _resolve(
        source_builder,
        """
        interface Props {
          /** Visible text. */
          label: string;
          disabled?: boolean;
          onClick?: (event: MouseEvent) => void;
          icon?: React.ReactNode;
          focus(): void;
        }
        """,
    )
    assert diagnostics == []
    assert list(shape) == ["label", "disabled", "onClick", "icon", "focus"]
    assert _required(shape) == {
        "label": True,
        "disabled": False,
        "onClick": False,
        "icon": False,
        "focus": True,
    }
    assert shape["label"].doc.description == "Visible text."
    assert shape["onClick"].type == FunctionType("(event: MouseEvent) => void")
    assert shape["icon"].type == ReferenceType("React.ReactNode")
    assert shape["focus"].type == FunctionType("() => void")


def test_inherited_members_come_first_and_derived_members_replace_in_place(
    source_builder: SourceBuilder,
) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        interface Base {
          id: string;
          label?: string;
        }
        interface Props extends Base {
          label: string;
          size: number;
        }
        """,
    )
    module = source_builder.module("Props.tsx")
    assert list(shape) == ["id", "label", "size"]
    assert shape["label"].required is True
    assert shape["id"].parent == ParentRef(name="Base", file_name=module)
    assert shape["label"].parent == ParentRef(name="Props", file_name=module)


def test_declaration_merging_combines_interfaces(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        interface Props { a: string }
        interface Props { b?: number }
        """,
    )
    assert _types(shape) == {"a": "string", "b": "number"}
    assert _required(shape) == {"a": True, "b": False}


def test_union_of_shapes_requires_presence_in_every_arm(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        type Props = { kind: "a"; a: string } | { kind: "b"; b?: number } | null;
        """,
    )
    assert list(shape) == ["kind", "a", "b"]
    assert _required(shape) == {"kind": True, "a": False, "b": False}
    assert shape["kind"].type == UnionType((LiteralType('"a"'), LiteralType('"b"')))


def test_intersection_merges_members(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        type Props = { a?: string; c: string; d: string } & { a: string; b: any } & { b: number; c: "x"; d: number };
        """,
    )
    assert _required(shape)["a"] is True
    assert shape["a"].type == PrimitiveType("string")
    assert shape["b"].type == PrimitiveType("number")
    assert shape["c"].type == LiteralType('"x"')
    assert shape["d"].type == UnknownType("string & number")


def test_generic_arguments_defaults_and_missing_parameters(source_builder: SourceBuilder) -> None:
    shape, diagnostics = _resolve(
        source_builder,
        """
        interface Wrapper<T, U = boolean> {
          value: T;
          flag: U;
        }
        interface Box<T> {
          item: T;
        }
        type Props = Wrapper<string> & Box;
        """,
    )
    assert _types(shape) == {"value": "string", "flag": "boolean", "item": "T"}
    assert shape["item"].type == UnknownType("T")
    assert [d.kind for d in diagnostics] == [DiagnosticKind.UNRESOLVED_TYPE]


def test_component_type_parameters_fall_back_to_constraint(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        interface Base { id: string }
        """,
        type_ref="P",
        type_params=(TypeParam("P", constraint=TypeRefNode("Base")),),
    )
    assert _types(shape) == {"id": "string"}


def test_recursive_types_terminate(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        type Json = string | number | Json[];
        interface A extends B { a: string }
        interface B extends A { b: string }
        interface Props extends A {
          children?: Props[];
          parent?: Props;
          data: Json;
        }
        """,
    )
    assert list(shape) == ["b", "a", "children", "parent", "data"]
    assert type_name(shape["children"].type) == "Props[]"
    assert shape["parent"].type == ReferenceType("Props")
    assert shape["data"].type == ReferenceType("Json")


def test_mapped_utility_types(source_builder: SourceBuilder) -> None:
    shape, diagnostics = _resolve(
        source_builder,
        """
        interface Base {
          a: string;
          b: number;
          c: boolean;
          d: string;
        }
        type Props = Partial<Pick<Base, "a" | "b">> & Omit<Base, "a" | "b" | "c"> & Record<"x" | "y", number>;
        """,
    )
    assert diagnostics == []
    assert _types(shape) == {"a": "string", "b": "number", "d": "string", "x": "number", "y": "number"}
    assert _required(shape) == {"a": False, "b": False, "d": True, "x": True, "y": True}


def test_required_and_props_with_children(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        type Props = React.PropsWithChildren<Required<{ a?: string }>>;
        """,
    )
    assert _required(shape) == {"a": True, "children": False}
    assert shape["children"].type == ReferenceType("ReactNode")


def test_keyof_and_indexed_access(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        interface Colors {
          red: string;
          blue: number;
        }
        interface Props {
          color: keyof Colors;
          shade: Colors["blue"];
        }
        """,
    )
    assert type_name(shape["color"].type) == '"red" | "blue"'
    assert shape["shade"].type == PrimitiveType("number")


def test_enums_and_literal_unions_stay_named_by_default(source_builder: SourceBuilder) -> None:
    source = """
        enum Size {
          Small = "sm",
          Large = "lg",
        }
        type Tone = "info" | "warn";
        interface Props {
          size: Size;
          tone: Tone;
          level: 1 | 2;
          open: true | false;
        }
        """
    shape, _ = _resolve(source_builder, source)
    assert _types(shape) == {"size": "Size", "tone": "Tone", "level": "1 | 2", "open": "boolean"}

    expanded, _ = _resolve(source_builder, source, options=ParserOptions(expand_enum_literals=True))
    assert expanded["size"].type == EnumType("Size", ('"sm"', '"lg"'))
    assert expanded["tone"].type == EnumType("Tone", ('"info"', '"warn"'))
    assert expanded["level"].type == EnumType("1 | 2", ("1", "2"))
    assert type_to_dict(expanded["tone"].type) == {
        "name": "enum",
        "raw": "Tone",
        "value": [{"value": '"info"'}, {"value": '"warn"'}],
    }


def test_aliases_of_primitives_and_functions_collapse(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        type Id = string;
        type Handler = (value: string) => void;
        interface Props {
          id: Id;
          onChange: Handler;
          ids: Array<Id>;
          pair: [string, number];
          style: { color: string };
        }
        """,
    )
    assert shape["id"].type == PrimitiveType("string")
    assert shape["onChange"].type == FunctionType("(value: string) => void")
    assert type_name(shape["ids"].type) == "string[]"
    assert shape["pair"].type == ReferenceType("[string, number]")
    assert shape["style"].type == ReferenceType("{ color: string }")


def test_imported_base_types_are_resolved(source_builder: SourceBuilder) -> None:
    shape, _ = _resolve(
        source_builder,
        """
        import { Base } from "./base";
        export interface Props extends Base {
          own: string;
        }
        """,
        extra={"base.ts": "export interface Base {\n  shared: number;\n}\n"},
    )
    assert list(shape) == ["shared", "own"]
    assert shape["shared"].parent == ParentRef(name="Base", file_name=source_builder.module("base.ts"))


def test_unresolvable_base_adds_diagnostic(source_builder: SourceBuilder) -> None:
    shape, diagnostics = _resolve(
        source_builder,
        """
        interface Props extends React.HTMLAttributes<HTMLDivElement> {
          a: string;
        }
        """,
    )
    assert list(shape) == ["a"]
    assert [d.kind for d in diagnostics] == [DiagnosticKind.UNRESOLVED_TYPE]


def test_breadth_and_depth_bounds(source_builder: SourceBuilder) -> None:
    shape, diagnostics = _resolve(
        source_builder,
        """
        interface Props {
          a: string;
          b: string;
          c: string;
        }
        """,
        options=ParserOptions(max_members=2),
    )
    assert list(shape) == ["a", "b"]
    assert [d.kind for d in diagnostics] == [DiagnosticKind.UNRESOLVED_TYPE]

    deep, deep_diagnostics = _resolve(
        source_builder,
        """
        type Three = string;
        type Two = Three;
        type One = Two;
        interface Props {
          value: One;
        }
        """,
        options=ParserOptions(max_depth=2),
    )
    assert list(deep) == ["value"]
    assert any("maximum expansion depth" in d.message for d in deep_diagnostics)
