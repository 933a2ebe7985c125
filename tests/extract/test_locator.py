"""Tests for exported component discovery."""

from __future__ import annotations

from typing import List, Tuple

from propdoc.config import ParserOptions
from propdoc.diagnostics import Diagnostic, DiagnosticKind, DiagnosticSink
from propdoc.extract.locator import ComponentLocator
from propdoc.models import ComponentCandidate, ComponentVariant
from propdoc.typesys.nodes import ObjectNode, TypeRefNode
from tests._fixtures.source_builder import SourceBuilder


def _locate(
    builder: SourceBuilder, source: str, *, name: str = "Component.tsx", options: ParserOptions | None = None
) -> Tuple[List[ComponentCandidate], List[Diagnostic]]:
    builder.write({name: source})
    unit = builder.unit(name)
    sink = DiagnosticSink(unit.path)
    candidates = ComponentLocator(options, sink).locate(unit)
    return candidates, sink.items


def test_function_declaration_with_typed_props(source_builder: SourceBuilder) -> None:
    candidates, diagnostics = _locate(
        source_builder,
        """
        interface ButtonProps { label: string }

        /** Primary button. */
        export function Button(props: ButtonProps) {
          return <button>{props.label}</button>;
        }
        """,
    )
    assert diagnostics == []
    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.display_name == "Button"
    assert candidate.variant is ComponentVariant.FUNCTION
    assert candidate.prop_type == TypeRefNode("ButtonProps")
    assert candidate.site.comment == "/** Primary button. */"


def test_arrow_function_annotated_with_fc(source_builder: SourceBuilder) -> None:
    candidates, _ = _locate(
        source_builder,
        """
        import React from "react";
        interface CardProps { title: string }
        export const Card: React.FC<CardProps> = ({ title }) => <div>{title}</div>;
        """,
    )
    assert [c.display_name for c in candidates] == ["Card"]
    assert candidates[0].prop_type == TypeRefNode("CardProps")


def test_class_component_props_come_from_base_type_argument(source_builder: SourceBuilder) -> None:
    candidates, _ = _locate(
        source_builder,
        """
        import React from "react";
        interface PanelProps { open: boolean }
        export class Panel extends React.Component<PanelProps> {
          render() {
            return <div />;
          }
        }
        """,
    )
    assert len(candidates) == 1
    assert candidates[0].variant is ComponentVariant.CLASS
    assert candidates[0].prop_type == TypeRefNode("PanelProps")


def test_forward_ref_explicit_type_arguments_win(source_builder: SourceBuilder) -> None:
    candidates, _ = _locate(
        source_builder,
        """
        import React from "react";
        export interface InputProps { value: string }
        export const Input = React.forwardRef<HTMLInputElement, InputProps>((props, ref) => (
          <input ref={ref} value={props.value} />
        ));
        """,
    )
    assert len(candidates) == 1
    assert candidates[0].variant is ComponentVariant.FORWARD_REF
    assert candidates[0].prop_type == TypeRefNode("InputProps")


def test_memo_is_unwrapped_through_local_identifier(source_builder: SourceBuilder) -> None:
    candidates, _ = _locate(
        source_builder,
        """
        import { memo } from "react";
        interface BadgeProps { count: number }
        const Inner = (props: BadgeProps) => <span>{props.count}</span>;
        export const Badge = memo(Inner);
        """,
    )
    assert len(candidates) == 1
    assert candidates[0].display_name == "Badge"
    assert candidates[0].variant is ComponentVariant.MEMO
    assert candidates[0].prop_type == TypeRefNode("BadgeProps")


def test_non_exported_helpers_are_ignored(source_builder: SourceBuilder) -> None:
    candidates, diagnostics = _locate(
        source_builder,
        """
        interface Props { a: string }
        function Helper(props: Props) {
          return <i />;
        }
        export const helperValue = 1;
        """,
    )
    assert candidates == []
    assert diagnostics == []


def test_default_export_display_names(source_builder: SourceBuilder) -> None:
    candidates, _ = _locate(
        source_builder,
        """
        interface AlertProps { tone: string }
        function Alert(props: AlertProps) {
          return <div role="alert" />;
        }
        export default Alert;
        """,
    )
    assert [c.display_name for c in candidates] == ["Alert"]

    anonymous, _ = _locate(
        source_builder,
        """
        interface AvatarProps { src: string }
        export default (props: AvatarProps) => <img src={props.src} />;
        """,
        name="avatar/index.tsx",
    )
    assert [c.display_name for c in anonymous] == ["avatar"]


def test_static_display_name_and_resolver_precedence(source_builder: SourceBuilder) -> None:
    source = """
        interface Props { label: string }
        export const Button = (props: Props) => <button>{props.label}</button>;
        Button.displayName = "FancyButton";
        """
    candidates, _ = _locate(source_builder, source)
    assert [c.display_name for c in candidates] == ["FancyButton"]

    options = ParserOptions(component_name_resolver=lambda source: f"Ui{source.export_name}")
    resolved, _ = _locate(source_builder, source, name="Other.tsx", options=options)
    assert [c.display_name for c in resolved] == ["UiButton"]


def test_unrecognised_export_is_ambiguous(source_builder: SourceBuilder) -> None:
    candidates, diagnostics = _locate(
        source_builder,
        """
        export const Theme = 42;
        """,
    )
    assert candidates == []
    assert [d.kind for d in diagnostics] == [DiagnosticKind.AMBIGUOUS_COMPONENT]
    assert diagnostics[0].component == "Theme"


def test_component_without_prop_type_is_dropped(source_builder: SourceBuilder) -> None:
    candidates, diagnostics = _locate(
        source_builder,
        """
        export function Bare(props) {
          return <div>{props.x}</div>;
        }
        """,
    )
    assert candidates == []
    assert [d.kind for d in diagnostics] == [DiagnosticKind.MISSING_PROP_TYPE]


def test_component_without_parameters_has_no_props(source_builder: SourceBuilder) -> None:
    candidates, diagnostics = _locate(
        source_builder,
        """
        export function Logo() {
          return <svg />;
        }
        """,
    )
    assert diagnostics == []
    assert len(candidates) == 1
    assert isinstance(candidates[0].prop_type, ObjectNode)
    assert candidates[0].prop_type.members == ()


def test_object_assign_produces_compound_with_subcomponents(source_builder: SourceBuilder) -> None:
    candidates, _ = _locate(
        source_builder,
        """
        interface MenuProps { label: string }
        interface ItemProps { value: string }
        const MenuRoot = (props: MenuProps) => <ul />;
        const MenuItem = (props: ItemProps) => <li />;
        export const Menu = Object.assign(MenuRoot, { Item: MenuItem });
        """,
    )
    assert len(candidates) == 1
    menu = candidates[0]
    assert menu.variant is ComponentVariant.COMPOUND
    assert menu.prop_type == TypeRefNode("MenuProps")
    assert [sub.display_name for sub in menu.subcomponents] == ["Menu.Item"]
    assert menu.subcomponents[0].prop_type == TypeRefNode("ItemProps")


def test_static_member_assignment_adds_subcomponent(source_builder: SourceBuilder) -> None:
    candidates, _ = _locate(
        source_builder,
        """
        interface TabsProps { active: string }
        interface PanelProps { id: string }
        export function Tabs(props: TabsProps) {
          return <div>{props.active}</div>;
        }
        function TabPanel(props: PanelProps) {
          return <section id={props.id} />;
        }
        Tabs.Panel = TabPanel;
        """,
    )
    assert [c.display_name for c in candidates] == ["Tabs"]
    assert [sub.display_name for sub in candidates[0].subcomponents] == ["Tabs.Panel"]


def test_custom_component_types_are_recognised(source_builder: SourceBuilder) -> None:
    source = """
        interface ChipProps { text: string }
        export const Chip: StyledComponent<ChipProps> = (props) => null;
        """
    plain, diagnostics = _locate(source_builder, source)
    assert plain == []
    assert [d.kind for d in diagnostics] == [DiagnosticKind.AMBIGUOUS_COMPONENT]

    custom, _ = _locate(
        source_builder,
        source,
        name="Custom.tsx",
        options=ParserOptions(custom_component_types=("StyledComponent",)),
    )
    assert [c.display_name for c in custom] == ["Chip"]
    assert custom[0].prop_type == TypeRefNode("ChipProps")
