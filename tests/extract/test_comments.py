"""Tests for JSDoc parsing and comment binding."""

from __future__ import annotations

from propdoc.extract.comments import JsDoc, bind, bind_doc, parse_jsdoc
from propdoc.models import DeclarationSite


def test_parse_jsdoc_strips_comment_syntax() -> None:
    doc = parse_jsdoc(
        """/**
         * Primary call to action.
         *
         * Renders a native button.
         */"""
    )
    assert doc.description == "Primary call to action.\n\nRenders a native button."
    assert doc.tags == {}


def test_parse_jsdoc_single_line() -> None:
    assert parse_jsdoc("/** The label */").description == "The label"


def test_parse_jsdoc_collects_block_tags_with_continuations() -> None:
    doc = parse_jsdoc(
        """/**
         * Size of the control.
         * @default "md"
         * @deprecated use `scale`
         *   instead
         */"""
    )
    assert doc.description == "Size of the control."
    assert doc.tags["default"] == '"md"'
    assert doc.tags["deprecated"] == "use `scale`\ninstead"
    assert doc.default == '"md"'


def test_default_value_tag_is_recognised() -> None:
    doc = parse_jsdoc("/** @defaultValue 3 */")
    assert doc.description == ""
    assert doc.default == "3"


def test_bind_returns_empty_string_without_comment() -> None:
    assert bind(None) == ""
    assert bind(DeclarationSite(file="a.tsx", line=1)) == ""
    assert bind_doc(None) == JsDoc()


def test_bind_uses_site_comment() -> None:
    site = DeclarationSite(file="a.tsx", line=3, comment="/** Shown on hover. */")
    assert bind(site) == "Shown on hover."
