"""Tests for propdoc.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from propdoc.config import ConfigError, ParserOptions, PropDocConfig, build_prop_filter, load_config
from propdoc.models import NameSource, ParentRef, PrimitiveType, PropDescriptor


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, PropDocConfig)
    assert config.root == tmp_path.resolve()
    assert config.parser == ParserOptions()
    assert config.prop_filter.is_empty()
    assert config.component_names == {}
    assert config.batch.max_workers is None
    assert config.exclude_paths == []
    assert config.output_format is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".propdoc.yml"
    config_file.write_text(
        """
parser:
  expand_enum_literals: true
  serialize_default_as_string: "no"
  include_tags: yes
  max_depth: 8
  max_members: "50"
  custom_component_types: [StyledComponent, Widget]
  wrapper_functions:
    - forwardRef
    - observer
prop_filter:
  skip_props_with_name: [className, style]
  skip_props_without_doc: true
  skip_parents: DOMAttributes
component_names:
  Button: PrimaryButton
batch:
  max_workers: 4
output:
  format: markdown
exclude_paths:
  - "**/*.stories.tsx"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    options = config.parser
    assert options.expand_enum_literals is True
    assert options.serialize_default_as_string is False
    assert options.include_tags is True
    assert options.include_parent is False
    assert options.max_depth == 8
    assert options.max_members == 50
    assert options.custom_component_types == ("StyledComponent", "Widget")
    assert options.wrapper_functions == ("forwardRef", "observer")

    assert config.prop_filter.skip_props_with_name == ["className", "style"]
    assert config.prop_filter.skip_props_without_doc is True
    assert config.prop_filter.skip_parents == ["DOMAttributes"]
    assert options.prop_filter is not None

    assert config.component_names == {"Button": "PrimaryButton"}
    assert options.component_name_resolver is not None
    assert options.component_name_resolver(NameSource("Button", "Button", "a.tsx")) == "PrimaryButton"
    assert options.component_name_resolver(NameSource("default", "Button", "a.tsx")) == "PrimaryButton"
    assert options.component_name_resolver(NameSource("Link", None, "a.tsx")) is None

    assert config.batch.max_workers == 4
    assert config.output_format == "markdown"
    assert config.exclude_paths == ["**/*.stories.tsx"]


def test_load_config_accepts_directory_of_non_yaml_path(tmp_path: Path) -> None:
    (tmp_path / ".propdoc.yml").write_text("output:\n  format: json\n", encoding="utf-8")
    source = tmp_path / "Button.tsx"

    assert load_config(source).output_format == "json"


def test_load_config_treats_empty_file_as_defaults(tmp_path: Path) -> None:
    (tmp_path / ".propdoc.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).parser == ParserOptions()


@pytest.mark.parametrize(
    "content",
    [
        "parser: [unclosed\n",
        "- just\n- a list\n",
        "parser:\n  max_depth: 0\n",
        "batch:\n  max_workers: lots\n",
        "output:\n  format: html\n",
    ],
)
def test_load_config_rejects_invalid_content(tmp_path: Path, content: str) -> None:
    (tmp_path / ".propdoc.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def _prop(name: str, description: str = "", parent: str | None = None) -> PropDescriptor:
    return PropDescriptor(
        name=name,
        type=PrimitiveType("string"),
        description=description,
        parent=ParentRef(name=parent, file_name="types.ts") if parent else None,
    )


def test_build_prop_filter_applies_every_rule() -> None:
    keep = build_prop_filter(
        skip_props_with_name=["className"],
        skip_props_without_doc=True,
        skip_parents=["HTMLAttributes"],
    )

    assert keep(_prop("label", "Shown text."), "Button") is True
    assert keep(_prop("className", "Extra classes."), "Button") is False
    assert keep(_prop("size"), "Button") is False
    assert keep(_prop("id", "Element id.", parent="HTMLAttributes"), "Button") is False


def test_build_prop_filter_defaults_keep_everything() -> None:
    keep = build_prop_filter()

    assert keep(_prop("anything", parent="HTMLAttributes"), "Button") is True
