"""Configuration loading for propdoc (.propdoc.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml

from .models import NameSource, PropDescriptor

PropFilter = Callable[[PropDescriptor, str], bool]
ComponentNameResolver = Callable[[NameSource], Optional[str]]

CONFIG_FILENAME = ".propdoc.yml"
DEFAULT_WRAPPERS: Tuple[str, ...] = ("forwardRef", "memo")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ParserOptions:
    """Options recognised by the extraction engine."""

    prop_filter: Optional[PropFilter] = None
    component_name_resolver: Optional[ComponentNameResolver] = None
    expand_enum_literals: bool = False
    serialize_default_as_string: bool = True
    include_tags: bool = False
    include_parent: bool = False
    max_depth: int = 32
    max_members: int = 1000
    custom_component_types: Tuple[str, ...] = ()
    wrapper_functions: Tuple[str, ...] = DEFAULT_WRAPPERS


@dataclass
class PropFilterConfig:
    """Declarative property filter from .propdoc.yml."""

    skip_props_with_name: List[str] = field(default_factory=list)
    skip_props_without_doc: bool = False
    skip_parents: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.skip_props_with_name or self.skip_props_without_doc or self.skip_parents)


@dataclass
class BatchConfig:
    """Worker pool settings for multi-file runs."""

    max_workers: Optional[int] = None


@dataclass
class PropDocConfig:
    """Represents the high-level settings defined in .propdoc.yml."""

    root: Path
    parser: ParserOptions = field(default_factory=ParserOptions)
    prop_filter: PropFilterConfig = field(default_factory=PropFilterConfig)
    component_names: Dict[str, str] = field(default_factory=dict)
    batch: BatchConfig = field(default_factory=BatchConfig)
    exclude_paths: List[str] = field(default_factory=list)
    output_format: Optional[str] = None


def build_prop_filter(
    skip_props_with_name: Sequence[str] = (),
    skip_props_without_doc: bool = False,
    skip_parents: Sequence[str] = (),
) -> PropFilter:
    """Return a predicate keeping props that pass every configured rule."""
    names = set(skip_props_with_name)
    parents = set(skip_parents)

    def _keep(prop: PropDescriptor, component: str) -> bool:
        if prop.name in names:
            return False
        if skip_props_without_doc and not prop.description:
            return False
        if prop.parent is not None and prop.parent.name in parents:
            return False
        return True

    return _keep


def load_config(config_path: Path) -> PropDocConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return PropDocConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    parser_data = _as_dict(data.get("parser"))
    options = ParserOptions()
    if parser_data:
        options.expand_enum_literals = _as_bool(parser_data.get("expand_enum_literals")) or False
        serialize = _as_bool(parser_data.get("serialize_default_as_string"))
        options.serialize_default_as_string = True if serialize is None else serialize
        options.include_tags = _as_bool(parser_data.get("include_tags")) or False
        options.include_parent = _as_bool(parser_data.get("include_parent")) or False
        options.max_depth = _as_positive_int(parser_data.get("max_depth"), "parser.max_depth") or options.max_depth
        options.max_members = (
            _as_positive_int(parser_data.get("max_members"), "parser.max_members") or options.max_members
        )
        options.custom_component_types = tuple(_as_str_list(parser_data.get("custom_component_types")))
        wrappers = _as_str_list(parser_data.get("wrapper_functions"))
        if wrappers:
            options.wrapper_functions = tuple(wrappers)

    filter_data = _as_dict(data.get("prop_filter"))
    prop_filter = PropFilterConfig()
    if filter_data:
        prop_filter.skip_props_with_name = _as_str_list(filter_data.get("skip_props_with_name"))
        prop_filter.skip_props_without_doc = _as_bool(filter_data.get("skip_props_without_doc")) or False
        prop_filter.skip_parents = _as_str_list(filter_data.get("skip_parents"))
    if not prop_filter.is_empty():
        options.prop_filter = build_prop_filter(
            prop_filter.skip_props_with_name,
            prop_filter.skip_props_without_doc,
            prop_filter.skip_parents,
        )

    component_names = {
        str(key): str(value)
        for key, value in _as_dict(data.get("component_names")).items()
        if _as_str(value)
    }
    if component_names:
        options.component_name_resolver = _mapping_resolver(component_names)

    batch_data = _as_dict(data.get("batch"))
    batch = BatchConfig()
    if batch_data:
        batch.max_workers = _as_positive_int(batch_data.get("max_workers"), "batch.max_workers")

    output_data = _as_dict(data.get("output"))
    output_format = _as_str(output_data.get("format")) if output_data else None
    if output_format is not None and output_format not in {"json", "markdown"}:
        raise ConfigError(f"Unsupported output.format '{output_format}' (expected json or markdown)")

    return PropDocConfig(
        root=root,
        parser=options,
        prop_filter=prop_filter,
        component_names=component_names,
        batch=batch,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        output_format=output_format,
    )


def _mapping_resolver(names: Dict[str, str]) -> ComponentNameResolver:
    def _resolve(source: NameSource) -> Optional[str]:
        return names.get(source.export_name) or (names.get(source.local_name) if source.local_name else None)

    return _resolve


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_positive_int(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a positive integer")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as exc:
            raise ConfigError(f"{key} must be a positive integer") from exc
    if not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{key} must be a positive integer")
    return value


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "BatchConfig",
    "CONFIG_FILENAME",
    "ComponentNameResolver",
    "ConfigError",
    "ParserOptions",
    "PropDocConfig",
    "PropFilter",
    "PropFilterConfig",
    "build_prop_filter",
    "load_config",
]
