"""Combine located candidates, resolved shapes, defaults and comments into docs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence

from ..config import ParserOptions
from ..models import ComponentCandidate, ComponentDoc, DefaultValue, PropDescriptor
from .comments import JsDoc
from .defaults import StaticDefault
from .resolver import ResolvedShape


@dataclass
class ExtractedComponent:
    """Everything gathered for one candidate before assembly."""

    candidate: ComponentCandidate
    shape: ResolvedShape
    defaults: Mapping[str, StaticDefault] = field(default_factory=dict)
    doc: JsDoc = field(default_factory=JsDoc)


class ComponentDocAssembler:
    """Builds the ordered, de-duplicated list of :class:`ComponentDoc` records."""

    def __init__(self, options: ParserOptions | None = None) -> None:
        self._options = options or ParserOptions()

    def assemble(self, items: Iterable[ExtractedComponent]) -> List[ComponentDoc]:
        docs: Dict[str, ComponentDoc] = {}
        for item in items:
            doc = self.build(item)
            existing = docs.get(doc.display_name)
            if existing is None:
                docs[doc.display_name] = doc
            else:
                _merge(existing, doc)
        return list(docs.values())

    def build(self, item: ExtractedComponent) -> ComponentDoc:
        display_name = item.candidate.display_name
        prop_filter = self._options.prop_filter
        props: Dict[str, PropDescriptor] = {}
        for name, resolved in item.shape.items():
            static = item.defaults.get(name)
            prop = PropDescriptor(
                name=name,
                type=resolved.type,
                required=resolved.required and static is None,
                description=resolved.doc.description,
                default_value=self._default_value(resolved.doc, static),
                parent=resolved.parent,
                tags=dict(resolved.doc.tags),
            )
            if prop_filter is not None and not prop_filter(prop, display_name):
                continue
            props[name] = prop
        return ComponentDoc(
            display_name=display_name,
            description=item.doc.description,
            props=props,
            file_path=item.candidate.module,
            tags=dict(item.doc.tags),
        )

    def _default_value(self, doc: JsDoc, static: StaticDefault | None) -> DefaultValue | None:
        tagged = doc.default
        if tagged is not None:
            return DefaultValue(tagged)
        if static is None:
            return None
        if self._options.serialize_default_as_string:
            return DefaultValue(static.text)
        # canonical JSON text of the evaluated literal
        return DefaultValue(json.dumps(static.value, ensure_ascii=False))


def flatten(candidates: Sequence[ComponentCandidate]) -> Iterator[ComponentCandidate]:
    """Yield candidates depth first, subcomponents right after their parent."""
    for candidate in candidates:
        yield candidate
        yield from flatten(candidate.subcomponents)


def _merge(existing: ComponentDoc, other: ComponentDoc) -> None:
    for name, prop in other.props.items():
        existing.props.setdefault(name, prop)
    if not existing.description:
        existing.description = other.description
    for tag, value in other.tags.items():
        existing.tags.setdefault(tag, value)


__all__ = ["ComponentDocAssembler", "ExtractedComponent", "flatten"]
