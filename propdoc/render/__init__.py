"""Output renderers."""

from __future__ import annotations

from typing import Sequence

from ..models import ComponentDoc
from .json_format import render_json
from .markdown import MarkdownRenderer, render_markdown

FORMATS = ("json", "markdown")


def render(
    components: Sequence[ComponentDoc],
    output_format: str = "json",
    *,
    include_tags: bool = False,
    include_parent: bool = False,
) -> str:
    if output_format == "json":
        return render_json(components, include_tags=include_tags, include_parent=include_parent)
    if output_format == "markdown":
        return render_markdown(components)
    raise ValueError(f"Unsupported output format '{output_format}'")


__all__ = ["FORMATS", "MarkdownRenderer", "render", "render_json", "render_markdown"]
