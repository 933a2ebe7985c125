"""Markdown rendering of component documentation through Jinja2 templates."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from ..models import ComponentDoc, DefaultValue, EnumType, TypeDescriptor, type_name

DEFAULT_TEMPLATE = "components.md.j2"


class MarkdownRenderer:
    """Renders a props table per component."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).resolve().parent.parent / "templates"
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["type_label"] = type_label
        self._env.filters["default_label"] = default_label
        self._env.filters["cell"] = table_cell

    def render(
        self,
        components: Sequence[ComponentDoc],
        *,
        title: Optional[str] = None,
        template_name: str = DEFAULT_TEMPLATE,
    ) -> str:
        template = self._env.get_template(template_name)
        text = template.render(components=list(components), title=title)
        return text.rstrip() + "\n"


def render_markdown(components: Sequence[ComponentDoc], *, title: Optional[str] = None) -> str:
    return MarkdownRenderer().render(components, title=title)


def type_label(descriptor: TypeDescriptor) -> str:
    if isinstance(descriptor, EnumType):
        text = " | ".join(descriptor.members)
    else:
        text = type_name(descriptor)
    return f"`{table_cell(text)}`"


def default_label(default: Optional[DefaultValue]) -> str:
    if default is None:
        return "-"
    return f"`{table_cell(default.value)}`"


def table_cell(text: str) -> str:
    # pipes end a cell even inside code spans
    return text.replace("|", "\\|").replace("\r\n", "\n").replace("\n", "<br>")


__all__ = ["DEFAULT_TEMPLATE", "MarkdownRenderer", "default_label", "render_markdown", "table_cell", "type_label"]
