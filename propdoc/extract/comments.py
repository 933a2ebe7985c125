"""Documentation comment binding and JSDoc parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models import DeclarationSite

_TAG_LINE = re.compile(r"^@([A-Za-z][\w-]*)\s*(.*)$")
_DEFAULT_TAGS = ("default", "defaultValue")


@dataclass(frozen=True)
class JsDoc:
    description: str = ""
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def default(self) -> Optional[str]:
        """The value of a ``@default``/``@defaultValue`` tag, if present."""
        for tag in _DEFAULT_TAGS:
            if tag in self.tags:
                return self.tags[tag]
        return None


def parse_jsdoc(comment: Optional[str]) -> JsDoc:
    """Strip comment syntax and split the free text from the block tags."""
    if not comment:
        return JsDoc()
    body = comment.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]

    description: List[str] = []
    tags: Dict[str, List[str]] = {}
    current: Optional[str] = None
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        line = line.rstrip()
        match = _TAG_LINE.match(line)
        if match:
            current = match.group(1)
            tags.setdefault(current, []).append(match.group(2).strip())
            continue
        if current is None:
            description.append(line)
        else:
            values = tags[current]
            values[-1] = f"{values[-1]}\n{line.strip()}".strip()

    return JsDoc(
        description="\n".join(description).strip(),
        tags={name: "\n".join(values) for name, values in tags.items()},
    )


def bind(site: Optional[DeclarationSite]) -> str:
    """Return the description of the doc comment attached to ``site`` ("" if none)."""
    return bind_doc(site).description


def bind_doc(site: Optional[DeclarationSite]) -> JsDoc:
    if site is None:
        return JsDoc()
    return parse_jsdoc(site.comment)


__all__ = ["JsDoc", "bind", "bind_doc", "parse_jsdoc"]
