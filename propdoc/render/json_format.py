"""JSON rendering of component documentation."""

from __future__ import annotations

import json
from typing import Sequence

from ..models import ComponentDoc


def render_json(
    components: Sequence[ComponentDoc],
    *,
    include_tags: bool = False,
    include_parent: bool = False,
    indent: int | None = 2,
) -> str:
    payload = [
        component.to_dict(include_tags=include_tags, include_parent=include_parent)
        for component in components
    ]
    return json.dumps(payload, indent=indent, ensure_ascii=False) + "\n"


__all__ = ["render_json"]
