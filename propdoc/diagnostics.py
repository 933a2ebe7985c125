"""Error kinds and diagnostics collected while extracting component docs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class PropDocError(RuntimeError):
    """Base class for propdoc failures."""


class MalformedSourceError(PropDocError):
    """Raised when a source unit cannot be read or parsed at all."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class DiagnosticKind(str, Enum):
    UNRESOLVED_TYPE = "unresolved_type"
    AMBIGUOUS_COMPONENT = "ambiguous_component"
    MALFORMED_SOURCE = "malformed_source"
    MISSING_PROP_TYPE = "missing_prop_type"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Diagnostic:
    """A skipped or degraded item, with the reason it was skipped or degraded."""

    kind: DiagnosticKind
    message: str
    file: str
    line: Optional[int] = None
    component: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "kind": self.kind.value,
            "message": self.message,
            "file": self.file,
        }
        if self.line is not None:
            data["line"] = self.line
        if self.component is not None:
            data["component"] = self.component
        return data


@dataclass(frozen=True)
class UnitFailure:
    """A source unit that produced no output at all."""

    path: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}


class DiagnosticSink:
    """Collects diagnostics for one source unit."""

    def __init__(self, file: str) -> None:
        self.file = file
        self._items: List[Diagnostic] = []

    def add(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        line: Optional[int] = None,
        component: Optional[str] = None,
    ) -> None:
        diagnostic = Diagnostic(kind=kind, message=message, file=self.file, line=line, component=component)
        if diagnostic not in self._items:
            self._items.append(diagnostic)

    @property
    def items(self) -> List[Diagnostic]:
        return list(self._items)


__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticSink",
    "MalformedSourceError",
    "PropDocError",
    "UnitFailure",
]
