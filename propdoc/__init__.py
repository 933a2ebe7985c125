"""propdoc: static prop documentation for TSX/TS UI components."""

from .config import ParserOptions, build_prop_filter, load_config
from .diagnostics import Diagnostic, DiagnosticKind, MalformedSourceError, PropDocError, UnitFailure
from .models import ComponentDoc, PropDescriptor
from .parser import DocParser, ParseResult, parse, parse_sources

__version__ = "0.1.0"

__all__ = [
    "ComponentDoc",
    "Diagnostic",
    "DiagnosticKind",
    "DocParser",
    "MalformedSourceError",
    "ParseResult",
    "ParserOptions",
    "PropDescriptor",
    "PropDocError",
    "UnitFailure",
    "__version__",
    "build_prop_filter",
    "load_config",
    "parse",
    "parse_sources",
]
