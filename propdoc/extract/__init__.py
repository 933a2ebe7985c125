"""Component location, prop type resolution and doc assembly."""

from .assembler import ComponentDocAssembler, ExtractedComponent, flatten
from .comments import JsDoc, bind, bind_doc, parse_jsdoc
from .defaults import DefaultValueExtractor, StaticDefault, extract_defaults
from .locator import ComponentLocator, locate
from .resolver import PropTypeResolver, ResolutionState, ResolvedProp, ResolvedShape

__all__ = [
    "ComponentDocAssembler",
    "ComponentLocator",
    "DefaultValueExtractor",
    "ExtractedComponent",
    "JsDoc",
    "PropTypeResolver",
    "ResolutionState",
    "ResolvedProp",
    "ResolvedShape",
    "StaticDefault",
    "bind",
    "bind_doc",
    "extract_defaults",
    "flatten",
    "locate",
    "parse_jsdoc",
]
