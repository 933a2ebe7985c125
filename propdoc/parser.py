"""Public entry points: parse source files into component documentation.

Loading (parsing plus type environment construction) runs first and
sequentially; the environment is frozen before any extraction starts. Units are
then extracted on a thread pool and collected back in submission order, so the
output never depends on which worker finishes first.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .config import ParserOptions
from .diagnostics import Diagnostic, DiagnosticKind, DiagnosticSink, UnitFailure
from .extract.assembler import ComponentDocAssembler, ExtractedComponent, flatten
from .extract.comments import bind_doc
from .extract.defaults import DefaultValueExtractor
from .extract.locator import ComponentLocator
from .extract.resolver import PropTypeResolver
from .logging import get_logger
from .models import ComponentDoc
from .source import Program, SourceLoader, SourceUnit
from .typesys.environment import TypeEnvironment

logger = get_logger("parser")

_UnitOutput = Tuple[List[ExtractedComponent], List[Diagnostic]]


@dataclass
class ParseResult:
    """Components plus everything that was skipped or degraded on the way."""

    components: List[ComponentDoc] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    failures: List[UnitFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self, *, include_tags: bool = False, include_parent: bool = False) -> Dict[str, Any]:
        return {
            "components": [
                component.to_dict(include_tags=include_tags, include_parent=include_parent)
                for component in self.components
            ],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
            "failures": [failure.to_dict() for failure in self.failures],
        }


class DocParser:
    """Extracts :class:`ComponentDoc` records from TSX/TS source units."""

    def __init__(self, options: ParserOptions | None = None, loader: SourceLoader | None = None) -> None:
        self.options = options or ParserOptions()
        self._loader = loader or SourceLoader()
        self._assembler = ComponentDocAssembler(self.options)

    def parse(
        self,
        paths: Sequence[Union[str, Path]],
        *,
        max_workers: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ParseResult:
        program = self._loader.load(paths)
        return self.parse_program(program, max_workers=max_workers, cancel=cancel)

    def parse_sources(
        self,
        sources: Mapping[str, str],
        *,
        max_workers: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ParseResult:
        """Parse in-memory sources keyed by file name; relative imports resolve among them."""
        program = self._loader.load(list(sources), sources=sources)
        return self.parse_program(program, max_workers=max_workers, cancel=cancel)

    def parse_program(
        self,
        program: Program,
        *,
        max_workers: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ParseResult:
        outputs: List[Optional[_UnitOutput]] = [None] * len(program.entries)
        result = ParseResult()
        logger.debug("Extracting %d units (max_workers=%s)", len(program.units), max_workers)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures: List[Tuple[int, SourceUnit, Future[_UnitOutput]]] = []
            for index, entry in enumerate(program.entries):
                if isinstance(entry, UnitFailure):
                    continue
                future = executor.submit(self._extract_unit, entry, program.environment, cancel)
                futures.append((index, entry, future))

            for index, unit, future in futures:
                try:
                    outputs[index] = future.result()
                except Exception as exc:  # pragma: no cover - unexpected extractor failure
                    logger.exception("Extraction failed for %s", unit.path)
                    program.entries[index] = UnitFailure(path=unit.path, message=f"extraction failed: {exc}")

        for entry, output in zip(program.entries, outputs):
            if isinstance(entry, UnitFailure):
                result.failures.append(entry)
                result.diagnostics.append(
                    Diagnostic(kind=DiagnosticKind.MALFORMED_SOURCE, message=entry.message, file=entry.path)
                )
                continue
            if output is None:
                continue
            unit_items, diagnostics = output
            # duplicate display names are merged within a unit, never across units
            result.components.extend(self._assembler.assemble(unit_items))
            result.diagnostics.extend(diagnostics)

        logger.debug(
            "Extracted %d components (%d diagnostics, %d failures)",
            len(result.components),
            len(result.diagnostics),
            len(result.failures),
        )
        return result

    def _extract_unit(
        self,
        unit: SourceUnit,
        environment: TypeEnvironment,
        cancel: Optional[threading.Event],
    ) -> _UnitOutput:
        sink = DiagnosticSink(unit.path)
        if cancel is not None and cancel.is_set():
            sink.add(DiagnosticKind.CANCELLED, "extraction cancelled before this unit started")
            return [], sink.items

        locator = ComponentLocator(self.options, sink)
        resolver = PropTypeResolver(environment, self.options, sink)
        defaults = DefaultValueExtractor(unit)
        items: List[ExtractedComponent] = []
        for candidate in flatten(locator.locate(unit)):
            shape = resolver.resolve(
                candidate.prop_type,
                candidate.module,
                type_params=candidate.type_params,
                component=candidate.display_name,
            )
            items.append(
                ExtractedComponent(
                    candidate=candidate,
                    shape=shape,
                    defaults=defaults.extract(candidate),
                    doc=bind_doc(candidate.site),
                )
            )
        logger.debug("Found %d components in %s", len(items), unit.path)
        return items, sink.items


def parse(
    paths: Sequence[Union[str, Path]],
    options: ParserOptions | None = None,
    *,
    max_workers: Optional[int] = None,
) -> List[ComponentDoc]:
    """Parse ``paths`` and return only the component docs."""
    return DocParser(options).parse(paths, max_workers=max_workers).components


def parse_sources(sources: Mapping[str, str], options: ParserOptions | None = None) -> List[ComponentDoc]:
    return DocParser(options).parse_sources(sources).components


__all__ = ["DocParser", "ParseResult", "parse", "parse_sources"]
