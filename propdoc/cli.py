"""CLI entrypoints for propdoc commands."""

from __future__ import annotations

import argparse
import fnmatch
import sys
from pathlib import Path
from typing import Iterable, List, Sequence

from .config import ConfigError, load_config
from .diagnostics import DiagnosticKind
from .logging import configure_logging, get_logger
from .parser import DocParser
from .render import FORMATS, render

SOURCE_SUFFIXES = (".tsx", ".ts")
SKIPPED_DIRS = {"node_modules", ".git", "dist", "build"}

logger = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="propdoc",
        description="Extract component prop documentation from TSX/TS sources.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_parser = subparsers.add_parser(
        "parse",
        help="Document the components exported by the given files or directories.",
    )
    _add_verbose_option(parse_parser, suppress_default=True)
    parse_parser.add_argument(
        "paths",
        nargs="+",
        help="Source files or directories to scan for .tsx/.ts modules.",
    )
    parse_parser.add_argument(
        "--format",
        choices=FORMATS,
        default=None,
        help="Output format (defaults to output.format from the config, else json).",
    )
    parse_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the rendered output to this file instead of stdout.",
    )
    parse_parser.add_argument(
        "--config",
        default=None,
        help="Path to a .propdoc.yml file or the directory holding it (defaults to cwd).",
    )
    parse_parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Maximum number of extraction threads.",
    )
    parse_parser.add_argument(
        "--expand-enums",
        action="store_true",
        help="Render enums and literal unions as their member values.",
    )
    parse_parser.add_argument(
        "--include-tags",
        action="store_true",
        help="Emit JSDoc block tags on components and props.",
    )
    parse_parser.add_argument(
        "--include-parent",
        action="store_true",
        help="Emit the declaring file of components and inherited props.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=_positive_int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for propdoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "parse":
        _run_parse(parser, args)
    elif args.command == "serve":  # pragma: no cover - starts a server
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_parse(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        config = load_config(Path(args.config) if args.config else Path.cwd())
    except ConfigError as exc:
        parser.exit(2, f"propdoc: {exc}\n")

    options = config.parser
    if args.expand_enums:
        options.expand_enum_literals = True
    if args.include_tags:
        options.include_tags = True
    if args.include_parent:
        options.include_parent = True

    files = collect_sources(args.paths, config.exclude_paths)
    if not files:
        parser.exit(1, "propdoc: no .tsx/.ts sources found\n")
    logger.debug("Parsing %d source files", len(files))

    result = DocParser(options).parse(files, max_workers=args.workers or config.batch.max_workers)
    for diagnostic in result.diagnostics:
        log = logger.error if diagnostic.kind is DiagnosticKind.MALFORMED_SOURCE else logger.warning
        location = f"{_relativize(Path(diagnostic.file))}"
        if diagnostic.line is not None:
            location += f":{diagnostic.line}"
        log("%s: %s [%s]", location, diagnostic.message, diagnostic.kind.value)

    output_format = args.format or config.output_format or "json"
    text = render(
        result.components,
        output_format,
        include_tags=options.include_tags,
        include_parent=options.include_parent,
    )
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        print(f"Documented {len(result.components)} components in {_relativize(output_path)}")
    else:
        sys.stdout.write(text)

    if result.failures:
        parser.exit(1, f"propdoc: {len(result.failures)} source file(s) could not be parsed\n")


def collect_sources(paths: Sequence[str | Path], exclude: Iterable[str] = ()) -> List[Path]:
    """Expand files and directories into a sorted, de-duplicated list of sources."""
    patterns = list(exclude)
    found: dict[str, Path] = {}
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            candidates = (
                candidate
                for candidate in path.rglob("*")
                if candidate.is_file() and not SKIPPED_DIRS.intersection(candidate.relative_to(path).parts)
            )
            for candidate in candidates:
                if _is_source(candidate) and not _excluded(candidate, path, patterns):
                    found.setdefault(candidate.resolve().as_posix(), candidate)
        else:
            # explicit files are kept even when missing so the failure is reported
            found.setdefault(path.resolve().as_posix(), path)
    return [found[key] for key in sorted(found)]


def _is_source(path: Path) -> bool:
    return path.suffix in SOURCE_SUFFIXES and not path.name.endswith(".d.ts")


def _excluded(path: Path, root: Path, patterns: Sequence[str]) -> bool:
    relative = path.relative_to(root).as_posix()
    return any(fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(path.name, pattern) for pattern in patterns)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
