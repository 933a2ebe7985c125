"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from propdoc.cli import _build_parser, collect_sources, main
from tests._fixtures.source_builder import SourceBuilder

CHIP = """
interface ChipProps {
  /** Chip text. */
  label: string;
  tone?: "info" | "warn";
}

/** Compact tag. */
export function Chip({ label, tone = "info" }: ChipProps) {
  return <span data-tone={tone}>{label}</span>;
}
"""


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "parse", "src"])
    assert args.verbose is True
    assert args.command == "parse"
    assert args.paths == ["src"]


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["parse", "src", "--verbose"])
    assert args.verbose is True
    assert args.command == "parse"


def test_cli_parse_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["parse", "a.tsx", "b.tsx", "--format", "markdown", "-o", "out.md", "--workers", "3", "--expand-enums"]
    )
    assert args.paths == ["a.tsx", "b.tsx"]
    assert args.format == "markdown"
    assert args.output == "out.md"
    assert args.workers == 3
    assert args.expand_enums is True
    assert args.include_tags is False


def test_cli_rejects_non_positive_workers() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["parse", "src", "--workers", "0"])


def test_cli_serve_defaults() -> None:
    parser = _build_parser()
    args = parser.parse_args(["serve"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8000


def test_parse_command_writes_json_to_stdout(
    source_builder: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    source_builder.write({"Chip.tsx": CHIP})
    monkeypatch.chdir(source_builder.root)

    main(["parse", str(source_builder.root)])

    payload = json.loads(capsys.readouterr().out)
    assert [component["displayName"] for component in payload] == ["Chip"]
    assert payload[0]["props"]["tone"]["defaultValue"] == {"value": "info"}


def test_parse_command_writes_markdown_file(
    source_builder: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    source_builder.write({"Chip.tsx": CHIP})
    monkeypatch.chdir(source_builder.root)
    output = source_builder.root / "docs" / "props.md"

    main(["parse", "Chip.tsx", "--format", "markdown", "--output", str(output)])

    assert "Documented 1 components" in capsys.readouterr().out
    text = output.read_text(encoding="utf-8")
    assert "## Chip" in text
    assert "| `label` | `string` | yes | - | Chip text. |" in text


def test_parse_command_exits_non_zero_on_failures(
    source_builder: SourceBuilder, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    source_builder.write({"Chip.tsx": CHIP, "Broken.tsx": "export const Broken = (;\n"})
    monkeypatch.chdir(source_builder.root)

    with pytest.raises(SystemExit) as excinfo:
        main(["parse", "Chip.tsx", "Broken.tsx"])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert json.loads(captured.out)[0]["displayName"] == "Chip"
    assert "could not be parsed" in captured.err


def test_parse_command_reports_missing_sources(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        main(["parse", str(tmp_path)])

    assert excinfo.value.code == 1


def test_parse_command_reports_config_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".propdoc.yml").write_text("output:\n  format: html\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        main(["parse", str(tmp_path)])

    assert excinfo.value.code == 2


def test_collect_sources_filters_and_sorts(source_builder: SourceBuilder) -> None:
    source_builder.write(
        {
            "b/Button.tsx": "export const a = 1;\n",
            "a/util.ts": "export const b = 1;\n",
            "a/types.d.ts": "export type T = string;\n",
            "a/readme.md": "# docs\n",
            "a/Button.stories.tsx": "export const c = 1;\n",
            "node_modules/pkg/index.tsx": "export const d = 1;\n",
        }
    )
    root = source_builder.root

    found = collect_sources([root, root / "b" / "Button.tsx"], exclude=["*.stories.tsx"])

    assert [path.relative_to(root).as_posix() for path in found] == ["a/util.ts", "b/Button.tsx"]
