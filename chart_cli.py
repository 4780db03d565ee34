from __future__ import annotations

import argparse
import sys
from pathlib import Path

from chart_exporter import ExportError, export_pdf, export_png
from chart_parser import ChartParseError, parse_chart
from chart_to_svg import render_chart_to_svg
from config_loader import DEFAULT_CONFIG, ChartConfig, load_config
from helper import print_error_red, print_event_gray

OUTPUT_FORMATS = ("svg", "png", "pdf")


def safe_input_path(raw: str, *, root: Path | None = None) -> Path:
    """
    Parse and validate a user-supplied path.

    - reject malformed inputs (NUL, empty)
    - reject '..' segments; with a root, require the file to be inside it
    - return an absolute path to an existing regular file
    """
    if not raw or raw.strip() == "":
        raise ValueError("Empty input path.")

    if "\x00" in raw:
        raise ValueError("NUL byte in path is not allowed.")

    p = Path(raw).expanduser()

    if any(part == ".." for part in p.parts):
        raise ValueError("Path traversal ('..') is not allowed.")

    # strict=False so it resolves even if missing (checked below)
    resolved = p.resolve(strict=False)

    if root is not None:
        root_resolved = root.resolve(strict=True)
        try:
            resolved.relative_to(root_resolved)
        except ValueError as e:
            raise ValueError(f"Input path must be within root: {root_resolved}") from e

    if not resolved.exists():
        raise FileNotFoundError(f"File not found: {resolved}")
    if not resolved.is_file():
        raise IsADirectoryError(f"Not a file: {resolved}")

    return resolved


def default_output_path(input_path: Path, fmt: str) -> Path:
    """Input path with the output format's extension."""
    return input_path.with_suffix(f".{fmt}")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clean-chart",
        description="Generate chord charts in SVG, PNG, and PDF formats.",
    )
    parser.add_argument(
        "input",
        help="Input chart file (.cchart)",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=OUTPUT_FORMATS,
        default="svg",
        help="Output format (default: svg)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file (default: input name with the format's extension)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Optional config YAML file (default: built-in settings)",
    )
    parser.add_argument(
        "--root",
        default=None,
        help="Optional root directory: input file must be within this directory.",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only parse the chart and report errors; write nothing.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print progress information.",
    )
    return parser


def write_output(svg_content: str, output: Path, fmt: str) -> None:
    if fmt == "png":
        export_png(svg_content, output)
    elif fmt == "pdf":
        export_pdf(svg_content, output)
    else:
        output.write_text(svg_content, encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    cfg: ChartConfig = DEFAULT_CONFIG
    if args.config:
        try:
            cfg = load_config(Path(args.config))
        except Exception as e:
            print(f"[chart_cli] Failed to load config: {e}", file=sys.stderr)
            return 2

    root_dir: Path | None = None
    if args.root:
        try:
            root_dir = Path(args.root).expanduser().resolve(strict=True)
        except Exception as e:
            print(f"[chart_cli] Invalid --root: {e}", file=sys.stderr)
            return 2

    try:
        input_path = safe_input_path(args.input, root=root_dir)
    except Exception as e:
        print(f"[chart_cli] Invalid input path: {e}", file=sys.stderr)
        return 2

    if input_path.suffix.lower() != cfg.input_suffix.lower():
        print(
            f"[chart_cli] Input file must have {cfg.input_suffix} extension",
            file=sys.stderr,
        )
        return 2

    try:
        content = input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"[chart_cli] Failed to read input file: {e}", file=sys.stderr)
        return 1

    try:
        chart = parse_chart(content)
    except ChartParseError as e:
        print(
            f"[chart_cli] {input_path.name}: {len(e.diagnostics)} parse error(s)",
            file=sys.stderr,
        )
        for message in e.messages:
            print_error_red(message)
        return 1

    if args.verbose:
        print_event_gray(f"parsed {len(chart)} line(s) from {input_path}")

    if args.check:
        print(f"OK: {input_path.name} ({len(chart)} lines)")
        return 0

    svg_content = render_chart_to_svg(chart, cfg)
    output = Path(args.output) if args.output else default_output_path(input_path, args.format)

    try:
        write_output(svg_content, output, args.format)
    except (ExportError, OSError) as e:
        print(f"[chart_cli] Failed to export {args.format.upper()}: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        print_event_gray(f"wrote {args.format} output ({len(svg_content)} bytes of SVG)")

    print(f"Chart generated: {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
