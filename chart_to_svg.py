#!/usr/bin/env python3
"""
chart_to_svg.py

Small chart -> SVG renderer built on the parser pipeline:

- chart_parser.parse_chart() for the document model
- config_loader.load_config() for page layout and per-level fonts

Every line advances a running baseline by its level's line height; each
non-empty column becomes one <text> element (left-, center- or
right-anchored) holding one <tspan> per styled span.
"""
from __future__ import annotations

import html
from pathlib import Path

from chart_model import Chart, LineLevel, TextSpan, TextStyle
from chart_parser import parse_chart
from config_loader import DEFAULT_CONFIG, ChartConfig

SVG_NS = "http://www.w3.org/2000/svg"


def escape_xml(text: str) -> str:
    """Escape text for SVG text nodes and attribute values."""
    return html.escape(text, quote=True)


def _format_number(x: float) -> str:
    if abs(x - round(x)) < 1e-12:
        return str(int(round(x)))
    return str(x)


def span_attributes(style: TextStyle) -> str:
    """Extra <tspan> attributes for a span style."""
    if style is TextStyle.BOLD:
        return ' font-weight="bold"'
    if style is TextStyle.ITALIC:
        return ' font-style="italic"'
    if style is TextStyle.BOLD_ITALIC:
        return ' font-weight="bold" font-style="italic"'
    return ""


def render_spans(
    spans: tuple[TextSpan, ...],
    x: float,
    y: float,
    level: LineLevel,
    cfg: ChartConfig,
    *,
    anchor: str | None = None,
) -> str:
    """Render one column's spans as a single <text> element."""
    font = cfg.font_for_level(level)

    attrs = [
        f'x="{_format_number(x)}"',
        f'y="{_format_number(y)}"',
        f'font-family="{escape_xml(cfg.font_family)}"',
        f'font-size="{_format_number(font.size)}"',
        f'font-weight="{escape_xml(font.weight)}"',
    ]
    if anchor:
        attrs.append(f'text-anchor="{anchor}"')

    # tspans are joined with a space; span text itself is trimmed
    tspans = " ".join(
        f"<tspan{span_attributes(span.style)}>{escape_xml(span.text)}</tspan>"
        for span in spans
    )
    return f"<text {' '.join(attrs)}>{tspans}</text>"


def render_chart_to_svg(chart: Chart, cfg: ChartConfig = DEFAULT_CONFIG) -> str:
    """Render a parsed chart into a standalone SVG document."""
    layout = cfg.layout
    width = _format_number(layout.width)
    height = _format_number(layout.height)

    out: list[str] = [
        f'<svg xmlns="{SVG_NS}" viewBox="0 0 {int(layout.width)} {int(layout.height)}" '
        f'width="{width}pt" height="{height}pt">'
    ]

    y = layout.margin_vertical
    for line in chart.lines:
        y += cfg.font_for_level(line.level).line_height

        if line.left:
            out.append(render_spans(line.left, layout.margin_horizontal, y, line.level, cfg))
        if line.center:
            out.append(
                render_spans(line.center, layout.width / 2.0, y, line.level, cfg, anchor="middle")
            )
        if line.right:
            out.append(
                render_spans(
                    line.right,
                    layout.width - layout.margin_horizontal,
                    y,
                    line.level,
                    cfg,
                    anchor="end",
                )
            )

    out.append("</svg>")
    return "\n".join(out) + "\n"


def chart_text_to_svg(text: str, cfg: ChartConfig = DEFAULT_CONFIG) -> str:
    """Parse chart markup and render it. Raises ChartParseError on bad input."""
    return render_chart_to_svg(parse_chart(text), cfg)


def chart_file_to_svg(
    input_path: Path,
    output_path: Path,
    cfg: ChartConfig = DEFAULT_CONFIG,
) -> None:
    """Convert a chart file to an SVG file on disk."""
    svg = chart_text_to_svg(input_path.read_text(encoding="utf-8"), cfg)
    output_path.write_text(svg, encoding="utf-8")
