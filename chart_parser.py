#!/usr/bin/env python3
"""
chart_parser.py

Parser for the chart markup. Every non-blank line looks like

    <level> [<] left spans [<> center spans] [> right spans]

  level markers   ===  ==  =  -
  column markers  <  (left)   <>  (center)   >  (right)
  style markers   ***bold-italic***  **bold**  *italic*

Pipeline (leaf first):

- tokenize_spans()     column text  -> styled spans
- assemble_columns()   line remainder -> (left, center, right)
- parse_line()         one line -> Line
- parse() / parse_chart()  whole text -> Chart, or every line error at once

A malformed line is rejected as a whole, but the walk keeps going so a
single call reports all problems in the file.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from chart_model import (
    LEVEL_MARKERS,
    STYLE_MARKERS,
    Chart,
    Line,
    TextSpan,
    TextStyle,
)

LEFT_MARKER = "<"
CENTER_MARKER = "<>"
RIGHT_MARKER = ">"

# '<>' must be tried before '<': it shares the introductory character.
COLUMN_MARKERS: tuple[str, ...] = (CENTER_MARKER, LEFT_MARKER, RIGHT_MARKER)

STYLE_CHAR = "*"
COLUMN_CHARS = "<>"
NORMAL_STOP_CHARS = COLUMN_CHARS + STYLE_CHAR + "\r\n"

STYLE_NAMES: dict[TextStyle, str] = {
    TextStyle.BOLD_ITALIC: "bold-italic",
    TextStyle.BOLD: "bold",
    TextStyle.ITALIC: "italic",
}

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class ErrorKind(Enum):
    MISSING_LEVEL_MARKER = "missing-level-marker"
    CENTER_WITHOUT_LEFT = "center-without-left"
    MISPLACED_COLUMN_MARKER = "misplaced-column-marker"
    UNCLOSED_STYLE_MARKER = "unclosed-style-marker"
    EMPTY_STYLED_SPAN = "empty-styled-span"

    @property
    def category(self) -> str:
        """Taxonomy group: structural, layout, lexical or content."""
        return _ERROR_CATEGORIES[self]


_ERROR_CATEGORIES: dict[ErrorKind, str] = {
    ErrorKind.MISSING_LEVEL_MARKER: "structural",
    ErrorKind.CENTER_WITHOUT_LEFT: "layout",
    ErrorKind.MISPLACED_COLUMN_MARKER: "layout",
    ErrorKind.UNCLOSED_STYLE_MARKER: "lexical",
    ErrorKind.EMPTY_STYLED_SPAN: "content",
}


class LineSyntaxError(Exception):
    """
    Raised inside a single line. `column` is the 0-based index into the
    raw line where the offending construct starts.
    """

    def __init__(self, kind: ErrorKind, column: int, message: str):
        super().__init__(message)
        self.kind = kind
        self.column = column
        self.message = message


@dataclass(frozen=True)
class ParseDiagnostic:
    """
    A positioned parse error.

    line / column are 1-based; offset is the 0-based character offset of
    the problem within the whole input text.
    """
    kind: ErrorKind
    message: str
    line: int
    column: int
    offset: int
    source_line: str

    def render(self) -> str:
        """
        Render a compiler-style report:

            error[unclosed-style-marker]: unclosed italic marker '*'
             --> line 1, column 5
              |
            1 | === *Unclosed
              |     ^
        """
        gutter = str(self.line)
        pad = " " * len(gutter)
        # keep tabs so the caret lines up under the source text
        indent = "".join(
            "\t" if ch == "\t" else " " for ch in self.source_line[: self.column - 1]
        )
        return "\n".join(
            [
                f"error[{self.kind.value}]: {self.message}",
                f"{pad}--> line {self.line}, column {self.column}",
                f"{pad} |",
                f"{gutter} | {self.source_line}",
                f"{pad} | {indent}^",
            ]
        )

    def __str__(self) -> str:
        return self.render()


class ChartParseError(Exception):
    """All diagnostics of a failed parse, in line order."""

    def __init__(self, diagnostics: list[ParseDiagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__("\n\n".join(self.messages))

    @property
    def messages(self) -> list[str]:
        return [d.render() for d in self.diagnostics]


# ---------------- Style spans ------------------------------------------------


def _read_styled_span(line: str, pos: int, end: int) -> tuple[TextSpan, int]:
    """
    Read one '*'-delimited span starting at `pos`.

    The opening marker is the longest of '***', '**', '*' found at `pos`;
    the closing marker must have the same length. Bodies never contain '*',
    and italic bodies additionally never contain '<' or '>'.
    """
    marker, style = next(
        (m, s) for m, s in STYLE_MARKERS if line.startswith(m, pos, end)
    )
    name = STYLE_NAMES[style]
    excluded = STYLE_CHAR + COLUMN_CHARS if style is TextStyle.ITALIC else STYLE_CHAR

    body_start = pos + len(marker)
    body_end = body_start
    while body_end < end and line[body_end] not in excluded:
        body_end += 1

    if not line.startswith(marker, body_end, end):
        raise LineSyntaxError(
            ErrorKind.UNCLOSED_STYLE_MARKER,
            pos,
            f"unclosed {name} marker '{marker}'",
        )

    text = line[body_start:body_end].strip()
    if not text:
        raise LineSyntaxError(
            ErrorKind.EMPTY_STYLED_SPAN,
            pos,
            f"empty {name} span: '{marker}...{marker}' encloses no text",
        )

    return TextSpan(text=text, style=style), body_end + len(marker)


def tokenize_spans(line: str, pos: int = 0, end: Optional[int] = None) -> tuple[list[TextSpan], int]:
    """
    Consume spans from `line[pos:end]` until the end or a column marker.

    Returns the spans and the position where scanning stopped. Whitespace
    between spans is padding and yields no span.

    Example:
        tokenize_spans("Normal **bold** >x")
    ->  ([TextSpan("Normal"), TextSpan("bold", TextStyle.BOLD)], 16)
    """
    if end is None:
        end = len(line)

    spans: list[TextSpan] = []
    while pos < end:
        ch = line[pos]
        if ch in COLUMN_CHARS:
            break

        if ch == STYLE_CHAR:
            span, pos = _read_styled_span(line, pos, end)
            spans.append(span)
            continue

        run_end = pos
        while run_end < end and line[run_end] not in NORMAL_STOP_CHARS:
            run_end += 1
        text = line[pos:run_end].strip()
        if text:
            spans.append(TextSpan(text=text, style=TextStyle.NORMAL))
        pos = run_end

    return spans, pos


# ---------------- Columns ----------------------------------------------------


def _skip_padding(line: str, pos: int, end: int) -> int:
    while pos < end and line[pos].isspace():
        pos += 1
    return pos


def match_column_marker(line: str, pos: int, end: int) -> Optional[str]:
    """Return the column marker at `pos`, trying COLUMN_MARKERS in order."""
    for marker in COLUMN_MARKERS:
        if line.startswith(marker, pos, end):
            return marker
    return None


def assemble_columns(
    line: str,
    pos: int = 0,
    end: Optional[int] = None,
) -> tuple[list[TextSpan], list[TextSpan], list[TextSpan]]:
    """
    Split the text after the level marker into left/center/right spans.

    Accepted forms:
        text                     -> left only
        <left                    -> left only
        [<]left <>center         -> left + center
        [<]left [<>center] >right
        >right                   -> right only

    A leading '<>' (center without any left marker or left text) is
    rejected, as is any column marker that appears out of order.
    """
    if end is None:
        end = len(line)

    pos = _skip_padding(line, pos, end)
    marker = match_column_marker(line, pos, end)

    if marker == CENTER_MARKER:
        raise LineSyntaxError(
            ErrorKind.CENTER_WITHOUT_LEFT,
            pos,
            "center column without left marker: start the line with '<' or left text before '<>'",
        )
    if marker == LEFT_MARKER:
        pos += len(LEFT_MARKER)

    left, pos = tokenize_spans(line, pos, end)
    center: list[TextSpan] = []
    right: list[TextSpan] = []
    current = "left"

    marker = match_column_marker(line, pos, end)
    if marker == CENTER_MARKER:
        center, pos = tokenize_spans(line, pos + len(CENTER_MARKER), end)
        current = "center"
        marker = match_column_marker(line, pos, end)

    if marker == RIGHT_MARKER:
        right, pos = tokenize_spans(line, pos + len(RIGHT_MARKER), end)
        current = "right"
        marker = match_column_marker(line, pos, end)

    if marker is not None:
        raise LineSyntaxError(
            ErrorKind.MISPLACED_COLUMN_MARKER,
            pos,
            f"misplaced column marker '{marker}' after the {current} column",
        )

    return left, center, right


# ---------------- Lines ------------------------------------------------------


def parse_line(line: str) -> Line:
    """
    Parse one non-blank line into a Line.

    Surrounding whitespace is ignored; error columns always refer to the
    raw `line` as given.
    """
    end = len(line.rstrip())
    pos = len(line) - len(line.lstrip())

    for marker, level in LEVEL_MARKERS:
        if line.startswith(marker, pos, end):
            pos += len(marker)
            break
    else:
        raise LineSyntaxError(
            ErrorKind.MISSING_LEVEL_MARKER,
            pos,
            "missing level marker: a line must start with '===', '==', '=' or '-'",
        )

    left, center, right = assemble_columns(line, pos, end)
    return Line(level=level, left=tuple(left), center=tuple(center), right=tuple(right))


# ---------------- Document ---------------------------------------------------


def iter_source_lines(text: str) -> Iterator[tuple[int, int, str]]:
    """
    Yield (line_number, offset, line) for every line of `text`.

    line_number is 1-based, offset is the character offset of the line
    start. Accepts '\\n', '\\r\\n' and '\\r' line breaks.
    """
    start = 0
    number = 1
    for match in _LINE_BREAK_RE.finditer(text):
        yield number, start, text[start : match.start()]
        start = match.end()
        number += 1
    yield number, start, text[start:]


def collect_diagnostics(text: str) -> tuple[list[Line], list[ParseDiagnostic]]:
    """
    Parse every non-blank line of `text`.

    Returns the successfully parsed lines and the diagnostics of the
    failed ones, both in input order. Never stops at the first error.
    """
    lines: list[Line] = []
    diagnostics: list[ParseDiagnostic] = []

    for number, offset, raw_line in iter_source_lines(text):
        if raw_line.strip() == "":
            continue

        try:
            lines.append(parse_line(raw_line))
        except LineSyntaxError as e:
            diagnostics.append(
                ParseDiagnostic(
                    kind=e.kind,
                    message=e.message,
                    line=number,
                    column=e.column + 1,
                    offset=offset + e.column,
                    source_line=raw_line,
                )
            )

    return lines, diagnostics


def parse_chart(text: str) -> Chart:
    """
    Parse a complete chart.

    Raises ChartParseError with every line diagnostic if any line is
    malformed; a partial Chart is never returned.
    """
    lines, diagnostics = collect_diagnostics(text)
    if diagnostics:
        raise ChartParseError(diagnostics)
    return Chart(lines=tuple(lines))


def parse(text: str) -> Chart | list[str]:
    """
    Parse a complete chart, returning either the Chart or the rendered
    error messages (non-empty, in line order).
    """
    try:
        return parse_chart(text)
    except ChartParseError as e:
        return e.messages
