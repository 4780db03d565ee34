#!/usr/bin/env python3
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class LineLevel(Enum):
    """
    Hierarchy tier of a chart line, selected by the line-initial marker.

      ===  HEADER1   (major section)
      ==   HEADER2   (subsection)
      =    HEADER3   (detail)
      -    TEXT      (stage directions, comments)
    """
    HEADER1 = "==="
    HEADER2 = "=="
    HEADER3 = "="
    TEXT = "-"

    @property
    def marker(self) -> str:
        return self.value


class TextStyle(Enum):
    """Flat text style of a span. Styles never nest."""
    NORMAL = "normal"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bold_italic"


# Longest marker first: '=' is a prefix of '==' which is a prefix of '==='.
LEVEL_MARKERS: tuple[tuple[str, LineLevel], ...] = (
    ("===", LineLevel.HEADER1),
    ("==", LineLevel.HEADER2),
    ("=", LineLevel.HEADER3),
    ("-", LineLevel.TEXT),
)

# Same rule for style markers: '***' before '**' before '*'.
STYLE_MARKERS: tuple[tuple[str, TextStyle], ...] = (
    ("***", TextStyle.BOLD_ITALIC),
    ("**", TextStyle.BOLD),
    ("*", TextStyle.ITALIC),
)


@dataclass(frozen=True)
class TextSpan:
    """A run of text in a single style."""
    text: str
    style: TextStyle = TextStyle.NORMAL

    @classmethod
    def plain(cls, text: str) -> TextSpan:
        return cls(text=text, style=TextStyle.NORMAL)


@dataclass(frozen=True)
class Line:
    """
    One chart line with a three-column layout.

    Each column is an ordered tuple of spans; an empty tuple means the
    column has no content on this line.
    """
    level: LineLevel
    left: tuple[TextSpan, ...] = ()
    center: tuple[TextSpan, ...] = ()
    right: tuple[TextSpan, ...] = ()

    @classmethod
    def plain_text(
        cls,
        level: LineLevel,
        left: str = "",
        center: str = "",
        right: str = "",
    ) -> Line:
        """Build a line with (at most) one Normal span per column."""
        def column(text: str) -> tuple[TextSpan, ...]:
            return (TextSpan.plain(text),) if text else ()

        return cls(level=level, left=column(left), center=column(center), right=column(right))

    def columns(self) -> Iterator[tuple[str, tuple[TextSpan, ...]]]:
        yield "left", self.left
        yield "center", self.center
        yield "right", self.right

    def is_empty(self) -> bool:
        return not (self.left or self.center or self.right)


@dataclass(frozen=True)
class Chart:
    """A parsed chart: its lines in top-to-bottom order."""
    lines: tuple[Line, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)
