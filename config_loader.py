# config_loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any

from chart_model import LineLevel

try:
    import yaml  # PyYAML
except ImportError as e:
    raise SystemExit(
        "Missing dependency: PyYAML\n"
        "Install with: python -m pip install pyyaml"
    ) from e


class FontStyle:
    """Font size, weight and line height (points) for one line level."""

    def __init__(self, *, size: float, weight: str, line_height: float):
        self.size = size
        self.weight = weight
        self.line_height = line_height

    def __repr__(self) -> str:
        return f"FontStyle(size={self.size!r}, weight={self.weight!r}, line_height={self.line_height!r})"


class LayoutConfig:
    """Page dimensions and margins in points (1pt = 1/72 inch)."""

    def __init__(
        self,
        *,
        width: float,
        height: float,
        margin_horizontal: float,
        margin_vertical: float,
    ):
        self.width = width
        self.height = height
        self.margin_horizontal = margin_horizontal
        self.margin_vertical = margin_vertical


class ChartConfig:
    """
    Immutable-ish container for chart rendering configuration.

    The markup grammar is a file format and is not configurable here.
    """

    def __init__(
        self,
        *,
        layout: LayoutConfig,
        font_family: str,
        header1: FontStyle,
        header2: FontStyle,
        header3: FontStyle,
        text: FontStyle,
        input_suffix: str,
    ):
        self.layout = layout
        self.font_family = font_family
        self.header1 = header1
        self.header2 = header2
        self.header3 = header3
        self.text = text
        self.input_suffix = input_suffix

    def font_for_level(self, level: LineLevel) -> FontStyle:
        return {
            LineLevel.HEADER1: self.header1,
            LineLevel.HEADER2: self.header2,
            LineLevel.HEADER3: self.header3,
            LineLevel.TEXT: self.text,
        }[level]


# ---------------- Defaults ---------------------------------------------------

DEFAULT_CONFIG = ChartConfig(
    # A4 portrait, ~10mm margins
    layout=LayoutConfig(
        width=595.0,
        height=842.0,
        margin_horizontal=28.0,
        margin_vertical=28.0,
    ),
    font_family="sans-serif",
    header1=FontStyle(size=18.0, weight="500", line_height=24.0),
    header2=FontStyle(size=14.0, weight="450", line_height=20.0),
    header3=FontStyle(size=11.0, weight="420", line_height=16.0),
    text=FontStyle(size=10.0, weight="normal", line_height=14.0),
    input_suffix=".cchart",
)

# ---------------- Loader -----------------------------------------------------


def _as_mapping(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be a mapping")
    return value


def _as_number(value: Any, name: str) -> float:
    # bool is an int subclass; "true" is not a size
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number")
    return float(value)


def _load_font_style(raw: Any, name: str, default: FontStyle) -> FontStyle:
    raw = _as_mapping(raw, name)
    return FontStyle(
        size=_as_number(raw.get("size", default.size), f"{name}.size"),
        weight=str(raw.get("weight", default.weight)),
        line_height=_as_number(raw.get("line_height", default.line_height), f"{name}.line_height"),
    )


def _load_layout(raw: Any, default: LayoutConfig) -> LayoutConfig:
    raw = _as_mapping(raw, "layout")
    return LayoutConfig(
        width=_as_number(raw.get("width", default.width), "layout.width"),
        height=_as_number(raw.get("height", default.height), "layout.height"),
        margin_horizontal=_as_number(
            raw.get("margin_horizontal", default.margin_horizontal),
            "layout.margin_horizontal",
        ),
        margin_vertical=_as_number(
            raw.get("margin_vertical", default.margin_vertical),
            "layout.margin_vertical",
        ),
    )


def load_config(path: Path) -> ChartConfig:
    """
    Load YAML config and return a ChartConfig instance.

    Missing keys fall back to DEFAULT_CONFIG.
    """
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise TypeError("Config root must be a mapping")

    fonts = _as_mapping(raw.get("fonts"), "fonts")

    suffix = str(raw.get("input_suffix", DEFAULT_CONFIG.input_suffix))
    if not suffix.startswith("."):
        suffix = "." + suffix

    return ChartConfig(
        layout=_load_layout(raw.get("layout"), DEFAULT_CONFIG.layout),
        font_family=str(raw.get("font_family", DEFAULT_CONFIG.font_family)),
        header1=_load_font_style(fonts.get("header1"), "fonts.header1", DEFAULT_CONFIG.header1),
        header2=_load_font_style(fonts.get("header2"), "fonts.header2", DEFAULT_CONFIG.header2),
        header3=_load_font_style(fonts.get("header3"), "fonts.header3", DEFAULT_CONFIG.header3),
        text=_load_font_style(fonts.get("text"), "fonts.text", DEFAULT_CONFIG.text),
        input_suffix=suffix,
    )
