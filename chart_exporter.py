# chart_exporter.py
from __future__ import annotations

from pathlib import Path
import subprocess
import tempfile

DEFAULT_CONVERTER = "rsvg-convert"


class ExportError(RuntimeError):
    """Raised when SVG cannot be converted to PNG or PDF."""


def _convert_svg(
    svg_content: str,
    out_path: Path,
    *,
    fmt: str,
    converter: str,
) -> None:
    """
    Convert SVG markup to `fmt` ("png" or "pdf") using rsvg-convert.

    Requires `rsvg-convert` (librsvg) in PATH, or another converter that
    accepts the same `-f FORMAT -o OUT IN` arguments.
    """
    out_path = out_path.resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)

    # 1) Write the SVG to a *temporary* file
    with tempfile.NamedTemporaryFile("w", suffix=".svg", delete=False, encoding="utf-8") as f:
        svg_path = Path(f.name)
        f.write(svg_content)

    # 2) svg -> fmt, written *directly* to out_path
    try:
        subprocess.run(
            [converter, "-f", fmt, "-o", str(out_path), str(svg_path)],
            check=True,
            capture_output=True,
        )
    except FileNotFoundError as e:
        raise ExportError(f"Converter not found: {converter}") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
        raise ExportError(f"{converter} failed ({e.returncode}): {stderr}") from e
    finally:
        svg_path.unlink(missing_ok=True)


def export_png(svg_content: str, out_path: Path, *, converter: str = DEFAULT_CONVERTER) -> None:
    """Export SVG content to a PNG file."""
    _convert_svg(svg_content, out_path, fmt="png", converter=converter)


def export_pdf(svg_content: str, out_path: Path, *, converter: str = DEFAULT_CONVERTER) -> None:
    """Export SVG content to a PDF file."""
    _convert_svg(svg_content, out_path, fmt="pdf", converter=converter)
