#!/usr/bin/env python3
from __future__ import annotations
from pathlib import Path

from dataclasses import dataclass, field
from urllib.parse import quote
import html as _html

from flask import Flask, Response, abort, render_template_string

from chart_parser import ChartParseError, parse_chart
from chart_to_svg import render_chart_to_svg
from config_loader import DEFAULT_CONFIG, ChartConfig, load_config

CHARTS_DIRNAME = "charts"
CONFIG_FILENAME = "config.yml"


LAYOUT_TEMPLATE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{ page_title }}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    body { margin: 0; font-family: sans-serif; }
    .layout { display: flex; min-height: 100vh; }
    .sidebar { width: 16rem; padding: 1rem; background: #f4f4f4; }
    .content { flex: 1; padding: 1rem 2rem; }
    .fm-file.active a { font-weight: bold; }
    .chart svg { border: 1px solid #ddd; background: #fff; max-width: 100%; height: auto; }
    pre.diagnostic { background: #fff3f3; border-left: 4px solid #c33; padding: .5rem 1rem; }
  </style>
</head>
<body>
  <div class="layout">
    <aside class="sidebar">
      <div class="sidebar-title"><a href="/">Chart Viewer</a></div>
      <div class="sidebar-section">
        <div class="sidebar-label">charts/</div>
        {{ file_tree|safe }}
      </div>
    </aside>

    <main class="content">
    {{ content|safe }}
    </main>
  </div>
</body>
</html>
"""

@dataclass
class FileTreeNode:
    dirs: dict[str, "FileTreeNode"] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)

def _insert_path(root: FileTreeNode, rel_parts: tuple[str, ...]) -> None:
    node = root
    for part in rel_parts[:-1]:
        node = node.dirs.setdefault(part, FileTreeNode())
    node.files.append(rel_parts[-1])

def build_chart_tree(charts_dir: Path, suffix: str) -> FileTreeNode:
    root = FileTreeNode()
    if not charts_dir.exists():
        return root

    for p in sorted(charts_dir.glob(f"**/*{suffix}")):
        # skip hidden dirs
        if any(seg.startswith(".") for seg in p.relative_to(charts_dir).parts):
            continue
        _insert_path(root, p.relative_to(charts_dir).parts)
    return root

def _open_dir_set_for_current(current_rel: str) -> set[str]:
    """
    current_rel is like '2025/song.cchart' (relative to charts/).
    Returns the ancestor directories that should render expanded.
    """
    parts = [p for p in current_rel.split("/") if p]
    open_dirs: set[str] = set()
    acc: list[str] = []
    for seg in parts[:-1]:
        acc.append(seg)
        open_dirs.add("/".join(acc))
    return open_dirs

def render_tree_html(node: FileTreeNode, *, prefix: str, open_dirs: set[str], current_file: str) -> str:
    """
    prefix: path inside charts/ (e.g. '' or '2025')
    current_file: path inside charts/ of the file being viewed
    """
    out: list[str] = []

    for dirname in sorted(node.dirs.keys()):
        child = node.dirs[dirname]
        child_prefix = f"{prefix}/{dirname}".strip("/")
        open_attr = " open" if child_prefix in open_dirs else ""
        out.append(f'<details class="fm-dir"{open_attr}>')
        out.append(f"<summary>{_html.escape(dirname)}/</summary>")
        out.append('<div class="fm-children">')
        out.append(render_tree_html(child, prefix=child_prefix, open_dirs=open_dirs, current_file=current_file))
        out.append("</div></details>")

    for fname in sorted(node.files):
        rel = f"{prefix}/{fname}".strip("/")
        href = "/view/" + quote(rel)
        active = " active" if rel == current_file else ""
        out.append(f'<div class="fm-file{active}"><a href="{href}">{_html.escape(fname)}</a></div>')

    return "".join(out)


def render_diagnostics_html(error: ChartParseError) -> str:
    """Every diagnostic of a failed parse, as preformatted blocks."""
    blocks = [
        f'<pre class="diagnostic">{_html.escape(message)}</pre>'
        for message in error.messages
    ]
    count = len(error.diagnostics)
    return f"<h2>{count} parse error{'s' if count != 1 else ''}</h2>" + "".join(blocks)


def create_app(base_dir: Path | None = None, cfg: ChartConfig | None = None) -> Flask:
    """
    Build the preview app serving charts below `<base_dir>/charts`.

    Without an explicit cfg, `<base_dir>/config.yml` is used if present.
    """
    base_dir = (base_dir or Path.cwd()).resolve()
    charts_dir = base_dir / CHARTS_DIRNAME

    if cfg is None:
        config_path = base_dir / CONFIG_FILENAME
        cfg = load_config(config_path) if config_path.is_file() else DEFAULT_CONFIG

    app = Flask(__name__)

    def resolve_chart(filename: str) -> Path:
        chart_path = (charts_dir / filename).resolve()
        try:
            chart_path.relative_to(charts_dir.resolve())
        except ValueError:
            abort(404)
        if not chart_path.is_file() or chart_path.suffix.lower() != cfg.input_suffix.lower():
            abort(404)
        return chart_path

    def page(title: str, content: str, current_file: str) -> str:
        tree = build_chart_tree(charts_dir, cfg.input_suffix)
        file_tree_html = render_tree_html(
            tree,
            prefix="",
            open_dirs=_open_dir_set_for_current(current_file),
            current_file=current_file,
        )
        return render_template_string(
            LAYOUT_TEMPLATE,
            page_title=title,
            file_tree=file_tree_html,
            content=content,
        )

    @app.route("/")
    def index():
        content = """
          <h1>Chart Viewer</h1>
          <p>Pick a chart on the left.</p>
        """
        return page("Chart Viewer", content, "")

    @app.route("/view/<path:filename>")
    def view_file(filename: str):
        chart_path = resolve_chart(filename)
        current_rel = chart_path.relative_to(charts_dir.resolve()).as_posix()

        try:
            chart = parse_chart(chart_path.read_text(encoding="utf-8"))
        except ChartParseError as e:
            body = f"<h1>{_html.escape(current_rel)}</h1>" + render_diagnostics_html(e)
            return page(current_rel, body, current_rel)

        body = (
            f"<h1>{_html.escape(current_rel)}</h1>"
            f'<div class="chart">{render_chart_to_svg(chart, cfg)}</div>'
        )
        return page(current_rel, body, current_rel)

    @app.route("/svg/<path:filename>")
    def svg_file(filename: str):
        chart_path = resolve_chart(filename)
        try:
            chart = parse_chart(chart_path.read_text(encoding="utf-8"))
        except ChartParseError as e:
            return Response(str(e), status=422, mimetype="text/plain")
        return Response(render_chart_to_svg(chart, cfg), mimetype="image/svg+xml")

    return app


app = create_app()

if __name__ == "__main__":
    # Run in dev mode
    app.run(debug=False)
