# test_chart_cli.py
#
# Run:
#   python -m unittest -v
#
# PNG/PDF export shells out to rsvg-convert; those tests patch
# subprocess.run so no converter needs to be installed.

import io
import subprocess
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

import chart_cli as m
import chart_exporter


class TestChartCli(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name).resolve()

    def tearDown(self) -> None:
        self.tmp.cleanup()

    # ---------- helpers ----------
    def write(self, rel: str, content: str) -> Path:
        p = self.root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        return p

    def run_main(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = m.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    # ---------- safe_input_path ----------
    def test_safe_input_path_rejects_empty_and_nul(self):
        with self.assertRaises(ValueError):
            m.safe_input_path("  ")
        with self.assertRaises(ValueError):
            m.safe_input_path("a\x00b")

    def test_safe_input_path_rejects_traversal(self):
        with self.assertRaises(ValueError):
            m.safe_input_path(str(self.root / ".." / "x.cchart"))

    def test_safe_input_path_outside_root(self):
        inside = self.write("inside/a.cchart", "- x")
        outside = self.write("outside/b.cchart", "- x")
        self.assertEqual(m.safe_input_path(str(inside), root=self.root / "inside"), inside)
        with self.assertRaises(ValueError):
            m.safe_input_path(str(outside), root=self.root / "inside")

    def test_safe_input_path_missing_and_directory(self):
        with self.assertRaises(FileNotFoundError):
            m.safe_input_path(str(self.root / "missing.cchart"))
        (self.root / "dir.cchart").mkdir()
        with self.assertRaises(IsADirectoryError):
            m.safe_input_path(str(self.root / "dir.cchart"))

    def test_default_output_path(self):
        self.assertEqual(m.default_output_path(Path("a/song.cchart"), "pdf"), Path("a/song.pdf"))

    # ---------- main ----------
    def test_svg_output_next_to_input(self):
        src = self.write("song.cchart", "=== <Title <>Composer >2024\n- intro\n")
        code, out, err = self.run_main(str(src))
        self.assertEqual(code, 0, msg=err)
        svg = (self.root / "song.svg").read_text(encoding="utf-8")
        self.assertIn("<svg", svg)
        self.assertIn("Composer", svg)
        self.assertIn("Chart generated:", out)

    def test_explicit_output_and_config(self):
        src = self.write("song.cchart", "- x\n")
        cfg = self.write("config.yml", "layout:\n  width: 600\n")
        target = self.root / "out" / "custom.svg"
        target.parent.mkdir()
        code, _, err = self.run_main(str(src), "-o", str(target), "-c", str(cfg))
        self.assertEqual(code, 0, msg=err)
        self.assertIn('width="600pt"', target.read_text(encoding="utf-8"))

    def test_check_reports_ok_and_writes_nothing(self):
        src = self.write("song.cchart", "=== A\n- B\n")
        code, out, _ = self.run_main(str(src), "--check")
        self.assertEqual(code, 0)
        self.assertIn("2 lines", out)
        self.assertFalse((self.root / "song.svg").exists())

    def test_parse_errors_are_all_reported(self):
        src = self.write("bad.cchart", "no marker\n- *open\n= <>center\n")
        code, _, err = self.run_main(str(src))
        self.assertEqual(code, 1)
        self.assertIn("3 parse error(s)", err)
        self.assertIn("missing-level-marker", err)
        self.assertIn("unclosed-style-marker", err)
        self.assertIn("center-without-left", err)
        self.assertFalse((self.root / "bad.svg").exists())

    def test_verbose_progress(self):
        src = self.write("song.cchart", "- x\n")
        code, out, _ = self.run_main(str(src), "-v")
        self.assertEqual(code, 0)
        self.assertIn("parsed 1 line(s)", out)

    def test_wrong_extension(self):
        src = self.write("song.txt", "- x\n")
        code, _, err = self.run_main(str(src))
        self.assertEqual(code, 2)
        self.assertIn(".cchart", err)

    def test_missing_input(self):
        code, _, err = self.run_main(str(self.root / "missing.cchart"))
        self.assertEqual(code, 2)
        self.assertIn("Invalid input path", err)

    def test_bad_config(self):
        src = self.write("song.cchart", "- x\n")
        cfg = self.write("config.yml", "- not a mapping\n")
        code, _, err = self.run_main(str(src), "-c", str(cfg))
        self.assertEqual(code, 2)
        self.assertIn("Failed to load config", err)

    def test_input_outside_root(self):
        src = self.write("a/song.cchart", "- x\n")
        (self.root / "b").mkdir()
        code, _, _ = self.run_main(str(src), "--root", str(self.root / "b"))
        self.assertEqual(code, 2)

    def test_png_export_uses_converter(self):
        src = self.write("song.cchart", "- x\n")
        with patch("chart_exporter.subprocess.run") as run:
            code, _, err = self.run_main(str(src), "-f", "png")
        self.assertEqual(code, 0, msg=err)
        cmd = run.call_args.args[0]
        self.assertEqual(cmd[:5], ["rsvg-convert", "-f", "png", "-o", str(self.root / "song.png")])

    def test_missing_converter_fails_cleanly(self):
        src = self.write("song.cchart", "- x\n")
        with patch("chart_exporter.subprocess.run", side_effect=FileNotFoundError()):
            code, _, err = self.run_main(str(src), "-f", "pdf")
        self.assertEqual(code, 1)
        self.assertIn("Failed to export PDF", err)


class TestChartExporter(unittest.TestCase):
    def test_pdf_command_and_temp_file_cleanup(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "nested" / "chart.pdf"
            seen: dict[str, object] = {}

            def fake_run(cmd, **kwargs):
                svg_path = Path(cmd[-1])
                seen["svg"] = svg_path.read_text(encoding="utf-8")
                seen["path"] = svg_path
                seen["cmd"] = cmd
                return subprocess.CompletedProcess(cmd, 0)

            with patch("chart_exporter.subprocess.run", side_effect=fake_run):
                chart_exporter.export_pdf("<svg/>", out)

            self.assertEqual(seen["svg"], "<svg/>")
            self.assertEqual(seen["cmd"][1:4], ["-f", "pdf", "-o"])
            self.assertTrue(out.parent.is_dir())
            self.assertFalse(Path(seen["path"]).exists())

    def test_converter_failure_raises_export_error(self):
        error = subprocess.CalledProcessError(1, ["rsvg-convert"], stderr=b"boom")
        with tempfile.TemporaryDirectory() as tmp:
            with patch("chart_exporter.subprocess.run", side_effect=error):
                with self.assertRaises(chart_exporter.ExportError) as ctx:
                    chart_exporter.export_png("<svg/>", Path(tmp) / "x.png")
        self.assertIn("boom", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
