"""Tests for the ``svg-hpgl`` command-line entry point."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from pathlib import Path

import pytest

from svg_hpgl.scripts.convert import build_parser, main
from svg_hpgl.utils import logging_config

DRAWING = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100" viewBox="0 0 100 100">'
    '<line x1="1" y1="2" x2="3" y2="4" stroke="red"/>'
    '<line x1="5" y1="5" x2="8" y2="5" stroke="#0000ff"/>'
    '</svg>'
)


@pytest.fixture(autouse=True)
def isolated_logging(monkeypatch):
    """Remove the handlers installed by main() after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(logging_config, "_configured", False)
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(False)
    logging_config.pop_context()


@pytest.fixture()
def drawing(tmp_path: Path) -> Path:
    path = tmp_path / "drawing.svg"
    path.write_text(DRAWING, encoding="utf-8")
    return path


def _run(*argv: str) -> int:
    return main([*argv, "--log-level", "WARNING"])


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


class TestConvert:
    def test_writes_output_file(self, drawing: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "drawing.hpgl"
        assert _run(str(drawing), "-o", str(out)) == 0
        assert out.read_text(encoding="utf-8") == (
            "PA;SP1;PU;PU1,2;PD3,4;PU5,5;PD8,5;"
        )

    def test_writes_stdout_without_output(self, drawing: Path, capsys) -> None:
        assert _run(str(drawing)) == 0
        assert capsys.readouterr().out == "PA;SP1;PU;PU1,2;PD3,4;PU5,5;PD8,5;\n"

    def test_command_line_overrides(self, drawing: Path, capsys) -> None:
        assert _run(str(drawing), "--scale", "10", "--offset-x", "1", "--mirror-y") == 0
        out = capsys.readouterr().out
        assert out.startswith("PA;SP1;PU;PU11,-20;PD31,-40;")

    def test_config_file(self, drawing: Path, tmp_path: Path, capsys) -> None:
        config = tmp_path / "plot.yaml"
        config.write_text(
            "pens:\n"
            "  - pen: 2\n"
            "    stroke: blue\n"
            "output:\n"
            "  prefix: 'IN;'\n"
            "  suffix: 'SP0;'\n",
            encoding="utf-8",
        )
        assert _run(str(drawing), "-c", str(config)) == 0
        assert capsys.readouterr().out == "IN;PA;SP2;PU;PU5,5;PD8,5;SP0;\n"

    def test_svg_preview_and_bbox(self, drawing: Path, tmp_path: Path, capsys) -> None:
        preview = tmp_path / "preview.svg"
        out = tmp_path / "drawing.hpgl"
        assert _run(str(drawing), "-o", str(out), "--svg-preview", str(preview), "--bbox") == 0
        assert "<svg" in preview.read_text(encoding="utf-8")
        err_lines = [line for line in capsys.readouterr().err.splitlines() if line.startswith("{")]
        assert json.loads(err_lines[-1]) == {
            "xMin": 1, "xMax": 8, "yMin": 2, "yMax": 5, "width": 7, "height": 3,
        }

    def test_json_log_file_with_rotation(self, drawing: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "convert.log"
        argv = [
            str(drawing), "-o", str(tmp_path / "drawing.hpgl"),
            "--log-level", "INFO", "--log-file", str(log_file),
            "--log-json", "--log-rotate", "size", "--log-max-bytes", "4096",
        ]
        assert main(argv) == 0
        file_handlers = [
            h for h in logging.getLogger().handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 4096
        assert file_handlers[0].backupCount == 5

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["app"] == "convert"
        assert entry["input"] == str(drawing)
        assert entry["msg"] == "Program contains 7 instructions (0 warning(s))"

    def test_list_colors(self, drawing: Path, capsys) -> None:
        assert _run(str(drawing), "--list-colors") == 0
        assert capsys.readouterr().out.splitlines() == ["rgb(255, 0, 0)", "rgb(0, 0, 255)"]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_missing_input(self, tmp_path: Path) -> None:
        assert _run(str(tmp_path / "missing.svg")) == 1

    def test_malformed_input(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.svg"
        path.write_text("<svg><line></svg>", encoding="utf-8")
        assert _run(str(path)) == 1

    def test_missing_config(self, drawing: Path, tmp_path: Path) -> None:
        assert _run(str(drawing), "-c", str(tmp_path / "none.yaml")) == 1

    def test_invalid_config(self, drawing: Path, tmp_path: Path) -> None:
        config = tmp_path / "plot.yaml"
        config.write_text("pens:\n  - pen: 0\n", encoding="utf-8")
        assert _run(str(drawing), "-c", str(config)) == 1

    def test_invalid_override(self, drawing: Path) -> None:
        assert _run(str(drawing), "--scale", "0") == 1


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args(["in.svg"])
        assert args.input == "in.svg"
        assert args.output is None
        assert args.mirror_x is None
        assert args.padding == 0.0
        assert args.log_level == "INFO"
        assert args.log_json is False
        assert args.log_rotate is None
