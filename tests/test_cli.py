from __future__ import annotations

import io
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from mdrender import cli
from mdrender.core import config_templates
from mdrender.exceptions import OptionError
from mdrender.pipeline import RenderResult


def _stdin(monkeypatch, data: bytes) -> None:
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))


@pytest.mark.parametrize(
    "argv, options, operands",
    [
        (["-n16", "-t", "3"], ["--max-nesting=16", "--toc-level=3"], []),
        (["-T", "-h", "-v"], ["--time", "--help", "--version"], []),
        (["-i", "8", "-o2"], ["--input-unit=8", "--output-unit=2"], []),
        (["--toc-level", "2", "doc.md"], ["--toc-level=2"], ["doc.md"]),
        (["--config", "a.toml", "-"], ["--config=a.toml"], ["-"]),
        (["--tables", "--", "--latex"], ["--tables"], ["--latex"]),
        (["a.md", "--no-tables", "b.md"], ["--no-tables"], ["a.md", "b.md"]),
    ],
)
def test_split_arguments(argv, options, operands):
    assert cli.split_arguments(argv) == (options, operands)


@pytest.mark.parametrize("argv", [["-x"], ["-n"], ["--max-nesting"], ["-Th"]])
def test_split_arguments_errors(argv):
    with pytest.raises(OptionError):
        cli.split_arguments(argv)


def test_renders_file_to_stdout(tmp_path, capsysbinary):
    source = tmp_path / "doc.md"
    source.write_text("# Hello\n\n| a |\n|---|\n| b |\n", encoding="utf-8")

    exit_code = cli.main(["--no-all-block", "--tables", "--latex", str(source)])

    captured = capsysbinary.readouterr()
    assert exit_code == 0
    assert b"\\section{Hello}" in captured.out
    assert b"\\begin{tabular}" in captured.out
    assert captured.err == b""


def test_reads_stdin_for_dash(monkeypatch, capsysbinary):
    _stdin(monkeypatch, b"*hi*")

    exit_code = cli.main(["--html-toc", "-"])

    assert exit_code == 0
    assert capsysbinary.readouterr().out == b""


def test_reads_stdin_without_file(monkeypatch, capsysbinary):
    _stdin(monkeypatch, b"## Two\n")

    exit_code = cli.main(["-t", "2"])

    out = capsysbinary.readouterr().out.decode("utf-8")
    assert exit_code == 0
    assert '<h2 id="toc_0">Two</h2>' in out
    assert "katex" in out


def test_dash_dash_ends_option_parsing(tmp_path, monkeypatch, capsysbinary):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "--latex").write_text("plain", encoding="utf-8")

    exit_code = cli.main(["--no-scidown", "--", "--latex"])

    out = capsysbinary.readouterr().out.decode("utf-8")
    assert exit_code == 0
    assert "<p>plain</p>" in out


def test_unknown_option_exits_one(monkeypatch, capsys):
    _stdin(monkeypatch, b"never read")

    exit_code = cli.main(["--tables", "--bogus"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.out == ""
    assert "mdrender: unrecognized option '--bogus'" in captured.err
    assert "--help" in captured.err


def test_malformed_number_exits_one(capsys):
    assert cli.main(["--max-nesting=abc"]) == 1
    assert "max-nesting" in capsys.readouterr().err


def test_missing_file_exits_five(tmp_path, capsys):
    exit_code = cli.main([str(tmp_path / "absent.md")])

    captured = capsys.readouterr()
    assert exit_code == 5
    assert "absent.md" in captured.err
    assert captured.out == ""


class _BrokenStream:
    def read(self) -> bytes:
        raise OSError(5, "Input/output error")

    def write(self, data: bytes) -> int:
        raise OSError(28, "No space left on device")

    def flush(self) -> None:
        pass


def test_unreadable_stdin_exits_five(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", SimpleNamespace(buffer=_BrokenStream()))

    exit_code = cli.main([])

    captured = capsys.readouterr()
    assert exit_code == 5
    assert "Unable to read from standard input" in captured.err
    assert captured.out == ""


def test_unwritable_stdout_exits_five(monkeypatch, capsys):
    _stdin(monkeypatch, b"# Title")
    monkeypatch.setattr(
        sys,
        "stdout",
        SimpleNamespace(buffer=_BrokenStream(), flush=lambda: None),
    )

    exit_code = cli.main([])

    assert exit_code == 5
    assert "Unable to write output" in capsys.readouterr().err


def test_too_many_files_exits_one(capsys):
    assert cli.main(["a.md", "b.md"]) == 1
    assert "too many input files" in capsys.readouterr().err


def test_allocation_failure_exits_four(monkeypatch, capsys):
    _stdin(monkeypatch, b"x")

    def fail(*args, **kwargs):
        from mdrender.exceptions import AllocationError

        raise AllocationError("Unable to allocate the document.")

    monkeypatch.setattr(cli, "run_pipeline", fail)

    exit_code = cli.main([])

    captured = capsys.readouterr()
    assert exit_code == 4
    assert captured.out == ""
    assert "Unable to allocate" in captured.err


def test_time_report_goes_to_stderr(monkeypatch, capsysbinary):
    _stdin(monkeypatch, b"x")
    monkeypatch.setattr(
        cli,
        "run_pipeline",
        lambda data, config, **kwargs: RenderResult(output=b"<p>x</p>\n", elapsed=0.5),
    )

    exit_code = cli.main(["-T"])

    captured = capsysbinary.readouterr()
    assert exit_code == 0
    assert captured.out == b"<p>x</p>\n"
    assert captured.err == b"Time spent on rendering:  500.00 ms.\n"


def test_timing_failure_still_succeeds(monkeypatch, capsysbinary):
    _stdin(monkeypatch, b"x")
    monkeypatch.setattr(
        cli,
        "run_pipeline",
        lambda data, config, **kwargs: RenderResult(
            output=b"<p>x</p>\n", timing_error="Failed to get the time."
        ),
    )

    exit_code = cli.main(["--time"])

    captured = capsysbinary.readouterr()
    assert exit_code == 0
    assert captured.out == b"<p>x</p>\n"
    assert captured.err == b"Failed to get the time.\n"


def test_settings_tokens_apply_before_cli_tokens(monkeypatch, capsysbinary):
    _stdin(monkeypatch, b"x")
    monkeypatch.setenv("MDRENDER_OPTIONS", "latex no-scidown")
    seen = {}

    def fake_run(data, config, **kwargs):
        seen["config"] = config
        seen.update(kwargs)
        return RenderResult(output=b"")

    monkeypatch.setattr(cli, "run_pipeline", fake_run)

    assert cli.main(["--html"]) == 0
    assert seen["config"].renderer.value == "html"
    assert not seen["config"].extensions & (1 << 15)
    assert seen["localization"].figure == "Figure"


def test_bad_settings_exit_one(tmp_path, capsys):
    config_file = tmp_path / "bad.toml"
    config_file.write_text("[nope]\n", encoding="utf-8")

    exit_code = cli.main(["--config", str(config_file)])

    assert exit_code == 1
    assert "Unknown configuration key 'nope'" in capsys.readouterr().err


def test_writes_json_log(_isolated_workspace, monkeypatch, capsysbinary):
    _stdin(monkeypatch, b"# Log me")

    assert cli.main(["--log-level", "debug"]) == 0

    log_file = _isolated_workspace / "logs" / "mdrender.log"
    contents = log_file.read_text(encoding="utf-8")
    assert "Starting render" in contents
    assert "mdrender CLI invoked" in contents


def test_workspace_option(tmp_path, monkeypatch, capsysbinary):
    _stdin(monkeypatch, b"x")
    target = tmp_path / "custom-ws"

    assert cli.main(["--workspace", str(target)]) == 0
    assert (target / "logs" / "mdrender.log").exists()


def test_help_lists_registry(capsys):
    assert cli.main(["-h"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("Usage: mdrender [OPTION]... [FILE]")
    for name in ("--all-span", "--disable-indented-code", "--skip-html", "--style"):
        assert name in out


def test_version(monkeypatch, capsys):
    monkeypatch.setattr(cli.metadata, "version", lambda name: "9.9.9")

    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out == "mdrender 9.9.9\n"


def test_config_init_writes_template(tmp_path, capsys):
    target = tmp_path / "mdrender.toml"

    assert cli.main(["config", "init", "--path", str(target)]) == 0
    assert target.read_text(encoding="utf-8") == (
        config_templates.get_template("mdrender").read_text()
    )
    assert str(target) in capsys.readouterr().out

    assert cli.main(["config", "init", "--path", str(target)]) == 1
    assert "already exists" in capsys.readouterr().err

    assert cli.main(["config", "init", "--path", str(target), "--force"]) == 0


def test_config_init_defaults_to_workspace(tmp_path):
    workspace = tmp_path / "ws"

    assert cli.main(["config", "init", "--workspace", str(workspace)]) == 0
    assert (workspace / "config" / "mdrender.toml").is_file()
