from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from mdrender.core import logging as core_logging


def _close(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_configure_logger_writes_json(tmp_path):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "mdrender.test_json",
        log_dir=log_dir,
        level="INFO",
    )

    assert log_path == log_dir / "mdrender.log"

    logger.info("hello world", extra={"renderer": "html", "input_bytes": 3})
    logger.debug("filtered out")

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={
                "value": {"items": [Path(log_dir), 1], "mapping": {"k": "v"}},
                "obj": _Helper(),
            },
        )
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["message"] == "hello world"
    assert first["level"] == "INFO"
    assert first["extra"] == {"renderer": "html", "input_bytes": 3}

    last = json.loads(lines[-1])
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["obj"] == "helper"
    assert last["extra"]["value"]["items"] == [str(log_dir), 1]

    _close(logger)


def test_verbose_mirrors_to_console(tmp_path, capsys):
    logger, _ = core_logging.configure_logger(
        "mdrender.test_verbose",
        log_dir=tmp_path / "logs",
        verbose=True,
    )

    logger.debug("visible")

    assert "DEBUG visible" in capsys.readouterr().err
    _close(logger)


def test_console_handler_toggle(tmp_path):
    name = "mdrender.test_toggle"
    log_dir = tmp_path / "logs"

    def console_handlers(logger):
        return [
            handler
            for handler in logger.handlers
            if getattr(handler, "_mdrender_console", False)
        ]

    logger, _ = core_logging.configure_logger(name, log_dir=log_dir, verbose=True)
    assert len(console_handlers(logger)) == 1

    core_logging.configure_logger(name, log_dir=log_dir, verbose=True)
    assert len(console_handlers(logger)) == 1
    assert len(logger.handlers) == 2

    core_logging.configure_logger(name, log_dir=log_dir, verbose=False)
    assert not console_handlers(logger)
    assert len(logger.handlers) == 1

    _close(logger)


def test_configure_logger_fallback_directory(tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path / "tmp"))

    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)

    logger, log_path = core_logging.configure_logger(
        "mdrender.test_blocked", log_dir=target
    )

    assert log_path.parent == tmp_path / "tmp" / "mdrender-logs"
    assert log_path.exists()
    _close(logger)


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level(" warning ") == logging.WARNING
