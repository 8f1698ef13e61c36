from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from mdrender.core import workspace


def test_ensure_workspace_creates_directories(tmp_path, monkeypatch):
    root = tmp_path / "data"
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(root))

    layout = workspace.ensure_workspace()

    assert layout.home == root.resolve()
    assert layout.path_for("config") == root.resolve() / "config"
    assert layout.path_for("logs").is_dir()


def test_ensure_workspace_is_idempotent(tmp_path):
    env = {workspace.WORKSPACE_ENV: str(tmp_path / "existing")}

    first = workspace.ensure_workspace(env=env)
    second = workspace.ensure_workspace(env=env)

    assert first == second


def test_explicit_path_beats_environment(tmp_path):
    custom = tmp_path / "custom-root"
    env = {workspace.WORKSPACE_ENV: str(tmp_path / "ignored")}

    layout = workspace.ensure_workspace(env=env, path=custom)

    assert layout.home == custom.resolve()
    assert not (tmp_path / "ignored").exists()


def test_ensure_workspace_without_create(tmp_path):
    root = tmp_path / "deferred"

    layout = workspace.ensure_workspace(path=root, create=False)

    assert layout.home == root.resolve()
    assert not root.exists()


def test_ensure_workspace_errors_when_path_is_file(tmp_path):
    root = tmp_path / "file"
    root.write_text("not a dir", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=root)


def test_path_for_unknown_key_errors(tmp_path):
    layout = workspace.ensure_workspace(path=tmp_path, create=False)

    with pytest.raises(KeyError):
        layout.path_for("unknown")


def test_default_location_falls_back_to_tempdir(tmp_path, monkeypatch):
    default = tmp_path / "home" / ".mdrender"
    monkeypatch.setattr(workspace, "DEFAULT_WORKSPACE", default)
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path / "tmp"))
    real_ensure_dir = workspace._ensure_dir

    def fake_ensure_dir(path: Path) -> None:
        if path == default.resolve():
            raise PermissionError("denied")
        real_ensure_dir(path)

    monkeypatch.setattr(workspace, "_ensure_dir", fake_ensure_dir)

    layout = workspace.ensure_workspace(env={})

    assert layout.home == tmp_path / "tmp" / "mdrender-data"
    assert layout.path_for("logs").is_dir()


def test_explicit_location_never_falls_back(tmp_path, monkeypatch):
    def deny(path: Path) -> None:
        raise PermissionError("nope")

    monkeypatch.setattr(workspace, "_ensure_dir", deny)

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=tmp_path / "explicit")
