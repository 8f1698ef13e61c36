"""Settings loader for the mdrender command."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from .core import config as core_config
from .core import workspace as workspace_mod
from .engine import Localization
from .exceptions import MdrenderError
from .renderers import (
    DEFAULT_ASSET_BASE,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_FILE,
    AugmentationSource,
)

CONFIG_FILENAME = "mdrender.toml"
CONFIG_ENV = "MDRENDER_CONFIG"
ENV_PREFIX = "MDRENDER_"

_DEFAULT_LOG_LEVEL = "INFO"


class MdrenderConfigError(MdrenderError):
    """Raised when settings parsing or validation fails."""


@dataclass(frozen=True)
class Settings:
    """Fully resolved settings for one invocation."""

    option_tokens: tuple[str, ...]
    localization: Localization
    augmentation: AugmentationSource
    log_level: str


@dataclass(frozen=True)
class SettingsOverrides:
    """CLI-sourced overrides applied on top of file/env settings."""

    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Resolved settings plus the workspace and file they came from."""

    settings: Settings
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path] = field(default=None)


def load_settings(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[SettingsOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load settings applying precedence CLI > env > TOML defaults.

    A missing default file is fine; a missing file that was asked for
    explicitly (``--config`` or ``MDRENDER_CONFIG``) is an error.
    """

    overrides = overrides or SettingsOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise MdrenderConfigError(str(exc)) from exc
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(table, parsed)
        except core_config.TomlConfigError as exc:
            raise MdrenderConfigError(str(exc)) from exc
    elif config_path is not None or _has_env_config(env_map):
        raise MdrenderConfigError(f"Config file not found: {requested_path}")

    env_tokens = _parse_env_tokens(env_map)
    option_tokens = (
        env_tokens
        if env_tokens is not None
        else _coerce_tokens(table["options"]["defaults"])
    )

    settings = Settings(
        option_tokens=option_tokens,
        localization=_build_localization(table["localization"]),
        augmentation=_build_augmentation(table["html"], layout=layout),
        log_level=_resolve_log_level(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        ),
    )
    return LoadResult(settings=settings, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    local = Localization()
    return {
        "options": {"defaults": []},
        "localization": {
            "figure": local.figure,
            "listing": local.listing,
            "table": local.table,
        },
        "html": {
            "prologue": None,
            "epilogue": None,
            "asset_base": DEFAULT_ASSET_BASE,
            "font_family": DEFAULT_FONT_FAMILY,
            "font_file": DEFAULT_FONT_FILE,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _has_env_config(env_map: Mapping[str, str]) -> bool:
    return bool((env_map.get(CONFIG_ENV) or "").strip())


def _coerce_tokens(value: object) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(
        isinstance(item, str) for item in value
    ):
        raise MdrenderConfigError(
            "options.defaults must be a list of strings."
        )
    return tuple(item.strip() for item in value if item.strip())


def _build_localization(table: Mapping[str, object]) -> Localization:
    labels = {}
    for key in ("figure", "listing", "table"):
        value = table[key]
        if not isinstance(value, str) or not value.strip():
            raise MdrenderConfigError(
                f"localization.{key} must be a non-empty string."
            )
        labels[key] = value.strip()
    return Localization(**labels)


def _build_augmentation(
    table: Mapping[str, object], *, layout: workspace_mod.WorkspaceLayout
) -> AugmentationSource:
    strings = {}
    for key in ("asset_base", "font_family", "font_file"):
        value = table[key]
        if not isinstance(value, str):
            raise MdrenderConfigError(f"html.{key} must be a string.")
        strings[key] = value.strip()
    return AugmentationSource(
        prologue_path=_coerce_template_path(
            table["prologue"], "html.prologue", layout=layout
        ),
        epilogue_path=_coerce_template_path(
            table["epilogue"], "html.epilogue", layout=layout
        ),
        **strings,
    )


def _coerce_template_path(
    value: object, key: str, *, layout: workspace_mod.WorkspaceLayout
) -> Optional[Path]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MdrenderConfigError(f"{key} must be a string when provided.")
    raw = value.strip()
    if not raw:
        return None
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    if not candidate.is_file():
        raise MdrenderConfigError(f"{key} template not found: {candidate}")
    return candidate.resolve()


def _resolve_log_level(
    override: Optional[str],
    env_value: Optional[str],
    file_value: object,
) -> str:
    candidate = _pick_first(override, env_value, file_value)
    if not isinstance(candidate, str):
        raise MdrenderConfigError("logging.level must be a string.")
    level = candidate.strip()
    if not level:
        raise MdrenderConfigError("logging.level must be a non-empty string.")
    return level.upper()


def _parse_env_tokens(env_map: Mapping[str, str]) -> Optional[tuple[str, ...]]:
    raw = _parse_env_string(env_map, "OPTIONS")
    if raw is None:
        return None
    return tuple(part for part in raw.replace(",", " ").split() if part)


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


__all__ = [
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "LoadResult",
    "MdrenderConfigError",
    "Settings",
    "SettingsOverrides",
    "load_settings",
]
