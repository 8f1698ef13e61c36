"""CLI entry point: ``mdrender [OPTION]... [FILE]``."""

from __future__ import annotations

import argparse
import sys
from importlib import metadata
from pathlib import Path
from typing import NoReturn, Optional, Sequence

from .config import (
    CONFIG_FILENAME,
    SettingsOverrides,
    load_settings,
)
from .core import config_templates
from .core import workspace as workspace_mod
from .core.config_templates import ConfigTemplateError
from .core.logging import configure_logger
from .core.workspace import WorkspaceError
from .exceptions import ExitCode, InputOutputError, MdrenderError, OptionError
from .flags import CATEGORIES, CATEGORY_PREFIX, OUTPUT_FLAGS, extensions_in
from .options import (
    DEFAULT_INPUT_UNIT,
    DEFAULT_MAX_NESTING,
    DEFAULT_OUTPUT_UNIT,
    resolve_options,
)
from .pipeline import run_pipeline

PROG = "mdrender"

# Short spelling -> (long option name, takes a value).
_SHORT_OPTIONS = {
    "n": ("max-nesting", True),
    "t": ("toc-level", True),
    "i": ("input-unit", True),
    "o": ("output-unit", True),
    "T": ("time", False),
    "h": ("help", False),
    "v": ("version", False),
}

_VALUE_OPTIONS = frozenset(
    {name for name, takes_value in _SHORT_OPTIONS.values() if takes_value}
    | {"config", "workspace", "log-level"}
)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise OptionError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog=PROG, add_help=False, allow_abbrev=False)
    parser.add_argument("--config", type=Path)
    parser.add_argument("--workspace", type=Path)
    parser.add_argument("--log-level")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--help", action="store_true")
    parser.add_argument("--version", action="store_true")
    return parser


def split_arguments(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Return ``(options, operands)`` with every option in ``--name[=value]`` form.

    Short options are rewritten to their long spelling and accept an
    attached (``-n16``) or separate (``-n 16``) value. Everything after
    ``--`` is an operand.
    """

    options: list[str] = []
    operands: list[str] = []
    args = list(argv)
    index = 0
    while index < len(args):
        arg = args[index]
        index += 1
        if arg == "--":
            operands.extend(args[index:])
            break
        if arg == "-" or not arg.startswith("-"):
            operands.append(arg)
            continue
        if arg.startswith("--"):
            name = arg[2:]
            if name in _VALUE_OPTIONS:
                if index >= len(args):
                    raise OptionError(f"option '--{name}' requires an argument")
                arg = f"--{name}={args[index]}"
                index += 1
            options.append(arg)
            continue

        entry = _SHORT_OPTIONS.get(arg[1])
        if entry is None:
            raise OptionError(f"invalid option -- '{arg[1]}'")
        long_name, takes_value = entry
        if not takes_value:
            if len(arg) > 2:
                raise OptionError(f"unrecognized option '{arg}'")
            options.append(f"--{long_name}")
            continue
        value = arg[2:]
        if not value:
            if index >= len(args):
                raise OptionError(f"option requires an argument -- '{arg[1]}'")
            value = args[index]
            index += 1
        options.append(f"--{long_name}={value}")
    return options, operands


def format_help() -> str:
    """Build the help text from the flag registry."""

    lines = [
        f"Usage: {PROG} [OPTION]... [FILE]",
        f"       {PROG} config init [--path P] [--workspace W] [--force]",
        "",
        "Render Markdown from FILE (or standard input) to standard output.",
        "",
        "Main options:",
        "  -n, --max-nesting=N  Maximum level of block nesting parsed.",
        f"                       Default is {DEFAULT_MAX_NESTING}.",
        "  -t, --toc-level=N    Maximum header level included in the TOC.",
        "                       Zero disables it.",
        "  --html               Render (X)HTML. The default.",
        "  --latex              Render a LaTeX document body.",
        "  --html-toc           Render the Table of Contents in (X)HTML.",
        "  -T, --time           Show time spent in rendering.",
        f"  -i, --input-unit=N   Reading block size. Default is {DEFAULT_INPUT_UNIT}.",
        f"  -o, --output-unit=N  Writing block size. Default is {DEFAULT_OUTPUT_UNIT}.",
        "  -h, --help           Print this help text.",
        "  -v, --version        Print mdrender version.",
        "",
        "Settings:",
        "  --config PATH        Settings TOML (default: workspace config).",
        "  --workspace PATH     Workspace root holding config and logs.",
        "  --log-level LEVEL    Minimum level written to the JSON log.",
        "  --verbose            Mirror log records to standard error.",
    ]
    for category in CATEGORIES:
        lines.append("")
        bulk = f"--{CATEGORY_PREFIX}{category.option_name}"
        lines.append(f"{category.label} ({bulk}):")
        for ext in extensions_in(category):
            lines.append(f"  --{ext.option_name:<24} {ext.description}")
    lines.append("")
    lines.append("HTML-specific options:")
    for flag in OUTPUT_FLAGS:
        lines.append(f"  --{flag.option_name:<24} {flag.description}")
    lines.append("")
    lines.append(
        "Flags and extensions can be negated by prepending 'no-' to them, "
        "as in '--no-tables'. Later options override earlier ones."
    )
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    try:
        return _run(args_list)
    except OptionError as exc:
        _report(str(exc))
        sys.stderr.write(f"Try '{PROG} --help' for more information.\n")
        return int(exc.exit_code)
    except MdrenderError as exc:
        _report(str(exc))
        return int(exc.exit_code)


def _run(args_list: Sequence[str]) -> int:
    options, operands = split_arguments(args_list)
    args, tokens = _build_parser().parse_known_args(options)

    if args.help:
        sys.stdout.write(format_help() + "\n")
        return int(ExitCode.OK)
    if args.version:
        sys.stdout.write(f"{PROG} {_version()}\n")
        return int(ExitCode.OK)
    if len(operands) > 1:
        raise OptionError(f"too many input files: {' '.join(operands)}")

    load_result = load_settings(
        config_path=args.config,
        overrides=SettingsOverrides(log_level=args.log_level),
        workspace_path=args.workspace,
    )
    settings = load_result.settings

    logger, _ = configure_logger(
        "mdrender",
        log_dir=load_result.layout.path_for("logs"),
        level=settings.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "mdrender CLI invoked",
        extra={
            "config_path": load_result.config_path,
            "default_tokens": list(settings.option_tokens),
            "tokens": tokens,
        },
    )

    config = resolve_options([*settings.option_tokens, *tokens])
    source = operands[0] if operands else "-"
    data = _read_input(source)

    result = run_pipeline(
        data,
        config,
        localization=settings.localization,
        augmentation_source=settings.augmentation,
        logger=logger,
    )
    _write_output(result.output)

    report = result.timing_report
    if report is not None:
        sys.stderr.write(report + "\n")
    return int(ExitCode.OK)


def _read_input(source: str) -> bytes:
    if source == "-":
        try:
            return sys.stdin.buffer.read()
        except OSError as exc:
            raise InputOutputError(
                f"Unable to read from standard input: {exc}"
            ) from exc
    try:
        return Path(source).read_bytes()
    except OSError as exc:
        raise InputOutputError(
            f'Unable to open input file "{source}": {exc.strerror or exc}'
        ) from exc


def _write_output(output: bytes) -> None:
    try:
        sys.stdout.buffer.write(output)
        sys.stdout.flush()
    except OSError as exc:
        raise InputOutputError(f"Unable to write output: {exc}") from exc


def _report(message: str) -> None:
    sys.stderr.write(f"{PROG}: {message}\n")


def _version() -> str:
    try:
        return metadata.version("mdrender")
    except metadata.PackageNotFoundError:
        return "unknown"


def _handle_config(argv: Sequence[str]) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(argv)
    return _handle_config_init(args)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=f"{PROG} config",
        description="Manage mdrender settings files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help=f"Write the default {CONFIG_FILENAME} template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root override used for the default config path.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _handle_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        _report(str(exc))
        return int(ExitCode.OPTION_ERROR)

    template = config_templates.get_template("mdrender")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        _report(str(exc))
        return int(ExitCode.OPTION_ERROR)

    sys.stdout.write(f"Wrote mdrender config to {written}\n")
    return int(ExitCode.OK)


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


__all__ = ["format_help", "main", "split_arguments"]


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
