"""
cli.py

Responsibility: CLI entrypoint for innerbuilder.

High-level flow (single command `generate`):
1) Read the Java source file
2) Load the option snapshot: preference store, then --enable/--disable overrides
3) Generate/merge the builder -> new source text
4) Write it back (or to --output), or print a diff with --dry-run

This module should orchestrate behavior but keep concerns isolated:
- Options and preferences: `options.py`, `preferences.py`
- Generation: `generator.py`
"""

from __future__ import annotations

import argparse
import difflib
import sys
from pathlib import Path

from innerbuilder.generator import GenerationResult, generate_builder
from innerbuilder.logging import configure_logging, get_logger
from innerbuilder.options import Option, OptionSet
from innerbuilder.parser import JavaSyntaxError
from innerbuilder.preferences import DEFAULT_PREFERENCES_FILE, PreferenceError, load_preferences
from innerbuilder.renderer import TemplateError
from innerbuilder.synthesis import DEFAULT_LANGUAGE_LEVEL, PreconditionError

log = get_logger("cli")


class CLIError(RuntimeError):
    pass


def _option_arg(value: str) -> Option:
    try:
        return Option.from_name(value)
    except ValueError as e:
        choices = ", ".join(option.value for option in Option)
        raise argparse.ArgumentTypeError(f"{e} (choose from: {choices})") from e


def _load_options(args: argparse.Namespace) -> OptionSet:
    store = load_preferences(args.preferences)
    return OptionSet.from_store(store).with_overrides(enable=args.enable, disable=args.disable)


def _read_source(path: Path) -> str:
    if not path.is_file():
        raise CLIError(f"Source file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CLIError(f"Cannot read {path}: {e}") from e


def _diff(path: Path, before: str, after: str) -> str:
    return "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=str(path),
            tofile=str(path),
        )
    )


def _write_result(result: GenerationResult, destination: Path) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(result.text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise CLIError(f"Cannot write {destination}: {e}") from e


def generate_cmd(args: argparse.Namespace) -> int:
    source_path = Path(args.source)
    source = _read_source(source_path)
    options = _load_options(args)

    result = generate_builder(
        source,
        options,
        class_name=args.class_name,
        field_names=args.fields or None,
        language_level=args.language_level,
    )

    if args.dry_run:
        sys.stdout.write(_diff(source_path, source, result.text) or "No changes.\n")
        return 0

    destination = Path(args.output) if args.output else source_path
    if not result.changed and destination == source_path:
        log.info("%s already up to date", source_path)
        return 0
    _write_result(result, destination)
    log.info("Wrote %s", destination)
    return 0


def _add_verbose_option(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="innerbuilder", description="Generate a Java inner Builder class from a class's fields")
    _add_verbose_option(p)
    p.add_argument("--log-file", default=None, help="Also write logs to this file")
    sub = p.add_subparsers(dest="command", required=True)

    g = sub.add_parser("generate", help="Generate or update the Builder of a class in a Java source file")
    _add_verbose_option(g, suppress_default=True)
    g.add_argument("source", help="Path to the Java source file")
    g.add_argument("--class", dest="class_name", default=None, help="Target class (default: first top-level class)")
    g.add_argument(
        "--field",
        dest="fields",
        action="append",
        default=[],
        help="Field to include, in builder order (repeatable; default: all candidate fields)",
    )
    g.add_argument(
        "--preferences",
        default=DEFAULT_PREFERENCES_FILE,
        help=f"Preference store (default: {DEFAULT_PREFERENCES_FILE})",
    )
    g.add_argument("--enable", action="append", type=_option_arg, default=[], help="Enable an option for this run")
    g.add_argument("--disable", action="append", type=_option_arg, default=[], help="Disable an option for this run")
    g.add_argument(
        "--language-level",
        type=int,
        default=DEFAULT_LANGUAGE_LEVEL,
        help=f"Java language level of the source (default: {DEFAULT_LANGUAGE_LEVEL})",
    )
    g.add_argument("--output", default=None, help="Write the result here instead of updating the source file")
    g.add_argument("--dry-run", action="store_true", help="Print a unified diff instead of writing")

    g.set_defaults(func=generate_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=bool(args.verbose), log_file=Path(args.log_file) if args.log_file else None)

    try:
        return int(args.func(args))
    except PreconditionError as e:
        parser.exit(1, f"Nothing generated: {e}\n")
    except (CLIError, JavaSyntaxError, PreferenceError, TemplateError) as e:
        parser.exit(1, f"innerbuilder {args.command} failed: {e}\nRun with --verbose for more details.\n")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
