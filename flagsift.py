#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Paul Tiffany
# Project: flagsift - Declarative command-line token classifier
# Source:  https://github.com/PaulTiffany/flagsift

"""
flagsift - Classify command-line tokens against a declared set of flags and arguments.

A single-file, zero-dependency library (with a small CLI) that validates a raw
token sequence against a specification and returns which flags were set, with
what option values, and which positional arguments were present.
"""

import argparse
import json
import string
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

# Project metadata (also embedded in output)
__version__ = "1.0.0"
__license__ = "MIT"
__source__ = "https://github.com/PaulTiffany/flagsift"

# --- Configuration ---
FLAG_MARKER = "-"
HELP_ALIAS = "h"
USAGE_HINT = f"Usage: {FLAG_MARKER}{HELP_ALIAS} for help:"
FORMATS = ("json", "jsonl")
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

# --- Errors ---


class FlagsiftError(Exception):
    """Base exception for flagsift operations."""


class SpecError(FlagsiftError):
    """Raised when a specification document cannot be loaded."""


class ParseExit(FlagsiftError):
    """A terminal outcome of `parse`: parsing stops and the caller decides what to do.

    Every exit carries the token that triggered it and the rendered usage text
    so the caller can show both.
    """

    exit_code = 1

    def __init__(self, message: str, token: str, usage: str) -> None:
        super().__init__(message)
        self.token = token
        self.usage = usage


class HelpRequested(ParseExit):
    """Raised when the help alias is supplied. Not an error."""

    exit_code = 0


class ParseError(ParseExit):
    """Base for validation failures raised during token classification."""

    kind = "parse_error"


class UnknownFlag(ParseError):
    kind = "unknown_flag"


class DuplicateFlag(ParseError):
    kind = "duplicate_flag"


class UnknownArgument(ParseError):
    kind = "unknown_argument"


class DuplicateArgument(ParseError):
    kind = "duplicate_argument"


class FlagTakesNoOption(ParseError):
    """A value was supplied to a flag declared without option slots (strict mode only)."""

    kind = "flag_takes_no_option"


# --- Specification Model ---


def _fold(text: str) -> str:
    """Lowercase ASCII letters only; every other character passes through unchanged."""
    return text.translate(_ASCII_LOWER)


@dataclass(frozen=True)
class Flag:
    """A marker-prefixed option. `options` holds the slot labels shown in usage."""

    title: str
    description: str = ""
    options: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return _fold(self.title)

    @property
    def takes_option(self) -> bool:
        return bool(self.options)


@dataclass(frozen=True)
class Argument:
    """A positional token with no marker prefix."""

    title: str
    description: str = ""

    @property
    def key(self) -> str:
        return _fold(self.title)


@dataclass(frozen=True)
class ParserSpec:
    """Accepted flags and arguments, in declaration (and help) order."""

    title: str
    description: str = ""
    flags: tuple[Flag, ...] = ()
    arguments: tuple[Argument, ...] = ()

    def find_flag(self, title: str) -> Optional[Flag]:
        """Return the declared flag matching `title` case-insensitively."""
        key = _fold(title)
        return next((f for f in self.flags if f.key == key), None)

    def find_argument(self, title: str) -> Optional[Argument]:
        key = _fold(title)
        return next((a for a in self.arguments if a.key == key), None)

    def help(self) -> str:
        return render_usage(self)


@dataclass
class ParseResult:
    """Flags set (with their option value, "" when none) and arguments seen, in input order."""

    flags: list[tuple[str, str]] = field(default_factory=list)
    arguments: list[str] = field(default_factory=list)

    def has_flag(self, title: str) -> bool:
        key = _fold(title)
        return any(_fold(name) == key for name, _ in self.flags)

    def option(self, title: str, default: Optional[str] = None) -> Optional[str]:
        """Return the option value recorded for `title`, or `default` if the flag was not set."""
        key = _fold(title)
        for name, value in self.flags:
            if _fold(name) == key:
                return value
        return default

    def has_argument(self, title: str) -> bool:
        key = _fold(title)
        return any(_fold(name) == key for name in self.arguments)

    def as_dict(self) -> dict[str, Any]:
        return {
            "flags": [{"title": name, "option": value} for name, value in self.flags],
            "arguments": list(self.arguments),
        }


def create_flag(title: str, description: str, options: Iterable[str] = ()) -> Flag:
    """Create a flag; `options` are the slot labels it expects."""
    return Flag(title, description, tuple(options))


def create_arg(title: str, description: str) -> Argument:
    """Create a positional argument."""
    return Argument(title, description)


def create_parser(
    title: str, description: str, flags: Iterable[Flag], arguments: Iterable[Argument]
) -> ParserSpec:
    """Create a parser specification from flags and arguments."""
    return ParserSpec(title, description, tuple(flags), tuple(arguments))


# --- Usage Renderer ---


def render_usage(spec: ParserSpec) -> str:
    """Render the usage text: banner, then Options and Arguments blocks when non-empty."""
    parts = [f"{spec.title}, {spec.description}\n{USAGE_HINT}\n\n"]
    if spec.flags:
        parts.append(" Options:\n")
        for flag in spec.flags:
            slots = "".join(f"<{slot}> " for slot in flag.options)
            parts.append(f"    {FLAG_MARKER}{flag.title} {slots}:\n\t {flag.description}\n")
        parts.append("\n")
    if spec.arguments:
        parts.append(" Arguments:\n")
        for arg in spec.arguments:
            parts.append(f"    {arg.title} :\n\t {arg.description}\n")
    return "".join(parts)


# --- Tokenizer / Validator ---


def _is_flag_token(token: str) -> bool:
    return token.startswith(FLAG_MARKER) and token != FLAG_MARKER


def _classify_flag(spec: ParserSpec, token: str, used: set[str]) -> Flag:
    """Resolve a marker token to a declared flag, or raise the terminal outcome."""
    name = _fold(token[len(FLAG_MARKER) :])
    if name in used:
        raise DuplicateFlag(
            f"Flags may only be used once, duplicate flag: {FLAG_MARKER}{name}",
            token,
            render_usage(spec),
        )
    flag = spec.find_flag(name)
    if flag is not None:
        used.add(flag.key)
        return flag
    if name == HELP_ALIAS:
        raise HelpRequested("Help requested", token, render_usage(spec))
    raise UnknownFlag(f"Invalid flag: '{name}'", token, render_usage(spec))


def _classify_argument(spec: ParserSpec, token: str, used: set[str]) -> Argument:
    name = _fold(token)
    if name in used:
        raise DuplicateArgument(
            f"Arguments may only be used once, duplicate argument: {name}",
            token,
            render_usage(spec),
        )
    arg = spec.find_argument(name)
    if arg is None:
        raise UnknownArgument(f"Unknown arg: '{token}'", token, render_usage(spec))
    used.add(arg.key)
    return arg


def parse(
    spec: ParserSpec,
    tokens: Iterable[str],
    *,
    skip_first: bool = False,
    strict_flags: bool = False,
) -> ParseResult:
    """Classify `tokens` against `spec` in a single left-to-right pass.

    Returns a fresh ParseResult. Raises HelpRequested when the help alias is
    seen and a ParseError subclass on the first validation failure; neither
    leaves a usable partial result.

    `skip_first` drops the leading token (the program path of a raw argv).
    With `strict_flags`, a value following a flag declared without option
    slots is rejected with FlagTakesNoOption instead of being read as an
    argument.
    """
    result = ParseResult()
    used_flags: set[str] = set()
    used_args: set[str] = set()
    # None while expecting a token; otherwise the flag whose option value is next.
    awaiting: Optional[Flag] = None

    iterator = iter(tokens)
    if skip_first:
        next(iterator, None)

    for token in iterator:
        if awaiting is not None:
            if not token.startswith(FLAG_MARKER):
                if not awaiting.takes_option:
                    raise FlagTakesNoOption(
                        f"{FLAG_MARKER}{awaiting.title} does not take any arguments",
                        token,
                        render_usage(spec),
                    )
                result.flags.append((awaiting.title, _fold(token)))
                awaiting = None
                continue
            if awaiting.takes_option:
                result.flags.append((awaiting.title, ""))
            awaiting = None

        if _is_flag_token(token):
            flag = _classify_flag(spec, token, used_flags)
            if not flag.takes_option:
                result.flags.append((flag.title, ""))
            if flag.takes_option or strict_flags:
                awaiting = flag
        else:
            result.arguments.append(_classify_argument(spec, token, used_args).title)

    if awaiting is not None and awaiting.takes_option:
        result.flags.append((awaiting.title, ""))
    return result


# --- Spec Loading ---


def _spec_entries(data: dict[str, Any], kind: str) -> list[Any]:
    entries = data.get(kind) or []
    if not isinstance(entries, list):
        raise SpecError(f"'{kind}' must be a list")
    return entries


def _spec_text(value: Any, where: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SpecError(f"{where} must be a string")
    return value


def _spec_entry(entry: Any, kind: str, index: int) -> dict[str, Any]:
    if not isinstance(entry, dict) or not isinstance(entry.get("title"), str):
        raise SpecError(f"{kind}[{index}] must be an object with a string 'title'")
    return entry


def spec_from_dict(data: Any) -> ParserSpec:
    """Build a ParserSpec from its JSON form."""
    if not isinstance(data, dict):
        raise SpecError("Spec must be a JSON object")
    flags = []
    for i, entry in enumerate(_spec_entries(data, "flags")):
        entry = _spec_entry(entry, "flags", i)
        options = entry.get("options") or []
        if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
            raise SpecError(f"flags[{i}].options must be a list of strings")
        description = _spec_text(entry.get("description"), f"flags[{i}].description")
        flags.append(create_flag(entry["title"], description, options))
    arguments = []
    for i, entry in enumerate(_spec_entries(data, "arguments")):
        entry = _spec_entry(entry, "arguments", i)
        description = _spec_text(entry.get("description"), f"arguments[{i}].description")
        arguments.append(create_arg(entry["title"], description))
    return create_parser(
        _spec_text(data.get("title"), "title"),
        _spec_text(data.get("description"), "description"),
        flags,
        arguments,
    )


def load_spec(path: Path) -> ParserSpec:
    """Read a ParserSpec from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, PermissionError) as e:
        raise SpecError(f"Error reading {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SpecError(f"Invalid JSON in {path}: {e}") from e
    return spec_from_dict(data)


def write_output(path: Optional[Path], result: ParseResult, format: str) -> None:
    """Write the result as JSON or JSONL, to `path` or stdout."""
    data = result.as_dict()
    if format == "json":
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    else:  # jsonl
        rows = [{"type": "flag", **row} for row in data["flags"]]
        rows += [{"type": "argument", "title": name} for name in data["arguments"]]
        content = "".join(json.dumps(row, ensure_ascii=False) + "\n" for row in rows)
    if path is None:
        sys.stdout.write(content)
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except (OSError, PermissionError) as e:
        raise FlagsiftError(f"Error writing {path}: {e}") from e


# --- CLI and Main Execution ---


def create_arg_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Classify command-line tokens against a JSON flag/argument spec",
        epilog="Options go before the spec path; tokens to classify follow '--', "
        "e.g. flagsift -f jsonl spec.json -- -a some foo",
    )
    parser.add_argument("spec", nargs="?", help="Path to the JSON spec file")
    parser.add_argument("tokens", nargs="*", help="Tokens to classify")
    parser.add_argument("-o", "--out", help="Output file (stdout if not specified)")
    parser.add_argument("-f", "--format", choices=FORMATS, default="json", help="Output format")
    parser.add_argument("--usage", action="store_true", help="Print the spec's usage and exit")
    parser.add_argument(
        "--strict-flags",
        action="store_true",
        help="Reject values following flags that take no option",
    )
    parser.add_argument("--version", action="version", version=f"flagsift {__version__}")
    parser.add_argument("--about", action="store_true", help="Show project info and exit")
    return parser


def main() -> int:  # noqa: PLR0911
    """Run the main entry point."""
    parser = create_arg_parser()
    args = parser.parse_args()

    if args.about:
        print(f"flagsift {__version__} ({__license__})\nSource:  {__source__}")
        return 0

    if not args.spec:
        print("Error: a spec file is required", file=sys.stderr)
        return 1

    try:
        spec = load_spec(Path(args.spec))
        if args.usage:
            print(render_usage(spec))
            return 0

        result = parse(spec, args.tokens, strict_flags=args.strict_flags)
        write_output(Path(args.out) if args.out else None, result, args.format)
        return 0

    except HelpRequested as e:
        print(e.usage)
        return e.exit_code
    except ParseError as e:
        print(f"Error: {e}...\n{e.usage}", file=sys.stderr)
        return e.exit_code
    except FlagsiftError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


def cli_entrypoint() -> None:
    """Console entry point (kept tiny so tests can patch sys.exit)."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entrypoint()
