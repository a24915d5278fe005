"""Command-line interface for the Fermento typography pipeline.

WHY: Editors and build scripts need to normalize dialogue typography in
exported chapters without running the HTTP server. The CLI runs the same
pipeline the server uses over a file (or stdin) and prints the result.

HOW: Uses argparse to accept an input path, an optional rule list or the
--full preset, and an optional output path. Plain-text input (--text) is
first wrapped into HTML paragraphs with text_to_html(). Status messages go
to stderr; the document goes to stdout unless --output is given.

RULES:
- Positional argument: input file path, or "-" for stdin
- --rules: comma-separated rule keys (default: configured order)
- --full: dash spacing followed by guillemet canonicalization
- --rules and --full are mutually exclusive
- --list-rules prints the registered rules and exits
- Errors print "Error: ..." to stderr and exit with status 1
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from fermento_editor import __version__
from fermento_editor.config import FULL_RULE_ORDER
from fermento_editor.core.document import text_to_html
from fermento_editor.core.pipeline import TypographyPipeline
from fermento_editor.rules import RULES


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()

    path = Path(source)
    if not path.is_file():
        _fail("File not found: {}".format(path))
    return path.read_text(encoding="utf-8")


def _list_rules() -> None:
    for key, rule_cls in sorted(RULES.items()):
        rule = rule_cls()
        print("{:<22} {}".format(key, rule.name))
        if rule.description:
            print("{:<22} {}".format("", rule.description))


def _resolve_rule_keys(args: argparse.Namespace) -> Optional[List[str]]:
    if args.rules:
        return [key.strip() for key in args.rules.split(",") if key.strip()]
    if args.full:
        return list(FULL_RULE_ORDER)
    return None


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without touching files.
    """
    parser = argparse.ArgumentParser(
        prog="fermento-typography",
        description="Normalize dialogue typography (dash spacing, guillemets) "
                    "in manuscript HTML or plain text.",
    )

    parser.add_argument(
        "input",
        nargs="?",
        help="Input HTML file, or '-' to read from stdin.",
    )

    rule_group = parser.add_mutually_exclusive_group()
    rule_group.add_argument(
        "--rules",
        default=None,
        help="Comma-separated rule keys, applied in the given order. "
             "Available: {}.".format(", ".join(sorted(RULES))),
    )
    rule_group.add_argument(
        "--full",
        action="store_true",
        help="Apply the full canonicalization: {}.".format(", ".join(FULL_RULE_ORDER)),
    )

    parser.add_argument(
        "--text",
        action="store_true",
        help="Treat the input as plain text and wrap it into <p> paragraphs first.",
    )

    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the result to this file instead of stdout.",
    )

    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="List the registered typography rules and exit.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the fermento-typography console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_rules:
        _list_rules()
        return

    if not args.input:
        parser.error("the following arguments are required: input")

    try:
        pipeline = TypographyPipeline(_resolve_rule_keys(args))
    except ValueError as e:
        _fail(str(e))

    document = _read_input(args.input)
    if args.text:
        document = text_to_html(document)

    result = pipeline.apply(document) or ""

    if args.output:
        output_path = Path(args.output)
        if not output_path.parent.is_dir():
            _fail("Output directory does not exist: {}".format(output_path.parent))
        output_path.write_text(result, encoding="utf-8")
        _status("Applied {} to {} -> {}".format(
            ", ".join(pipeline.rule_keys) or "no rules", args.input, output_path
        ))
    else:
        sys.stdout.write(result)
        if result and not result.endswith("\n"):
            sys.stdout.write("\n")


if __name__ == "__main__":
    main()
