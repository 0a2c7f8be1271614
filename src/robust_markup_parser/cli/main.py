"""Main CLI entry point for the robust-markup command-line tool.

Provides commands to list the tokens of a document, print its tree in the
indented debug format, and parse files into summaries with diagnostics.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from robust_markup_parser import __version__
from robust_markup_parser.api import MarkupParser, parse_file
from robust_markup_parser.shared import (
    CloseTagPolicy,
    ConfigError,
    ParserConfig,
    get_logger,
)
from robust_markup_parser.tree import ParseResult, render_tokens, render_tree

MAX_TEXT_DIAGNOSTICS = 5  # Per file, in text output


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="robust-markup",
        description="Forgiving markup tokenizer and tree builder"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Tokens command
    tokens_parser = subparsers.add_parser("tokens", help="List the tokens of a document")
    _add_input_arguments(tokens_parser)

    # Tree command
    tree_parser = subparsers.add_parser("tree", help="Print the document tree")
    _add_input_arguments(tree_parser)

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse", help="Parse files and report diagnostics"
    )
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Markup files to parse"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON parser configuration file"
    )
    parser.add_argument(
        "--policy",
        choices=[policy.name.lower() for policy in CloseTagPolicy],
        help="Close-tag policy (overrides the configuration file)"
    )
    parser.add_argument(
        "--encoding",
        default="utf-8",
        help="Encoding of input files (default: utf-8)"
    )

    return parser


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "path",
        nargs="?",
        type=Path,
        help="Markup file to read"
    )
    source.add_argument(
        "--string", "-s",
        dest="text",
        help="Markup given directly on the command line"
    )


def load_config(args: argparse.Namespace) -> ParserConfig:
    """Build the parser configuration from --config and --policy.

    Raises:
        ConfigError: If the configuration file cannot be read or is invalid
    """
    config = ParserConfig.lenient()
    if args.config is not None:
        try:
            config = ParserConfig.from_json(args.config.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Could not read config file {args.config}: {e}") from e

    if args.policy:
        config = config.override(
            tree__close_tag_policy=CloseTagPolicy[args.policy.upper()]
        )
    return config


def configure_logging(args: argparse.Namespace, config: ParserConfig) -> None:
    """Set up logging verbosity."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = getattr(logging, config.global_.logging_level)
    logging.basicConfig(level=level)


def result_to_record(path: Path, result: ParseResult) -> Dict[str, Any]:
    """Summarize a file's ParseResult for output."""
    return {
        "file": str(path),
        "success": result.success,
        "element_count": result.element_count,
        "token_count": len(result.tokens),
        "open_elements": list(result.open_elements),
        "processing_time_ms": result.performance.processing_time_ms,
        "diagnostics": [diag.to_dict() for diag in result.all_diagnostics],
    }


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing results for output."""
    if format_type == "text":
        if not results:
            return "No results to display."

        lines = []
        successful = sum(1 for r in results if r.get("success", False))

        lines.append(f"Processed {len(results)} files, {successful} successful")
        lines.append("-" * 60)

        for result in results:
            status = "✓" if result.get("success", False) else "✗"
            diagnostics = result.get("diagnostics", [])

            lines.append(f"{status} {result['file']}")
            lines.append(
                f"   Elements: {result.get('element_count', 0)}, "
                f"Diagnostics: {len(diagnostics)}, "
                f"Time: {result.get('processing_time_ms', 0):.1f}ms"
            )
            if result.get("open_elements"):
                lines.append(f"   Open: {', '.join(result['open_elements'])}")

            for diag in diagnostics[:MAX_TEXT_DIAGNOSTICS]:
                lines.append(f"   {diag['severity']}: {diag['message']}")
            if len(diagnostics) > MAX_TEXT_DIAGNOSTICS:
                lines.append(
                    f"   ... and {len(diagnostics) - MAX_TEXT_DIAGNOSTICS} more"
                )

            lines.append("")

        return "\n".join(lines)

    return json.dumps(results, indent=2)


def _read_source(args: argparse.Namespace) -> Optional[str]:
    """Get markup from --string or the input file; None if it cannot be read."""
    if args.text is not None:
        return args.text
    try:
        return args.path.read_text(encoding=args.encoding, errors="replace")
    except (OSError, LookupError) as e:
        print(f"Could not read {args.path}: {e}", file=sys.stderr)
        return None


def cmd_tokens(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle tokens command."""
    markup = _read_source(args)
    if markup is None:
        return 1

    result = MarkupParser(config).tokenize(markup)
    if result.tokens:
        print(render_tokens(result.tokens))
    return 0


def cmd_tree(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle tree command."""
    markup = _read_source(args)
    if markup is None:
        return 1

    result = MarkupParser(config).parse(markup)
    print(render_tree(result.tree))
    return 0


def cmd_parse(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle parse command."""
    logger = get_logger(__name__, None, "cli")
    results = []
    for path in args.paths:
        result = parse_file(path, encoding=args.encoding, config=config)
        logger.debug(
            "Parsed file",
            extra={"file": str(path), "success": result.success}
        )
        results.append(result_to_record(path, result))

    print(format_results(results, args.format))

    successful = sum(1 for r in results if r["success"])
    return 0 if results and successful == len(results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    configure_logging(args, config)

    commands = {
        "tokens": cmd_tokens,
        "tree": cmd_tree,
        "parse": cmd_parse,
    }

    try:
        return commands[args.command](args, config)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
