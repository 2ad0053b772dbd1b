"""tmplconv CLI - Command-line interface for template conversion.

This module provides command-line tools for:
- Converting a template envelope into pipeline configuration
- Managing templates in the SQLite template store

Example:
    # Register a template for a namespace
    tmplconv template add greet.yml ./templates/greet.yml --namespace octocat

    # Convert a repository configuration
    tmplconv convert .drone.yml --namespace octocat --branch main

    # List templates
    tmplconv template list --namespace octocat
"""

import argparse
import asyncio
import json
import logging
import sqlite3
import sys
from pathlib import Path

from tmplconv import __version__
from tmplconv.config import ConverterConfig, load_config
from tmplconv.converter.template import TemplateConverter
from tmplconv.core.errors import ConfigError, ConverterError
from tmplconv.core.types import Build, ConfigFile, ConvertArgs, Repository, Template
from tmplconv.persistence.store import NoRowsError, SQLiteTemplateStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_APPLICABLE = 2


def _open_store(args: argparse.Namespace, config: ConverterConfig) -> SQLiteTemplateStore | None:
    """Open the SQLite template store, reporting failures on stderr."""
    path = args.db or config.database_path
    try:
        return SQLiteTemplateStore(path)
    except (OSError, sqlite3.Error) as e:
        print(f"error: cannot open template store {path}: {e}", file=sys.stderr)
        return None


def _parse_params(pairs: list[str] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            msg = f"expected KEY=VALUE, got '{pair}'"
            raise argparse.ArgumentTypeError(msg)
        key, value = pair.split("=", 1)
        params[key] = value
    return params


# =============================================================================
# Convert Command
# =============================================================================


def convert(args: argparse.Namespace, config: ConverterConfig) -> int:
    """Convert a configuration file and print the result.

    Args:
        args: Parsed command-line arguments
        config: Converter configuration

    Returns:
        Exit code (0 rendered, 1 failure, 2 not a template envelope)
    """
    path = Path(args.file)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: cannot read {path}: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        params = _parse_params(args.param)
    except argparse.ArgumentTypeError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    convert_args = ConvertArgs(
        repo=Repository(
            namespace=args.namespace,
            name=args.repo or "",
            config=args.config_path or path.name,
            branch=args.branch or "",
        ),
        config=ConfigFile(data=text),
        build=Build(
            event=args.event or "",
            branch=args.branch or "",
            ref=args.ref or "",
            commit=args.commit or "",
            params=params,
        ),
    )

    store = _open_store(args, config)
    if store is None:
        return EXIT_ERROR

    converter = TemplateConverter(store, config=config)
    try:
        result = asyncio.run(converter.convert(convert_args))
    except ConverterError as e:
        print(f"error: {e.message}", file=sys.stderr)
        if args.verbose and e.details:
            print(json.dumps(e.details, indent=2, default=str), file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        # Store and engine failures carry their own diagnostics
        if args.verbose:
            logger.exception("Conversion failed")
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if result is None:
        print(f"{path}: not a template envelope, nothing to render", file=sys.stderr)
        return EXIT_NOT_APPLICABLE

    sys.stdout.write(result.data)
    return EXIT_OK


# =============================================================================
# Template Commands
# =============================================================================


def template_add(args: argparse.Namespace, config: ConverterConfig) -> int:
    """Create or replace a template from a file."""
    try:
        data = Path(args.file).read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: cannot read {args.file}: {e}", file=sys.stderr)
        return EXIT_ERROR

    store = _open_store(args, config)
    if store is None:
        return EXIT_ERROR

    template = Template(name=args.name, data=data, namespace=args.namespace)
    try:
        if args.update:
            asyncio.run(store.update(template))
        else:
            asyncio.run(store.create(template))
    except sqlite3.IntegrityError:
        print(
            f"error: template {args.name} already exists in {args.namespace} (use --update)",
            file=sys.stderr,
        )
        return EXIT_ERROR
    except NoRowsError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    logger.info("Stored template %s/%s", args.namespace, args.name)
    return EXIT_OK


def template_list(args: argparse.Namespace, config: ConverterConfig) -> int:
    """List stored templates."""
    store = _open_store(args, config)
    if store is None:
        return EXIT_ERROR
    if args.namespace:
        templates = asyncio.run(store.list_namespace(args.namespace))
    else:
        templates = asyncio.run(store.list_all())

    for template in templates:
        updated = template.updated.isoformat() if template.updated else ""
        print(f"{template.namespace}\t{template.name}\t{updated}")
    return EXIT_OK


def template_show(args: argparse.Namespace, config: ConverterConfig) -> int:
    """Print the source of one template."""
    store = _open_store(args, config)
    if store is None:
        return EXIT_ERROR
    try:
        template = asyncio.run(store.find_name(args.name, args.namespace))
    except NoRowsError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    sys.stdout.write(template.data)
    return EXIT_OK


def template_delete(args: argparse.Namespace, config: ConverterConfig) -> int:
    """Delete one template."""
    store = _open_store(args, config)
    if store is None:
        return EXIT_ERROR
    try:
        asyncio.run(store.delete(Template(name=args.name, data="", namespace=args.namespace)))
    except NoRowsError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="tmplconv",
        description="tmplconv - render CI template envelopes into pipeline configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Register a template
  tmplconv template add greet.yml ./greet.yml --namespace octocat

  # Render an envelope
  tmplconv convert .drone.yml --namespace octocat
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (default: from configuration, INFO)",
    )
    parser.add_argument("--config", help="YAML configuration file (default: $TMPLCONV_CONFIG)")
    parser.add_argument("--db", help="SQLite template store (overrides database_path)")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -------------------------------------------------------------------------
    # Convert
    # -------------------------------------------------------------------------
    convert_parser = subparsers.add_parser("convert", help="Render a template envelope")
    convert_parser.add_argument("file", help="Configuration file to convert")
    convert_parser.add_argument("--namespace", required=True, help="Repository namespace")
    convert_parser.add_argument("--repo", help="Repository name")
    convert_parser.add_argument(
        "--config-path", help="Declared repository config path (default: file name)"
    )
    convert_parser.add_argument("--branch", help="Build branch")
    convert_parser.add_argument("--event", help="Build event (push, pull_request, tag, ...)")
    convert_parser.add_argument("--ref", help="Build git ref")
    convert_parser.add_argument("--commit", help="Build commit SHA")
    convert_parser.add_argument(
        "--param", action="append", metavar="KEY=VALUE", help="Build parameter (repeatable)"
    )
    convert_parser.set_defaults(func=convert)

    # -------------------------------------------------------------------------
    # Template store
    # -------------------------------------------------------------------------
    template_parser = subparsers.add_parser("template", help="Template store commands")
    template_subparsers = template_parser.add_subparsers(
        dest="template_command", help="Template command"
    )

    add_parser = template_subparsers.add_parser("add", help="Store a template")
    add_parser.add_argument("name", help="Template name, including extension")
    add_parser.add_argument("file", help="File holding the template source")
    add_parser.add_argument("--namespace", required=True, help="Owning namespace")
    add_parser.add_argument(
        "--update", action="store_true", help="Replace an existing template"
    )
    add_parser.set_defaults(func=template_add)

    list_parser = template_subparsers.add_parser("list", help="List templates")
    list_parser.add_argument("--namespace", help="Only list this namespace")
    list_parser.set_defaults(func=template_list)

    show_parser = template_subparsers.add_parser("show", help="Print a template")
    show_parser.add_argument("name", help="Template name")
    show_parser.add_argument("--namespace", required=True, help="Owning namespace")
    show_parser.set_defaults(func=template_show)

    delete_parser = template_subparsers.add_parser("delete", help="Delete a template")
    delete_parser.add_argument("name", help="Template name")
    delete_parser.add_argument("--namespace", required=True, help="Owning namespace")
    delete_parser.set_defaults(func=template_delete)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    logging.basicConfig(
        level=getattr(logging, args.log_level or config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if hasattr(args, "func"):
        return args.func(args, config)

    # Subcommand not provided
    if args.command == "template":
        parser.parse_args(["template", "--help"])
    else:
        parser.print_help()
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
