"""
Command-line interface for graphgen.

Subcommands:
  generate  render the typed client (and CLI) for a Go package
  verify    compare freshly generated output with golden references
"""

import argparse
import sys
import tempfile
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .codegen import (
    ConfigError,
    GenerationResult,
    GeneratorConfig,
    GeneratorError,
    GoldenHarness,
    GoldenMismatchError,
    InferenceError,
    NoEntitiesError,
    ParseError,
    TemplateError,
    generate_package,
    load_config,
)
from .codegen.golden import DEFAULT_MAX_REPORTED
from .logging_config import configure_logging, get_logger

logger = get_logger(__name__)

# Initialize rich console
console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="graphgen",
        description="Generate typed modusGraph clients from tagged Go structs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  graphgen generate --pkg ./movies
  graphgen generate --pkg ./movies --cli-name film-db --with-validator
  graphgen verify --pkg ./movies --golden testdata/golden
  graphgen verify --pkg ./movies --golden testdata/golden --update
        """.strip(),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: GRAPHGEN_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    generate = subparsers.add_parser(
        "generate",
        help="Generate the typed client for a package",
        description="Parse a Go package, infer relationships and write the generated client",
    )
    _add_common_args(generate)
    generate.add_argument(
        "--output",
        metavar="DIR",
        help="Output directory (default: same as --pkg)",
    )
    generate.add_argument(
        "--cli-dir",
        metavar="DIR",
        help="Output directory for the CLI main.go (default: {output}/cmd/{package})",
    )
    generate.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Render entities with N threads (default: 1)",
    )
    generate.add_argument(
        "--dry-run",
        action="store_true",
        help="Render everything but write nothing; list the files instead",
    )
    generate.set_defaults(func=_handle_generate)

    verify = subparsers.add_parser(
        "verify",
        help="Compare generated output with golden references",
        description="Generate into a scratch directory and diff it against a golden tree",
    )
    _add_common_args(verify)
    verify.add_argument("--golden", metavar="DIR", required=True, help="Golden reference directory")
    verify.add_argument(
        "--update",
        action="store_true",
        help="Accept the current output as the new golden reference",
    )
    verify.add_argument(
        "--max-diffs",
        type=int,
        default=DEFAULT_MAX_REPORTED,
        metavar="N",
        help=f"Differing lines to show per file (default: {DEFAULT_MAX_REPORTED})",
    )
    verify.set_defaults(func=_handle_verify)

    return parser


def _add_common_args(parser: argparse.ArgumentParser):
    """Arguments shared by generate and verify."""
    parser.add_argument("--pkg", metavar="DIR", help="Target Go package directory (default: .)")
    parser.add_argument("--config", metavar="FILE", help="JSON configuration file")
    parser.add_argument(
        "--cli-name",
        metavar="NAME",
        help="Name of the generated CLI (default: package name)",
    )
    parser.add_argument(
        "--with-validator",
        action="store_true",
        default=None,
        help="Wire modusgraph.WithValidator into the generated CLI",
    )
    parser.add_argument(
        "--no-cli",
        dest="generate_cli",
        action="store_false",
        default=None,
        help="Do not generate the CLI entry point",
    )


def _build_config(args: argparse.Namespace, **overrides) -> GeneratorConfig:
    """Merge the config file and command-line flags into a GeneratorConfig."""
    custom = {
        "pkg_dir": args.pkg,
        "cli_name": args.cli_name,
        "with_validator": args.with_validator,
        "generate_cli": args.generate_cli,
        "output_dir": getattr(args, "output", None),
        "cli_dir": getattr(args, "cli_dir", None),
        "workers": getattr(args, "workers", None),
    }
    custom.update(overrides)
    return load_config(custom_config=custom, config_file=args.config)


def _handle_generate(args: argparse.Namespace) -> int:
    config = _build_config(args)
    result = generate_package(config, write=not args.dry_run)
    if not result.success:
        console.print(f"[red]✗ {escape(result.error_message)}[/red]")
        return EXIT_ERROR

    _print_summary(result)
    if args.dry_run:
        for artifact in result.artifacts:
            console.print(f"  [dim]would write[/dim] {artifact.path}")
    else:
        console.print(
            f"[green]✓[/green] Wrote {len(result.artifacts)} files into "
            f"{config.resolved_output_dir()}"
        )
    return EXIT_OK


def _handle_verify(args: argparse.Namespace) -> int:
    harness = GoldenHarness(args.golden, max_reported=args.max_diffs)

    with tempfile.TemporaryDirectory(prefix="graphgen-") as scratch:
        config = _build_config(args, output_dir=scratch)
        config.cli_dir = None
        result = generate_package(config)
        if not result.success:
            console.print(f"[red]✗ {escape(result.error_message)}[/red]")
            return EXIT_ERROR

        try:
            report = harness.verify(scratch, update=args.update)
        except GoldenMismatchError as e:
            console.print(f"[red]✗ Golden verification failed[/red]\n{escape(e.report.format())}")
            return EXIT_ERROR

    if args.update:
        console.print(f"[green]✓[/green] Updated {len(report.files)} golden files in {args.golden}")
    else:
        console.print(f"[green]✓[/green] {escape(report.format())}")
    return EXIT_OK


def _print_summary(result: GenerationResult):
    """Show the entities found and any warnings."""
    metadata = result.metadata
    table = Table(
        title=f"Package {metadata['package']} ({metadata['import_path']})",
        box=box.ROUNDED,
        title_style="bold cyan",
    )
    table.add_column("Entity", style="bold green", no_wrap=True)
    table.add_column("Fields", justify="right")
    table.add_column("Search", style="cyan")

    for entity in metadata["entities"]:
        table.add_row(entity["name"], str(entity["fields"]), entity["search_field"] or "[dim]-[/dim]")

    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point: returns a process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_USAGE

    try:
        return args.func(args)
    except NoEntitiesError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        return EXIT_USAGE
    except (ConfigError, ParseError, InferenceError, TemplateError, GeneratorError) as e:
        console.print(f"[red]✗ {type(e).__name__}:[/red] {escape(str(e))}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
