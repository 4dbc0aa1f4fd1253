"""Command-line interface for boardmill."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

import yaml

from boardmill import __version__
from boardmill.logging_config import get_logger

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bmill",
        description="Batch artboard generation: resize a source design into many target sizes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bmill -c job.yaml -d campaign.yaml                 Generate all sizes in place
  bmill -c job.yaml -d campaign.yaml -o out.yaml     Write the result elsewhere
  bmill -c job.yaml --validate                       Validate config only
  bmill -c job.yaml -d campaign.yaml --validate      Also check sources exist
  bmill -c job.yaml -d campaign.yaml --dry-run       Show the planned layout
  bmill -c job.yaml -d campaign.yaml --size "Story"  Generate a single size
  bmill -c job.yaml -d campaign.yaml --report r.yaml Write a result report
""",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version information and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to YAML job configuration file",
    )

    parser.add_argument(
        "-d",
        "--document",
        type=Path,
        help="Path to YAML document to generate into",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Where to save the resulting document (default: overwrite --document)",
    )

    parser.add_argument(
        "--sizes",
        type=Path,
        help="YAML list of sizes (overrides the sizes in the config)",
    )

    parser.add_argument(
        "--size",
        metavar="NAME",
        help="Generate only the named size, placed right of all existing artboards",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration (and sources, with --document) and exit",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be generated without changing the document",
    )

    parser.add_argument(
        "--report",
        type=Path,
        help="Write a YAML report of created, skipped and failed sizes",
    )

    # Logging options
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for verbose, -vv for debug)",
    )

    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress all output except errors",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write logs to file (includes all levels)",
    )

    return parser


def write_report(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
    logger.info("Report written to %s", path)


def cmd_validate(config, document_path: Path | None) -> int:
    """Validate a loaded configuration, optionally against a document."""
    from boardmill.validation import ValidationContext, validate_config

    context = None
    if document_path:
        from boardmill.host.memory import load_document

        doc = load_document(document_path)
        canvases = asyncio.run(doc.list_top_level_canvases())
        names = [c.name for c in canvases] + [str(c.id) for c in canvases]
        context = ValidationContext(canvas_names=names)

    result = validate_config(config, context)
    for error in result.errors:
        logger.error("  %s", error)
    for warning in result.warnings:
        logger.warning("  %s", warning)

    if not result.valid:
        logger.error("Validation failed with %d error(s)", len(result.errors))
        return 1

    configured = ", ".join(o.value for o in config.sources.configured()) or "none"
    logger.info("Configuration is valid")
    logger.info("  Sources: %s", configured)
    logger.info("  Sizes: %d", len(config.sizes))
    return 0


def cmd_dry_run(config, doc, report: Path | None) -> int:
    from boardmill.pipeline import plan_batch

    plan = asyncio.run(plan_batch(doc, config.sizes, config.sources, config.options))
    logger.info("[dry-run] Planned %d size(s):", len(plan))
    for item in plan:
        if item.position is not None:
            logger.info(
                "  %s %s: %.0fx%.0f at (%.0f, %.0f)",
                item.action.value,
                item.name,
                item.width,
                item.height,
                item.position.x,
                item.position.y,
            )
        else:
            logger.info("  %s %s: %s", item.action.value, item.name, item.reason)

    if report:
        write_report(report, {"dry_run": True, "planned": [p.to_dict() for p in plan]})
    return 0


def cmd_single(config, doc, name: str) -> int:
    from boardmill.pipeline import generate_single

    matches = [s for s in config.sizes if s.name == name]
    if not matches:
        logger.error("No size named '%s' in configuration", name)
        return 1

    result = asyncio.run(generate_single(doc, matches[0], config.sources, config.options))
    logger.info(
        "Created %s: %.0fx%.0f at (%.0f, %.0f)",
        result.name,
        result.width,
        result.height,
        result.position.x,
        result.position.y,
    )
    return 0


def cmd_generate(config, doc, report: Path | None) -> int:
    from boardmill.logging_config import progress_logger
    from boardmill.pipeline import generate_batch

    result = asyncio.run(
        generate_batch(
            doc,
            config.sizes,
            config.sources,
            config.options,
            on_progress=progress_logger(),
        )
    )

    for entry in result.failed:
        logger.error("%s failed during %s: %s", entry.name, entry.phase or "setup", entry.reason)
    logger.info("Done: %s", result.summary())

    if report:
        write_report(report, result.to_dict())
    return 0 if result.success else 1


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Setup logging based on CLI flags
    from boardmill.logging_config import setup_logging

    setup_logging(
        verbosity=parsed.verbose,
        quiet=parsed.quiet,
        log_file=parsed.log_file,
    )

    if parsed.version:
        logger.info("boardmill %s", __version__)
        return 0

    # Require config for other operations
    if not parsed.config:
        parser.print_help()
        return 1

    from boardmill.config import load_config, load_sizes
    from boardmill.exceptions import BoardMillError, ConfigError

    try:
        config = load_config(parsed.config)
        if parsed.sizes:
            config.sizes = load_sizes(parsed.sizes, config.options.print)

        if parsed.validate:
            return cmd_validate(config, parsed.document)

        if not parsed.document:
            logger.error("--document is required for generation")
            return 1

        from boardmill.host import get_host, save_document

        doc = get_host("memory", path=parsed.document)

        if parsed.dry_run:
            return cmd_dry_run(config, doc, parsed.report)

        if parsed.size:
            exit_code = cmd_single(config, doc, parsed.size)
        else:
            exit_code = cmd_generate(config, doc, parsed.report)

        output = parsed.output or parsed.document
        save_document(doc, output)
        logger.info("Document saved to %s", output)
        return exit_code
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        return 1
    except BoardMillError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
