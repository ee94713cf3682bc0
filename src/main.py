# src/main.py — v2
"""CLI entry point — extract, map, apply commands.

Usage:
    planpulse extract <ocr_text.txt> [options]
    planpulse map <extraction.json> <snapshot.json> [options]
    planpulse apply <mapping.json> <extraction.json> <snapshot.json> [options]

Every command writes JSON to stdout, or to the file given with -o. Logs go
to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path

from pydantic import BaseModel, ValidationError

from planpulse.config.settings import ConfigurationError, Settings
from planpulse.logging.context import clear_context, set_document_context
from planpulse.logging.logger import setup_logging
from planpulse.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = Settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    try:
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except ValidationError as exc:
        logger.error("Invalid input document: %s", exc, exc_info=args.verbose)
        return 1
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1
    finally:
        clear_context()


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="planpulse",
        description=f"planpulse v{__version__} — Steering-committee report to planning updates",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- extract ---
    p_extract = subparsers.add_parser(
        "extract", help="Extract entities from OCR text",
    )
    p_extract.add_argument("text_file", type=Path, help="Path to OCR text")
    p_extract.add_argument(
        "--mode", choices=("quick", "comprehensive"), default=None,
        help="Extraction mode (default: PLANPULSE_EXTRACTION_MODE)",
    )
    p_extract.add_argument(
        "--threshold", type=float, default=None,
        help="Minimum entity confidence (default: PLANPULSE_EXTRACTION_CONFIDENCE_THRESHOLD)",
    )
    p_extract.add_argument(
        "--template", default=None,
        help="Extraction template id (default: PLANPULSE_EXTRACTION_TEMPLATE)",
    )
    _add_output(p_extract)
    p_extract.set_defaults(func=_cmd_extract)

    # --- map ---
    p_map = subparsers.add_parser(
        "map", help="Map extracted entities to existing planning records",
    )
    p_map.add_argument("extraction", type=Path, help="Extraction JSON")
    p_map.add_argument("snapshot", type=Path, help="Planning snapshot JSON")
    _add_output(p_map)
    p_map.set_defaults(func=_cmd_map)

    # --- apply ---
    p_apply = subparsers.add_parser(
        "apply", help="Build the context update plan from a mapping result",
    )
    p_apply.add_argument("mapping", type=Path, help="Mapping result JSON")
    p_apply.add_argument("extraction", type=Path, help="Extraction JSON")
    p_apply.add_argument("snapshot", type=Path, help="Planning snapshot JSON")
    _add_output(p_apply)
    p_apply.set_defaults(func=_cmd_apply)

    return parser


def _add_output(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write JSON here instead of stdout",
    )


def _cmd_extract(args: argparse.Namespace, settings: Settings) -> int:
    """Extract entities from one OCR text file."""
    from planpulse.api.facade import extract_entities_from_text
    from planpulse.extraction.entity_extractor import default_options
    from planpulse.extraction.models import ProcessingOptions

    text_file: Path = args.text_file
    if not text_file.is_file():
        logger.error("File not found: %s", text_file)
        return 1

    _set_document(text_file)
    options = default_options(settings)
    overrides = {
        "extraction_mode": args.mode,
        "confidence_threshold": args.threshold,
        "template_id": args.template,
    }
    options = ProcessingOptions(
        **{**options.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
    )

    logger.info("Extracting %s (%s mode)", text_file.name, options.extraction_mode)
    result = extract_entities_from_text(text_file.read_text(encoding="utf-8"), options)
    _write_json(result, args.output)
    return 0


def _cmd_map(args: argparse.Namespace, settings: Settings) -> int:
    """Map an extraction onto a planning snapshot."""
    from planpulse.api.facade import map_extracted_entities_to_existing
    from planpulse.core.models import OCRExtractionResult, PlanningSnapshot

    _set_document(args.extraction)
    extraction = _read_model(args.extraction, OCRExtractionResult)
    snapshot = _read_model(args.snapshot, PlanningSnapshot)

    result = map_extracted_entities_to_existing(extraction, snapshot, settings)
    for action in result.recommendations.suggested_actions:
        logger.info("Suggested: %s", action)
    _write_json(result, args.output)
    return 0


def _cmd_apply(args: argparse.Namespace, settings: Settings) -> int:
    """Turn a reviewed mapping result into updated planning collections."""
    from planpulse.api.facade import generate_context_updates
    from planpulse.core.models import (
        EntityMappingResult,
        OCRExtractionResult,
        PlanningSnapshot,
    )

    _set_document(args.extraction)
    mapping = _read_model(args.mapping, EntityMappingResult)
    extraction = _read_model(args.extraction, OCRExtractionResult)
    snapshot = _read_model(args.snapshot, PlanningSnapshot)

    plan = generate_context_updates(mapping, extraction, snapshot, settings)
    _write_json(plan, args.output)
    return 0


def _read_model(path: Path, model: type[BaseModel]) -> BaseModel:
    """Load and validate a JSON document. Raises ValidationError if invalid."""
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return model.model_validate_json(path.read_text(encoding="utf-8"))


def _write_json(result: BaseModel, output: Path | None) -> None:
    payload = result.model_dump_json(indent=2)
    if output is None:
        sys.stdout.write(payload + "\n")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload + "\n", encoding="utf-8")
    logger.info("Wrote %s", output)


def _set_document(path: Path) -> None:
    set_document_context(path.stem, session_id=uuid.uuid4().hex[:12])


if __name__ == "__main__":
    sys.exit(main())
