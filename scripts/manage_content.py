"""Seed, archive and report on yearly assessment content from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from luxlibris.assessment_models import AssessmentDefinition
from luxlibris.assessment_store import AssessmentNotFoundError, ContentConflictError
from luxlibris.content_admin import (
    archive_academic_year,
    content_stats,
    next_assessment_id,
    seed_assessments,
    seed_modifier_content,
)
from luxlibris.content_loader import ContentFormatError, normalise_many
from luxlibris.db.base import Base
from luxlibris.db.session import get_engine

logger = logging.getLogger("manage_content")

KINDS = ("saint_quiz", "nominee_quiz", "reading_dna")


def _ensure_database() -> None:
    engine = get_engine()
    Base.metadata.create_all(engine)


def _load_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def _definitions_from_file(kind: str, path: Optional[Path], academic_year: Optional[str]) -> Optional[List[AssessmentDefinition]]:
    if path is None:
        return None
    return normalise_many(kind, _load_json(path), academic_year=academic_year)


def cmd_seed(args: argparse.Namespace) -> int:
    definitions = _definitions_from_file(args.kind, args.file, args.academic_year)
    summary = seed_assessments(
        args.kind,
        definitions,
        academic_year=args.academic_year,
        overwrite=args.overwrite,
        actor=args.actor,
    )
    logger.info(
        "Seeded %d %s assessments for %s (replaced %d)",
        summary["added"],
        args.kind,
        summary["academic_year"],
        summary["removed"],
    )
    return 0


def cmd_seed_modifiers(args: argparse.Namespace) -> int:
    count = seed_modifier_content(actor=args.actor)
    logger.info("Stored %d modifier entries", count)
    return 0


def cmd_archive(args: argparse.Namespace) -> int:
    archived = archive_academic_year(args.kind, args.academic_year, actor=args.actor)
    logger.info("Archived %d %s assessments: %s", len(archived), args.kind, ", ".join(archived))
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    print(json.dumps(content_stats(args.kind, current_year=args.academic_year), indent=2, sort_keys=True))
    return 0


def cmd_next_id(args: argparse.Namespace) -> int:
    print(next_assessment_id(args.kind))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage Lux Libris assessment content.")
    parser.add_argument("--actor", default="cli", help="Name recorded in the audit log.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    seed = subparsers.add_parser("seed", help="Replace all content of one kind.")
    seed.add_argument("kind", choices=KINDS)
    seed.add_argument("--file", type=Path, help="JSON payload to load instead of the packaged content.")
    seed.add_argument("--academic-year", dest="academic_year")
    seed.add_argument("--overwrite", action="store_true", help="Replace existing content of this kind.")
    seed.set_defaults(handler=cmd_seed)

    modifiers = subparsers.add_parser("seed-modifiers", help="Store the packaged modifier tables.")
    modifiers.set_defaults(handler=cmd_seed_modifiers)

    archive = subparsers.add_parser("archive", help="Archive one academic year of content.")
    archive.add_argument("kind", choices=KINDS)
    archive.add_argument("--academic-year", dest="academic_year")
    archive.set_defaults(handler=cmd_archive)

    stats = subparsers.add_parser("stats", help="Print content statistics as JSON.")
    stats.add_argument("kind", choices=KINDS)
    stats.add_argument("--academic-year", dest="academic_year")
    stats.set_defaults(handler=cmd_stats)

    next_id = subparsers.add_parser("next-id", help="Print the next free assessment id.")
    next_id.add_argument("kind", choices=KINDS)
    next_id.set_defaults(handler=cmd_next_id)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = build_parser().parse_args(argv)
    _ensure_database()
    try:
        return args.handler(args)
    except ContentConflictError as exc:
        logger.error("%s", exc)
        return 2
    except (AssessmentNotFoundError, ContentFormatError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
