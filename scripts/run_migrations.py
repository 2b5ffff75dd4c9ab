"""Bring the content schema up to date before the API starts.

Deploys run this once per release: wait for the database, apply Alembic
revisions, confirm the assessment tables exist and optionally load the packaged
content into an empty database.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Iterable, List, Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

LOGGER = logging.getLogger("luxlibris.migrations")
PROJECT_ROOT = Path(__file__).resolve().parent.parent
ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"
URL_PLACEHOLDER = "%(LUX_DATABASE_URL)s"
CONTENT_TABLES = (
    "assessments",
    "modifier_content",
    "student_assessment_results",
    "persistence_audit_events",
)
SEEDED_KINDS = ("saint_quiz", "nominee_quiz", "reading_dna")


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw else default


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply Lux Libris schema migrations.")
    parser.add_argument("--revision", default=os.getenv("LUX_DB_MIGRATION_REVISION", "head"))
    parser.add_argument(
        "--timeout",
        type=int,
        default=int(_env_number("LUX_DB_MIGRATION_TIMEOUT", 60)),
        help="Seconds to wait for the database before giving up.",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=_env_number("LUX_DB_MIGRATION_POLL_INTERVAL", 3),
        help="Seconds between readiness probes.",
    )
    parser.add_argument("--config", default=str(ALEMBIC_INI), help="Path to alembic.ini.")
    parser.add_argument(
        "--seed-if-empty",
        action="store_true",
        help="Load the packaged quizzes and modifier tables when no content exists yet.",
    )
    return parser.parse_args(argv)


def get_alembic_config(config_path: str) -> Config:
    config = Config(config_path)
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return config


def resolve_database_url(config: Config) -> str:
    """The ini file only names ``LUX_DATABASE_URL``; substitute the real value."""
    url = config.get_main_option("sqlalchemy.url")
    if url and url != URL_PLACEHOLDER:
        return url
    env_url = os.getenv("LUX_DATABASE_URL")
    if not env_url:
        raise RuntimeError("LUX_DATABASE_URL must be set before running migrations.")
    config.set_main_option("sqlalchemy.url", env_url)
    return env_url


def wait_for_database(database_url: str, *, timeout: int, poll_interval: float) -> None:
    engine = create_engine(database_url, future=True, pool_pre_ping=True)
    deadline = time.time() + timeout
    attempts = 0
    last_error: Optional[Exception] = None
    try:
        while True:
            attempts += 1
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
            except OperationalError as exc:
                last_error = exc
                LOGGER.warning("Database not reachable (attempt %d): %s", attempts, exc)
            except SQLAlchemyError as exc:
                last_error = exc
                LOGGER.error("Readiness probe failed permanently: %s", exc)
                break
            else:
                LOGGER.info("Database reachable after %d attempt(s)", attempts)
                return
            if time.time() >= deadline:
                break
            time.sleep(poll_interval)
    finally:
        engine.dispose()
    raise RuntimeError(f"Database did not become ready within {timeout}s.") from last_error


def missing_tables(database_url: str, expected: Iterable[str] = CONTENT_TABLES) -> List[str]:
    engine = create_engine(database_url, future=True)
    try:
        present = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    return [name for name in expected if name not in present]


def seed_empty_content() -> List[str]:
    """Load packaged content for every kind that has no assessments yet."""
    from luxlibris.assessment_store import content_store
    from luxlibris.content_admin import seed_assessments, seed_modifier_content

    seeded: List[str] = []
    for kind in SEEDED_KINDS:
        if content_store.count(kind) == 0:
            seed_assessments(kind, actor="migrations")
            seeded.append(kind)
    if not content_store.modifier_table("student"):
        seed_modifier_content(actor="migrations")
        seeded.append("modifiers")
    return seeded


def run_migrations(
    revision: str,
    *,
    timeout: int,
    poll_interval: float,
    config: Optional[Config] = None,
    seed_if_empty: bool = False,
) -> None:
    config = config or get_alembic_config(str(ALEMBIC_INI))
    database_url = resolve_database_url(config)
    wait_for_database(database_url, timeout=timeout, poll_interval=poll_interval)

    LOGGER.info("Upgrading schema to %s", revision)
    command.upgrade(config, revision)

    if revision == "head":
        missing = missing_tables(database_url)
        if missing:
            raise RuntimeError(f"Schema is missing tables after upgrade: {', '.join(missing)}")
    if seed_if_empty:
        seeded = seed_empty_content()
        LOGGER.info("Seeded packaged content for: %s", ", ".join(seeded) or "nothing")
    LOGGER.info("Schema is up to date.")


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("LUX_DB_MIGRATION_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    args = parse_args(argv)
    try:
        run_migrations(
            args.revision,
            timeout=args.timeout,
            poll_interval=args.poll_interval,
            config=get_alembic_config(args.config),
            seed_if_empty=args.seed_if_empty,
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Migration run failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
