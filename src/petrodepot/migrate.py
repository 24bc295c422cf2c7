"""
PetroDepot Schema Migrations

Applies migrations/*.sql in file-name order. Each file runs in its own
transaction and is recorded in schema_migrations so it is applied once.
"""

import argparse
import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from petrodepot.database import close_pool, get_connection

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY = Path(__file__).resolve().parent / "migrations"

HISTORY_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    name TEXT PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""


def pending_migrations(directory: Path, applied: Iterable[str]) -> list[Path]:
    """SQL files in directory not yet recorded as applied, in name order."""
    if not directory.is_dir():
        raise FileNotFoundError(f"Migrations directory not found: {directory}")
    done = set(applied)
    return [path for path in sorted(directory.glob("*.sql")) if path.name not in done]


async def apply_migrations(directory: Path = DEFAULT_DIRECTORY) -> list[str]:
    """
    Apply every pending migration.

    Returns:
        Names of the files applied by this run
    """
    async with get_connection() as conn:
        await conn.execute(HISTORY_TABLE)
        rows = await conn.fetch("SELECT name FROM schema_migrations")
        pending = pending_migrations(directory, (row["name"] for row in rows))

        for path in pending:
            async with conn.transaction():
                # no bind arguments: asyncpg runs the whole script
                await conn.execute(path.read_text(encoding="utf-8"))
                await conn.execute(
                    "INSERT INTO schema_migrations (name) VALUES ($1)",
                    path.name
                )
            logger.info(f"Applied migration {path.name}")

    if not pending:
        logger.info("Schema is up to date")
    return [path.name for path in pending]


async def _run(directory: Path) -> None:
    try:
        await apply_migrations(directory)
    finally:
        await close_pool()


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply PetroDepot schema migrations")
    parser.add_argument(
        "--directory",
        type=Path,
        default=DEFAULT_DIRECTORY,
        help="Directory holding the *.sql migrations"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    asyncio.run(_run(args.directory))


if __name__ == "__main__":
    main()
