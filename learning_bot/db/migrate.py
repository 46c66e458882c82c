from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from psycopg import connect

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"

_CREATE_LEDGER = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version VARCHAR(255) PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


def migration_files(migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
    files = sorted(
        path
        for path in migrations_dir.glob("*.sql")
        if path.is_file() and not path.name.endswith("_down.sql")
    )
    if not files:
        raise FileNotFoundError(f"No migration files found in: {migrations_dir}")
    return files


def pending_migrations(files: Iterable[Path], applied_versions: Iterable[str]) -> list[Path]:
    done = set(applied_versions)
    return [path for path in files if path.stem not in done]


def apply_migrations(database_url: str, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Runs every migration not yet recorded, each in its own transaction.

    Returns the versions applied by this call, oldest first.
    """
    files = migration_files(migrations_dir)
    applied: list[str] = []
    with connect(database_url) as conn:
        conn.execute(_CREATE_LEDGER)
        conn.commit()
        recorded = [row[0] for row in conn.execute("SELECT version FROM schema_migrations")]
        conn.commit()
        for path in pending_migrations(files, recorded):
            logger.info("Applying migration %s", path.stem)
            with conn.transaction():
                conn.execute(path.read_text(encoding="utf-8"))
                conn.execute(
                    "INSERT INTO schema_migrations (version) VALUES (%s)", (path.stem,)
                )
            applied.append(path.stem)
    return applied
