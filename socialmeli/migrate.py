"""Apply SQL migration files to a database connection."""

from __future__ import annotations

import os
from pathlib import Path


class MigrationError(Exception):
    """Raised when a migration cannot be read or executed."""


def _run_script(conn, sql: str) -> None:
    executescript = getattr(conn, "executescript", None)
    if executescript is not None:
        executescript(sql)
    else:
        conn.execute(sql)


def apply_migrations(conn, directory: str | os.PathLike) -> None:
    """Execute every .sql file in the directory, in alphabetical path order."""
    directory = Path(directory)
    try:
        entries = list(directory.iterdir())
    except OSError as exc:
        raise MigrationError(f"read migrations dir: {exc}") from exc

    files = sorted(
        (e for e in entries if not e.is_dir() and e.name.lower().endswith(".sql")),
        key=str,
    )
    for path in files:
        try:
            sql = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise MigrationError(f"read migration {path}: {exc}") from exc
        try:
            _run_script(conn, sql)
        except Exception as exc:
            raise MigrationError(f"exec migration {path}: {exc}") from exc