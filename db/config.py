"""
Environment-driven settings for the shop cache database.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")

_DRIVER_PREFIXES = {
    "postgres://": "postgresql+psycopg://",
    "postgresql://": "postgresql+psycopg://",
}


def _iter_env_pairs(path: Path) -> Iterator[tuple[str, str]]:
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            yield key, value.strip().strip('"').strip("'")


def load_env_files() -> None:
    """
    Copy KEY=VALUE pairs from the project's env files into ``os.environ``.

    Variables already set in the process win over file values.
    """

    for filename in ENV_FILES:
        path = PROJECT_ROOT / filename
        if path.is_file():
            for key, value in _iter_env_pairs(path):
                os.environ.setdefault(key, value)


def normalize_postgres_url(url: str) -> str:
    """
    Point bare postgres URLs at the psycopg driver.
    """

    for prefix, replacement in _DRIVER_PREFIXES.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def resolve_database_url() -> str | None:
    """
    Return the cache database URL from ``DATABASE_URL``.

    None means no database is configured and searches run uncached.
    """

    load_env_files()
    url = os.getenv("DATABASE_URL", "").strip()
    return normalize_postgres_url(url) if url else None
