"""
Acceptance test fixtures — PostgreSQL testcontainer for end-to-end tests.

Same container image and truncation pattern as the integration tests, but
session-scoped separately so the acceptance suite can run on its own.
"""

from __future__ import annotations

from collections.abc import Iterator

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

TRUNCATE_ALL = "TRUNCATE certificate_requests, approved_certificates;"


@pytest.fixture(scope="session")
def acceptance_pg() -> Iterator[PostgresContainer]:
    """Start a PostgreSQL container for the acceptance test session."""
    with PostgresContainer("postgres:16-alpine") as pg:
        yield pg


@pytest.fixture()
def acceptance_dsn(acceptance_pg: PostgresContainer) -> str:
    """Return a psycopg-compatible DSN; tables are truncated when they already exist."""
    connection_url = acceptance_pg.get_connection_url().replace("postgresql+psycopg2", "postgresql")
    with psycopg.connect(connection_url) as conn:
        exists = conn.execute("SELECT to_regclass('certificate_requests')").fetchone()
        if exists and exists[0]:
            conn.execute(TRUNCATE_ALL)
        conn.commit()
    return connection_url
