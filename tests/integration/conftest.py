import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from rentroll.config.settings import Settings
from rentroll.database.connection import close_pool, get_connection, init_pool

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "rentroll" / "database" / "schema.sql"

# Minimal copies of the portfolio tables the worker reads.
PORTFOLIO_DDL = """
CREATE TABLE IF NOT EXISTS rent_roll_unit (
    unit_id        SERIAL PRIMARY KEY,
    "assetId"      TEXT,
    property_name  TEXT,
    unit_address   TEXT,
    unit_zipcode   TEXT,
    unit_floor     TEXT,
    unit_door      TEXT,
    size_sqm       NUMERIC,
    tenant_name1   TEXT,
    updated_at     TIMESTAMPTZ DEFAULT NOW()
);
CREATE TABLE IF NOT EXISTS bbr_data (
    id              SERIAL PRIMARY KEY,
    address         TEXT,
    zip_code        TEXT,
    property_value  NUMERIC,
    building_year   INTEGER,
    total_area      NUMERIC,
    last_updated    TIMESTAMPTZ
);
CREATE TABLE IF NOT EXISTS ois_data (
    id              SERIAL PRIMARY KEY,
    address         TEXT,
    zip_code        TEXT,
    property_value  NUMERIC,
    last_updated    TIMESTAMPTZ
);
CREATE TABLE IF NOT EXISTS ejf_data (
    id              SERIAL PRIMARY KEY,
    address         TEXT,
    zip_code        TEXT,
    property_value  NUMERIC,
    property_tax    NUMERIC,
    year            INTEGER
);
"""


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "rentroll_test")
    return Settings(worker_concurrency=4)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
            conn.execute(PORTFOLIO_DDL)
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at a test database")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def clean_jobs(db_conn: psycopg.Connection[Any]) -> None:
    db_conn.execute("TRUNCATE pdf_jobs CASCADE")
    db_conn.commit()


@pytest.fixture
def asset_id(db_conn: psycopg.Connection[Any]) -> Generator[str, None, None]:
    """Unique asset id; its portfolio rows are removed afterwards."""
    value = f"test-{uuid.uuid4().hex[:8]}"
    yield value
    db_conn.execute('DELETE FROM rent_roll_unit WHERE "assetId" = %s', (value,))
    db_conn.commit()


@pytest.fixture
def registry_address(db_conn: psycopg.Connection[Any]) -> Generator[str, None, None]:
    """Unique street name; its registry rows are removed afterwards."""
    value = f"Testvej {uuid.uuid4().hex[:6]}"
    yield value
    for table in ("bbr_data", "ois_data", "ejf_data"):
        db_conn.execute(f"DELETE FROM {table} WHERE address LIKE %s", (f"{value}%",))
    db_conn.commit()
