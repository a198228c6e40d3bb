"""Unit test environment helpers."""

import pytest


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Clear env vars that change gateway or DAL behavior."""
    for name in (
        "DATABASE_URL",
        "REST_QUERY_TIMEOUT_SECONDS",
        "REST_MAX_PAGE_SIZE",
        "REST_HOST",
        "REST_PORT",
        "LOG_LEVEL",
        "DAL_TRACE_QUERIES",
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        "DB_POOL_MAX_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Reset global Database and registry state after each test."""
    from dal.database import Database
    from dal.schema_registry import reset_table_registry

    original_target = Database._target
    original_query_target = Database._query_target
    original_provider = Database._query_target_provider
    original_capabilities = Database._query_target_capabilities
    original_introspector = Database._schema_introspector

    yield

    Database._target = original_target
    Database._query_target = original_query_target
    Database._query_target_provider = original_provider
    Database._query_target_capabilities = original_capabilities
    Database._schema_introspector = original_introspector
    reset_table_registry()


SAMPLE_DDL = """
CREATE TABLE "customers"
(
    [CustomerId] INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
    [FirstName] NVARCHAR(40) NOT NULL,
    [LastName] NVARCHAR(20) NOT NULL,
    [Email] NVARCHAR(60) NOT NULL UNIQUE,
    [Active] BOOL NOT NULL
);
CREATE TABLE "invoices"
(
    [InvoiceId] INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
    [CustomerId] INTEGER NOT NULL,
    [InvoiceDate] DATETIME NOT NULL,
    [BillingAddress] NVARCHAR(70),
    [Total] NUMERIC(10,2) NOT NULL,
    [Data] JSON NOT NULL,
    FOREIGN KEY ([CustomerId]) REFERENCES "customers" ([CustomerId])
        ON DELETE NO ACTION ON UPDATE NO ACTION
);
CREATE INDEX [IFK_InvoiceCustomerId] ON "invoices" ([CustomerId]);
CREATE TABLE "audit_log" ([Message] TEXT);
"""


@pytest.fixture
def sample_db_path(tmp_path):
    """SQLite file with customers, invoices and a keyless audit_log table."""
    import sqlite3

    path = tmp_path / "sample.db"
    conn = sqlite3.connect(path)
    conn.executescript(SAMPLE_DDL)
    conn.commit()
    conn.close()
    return str(path)
