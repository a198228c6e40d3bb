"""End-to-end checks against live PostgreSQL and MySQL servers.

Set DBREST_TEST_POSTGRES_URL and/or DBREST_TEST_MYSQL_URL (and
RUN_INTEGRATION_TESTS=1) to run them; the tables below are dropped and
recreated in the target database.
"""

import asyncio
import os

import pytest
from fastapi.testclient import TestClient

from dal.database import Database
from dal.schema_registry import reset_table_registry
from rest_gateway.app import create_app
from rest_gateway.config import GatewaySettings

DDL = {
    "postgres": [
        "DROP TABLE IF EXISTS dbrest_invoices",
        "DROP TABLE IF EXISTS dbrest_customers",
        """
        CREATE TABLE dbrest_customers (
            "CustomerId" SERIAL PRIMARY KEY,
            "Email" VARCHAR(60) NOT NULL UNIQUE,
            "Active" BOOLEAN NOT NULL
        )
        """,
        """
        CREATE TABLE dbrest_invoices (
            "InvoiceId" SERIAL PRIMARY KEY,
            "CustomerId" INTEGER NOT NULL REFERENCES dbrest_customers ("CustomerId"),
            "InvoiceDate" TIMESTAMP NOT NULL,
            "Total" NUMERIC(10, 2) NOT NULL,
            "Data" JSONB NOT NULL
        )
        """,
    ],
    "mysql": [
        "DROP TABLE IF EXISTS dbrest_invoices",
        "DROP TABLE IF EXISTS dbrest_customers",
        """
        CREATE TABLE dbrest_customers (
            CustomerId INT AUTO_INCREMENT PRIMARY KEY,
            Email VARCHAR(60) NOT NULL UNIQUE,
            Active TINYINT(1) NOT NULL
        ) ENGINE=InnoDB
        """,
        """
        CREATE TABLE dbrest_invoices (
            InvoiceId INT AUTO_INCREMENT PRIMARY KEY,
            CustomerId INT NOT NULL,
            InvoiceDate DATETIME NOT NULL,
            Total DECIMAL(10, 2) NOT NULL,
            Data JSON NOT NULL,
            FOREIGN KEY (CustomerId) REFERENCES dbrest_customers (CustomerId)
        ) ENGINE=InnoDB
        """,
    ],
}

LIVE_URLS = [
    pytest.param("DBREST_TEST_POSTGRES_URL", "postgres", id="postgres"),
    pytest.param("DBREST_TEST_MYSQL_URL", "mysql", id="mysql"),
]


async def _prepare(url: str, provider: str) -> None:
    await Database.init(url)
    try:
        async with Database.get_connection() as conn:
            for statement in DDL[provider]:
                await conn.execute(statement)
    finally:
        await Database.close()


@pytest.mark.requires_db
@pytest.mark.parametrize("env_name,provider", LIVE_URLS)
def test_crud_against_live_database(env_name, provider):
    """Bulk create, filtered listing, update, delete and conflicts on a real server."""
    url = os.getenv(env_name)
    if not url:
        pytest.skip(f"{env_name} not set")

    asyncio.run(_prepare(url, provider))
    reset_table_registry()

    app = create_app(GatewaySettings(database_url=url))
    with TestClient(app) as client:
        created = client.post("/dbrest_customers", json={"Email": "a@example.com", "Active": True})
        assert created.status_code == 201
        customer_id = created.json()["data"]["CustomerId"]

        bulk = client.post(
            "/dbrest_invoices",
            json=[
                {
                    "CustomerId": customer_id,
                    "InvoiceDate": "2023-01-02 03:04:05",
                    "Total": 10.5,
                    "Data": '{"n": 1}',
                },
                {
                    "CustomerId": customer_id,
                    "InvoiceDate": "2023-01-03",
                    "Total": 99,
                    "Data": {"n": 2},
                },
            ],
        )
        assert bulk.status_code == 201
        first_id, second_id = [row["InvoiceId"] for row in bulk.json()["data"]]
        assert second_id == first_id + 1

        fetched = client.get(f"/dbrest_invoices/{first_id}").json()["data"]
        assert fetched["Data"] == {"n": 1}
        assert fetched["InvoiceDate"] == "2023-01-02 03:04:05"

        listing = client.get(
            "/dbrest_invoices", params={"CustomerId": customer_id, "_sort": "-Total", "_limit": 1}
        ).json()
        assert listing["total"] == 2
        assert listing["data"][0]["InvoiceId"] == second_id

        like = client.get("/dbrest_invoices", params={"Total[like]": "99%"}).json()
        assert [row["InvoiceId"] for row in like["data"]] == [second_id]

        updated = client.put(f"/dbrest_customers/{customer_id}", json={"Active": False})
        assert updated.status_code == 200
        assert updated.json()["data"]["Active"] is False

        duplicate = client.post("/dbrest_customers", json={"Email": "a@example.com", "Active": 1})
        assert duplicate.status_code == 409

        assert client.delete(f"/dbrest_invoices/{second_id}").status_code == 204
        assert client.delete(f"/dbrest_invoices/{second_id}").status_code == 404

    reset_table_registry()
