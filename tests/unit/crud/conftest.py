"""Table definitions shared by the CRUD engine tests."""

import pytest

from schema import ColumnDef, ColumnKind, ForeignKeyDef, TableDef


def make_invoices() -> TableDef:
    return TableDef(
        name="invoices",
        columns=(
            ColumnDef(
                name="InvoiceId",
                kind=ColumnKind.INTEGER,
                is_nullable=False,
                is_primary_key=True,
                is_autoincrement=True,
            ),
            ColumnDef(name="CustomerId", kind=ColumnKind.INTEGER, is_nullable=False),
            ColumnDef(name="InvoiceDate", kind=ColumnKind.DATETIME, is_nullable=False),
            ColumnDef(name="BillingAddress", kind=ColumnKind.TEXT),
            ColumnDef(name="Total", kind=ColumnKind.REAL, is_nullable=False),
            ColumnDef(name="Data", kind=ColumnKind.JSON, is_nullable=False),
        ),
        primary_key=("InvoiceId",),
        foreign_keys=(
            ForeignKeyDef(
                column_name="CustomerId",
                foreign_table_name="customers",
                foreign_column_name="CustomerId",
            ),
        ),
    )


def make_order_lines() -> TableDef:
    return TableDef(
        name="order_lines",
        columns=(
            ColumnDef(name="order_id", kind=ColumnKind.INTEGER, is_primary_key=True),
            ColumnDef(name="line_no", kind=ColumnKind.INTEGER, is_primary_key=True),
            ColumnDef(name="sku", kind=ColumnKind.TEXT),
            ColumnDef(name="shipped", kind=ColumnKind.BOOLEAN),
        ),
        primary_key=("order_id", "line_no"),
    )


@pytest.fixture
def invoices() -> TableDef:
    return make_invoices()


@pytest.fixture
def order_lines() -> TableDef:
    return make_order_lines()
