"""
Integration tests against a live MySQL or MariaDB server.

Skipped unless DBADMIN_HOST is set; see ``tests/conftest.py`` for the variables.
"""

import os

import pytest

import dbadmin_mysql as dba
from dbadmin_mysql.entities import ColumnDefinition, ForeignKey, Index, TableAlter, TableCreate, TableOptions

pytestmark = pytest.mark.skipif(not os.getenv("DBADMIN_HOST"), reason="DBADMIN_HOST is not set")

DATABASE = "dbadmin_test"


@pytest.fixture(scope="module")
def adapter():
    connection = dba.Connection(
        os.environ["DBADMIN_HOST"],
        os.getenv("DBADMIN_USER", "root"),
        os.getenv("DBADMIN_PASS", ""),
    )
    adapter = dba.get_adapter("mysql", connection)
    connection.query(f"DROP DATABASE IF EXISTS `{DATABASE}`")
    adapter.create_database(DATABASE)
    connection.select_database(DATABASE)
    yield adapter
    connection.query(f"DROP DATABASE IF EXISTS `{DATABASE}`")
    connection.close()


def test_create_and_introspect(adapter):
    """Test a created table reads back with its columns, indexes and foreign keys."""
    adapter.create_table(
        TableCreate(
            "customers",
            columns=[ColumnDefinition("id", "int", auto_increment=" AUTO_INCREMENT PRIMARY KEY")],
            options=TableOptions(engine="InnoDB"),
        )
    )
    adapter.create_table(
        TableCreate(
            "orders",
            columns=[
                ColumnDefinition("id", "int", auto_increment=" AUTO_INCREMENT PRIMARY KEY"),
                ColumnDefinition("customer_id", "int"),
                ColumnDefinition("note", "varchar(20)", nullable=True, default="none", comment="free text"),
            ],
            foreign_keys=[ForeignKey("", ["customer_id"], "customers", ["id"], on_delete="CASCADE")],
            options=TableOptions(engine="InnoDB", comment="orders"),
        )
    )
    assert adapter.list_tables() == {"customers": "BASE TABLE", "orders": "BASE TABLE"}
    columns = adapter.table_columns("orders")
    assert columns["id"].auto_increment
    assert columns["note"].default == "none"
    assert columns["note"].comment == "free text"
    (foreign_key,) = adapter.table_foreign_keys("orders").values()
    assert foreign_key.table == "customers"
    assert foreign_key.on_delete == "CASCADE"
    assert adapter.table_status("orders").comment == "orders"


def test_alter_and_upsert(adapter):
    """Test altering a table and upserting rows into it."""
    adapter.create_table(
        TableCreate("items", columns=[ColumnDefinition("sku", "varchar(10)"), ColumnDefinition("stock", "int", default="0")])
    )
    index = Index("PRIMARY", "PRIMARY")
    index.add_part("sku")
    adapter.alter_indexes("items", [index], [])
    adapter.alter_table(TableAlter("items", added=[ColumnDefinition("price", "decimal(10,2)", nullable=True, after="sku")]))
    assert list(adapter.table_columns("items")) == ["sku", "price", "stock"]

    assert adapter.upsert_rows("items", [{"sku": "a", "price": 1, "stock": 1}, {"sku": "b", "price": 2, "stock": 2}]) == 1
    adapter.upsert_rows("items", [{"sku": "a", "price": 1, "stock": 5}])
    rows = adapter.select(dba.Select("items", fields=["sku", "stock"], order=["sku"]))
    assert [(row["sku"], row["stock"]) for row in rows] == [("a", 5), ("b", 2)]


def test_routine_signature(adapter):
    """Test a stored procedure signature reads back."""
    adapter.connection.query(
        "CREATE PROCEDURE `restock`(IN `sku` varchar(10), INOUT `qty` int unsigned) SET qty = qty + 1"
    )
    routine = adapter.routine_signature("restock", "PROCEDURE")
    assert [(param.name, param.inout) for param in routine.params] == [("sku", "IN"), ("qty", "INOUT")]
    assert routine.params[1].unsigned == "unsigned"
