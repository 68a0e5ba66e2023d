"""
Unit tests for SELECT, INSERT, EXPLAIN and field conversion statements.
"""

import pytest

from dbadmin_mysql.capabilities import capabilities_for
from dbadmin_mysql.entities import Column, Select
from dbadmin_mysql.query import (
    build_select_query,
    charset,
    convert_field,
    convert_search,
    explain_sql,
    insert_sql,
    limit_clause,
    limit_to_one,
    slow_query,
    unconvert_field,
)


class TestLimit:
    """Test the LIMIT tail of queries."""

    def test_limit_clause(self):
        """Test the filter and limit follow the query."""
        assert limit_clause("* FROM `t`", " WHERE a = 1", 1) == " * FROM `t` WHERE a = 1 LIMIT 1"
        assert limit_clause("x", "", 10, 20) == " x LIMIT 10 OFFSET 20"
        assert limit_clause("x", "", None, 20) == " x"

    def test_limit_to_one(self):
        """Test single row updates."""
        assert limit_to_one("`t` SET a = 1", " WHERE id = 1") == " `t` SET a = 1 WHERE id = 1 LIMIT 1"


class TestSelect:
    """Test SELECT rendering."""

    def test_plain(self):
        """Test a select of all columns."""
        assert build_select_query(Select("t")) == "SELECT *\nFROM `t`"

    def test_filter_order_limit(self):
        """Test conditions are joined by AND and followed by ordering."""
        select = Select("t", where=["a = 1", "b > 2"], order=["a DESC"], limit=10)
        assert build_select_query(select) == "SELECT *\nFROM `t`\nWHERE a = 1 AND b > 2\nORDER BY a DESC\nLIMIT 10"

    def test_grouped_page(self):
        """Test a grouped page past the first asks for the found rows."""
        select = Select("t", fields=["a", "COUNT(*)"], group=["a"], limit=50, page=2)
        assert build_select_query(select) == "SELECT SQL_CALC_FOUND_ROWS a, COUNT(*)\nFROM `t`\nGROUP BY a\nLIMIT 50 OFFSET 100"

    def test_group_covering_fields(self):
        """Test grouping by every field is left out."""
        select = Select("t", fields=["a"], group=["a"], limit=5, page=1)
        assert build_select_query(select) == "SELECT a\nFROM `t`\nLIMIT 5 OFFSET 5"


class TestServerSpecific:
    """Test statements that depend on the server version."""

    def test_explain(self, mysql8, mysql56):
        """Test EXPLAIN PARTITIONS on servers before 5.7."""
        assert explain_sql("SELECT 1", mysql8) == "EXPLAIN SELECT 1"
        assert explain_sql("SELECT 1", mysql56) == "EXPLAIN PARTITIONS SELECT 1"

    def test_slow_query_mysql(self, mysql8):
        """Test MySQL bounds SELECT statements with an optimizer hint."""
        assert slow_query("SELECT * FROM t", 2, mysql8) == "SELECT /*+ MAX_EXECUTION_TIME(2000) */  * FROM t"
        assert slow_query("UPDATE t SET a = 1", 2, mysql8) is None

    def test_slow_query_maria(self, maria):
        """Test MariaDB bounds any statement."""
        assert slow_query("SELECT 1", 2, maria) == "SET STATEMENT max_statement_time=2 FOR SELECT 1"
        assert slow_query("DELETE FROM t", 0.5, maria) == "SET STATEMENT max_statement_time=0.5 FOR DELETE FROM t"

    def test_slow_query_old_server(self, mysql56):
        """Test old servers cannot bound queries."""
        assert slow_query("SELECT 1", 2, mysql56) is None

    def test_charset(self, mysql8):
        """Test utf8mb4 from 5.5.3."""
        assert charset(mysql8) == "utf8mb4"
        assert charset(capabilities_for("5.5.2")) == "utf8"


class TestConversion:
    """Test reading and writing of binary, bit and geometry columns."""

    @pytest.mark.parametrize(
        "column_type,expected",
        [("varbinary", "HEX(`c`)"), ("bit", "BIN(`c` + 0)"), ("point", "ST_AsWKT(`c`)"), ("int", None)],
    )
    def test_convert_field(self, mysql8, column_type, expected):
        """Test the read expression of each type."""
        assert convert_field(Column("c", type=column_type), mysql8) == expected

    def test_geometry_before_8(self, mysql57):
        """Test spatial functions without the ST_ prefix."""
        assert convert_field(Column("g", type="geometry"), mysql57) == "AsWKT(`g`)"
        assert unconvert_field(Column("g", type="geometry"), "'POINT(1 1)'", mysql57) == "GeomFromText('POINT(1 1)', SRID(`g`))"

    def test_unconvert_field(self, mysql8):
        """Test the write expression of each type."""
        assert unconvert_field(Column("c", type="binary"), "'ab'", mysql8) == "UNHEX('ab')"
        assert unconvert_field(Column("c", type="bit"), "'101'", mysql8) == "CONV('101', 2, 10) + 0"
        assert unconvert_field(Column("g", type="point"), "'POINT(1 1)'", mysql8) == "ST_GeomFromText('POINT(1 1)', SRID(`g`))"
        assert unconvert_field(Column("c", type="int"), "5", mysql8) == "5"

    def test_convert_search(self, mysql8):
        """Test non-ASCII searches in non-utf8 columns."""
        latin = Column("name", type="varchar", collation="latin1_swedish_ci")
        assert convert_search("`name`", "čaj", latin, mysql8) == "CONVERT(`name` USING utf8mb4)"
        assert convert_search("`name`", "tea", latin, mysql8) == "`name`"
        utf8 = Column("name", type="varchar", collation="utf8mb4_general_ci")
        assert convert_search("`name`", "čaj", utf8, mysql8) == "`name`"
        assert convert_search("`n`", "čaj", Column("n", type="int"), mysql8) == "`n`"


class TestInsert:
    """Test single row INSERT statements."""

    def test_values(self):
        """Test column list and values."""
        assert insert_sql("t", {"a": "1", "b": "'x'"}) == "INSERT INTO `t` (`a`, `b`) VALUES (1, 'x')"

    def test_defaults(self):
        """Test a row of defaults."""
        assert insert_sql("t", {}) == "INSERT INTO `t` () VALUES ()"
