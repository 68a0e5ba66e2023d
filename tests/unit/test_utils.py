"""
Unit tests for identifier quoting and string escaping.
"""

import pytest

from dbadmin_mysql.utils import (
    enum_values,
    escape_id,
    escape_like,
    quote_string,
    sql_literal,
    strip_c_slashes,
    strip_slashes,
    unescape_id,
)


class TestIdentifiers:
    """Test backtick quoting of identifiers."""

    def test_escape_id(self):
        """Test embedded backticks are doubled."""
        assert escape_id("orders") == "`orders`"
        assert escape_id("a`b") == "`a``b`"

    @pytest.mark.parametrize("name", ["", "plain", "a`b", "``", "with space", 'dq"name', "ünïcödé"])
    def test_round_trip(self, name):
        """Test unescape_id undoes escape_id."""
        assert unescape_id(escape_id(name)) == name

    def test_unescape_double_quoted(self):
        """Test double-quote delimited identifiers un-double their quote."""
        assert unescape_id('"a""b"') == 'a"b'
        assert unescape_id('"a``b"') == "a``b"


class TestEscaping:
    """Test string escaping helpers."""

    def test_escape_like(self):
        """Test LIKE wildcards and backslash are escaped."""
        assert escape_like("my_table") == r"my\_table"
        assert escape_like("50%\\") == "50\\%\\\\"

    def test_quote_string(self):
        """Test string literals are quoted and escaped."""
        assert quote_string("plain") == "'plain'"
        assert quote_string("It's") == "'It\\'s'"

    def test_strip_slashes(self):
        """Test one level of backslash escaping is removed."""
        assert strip_slashes(r"a\'b") == "a'b"
        assert strip_slashes("a\\\\b") == "a\\b"
        assert strip_slashes(r"nul\0") == "nul\0"
        assert strip_slashes(r"keep\q") == "keepq"

    def test_strip_c_slashes(self):
        """Test C escapes are decoded."""
        assert strip_c_slashes(r"a\nb") == "a\nb"
        assert strip_c_slashes(r"\x41\101") == "AA"
        assert strip_c_slashes(r"\\") == "\\"

    def test_sql_literal(self):
        """Test Python values are rendered as SQL literals."""
        assert sql_literal(None) == "NULL"
        assert sql_literal(5) == "5"
        assert sql_literal("x'y") == "'x\\'y'"


class TestEnumValues:
    """Test decoding of ENUM and SET value lists."""

    def test_doubled_quote(self):
        """Test a doubled quote decodes to a single quote."""
        assert enum_values("'a''b','c'") == ["a'b", "c"]

    def test_comma_inside_value(self):
        """Test commas inside literals do not split values."""
        assert enum_values("'x,y','z'") == ["x,y", "z"]

    def test_empty(self):
        """Test missing lengths give no values."""
        assert enum_values(None) == []
        assert enum_values("") == []
