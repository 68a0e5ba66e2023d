"""
Unit tests for server version parsing and capability gating.
"""

import dataclasses

import pytest

from dbadmin_mysql.capabilities import (
    EDIT_FUNCTIONS,
    MARIA,
    MYSQL,
    Capabilities,
    capabilities_for,
    compare_versions,
    min_version,
    parse_server_info,
    parse_version,
)


class TestServerInfo:
    """Test reading flavor and version from server banners."""

    def test_mysql(self):
        """Test a MySQL banner with a suffix."""
        server = parse_server_info("8.0.36-log")
        assert server.flavor == MYSQL
        assert server.version == (8, 0, 36)
        assert not server.is_maria

    def test_maria(self):
        """Test a MariaDB banner."""
        server = parse_server_info("10.11.6-MariaDB-log")
        assert server.flavor == MARIA
        assert server.version == (10, 11, 6)

    def test_maria_replication_prefix(self):
        """Test the fake 5.5.5 prefix of MariaDB banners is skipped."""
        assert parse_server_info("5.5.5-10.1.5-MariaDB").version == (10, 1, 5)

    def test_parse_version(self):
        """Test dotted versions become int tuples."""
        assert parse_version("5.7") == (5, 7)
        assert parse_version("garbage") == ()

    def test_compare_versions_pads(self):
        """Test shorter versions are padded with zeros."""
        assert compare_versions((8,), (8, 0, 0)) == 0
        assert compare_versions((5, 10), (5, 9, 9)) == 1
        assert compare_versions((5, 7, 7), (5, 7, 8)) == -1


class TestMinVersion:
    """Test dialect-aware version thresholds."""

    @pytest.mark.parametrize(
        "info,expected",
        [
            ("10.1.5-MariaDB", True),
            ("10.1.1-MariaDB", False),
            ("5.7.9", True),
            ("5.7.7", False),
        ],
    )
    def test_thresholds(self, info, expected):
        """Test each dialect is compared to its own threshold."""
        assert min_version(parse_server_info(info), "5.7.8", "10.1.2") is expected

    def test_maria_inherits_mysql_threshold(self):
        """Test a missing MariaDB threshold reuses the MySQL one."""
        assert min_version(parse_server_info("10.2.0-MariaDB"), 8)
        assert not min_version(parse_server_info("5.5.68-MariaDB"), 8)

    def test_empty_threshold_never_qualifies(self):
        """Test an empty threshold excludes the dialect."""
        assert not min_version(parse_server_info("11.4.2-MariaDB"), 9, "")
        assert min_version(parse_server_info("9.0.1"), 9, "")
        assert not min_version(parse_server_info("9.0.1"), "", "10.7")

    def test_numeric_comparison(self):
        """Test versions compare numerically, not as strings."""
        assert min_version(parse_server_info("5.10.0"), "5.9")


class TestCapabilities:
    """Test the capabilities derived from a server banner."""

    def test_mysql8(self, mysql8):
        """Test MySQL 8 features and types."""
        assert mysql8.supports("descidx")
        assert mysql8.supports("check")
        assert mysql8.supports("partitioning")
        assert "json" in mysql8.types["Strings"]
        assert "uuid" not in mysql8.types["Strings"]
        assert mysql8.generated == ("STORED", "VIRTUAL")

    def test_mysql56(self, mysql56):
        """Test features missing on MySQL 5.6."""
        assert not mysql56.supports("descidx")
        assert not mysql56.supports("check")
        assert mysql56.generated == ()
        assert "json" not in mysql56.types["Strings"]

    def test_maria(self, maria):
        """Test MariaDB specific types and partitioning."""
        assert maria.is_maria
        assert "uuid" in maria.types["Strings"]
        assert "vector" not in maria.types["Numbers"]
        assert maria.partition_by == ()
        assert not maria.supports("partitioning")

    def test_old_server(self):
        """Test features gated on 5.0 and 5.1."""
        capabilities = capabilities_for("5.0.96")
        assert capabilities.supports("view")
        assert not capabilities.supports("event")
        assert not capabilities_for("4.1.22").supports("trigger")

    def test_never_supported(self, mysql8):
        """Test features MySQL never has."""
        for feature in ("scheme", "sequence", "type", "view_trigger", "materializedview"):
            assert not mysql8.supports(feature)

    def test_vector(self):
        """Test the vector type of MySQL 9."""
        assert "vector" in capabilities_for("9.1.0").types["Numbers"]

    def test_type_names(self, mysql8):
        """Test the flat list of type names."""
        assert "int" in mysql8.type_names
        assert "json" in mysql8.type_names

    def test_immutable(self, mysql8):
        """Test capabilities cannot be changed."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            mysql8.generated = ()
        with pytest.raises(TypeError):
            mysql8.types["Strings"]["json"] = 1

    def test_cached(self):
        """Test one capabilities object per banner."""
        assert capabilities_for("8.0.36") is capabilities_for("8.0.36")

    def test_default_dialect_lists(self):
        """Test a bare capabilities value shares the read-only edit functions."""
        capabilities = Capabilities(server=parse_server_info("8.0.36"))
        assert capabilities.edit_functions is EDIT_FUNCTIONS
        assert capabilities.edit_functions["date"] == ("+ interval", "- interval")
        with pytest.raises(TypeError):
            capabilities.edit_functions["date"] = ()
        assert capabilities_for("10.11.6-MariaDB").edit_functions is EDIT_FUNCTIONS
