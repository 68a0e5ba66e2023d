"""
Unit tests for foreign key extraction from CREATE TABLE statements.
"""

from dbadmin_mysql.foreign_keys import parse_foreign_keys


CREATE_TABLE = """CREATE TABLE `orders` (
  `id` int NOT NULL AUTO_INCREMENT,
  `customer_id` int NOT NULL,
  `shop` varchar(10) NOT NULL,
  `sku` varchar(10) NOT NULL,
  PRIMARY KEY (`id`),
  KEY `fk_customer` (`customer_id`),
  CONSTRAINT `fk_customer` FOREIGN KEY (`customer_id`) REFERENCES `customers` (`id`),
  CONSTRAINT `fk_item` FOREIGN KEY (`shop`, `sku`) REFERENCES `catalog`.`items` (`shop`, `sku`) ON DELETE CASCADE ON UPDATE SET NULL,
  CONSTRAINT `positive` CHECK ((`id` > 0))
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"""


class TestParseForeignKeys:
    """Test reading foreign keys out of SHOW CREATE TABLE output."""

    def test_constraints_in_order(self):
        """Test only foreign key constraints are returned, in order."""
        assert list(parse_foreign_keys(CREATE_TABLE)) == ["fk_customer", "fk_item"]

    def test_same_schema_reference(self):
        """Test a single identifier leaves the database empty."""
        fk = parse_foreign_keys(CREATE_TABLE)["fk_customer"]
        assert fk.database == ""
        assert fk.table == "customers"
        assert fk.source == ["customer_id"]
        assert fk.target == ["id"]
        assert (fk.on_delete, fk.on_update) == ("RESTRICT", "RESTRICT")

    def test_qualified_reference(self):
        """Test database qualified references and referential actions."""
        fk = parse_foreign_keys(CREATE_TABLE)["fk_item"]
        assert fk.database == "catalog"
        assert fk.table == "items"
        assert fk.source == ["shop", "sku"]
        assert fk.target == ["shop", "sku"]
        assert fk.on_delete == "CASCADE"
        assert fk.on_update == "SET NULL"

    def test_compact_column_lists(self):
        """Test column lists without spaces after commas."""
        fks = parse_foreign_keys("CONSTRAINT `fk1` FOREIGN KEY (`a`,`b`) REFERENCES `other` (`x`,`y`) ON DELETE CASCADE")
        assert fks["fk1"].source == ["a", "b"]
        assert fks["fk1"].target == ["x", "y"]
        assert (fks["fk1"].on_delete, fks["fk1"].on_update) == ("CASCADE", "RESTRICT")

    def test_escaped_identifiers(self):
        """Test doubled backticks inside identifiers."""
        fks = parse_foreign_keys("CONSTRAINT `odd``fk` FOREIGN KEY (`a``b`) REFERENCES `t``x` (`c`) ON DELETE NO ACTION")
        fk = fks["odd`fk"]
        assert fk.source == ["a`b"]
        assert fk.table == "t`x"
        assert fk.on_delete == "NO ACTION"
        assert fk.on_update == "RESTRICT"

    def test_ansi_quotes(self):
        """Test double-quote delimited identifiers."""
        fks = parse_foreign_keys('CONSTRAINT "fk" FOREIGN KEY ("a") REFERENCES "other" ("x")')
        assert fks["fk"].table == "other"
        assert fks["fk"].source == ["a"]

    def test_no_foreign_keys(self):
        """Test tables without constraints."""
        assert parse_foreign_keys("CREATE TABLE `t` (`a` int)") == {}
