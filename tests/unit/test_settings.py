"""
Unit tests for the configuration wrapper.
"""

import json
import logging

import pytest

from dbadmin_mysql.errors import DbAdminError
from dbadmin_mysql.settings import DEFAULT_MAX_PACKET_SIZE, QuerySettings, config


class TestConfig:
    """Test dot notation access to the settings."""

    def test_defaults(self):
        """Test the statement generation defaults."""
        settings = QuerySettings()
        assert settings.max_packet_size == DEFAULT_MAX_PACKET_SIZE
        assert settings.slow_query_timeout == 2.0

    def test_keys(self):
        """Test nested settings are flattened."""
        assert "database.host" in config
        assert "query.max_packet_size" in config
        assert "connection.init_function" in config

    def test_context_manager(self):
        """Test temporary values are restored."""
        before = config["query.max_packet_size"]
        with config(query__max_packet_size=4096) as cfg:
            assert cfg["query.max_packet_size"] == 4096
        assert config["query.max_packet_size"] == before

    def test_invalid_packet_size(self):
        """Test the packet size must be positive."""
        with pytest.raises(ValueError):
            config["query.max_packet_size"] = 0

    def test_unknown_keys(self):
        """Test unknown keys are rejected."""
        with pytest.raises(KeyError):
            config["query.nope"]
        with pytest.raises(DbAdminError):
            config["nope.key"] = 1
        with pytest.raises(DbAdminError):
            del config["query.max_packet_size"]

    def test_port_validator(self):
        """Test the port must be an int."""
        with pytest.raises(DbAdminError):
            config["database.port"] = "3306"

    def test_loglevel(self):
        """Test the log level reaches the package logger."""
        with config(loglevel="WARNING"):
            assert logging.getLogger("dbadmin_mysql").level == logging.WARNING

    def test_save_and_load(self, tmp_path, caplog):
        """Test settings files, skipping unknown keys."""
        saved = tmp_path / "saved.json"
        config.save(str(saved))
        assert json.loads(saved.read_text())["query.max_packet_size"] == config["query.max_packet_size"]

        custom = tmp_path / "custom.json"
        custom.write_text(json.dumps({"query.slow_query_timeout": 5.0, "bogus.key": 1}))
        with config(query__slow_query_timeout=config["query.slow_query_timeout"]):
            config.load(str(custom))
            assert config["query.slow_query_timeout"] == 5.0
        assert "Could not set config key 'bogus.key'" in caplog.text
