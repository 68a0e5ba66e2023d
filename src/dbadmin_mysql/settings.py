"""
Settings for dbadmin-mysql using pydantic-settings
"""

import collections
import json
import logging
import os
import pprint
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Literal, Optional

from pydantic import Field, field_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import DbAdminError

LOCALCONFIG = "dbadmin_config.json"
# approximates the server default of max_allowed_packet
DEFAULT_MAX_PACKET_SIZE = 1_000_000

logger = logging.getLogger(__name__.split(".")[0])
log_levels = {
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "CRITICAL": logging.CRITICAL,
    "DEBUG": logging.DEBUG,
    "ERROR": logging.ERROR,
    None: logging.NOTSET,
}


class DatabaseSettings(BaseSettings):
    """Database server settings"""

    host: str = "localhost"
    password: Optional[str] = None
    user: Optional[str] = None
    port: int = 3306
    reconnect: bool = True
    use_tls: Optional[bool] = None

    model_config = SettingsConfigDict(
        env_prefix="DBADMIN_",
        case_sensitive=False,
        extra="allow",
    )


class ConnectionSettings(BaseSettings):
    """Session settings applied when connecting"""

    init_function: Optional[str] = "SET sql_quote_show_create = 1, autocommit = 1"
    charset: str = "utf8mb4"

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        extra="allow",
    )


class QuerySettings(BaseSettings):
    """Statement generation settings"""

    max_packet_size: int = DEFAULT_MAX_PACKET_SIZE
    slow_query_timeout: float = 2.0

    model_config = SettingsConfigDict(
        env_prefix="DBADMIN_",
        case_sensitive=False,
        extra="allow",
        validate_assignment=True,
    )

    @field_validator("max_packet_size")
    @classmethod
    def validate_max_packet_size(cls, v: int) -> int:
        """Batches need room for at least one row"""
        if v <= 0:
            raise ValueError(f"max_packet_size must be positive, got {v}")
        return v


class DbAdminSettings(BaseSettings):
    """Main settings for the MySQL dialect"""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)

    loglevel: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        validation_alias=AliasChoices("loglevel", "DBADMIN_LOG_LEVEL"),
    )

    model_config = SettingsConfigDict(
        env_prefix="DBADMIN_",
        case_sensitive=False,
        extra="allow",
        validate_assignment=True,
    )

    @field_validator("loglevel")
    @classmethod
    def validate_loglevel(cls, v: str) -> str:
        """Validate and set logging level"""
        logger.setLevel(v)
        return v


class ConfigWrapper(collections.abc.MutableMapping):
    """
    Dict-like view of the pydantic settings with dot notation keys,
    e.g. ``config["database.host"]``.
    """

    def __init__(self, settings: DbAdminSettings):
        self._settings = settings

    def _get_nested(self, key: str) -> Any:
        obj = self._settings
        for part in key.split("."):
            if not isinstance(obj, BaseSettings) or part not in obj.__class__.model_fields:
                raise KeyError(f"Key '{key}' not found")
            obj = getattr(obj, part)
        return obj

    def _set_nested(self, key: str, value: Any) -> None:
        *path, final_key = key.split(".")
        obj = self._settings
        for part in path:
            obj = getattr(obj, part, None)
            if not isinstance(obj, BaseSettings):
                raise DbAdminError(f"Unknown configuration key '{key}'")
        if final_key not in obj.__class__.model_fields:
            raise DbAdminError(f"Unknown configuration key '{key}'")
        if key in validators and not validators[key](value):
            raise DbAdminError(f"Validator for {key} did not pass")
        setattr(obj, final_key, value)

    def __getitem__(self, key: str) -> Any:
        return self._get_nested(key)

    def __setitem__(self, key: str, value: Any) -> None:
        logger.debug(f"Setting {key} to {value}")
        self._set_nested(key, value)

    def __delitem__(self, key: str) -> None:
        raise DbAdminError("Configuration keys cannot be deleted, assign a new value instead")

    def __iter__(self) -> Iterator[str]:
        return iter(self._to_dict())

    def __len__(self) -> int:
        return len(self._to_dict())

    def __str__(self) -> str:
        return pprint.pformat(self._to_dict(), indent=4)

    def __repr__(self) -> str:
        return self.__str__()

    def _to_dict(self) -> Dict[str, Any]:
        """Flatten the settings into a dict with dot notation keys"""
        result: Dict[str, Any] = {}

        def _flatten(obj: BaseSettings, prefix: str = "") -> None:
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                full_key = f"{prefix}.{field_name}" if prefix else field_name
                if isinstance(value, BaseSettings):
                    _flatten(value, full_key)
                else:
                    result[full_key] = value

        _flatten(self._settings)
        return result

    def save(self, filename: str, verbose: bool = False) -> None:
        """
        Saves the settings in JSON format to the given file path.

        :param filename: filename of the local JSON settings file.
        :param verbose: report having saved the settings file
        """
        with open(filename, "w") as fid:
            json.dump(self._to_dict(), fid, indent=4)
        if verbose:
            logger.info("Saved settings in " + filename)

    def load(self, filename: Optional[str] = None) -> None:
        """
        Updates the settings from a config file in JSON format.

        :param filename: filename of the local JSON settings file.
        """
        if filename is None:
            filename = LOCALCONFIG
        with open(filename, "r") as fid:
            logger.info(f"dbadmin_mysql is configured from {os.path.abspath(filename)}")
            data = json.load(fid)
        for key, value in data.items():
            try:
                self[key] = value
            except (DbAdminError, ValueError) as e:
                logger.warning(f"Could not set config key '{key}': {e}")

    @contextmanager
    def __call__(self, **kwargs: Any) -> Iterator["ConfigWrapper"]:
        """
        Temporarily change the configuration. Keys use a double underscore in place of '.'.

        Example:
        >>> with config(query__max_packet_size=4096) as cfg:
        >>>     adapter.upsert_rows("log", rows)
        """
        converted_kwargs: Dict[str, Any] = {k.replace("__", "."): v for k, v in kwargs.items()}
        backup_values: Dict[str, Any] = {key: self[key] for key in converted_kwargs}
        try:
            for key, value in converted_kwargs.items():
                self[key] = value
            yield self
        finally:
            for key, value in backup_values.items():
                self[key] = value


validators = collections.defaultdict(lambda: lambda value: True)
validators["database.port"] = lambda a: isinstance(a, int)


_settings = DbAdminSettings()

config = ConfigWrapper(_settings)

if os.path.exists(LOCALCONFIG):
    config.load(LOCALCONFIG)
else:
    logger.debug("No config file was found.")

mapping: Dict[str, Any] = {}
for env_key, config_key in [
    ("DBADMIN_HOST", "database.host"),
    ("DBADMIN_USER", "database.user"),
    ("DBADMIN_PASS", "database.password"),
    ("DBADMIN_PORT", "database.port"),
    ("DBADMIN_LOG_LEVEL", "loglevel"),
]:
    env_value = os.getenv(env_key)
    if env_value is None:
        continue
    if config_key == "database.port":
        try:
            mapping[config_key] = int(env_value)
        except ValueError:
            logger.warning(f"Invalid DBADMIN_PORT value: {env_value}, using default port 3306")
    elif config_key == "loglevel":
        mapping[config_key] = env_value.upper()
    else:
        mapping[config_key] = env_value

if mapping:
    logger.info(f"Overloaded settings {tuple(mapping.keys())} from environment variables.")
    for key, value in mapping.items():
        config[key] = value

logger.setLevel(log_levels[config["loglevel"]])

