# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Layered configuration for bucketfs.

Each known option is resolved from, highest precedence first:

1. the explicit settings mapping passed by the caller,
2. the process environment (``BUCKETFS_<OPTION>``),
3. the injected system properties mapping,
4. the bundled defaults file (``bucketfs.ini``, section ``[bucketfs]``).

A missing or unreadable defaults file degrades to empty defaults.
Settings that are not known options are passed through unchanged.
"""

import configparser
import os
from typing import Any, Dict, Mapping, Optional

from .client.exceptions import InvalidArgument
from .utils import logger

ACCESS_KEY = "access_key"
SECRET_KEY = "secret_key"
REGION = "region"
PROTOCOL = "protocol"
CONNECTION_TIMEOUT = "connection_timeout"
SOCKET_TIMEOUT = "socket_timeout"
MAX_CONNECTIONS = "max_connections"
MAX_ERROR_RETRY = "max_error_retry"
PATH_STYLE_ACCESS = "path_style_access"
USER_AGENT = "user_agent"
SIGNER_OVERRIDE = "signer_override"
PROXY_HOST = "proxy_host"
PROXY_PORT = "proxy_port"
PROXY_USERNAME = "proxy_username"
PROXY_PASSWORD = "proxy_password"
CLIENT_FACTORY = "client_factory"
CACHE_ATTRIBUTES_TTL = "cache_attributes_ttl"
CANONICAL_ID = "canonical_id"

OPTIONS = (
    ACCESS_KEY,
    SECRET_KEY,
    REGION,
    PROTOCOL,
    CONNECTION_TIMEOUT,
    SOCKET_TIMEOUT,
    MAX_CONNECTIONS,
    MAX_ERROR_RETRY,
    PATH_STYLE_ACCESS,
    USER_AGENT,
    SIGNER_OVERRIDE,
    PROXY_HOST,
    PROXY_PORT,
    PROXY_USERNAME,
    PROXY_PASSWORD,
    CLIENT_FACTORY,
    CACHE_ATTRIBUTES_TTL,
    CANONICAL_ID,
)

ENV_PREFIX = "BUCKETFS_"
SECTION = "bucketfs"
DEFAULT_PROPERTIES_FILE = os.path.join(os.path.dirname(__file__), "bucketfs.ini")

def env_name(option: str) -> str:
    """Return the environment variable consulted for an option."""
    return ENV_PREFIX + option.upper()

def load_properties(path: Optional[str] = None) -> Dict[str, str]:
    """
    Load the defaults file.

    Args:
        path (str, optional): File to read. Defaults to the bundled bucketfs.ini.

    Returns:
        dict: Option values from the ``[bucketfs]`` section, or an empty
            dict when the file or section is absent.
    """
    path = path or DEFAULT_PROPERTIES_FILE
    parser = configparser.ConfigParser(interpolation=None)
    try:
        read = parser.read(path, encoding="utf-8")
    except configparser.Error as e:
        logger.warning(f"Ignoring unreadable properties file {path}: {e}")
        return {}
    if not read or not parser.has_section(SECTION):
        logger.debug(f"No properties loaded from {path}")
        return {}
    return dict(parser.items(SECTION))

class Configuration:
    """
    Resolved option values for one filesystem.

    Attributes:
        values (dict): Resolved values, known options and pass-through settings.
    """

    def __init__(self,
                 settings: Optional[Mapping[str, Any]] = None,
                 environ: Optional[Mapping[str, str]] = None,
                 system_properties: Optional[Mapping[str, str]] = None,
                 properties_file: Optional[str] = None):
        settings = dict(settings or {})
        environ = os.environ if environ is None else environ
        system_properties = system_properties or {}

        values: Dict[str, Any] = dict(load_properties(properties_file))
        for option in OPTIONS:
            if settings.get(option) is not None:
                values[option] = settings[option]
            elif environ.get(env_name(option)) is not None:
                values[option] = environ[env_name(option)]
            elif system_properties.get(option) is not None:
                values[option] = system_properties[option]

        for name, value in settings.items():
            if name not in OPTIONS:
                values[name] = value

        self.values = values

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> "Configuration":
        """Build a configuration from already resolved values, skipping every layer."""
        configuration = cls.__new__(cls)
        configuration.values = dict(values)
        return configuration

    def with_overrides(self, **overrides: Any) -> "Configuration":
        """Return a copy with the given values replaced; None values are ignored."""
        values = dict(self.values)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return Configuration.from_values(values)

    def get(self, name: str, default: Any = None) -> Any:
        value = self.values.get(name)
        return default if value is None or value == "" else value

    def get_int(self, name: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(name)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Option {name} must be an integer, got {value!r}") from None

    def get_float(self, name: str, default: Optional[float] = None) -> Optional[float]:
        value = self.get(name)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Option {name} must be a number, got {value!r}") from None

    def get_bool(self, name: str, default: bool = False) -> bool:
        value = self.get(name)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("true", "1", "yes", "on")

    def validate(self) -> None:
        """
        Check option combinations.

        Raises:
            InvalidArgument: If only one of access key and secret key is set.
        """
        if (self.get(ACCESS_KEY) is None) != (self.get(SECRET_KEY) is None):
            raise InvalidArgument(f"{ACCESS_KEY} and {SECRET_KEY} should both be provided or should both be omitted")

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __repr__(self):
        shown = {k: ("***" if k in (SECRET_KEY, PROXY_PASSWORD) else v) for k, v in self.values.items()}
        return f"Configuration({shown})"
