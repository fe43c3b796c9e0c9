# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Client factories.

A filesystem's store client is built by a factory chosen by name through
the ``client_factory`` option. Factories are plain callables registered
on a ClientFactoryRegistry; ``s3`` (boto3) and ``memory`` are registered
by default.
"""

from typing import Callable, Dict, Optional

import boto3
from botocore.config import Config

from .client.base import StoreClient
from .client.exceptions import BucketFSError, ConfigurationError
from .client.memory import DEFAULT_OWNER_ID, MemoryStoreClient
from .client.s3 import DEFAULT_REGION, S3StoreClient
from . import config as options
from .config import Configuration
from .utils import logger

DEFAULT_HOST = "s3.amazonaws.com"
DEFAULT_FACTORY = "s3"

ClientFactory = Callable[[Optional[str], Configuration], StoreClient]

def _proxy_url(configuration: Configuration) -> Optional[str]:
    host = configuration.get(options.PROXY_HOST)
    if host is None:
        return None
    port = configuration.get(options.PROXY_PORT)
    user = configuration.get(options.PROXY_USERNAME)
    password = configuration.get(options.PROXY_PASSWORD)
    auth = f"{user}:{password}@" if user and password else (f"{user}@" if user else "")
    return f"http://{auth}{host}:{port}" if port else f"http://{auth}{host}"

def build_botocore_config(configuration: Configuration) -> Config:
    """
    Translate bucketfs options into a botocore Config.

    Only options that are set are passed, so botocore keeps its own
    defaults for the rest.

    Args:
        configuration (Configuration): Resolved options.

    Returns:
        Config: The botocore client configuration.
    """
    kwargs = {}
    connect_timeout = configuration.get_float(options.CONNECTION_TIMEOUT)
    if connect_timeout is not None:
        kwargs["connect_timeout"] = connect_timeout
    socket_timeout = configuration.get_float(options.SOCKET_TIMEOUT)
    if socket_timeout is not None:
        kwargs["read_timeout"] = socket_timeout
    max_connections = configuration.get_int(options.MAX_CONNECTIONS)
    if max_connections is not None:
        kwargs["max_pool_connections"] = max_connections
    max_error_retry = configuration.get_int(options.MAX_ERROR_RETRY)
    if max_error_retry is not None:
        kwargs["retries"] = {"max_attempts": max_error_retry, "mode": "standard"}
    if configuration.get_bool(options.PATH_STYLE_ACCESS):
        kwargs["s3"] = {"addressing_style": "path"}
    user_agent = configuration.get(options.USER_AGENT)
    if user_agent:
        kwargs["user_agent_extra"] = user_agent
    signer = configuration.get(options.SIGNER_OVERRIDE)
    if signer:
        kwargs["signature_version"] = signer
    proxy = _proxy_url(configuration)
    if proxy:
        kwargs["proxies"] = {"http": proxy, "https": proxy}
    return Config(**kwargs)

def s3_client_factory(endpoint: Optional[str], configuration: Configuration) -> StoreClient:
    """
    Build an S3StoreClient for an endpoint.

    Args:
        endpoint (str, optional): ``host[:port]`` of the store; None or the
            default host selects AWS S3.
        configuration (Configuration): Resolved options.

    Returns:
        StoreClient: The boto3-backed client.
    """
    region = configuration.get(options.REGION, DEFAULT_REGION)
    endpoint_url = None
    if endpoint and endpoint != DEFAULT_HOST:
        protocol = configuration.get(options.PROTOCOL, "https")
        endpoint_url = f"{protocol}://{endpoint}"
    logger.info(f"Creating S3 client for endpoint {endpoint_url or DEFAULT_HOST} in {region}")
    client = boto3.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint_url,
        aws_access_key_id=configuration.get(options.ACCESS_KEY),
        aws_secret_access_key=configuration.get(options.SECRET_KEY),
        config=build_botocore_config(configuration),
    )
    return S3StoreClient(client, region=region)

def memory_client_factory(endpoint: Optional[str], configuration: Configuration) -> StoreClient:
    """Build a fresh, empty MemoryStoreClient."""
    return MemoryStoreClient(
        caller_id=configuration.get(options.CANONICAL_ID, DEFAULT_OWNER_ID),
        region=configuration.get(options.REGION, DEFAULT_REGION),
    )

class ClientFactoryRegistry:
    """
    Maps factory names to constructor callables.

    Attributes:
        factories (dict): Registered factories by name.
    """

    def __init__(self, factories: Optional[Dict[str, ClientFactory]] = None):
        self.factories: Dict[str, ClientFactory] = {
            "s3": s3_client_factory,
            "memory": memory_client_factory,
        }
        if factories:
            self.factories.update(factories)

    def register(self, name: str, factory: ClientFactory) -> None:
        """Register (or replace) a factory under a name."""
        self.factories[name] = factory

    def resolve(self, name: str) -> ClientFactory:
        """
        Look up a factory.

        Raises:
            ConfigurationError: If no factory is registered under ``name``.
        """
        try:
            return self.factories[name]
        except KeyError:
            raise ConfigurationError(f"Configuration problem, no client factory named {name!r}") from None

    def create(self, endpoint: Optional[str], configuration: Configuration) -> StoreClient:
        """
        Build the client selected by the ``client_factory`` option.

        Args:
            endpoint (str, optional): ``host[:port]`` of the store.
            configuration (Configuration): Resolved options.

        Returns:
            StoreClient: The new client.

        Raises:
            ConfigurationError: If the factory is unknown or fails.
        """
        name = configuration.get(options.CLIENT_FACTORY, DEFAULT_FACTORY)
        factory = self.resolve(name)
        try:
            return factory(endpoint, configuration)
        except ConfigurationError:
            raise
        except BucketFSError as e:
            raise ConfigurationError(f"Configuration problem, couldn't create client with factory {name!r}: {e}") from e
        except Exception as e:
            logger.error(f"Client factory {name!r} failed: {e}", exc_info=True)
            raise ConfigurationError(f"Configuration problem, couldn't create client with factory {name!r}: {e}") from e
