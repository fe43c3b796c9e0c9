import os

import pytest

from bucketfs.client.memory import MemoryStoreClient
from bucketfs.factory import ClientFactoryRegistry
from bucketfs.fs.provider import ObjectStoreProvider

BUCKET = "bucket"
ENDPOINT = "memory.test"

def pytest_configure(config):
    """Configure test environment."""
    # Exercise the trace logging of every operation
    os.environ.setdefault("BUCKETFS_TRACE_OPS", "true")

class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now=1000.0):
        self.now = now

    def advance(self, seconds):
        self.now += seconds

    def __call__(self):
        return self.now

class CountingStoreClient(MemoryStoreClient):
    """MemoryStoreClient that counts the store round-trips it serves."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.head_calls = 0
        self.list_pages = 0
        self.put_calls = 0

    def head_object(self, bucket, key):
        self.head_calls += 1
        return super().head_object(bucket, key)

    def _list_page(self, bucket, options, token):
        self.list_pages += 1
        return super()._list_page(bucket, options, token)

    def put_object(self, bucket, key, data):
        self.put_calls += 1
        return super().put_object(bucket, key, data)

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def store():
    client = CountingStoreClient()
    client.create_bucket(BUCKET)
    return client

@pytest.fixture
def provider(store, clock):
    """Provider whose filesystems all share the ``store`` client."""
    factories = ClientFactoryRegistry()
    factories.register("memory", lambda endpoint, configuration: store)
    provider = ObjectStoreProvider(
        factories=factories,
        environ={},
        system_properties={"client_factory": "memory"},
        clock=clock,
    )
    yield provider
    provider.close()

@pytest.fixture
def filesystem(provider):
    return provider.new_filesystem(f"s3://{ENDPOINT}/")

@pytest.fixture
def path(filesystem):
    """Build a StorePath on the test filesystem."""
    return filesystem.get_path
