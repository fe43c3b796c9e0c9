import threading

import pytest

from bucketfs.client.exceptions import AlreadyExists, NotFound
from bucketfs.config import Configuration
from bucketfs.fs.registry import FileSystemRegistry, derive_identity

@pytest.mark.parametrize("uri, expected", [
    ("s3://host/", "host"),
    ("s3://host:9000/bucket/key", "host:9000"),
    ("s3://AKID@host/", "AKID@host"),
    ("s3://AKID:secret@host:9000/", "AKID@host:9000"),
    ("s3://user%40corp@host/", "user@corp@host"),
    ("s3:///bucket/key", "s3.amazonaws.com"),
])
def test_derive_identity_from_uri(uri, expected):
    assert derive_identity(uri) == expected

def test_derive_identity_falls_back_to_configured_access_key():
    configuration = Configuration.from_values({"access_key": "CONFIGURED", "secret_key": "s"})
    assert derive_identity("s3://host/", configuration) == "CONFIGURED@host"
    # User-info wins over the configuration
    assert derive_identity("s3://AKID@host/", configuration) == "AKID@host"

class Handle:
    pass

def test_open_registers_handle():
    registry = FileSystemRegistry()
    handle = registry.open("host", Handle)
    assert "host" in registry
    assert len(registry) == 1
    assert registry.lookup("host") is handle
    assert registry.is_open(handle)

def test_open_twice_raises_already_exists():
    registry = FileSystemRegistry()
    registry.open("host", Handle)
    with pytest.raises(AlreadyExists):
        registry.open("host", Handle)

def test_lookup_missing_identity_raises_not_found():
    with pytest.raises(NotFound):
        FileSystemRegistry().lookup("host")

def test_get_or_open_reuses_registered_handle():
    registry = FileSystemRegistry()
    first = registry.get_or_open("host", Handle)
    assert registry.get_or_open("host", Handle) is first

def test_close_unregisters_once():
    registry = FileSystemRegistry()
    handle = registry.open("host", Handle)
    assert registry.close(handle)
    assert not registry.close(handle)
    assert not registry.is_open(handle)
    # The identity can be opened again
    assert registry.open("host", Handle) is not handle

def test_close_all_returns_every_handle():
    registry = FileSystemRegistry()
    handles = [registry.open("a", Handle), registry.open("b", Handle)]
    assert registry.close_all() == handles
    assert len(registry) == 0

def test_concurrent_open_yields_one_winner():
    registry = FileSystemRegistry()
    results = []
    errors = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            results.append(registry.open("host", Handle))
        except AlreadyExists as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(results) == 1
    assert len(errors) == 7
