import pytest

from bucketfs.client.exceptions import NotFound
from bucketfs.fs.attributes import AttributeKind, BasicAttributes, PosixAttributes
from bucketfs.fs.cache import AttributeCache

def basic(size=3):
    return BasicAttributes(file_key="a", size=size, last_modified=None, is_directory=False)

class CountingFetch:
    def __init__(self, result=None, error=None):
        self.calls = 0
        self.result = result
        self.error = error

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result if self.result is not None else basic(self.calls)

@pytest.fixture
def cache(clock):
    return AttributeCache(ttl=60, clock=clock)

def test_snapshot_is_consumed_once(cache):
    cache.put("/b/a", basic())
    assert cache.consume("/b/a") is not None
    assert cache.consume("/b/a") is None

def test_read_within_ttl_reuses_snapshot_once(cache, clock):
    fetch = CountingFetch()
    first = cache.read("/b/a", AttributeKind.BASIC, fetch)
    clock.advance(10)
    second = cache.read("/b/a", AttributeKind.BASIC, fetch)
    assert fetch.calls == 1
    assert second is first

    # The slot was cleared by the second read
    cache.read("/b/a", AttributeKind.BASIC, fetch)
    assert fetch.calls == 2

def test_expired_snapshot_triggers_fresh_capture(cache, clock):
    fetch = CountingFetch()
    cache.read("/b/a", AttributeKind.BASIC, fetch)
    clock.advance(60 + 0.001)
    snapshot = cache.read("/b/a", AttributeKind.BASIC, fetch)
    assert fetch.calls == 2
    assert snapshot.size == 2

def test_is_fresh_boundary(cache, clock):
    snapshot = cache.put("/b/a", basic())
    assert snapshot.captured_at == clock.now
    clock.advance(30)
    assert cache.is_fresh(snapshot)
    clock.advance(30)
    assert not cache.is_fresh(snapshot)

def test_stale_snapshot_is_discarded(cache, clock):
    cache.put("/b/a", basic())
    clock.advance(120)
    assert cache.consume("/b/a") is None
    assert cache.peek("/b/a") is None

def test_basic_snapshot_does_not_satisfy_posix_request(cache):
    cache.put("/b/a", basic())
    assert cache.consume("/b/a", AttributeKind.POSIX) is None
    # Left in place for a basic consumer
    assert cache.peek("/b/a") is not None
    assert cache.consume("/b/a", AttributeKind.BASIC) is not None

def test_posix_snapshot_satisfies_basic_request(cache):
    cache.put("/b/a", PosixAttributes.extend(basic(), "owner", None, set()))
    snapshot = cache.consume("/b/a", AttributeKind.BASIC)
    assert isinstance(snapshot, PosixAttributes)

def test_zero_ttl_disables_caching(clock):
    cache = AttributeCache(ttl=0, clock=clock)
    fetch = CountingFetch()
    cache.read("/b/a", AttributeKind.BASIC, fetch)
    cache.read("/b/a", AttributeKind.BASIC, fetch)
    assert fetch.calls == 2
    assert len(cache) == 0

def test_fetch_failure_propagates_and_keeps_slot(cache):
    cache.put("/b/a", basic())
    cache.consume("/b/a")
    with pytest.raises(NotFound):
        cache.read("/b/a", AttributeKind.BASIC, CountingFetch(error=NotFound("gone")))
    assert cache.peek("/b/a") is None

def test_invalidate_and_clear(cache):
    cache.put("/b/a", basic())
    cache.put("/b/c", basic())
    cache.invalidate("/b/a")
    assert cache.peek("/b/a") is None
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0

def test_expired_snapshots_are_dropped_on_put(cache, clock):
    for index in range(50):
        cache.put(f"/b/listed-{index}", basic())
    assert len(cache) == 50
    clock.advance(61)
    cache.put("/b/recent", basic())
    assert cache.peek("/b/listed-0") is None
    assert len(cache) == 1

def test_len_counts_only_fresh_snapshots(cache, clock):
    cache.put("/b/a", basic())
    clock.advance(30)
    cache.put("/b/c", basic())
    clock.advance(31)
    assert len(cache) == 1
    assert cache.peek("/b/c") is not None
