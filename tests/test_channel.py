import pytest

from bucketfs.client.exceptions import AlreadyExists, InvalidArgument, NotFound
from bucketfs.fs.channel import OpenOption, SeekableChannel, parse_open_options

from conftest import BUCKET

@pytest.fixture
def existing(store, path):
    store.put_object(BUCKET, "file.bin", b"0123456789")
    return path(f"/{BUCKET}/file.bin")

def test_default_options_are_read():
    assert parse_open_options(()) == {OpenOption.READ}
    assert parse_open_options(["write", OpenOption.CREATE]) == {OpenOption.WRITE, OpenOption.CREATE}
    with pytest.raises(InvalidArgument):
        parse_open_options(["sparse"])

def test_read_and_seek(provider, store, existing):
    puts = store.put_calls
    with provider.open_channel(existing) as channel:
        assert channel.readable()
        assert not channel.writable()
        assert channel.size() == 10
        assert channel.read(4) == b"0123"
        channel.seek(8)
        assert channel.tell() == 8
        assert channel.read() == b"89"
        buffer = bytearray(3)
        channel.seek(2)
        assert channel.readinto(buffer) == 3
        assert bytes(buffer) == b"234"
    assert store.put_calls == puts

def test_read_only_channel_rejects_writes(provider, existing):
    with provider.open_channel(existing, OpenOption.READ) as channel:
        with pytest.raises(InvalidArgument):
            channel.write(b"x")
        with pytest.raises(InvalidArgument):
            channel.truncate(0)

def test_write_in_place_uploads_on_close(provider, store, existing):
    with provider.open_channel(existing, OpenOption.READ, OpenOption.WRITE) as channel:
        channel.seek(2)
        channel.write(b"ab")
    assert store.get_object(BUCKET, "file.bin") == b"01ab456789"

def test_write_only_channel_is_not_readable(provider, existing):
    with provider.open_channel(existing, OpenOption.WRITE) as channel:
        assert not channel.readable()
        with pytest.raises(InvalidArgument):
            channel.read()

def test_append_writes_at_end(provider, store, existing):
    with provider.open_channel(existing, OpenOption.APPEND) as channel:
        channel.seek(0)
        channel.write(b"AB")
    assert store.get_object(BUCKET, "file.bin") == b"0123456789AB"

def test_read_with_append_is_rejected(provider, existing):
    with pytest.raises(InvalidArgument):
        provider.open_channel(existing, OpenOption.READ, OpenOption.APPEND)

def test_truncate_existing_discards_content(provider, store, existing):
    with provider.open_channel(existing, OpenOption.WRITE, OpenOption.TRUNCATE_EXISTING) as channel:
        assert channel.size() == 0
    assert store.get_object(BUCKET, "file.bin") == b""

def test_truncate_shrinks_only(provider, store, existing):
    with provider.open_channel(existing, OpenOption.READ, OpenOption.WRITE) as channel:
        assert channel.truncate(20) == 20
        assert channel.size() == 10
        channel.truncate(4)
        assert channel.size() == 4
    assert store.get_object(BUCKET, "file.bin") == b"0123"

def test_create_missing_object(provider, store, path):
    target = path(f"/{BUCKET}/new.txt")
    with pytest.raises(NotFound):
        provider.open_channel(target, OpenOption.WRITE)
    with provider.open_channel(target, OpenOption.WRITE, OpenOption.CREATE):
        pass
    # A created object is uploaded even when nothing was written
    assert store.get_object(BUCKET, "new.txt") == b""

def test_create_new_on_existing_object_fails(provider, existing):
    with pytest.raises(AlreadyExists):
        provider.open_channel(existing, OpenOption.WRITE, OpenOption.CREATE_NEW)

def test_channel_on_directory_is_rejected(provider, store, path):
    store.put_object(BUCKET, "d/f", b"")
    with pytest.raises(InvalidArgument):
        provider.open_channel(path(f"/{BUCKET}/d"), OpenOption.WRITE, OpenOption.CREATE)
    with pytest.raises(InvalidArgument):
        provider.open_channel(path(f"/{BUCKET}/e/"), OpenOption.WRITE, OpenOption.CREATE)
    with pytest.raises(InvalidArgument):
        provider.open_channel(path(f"/{BUCKET}"))

def test_flush_uploads_and_invalidates_cache(provider, store, filesystem, existing):
    filesystem.cache.put(existing.cache_key, provider.read_attributes(existing))
    channel = provider.open_channel(existing, OpenOption.WRITE, OpenOption.APPEND)
    channel.write(b"!")
    channel.flush()
    assert store.get_object(BUCKET, "file.bin") == b"0123456789!"
    assert filesystem.cache.peek(existing.cache_key) is None

    puts = store.put_calls
    channel.close()
    # Nothing changed since the flush
    assert store.put_calls == puts
    assert channel.closed
    with pytest.raises(InvalidArgument):
        channel.write(b"?")

def test_spooled_buffer_rolls_over_to_disk(store, path):
    target = path(f"/{BUCKET}/big.bin")
    payload = b"x" * 4096
    with SeekableChannel(target, [OpenOption.WRITE, OpenOption.CREATE], spool_max_size=1024) as channel:
        channel.write(payload)
    assert store.get_object(BUCKET, "big.bin") == payload
