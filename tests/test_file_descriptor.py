import errno
import gc
import os

import pytest

from minnow.errors import UnixError
from minnow.file_descriptor import FileDescriptor


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    reader, writer = FileDescriptor(read_fd), FileDescriptor(write_fd)
    yield reader, writer
    for handle in (reader, writer):
        if not handle.closed():
            handle.close()


def test_write_then_read(pipe):
    reader, writer = pipe
    assert writer.write(b"hello") == 5
    assert reader.read() == b"hello"
    assert writer.write_count() == 1
    assert reader.read_count() == 1
    assert not reader.eof()


def test_read_after_writer_closed_sets_eof(pipe):
    reader, writer = pipe
    writer.close()
    assert writer.closed()
    assert reader.read() == b""
    assert reader.eof()


def test_write_several_buffers(pipe):
    reader, writer = pipe
    assert writer.write(b"ab", b"cd", bytearray(b"e")) == 5
    assert writer.write([b"fg", b"h"]) == 3
    assert reader.read() == b"abcdefgh"
    assert writer.write_count() == 2


def test_empty_write_returns_zero(pipe):
    _reader, writer = pipe
    assert writer.write(b"") == 0
    assert writer.write_count() == 1


def test_read_many_splits_across_buffers(pipe):
    reader, writer = pipe
    writer.write(b"hello")
    assert reader.read_many([2, 3]) == [b"he", b"llo"]
    writer.write(b"abc")
    assert reader.read_many([2, 10]) == [b"ab", b"c"]
    writer.write(b"xy")
    assert reader.read_many([2, 2, 2]) == [b"xy", b"", b""]
    assert reader.read_count() == 3
    assert reader.read_many([]) == []


def test_invalid_fd_rejected():
    with pytest.raises(RuntimeError, match="invalid fd number:-1"):
        FileDescriptor(-1)


def test_close_twice_raises_unix_error(pipe):
    reader, _writer = pipe
    reader.close()
    with pytest.raises(UnixError) as info:
        reader.close()
    assert info.value.error_code == errno.EBADF
    assert str(info.value).startswith("close: ")


def test_duplicate_shares_state(pipe):
    reader, writer = pipe
    copy = writer.duplicate()
    assert copy.fd_num() == writer.fd_num()
    copy.write(b"x")
    assert writer.write_count() == 1
    copy.close()
    assert writer.closed()
    assert reader.read() == b"x"


def test_non_blocking_read_on_empty_pipe(pipe):
    reader, _writer = pipe
    reader.set_blocking(False)
    assert reader.read() == b""
    assert reader.read_count() == 0
    assert not reader.eof()
    assert reader.read_many([4]) == [b""]


def test_non_blocking_write_on_full_pipe(pipe):
    _reader, writer = pipe
    writer.set_blocking(False)
    chunk = b"x" * 65536
    with pytest.raises(RuntimeError, match="write returned 0"):
        for _ in range(2000):
            writer.write(chunk)


def test_set_blocking_round_trip(pipe):
    reader, _writer = pipe
    reader.set_blocking(False)
    assert os.get_blocking(reader.fd_num()) is False
    reader.set_blocking(True)
    assert os.get_blocking(reader.fd_num()) is True


def test_context_manager_closes():
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    with FileDescriptor(read_fd) as handle:
        assert handle.read() == b""
    assert handle.closed()
    with pytest.raises(OSError):
        os.fstat(read_fd)


def test_last_handle_closes_descriptor():
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    original = FileDescriptor(read_fd)
    copy = original.duplicate()
    del original
    gc.collect()
    assert copy.read() == b""
    assert copy.eof()
    del copy
    gc.collect()
    with pytest.raises(OSError):
        os.fstat(read_fd)