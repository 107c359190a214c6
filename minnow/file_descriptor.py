"""Reference-counted handles on kernel file descriptors."""

from __future__ import annotations

import errno
import os
import sys
from collections.abc import Iterable
from typing import Any

from minnow.errors import UnixError

_WOULD_BLOCK = frozenset({errno.EAGAIN, errno.EWOULDBLOCK, errno.EINPROGRESS})


class _Handle:
    """The shared state of one kernel descriptor; closes it when dropped."""

    def __init__(self, fd: int) -> None:
        self.closed = True
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        try:
            self.non_blocking = not os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc
        self.fd = fd
        self.eof = False
        self.read_count = 0
        self.write_count = 0
        self.closed = False

    def close(self) -> None:
        try:
            os.close(self.fd)
        except OSError as exc:
            raise UnixError("close", exc.errno) from exc
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise while being collected
            print(f"Exception closing file descriptor: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor; duplicates share it, the last one closes it."""

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd: int) -> None:
        self._handle = _Handle(fd)

    @classmethod
    def _sharing(cls, handle: _Handle) -> FileDescriptor:
        duplicate = FileDescriptor.__new__(cls)
        duplicate._handle = handle
        return duplicate

    def duplicate(self) -> FileDescriptor:
        """Return another handle on the same descriptor."""
        return FileDescriptor._sharing(self._handle)

    def _would_block(self, exc: OSError) -> bool:
        return self._handle.non_blocking and exc.errno in _WOULD_BLOCK

    def _register_read(self) -> None:
        self._handle.read_count += 1

    def _register_write(self) -> None:
        self._handle.write_count += 1

    def _set_eof(self) -> None:
        self._handle.eof = True

    def read(self) -> bytes:
        """Read up to READ_BUFFER_SIZE bytes; empty at end of file or if it would block."""
        try:
            data = os.read(self.fd_num(), self.READ_BUFFER_SIZE)
        except OSError as exc:
            if self._would_block(exc):
                return b""
            raise UnixError("read", exc.errno) from exc
        self._register_read()
        if not data:
            self._set_eof()
        return data

    def read_many(self, sizes: Iterable[int]) -> list[bytes]:
        """Read once into buffers of the given sizes and return what each received."""
        sizes = list(sizes)
        if not sizes:
            return []
        if any(size < 0 for size in sizes):
            raise ValueError("buffer sizes must not be negative")
        buffers = [bytearray(size) for size in sizes]
        try:
            count = os.readv(self.fd_num(), buffers)
        except OSError as exc:
            if self._would_block(exc):
                return [b"" for _ in sizes]
            raise UnixError("read", exc.errno) from exc
        self._register_read()
        if count > sum(sizes):
            raise RuntimeError("read() read more than requested")
        chunks = []
        remaining = count
        for buffer in buffers:
            taken = min(remaining, len(buffer))
            chunks.append(bytes(buffer[:taken]))
            remaining -= taken
        return chunks

    def write(self, *args: Any) -> int:
        """Write one or more buffers in a single call; return the bytes written.

        A single list or tuple of buffers may be passed instead of several arguments.
        """
        if len(args) == 1 and isinstance(args[0], (list, tuple)):
            buffers = list(args[0])
        else:
            buffers = list(args)
        total = sum(memoryview(buffer).nbytes for buffer in buffers)
        try:
            written = os.writev(self.fd_num(), buffers)
        except OSError as exc:
            if not self._would_block(exc):
                raise UnixError("writev", exc.errno) from exc
            written = 0
        self._register_write()
        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        """Close the descriptor for every handle that shares it."""
        self._handle.close()

    def set_blocking(self, blocking: bool) -> None:
        """Make the descriptor blocking (True) or non-blocking (False)."""
        try:
            os.set_blocking(self.fd_num(), blocking)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc
        self._handle.non_blocking = not blocking

    def fd_num(self) -> int:
        """The underlying descriptor number."""
        return self._handle.fd

    def eof(self) -> bool:
        """Whether end of file has been reached."""
        return self._handle.eof

    def closed(self) -> bool:
        """Whether the descriptor has been closed."""
        return self._handle.closed

    def read_count(self) -> int:
        """Number of successful reads."""
        return self._handle.read_count

    def write_count(self) -> int:
        """Number of writes."""
        return self._handle.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if not self.closed():
            self.close()