"""A bounded in-memory byte stream with separate reader and writer views."""

from __future__ import annotations

import enum


class StreamState(enum.Enum):
    """Lifecycle state of a :class:`ByteStream`."""

    OPEN = enum.auto()
    CLOSED = enum.auto()
    ERROR = enum.auto()


class ByteStream:
    """A reliable byte stream with a fixed capacity.

    Bytes are written through :meth:`writer` and read through :meth:`reader`.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._capacity = capacity
        self._buffer = bytearray()
        self._bytes_pushed = 0
        self._bytes_popped = 0
        self._state = StreamState.OPEN
        self._reader = Reader(self)
        self._writer = Writer(self)

    @property
    def capacity(self) -> int:
        """The maximum number of bytes the stream buffers at once."""
        return self._capacity

    @property
    def state(self) -> StreamState:
        """The current lifecycle state."""
        return self._state

    def reader(self) -> Reader:
        """Return the reading side of the stream."""
        return self._reader

    def writer(self) -> Writer:
        """Return the writing side of the stream."""
        return self._writer


class Writer:
    """The writing side of a :class:`ByteStream`."""

    def __init__(self, stream: ByteStream) -> None:
        self._stream = stream

    def push(self, data: bytes) -> None:
        """Append as much of ``data`` as the available capacity allows."""
        stream = self._stream
        accepted = bytes(data)[: self.available_capacity()]
        stream._buffer += accepted
        stream._bytes_pushed += len(accepted)

    def close(self) -> None:
        """Signal that nothing more will be written."""
        self._stream._state = StreamState.CLOSED

    def set_error(self) -> None:
        """Signal that the stream suffered an error."""
        self._stream._state = StreamState.ERROR

    def is_closed(self) -> bool:
        """Whether the stream has been closed."""
        return self._stream._state is StreamState.CLOSED

    def available_capacity(self) -> int:
        """How many bytes can be pushed right now."""
        return self._stream._capacity - len(self._stream._buffer)

    def bytes_pushed(self) -> int:
        """Total number of bytes ever pushed."""
        return self._stream._bytes_pushed


class Reader:
    """The reading side of a :class:`ByteStream`."""

    def __init__(self, stream: ByteStream) -> None:
        self._stream = stream

    def peek(self) -> bytes:
        """Return the buffered bytes without removing them."""
        return bytes(self._stream._buffer)

    def pop(self, length: int) -> None:
        """Remove up to ``length`` bytes from the front of the buffer."""
        if length < 0:
            raise ValueError("length must not be negative")
        stream = self._stream
        count = min(length, len(stream._buffer))
        del stream._buffer[:count]
        stream._bytes_popped += count

    def is_finished(self) -> bool:
        """Whether the stream is closed and fully drained."""
        stream = self._stream
        return stream._state is StreamState.CLOSED and not stream._buffer

    def has_error(self) -> bool:
        """Whether the stream has had an error."""
        return self._stream._state is StreamState.ERROR

    def bytes_buffered(self) -> int:
        """Number of bytes pushed but not yet popped."""
        return len(self._stream._buffer)

    def bytes_popped(self) -> int:
        """Total number of bytes ever popped."""
        return self._stream._bytes_popped


def read(reader: Reader, length: int) -> bytes:
    """Peek and pop up to ``length`` bytes from ``reader``."""
    out = bytearray()
    while reader.bytes_buffered() and len(out) < length:
        view = reader.peek()
        if not view:
            raise RuntimeError("Reader.peek() returned no bytes")
        view = view[: length - len(out)]
        out += view
        reader.pop(len(view))
    return bytes(out)