# minnow

Building blocks for a user-space TCP implementation, plus a small HTTP fetcher.

- `minnow.byte_stream`: a bounded in-memory byte stream. A `ByteStream(capacity)`
  hands out a `Writer` through `writer()` and a `Reader` through `reader()`.
  The writer's `push(data)` accepts only as many bytes as
  `available_capacity()` allows and drops the rest; `close()` and
  `set_error()` change the stream's `StreamState`, and `is_closed()` and
  `bytes_pushed()` report on it. The reader's `peek()` returns the buffered
  bytes, `pop(length)` removes up to `length` of them, and `is_finished()`,
  `has_error()`, `bytes_buffered()` and `bytes_popped()` report on the stream.
  `read(reader, length)` peeks and pops up to `length` bytes in one call.
- `minnow.reassembler`: a `Reassembler` whose
  `insert(first_index, data, is_last_substring, output)` takes indexed,
  possibly out-of-order and overlapping substrings and writes them, in order,
  into a `Writer`. Bytes beyond the stream's available capacity are discarded,
  and the stream is closed once the last substring has been written.
  `bytes_pending()` tells how many bytes are held back waiting for a gap to be
  filled.
- `minnow.address`: `Address`, an address family with its sockaddr value.
  `Address.resolve(hostname, service)` looks up an IPv4 address,
  `Address.from_ip_port(ip, port)` and `Address.from_ipv4_numeric(n)` build
  one without a lookup, and `ip_port()`, `ip()`, `port()`, `ipv4_numeric()`
  and `str()` read it back.
- `minnow.file_descriptor`: `FileDescriptor`, a handle on a kernel file
  descriptor that can be `duplicate()`d; the descriptor is closed by `close()`,
  on leaving a `with` block, or when the last handle is dropped. It counts reads
  and writes and tracks end of file.
- `minnow.sockets`: `TCPSocket`, `UDPSocket` and `PacketSocket` (Linux only)
  on top of `FileDescriptor`, with `bind`, `connect`, `shutdown`, `listen`,
  `accept`, `recv`, `sendto` and `send`.
- `minnow.errors`: `UnixError` for failed system calls and `ResolverError`
  for failed name lookups, both subclasses of `TaggedError` (itself an
  `OSError`) whose message names the operation that was attempted.
- `minnow.webget`: fetch a page over plain HTTP/1.1.

## Installing

    pip install .

## Using the byte stream and reassembler

Data is always bytes.

```python
from minnow.byte_stream import ByteStream, read
from minnow.reassembler import Reassembler

stream = ByteStream(15)
reassembler = Reassembler()

reassembler.insert(1, b"b", False, stream.writer())
print(reassembler.bytes_pending())    # 1

reassembler.insert(0, b"a", True, stream.writer())

print(read(stream.reader(), 2))       # b'ab'
print(stream.reader().is_finished())  # True
```

## Fetching a page

    webget HOST PATH

For example:

    webget example.com /index.html

The request is sent with `Connection: close`, and the full response, headers
included, is written unchanged to standard output. With the wrong number of
arguments a usage message is printed and the command exits with status 1;
any error during the fetch is printed to standard error with the same status.

## What it does not do

The package has no TCP sender or receiver, no segment format and no
retransmission: it offers the byte stream and reassembler that such a layer
would be built on, and `webget` uses the operating system's own TCP.

## Running the tests

    pip install ".[test]"
    pytest