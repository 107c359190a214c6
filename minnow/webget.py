"""Fetch a page over HTTP/1.1 and copy the raw response to standard output."""

from __future__ import annotations

import os
import socket
import sys
from typing import BinaryIO

from minnow.address import Address
from minnow.sockets import TCPSocket


def get_url(host: str, path: str, output: BinaryIO) -> None:
    """Send a GET request for ``path`` to ``host`` and write the reply to ``output``."""
    print(f"Function called: get_url({host}, {path})", file=sys.stderr)
    target = Address.resolve(host, "http")
    with TCPSocket() as connection:
        connection.connect(target)
        request = f"GET {path} HTTP/1.1\r\nHost: {host}\r\nConnection: close\r\n\r\n"
        connection.write(request.encode())
        connection.shutdown(socket.SHUT_WR)
        while not connection.eof():
            output.write(connection.read())


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point: ``webget HOST PATH``."""
    program = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "webget"
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        print(f"Usage: {program} HOST PATH", file=sys.stderr)
        print(f"\tExample: {program} example.com /index.html", file=sys.stderr)
        return 1
    host, path = args
    output = sys.stdout.buffer
    try:
        get_url(host, path, output)
    except Exception as exc:
        print(exc, file=sys.stderr)
        return 1
    finally:
        output.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())