"""Byte streams, stream reassembly, socket helpers and a small HTTP fetcher."""

__version__ = "0.1.0"

__all__ = [
    "address",
    "byte_stream",
    "errors",
    "file_descriptor",
    "reassembler",
    "sockets",
    "webget",
]