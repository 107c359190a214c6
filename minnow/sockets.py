"""Network sockets built on :class:`~minnow.file_descriptor.FileDescriptor`."""

from __future__ import annotations

import errno
import socket
import struct
from collections.abc import Callable
from typing import Any, TypeVar

from minnow.address import Address
from minnow.errors import UnixError
from minnow.file_descriptor import FileDescriptor

_T = TypeVar("_T")

_SOL_PACKET = 263
_PACKET_ADD_MEMBERSHIP = 1
_PACKET_MR_PROMISC = 1
_MSG_TRUNC = getattr(socket, "MSG_TRUNC", 0)

_SocketT = TypeVar("_SocketT", bound="Socket")


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass."""

    def __init__(self, family: int, kind: int, protocol: int = 0) -> None:
        try:
            sock = socket.socket(family, kind, protocol)
        except OSError as exc:
            raise UnixError("socket", exc.errno) from exc
        super().__init__(sock.detach())

    @classmethod
    def _adopt(cls: type[_SocketT], fd: int, family: int, kind: int, protocol: int = 0) -> _SocketT:
        """Wrap an existing descriptor, checking it is the expected kind of socket."""
        adopted = cls.__new__(cls)
        FileDescriptor.__init__(adopted, fd)
        actual = adopted._call("getsockopt", lambda s: (int(s.family), int(s.type), int(s.proto)))
        actual_family, actual_kind, actual_protocol = actual
        if actual_family != family:
            raise RuntimeError("socket domain mismatch")
        if actual_kind != kind:
            raise RuntimeError("socket type mismatch")
        if protocol and actual_protocol != protocol:
            raise RuntimeError("socket protocol mismatch")
        return adopted

    def _call(self, attempt: str, operation: Callable[[socket.socket], _T]) -> _T | None:
        """Run ``operation`` on a temporary socket object sharing this descriptor.

        Returns None if the descriptor is non-blocking and the call would block.
        """
        try:
            sock = socket.socket(fileno=self.fd_num())
        except OSError as exc:
            raise UnixError(attempt, exc.errno) from exc
        try:
            return operation(sock)
        except OSError as exc:
            if self._would_block(exc):
                return None
            raise UnixError(attempt, exc.errno) from exc
        finally:
            sock.detach()

    def _address(self, attempt: str, name: Callable[[socket.socket], Any]) -> Address:
        result = self._call(attempt, lambda s: (s.family, name(s)))
        family, sockaddr = result
        return Address(family, sockaddr)

    def bind(self, address: Address) -> None:
        """Bind the socket to a local address."""
        self._call("bind", lambda s: s.bind(address.sockaddr))

    def bind_to_device(self, device_name: str) -> None:
        """Bind the socket to a network device."""
        option = getattr(socket, "SO_BINDTODEVICE", None)
        if option is None:
            raise UnixError("setsockopt", errno.ENOPROTOOPT)
        name = device_name.encode() if isinstance(device_name, str) else bytes(device_name)
        self._call("setsockopt", lambda s: s.setsockopt(socket.SOL_SOCKET, option, name))

    def connect(self, address: Address) -> None:
        """Connect the socket to a peer address."""
        self._call("connect", lambda s: s.connect(address.sockaddr))

    def shutdown(self, how: int) -> None:
        """Shut down reading, writing, or both (SHUT_RD, SHUT_WR, SHUT_RDWR)."""
        self._call("shutdown", lambda s: s.shutdown(how))
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The address the socket is bound to."""
        return self._address("getsockname", lambda s: s.getsockname())

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        return self._address("getpeername", lambda s: s.getpeername())

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner."""
        self._call("setsockopt", lambda s: s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1))

    def throw_if_error(self) -> None:
        """Raise the socket's pending error, if it has one."""
        socket_error = self._call(
            "getsockopt", lambda s: s.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        )
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> tuple[Address, bytes] | None:
        """Receive one datagram and its sender's address.

        Returns None if the socket is non-blocking and nothing is waiting.
        """
        buffer = bytearray(self.READ_BUFFER_SIZE)
        result = self._call(
            "recvfrom", lambda s: (s.family, *s.recvfrom_into(buffer, len(buffer), _MSG_TRUNC))
        )
        if result is None:
            return None
        family, length, source = result
        if length > len(buffer):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address(family, source), bytes(buffer[:length])

    def sendto(self, destination: Address, payload: bytes) -> None:
        """Send a datagram to ``destination``."""
        self._call("sendto", lambda s: s.sendto(payload, destination.sockaddr))
        self._register_write()

    def send(self, payload: bytes) -> None:
        """Send a datagram to the connected address."""
        self._call("send", lambda s: s.send(payload))
        self._register_write()


class UDPSocket(DatagramSocket):
    """An IPv4 UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """An IPv4 TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting incoming connections."""
        self._call("listen", lambda s: s.listen(backlog))

    def accept(self) -> TCPSocket:
        """Wait for an incoming connection and return a socket connected to the peer."""
        self._register_read()

        def _accept(sock: socket.socket) -> int:
            connection, _peer = sock.accept()
            return connection.detach()

        fd = self._call("accept", _accept)
        if fd is None:
            raise UnixError("accept", errno.EAGAIN)
        return TCPSocket._adopt(fd, socket.AF_INET, socket.SOCK_STREAM)


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, kind: int, protocol: int) -> None:
        family = getattr(socket, "AF_PACKET", None)
        if family is None:
            raise UnixError("socket", errno.EAFNOSUPPORT)
        super().__init__(family, kind, protocol)

    def set_promiscuous(self) -> None:
        """Put the bound interface into promiscuous mode."""
        local = self.local_address()
        if local.family != getattr(socket, "AF_PACKET", None):
            raise RuntimeError("address is not a packet address")
        interface = local.sockaddr[0]
        try:
            index = socket.if_nametoindex(interface)
        except OSError as exc:
            raise UnixError("if_nametoindex", exc.errno or errno.ENODEV) from exc
        request = struct.pack("iHH8s", index, _PACKET_MR_PROMISC, 0, b"")
        self._call(
            "setsockopt", lambda s: s.setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, request)
        )