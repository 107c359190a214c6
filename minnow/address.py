"""Socket addresses and name resolution."""

from __future__ import annotations

import socket
from typing import Any

from minnow.errors import ResolverError

_IP_FAMILIES = (socket.AF_INET, socket.AF_INET6)
_UINT16_MAX = 0xFFFF
_UINT32_MAX = 0xFFFFFFFF


class Address:
    """A socket address: an address family and the matching sockaddr value."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, family: int, sockaddr: Any) -> None:
        if isinstance(sockaddr, list):
            sockaddr = tuple(sockaddr)
        if family == socket.AF_INET and not (isinstance(sockaddr, tuple) and len(sockaddr) == 2):
            raise ValueError("an IPv4 address needs a (host, port) pair")
        self._family = family
        self._sockaddr = sockaddr

    @property
    def family(self) -> int:
        """The address family."""
        return self._family

    @property
    def sockaddr(self) -> Any:
        """The address in the form the socket module uses."""
        return self._sockaddr

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Resolve a host name and a service name (such as "http") to an IPv4 address."""
        return cls._lookup(hostname, str(service), getattr(socket, "AI_ALL", 0))

    @classmethod
    def from_ip_port(cls, ip: str, port: int = 0) -> Address:
        """Build an address from a dotted-quad string and a numeric port."""
        if not 0 <= port <= _UINT16_MAX:
            raise ValueError(f"port out of range: {port}")
        return cls._lookup(ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV)

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build an IPv4 address (port 0) from its 32-bit numeric value."""
        if not 0 <= ip_address <= _UINT32_MAX:
            raise ValueError(f"not a 32-bit address: {ip_address}")
        return cls(socket.AF_INET, (socket.inet_ntoa(ip_address.to_bytes(4, "big")), 0))

    @classmethod
    def _lookup(cls, node: str, service: str, flags: int) -> Address:
        try:
            results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
        except socket.gaierror as exc:
            raise ResolverError(f"getaddrinfo({node}, {service})", exc.errno, exc.strerror) from exc
        if not results:
            raise RuntimeError("getaddrinfo returned successfully but with no results")
        family, _kind, _proto, _canonname, sockaddr = results[0]
        return cls(family, sockaddr)

    def ip_port(self) -> tuple[str, int]:
        """Numeric host string and port number."""
        if self._family not in _IP_FAMILIES:
            raise ResolverError("getnameinfo", socket.EAI_FAMILY, "ai_family not supported")
        try:
            host, port = socket.getnameinfo(
                self._sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
            )
        except socket.gaierror as exc:
            raise ResolverError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        """Numeric host string, e.g. a dotted quad."""
        return self.ip_port()[0]

    def port(self) -> int:
        """Port number in host byte order."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host byte order."""
        if self._family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self._sockaddr[0]), "big")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((int(self._family), self._sockaddr))

    def __str__(self) -> str:
        ip, port = self.ip_port()
        return f"{ip}:{port}"

    def __repr__(self) -> str:
        return f"Address({self._family!r}, {self._sockaddr!r})"