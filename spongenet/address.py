"""IPv4 socket addresses and name resolution."""

from __future__ import annotations

import socket
from typing import Any, Tuple

from .util import TaggedError

_NUMERIC_LOOKUP = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
_RESOLVE_FLAGS = getattr(socket, "AI_ALL", 0)
_NUMERIC_NAME = socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
_EAI_FAMILY = getattr(socket, "EAI_FAMILY", -6)

_SOCKADDR_IN_SIZE = 16
_SOCKADDR_IN6_SIZE = 28
_SUN_PATH_OFFSET = 2


def _lookup(node: str, service: str, flags: int) -> Tuple[int, Any]:
    """Resolve ``node``/``service`` to the first IPv4 (family, sockaddr) pair."""
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno or 0, exc.strerror) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _type, _proto, _canon, sockaddr = results[0]
    return family, sockaddr


class Address:
    """An IPv4 socket address: a dotted-quad host and a port.

    ``Address("18.243.0.1", 80)`` parses a numeric address without any DNS
    lookup; :meth:`resolve` looks a host and service name up.
    """

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        family, sockaddr = _lookup(ip, str(port), _NUMERIC_LOOKUP)
        self._family = family
        self._sockaddr = (sockaddr[0], sockaddr[1])

    @classmethod
    def resolve(cls, hostname: str, service: str) -> "Address":
        """Resolve a host name and a service name (e.g. "http") or number."""
        return cls._from_sockaddr(*_lookup(hostname, service, _RESOLVE_FLAGS))

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> "Address":
        """An address (port 0) from a 32-bit IPv4 address in host order."""
        if not 0 <= ip_address <= 0xFFFFFFFF:
            raise ValueError(f"not a 32-bit address: {ip_address}")
        return cls._from_sockaddr(
            socket.AF_INET, (socket.inet_ntoa(ip_address.to_bytes(4, "big")), 0)
        )

    @classmethod
    def _from_sockaddr(cls, family: int, sockaddr: Any) -> "Address":
        """Wrap a socket-module address of the given family."""
        obj = cls.__new__(cls)
        obj._family = family
        if family == socket.AF_INET:
            obj._sockaddr = (sockaddr[0], sockaddr[1])
        elif isinstance(sockaddr, list):
            obj._sockaddr = tuple(sockaddr)
        else:
            obj._sockaddr = sockaddr
        return obj

    @property
    def family(self) -> int:
        """The address family, e.g. ``socket.AF_INET``."""
        return self._family

    @property
    def sockaddr(self) -> Any:
        """The address in the form the ``socket`` module accepts."""
        return self._sockaddr

    def ip_port(self) -> Tuple[str, int]:
        """The numeric host string and the port."""
        if self._family not in (socket.AF_INET, socket.AF_INET6):
            raise TaggedError("getnameinfo", _EAI_FAMILY, "ai_family not supported")
        try:
            host, port = socket.getnameinfo(self._sockaddr, _NUMERIC_NAME)
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno or 0, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        """The dotted-quad host string."""
        return self.ip_port()[0]

    def port(self) -> int:
        """The port number in host order."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host order."""
        if self._family != socket.AF_INET:
            raise ValueError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self._sockaddr[0]), "big")

    def to_string(self) -> str:
        """A readable form such as "8.8.8.8:53"."""
        host, port = self.ip_port()
        return f"{host}:{port}"

    def size(self) -> int:
        """The length of the underlying socket address structure."""
        if self._family == socket.AF_INET:
            return _SOCKADDR_IN_SIZE
        if self._family == socket.AF_INET6:
            return _SOCKADDR_IN6_SIZE
        path = self._sockaddr
        if isinstance(path, str):
            path = path.encode()
        return _SUN_PATH_OFFSET + len(path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Address(family={self._family!r}, sockaddr={self._sockaddr!r})"