"""Network sockets built on :class:`FileDescriptor`."""

from __future__ import annotations

import socket
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .address import Address
from .buffer import Buffer, BufferList, BufferViewList, BytesLike
from .file_descriptor import FileDescriptor
from .util import system_call

Payload = Union[str, BytesLike, Buffer, BufferList, BufferViewList]

_MSG_TRUNC = getattr(socket, "MSG_TRUNC", 0)
_SO_DOMAIN = getattr(socket, "SO_DOMAIN", None)


def _as_views(payload: Payload) -> BufferViewList:
    if isinstance(payload, str):
        payload = payload.encode()
    if isinstance(payload, BufferViewList):
        return payload
    return BufferViewList(payload)


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass.

    Constructed either by creating a new socket of the given domain and
    type, or from an existing :class:`FileDescriptor`, whose domain and type
    must match (ValueError otherwise).
    """

    def __init__(self, domain: int, type_: int, fd: Optional[FileDescriptor] = None) -> None:
        if fd is None:
            number = system_call("socket", lambda: socket.socket(domain, type_).detach())
            super().__init__(number)
            return
        self._internal = fd._internal
        with self._socket_object() as sock:
            if _SO_DOMAIN is not None:
                actual_domain = system_call(
                    "getsockopt", lambda: sock.getsockopt(socket.SOL_SOCKET, _SO_DOMAIN)
                )
            else:
                actual_domain = int(sock.family)
            if actual_domain != domain:
                raise ValueError("socket domain mismatch")
            actual_type = system_call(
                "getsockopt", lambda: sock.getsockopt(socket.SOL_SOCKET, socket.SO_TYPE)
            )
            if actual_type != type_:
                raise ValueError("socket type mismatch")

    @contextmanager
    def _socket_object(self) -> Iterator[socket.socket]:
        """A temporary socket object over this descriptor that does not own it."""
        sock = socket.socket(fileno=self.fd_num())
        try:
            yield sock
        finally:
            sock.detach()

    def _get_address(self, name_of_function: str) -> Address:
        with self._socket_object() as sock:
            call = sock.getsockname if name_of_function == "getsockname" else sock.getpeername
            sockaddr = system_call(name_of_function, call)
            return Address._from_sockaddr(int(sock.family), sockaddr)

    def _setsockopt(self, level: int, option: int, option_value: int) -> None:
        with self._socket_object() as sock:
            system_call("setsockopt", lambda: sock.setsockopt(level, option, option_value))

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with self._socket_object() as sock:
            system_call("bind", lambda: sock.bind(address.sockaddr))

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        with self._socket_object() as sock:
            system_call("connect", lambda: sock.connect(address.sockaddr))

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._socket_object() as sock:
            system_call("shutdown", lambda: sock.shutdown(how))
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The local address of the socket."""
        return self._get_address("getsockname")

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        return self._get_address("getpeername")

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner, at some cost in robustness."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


@dataclass
class ReceivedDatagram:
    """A received UDP datagram and the address it came from."""

    source_address: Address
    payload: bytes


class UDPSocket(Socket):
    """An IPv4 UDP socket."""

    def __init__(self, fd: Optional[FileDescriptor] = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM, fd)

    def recv(self, mtu: int = 65536) -> ReceivedDatagram:
        """Receive one datagram; raises RuntimeError if it is larger than ``mtu``."""
        buf = bytearray(mtu)
        with self._socket_object() as sock:
            received, source = system_call(
                "recvfrom", lambda: sock.recvfrom_into(buf, mtu, _MSG_TRUNC)
            )
            family = int(sock.family)
        if received > mtu:
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return ReceivedDatagram(Address._from_sockaddr(family, source), bytes(buf[:received]))

    def _sendmsg(self, payload: Payload, destination: Optional[Address]) -> None:
        views = _as_views(payload)
        iovecs = views.as_iovecs()
        with self._socket_object() as sock:
            if destination is None:
                sent = system_call("sendmsg", lambda: sock.sendmsg(iovecs))
            else:
                sent = system_call(
                    "sendmsg", lambda: sock.sendmsg(iovecs, [], 0, destination.sockaddr)
                )
        if sent != views.size():
            raise RuntimeError("datagram payload too big for sendmsg()")

    def sendto(self, destination: Address, payload: Payload) -> None:
        """Send a datagram to ``destination``."""
        self._sendmsg(payload, destination)
        self._register_write()

    def send(self, payload: Payload) -> None:
        """Send a datagram to the connected peer (call :meth:`connect` first)."""
        self._sendmsg(payload, None)
        self._register_write()


class TCPSocket(Socket):
    """An IPv4 TCP socket."""

    def __init__(self, fd: Optional[FileDescriptor] = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM, fd)

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting incoming connections."""
        with self._socket_object() as sock:
            system_call("listen", lambda: sock.listen(backlog))

    def accept(self) -> "TCPSocket":
        """Wait for and return a new connection to a peer."""
        self._register_read()
        with self._socket_object() as sock:
            conn, _peer = system_call("accept", sock.accept)
        return TCPSocket(FileDescriptor(conn.detach()))


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket wrapped around an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd)