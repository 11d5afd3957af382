"""Big-endian integer parsing and serialisation for network headers."""

from __future__ import annotations

import copy as _copy
from enum import Enum
from typing import Union

from .buffer import Buffer, BytesLike


class ParseResult(Enum):
    """The result of parsing or unparsing a datagram, segment, frame or message."""

    NoError = 0
    BadChecksum = 1
    PacketTooShort = 2
    WrongIPVersion = 3
    HeaderTooShort = 4
    TruncatedPacket = 5
    Unsupported = 6


def as_string(r: ParseResult) -> str:
    """A readable name for a :class:`ParseResult`."""
    return ParseResult(r).name


class NetParser:
    """Consumes big-endian integers from the front of a :class:`Buffer`.

    Running out of data does not raise: the parser records
    ``ParseResult.PacketTooShort`` and every later read returns 0.
    """

    def __init__(self, buffer: Union[Buffer, BytesLike]) -> None:
        if isinstance(buffer, Buffer):
            self._buffer = _copy.copy(buffer)
        else:
            self._buffer = Buffer(buffer)
        self._error = ParseResult.NoError

    def buffer(self) -> Buffer:
        """The bytes not yet consumed."""
        return _copy.copy(self._buffer)

    def get_error(self) -> ParseResult:
        return self._error

    def set_error(self, res: ParseResult) -> None:
        self._error = res

    def error(self) -> bool:
        """True if any error has been recorded."""
        return self._error is not ParseResult.NoError

    def _check_size(self, size: int) -> None:
        if size > self._buffer.size():
            self.set_error(ParseResult.PacketTooShort)

    def _parse_int(self, length: int) -> int:
        self._check_size(length)
        if self.error():
            return 0
        value = int.from_bytes(self._buffer.str()[:length], "big")
        self._buffer.remove_prefix(length)
        return value

    def u32(self) -> int:
        """Parse a 32-bit integer in network byte order."""
        return self._parse_int(4)

    def u16(self) -> int:
        """Parse a 16-bit integer in network byte order."""
        return self._parse_int(2)

    def u8(self) -> int:
        """Parse an 8-bit integer."""
        return self._parse_int(1)

    def remove_prefix(self, n: int) -> None:
        """Skip ``n`` bytes, recording an error if there are fewer."""
        self._check_size(n)
        if self.error():
            return
        self._buffer.remove_prefix(n)


class NetUnparser:
    """Appends big-endian integers to a ``bytearray``."""

    @staticmethod
    def _unparse_int(s: bytearray, val: int, length: int) -> None:
        s += (val & ((1 << (8 * length)) - 1)).to_bytes(length, "big")

    @staticmethod
    def u32(s: bytearray, val: int) -> None:
        """Append a 32-bit integer in network byte order."""
        NetUnparser._unparse_int(s, val, 4)

    @staticmethod
    def u16(s: bytearray, val: int) -> None:
        """Append a 16-bit integer in network byte order."""
        NetUnparser._unparse_int(s, val, 2)

    @staticmethod
    def u8(s: bytearray, val: int) -> None:
        """Append an 8-bit integer."""
        NetUnparser._unparse_int(s, val, 1)