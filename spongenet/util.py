"""Miscellaneous helpers: error types, checksums, timing and hex dumps."""

from __future__ import annotations

import os
import random
import sys
import time
from typing import Callable, Optional, Union

from .buffer import BytesLike


class TaggedError(OSError):
    """An OSError carrying the name of what was being attempted."""

    def __init__(self, attempt: str, error_code: int, message: Optional[str] = None) -> None:
        if message is None:
            message = os.strerror(error_code)
        super().__init__(error_code, message)
        self.attempt = attempt

    def __str__(self) -> str:
        return f"{self.attempt}: {self.strerror}"


class UnixError(TaggedError):
    """A :class:`TaggedError` for a failed system call."""

    def __init__(self, attempt: str, error: int) -> None:
        super().__init__(attempt, error)


def system_call(
    attempt: str,
    return_value: Union[int, Callable[[], int]],
    errno_mask: int = 0,
) -> int:
    """Check the outcome of a system call.

    ``return_value`` is either the call's result, where a negative integer
    means failure with error ``-return_value``, or a zero-argument callable
    that performs the call and raises OSError on failure. A failure whose
    error number equals ``errno_mask`` is tolerated and reported as a
    negative error number; any other failure raises :class:`UnixError`.
    """
    if callable(return_value):
        try:
            result = return_value()
        except OSError as exc:
            code = exc.errno or 0
            if errno_mask and code == errno_mask:
                return -code
            raise UnixError(attempt, code) from exc
    else:
        result = return_value
    if isinstance(result, int) and result < 0:
        code = -result
        if errno_mask and code == errno_mask:
            return result
        raise UnixError(attempt, code)
    return result


def get_random_generator() -> random.Random:
    """A Mersenne Twister generator seeded with a full state's worth of entropy."""
    return random.Random(int.from_bytes(os.urandom(624 * 4), "big"))


_program_start: Optional[float] = None


def timestamp_ms() -> int:
    """Milliseconds elapsed since the first call to this function."""
    global _program_start
    now = time.monotonic()
    if _program_start is None:
        _program_start = now
    return int((now - _program_start) * 1000)


class InternetChecksum:
    """The Internet (ones'-complement) checksum, returned in host order.

    Summing a correctly checksummed header yields 0. To compute a checksum,
    sum the data with the checksum field zeroed and store :meth:`value`.
    """

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._odd = False

    def add(self, data: BytesLike) -> None:
        """Add more bytes; data may be split at any boundary between calls."""
        data = bytes(data)
        if self._odd:
            high, low = data[1::2], data[0::2]
        else:
            high, low = data[0::2], data[1::2]
        self._sum = (self._sum + (sum(high) << 8) + sum(low)) & 0xFFFFFFFF
        if len(data) % 2:
            self._odd = not self._odd

    def value(self) -> int:
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte <= 0x7E else "."


def hexdump(data: BytesLike, indent: int = 0) -> None:
    """Print a hex dump of ``data`` to standard output, 16 bytes per line."""
    data = bytes(data)
    pad = " " * indent
    out = []
    chunks = [data[i : i + 16] for i in range(0, len(data), 16)]
    for number, chunk in enumerate(chunks):
        hex_groups = " ".join(chunk[j : j + 2].hex() for j in range(0, len(chunk), 2))
        out.append(f"{pad}{number * 16:08x}:    {hex_groups}")
        chars = "".join(_printable(b) for b in chunk)
        if number < len(chunks) - 1:
            out.append(f"    {chars}\n")
    last_chars = "".join(_printable(b) for b in chunks[-1]) if chunks else ""
    rem = (16 - len(data) % 16) % 16
    out.append(" " * (2 * rem + rem // 2 + 4) + (last_chars or " "))
    out.append("\n\n")
    sys.stdout.write("".join(out))
    sys.stdout.flush()