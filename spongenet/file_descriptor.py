"""Reference-counted handles to kernel file descriptors."""

from __future__ import annotations

import os
import sys
from typing import List, Optional, Union

from .buffer import Buffer, BufferList, BufferViewList, BytesLike
from .util import system_call

_MAX_READ = 1024 * 1024

Writable = Union[str, BytesLike, Buffer, BufferList, BufferViewList]


class _FDWrapper:
    """The kernel descriptor shared by every duplicate of a FileDescriptor."""

    __slots__ = ("fd", "eof", "closed", "read_count", "write_count")

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0

    def close(self) -> None:
        system_call("close", lambda: os.close(self.fd))
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finaliser
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


def _drop_prefix(views: List[memoryview], n: int) -> List[memoryview]:
    remaining = []
    for view in views:
        if n >= len(view):
            n -= len(view)
            continue
        remaining.append(view[n:])
        n = 0
    return remaining


class FileDescriptor:
    """A handle to a file descriptor that tracks EOF and read/write counts.

    Duplicates made with :meth:`duplicate` share the descriptor and its
    counters; it is closed when the last of them is gone or on :meth:`close`.
    """

    def __init__(self, fd: int) -> None:
        self._internal = _FDWrapper(fd)

    @staticmethod
    def _sharing(wrapper: _FDWrapper) -> "FileDescriptor":
        obj = FileDescriptor.__new__(FileDescriptor)
        obj._internal = wrapper
        return obj

    def _register_read(self) -> None:
        self._internal.read_count += 1

    def _register_write(self) -> None:
        self._internal.write_count += 1

    def read(self, limit: Optional[int] = None) -> bytes:
        """Read up to ``limit`` bytes (at most 1 MiB); fewer may be returned."""
        size = _MAX_READ if limit is None else min(_MAX_READ, limit)
        data = system_call("read", lambda: os.read(self.fd_num(), size))
        if (limit is None or limit > 0) and not data:
            self._internal.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        self._register_read()
        return data

    def write(self, data: Writable, write_all: bool = True) -> int:
        """Write ``data``, looping until all is written if ``write_all``.

        Returns the number of bytes written.
        """
        if isinstance(data, str):
            data = data.encode()
        views = data if isinstance(data, BufferViewList) else BufferViewList(data)
        pending = [view for view in views.as_iovecs() if len(view)]
        remaining = sum(len(view) for view in pending)
        total = 0
        while True:
            if pending:
                current = pending
                written = system_call("writev", lambda: os.writev(self.fd_num(), current))
            else:
                written = 0
            if written == 0 and remaining:
                raise RuntimeError("write returned 0 given non-empty input buffer")
            if written > remaining:
                raise RuntimeError("write wrote more than length of input buffer")
            self._register_write()
            pending = _drop_prefix(pending, written)
            remaining -= written
            total += written
            if not (write_all and remaining):
                return total

    def close(self) -> None:
        """Close the underlying descriptor."""
        self._internal.close()

    def duplicate(self) -> "FileDescriptor":
        """Another handle sharing this descriptor and its counters."""
        return FileDescriptor._sharing(self._internal)

    def set_blocking(self, blocking_state: bool) -> None:
        """Switch the descriptor between blocking and non-blocking mode."""
        system_call("fcntl", lambda: os.set_blocking(self.fd_num(), blocking_state))

    def fd_num(self) -> int:
        return self._internal.fd

    def eof(self) -> bool:
        return self._internal.eof

    def closed(self) -> bool:
        return self._internal.closed

    def read_count(self) -> int:
        return self._internal.read_count

    def write_count(self) -> int:
        return self._internal.write_count

    def __enter__(self) -> "FileDescriptor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed():
            self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fd={self.fd_num()}, closed={self.closed()})"