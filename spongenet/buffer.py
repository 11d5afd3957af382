"""Shared read-only byte strings that can discard bytes from the front."""

from __future__ import annotations

import copy as _copy
from collections import deque
from typing import Deque, List, Optional, Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]


def _byte_view(data: BytesLike) -> memoryview:
    view = memoryview(data)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


class Buffer:
    """A read-only byte string whose storage is shared between copies.

    Each copy keeps its own starting offset, so discarding a prefix from one
    copy leaves the others untouched and needs no copy of the data.
    """

    __slots__ = ("_storage", "_offset")

    def __init__(self, data: BytesLike = b"") -> None:
        self._storage = bytes(data)
        self._offset = 0

    def str(self) -> memoryview:
        """A read-only view of the remaining bytes."""
        return memoryview(self._storage)[self._offset :]

    def at(self, n: int) -> int:
        """The byte at position ``n``; raises IndexError if out of range."""
        if n < 0 or n >= self.size():
            raise IndexError("Buffer.at")
        return self._storage[self._offset + n]

    def size(self) -> int:
        return len(self._storage) - self._offset

    def copy(self) -> bytes:
        """The remaining bytes as a new ``bytes`` object."""
        return self._storage[self._offset :]

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes; raises IndexError if there are fewer."""
        if n < 0 or n > self.size():
            raise IndexError("Buffer.remove_prefix")
        self._offset += n
        if self._storage and self._offset == len(self._storage):
            self._storage = b""
            self._offset = 0

    def __len__(self) -> int:
        return self.size()

    def __bytes__(self) -> bytes:
        return self.copy()

    def __copy__(self) -> "Buffer":
        clone = Buffer.__new__(Buffer)
        clone._storage = self._storage
        clone._offset = self._offset
        return clone

    def __repr__(self) -> str:
        return f"Buffer({self.copy()!r})"


class BufferList:
    """A discontiguous byte string made of a sequence of :class:`Buffer` objects.

    Lets headers be prepended to a payload without copying the payload.
    """

    def __init__(self, data: Optional[Union[Buffer, BytesLike]] = None) -> None:
        self._buffers: Deque[Buffer] = deque()
        if data is None:
            return
        if isinstance(data, Buffer):
            self._buffers.append(_copy.copy(data))
        else:
            self._buffers.append(Buffer(data))

    def buffers(self) -> Tuple[Buffer, ...]:
        """The underlying buffers, in order."""
        return tuple(self._buffers)

    def append(self, other: Union["BufferList", Buffer, BytesLike]) -> None:
        """Append the buffers of ``other`` (converted to a BufferList if needed)."""
        if not isinstance(other, BufferList):
            other = BufferList(other)
        self._buffers.extend(_copy.copy(buf) for buf in other._buffers)

    def to_buffer(self) -> Buffer:
        """Return the contents as a single Buffer.

        Raises ValueError if the list holds more than one buffer; use
        :meth:`concatenate` instead.
        """
        if not self._buffers:
            return Buffer()
        if len(self._buffers) == 1:
            return _copy.copy(self._buffers[0])
        raise ValueError(
            "BufferList: please use concatenate() to combine a multi-Buffer BufferList into one Buffer"
        )

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes; raises IndexError if there are fewer."""
        while n > 0:
            if not self._buffers:
                raise IndexError("BufferList.remove_prefix")
            front = self._buffers[0]
            if n < front.size():
                front.remove_prefix(n)
                n = 0
            else:
                n -= front.size()
                self._buffers.popleft()

    def size(self) -> int:
        return sum(buf.size() for buf in self._buffers)

    def concatenate(self) -> bytes:
        """All bytes joined into one ``bytes`` object."""
        return b"".join(buf.str() for buf in self._buffers)

    def __len__(self) -> int:
        return self.size()


class BufferViewList:
    """A non-owning view of a discontiguous byte string."""

    def __init__(self, data: Union[BufferList, Buffer, BytesLike]) -> None:
        if isinstance(data, BufferList):
            self._views: Deque[memoryview] = deque(buf.str() for buf in data.buffers())
        elif isinstance(data, Buffer):
            self._views = deque([data.str()])
        else:
            self._views = deque([_byte_view(data)])

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes; raises IndexError if there are fewer."""
        while n > 0:
            if not self._views:
                raise IndexError("BufferViewList.remove_prefix")
            front = self._views[0]
            if n < len(front):
                self._views[0] = front[n:]
                n = 0
            else:
                n -= len(front)
                self._views.popleft()

    def size(self) -> int:
        return sum(len(view) for view in self._views)

    def as_iovecs(self) -> List[memoryview]:
        """The views as a list suitable for scatter/gather writes."""
        return list(self._views)

    def __len__(self) -> int:
        return self.size()