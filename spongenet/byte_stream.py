"""A flow-controlled, in-memory, in-order byte stream."""

from __future__ import annotations


class ByteStream:
    """Bytes are written on the input side and read from the output side.

    The stream holds at most ``capacity`` unread bytes. The writer can end
    the input, after which the stream reaches EOF once everything is read.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._buffer = bytearray()
        self._input_ended = False
        self._error = False
        self._bytes_written = 0
        self._bytes_read = 0

    # Input side

    def write(self, data: bytes) -> int:
        """Write as much of ``data`` as fits and return how many bytes were accepted."""
        accepted = min(self.remaining_capacity(), len(data))
        self._buffer += data[:accepted]
        self._bytes_written += accepted
        return accepted

    def remaining_capacity(self) -> int:
        """Number of additional bytes the stream has room for."""
        return self._capacity - len(self._buffer)

    def end_input(self) -> None:
        """Signal that no more bytes will be written."""
        self._input_ended = True

    def set_error(self) -> None:
        """Mark the stream as having suffered an error."""
        self._error = True

    # Output side

    def peek_output(self, length: int) -> bytes:
        """Return up to ``length`` bytes from the front without removing them."""
        return bytes(self._buffer[: min(length, len(self._buffer))])

    def pop_output(self, length: int) -> None:
        """Discard ``length`` bytes from the front; flags an error if fewer are buffered."""
        if length > len(self._buffer):
            self.set_error()
            return
        del self._buffer[:length]
        self._bytes_read += length

    def read(self, length: int) -> bytes:
        """Remove and return the next ``length`` bytes.

        If fewer bytes are buffered, the stream is flagged as errored and
        nothing is returned.
        """
        if length > len(self._buffer):
            self.set_error()
            return b""
        out = bytes(self._buffer[:length])
        del self._buffer[:length]
        self._bytes_read += length
        return out

    def input_ended(self) -> bool:
        return self._input_ended

    def error(self) -> bool:
        return self._error

    def buffer_size(self) -> int:
        """The number of bytes that can currently be read."""
        return len(self._buffer)

    def buffer_empty(self) -> bool:
        return not self._buffer

    def eof(self) -> bool:
        """True once the input has ended and every byte has been read."""
        return not self._buffer and self._input_ended

    # Accounting

    def bytes_written(self) -> int:
        """Total number of bytes accepted by ``write``."""
        return self._bytes_written

    def bytes_read(self) -> int:
        """Total number of bytes removed from the stream."""
        return self._bytes_read