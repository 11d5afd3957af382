"""Reassembly of possibly out-of-order, overlapping substrings into a byte stream."""

from __future__ import annotations

from .byte_stream import ByteStream


class StreamReassembler:
    """Assembles excerpts of a byte stream into an in-order :class:`ByteStream`.

    The capacity bounds both the reassembled bytes that have not been read
    yet and the bytes stored but not yet reassembled. Bytes that would
    exceed it are silently discarded.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._first_unassembled = 0
        self._unassembled = 0
        self._eof = False
        self._pending = bytearray(capacity)
        self._present = bytearray(capacity)
        self._output = ByteStream(capacity)

    def _store(self, data: bytes, start: int, pos: int, length: int) -> None:
        """Copy ``data[start:start+length]`` into slots ``pos..`` that are still empty."""
        present = self._present[pos : pos + length]
        i = 0
        while i < length:
            hole = present.find(0, i)
            if hole == -1:
                break
            filled = present.find(1, hole)
            if filled == -1:
                filled = length
            self._pending[pos + hole : pos + filled] = data[start + hole : start + filled]
            self._present[pos + hole : pos + filled] = b"\x01" * (filled - hole)
            self._unassembled += filled - hole
            i = filled

    def _flush_contiguous(self) -> None:
        ready = self._present.find(0)
        if ready == -1:
            ready = self._capacity
        if ready == 0:
            return
        chunk = bytes(self._pending[:ready])
        del self._pending[:ready]
        del self._present[:ready]
        self._pending += bytes(ready)
        self._present += bytes(ready)
        self._output.write(chunk)
        self._first_unassembled += ready
        self._unassembled -= ready

    def push_substring(self, data: bytes, index: int, eof: bool) -> None:
        """Accept a substring starting at stream position ``index``.

        Any bytes that become contiguous are written to the output stream.
        ``eof`` marks the last byte of ``data`` as the last byte of the stream.
        """
        if eof:
            self._eof = True
        length = len(data)
        if length == 0 and self._eof and self._unassembled == 0:
            self._output.end_input()
            return
        base = self._first_unassembled
        if index >= base + self._capacity:
            return

        room = self._capacity - self._output.buffer_size()
        if index >= base:
            offset = index - base
            kept = max(0, min(length, room - offset))
            if kept < length:
                self._eof = False
            self._store(data, 0, offset, kept)
        elif index + length > base:
            offset = base - index
            kept = max(0, min(length - offset, room))
            if kept < length - offset:
                self._eof = False
            self._store(data, offset, 0, kept)

        self._flush_contiguous()

        if self._eof and self._unassembled == 0:
            self._output.end_input()

    def stream_out(self) -> ByteStream:
        """The reassembled in-order byte stream."""
        return self._output

    def unassembled_bytes(self) -> int:
        """Bytes stored but not yet reassembled, each position counted once."""
        return self._unassembled

    def empty(self) -> bool:
        """True if no substrings are waiting to be assembled."""
        return self._unassembled == 0

    def ack_index(self) -> int:
        """Index of the first byte not yet reassembled."""
        return self._first_unassembled