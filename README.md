# spongenet

Building blocks for a user-space TCP implementation, in pure Python with no
third-party dependencies.

## Modules

- `spongenet.byte_stream`: `ByteStream`, a flow-controlled, in-order byte
  stream with a fixed capacity. `write` accepts as much as fits and returns the
  count; `read`/`pop_output` asking for more than is buffered flag the stream
  with `error()` instead of raising. `eof()` is true once `end_input()` has been
  called and everything has been read.
- `spongenet.stream_reassembler`: `StreamReassembler`, which takes possibly
  out-of-order, overlapping substrings (`push_substring(data, index, eof)`) and
  writes the contiguous prefix into a `ByteStream` available from
  `stream_out()`. Bytes beyond the capacity are dropped silently.
  `unassembled_bytes()`, `empty()` and `ack_index()` report the pending state.
- `spongenet.buffer`: `Buffer`, `BufferList` and `BufferViewList`, byte
  containers that drop bytes from the front without copying.
  `BufferList.to_buffer()` raises `ValueError` when the list holds more than one
  buffer; use `concatenate()` instead. `remove_prefix` past the end raises
  `IndexError`.
- `spongenet.parser`: `NetParser` reads big-endian `u8`/`u16`/`u32` values
  from a buffer and records `ParseResult.PacketTooShort` rather than raising
  when data runs out; `NetUnparser` appends big-endian integers to a
  `bytearray`; `as_string` names a `ParseResult`.
- `spongenet.util`: `InternetChecksum`, `hexdump`, `system_call` (raising
  `UnixError`, a `TaggedError`), `timestamp_ms` and `get_random_generator`.
- `spongenet.address`: `Address`, an IPv4 socket address. `Address(ip, port)`
  parses a numeric address without a DNS lookup; `Address.resolve(host,
  service)` looks names up; `Address.from_ipv4_numeric` and `ipv4_numeric`
  convert to and from 32-bit integers.
- `spongenet.file_descriptor`: `FileDescriptor`, a shared handle to a kernel
  descriptor that counts reads and writes and tracks EOF. It can be used as a
  context manager.
- `spongenet.eventloop`: `EventLoop` with `add_rule` and `wait_next_event`,
  built on `select.poll`; returns an `EventLoopResult` and raises
  `RuntimeError` if a callback neither reads nor writes while still interested.
- `spongenet.sockets`: `UDPSocket`, `TCPSocket` and `LocalStreamSocket`, all
  `FileDescriptor` subclasses; `UDPSocket.recv` returns a `ReceivedDatagram`.
- `spongenet.tun`: `TunFD` and `TapFD` for existing persistent Linux TUN/TAP
  devices (Linux only; the device must already exist).

## Installation

```
pip install .
```

Add the `test` extra to install the test dependencies:

```
pip install ".[test]"
```

## Examples

Reassembling out-of-order data:

```python
from spongenet.stream_reassembler import StreamReassembler

r = StreamReassembler(65000)
r.push_substring(b"b", 1, False)
r.push_substring(b"a", 0, False)
out = r.stream_out()
assert out.read(out.buffer_size()) == b"ab"
```

Writing and reading big-endian fields:

```python
from spongenet.parser import NetParser, NetUnparser, ParseResult

s = bytearray()
NetUnparser.u16(s, 0x1234)
NetUnparser.u8(s, 7)

p = NetParser(bytes(s))
assert p.u16() == 0x1234
assert p.u8() == 7
p.u32()
assert p.get_error() is ParseResult.PacketTooShort
```

Computing an Internet checksum:

```python
from spongenet.util import InternetChecksum

cksum = InternetChecksum()
cksum.add(b"\x45\x00\x00\x1c")
print(hex(cksum.value()))
```

## What this package does not do

It provides the pieces a TCP stack is built from, not the stack itself: there
are no TCP segment or header types, no sender, receiver or connection state
machine, no IPv4/Ethernet/ARP handling and no command-line program.

## Running the tests

```
pytest
```