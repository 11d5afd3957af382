import pytest

from spongenet.byte_stream import ByteStream


def make_stream(capacity, *chunks):
    stream = ByteStream(capacity)
    for chunk in chunks:
        stream.write(chunk)
    return stream


def test_write_within_capacity_accepts_everything():
    stream = ByteStream(16)
    assert stream.write(b"hello") == 5
    assert stream.buffer_size() == 5
    assert stream.bytes_written() == 5
    assert stream.remaining_capacity() == 11


def test_write_beyond_capacity_is_truncated():
    stream = ByteStream(4)
    assert stream.write(b"abcdef") == 4
    assert stream.remaining_capacity() == 0
    assert stream.peek_output(10) == b"abcd"
    assert stream.write(b"x") == 0


@pytest.mark.parametrize("length, expected", [(2, b"ab"), (3, b"abc"), (100, b"abc")])
def test_peek_does_not_consume(length, expected):
    stream = make_stream(10, b"abc")
    assert [stream.peek_output(length) for _ in range(2)] == [expected, expected]
    assert stream.buffer_size() == 3
    assert stream.bytes_read() == 0


def test_read_consumes_in_order():
    stream = make_stream(10, b"abc", b"def")
    assert stream.read(4) == b"abcd"
    assert stream.read(2) == b"ef"
    assert stream.bytes_read() == 6
    assert stream.buffer_empty()


def test_read_frees_capacity():
    stream = make_stream(3, b"abc")
    stream.read(2)
    assert stream.remaining_capacity() == 2
    assert stream.write(b"xyz") == 2
    assert stream.read(3) == b"cxy"


def test_pop_output_discards_bytes():
    stream = make_stream(10, b"abcd")
    stream.pop_output(3)
    assert stream.peek_output(10) == b"d"
    assert stream.bytes_read() == 3
    assert not stream.error()


def test_pop_more_than_buffered_sets_error():
    stream = make_stream(10, b"ab")
    stream.pop_output(3)
    assert stream.error()
    assert (stream.buffer_size(), stream.bytes_read()) == (2, 0)


def test_read_more_than_buffered_sets_error_and_returns_nothing():
    stream = make_stream(10, b"ab")
    assert stream.read(5) == b""
    assert stream.error()
    assert stream.buffer_size() == 2


def test_set_error():
    stream = ByteStream(1)
    assert not stream.error()
    stream.set_error()
    assert stream.error()


def test_eof_requires_end_and_empty_buffer():
    stream = make_stream(10, b"ab")
    assert not stream.eof()
    stream.end_input()
    assert stream.input_ended()
    assert not stream.eof()
    stream.read(2)
    assert stream.eof()


def test_empty_stream_with_ended_input_is_eof():
    stream = ByteStream(5)
    assert not stream.input_ended()
    stream.end_input()
    assert stream.eof()
    assert stream.buffer_empty()


@pytest.mark.parametrize("capacity", [1, 7, 64])
def test_accounting_invariant(capacity):
    stream = ByteStream(capacity)
    for chunk in (b"abc", b"defgh", b"ij"):
        stream.write(chunk)
        stream.read(min(2, stream.buffer_size()))
        assert stream.bytes_written() - stream.bytes_read() == stream.buffer_size()
        assert stream.buffer_size() + stream.remaining_capacity() == capacity