import random

import pytest

from spongenet.stream_reassembler import StreamReassembler


def submit(data, index, eof=False):
    return ("submit", data, index, eof)


def assembled(count):
    return ("assembled", count)


def available(data):
    return ("available", data)


def unassembled(count):
    return ("unassembled", count)


AT_EOF = ("eof", True)
NOT_EOF = ("eof", False)
NOTHING_YET = [assembled(0), available(b""), NOT_EOF]


def run_step(reassembler, step):
    kind, *args = step
    stream = reassembler.stream_out()
    if kind == "submit":
        reassembler.push_substring(*args)
    elif kind == "assembled":
        assert stream.bytes_written() == args[0]
    elif kind == "available":
        expected = args[0]
        assert stream.buffer_size() == len(expected)
        assert stream.read(len(expected)) == expected
    elif kind == "unassembled":
        assert reassembler.unassembled_bytes() == args[0]
    elif kind == "eof":
        assert stream.eof() is args[0]
    else:
        raise AssertionError(f"unknown step {kind}")


SCENARIOS = {
    "cap_sequential_reads": (2, [
        submit(b"ab", 0), assembled(2), available(b"ab"),
        submit(b"cd", 2), assembled(4), available(b"cd"),
        submit(b"ef", 4), assembled(6), available(b"ef"),
    ]),
    "cap_full_stream_drops_data": (2, [
        submit(b"ab", 0), assembled(2),
        submit(b"cd", 2), assembled(2),
        available(b"ab"), assembled(2),
        submit(b"cd", 2), assembled(4),
        available(b"cd"),
    ]),
    "cap_truncates_out_of_window_tail": (2, [
        submit(b"bX", 1), assembled(0),
        submit(b"a", 0), assembled(2),
        available(b"ab"),
    ]),
    "cap_one_byte": (1, [
        submit(b"ab", 0), assembled(1),
        submit(b"ab", 0), assembled(1),
        available(b"a"), assembled(1),
        submit(b"abc", 0), assembled(2),
        available(b"b"), assembled(2),
    ]),
    "cap_eof_after_fill": (8, [
        submit(b"a", 0), assembled(1), available(b"a"), NOT_EOF,
        submit(b"bc", 1), assembled(3), NOT_EOF,
        submit(b"ghi", 6, True), assembled(3), NOT_EOF,
        submit(b"cdefg", 2), assembled(9), available(b"bcdefghi"), AT_EOF,
    ]),
    "dup_same_segment_twice": (65000, [
        submit(b"abcd", 0), assembled(4), available(b"abcd"), NOT_EOF,
        submit(b"abcd", 0), assembled(4), available(b""), NOT_EOF,
    ]),
    "dup_two_segments_repeated": (65000, [
        submit(b"abcd", 0), assembled(4), available(b"abcd"), NOT_EOF,
        submit(b"abcd", 4), assembled(8), available(b"abcd"), NOT_EOF,
        submit(b"abcd", 0), assembled(8), available(b""), NOT_EOF,
        submit(b"abcd", 4), assembled(8), available(b""), NOT_EOF,
    ]),
    "dup_extending_segment": (65000, [
        submit(b"abcd", 0), assembled(4), available(b"abcd"), NOT_EOF,
        submit(b"abcdef", 0), assembled(6), available(b"ef"), NOT_EOF,
    ]),
    "holes_single_gap": (65000, [submit(b"b", 1), *NOTHING_YET]),
    "holes_gap_filled": (65000, [
        submit(b"b", 1), submit(b"a", 0), assembled(2), available(b"ab"), NOT_EOF,
    ]),
    "holes_eof_waits_for_gap": (65000, [
        submit(b"b", 1, True), *NOTHING_YET,
        submit(b"a", 0), assembled(2), available(b"ab"), AT_EOF,
    ]),
    "holes_overlapping_fill": (65000, [
        submit(b"b", 1), submit(b"ab", 0), assembled(2), available(b"ab"), NOT_EOF,
    ]),
    "holes_many_single_bytes": (65000, [
        submit(b"b", 1), *NOTHING_YET,
        submit(b"d", 3), *NOTHING_YET,
        submit(b"c", 2), *NOTHING_YET,
        submit(b"a", 0), assembled(4), available(b"abcd"), NOT_EOF,
    ]),
    "holes_filled_by_larger_segment": (65000, [
        submit(b"b", 1), *NOTHING_YET,
        submit(b"d", 3), *NOTHING_YET,
        submit(b"abc", 0), assembled(4), available(b"abcd"), NOT_EOF,
    ]),
    "holes_filled_in_steps_then_empty_eof": (65000, [
        submit(b"b", 1), *NOTHING_YET,
        submit(b"d", 3), *NOTHING_YET,
        submit(b"a", 0), assembled(2), available(b"ab"), NOT_EOF,
        submit(b"c", 2), assembled(4), available(b"cd"), NOT_EOF,
        submit(b"", 4, True), assembled(4), available(b""), AT_EOF,
    ]),
    "overlap_assembled_unread": (1000, [
        submit(b"a", 0), submit(b"ab", 0), assembled(2), available(b"ab"),
    ]),
    "overlap_assembled_read": (1000, [
        submit(b"a", 0), available(b"a"),
        submit(b"ab", 0), available(b"b"), assembled(2),
    ]),
    "overlap_unassembled_resulting_in_assembly": (1000, [
        submit(b"b", 1), available(b""),
        submit(b"ab", 0), available(b"ab"), unassembled(0), assembled(2),
    ]),
    "overlap_unassembled_no_assembly": (1000, [
        submit(b"b", 1), available(b""),
        submit(b"bc", 1), available(b""), unassembled(2), assembled(0),
    ]),
    "overlap_unassembled_extended_both_sides": (1000, [
        submit(b"c", 2), available(b""),
        submit(b"bcd", 1), available(b""), unassembled(3), assembled(0),
    ]),
    "overlap_multiple_unassembled_sections": (1000, [
        submit(b"b", 1), submit(b"d", 3), available(b""),
        submit(b"bcde", 1), available(b""), assembled(0), unassembled(4),
    ]),
    "overlap_submission_over_existing": (1000, [
        submit(b"c", 2), submit(b"bcd", 1),
        available(b""), assembled(0), unassembled(3),
        submit(b"a", 0), available(b"abcd"), assembled(4), unassembled(0),
    ]),
    "overlap_submission_within_existing": (1000, [
        submit(b"bcd", 1), submit(b"c", 2),
        available(b""), assembled(0), unassembled(3),
        submit(b"a", 0), available(b"abcd"), assembled(4), unassembled(0),
    ]),
}


@pytest.mark.parametrize("name", sorted(SCENARIOS))
def test_scenario(name):
    capacity, steps = SCENARIOS[name]
    reassembler = StreamReassembler(capacity)
    for step in steps:
        run_step(reassembler, step)


def test_cap_long_stream():
    r = StreamReassembler(3)
    for i in range(0, 99997, 3):
        segment = bytes(v % 256 for v in (i, i + 1, i + 2, i + 13, i + 47, i + 9))
        for step in (submit(segment, i), assembled(i + 3), available(segment[:3])):
            run_step(r, step)


def test_dup_random_subranges():
    rng = random.Random(1234)
    data = b"abcdefgh"
    r = StreamReassembler(65000)
    for step in (submit(data, 0), assembled(8), available(data), NOT_EOF):
        run_step(r, step)
    for _ in range(1000):
        start = rng.randint(0, 8)
        end = rng.randint(start, 8)
        for step in (submit(data[start:end], start), assembled(8), available(b""), NOT_EOF):
            run_step(r, step)


@pytest.mark.parametrize("seed", range(32))
def test_win_overlapping_shuffled_segments(seed):
    nsegs, max_seg_len = 128, 2048
    rng = random.Random(seed)
    r = StreamReassembler(nsegs * max_seg_len)
    segments = []
    offset = 0
    for _ in range(nsegs):
        size = 1 + rng.getrandbits(32) % (max_seg_len - 1)
        back = min(offset, 1 + rng.getrandbits(32) % 1023)
        segments.append((offset - back, size + back))
        offset += size
    rng.shuffle(segments)
    data = rng.randbytes(offset)
    for off, size in segments:
        r.push_substring(data[off : off + size], off, off + size == offset)
    result = r.stream_out().read(r.stream_out().buffer_size())
    assert r.stream_out().bytes_written() == offset
    assert result == data
    assert r.stream_out().eof()


def test_ack_index_and_empty_follow_assembly():
    r = StreamReassembler(100)
    assert r.empty()
    r.push_substring(b"cd", 2, False)
    assert not r.empty()
    assert r.ack_index() == 0
    r.push_substring(b"ab", 0, False)
    assert r.empty()
    assert r.ack_index() == 4


def test_segment_beyond_window_is_ignored():
    r = StreamReassembler(4)
    r.push_substring(b"z", 4, False)
    assert r.unassembled_bytes() == 0
    assert r.stream_out().bytes_written() == 0