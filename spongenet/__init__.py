"""Byte streams, stream reassembly and networking utilities for a user-space TCP stack."""

__version__ = "0.1.0"

__all__ = [
    "address",
    "buffer",
    "byte_stream",
    "eventloop",
    "file_descriptor",
    "parser",
    "sockets",
    "stream_reassembler",
    "tun",
    "util",
]