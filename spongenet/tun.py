"""Handles to existing persistent Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from .file_descriptor import FileDescriptor
from .util import system_call

CLONEDEV = "/dev/net/tun"

TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16

_IFREQ = struct.Struct("@16sH22x")


def _ifreq(devname: str, is_tun: bool) -> bytes:
    """A ``struct ifreq`` naming the device, with no packet-info header."""
    name = devname.encode()[: IFNAMSIZ - 1]
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    return _IFREQ.pack(name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor attached to an existing TUN (IP datagrams) or TAP (Ethernet frames) device.

    The device must already exist, e.g. created by an administrator with
    ``ip tuntap add mode tun user <user> name <devname>``.
    """

    def __init__(self, devname: str, is_tun: bool) -> None:
        fd = system_call("open", lambda: os.open(CLONEDEV, os.O_RDWR))
        super().__init__(fd)
        request = _ifreq(devname, is_tun)
        try:
            system_call("ioctl", lambda: fcntl.ioctl(fd, TUNSETIFF, request))
        except BaseException:
            self.close()
            raise


class TunFD(TunTapFD):
    """A descriptor attached to an existing TUN device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor attached to an existing TAP device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)