"""Waiting for readiness on file descriptors and running callbacks."""

from __future__ import annotations

import select
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Callable, Dict, List, Tuple

from .file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]


class Direction(IntEnum):
    """Whether a rule waits for its descriptor to become readable or writable."""

    In = select.POLLIN
    Out = select.POLLOUT


class EventLoopResult(Enum):
    """The outcome of one call to :meth:`EventLoop.wait_next_event`."""

    Success = auto()  # at least one rule was serviced
    Timeout = auto()  # nothing became ready before the timeout
    Exit = auto()  # nothing left to poll, or polling was interrupted


def _always_interested() -> bool:
    return True


def _do_nothing() -> None:
    return None


@dataclass(eq=False)
class _Rule:
    fd: FileDescriptor
    direction: Direction
    callback: Callback
    interest: Interest
    cancel: Callback

    def service_count(self) -> int:
        """How many times the descriptor has been read or written, per direction."""
        if self.direction is Direction.In:
            return self.fd.read_count()
        return self.fd.write_count()


class EventLoop:
    """Polls file descriptors and runs the callback of each ready rule.

    A rule is cancelled (its ``cancel`` callback runs and it is dropped) when
    its descriptor is closed, when a read rule's descriptor has reached EOF,
    or when the only condition reported for it is a hangup.

    Every callback must read from or write to its descriptor, or make its
    ``interest`` return False; otherwise polling would spin, and
    :meth:`wait_next_event` raises RuntimeError instead.
    """

    def __init__(self) -> None:
        self._rules: List[_Rule] = []

    def add_rule(
        self,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always_interested,
        cancel: Callback = _do_nothing,
    ) -> None:
        """Run ``callback`` whenever ``fd`` is ready in ``direction``.

        ``interest`` is asked before each poll; when it returns False the
        descriptor is watched only for errors during that round. ``cancel``
        runs when the rule is dropped.
        """
        self._rules.append(_Rule(fd.duplicate(), Direction(direction), callback, interest, cancel))

    def _prepare(self) -> List[Tuple[_Rule, int, int]]:
        polled: List[Tuple[_Rule, int, int]] = []
        kept: List[_Rule] = []
        for rule in self._rules:
            if rule.direction is Direction.In and rule.fd.eof():
                rule.cancel()
                continue
            if rule.fd.closed():
                rule.cancel()
                continue
            events = int(rule.direction) if rule.interest() else 0
            polled.append((rule, rule.fd.fd_num(), events))
            kept.append(rule)
        self._rules = kept
        return polled

    def wait_next_event(self, timeout_ms: int) -> EventLoopResult:
        """Poll once, waiting at most ``timeout_ms`` (negative: forever), and run ready callbacks."""
        polled = self._prepare()
        if not any(events for _rule, _fd, events in polled):
            return EventLoopResult.Exit

        masks: Dict[int, int] = {}
        for _rule, fd_num, events in polled:
            masks[fd_num] = masks.get(fd_num, 0) | events
        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)

        try:
            ready = poller.poll(timeout_ms)
            if not ready:
                return EventLoopResult.Timeout
        except InterruptedError:
            return EventLoopResult.Exit
        except OSError:
            # Any other polling failure leaves every descriptor unreported.
            ready = []
        revents = dict(ready)

        for rule, fd_num, events in polled:
            reported = revents.get(fd_num, 0)
            if reported & (select.POLLERR | select.POLLNVAL):
                raise RuntimeError("EventLoop: error on polled file descriptor")

            is_ready = bool(reported & events)
            hung_up = bool(reported & select.POLLHUP)
            if hung_up and events and not is_ready:
                # Nothing more will ever be readable or writable on this descriptor.
                rule.cancel()
                if rule in self._rules:
                    self._rules.remove(rule)
                continue

            if is_ready:
                count_before = rule.service_count()
                rule.callback()
                if count_before == rule.service_count() and rule.interest():
                    raise RuntimeError(
                        "EventLoop: busy wait detected: callback did not read/write fd and is still interested"
                    )

        return EventLoopResult.Success