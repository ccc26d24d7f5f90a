"""
Polling waiters: node readiness and chain height.

ReadinessPoller absorbs exactly the failures a node produces while it starts
(connection refused/reset, end of stream, RPC warm-up code -28) and surfaces
everything else. HeightPoller waits for a target height and propagates every
failure unchanged.

Both return a PollResult instead of raising on timeout or cancellation. The
clock is injectable so tests run without real sleeps; cancellation is a
`threading.Event` observed while sleeping between attempts.

    result = ReadinessPoller(lambda: rpc.request("getblockcount"), timeout=60).run()
    if not result:
        print(result.state, result.last_status)
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

import structlog

from .errors import RpcErrorCode, RpcStatusError, TransportError

log = structlog.get_logger(__name__)

RETRY_SECONDS = 1.0
MESSAGE_EVERY = 10

NULL_RESULT_STATUS = "getblockcount returned null"

__all__ = [
    "Clock",
    "SystemClock",
    "PollState",
    "PollResult",
    "ReadinessPoller",
    "HeightPoller",
    "RETRY_SECONDS",
]


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep(self, seconds: float, cancel: Optional[threading.Event] = None) -> bool:
        """Sleep up to `seconds`; return True if `cancel` was set meanwhile."""
        ...


class SystemClock:
    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancel: Optional[threading.Event] = None) -> bool:
        if cancel is None:
            time.sleep(max(0.0, seconds))
            return False
        return cancel.wait(max(0.0, seconds))


class PollState(str, Enum):
    POLLING = "polling"
    READY = "ready"
    DONE = "done"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    FATAL = "fatal"


@dataclass(frozen=True)
class PollResult:
    state: PollState
    elapsed: float
    attempts: int
    last_status: Optional[str] = None
    height: Optional[int] = None

    def __bool__(self) -> bool:
        return self.state in (PollState.READY, PollState.DONE)


class _Poller:
    def __init__(
        self,
        *,
        timeout: float,
        interval: float = RETRY_SECONDS,
        clock: Optional[Clock] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.timeout = float(timeout)
        self.interval = float(interval)
        self.clock: Clock = clock or SystemClock()
        self.cancel = cancel
        self.state = PollState.POLLING
        self.attempts = 0
        self._start = 0.0

    def _elapsed(self) -> float:
        return self.clock.now() - self._start

    def _finish(self, state: PollState, **extra: Any) -> PollResult:
        self.state = state
        return PollResult(state=state, elapsed=self._elapsed(), attempts=self.attempts, **extra)

    def _cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()

    def _pause(self) -> bool:
        remaining = self.timeout - self._elapsed()
        return self.clock.sleep(min(self.interval, max(0.0, remaining)), self.cancel)


class ReadinessPoller(_Poller):
    """
    Poll `probe` until it returns a non-null value.

    `probe` is normally the node's getblockcount call. TransportErrors that
    carry a transient failure category and RpcStatusError -28 keep polling;
    any other exception moves to FATAL and is re-raised.
    """

    def __init__(self, probe: Callable[[], Any], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.probe = probe
        self.last_status: Optional[str] = None

    def run(self) -> PollResult:
        self._start = self.clock.now()
        log.debug("waiting_for_server", timeout=self.timeout)
        while True:
            if self._cancelled():
                log.info("wait_for_server_cancelled", attempts=self.attempts)
                return self._finish(PollState.CANCELLED, last_status=self.last_status)
            if self._elapsed() >= self.timeout:
                log.error("wait_for_server_timed_out", timeout=self.timeout, status=self.last_status)
                return self._finish(PollState.TIMED_OUT, last_status=self.last_status)

            self.attempts += 1
            try:
                result = self.probe()
            except TransportError as e:
                if e.failure is None:
                    self.state = PollState.FATAL
                    raise
                status = e.failure.value.replace("_", " ")
            except RpcStatusError as e:
                if e.code != RpcErrorCode.IN_WARMUP:
                    self.state = PollState.FATAL
                    raise
                status = e.message
            except Exception:
                self.state = PollState.FATAL
                raise
            else:
                if result is not None:
                    log.debug("rpc_ready", attempts=self.attempts)
                    return self._finish(PollState.READY, last_status=self.last_status)
                status = NULL_RESULT_STATUS

            if status != self.last_status:
                log.info("rpc_status", status=status)
                self.last_status = status

            if self._pause():
                log.info("wait_for_server_cancelled", attempts=self.attempts)
                return self._finish(PollState.CANCELLED, last_status=self.last_status)


class HeightPoller(_Poller):
    """Poll `probe` (current height) until it reaches `target`."""

    def __init__(self, probe: Callable[[], Optional[int]], target: int, *, log_every: int = MESSAGE_EVERY, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.probe = probe
        self.target = int(target)
        self.log_every = max(1, int(log_every))
        self.height: Optional[int] = None

    def run(self) -> PollResult:
        self._start = self.clock.now()
        log.info("waiting_for_block", target=self.target)
        while True:
            if self._cancelled():
                return self._finish(PollState.CANCELLED, height=self.height)
            if self._elapsed() >= self.timeout:
                log.error("wait_for_block_timed_out", target=self.target, height=self.height)
                return self._finish(PollState.TIMED_OUT, height=self.height)

            self.attempts += 1
            self.height = self.probe()
            if self.height is not None and self.height >= self.target:
                log.info("block_reached", height=self.height, target=self.target)
                return self._finish(PollState.DONE, height=self.height)
            if (self.attempts - 1) % self.log_every == 0:
                log.debug("server_at_block", height=self.height, target=self.target)

            if self._pause():
                return self._finish(PollState.CANCELLED, height=self.height)
