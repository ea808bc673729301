"""
Exponential backoff interval generator.

This module computes the waits between retry attempts. It performs no I/O
and never sleeps; the orchestrator does the waiting.

Each interval grows by MULTIPLIER from INITIAL_INTERVAL until it reaches
max_interval, where it stays. The returned wait adds jitter on top of the
nominal interval: it is never shorter than the interval, at most
``interval * (1 + randomization_factor)``. Once max_elapsed_time has passed
since the state was started, no further waits are handed out.

Usage:
    >>> backoff = ExponentialBackoff(max_elapsed_time=10.0)
    >>> should_retry, wait = backoff.next_backoff()
"""

import random
import time
from dataclasses import dataclass, replace
from typing import Callable

DEFAULT_MAX_ELAPSED_TIME = 60.0
DEFAULT_MAX_INTERVAL = 5.0
DEFAULT_RANDOMIZATION_FACTOR = 0.5

INITIAL_INTERVAL = 0.05
MULTIPLIER = 1.5


@dataclass(frozen=True)
class BackoffState:
    """
    Snapshot of one retry sequence's backoff progress.

    All durations are seconds; start_time is a ``time.monotonic()`` reading.

    Attributes:
        current_interval: Nominal interval the next wait is based on
        max_elapsed_time: Total budget measured from start_time
        max_interval: Cap for current_interval
        randomization_factor: Additive jitter factor in [0, 1]
        start_time: When the sequence started
    """

    current_interval: float
    max_elapsed_time: float
    max_interval: float
    randomization_factor: float
    start_time: float

    def __post_init__(self) -> None:
        """Validate state invariants."""
        if self.current_interval <= 0:
            raise ValueError("current_interval must be > 0")

        if self.max_interval <= 0:
            raise ValueError("max_interval must be > 0")

        if self.max_elapsed_time < 0:
            raise ValueError("max_elapsed_time must be >= 0")

        if not 0.0 <= self.randomization_factor <= 1.0:
            raise ValueError("randomization_factor must be within [0, 1]")

    @classmethod
    def start(
        cls,
        max_elapsed_time: float = DEFAULT_MAX_ELAPSED_TIME,
        max_interval: float = DEFAULT_MAX_INTERVAL,
        randomization_factor: float = DEFAULT_RANDOMIZATION_FACTOR,
        now: float | None = None,
    ) -> "BackoffState":
        """Create the initial state of a sequence, started now."""
        return cls(
            current_interval=INITIAL_INTERVAL,
            max_elapsed_time=max_elapsed_time,
            max_interval=max_interval,
            randomization_factor=randomization_factor,
            start_time=time.monotonic() if now is None else now,
        )

    def expired(self, now: float) -> bool:
        return now > self.start_time + self.max_elapsed_time


def next_backoff(
    state: BackoffState,
    now: float | None = None,
    rand: Callable[[], float] = random.random,
) -> tuple[BackoffState, bool, float]:
    """
    Advance the backoff by one step.

    Args:
        state: Current state (left untouched)
        now: Monotonic clock reading, defaults to ``time.monotonic()``
        rand: Source of uniform values in [0, 1)

    Returns:
        Tuple of (next state, should_retry, wait in seconds). When the
        budget is spent the state is returned unchanged with (False, 0.0).
    """
    if now is None:
        now = time.monotonic()

    if state.expired(now):
        return state, False, 0.0

    interval = state.current_interval
    if interval >= state.max_interval / MULTIPLIER:
        grown = state.max_interval
    else:
        grown = interval * MULTIPLIER

    wait = interval * (1 + rand() * state.randomization_factor)
    return replace(state, current_interval=grown), True, wait


class ExponentialBackoff:
    """
    Backoff owned by exactly one retry sequence.

    Holds the evolving BackoffState and applies ``next_backoff`` to it on
    every call. Not safe to share between concurrent sequences; create a
    new one per sequence instead.
    """

    def __init__(
        self,
        max_elapsed_time: float = DEFAULT_MAX_ELAPSED_TIME,
        max_interval: float = DEFAULT_MAX_INTERVAL,
        randomization_factor: float = DEFAULT_RANDOMIZATION_FACTOR,
        clock: Callable[[], float] = time.monotonic,
        rand: Callable[[], float] = random.random,
    ):
        """
        Initialize backoff and record the start of the sequence.

        Args:
            max_elapsed_time: Global budget; afterwards next_backoff() is always False
            max_interval: Cap for the nominal interval (the wait may exceed it by the jitter)
            randomization_factor: Maximum additive jitter as a fraction of the interval
            clock: Monotonic clock, injectable for tests
            rand: Uniform [0, 1) source, injectable for tests
        """
        self._clock = clock
        self._rand = rand
        self.state = BackoffState.start(
            max_elapsed_time=max_elapsed_time,
            max_interval=max_interval,
            randomization_factor=randomization_factor,
            now=clock(),
        )

    def next_backoff(self) -> tuple[bool, float]:
        """Return whether another attempt is allowed and how long to wait first."""
        self.state, should_retry, wait = next_backoff(
            self.state, now=self._clock(), rand=self._rand
        )
        return should_retry, wait

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"current_interval={self.state.current_interval}s, "
            f"max_interval={self.state.max_interval}s, "
            f"max_elapsed_time={self.state.max_elapsed_time}s)"
        )
