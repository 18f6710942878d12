"""
Checkpoint timer used to measure each step of a deploy/invoke run.

A timer records a monotonic origin and then one checkpoint per finished
step. Every checkpoint stores the time since the previous checkpoint (not
since the origin) and logs it as:

    Created deployment package -- 0s 12.345ms

stop() seals the timer; any later checkpoint raises AlreadySealedError.
Create a new timer for every run instead of reusing one.
"""
import enum
import logging
import time
from typing import Callable, NamedTuple, Optional, Tuple

from bench_errors import AlreadySealedError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TimerState(enum.Enum):
    ACTIVE = 'active'
    SEALED = 'sealed'


def format_delta(seconds: float) -> str:
    whole, ms = divmod(round(seconds * 1000.0, 3), 1000)
    return f'{int(whole)}s {ms:.3f}ms'


class CheckpointTimer:

    def __init__(self, label: Optional[str] = None, clock: Clock = time.perf_counter):
        self._clock = clock
        self._label = label
        self._origin = clock()
        self._checkpoints = [self._origin]
        self._deltas = [0.0]
        self._labels = [None]
        self._state = TimerState.ACTIVE

    def __repr__(self):
        name = f' {self._label!r}' if self._label else ''
        return f'<CheckpointTimer{name} {self._state.value} checkpoints={len(self._checkpoints)}>'

    @property
    def label(self) -> Optional[str]:
        return self._label

    @property
    def origin(self) -> float:
        return self._origin

    @property
    def checkpoints(self) -> Tuple[float, ...]:
        return tuple(self._checkpoints)

    @property
    def deltas(self) -> Tuple[float, ...]:
        return tuple(self._deltas)

    @property
    def labels(self) -> Tuple[Optional[str], ...]:
        return tuple(self._labels)

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def sealed(self) -> bool:
        return self._state is TimerState.SEALED

    def checkpoint(self, label: str) -> float:
        """Record a checkpoint and log the time since the previous one.

        Returns the delta in seconds. Raises AlreadySealedError, without
        recording or logging anything, once the timer is stopped.
        """
        if self._state is TimerState.SEALED:
            raise AlreadySealedError(f'Timer has been stopped already, cannot add checkpoint {label!r}')
        now = self._clock()
        # clamp: a misbehaving injected clock must not produce negative deltas
        delta = max(0.0, now - self._checkpoints[-1])
        self._checkpoints.append(max(now, self._checkpoints[-1]))
        self._deltas.append(delta)
        self._labels.append(label)
        logger.info('%s -- %s', label, format_delta(delta))
        return delta

    def latest_delta(self) -> float:
        return self._deltas[-1]

    def total(self) -> float:
        return sum(self._deltas[1:])

    def stop(self) -> None:
        self._state = TimerState.SEALED


class TimedResult(NamedTuple):
    value: object
    elapsed: float


def time_execution(label: str, operation: Callable, *args, clock: Clock = time.perf_counter, **kwargs) -> TimedResult:
    """Run operation(*args, **kwargs) and measure how long it took.

    Exceptions from the operation propagate unchanged; no checkpoint is
    logged for a failed operation.
    """
    timer = CheckpointTimer(label, clock=clock)
    value = operation(*args, **kwargs)
    elapsed = timer.checkpoint(label)
    timer.stop()
    return TimedResult(value, elapsed)
