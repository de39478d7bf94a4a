# frame_clock.py

import time
import logging
from collections import namedtuple

logger = logging.getLogger("double_pendulum")

# Per-frame timing handed to the stepper instead of global timer state.
FrameContext = namedtuple('FrameContext', ['frame_delta_seconds', 'timer', 'substep_count'])


class FrameClock:
    """
    Measures wall-clock time between frames and gates the physics warm-up.

    Data Contract:
    - Inputs:
        - warmup_seconds (float): Time after start-up during which physics stays
          frozen while the window settles. 0 disables the gate.
        - substep_count (int): Integration sub-steps per frame, copied into every FrameContext.
        - time_source (callable): Monotonic clock returning seconds as a float.
    - Outputs: FrameContext from every tick().
    - Invariants: frame deltas are always >= 0, and `timer` never decreases.
    """
    def __init__(self, warmup_seconds: float = 2.0, substep_count: int = 100, time_source=time.perf_counter):
        if warmup_seconds < 0:
            raise ValueError(f"Warm-up must be non-negative, got {warmup_seconds}")
        if substep_count < 1:
            raise ValueError(f"Sub-step count must be at least 1, got {substep_count}")

        self.warmup_seconds = warmup_seconds
        self.substep_count = substep_count
        self._time_source = time_source
        self._last_time = None
        self.frame_delta_seconds = 0.0
        self.timer = 0.0

    def tick(self) -> FrameContext:
        """
        Marks a frame boundary. Returns the time since the previous tick
        (0.0 on the first tick) together with the running timer.
        """
        now = self._time_source()
        if self._last_time is None:
            delta = 0.0
        else:
            delta = now - self._last_time
            if delta < 0:
                logger.warning(f"Time source went backwards by {-delta:.6f}s; treating frame delta as 0.")
                delta = 0.0
        self._last_time = now

        self.frame_delta_seconds = delta
        self.timer += delta
        return FrameContext(delta, self.timer, self.substep_count)

    @property
    def physics_enabled(self) -> bool:
        """
        True once the accumulated timer reaches the warm-up delay. The
        comparison is inclusive: a timer of exactly `warmup_seconds` already
        runs physics, and a warm-up of 0 never gates.
        """
        return self.timer >= self.warmup_seconds

    @property
    def fps(self) -> float:
        if self.frame_delta_seconds <= 0:
            return 0.0
        return 1.0 / self.frame_delta_seconds
