"""Tick-driven loop that runs pitch detectors over a sample source."""

from __future__ import annotations
import threading
import time
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Union

from .core.events import PitchEvents
from .core.interfaces import IPitchDetector, ISampleSource, ITickSignal
from .logger import get_logger
from .note_types import PitchEstimate

logger = get_logger(__name__)


class LoopState(Enum):
    """Lifecycle of a detection loop. CANCELLED is terminal."""

    IDLE = "idle"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class ManualTickSignal(ITickSignal):
    """Tick signal that fires immediately, optionally a fixed number of times.

    Used for offline analysis and tests, where no real-time clock is wanted.
    """

    def __init__(self, ticks: Optional[int] = None):
        self._remaining = ticks
        self._cancelled = False

    def wait(self) -> bool:
        if self._cancelled:
            return False
        if self._remaining is not None:
            if self._remaining <= 0:
                return False
            self._remaining -= 1
        return True

    def cancel(self) -> None:
        self._cancelled = True


class FrameClock(ITickSignal):
    """Tick signal paced at a fixed frame rate.

    Missed frames are dropped rather than replayed. ``cancel`` wakes a
    pending ``wait`` at once.
    """

    def __init__(self, fps: float = 60.0):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self._period = 1.0 / fps
        self._cancelled = threading.Event()
        self._next_deadline: Optional[float] = None

    def wait(self) -> bool:
        if self._cancelled.is_set():
            return False

        now = time.monotonic()
        if self._next_deadline is None:
            self._next_deadline = now

        delay = self._next_deadline - now
        if delay > 0 and self._cancelled.wait(delay):
            return False

        now = time.monotonic()
        self._next_deadline += self._period
        if self._next_deadline < now:
            self._next_deadline = now
        return not self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()


class DetectionLoop:
    """Pulls a window per tick, runs the detectors and publishes their estimates.

    Ticks never overlap, and once the loop is stopped no further estimate is
    published, including from a tick that was already running.
    """

    def __init__(
        self,
        source: ISampleSource,
        detectors: Union[IPitchDetector, Iterable[IPitchDetector]],
        tick_signal: Optional[ITickSignal] = None,
        on_estimate: Optional[Callable[[str, PitchEstimate], None]] = None,
    ) -> None:
        """Initialize the detection loop.

        Args:
            source: Provider of sample windows; its lifecycle belongs to the caller
            detectors: One detector or several, run in order on the same window
            tick_signal: Paces ``run``; defaults to a 60 fps FrameClock
            on_estimate: Optional listener called as ``on_estimate(name, estimate)``
        """
        if isinstance(detectors, IPitchDetector):
            detectors = [detectors]
        self._detectors = list(detectors)
        if not self._detectors:
            raise ValueError("At least one detector is required")
        names = [d.name for d in self._detectors]
        if len(set(names)) != len(names):
            raise ValueError(f"Detector names must be unique, got {names}")

        self._source = source
        self._tick_signal = tick_signal or FrameClock()
        self.events = PitchEvents()
        if on_estimate:
            self.events.on_estimate(on_estimate)

        self._state = LoopState.IDLE
        self._ticking = False
        self._tick_count = 0

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def tick_count(self) -> int:
        """Number of ticks that read a window."""
        return self._tick_count

    @property
    def detectors(self):
        return list(self._detectors)

    def _set_state(self, new_state: LoopState) -> None:
        old_state = self._state
        self._state = new_state
        logger.info(f"Detection loop {old_state.value} -> {new_state.value}")
        self.events.emit_state_changed(old_state, new_state)

    def start(self) -> None:
        """Move from IDLE to ACTIVE.

        Raises:
            RuntimeError: If the loop is already active or was cancelled
        """
        if self._state is not LoopState.IDLE:
            raise RuntimeError(f"Cannot start a detection loop that is {self._state.value}")
        self._set_state(LoopState.ACTIVE)

    def stop(self) -> None:
        """Cancel the loop. Safe to call from another thread and more than once."""
        if self._state is LoopState.CANCELLED:
            return
        self._set_state(LoopState.CANCELLED)
        self._tick_signal.cancel()

    def tick(self) -> Dict[str, PitchEstimate]:
        """Run one detection cycle.

        Returns:
            The estimates that were published, keyed by detector name; empty
            if the loop was cancelled, the tick was refused or the source ran dry

        Raises:
            RuntimeError: If the loop has not been started
        """
        if self._state is LoopState.IDLE:
            raise RuntimeError("Detection loop has not been started")
        if self._state is LoopState.CANCELLED:
            return {}
        if self._ticking:
            logger.warning("Tick requested while another tick is running; skipped")
            return {}

        self._ticking = True
        try:
            window = self._source.read_window()
            if window is None:
                logger.info("Sample source exhausted")
                self.stop()
                return {}
            self._tick_count += 1

            published: Dict[str, PitchEstimate] = {}
            for detector in self._detectors:
                estimate = detector.detect(window)
                if self._state is not LoopState.ACTIVE:
                    logger.debug("Loop cancelled during tick; result discarded")
                    break
                self.events.emit_estimate(detector.name, estimate)
                published[detector.name] = estimate
            return published
        finally:
            self._ticking = False

    def run(self) -> None:
        """Tick until stopped or the tick signal closes, then cancel the loop."""
        if self._state is LoopState.IDLE:
            self.start()
        try:
            while self._state is LoopState.ACTIVE:
                if not self._tick_signal.wait():
                    break
                self.tick()
        finally:
            self.stop()
