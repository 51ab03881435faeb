"""Event system for Flute Tuner components."""

from typing import Dict, List, Callable, Any
from enum import Enum, auto

from ..logger import get_logger

logger = get_logger(__name__)


class PitchEventType(Enum):
    """Event types published by a detection loop."""

    ESTIMATE = auto()
    STATE_CHANGED = auto()


class EventEmitter:
    """Event emitter for Flute Tuner components."""

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []

        if callback not in self._listeners[event_type]:
            self._listeners[event_type].append(callback)
            logger.debug(f"Added listener for event {event_type}")

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Emit an event.

        A failing listener is logged and does not stop the others.

        Args:
            event_type: Event type to emit
            *args: Positional arguments to pass to listeners
            **kwargs: Keyword arguments to pass to listeners
        """
        if event_type not in self._listeners:
            return

        for callback in list(self._listeners[event_type]):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}", exc_info=True)


class PitchEvents:
    """Event emitter specifically for detection loop events."""

    def __init__(self):
        """Initialize the detection loop events."""
        self._emitter = EventEmitter()

    def on_estimate(self, callback: Callable) -> None:
        """Register a callback for published estimates.

        Args:
            callback: Called as ``callback(algorithm_name, estimate)``
        """
        self._emitter.on(PitchEventType.ESTIMATE, callback)

    def on_state_changed(self, callback: Callable) -> None:
        """Register a callback for loop state transitions.

        Args:
            callback: Called as ``callback(old_state, new_state)``
        """
        self._emitter.on(PitchEventType.STATE_CHANGED, callback)

    def emit_estimate(self, algorithm: str, estimate) -> None:
        self._emitter.emit(PitchEventType.ESTIMATE, algorithm, estimate)

    def emit_state_changed(self, old_state, new_state) -> None:
        self._emitter.emit(PitchEventType.STATE_CHANGED, old_state, new_state)
