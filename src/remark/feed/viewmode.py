"""Pinch-gesture view-mode state machine.

Two-finger spread steps the view "inward" (calendar -> grid -> list);
two-finger pinch steps it back out. The distance at the first sample of a
gesture is latched as the baseline, and every transition clears it, so
each further step needs a fresh full-threshold movement.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence

from loguru import logger

from .models import Direction, ViewMode

ModeChangeHandler = Callable[[ViewMode, ViewMode, Direction], None]

DEFAULT_THRESHOLD_PX = 30.0

_CYCLE = {
    ViewMode.CALENDAR: ViewMode.GRID,
    ViewMode.GRID: ViewMode.LIST,
    ViewMode.LIST: ViewMode.CALENDAR,
}


def transition_direction(prev: ViewMode, next_mode: ViewMode) -> Direction:
    """FORWARD when moving toward LIST, BACKWARD toward CALENDAR."""
    return Direction.FORWARD if next_mode > prev else Direction.BACKWARD


def zoom_in(mode: ViewMode) -> ViewMode:
    return ViewMode(min(mode + 1, ViewMode.LIST))


def zoom_out(mode: ViewMode) -> ViewMode:
    return ViewMode(max(mode - 1, ViewMode.CALENDAR))


def next_in_cycle(mode: ViewMode) -> ViewMode:
    return _CYCLE[mode]


def cycle_label(mode: ViewMode) -> str:
    """Label for the header button, naming the mode it switches to."""
    return next_in_cycle(mode).name.title()


def touch_distance(points: Sequence[tuple[float, float]]) -> float:
    (ax, ay), (bx, by) = points
    return math.hypot(ax - bx, ay - by)


class PinchGesture:
    """Discrete view mode driven by a continuous two-finger distance.

    Args:
        mode: Starting view mode.
        threshold: Distance change (pixels) needed for one transition.
        on_change: Called as ``(previous, new, direction)`` after every
            transition that actually changes the mode.
    """

    def __init__(
        self,
        mode: ViewMode = ViewMode.GRID,
        threshold: float = DEFAULT_THRESHOLD_PX,
        on_change: ModeChangeHandler | None = None,
    ):
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self.mode = ViewMode(mode)
        self.threshold = threshold
        self.start_dist: float | None = None
        self._on_change = on_change

    @property
    def tracking(self) -> bool:
        return self.start_dist is not None

    def touch_move(self, points: Sequence[tuple[float, float]]) -> ViewMode | None:
        """Feed one touch-move event (page coordinates of active touches).

        Only events with exactly two touches take part in the gesture.
        Returns the new mode when this sample caused a transition.
        """
        if len(points) != 2:
            return None
        return self.sample(touch_distance(points))

    def sample(self, distance: float) -> ViewMode | None:
        """Feed one two-finger distance sample."""
        if self.start_dist is None:
            self.start_dist = distance
            return None

        delta = distance - self.start_dist
        if delta > self.threshold:
            target = zoom_in(self.mode)
        elif delta < -self.threshold:
            target = zoom_out(self.mode)
        else:
            return None

        # Threshold crossed: always re-arm, even at a terminal mode.
        self.start_dist = None
        return self._transition(target)

    def release(self) -> None:
        """Gesture ended normally."""
        self.start_dist = None

    def terminate(self) -> None:
        """Gesture was interrupted (e.g. taken over by a scroll)."""
        self.start_dist = None

    def cycle(self) -> ViewMode:
        """Manual toggle: calendar -> grid -> list -> calendar."""
        self.start_dist = None
        self._transition(next_in_cycle(self.mode))
        return self.mode

    def set_mode(self, mode: ViewMode) -> ViewMode | None:
        self.start_dist = None
        return self._transition(ViewMode(mode))

    def _transition(self, target: ViewMode) -> ViewMode | None:
        prev = self.mode
        if target == prev:
            return None
        self.mode = target
        direction = transition_direction(prev, target)
        logger.debug(f"View mode {prev.name} -> {target.name} ({direction.value})")
        if self._on_change is not None:
            self._on_change(prev, target, direction)
        return target
