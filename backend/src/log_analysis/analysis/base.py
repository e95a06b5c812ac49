from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from log_analysis.analysis.errors import ModuleStateError
from log_analysis.analysis.events import ANY_EVENT


class Window:
    def __init__(self, start, end=None):
        self.start = start
        self.end = end

    def contains(self, timestamp):
        return self.start <= timestamp and (self.end is None or timestamp < self.end)

    @property
    def duration(self):
        return self.end - self.start

    def __eq__(self, other):
        if not isinstance(other, Window):
            return NotImplemented
        return (self.start, self.end) == (other.start, other.end)

    def __repr__(self):
        return f"Window({self.start}, {self.end})"


def range_overlap(a, b):
    return max(a[0], b[0]) < min(a[1], b[1])


def clamp_windows(windows, start, end):
    clamped_windows = []

    for window in windows:
        window_end = end if window.end is None else window.end
        if not range_overlap((window.start, window_end), (start, end)):
            continue
        clamped_windows.append(Window(max(window.start, start), min(window_end, end)))
    return clamped_windows


def combine_windows(windows):
    """Merge overlapping or touching closed windows into disjoint ones."""
    combined = []

    for window in sorted(windows, key=lambda w: (w.start, w.end)):
        if combined and window.start <= combined[-1].end:
            combined[-1].end = max(combined[-1].end, window.end)
        else:
            combined.append(Window(window.start, window.end))
    return combined


def calculate_uptime(windows, ignore_windows, total_duration):
    windows = combine_windows(windows)
    ignore_windows = combine_windows(ignore_windows)

    active = sum(window.duration for window in windows)
    for ignored in ignore_windows:
        for window in windows:
            if range_overlap((window.start, window.end), (ignored.start, ignored.end)):
                active -= min(window.end, ignored.end) - max(window.start, ignored.start)

    duration = total_duration - sum(window.duration for window in ignore_windows)
    if duration <= 0:
        return 0

    return active / duration


class Statistic(BaseModel):
    """Display-agnostic statistic bundle returned by ``statistic()``."""

    module: Optional[str] = None
    label: str
    value: Any
    style: str = "number"
    category: str = "general"
    position: int = 100
    icon: Optional[str] = None
    tooltip: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class Scope(Enum):
    ANY = "any"
    BY_PLAYER = "by_player"
    BY_PLAYER_PET = "by_player_pet"
    TO_PLAYER = "to_player"
    TO_PLAYER_PET = "to_player_pet"
    BY_OTHER = "by_other"


class BaseAnalyzer:
    """An analysis module.

    ``dependencies`` maps the attribute name a module reads a dependency
    through to that dependency's identifier in the module table. Handlers
    are registered in ``__init__`` with ``add_handler``; ``active`` may be
    changed in ``__init__`` only.
    """

    dependencies = {}
    SHOW_STATISTIC = True

    def __init__(self, owner, dependencies=None, show_statistic=None):
        self.owner = owner
        self._active = True
        self._sealed = False
        self._handlers = {}
        self.show_statistic = (
            self.SHOW_STATISTIC if show_statistic is None else show_statistic
        )

        for name, module in (dependencies or {}).items():
            setattr(self, name, module)

    @property
    def active(self):
        return self._active

    @active.setter
    def active(self, value):
        if self._sealed:
            raise ModuleStateError(
                f"{type(self).__name__}.active can only be set during construction"
            )
        self._active = bool(value)

    def seal(self):
        self._sealed = True

    @property
    def combatant(self):
        return self.owner.combatant

    @property
    def fight_duration(self):
        return self.owner.fight_duration

    def add_handler(self, scope, event_type, handler):
        self._handlers.setdefault((scope, event_type), []).append(handler)

    def get_handlers(self, scope, event_type):
        return self._handlers.get((scope, event_type), []) + self._handlers.get(
            (scope, ANY_EVENT), []
        )

    def statistic(self):
        return None

    def suggestions(self, when):
        pass

    def report(self):
        return {}
