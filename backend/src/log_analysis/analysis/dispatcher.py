import logging

from log_analysis.analysis.base import Scope
from log_analysis.analysis.errors import MalformedEvent, ModuleError
from log_analysis.analysis.events import FightEndEvent, parse_event

logger = logging.getLogger(__name__)

SCOPE_ORDER = (
    Scope.ANY,
    Scope.BY_PLAYER,
    Scope.BY_PLAYER_PET,
    Scope.TO_PLAYER,
    Scope.TO_PLAYER_PET,
    Scope.BY_OTHER,
)


def event_scopes(event, combatant):
    """Scopes of an event relative to the analyzed player, in dispatch order."""
    by_player = event.source_id is not None and event.source_id == combatant.player_id
    by_pet = event.source_id is not None and combatant.is_pet(event.source_id)
    matched = {
        Scope.ANY: True,
        Scope.BY_PLAYER: by_player,
        Scope.BY_PLAYER_PET: by_pet,
        Scope.TO_PLAYER: (
            event.target_id is not None and event.target_id == combatant.player_id
        ),
        Scope.TO_PLAYER_PET: (
            event.target_id is not None and combatant.is_pet(event.target_id)
        ),
        Scope.BY_OTHER: not (by_player or by_pet),
    }
    return [scope for scope in SCOPE_ORDER if matched[scope]]


class EventDispatcher:
    def __init__(self, combatant):
        self._combatant = combatant
        self.current_timestamp = 0
        self.skipped_events = 0
        self.dispatched_events = 0

    def _normalize(self, raw):
        try:
            event = parse_event(raw)
        except MalformedEvent as e:
            logger.warning("Skipping malformed event: %s", e.reason)
            self.skipped_events += 1
            return None

        if event.timestamp < self.current_timestamp:
            logger.warning(
                "Skipping out of order %s event at %s (current time %s)",
                event.type,
                event.timestamp,
                self.current_timestamp,
            )
            self.skipped_events += 1
            return None
        return event

    def dispatch(self, modules, event):
        self.current_timestamp = event.timestamp
        scopes = event_scopes(event, self._combatant)

        for identifier, module in modules:
            for scope in scopes:
                for handler in module.get_handlers(scope, event.type):
                    try:
                        handler(event)
                    except Exception as e:
                        raise ModuleError(identifier, event) from e

    def run(self, modules, events, fight_end=None):
        """Replay ``events`` once through the active modules.

        ``modules`` is a sequence of (identifier, module) pairs in resolution
        order. A ``fightend`` event is delivered after the last event, at
        ``fight_end`` or the last event's timestamp. Each run starts from a
        clean clock and counters.
        """
        self.current_timestamp = 0
        self.skipped_events = 0
        self.dispatched_events = 0

        active_modules = [
            (identifier, module) for identifier, module in modules if module.active
        ]

        for raw in events:
            event = self._normalize(raw)
            if event is None:
                continue
            self.dispatch(active_modules, event)
            self.dispatched_events += 1

        end = self.current_timestamp if fight_end is None else max(
            fight_end, self.current_timestamp
        )
        self.dispatch(active_modules, FightEndEvent(timestamp=end))
