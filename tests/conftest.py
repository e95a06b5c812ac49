"""Pytest configuration and shared fixtures for the combat log analyzer tests."""

import pytest

from log_analysis.analysis.combatant import Combatant


class EventFactory:
    """Builds raw event records shaped like a log export."""

    PLAYER = 1
    PET = 10
    ENEMY = 50
    OTHER_ENEMY = 51
    ALLY = 60

    def event(self, event_type, timestamp, ability_id=None, source=PLAYER, target=ENEMY, **fields):
        event = {
            "type": event_type,
            "timestamp": timestamp,
            "sourceID": source,
            "targetID": target,
        }
        if ability_id is not None:
            event["ability"] = {
                "guid": ability_id,
                "name": f"Ability {ability_id}",
                "abilityIcon": f"ability_{ability_id}.jpg",
            }
        event.update(fields)
        return event

    def cast(self, timestamp, ability_id, **kwargs):
        return self.event("cast", timestamp, ability_id, **kwargs)

    def damage(self, timestamp, ability_id, amount=100, **kwargs):
        return self.event("damage", timestamp, ability_id, amount=amount, **kwargs)

    def apply_buff(self, timestamp, ability_id, target=PLAYER, **kwargs):
        return self.event("applybuff", timestamp, ability_id, target=target, **kwargs)

    def remove_buff(self, timestamp, ability_id, target=PLAYER, **kwargs):
        return self.event("removebuff", timestamp, ability_id, target=target, **kwargs)

    def apply_debuff(self, timestamp, ability_id, **kwargs):
        return self.event("applydebuff", timestamp, ability_id, **kwargs)

    def remove_debuff(self, timestamp, ability_id, **kwargs):
        return self.event("removedebuff", timestamp, ability_id, **kwargs)

    def resource_change(self, timestamp, ability_id, change, resource_type, waste=0, **kwargs):
        kwargs.setdefault("target", self.PLAYER)
        return self.event(
            "resourcechange",
            timestamp,
            ability_id,
            resourceChange=change,
            resourceChangeType=resource_type,
            waste=waste,
            **kwargs,
        )


@pytest.fixture
def make() -> EventFactory:
    """Factory for raw event records."""
    return EventFactory()


@pytest.fixture
def combatant() -> Combatant:
    """A player with one pet and nothing equipped."""
    return Combatant(EventFactory.PLAYER, name="Tester", pets=[EventFactory.PET])
