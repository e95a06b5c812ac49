import logging
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from log_analysis.analysis.errors import MalformedEvent

logger = logging.getLogger(__name__)

# Handlers registered for this kind receive every event in their scope
ANY_EVENT = "event"
FIGHT_END = "fightend"


class Ability(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    guid: int
    name: str = ""
    icon: Optional[str] = Field(default=None, alias="abilityIcon")


class ClassResource(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: int
    amount: int = 0
    max: int = 0
    cost: int = 0


class BaseEvent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    type: str = Field(min_length=1)
    timestamp: int = Field(ge=0)
    source_id: Optional[int] = Field(default=None, alias="sourceID")
    target_id: Optional[int] = Field(default=None, alias="targetID")
    ability: Optional[Ability] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_ability(cls, data):
        # Some exports carry the ability as a name plus abilityGameID
        # instead of a nested object
        if not isinstance(data, Mapping):
            return data
        ability = data.get("ability")
        if isinstance(ability, Mapping) or "abilityGameID" not in data:
            return data
        data = dict(data)
        data["ability"] = {
            "guid": data.pop("abilityGameID"),
            "name": ability if isinstance(ability, str) else "",
            "abilityIcon": data.pop("ability_icon", None),
        }
        return data

    @property
    def ability_id(self):
        return self.ability.guid if self.ability else None


class CastEvent(BaseEvent):
    type: Literal["cast"]
    ability: Ability
    class_resources: List[ClassResource] = Field(
        default_factory=list, alias="classResources"
    )


class BeginCastEvent(BaseEvent):
    type: Literal["begincast"]
    ability: Ability


class DamageEvent(BaseEvent):
    type: Literal["damage"]
    ability: Ability
    amount: int = Field(ge=0)
    absorbed: int = 0
    overkill: int = 0
    hit_type: Optional[int] = Field(default=None, alias="hitType")


class HealEvent(BaseEvent):
    type: Literal["heal"]
    ability: Ability
    amount: int = Field(ge=0)
    absorbed: int = 0
    overheal: int = 0


class AbsorbedEvent(BaseEvent):
    type: Literal["absorbed"]
    ability: Ability
    amount: int = Field(ge=0)


class ApplyBuffEvent(BaseEvent):
    type: Literal["applybuff"]
    ability: Ability


class ApplyBuffStackEvent(BaseEvent):
    type: Literal["applybuffstack"]
    ability: Ability
    stack: int


class RemoveBuffEvent(BaseEvent):
    type: Literal["removebuff"]
    ability: Ability


class RemoveBuffStackEvent(BaseEvent):
    type: Literal["removebuffstack"]
    ability: Ability
    stack: int


class RefreshBuffEvent(BaseEvent):
    type: Literal["refreshbuff"]
    ability: Ability


class ApplyDebuffEvent(BaseEvent):
    type: Literal["applydebuff"]
    ability: Ability


class ApplyDebuffStackEvent(BaseEvent):
    type: Literal["applydebuffstack"]
    ability: Ability
    stack: int


class RemoveDebuffEvent(BaseEvent):
    type: Literal["removedebuff"]
    ability: Ability


class RemoveDebuffStackEvent(BaseEvent):
    type: Literal["removedebuffstack"]
    ability: Ability
    stack: int


class RefreshDebuffEvent(BaseEvent):
    type: Literal["refreshdebuff"]
    ability: Ability


class ResourceChangeEvent(BaseEvent):
    type: Literal["resourcechange"]
    ability: Ability
    resource_change: int = Field(alias="resourceChange")
    resource_change_type: int = Field(alias="resourceChangeType")
    waste: int = 0


class DeathEvent(BaseEvent):
    type: Literal["death"]


class FightEndEvent(BaseEvent):
    type: Literal["fightend"] = FIGHT_END


EVENT_TYPES = {
    "cast": CastEvent,
    "begincast": BeginCastEvent,
    "damage": DamageEvent,
    "heal": HealEvent,
    "absorbed": AbsorbedEvent,
    "applybuff": ApplyBuffEvent,
    "applybuffstack": ApplyBuffStackEvent,
    "removebuff": RemoveBuffEvent,
    "removebuffstack": RemoveBuffStackEvent,
    "refreshbuff": RefreshBuffEvent,
    "applydebuff": ApplyDebuffEvent,
    "applydebuffstack": ApplyDebuffStackEvent,
    "removedebuff": RemoveDebuffEvent,
    "removedebuffstack": RemoveDebuffStackEvent,
    "refreshdebuff": RefreshDebuffEvent,
    "resourcechange": ResourceChangeEvent,
    "death": DeathEvent,
    "fightend": FightEndEvent,
}

BUFF_EVENTS = (
    "applybuff",
    "applybuffstack",
    "removebuff",
    "removebuffstack",
    "refreshbuff",
)
DEBUFF_EVENTS = (
    "applydebuff",
    "applydebuffstack",
    "removedebuff",
    "removedebuffstack",
    "refreshdebuff",
)


def _describe(error: ValidationError):
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'event'}: {err['msg']}"
        for err in error.errors()
    )


def parse_event(raw) -> BaseEvent:
    """Build the typed event for a raw log record.

    Unknown event types are kept as plain ``BaseEvent`` instances; records
    without a type or timestamp, or missing a field their kind requires,
    raise ``MalformedEvent``.
    """
    if isinstance(raw, BaseEvent):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedEvent(raw, "not a mapping")

    event_type = raw.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedEvent(raw, "missing event type")

    model = EVENT_TYPES.get(event_type, BaseEvent)
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise MalformedEvent(raw, _describe(e)) from e


def parse_events(raw_events):
    """Parse a batch of raw records, skipping the malformed ones."""
    events = []
    skipped = 0

    for raw in raw_events:
        try:
            events.append(parse_event(raw))
        except MalformedEvent as e:
            logger.warning("Skipping malformed event: %s", e.reason)
            skipped += 1
    return events, skipped


def sort_events(events):
    # sorted() is stable, so ties keep log order
    return sorted(events, key=lambda event: event.timestamp)
