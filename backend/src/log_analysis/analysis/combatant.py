SPEC_NAMES = {
    103: "Feral",
    253: "BeastMastery",
    254: "Marksmanship",
    577: "Havoc",
}


class Combatant:
    """Read-only view of the analyzed player for one run."""

    def __init__(
        self,
        player_id,
        name=None,
        spec=None,
        talents=(),
        traits=(),
        items=(),
        pets=(),
        auras=(),
    ):
        self._player_id = player_id
        self._name = name
        self._spec = spec
        self._talents = frozenset(talents)
        self._traits = frozenset(traits)
        self._items = frozenset(items)
        self._pets = frozenset(pets)
        self._auras = tuple(auras)

    @classmethod
    def from_combatant_info(cls, combatant_info, player_id, name=None, pets=()):
        """Build from a log export's ``combatantinfo`` payload."""
        spec_id = combatant_info.get("specID")
        traits = [
            trait.get("spellID") or trait.get("traitID")
            for trait in (combatant_info.get("artifact") or [])
            + (combatant_info.get("heartOfAzeroth") or [])
        ]
        auras = [
            aura.get("ability") or aura.get("abilityGameID")
            for aura in (combatant_info.get("auras") or [])
            # only auras the player has on themselves at pull
            if aura.get("source", player_id) == player_id
        ]
        return cls(
            player_id,
            name=name,
            spec=SPEC_NAMES.get(spec_id, combatant_info.get("spec")),
            talents=[
                talent.get("id") for talent in (combatant_info.get("talents") or [])
            ],
            traits=[trait for trait in traits if trait],
            items=[item.get("id") for item in (combatant_info.get("gear") or [])],
            pets=pets,
            auras=[aura for aura in auras if aura],
        )

    @property
    def player_id(self):
        return self._player_id

    @property
    def name(self):
        return self._name

    @property
    def spec(self):
        return self._spec

    @property
    def pets(self):
        return self._pets

    @property
    def auras(self):
        return self._auras

    def has_talent(self, talent_id):
        return talent_id in self._talents

    def has_trait(self, trait_id):
        return trait_id in self._traits

    def has_item(self, item_id):
        return item_id in self._items

    def has_aura(self, aura_id):
        return aura_id in self._auras

    def is_pet(self, entity_id):
        return entity_id in self._pets

    def __repr__(self):
        return f"Combatant({self._player_id!r}, name={self._name!r}, spec={self._spec!r})"
