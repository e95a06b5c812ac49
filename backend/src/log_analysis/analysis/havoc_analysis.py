from log_analysis.analysis.base import BaseAnalyzer, Scope, Statistic
from log_analysis.analysis.core_analysis import (
    Abilities,
    AlwaysBeCasting,
    BuffUptimeAnalyzer,
    CoreAnalysisConfig,
    ResourceTracker,
)

FURY = 17

METAMORPHOSIS = 191427
EYE_BEAM = 198013
BLADE_DANCE = 188499
NEMESIS = 206491
MOMENTUM_TALENT = 206476
MOMENTUM_BUFF = 208628
DELUSIONS_OF_GRANDEUR = 144279

FURY_PER_REDUCTION = 30
COOLDOWN_REDUCTION_MS = 1000


class HavocAbilities(Abilities):
    COOLDOWNS = {
        METAMORPHOSIS: 240000,
        EYE_BEAM: 30000,
        BLADE_DANCE: 9000,
        NEMESIS: 120000,
    }


class DelusionsOfGrandeur(BaseAnalyzer):
    """Every 30 Fury spent reduces the cooldown of Metamorphosis by 1 sec."""

    dependencies = {"spell_usable": "spell_usable"}

    def __init__(self, owner, dependencies=None, **kwargs):
        super().__init__(owner, dependencies, **kwargs)
        self.active = self.combatant.has_item(DELUSIONS_OF_GRANDEUR)

        self.fury_spent = 0
        self.effective_cdr = 0
        self.wasted_cdr = 0
        self._pending_fury = 0

        self.add_handler(Scope.BY_PLAYER, "cast", self.on_cast)

    def on_cast(self, event):
        for resource in event.class_resources:
            if resource.type == FURY and resource.cost:
                self.fury_spent += resource.cost
                self._pending_fury += resource.cost

        while self._pending_fury >= FURY_PER_REDUCTION:
            self._pending_fury -= FURY_PER_REDUCTION
            reduction = self.spell_usable.reduce_cooldown(
                METAMORPHOSIS, COOLDOWN_REDUCTION_MS
            )
            self.effective_cdr += reduction
            self.wasted_cdr += COOLDOWN_REDUCTION_MS - reduction

    def statistic(self):
        return Statistic(
            label="Delusions of Grandeur",
            value=self.effective_cdr,
            category="items",
            tooltip=(
                f"{self.effective_cdr / 1000:.1f}s of Metamorphosis cooldown "
                f"reduced from {self.fury_spent} Fury spent."
            ),
            details={"wasted_cdr": self.wasted_cdr, "fury_spent": self.fury_spent},
        )

    def report(self):
        return {
            "delusions_of_grandeur": {
                "fury_spent": self.fury_spent,
                "effective_cdr": self.effective_cdr,
                "wasted_cdr": self.wasted_cdr,
            }
        }


class HavocAnalysisConfig(CoreAnalysisConfig):
    spec_modules = {
        "abilities": HavocAbilities,
        "always_be_casting": (
            AlwaysBeCasting,
            {"thresholds": {"minor": 0.8, "average": 0.7, "major": 0.6}},
        ),
        "fury_tracker": (
            ResourceTracker,
            {
                "resource_type": FURY,
                "resource_name": "Fury",
                "waste_thresholds": {"minor": 0.03, "average": 0.07, "major": 0.1},
            },
        ),
        "momentum_uptime": (
            BuffUptimeAnalyzer,
            {
                "buff_id": MOMENTUM_BUFF,
                "label": "Momentum uptime",
                "talent_id": MOMENTUM_TALENT,
                "thresholds": {"minor": 0.55, "average": 0.45, "major": 0.4},
            },
        ),
        "delusions_of_grandeur": DelusionsOfGrandeur,
    }
