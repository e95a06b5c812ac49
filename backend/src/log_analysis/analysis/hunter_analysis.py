from log_analysis.analysis.base import BaseAnalyzer, Scope, Statistic
from log_analysis.analysis.core_analysis import Abilities, CoreAnalysisConfig
from log_analysis.analysis.events import FIGHT_END

RAPID_RELOAD = 278530
RAPID_RELOAD_DAMAGE = 278565
MULTISHOT_BM = 2643
MULTISHOT_MM = 257620
ASPECT_OF_THE_CHEETAH = 186257
ASPECT_OF_THE_TURTLE = 186265
ASPECT_OF_THE_WILD = 193530
BESTIAL_WRATH = 19574
TRUESHOT = 288613

MULTI_SHOTS = (MULTISHOT_BM, MULTISHOT_MM)
COOLDOWN_REDUCTION_MS = 1000


class RapidReload(BaseAnalyzer):
    """
    Multi-Shots that damage more than 2 targets fire an additional wave of
    bullets, dealing extra damage and reducing the cooldown of your Aspects
    by 1 sec.
    """

    dependencies = {"spell_usable": "spell_usable"}

    def __init__(self, owner, dependencies=None, **kwargs):
        super().__init__(owner, dependencies, **kwargs)
        self.active = self.combatant.has_trait(RAPID_RELOAD)

        self._aspects = {
            ASPECT_OF_THE_CHEETAH: {"effective_cdr": 0, "wasted_cdr": 0},
            ASPECT_OF_THE_TURTLE: {"effective_cdr": 0, "wasted_cdr": 0},
        }
        if self.combatant.spec == "BeastMastery":
            self._aspects[ASPECT_OF_THE_WILD] = {"effective_cdr": 0, "wasted_cdr": 0}

        self.casts = 0
        self.damage = 0
        self.multi_shots_without_proc = 0
        # None until the first Multi-Shot
        self._current_cast_hits = None

        self.add_handler(Scope.BY_PLAYER, "cast", self.on_cast)
        self.add_handler(Scope.BY_PLAYER, "damage", self.on_damage)
        self.add_handler(Scope.ANY, FIGHT_END, self.on_fight_end)

    def _close_cast(self):
        if self._current_cast_hits == 0:
            self.multi_shots_without_proc += 1

    def on_cast(self, event):
        if event.ability.guid not in MULTI_SHOTS:
            return
        self._close_cast()
        self.casts += 1
        self._current_cast_hits = 0

    def on_damage(self, event):
        if event.ability.guid != RAPID_RELOAD_DAMAGE:
            return
        self.damage += event.amount + event.absorbed
        if self._current_cast_hits is not None:
            self._current_cast_hits += 1

        for aspect_id, cdr in self._aspects.items():
            if self.spell_usable.is_on_cooldown(aspect_id):
                reduction = self.spell_usable.reduce_cooldown(
                    aspect_id, COOLDOWN_REDUCTION_MS
                )
                cdr["effective_cdr"] += reduction
                cdr["wasted_cdr"] += COOLDOWN_REDUCTION_MS - reduction
            else:
                cdr["wasted_cdr"] += COOLDOWN_REDUCTION_MS

    def on_fight_end(self, event):
        self._close_cast()
        self._current_cast_hits = None

    @property
    def multi_shots_without_procs(self):
        return {
            "actual": self.multi_shots_without_proc,
            "is_greater_than": {"minor": 0, "average": 0, "major": 3},
            "style": "number",
        }

    @property
    def multi_shot_casts(self):
        return {
            "actual": self.casts,
            "is_less_than": {"minor": 1, "average": 1, "major": 1},
            "style": "number",
        }

    def suggestions(self, when):
        when(self.multi_shots_without_procs).add_suggestion(
            "When using Rapid Reload, remember to try to hit 3 or more targets "
            "every time you cast Multi-Shot.",
            ability_id=RAPID_RELOAD,
        )
        when(self.multi_shot_casts).add_suggestion(
            "When using Rapid Reload it is important to remember to cast "
            "Multi-Shot in order to gain value from the azerite trait, however "
            "you should never cast Multi-Shot on single-target regardless.",
            ability_id=RAPID_RELOAD,
        )

    def statistic(self):
        procs = self.casts - self.multi_shots_without_proc
        return Statistic(
            label="Rapid Reload",
            value=self.damage,
            category="azerite_powers",
            tooltip=(
                f"{procs}/{self.casts} of your Multi-Shot casts procced Rapid Reload."
            ),
            details={
                "procs": procs,
                "casts": self.casts,
                "aspects": {
                    aspect_id: dict(cdr) for aspect_id, cdr in self._aspects.items()
                },
            },
        )

    def report(self):
        return {
            "rapid_reload": {
                "damage": self.damage,
                "casts": self.casts,
                "casts_without_proc": self.multi_shots_without_proc,
                "aspects": {
                    aspect_id: dict(cdr) for aspect_id, cdr in self._aspects.items()
                },
            }
        }


class HunterAbilities(Abilities):
    COOLDOWNS = {
        ASPECT_OF_THE_CHEETAH: 180000,
        ASPECT_OF_THE_TURTLE: 180000,
    }


class BeastMasteryAbilities(HunterAbilities):
    COOLDOWNS = {
        **HunterAbilities.COOLDOWNS,
        ASPECT_OF_THE_WILD: 120000,
        BESTIAL_WRATH: 90000,
    }


class MarksmanshipAbilities(HunterAbilities):
    COOLDOWNS = {
        **HunterAbilities.COOLDOWNS,
        TRUESHOT: 180000,
    }


class BeastMasteryAnalysisConfig(CoreAnalysisConfig):
    spec_modules = {
        "abilities": BeastMasteryAbilities,
        "rapid_reload": RapidReload,
    }


class MarksmanshipAnalysisConfig(CoreAnalysisConfig):
    spec_modules = {
        "abilities": MarksmanshipAbilities,
        "rapid_reload": RapidReload,
    }
