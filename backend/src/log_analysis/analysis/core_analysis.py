import logging
from collections import defaultdict

from log_analysis.analysis.base import (
    BaseAnalyzer,
    Scope,
    Statistic,
    Window,
    calculate_uptime,
    clamp_windows,
    combine_windows,
)
from log_analysis.analysis.events import BUFF_EVENTS, DEBUFF_EVENTS

logger = logging.getLogger(__name__)


class BuffWindows:
    def __init__(self, buff_id, buff_name=None, icon=None):
        self.buff_id = buff_id
        self.buff_name = buff_name
        self.icon = icon
        self.stacks = 0
        self._windows = []

    @property
    def has_window(self):
        return len(self._windows) > 0

    @property
    def has_active_window(self):
        return self.has_window and self._windows[-1].end is None

    @property
    def active_window(self):
        if not self.has_window:
            return None
        return self._windows[-1]

    @property
    def windows(self):
        return self._windows

    @property
    def num_windows(self):
        return len(self._windows)

    def add_window(self, start, end=None):
        self._windows.append(Window(start, end))

    def contains(self, timestamp):
        for window in self._windows:
            if window.contains(timestamp):
                return True
        return False


class BuffTracker(BaseAnalyzer):
    """Buffs on the player, as windows per buff id."""

    def __init__(self, owner, dependencies=None, **kwargs):
        super().__init__(owner, dependencies, **kwargs)
        self._buff_windows = {}
        self._add_starting_auras(self.combatant.auras)

        for event_type in BUFF_EVENTS:
            self.add_handler(Scope.TO_PLAYER, event_type, self.on_buff_event)

    def _get_buff_windows(self, buff_id, buff_name=None, icon=None):
        windows = self._buff_windows.setdefault(buff_id, BuffWindows(buff_id))
        if buff_name and not windows.buff_name:
            windows.buff_name = buff_name
            windows.icon = icon
        return windows

    def _add_starting_auras(self, starting_auras):
        for aura_id in starting_auras:
            windows = self._get_buff_windows(aura_id)
            if not windows.has_window:
                windows.add_window(self.owner.fight_start)
                windows.stacks = 1

    def on_buff_event(self, event):
        windows = self._get_buff_windows(
            event.ability.guid, event.ability.name, event.ability.icon
        )

        if event.type in ("applybuffstack", "removebuffstack", "refreshbuff"):
            # If we don't have a window, assume it was a starting aura
            if not windows.has_window:
                windows.add_window(self.owner.fight_start)
            if event.type != "refreshbuff":
                windows.stacks = event.stack
        elif event.type == "applybuff":
            if not windows.has_active_window:
                windows.add_window(event.timestamp)
            windows.stacks = max(1, windows.stacks)
        elif event.type == "removebuff":
            if windows.has_active_window:
                windows.active_window.end = event.timestamp
            elif not windows.has_window:
                windows.add_window(self.owner.fight_start, event.timestamp)
            windows.stacks = 0

    def has_buff(self, buff_id):
        if buff_id not in self._buff_windows:
            return False
        return self._buff_windows[buff_id].has_active_window

    def is_active(self, buff_id, timestamp):
        if buff_id not in self._buff_windows:
            return False
        return self._buff_windows[buff_id].contains(timestamp)

    def get_stacks(self, buff_id):
        if not self.has_buff(buff_id):
            return 0
        return self._buff_windows[buff_id].stacks

    def num_applications(self, buff_id):
        if buff_id not in self._buff_windows:
            return 0
        return self._buff_windows[buff_id].num_windows

    def get_windows(self, buff_id):
        if buff_id not in self._buff_windows:
            return []
        return clamp_windows(
            self._buff_windows[buff_id].windows,
            self.owner.fight_start,
            self.owner.fight_end,
        )

    def get_buff_uptime(self, buff_id):
        return sum(window.duration for window in combine_windows(self.get_windows(buff_id)))

    def uptime(self, buff_id):
        return calculate_uptime(self.get_windows(buff_id), [], self.fight_duration)

    def get_active_buffs(self, timestamp):
        return [
            buff_id
            for buff_id, windows in self._buff_windows.items()
            if windows.contains(timestamp)
        ]

    def report(self):
        return {
            "buffs": {
                buff_id: {
                    "name": windows.buff_name,
                    "applications": windows.num_windows,
                    "uptime": self.uptime(buff_id),
                }
                for buff_id, windows in self._buff_windows.items()
            }
        }


class DebuffTracker(BaseAnalyzer):
    """Debuffs the player and their pets keep on enemies."""

    class WindowManager:
        def __init__(self):
            self._windows_by_target = defaultdict(list)
            self._window_by_target = {}

        def add_window(self, target, start, end=None):
            window = Window(start, end)
            self._window_by_target[target] = window
            self._windows_by_target[target].append(window)

        def end_window(self, target, end):
            window = self._window_by_target.get(target)
            if window and window.end is None:
                window.end = end

        def has_window(self, target):
            return target in self._window_by_target

        def has_active_window(self, target):
            window = self._window_by_target.get(target)
            return window is not None and window.end is None

        def windows_on(self, target_id):
            return [
                window
                for (target, _), windows in self._windows_by_target.items()
                if target == target_id
                for window in windows
            ]

        def windows(self):
            return [
                window
                for windows in self._windows_by_target.values()
                for window in windows
            ]

    def __init__(self, owner, dependencies=None, **kwargs):
        super().__init__(owner, dependencies, **kwargs)
        self._debuffs = defaultdict(self.WindowManager)

        for scope in (Scope.BY_PLAYER, Scope.BY_PLAYER_PET):
            for event_type in DEBUFF_EVENTS:
                self.add_handler(scope, event_type, self.on_debuff_event)

    def on_debuff_event(self, event):
        wm = self._debuffs[event.ability.guid]
        target = (event.target_id, (event.model_extra or {}).get("targetInstance"))

        if event.type in ("applydebuff", "applydebuffstack", "refreshdebuff"):
            if not wm.has_active_window(target):
                # refreshing a debuff we never saw applied: it was up at pull
                start = (
                    event.timestamp
                    if event.type == "applydebuff" or wm.has_window(target)
                    else self.owner.fight_start
                )
                wm.add_window(target, start)
        elif event.type == "removedebuff":
            if not wm.has_window(target):
                wm.add_window(target, self.owner.fight_start)
            wm.end_window(target, event.timestamp)

    def is_active_on(self, debuff_id, target_id, timestamp=None):
        if timestamp is None:
            timestamp = self.owner.current_timestamp
        wm = self._debuffs.get(debuff_id)
        if wm is None:
            return False
        return any(window.contains(timestamp) for window in wm.windows_on(target_id))

    def get_windows(self, debuff_id):
        wm = self._debuffs.get(debuff_id)
        if wm is None:
            return []
        return combine_windows(
            clamp_windows(wm.windows(), self.owner.fight_start, self.owner.fight_end)
        )

    def get_debuff_uptime(self, debuff_id):
        return sum(window.duration for window in self.get_windows(debuff_id))

    def uptime(self, debuff_id):
        return calculate_uptime(self.get_windows(debuff_id), [], self.fight_duration)


class Abilities(BaseAnalyzer):
    """Cooldown table of the player's abilities, in ms by ability id."""

    COOLDOWNS = {}

    def __init__(self, owner, dependencies=None, cooldowns=None, **kwargs):
        super().__init__(owner, dependencies, **kwargs)
        self._cooldowns = dict(self.COOLDOWNS)
        # options may come from JSON, where keys are strings
        self._cooldowns.update(
            {int(ability_id): cd for ability_id, cd in (cooldowns or {}).items()}
        )

    def cooldown(self, ability_id):
        return self._cooldowns.get(ability_id)

    def __contains__(self, ability_id):
        return ability_id in self._cooldowns


class Cooldown:
    def __init__(self, ability_id, start, duration):
        self.ability_id = ability_id
        self.start = start
        self.expected_end = start + duration
        self.total_reduction = 0

    def remaining(self, timestamp):
        return max(0, self.expected_end - timestamp)


class SpellUsable(BaseAnalyzer):
    """Cooldown state of the player's abilities.

    A cooldown starts when the player casts an ability listed in
    ``abilities`` and ends when its time runs out, when it is reduced to
    zero, or when ``end_cooldown`` is called. Time is the dispatcher's
    current timestamp.
    """

    dependencies = {"abilities": "abilities"}

    def __init__(self, owner, dependencies=None, **kwargs):
        super().__init__(owner, dependencies, **kwargs)
        self._cooldowns = {}
        self._windows = defaultdict(list)
        self._casts = defaultdict(int)
        self._reductions = defaultdict(int)

        self.add_handler(Scope.BY_PLAYER, "cast", self.on_cast)

    @property
    def _now(self):
        return self.owner.current_timestamp

    def _finish(self, ability_id, end):
        cooldown = self._cooldowns.pop(ability_id)
        self._windows[ability_id].append(Window(cooldown.start, end))

    def _expire(self, ability_id, timestamp):
        cooldown = self._cooldowns.get(ability_id)
        if cooldown and cooldown.expected_end <= timestamp:
            self._finish(ability_id, cooldown.expected_end)

    def on_cast(self, event):
        ability_id = event.ability.guid
        duration = self.abilities.cooldown(ability_id)
        if duration is None:
            return

        self._casts[ability_id] += 1
        self._expire(ability_id, event.timestamp)
        if ability_id in self._cooldowns:
            logger.debug(
                "%s cast at %s while still on cooldown, restarting it",
                event.ability.name or ability_id,
                event.timestamp,
            )
            self._finish(ability_id, event.timestamp)
        self._cooldowns[ability_id] = Cooldown(ability_id, event.timestamp, duration)

    def is_on_cooldown(self, ability_id):
        self._expire(ability_id, self._now)
        return ability_id in self._cooldowns

    def cooldown_remaining(self, ability_id):
        if not self.is_on_cooldown(ability_id):
            return 0
        return self._cooldowns[ability_id].remaining(self._now)

    def reduce_cooldown(self, ability_id, amount_ms):
        """Reduce a running cooldown, returning the reduction actually applied.

        The result is less than ``amount_ms`` when less time than that was
        left, and 0 when the ability is not on cooldown.
        """
        if not self.is_on_cooldown(ability_id):
            return 0

        cooldown = self._cooldowns[ability_id]
        effective = min(amount_ms, cooldown.remaining(self._now))
        cooldown.expected_end -= effective
        cooldown.total_reduction += effective
        self._reductions[ability_id] += effective

        if cooldown.remaining(self._now) == 0:
            self._finish(ability_id, self._now)
        return effective

    def end_cooldown(self, ability_id):
        if self.is_on_cooldown(ability_id):
            self._finish(ability_id, self._now)

    def num_casts(self, ability_id):
        return self._casts.get(ability_id, 0)

    def cooldown_windows(self, ability_id):
        windows = list(self._windows.get(ability_id, []))
        cooldown = self._cooldowns.get(ability_id)
        if cooldown:
            windows.append(Window(cooldown.start, cooldown.expected_end))
        return clamp_windows(windows, self.owner.fight_start, self.owner.fight_end)

    def report(self):
        return {
            "cooldowns": {
                ability_id: {
                    "casts": casts,
                    "time_on_cooldown": sum(
                        window.duration for window in self.cooldown_windows(ability_id)
                    ),
                    "total_reduction": self._reductions.get(ability_id, 0),
                }
                for ability_id, casts in self._casts.items()
            }
        }


class ResourceTracker(BaseAnalyzer):
    """Generation, waste and spending of one class resource."""

    def __init__(
        self,
        owner,
        dependencies=None,
        resource_type=None,
        resource_name="Resource",
        waste_thresholds=None,
        **kwargs,
    ):
        super().__init__(owner, dependencies, **kwargs)
        if resource_type is None:
            raise ValueError("ResourceTracker needs a resource_type")
        self.resource_type = resource_type
        self.resource_name = resource_name
        self._waste_thresholds = waste_thresholds

        self.generated = 0
        self.wasted = 0
        self.spent = 0
        self.generated_by_ability = defaultdict(int)
        self.wasted_by_ability = defaultdict(int)
        self.spent_by_ability = defaultdict(int)

        self.add_handler(Scope.TO_PLAYER, "resourcechange", self.on_resource_change)
        self.add_handler(Scope.BY_PLAYER, "cast", self.on_cast)

    def on_resource_change(self, event):
        if event.resource_change_type != self.resource_type:
            return

        gained = event.resource_change - event.waste
        self.generated += gained
        self.wasted += event.waste
        self.generated_by_ability[event.ability.guid] += gained
        self.wasted_by_ability[event.ability.guid] += event.waste

    def on_cast(self, event):
        for resource in event.class_resources:
            if resource.type == self.resource_type and resource.cost:
                self.spent += resource.cost
                self.spent_by_ability[event.ability.guid] += resource.cost

    @property
    def waste_ratio(self):
        total = self.generated + self.wasted
        return self.wasted / total if total else 0

    @property
    def waste_thresholds(self):
        return {
            "actual": self.waste_ratio,
            "is_greater_than": self._waste_thresholds,
            "style": "percentage",
        }

    def statistic(self):
        return Statistic(
            label=f"{self.resource_name} wasted",
            value=self.waste_ratio,
            style="percentage",
            category="resources",
            details={
                "generated": self.generated,
                "wasted": self.wasted,
                "spent": self.spent,
            },
        )

    def suggestions(self, when):
        if not self._waste_thresholds:
            return
        when(self.waste_thresholds).add_suggestion(
            f"You wasted {self.wasted} {self.resource_name}. Spend it before "
            "casting generators that would overcap you.",
            wasted=self.wasted,
        )

    def report(self):
        return {
            "resources": {
                self.resource_name: {
                    "generated": self.generated,
                    "wasted": self.wasted,
                    "spent": self.spent,
                    "wasted_by_ability": dict(self.wasted_by_ability),
                }
            }
        }


class DamageDone(BaseAnalyzer):
    SHOW_STATISTIC = False

    def __init__(self, owner, dependencies=None, **kwargs):
        super().__init__(owner, dependencies, **kwargs)
        self.total = 0
        self.pet_total = 0

        self.add_handler(Scope.BY_PLAYER, "damage", self.on_damage)
        self.add_handler(Scope.BY_PLAYER_PET, "damage", self.on_pet_damage)

    def on_damage(self, event):
        self.total += event.amount + event.absorbed

    def on_pet_damage(self, event):
        self.pet_total += event.amount + event.absorbed

    @property
    def dps(self):
        duration = self.fight_duration
        if duration <= 0:
            return 0
        return (self.total + self.pet_total) / (duration / 1000)

    def statistic(self):
        return Statistic(
            label="Damage done",
            value=self.total + self.pet_total,
            position=0,
            details={"dps": self.dps, "pet": self.pet_total},
        )

    def report(self):
        return {
            "damage_done": {
                "total": self.total + self.pet_total,
                "pet": self.pet_total,
                "dps": self.dps,
            }
        }


class AlwaysBeCasting(BaseAnalyzer):
    """Share of the fight the player spent casting or on the global cooldown.

    Every cast of an ability outside ``NO_GCD`` covers at least one global
    cooldown, starting at its begincast when the spell has a cast time.
    """

    GCD = 1500
    NO_GCD = set()

    def __init__(
        self,
        owner,
        dependencies=None,
        gcd=None,
        no_gcd=(),
        thresholds=None,
        **kwargs,
    ):
        super().__init__(owner, dependencies, **kwargs)
        self.gcd = self.GCD if gcd is None else gcd
        self._no_gcd = set(self.NO_GCD) | set(no_gcd)
        self._thresholds = thresholds
        self._windows = []
        self._begin_cast = None

        self.add_handler(Scope.BY_PLAYER, "begincast", self.on_begin_cast)
        self.add_handler(Scope.BY_PLAYER, "cast", self.on_cast)

    def on_begin_cast(self, event):
        self._begin_cast = (event.ability.guid, event.timestamp)

    def on_cast(self, event):
        start = event.timestamp
        if self._begin_cast and self._begin_cast[0] == event.ability.guid:
            start = self._begin_cast[1]
        self._begin_cast = None

        if event.ability.guid in self._no_gcd:
            return
        self._windows.append(Window(start, max(event.timestamp, start + self.gcd)))

    def get_windows(self):
        return combine_windows(
            clamp_windows(self._windows, self.owner.fight_start, self.owner.fight_end)
        )

    @property
    def active_time(self):
        return sum(window.duration for window in self.get_windows())

    @property
    def active_time_percentage(self):
        return calculate_uptime(self.get_windows(), [], self.fight_duration)

    @property
    def downtime(self):
        return max(0, self.fight_duration - self.active_time)

    @property
    def suggestion_thresholds(self):
        return {
            "actual": self.active_time_percentage,
            "is_less_than": self._thresholds,
            "style": "percentage",
        }

    def suggestions(self, when):
        if not self._thresholds:
            return
        when(self.suggestion_thresholds).add_suggestion(
            f"You spent {self.downtime / 1000:.1f}s not casting anything. Try to "
            "always be casting, if you have to move use your instant abilities.",
            downtime=self.downtime,
        )

    def statistic(self):
        return Statistic(
            label="Active time",
            value=self.active_time_percentage,
            style="percentage",
            category="core",
            position=1,
            details={"active_time": self.active_time, "downtime": self.downtime},
        )

    def report(self):
        return {
            "active_time": {
                "active": self.active_time,
                "downtime": self.downtime,
                "percentage": self.active_time_percentage,
            }
        }


class BuffUptimeAnalyzer(BaseAnalyzer):
    """Uptime of one player buff, graded against ``thresholds``.

    With ``talent_id`` set the module is only active for players who took
    that talent.
    """

    dependencies = {"buffs": "buffs"}

    def __init__(
        self,
        owner,
        dependencies=None,
        buff_id=None,
        label=None,
        thresholds=None,
        talent_id=None,
        **kwargs,
    ):
        super().__init__(owner, dependencies, **kwargs)
        self.buff_id = buff_id
        self.label = label or f"Buff {buff_id} uptime"
        self._thresholds = thresholds
        if talent_id is not None:
            self.active = self.combatant.has_talent(talent_id)

    @property
    def uptime(self):
        return self.buffs.uptime(self.buff_id)

    @property
    def suggestion_thresholds(self):
        return {
            "actual": self.uptime,
            "is_less_than": self._thresholds,
            "style": "percentage",
        }

    def suggestions(self, when):
        if not self._thresholds:
            return
        when(self.suggestion_thresholds).add_suggestion(
            f"Your {self.label.lower()} can be improved.", ability_id=self.buff_id
        )

    def statistic(self):
        return Statistic(
            label=self.label,
            value=self.uptime,
            style="percentage",
            category="uptime",
            details={"ability_id": self.buff_id},
        )

    def report(self):
        return {"uptimes": {self.buff_id: self.uptime}}


class DebuffUptimeAnalyzer(BuffUptimeAnalyzer):
    """Uptime of a debuff the player keeps on enemies."""

    dependencies = {"enemies": "enemies"}

    def __init__(self, owner, dependencies=None, debuff_id=None, **kwargs):
        super().__init__(owner, dependencies, buff_id=debuff_id, **kwargs)

    @property
    def uptime(self):
        return self.enemies.uptime(self.buff_id)


class CoreAnalysisConfig:
    """Modules every profile gets; spec profiles add or replace entries."""

    core_modules = {
        "buffs": BuffTracker,
        "enemies": DebuffTracker,
        "abilities": Abilities,
        "spell_usable": SpellUsable,
        "damage_done": (DamageDone, {"show_statistic": True}),
        "always_be_casting": AlwaysBeCasting,
    }
    spec_modules = {}

    def get_module_table(self):
        table = dict(self.core_modules)
        # same identifier replaces the core module in place
        table.update(self.spec_modules)
        return table
