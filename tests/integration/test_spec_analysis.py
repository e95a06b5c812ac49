"""Integration tests running whole analysis profiles over event streams."""

import pytest

from log_analysis.analysis.analyze import SPEC_ANALYSIS_CONFIGS, analyze, get_analysis_config
from log_analysis.analysis.combatant import Combatant
from log_analysis.analysis.core_analysis import CoreAnalysisConfig, DamageDone
from log_analysis.analysis.feral_analysis import RAKE_BLEED, RIP, FeralAnalysisConfig
from log_analysis.analysis.havoc_analysis import (
    BLADE_DANCE,
    DELUSIONS_OF_GRANDEUR,
    FURY,
    METAMORPHOSIS,
    MOMENTUM_BUFF,
    MOMENTUM_TALENT,
)
from log_analysis.analysis.hunter_analysis import (
    ASPECT_OF_THE_CHEETAH,
    ASPECT_OF_THE_WILD,
    MULTISHOT_BM,
    RAPID_RELOAD,
    RAPID_RELOAD_DAMAGE,
)


def by_module(items):
    return {item["module"]: item for item in items}


class TestProfiles:
    """Test suite for profile selection."""

    def test_known_profiles(self) -> None:
        """Every profile resolves into a module table."""
        assert set(SPEC_ANALYSIS_CONFIGS) == {
            "Default",
            "Feral",
            "Havoc",
            "BeastMastery",
            "Marksmanship",
        }

    def test_unknown_spec_uses_default(self) -> None:
        """Specs without a profile get the core modules."""
        assert type(get_analysis_config("Frost")) is CoreAnalysisConfig
        assert type(get_analysis_config(None)) is CoreAnalysisConfig

    def test_spec_modules_extend_core(self) -> None:
        """Spec modules are added after the core ones."""
        table = FeralAnalysisConfig().get_module_table()
        assert list(table) == [
            "buffs",
            "enemies",
            "abilities",
            "spell_usable",
            "damage_done",
            "always_be_casting",
            "rake_uptime",
            "rip_uptime",
        ]
        assert table["damage_done"] == (DamageDone, {"show_statistic": True})


class TestDefaultAnalysis:
    """Test suite for the core profile."""

    def test_report_shape(self, make, combatant) -> None:
        """The report carries metadata, module states and results."""
        report = analyze(
            combatant,
            [
                make.damage(500, 1, amount=1000),
                make.damage(200, 1, amount=500),
                {"type": "damage"},
            ],
            fight_start=0,
            fight_end=3000,
        )

        assert report["fight_metadata"] == {
            "source": "Tester",
            "source_id": make.PLAYER,
            "start_time": 0,
            "end_time": 3000,
            "duration": 3000,
        }
        assert report["spec"] is None
        assert [module["name"] for module in report["modules"]] == [
            "buffs",
            "enemies",
            "abilities",
            "spell_usable",
            "damage_done",
            "always_be_casting",
        ]
        assert report["analysis"]["damage_done"]["total"] == 1500
        assert report["statistics"][0]["module"] == "damage_done"
        assert report["suggestions"] == []
        assert report["dispatched_events"] == 2
        assert report["skipped_events"] == 1

    def test_deterministic(self, make, combatant) -> None:
        """Analyzing the same events twice gives the same report."""
        events = [
            make.apply_buff(0, 1000),
            make.damage(100, 1),
            make.cast(200, 2),
            make.remove_buff(300, 1000),
        ]

        first = analyze(combatant, events, fight_end=1000)
        second = analyze(combatant, events, fight_end=1000)
        assert first == second


class TestFeralAnalysis:
    """Test suite for the Feral profile."""

    def test_rake_uptime(self, make) -> None:
        """Rake up for 90% of the fight is a minor suggestion."""
        combatant = Combatant(make.PLAYER, name="Cat", spec="Feral")
        events = [
            make.apply_debuff(0, RAKE_BLEED),
            make.remove_debuff(5000, RAKE_BLEED),
            make.apply_debuff(6000, RAKE_BLEED),
        ]

        report = analyze(combatant, events, fight_end=10000)

        statistics = by_module(report["statistics"])
        assert statistics["rake_uptime"]["value"] == pytest.approx(0.9)
        assert statistics["rake_uptime"]["style"] == "percentage"

        suggestions = by_module(report["suggestions"])
        assert suggestions["rake_uptime"]["grade"] == "minor"
        assert suggestions["rake_uptime"]["recommended"] == 0.95
        assert suggestions["rip_uptime"]["grade"] == "major"
        assert report["analysis"]["uptimes"][RAKE_BLEED] == pytest.approx(0.9)
        assert report["analysis"]["uptimes"][RIP] == 0

    def test_rake_uptime_fine(self, make) -> None:
        """Rake up the whole fight gives no Rake suggestion."""
        combatant = Combatant(make.PLAYER, spec="Feral")
        report = analyze(combatant, [make.apply_debuff(0, RAKE_BLEED)], fight_end=10000)

        assert "rake_uptime" not in by_module(report["suggestions"])

    def test_statistics_sorted_by_position(self, make) -> None:
        """Statistics are ordered by their position."""
        combatant = Combatant(make.PLAYER, spec="Feral")
        report = analyze(combatant, [make.damage(100, 1)], fight_end=10000)

        positions = [statistic["position"] for statistic in report["statistics"]]
        assert positions == sorted(positions)
        assert report["statistics"][0]["module"] == "damage_done"


class TestHavocAnalysis:
    """Test suite for the Havoc profile."""

    def test_fury_waste(self, make) -> None:
        """Overcapped Fury is reported and graded."""
        combatant = Combatant(make.PLAYER, spec="Havoc")
        events = [
            make.resource_change(100, 1, 20, FURY),
            make.resource_change(200, 1, 25, FURY, waste=5),
            make.cast(
                300,
                2,
                classResources=[{"type": FURY, "amount": 40, "max": 100, "cost": 40}],
            ),
        ]

        report = analyze(combatant, events, fight_end=1000)

        fury = report["analysis"]["resources"]["Fury"]
        assert fury["generated"] == 40
        assert fury["wasted"] == 5
        assert fury["spent"] == 40
        assert by_module(report["suggestions"])["fury_tracker"]["grade"] == "major"

    def test_momentum_needs_talent(self, make) -> None:
        """Momentum uptime only runs with the talent."""
        without = analyze(Combatant(make.PLAYER, spec="Havoc"), [], fight_end=1000)
        with_talent = analyze(
            Combatant(make.PLAYER, spec="Havoc", talents=[MOMENTUM_TALENT]),
            [make.apply_buff(0, MOMENTUM_BUFF)],
            fight_end=1000,
        )

        assert {"name": "momentum_uptime", "active": False} in without["modules"]
        assert "momentum_uptime" not in by_module(without["statistics"])
        assert by_module(with_talent["statistics"])["momentum_uptime"]["value"] == 1

    def test_downtime_suggestion(self, make) -> None:
        """Havoc grades time spent not casting."""
        combatant = Combatant(make.PLAYER, spec="Havoc")
        events = [make.cast(0, BLADE_DANCE), make.cast(1500, BLADE_DANCE)]

        report = analyze(combatant, events, fight_end=10000)

        assert report["analysis"]["active_time"]["active"] == 3000
        suggestion = by_module(report["suggestions"])["always_be_casting"]
        assert suggestion["grade"] == "major"
        assert suggestion["details"] == {"downtime": 7000}

    def test_delusions_of_grandeur(self, make) -> None:
        """Fury spent with the item equipped reduces Metamorphosis."""
        combatant = Combatant(make.PLAYER, spec="Havoc", items=[DELUSIONS_OF_GRANDEUR])
        events = [
            make.cast(0, METAMORPHOSIS, target=make.PLAYER),
            make.cast(
                1000,
                BLADE_DANCE,
                classResources=[{"type": FURY, "amount": 60, "max": 100, "cost": 40}],
            ),
            make.cast(
                2000,
                BLADE_DANCE,
                classResources=[{"type": FURY, "amount": 20, "max": 100, "cost": 20}],
            ),
        ]

        report = analyze(combatant, events, fight_end=10000)

        assert report["analysis"]["delusions_of_grandeur"] == {
            "fury_spent": 60,
            "effective_cdr": 2000,
            "wasted_cdr": 0,
        }
        assert report["analysis"]["cooldowns"][METAMORPHOSIS]["total_reduction"] == 2000
        assert by_module(report["statistics"])["delusions_of_grandeur"]["value"] == 2000

    def test_delusions_needs_item(self, make) -> None:
        """Without the item the module does not run."""
        report = analyze(Combatant(make.PLAYER, spec="Havoc"), [], fight_end=1000)

        assert {"name": "delusions_of_grandeur", "active": False} in report["modules"]
        assert "delusions_of_grandeur" not in report["analysis"]


class TestRapidReload:
    """Test suite for the Rapid Reload module."""

    def combatant(self, make, traits=(RAPID_RELOAD,)):
        return Combatant(make.PLAYER, spec="BeastMastery", traits=traits)

    def test_cooldown_reduction(self, make) -> None:
        """Procs reduce Aspect cooldowns and count casts without a proc."""
        events = [
            make.cast(0, ASPECT_OF_THE_WILD, target=make.PLAYER),
            make.cast(1000, MULTISHOT_BM),
            make.damage(1100, RAPID_RELOAD_DAMAGE, amount=500),
            make.cast(2000, MULTISHOT_BM),
        ]

        report = analyze(self.combatant(make), events, fight_end=5000)

        rapid_reload = report["analysis"]["rapid_reload"]
        assert rapid_reload["damage"] == 500
        assert rapid_reload["casts"] == 2
        assert rapid_reload["casts_without_proc"] == 1
        assert rapid_reload["aspects"][ASPECT_OF_THE_WILD] == {
            "effective_cdr": 1000,
            "wasted_cdr": 0,
        }
        assert rapid_reload["aspects"][ASPECT_OF_THE_CHEETAH] == {
            "effective_cdr": 0,
            "wasted_cdr": 1000,
        }
        assert report["analysis"]["cooldowns"][ASPECT_OF_THE_WILD]["total_reduction"] == 1000

        suggestions = [s for s in report["suggestions"] if s["module"] == "rapid_reload"]
        assert [s["grade"] for s in suggestions] == ["average"]

    def test_no_multi_shot(self, make) -> None:
        """Never casting Multi-Shot is a major suggestion."""
        report = analyze(self.combatant(make), [make.cast(0, 1)], fight_end=5000)

        suggestions = [s for s in report["suggestions"] if s["module"] == "rapid_reload"]
        assert [s["grade"] for s in suggestions] == ["major"]

    def test_inactive_without_trait(self, make) -> None:
        """The module only runs with the azerite trait."""
        report = analyze(
            self.combatant(make, traits=()), [make.cast(1000, MULTISHOT_BM)], fight_end=5000
        )

        assert {"name": "rapid_reload", "active": False} in report["modules"]
        assert "rapid_reload" not in report["analysis"]
        assert "rapid_reload" not in by_module(report["statistics"])
