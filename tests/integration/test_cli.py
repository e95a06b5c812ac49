"""Integration tests for saved fights and the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from log_analysis.analysis.analyze import SPEC_ANALYSIS_CONFIGS
from log_analysis.analysis.base import BaseAnalyzer
from log_analysis.analysis.core_analysis import CoreAnalysisConfig
from log_analysis.analysis.feral_analysis import RAKE_BLEED
from log_analysis.cli import cli
from log_analysis.report import Fight, Source, load_saved_fight, save_fight


class SelfDependent(BaseAnalyzer):
    dependencies = {"me": "self_dependent"}


class CyclicConfig(CoreAnalysisConfig):
    spec_modules = {"self_dependent": SelfDependent}


@pytest.fixture
def fight(make) -> Fight:
    return Fight(
        source=Source(id=make.PLAYER, name="Cat"),
        start_time=1000,
        end_time=11000,
        spec="Feral",
        combatant_info={"specID": 103, "talents": [{"id": 202031}]},
        events=[
            make.apply_debuff(1000, RAKE_BLEED),
            make.remove_debuff(10000, RAKE_BLEED),
        ],
    )


@pytest.fixture
def fight_file(fight, tmp_path):
    return save_fight(fight, tmp_path)


class TestSavedFights:
    """Test suite for saving and loading fights."""

    def test_round_trip(self, fight, fight_file) -> None:
        """A saved fight loads back unchanged."""
        assert load_saved_fight(fight_file) == fight

    def test_bare_fight_file(self, fight, tmp_path) -> None:
        """Files holding only the fight load too."""
        path = tmp_path / "bare.json"
        path.write_text(json.dumps(fight.model_dump()))

        assert load_saved_fight(path) == fight

    def test_combatant(self, fight) -> None:
        """The combatant is built from the fight's source and info."""
        combatant = fight.get_combatant()

        assert combatant.player_id == fight.source.id
        assert combatant.name == "Cat"
        assert combatant.spec == "Feral"
        assert combatant.has_talent(202031)
        assert fight.duration == 10000

    def test_analyze(self, fight) -> None:
        """Analysis uses the fight's bounds."""
        report = fight.analyze()

        assert report["fight_metadata"]["start_time"] == 1000
        assert report["analysis"]["uptimes"][RAKE_BLEED] == pytest.approx(0.9)


class TestCli:
    """Test suite for the click commands."""

    def test_analyze_json(self, fight_file) -> None:
        result = CliRunner().invoke(cli, ["analyze", str(fight_file), "--json"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["spec"] == "Feral"
        assert report["analysis"]["uptimes"][str(RAKE_BLEED)] == pytest.approx(0.9)

    def test_analyze_table(self, fight_file) -> None:
        result = CliRunner().invoke(cli, ["analyze", str(fight_file)])

        assert result.exit_code == 0, result.output
        assert "Statistics" in result.stdout
        assert "Rake uptime" in result.stdout

    def test_spec_override(self, fight_file) -> None:
        result = CliRunner().invoke(
            cli, ["analyze", str(fight_file), "--spec", "Default", "--json"]
        )

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["spec"] == "Default"
        assert "uptimes" not in report["analysis"]

    def test_null_event_skipped(self, fight, tmp_path) -> None:
        fight.events.append(None)
        path = save_fight(fight, tmp_path)

        result = CliRunner().invoke(cli, ["analyze", str(path), "--json"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["skipped_events"] == 1
        assert report["dispatched_events"] == 2

    def test_unreadable_fight_file(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = CliRunner().invoke(cli, ["analyze", str(path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_invalid_fight_file(self, tmp_path) -> None:
        path = tmp_path / "invalid.json"
        path.write_text(json.dumps({"fight": {"events": []}}))

        result = CliRunner().invoke(cli, ["analyze", str(path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_analysis_error_exit_code(self, fight_file, monkeypatch) -> None:
        monkeypatch.setitem(SPEC_ANALYSIS_CONFIGS, "Cyclic", CyclicConfig)

        result = CliRunner().invoke(cli, ["analyze", str(fight_file), "--spec", "Cyclic"])

        assert result.exit_code == 1

    def test_specs(self) -> None:
        result = CliRunner().invoke(cli, ["specs"])

        assert result.exit_code == 0
        assert result.stdout.split() == sorted(SPEC_ANALYSIS_CONFIGS)
