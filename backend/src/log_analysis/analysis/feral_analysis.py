from log_analysis.analysis.base import BaseAnalyzer, Statistic
from log_analysis.analysis.core_analysis import (
    CoreAnalysisConfig,
    DebuffUptimeAnalyzer,
)

RAKE = 1822
RAKE_BLEED = 155722
RIP = 1079


class RakeUptime(BaseAnalyzer):
    dependencies = {"enemies": "enemies"}

    @property
    def uptime(self):
        if not self.fight_duration:
            return 0
        return self.enemies.get_debuff_uptime(RAKE_BLEED) / self.fight_duration

    @property
    def suggestion_thresholds(self):
        return {
            "actual": self.uptime,
            "is_less_than": {
                "minor": 0.95,
                "average": 0.9,
                "major": 0.8,
            },
            "style": "percentage",
        }

    def suggestions(self, when):
        when(self.suggestion_thresholds).add_suggestion(
            "Your Rake uptime can be improved. Unless the current application "
            "was buffed by Prowl you should refresh the DoT once it has reached "
            "its pandemic window, don't wait for it to wear off.",
            ability_id=RAKE,
        )

    def statistic(self):
        return Statistic(
            label="Rake uptime",
            value=self.uptime,
            style="percentage",
            category="core",
            position=3,
            details={"ability_id": RAKE_BLEED},
        )

    def report(self):
        return {"uptimes": {RAKE_BLEED: self.uptime}}


class FeralAnalysisConfig(CoreAnalysisConfig):
    spec_modules = {
        "rake_uptime": RakeUptime,
        "rip_uptime": (
            DebuffUptimeAnalyzer,
            {
                "debuff_id": RIP,
                "label": "Rip uptime",
                "thresholds": {"minor": 0.95, "average": 0.9, "major": 0.85},
            },
        ),
    }
