import logging

from log_analysis.analysis.core_analysis import CoreAnalysisConfig
from log_analysis.analysis.dispatcher import EventDispatcher
from log_analysis.analysis.errors import AnalysisError
from log_analysis.analysis.events import parse_events, sort_events
from log_analysis.analysis.feral_analysis import FeralAnalysisConfig
from log_analysis.analysis.havoc_analysis import HavocAnalysisConfig
from log_analysis.analysis.hunter_analysis import (
    BeastMasteryAnalysisConfig,
    MarksmanshipAnalysisConfig,
)
from log_analysis.analysis.resolver import resolve
from log_analysis.analysis.suggestions import SuggestionCollector

logger = logging.getLogger(__name__)

SPEC_ANALYSIS_CONFIGS = {
    "Default": CoreAnalysisConfig,
    "Feral": FeralAnalysisConfig,
    "Havoc": HavocAnalysisConfig,
    "BeastMastery": BeastMasteryAnalysisConfig,
    "Marksmanship": MarksmanshipAnalysisConfig,
}


def _merge_report(analysis, report):
    for key, value in report.items():
        if isinstance(value, dict) and isinstance(analysis.get(key), dict):
            analysis[key] = {**analysis[key], **value}
        else:
            analysis[key] = value


class CombatLogParser:
    """One analysis run over one fight.

    Modules are resolved and constructed on creation; ``process`` replays
    the events through them once, after which statistics, suggestions and
    the report can be read.
    """

    def __init__(self, module_table, combatant, fight_start=0, fight_end=None):
        self.combatant = combatant
        self.fight_start = fight_start
        self._fight_end = fight_end
        self._dispatcher = EventDispatcher(combatant)
        self._modules = {}
        self._processed = False

        self._initialize_modules(resolve(module_table))

    def _initialize_modules(self, declarations):
        for declaration in declarations:
            dependencies = {
                name: self._modules[identifier]
                for name, identifier in declaration.dependencies.items()
            }
            module = declaration.module_class(
                self, dependencies, **declaration.options
            )

            inactive = [
                identifier
                for identifier in declaration.dependencies.values()
                if not self._modules[identifier].active
            ]
            if module.active and inactive:
                logger.info(
                    "Disabling %s, it depends on inactive %s",
                    declaration.identifier,
                    ", ".join(inactive),
                )
                module.active = False

            module.seal()
            self._modules[declaration.identifier] = module

    @property
    def current_timestamp(self):
        return self._dispatcher.current_timestamp

    @property
    def fight_end(self):
        if self._fight_end is not None:
            return self._fight_end
        return self._dispatcher.current_timestamp

    @property
    def fight_duration(self):
        return max(0, self.fight_end - self.fight_start)

    @property
    def skipped_events(self):
        return self._dispatcher.skipped_events

    @property
    def modules(self):
        """Module identifiers in resolution order."""
        return list(self._modules)

    @property
    def active_modules(self):
        return [
            (identifier, module)
            for identifier, module in self._modules.items()
            if module.active
        ]

    def get_module(self, identifier):
        return self._modules[identifier]

    def process(self, events, sort=False):
        """Dispatch ``events`` to the modules.

        With ``sort`` the events are parsed and stably sorted first;
        otherwise they must already be in timestamp order.
        """
        if self._processed:
            raise AnalysisError("A CombatLogParser can only process one event sequence")
        self._processed = True

        skipped = 0
        if sort:
            events, skipped = parse_events(events)
            events = sort_events(events)

        self._dispatcher.run(list(self._modules.items()), events, self._fight_end)
        self._dispatcher.skipped_events += skipped
        logger.debug(
            "Dispatched %s events to %s active modules (%s skipped)",
            self._dispatcher.dispatched_events,
            len(self.active_modules),
            self._dispatcher.skipped_events,
        )
        return self

    def statistics(self):
        statistics = []

        for identifier, module in self.active_modules:
            if not module.show_statistic:
                continue
            statistic = module.statistic()
            if statistic is not None:
                statistics.append(statistic.model_copy(update={"module": identifier}))
        return sorted(statistics, key=lambda statistic: statistic.position)

    def suggestions(self):
        when = SuggestionCollector()

        for identifier, module in self.active_modules:
            when.module = identifier
            module.suggestions(when)
        return when.suggestions

    def report(self):
        analysis = {}
        for _, module in self.active_modules:
            _merge_report(analysis, module.report())

        return {
            "fight_metadata": {
                "source": self.combatant.name,
                "source_id": self.combatant.player_id,
                "start_time": self.fight_start,
                "end_time": self.fight_end,
                "duration": self.fight_duration,
            },
            "spec": self.combatant.spec,
            "modules": [
                {"name": identifier, "active": module.active}
                for identifier, module in self._modules.items()
            ],
            "analysis": analysis,
            "statistics": [
                statistic.model_dump(mode="json") for statistic in self.statistics()
            ],
            "suggestions": [
                suggestion.model_dump(mode="json") for suggestion in self.suggestions()
            ],
            "dispatched_events": self._dispatcher.dispatched_events,
            "skipped_events": self._dispatcher.skipped_events,
        }


def get_analysis_config(spec):
    return SPEC_ANALYSIS_CONFIGS.get(spec, SPEC_ANALYSIS_CONFIGS["Default"])()


def analyze(combatant, events, spec=None, fight_start=0, fight_end=None):
    config = get_analysis_config(spec or combatant.spec)
    parser = CombatLogParser(
        config.get_module_table(), combatant, fight_start, fight_end
    )
    parser.process(events, sort=True)

    report = parser.report()
    report["spec"] = spec or combatant.spec
    return report
