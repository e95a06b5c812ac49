import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from log_analysis.analysis.analyze import analyze
from log_analysis.analysis.combatant import Combatant

logger = logging.getLogger(__name__)


class Source(BaseModel):
    id: int
    name: Optional[str] = None
    pets: List[int] = Field(default_factory=list)


class Fight(BaseModel):
    """One player's view of one fight: who, when, and the parsed events."""

    source: Source
    start_time: int = Field(default=0, ge=0)
    end_time: Optional[int] = None
    spec: Optional[str] = None
    report_id: Optional[str] = None
    combatant_info: Dict[str, Any] = Field(default_factory=dict)
    # malformed records are skipped during analysis, not rejected here
    events: List[Any] = Field(default_factory=list)

    @property
    def duration(self):
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def get_combatant(self):
        return Combatant.from_combatant_info(
            self.combatant_info,
            self.source.id,
            name=self.source.name,
            pets=self.source.pets,
        )

    def analyze(self):
        return analyze(
            self.get_combatant(),
            self.events,
            spec=self.spec,
            fight_start=self.start_time,
            fight_end=self.end_time,
        )


def load_saved_fight(path) -> Fight:
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict) and "fight" in data:
        data = data["fight"]
    return Fight.model_validate(data)


def save_fight(fight: Fight, directory) -> Path:
    """Write a fight to ``directory`` so it can be re-analyzed offline."""
    logs_dir = Path(directory)
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"{timestamp}_{fight.report_id or 'local'}_{fight.source.id}.json"
    filepath = logs_dir / filename

    log_data = {
        "metadata": {
            "report_id": fight.report_id,
            "source_id": fight.source.id,
            "source_name": fight.source.name,
            "saved_at": timestamp,
        },
        "fight": fight.model_dump(),
    }
    with open(filepath, "w") as f:
        json.dump(log_data, f, indent=2)

    logger.info("Saved combat log to %s", filepath)
    return filepath
