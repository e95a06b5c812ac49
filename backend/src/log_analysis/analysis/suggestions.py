from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Severity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    AVERAGE = "average"
    MAJOR = "major"


class Breakpoints(BaseModel):
    model_config = ConfigDict(frozen=True)

    minor: float
    average: float
    major: float


class Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    actual: float
    is_less_than: Optional[Breakpoints] = Field(default=None, alias="isLessThan")
    is_greater_than: Optional[Breakpoints] = Field(default=None, alias="isGreaterThan")
    # formatting hint for whoever renders the judgment
    style: str = "number"

    @model_validator(mode="after")
    def _one_direction(self):
        if (self.is_less_than is None) == (self.is_greater_than is None):
            raise ValueError("exactly one of is_less_than / is_greater_than is required")
        return self


class ThresholdResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    grade: Severity
    actual: float
    recommended: float = Field(alias="recommendedBoundary")
    style: str = "number"


class Suggestion(BaseModel):
    module: Optional[str] = None
    grade: Severity
    text: str
    actual: float
    recommended: float
    style: str = "number"
    icon: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


def evaluate(thresholds) -> ThresholdResult:
    """Grade ``actual`` against the worst breakpoint it crosses.

    For ``is_less_than`` a breakpoint is crossed when ``actual`` is strictly
    below it, for ``is_greater_than`` when it is strictly above it.
    """
    if not isinstance(thresholds, Thresholds):
        thresholds = Thresholds.model_validate(thresholds)

    actual = thresholds.actual
    if thresholds.is_less_than is not None:
        breakpoints = thresholds.is_less_than

        def crosses(breakpoint):
            return actual < breakpoint

    else:
        breakpoints = thresholds.is_greater_than

        def crosses(breakpoint):
            return actual > breakpoint

    grade = Severity.NONE
    for severity in (Severity.MAJOR, Severity.AVERAGE, Severity.MINOR):
        if crosses(getattr(breakpoints, severity.value)):
            grade = severity
            break

    return ThresholdResult(
        grade=grade,
        actual=actual,
        recommended=breakpoints.minor,
        style=thresholds.style,
    )


class SuggestionBuilder:
    def __init__(self, collector, result):
        self._collector = collector
        self.result = result

    def add_suggestion(self, text, icon=None, **details):
        if self.result.grade is Severity.NONE:
            return None

        suggestion = Suggestion(
            module=self._collector.module,
            grade=self.result.grade,
            text=text,
            actual=self.result.actual,
            recommended=self.result.recommended,
            style=self.result.style,
            icon=icon,
            details=details,
        )
        self._collector.suggestions.append(suggestion)
        return suggestion


class SuggestionCollector:
    """The ``when`` callable passed to ``BaseAnalyzer.suggestions``."""

    def __init__(self):
        self.suggestions = []
        self.module = None

    def __call__(self, thresholds):
        return SuggestionBuilder(self, evaluate(thresholds))
