"""
Impact measurement model for tasks that must report results.

Handles the gate a completion passes before it is accepted:
1. Executor answers the reflection questions (at least 2 of 3)
2. Executor fills the structured impact fields (at least 2 of 4):
   key metrics, impact rating, future decisions, investment needs
3. Each key metric carries the kind the executor selected for it;
   metrics left as UNCLASSIFIED stay in the raw log only
"""

from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


REFLECTION_QUESTIONS: Dict[str, str] = {
    "main_result": "¿Cuál fue el resultado principal alcanzado?",
    "resources_used": "¿Qué recursos utilizaste?",
    "quantifiable_impact": "¿Cuál fue el impacto cuantificable?",
}

MIN_REFLECTION_ANSWERS = 2
MIN_STRUCTURED_FIELDS = 2


class MetricKind(str, Enum):
    """Typed metric a key metric entry maps to."""
    # Sales
    REVENUE = "revenue"
    ORDERS = "orders"
    AVG_TICKET = "avg_ticket"
    MARGIN = "margin"
    # Marketing
    LEADS = "leads"
    CONVERSION_RATE = "conversion_rate"
    CAC = "cac"
    ROI = "roi"
    # Operations
    TIME_HOURS = "time_hours"
    CAPACITY = "capacity"
    ERROR_RATE = "error_rate"
    COST = "cost"
    # Customer
    NPS = "nps"
    REPEAT_RATE = "repeat_rate"
    LTV = "ltv"
    SATISFACTION = "satisfaction"

    UNCLASSIFIED = "unclassified"


class ImpactRating(str, Enum):
    """How the outcome compares with the expectation."""
    EXCEEDED = "exceeded"  # +50%
    MET = "met"            # 90-100%
    CLOSE = "close"        # 70-89%
    BELOW = "below"        # <70%


class KeyMetric(BaseModel):
    """A name/value/unit triple with an explicit kind."""
    kind: MetricKind = MetricKind.UNCLASSIFIED
    name: str
    value: str
    unit: str = ""

    @property
    def is_filled(self) -> bool:
        return bool(self.name.strip()) and bool(self.value.strip())

    def numeric_value(self) -> Optional[float]:
        try:
            return float(self.value.strip().replace(",", "."))
        except ValueError:
            return None


class InvestmentNeeds(BaseModel):
    """Investments the executor expects the next iteration to need."""
    budget: Optional[float] = None
    tools: Optional[bool] = None
    time: Optional[bool] = None
    training: Optional[bool] = None
    staff: Optional[bool] = None
    none: Optional[bool] = None
    details: Optional[str] = None

    @property
    def is_filled(self) -> bool:
        return any(
            value not in (None, "")
            for value in self.model_dump().values()
        )


class ImpactMeasurement(BaseModel):
    """Impact record attached to a completion."""
    reflection_answers: Dict[str, str] = Field(default_factory=dict)
    key_metrics: List[KeyMetric] = Field(default_factory=list)
    impact_rating: Optional[ImpactRating] = None
    impact_explanation: Optional[str] = Field(None, max_length=1000)
    future_decisions: Optional[str] = Field(None, max_length=1000)
    investments_needed: Optional[InvestmentNeeds] = None

    def answered_questions(self) -> int:
        return sum(
            1 for key, answer in self.reflection_answers.items()
            if key in REFLECTION_QUESTIONS and answer and answer.strip()
        )

    def filled_structured_fields(self) -> int:
        filled = 0
        if any(metric.is_filled for metric in self.key_metrics):
            filled += 1
        if self.impact_rating is not None:
            filled += 1
        if self.future_decisions and self.future_decisions.strip():
            filled += 1
        if self.investments_needed is not None and self.investments_needed.is_filled:
            filled += 1
        return filled

    def gate_errors(self) -> List[str]:
        """Reasons the measurement does not pass the completion gate."""
        errors = []
        if self.answered_questions() < MIN_REFLECTION_ANSWERS:
            errors.append(
                f"Answer at least {MIN_REFLECTION_ANSWERS} of "
                f"{len(REFLECTION_QUESTIONS)} reflection questions"
            )
        if self.filled_structured_fields() < MIN_STRUCTURED_FIELDS:
            errors.append(
                f"Fill at least {MIN_STRUCTURED_FIELDS} impact fields "
                "(key metrics, impact rating, future decisions, investment needs)"
            )
        return errors

    def structured_metrics(self, area: str) -> Dict[str, Any]:
        """Typed metrics record; unclassified entries are listed, not guessed."""
        structured: Dict[str, Any] = {"area": area}
        unclassified = []

        for metric in self.key_metrics:
            if not metric.is_filled:
                continue
            if metric.kind == MetricKind.UNCLASSIFIED:
                unclassified.append(metric.name.strip())
                continue
            value = metric.numeric_value()
            if value is None:
                unclassified.append(metric.name.strip())
                continue
            structured[metric.kind.value] = value

        if unclassified:
            structured["unclassified"] = unclassified
        return structured

    def to_record(self, area: str) -> Dict[str, Any]:
        """Serialized form stored on the completion row."""
        record = self.model_dump(mode="json")
        record["key_metrics"] = [m.model_dump(mode="json") for m in self.key_metrics if m.is_filled]
        record["task_metrics"] = self.structured_metrics(area)
        return record
