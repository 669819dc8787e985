"""
Risk & Gate Data Models — aggregate summary and the pass/block decision.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from riskgate.models.normalized_models import Category, Severity
from riskgate.models.policy_models import GateAction, PolicyRule


class RiskSummary(BaseModel):
    """Counts and aggregate level over the deduplicated record set."""

    counts: dict[Severity, int] = Field(default_factory=lambda: {s: 0 for s in Severity})
    counts_by_category: dict[Category, int] = Field(
        default_factory=lambda: {c: 0 for c in Category}, alias="countsByCategory"
    )
    aggregate_level: Severity = Field(default=Severity.INFO, alias="aggregateLevel")
    total_records: int = Field(default=0, alias="totalRecords")
    cost_delta: float | None = Field(
        default=None,
        alias="costDelta",
        description="Sum of supplied signed cost deltas; None when none were supplied",
    )
    costed_changes: int = Field(default=0, alias="costedChanges")

    model_config = {"populate_by_name": True}


class GateOutcome(str, Enum):
    PASS = "pass"
    BLOCK = "block"


class FiredRule(BaseModel):
    """A policy rule whose threshold was exceeded."""

    index: int = Field(..., description="Position of the rule in the policy")
    severity: Severity
    max_count: int = Field(..., alias="maxCount")
    action: GateAction
    observed_count: int = Field(
        ..., alias="observedCount", description="Records at this severity or worse"
    )

    model_config = {"populate_by_name": True}

    @classmethod
    def from_rule(cls, index: int, rule: PolicyRule, observed: int) -> FiredRule:
        return cls(
            index=index,
            severity=rule.severity,
            max_count=rule.max_count,
            action=rule.action,
            observed_count=observed,
        )


class GateDecision(BaseModel):
    outcome: GateOutcome
    fired_rules: list[FiredRule] = Field(default_factory=list, alias="firedRules")
    policy_name: str = Field(default="default", alias="policyName")

    model_config = {"populate_by_name": True}

    @property
    def blocked(self) -> bool:
        return self.outcome == GateOutcome.BLOCK
