"""
Gate Evaluator — applies an ordered policy to a RiskSummary.

A rule fires when the number of records at its severity or worse exceeds
its max_count. Every fired rule is collected; any fired BLOCK rule makes the
outcome BLOCK. Same (summary, policy) always yields the same decision.
"""

from __future__ import annotations

import logging

from riskgate.models.normalized_models import Severity, at_least
from riskgate.models.policy_models import GateAction, Policy
from riskgate.models.risk_models import FiredRule, GateDecision, GateOutcome, RiskSummary

logger = logging.getLogger("riskgate.core.gate")


def observed_count(summary: RiskSummary, severity: Severity) -> int:
    """Records at ``severity`` or any stricter tier."""
    return sum(summary.counts.get(s, 0) for s in at_least(severity))


def evaluate(summary: RiskSummary, policy: Policy) -> GateDecision:
    fired: list[FiredRule] = []
    outcome = GateOutcome.PASS

    for index, rule in enumerate(policy.rules):
        observed = observed_count(summary, rule.severity)
        if observed <= rule.max_count:
            continue
        fired.append(FiredRule.from_rule(index, rule, observed))
        if rule.action == GateAction.BLOCK:
            outcome = GateOutcome.BLOCK
        logger.debug(
            f"Rule #{index} fired: {observed} at {rule.severity.value}+ "
            f"> {rule.max_count} ({rule.action.value})"
        )

    return GateDecision(outcome=outcome, fired_rules=fired, policy_name=policy.name)
