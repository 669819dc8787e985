"""
Tests for Gate Evaluator — ordered rules, at-least-severity counting, determinism.
"""

from riskgate.core.gate import evaluate, observed_count
from riskgate.models.normalized_models import Severity
from riskgate.models.policy_models import DEFAULT_POLICY, GateAction, Policy, PolicyRule
from riskgate.models.risk_models import GateOutcome, RiskSummary


def _summary(**counts):
    return RiskSummary(counts={**{s: 0 for s in Severity}, **{Severity(k): v for k, v in counts.items()}})


def test_critical_over_zero_blocks():
    policy = Policy.model_validate([{"severity": "CRITICAL", "maxCount": 0, "action": "Block"}])
    decision = evaluate(_summary(critical=1), policy)
    assert decision.outcome == GateOutcome.BLOCK
    assert len(decision.fired_rules) == 1
    fired = decision.fired_rules[0]
    assert fired.index == 0
    assert fired.severity == Severity.CRITICAL
    assert fired.observed_count == 1


def test_high_under_threshold_passes():
    policy = Policy(rules=[PolicyRule(severity=Severity.HIGH, max_count=5, action=GateAction.BLOCK)])
    decision = evaluate(_summary(high=3), policy)
    assert decision.outcome == GateOutcome.PASS
    assert decision.fired_rules == []


def test_stricter_severities_count_toward_lower_rules():
    policy = Policy(rules=[PolicyRule(severity=Severity.MEDIUM, max_count=2)])
    summary = _summary(critical=1, high=1, medium=1, low=10)
    assert observed_count(summary, Severity.MEDIUM) == 3
    assert evaluate(summary, policy).outcome == GateOutcome.BLOCK


def test_all_fired_rules_are_collected_in_order():
    policy = Policy.model_validate(
        {
            "rules": [
                {"severity": "low", "maxCount": 100, "action": "block"},
                {"severity": "high", "maxCount": 0, "action": "warn"},
                {"severity": "critical", "maxCount": 0, "action": "block"},
                {"severity": "medium", "maxCount": 1, "action": "block"},
            ]
        }
    )
    decision = evaluate(_summary(critical=1, high=2, medium=3), policy)
    assert decision.outcome == GateOutcome.BLOCK
    assert [r.index for r in decision.fired_rules] == [1, 2, 3]
    assert [r.action for r in decision.fired_rules] == [
        GateAction.WARN,
        GateAction.BLOCK,
        GateAction.BLOCK,
    ]


def test_warn_rules_alone_do_not_block():
    policy = Policy(rules=[PolicyRule(severity=Severity.LOW, max_count=0, action=GateAction.WARN)])
    decision = evaluate(_summary(low=4), policy)
    assert decision.outcome == GateOutcome.PASS
    assert len(decision.fired_rules) == 1


def test_empty_policy_passes():
    assert evaluate(_summary(critical=9), Policy()).outcome == GateOutcome.PASS


def test_default_policy_blocks_critical_and_warns_high():
    assert evaluate(_summary(high=1), DEFAULT_POLICY).outcome == GateOutcome.PASS
    assert evaluate(_summary(critical=1), DEFAULT_POLICY).outcome == GateOutcome.BLOCK


def test_evaluation_is_deterministic():
    summary = _summary(critical=1, high=4)
    policy = Policy.model_validate([{"severity": "high", "maxCount": 3}])
    assert evaluate(summary, policy) == evaluate(summary, policy)
