"""
Tests for the Evaluation Pipeline — end-to-end behaviour and exit codes.
"""

import random

import pytest

from riskgate.core.errors import MalformedInputError
from riskgate.engine.pipeline import (
    EXIT_BLOCK,
    EXIT_PASS,
    check_schema_version,
    evaluate_records,
)
from riskgate.models.normalized_models import Severity
from riskgate.models.risk_models import GateOutcome


def test_sensitive_replace_blocks_under_critical_policy():
    result = evaluate_records(
        [{"address": "db.main", "actions": ["delete", "create"], "attributesAfter": {"engine": "sensitive"}}],
        policy=[{"severity": "CRITICAL", "maxCount": 0, "action": "Block"}],
    )
    assert result.report.decision == GateOutcome.BLOCK
    assert result.exit_code == EXIT_BLOCK
    entry = result.report.top_findings[0]
    assert entry.category.value == "replace"
    assert entry.severity == Severity.CRITICAL


def test_cross_tool_duplicates_counted_once(scanner_findings, severity_maps):
    result = evaluate_records(scanner_findings, severity_maps=severity_maps)
    summary = result.report.summary
    assert summary.total_records == 2
    merged = [e for e in result.report.top_findings if e.locator == "modules/storage/main.tf:14"]
    assert len(merged) == 1
    assert merged[0].severity == Severity.HIGH
    assert merged[0].provenance == ["tfsec", "checkov"]
    assert result.report.warnings == []


def test_unmapped_severity_still_produces_decision():
    result = evaluate_records(
        [{"sourceTool": "mystery", "ruleId": "M1", "nativeSeverity": "weird", "resourceOrFile": "x.tf"}],
        policy=[{"severity": "HIGH", "maxCount": 0, "action": "Block"}],
    )
    assert result.report.summary.counts[Severity.MEDIUM] == 1
    assert result.report.decision == GateOutcome.PASS
    assert result.exit_code == EXIT_PASS
    assert result.unmapped_severities == 1


def test_bad_records_never_abort_the_run(plan_records):
    result = evaluate_records(plan_records + [None, "text", {"address": "a.b", "actions": ["update", "create"]}])
    assert result.report.summary.total_records == 3
    assert len(result.report.unparsed_inputs) == 3
    assert result.records_received == 7


def test_conflicts_are_reported_not_scored():
    result = evaluate_records(
        [
            {"sourceTool": "vault-radar", "ruleId": "k", "nativeSeverity": "critical", "resourceOrFile": "a.env", "category": "secret"},
            {"sourceTool": "trivy", "ruleId": "k", "nativeSeverity": "LOW", "resourceOrFile": "a.env", "category": "pii"},
        ]
    )
    assert result.report.summary.total_records == 0
    assert result.report.conflicts[0].severity == Severity.CRITICAL
    assert "conflicting classification" in result.report.summary_text


def test_decision_is_independent_of_record_order(plan_records, scanner_findings, block_critical_policy):
    records = plan_records + scanner_findings
    baseline = evaluate_records(records, policy=block_critical_policy)
    rng = random.Random(7)
    for _ in range(5):
        shuffled = list(records)
        rng.shuffle(shuffled)
        result = evaluate_records(shuffled, policy=block_critical_policy)
        assert result.report.decision == baseline.report.decision
        assert result.report.fired_rules == baseline.report.fired_rules
        assert result.report.top_findings == baseline.report.top_findings


def test_default_policy_used_when_none_given():
    result = evaluate_records([{"address": "aws_instance.web", "actions": ["delete"]}])
    assert result.report.policy_name == "default"
    assert result.report.decision == GateOutcome.PASS
    assert [r.action.value for r in result.report.fired_rules] == ["warn"]


def test_empty_input_passes():
    result = evaluate_records([])
    assert result.exit_code == EXIT_PASS
    assert result.report.aggregate_level == Severity.INFO


@pytest.mark.parametrize(
    "kwargs",
    [
        {"records": {"not": "a list"}},
        {"records": [], "policy": {"rules": [{"severity": "high", "maxCount": -1}]}},
        {"records": [], "policy": {"rules": [{"severity": "extreme", "maxCount": 0}]}},
        {"records": [], "severity_maps": {"tfsec": {"HIGH": "apocalyptic"}}},
        {"records": [], "severity_maps": {"tfsec": "HIGH"}},
    ],
)
def test_malformed_top_level_input_is_fatal(kwargs):
    with pytest.raises(MalformedInputError):
        evaluate_records(**kwargs)


def test_schema_version_check():
    check_schema_version("1")
    check_schema_version(1)
    check_schema_version(None)
    with pytest.raises(MalformedInputError):
        check_schema_version("2")


def test_negative_top_n_is_malformed():
    with pytest.raises(MalformedInputError):
        evaluate_records([], top_n=-3)
