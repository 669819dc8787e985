"""
Tests for Normalizer — severity rules, sensitive fields, unparsed inputs.
"""

import pytest

from riskgate.core.errors import MalformedInputError
from riskgate.core.normalizer import normalize, record_id
from riskgate.models.normalized_models import Category, RecordKind, Severity
from riskgate.models.policy_models import SeverityMaps


def _one(records, **kwargs):
    result = normalize(records, **kwargs)
    assert len(result.records) == 1, result.unparsed
    return result.records[0]


def test_replace_with_sensitive_field_is_critical():
    record = _one(
        [{"address": "db.main", "actions": ["delete", "create"], "attributesAfter": {"engine": "sensitive"}}]
    )
    assert record.category == Category.REPLACE
    assert record.severity == Severity.CRITICAL
    assert record.sensitive_fields_touched == ["engine"]


def test_replace_produces_one_record_not_add_and_destroy():
    result = normalize([{"address": "aws_instance.web", "actions": ["create", "delete"]}])
    assert [r.category for r in result.records] == [Category.REPLACE]


def test_destroy_plain_resource_is_high():
    record = _one([{"address": "aws_instance.web", "actions": ["delete"]}])
    assert record.category == Category.DESTROY
    assert record.severity == Severity.HIGH
    assert record.resource_type == "aws_instance"


def test_destroy_stateful_resource_is_critical():
    record = _one([{"address": "module.data.aws_db_instance.main", "actions": ["delete"]}])
    assert record.resource_type == "aws_db_instance"
    assert record.severity == Severity.CRITICAL


def test_stateful_patterns_are_configurable():
    record = _one(
        [{"address": "custom_ledger.main", "actions": ["delete"]}],
        stateful_types=["custom_*"],
    )
    assert record.severity == Severity.CRITICAL


def test_add_is_info():
    record = _one([{"address": "aws_sns_topic.alerts", "actions": ["create"]}])
    assert record.category == Category.ADD
    assert record.severity == Severity.INFO


def test_modify_without_sensitive_fields_is_medium():
    record = _one(
        [
            {
                "address": "aws_security_group.web",
                "actions": ["update"],
                "attributesBefore": {"description": "a"},
                "attributesAfter": {"description": "b"},
            }
        ]
    )
    assert record.category == Category.MODIFY
    assert record.severity == Severity.MEDIUM
    assert record.sensitive_fields_touched == []


def test_modify_touching_sensitive_field_is_high():
    record = _one(
        [
            {
                "address": "vault_generic_secret.app",
                "actions": ["update"],
                "attributesBefore": {"data_json": {"sensitive": True}},
                "attributesAfter": {"data_json": {"sensitive": True}},
            }
        ]
    )
    assert record.severity == Severity.HIGH
    assert record.sensitive_fields_touched == ["data_json"]


def test_modify_leaving_sensitive_field_unchanged_is_medium():
    record = _one(
        [
            {
                "address": "aws_db_instance.main",
                "actions": ["update"],
                "sensitiveFields": ["username"],
                "attributesBefore": {"username": "admin", "size": "small"},
                "attributesAfter": {"username": "admin", "size": "large"},
            }
        ]
    )
    assert record.severity == Severity.MEDIUM
    assert record.sensitive_fields_touched == []


def test_finding_severity_from_mapping_table():
    record = _one(
        [
            {
                "sourceTool": "tfsec",
                "ruleId": "aws-s3-enable-versioning",
                "nativeSeverity": "LOW",
                "resourceOrFile": "main.tf",
                "line": 7,
                "category": "compliance",
            }
        ]
    )
    assert record.kind == RecordKind.FINDING
    assert record.severity == Severity.LOW
    assert record.locator == "main.tf:7"
    assert record.provenance == ["tfsec"]


def test_caller_table_overrides_builtin():
    maps = SeverityMaps.model_validate({"tfsec": {"LOW": "HIGH"}})
    record = _one(
        [{"sourceTool": "TFSec", "ruleId": "r1", "nativeSeverity": "low", "resourceOrFile": "main.tf"}],
        mapping_tables=maps,
    )
    assert record.severity == Severity.HIGH


def test_severity_missing_from_caller_table_fails_closed():
    maps = SeverityMaps.model_validate({"tfsec": {"CRITICAL": "critical"}})
    result = normalize(
        [{"sourceTool": "tfsec", "ruleId": "r1", "nativeSeverity": "LOW", "resourceOrFile": "main.tf"}],
        mapping_tables=maps,
    )
    assert result.records[0].severity == Severity.MEDIUM
    assert [w.code for w in result.warnings] == ["unmapped_severity"]
    assert result.warnings[0].native_severity == "LOW"


def test_unmapped_severity_fails_closed_to_medium():
    result = normalize(
        [{"sourceTool": "newscanner", "ruleId": "NS-1", "nativeSeverity": "spicy", "resourceOrFile": "app.py"}]
    )
    assert result.records[0].severity == Severity.MEDIUM
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.code == "unmapped_severity"
    assert warning.source_tool == "newscanner"
    assert warning.native_severity == "spicy"
    assert warning.assigned_severity == Severity.MEDIUM


def test_checkov_failed_without_severity_defaults_to_medium():
    result = normalize(
        [{"sourceTool": "checkov", "ruleId": "CKV_AWS_20", "nativeSeverity": "failed", "resourceOrFile": "s3.tf"}]
    )
    assert result.records[0].severity == Severity.MEDIUM
    assert result.warnings[0].code == "unmapped_severity"


def test_unknown_finding_category_scores_as_other():
    record = _one(
        [
            {
                "sourceTool": "tfsec",
                "ruleId": "r1",
                "nativeSeverity": "HIGH",
                "resourceOrFile": "main.tf",
                "category": "cost",
            }
        ]
    )
    assert record.category == Category.OTHER


def test_invalid_records_are_listed_not_dropped():
    result = normalize(
        [
            {"sourceTool": "tfsec", "ruleId": "r1", "resourceOrFile": "main.tf"},
            {"address": "aws_vpc.main"},
            {"address": "", "actions": ["create"]},
            {"address": "aws_vpc.main", "actions": []},
            {"message": "what am I?"},
            42,
            {"address": "aws_vpc.main", "actions": ["create"]},
        ]
    )
    assert len(result.records) == 1
    assert [u.index for u in result.unparsed] == [0, 1, 2, 3, 4, 5]
    assert all(u.error == "InvalidRecordError" for u in result.unparsed)
    assert result.unparsed[0].kind == "finding"
    assert result.unparsed[1].kind == "change"
    assert result.unparsed[1].locator == "aws_vpc.main"
    assert result.unparsed[4].kind == "unknown"


def test_unknown_action_set_is_excluded_and_reported():
    result = normalize([{"address": "aws_vpc.main", "actions": ["create", "update"]}])
    assert result.records == []
    assert result.unparsed[0].error == "UnknownActionSetError"
    assert result.unparsed[0].locator == "aws_vpc.main"


def test_no_op_changes_are_counted_as_unchanged(plan_records):
    result = normalize(plan_records)
    assert result.unchanged_count == 1
    assert len(result.records) == 3


def test_ids_are_deterministic_and_tool_independent():
    a = _one([{"sourceTool": "tfsec", "ruleId": "R", "nativeSeverity": "HIGH", "resourceOrFile": "x.tf", "line": 2}])
    b = _one([{"sourceTool": "checkov", "ruleId": "R", "nativeSeverity": "LOW", "resourceOrFile": "x.tf", "line": 2}])
    assert a.id == b.id == record_id(RecordKind.FINDING, "x.tf:2", "R")


def test_rule_aliases_unify_ids(severity_maps, scanner_findings):
    maps = SeverityMaps.model_validate(severity_maps)
    result = normalize(scanner_findings[:2], mapping_tables=maps)
    assert result.records[0].id == result.records[1].id
    assert result.records[1].rule_id == "aws-s3-enable-bucket-encryption"


def test_records_must_be_a_list():
    with pytest.raises(MalformedInputError):
        normalize({"records": []})
