"""
Test fixtures shared across all RiskGate tests.
"""

import pytest


@pytest.fixture
def plan_records():
    """Change records as a planning tool would emit them."""
    return [
        {
            "address": "aws_db_instance.main",
            "resourceType": "aws_db_instance",
            "actions": ["delete", "create"],
            "attributesBefore": {"engine": "postgres", "password": "(sensitive value)"},
            "attributesAfter": {"engine": "postgres", "password": "(sensitive value)"},
            "costDelta": 35.0,
        },
        {
            "address": "aws_security_group.web",
            "actions": ["update"],
            "attributesBefore": {"ingress": "10.0.0.0/8"},
            "attributesAfter": {"ingress": "0.0.0.0/0"},
            "costDelta": 0,
        },
        {
            "address": "aws_s3_bucket_policy.logs",
            "actions": ["create"],
            "costDelta": -2.5,
        },
        {
            "address": "aws_iam_role.ci",
            "actions": ["no-op"],
        },
    ]


@pytest.fixture
def scanner_findings():
    """Findings from three scanners with different severity vocabularies."""
    return [
        {
            "sourceTool": "tfsec",
            "ruleId": "aws-s3-enable-bucket-encryption",
            "nativeSeverity": "HIGH",
            "resourceOrFile": "modules/storage/main.tf",
            "line": 14,
            "message": "Bucket does not have encryption enabled",
            "category": "compliance",
        },
        {
            "sourceTool": "checkov",
            "ruleId": "CKV_AWS_19",
            "nativeSeverity": "FAILED",
            "resourceOrFile": "modules/storage/main.tf",
            "line": 14,
            "message": "Ensure the S3 bucket has server-side-encryption enabled",
            "category": "compliance",
        },
        {
            "sourceTool": "vault-radar",
            "ruleId": "aws_access_key_id",
            "nativeSeverity": "critical",
            "resourceOrFile": "scripts/deploy.sh",
            "line": 3,
            "message": "AWS access key committed",
            "category": "secret",
        },
    ]


@pytest.fixture
def severity_maps():
    return {
        "tables": {"checkov": {"FAILED": "medium"}},
        "ruleAliases": {"checkov:CKV_AWS_19": "aws-s3-enable-bucket-encryption"},
    }


@pytest.fixture
def block_critical_policy():
    return {
        "name": "strict",
        "rules": [
            {"severity": "CRITICAL", "maxCount": 0, "action": "Block"},
            {"severity": "HIGH", "maxCount": 5, "action": "Block"},
            {"severity": "MEDIUM", "maxCount": 0, "action": "Warn"},
        ],
    }
