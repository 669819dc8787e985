"""
Report & API Models — the serializable evaluation output and service contract.

The report is presentation-neutral: PR comment bots, chat webhooks and
terminal printers all consume this one shape.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from riskgate.models.normalized_models import Category, RecordKind, Severity
from riskgate.models.risk_models import FiredRule, GateOutcome, RiskSummary

REPORT_SCHEMA_VERSION = "riskgate.report/v1"
SUPPORTED_INPUT_VERSIONS = frozenset({"1"})


class ReportEntry(BaseModel):
    """One listed record in the top-N section."""

    id: str
    kind: RecordKind
    severity: Severity
    category: Category
    locator: str
    rule_id: str = Field(default="", alias="ruleId")
    message: str = ""
    provenance: list[str] = Field(default_factory=list)
    sensitive_fields_touched: list[str] = Field(
        default_factory=list, alias="sensitiveFieldsTouched"
    )

    model_config = {"populate_by_name": True}


class UnparsedInput(BaseModel):
    """An input record excluded from scoring. Raw values are never echoed."""

    index: int = Field(..., description="Position in the submitted records array")
    kind: Literal["change", "finding", "unknown"] = "unknown"
    error: str = Field(..., description="Error class, e.g. 'InvalidRecordError'")
    message: str
    locator: str = ""


class ConflictEntry(BaseModel):
    """Same id classified differently by different sources; needs human review."""

    id: str
    locator: str
    categories: list[Category]
    provenance: list[str] = Field(default_factory=list)
    severity: Severity = Field(..., description="Highest severity asserted in the group")
    message: str = ""


class ReportWarning(BaseModel):
    """Non-fatal observation, e.g. an unmapped native severity."""

    code: str = Field(..., description="Machine-readable code, e.g. 'unmapped_severity'")
    message: str
    source_tool: str = Field(default="", alias="sourceTool")
    native_severity: str = Field(default="", alias="nativeSeverity")
    rule_id: str = Field(default="", alias="ruleId")
    locator: str = ""
    assigned_severity: Severity | None = Field(default=None, alias="assignedSeverity")

    model_config = {"populate_by_name": True}


class Report(BaseModel):
    """Full evaluation report."""

    schema_version: str = Field(default=REPORT_SCHEMA_VERSION, alias="schemaVersion")
    decision: GateOutcome
    aggregate_level: Severity = Field(..., alias="aggregateLevel")
    summary: RiskSummary
    fired_rules: list[FiredRule] = Field(default_factory=list, alias="firedRules")
    policy_name: str = Field(default="default", alias="policyName")
    top_findings: list[ReportEntry] = Field(default_factory=list, alias="topFindings")
    top_n: int = Field(default=10, ge=0, alias="topN")
    unparsed_inputs: list[UnparsedInput] = Field(default_factory=list, alias="unparsedInputs")
    conflicts: list[ConflictEntry] = Field(default_factory=list)
    warnings: list[ReportWarning] = Field(default_factory=list)
    unchanged_count: int = Field(default=0, alias="unchangedCount")
    summary_text: str = Field(default="", alias="summaryText")

    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        """Machine-readable JSON-compatible form mirroring the report."""
        return self.model_dump(mode="json", by_alias=True)


class EvaluateRequest(BaseModel):
    """Request body for POST /evaluate.

    Records stay loosely typed here: each one is validated individually so a
    single malformed record is reported instead of rejecting the whole batch.
    """

    records: list[Any] = Field(default_factory=list)
    severity_maps: dict[str, Any] | None = Field(default=None, alias="severityMaps")
    policy: dict[str, Any] | list[dict[str, Any]] | None = None
    top_n: int | None = Field(default=None, ge=0, alias="topN")
    schema_version: str = Field(default="1", alias="schemaVersion")

    model_config = {"populate_by_name": True}


class EvaluateResponse(BaseModel):
    """Top-level response for the evaluate endpoint."""

    message: str = "evaluation_complete"
    evaluation_id: str = Field(default="", alias="evaluationId")
    exit_code: int = Field(default=0, alias="exitCode")
    report: Report | None = None

    model_config = {"populate_by_name": True}


class AuditEntry(BaseModel):
    """Audit metadata for one evaluation."""

    timestamp: str = Field(default="", description="UTC, stamped when the entry is written")
    evaluation_id: str
    records_received: int
    records_scored: int
    unparsed_inputs: int = 0
    conflicts: int = 0
    unmapped_severities: int = 0
    decision: GateOutcome
    aggregate_level: Severity
    fired_rules: list[int] = Field(default_factory=list)
    policy_name: str = "default"
    duration_ms: float = 0.0
