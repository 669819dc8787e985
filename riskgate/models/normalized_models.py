"""
Normalized Record Models — the single internal shape every input is mapped onto.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @classmethod
    def _missing_(cls, value: object) -> Severity | None:
        # Accept "CRITICAL", " High " etc. from external payloads
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}

# Most severe first
SEVERITY_ORDER: list[Severity] = sorted(SEVERITY_RANK, key=SEVERITY_RANK.get, reverse=True)


def max_severity(*severities: Severity) -> Severity:
    """Return the most severe of the given tiers."""
    return max(severities, key=SEVERITY_RANK.__getitem__)


def at_least(severity: Severity) -> list[Severity]:
    """All tiers as severe as ``severity`` or more."""
    floor = SEVERITY_RANK[severity]
    return [s for s in SEVERITY_ORDER if SEVERITY_RANK[s] >= floor]


class RecordKind(str, Enum):
    CHANGE = "change"
    FINDING = "finding"


class Category(str, Enum):
    ADD = "add"
    MODIFY = "modify"
    DESTROY = "destroy"
    REPLACE = "replace"
    SECRET = "secret"
    PII = "pii"
    COMPLIANCE = "compliance"
    NON_INCLUSIVE_LANGUAGE = "non-inclusive-language"
    OTHER = "other"


CHANGE_CATEGORIES = frozenset(
    {Category.ADD, Category.MODIFY, Category.DESTROY, Category.REPLACE}
)


class NormalizedRecord(BaseModel):
    """A classified change or finding. Immutable once constructed."""

    id: str = Field(..., description="Stable hash of locator + rule/action signature")
    kind: RecordKind
    severity: Severity
    category: Category
    locator: str = Field(..., description="Resource address, or file path with optional ':line'")
    rule_id: str = Field(
        default="",
        alias="ruleId",
        description="Canonical rule id (findings) or action signature (changes)",
    )
    message: str = ""
    resource_type: str = Field(default="", alias="resourceType")
    sensitive_fields_touched: list[str] = Field(
        default_factory=list,
        alias="sensitiveFieldsTouched",
        description="Sorted attribute names flagged sensitive (changes only)",
    )
    provenance: list[str] = Field(
        default_factory=list,
        description="Source tools that independently reported this id, first-seen order",
    )
    cost_delta: float | None = Field(default=None, alias="costDelta")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("provenance")
    @classmethod
    def _provenance_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("provenance must name at least one source")
        return value
