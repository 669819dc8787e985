"""
Policy & Severity Map Models — externally supplied, read-only configuration.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from riskgate.models.normalized_models import Severity


def _coerce_severity(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class GateAction(str, Enum):
    BLOCK = "block"
    WARN = "warn"


class PolicyRule(BaseModel):
    """Fires when the count of records at ``severity`` or worse exceeds ``max_count``."""

    severity: Severity
    max_count: int = Field(..., ge=0, alias="maxCount")
    action: GateAction = GateAction.BLOCK

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("severity", "action", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        return _coerce_severity(value)


class Policy(BaseModel):
    """Ordered gate rules. Declaration order is evaluation order."""

    name: str = "default"
    rules: list[PolicyRule] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, data: Any) -> Any:
        # A policy file may be just the rule list
        if isinstance(data, list):
            return {"rules": data}
        return data


DEFAULT_POLICY = Policy(
    name="default",
    rules=[
        PolicyRule(severity=Severity.CRITICAL, max_count=0, action=GateAction.BLOCK),
        PolicyRule(severity=Severity.HIGH, max_count=0, action=GateAction.WARN),
    ],
)


class SeverityMaps(BaseModel):
    """
    Per-tool severity vocabularies plus optional rule-id aliases.

    ``tables[tool][native_severity] -> Severity``. Keys are stored lowercased
    and trimmed so lookups are case-insensitive.
    """

    tables: dict[str, dict[str, Severity]] = Field(default_factory=dict)
    rule_aliases: dict[str, str] = Field(
        default_factory=dict,
        alias="ruleAliases",
        description="Tool-specific rule id (or 'tool:rule') -> canonical rule id",
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_tables(cls, data: Any) -> Any:
        # {"tfsec": {"CRITICAL": "critical"}} is shorthand for {"tables": {...}}
        if isinstance(data, dict) and not ({"tables", "ruleAliases", "rule_aliases"} & data.keys()):
            return {"tables": data}
        return data

    @field_validator("tables", mode="before")
    @classmethod
    def _normalize_keys(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        normalized: dict[str, dict[str, Any]] = {}
        for tool, table in value.items():
            if not isinstance(table, dict):
                raise ValueError(f"severity table for '{tool}' must be a mapping")
            normalized[str(tool).strip().lower()] = {
                str(native).strip().lower(): _coerce_severity(tier)
                for native, tier in table.items()
            }
        return normalized

    def lookup(self, source_tool: str, native_severity: str) -> Severity | None:
        """Mapped tier, or None when the tool or native value is unmapped."""
        table = self.tables.get(source_tool.strip().lower())
        if table is None:
            return None
        return table.get(native_severity.strip().lower())

    def canonical_rule_id(self, source_tool: str, rule_id: str) -> str:
        qualified = f"{source_tool.strip().lower()}:{rule_id}"
        return self.rule_aliases.get(qualified) or self.rule_aliases.get(rule_id) or rule_id

    def merged_over(self, base: SeverityMaps) -> SeverityMaps:
        """
        Return ``base`` with this instance's data layered on top.

        A tool table supplied here replaces the base table for that tool
        whole, so native values it leaves out stay unmapped. Base tables only
        apply to tools this instance does not mention.
        """
        tables = {tool: dict(table) for tool, table in base.tables.items()}
        tables.update({tool: dict(table) for tool, table in self.tables.items()})
        return SeverityMaps(
            tables=tables, rule_aliases={**base.rule_aliases, **self.rule_aliases}
        )
