"""
Raw Record Models — external inputs as emitted by planning tools and scanners.

Field names follow the camelCase interchange format; snake_case names are
accepted too so records can be built directly in Python.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ChangeAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NO_OP = "no-op"
    READ = "read"


class FindingCategory(str, Enum):
    SECRET = "secret"
    PII = "pii"
    COMPLIANCE = "compliance"
    NON_INCLUSIVE_LANGUAGE = "non-inclusive-language"
    OTHER = "other"


def _require_text(value: Any, field_name: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{field_name} must be a non-empty string")
    return value.strip() if isinstance(value, str) else value


class ChangeRecord(BaseModel):
    """A proposed change to one infrastructure resource."""

    address: str = Field(..., description="Unique resource path, e.g. 'aws_db_instance.main'")
    resource_type: str = Field(default="", alias="resourceType")
    actions: list[str] = Field(
        ..., min_length=1, description="Ordered actions; create+delete signals replace"
    )
    attributes_before: dict[str, Any] = Field(default_factory=dict, alias="attributesBefore")
    attributes_after: dict[str, Any] = Field(default_factory=dict, alias="attributesAfter")
    sensitive_fields: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "sensitiveFields", "sensitiveFieldsTouched", "sensitive_fields"
        ),
        description="Attribute names the source marked sensitive",
    )
    depends_on: list[str] = Field(default_factory=list, alias="dependsOn")
    cost_delta: float | None = Field(
        default=None,
        alias="costDelta",
        description="Externally computed signed monthly cost change",
    )
    source_tool: str = Field(default="plan", alias="sourceTool")

    model_config = {"populate_by_name": True}

    @field_validator("address")
    @classmethod
    def _address_present(cls, value: str) -> str:
        return _require_text(value, "address")

    @field_validator("actions", mode="before")
    @classmethod
    def _lowercase_actions(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [a.strip().lower() if isinstance(a, str) else a for a in value]
        return value

    @field_validator("resource_type", mode="before")
    @classmethod
    def _default_none(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def effective_resource_type(self) -> str:
        """Explicit resource type, else derived from the address ('aws_s3_bucket.logs')."""
        if self.resource_type:
            return self.resource_type
        # module.net.aws_vpc.main -> aws_vpc ; data.aws_iam_policy.x -> aws_iam_policy
        segments = self.address.split(".")
        i = 0
        while i < len(segments):
            if segments[i] == "module":
                i += 2
                continue
            if segments[i] == "data":
                i += 1
                continue
            return segments[i].split("[")[0]
        return ""


class FindingRecord(BaseModel):
    """A single issue reported by a security/compliance scanner."""

    source_tool: str = Field(..., alias="sourceTool")
    rule_id: str = Field(..., alias="ruleId")
    native_severity: str = Field(..., alias="nativeSeverity")
    resource_or_file: str = Field(
        ...,
        validation_alias=AliasChoices("resourceOrFile", "locator", "resource_or_file"),
        description="Resource address or file path",
    )
    line: int | None = Field(default=None, ge=0)
    message: str = ""
    category: FindingCategory = FindingCategory.OTHER

    model_config = {"populate_by_name": True}

    @field_validator("source_tool", "rule_id", "native_severity", "resource_or_file", mode="before")
    @classmethod
    def _text_present(cls, value: Any, info) -> Any:
        return _require_text(value, info.field_name)

    @field_validator("category", mode="before")
    @classmethod
    def _category_lenient(cls, value: Any) -> Any:
        # Unknown vocabularies still get scored, as 'other'
        if value is None:
            return FindingCategory.OTHER
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
            known = {c.value for c in FindingCategory}
            return normalized if normalized in known else FindingCategory.OTHER
        return value

    @property
    def locator(self) -> str:
        if self.line is not None:
            return f"{self.resource_or_file}:{self.line}"
        return self.resource_or_file
