"""
Error Taxonomy — record-level errors become report items; only malformed
top-level input is fatal.
"""

from __future__ import annotations

from riskgate.models.normalized_models import Category, Severity
from riskgate.models.report_models import ConflictEntry, ReportWarning, UnparsedInput


class RiskGateError(Exception):
    """Base class for all engine errors."""


class MalformedInputError(RiskGateError):
    """Top-level input is structurally unusable. Aborts before the pipeline starts."""


class RecordError(RiskGateError):
    """An error scoped to one input record."""

    kind = "unknown"

    def __init__(self, message: str, index: int = -1, locator: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.index = index
        self.locator = locator

    def to_entry(self) -> UnparsedInput:
        return UnparsedInput(
            index=self.index,
            kind=self.kind,
            error=type(self).__name__,
            message=self.message,
            locator=self.locator,
        )


class InvalidRecordError(RecordError):
    """Record is malformed or missing a required field (locator, actions, nativeSeverity)."""

    def __init__(
        self, message: str, index: int = -1, locator: str = "", kind: str = "unknown"
    ) -> None:
        super().__init__(message, index=index, locator=locator)
        self.kind = kind


class UnknownActionSetError(RecordError):
    """Action set does not match one of the four canonical change outcomes."""

    kind = "change"

    def __init__(self, actions: list[str], index: int = -1, locator: str = "") -> None:
        super().__init__(
            f"Unsupported action set {sorted(set(actions))}", index=index, locator=locator
        )
        self.actions = actions


class ConflictingClassificationError(RiskGateError):
    """The same record id was classified into different categories by different sources."""

    def __init__(
        self,
        record_id: str,
        locator: str,
        categories: list[Category],
        provenance: list[str],
        severity: Severity,
    ) -> None:
        self.record_id = record_id
        self.locator = locator
        self.categories = categories
        self.provenance = provenance
        self.severity = severity
        super().__init__(
            f"{locator}: sources {provenance} disagree on category "
            f"({', '.join(c.value for c in categories)})"
        )

    def to_entry(self) -> ConflictEntry:
        return ConflictEntry(
            id=self.record_id,
            locator=self.locator,
            categories=self.categories,
            provenance=self.provenance,
            severity=self.severity,
            message=str(self),
        )


class UnmappedSeverityError(RiskGateError):
    """A native severity has no mapping. Never raised out of the normalizer."""

    def __init__(
        self,
        source_tool: str,
        native_severity: str,
        fallback: Severity,
        rule_id: str = "",
        locator: str = "",
    ) -> None:
        self.source_tool = source_tool
        self.native_severity = native_severity
        self.fallback = fallback
        self.rule_id = rule_id
        self.locator = locator
        super().__init__(
            f"Unmapped severity '{native_severity}' from '{source_tool}'; "
            f"assigned {fallback.value}"
        )

    def to_warning(self) -> ReportWarning:
        return ReportWarning(
            code="unmapped_severity",
            message=str(self),
            source_tool=self.source_tool,
            native_severity=self.native_severity,
            rule_id=self.rule_id,
            locator=self.locator,
            assigned_severity=self.fallback,
        )
