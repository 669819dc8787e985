"""
Normalizer — maps change records and scanner findings onto NormalizedRecord.

Change severity comes from a fixed rule table:
    destroy / replace → HIGH, CRITICAL if a sensitive field is touched or the
                        resource type is stateful
    modify            → MEDIUM, HIGH if a sensitive field is touched
    add               → INFO

Finding severity comes from the per-tool mapping tables. An unmapped native
severity fails closed to MEDIUM and is reported as a warning.

Malformed records are excluded and listed as unparsed inputs, never dropped
silently. The function is pure: no I/O, no shared state.
"""

from __future__ import annotations

import fnmatch
import hashlib
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from riskgate.config import settings
from riskgate.core.classifier import (
    action_signature,
    classify_actions,
    classify_finding,
    is_unchanged,
)
from riskgate.core.errors import (
    InvalidRecordError,
    MalformedInputError,
    RecordError,
    UnmappedSeverityError,
)
from riskgate.core.severity_maps import resolve_severity_maps
from riskgate.models.normalized_models import Category, NormalizedRecord, RecordKind, Severity
from riskgate.models.policy_models import SeverityMaps
from riskgate.models.record_models import ChangeRecord, FindingRecord
from riskgate.models.report_models import ReportWarning, UnparsedInput

logger = logging.getLogger("riskgate.core.normalizer")

RawRecord = ChangeRecord | FindingRecord | Mapping[str, Any]

_CHANGE_KEYS = frozenset({"address", "actions"})
_FINDING_KEYS = frozenset(
    {
        "sourceTool",
        "source_tool",
        "ruleId",
        "rule_id",
        "nativeSeverity",
        "native_severity",
        "resourceOrFile",
        "resource_or_file",
        "locator",
    }
)
_MISSING = object()


@dataclass
class NormalizationResult:
    """Normalized records plus everything that was excluded or downgraded on the way."""

    records: list[NormalizedRecord] = field(default_factory=list)
    unparsed: list[UnparsedInput] = field(default_factory=list)
    warnings: list[ReportWarning] = field(default_factory=list)
    unchanged_count: int = 0


def record_id(kind: RecordKind, locator: str, signature: str) -> str:
    """Stable id: equal for the same issue no matter which tool reported it."""
    digest = hashlib.sha256(f"{kind.value}|{locator}|{signature}".encode("utf-8"))
    return digest.hexdigest()[:16]


def _is_masked(value: Any, markers: frozenset[str]) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in markers
    if isinstance(value, Mapping):
        return value.get("sensitive") is True
    return False


def sensitive_fields_touched(
    record: ChangeRecord, category: Category, markers: Iterable[str]
) -> list[str]:
    """
    Names of sensitive attributes the change touches.

    A field is sensitive when the record lists it or either side carries a
    masked value. For modifications a sensitive field only counts when it
    cannot be shown unchanged: both sides present, unmasked and equal.
    """
    marker_set = frozenset(m.strip().lower() for m in markers)
    before = record.attributes_before
    after = record.attributes_after

    flagged = set(record.sensitive_fields)
    for attrs in (before, after):
        flagged.update(name for name, value in attrs.items() if _is_masked(value, marker_set))

    if category == Category.MODIFY:
        touched = set()
        for name in flagged:
            old = before.get(name, _MISSING)
            new = after.get(name, _MISSING)
            if (
                old is _MISSING
                or new is _MISSING
                or _is_masked(old, marker_set)
                or _is_masked(new, marker_set)
                or old != new
            ):
                touched.add(name)
        flagged = touched

    return sorted(flagged)


def is_stateful(resource_type: str, patterns: Iterable[str]) -> bool:
    return bool(resource_type) and any(
        fnmatch.fnmatchcase(resource_type, pattern) for pattern in patterns
    )


def change_severity(category: Category, sensitive_touched: bool, stateful: bool) -> Severity:
    if category in (Category.DESTROY, Category.REPLACE):
        return Severity.CRITICAL if (sensitive_touched or stateful) else Severity.HIGH
    if category == Category.MODIFY:
        return Severity.HIGH if sensitive_touched else Severity.MEDIUM
    return Severity.INFO


def _detect_kind(raw: Mapping[str, Any]) -> str:
    explicit = raw.get("kind")
    if isinstance(explicit, str) and explicit.strip().lower() in ("change", "finding"):
        return explicit.strip().lower()
    keys = set(raw.keys())
    if keys & _CHANGE_KEYS:
        return "change"
    if keys & _FINDING_KEYS:
        return "finding"
    return "unknown"


def _hint_locator(raw: Mapping[str, Any]) -> str:
    for key in ("address", "resourceOrFile", "resource_or_file", "locator"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "record"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_record(raw: RawRecord, index: int) -> ChangeRecord | FindingRecord:
    """
    Validate one raw record into its typed model.

    Raises:
        InvalidRecordError: when the record is not a mapping, its kind cannot
            be told, or a required field is missing or malformed.
    """
    if isinstance(raw, (ChangeRecord, FindingRecord)):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidRecordError(
            f"Record must be an object, got {type(raw).__name__}", index=index
        )

    kind = _detect_kind(raw)
    locator = _hint_locator(raw)
    if kind == "unknown":
        raise InvalidRecordError(
            "Record is neither a change (address/actions) nor a finding (ruleId/nativeSeverity)",
            index=index,
            locator=locator,
        )

    payload = {k: v for k, v in raw.items() if k != "kind"}
    model = ChangeRecord if kind == "change" else FindingRecord
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidRecordError(
            _describe_validation_error(e), index=index, locator=locator, kind=kind
        ) from e


def _normalize_change(
    record: ChangeRecord,
    index: int,
    stateful_types: Iterable[str],
    markers: Iterable[str],
) -> NormalizedRecord:
    category = classify_actions(record.actions, index=index, locator=record.address)
    touched = sensitive_fields_touched(record, category, markers)
    resource_type = record.effective_resource_type
    severity = change_severity(
        category, bool(touched), is_stateful(resource_type, stateful_types)
    )
    signature = action_signature(category)
    return NormalizedRecord(
        id=record_id(RecordKind.CHANGE, record.address, signature),
        kind=RecordKind.CHANGE,
        severity=severity,
        category=category,
        locator=record.address,
        rule_id=signature,
        message=f"{category.value} {resource_type or record.address}",
        resource_type=resource_type,
        sensitive_fields_touched=touched,
        provenance=[record.source_tool],
        cost_delta=record.cost_delta,
    )


def _normalize_finding(
    record: FindingRecord,
    maps: SeverityMaps,
    fallback: Severity,
    warnings: list[ReportWarning],
) -> NormalizedRecord:
    severity = maps.lookup(record.source_tool, record.native_severity)
    if severity is None:
        unmapped = UnmappedSeverityError(
            record.source_tool,
            record.native_severity,
            fallback,
            rule_id=record.rule_id,
            locator=record.locator,
        )
        logger.warning(f"{unmapped} ({record.rule_id} at {record.locator})")
        warnings.append(unmapped.to_warning())
        severity = fallback

    rule_id = maps.canonical_rule_id(record.source_tool, record.rule_id)
    return NormalizedRecord(
        id=record_id(RecordKind.FINDING, record.locator, rule_id),
        kind=RecordKind.FINDING,
        severity=severity,
        category=classify_finding(record.category),
        locator=record.locator,
        rule_id=rule_id,
        message=record.message,
        provenance=[record.source_tool],
    )


def normalize(
    raw_records: list[RawRecord],
    mapping_tables: SeverityMaps | None = None,
    stateful_types: Iterable[str] | None = None,
    sensitive_markers: Iterable[str] | None = None,
    unmapped_fallback: Severity | None = None,
) -> NormalizationResult:
    """
    Normalize and classify raw records.

    Args:
        raw_records: Change and finding records, as dicts or typed models.
        mapping_tables: Caller severity tables, layered over the built-ins.
        stateful_types: fnmatch patterns for stateful resource types.
        sensitive_markers: Attribute values that mark a field as sensitive.
        unmapped_fallback: Tier for unmapped native severities.

    Returns:
        NormalizationResult; records keep input order.

    Raises:
        MalformedInputError: if ``raw_records`` is not a list.
    """
    if not isinstance(raw_records, list):
        raise MalformedInputError(
            f"records must be a list, got {type(raw_records).__name__}"
        )

    maps = resolve_severity_maps(mapping_tables)
    stateful = list(stateful_types if stateful_types is not None else settings.stateful_resource_types)
    markers = list(
        sensitive_markers if sensitive_markers is not None else settings.sensitive_value_markers
    )
    fallback = unmapped_fallback or settings.unmapped_severity_fallback

    result = NormalizationResult()
    for index, raw in enumerate(raw_records):
        try:
            record = parse_record(raw, index)
            if isinstance(record, ChangeRecord):
                if is_unchanged(record.actions):
                    result.unchanged_count += 1
                    continue
                normalized = _normalize_change(record, index, stateful, markers)
            else:
                normalized = _normalize_finding(record, maps, fallback, result.warnings)
        except RecordError as e:
            logger.warning(f"Excluded record #{index}: {type(e).__name__}: {e.message}")
            result.unparsed.append(e.to_entry())
            continue
        result.records.append(normalized)

    logger.debug(
        f"Normalized {len(result.records)}/{len(raw_records)} records "
        f"({len(result.unparsed)} unparsed, {result.unchanged_count} unchanged)"
    )
    return result
