"""
Evaluation Pipeline — runs the staged engine end to end.

Stages (fixed order):
1. Normalize + classify raw records
2. Deduplicate by id (needs every source merged first)
3. Score
4. Gate against the policy
5. Render the report

Every record-level problem ends up in the report. Only structurally
invalid top-level input raises (MalformedInputError), before stage 1.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from riskgate.core.deduplicator import deduplicate
from riskgate.core.errors import MalformedInputError
from riskgate.core.gate import evaluate
from riskgate.core.normalizer import RawRecord, normalize
from riskgate.core.report_renderer import render
from riskgate.core.risk_scorer import score
from riskgate.models.policy_models import DEFAULT_POLICY, Policy, SeverityMaps
from riskgate.models.report_models import SUPPORTED_INPUT_VERSIONS, Report
from riskgate.models.risk_models import GateOutcome

logger = logging.getLogger("riskgate.engine.pipeline")

EXIT_PASS = 0
EXIT_BLOCK = 1
EXIT_MALFORMED_INPUT = 2


@dataclass
class EvaluationResult:
    report: Report
    exit_code: int
    records_received: int
    duration_ms: float = 0.0

    @property
    def unmapped_severities(self) -> int:
        return sum(1 for w in self.report.warnings if w.code == "unmapped_severity")


def exit_code_for(outcome: GateOutcome) -> int:
    return EXIT_BLOCK if outcome == GateOutcome.BLOCK else EXIT_PASS


def check_schema_version(version: str | int | None) -> None:
    if version is None:
        return
    if str(version) not in SUPPORTED_INPUT_VERSIONS:
        raise MalformedInputError(
            f"Unsupported schemaVersion '{version}' "
            f"(supported: {', '.join(sorted(SUPPORTED_INPUT_VERSIONS))})"
        )


def load_policy(data: Any) -> Policy:
    """Build a Policy from a parsed document; None means the built-in default."""
    if data is None:
        return DEFAULT_POLICY
    if isinstance(data, Policy):
        return data
    try:
        return Policy.model_validate(data)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid policy: {e}") from e


def load_severity_maps(data: Any) -> SeverityMaps | None:
    if data is None or isinstance(data, SeverityMaps):
        return data
    try:
        return SeverityMaps.model_validate(data)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid severity maps: {e}") from e


def evaluate_records(
    records: list[RawRecord],
    severity_maps: SeverityMaps | dict[str, Any] | None = None,
    policy: Policy | dict[str, Any] | list[Any] | None = None,
    top_n: int | None = None,
) -> EvaluationResult:
    """
    Execute the full pipeline on one input set.

    Args:
        records: Raw change and finding records.
        severity_maps: Per-tool severity tables (layered over the built-ins).
        policy: Gate policy; the built-in default when omitted.
        top_n: Findings to list in the report (settings default when None).

    Returns:
        EvaluationResult with the report and CI exit code.

    Raises:
        MalformedInputError: records is not a list, policy/maps are invalid,
            or top_n is negative.
    """
    start = time.monotonic()

    if not isinstance(records, list):
        raise MalformedInputError(f"records must be a list, got {type(records).__name__}")
    if top_n is not None and top_n < 0:
        raise MalformedInputError(f"top_n must be 0 or greater, got {top_n}")
    maps = load_severity_maps(severity_maps)
    gate_policy = load_policy(policy)

    normalized = normalize(records, maps)
    logger.info(
        f"Normalized {len(normalized.records)}/{len(records)} records "
        f"({len(normalized.unparsed)} unparsed, {len(normalized.warnings)} warnings)"
    )

    deduped = deduplicate(normalized.records)
    logger.info(
        f"Deduplicated to {len(deduped.records)} records "
        f"({len(deduped.conflicts)} conflicts)"
    )

    summary = score(deduped.records)
    decision = evaluate(summary, gate_policy)

    report = render(
        deduped.records,
        summary,
        decision,
        unparsed=normalized.unparsed,
        conflicts=deduped.conflicts,
        warnings=normalized.warnings,
        unchanged_count=normalized.unchanged_count,
        top_n=top_n,
    )

    elapsed = (time.monotonic() - start) * 1000
    logger.info(
        f"Decision {decision.outcome.value} — aggregate {summary.aggregate_level.value}, "
        f"{len(decision.fired_rules)} rule(s) fired, {elapsed:.1f}ms"
    )

    return EvaluationResult(
        report=report,
        exit_code=exit_code_for(decision.outcome),
        records_received=len(records),
        duration_ms=round(elapsed, 2),
    )
