"""
Risk Scoring Engine — counts and aggregate level over deduplicated records.

aggregate_level = highest severity with a non-zero count (INFO when empty).
Adding a record can only raise it, never lower it.

Cost is aggregated, never estimated: the signed ``cost_delta`` values handed
in with change records are summed as-is.
"""

from __future__ import annotations

from riskgate.models.normalized_models import (
    SEVERITY_ORDER,
    Category,
    NormalizedRecord,
    RecordKind,
    Severity,
)
from riskgate.models.risk_models import RiskSummary


def score(records: list[NormalizedRecord]) -> RiskSummary:
    """Compute a RiskSummary from classified, deduplicated records."""
    counts = {s: 0 for s in Severity}
    by_category = {c: 0 for c in Category}
    cost_total = 0.0
    costed = 0

    for r in records:
        counts[r.severity] += 1
        by_category[r.category] += 1
        if r.kind == RecordKind.CHANGE and r.cost_delta is not None:
            cost_total += r.cost_delta
            costed += 1

    aggregate = next((s for s in SEVERITY_ORDER if counts[s] > 0), Severity.INFO)

    return RiskSummary(
        counts=counts,
        counts_by_category=by_category,
        aggregate_level=aggregate,
        total_records=len(records),
        cost_delta=round(cost_total, 2) if costed else None,
        costed_changes=costed,
    )
