"""
Report Renderer — assembles the structured Report and a plain-text listing.

Top-N order: severity descending, then locator ascending, then id ascending,
so golden outputs are reproducible.
"""

from __future__ import annotations

from riskgate.config import settings
from riskgate.models.normalized_models import SEVERITY_ORDER, SEVERITY_RANK, NormalizedRecord
from riskgate.models.policy_models import GateAction
from riskgate.models.report_models import (
    ConflictEntry,
    Report,
    ReportEntry,
    ReportWarning,
    UnparsedInput,
)
from riskgate.models.risk_models import GateDecision, GateOutcome, RiskSummary


def sort_key(record: NormalizedRecord) -> tuple[int, str, str]:
    return (-SEVERITY_RANK[record.severity], record.locator, record.id)


def top_records(records: list[NormalizedRecord], top_n: int) -> list[NormalizedRecord]:
    return sorted(records, key=sort_key)[:top_n]


def _entry(record: NormalizedRecord) -> ReportEntry:
    return ReportEntry(
        id=record.id,
        kind=record.kind,
        severity=record.severity,
        category=record.category,
        locator=record.locator,
        rule_id=record.rule_id,
        message=record.message,
        provenance=list(record.provenance),
        sensitive_fields_touched=list(record.sensitive_fields_touched),
    )


def _summary_text(
    summary: RiskSummary,
    decision: GateDecision,
    unparsed: int,
    conflicts: int,
) -> str:
    if not summary.total_records:
        text = "No changes or findings to evaluate."
    else:
        parts = [
            f"{summary.counts.get(s, 0)} {s.value}"
            for s in SEVERITY_ORDER
            if summary.counts.get(s)
        ]
        text = (
            f"{summary.total_records} records ({', '.join(parts)}); "
            f"aggregate level {summary.aggregate_level.value}."
        )

    if decision.outcome == GateOutcome.BLOCK:
        blocking = [r for r in decision.fired_rules if r.action == GateAction.BLOCK]
        text += f" BLOCKED by {len(blocking)} policy rule(s)."
    else:
        text += " Gate passed."
        if decision.fired_rules:
            text += f" {len(decision.fired_rules)} warning rule(s) fired."

    if unparsed:
        text += f" {unparsed} input(s) could not be parsed."
    if conflicts:
        text += f" {conflicts} conflicting classification(s) need review."
    return text


def render(
    records: list[NormalizedRecord],
    summary: RiskSummary,
    decision: GateDecision,
    unparsed: list[UnparsedInput] | None = None,
    conflicts: list[ConflictEntry] | None = None,
    warnings: list[ReportWarning] | None = None,
    unchanged_count: int = 0,
    top_n: int | None = None,
) -> Report:
    """Build the Report. Pure formatting, no I/O."""
    n = settings.default_top_n if top_n is None else top_n
    unparsed = list(unparsed or [])
    conflicts = sorted(
        conflicts or [], key=lambda c: (-SEVERITY_RANK[c.severity], c.locator, c.id)
    )

    return Report(
        decision=decision.outcome,
        aggregate_level=summary.aggregate_level,
        summary=summary,
        fired_rules=list(decision.fired_rules),
        policy_name=decision.policy_name,
        top_findings=[_entry(r) for r in top_records(records, n)],
        top_n=n,
        unparsed_inputs=unparsed,
        conflicts=conflicts,
        warnings=list(warnings or []),
        unchanged_count=unchanged_count,
        summary_text=_summary_text(summary, decision, len(unparsed), len(conflicts)),
    )


def render_text(report: Report) -> str:
    """Deterministic terminal listing of a report."""
    lines = [
        f"Decision: {report.decision.value.upper()} "
        f"(aggregate level: {report.aggregate_level.value})",
        report.summary_text,
        "",
        "Severity counts: "
        + ", ".join(f"{s.value}={report.summary.counts.get(s, 0)}" for s in SEVERITY_ORDER),
    ]
    if report.summary.cost_delta is not None:
        lines.append(
            f"Cost delta: {report.summary.cost_delta:+.2f} "
            f"({report.summary.costed_changes} costed change(s))"
        )

    if report.fired_rules:
        lines.append("")
        lines.append(f"Fired rules (policy '{report.policy_name}'):")
        for rule in report.fired_rules:
            lines.append(
                f"  #{rule.index} [{rule.action.value}] {rule.severity.value}+ "
                f"count {rule.observed_count} > {rule.max_count}"
            )

    if report.top_findings:
        lines.append("")
        lines.append(f"Top {len(report.top_findings)}:")
        for e in report.top_findings:
            sources = ",".join(e.provenance)
            lines.append(
                f"  {e.severity.value.upper():<8} {e.category.value:<22} {e.locator} "
                f"[{e.rule_id}] ({sources})"
            )

    if report.conflicts:
        lines.append("")
        lines.append("Conflicting classifications (review required):")
        for c in report.conflicts:
            lines.append(f"  {c.locator}: {', '.join(cat.value for cat in c.categories)}")

    if report.unparsed_inputs:
        lines.append("")
        lines.append("Unparsed inputs:")
        for u in report.unparsed_inputs:
            where = f" {u.locator}" if u.locator else ""
            lines.append(f"  #{u.index}{where}: {u.error}: {u.message}")

    if report.warnings:
        lines.append("")
        lines.append("Warnings:")
        for w in report.warnings:
            lines.append(f"  {w.code}: {w.message}")

    return "\n".join(lines)
