"""
Audit Logger — Structured JSON-lines audit trail.

Records every evaluation with: timestamp, evaluation_id, input counts,
decision, aggregate level, fired rules and duration. Never records raw
attribute values or finding messages.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from pathlib import Path

from pydantic import ValidationError

from riskgate.config import settings
from riskgate.engine.pipeline import EvaluationResult
from riskgate.models.report_models import AuditEntry

logger = logging.getLogger("riskgate.audit")


def build_entry(evaluation_id: str, result: EvaluationResult) -> AuditEntry:
    report = result.report
    return AuditEntry(
        evaluation_id=evaluation_id,
        records_received=result.records_received,
        records_scored=report.summary.total_records,
        unparsed_inputs=len(report.unparsed_inputs),
        conflicts=len(report.conflicts),
        unmapped_severities=result.unmapped_severities,
        decision=report.decision,
        aggregate_level=report.aggregate_level,
        fired_rules=[r.index for r in report.fired_rules],
        policy_name=report.policy_name,
        duration_ms=result.duration_ms,
    )


class AuditLogger:
    """Appends one AuditEntry per evaluation to a JSON-lines file."""

    def __init__(self, log_path: str | None = None) -> None:
        self.log_path = Path(log_path or settings.audit_log_path)

    def log(self, entry: AuditEntry) -> AuditEntry:
        """Stamp and append an entry. Write failures are logged, not raised."""
        stamped = entry.model_copy(
            update={"timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())}
        )
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(stamped.model_dump_json() + "\n")
        except OSError as e:
            logger.error(f"Failed to write audit log {self.log_path}: {e}")
        return stamped

    def read_recent(self, count: int = 50) -> list[AuditEntry]:
        """The last ``count`` valid entries, oldest first. Corrupt lines are skipped."""
        if not self.log_path.exists():
            return []

        recent: deque[AuditEntry] = deque(maxlen=count)
        try:
            with open(self.log_path, encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        recent.append(AuditEntry.model_validate_json(line))
                    except ValidationError:
                        logger.debug(f"Skipping unreadable audit line {lineno}")
        except OSError as e:
            logger.error(f"Failed to read audit log {self.log_path}: {e}")
            return []

        return list(recent)
