"""
Deduplicator — collapses records sharing an id into one representative.

The representative keeps the first-seen record's fields, takes the maximum
severity of the group and the union of provenance. Groups whose members
disagree on category are excluded and reported as conflicts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from riskgate.core.errors import ConflictingClassificationError
from riskgate.models.normalized_models import NormalizedRecord, max_severity
from riskgate.models.report_models import ConflictEntry

logger = logging.getLogger("riskgate.core.deduplicator")


@dataclass
class DeduplicationResult:
    records: list[NormalizedRecord] = field(default_factory=list)
    conflicts: list[ConflictEntry] = field(default_factory=list)


def _ordered_union(*lists: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for items in lists:
        for item in items:
            seen.setdefault(item, None)
    return list(seen)


def merge_group(group: list[NormalizedRecord]) -> NormalizedRecord:
    """
    Merge records that share an id.

    Raises:
        ConflictingClassificationError: if the group spans more than one category.
    """
    first = group[0]
    severity = max_severity(*(r.severity for r in group))
    provenance = _ordered_union(*(r.provenance for r in group))

    categories = list(dict.fromkeys(r.category for r in group))
    if len(categories) > 1:
        raise ConflictingClassificationError(
            record_id=first.id,
            locator=first.locator,
            categories=categories,
            provenance=provenance,
            severity=severity,
        )

    if len(group) == 1:
        return first
    return first.model_copy(
        update={
            "severity": severity,
            "provenance": provenance,
            "sensitive_fields_touched": sorted(
                set().union(*(r.sensitive_fields_touched for r in group))
            ),
        }
    )


def deduplicate(records: list[NormalizedRecord]) -> DeduplicationResult:
    """
    Group by id and merge each group.

    Output keeps the first-seen order of ids. Idempotent: running it on its
    own output merges nothing further.
    """
    groups: dict[str, list[NormalizedRecord]] = {}
    for record in records:
        groups.setdefault(record.id, []).append(record)

    result = DeduplicationResult()
    for record_id, group in groups.items():
        try:
            result.records.append(merge_group(group))
        except ConflictingClassificationError as e:
            logger.warning(f"Conflicting classification for {record_id}: {e}")
            result.conflicts.append(e.to_entry())

    merged = len(records) - len(result.records) - sum(
        len(groups[c.id]) for c in result.conflicts
    )
    if merged:
        logger.debug(f"Merged {merged} duplicate records into {len(result.records)}")
    return result
