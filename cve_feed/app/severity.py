"""심각도 정규화(Severity resolution over the CVSS v2 / v3.1 score union)."""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from .models import BothScores, ResolvedSeverity, V2Scores, V31Scores, VulnerabilityRecord

SEVERITY_BUCKETS = ("Low", "Medium", "High", "Critical")


def resolve_severity(record: VulnerabilityRecord) -> Optional[ResolvedSeverity]:
    """레코드의 대표 심각도 반환(Return the record's caller-facing severity).

    v3.1 wins over v2 and only the first entry of a collection counts. The label is
    returned with its original casing. ``None`` means no severity is available.
    """
    scores = record.scores

    if isinstance(scores, (V31Scores, BothScores)):
        entry = scores.v31[0]
        return ResolvedSeverity(label=entry.base_severity, score=entry.base_score, schema_version="3.1")

    if isinstance(scores, V2Scores):
        entry = scores.v2[0]
        return ResolvedSeverity(label=entry.base_severity, score=entry.base_score, schema_version="2.0")

    return None


def count_by_severity(records: Iterable[VulnerabilityRecord]) -> Dict[str, int]:
    """심각도별 개수 집계(Count records per severity bucket, case-insensitively).

    Records without a severity, or with a label outside the four buckets, are
    left out.
    """
    counts = {bucket: 0 for bucket in SEVERITY_BUCKETS}
    lookup = {bucket.lower(): bucket for bucket in SEVERITY_BUCKETS}

    for record in records:
        resolved = resolve_severity(record)
        if resolved is None:
            continue
        bucket = lookup.get(resolved.label.strip().lower())
        if bucket is not None:
            counts[bucket] += 1
    return counts
