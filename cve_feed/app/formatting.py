"""콘솔용 텍스트 요약(Plain-text rendering for the console front end)."""
from __future__ import annotations

from typing import Dict, Iterable, List

from .models import DigestEntry, FeedPage, VulnerabilityRecord
from .severity import resolve_severity


def summarize_record(record: VulnerabilityRecord) -> str:
    resolved = resolve_severity(record)
    if resolved is None:
        return f"{record.id} - NO METRIC AVAILABLE"
    score = "_" if resolved.score is None else f"{resolved.score}"
    return f"{record.id} - {resolved.label} - {score}"


def summarize_page(page: FeedPage) -> str:
    """페이지 요약(One line per record: id, severity and score)."""
    return "\n".join(summarize_record(record) for record in page.records)


def describe_record(record: VulnerabilityRecord) -> str:
    """CVE 상세 텍스트(Description, severity, base score and NVD link)."""
    lines: List[str] = [f"{record.id} :", ""]

    description = record.description("en")
    if description is not None:
        lines.extend([f"Description: {description}", ""])

    resolved = resolve_severity(record)
    lines.append(f"Severity: {resolved.label if resolved else 'None'}")
    if resolved is not None and resolved.score is not None:
        lines.append(f"Base score: {resolved.score}")
    else:
        lines.append("Base score unavailable")

    lines.append(f"NVD Link: {record.nvd_url}")
    return "\n".join(lines)


def summarize_digest(entries: Iterable[DigestEntry], days: int) -> str:
    blocks = [f"Updated CVEs for the latest {days} days:"]
    for entry in entries:
        body = summarize_page(entry.page) or "(no changes)"
        blocks.append(f"{entry.cpe} :\n{body}\n")
    return "\n".join(blocks)


def format_severity_counts(counts: Dict[str, int]) -> str:
    return "\n".join(f"{label}: {count}" for label, count in counts.items())
