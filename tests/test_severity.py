"""Unit tests for severity resolution and bucket counting."""

from cve_feed.app.models import BothScores, NoScores, V2Scores, V31Scores, VulnerabilityRecord
from cve_feed.app.severity import SEVERITY_BUCKETS, count_by_severity, resolve_severity

from tests.conftest import make_cve, v2_entry, v31_entry


def _record(**kwargs) -> VulnerabilityRecord:
    return VulnerabilityRecord.model_validate(make_cve(**kwargs))


class TestResolveSeverity:
    """Test resolve_severity precedence rules."""

    def test_v31_only(self):
        record = _record(v31=[v31_entry("HIGH", 8.8)])
        assert isinstance(record.scores, V31Scores)

        resolved = resolve_severity(record)
        assert resolved is not None
        assert resolved.label == "HIGH"
        assert resolved.score == 8.8
        assert resolved.schema_version == "3.1"

    def test_v2_only(self):
        record = _record(v2=[v2_entry("MEDIUM", 4.3)])
        assert isinstance(record.scores, V2Scores)

        resolved = resolve_severity(record)
        assert resolved is not None
        assert resolved.label == "MEDIUM"
        assert resolved.score == 4.3
        assert resolved.schema_version == "2.0"

    def test_no_metrics_is_unavailable(self):
        record = _record()
        assert isinstance(record.scores, NoScores)
        assert resolve_severity(record) is None

    def test_v31_wins_when_both_present(self):
        record = _record(v31=[v31_entry("CRITICAL", 9.8)], v2=[v2_entry("HIGH", 7.5)])
        assert isinstance(record.scores, BothScores)

        resolved = resolve_severity(record)
        assert resolved.label == "CRITICAL"
        assert resolved.score == 9.8

    def test_first_entry_is_authoritative(self):
        record = _record(v31=[v31_entry("LOW", 3.1), v31_entry("HIGH", 7.5)])
        assert resolve_severity(record).label == "LOW"

    def test_empty_v31_falls_back_to_v2(self):
        record = _record(v31=[], v2=[v2_entry("LOW", 2.1)])
        assert isinstance(record.scores, V2Scores)
        assert resolve_severity(record).label == "LOW"

    def test_empty_collections_are_unavailable(self):
        record = _record(v31=[], v2=[])
        assert resolve_severity(record) is None

    def test_label_casing_is_preserved(self):
        record = _record(v2=[v2_entry("Medium")])
        assert resolve_severity(record).label == "Medium"

    def test_missing_score_is_none_not_zero(self):
        record = _record(v31=[v31_entry("HIGH", score=None)])
        resolved = resolve_severity(record)
        assert resolved.label == "HIGH"
        assert resolved.score is None


class TestCountBySeverity:
    """Test count_by_severity bucket aggregation."""

    def test_buckets_are_case_insensitive(self):
        records = [
            _record(cve_id="CVE-2021-0001", v31=[v31_entry("low")]),
            _record(cve_id="CVE-2021-0002", v31=[v31_entry("LOW")]),
            _record(cve_id="CVE-2021-0003", v2=[v2_entry("Low")]),
            _record(cve_id="CVE-2021-0004", v31=[v31_entry("CRITICAL")]),
            _record(cve_id="CVE-2021-0005", v2=[v2_entry("HIGH")]),
        ]
        counts = count_by_severity(records)
        assert counts == {"Low": 3, "Medium": 0, "High": 1, "Critical": 1}

    def test_unrated_and_unknown_labels_are_skipped(self):
        records = [
            _record(cve_id="CVE-2021-0001"),
            _record(cve_id="CVE-2021-0002", v31=[v31_entry("NONE")]),
            _record(cve_id="CVE-2021-0003", v2=[v2_entry("MEDIUM")]),
        ]
        counts = count_by_severity(records)
        assert counts["Medium"] == 1
        assert sum(counts.values()) == 1

    def test_bucket_order(self):
        assert tuple(count_by_severity([]).keys()) == SEVERITY_BUCKETS
