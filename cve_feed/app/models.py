"""CVE 피드 데이터 모델(CVE feed data models).

Wire names from the NVD CVE API 2.0 are kept as aliases; attributes are
snake_case. The ``metrics`` object of a CVE is folded into a tagged
:data:`ScoreUnion` when the record is validated.
"""
from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

NVD_DETAIL_URL = "https://nvd.nist.gov/vuln/detail/{cve_id}"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CVEDescription(_WireModel):
    """언어별 설명(Language-tagged description)."""

    lang: str
    value: str


class CVSSV2Data(_WireModel):
    version: Optional[str] = None
    base_score: Optional[float] = Field(default=None, alias="baseScore")


class CVSSMetricV2(_WireModel):
    """CVSS v2 점수 항목(CVSS v2 score entry).

    In the v2 schema the severity label sits on the entry itself.
    """

    source: str
    base_severity: str = Field(alias="baseSeverity")
    type: str
    cvss_data: Optional[CVSSV2Data] = Field(default=None, alias="cvssData")

    @property
    def base_score(self) -> Optional[float]:
        return self.cvss_data.base_score if self.cvss_data else None


class CVSSV31Data(_WireModel):
    version: str
    base_severity: str = Field(alias="baseSeverity")
    base_score: Optional[float] = Field(default=None, alias="baseScore")


class CVSSMetricV31(_WireModel):
    """CVSS v3.1 점수 항목(CVSS v3.1 score entry).

    The severity label lives in the nested ``cvssData`` block.
    """

    source: str
    type: str
    cvss_data: CVSSV31Data = Field(alias="cvssData")

    @property
    def base_severity(self) -> str:
        return self.cvss_data.base_severity

    @property
    def base_score(self) -> Optional[float]:
        return self.cvss_data.base_score


class NoScores(_WireModel):
    kind: Literal["none"] = "none"


class V2Scores(_WireModel):
    kind: Literal["v2"] = "v2"
    v2: List[CVSSMetricV2] = Field(min_length=1)


class V31Scores(_WireModel):
    kind: Literal["v31"] = "v31"
    v31: List[CVSSMetricV31] = Field(min_length=1)


class BothScores(_WireModel):
    kind: Literal["both"] = "both"
    v31: List[CVSSMetricV31] = Field(min_length=1)
    v2: List[CVSSMetricV2] = Field(min_length=1)


ScoreUnion = Annotated[
    Union[NoScores, V2Scores, V31Scores, BothScores],
    Field(discriminator="kind"),
]


def fold_metrics(metrics: Any) -> Any:
    """메트릭 객체를 태그 유니온으로 변환(Fold a wire ``metrics`` object into ScoreUnion input).

    Absent and empty collections count as missing. Schemas other than v2 and v3.1
    are ignored. Non-dict input is returned unchanged so validation reports it.
    """
    if not isinstance(metrics, dict):
        return metrics

    v2 = metrics.get("cvssMetricV2")
    v31 = metrics.get("cvssMetricV31")
    # None and [] are both "not present"; anything else goes to validation as-is
    has_v2 = v2 is not None and v2 != []
    has_v31 = v31 is not None and v31 != []

    if has_v31 and has_v2:
        return {"kind": "both", "v31": v31, "v2": v2}
    if has_v31:
        return {"kind": "v31", "v31": v31}
    if has_v2:
        return {"kind": "v2", "v2": v2}
    return {"kind": "none"}


class VulnerabilityRecord(_WireModel):
    """취약점 레코드(A single CVE as returned by the feed)."""

    id: str
    source_identifier: str = Field(alias="sourceIdentifier")
    published: str
    last_modified: str = Field(alias="lastModified")
    vuln_status: str = Field(alias="vulnStatus")
    descriptions: List[CVEDescription]
    scores: ScoreUnion

    @model_validator(mode="before")
    @classmethod
    def _fold_wire_metrics(cls, data: Any) -> Any:
        if isinstance(data, dict) and "metrics" in data and "scores" not in data:
            data = dict(data)
            data["scores"] = fold_metrics(data.pop("metrics"))
        return data

    def description(self, lang: str = "en") -> Optional[str]:
        """Return the first description in ``lang``, if any."""
        for entry in self.descriptions:
            if entry.lang == lang:
                return entry.value
        return None

    @property
    def nvd_url(self) -> str:
        return NVD_DETAIL_URL.format(cve_id=self.id)


class _VulnerabilityContainer(_WireModel):
    cve: VulnerabilityRecord


class FeedPage(_WireModel):
    """조회 결과 페이지(Records of one query plus the remote total for its filter).

    ``total_results`` is what the remote system reported for the query's filter,
    not ``len(records)``.
    """

    records: List[VulnerabilityRecord]
    total_results: int = Field(ge=0)

    @classmethod
    def from_nvd(cls, payload: Any) -> "FeedPage":
        """NVD 응답 본문에서 페이지 생성(Build a page from a decoded NVD response body).

        Raises:
            pydantic.ValidationError: if the body does not have the expected shape
        """
        envelope = _NVDEnvelope.model_validate(payload)
        return cls(
            records=[item.cve for item in envelope.vulnerabilities],
            total_results=envelope.total_results,
        )


class _NVDEnvelope(_WireModel):
    vulnerabilities: List[_VulnerabilityContainer]
    total_results: int = Field(alias="totalResults", ge=0)


class WindowedPage(FeedPage):
    """최근 기준 윈도우 페이지(A page addressed backward from the newest record).

    ``probe_total_results`` is the total seen by the probe call that chose
    ``start_index``; ``total_results`` is the total reported by the fetch call.
    A non-zero :attr:`total_drift` means records were added or removed between
    the two calls and the window may be shifted by that many records.
    """

    page: int
    requested_amount: int
    start_index: int
    probe_total_results: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_drift(self) -> int:
        return self.total_results - self.probe_total_results


class ResolvedSeverity(_WireModel):
    """정규화된 심각도(Caller-facing severity label and optional base score)."""

    label: str
    score: Optional[float] = None
    schema_version: Literal["3.1", "2.0"]


class Subscription(BaseModel):
    """구독 정보(Subscription of an owner to a CPE)."""

    owner_id: int
    cpe: str


class SubscriptionInput(BaseModel):
    """구독 요청 모델(Input model for subscribing to a CPE)."""

    owner_id: int = Field(..., description="구독자 식별자(Subscriber identifier)")
    cpe: str = Field(..., description="CPE 2.3 문자열(CPE 2.3 formatted string)")


class DigestEntry(BaseModel):
    """구독 CPE별 변경 목록(Changed records for one subscribed CPE)."""

    cpe: str
    page: FeedPage
