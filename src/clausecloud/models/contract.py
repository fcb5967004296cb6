"""
Contract models: stored contract records and the LLM analysis result.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class RiskLevel(str, Enum):
    """Risk buckets the analysis prompt asks the model for."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Issue(BaseModel):
    """A flagged clause, with the section it was found in."""

    model_config = ConfigDict(extra="allow")

    title: str
    description: str = ""
    section: str | None = None
    citation: str | None = None
    recommendation: str | None = None


class AnalysisResult(BaseModel):
    """
    Structured analysis of a single contract.

    The model returns this shape as JSON. It is only enforced when
    ``STRICT_ANALYSIS_SCHEMA`` is on; otherwise the parsed object is stored as
    returned and this class documents the expected keys.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        use_enum_values=True,
    )

    contract_type: str
    parties: str = ""
    term: str = ""
    auto_renews: bool = False
    value: str = ""
    risk_level: RiskLevel
    risk_score: float = Field(..., ge=0)
    critical_issues: list[Issue] = Field(default_factory=list)
    moderate_concerns: list[Issue] = Field(default_factory=list)
    favorable_terms: list[str] = Field(default_factory=list)
    key_insights: str = ""


class ContractRecord(BaseModel):
    """
    A contract held by the contract store.

    ``text`` is the full extracted text and never changes after creation;
    ``analysis`` may be replaced wholesale by a re-analysis.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    filename: str
    upload_date: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
    text: str
    analysis: dict[str, Any] = Field(default_factory=dict)

    # Metadata
    content_type: str = "text/plain"
    size_bytes: int | None = None
    word_count: int | None = None

    @property
    def risk_score(self) -> float:
        """Model-reported risk score, 0 when missing or not numeric."""
        score = self.analysis.get("riskScore")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            return 0.0
        return float(score)

    @property
    def risk_level(self) -> str | None:
        level = self.analysis.get("riskLevel")
        return str(level).lower() if level else None

    def searchable_text(self) -> str:
        """Lowercased filename, text and serialized analysis for substring search."""
        import json

        analysis = json.dumps(self.analysis, default=str, ensure_ascii=False)
        return "\n".join([self.filename, self.text, analysis]).lower()
