"""
Company settings models: profile, red lines, risk tolerance and preferences.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel


class CompanyInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    industry: str = ""
    size: str = ""


class RedLine(BaseModel):
    """A non-negotiable policy rule checked against contract language."""

    model_config = ConfigDict(extra="allow")

    id: int | str
    label: str
    enabled: StrictBool


class ToleranceBand(BaseModel):
    """Thresholds for one negotiable term (days or months)."""

    model_config = ConfigDict(extra="allow")

    preferred: float
    acceptable: float
    flag: float


class CompanySettings(BaseModel):
    """
    Process-wide company settings.

    Unknown top-level keys are kept so that clients can store their own
    preferences next to the known ones.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    company: CompanyInfo = Field(default_factory=CompanyInfo)
    red_lines: list[RedLine] = Field(default_factory=list)
    risk_tolerance: dict[str, ToleranceBand] = Field(default_factory=dict)
    notifications: dict[str, bool] = Field(default_factory=dict)
    benchmarks: dict[str, bool] = Field(default_factory=dict)

    def active_red_lines(self) -> list[str]:
        """Labels of the enabled red lines, in order."""
        return [rl.label for rl in self.red_lines if rl.enabled]

    def analysis_context(self) -> dict[str, Any]:
        """Projection of the settings that is embedded into prompts."""
        return {
            "redLines": self.active_red_lines(),
            "riskTolerance": {
                key: band.model_dump() for key, band in self.risk_tolerance.items()
            },
            "companyInfo": self.company.model_dump(),
        }


def default_company_settings() -> CompanySettings:
    """Settings a fresh process starts with."""
    return CompanySettings(
        company=CompanyInfo(name="TechStartup Inc.", industry="saas", size="50-200"),
        red_lines=[
            RedLine(id=1, label="Never accept unlimited liability", enabled=True),
            RedLine(id=2, label="Liability cap must be ≤ 2x contract value", enabled=True),
            RedLine(id=3, label="Payment terms must be ≤ Net 45", enabled=True),
            RedLine(id=4, label="Auto-renewal notice must be ≤ 60 days", enabled=True),
            RedLine(id=5, label="No exclusive partnerships", enabled=True),
            RedLine(id=6, label="Must include data breach notification", enabled=False),
            RedLine(id=7, label="Require right to audit vendor", enabled=False),
        ],
        risk_tolerance={
            "paymentTerms": ToleranceBand(preferred=30, acceptable=45, flag=60),
            "terminationNotice": ToleranceBand(preferred=30, acceptable=60, flag=90),
            "contractLength": ToleranceBand(preferred=12, acceptable=24, flag=36),
        },
        notifications={
            "expiringContracts": True,
            "redLineViolations": True,
            "weeklyDigest": False,
        },
        benchmarks={
            "ownHistory": True,
            "saasIndustry": True,
            "healthcare": False,
            "financial": False,
        },
    )
