"""
Pydantic models for ClauseCloud.

- Contract models for stored records and the LLM analysis shape
- Chat models for conversation turns
- Settings models for the company profile and red lines
- API models for request/response schemas
"""

from clausecloud.models.contract import (
    AnalysisResult,
    ContractRecord,
    Issue,
    RiskLevel,
)
from clausecloud.models.chat import ChatRole, ChatTurn
from clausecloud.models.settings import (
    CompanyInfo,
    CompanySettings,
    RedLine,
    ToleranceBand,
    default_company_settings,
)

__all__ = [
    # Contract models
    "AnalysisResult",
    "ContractRecord",
    "Issue",
    "RiskLevel",
    # Chat models
    "ChatRole",
    "ChatTurn",
    # Settings models
    "CompanyInfo",
    "CompanySettings",
    "RedLine",
    "ToleranceBand",
    "default_company_settings",
]
