"""
API request and response models.

Field names are camelCase on the wire; both spellings are accepted on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from clausecloud.models.chat import ChatTurn
from clausecloud.models.contract import ContractRecord


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Requests
# =============================================================================


class AnalyzeTextRequest(ApiModel):
    """Pasted contract text. Emptiness is checked by the handler."""

    text: str | None = None
    filename: str | None = Field(default=None, description="Optional display name")


class CompareRequest(ApiModel):
    """Contracts to compare, with optional priority weights for a recommendation."""

    contract_ids: list[str] | None = None
    weights: dict[str, float] | None = None


class ChatMessageRequest(ApiModel):
    contract_id: str | None = None
    message: str | None = None


class RedLinesUpdateRequest(ApiModel):
    # Validated by the settings store so that non-list input maps to a 400
    red_lines: Any = None


class PortfolioQueryRequest(ApiModel):
    query: str | None = None


# =============================================================================
# Responses
# =============================================================================


class SuccessResponse(ApiModel):
    success: bool = True


class MessageResponse(SuccessResponse):
    message: str


class AnalyzeResponse(SuccessResponse):
    contract_id: str
    analysis: dict[str, Any]


class ContractListResponse(SuccessResponse):
    count: int
    contracts: list[ContractRecord]


class ContractSearchResponse(ContractListResponse):
    query: str


class ContractResponse(SuccessResponse):
    contract: ContractRecord


class ComparedContract(ApiModel):
    id: str
    name: str
    analysis: dict[str, Any]


class Comparison(ApiModel):
    contracts: list[ComparedContract]
    recommendation: dict[str, Any]


class ComparisonResponse(SuccessResponse):
    comparison: Comparison


class RecommendationResponse(SuccessResponse):
    recommendation: dict[str, Any]


class ChatMessageResponse(SuccessResponse):
    response: str


class ChatHistoryResponse(SuccessResponse):
    contract_id: str
    history: list[ChatTurn]


class SettingsResponse(SuccessResponse):
    settings: dict[str, Any]


class SettingsUpdateResponse(SettingsResponse):
    message: str


class RedLinesResponse(SuccessResponse):
    message: str
    red_lines: list[dict[str, Any]]


class PortfolioMetrics(ApiModel):
    total_contracts: int
    average_risk: float
    needs_review: int
    total_value: float


class PortfolioMetricsResponse(SuccessResponse):
    metrics: PortfolioMetrics


class PortfolioQueryResponse(SuccessResponse):
    answer: str
    relevant_contracts: list[Any] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    message: str | None = None
    stack: list[str] | None = None
