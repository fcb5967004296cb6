"""
Portfolio-wide metrics and question routes.
"""

import structlog
from fastapi import APIRouter

from clausecloud.models.api import (
    PortfolioMetrics,
    PortfolioMetricsResponse,
    PortfolioQueryRequest,
    PortfolioQueryResponse,
)
from clausecloud.services.contract_service import get_contract_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/metrics", response_model=PortfolioMetricsResponse)
async def get_portfolio_metrics() -> PortfolioMetricsResponse:
    """
    Contract count, average risk score, high-risk count and total value.
    """
    metrics = get_contract_service().portfolio_metrics()
    return PortfolioMetricsResponse(metrics=PortfolioMetrics(**metrics))


@router.post("/query", response_model=PortfolioQueryResponse)
async def portfolio_query(request: PortfolioQueryRequest) -> PortfolioQueryResponse:
    """
    Ask a question about the entire portfolio.
    """
    result = await get_contract_service().portfolio_query(request.query)
    return PortfolioQueryResponse(
        answer=result["answer"],
        relevant_contracts=result["relevantContracts"],
    )
