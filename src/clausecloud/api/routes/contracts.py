"""
Contract analysis, management and comparison routes.
"""

from dataclasses import dataclass

import structlog
from fastapi import APIRouter, Depends, File, Query, UploadFile

from clausecloud.config import get_settings
from clausecloud.exceptions import UploadTooLargeError, ValidationError
from clausecloud.models.api import (
    AnalyzeResponse,
    AnalyzeTextRequest,
    CompareRequest,
    Comparison,
    ComparisonResponse,
    ContractListResponse,
    ContractResponse,
    ContractSearchResponse,
    MessageResponse,
    RecommendationResponse,
)
from clausecloud.services.contract_service import get_contract_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@dataclass
class UploadedContract:
    data: bytes
    filename: str
    content_type: str


async def read_upload(
    contract: UploadFile | None = File(default=None),
) -> UploadedContract:
    """
    Validate the ``contract`` multipart field before any analysis runs.

    Rejects missing files, unsupported MIME types and oversized uploads.
    """
    settings = get_settings()

    if contract is None:
        raise ValidationError("No file uploaded")

    content_type = (contract.content_type or "").split(";")[0].strip().lower()
    if content_type not in settings.allowed_upload_types:
        raise ValidationError(
            "Invalid file type. Only PDF, JPEG, PNG, and TXT files are allowed."
        )

    limit = settings.max_file_size_bytes
    data = await contract.read(limit + 1)
    if len(data) > limit:
        raise UploadTooLargeError(
            f"File too large. Maximum size is {settings.max_file_size_mb} MB."
        )

    return UploadedContract(
        data=data,
        filename=contract.filename or "contract",
        content_type=content_type,
    )


# =============================================================================
# Analysis
# =============================================================================


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_contract(
    upload: UploadedContract = Depends(read_upload),
) -> AnalyzeResponse:
    """
    Upload a contract file (PDF, image or text) and analyze it.
    """
    service = get_contract_service()
    contract_id, analysis = await service.analyze_upload(
        upload.data, upload.filename, upload.content_type
    )
    return AnalyzeResponse(contract_id=contract_id, analysis=analysis)


@router.post("/analyze-text", response_model=AnalyzeResponse)
async def analyze_text_contract(request: AnalyzeTextRequest) -> AnalyzeResponse:
    """
    Analyze pasted contract text.
    """
    service = get_contract_service()
    contract_id, analysis = await service.analyze_text(request.text, request.filename)
    return AnalyzeResponse(contract_id=contract_id, analysis=analysis)


# =============================================================================
# Management
# =============================================================================


@router.get("", response_model=ContractListResponse)
async def list_contracts() -> ContractListResponse:
    """
    List all analyzed contracts.
    """
    contracts = get_contract_service().list_contracts()
    return ContractListResponse(count=len(contracts), contracts=contracts)


@router.get("/search", response_model=ContractSearchResponse)
async def search_contracts(
    q: str | None = Query(default=None, description="Case-insensitive substring"),
) -> ContractSearchResponse:
    """
    Search filenames, contract text and analyses.
    """
    contracts = get_contract_service().search_contracts(q)
    return ContractSearchResponse(
        query=q.strip(), count=len(contracts), contracts=contracts
    )


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(contract_id: str) -> ContractResponse:
    """
    Get a contract with its text and analysis.
    """
    return ContractResponse(contract=get_contract_service().get_contract(contract_id))


@router.delete("/{contract_id}", response_model=MessageResponse)
async def delete_contract(contract_id: str) -> MessageResponse:
    """
    Delete a contract.
    """
    get_contract_service().delete_contract(contract_id)
    return MessageResponse(message="Contract deleted successfully")


@router.post("/{contract_id}/reanalyze", response_model=AnalyzeResponse)
async def reanalyze_contract(contract_id: str) -> AnalyzeResponse:
    """
    Re-run the analysis against the current company settings.
    """
    analysis = await get_contract_service().reanalyze(contract_id)
    return AnalyzeResponse(contract_id=contract_id, analysis=analysis)


# =============================================================================
# Comparison
# =============================================================================


@router.post("/compare", response_model=ComparisonResponse)
async def compare_contracts(request: CompareRequest) -> ComparisonResponse:
    """
    Compare two or more contracts side by side with a recommendation.
    """
    comparison = await get_contract_service().compare(request.contract_ids)
    return ComparisonResponse(comparison=Comparison.model_validate(comparison))


@router.post("/recommendation", response_model=RecommendationResponse)
async def get_recommendation(request: CompareRequest) -> RecommendationResponse:
    """
    Recommend the best contract, optionally weighting decision priorities.
    """
    recommendation = await get_contract_service().recommend(
        request.contract_ids, request.weights
    )
    return RecommendationResponse(recommendation=recommendation)
