"""
Chat / Q&A routes.
"""

import structlog
from fastapi import APIRouter

from clausecloud.models.api import (
    ChatHistoryResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    MessageResponse,
)
from clausecloud.services.contract_service import get_contract_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/message", response_model=ChatMessageResponse)
async def send_message(request: ChatMessageRequest) -> ChatMessageResponse:
    """
    Ask a question about a contract.
    """
    response = await get_contract_service().send_message(
        request.contract_id, request.message
    )
    return ChatMessageResponse(response=response)


@router.get("/history/{contract_id}", response_model=ChatHistoryResponse)
async def get_chat_history(contract_id: str) -> ChatHistoryResponse:
    """
    Get the conversation for a contract, oldest turn first.
    """
    history = get_contract_service().get_history(contract_id)
    return ChatHistoryResponse(contract_id=contract_id, history=history)


@router.delete("/history/{contract_id}", response_model=MessageResponse)
async def clear_chat_history(contract_id: str) -> MessageResponse:
    """
    Clear the conversation for a contract.
    """
    get_contract_service().clear_history(contract_id)
    return MessageResponse(message="Chat history cleared")
