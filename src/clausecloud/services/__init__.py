"""
Business logic services for ClauseCloud.
"""

from clausecloud.services.llm_service import LLMService, get_llm_service
from clausecloud.services.text_extractor import TextExtractor, get_text_extractor
from clausecloud.services.contract_service import ContractService, get_contract_service

__all__ = [
    "LLMService",
    "get_llm_service",
    "TextExtractor",
    "get_text_extractor",
    "ContractService",
    "get_contract_service",
]
