"""
Contract review orchestration.

Each operation is linear: validate, extract, prompt the model, store, return.
The route handlers only translate HTTP to these calls.
"""

from functools import lru_cache
from typing import Any

import structlog

from clausecloud.config import get_settings
from clausecloud.exceptions import ExtractionError, NotFoundError, ValidationError
from clausecloud.models.chat import ChatRole, ChatTurn
from clausecloud.models.contract import ContractRecord, utcnow
from clausecloud.services.llm_service import LLMService, get_llm_service
from clausecloud.services.risk import portfolio_metrics
from clausecloud.services.text_extractor import (
    TEXT_TYPE,
    TextExtractor,
    get_text_extractor,
    is_blank,
)
from clausecloud.storage.chat_store import PORTFOLIO_CHAT_KEY, ChatStore, get_chat_store
from clausecloud.storage.contract_store import ContractStore, get_contract_store
from clausecloud.storage.settings_store import SettingsStore, get_settings_store

logger = structlog.get_logger(__name__)

PASTED_TEXT_FILENAME = "Pasted Text Contract"
MIN_COMPARED_CONTRACTS = 2


class ContractService:
    """
    Service behind the contract, chat and portfolio endpoints.

    Collaborators are resolved lazily from their ``get_*`` accessors so tests
    can swap any of them.
    """

    def __init__(self):
        self.settings = get_settings()
        self._llm: LLMService | None = None
        self._extractor: TextExtractor | None = None
        self._contracts: ContractStore | None = None
        self._chats: ChatStore | None = None
        self._settings_store: SettingsStore | None = None

    @property
    def llm(self) -> LLMService:
        if self._llm is None:
            self._llm = get_llm_service()
        return self._llm

    @property
    def extractor(self) -> TextExtractor:
        if self._extractor is None:
            self._extractor = get_text_extractor()
        return self._extractor

    @property
    def contracts(self) -> ContractStore:
        if self._contracts is None:
            self._contracts = get_contract_store()
        return self._contracts

    @property
    def chats(self) -> ChatStore:
        if self._chats is None:
            self._chats = get_chat_store()
        return self._chats

    @property
    def settings_store(self) -> SettingsStore:
        if self._settings_store is None:
            self._settings_store = get_settings_store()
        return self._settings_store

    # =========================================================================
    # Analysis
    # =========================================================================

    async def analyze_upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> tuple[str, dict[str, Any]]:
        """Extract text from an uploaded file, analyze it and store the contract."""
        text = await self.extractor.extract(data, content_type)
        if is_blank(text):
            logger.warning("extraction_empty", filename=filename, content_type=content_type)
            raise ExtractionError("Could not extract text from file")

        return await self._analyze_and_store(
            text,
            filename=filename,
            content_type=content_type,
            size_bytes=len(data),
        )

    async def analyze_text(
        self,
        text: str | None,
        filename: str | None = None,
    ) -> tuple[str, dict[str, Any]]:
        """Analyze pasted contract text and store it."""
        if text is None or is_blank(text):
            raise ValidationError("Contract text is required")

        return await self._analyze_and_store(
            text,
            filename=filename or PASTED_TEXT_FILENAME,
            content_type=TEXT_TYPE,
            size_bytes=len(text.encode("utf-8")),
        )

    async def _analyze_and_store(
        self,
        text: str,
        filename: str,
        content_type: str,
        size_bytes: int,
    ) -> tuple[str, dict[str, Any]]:
        analysis = await self.llm.analyze_contract(
            text, self.settings_store.analysis_context()
        )

        contract_id = self.contracts.add(
            {
                "filename": filename,
                "upload_date": utcnow(),
                "text": text,
                "analysis": analysis,
                "content_type": content_type,
                "size_bytes": size_bytes,
                "word_count": len(text.split()),
            }
        )

        logger.info(
            "contract_analyzed",
            contract_id=contract_id,
            filename=filename,
            risk_level=analysis.get("riskLevel"),
            risk_score=analysis.get("riskScore"),
        )
        return contract_id, analysis

    async def reanalyze(self, contract_id: str) -> dict[str, Any]:
        """Re-run the analysis with the current settings, replacing the old one."""
        contract = self.get_contract(contract_id)
        analysis = await self.llm.analyze_contract(
            contract.text, self.settings_store.analysis_context()
        )
        self.contracts.update(contract_id, {"analysis": analysis})
        logger.info("contract_reanalyzed", contract_id=contract_id)
        return analysis

    # =========================================================================
    # Retrieval
    # =========================================================================

    def list_contracts(self) -> list[ContractRecord]:
        return self.contracts.get_all()

    def get_contract(self, contract_id: str) -> ContractRecord:
        contract = self.contracts.get_by_id(contract_id)
        if contract is None:
            raise NotFoundError("Contract not found")
        return contract

    def delete_contract(self, contract_id: str) -> None:
        if not self.contracts.delete(contract_id):
            raise NotFoundError("Contract not found")
        logger.info("contract_deleted", contract_id=contract_id)

    def search_contracts(self, query: str | None) -> list[ContractRecord]:
        if query is None or is_blank(query):
            raise ValidationError("Search query is required")
        return self.contracts.search(query.strip())

    # =========================================================================
    # Comparison
    # =========================================================================

    def _resolve_for_comparison(self, contract_ids: list[str] | None) -> list[ContractRecord]:
        """
        Look up the contracts to compare, in request order.

        Duplicate ids count once; unknown ids are skipped as long as at least
        two contracts remain.
        """
        unique_ids = list(dict.fromkeys(contract_ids or []))
        if len(unique_ids) < MIN_COMPARED_CONTRACTS:
            raise ValidationError("At least 2 contract IDs are required")

        contracts = [
            c for c in (self.contracts.get_by_id(cid) for cid in unique_ids) if c is not None
        ]
        if len(contracts) < MIN_COMPARED_CONTRACTS:
            raise NotFoundError("One or more contracts not found")

        missing = len(unique_ids) - len(contracts)
        if missing:
            logger.warning("comparison_contracts_missing", requested=len(unique_ids), missing=missing)
        return contracts

    async def compare(self, contract_ids: list[str] | None) -> dict[str, Any]:
        """Side-by-side analyses plus the model's recommendation."""
        contracts = self._resolve_for_comparison(contract_ids)
        recommendation = await self.llm.compare_contracts(
            contracts, self.settings_store.analysis_context()
        )

        logger.info(
            "contracts_compared",
            contracts=len(contracts),
            best_choice=recommendation.get("bestChoiceId"),
        )
        return {
            "contracts": [
                {"id": c.id, "name": c.filename, "analysis": c.analysis} for c in contracts
            ],
            "recommendation": recommendation,
        }

    async def recommend(
        self,
        contract_ids: list[str] | None,
        weights: dict[str, float] | None = None,
    ) -> dict[str, Any]:
        """The model's pick among several contracts, optionally weighted."""
        contracts = self._resolve_for_comparison(contract_ids)
        recommendation = await self.llm.compare_contracts(
            contracts, self.settings_store.analysis_context(), weights=weights
        )
        logger.info(
            "recommendation_generated",
            contracts=len(contracts),
            weighted=bool(weights),
            best_choice=recommendation.get("bestChoiceId"),
        )
        return recommendation

    # =========================================================================
    # Chat
    # =========================================================================

    async def send_message(self, contract_id: str | None, message: str | None) -> str:
        """
        Ask a question about a contract and record both turns.

        The per-contract lock is held from reading the history until both
        turns are appended.
        """
        if not contract_id or message is None or is_blank(message):
            raise ValidationError("Contract ID and message are required")

        contract = self.get_contract(contract_id)

        async with self.chats.lock(contract_id):
            asked_at = utcnow()
            history = self.chats.get_history(contract_id)
            response = await self.llm.chat(
                contract.text, contract.analysis, message, history
            )

            self.chats.add_message(
                contract_id, ChatTurn(role=ChatRole.USER, content=message, timestamp=asked_at)
            )
            self.chats.add_message(
                contract_id, ChatTurn(role=ChatRole.ASSISTANT, content=response)
            )

        logger.info("chat_message_answered", contract_id=contract_id, turns=len(history) + 2)
        return response

    def get_history(self, key: str) -> list[ChatTurn]:
        return self.chats.get_history(key)

    def clear_history(self, key: str) -> None:
        self.chats.clear_history(key)
        logger.info("chat_history_cleared", key=key)

    # =========================================================================
    # Portfolio
    # =========================================================================

    def portfolio_metrics(self) -> dict[str, Any]:
        return portfolio_metrics(self.contracts.get_all())

    async def portfolio_query(self, query: str | None) -> dict[str, Any]:
        """Answer a question across all stored contracts."""
        if query is None or is_blank(query):
            raise ValidationError("Query is required")

        contracts = self.contracts.get_all()
        async with self.chats.lock(PORTFOLIO_CHAT_KEY):
            asked_at = utcnow()
            result = await self.llm.answer_portfolio_query(query, contracts)
            self.chats.add_message(
                PORTFOLIO_CHAT_KEY,
                ChatTurn(role=ChatRole.USER, content=query, timestamp=asked_at),
            )
            self.chats.add_message(
                PORTFOLIO_CHAT_KEY,
                ChatTurn(role=ChatRole.ASSISTANT, content=result["answer"]),
            )

        logger.info(
            "portfolio_query_answered",
            contracts=len(contracts),
            relevant=len(result["relevantContracts"]),
        )
        return result


@lru_cache()
def get_contract_service() -> ContractService:
    """Get cached contract service instance."""
    return ContractService()
