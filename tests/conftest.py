"""Shared pytest fixtures and mocks for the ClauseCloud test suite."""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest


# ---------------------------------------------------------------------------
# Environment and singleton cache clearing (autouse)
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Isolated settings: no API keys, default limits."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    for key in (
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "LLM_PROVIDER",
        "DEBUG",
        "IMAGE_EXTRACTION_MODE",
        "MAX_FILE_SIZE_MB",
        "CHAT_HISTORY_MAX_TURNS",
        "LLM_JSON_REPAIR_ATTEMPTS",
        "LLM_MAX_ATTEMPTS",
        "STRICT_ANALYSIS_SCHEMA",
        "RATE_LIMIT_WINDOW_MS",
        "RATE_LIMIT_MAX_REQUESTS",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def clear_singletons(test_env):
    """Clear all @lru_cache singletons between tests."""
    from clausecloud.config import get_settings
    from clausecloud.services.contract_service import get_contract_service
    from clausecloud.services.llm_service import get_llm_service
    from clausecloud.services.text_extractor import get_text_extractor
    from clausecloud.storage.chat_store import get_chat_store
    from clausecloud.storage.contract_store import get_contract_store
    from clausecloud.storage.settings_store import get_settings_store

    caches = [
        get_settings,
        get_contract_service,
        get_llm_service,
        get_text_extractor,
        get_chat_store,
        get_contract_store,
        get_settings_store,
    ]
    for cached in caches:
        cached.cache_clear()
    yield
    for cached in caches:
        cached.cache_clear()


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

SAMPLE_ANALYSIS = {
    "contractType": "SaaS Service Agreement",
    "parties": "TechStartup Inc. ↔ CloudVendor LLC",
    "term": "36 months",
    "autoRenews": True,
    "value": "$250,000/year",
    "riskLevel": "medium",
    "riskScore": 7.5,
    "criticalIssues": [
        {
            "title": "Liability cap below contract value",
            "description": "Provider liability is capped at 12 months of fees.",
            "section": "Section 4",
            "citation": "Section 4, Page 1",
            "recommendation": "Negotiate a cap of at least 2x annual fees.",
        },
    ],
    "moderateConcerns": [
        {
            "title": "Late payment interest",
            "description": "1.5% monthly interest on late payments.",
            "section": "Section 2",
        },
        {
            "title": "Auto-renewal notice",
            "description": "60 days notice required to prevent renewal.",
            "section": "Section 10",
        },
    ],
    "favorableTerms": ["99.9% uptime SLA with service credits"],
    "keyInsights": "Standard SaaS terms with a low liability cap.",
}


@pytest.fixture
def sample_analysis():
    """Analysis object as the model would return it."""
    return copy.deepcopy(SAMPLE_ANALYSIS)


@pytest.fixture
def sample_contract_text():
    """Short master services agreement."""
    return """MASTER SERVICES AGREEMENT

This Master Services Agreement is entered into as of January 15, 2025
by and between TechStartup Inc. ("Client") and CloudVendor LLC ("Provider").

1. TERM AND TERMINATION
This Agreement shall continue for thirty-six (36) months.

2. PAYMENT TERMS
Client shall pay Provider $250,000 annually. Late payments accrue 1.5% per month.

4. LIMITATION OF LIABILITY
PROVIDER'S TOTAL LIABILITY SHALL NOT EXCEED THE FEES PAID IN THE PRIOR 12 MONTHS.

10. AUTO-RENEWAL
This Agreement renews for successive 12-month periods unless either party
provides 60 days written notice of non-renewal.
"""


# ---------------------------------------------------------------------------
# Mock service factories
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm_service(monkeypatch, sample_analysis):
    """Mock LLMService avoiding API calls, wired into the contract service."""
    mock = MagicMock()
    mock.analyze_contract = AsyncMock(return_value=sample_analysis)
    mock.chat = AsyncMock(return_value="Section 4 caps liability at 12 months of fees.")
    mock.compare_contracts = AsyncMock(return_value={
        "bestChoiceId": "placeholder",
        "reasoning": ["Lower risk score", "Better SLA"],
        "tradeoffs": "Higher annual cost",
        "alternativeAdvice": {
            "contractId": "placeholder",
            "negotiationItems": ["Raise liability cap"],
            "estimatedImpact": "Would reduce risk to low",
        },
        "tco": {"threeYearCosts": [], "savings": "$30,000"},
    })
    mock.answer_portfolio_query = AsyncMock(return_value={
        "answer": "One contract auto-renews.",
        "relevantContracts": [],
    })
    mock.health_check = MagicMock(return_value={"provider": "mock", "configured": True})

    monkeypatch.setattr("clausecloud.services.contract_service.get_llm_service", lambda: mock)
    monkeypatch.setattr("clausecloud.services.llm_service.get_llm_service", lambda: mock)
    return mock
