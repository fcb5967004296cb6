"""
Prompt templates for analysis, chat, comparison and portfolio questions.

Every call to the model is self-contained: settings, prior analysis, contract
text and conversation history are re-sent each time.
"""

import json
from typing import Any, Iterable, Sequence

from clausecloud.models.chat import ChatRole, ChatTurn
from clausecloud.models.contract import ContractRecord

CHAT_CONTEXT_MAX_CHARS = 50_000
TRUNCATION_MARKER = "...(truncated)"


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


# =============================================================================
# Analysis
# =============================================================================

ANALYSIS_JSON_SHAPE = """{
  "contractType": "string (e.g., 'SaaS Service Agreement')",
  "parties": "string (e.g., 'CompanyA ↔ CompanyB')",
  "term": "string (e.g., '12 months')",
  "autoRenews": boolean,
  "value": "string (e.g., '$50,000/year')",
  "riskLevel": "string (low|medium|high)",
  "riskScore": number (0-20),
  "criticalIssues": [
    {
      "title": "string",
      "description": "string",
      "section": "string (e.g., 'Section 8.2')",
      "citation": "string (e.g., 'Section 8.2, Page 4')",
      "recommendation": "string"
    }
  ],
  "moderateConcerns": [
    {
      "title": "string",
      "description": "string",
      "section": "string (optional)"
    }
  ],
  "favorableTerms": ["string"],
  "keyInsights": "string - brief summary of main takeaways"
}"""


def build_analysis_prompt(contract_text: str, analysis_settings: dict[str, Any]) -> str:
    """Single-contract analysis prompt. The full text is always included."""
    return f"""You are a contract analysis expert. Analyze this contract and provide a structured analysis.

COMPANY CONTEXT:
{_to_json(analysis_settings)}

CONTRACT TEXT:
{contract_text}

Provide analysis in the following JSON format:
{ANALYSIS_JSON_SHAPE}

Calculate risk score as: (criticalIssues × 3) + (moderateConcerns × 1.5) + (redLineViolations × 5)
- Score ≤ 5: low risk
- Score 6-12: medium risk
- Score ≥ 13: high risk

Flag any violations of the company's red lines. Cite specific sections for every claim.

CRITICAL: Return ONLY valid JSON, no other text."""


# =============================================================================
# Chat
# =============================================================================


def truncate_text(text: str, max_chars: int = CHAT_CONTEXT_MAX_CHARS) -> str:
    """Cut ``text`` to ``max_chars``, appending a marker when anything was dropped."""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]} {TRUNCATION_MARKER}"


def build_chat_system_prompt(
    contract_text: str,
    analysis: dict[str, Any],
    max_chars: int = CHAT_CONTEXT_MAX_CHARS,
) -> str:
    """System context for contract Q&A: prior analysis plus (truncated) text."""
    return f"""You are a helpful contract analysis assistant. You have access to the full contract text and previous analysis. Answer questions accurately and cite specific sections when relevant.

CONTRACT ANALYSIS:
{_to_json(analysis)}

CONTRACT TEXT (for reference):
{truncate_text(contract_text, max_chars)}

When answering:
- Be specific and cite sections
- Explain WHY clauses matter, not just what they say
- Provide actionable recommendations when relevant
- Keep responses concise but thorough"""


def select_history_window(history: Sequence[ChatTurn], max_turns: int) -> list[ChatTurn]:
    """
    Most recent ``max_turns`` turns, starting on a user turn.

    ``max_turns`` of 0 keeps the full history.
    """
    window = list(history[-max_turns:]) if max_turns > 0 else list(history)
    while window and window[0].role != ChatRole.USER.value:
        window.pop(0)
    return window


def build_chat_messages(
    history: Sequence[ChatTurn],
    message: str,
    max_turns: int = 0,
) -> list[dict[str, str]]:
    """Prior turns in order, followed by the new user message."""
    messages = [turn.as_message() for turn in select_history_window(history, max_turns)]
    messages.append({"role": ChatRole.USER.value, "content": message})
    return messages


# =============================================================================
# Comparison
# =============================================================================

COMPARISON_JSON_SHAPE = """{
  "bestChoiceId": "contract ID",
  "reasoning": ["reason 1", "reason 2", ...],
  "tradeoffs": "string - any concerns about the recommended choice",
  "alternativeAdvice": {
    "contractId": "ID of alternative",
    "negotiationItems": ["item 1", "item 2", ...],
    "estimatedImpact": "string"
  },
  "tco": {
    "threeYearCosts": [
      {"contractId": "ID", "name": "name", "cost": "string"}
    ],
    "savings": "string"
  }
}"""


def _contract_blocks(contracts: Iterable[ContractRecord]) -> str:
    blocks = []
    for i, contract in enumerate(contracts, start=1):
        blocks.append(
            f"Contract {i}: {contract.filename}\n"
            f"ID: {contract.id}\n"
            f"Analysis: {_to_json(contract.analysis)}"
        )
    return "\n\n".join(blocks)


def build_comparison_prompt(
    contracts: Sequence[ContractRecord],
    analysis_settings: dict[str, Any],
    weights: dict[str, float] | None = None,
) -> str:
    """Multi-contract comparison and recommendation prompt."""
    priorities = ""
    if weights:
        priorities = (
            "\nDECISION PRIORITIES (relative weights, higher matters more):\n"
            f"{_to_json(weights)}\n"
        )

    return f"""You are a contract comparison expert. Compare these contracts and recommend the best choice.

COMPANY CONTEXT:
{_to_json(analysis_settings)}
{priorities}
CONTRACTS TO COMPARE:
{_contract_blocks(contracts)}

Provide comparison and recommendation in JSON format:
{COMPARISON_JSON_SHAPE}

Use the contract IDs given above for every contractId field.

CRITICAL: Return ONLY valid JSON, no other text."""


# =============================================================================
# Portfolio
# =============================================================================


def summarize_contract(contract: ContractRecord) -> dict[str, Any]:
    """Compact view of a contract for portfolio-wide prompts."""
    analysis = contract.analysis
    return {
        "id": contract.id,
        "filename": contract.filename,
        "contractType": analysis.get("contractType"),
        "parties": analysis.get("parties"),
        "term": analysis.get("term"),
        "value": analysis.get("value"),
        "autoRenews": analysis.get("autoRenews"),
        "riskLevel": analysis.get("riskLevel"),
        "riskScore": analysis.get("riskScore"),
        "criticalIssues": [
            issue.get("title") for issue in analysis.get("criticalIssues") or []
            if isinstance(issue, dict)
        ],
        "keyInsights": analysis.get("keyInsights"),
    }


def build_portfolio_prompt(query: str, contracts: Sequence[ContractRecord]) -> str:
    """Question over every stored contract, answered from their summaries."""
    summaries = [summarize_contract(c) for c in contracts]
    return f"""You are a contract portfolio analyst. Answer the question using only the contract summaries below.

CONTRACT PORTFOLIO ({len(summaries)} contracts):
{_to_json(summaries)}

QUESTION:
{query}

Provide your answer in JSON format:
{{
  "answer": "string - direct answer citing contracts by filename",
  "relevantContracts": [
    {{"contractId": "ID", "filename": "name", "reason": "string"}}
  ]
}}

If the portfolio does not contain the information, say so in "answer" and return an empty "relevantContracts" list.

CRITICAL: Return ONLY valid JSON, no other text."""


# =============================================================================
# JSON repair
# =============================================================================


def build_json_repair_prompt() -> str:
    """Follow-up sent when the previous reply could not be parsed as JSON."""
    return (
        "Your previous response could not be parsed as a JSON object. "
        "Reply again with the same content as a single valid JSON object that "
        "follows the requested format exactly. Return ONLY the JSON, with no "
        "markdown fences, comments or other text."
    )
