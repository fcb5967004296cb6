"""
LLM gateway for contract analysis, chat and comparison.

Supports Claude (Anthropic, default) or GPT-4o (OpenAI), selected by
``LLM_PROVIDER``. Each request makes one completion call; transport retries
and JSON repair follow-ups are opt-in through settings.
"""

import base64
import json
from functools import lru_cache
from typing import Any, Sequence

import structlog
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from clausecloud.config import get_settings
from clausecloud.exceptions import (
    AnalysisError,
    ChatError,
    ComparisonError,
    PortfolioQueryError,
)
from clausecloud.models.chat import ChatTurn
from clausecloud.models.contract import AnalysisResult, ContractRecord
from clausecloud.services.prompt_builder import (
    build_analysis_prompt,
    build_chat_messages,
    build_chat_system_prompt,
    build_comparison_prompt,
    build_json_repair_prompt,
    build_portfolio_prompt,
)
from clausecloud.services.risk import check_risk_score

logger = structlog.get_logger(__name__)

IMAGE_TRANSCRIPTION_PROMPT = (
    "This image is a page of a contract. Transcribe all of its text exactly as "
    "written, preserving section numbers and headings. Return only the text."
)


class LLMService:
    """
    LLM gateway for contract review.

    Holds no state besides the provider clients and never touches the stores.
    """

    def __init__(self):
        settings = get_settings()
        self.settings = settings

        # Initialize clients
        self._anthropic: AsyncAnthropic | None = None
        self._openai: AsyncOpenAI | None = None

        client_options: dict[str, Any] = {}
        if settings.llm_timeout is not None:
            client_options["timeout"] = settings.llm_timeout

        if settings.anthropic_api_key:
            self._anthropic = AsyncAnthropic(
                api_key=settings.anthropic_api_key, **client_options
            )
        if settings.openai_api_key:
            self._openai = AsyncOpenAI(api_key=settings.openai_api_key, **client_options)

        self.provider = settings.llm_provider
        self.model = settings.llm_model
        self._retry_wait = wait_exponential(multiplier=1, min=2, max=10)

    @property
    def anthropic(self) -> AsyncAnthropic:
        if not self._anthropic:
            raise ValueError("Anthropic client not configured. Set ANTHROPIC_API_KEY.")
        return self._anthropic

    @property
    def openai(self) -> AsyncOpenAI:
        if not self._openai:
            raise ValueError("OpenAI client not configured. Set OPENAI_API_KEY.")
        return self._openai

    def health_check(self) -> dict[str, Any]:
        """Report the selected provider and whether it has a client."""
        configured = self._openai if self.provider == "openai" else self._anthropic
        return {
            "provider": self.provider,
            "model": self.model,
            "configured": configured is not None,
        }

    # =========================================================================
    # Core LLM Calls
    # =========================================================================

    async def _call_anthropic(
        self,
        messages: Sequence[dict[str, Any]],
        system: str | None,
        max_tokens: int | None,
    ) -> str:
        """Call Anthropic Claude API."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.settings.llm_max_tokens,
            "messages": list(messages),
        }
        if system:
            kwargs["system"] = system
        if self.settings.llm_temperature is not None:
            kwargs["temperature"] = self.settings.llm_temperature

        response = await self.anthropic.messages.create(**kwargs)
        return response.content[0].text

    async def _call_openai(
        self,
        messages: Sequence[dict[str, Any]],
        system: str | None,
        max_tokens: int | None,
    ) -> str:
        """Call OpenAI chat completions API."""
        chat_messages = [{"role": "system", "content": system}] if system else []
        chat_messages.extend(messages)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.settings.llm_max_tokens,
            "messages": chat_messages,
        }
        if self.settings.llm_temperature is not None:
            kwargs["temperature"] = self.settings.llm_temperature

        response = await self.openai.chat.completions.create(**kwargs)
        return response.choices[0].message.content or ""

    async def complete(
        self,
        prompt: str | None = None,
        *,
        system: str | None = None,
        messages: Sequence[dict[str, Any]] | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """
        Run one completion and return its text.

        Takes either a flat ``prompt`` or a ``messages`` list (optionally with a
        ``system`` prompt). ``LLM_MAX_ATTEMPTS`` above 1 retries failed calls
        with exponential backoff.
        """
        if messages is None:
            if prompt is None:
                raise ValueError("Either prompt or messages is required")
            messages = [{"role": "user", "content": prompt}]

        call = self._call_openai if self.provider == "openai" else self._call_anthropic

        text = ""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.settings.llm_max_attempts),
            wait=self._retry_wait,
            reraise=True,
        ):
            with attempt:
                try:
                    text = await call(messages, system, max_tokens)
                except Exception as e:
                    logger.warning(
                        "llm_call_failed",
                        provider=self.provider,
                        model=self.model,
                        attempt=attempt.retry_state.attempt_number,
                        error=str(e),
                    )
                    raise
        return text

    def _parse_json(self, text: str) -> Any:
        """
        Extract JSON from LLM response text.

        A fence left open (e.g. at the token limit) runs to the end of the text.
        """
        raw = text
        for fence in ("```json", "```"):
            if fence in text:
                start = text.find(fence) + len(fence)
                end = text.find("```", start)
                text = text[start:end if end != -1 else None].strip()
                break

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Try to find an embedded JSON object or array
            for opener, closer in [("{", "}"), ("[", "]")]:
                start = raw.find(opener)
                end = raw.rfind(closer) + 1
                if start >= 0 and end > start:
                    try:
                        return json.loads(raw[start:end])
                    except json.JSONDecodeError:
                        continue
            return None

    async def _complete_json(self, prompt: str, task: str) -> dict[str, Any]:
        """
        Complete ``prompt`` and parse the reply as a JSON object.

        Unparseable replies get up to ``LLM_JSON_REPAIR_ATTEMPTS`` corrective
        follow-ups in the same conversation.
        """
        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        text = await self.complete(messages=messages)
        parsed = self._parse_json(text)

        repairs = 0
        while not isinstance(parsed, dict) and repairs < self.settings.llm_json_repair_attempts:
            repairs += 1
            logger.warning(
                "llm_json_unparseable",
                task=task,
                repair_attempt=repairs,
                preview=text[:200],
            )
            messages = [
                *messages,
                {"role": "assistant", "content": text or "(empty response)"},
                {"role": "user", "content": build_json_repair_prompt()},
            ]
            text = await self.complete(messages=messages)
            parsed = self._parse_json(text)

        if not isinstance(parsed, dict):
            raise ValueError(f"Model output for {task} is not a JSON object")
        return parsed

    # =========================================================================
    # Contract Analysis
    # =========================================================================

    async def analyze_contract(
        self,
        contract_text: str,
        analysis_settings: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Produce the structured analysis of one contract.

        Returns the parsed JSON object as the model wrote it.
        """
        prompt = build_analysis_prompt(contract_text, analysis_settings)

        try:
            analysis = await self._complete_json(prompt, task="analysis")
            if self.settings.strict_analysis_schema:
                AnalysisResult.model_validate(analysis)
        except Exception as e:
            logger.error("contract_analysis_failed", provider=self.provider, error=str(e))
            raise AnalysisError() from e

        check_risk_score(analysis)
        return analysis

    # =========================================================================
    # Chat / Q&A
    # =========================================================================

    async def chat(
        self,
        contract_text: str,
        contract_analysis: dict[str, Any],
        message: str,
        history: Sequence[ChatTurn] = (),
    ) -> str:
        """Answer a question about a contract. The reply is returned verbatim."""
        system = build_chat_system_prompt(
            contract_text,
            contract_analysis,
            max_chars=self.settings.chat_context_max_chars,
        )
        messages = build_chat_messages(
            history, message, max_turns=self.settings.chat_history_max_turns
        )

        try:
            return await self.complete(system=system, messages=messages)
        except Exception as e:
            logger.error("contract_chat_failed", provider=self.provider, error=str(e))
            raise ChatError() from e

    # =========================================================================
    # Comparison
    # =========================================================================

    async def compare_contracts(
        self,
        contracts: Sequence[ContractRecord],
        analysis_settings: dict[str, Any],
        weights: dict[str, float] | None = None,
    ) -> dict[str, Any]:
        """Recommend the best of several analyzed contracts."""
        prompt = build_comparison_prompt(contracts, analysis_settings, weights)

        try:
            return await self._complete_json(prompt, task="comparison")
        except Exception as e:
            logger.error(
                "contract_comparison_failed",
                contracts=len(contracts),
                error=str(e),
            )
            raise ComparisonError() from e

    # =========================================================================
    # Portfolio
    # =========================================================================

    async def answer_portfolio_query(
        self,
        query: str,
        contracts: Sequence[ContractRecord],
    ) -> dict[str, Any]:
        """Answer a question over every stored contract."""
        prompt = build_portfolio_prompt(query, contracts)

        try:
            result = await self._complete_json(prompt, task="portfolio_query")
        except Exception as e:
            logger.error("portfolio_query_failed", contracts=len(contracts), error=str(e))
            raise PortfolioQueryError() from e

        relevant = result.get("relevantContracts")
        return {
            "answer": str(result.get("answer", "")),
            "relevantContracts": relevant if isinstance(relevant, list) else [],
        }

    # =========================================================================
    # Images
    # =========================================================================

    async def transcribe_image(self, data: bytes, media_type: str) -> str:
        """Read the text of a contract image with the model's vision input."""
        encoded = base64.b64encode(data).decode("ascii")

        if self.provider == "openai":
            content: list[dict[str, Any]] = [
                {"type": "text", "text": IMAGE_TRANSCRIPTION_PROMPT},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{media_type};base64,{encoded}"},
                },
            ]
        else:
            content = [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": media_type, "data": encoded},
                },
                {"type": "text", "text": IMAGE_TRANSCRIPTION_PROMPT},
            ]

        return await self.complete(messages=[{"role": "user", "content": content}])


@lru_cache()
def get_llm_service() -> LLMService:
    """Get cached LLM service instance."""
    return LLMService()
