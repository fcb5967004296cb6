"""
Company settings singleton.
"""

from functools import lru_cache
from typing import Any

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from clausecloud.exceptions import ValidationError
from clausecloud.models.settings import CompanySettings, RedLine, default_company_settings

logger = structlog.get_logger(__name__)

_red_lines_adapter = TypeAdapter(list[RedLine])


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


class SettingsStore:
    """
    Holds the single process-wide ``CompanySettings``.

    Updates replace whole top-level keys; there is no versioning.
    """

    def __init__(self, initial: CompanySettings | None = None):
        self._settings = initial or default_company_settings()

    def get(self) -> CompanySettings:
        return self._settings

    def update(self, partial: dict[str, Any]) -> CompanySettings:
        """Shallow merge of top-level keys, re-validated as a whole."""
        if not isinstance(partial, dict):
            raise ValidationError("Settings must be a JSON object")

        merged = {**self._settings.model_dump(by_alias=True), **partial}
        try:
            self._settings = CompanySettings.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid settings: {_describe(e)}") from e

        logger.info("settings_updated", keys=sorted(partial))
        return self._settings

    def replace_red_lines(self, red_lines: Any) -> list[RedLine]:
        """Replace the red-line list outright."""
        if not isinstance(red_lines, list):
            raise ValidationError("Red lines must be an array")
        try:
            parsed = _red_lines_adapter.validate_python(red_lines)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid red line: {_describe(e)}") from e

        self._settings = self._settings.model_copy(update={"red_lines": parsed})
        logger.info(
            "red_lines_replaced",
            total=len(parsed),
            enabled=len(self._settings.active_red_lines()),
        )
        return parsed

    def analysis_context(self) -> dict[str, Any]:
        return self._settings.analysis_context()

    def reset(self) -> None:
        self._settings = default_company_settings()


@lru_cache()
def get_settings_store() -> SettingsStore:
    """Get the process-wide settings store."""
    return SettingsStore()
