"""
Upload-to-text extraction for PDF, image and plain-text contracts.
"""

import asyncio
import io
from functools import lru_cache
from typing import TYPE_CHECKING

import pdfplumber
import structlog

from clausecloud.config import get_settings
from clausecloud.exceptions import ExtractionError

if TYPE_CHECKING:
    from clausecloud.services.llm_service import LLMService

logger = structlog.get_logger(__name__)

PDF_TYPE = "application/pdf"
TEXT_TYPE = "text/plain"
IMAGE_TYPES = ("image/jpeg", "image/png")

IMAGE_PLACEHOLDER_TEXT = (
    "[Image text extraction not implemented - please use PDF or paste text]"
)


def is_blank(text: str | None) -> bool:
    """True when extraction produced nothing usable."""
    return not text or not text.strip()


def extract_pdf_text(data: bytes) -> str:
    """
    Extract text from an in-memory PDF using pdfplumber.

    Page texts are joined with a blank line; empty pages are skipped.
    """
    text_parts = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)

    return "\n\n".join(text_parts)


def decode_text(data: bytes) -> str:
    """UTF-8 decode; malformed bytes become replacement characters."""
    return data.decode("utf-8", errors="replace")


class TextExtractor:
    """
    Turns uploaded bytes into contract text based on the declared content type.

    Images are not OCR'd: in ``placeholder`` mode a fixed notice is returned,
    in ``vision`` mode the image is transcribed by the LLM.
    """

    def __init__(self, llm: "LLMService | None" = None):
        self.settings = get_settings()
        self._llm = llm

    @property
    def llm(self) -> "LLMService":
        if self._llm is None:
            from clausecloud.services.llm_service import get_llm_service

            self._llm = get_llm_service()
        return self._llm

    async def extract(self, data: bytes, content_type: str) -> str:
        """Extract text, raising ExtractionError for unreadable or unsupported input."""
        content_type = (content_type or "").split(";")[0].strip().lower()

        if content_type == PDF_TYPE:
            return await self._extract_pdf(data)
        if content_type in IMAGE_TYPES:
            return await self._extract_image(data, content_type)
        if content_type == TEXT_TYPE:
            return decode_text(data)

        raise ExtractionError(f"Unsupported content type: {content_type or 'unknown'}")

    async def _extract_pdf(self, data: bytes) -> str:
        try:
            text = await asyncio.to_thread(extract_pdf_text, data)
        except Exception as e:
            logger.error("pdf_extraction_failed", size=len(data), error=str(e))
            raise ExtractionError("Failed to extract text from PDF") from e

        logger.debug("pdf_extracted", size=len(data), chars=len(text))
        return text

    async def _extract_image(self, data: bytes, media_type: str) -> str:
        if self.settings.image_extraction_mode != "vision":
            logger.info("image_extraction_placeholder", media_type=media_type)
            return IMAGE_PLACEHOLDER_TEXT

        try:
            return await self.llm.transcribe_image(data, media_type)
        except Exception as e:
            logger.error("image_extraction_failed", media_type=media_type, error=str(e))
            raise ExtractionError("Failed to extract text from image") from e


@lru_cache()
def get_text_extractor() -> TextExtractor:
    """Get cached text extractor instance."""
    return TextExtractor()
