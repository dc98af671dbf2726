import re
import logging
from typing import Optional

from google import genai

from .config import settings
from .errors import ServiceError

logger = logging.getLogger(__name__)


class GeminiCleanupService:
    """Transcript cleanup backed by Gemini. Satisfies the CleanupService protocol."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.client = None

        if self.api_key:
            try:
                self.client = genai.Client(api_key=self.api_key)
                logger.info(f"GeminiCleanupService initialized with {self.model}.")
            except Exception as e:
                logger.error(f"Failed to initialize Gemini client: {e}")
        else:
            logger.warning("GEMINI_API_KEY not configured. Cleanup-diff detection will be skipped.")

    @property
    def is_available(self) -> bool:
        return self.client is not None

    def clean(self, text: str, instruction: str) -> str:
        if not self.client:
            raise ServiceError("Gemini cleanup service is not configured")

        prompt = f"{instruction}\n\nTRANSCRIPT:\n{text}"
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt)
            cleaned = (response.text or "").strip()
        except Exception as e:
            logger.error(f"Gemini cleanup request failed: {e}")
            raise ServiceError(f"Gemini cleanup request failed: {e}") from e

        # Remove markdown fences if present
        if cleaned.startswith("```"):
            cleaned = re.sub(r"```[a-zA-Z]*|```", "", cleaned).strip()
        cleaned = cleaned.strip('"')

        if not cleaned:
            raise ServiceError("Gemini returned an empty cleanup")
        return cleaned


def default_cleanup_service() -> Optional[GeminiCleanupService]:
    """The configured cleanup service, or None when no API key is set."""
    if not settings.gemini_api_key:
        return None
    service = GeminiCleanupService()
    return service if service.is_available else None
