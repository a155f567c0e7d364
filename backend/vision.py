"""
Gemini vision client
====================
Sends one prompt + one chart image to Gemini and returns the raw text reply.
"""

import logging
from typing import Protocol

import google.generativeai as genai

from .config import Settings
from .errors import EmptyCompletionError, UpstreamError
from .models import UploadedImage

logger = logging.getLogger(__name__)


class VisionClient(Protocol):
    model_name: str

    def describe_chart(self, prompt: str, image: UploadedImage) -> str:
        ...


class GeminiVisionClient:
    """Thin wrapper around ``genai.GenerativeModel`` with error translation."""

    def __init__(self, model, model_name: str, temperature: float = 0.1, max_output_tokens: int = 1000):
        self.model = model
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiVisionClient":
        """Configure the SDK; raises ConfigurationError when the API key is missing."""
        genai.configure(api_key=settings.require_api_key())
        model = genai.GenerativeModel(settings.model_name)
        logger.info("Using Gemini model: %s", settings.model_name)
        return cls(
            model,
            settings.model_name,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
        )

    def describe_chart(self, prompt: str, image: UploadedImage) -> str:
        logger.info("Sending chart to %s (%d bytes)", self.model_name, image.size)
        try:
            response = self.model.generate_content(
                [prompt, {"mime_type": image.content_type, "data": image.data}],
                generation_config=genai.types.GenerationConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
            # .text raises ValueError when the reply was blocked or has no parts
            text = response.text
        except Exception as e:
            logger.error("Gemini error: %s", e)
            raise UpstreamError(f"Analysis failed: {e}") from e

        text = (text or "").strip()
        if not text:
            raise EmptyCompletionError()
        logger.debug("AI response: %s", text)
        return text
