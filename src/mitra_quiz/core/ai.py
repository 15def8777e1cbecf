"""Model-service clients used to generate quiz questions.

Both clients expose ``generate(prompt, settings) -> str`` and return an empty
string when the service produced nothing usable (including output withheld by
safety filtering). Transport failures propagate as the SDK's own exceptions.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import google.generativeai as genai
from dotenv import load_dotenv
from openai import OpenAI

from .config import AIConfig

__all__ = [
    "GeminiClient",
    "GenerationSettings",
    "OpenAIClient",
    "QuestionClient",
    "load_client",
]

logger = logging.getLogger(__name__)

_API_KEY_ENV = {
    "gemini": "GOOGLE_API_KEY",
    "openai": "OPENAI_API_KEY",
}

_DEFAULT_MODELS = {
    "gemini": "gemini-1.5-flash",
    "openai": "gpt-4o-mini",
}

_HARM_CATEGORIES = {
    "harassment": "HARM_CATEGORY_HARASSMENT",
    "hate_speech": "HARM_CATEGORY_HATE_SPEECH",
}

# Moderation categories checked for each configured safety category.
_MODERATION_CATEGORIES = {
    "harassment": ("harassment", "harassment_threatening"),
    "hate_speech": ("hate", "hate_threatening"),
}


@dataclass(frozen=True)
class GenerationSettings:
    """Sampling and safety parameters for one generation call."""

    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 2048
    safety: dict[str, str] = field(
        default_factory=lambda: {
            "harassment": "BLOCK_MEDIUM_AND_ABOVE",
            "hate_speech": "BLOCK_MEDIUM_AND_ABOVE",
        }
    )

    @classmethod
    def from_config(cls, config: AIConfig) -> "GenerationSettings":
        return cls(
            temperature=config.temperature,
            top_k=config.top_k,
            top_p=config.top_p,
            max_output_tokens=config.max_output_tokens,
            safety={
                "harassment": config.safety.harassment,
                "hate_speech": config.safety.hate_speech,
            },
        )


class QuestionClient(Protocol):
    def generate(self, prompt: str, settings: GenerationSettings) -> str:
        ...


class GeminiClient:
    """Google Gemini backend via ``google-generativeai``."""

    def __init__(self, model: Any, *, model_name: str = "") -> None:
        self._model = model
        self.model_name = model_name

    @classmethod
    def from_api_key(cls, api_key: str, model_name: str) -> "GeminiClient":
        genai.configure(api_key=api_key)
        return cls(genai.GenerativeModel(model_name), model_name=model_name)

    def generate(self, prompt: str, settings: GenerationSettings) -> str:
        response = self._model.generate_content(
            prompt,
            generation_config={
                "temperature": settings.temperature,
                "top_k": settings.top_k,
                "top_p": settings.top_p,
                "max_output_tokens": settings.max_output_tokens,
            },
            safety_settings=[
                {"category": _HARM_CATEGORIES[name], "threshold": threshold}
                for name, threshold in settings.safety.items()
                if name in _HARM_CATEGORIES
            ],
        )
        try:
            text = response.text
        except ValueError:
            # ``.text`` raises when the candidate was blocked or has no parts.
            feedback = getattr(response, "prompt_feedback", None)
            logger.warning(
                "Gemini returned no text parts",
                extra={"feedback": repr(feedback)},
            )
            return ""
        return (text or "").strip()


class OpenAIClient:
    """OpenAI chat-completions backend.

    The chat API has no ``top_k`` and no built-in safety thresholds, so output
    is screened with the moderation endpoint instead; any flagged category
    that maps to a configured safety setting (other than ``BLOCK_NONE``)
    suppresses the text.
    """

    def __init__(
        self, client: Any, *, model_name: str = "gpt-4o-mini"
    ) -> None:
        self._client = client
        self.model_name = model_name

    @classmethod
    def from_api_key(cls, api_key: str, model_name: str) -> "OpenAIClient":
        return cls(OpenAI(api_key=api_key), model_name=model_name)

    def generate(self, prompt: str, settings: GenerationSettings) -> str:
        resp = self._client.chat.completions.create(
            model=self.model_name,
            messages=[
                {
                    "role": "system",
                    "content": "You write multiple-choice quiz questions "
                    "and answer with JSON only.",
                },
                {"role": "user", "content": prompt},
            ],
            temperature=settings.temperature,
            top_p=settings.top_p,
            max_tokens=settings.max_output_tokens,
        )
        text = (resp.choices[0].message.content or "").strip()
        if text and self._is_blocked(text, settings):
            return ""
        return text

    def _is_blocked(self, text: str, settings: GenerationSettings) -> bool:
        watched = [
            category
            for name, threshold in settings.safety.items()
            if threshold != "BLOCK_NONE"
            for category in _MODERATION_CATEGORIES.get(name, ())
        ]
        if not watched:
            return False
        result = self._client.moderations.create(input=text).results[0]
        flagged = [
            category
            for category in watched
            if getattr(result.categories, category, False)
        ]
        if flagged:
            logger.warning(
                "Model output withheld by moderation",
                extra={"categories": flagged},
            )
        return bool(flagged)


def load_client(
    provider: str = "gemini",
    config: Optional[AIConfig] = None,
) -> QuestionClient:
    """Build a client for ``provider`` using environment credentials.

    ``.env`` files are honoured via python-dotenv.
    """

    env_name = _API_KEY_ENV.get(provider)
    if env_name is None:
        raise RuntimeError(f"Unknown model provider '{provider}'.")
    load_dotenv()
    api_key = os.getenv(env_name)
    if not api_key:
        raise RuntimeError(
            f"{env_name} not found in environment. Set it or add to .env"
        )
    model_name = (config.model if config else "") or _DEFAULT_MODELS[provider]
    if provider == "gemini":
        return GeminiClient.from_api_key(api_key, model_name)
    return OpenAIClient.from_api_key(api_key, model_name)
