# support_rag/llm/client.py

"""
Generation service clients.

One provider per process, chosen by AssistantConfig.llm_provider:

1. Gemini (default)
2. OpenAI

Both expose the same call:

    generate(system_instruction, turns, temperature) -> str

where `turns` is an ordered list of (role, text) with role "user" or
"model" and the first turn authored by the user.

Single-shot: no retry, no fallback to another provider, no timeout.
Callers needing a deadline wrap the call themselves.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
import openai
from openai import OpenAI

from support_rag.config import AssistantConfig
from support_rag.exceptions import GenerationConfigError, GenerationError

logger = logging.getLogger(__name__)


Turn = Tuple[str, str]


class BaseGenerationClient(ABC):

    provider = "base"

    def __init__(self, model: str):
        self.model = model
        self.available = False

    def generate(
        self,
        system_instruction: str,
        turns: List[Turn],
        temperature: float,
    ) -> str:

        if not self.available:
            raise GenerationConfigError(
                f"{self.provider} client is not configured"
            )

        if not turns or turns[0][0] != "user":
            raise GenerationError("First turn must be authored by the user")

        logger.info(
            "LLM request started",
            extra={
                "provider": self.provider,
                "llm_model": self.model,
                "turns": len(turns),
                "prompt_length": sum(len(text) for _, text in turns),
            },
        )

        start = time.time()

        text = self._generate(system_instruction, turns, temperature)

        logger.info(
            "LLM provider success",
            extra={
                "provider": self.provider,
                "latency_seconds": round(time.time() - start, 3),
                "response_length": len(text),
            },
        )

        return text

    @abstractmethod
    def _generate(self, system_instruction, turns, temperature) -> str:
        """Provider call; returns the stripped answer text."""


class GeminiClient(BaseGenerationClient):

    provider = "gemini"

    def __init__(self, api_key: Optional[str], model: str):

        super().__init__(model)

        if not api_key:
            logger.warning("Gemini API key missing")
            return

        genai.configure(api_key=api_key)

        self.available = True

        logger.info("Gemini initialized", extra={"llm_model": model})

    def _generate(self, system_instruction, turns, temperature) -> str:

        model = genai.GenerativeModel(
            model_name=self.model,
            system_instruction=system_instruction,
        )

        contents = [
            {"role": role, "parts": [text]}
            for role, text in turns
        ]

        try:
            response = model.generate_content(
                contents,
                generation_config=genai.GenerationConfig(
                    temperature=temperature,
                ),
            )

        except (
            google_exceptions.Unauthenticated,
            google_exceptions.PermissionDenied,
        ) as e:
            raise GenerationConfigError(f"Gemini rejected credentials: {e}") from e

        except google_exceptions.GoogleAPIError as e:
            raise GenerationError(f"Gemini API call failed: {e}") from e

        try:
            text = response.text
        except ValueError:
            # blocked or no candidates
            logger.warning("Gemini returned no text")
            return ""

        return (text or "").strip()


class OpenAIClient(BaseGenerationClient):

    provider = "openai"

    def __init__(self, api_key: Optional[str], model: str):

        super().__init__(model)

        self.client: Optional[OpenAI] = None

        if not api_key:
            logger.warning("OpenAI API key missing")
            return

        self.client = OpenAI(api_key=api_key)

        self.available = True

        logger.info("OpenAI initialized", extra={"llm_model": model})

    def _generate(self, system_instruction, turns, temperature) -> str:

        messages = [{"role": "system", "content": system_instruction}]

        for role, text in turns:
            messages.append({
                "role": "assistant" if role == "model" else "user",
                "content": text,
            })

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
            )

        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise GenerationConfigError(f"OpenAI rejected credentials: {e}") from e

        except openai.OpenAIError as e:
            raise GenerationError(f"OpenAI API call failed: {e}") from e

        text = response.choices[0].message.content

        return (text or "").strip()


def create_generation_client(config: AssistantConfig) -> BaseGenerationClient:

    if config.llm_provider == "openai":
        return OpenAIClient(
            api_key=config.openai_api_key,
            model=config.openai_model,
        )

    return GeminiClient(
        api_key=config.gemini_api_key,
        model=config.gemini_model,
    )
