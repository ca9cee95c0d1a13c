"""
Provider-agnostic async LLM client for Beacon.

Supports OpenAI, Anthropic, and Google Gemini with a shared text-generation
interface, both as a single completion and as an incremental text stream.
"""

from __future__ import annotations

import hashlib
import logging
from typing import AsyncIterator, Optional

logger = logging.getLogger("beacon.common.llm_client")


class LLMClient:
    """Unified async text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "",
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self.model = model
        self._client = None

        if self.provider == "auto":
            raise ValueError(
                '"auto" provider must be resolved before creating LLMClient. '
                'Set llm.provider to "openai", "anthropic" or "google".'
            )

        if self.provider == "openai":
            if not openai_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(api_key=openai_api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai  # Store the module, not a model instance
                self._google_models = {}  # Cache models by system prompt hash
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def _require_client(self) -> None:
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

    def _openai_messages(self, prompt: str, system: Optional[str]) -> list:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _anthropic_kwargs(self, prompt: str, system: Optional[str], max_tokens: int,
                          temperature: float, timeout: float) -> dict:
        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": timeout,
        }
        if system:
            kwargs["system"] = system
        return kwargs

    def _google_model(self, system: Optional[str]):
        cache_key = hashlib.md5((system or "").encode()).hexdigest()
        if cache_key not in self._google_models:
            kwargs = {"model_name": self.model}
            if system:
                kwargs["system_instruction"] = system
            self._google_models[cache_key] = self._client.GenerativeModel(**kwargs)
        return self._google_models[cache_key]

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ) -> str:
        self._require_client()

        if self.provider == "openai":
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=self._openai_messages(prompt, system),
                timeout=timeout,
            )
            if not response.choices:
                return ""
            return (response.choices[0].message.content or "").strip()

        if self.provider == "anthropic":
            response = await self._client.messages.create(
                **self._anthropic_kwargs(prompt, system, max_tokens, temperature, timeout)
            )
            if not response.content:
                return ""
            return response.content[0].text.strip()

        if self.provider == "google":
            model = self._google_model(system)
            response = await model.generate_content_async(
                prompt,
                generation_config={"max_output_tokens": max_tokens, "temperature": temperature},
                request_options={"timeout": timeout},
            )
            return response.text.strip()

        raise RuntimeError(f"Unsupported LLM provider: {self.provider}")

    async def stream(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ) -> AsyncIterator[str]:
        """
        Yield text deltas as the provider produces them.

        The upstream connection is closed when the iterator finishes or is
        closed early by the consumer.
        """
        self._require_client()

        if self.provider == "openai":
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=self._openai_messages(prompt, system),
                timeout=timeout,
                stream=True,
            )
            try:
                async for chunk in response:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta.content
                    if delta:
                        yield delta
            finally:
                await response.close()
            return

        if self.provider == "anthropic":
            kwargs = self._anthropic_kwargs(prompt, system, max_tokens, temperature, timeout)
            async with self._client.messages.stream(**kwargs) as response:
                async for text in response.text_stream:
                    if text:
                        yield text
            return

        if self.provider == "google":
            model = self._google_model(system)
            response = await model.generate_content_async(
                prompt,
                generation_config={"max_output_tokens": max_tokens, "temperature": temperature},
                request_options={"timeout": timeout},
                stream=True,
            )
            async for chunk in response:
                if chunk.text:
                    yield chunk.text
            return

        raise RuntimeError(f"Unsupported LLM provider: {self.provider}")
