#!/usr/bin/env python3
"""
Generation module for the ordering assistant.

This module wraps the external text-completion service. OpenAI and Groq share
the chat-completions wire format; Gemini uses generateContent.
"""

import requests
from typing import Dict, List
from .config import Config
from ..utils.logger import get_logger

logger = get_logger(__name__)


class GenerationError(Exception):
    """The text-completion service failed or returned something unusable."""


class GenerationClient:
    """Client for generating replies from a system prompt and chat history."""

    def __init__(self, provider: str = None, api_key: str = None, model: str = None, timeout: float = None):
        """Initialize the generation client."""
        self.provider = (provider or Config.LLM_PROVIDER).lower()
        self.api_key = api_key or Config.api_key_for(self.provider)
        self.timeout = timeout or Config.LLM_TIMEOUT
        self.session = requests.Session()

        if self.provider == "gemini":
            self.model = model or Config.GEMINI_MODEL
            self.api_base_url = f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
        elif self.provider == "groq":
            self.model = model or Config.GROQ_LLM_MODEL
            self.api_base_url = Config.GROQ_BASE_URL
        elif self.provider == "openai":
            self.model = model or Config.OPENAI_MODEL
            self.api_base_url = Config.OPENAI_BASE_URL
        else:
            raise ValueError(f"Unsupported LLM provider: {self.provider}")

        if not self.api_key:
            raise ValueError(f"API key for provider '{self.provider}' is required")

    def _chat_completions_request(self, messages: List[Dict[str, str]]):
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": Config.LLM_TEMPERATURE,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        return self.session.post(self.api_base_url, json=payload, headers=headers, timeout=self.timeout)

    def _gemini_request(self, messages: List[Dict[str, str]]):
        system_parts = [{"text": m["content"]} for m in messages if m["role"] == "system"]
        contents = [
            {"role": "model" if m["role"] == "assistant" else "user", "parts": [{"text": m["content"]}]}
            for m in messages
            if m["role"] != "system"
        ]
        payload = {
            "contents": contents,
            "generationConfig": {"temperature": Config.LLM_TEMPERATURE},
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return self.session.post(f"{self.api_base_url}?key={self.api_key}", json=payload, timeout=self.timeout)

    @staticmethod
    def _extract_text(provider: str, data: Dict) -> str:
        if provider == "gemini":
            return data["candidates"][0]["content"]["parts"][0]["text"]
        return data["choices"][0]["message"]["content"]

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Generate the assistant reply.

        Args:
            messages: chat messages, the first one usually the system prompt

        Returns:
            Raw reply text, possibly ending with a structured order block

        Raises:
            GenerationError: on transport errors, timeouts, non-200 responses
                or a response without text
        """
        logger.info("Calling %s model %s with %d messages", self.provider, self.model, len(messages))
        try:
            if self.provider == "gemini":
                response = self._gemini_request(messages)
            else:
                response = self._chat_completions_request(messages)
            if response.status_code != 200:
                logger.error("Completion service returned %s: %s", response.status_code, response.text[:500])
                response.raise_for_status()
            data = response.json()
            answer = self._extract_text(self.provider, data)
        except requests.exceptions.RequestException as e:
            logger.error("Error generating answer: %s", e)
            raise GenerationError(f"Error generating answer: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Error parsing generation response: %s", e)
            raise GenerationError(f"Error parsing generation response: {e}") from e

        if not isinstance(answer, str) or not answer.strip():
            raise GenerationError("Completion service returned an empty reply")
        return answer.strip()
