#!/usr/bin/env python3
"""
Configuration management for the chat ordering backend.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """Configuration class for the application."""

    # Text-completion provider (openai|groq|gemini)
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai").lower()
    LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", 60))
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", 0.3))

    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1/chat/completions")

    GROQ_API_KEY = os.getenv("GROQ_API_KEY")
    GROQ_LLM_MODEL = os.getenv("GROQ_LLM_MODEL", "llama-3.1-8b-instant")
    GROQ_BASE_URL = "https://api.groq.com/openai/v1/chat/completions"

    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # Database Configuration
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.abspath(os.path.join(_DATA_DIR, "orderchat.db")),
    )

    # Redis Configuration (per-phone order locks)
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB = int(os.getenv("REDIS_DB", 0))
    USE_REDIS_LOCKS = _env_bool("USE_REDIS_LOCKS", "true")
    ORDER_LOCK_TIMEOUT = float(os.getenv("ORDER_LOCK_TIMEOUT", 10))

    # Application Configuration
    MAX_CONVERSATION_TURNS = int(os.getenv("MAX_CONVERSATION_TURNS", 20))
    DEFAULT_PROJECT_ID = os.getenv("DEFAULT_PROJECT_ID", "burek01")
    DEFAULT_LANG = os.getenv("DEFAULT_LANG", "hr")
    ORDER_MARKER = os.getenv("ORDER_MARKER", "FINAL_ORDER_JSON:")
    BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Europe/Zagreb")

    # Admin surface
    ADMIN_USER = os.getenv("ADMIN_USER", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

    PIN_HASH_ITERATIONS = int(os.getenv("PIN_HASH_ITERATIONS", 120000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    SUPPORTED_PROVIDERS = ("openai", "groq", "gemini")
    SUPPORTED_LANGS = ("hr", "de", "en")

    @classmethod
    def api_key_for(cls, provider: str):
        return {
            "openai": cls.OPENAI_API_KEY,
            "groq": cls.GROQ_API_KEY,
            "gemini": cls.GEMINI_API_KEY,
        }.get(provider)

    @classmethod
    def validate(cls):
        """Validate configuration values that would break the app at runtime."""
        problems = []

        if cls.LLM_PROVIDER not in cls.SUPPORTED_PROVIDERS:
            problems.append(f"LLM_PROVIDER={cls.LLM_PROVIDER!r}")
        if cls.MAX_CONVERSATION_TURNS <= 0:
            problems.append("MAX_CONVERSATION_TURNS must be positive")
        if cls.DEFAULT_LANG not in cls.SUPPORTED_LANGS:
            problems.append(f"DEFAULT_LANG={cls.DEFAULT_LANG!r}")
        if not cls.ORDER_MARKER.strip():
            problems.append("ORDER_MARKER must not be blank")
        if cls.PIN_HASH_ITERATIONS <= 0:
            problems.append("PIN_HASH_ITERATIONS must be positive")
        if cls.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            problems.append(f"LOG_LEVEL={cls.LOG_LEVEL!r}")

        if problems:
            raise ValueError(f"Invalid configuration: {', '.join(problems)}")

        return True

# Validate configuration on import
Config.validate()
