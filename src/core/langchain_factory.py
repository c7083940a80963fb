from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Optional

from src.core.config import SETTINGS


def _env(key: str) -> Optional[str]:
    v = os.getenv(key)
    return v.strip() if isinstance(v, str) and v.strip() else None


@lru_cache(maxsize=4)
def get_chat_model(*, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> Any:
    """Return a LangChain chat model instance.

    Provider is selected using SETTINGS.llm_provider (from config.yaml / env).

    Notes:
    - Keep this as a thin factory (no app logic here).
    - Raises ImportError with actionable messages when optional deps are missing.
    """
    provider = (SETTINGS.llm_provider or "").strip().lower()
    model = (SETTINGS.llm_model or "").strip()
    temp = SETTINGS.llm_temperature if temperature is None else float(temperature)

    if provider in ("openai",):
        try:
            from langchain_openai import ChatOpenAI
        except ImportError as e:
            raise ImportError(
                "Missing dependency for OpenAI chat models. Install: langchain-openai"
            ) from e
        return ChatOpenAI(model=model or "gpt-4o-mini", temperature=temp, max_tokens=max_tokens)

    if provider in ("gemini", "google", "googleai", "google-genai", "genai"):
        api_key = _env("GEMINI_API_KEY") or _env("GOOGLE_API_KEY")
        try:
            from langchain_google_genai import ChatGoogleGenerativeAI
        except ImportError as e:
            raise ImportError(
                "Missing dependency for Gemini chat models. Install: langchain-google-genai"
            ) from e
        return ChatGoogleGenerativeAI(
            model=model or "gemini-1.5-flash",
            temperature=temp,
            max_output_tokens=max_tokens,
            google_api_key=api_key,
        )

    raise ValueError(f"Unsupported llm.provider={provider!r}. Use openai|gemini.")
