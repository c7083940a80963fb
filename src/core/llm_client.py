from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from src.core.langchain_factory import get_chat_model


@dataclass
class LLMResponse:
    text: str


class LLMClient:
    """Thin wrapper over the configured LangChain chat model.

    - generate(prompt) for single-shot prompts
    - chat(system, user) when a system prompt is needed
    """

    def __init__(self, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> None:
        self._model: Any = get_chat_model(temperature=temperature, max_tokens=max_tokens)

    @staticmethod
    def _text(msg: Any) -> LLMResponse:
        text = getattr(msg, "content", None)
        if text is None:
            text = str(msg)
        return LLMResponse(text=str(text).strip())

    def generate(self, prompt: str) -> LLMResponse:
        return self._text(self._model.invoke(prompt))

    def chat(self, system: str, user: str) -> LLMResponse:
        return self._text(self._model.invoke([SystemMessage(content=system), HumanMessage(content=user)]))
