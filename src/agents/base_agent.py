from __future__ import annotations

from abc import ABC, abstractmethod

from src.core.schemas import AgentRequest, AgentResponse


class BaseAgent(ABC):
    """Agents take one chat turn and return a rendered answer; they never raise."""

    name: str

    @abstractmethod
    def run(self, req: AgentRequest) -> AgentResponse:
        raise NotImplementedError
