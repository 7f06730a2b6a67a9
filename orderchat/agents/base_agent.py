"""BaseAgent interface for all agents."""
from typing import Any, Dict
from ..schemas.io_models import AgentResult
from ..utils.logger import get_logger

logger = get_logger(__name__)

class BaseAgent:
    name: str = "base"

    def _ok(self, intent: str, outcome: str, facts: Dict[str, Any] = None) -> AgentResult:
        return AgentResult(agent=self.name, intent=intent, outcome=outcome, facts=dict(facts or {}))

    def _reject(self, intent: str, outcome: str, facts: Dict[str, Any] = None) -> AgentResult:
        logger.info("[%s] %s rejected: %s", self.name, intent, outcome)
        return AgentResult(agent=self.name, intent=intent, outcome=outcome, facts=dict(facts or {}))
