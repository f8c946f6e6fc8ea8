"""AI agents for enriching blocks."""

from .runner import EnrichmentService
from .registry import agent_registry, AgentConfig, AgentRegistry

__all__ = ["EnrichmentService", "agent_registry", "AgentConfig", "AgentRegistry"]
