"""
Agent Registry for Stash.

This module defines the registry of the enrichment agents, their prompts and
the response schemas they ask the model to follow. Keeping them in one place
makes it easy to tune a prompt or add an agent.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass


@dataclass
class AgentConfig:
    """
    Configuration for an enrichment agent.
    """
    name: str
    description: str
    prompt_template: str
    response_schema: Optional[Dict[str, Any]] = None

    def render(self, **kwargs) -> str:
        """Fill the prompt template."""
        return self.prompt_template.format(**kwargs)


# Schema for the analyze agent, in the backend's schema dialect
ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "summary": {"type": "STRING"},
        "tags": {"type": "ARRAY", "items": {"type": "STRING"}}
    },
    "required": ["title", "summary", "tags"]
}


class AgentRegistry:
    """
    Registry of the available enrichment agents.
    """

    def __init__(self):
        """Initialize the agent registry with default agents."""
        self._agents: Dict[str, AgentConfig] = {}
        self._register_default_agents()

    def _register_default_agents(self):
        """Register the default agents used by Stash."""

        # Analyze Agent - titles, summarizes and tags a single block
        self.register_agent(AgentConfig(
            name="analyze",
            description="Suggests a title, summary and tags for one block",
            prompt_template="""Analyze this {block_type}:
Content: {content}

Return JSON with:
1. title (short, max 6 words)
2. summary (1 sentence)
3. tags (array of 3-5 lowercase single words)""",
            response_schema=ANALYSIS_SCHEMA
        ))

        # Connections Agent - looks for a theme across several blocks
        self.register_agent(AgentConfig(
            name="connections",
            description="Finds a hidden theme or link across a set of blocks",
            prompt_template="""Here is a set of notes/blocks:
{context}

Task: Find a hidden theme, interesting connection, or insight that links several of these items together. Be brief and insightful."""
        ))

    def register_agent(self, config: AgentConfig) -> None:
        """
        Register a new agent configuration.

        Args:
            config: The agent configuration to register
        """
        self._agents[config.name] = config

    def get_agent(self, name: str) -> Optional[AgentConfig]:
        """
        Get an agent configuration by name.

        Args:
            name: The name of the agent

        Returns:
            The agent configuration, or None if not found
        """
        return self._agents.get(name)

    def list_agents(self) -> List[str]:
        """
        Get a list of all registered agent names.

        Returns:
            List of agent names
        """
        return list(self._agents.keys())


# Global agent registry instance
agent_registry = AgentRegistry()
