"""AI agents for DNA analysis and the genealogy assistant."""

from ancestree.agents.assistant_agent import AssistantAgent
from ancestree.agents.dna_agent import DnaAgent
from ancestree.agents.gateway import AIGateway
from ancestree.agents.llm_client import LLMClient
from ancestree.agents.retry import RetryPolicy

__all__ = [
    "AssistantAgent",
    "DnaAgent",
    "AIGateway",
    "LLMClient",
    "RetryPolicy",
]
