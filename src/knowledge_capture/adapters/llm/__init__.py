"""Language-model adapters."""

from knowledge_capture.adapters.llm.claude_client import ClaudeClient
from knowledge_capture.adapters.llm.grok_client import GrokClient

__all__ = ["ClaudeClient", "GrokClient"]
