"""Code-hosting adapters."""

from knowledge_capture.adapters.codehost.github_client import GitHubClient

__all__ = ["GitHubClient"]
