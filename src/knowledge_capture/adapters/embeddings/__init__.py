"""Embedding adapters."""

from knowledge_capture.adapters.embeddings.openai_embedder import OpenAIEmbedder, build_embedding_text

__all__ = ["OpenAIEmbedder", "build_embedding_text"]
