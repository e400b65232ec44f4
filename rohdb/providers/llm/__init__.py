"""LLM provider implementations."""

from rohdb.providers.llm.openai import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
