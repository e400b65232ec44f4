"""
LLM Providers

Provider-agnostic interface for the structured LLM calls used to split raw
product names.

Modules:
    base: Abstract provider interface
    llm/: LLM provider implementations

Supported LLM Providers:
    - OpenAI (gpt-4o-mini) via LangChain

Example:
    >>> from rohdb.providers import LLMProvider
    >>> from rohdb.providers.llm import OpenAILLMProvider
"""

from rohdb.providers.base import LLMProvider

__all__ = ["LLMProvider"]
