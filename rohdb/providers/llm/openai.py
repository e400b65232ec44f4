"""
OpenAI LLM Provider (LangChain-based)

Implements LLMProvider using LangChain's ChatOpenAI and
with_structured_output.

Example:
    >>> from rohdb.types import VendorProductSplit
    >>> provider = OpenAILLMProvider(model="gpt-4o-mini")
    >>> split = await provider.generate_structured(
    ...     "Split 'Sennheiser HD 800 S'", VendorProductSplit, temperature=0.2
    ... )
    >>> print(split.vendor_name)
    Sennheiser
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from rohdb.providers.base import LLMProvider

if TYPE_CHECKING:
    from langchain_openai import ChatOpenAI
    from pydantic import BaseModel

T = TypeVar("T", bound="BaseModel")

logger = logging.getLogger(__name__)


def _get_chat_openai(
    api_key: str | None = None,
    model: str = "gpt-4o-mini",
    temperature: float = 0.0,
    max_tokens: int | None = None,
) -> "ChatOpenAI":
    """
    Get a ChatOpenAI instance.

    Imported lazily so building and merging catalogs never loads langchain.
    """
    from langchain_openai import ChatOpenAI

    kwargs: dict[str, Any] = {"model": model, "temperature": temperature}
    if api_key:
        kwargs["api_key"] = api_key
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    return ChatOpenAI(**kwargs)


class OpenAILLMProvider(LLMProvider):
    """
    OpenAI provider using LangChain.

    Args:
        api_key: OpenAI API key. If None, uses OPENAI_API_KEY environment variable.
        model: Model to use (default: "gpt-4o-mini")
        max_tokens: Response token cap
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        max_tokens: int | None = 100,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens

    @property
    def model_name(self) -> str:
        """Current model name."""
        return self._model

    async def generate_structured(
        self,
        prompt: str,
        schema: type[T],
        *,
        system: str | None = None,
        temperature: float = 0.0,
        images: list[bytes] | None = None,
    ) -> T:
        """
        Generate a structured response matching a Pydantic schema.

        A new client is built per call since temperature varies between
        retry attempts. Images are sent as base64 PNG data URLs at high detail.
        """
        from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

        client = _get_chat_openai(
            api_key=self._api_key,
            model=self._model,
            temperature=temperature,
            max_tokens=self._max_tokens,
        )

        messages: list[BaseMessage] = []
        if system:
            messages.append(SystemMessage(content=system))
        if images:
            content: list[str | dict[str, Any]] = []
            if prompt:
                content.append({"type": "text", "text": prompt})
            for image in images:
                b64 = base64.b64encode(image).decode("ascii")
                content.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:image/png;base64,{b64}", "detail": "high"},
                })
            messages.append(HumanMessage(content=content))
        else:
            messages.append(HumanMessage(content=prompt))

        logger.debug(f"Requesting {schema.__name__} from {self._model} at temperature {temperature:.2f}")
        structured_client = client.with_structured_output(schema)
        result = await structured_client.ainvoke(messages)
        return result  # type: ignore[return-value]
