"""
Vendor/Product Splitter

Splits raw product names such as "Sennheiser HD 800 S" into a vendor part and
a product part with an LLM. Answers are sampled, so a failed attempt is
retried with a slightly higher temperature after a pause, up to a fixed
budget.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from rohdb.config.settings import RohDBConfig
from rohdb.errors import ClassificationError
from rohdb.providers.base import LLMProvider
from rohdb.types.results import VendorProductSplit

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant."

SPLIT_PROMPT = """Extract the vendor name and product name from the following product name: "{raw_name}".
The vendor name is the part of the string that comes before the specific model or product designation.

When you see a product name like 'Sennheiser HD 800 S', split it so that vendor is 'Sennheiser' and product name is 'HD 800 S'.
When you see a product name like 'Moondrop x Crinacle FooBarBaz', split it so that vendor is 'Moondrop' and product name is 'Moondrop x Crinacle FooBarBaz'. This is a special case for collaborations.
In general, words like "Audio" or "Acoustics" are part of a vendor name, e.g. "Aroma Audio ACE" is a product by "Aroma Audio". "ACE" is the product name. "Audio" is not part of the product name.
There is a vendor called "Unknown"."""


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attempt budget for one split.

    Attempt n (0-based) samples at initial_temperature + n * temperature_step
    and is followed, if it fails and budget remains, by delay_seconds of sleep.
    """

    max_attempts: int = 10
    initial_temperature: float = 0.2
    temperature_step: float = 0.05
    delay_seconds: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def temperature(self, attempt: int) -> float:
        return round(self.initial_temperature + attempt * self.temperature_step, 6)

    def temperatures(self) -> list[float]:
        """Temperature of every attempt, in order."""
        return [self.temperature(n) for n in range(self.max_attempts)]

    @classmethod
    def from_config(cls, config: RohDBConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.split_max_attempts,
            initial_temperature=config.split_initial_temperature,
            temperature_step=config.split_temperature_step,
            delay_seconds=config.split_retry_delay_seconds,
        )


class VendorProductSplitter:
    """
    LLM-backed vendor/product name splitter.

    Usage:
        splitter = VendorProductSplitter(OpenAILLMProvider(), RetryPolicy())
        split = await splitter.split("Aroma Audio ACE")
        # VendorProductSplit(vendor_name="Aroma Audio", product_name="ACE")
    """

    def __init__(self, llm: LLMProvider, policy: RetryPolicy | None = None) -> None:
        self.llm = llm
        self.policy = policy or RetryPolicy()

    async def split(self, raw_name: str) -> VendorProductSplit:
        """
        Split raw_name into vendor and product parts.

        Raises:
            ClassificationError: Every attempt failed or returned an empty field
        """
        prompt = SPLIT_PROMPT.format(raw_name=raw_name)
        policy = self.policy

        for attempt in range(policy.max_attempts):
            temperature = policy.temperature(attempt)
            try:
                result = await self.llm.generate_structured(
                    prompt,
                    VendorProductSplit,
                    system=SYSTEM_PROMPT,
                    temperature=temperature,
                )
                vendor_name = (result.vendor_name or "").strip()
                product_name = (result.product_name or "").strip()
                if vendor_name and product_name:
                    return VendorProductSplit(vendor_name=vendor_name, product_name=product_name)
                logger.error(
                    f"{self.llm.model_name} failed to extract vendor and product names "
                    f"for {raw_name!r} (attempt {attempt + 1}): {result}"
                )
            except Exception as e:
                logger.error(
                    f"{self.llm.model_name} failed to extract vendor and product names "
                    f"for {raw_name!r} (attempt {attempt + 1}): {e}"
                )

            if attempt + 1 < policy.max_attempts and policy.delay_seconds > 0:
                await asyncio.sleep(policy.delay_seconds)

        raise ClassificationError(
            f"Failed to split vendor/product for {raw_name!r} after {policy.max_attempts} attempts"
        )
