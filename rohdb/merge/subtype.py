"""
Subtype Resolution

Products imported without a known form factor carry subtype "unknown". The
merge engine cannot write such a product until a SubtypeResolver supplies one
of the four real subtypes; the call blocks until it does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping

from rich.console import Console
from rich.prompt import IntPrompt

from rohdb.types.records import SUBTYPES


class SubtypeResolver(ABC):
    """Supplies a product subtype for a vendor/product name pair."""

    @abstractmethod
    def resolve(self, vendor_name: str, product_name: str) -> str:
        """Return one of over_the_ear, on_ear, in_ear, earbuds."""
        ...


class PromptSubtypeResolver(SubtypeResolver):
    """Asks on the terminal, repeating until a valid number is entered."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def resolve(self, vendor_name: str, product_name: str) -> str:
        self.console.print(
            f"\nPlease enter the headphone subtype for [bold]{vendor_name} {product_name}[/]:"
        )
        for number, subtype in enumerate(SUBTYPES, 1):
            self.console.print(f"{number}. {subtype}")

        choice = IntPrompt.ask(
            f"Enter number (1-{len(SUBTYPES)})",
            choices=[str(n) for n in range(1, len(SUBTYPES) + 1)],
            show_choices=False,
            console=self.console,
        )
        return SUBTYPES[choice - 1]


class StaticSubtypeResolver(SubtypeResolver):
    """
    Deterministic answers, for tests and unattended merges.

    Args:
        default: Subtype returned when no per-product answer exists
        answers: {(vendor_name, product_name): subtype}

    Attributes:
        calls: Every (vendor_name, product_name) asked, in order
    """

    def __init__(
        self,
        default: str | None = None,
        answers: Mapping[tuple[str, str], str] | None = None,
    ) -> None:
        self.default = default
        self.answers = dict(answers or {})
        self.calls: list[tuple[str, str]] = []

    def resolve(self, vendor_name: str, product_name: str) -> str:
        self.calls.append((vendor_name, product_name))
        answer = self.answers.get((vendor_name, product_name), self.default)
        if answer is None:
            raise LookupError(f"No subtype configured for {vendor_name} {product_name}")
        return answer
