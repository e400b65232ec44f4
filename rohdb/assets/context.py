"""
Build Context

Per-run state for one catalog build: memoized tasks, canonical paths planned
so far, the asset action log and the record accumulator. A fresh context is
created for every build so runs never share state; it belongs to the event
loop it was first used on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from rohdb.types.results import AssetAction, CatalogRecord


@dataclass
class BuildContext:
    """
    Mutable state threaded through one build.

    Attributes:
        dry_run: Decide everything, write nothing
        tasks: Memoized in-flight/completed tasks by key
        planned: Canonical references stored (or that would be stored) this run
        actions: Asset decisions in the order they were taken
        records: Catalog records in discovery order
    """

    dry_run: bool = False
    tasks: dict[Hashable, asyncio.Task[Any]] = field(default_factory=dict)
    planned: set[str] = field(default_factory=set)
    actions: list[AssetAction] = field(default_factory=list)
    records: list[CatalogRecord] = field(default_factory=list)
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict, repr=False)

    async def run_once(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run factory() at most once per key for this build.

        Concurrent callers with the same key await the same task and share its
        result (or its exception).
        """
        task = self.tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self.tasks[key] = task
        return await asyncio.shield(task)

    def lock_for(self, reference: str) -> asyncio.Lock:
        """Lock serializing writes to one canonical reference."""
        lock = self._locks.get(reference)
        if lock is None:
            lock = self._locks[reference] = asyncio.Lock()
        return lock

    def record_action(
        self,
        action: Literal["copy", "generate", "skip"],
        source: Path | str,
        target: str,
    ) -> None:
        self.actions.append(AssetAction(action=action, source=str(source), target=target))

    async def cancel_pending(self) -> None:
        """Cancel memoized tasks still running and wait for them to finish."""
        pending = [task for task in self.tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
