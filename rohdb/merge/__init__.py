"""
Catalog Tree Merging

Folds one catalog tree into another without duplicating vendors, products or
EQs that appear under different names.

Modules:
    engine: MergeEngine, merge_directories(), Q-sign correction
    subtype: Strategies for resolving "unknown" product subtypes

Matching:
    - Names and slugs normalized to match keys (see rohdb.tree.keys)
    - Exact key-set intersection, first target match wins
    - Deterministic: re-running a merge changes nothing
"""

from rohdb.merge.engine import MergeEngine, correct_q_signs, merge_directories
from rohdb.merge.subtype import (
    PromptSubtypeResolver,
    StaticSubtypeResolver,
    SubtypeResolver,
)

__all__ = [
    "MergeEngine",
    "merge_directories",
    "correct_q_signs",
    "SubtypeResolver",
    "PromptSubtypeResolver",
    "StaticSubtypeResolver",
]
