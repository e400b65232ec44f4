"""
Catalog Trees

In-memory vendor -> product -> EQ trees with match keys, used by the merge
engine.

Modules:
    loader: CatalogTree arena and load_tree()
    keys: Match-key normalization and alias table
"""

from rohdb.tree.keys import ALIASES, node_keys, normalize_for_comparison
from rohdb.tree.loader import CatalogNode, CatalogTree, load_tree

__all__ = [
    "CatalogNode",
    "CatalogTree",
    "load_tree",
    "normalize_for_comparison",
    "node_keys",
    "ALIASES",
]
