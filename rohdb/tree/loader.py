"""
Entity Tree Loader

Materializes a directory-shaped catalog as an arena of nodes:

    CatalogTree
    └── nodes[id] = CatalogNode(kind, slug, info, path, keys, parent_id, child_ids)

Parents are referenced by id, children by id lists; the tree owns all nodes.

Loading does not validate. Vendor and product info.json files are read as
they are (a broken one, or one that is not a JSON object, is an error); a
broken EQ is logged and left out, since merges have to tolerate partially bad
trees.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rohdb.errors import RecordParseError
from rohdb.tree.keys import node_keys
from rohdb.types.results import RecordKind

logger = logging.getLogger(__name__)

# Directory segment holding the children of each kind
CHILD_SEGMENT: dict[RecordKind, str] = {
    RecordKind.VENDOR: "products",
    RecordKind.PRODUCT: "eq",
}


@dataclass
class CatalogNode:
    """
    One vendor, product or EQ.

    Attributes:
        id: Stable arena index
        kind: Record kind
        slug: Directory name
        info: Parsed info.json payload
        path: Directory holding info.json
        keys: Match keys (derived from name and slug, never persisted)
        parent_id: Arena id of the owning node, None for vendors
        child_ids: Arena ids of owned nodes, in discovery order
    """

    id: int
    kind: RecordKind
    slug: str
    info: dict[str, Any]
    path: Path
    keys: frozenset[str]
    parent_id: int | None = None
    child_ids: list[int] = field(default_factory=list)

    @property
    def info_path(self) -> Path:
        return self.path / "info.json"

    @property
    def name(self) -> str:
        """Display name, falling back to the slug."""
        name = self.info.get("name")
        return name if isinstance(name, str) and name else self.slug


class CatalogTree:
    """
    Arena-backed vendor -> product -> EQ tree rooted at a database directory.

    Usage:
        tree = load_tree("./database")
        for vendor in tree.vendors:
            for product in tree.children(vendor):
                ...
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._nodes: list[CatalogNode] = []
        self._vendor_ids: list[int] = []

    def add(
        self,
        kind: RecordKind,
        slug: str,
        info: dict[str, Any],
        path: Path,
        parent: CatalogNode | None = None,
    ) -> CatalogNode:
        """Append a node (keys computed from slug and info) under parent."""
        if (kind is RecordKind.VENDOR) != (parent is None):
            raise ValueError(f"Only vendor nodes are top-level (got {kind.value})")

        node = CatalogNode(
            id=len(self._nodes),
            kind=kind,
            slug=slug,
            info=info,
            path=path,
            keys=node_keys(kind, slug, info),
            parent_id=parent.id if parent is not None else None,
        )
        self._nodes.append(node)
        if parent is None:
            self._vendor_ids.append(node.id)
        else:
            parent.child_ids.append(node.id)
        return node

    def node(self, node_id: int) -> CatalogNode:
        return self._nodes[node_id]

    def parent(self, node: CatalogNode) -> CatalogNode | None:
        return self._nodes[node.parent_id] if node.parent_id is not None else None

    def children(self, node: CatalogNode) -> list[CatalogNode]:
        return [self._nodes[i] for i in node.child_ids]

    def child_dir(self, node: CatalogNode | None, slug: str) -> Path:
        """Directory a new child with this slug would live in."""
        if node is None:
            return self.root / "vendors" / slug
        return node.path / CHILD_SEGMENT[node.kind] / slug

    @property
    def vendors(self) -> list[CatalogNode]:
        return [self._nodes[i] for i in self._vendor_ids]

    def count(self, kind: RecordKind) -> int:
        return sum(1 for node in self._nodes if node.kind is kind)

    @property
    def vendor_count(self) -> int:
        return self.count(RecordKind.VENDOR)

    @property
    def product_count(self) -> int:
        return self.count(RecordKind.PRODUCT)

    @property
    def eq_count(self) -> int:
        return self.count(RecordKind.EQ)

    def __len__(self) -> int:
        return len(self._nodes)


def _subdirectories(path: Path) -> list[Path]:
    """Sorted child directories; a missing directory has none."""
    if not path.is_dir():
        return []
    return sorted(p for p in path.iterdir() if p.is_dir())


def _read_info(directory: Path) -> dict[str, Any]:
    """
    Parse directory/info.json.

    Raises:
        RecordParseError: The file is JSON but not an object
    """
    path = directory / "info.json"
    with open(path, encoding="utf-8") as f:
        info = json.load(f)
    if not isinstance(info, dict):
        raise RecordParseError(f"{path} does not hold a JSON object")
    return info


def load_tree(root: Path | str) -> CatalogTree:
    """
    Load the catalog rooted at root (the directory containing vendors/).

    Returns:
        CatalogTree with every vendor, product and loadable EQ
    """
    tree = CatalogTree(root)

    for vendor_dir in _subdirectories(tree.root / "vendors"):
        vendor = tree.add(RecordKind.VENDOR, vendor_dir.name, _read_info(vendor_dir), vendor_dir)

        for product_dir in _subdirectories(vendor_dir / "products"):
            product = tree.add(
                RecordKind.PRODUCT,
                product_dir.name,
                _read_info(product_dir),
                product_dir,
                parent=vendor,
            )

            for eq_dir in _subdirectories(product_dir / "eq"):
                try:
                    info = _read_info(eq_dir)
                except (OSError, json.JSONDecodeError, RecordParseError) as e:
                    logger.warning(f"Error loading EQ info for {eq_dir}: {e}")
                    continue
                tree.add(RecordKind.EQ, eq_dir.name, info, eq_dir, parent=product)

    return tree
