"""
rohdb - Headphone EQ Catalog Tooling

Builds a distributable catalog (vendors -> products -> EQ presets) from a
tree of per-entity info.json files, and merges independently grown catalog
trees without duplicating vendors or products known under different names.

Example:
    >>> from rohdb import CatalogAssembler, RohDBConfig
    >>> assembler = CatalogAssembler.from_config(RohDBConfig())
    >>> result = await assembler.assemble(dry_run=True)
    >>> print(result.record_count)

    >>> from rohdb import merge_directories, StaticSubtypeResolver
    >>> report = merge_directories("./incoming", "./database",
    ...                            resolver=StaticSubtypeResolver("in_ear"))

Main Classes:
    CatalogAssembler: Build database_v1.jsonl and the asset store
    AssetStore: Content-addressed asset storage
    MergeEngine: Fold one catalog tree into another
    RohDBConfig: Configuration management
"""

__version__ = "0.3.0"


# Public API - lazy imports to avoid loading optional dependencies
def __getattr__(name: str):
    """Lazy import public API components."""

    if name == "CatalogAssembler":
        from rohdb.assembly.assembler import CatalogAssembler
        return CatalogAssembler

    if name in ("AssetStore", "BuildContext"):
        from rohdb import assets
        return getattr(assets, name)

    if name in ("MergeEngine", "merge_directories"):
        from rohdb import merge
        return getattr(merge, name)

    if name in ("StaticSubtypeResolver", "PromptSubtypeResolver"):
        from rohdb.merge import subtype
        return getattr(subtype, name)

    if name in ("CatalogTree", "load_tree"):
        from rohdb import tree
        return getattr(tree, name)

    if name == "RohDBConfig":
        from rohdb.config.settings import RohDBConfig
        return RohDBConfig

    if name == "SchemaValidator":
        from rohdb.schemas.validator import SchemaValidator
        return SchemaValidator

    raise AttributeError(f"module 'rohdb' has no attribute {name!r}")


__all__ = [
    # Main classes
    "CatalogAssembler",
    "AssetStore",
    "BuildContext",
    "MergeEngine",
    "CatalogTree",
    "RohDBConfig",
    "SchemaValidator",
    "StaticSubtypeResolver",
    "PromptSubtypeResolver",

    # Convenience functions
    "merge_directories",
    "load_tree",

    # Version
    "__version__",
]
