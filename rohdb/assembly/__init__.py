"""
Catalog Assembly

Builds dist/ from a database tree.

Modules:
    discovery: info.json discovery and path-shape classification
    assembler: Validation, asset resolution and artifact emission

Output:
    - dist/assets/...            content-addressed assets
    - dist/database_v1.jsonl     one {type, id, data} object per line

Idempotency:
    - Safe to re-run; existing assets are skipped
    - The artifact is rewritten atomically on every successful build
"""

from rohdb.assembly.assembler import CatalogAssembler
from rohdb.assembly.discovery import RecordPath, classify_path, discover_records

__all__ = ["CatalogAssembler", "RecordPath", "classify_path", "discover_records"]
