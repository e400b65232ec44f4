"""
Catalog Assembler

Builds the distributable catalog from a database tree.

Phases:
    1. Discover - classify every info.json by path shape (discovery order)
    2. Load - parse and validate every record; any failure aborts the build
    3. Resolve assets - store logos/photos/line art, derive line-art rasters
       (records resolved concurrently, order preserved)
    4. Emit - write database_v1.jsonl atomically (skipped in dry-run mode)

The artifact is all-or-nothing: a failure in phases 1-3 leaves any previous
artifact untouched.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any
from uuid import uuid4

from filelock import FileLock

from rohdb.assembly.discovery import RecordPath, discover_records
from rohdb.assets import AssetKind, AssetStore, BuildContext
from rohdb.config import RohDBConfig
from rohdb.errors import RecordParseError
from rohdb.schemas import SchemaValidator
from rohdb.types.results import AssemblyResult, CatalogRecord, RecordKind

logger = logging.getLogger(__name__)

# Record fields holding asset references, per kind
IMAGE_FIELDS: dict[RecordKind, tuple[str, ...]] = {
    RecordKind.VENDOR: ("logo",),
    RecordKind.PRODUCT: ("photo",),
    RecordKind.EQ: (),
}
LINE_ART_FIELD = "line_art_svg"
LINE_ART_RASTER_FIELD = "line_art_96x64_png"


class CatalogAssembler:
    """
    Turns a database tree into an asset store plus one record artifact.

    Usage:
        assembler = CatalogAssembler(database_dir, dist_dir, validator, store)
        result = await assembler.assemble(dry_run=True)
    """

    def __init__(
        self,
        database_dir: Path | str,
        dist_dir: Path | str,
        validator: SchemaValidator,
        asset_store: AssetStore,
        *,
        artifact_name: str = "database_v1.jsonl",
        line_art_size: tuple[int, int] = (96, 64),
    ):
        self.database_dir = Path(database_dir)
        self.dist_dir = Path(dist_dir)
        self.validator = validator
        self.assets = asset_store
        self.artifact_name = artifact_name
        self.line_art_size = line_art_size

    @classmethod
    def from_config(cls, config: RohDBConfig, **store_kwargs) -> CatalogAssembler:
        """Wire an assembler, validator and asset store from configuration."""
        return cls(
            config.database_dir,
            config.dist_dir,
            SchemaValidator.from_config(config.schemas_dir),
            AssetStore.from_config(config, **store_kwargs),
            artifact_name=config.artifact_name,
            line_art_size=(config.line_art_width, config.line_art_height),
        )

    @property
    def artifact_path(self) -> Path:
        return self.dist_dir / self.artifact_name

    async def assemble(
        self,
        *,
        dry_run: bool = False,
        context: BuildContext | None = None,
    ) -> AssemblyResult:
        """
        Build the catalog.

        Args:
            dry_run: Take every decision but write nothing
            context: Build context to use (a fresh one by default)

        Returns:
            AssemblyResult with the records and asset actions of this build

        Raises:
            RecordParseError: An info.json is not valid JSON
            SchemaValidationError: A record fails its schema
            AssetConstraintError: A logo/photo is not a 1024x1024 PNG
            AssetIOError: An asset cannot be read or stored
            SubprocessError: The rasterizer failed
        """
        if context is None:
            context = BuildContext(dry_run=dry_run)
        elif context.dry_run != dry_run:
            raise ValueError("context.dry_run does not match dry_run")

        tasks: list[asyncio.Future[None]] = []
        try:
            # Phase 1-2: discover, parse, validate (fail fast)
            loaded = [
                (record_path, self._load(record_path))
                for record_path in discover_records(self.database_dir)
            ]

            # Phase 3: resolve assets concurrently
            tasks = [
                asyncio.ensure_future(self._resolve_assets(rp, data, context))
                for rp, data in loaded
            ]
            await asyncio.gather(*tasks)
        except Exception as e:
            logger.error(f"Build aborted, no artifact written: {e}")
            await _cancel_all(tasks, context)
            raise

        for record_path, data in loaded:
            context.records.append(
                CatalogRecord(type=record_path.kind, id=record_path.record_id, data=data)
            )

        # Phase 4: emit
        artifact_path = None
        if dry_run:
            logger.info(
                f"GENERATING Would write {self.artifact_name} with {len(context.records)} entries."
            )
        else:
            logger.info(
                f"GENERATING Writing {self.artifact_name} with {len(context.records)} entries."
            )
            artifact_path = await asyncio.to_thread(self._write_artifact, context.records)

        return AssemblyResult(
            record_count=len(context.records),
            artifact_path=artifact_path,
            dry_run=dry_run,
            records=list(context.records),
            actions=list(context.actions),
        )

    def _load(self, record_path: RecordPath) -> dict[str, Any]:
        """Parse and validate one record."""
        try:
            with open(record_path.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise RecordParseError(f"Failed to parse JSON in {record_path.path}: {e}") from e

        self.validator.validate(record_path.kind, data, source=record_path.path)
        return data

    async def _resolve_assets(
        self,
        record_path: RecordPath,
        data: dict[str, Any],
        context: BuildContext,
    ) -> None:
        """Rewrite asset fields of one record to canonical references, in place."""
        base = record_path.directory

        for field in IMAGE_FIELDS[record_path.kind]:
            if data.get(field):
                data[field] = await self.assets.store_original(
                    base / data[field], AssetKind.IMAGE, context
                )

        if record_path.kind is RecordKind.PRODUCT and data.get(LINE_ART_FIELD):
            svg_path = base / data[LINE_ART_FIELD]
            width, height = self.line_art_size
            svg_ref, png_ref = await asyncio.gather(
                self.assets.store_original(svg_path, AssetKind.VECTOR, context),
                self.assets.derive_raster(svg_path, width, height, context),
            )
            data[LINE_ART_FIELD] = svg_ref
            data[LINE_ART_RASTER_FIELD] = png_ref

    def _write_artifact(self, records: list[CatalogRecord]) -> Path:
        """Replace the artifact with one JSON line per record."""
        self.dist_dir.mkdir(parents=True, exist_ok=True)
        target = self.artifact_path
        tmp = target.with_name(f".{target.name}.{uuid4().hex}.tmp")

        with FileLock(self.dist_dir / ".dist.lock", timeout=30):
            try:
                with open(tmp, "w", encoding="utf-8") as f:
                    for record in records:
                        f.write(record.to_json_line() + "\n")
                os.replace(tmp, target)
            finally:
                tmp.unlink(missing_ok=True)

        return target


async def _cancel_all(tasks: list[asyncio.Future[None]], context: BuildContext) -> None:
    """Stop sibling record tasks and the memoized asset work they started."""
    for task in tasks:
        if not task.done():
            task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
    await context.cancel_pending()
