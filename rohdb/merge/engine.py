"""
Merge Engine

Folds a source catalog tree into a target tree, one source vendor at a time
(vendor, then each of its products, then each product's EQs) so every parent
directory exists before its children are written.

Identity:
    A source node matches the first target sibling, in the target's own
    order, whose match-key set intersects its own.

Outcomes per level:
    Vendor   match -> reuse target vendor (no field overwrite)
             none  -> create (validate first; failure skips the whole subtree)
    Product  match -> reuse target product (no field overwrite)
             none  -> resolve "unknown" subtype, create (failure skips subtree)
    EQ       match -> correct Q signs, validate, overwrite target if different
             none  -> correct Q signs, create

The merge never deletes or prunes target entities. Failures are logged and
collected in MergeReport.rejected; the run always completes.
"""

from __future__ import annotations

import copy
import json
import logging
import shutil
from pathlib import Path
from typing import Any

from rohdb.errors import AssetIOError, SchemaValidationError
from rohdb.merge.subtype import SubtypeResolver
from rohdb.schemas import SchemaValidator
from rohdb.tree.loader import CatalogNode, CatalogTree, load_tree
from rohdb.types.records import SUBTYPES, UNKNOWN_SUBTYPE
from rohdb.types.results import MergeReport, RecordKind

logger = logging.getLogger(__name__)

# Record fields that may point at files next to info.json
ASSET_FIELDS = ("logo", "photo", "line_art_svg", "line_art_96x64_png")


def correct_q_signs(info: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of an EQ record with every band's Q made non-negative.

    Upstream sources occasionally publish negative Q values by mistake.
    """
    corrected = copy.deepcopy(info)
    parameters = corrected.get("parameters")
    if not isinstance(parameters, dict):
        return corrected
    for band in parameters.get("bands") or []:
        if not isinstance(band, dict):
            continue
        q = band.get("q")
        if isinstance(q, (int, float)) and not isinstance(q, bool) and q < 0:
            band["q"] = -q
    return corrected


def _write_info(directory: Path, info: dict[str, Any]) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "info.json").write_text(
            json.dumps(info, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
    except OSError as e:
        raise AssetIOError(f"Cannot write {directory / 'info.json'}: {e}") from e


def _copy_referenced_assets(source_dir: Path, target_dir: Path, info: dict[str, Any]) -> None:
    """Copy files referenced (relative to source_dir) by asset fields."""
    for field in ASSET_FIELDS:
        reference = info.get(field)
        if not isinstance(reference, str) or not reference:
            continue
        relative = Path(reference)
        if relative.is_absolute() or ".." in relative.parts:
            continue
        source = source_dir / relative
        if not source.is_file():
            logger.debug(f"Referenced asset {source} not found, not copied")
            continue
        target = target_dir / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as e:
            raise AssetIOError(f"Cannot copy {source} to {target}: {e}") from e


class MergeEngine:
    """
    Merges catalog trees.

    Usage:
        engine = MergeEngine(SchemaValidator.default(), PromptSubtypeResolver())
        report = engine.merge(load_tree(source_dir), load_tree(target_dir))
    """

    def __init__(self, validator: SchemaValidator, subtype_resolver: SubtypeResolver) -> None:
        self.validator = validator
        self.subtype_resolver = subtype_resolver

    def merge(self, source: CatalogTree, target: CatalogTree) -> MergeReport:
        """
        Merge source into target, writing changes under target.root.

        Returns:
            MergeReport with per-level counts and rejected entities
        """
        report = MergeReport()

        for source_vendor in source.vendors:
            target_vendor = self._merge_vendor(source_vendor, target, report)
            if target_vendor is None:
                continue

            for source_product in source.children(source_vendor):
                target_product = self._merge_product(
                    source_product, target_vendor, target, report
                )
                if target_product is None:
                    continue

                for source_eq in source.children(source_product):
                    self._merge_eq(source_eq, target_product, target, report)

        logger.info(
            f"Merge complete: {report.vendors_created} vendors, "
            f"{report.products_created} products, {report.eqs_created} EQs created; "
            f"{report.eqs_updated} EQs updated; {len(report.rejected)} rejected"
        )
        return report

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    @staticmethod
    def find_match(node: CatalogNode, candidates: list[CatalogNode]) -> CatalogNode | None:
        """First candidate sharing at least one match key with node."""
        for candidate in candidates:
            if candidate.keys & node.keys:
                return candidate
        return None

    # -------------------------------------------------------------------------
    # Levels
    # -------------------------------------------------------------------------

    def _merge_vendor(
        self,
        source_vendor: CatalogNode,
        target: CatalogTree,
        report: MergeReport,
    ) -> CatalogNode | None:
        match = self.find_match(source_vendor, target.vendors)
        if match is not None:
            logger.info(f"Found matching vendor: {source_vendor.slug} -> {match.slug}")
            report.vendors_matched += 1
            return match

        logger.debug(f"Source vendor keys: {sorted(source_vendor.keys)}")
        for candidate in target.vendors:
            logger.debug(f"Target vendor: {candidate.slug}, keys: {sorted(candidate.keys)}")

        logger.info(f"Creating new vendor: {source_vendor.slug}")
        created = self._create(
            source_vendor, copy.deepcopy(source_vendor.info), None, target, report
        )
        if created is not None:
            report.vendors_created += 1
        return created

    def _merge_product(
        self,
        source_product: CatalogNode,
        target_vendor: CatalogNode,
        target: CatalogTree,
        report: MergeReport,
    ) -> CatalogNode | None:
        match = self.find_match(source_product, target.children(target_vendor))
        if match is not None:
            logger.info(f"Found matching product: {source_product.slug} -> {match.slug}")
            report.products_matched += 1
            return match

        logger.info(f"Creating new product: {source_product.slug}")
        info = copy.deepcopy(source_product.info)
        if info.get("subtype") == UNKNOWN_SUBTYPE:
            subtype = self.subtype_resolver.resolve(target_vendor.name, source_product.name)
            if subtype not in SUBTYPES:
                raise ValueError(
                    f"Subtype resolver returned {subtype!r}, expected one of {', '.join(SUBTYPES)}"
                )
            info["subtype"] = subtype

        created = self._create(source_product, info, target_vendor, target, report)
        if created is not None:
            report.products_created += 1
        return created

    def _merge_eq(
        self,
        source_eq: CatalogNode,
        target_product: CatalogNode,
        target: CatalogTree,
        report: MergeReport,
    ) -> CatalogNode | None:
        if not isinstance(source_eq.info, dict):
            self._reject(report, f"EQ {source_eq.info_path} is not a JSON object, skipping")
            return None
        info = correct_q_signs(source_eq.info)

        match = self.find_match(source_eq, target.children(target_product))
        if match is None:
            logger.info(f"Creating new EQ: {source_eq.slug}")
            created = self._create(source_eq, info, target_product, target, report)
            if created is not None:
                report.eqs_created += 1
            return created

        logger.info(f"Found matching EQ: {source_eq.slug} -> {match.slug}")
        try:
            self.validator.validate(RecordKind.EQ, info, source=source_eq.info_path)
        except SchemaValidationError as e:
            self._reject(report, f"EQ {source_eq.info_path} not applied: {e}")
            return match

        if info == match.info:
            report.eqs_unchanged += 1
            return match

        try:
            _write_info(match.path, info)
        except AssetIOError as e:
            self._reject(report, f"EQ {source_eq.info_path} not applied: {e}")
            return match

        match.info = info
        report.eqs_updated += 1
        return match

    # -------------------------------------------------------------------------
    # Create path
    # -------------------------------------------------------------------------

    def _create(
        self,
        source_node: CatalogNode,
        info: dict[str, Any],
        target_parent: CatalogNode | None,
        target: CatalogTree,
        report: MergeReport,
    ) -> CatalogNode | None:
        """Validate and write a new node under target_parent; None if skipped."""
        kind = source_node.kind
        try:
            self.validator.validate(kind, info, source=source_node.info_path)
        except SchemaValidationError as e:
            self._reject(report, f"Invalid {kind.value} info for {source_node.slug}, skipping: {e}")
            return None

        path = target.child_dir(target_parent, source_node.slug)
        try:
            _copy_referenced_assets(source_node.path, path, info)
            _write_info(path, info)
        except AssetIOError as e:
            self._reject(report, f"Could not create {kind.value} {source_node.slug}: {e}")
            return None

        return target.add(kind, source_node.slug, info, path, parent=target_parent)

    @staticmethod
    def _reject(report: MergeReport, message: str) -> None:
        logger.warning(message)
        report.rejected.append(message)


def merge_directories(
    source_dir: Path | str,
    target_dir: Path | str,
    *,
    resolver: SubtypeResolver,
    validator: SchemaValidator | None = None,
) -> MergeReport:
    """
    Load both trees and merge source_dir into target_dir.

    Args:
        source_dir: Catalog root to read from
        target_dir: Catalog root to write into
        resolver: Answers for products with subtype "unknown"
        validator: Schema validator (packaged schemas by default)
    """
    target = load_tree(target_dir)
    logger.info(
        f"Loaded {target.vendor_count} vendors, {target.product_count} products, "
        f"and {target.eq_count} EQs from target"
    )

    source = load_tree(source_dir)
    logger.info(
        f"Loaded {source.vendor_count} vendors, {source.product_count} products, "
        f"and {source.eq_count} EQs from source"
    )

    engine = MergeEngine(validator or SchemaValidator.default(), resolver)
    return engine.merge(source, target)
