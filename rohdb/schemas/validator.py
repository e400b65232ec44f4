"""
Schema Validator

Draft-07 JSON Schema validation for the three record kinds. Both the build
and the merge pipelines treat it as a pass/fail oracle; what they do with a
failure differs (build aborts, merge skips the entity).
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

from rohdb.errors import SchemaValidationError
from rohdb.types.results import RecordKind

SCHEMA_FILES = {
    RecordKind.VENDOR: "vendor_info.json",
    RecordKind.PRODUCT: "product_info.json",
    RecordKind.EQ: "eq_info.json",
}


class SchemaValidator:
    """
    Validates vendor, product and EQ records.

    Usage:
        validator = SchemaValidator.default()
        validator.validate(RecordKind.EQ, data, source=path)  # raises on failure
        if validator.is_valid(RecordKind.PRODUCT, data): ...
    """

    def __init__(self, schemas: dict[RecordKind, dict[str, Any]]) -> None:
        missing = [kind.value for kind in RecordKind if kind not in schemas]
        if missing:
            raise ValueError(f"Missing schemas for: {', '.join(missing)}")
        self._validators = {
            kind: Draft7Validator(schema) for kind, schema in schemas.items()
        }

    @classmethod
    def default(cls) -> "SchemaValidator":
        """Validator using the schemas shipped with the package."""
        package = resources.files("rohdb.schemas")
        schemas = {
            kind: json.loads(package.joinpath(filename).read_text(encoding="utf-8"))
            for kind, filename in SCHEMA_FILES.items()
        }
        return cls(schemas)

    @classmethod
    def from_directory(cls, path: str | Path) -> "SchemaValidator":
        """Validator using vendor_info.json / product_info.json / eq_info.json from a directory."""
        path = Path(path)
        schemas = {}
        for kind, filename in SCHEMA_FILES.items():
            with (path / filename).open("r", encoding="utf-8") as fp:
                schemas[kind] = json.load(fp)
        return cls(schemas)

    @classmethod
    def from_config(cls, schemas_dir: str | Path | None) -> "SchemaValidator":
        """Directory schemas when configured, packaged schemas otherwise."""
        if schemas_dir:
            return cls.from_directory(schemas_dir)
        return cls.default()

    def errors(self, kind: RecordKind, data: Any) -> list[str]:
        """Return validation messages ("<json path>: <message>"), empty when valid."""
        validator = self._validators[RecordKind(kind)]
        errors = sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.path)))
        messages: list[str] = []
        for err in errors:
            loc = "/".join(str(p) for p in err.path) or "<root>"
            messages.append(f"{loc}: {err.message}")
        return messages

    def is_valid(self, kind: RecordKind, data: Any) -> bool:
        return self._validators[RecordKind(kind)].is_valid(data)

    def validate(
        self,
        kind: RecordKind,
        data: Any,
        *,
        source: Path | str | None = None,
    ) -> None:
        """
        Validate a record.

        Raises:
            SchemaValidationError: If the record does not match the kind's schema
        """
        messages = self.errors(kind, data)
        if messages:
            raise SchemaValidationError(RecordKind(kind).value, messages, source)
