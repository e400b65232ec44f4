"""
Error Hierarchy

All failures raised by the build, merge and import pipelines derive from
RohDBError so callers (the CLI in particular) can report them uniformly.

Assembly treats every error as fatal. Merge catches SchemaValidationError and
AssetIOError per entity and carries on.
"""

from __future__ import annotations

from pathlib import Path


class RohDBError(Exception):
    """Base class for rohdb errors."""


class SchemaValidationError(RohDBError):
    """A record failed structural validation against its kind's schema."""

    def __init__(
        self,
        kind: str,
        messages: list[str],
        source: Path | str | None = None,
    ) -> None:
        self.kind = kind
        self.messages = messages
        self.source = source
        where = f" in {source}" if source else ""
        detail = "; ".join(messages) if messages else "unknown error"
        super().__init__(f"Invalid {kind} record{where}: {detail}")


class RecordParseError(RohDBError):
    """An info.json file is not valid JSON."""


class AssetConstraintError(RohDBError):
    """An image asset has the wrong format or dimensions."""


class AssetIOError(RohDBError):
    """Reading, copying or creating directories for an asset failed."""


class SubprocessError(RohDBError):
    """An external tool (rasterizer, PDF renderer) exited non-zero or could not be started."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        status = f"exit code {returncode}" if returncode is not None else "failed to start"
        details = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"{command[0]} {status}{details}")


class ClassificationError(RohDBError):
    """The vendor/product classifier exhausted its retry budget."""


class PathShapeError(RohDBError):
    """A path under the database root matches no known record layout."""


class ExtractionError(RohDBError):
    """A vision model could not read EQ settings from a rendered page."""
