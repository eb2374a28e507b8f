# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Error taxonomy.

Write-path errors (`DocError` subclasses) are raised and are fatal to the
compilation unit that produced them; the driver converts them into
diagnostics and carries on with the rest of the batch.

Read-path errors (`ChunkNotFoundError`, `ChunkVersionError`,
`ChunkFormatError`) are *returned* by the reader as values, never raised, so
query tooling can branch on them without exception plumbing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from docchunk.core.diagnostics import Diagnostic
from docchunk.core.span import Span
from docchunk.model import EntityRef


class DocError(ValueError):
	"""Base class for fatal write-path errors."""

	code = "E-DOC"
	phase = "collect"

	def __init__(self, message: str, *, span: Span | None = None) -> None:
		super().__init__(message)
		self.message = message
		self.span = span if span is not None else Span()

	def notes(self) -> list[str]:
		return []

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(
			message=self.message,
			code=self.code,
			phase=self.phase,
			severity="error",
			span=self.span,
			notes=self.notes(),
		)


class DuplicateDocError(DocError):
	"""Two content declarations for the same entity within one unit."""

	code = "E-DOC-DUPLICATE"

	def __init__(self, ref: EntityRef, *, span: Span | None = None, previous: Span | None = None) -> None:
		super().__init__(f"duplicate documentation for {ref}", span=span)
		self.ref = ref
		self.previous = previous if previous is not None else Span()

	def notes(self) -> list[str]:
		return [f"previously documented at {self.previous.format()}"]


class NormalizationError(DocError):
	"""Base class for errors raised while normalizing a finalized entry."""

	phase = "normalize"


class EncodingError(NormalizationError):
	"""A text payload cannot be converted to canonical UTF-8."""

	code = "E-DOC-ENCODING"


class MetadataTypeError(NormalizationError):
	"""A known metadata key holds a value of the wrong shape."""

	code = "E-DOC-METADATA"

	def __init__(self, key: str, expected_shape: str, *, got: Any = None, span: Span | None = None) -> None:
		detail = f" (got {type(got).__name__})" if got is not None else ""
		super().__init__(f"metadata key '{key}' must be {expected_shape}{detail}", span=span)
		self.key = key
		self.expected_shape = expected_shape


@dataclass(frozen=True)
class ChunkNotFoundError(Exception):
	"""The artifact carries no documentation chunk (compiled without docs)."""

	chunk_name: str
	artifact_path: str | None = None

	def __str__(self) -> str:
		where = f" in {self.artifact_path}" if self.artifact_path else ""
		return f"no '{self.chunk_name}' chunk{where}: module was compiled without documentation"


@dataclass(frozen=True)
class ChunkVersionError(Exception):
	"""The chunk uses a format version this reader does not support."""

	found: int
	supported: tuple[int, ...]

	def __str__(self) -> str:
		supported = ", ".join(str(v) for v in self.supported)
		return f"documentation chunk version {self.found} is not supported (supported: {supported}); upgrade your tooling"


@dataclass(frozen=True)
class ChunkFormatError(Exception):
	"""The chunk or its container is truncated or malformed."""

	message: str

	def __str__(self) -> str:
		return f"malformed documentation chunk: {self.message}"


ReadError = ChunkNotFoundError | ChunkVersionError | ChunkFormatError


@dataclass(frozen=True)
class NotFound:
	"""`lookup` result for an entity without an entry in the chunk."""

	ref: EntityRef

	def __bool__(self) -> bool:
		return False


__all__ = [
	"ChunkFormatError",
	"ChunkNotFoundError",
	"ChunkVersionError",
	"DocError",
	"DuplicateDocError",
	"EncodingError",
	"MetadataTypeError",
	"NormalizationError",
	"NotFound",
	"ReadError",
]
