# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Query API over persisted documentation chunks.

This is the only supported way for tools (shell, IDE, doc generators) to get
documentation: it reads the chunk bytes of a compiled artifact and never goes
back to source.

Read-path failures are returned as values (`ChunkNotFoundError`,
`ChunkVersionError`, `ChunkFormatError`) so callers can treat "no structured
docs" as an ordinary outcome. All functions here are pure.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from docchunk.artifacts.artifact_v0 import Artifact, ArtifactError, decode_artifact
from docchunk.chunk.docs_chunk_v1 import CHUNK_NAME, SUPPORTED_VERSIONS, UnsupportedChunkVersion, decode_chunk
from docchunk.chunk.terms_v1 import TermDecodeError
from docchunk.errors import ChunkFormatError, ChunkNotFoundError, ChunkVersionError, NotFound
from docchunk.model import DocChunk, DocEntry, EntityKind, EntityRef

ArtifactLike = Union[Artifact, bytes, Path, str]
LoadResult = Union[DocChunk, ChunkNotFoundError, ChunkVersionError, ChunkFormatError]


def decode(data: bytes) -> Union[DocChunk, ChunkVersionError, ChunkFormatError]:
	"""Decode raw chunk bytes into a DocChunk or a read-error value."""
	try:
		return decode_chunk(data)
	except UnsupportedChunkVersion as err:
		return ChunkVersionError(found=err.found, supported=SUPPORTED_VERSIONS)
	except TermDecodeError as err:
		return ChunkFormatError(message=str(err))


def load(artifact: ArtifactLike, *, chunk_name: str = CHUNK_NAME) -> LoadResult:
	"""
	Locate and decode the documentation chunk of a compiled artifact.

	`artifact` may be a loaded `Artifact`, the raw artifact bytes, or a path.
	I/O errors on a path propagate; everything about the bytes themselves is
	reported as a returned error value.
	"""
	path: Optional[Path] = None
	if isinstance(artifact, (str, Path)):
		path = Path(artifact)
		artifact = path.read_bytes()
	if isinstance(artifact, (bytes, bytearray, memoryview)):
		try:
			artifact = decode_artifact(bytes(artifact), path=path)
		except ArtifactError as err:
			return ChunkFormatError(message=f"artifact: {err}")
	data = artifact.chunk(chunk_name)
	if data is None:
		where = str(artifact.path) if artifact.path is not None else None
		return ChunkNotFoundError(chunk_name=chunk_name, artifact_path=where)
	return decode(data)


def lookup(chunk: DocChunk, ref: EntityRef) -> Union[DocEntry, NotFound]:
	"""Return the entry for `ref`, or `NotFound`."""
	if ref.kind is EntityKind.MODULE:
		return chunk.module if ref == chunk.module.ref else NotFound(ref)
	for entry in chunk.entries:
		if entry.ref == ref:
			return entry
	return NotFound(ref)


def list_entries(chunk: DocChunk, kind: Optional[EntityKind] = None) -> list[DocEntry]:
	"""All entries (hidden included), module first, optionally filtered by kind."""
	out = [chunk.module] + list(chunk.entries)
	if kind is not None:
		out = [e for e in out if e.ref.kind is kind]
	return out


def list_visible(chunk: DocChunk, kind: Optional[EntityKind] = None) -> list[DocEntry]:
	"""
	Entries for default listings: `Hidden` entries are skipped.

	Hiding is per granularity: a hidden module does not hide its functions,
	types or callbacks.
	"""
	return [e for e in list_entries(chunk, kind) if not e.is_hidden]


__all__ = ["ArtifactLike", "LoadResult", "decode", "list_entries", "list_visible", "load", "lookup"]
