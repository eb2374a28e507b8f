# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compiled-module artifact container (v0).

A tiny, deterministic container of named chunks. The documentation pipeline
only relies on "append a named byte blob, retrievable by name later"; this
module provides that contract with integrity checks:
- chunks are addressed by name and stored in name order,
- each chunk carries its sha256 in the TOC,
- the TOC itself is hashed in the header,
- loaders verify everything before handing out bytes.

Chunks are never patched in place: adding a chunk writes a new artifact.
"""

from __future__ import annotations

import hashlib
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

MAGIC = b"DCART\0\0\0"
VERSION = 0
NAME_FIELD_LEN = 16
HEADER_RESERVED_LEN = 32

# Header layout:
# magic(8), version(u16), flags(u16), header_size(u32), toc_len(u32),
# toc_entry_size(u32), toc_sha256(32), reserved(32)
_HEADER_STRUCT = struct.Struct("<8sHHIII32s32s")
HEADER_SIZE_V0 = _HEADER_STRUCT.size

# TOC entry layout (64 bytes):
# name(16, NUL padded ASCII), offset(u64), length(u64), sha256(32)
_TOC_ENTRY_STRUCT = struct.Struct("<16sQQ32s")
TOC_ENTRY_SIZE_V0 = _TOC_ENTRY_STRUCT.size


class ArtifactError(ValueError):
	"""Raised when an artifact cannot be written or fails verification."""


def sha256_bytes(data: bytes) -> bytes:
	"""Return sha256 digest bytes for `data`."""
	return hashlib.sha256(data).digest()


def validate_chunk_name(name: str) -> bytes:
	"""Chunk names are 1..16 printable ASCII characters."""
	if not isinstance(name, str) or not name:
		raise ArtifactError("chunk name must be a non-empty string")
	try:
		raw = name.encode("ascii")
	except UnicodeEncodeError as err:
		raise ArtifactError(f"chunk name '{name}' must be ASCII") from err
	if len(raw) > NAME_FIELD_LEN:
		raise ArtifactError(f"chunk name '{name}' exceeds {NAME_FIELD_LEN} bytes")
	if any(b < 0x21 or b > 0x7E for b in raw):
		raise ArtifactError(f"chunk name '{name}' must be printable ASCII without spaces")
	return raw


@dataclass(frozen=True)
class TocEntry:
	"""A table-of-contents entry describing one chunk region."""

	name: str
	offset: int
	length: int
	sha256: str


@dataclass(frozen=True)
class Artifact:
	"""A verified, decoded artifact. `chunks` maps chunk name to bytes."""

	chunks: Mapping[str, bytes] = field(default_factory=dict)
	toc: tuple[TocEntry, ...] = ()
	path: Optional[Path] = None

	def chunk(self, name: str) -> Optional[bytes]:
		"""Return the named chunk, or None when the artifact does not carry it."""
		return self.chunks.get(name)

	def names(self) -> list[str]:
		return sorted(self.chunks)


def encode_artifact(chunks: Mapping[str, bytes]) -> bytes:
	"""Render a container holding `chunks`; byte-for-byte deterministic."""
	names = sorted(chunks)
	raw_names = {n: validate_chunk_name(n) for n in names}

	cur = HEADER_SIZE_V0 + len(names) * TOC_ENTRY_SIZE_V0
	toc_parts: list[bytes] = []
	for n in names:
		data = chunks[n]
		toc_parts.append(_TOC_ENTRY_STRUCT.pack(raw_names[n].ljust(NAME_FIELD_LEN, b"\0"), cur, len(data), sha256_bytes(data)))
		cur += len(data)
	toc_bytes = b"".join(toc_parts)

	header = _HEADER_STRUCT.pack(
		MAGIC,
		VERSION,
		0,
		HEADER_SIZE_V0,
		len(names),
		TOC_ENTRY_SIZE_V0,
		sha256_bytes(toc_bytes),
		b"\0" * HEADER_RESERVED_LEN,
	)
	return b"".join([header, toc_bytes] + [bytes(chunks[n]) for n in names])


def decode_artifact(data: bytes, *, path: Optional[Path] = None) -> Artifact:
	"""
	Decode and verify container bytes.

	Verification steps:
	- header magic/version/flags/sizes
	- toc sha256 matches header
	- chunk names are valid and unique
	- chunk regions are in range and non-overlapping
	- each chunk's sha256 matches its TOC entry
	"""
	if len(data) < HEADER_SIZE_V0:
		raise ArtifactError("artifact shorter than its header")
	(
		magic,
		version,
		flags,
		header_size,
		toc_len,
		toc_entry_size,
		toc_sha,
		_reserved,
	) = _HEADER_STRUCT.unpack_from(data)
	if magic != MAGIC:
		raise ArtifactError("invalid artifact magic")
	if version != VERSION:
		raise ArtifactError(f"unsupported artifact version {version}")
	if flags != 0:
		raise ArtifactError("unsupported artifact flags")
	if header_size != HEADER_SIZE_V0:
		raise ArtifactError("unsupported header size")
	if toc_entry_size != TOC_ENTRY_SIZE_V0:
		raise ArtifactError("unsupported toc entry size")

	toc_end = HEADER_SIZE_V0 + int(toc_len) * TOC_ENTRY_SIZE_V0
	if toc_end > len(data):
		raise ArtifactError("toc extends past end of artifact")
	toc_bytes = data[HEADER_SIZE_V0:toc_end]
	if sha256_bytes(toc_bytes) != toc_sha:
		raise ArtifactError("toc sha256 mismatch")

	entries: list[TocEntry] = []
	chunks: dict[str, bytes] = {}
	for i in range(int(toc_len)):
		raw_name, offset, length, digest = _TOC_ENTRY_STRUCT.unpack_from(toc_bytes, i * TOC_ENTRY_SIZE_V0)
		try:
			name = raw_name.rstrip(b"\0").decode("ascii")
			validate_chunk_name(name)
		except (UnicodeDecodeError, ArtifactError) as err:
			raise ArtifactError(f"invalid chunk name in toc entry {i}") from err
		if name in chunks:
			raise ArtifactError(f"duplicate chunk '{name}' in toc")
		entries.append(TocEntry(name=name, offset=int(offset), length=int(length), sha256=digest.hex()))
		chunks[name] = b""

	prev_end = toc_end
	for e in sorted(entries, key=lambda e: e.offset):
		if e.offset < prev_end:
			raise ArtifactError("chunk regions overlap or point into header/toc")
		end = e.offset + e.length
		if end > len(data):
			raise ArtifactError(f"chunk '{e.name}' extends past end of artifact")
		blob = data[e.offset : end]
		if sha256_bytes(blob).hex() != e.sha256:
			raise ArtifactError(f"chunk sha256 mismatch for '{e.name}'")
		chunks[e.name] = blob
		prev_end = end

	return Artifact(chunks=chunks, toc=tuple(entries), path=path)


def write_artifact(path: Path, chunks: Mapping[str, bytes]) -> None:
	"""Write a new artifact atomically (temp file + rename)."""
	data = encode_artifact(chunks)
	path.parent.mkdir(parents=True, exist_ok=True)
	tmp = path.with_name(path.name + f".tmp.{os.getpid()}")
	tmp.write_bytes(data)
	os.replace(tmp, path)


def load_artifact(path: Path) -> Artifact:
	"""Load and verify an artifact from disk."""
	return decode_artifact(path.read_bytes(), path=path)


def append_chunk(path: Path, name: str, data: bytes) -> Artifact:
	"""
	Add one named chunk to an existing artifact.

	The artifact is rewritten as a whole; an existing chunk of the same name is
	an error (a recompilation produces a fresh artifact instead).
	"""
	validate_chunk_name(name)
	current = load_artifact(path)
	if name in current.chunks:
		raise ArtifactError(f"artifact {path} already has a '{name}' chunk")
	chunks = dict(current.chunks)
	chunks[name] = bytes(data)
	write_artifact(path, chunks)
	return load_artifact(path)


__all__ = [
	"Artifact",
	"ArtifactError",
	"TocEntry",
	"append_chunk",
	"decode_artifact",
	"encode_artifact",
	"load_artifact",
	"write_artifact",
]
