# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Documentation chunk codec (format version 1).

Layout (little endian):

	magic(4) = b"DOCC", version(u16), flags(u16) = 0
	format_id: str16
	module entry
	entry_count: u32
	entries, sorted by (kind, name, arity)

	entry := kind(u8) name(str16) arity(u16) line(u32)
	         content_tag(u8) [text: u32 length + UTF-8 bytes when authored]
	         metadata: term map (see terms_v1)

Encoding is deterministic: the same entries always produce the same bytes,
which keeps artifacts content-addressable. The version is checked before any
other field is read so that a newer chunk is rejected, never misparsed.
"""

from __future__ import annotations

import struct
from typing import Iterable

from docchunk.chunk.terms_v1 import ByteReader, TermDecodeError, decode_term, encode_term, pack_blob32, pack_str16
from docchunk.model import Authored, DocChunk, DocEntry, EntityKind, EntityRef, HIDDEN, Hidden, NO_DOC, NoDoc

CHUNK_NAME = "Docs"
MAGIC = b"DOCC"
VERSION = 1
SUPPORTED_VERSIONS: tuple[int, ...] = (1,)

_HEADER_STRUCT = struct.Struct("<4sHH")
_ENTRY_FIXED = struct.Struct("<HI")  # arity, line
_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")

_KIND_CODES = {
	EntityKind.MODULE: 0,
	EntityKind.FUNCTION: 1,
	EntityKind.CALLBACK: 2,
	EntityKind.TYPE: 3,
}
_KINDS_BY_CODE = {code: kind for kind, code in _KIND_CODES.items()}

CONTENT_NONE = 0
CONTENT_AUTHORED = 1
CONTENT_HIDDEN = 2


class UnsupportedChunkVersion(ValueError):
	"""Raised by `decode_chunk` when the version tag is not in SUPPORTED_VERSIONS."""

	def __init__(self, found: int) -> None:
		super().__init__(f"unsupported documentation chunk version {found}")
		self.found = found


def _encode_entry(entry: DocEntry) -> bytes:
	out = bytearray()
	out += _U8.pack(_KIND_CODES[entry.ref.kind])
	out += pack_str16(entry.ref.name)
	if not 0 <= entry.ref.arity <= 0xFFFF:
		raise ValueError(f"arity out of range for {entry.ref}")
	out += _ENTRY_FIXED.pack(entry.ref.arity, max(0, int(entry.line)))
	content = entry.content
	if isinstance(content, Authored):
		if not isinstance(content.text, bytes):
			raise ValueError(f"entry {entry.ref} is not normalized (text must be UTF-8 bytes)")
		out += _U8.pack(CONTENT_AUTHORED) + pack_blob32(content.text)
	elif isinstance(content, Hidden):
		out += _U8.pack(CONTENT_HIDDEN)
	elif isinstance(content, NoDoc):
		out += _U8.pack(CONTENT_NONE)
	else:
		raise ValueError(f"unsupported content {content!r} for {entry.ref}")
	out += encode_term(dict(entry.metadata))
	return bytes(out)


def encode_chunk(module_entry: DocEntry, entries: Iterable[DocEntry], format_id: str) -> bytes:
	"""
	Serialize one module's documentation table.

	Function entries whose owning declaration is not exported are dropped here,
	whatever their content: private docs never reach the persisted chunk.
	"""
	if module_entry.ref.kind is not EntityKind.MODULE:
		raise ValueError(f"module entry must reference a module, got {module_entry.ref}")
	kept: list[DocEntry] = []
	seen: set[EntityRef] = set()
	for entry in entries:
		if entry.ref.kind is EntityKind.MODULE:
			raise ValueError(f"unexpected module entry {entry.ref} in entity list")
		if entry.ref in seen:
			raise ValueError(f"duplicate entry for {entry.ref}")
		seen.add(entry.ref)
		if entry.erased:
			continue
		kept.append(entry)
	kept.sort(key=lambda e: e.ref.sort_key)

	out = bytearray(_HEADER_STRUCT.pack(MAGIC, VERSION, 0))
	out += pack_str16(format_id)
	out += _encode_entry(module_entry)
	out += _U32.pack(len(kept))
	for entry in kept:
		out += _encode_entry(entry)
	return bytes(out)


def peek_version(data: bytes) -> int:
	"""Return the version tag of a chunk (raises TermDecodeError if the header is bad)."""
	if len(data) < _HEADER_STRUCT.size:
		raise TermDecodeError("chunk shorter than its header")
	magic, version, _flags = _HEADER_STRUCT.unpack_from(data)
	if magic != MAGIC:
		raise TermDecodeError("invalid documentation chunk magic")
	return int(version)


def _decode_entry(reader: ByteReader) -> DocEntry:
	code = reader.u8()
	kind = _KINDS_BY_CODE.get(code)
	if kind is None:
		raise TermDecodeError(f"unknown entity kind {code}")
	name = reader.str16()
	arity, line = _ENTRY_FIXED.unpack(reader.take(_ENTRY_FIXED.size))
	tag = reader.u8()
	if tag == CONTENT_AUTHORED:
		content = Authored(reader.blob32())
	elif tag == CONTENT_HIDDEN:
		content = HIDDEN
	elif tag == CONTENT_NONE:
		content = NO_DOC
	else:
		raise TermDecodeError(f"unknown content tag {tag}")
	metadata = decode_term(reader)
	if not isinstance(metadata, dict) or not all(isinstance(k, str) for k in metadata):
		raise TermDecodeError("entry metadata must be a map keyed by strings")
	return DocEntry(
		ref=EntityRef(kind, name, int(arity)),
		content=content,
		metadata={str(k): v for k, v in metadata.items()},
		exported=True,
		line=int(line),
	)


def decode_chunk(data: bytes) -> DocChunk:
	"""
	Decode chunk bytes.

	Raises UnsupportedChunkVersion before touching the body when the version is
	unknown, and TermDecodeError for any structural problem.
	"""
	version = peek_version(data)
	if version not in SUPPORTED_VERSIONS:
		raise UnsupportedChunkVersion(version)
	reader = ByteReader(data, _HEADER_STRUCT.size)
	flags = _HEADER_STRUCT.unpack_from(data)[2]
	if flags != 0:
		raise TermDecodeError("unsupported chunk flags")
	format_id = reader.str16()
	module_entry = _decode_entry(reader)
	if module_entry.ref.kind is not EntityKind.MODULE:
		raise TermDecodeError("first entry must describe the module")
	count = reader.u32()
	entries: list[DocEntry] = []
	prev: tuple[str, str, int] | None = None
	for _ in range(count):
		entry = _decode_entry(reader)
		if entry.ref.kind is EntityKind.MODULE:
			raise TermDecodeError("module entry repeated in entity list")
		if prev is not None and entry.ref.sort_key <= prev:
			raise TermDecodeError("entries are not strictly ordered by (kind, name, arity)")
		prev = entry.ref.sort_key
		entries.append(entry)
	if reader.remaining:
		raise TermDecodeError(f"{reader.remaining} trailing bytes after documentation chunk")
	return DocChunk(version=version, format_id=format_id, module=module_entry, entries=tuple(entries))


__all__ = [
	"CHUNK_NAME",
	"MAGIC",
	"SUPPORTED_VERSIONS",
	"UnsupportedChunkVersion",
	"VERSION",
	"decode_chunk",
	"encode_chunk",
	"peek_version",
]
