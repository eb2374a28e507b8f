# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import struct
from pathlib import Path

import pytest

from docchunk.artifacts.artifact_v0 import encode_artifact, write_artifact
from docchunk.chunk.docs_chunk_v1 import encode_chunk
from docchunk.chunk.reader import decode, list_entries, list_visible, load, lookup
from docchunk.collector import UnitContext
from docchunk.errors import ChunkFormatError, ChunkNotFoundError, ChunkVersionError, NotFound
from docchunk.events import EntityDecl, EntityDoc, ModuleDoc
from docchunk.model import DocChunk, EntityKind, EntityRef, HIDDEN


def _chunk_bytes(module_doc=HIDDEN) -> bytes:
	ctx = UnitContext("shapes")
	ctx.observe_all(
		[
			ModuleDoc(module_doc),
			EntityDoc(EntityRef.function("area", 1), "Area."),
			EntityDoc(EntityRef.function("scale", 2), HIDDEN),
			EntityDoc(EntityRef.function("internal", 0), "Private."),
			EntityDoc(EntityRef.type("shape", 0), HIDDEN),
			EntityDecl(EntityRef.callback("draw", 1)),
		]
	)
	table = ctx.finalize([("area", 1), ("scale", 2)])
	return encode_chunk(table.module, table.entries, "text/markdown")


def _loaded() -> DocChunk:
	chunk = decode(_chunk_bytes())
	assert isinstance(chunk, DocChunk)
	return chunk


def test_lookup_exported_function() -> None:
	entry = lookup(_loaded(), EntityRef.function("area", 1))
	assert not isinstance(entry, NotFound)
	assert entry.text == "Area."


def test_lookup_private_function_is_not_found() -> None:
	res = lookup(_loaded(), EntityRef.function("internal", 0))
	assert isinstance(res, NotFound)
	assert not res


def test_lookup_wrong_arity_is_not_found() -> None:
	assert isinstance(lookup(_loaded(), EntityRef.function("area", 2)), NotFound)


def test_hidden_entries_are_queryable() -> None:
	chunk = _loaded()
	assert lookup(chunk, EntityRef.function("scale", 2)).content == HIDDEN
	assert lookup(chunk, EntityRef.module("shapes")).content == HIDDEN


def test_lookup_other_module_is_not_found() -> None:
	assert isinstance(lookup(_loaded(), EntityRef.module("circles")), NotFound)


def test_list_visible_skips_hidden_per_granularity() -> None:
	chunk = _loaded()
	visible = [e.ref for e in list_visible(chunk)]
	# The hidden module does not hide its visible function.
	assert visible == [EntityRef.callback("draw", 1), EntityRef.function("area", 1)]
	assert [e.ref for e in list_visible(chunk, EntityKind.TYPE)] == []


def test_list_entries_includes_hidden() -> None:
	chunk = _loaded()
	refs = [e.ref for e in list_entries(chunk)]
	assert refs[0] == EntityRef.module("shapes")
	assert EntityRef.function("scale", 2) in refs
	assert EntityRef.function("internal", 0) not in refs
	assert [e.ref for e in list_entries(chunk, EntityKind.FUNCTION)] == [
		EntityRef.function("area", 1),
		EntityRef.function("scale", 2),
	]


def test_load_from_path_and_bytes(tmp_path: Path) -> None:
	path = tmp_path / "shapes.dca"
	write_artifact(path, {"Docs": _chunk_bytes("Shapes."), "Attr": b"{}"})
	from_path = load(path)
	from_bytes = load(path.read_bytes())
	assert isinstance(from_path, DocChunk)
	assert from_path == from_bytes
	assert from_path.module.text == "Shapes."


def test_missing_chunk_is_returned_not_raised(tmp_path: Path) -> None:
	path = tmp_path / "plain.dca"
	write_artifact(path, {"Attr": b"{}"})
	res = load(path)
	assert isinstance(res, ChunkNotFoundError)
	assert res.chunk_name == "Docs"
	assert res.artifact_path == str(path)
	assert "without documentation" in str(res)


def test_future_version_is_returned_not_raised() -> None:
	data = bytearray(_chunk_bytes())
	struct.pack_into("<H", data, 4, 9)
	res = load(encode_artifact({"Docs": bytes(data)}))
	assert isinstance(res, ChunkVersionError)
	assert res.found == 9
	assert res.supported == (1,)
	assert "upgrade" in str(res)


def test_malformed_chunk_is_returned_not_raised() -> None:
	res = load(encode_artifact({"Docs": _chunk_bytes()[:-2]}))
	assert isinstance(res, ChunkFormatError)


def test_corrupt_container_is_returned_not_raised() -> None:
	data = bytearray(encode_artifact({"Docs": _chunk_bytes()}))
	data[-1] ^= 0xFF
	res = load(bytes(data))
	assert isinstance(res, ChunkFormatError)
	assert "sha256" in res.message


def test_missing_file_raises(tmp_path: Path) -> None:
	with pytest.raises(OSError):
		load(tmp_path / "nope.dca")
