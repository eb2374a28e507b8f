# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

import pytest

from docchunk.artifacts.artifact_v0 import (
	HEADER_SIZE_V0,
	ArtifactError,
	append_chunk,
	decode_artifact,
	encode_artifact,
	load_artifact,
	validate_chunk_name,
	write_artifact,
)


def test_encode_is_deterministic_and_name_ordered() -> None:
	a = encode_artifact({"Docs": b"d", "Attr": b"a"})
	b = encode_artifact({"Attr": b"a", "Docs": b"d"})
	assert a == b
	art = decode_artifact(a)
	assert [e.name for e in art.toc] == ["Attr", "Docs"]
	assert art.chunk("Docs") == b"d"
	assert art.chunk("Code") is None


def test_empty_artifact() -> None:
	art = decode_artifact(encode_artifact({}))
	assert art.names() == []


@pytest.mark.parametrize("name", ["", "has space", "x" * 17, "Dócs"])
def test_invalid_chunk_names(name: str) -> None:
	with pytest.raises(ArtifactError):
		validate_chunk_name(name)


def test_corrupted_chunk_is_rejected() -> None:
	data = bytearray(encode_artifact({"Docs": b"payload"}))
	data[-1] ^= 0x01
	with pytest.raises(ArtifactError, match="sha256"):
		decode_artifact(bytes(data))


def test_corrupted_toc_is_rejected() -> None:
	data = bytearray(encode_artifact({"Docs": b"payload"}))
	data[HEADER_SIZE_V0] ^= 0x01
	with pytest.raises(ArtifactError, match="toc sha256"):
		decode_artifact(bytes(data))


def test_bad_magic_and_truncation() -> None:
	data = encode_artifact({"Docs": b"payload"})
	with pytest.raises(ArtifactError, match="magic"):
		decode_artifact(b"NOTANART" + data[8:])
	with pytest.raises(ArtifactError):
		decode_artifact(data[:10])
	with pytest.raises(ArtifactError):
		decode_artifact(data[:-2])


def test_append_chunk(tmp_path: Path) -> None:
	path = tmp_path / "m.dca"
	write_artifact(path, {"Attr": b"{}"})
	art = append_chunk(path, "Docs", b"docs")
	assert art.names() == ["Attr", "Docs"]
	assert load_artifact(path).chunk("Docs") == b"docs"
	with pytest.raises(ArtifactError, match="already has"):
		append_chunk(path, "Docs", b"again")
	# The failed append left the artifact untouched.
	assert load_artifact(path).chunk("Docs") == b"docs"


def test_write_leaves_no_temp_files(tmp_path: Path) -> None:
	path = tmp_path / "out" / "m.dca"
	write_artifact(path, {"Attr": b"{}"})
	assert sorted(p.name for p in path.parent.iterdir()) == ["m.dca"]
