# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from docchunk.errors import EncodingError, MetadataTypeError
from docchunk.model import Atom, Authored, DocEntry, EncodedBytes, EntityRef, HIDDEN, NO_DOC
from docchunk.normalizer import TEXT_LIST, merge_schema, normalize, normalize_metadata, normalize_text


def test_str_becomes_utf8_bytes() -> None:
	assert normalize_text("naïve") == "naïve".encode("utf-8")


def test_latin1_bytes_are_transcoded() -> None:
	raw = EncodedBytes("café".encode("latin-1"), "latin1")
	assert normalize_text(raw) == "café".encode("utf-8")


def test_utf8_tagged_bytes_pass_through() -> None:
	data = "über".encode("utf-8")
	assert normalize_text(EncodedBytes(data, "utf8")) == data
	assert normalize_text(data) == data


def test_invalid_utf8_is_rejected() -> None:
	with pytest.raises(EncodingError) as info:
		normalize_text(EncodedBytes(b"\xff\xfe", "utf8"))
	assert info.value.code == "E-DOC-ENCODING"


def test_unknown_encoding_tag_is_rejected() -> None:
	with pytest.raises(EncodingError):
		normalize_text(EncodedBytes(b"abc", "ebcdic"))


def test_lone_surrogate_is_rejected() -> None:
	with pytest.raises(EncodingError):
		normalize_text("\ud800")


def test_normalize_keeps_hidden_and_no_doc() -> None:
	hidden = normalize(DocEntry(EntityRef.module("m"), HIDDEN))
	assert hidden.content == HIDDEN
	none = normalize(DocEntry(EntityRef.function("f", 0), NO_DOC))
	assert none.content == NO_DOC


def test_normalize_authored_text() -> None:
	entry = normalize(DocEntry(EntityRef.function("f", 0), Authored(EncodedBytes(b"caf\xe9", "latin1")), line=3))
	assert entry.content == Authored("café".encode("utf-8"))
	assert entry.line == 3


def test_known_text_key_must_be_text() -> None:
	with pytest.raises(MetadataTypeError) as info:
		normalize_metadata({"since": 12})
	assert info.value.key == "since"
	assert "must be a string" in str(info.value)


def test_atom_is_not_text() -> None:
	with pytest.raises(MetadataTypeError):
		normalize_metadata({"deprecated": Atom("true")})


def test_text_list_shape() -> None:
	assert normalize_metadata({"authors": ["ann", "böb"]}) == {"authors": (b"ann", "böb".encode("utf-8"))}
	with pytest.raises(MetadataTypeError):
		normalize_metadata({"authors": "ann"})
	with pytest.raises(MetadataTypeError):
		normalize_metadata({"authors": ["ann", 3]})


def test_unknown_keys_are_preserved() -> None:
	meta = {"custom": [Atom("ok"), 1, {"k": (1, 2)}], "edition": 2}
	assert normalize_metadata(meta) == meta


def test_unknown_key_with_unencodable_value() -> None:
	with pytest.raises(MetadataTypeError):
		normalize_metadata({"custom": object()})


def test_extended_schema() -> None:
	schema = merge_schema({"reviewers": TEXT_LIST})
	assert normalize_metadata({"reviewers": ["ann"]}, schema=schema) == {"reviewers": (b"ann",)}
	with pytest.raises(ValueError):
		merge_schema({"reviewers": "number"})


def test_error_span_points_at_entry() -> None:
	with pytest.raises(EncodingError) as info:
		normalize(DocEntry(EntityRef.function("f", 0), Authored(EncodedBytes(b"\xff", "utf8")), line=7), source="m.erl")
	diag = info.value.to_diagnostic()
	assert diag.span.file == "m.erl"
	assert diag.span.line == 7
	assert diag.phase == "normalize"


@pytest.mark.parametrize(
	"value",
	[
		"\ud800",
		Atom("\udfff"),
		["ok", ("nested", "\ud800")],
		{"\ud800": 1},
		EncodedBytes(b"x", "\ud800"),
	],
)
def test_unknown_key_text_must_encode_as_utf8(value) -> None:
	with pytest.raises(EncodingError) as info:
		normalize(DocEntry(EntityRef.function("f", 0), metadata={"note": value}, line=4), source="m.erl")
	assert "note" in info.value.message
	assert info.value.span.line == 4


def test_unknown_key_name_must_encode_as_utf8() -> None:
	with pytest.raises(EncodingError):
		normalize_metadata({"\ud800": 1})
