# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from docchunk.chunk.terms_v1 import MAX_DEPTH, ByteReader, TermDecodeError, decode_term, encode_term, is_term
from docchunk.model import Atom, EncodedBytes


def _decode(data: bytes):
	reader = ByteReader(data)
	value = decode_term(reader)
	assert reader.remaining == 0
	return value


def test_term_kinds_stay_distinct() -> None:
	value = {
		"list": [1, 2],
		"tuple": (1, 2),
		"atom": Atom("ok"),
		"text": "ok",
		"bytes": b"ok",
		"flags": [True, False, None],
		"big": -(2**70),
		"float": 1.5,
		"enc": EncodedBytes(b"\xe9", "latin1"),
	}
	decoded = _decode(encode_term(value))
	assert decoded == value
	assert isinstance(decoded["list"], list)
	assert isinstance(decoded["tuple"], tuple)
	assert isinstance(decoded["atom"], Atom)
	assert not isinstance(decoded["text"], Atom)
	assert decoded["flags"][0] is True


def test_map_encoding_ignores_insertion_order() -> None:
	assert encode_term({"b": 1, "a": 2, 3: "x"}) == encode_term({3: "x", "a": 2, "b": 1})


def test_unsupported_value() -> None:
	assert not is_term({"k": {1, 2}})
	with pytest.raises(TypeError):
		encode_term({1, 2})


def test_nesting_limit() -> None:
	value: list = []
	for _ in range(MAX_DEPTH + 2):
		value = [value]
	assert not is_term(value)
	with pytest.raises(TypeError):
		encode_term(value)


def test_unknown_tag() -> None:
	with pytest.raises(TermDecodeError):
		_decode(b"\x63")


def test_truncated_blob() -> None:
	data = encode_term("hello")
	with pytest.raises(TermDecodeError):
		_decode(data[:-1])
