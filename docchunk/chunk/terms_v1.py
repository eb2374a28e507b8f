# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Self-describing term codec used for metadata values inside the docs chunk.

Each term is a one-byte tag followed by its body (little endian):

	0 none | 1 false | 2 true
	3 int      u16 length + two's complement bytes
	4 float    f64
	5 bytes    u32 length + raw bytes
	6 text     u32 length + UTF-8
	7 atom     u32 length + UTF-8
	8 encoded  str16 encoding + u32 length + raw bytes
	9 list     u32 count + terms
	10 tuple   u32 count + terms
	11 map     u32 count + (key term, value term), sorted by encoded key

Map items are sorted by their encoded key bytes so equal maps always encode to
equal bytes regardless of insertion order.
"""

from __future__ import annotations

import struct
from typing import Any, Mapping

from docchunk.model import Atom, EncodedBytes

TAG_NONE = 0
TAG_FALSE = 1
TAG_TRUE = 2
TAG_INT = 3
TAG_FLOAT = 4
TAG_BYTES = 5
TAG_TEXT = 6
TAG_ATOM = 7
TAG_ENCODED = 8
TAG_LIST = 9
TAG_TUPLE = 10
TAG_MAP = 11

MAX_DEPTH = 64

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_F64 = struct.Struct("<d")


class TermDecodeError(ValueError):
	"""Raised when term bytes are truncated or malformed."""


def is_term(value: Any, _depth: int = 0) -> bool:
	"""True if `value` can be encoded by `encode_term`."""
	if _depth > MAX_DEPTH:
		return False
	if value is None or isinstance(value, (bool, int, float, bytes, str, EncodedBytes)):
		return True
	if isinstance(value, (list, tuple)):
		return all(is_term(v, _depth + 1) for v in value)
	if isinstance(value, Mapping):
		return all(is_term(k, _depth + 1) and is_term(v, _depth + 1) for k, v in value.items())
	return False


def pack_str16(text: str) -> bytes:
	data = text.encode("utf-8")
	if len(data) > 0xFFFF:
		raise ValueError("string too long for a 16-bit length prefix")
	return _U16.pack(len(data)) + data


def pack_blob32(data: bytes) -> bytes:
	if len(data) > 0xFFFFFFFF:
		raise ValueError("blob too long for a 32-bit length prefix")
	return _U32.pack(len(data)) + data


def encode_term(value: Any) -> bytes:
	"""Encode one term. Raises TypeError for unsupported values."""
	out = bytearray()
	_encode_into(out, value, 0)
	return bytes(out)


def _encode_into(out: bytearray, value: Any, depth: int) -> None:
	if depth > MAX_DEPTH:
		raise TypeError("term nesting too deep")
	if value is None:
		out += _U8.pack(TAG_NONE)
	elif value is True:
		out += _U8.pack(TAG_TRUE)
	elif value is False:
		out += _U8.pack(TAG_FALSE)
	elif isinstance(value, int):
		size = max(1, (value.bit_length() + 8) // 8)
		out += _U8.pack(TAG_INT) + _U16.pack(size) + value.to_bytes(size, "little", signed=True)
	elif isinstance(value, float):
		out += _U8.pack(TAG_FLOAT) + _F64.pack(value)
	elif isinstance(value, bytes):
		out += _U8.pack(TAG_BYTES) + pack_blob32(value)
	elif isinstance(value, Atom):
		out += _U8.pack(TAG_ATOM) + pack_blob32(str(value).encode("utf-8"))
	elif isinstance(value, str):
		out += _U8.pack(TAG_TEXT) + pack_blob32(value.encode("utf-8"))
	elif isinstance(value, EncodedBytes):
		out += _U8.pack(TAG_ENCODED) + pack_str16(value.encoding) + pack_blob32(value.data)
	elif isinstance(value, (list, tuple)):
		out += _U8.pack(TAG_LIST if isinstance(value, list) else TAG_TUPLE) + _U32.pack(len(value))
		for item in value:
			_encode_into(out, item, depth + 1)
	elif isinstance(value, Mapping):
		items = sorted((encode_term(k), v) for k, v in value.items())
		out += _U8.pack(TAG_MAP) + _U32.pack(len(items))
		for key_bytes, v in items:
			out += key_bytes
			_encode_into(out, v, depth + 1)
	else:
		raise TypeError(f"cannot encode {type(value).__name__} as a chunk term")


class ByteReader:
	"""Bounds-checked cursor over immutable bytes."""

	def __init__(self, data: bytes, pos: int = 0) -> None:
		self.data = data
		self.pos = pos

	@property
	def remaining(self) -> int:
		return len(self.data) - self.pos

	def take(self, n: int) -> bytes:
		if n < 0 or self.pos + n > len(self.data):
			raise TermDecodeError(f"unexpected end of data at offset {self.pos} (need {n} bytes)")
		chunk = self.data[self.pos : self.pos + n]
		self.pos += n
		return chunk

	def u8(self) -> int:
		return _U8.unpack(self.take(1))[0]

	def u16(self) -> int:
		return _U16.unpack(self.take(2))[0]

	def u32(self) -> int:
		return _U32.unpack(self.take(4))[0]

	def f64(self) -> float:
		return _F64.unpack(self.take(8))[0]

	def blob32(self) -> bytes:
		return self.take(self.u32())

	def str16(self) -> str:
		return _utf8(self.take(self.u16()))

	def str32(self) -> str:
		return _utf8(self.blob32())


def _utf8(data: bytes) -> str:
	try:
		return data.decode("utf-8")
	except UnicodeDecodeError as err:
		raise TermDecodeError(f"invalid UTF-8 in string field: {err.reason}") from err


def decode_term(reader: ByteReader, _depth: int = 0) -> Any:
	"""Decode one term at the reader's position."""
	if _depth > MAX_DEPTH:
		raise TermDecodeError("term nesting too deep")
	tag = reader.u8()
	if tag == TAG_NONE:
		return None
	if tag == TAG_FALSE:
		return False
	if tag == TAG_TRUE:
		return True
	if tag == TAG_INT:
		return int.from_bytes(reader.take(reader.u16()), "little", signed=True)
	if tag == TAG_FLOAT:
		return reader.f64()
	if tag == TAG_BYTES:
		return reader.blob32()
	if tag == TAG_TEXT:
		return reader.str32()
	if tag == TAG_ATOM:
		return Atom(reader.str32())
	if tag == TAG_ENCODED:
		encoding = reader.str16()
		return EncodedBytes(reader.blob32(), encoding)
	if tag in (TAG_LIST, TAG_TUPLE):
		count = reader.u32()
		items = [decode_term(reader, _depth + 1) for _ in range(count)]
		return items if tag == TAG_LIST else tuple(items)
	if tag == TAG_MAP:
		count = reader.u32()
		out: dict[Any, Any] = {}
		for _ in range(count):
			key = decode_term(reader, _depth + 1)
			try:
				out[key] = decode_term(reader, _depth + 1)
			except TypeError as err:
				raise TermDecodeError(f"unhashable map key {type(key).__name__}") from err
		return out
	raise TermDecodeError(f"unknown term tag {tag} at offset {reader.pos - 1}")


__all__ = [
	"ByteReader",
	"TermDecodeError",
	"decode_term",
	"encode_term",
	"is_term",
	"pack_blob32",
	"pack_str16",
]
