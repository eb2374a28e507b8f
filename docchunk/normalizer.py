# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Normalizer (phase 3 of the per-unit fold).

Canonical text is UTF-8 `bytes`. Text arrives either as `str` or as a byte
string with a claimed encoding (`EncodedBytes`); both converge here.

Known metadata keys are validated against a small schema:
- "text": a single text value, normalized to `bytes`;
- "text_list": a list of text values, normalized to a `tuple` of `bytes`.

Unknown keys are preserved as written; they only have to be representable by
the chunk term codec.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from docchunk.chunk.terms_v1 import is_term
from docchunk.core.span import Span
from docchunk.errors import EncodingError, MetadataTypeError
from docchunk.model import Atom, Authored, DocEntry, EncodedBytes

TEXT = "text"
TEXT_LIST = "text_list"

MetadataSchema = Mapping[str, str]

DEFAULT_SCHEMA: dict[str, str] = {
	"authors": TEXT_LIST,
	"cross_references": TEXT_LIST,
	"deprecated": TEXT,
	"equiv": TEXT,
	"format": TEXT,
	"license": TEXT,
	"since": TEXT,
}

_SHAPE_NAMES = {
	TEXT: "a string",
	TEXT_LIST: "a list of strings",
}

_UTF8_TAGS = {"utf8", "utf-8"}
_LATIN1_TAGS = {"latin1", "latin-1", "iso8859-1", "iso-8859-1"}


def is_text(value: Any) -> bool:
	"""True for values accepted where a text field is expected (atoms are not text)."""
	if isinstance(value, Atom):
		return False
	return isinstance(value, (str, bytes, EncodedBytes))


def normalize_text(value: Any, *, span: Optional[Span] = None) -> bytes:
	"""Convert a text value to canonical UTF-8 bytes or raise EncodingError."""
	if isinstance(value, str):
		try:
			return value.encode("utf-8")
		except UnicodeEncodeError as err:
			raise EncodingError(f"text is not encodable as UTF-8: {err.reason}", span=span) from err
	if isinstance(value, bytes):
		value = EncodedBytes(value, "utf8")
	if isinstance(value, EncodedBytes):
		tag = value.encoding.lower()
		if tag in _UTF8_TAGS:
			try:
				value.data.decode("utf-8")
			except UnicodeDecodeError as err:
				raise EncodingError(f"byte string tagged {value.encoding} is not valid UTF-8 (offset {err.start})", span=span) from err
			return bytes(value.data)
		if tag in _LATIN1_TAGS:
			return value.data.decode("latin-1").encode("utf-8")
		raise EncodingError(f"unsupported byte string encoding '{value.encoding}'", span=span)
	raise EncodingError(f"expected text, got {type(value).__name__}", span=span)


def _normalize_known(key: str, shape: str, value: Any, span: Span) -> Any:
	if shape == TEXT:
		if not is_text(value):
			raise MetadataTypeError(key, _SHAPE_NAMES[TEXT], got=value, span=span)
		return normalize_text(value, span=span)
	if shape == TEXT_LIST:
		if not isinstance(value, (list, tuple)) or not all(is_text(v) for v in value):
			raise MetadataTypeError(key, _SHAPE_NAMES[TEXT_LIST], got=value, span=span)
		return tuple(normalize_text(v, span=span) for v in value)
	raise ValueError(f"unknown metadata shape '{shape}' for key '{key}'")


def _check_utf8(key: str, value: Any, span: Span) -> None:
	"""Every string inside an unknown metadata value must be encodable as UTF-8."""
	if isinstance(value, str):
		try:
			value.encode("utf-8")
		except UnicodeEncodeError as err:
			raise EncodingError(f"metadata key '{key}' holds text not encodable as UTF-8: {err.reason}", span=span) from err
	elif isinstance(value, EncodedBytes):
		_check_utf8(key, value.encoding, span)
	elif isinstance(value, (list, tuple)):
		for item in value:
			_check_utf8(key, item, span)
	elif isinstance(value, Mapping):
		for k, v in value.items():
			_check_utf8(key, k, span)
			_check_utf8(key, v, span)


def normalize_metadata(metadata: Mapping[str, Any], *, schema: Optional[MetadataSchema] = None, span: Optional[Span] = None) -> dict[str, Any]:
	"""Validate known keys and check that unknown values are chunk terms."""
	schema = DEFAULT_SCHEMA if schema is None else schema
	span = span if span is not None else Span()
	out: dict[str, Any] = {}
	for key, value in metadata.items():
		shape = schema.get(key)
		if shape is not None:
			out[key] = _normalize_known(key, shape, value, span)
		elif is_term(value):
			_check_utf8(key, key, span)
			_check_utf8(key, value, span)
			out[key] = value
		else:
			raise MetadataTypeError(key, "a chunk term", got=value, span=span)
	return out


def normalize(draft: DocEntry, *, schema: Optional[MetadataSchema] = None, source: Optional[str] = None) -> DocEntry:
	"""
	Turn a merged draft into a final entry.

	- `Authored` text becomes UTF-8 bytes;
	- `Hidden`/`NoDoc` pass through (including a hidden module);
	- unexported functions are left flagged (`erased`) for the encoder.
	"""
	span = Span(file=source, line=draft.line or None)
	content = draft.content
	if isinstance(content, Authored):
		content = Authored(normalize_text(content.text, span=span))
	metadata = normalize_metadata(draft.metadata, schema=schema, span=span)
	return DocEntry(ref=draft.ref, content=content, metadata=metadata, exported=draft.exported, line=draft.line)


def merge_schema(extra: Optional[Mapping[str, str]]) -> dict[str, str]:
	"""Return DEFAULT_SCHEMA extended (or overridden) by `extra`."""
	schema = dict(DEFAULT_SCHEMA)
	for key, shape in (extra or {}).items():
		if shape not in _SHAPE_NAMES:
			raise ValueError(f"metadata_schema['{key}'] must be one of {sorted(_SHAPE_NAMES)}")
		schema[key] = shape
	return schema


__all__ = [
	"DEFAULT_SCHEMA",
	"MetadataSchema",
	"TEXT",
	"TEXT_LIST",
	"is_text",
	"merge_schema",
	"normalize",
	"normalize_metadata",
	"normalize_text",
]
