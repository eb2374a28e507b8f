# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, List, Optional

from lark import Lark, Token, Tree

from docchunk.model import Atom, EncodedBytes

from .ast import AttrForm, FunRef, Located

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text(encoding="utf-8")

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)

_SIMPLE_ESCAPES = {
	"n": "\n",
	"t": "\t",
	"r": "\r",
	"s": " ",
	"b": "\b",
	"f": "\f",
	"v": "\v",
	"e": "\x1b",
	"0": "\0",
	"\\": "\\",
	'"': '"',
	"'": "'",
}
_ESCAPE_RE = re.compile(r"\\(x\{([0-9A-Fa-f]+)\}|x([0-9A-Fa-f]{2})|(.))", re.S)


class FormError(ValueError):
	"""
	User-facing error for a syntactically valid form with an invalid value
	(bad escape, unhashable map key, non-byte character in a binary).

	The front end converts it into a parser-phase diagnostic.
	"""

	def __init__(self, message: str, *, loc: Located) -> None:
		super().__init__(message)
		self.loc = loc


def _loc(node: Any) -> Located:
	if isinstance(node, Token):
		return Located(line=node.line or 0, column=node.column or 0)
	meta = getattr(node, "meta", None)
	if meta is not None and not getattr(meta, "empty", True):
		return Located(line=meta.line, column=meta.column)
	return Located(line=0, column=0)


def _unescape(body: str, loc: Located) -> str:
	"""
	Decode backslash escapes: `\\n`-style letters, `\\xHH` and `\\x{H...}` code
	points. Unknown escapes stand for the escaped character itself.
	"""

	def _sub(m: re.Match[str]) -> str:
		braced, pair, other = m.group(2), m.group(3), m.group(4)
		hex_digits = braced or pair
		if hex_digits is not None:
			code = int(hex_digits, 16)
			if code > 0x10FFFF:
				raise FormError(f"escape \\x{{{hex_digits}}} is not a valid code point", loc=loc)
			return chr(code)
		return _SIMPLE_ESCAPES.get(other, other)

	return _ESCAPE_RE.sub(_sub, body)


def _decode_string_token(tok: Token) -> str:
	return _unescape(tok.value[1:-1], _loc(tok))


def _name(node: Tree) -> str:
	return node.data if isinstance(node.data, str) else node.data.value


def _build_binary(tree: Tree) -> EncodedBytes:
	text = ""
	encoding = "utf8"
	for tok in tree.children:
		if tok.type == "STRING":
			text += _decode_string_token(tok)
		elif tok.type == "NAME":
			encoding = tok.value
	try:
		data = text.encode("latin-1")
	except UnicodeEncodeError as err:
		raise FormError(
			"binary literal characters must be bytes (<= \\xff); use \\xHH escapes for encoded text",
			loc=_loc(tree),
		) from err
	return EncodedBytes(data, encoding)


def _build_value(node: Any) -> Any:
	if isinstance(node, Token):
		raise FormError(f"unexpected token {node.type}", loc=_loc(node))
	kind = _name(node)
	if kind == "string":
		return "".join(_decode_string_token(tok) for tok in node.children)
	if kind == "binary":
		return _build_binary(node)
	if kind == "fun_ref":
		name_tok, arity_tok = node.children
		return FunRef(name=str(name_tok), arity=int(arity_tok))
	if kind == "atom":
		tok = node.children[0]
		if tok.type == "QATOM":
			return Atom(_unescape(tok.value[1:-1], _loc(tok)))
		return Atom(tok.value)
	if kind == "pos_int":
		return int(node.children[0])
	if kind == "neg_int":
		return -int(node.children[0])
	if kind == "list":
		return [_build_value(c) for c in node.children]
	if kind == "tuple":
		return tuple(_build_value(c) for c in node.children)
	if kind == "map":
		out: dict[Any, Any] = {}
		for pair in node.children:
			key = _build_value(pair.children[0])
			try:
				out[key] = _build_value(pair.children[1])
			except TypeError as err:
				raise FormError("map keys must be atoms, strings, numbers or tuples", loc=_loc(pair)) from err
		return out
	raise FormError(f"unsupported value node '{kind}'", loc=_loc(node))


def _build_form(tree: Tree, file: Optional[str]) -> AttrForm:
	name_tok = tree.children[0]
	value = _build_value(tree.children[1])
	return AttrForm(name=str(name_tok), value=value, loc=_loc(tree), file=file)


def parse_forms(source: str, *, file: Optional[str] = None) -> List[AttrForm]:
	"""
	Parse attribute source into forms.

	Raises lark's `UnexpectedInput` for syntax errors and `FormError` for
	invalid literal values; the front end turns both into diagnostics.
	"""
	tree = _PARSER.parse(source)
	return [_build_form(child, file) for child in tree.children if isinstance(child, Tree)]


__all__ = ["FormError", "parse_forms"]
