# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Located:
	line: int
	column: int


@dataclass(frozen=True)
class FunRef:
	"""`name/arity` reference as written in `-export([...])` or `-fun f/1`."""

	name: str
	arity: int


@dataclass(frozen=True)
class AttrForm:
	"""
	One `-name value.` form.

	Values are plain Python data: `str` (string literal), `EncodedBytes`
	(binary literal), `Atom`, `int`, `list`, `tuple`, `dict` and `FunRef`.
	"""

	name: str
	value: Any
	loc: Located
	file: str | None = None
