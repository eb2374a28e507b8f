# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to attribute events and diagnostics.

Spans are best-effort: the front end fills in file/line/column when it has
them; programmatic event producers may leave everything unset (`Span()`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source location (file plus 1-based line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a lark Token/Tree meta (or any object exposing
		`line`/`column`).

		If `loc` is already a Span it is returned unchanged, except that a
		missing file is filled in from `file`.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			if loc.file is None and file is not None:
				return cls(file=file, line=loc.line, column=loc.column, end_line=loc.end_line, end_column=loc.end_column)
			return loc
		return cls(
			file=file,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			end_line=getattr(loc, "end_line", None),
			end_column=getattr(loc, "end_column", None),
		)

	def format(self) -> str:
		"""Render as `file:line:column`, using `?` for unknown parts."""
		file = self.file if self.file is not None else "?"
		line = self.line if self.line is not None else "?"
		column = self.column if self.column is not None else "?"
		return f"{file}:{line}:{column}"


__all__ = ["Span"]
