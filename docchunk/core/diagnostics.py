"""
Common diagnostic structure for the documentation pipeline.

Every phase (parser, collect, normalize, encode, artifact) reports problems as
`Diagnostic` values; the CLIs render them either as `file:line:col` lines or as
structured JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a pipeline diagnostic (error/warning)."""

	message: str
	code: str | None = None
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Span() denotes unknown location.
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	@property
	def is_error(self) -> bool:
		return self.severity == "error"


def has_errors(diags: list[Diagnostic]) -> bool:
	"""Return True if any diagnostic is an error."""
	return any(d.is_error for d in diags)


def diag_to_json(diag: Diagnostic, phase: str, source: Optional[Path] = None) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	file = diag.span.file
	if file is None and source is not None:
		file = str(source)
	return {
		"phase": diag.phase or phase,
		"code": diag.code,
		"message": diag.message,
		"severity": diag.severity,
		"file": file,
		"line": diag.span.line,
		"column": diag.span.column,
		"notes": list(diag.notes),
	}


def format_diag(diag: Diagnostic, source: Optional[Path] = None) -> str:
	"""Render a Diagnostic as a single human-readable line."""
	file = diag.span.file
	if file is None:
		file = str(source) if source is not None else "?"
	line = diag.span.line if diag.span.line is not None else "?"
	column = diag.span.column if diag.span.column is not None else "?"
	code = f" [{diag.code}]" if diag.code else ""
	text = f"{file}:{line}:{column}: {diag.severity}:{code} {diag.message}"
	for note in diag.notes:
		text += f"\n  note: {note}"
	return text


__all__ = ["Diagnostic", "diag_to_json", "format_diag", "has_errors"]
