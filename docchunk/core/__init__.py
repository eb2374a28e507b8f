# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared core types: source spans and diagnostics."""

from .diagnostics import Diagnostic, diag_to_json, format_diag, has_errors
from .span import Span

__all__ = ["Diagnostic", "Span", "diag_to_json", "format_diag", "has_errors"]
