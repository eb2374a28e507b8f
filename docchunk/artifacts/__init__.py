# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compiled-module artifact container.

Only the named-chunk contract matters to the documentation pipeline: the
encoder appends a `Docs` chunk, the reader retrieves it by name.
"""

from __future__ import annotations

__all__ = [
	"artifact_v0",
]
