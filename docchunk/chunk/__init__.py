# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Documentation chunk: binary codec (`docs_chunk_v1`), metadata term codec
(`terms_v1`) and the query-side reader (`reader`).
"""

from __future__ import annotations

__all__ = [
	"docs_chunk_v1",
	"reader",
	"terms_v1",
]
