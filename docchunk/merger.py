# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Metadata merger (phase 2 of the per-unit fold).

Metadata maps are folded left to right in declaration order with a shallow
key overwrite; list-valued keys are replaced, not concatenated. Contributions
that came from included fragments are already in place in the sequence.

Content is single-valued (the collector rejects a second declaration), so it
is taken as-is from the one `doc` contribution, defaulting to `NO_DOC`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from docchunk.core.span import Span
from docchunk.model import Content, DocEntry, EntityRef, NO_DOC


@dataclass(frozen=True)
class Contribution:
	"""One attribute occurrence for an entity: a declaration, a doc, or a metadata map."""

	kind: str  # "decl" | "doc" | "meta"
	span: Span
	content: Optional[Content] = None
	metadata: Optional[Mapping[str, Any]] = None


def merge_metadata(maps: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
	"""Fold metadata maps left to right; later keys overwrite earlier ones."""
	out: dict[str, Any] = {}
	for m in maps:
		out.update(m)
	return out


def merge(ref: EntityRef, contributions: Iterable[Contribution], *, exported: bool = True) -> DocEntry:
	"""
	Combine the contributions of one entity into a draft entry.

	The draft still holds raw payloads (`str`/`EncodedBytes`) and unvalidated
	metadata; `normalize` turns it into the final entry.
	"""
	content: Content = NO_DOC
	maps: list[Mapping[str, Any]] = []
	line = 0
	for c in contributions:
		if c.kind == "doc" and c.content is not None:
			content = c.content
		elif c.kind == "meta" and c.metadata is not None:
			maps.append(c.metadata)
		# Declaration line wins; otherwise the first attribute that mentions the entity.
		if c.span.line is not None and (c.kind == "decl" or line == 0):
			line = c.span.line
	return DocEntry(ref=ref, content=content, metadata=merge_metadata(maps), exported=exported, line=line)


__all__ = ["Contribution", "merge", "merge_metadata"]
