# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Attribute collector (phase 1 of the per-unit fold).

A `UnitContext` owns all documentation state of one compilation unit. It
records, per entity, an append-only log of contributions in source order.
Nothing is merged here; the only check performed at collection time is the
"one content declaration per entity" rule, because its error must point at
both declarations.

There is no process-wide registry: contexts are independent, so units can be
compiled in parallel without synchronization.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from docchunk.core.span import Span
from docchunk.errors import DuplicateDocError, EncodingError, MetadataTypeError
from docchunk.events import DocEvent, EntityDecl, EntityDoc, EntityMeta, ModuleDoc, ModuleMeta
from docchunk.merger import Contribution, merge
from docchunk.model import Authored, Content, DocEntry, EncodedBytes, EntityKind, EntityRef, Hidden
from docchunk.normalizer import MetadataSchema, normalize


@dataclass(frozen=True)
class DocTable:
	"""Finalized (merged + normalized) documentation of one unit."""

	module: DocEntry
	entries: tuple[DocEntry, ...] = ()
	format_id: Optional[str] = None

	def visible_entries(self) -> list[DocEntry]:
		"""Entries that survive into the chunk (private functions erased)."""
		return [e for e in self.entries if not e.erased]


def _as_content(payload: Any, span: Span) -> Content:
	if isinstance(payload, (Authored, Hidden)):
		return payload
	if isinstance(payload, (str, bytes, EncodedBytes)):
		return Authored(payload)
	raise EncodingError(
		f"documentation payload must be text, a byte string or hidden (got {type(payload).__name__})",
		span=span,
	)


def _as_metadata(metadata: Any, span: Span) -> dict[str, Any]:
	if not isinstance(metadata, Mapping):
		raise MetadataTypeError("<metadata>", "a map", got=metadata, span=span)
	out: dict[str, Any] = {}
	for key, value in metadata.items():
		if not isinstance(key, str):
			raise MetadataTypeError(repr(key), "keyed by an atom or string", got=key, span=span)
		out[str(key)] = value
	return out


class UnitContext:
	"""Documentation state of a single compilation unit."""

	def __init__(self, module: str, *, source: Optional[str] = None) -> None:
		self.module_ref = EntityRef.module(module)
		self.source = source
		self._log: dict[EntityRef, list[Contribution]] = {self.module_ref: []}
		self._doc_spans: dict[EntityRef, Span] = {}
		self._finalized = False

	@property
	def module(self) -> str:
		return self.module_ref.name

	def observe(self, event: DocEvent) -> None:
		"""Record one attribute event. Raises DuplicateDocError on a second content declaration."""
		if self._finalized:
			raise RuntimeError(f"unit '{self.module}' is already finalized")
		if isinstance(event, ModuleDoc):
			self._record_doc(self.module_ref, event.payload, event.span)
		elif isinstance(event, ModuleMeta):
			self._append(self.module_ref, Contribution("meta", event.span, metadata=_as_metadata(event.metadata, event.span)))
		elif isinstance(event, EntityDecl):
			self._append(self._entity_ref(event.ref), Contribution("decl", event.span))
		elif isinstance(event, EntityDoc):
			self._record_doc(self._entity_ref(event.ref), event.payload, event.span)
		elif isinstance(event, EntityMeta):
			ref = self._entity_ref(event.ref)
			self._append(ref, Contribution("meta", event.span, metadata=_as_metadata(event.metadata, event.span)))
		else:
			raise TypeError(f"unsupported documentation event {type(event).__name__}")

	def observe_all(self, events: Iterable[DocEvent]) -> None:
		for event in events:
			self.observe(event)

	def refs(self) -> list[EntityRef]:
		"""All refs seen so far, module first, then first-seen order."""
		return list(self._log.keys())

	def contributions(self, ref: EntityRef) -> tuple[Contribution, ...]:
		return tuple(self._log.get(ref, ()))

	def finalize(
		self,
		exported: Iterable[tuple[str, int]] = (),
		*,
		schema: Optional[MetadataSchema] = None,
	) -> DocTable:
		"""
		Merge and normalize every entity exactly once.

		`exported` lists the (name, arity) pairs of exported functions; any
		other function entry is marked for erasure by the encoder.
		"""
		if self._finalized:
			raise RuntimeError(f"unit '{self.module}' is already finalized")
		self._finalized = True
		exported_set = {(str(name), int(arity)) for name, arity in exported}

		module_entry = normalize(merge(self.module_ref, self._log[self.module_ref]), schema=schema, source=self.source)
		entries: list[DocEntry] = []
		for ref, contributions in self._log.items():
			if ref == self.module_ref:
				continue
			is_exported = ref.kind is not EntityKind.FUNCTION or (ref.name, ref.arity) in exported_set
			entries.append(normalize(merge(ref, contributions, exported=is_exported), schema=schema, source=self.source))
		entries.sort(key=lambda e: e.ref.sort_key)

		fmt = module_entry.metadata.get("format")
		format_id = fmt.decode("utf-8") if isinstance(fmt, bytes) else None
		return DocTable(module=module_entry, entries=tuple(entries), format_id=format_id)

	def _entity_ref(self, ref: EntityRef) -> EntityRef:
		if ref.kind is EntityKind.MODULE:
			if ref != self.module_ref:
				raise ValueError(f"entity event for foreign module '{ref.name}' in unit '{self.module}'")
			return self.module_ref
		return ref

	def _append(self, ref: EntityRef, contribution: Contribution) -> None:
		self._log.setdefault(ref, []).append(contribution)

	def _record_doc(self, ref: EntityRef, payload: Any, span: Span) -> None:
		previous = self._doc_spans.get(ref)
		if previous is not None:
			raise DuplicateDocError(ref, span=span, previous=previous)
		content = _as_content(payload, span)
		self._doc_spans[ref] = span
		self._append(ref, Contribution("doc", span, content=content))


__all__ = ["Contribution", "DocTable", "UnitContext"]
