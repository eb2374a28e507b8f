# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Documentation data model.

Content is a closed three-way variant (`Authored | Hidden | NoDoc`) rather than
nullable text, so every visibility decision is a total function over three
cases. `NoDoc` means nothing was declared (`none` in the chunk).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, Union


class EntityKind(str, enum.Enum):
	MODULE = "module"
	FUNCTION = "function"
	CALLBACK = "callback"
	TYPE = "type"


@dataclass(frozen=True, order=True)
class EntityRef:
	"""
	Identity of a documented entity.

	Field order is the chunk's ordering key: (kind, name, arity). The module
	entity uses its module name and arity 0.
	"""

	kind: EntityKind
	name: str
	arity: int = 0

	@classmethod
	def module(cls, name: str) -> "EntityRef":
		return cls(EntityKind.MODULE, name, 0)

	@classmethod
	def function(cls, name: str, arity: int) -> "EntityRef":
		return cls(EntityKind.FUNCTION, name, arity)

	@classmethod
	def callback(cls, name: str, arity: int) -> "EntityRef":
		return cls(EntityKind.CALLBACK, name, arity)

	@classmethod
	def type(cls, name: str, arity: int) -> "EntityRef":
		return cls(EntityKind.TYPE, name, arity)

	@property
	def sort_key(self) -> tuple[str, str, int]:
		return (self.kind.value, self.name, self.arity)

	def __str__(self) -> str:
		if self.kind is EntityKind.MODULE:
			return f"module {self.name}"
		return f"{self.kind.value} {self.name}/{self.arity}"


@dataclass(frozen=True)
class Authored:
	"""Documentation text. Before normalization `text` may be `str` or `EncodedBytes`."""

	text: Any


@dataclass(frozen=True)
class Hidden:
	"""Explicitly hidden: still queryable, skipped by default listings."""


@dataclass(frozen=True)
class NoDoc:
	"""Nothing declared."""


HIDDEN = Hidden()
NO_DOC = NoDoc()

Content = Union[Authored, Hidden, NoDoc]


@dataclass(frozen=True)
class EncodedBytes:
	"""A byte-string payload together with the encoding it claims (`<<"..."/latin1>>`)."""

	data: bytes
	encoding: str = "utf8"


class Atom(str):
	"""A bare symbolic value from attribute source (`hidden`, `ok`, ...)."""

	def __repr__(self) -> str:
		return f"Atom({str.__repr__(self)})"


@dataclass(frozen=True)
class DocEntry:
	"""
	One documentation record.

	`exported` is the export status of the owning declaration. It is not part
	of the chunk: unexported function entries never reach it, so every decoded
	entry reports `exported=True`.
	"""

	ref: EntityRef
	content: Content = NO_DOC
	metadata: Mapping[str, Any] = field(default_factory=dict)
	exported: bool = True
	line: int = 0

	@property
	def is_hidden(self) -> bool:
		return isinstance(self.content, Hidden)

	@property
	def erased(self) -> bool:
		"""True if the encoder must drop this entry (private function)."""
		return self.ref.kind is EntityKind.FUNCTION and not self.exported

	@property
	def text(self) -> str | None:
		"""Decoded documentation text of a normalized Authored entry."""
		if isinstance(self.content, Authored) and isinstance(self.content.text, bytes):
			return self.content.text.decode("utf-8")
		return None


@dataclass(frozen=True)
class DocChunk:
	"""A decoded documentation chunk. Entries are sorted by `EntityRef.sort_key`."""

	version: int
	format_id: str
	module: DocEntry
	entries: tuple[DocEntry, ...] = ()

	@property
	def module_name(self) -> str:
		return self.module.ref.name


__all__ = [
	"Atom",
	"Authored",
	"Content",
	"DocChunk",
	"DocEntry",
	"EncodedBytes",
	"EntityKind",
	"EntityRef",
	"HIDDEN",
	"Hidden",
	"NO_DOC",
	"NoDoc",
]
