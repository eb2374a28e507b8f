# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Attribute events consumed by the collector.

The front end emits these in source declaration order, already flattened
(included fragments are spliced in at the point of inclusion). A payload is
either text (`str` / `EncodedBytes`) or `HIDDEN`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from docchunk.core.span import Span
from docchunk.model import EntityRef


@dataclass(frozen=True)
class ModuleDoc:
	payload: Any
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class ModuleMeta:
	metadata: Mapping[str, Any]
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class EntityDecl:
	"""The unit declares `ref` (so it gets an entry even when undocumented)."""

	ref: EntityRef
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class EntityDoc:
	ref: EntityRef
	payload: Any
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class EntityMeta:
	ref: EntityRef
	metadata: Mapping[str, Any]
	span: Span = field(default_factory=Span)


DocEvent = Union[ModuleDoc, ModuleMeta, EntityDecl, EntityDoc, EntityMeta]

__all__ = ["DocEvent", "EntityDecl", "EntityDoc", "EntityMeta", "ModuleDoc", "ModuleMeta"]
