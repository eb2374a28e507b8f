# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compilation pipeline for documentation chunks.

Per unit: front end -> collect -> merge -> normalize -> encode -> artifact.
Units share nothing, so a batch may run them on a thread pool; a fatal error
only fails its own unit and is reported as a diagnostic.
"""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from docchunk.artifacts.artifact_v0 import ArtifactError, append_chunk, write_artifact
from docchunk.chunk.docs_chunk_v1 import CHUNK_NAME, encode_chunk
from docchunk.collector import DocTable, UnitContext
from docchunk.config import DEFAULT_DOC_FORMAT
from docchunk.core.diagnostics import Diagnostic, has_errors
from docchunk.core.span import Span
from docchunk.errors import DocError
from docchunk.events import DocEvent
from docchunk.parser import SourceUnit, parse_source_file

ATTR_CHUNK_NAME = "Attr"
ARTIFACT_SUFFIX = ".dca"


@dataclass(frozen=True)
class CompileOptions:
	out_dir: Optional[Path] = None  # None: next to the source file
	include_paths: tuple[Path, ...] = ()
	emit_docs: bool = True
	doc_format: str = DEFAULT_DOC_FORMAT
	metadata_schema: Optional[Mapping[str, str]] = None


@dataclass
class UnitResult:
	source: Path
	module: Optional[str] = None
	artifact_path: Optional[Path] = None
	table: Optional[DocTable] = None
	diagnostics: list[Diagnostic] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not has_errors(self.diagnostics)


def build_doc_table(
	module: str,
	events: Iterable[DocEvent],
	exported: Iterable[tuple[str, int]] = (),
	*,
	schema: Optional[Mapping[str, str]] = None,
	source: Optional[str] = None,
) -> DocTable:
	"""Run collect/merge/normalize over one unit's events. Raises DocError."""
	ctx = UnitContext(module, source=source)
	ctx.observe_all(events)
	return ctx.finalize(exported, schema=schema)


def encode_table(table: DocTable, *, default_format: str = DEFAULT_DOC_FORMAT) -> bytes:
	"""Encode a finalized table; the module's `format` metadata wins over the default."""
	return encode_chunk(table.module, table.entries, table.format_id or default_format)


def attr_chunk_bytes(unit: SourceUnit) -> bytes:
	"""Canonical JSON describing the module interface (name + exports)."""
	obj = {
		"module": unit.module,
		"exports": [[name, arity] for name, arity in sorted(unit.exports)],
	}
	return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def artifact_path_for(source: Path, module: str, options: CompileOptions) -> Path:
	out_dir = options.out_dir if options.out_dir is not None else source.parent
	return out_dir / f"{module}{ARTIFACT_SUFFIX}"


def _finalize_unit(unit: SourceUnit, options: CompileOptions, result: UnitResult) -> Optional[DocTable]:
	try:
		return build_doc_table(
			unit.module,
			unit.events,
			unit.exports,
			schema=options.metadata_schema,
			source=str(unit.path),
		)
	except DocError as err:
		diag = err.to_diagnostic()
		if diag.span.file is None:
			diag.span = Span.from_loc(diag.span, file=str(unit.path))
		result.diagnostics.append(diag)
		return None


def _encode_unit(table: DocTable, source: Path, options: CompileOptions, result: UnitResult) -> Optional[bytes]:
	try:
		return encode_table(table, default_format=options.doc_format)
	except (TypeError, ValueError) as err:
		result.diagnostics.append(Diagnostic(message=f"cannot encode documentation chunk: {err}", code="E-DOC-ENCODE", phase="encode", span=Span(file=str(source))))
		return None


def compile_unit(source: Path, options: CompileOptions = CompileOptions()) -> UnitResult:
	"""
	Compile one source file into an artifact.

	With `emit_docs=False` the documentation is still collected and normalized
	(so errors surface) but no `Docs` chunk is written.
	"""
	result = UnitResult(source=source)
	unit, diags = parse_source_file(source, include_paths=options.include_paths)
	result.diagnostics.extend(diags)
	if unit is None or has_errors(result.diagnostics):
		return result
	result.module = unit.module

	table = _finalize_unit(unit, options, result)
	if table is None:
		return result
	result.table = table

	chunks = {ATTR_CHUNK_NAME: attr_chunk_bytes(unit)}
	if options.emit_docs:
		docs = _encode_unit(table, source, options, result)
		if docs is None:
			return result
		chunks[CHUNK_NAME] = docs
	out = artifact_path_for(source, unit.module, options)
	try:
		write_artifact(out, chunks)
	except (ArtifactError, OSError) as err:
		result.diagnostics.append(Diagnostic(message=f"cannot write artifact {out}: {err}", code="E-DOC-ARTIFACT", phase="artifact", span=Span(file=str(source))))
		return result
	result.artifact_path = out
	return result


def append_docs(source: Path, artifact: Path, options: CompileOptions = CompileOptions()) -> UnitResult:
	"""Compile `source` and append its `Docs` chunk to an existing artifact."""
	result = UnitResult(source=source)
	unit, diags = parse_source_file(source, include_paths=options.include_paths)
	result.diagnostics.extend(diags)
	if unit is None or has_errors(result.diagnostics):
		return result
	result.module = unit.module
	table = _finalize_unit(unit, options, result)
	if table is None:
		return result
	result.table = table
	if not options.emit_docs:
		return result
	docs = _encode_unit(table, source, options, result)
	if docs is None:
		return result
	try:
		append_chunk(artifact, CHUNK_NAME, docs)
	except (ArtifactError, OSError) as err:
		result.diagnostics.append(Diagnostic(message=f"cannot append to artifact {artifact}: {err}", code="E-DOC-ARTIFACT", phase="artifact", span=Span(file=str(source))))
		return result
	result.artifact_path = artifact
	return result


def compile_batch(sources: Sequence[Path], options: CompileOptions = CompileOptions(), *, jobs: int = 1) -> list[UnitResult]:
	"""
	Compile independent units; results come back in input order.

	Each unit runs with its own context, so `jobs > 1` needs no locking.
	"""
	if jobs <= 1 or len(sources) <= 1:
		return [compile_unit(src, options) for src in sources]
	with ThreadPoolExecutor(max_workers=jobs) as pool:
		return list(pool.map(lambda src: compile_unit(src, options), sources))


__all__ = [
	"ARTIFACT_SUFFIX",
	"ATTR_CHUNK_NAME",
	"CompileOptions",
	"UnitResult",
	"append_docs",
	"artifact_path_for",
	"attr_chunk_bytes",
	"build_doc_table",
	"compile_batch",
	"compile_unit",
	"encode_table",
]
