# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Attribute front end.

Turns an attribute source file into the ordered event stream consumed by the
collector. This is not a language parser: it only understands the module
attributes that carry documentation and the entity declarations they attach
to.

- `-include("file")` is textual: the included forms are spliced in place, so
  their metadata takes part in the normal left-to-right merge.
- `-doc` forms are buffered and attach to the next `-fun`, `-type` or
  `-callback` declaration.
- Problems are reported as diagnostics, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

from lark.exceptions import UnexpectedInput

from docchunk.core.diagnostics import Diagnostic
from docchunk.core.span import Span
from docchunk.events import DocEvent, EntityDecl, EntityDoc, EntityMeta, ModuleDoc, ModuleMeta
from docchunk.model import Atom, EncodedBytes, EntityKind, EntityRef, HIDDEN

from . import parser as _parser
from .ast import AttrForm, FunRef

_ENTITY_ATTRS = {
	"fun": EntityKind.FUNCTION,
	"type": EntityKind.TYPE,
	"callback": EntityKind.CALLBACK,
}
_HIDDEN_ATOMS = {"hidden", "false"}


@dataclass
class SourceUnit:
	"""Front-end result for one compilation unit."""

	module: str
	path: Path
	events: List[DocEvent] = field(default_factory=list)
	exports: List[tuple[str, int]] = field(default_factory=list)
	includes: List[Path] = field(default_factory=list)


def _span(form: AttrForm) -> Span:
	return Span(file=form.file, line=form.loc.line or None, column=form.loc.column or None)


def _diag(message: str, code: str, span: Span, *, severity: str = "error", notes: Optional[list[str]] = None) -> Diagnostic:
	return Diagnostic(message=message, code=code, phase="parser", severity=severity, span=span, notes=list(notes or []))


def _resolve_include(name: str, current: Path, include_paths: Sequence[Path]) -> Optional[Path]:
	candidates = [current.parent / name] + [Path(p) / name for p in include_paths]
	for cand in candidates:
		if cand.is_file():
			return cand.resolve()
	return None


class _FormLoader:
	"""Reads a source file and expands `-include` forms recursively."""

	def __init__(self, include_paths: Sequence[Path]) -> None:
		self.include_paths = list(include_paths)
		self.diagnostics: list[Diagnostic] = []
		self.included: list[Path] = []

	def load(self, path: Path, *, stack: tuple[Path, ...] = (), origin: Optional[Span] = None) -> list[AttrForm]:
		try:
			text = path.read_text(encoding="utf-8")
		except (OSError, UnicodeDecodeError) as err:
			self.diagnostics.append(_diag(f"cannot read {path}: {err}", "E-DOC-INCLUDE" if stack else "E-DOC-READ", origin or Span(file=str(path))))
			return []
		try:
			forms = _parser.parse_forms(text, file=str(path))
		except UnexpectedInput as err:
			line = getattr(err, "line", -1)
			column = getattr(err, "column", -1)
			# lark reports -1 at end of input.
			span = Span(file=str(path), line=line if line > 0 else None, column=column if column > 0 else None)
			self.diagnostics.append(_diag(f"syntax error: {str(err).strip().splitlines()[0]}", "E-DOC-SYNTAX", span))
			return []
		except _parser.FormError as err:
			span = Span(file=str(path), line=err.loc.line or None, column=err.loc.column or None)
			self.diagnostics.append(_diag(str(err), "E-DOC-SYNTAX", span))
			return []

		out: list[AttrForm] = []
		here = path.resolve()
		for form in forms:
			if form.name != "include":
				out.append(form)
				continue
			if not isinstance(form.value, str):
				self.diagnostics.append(_diag("-include expects a file name string", "E-DOC-INCLUDE", _span(form)))
				continue
			target = _resolve_include(form.value, path, self.include_paths)
			if target is None:
				self.diagnostics.append(_diag(f"include file not found: {form.value}", "E-DOC-INCLUDE", _span(form)))
				continue
			if target == here or target in stack:
				chain = " -> ".join(str(p) for p in stack + (here, target))
				self.diagnostics.append(_diag(f"include cycle: {chain}", "E-DOC-INCLUDE", _span(form)))
				continue
			self.included.append(target)
			out.extend(self.load(target, stack=stack + (here,), origin=_span(form)))
		return out


def _as_payload(form: AttrForm, diags: list[Diagnostic]) -> Any:
	"""Map a `-doc`/`-moduledoc` value to a payload; None after reporting an error."""
	value = form.value
	if isinstance(value, Atom):
		if str(value) in _HIDDEN_ATOMS:
			return HIDDEN
	elif isinstance(value, (str, EncodedBytes)):
		return value
	elif isinstance(value, tuple) and len(value) == 2 and value[0] == "file" and isinstance(value[1], str):
		base = Path(form.file).parent if form.file else Path.cwd()
		doc_path = base / value[1]
		try:
			# Read as bytes: the normalizer owns UTF-8 validation.
			return EncodedBytes(doc_path.read_bytes(), "utf8")
		except OSError as err:
			diags.append(_diag(f"cannot read documentation file {doc_path}: {err.strerror or err}", "E-DOC-FILE", _span(form)))
			return None
	diags.append(
		_diag(
			f"invalid -{form.name} value; expected a string, a binary, hidden, false, {{file, Path}} or a metadata map",
			"E-DOC-ATTR",
			_span(form),
		)
	)
	return None


_MAX_ARITY = 0xFFFF
_MAX_NAME_BYTES = 0xFFFF


def _name_problem(name: str) -> Optional[str]:
	try:
		raw = name.encode("utf-8")
	except UnicodeEncodeError:
		return "is not encodable as UTF-8"
	if not raw:
		return "is empty"
	if len(raw) > _MAX_NAME_BYTES:
		return f"exceeds {_MAX_NAME_BYTES} bytes"
	return None


def _entity_ref(form: AttrForm, diags: list[Diagnostic]) -> Optional[EntityRef]:
	if not isinstance(form.value, FunRef):
		diags.append(_diag(f"-{form.name} expects name/arity", "E-DOC-ATTR", _span(form)))
		return None
	problem = _name_problem(form.value.name)
	if problem is not None:
		diags.append(_diag(f"-{form.name} name {problem}", "E-DOC-ATTR", _span(form)))
		return None
	if form.value.arity > _MAX_ARITY:
		diags.append(_diag(f"-{form.name} arity {form.value.arity} exceeds {_MAX_ARITY}", "E-DOC-ATTR", _span(form)))
		return None
	return EntityRef(_ENTITY_ATTRS[form.name], form.value.name, form.value.arity)


def _module_name(form: AttrForm) -> Optional[str]:
	if isinstance(form.value, Atom):
		return str(form.value)
	return None


def forms_to_unit(path: Path, forms: list[AttrForm], diags: list[Diagnostic]) -> Optional[SourceUnit]:
	"""Translate flattened forms into a SourceUnit (diagnostics appended to `diags`)."""
	if not forms:
		diags.append(_diag("missing -module attribute", "E-DOC-MODULE", Span(file=str(path))))
		return None
	first = forms[0]
	module = _module_name(first) if first.name == "module" else None
	if module is None:
		diags.append(_diag("the first attribute must be -module(Name)", "E-DOC-MODULE", _span(first)))
		return None
	problem = _name_problem(module)
	if problem is not None:
		diags.append(_diag(f"module name {problem}", "E-DOC-MODULE", _span(first)))
		return None

	unit = SourceUnit(module=module, path=path)
	unit.events.append(EntityDecl(EntityRef.module(module), _span(first)))
	pending: list[AttrForm] = []
	for form in forms[1:]:
		span = _span(form)
		name = form.name
		if name == "module":
			diags.append(_diag("duplicate -module attribute", "E-DOC-MODULE", span))
		elif name == "export":
			if not isinstance(form.value, list) or not all(isinstance(v, FunRef) for v in form.value):
				diags.append(_diag("-export expects a list of name/arity", "E-DOC-ATTR", span))
				continue
			for ref in form.value:
				if (ref.name, ref.arity) not in unit.exports:
					unit.exports.append((ref.name, ref.arity))
		elif name == "moduledoc":
			if isinstance(form.value, dict):
				unit.events.append(ModuleMeta(_metadata(form.value), span))
				continue
			payload = _as_payload(form, diags)
			if payload is not None:
				unit.events.append(ModuleDoc(payload, span))
		elif name == "doc":
			pending.append(form)
		elif name in _ENTITY_ATTRS:
			ref = _entity_ref(form, diags)
			if ref is None:
				pending.clear()
				continue
			for doc_form in pending:
				doc_span = _span(doc_form)
				if isinstance(doc_form.value, dict):
					unit.events.append(EntityMeta(ref, _metadata(doc_form.value), doc_span))
					continue
				payload = _as_payload(doc_form, diags)
				if payload is not None:
					unit.events.append(EntityDoc(ref, payload, doc_span))
			pending.clear()
			unit.events.append(EntityDecl(ref, span))
		# Any other attribute (-vsn, -behaviour, ...) is not documentation.

	for doc_form in pending:
		diags.append(
			_diag(
				"-doc is not followed by a -fun, -type or -callback declaration; ignored",
				"W-DOC-DANGLING",
				_span(doc_form),
				severity="warning",
			)
		)
	return unit


def _metadata(value: dict) -> dict[str, Any]:
	return {str(k) if isinstance(k, str) else k: v for k, v in value.items()}


def parse_source_file(path: Path, *, include_paths: Sequence[Path] = ()) -> tuple[Optional[SourceUnit], list[Diagnostic]]:
	"""
	Parse one attribute source file (with includes expanded).

	Returns `(unit, diagnostics)`; `unit` is None when the file could not be
	turned into a compilation unit at all.
	"""
	loader = _FormLoader(include_paths)
	forms = loader.load(path)
	diags = list(loader.diagnostics)
	if any(d.severity == "error" for d in diags):
		return None, diags
	unit = forms_to_unit(path, forms, diags)
	if unit is not None:
		unit.includes = list(loader.included)
	return unit, diags


__all__ = ["SourceUnit", "forms_to_unit", "parse_source_file"]
