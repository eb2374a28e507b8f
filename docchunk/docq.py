# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
`docq`: query documentation chunks of compiled artifacts.

	docq show pkg.dca                # module doc
	docq show pkg.dca area/1         # function doc
	docq show pkg.dca type:shape/0   # type (also callback:NAME/N)
	docq list pkg.dca [--kind function] [--all]
	docq info pkg.dca

Exit codes: 0 success, 1 entity not found, 2 no usable chunk (missing,
unsupported version, malformed).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from docchunk.artifacts.artifact_v0 import ArtifactError, load_artifact
from docchunk.chunk.reader import list_entries, list_visible, load, lookup
from docchunk.errors import NotFound
from docchunk.model import Atom, Authored, DocChunk, DocEntry, EncodedBytes, EntityKind, EntityRef, Hidden


def _jsonable(value: Any) -> Any:
	if isinstance(value, bytes):
		return value.decode("utf-8", errors="replace")
	if isinstance(value, EncodedBytes):
		return {"encoding": value.encoding, "hex": value.data.hex()}
	if isinstance(value, Atom):
		return str(value)
	if isinstance(value, (list, tuple)):
		return [_jsonable(v) for v in value]
	if isinstance(value, dict):
		return {str(_jsonable(k)): _jsonable(v) for k, v in value.items()}
	return value


def entry_to_dict(entry: DocEntry) -> dict[str, Any]:
	if isinstance(entry.content, Authored):
		content: dict[str, Any] = {"kind": "authored", "text": entry.text}
	elif isinstance(entry.content, Hidden):
		content = {"kind": "hidden"}
	else:
		content = {"kind": "none"}
	return {
		"kind": entry.ref.kind.value,
		"name": entry.ref.name,
		"arity": entry.ref.arity,
		"line": entry.line,
		"content": content,
		"metadata": _jsonable(dict(entry.metadata)),
	}


def parse_entity(arg: Optional[str], module: str) -> EntityRef:
	"""
	Parse an entity argument: omitted -> the module, `name/N` -> function,
	`type:name/N` or `callback:name/N` -> those kinds.
	"""
	if not arg:
		return EntityRef.module(module)
	kind = EntityKind.FUNCTION
	if ":" in arg:
		prefix, arg = arg.split(":", 1)
		try:
			kind = EntityKind(prefix)
		except ValueError as err:
			raise ValueError(f"unknown entity kind '{prefix}'") from err
		if kind is EntityKind.MODULE:
			return EntityRef.module(arg or module)
	name, sep, arity = arg.rpartition("/")
	if not sep or not name or not arity.isdigit():
		raise ValueError(f"expected name/arity, got '{arg}'")
	return EntityRef(kind, name, int(arity))


def _render_entry(entry: DocEntry) -> str:
	lines = [str(entry.ref)]
	if isinstance(entry.content, Authored):
		lines.append("")
		lines.append(entry.text or "")
	elif isinstance(entry.content, Hidden):
		lines.append("  (hidden)")
	else:
		lines.append("  (no documentation)")
	for key in sorted(entry.metadata):
		lines.append(f"  {key}: {json.dumps(_jsonable(entry.metadata[key]), ensure_ascii=False)}")
	return "\n".join(lines)


def _load_or_report(path: Path, as_json: bool) -> Optional[DocChunk]:
	res = load(path)
	if isinstance(res, DocChunk):
		return res
	if as_json:
		print(json.dumps({"error": type(res).__name__, "message": str(res)}))
	else:
		print(f"{path}: {res}", file=sys.stderr)
	return None


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="docq", description="Query documentation chunks of compiled artifacts")
	sub = p.add_subparsers(dest="cmd", required=True)

	show = sub.add_parser("show", help="Show documentation for the module or one entity")
	show.add_argument("artifact", type=Path, help="Path to a compiled artifact")
	show.add_argument("entity", nargs="?", default=None, help="name/N, type:name/N or callback:name/N (default: module)")
	show.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

	lst = sub.add_parser("list", help="List documented entities")
	lst.add_argument("artifact", type=Path, help="Path to a compiled artifact")
	lst.add_argument("--kind", choices=[k.value for k in EntityKind], default=None, help="Only list this kind")
	lst.add_argument("--all", action="store_true", help="Include hidden entries")
	lst.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

	info = sub.add_parser("info", help="Show artifact chunks and documentation header")
	info.add_argument("artifact", type=Path, help="Path to a compiled artifact")
	info.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
	return p


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)

	if args.cmd == "info":
		try:
			artifact = load_artifact(args.artifact)
		except (ArtifactError, OSError) as err:
			print(f"{args.artifact}: {err}", file=sys.stderr)
			return 2
		res = load(artifact)
		obj: dict[str, Any] = {"chunks": [{"name": e.name, "size": e.length, "sha256": e.sha256} for e in artifact.toc]}
		if isinstance(res, DocChunk):
			obj["docs"] = {"version": res.version, "format": res.format_id, "module": res.module_name, "entries": len(res.entries)}
		else:
			obj["docs"] = {"error": type(res).__name__, "message": str(res)}
		if args.json:
			print(json.dumps(obj, sort_keys=True, separators=(",", ":")))
		else:
			print(json.dumps(obj, indent=2, sort_keys=True))
		return 0

	try:
		chunk = _load_or_report(args.artifact, args.json)
	except OSError as err:
		print(f"{args.artifact}: {err}", file=sys.stderr)
		return 2
	if chunk is None:
		return 2

	if args.cmd == "show":
		try:
			ref = parse_entity(args.entity, chunk.module_name)
		except ValueError as err:
			p.error(str(err))
		found = lookup(chunk, ref)
		if isinstance(found, NotFound):
			if args.json:
				print(json.dumps({"error": "NotFound", "message": f"no documentation entry for {ref}"}))
			else:
				print(f"{args.artifact}: no documentation entry for {ref}", file=sys.stderr)
			return 1
		if args.json:
			print(json.dumps(entry_to_dict(found), sort_keys=True, separators=(",", ":"), ensure_ascii=False))
		else:
			print(_render_entry(found))
		return 0

	if args.cmd == "list":
		kind = EntityKind(args.kind) if args.kind else None
		entries = list_entries(chunk, kind) if args.all else list_visible(chunk, kind)
		if args.json:
			print(json.dumps([entry_to_dict(e) for e in entries], sort_keys=True, separators=(",", ":"), ensure_ascii=False))
		else:
			for e in entries:
				flag = " (hidden)" if e.is_hidden else ""
				print(f"{e.ref}{flag}")
		return 0

	return 2


if __name__ == "__main__":
	sys.exit(main())
