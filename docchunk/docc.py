# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
`docc`: compile attribute sources into artifacts carrying a `Docs` chunk.

With --json, prints one JSON object with the per-unit results and structured
diagnostics (phase/code/message/severity/file/line/column/notes) plus an
exit_code; otherwise prints human-readable diagnostics to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from docchunk.config import ConfigError, find_config
from docchunk.core.diagnostics import diag_to_json, format_diag
from docchunk.driver import CompileOptions, UnitResult, append_docs, compile_batch


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="docc", description="Compile documentation attributes into artifact doc chunks")
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to attribute source file(s)")
	parser.add_argument(
		"-I",
		"--include-path",
		dest="include_paths",
		action="append",
		type=Path,
		help="Directory searched by -include after the including file's directory (repeatable)",
	)
	parser.add_argument("-o", "--out-dir", type=Path, default=None, help="Output directory for artifacts (default: next to each source)")
	parser.add_argument(
		"--no-docs",
		dest="emit_docs",
		action="store_false",
		default=None,
		help="Check documentation attributes but do not write a Docs chunk",
	)
	parser.add_argument("--doc-format", type=str, default=None, help="Documentation format id when a module does not declare one")
	parser.add_argument("--config", type=Path, default=None, help="Path to docchunk.json (default: ./docchunk.json if present)")
	parser.add_argument("-j", "--jobs", type=int, default=None, help="Compile up to N units in parallel")
	parser.add_argument(
		"--append-to",
		type=Path,
		default=None,
		help="Append the Docs chunk to this existing artifact instead of writing a new one (single source only)",
	)
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit results and diagnostics as JSON",
	)
	return parser


def _unit_to_json(result: UnitResult) -> dict:
	return {
		"source": str(result.source),
		"module": result.module,
		"artifact": str(result.artifact_path) if result.artifact_path is not None else None,
		"ok": result.ok,
	}


def main(argv: list[str] | None = None) -> int:
	parser = _build_parser()
	args = parser.parse_args(argv)

	try:
		config = find_config(args.config)
	except ConfigError as err:
		if args.json:
			print(json.dumps({"exit_code": 2, "units": [], "diagnostics": [{"phase": "config", "code": "E-DOC-CONFIG", "message": str(err), "severity": "error", "file": str(args.config) if args.config else None, "line": None, "column": None, "notes": []}]}))
		else:
			print(f"{args.config or 'docchunk.json'}:?:?: error: {err}", file=sys.stderr)
		return 2

	include_paths = tuple(args.include_paths or ()) + tuple(config.include_paths)
	options = CompileOptions(
		out_dir=args.out_dir,
		include_paths=include_paths,
		emit_docs=config.emit_docs if args.emit_docs is None else bool(args.emit_docs),
		doc_format=args.doc_format or config.doc_format,
		metadata_schema=config.metadata_schema,
	)
	jobs = args.jobs if args.jobs is not None else config.jobs

	sources: list[Path] = list(args.source)
	if args.append_to is not None:
		if len(sources) != 1:
			parser.error("--append-to takes exactly one source")
		results = [append_docs(sources[0], args.append_to, options)]
	else:
		results = compile_batch(sources, options, jobs=jobs)

	exit_code = 0 if all(r.ok for r in results) else 1
	if args.json:
		payload = {
			"exit_code": exit_code,
			"units": [_unit_to_json(r) for r in results],
			"diagnostics": [diag_to_json(d, "parser", r.source) for r in results for d in r.diagnostics],
		}
		print(json.dumps(payload))
	else:
		for r in results:
			for d in r.diagnostics:
				print(format_diag(d, r.source), file=sys.stderr)
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
