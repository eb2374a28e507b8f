# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Project configuration (`docchunk.json`).

The file is optional. When present it must be a JSON object of the form:

	{
	  "format": "docchunk-config",
	  "version": 0,
	  "doc_format": "text/markdown",
	  "emit_docs": true,
	  "include_paths": ["include"],
	  "metadata_schema": {"since": "text", "reviewers": "text_list"},
	  "jobs": 1,
	  "x": {}
	}

Every field except `format`/`version` is optional. Unknown top-level fields
are rejected (tool-specific data goes under `x`). Relative include paths are
resolved against the config file's directory. CLI flags override file values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from docchunk.normalizer import merge_schema

CONFIG_FILE_NAME = "docchunk.json"
DEFAULT_DOC_FORMAT = "text/markdown"

_ALLOWED_TOP = {"format", "version", "doc_format", "emit_docs", "include_paths", "metadata_schema", "jobs", "x"}


class ConfigError(ValueError):
	"""Raised when the configuration file is unreadable or malformed."""


@dataclass(frozen=True)
class DocChunkConfig:
	doc_format: str = DEFAULT_DOC_FORMAT
	emit_docs: bool = True
	include_paths: tuple[Path, ...] = ()
	metadata_schema: dict[str, str] = field(default_factory=lambda: merge_schema(None))
	jobs: int = 1
	path: Optional[Path] = None


def _expect(cond: bool, message: str) -> None:
	if not cond:
		raise ConfigError(message)


def parse_config(data: Any, *, base_dir: Path, path: Optional[Path] = None) -> DocChunkConfig:
	"""Validate a decoded config object."""
	_expect(isinstance(data, dict), "config must be a JSON object")
	_expect(data.get("format") == "docchunk-config" and data.get("version") == 0, "unsupported config format/version (upgrade docchunk?)")
	unknown = sorted(set(data.keys()) - _ALLOWED_TOP)
	_expect(not unknown, f"config has unknown top-level fields: {', '.join(unknown)}")
	if "x" in data:
		_expect(isinstance(data["x"], dict), "config top-level 'x' must be an object")

	doc_format = data.get("doc_format", DEFAULT_DOC_FORMAT)
	_expect(isinstance(doc_format, str) and bool(doc_format), "config 'doc_format' must be a non-empty string")

	emit_docs = data.get("emit_docs", True)
	_expect(isinstance(emit_docs, bool), "config 'emit_docs' must be a boolean")

	raw_includes = data.get("include_paths", [])
	_expect(
		isinstance(raw_includes, list) and all(isinstance(p, str) for p in raw_includes),
		"config 'include_paths' must be a list of strings",
	)
	include_paths = tuple(base_dir / p for p in raw_includes)

	raw_schema = data.get("metadata_schema", {})
	_expect(
		isinstance(raw_schema, dict) and all(isinstance(k, str) and isinstance(v, str) for k, v in raw_schema.items()),
		"config 'metadata_schema' must map keys to shape names",
	)
	try:
		schema = merge_schema(raw_schema)
	except ValueError as err:
		raise ConfigError(f"config {err}") from err

	jobs = data.get("jobs", 1)
	_expect(isinstance(jobs, int) and not isinstance(jobs, bool) and jobs >= 1, "config 'jobs' must be a positive integer")

	return DocChunkConfig(
		doc_format=doc_format,
		emit_docs=emit_docs,
		include_paths=include_paths,
		metadata_schema=schema,
		jobs=jobs,
		path=path,
	)


def load_config(path: Path) -> DocChunkConfig:
	"""Load and validate a config file."""
	try:
		data = json.loads(path.read_text(encoding="utf-8"))
	except OSError as err:
		raise ConfigError(f"cannot read config {path}: {err}") from err
	except json.JSONDecodeError as err:
		raise ConfigError(f"config {path} is not valid JSON: {err.msg} (line {err.lineno})") from err
	return parse_config(data, base_dir=path.parent, path=path)


def find_config(explicit: Optional[Path] = None, *, cwd: Optional[Path] = None) -> DocChunkConfig:
	"""
	Resolve the effective config.

	An explicit path must exist; otherwise `./docchunk.json` is used when
	present, else defaults apply.
	"""
	if explicit is not None:
		if not explicit.exists():
			raise ConfigError(f"config not found: {explicit}")
		return load_config(explicit)
	candidate = (cwd or Path.cwd()) / CONFIG_FILE_NAME
	if candidate.exists():
		return load_config(candidate)
	return DocChunkConfig()


__all__ = ["CONFIG_FILE_NAME", "ConfigError", "DEFAULT_DOC_FORMAT", "DocChunkConfig", "find_config", "load_config", "parse_config"]
