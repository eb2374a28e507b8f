# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from docchunk.config import DEFAULT_DOC_FORMAT, ConfigError, DocChunkConfig, find_config, load_config, parse_config
from docchunk.normalizer import DEFAULT_SCHEMA, TEXT


def _cfg(**fields):
	data = {"format": "docchunk-config", "version": 0}
	data.update(fields)
	return data


def test_defaults(tmp_path: Path) -> None:
	cfg = parse_config(_cfg(), base_dir=tmp_path)
	assert cfg.doc_format == DEFAULT_DOC_FORMAT
	assert cfg.emit_docs is True
	assert cfg.include_paths == ()
	assert cfg.metadata_schema == DEFAULT_SCHEMA
	assert cfg.jobs == 1


def test_include_paths_are_relative_to_config(tmp_path: Path) -> None:
	cfg = parse_config(_cfg(include_paths=["inc", "/abs/dir"]), base_dir=tmp_path)
	assert cfg.include_paths == (tmp_path / "inc", Path("/abs/dir"))


def test_schema_extension(tmp_path: Path) -> None:
	cfg = parse_config(_cfg(metadata_schema={"edition": "text"}), base_dir=tmp_path)
	assert cfg.metadata_schema["edition"] == TEXT
	assert cfg.metadata_schema["since"] == TEXT


@pytest.mark.parametrize(
	"data",
	[
		[],
		{"format": "docchunk-config"},
		{"format": "other", "version": 0},
		_cfg(unknown=1),
		_cfg(x=[]),
		_cfg(doc_format=""),
		_cfg(emit_docs="yes"),
		_cfg(include_paths="inc"),
		_cfg(metadata_schema={"k": "number"}),
		_cfg(jobs=0),
		_cfg(jobs=True),
	],
)
def test_invalid_configs(tmp_path: Path, data) -> None:
	with pytest.raises(ConfigError):
		parse_config(data, base_dir=tmp_path)


def test_tool_specific_data_is_allowed(tmp_path: Path) -> None:
	cfg = parse_config(_cfg(x={"editor": {"theme": "dark"}}), base_dir=tmp_path)
	assert isinstance(cfg, DocChunkConfig)


def test_load_config_reports_bad_json(tmp_path: Path) -> None:
	path = tmp_path / "docchunk.json"
	path.write_text("{not json", encoding="utf-8")
	with pytest.raises(ConfigError, match="not valid JSON"):
		load_config(path)


def test_find_config(tmp_path: Path) -> None:
	assert find_config(cwd=tmp_path) == DocChunkConfig()
	path = tmp_path / "docchunk.json"
	path.write_text(json.dumps(_cfg(jobs=4)), encoding="utf-8")
	cfg = find_config(cwd=tmp_path)
	assert cfg.jobs == 4
	assert cfg.path == path
	with pytest.raises(ConfigError, match="not found"):
		find_config(tmp_path / "missing.json")
