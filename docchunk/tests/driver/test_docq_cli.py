# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import struct
from pathlib import Path

import pytest

from docchunk import docc, docq
from docchunk.artifacts.artifact_v0 import load_artifact, write_artifact
from docchunk.model import EntityRef

SOURCE = """\
-module(shapes).
-export([area/1, scale/2]).
-moduledoc "Geometric shapes.".
-moduledoc #{since => "1.0"}.
-doc "Area of a shape.".
-fun area/1.
-doc hidden.
-fun scale/2.
-doc "A shape.".
-type shape/0.
"""


@pytest.fixture
def artifact(tmp_path: Path) -> Path:
	src = tmp_path / "shapes.erl"
	src.write_text(SOURCE, encoding="utf-8")
	assert docc.main([str(src)]) == 0
	return tmp_path / "shapes.dca"


def test_parse_entity() -> None:
	assert docq.parse_entity(None, "m") == EntityRef.module("m")
	assert docq.parse_entity("f/1", "m") == EntityRef.function("f", 1)
	assert docq.parse_entity("type:t/0", "m") == EntityRef.type("t", 0)
	assert docq.parse_entity("callback:c/2", "m") == EntityRef.callback("c", 2)
	with pytest.raises(ValueError):
		docq.parse_entity("f", "m")
	with pytest.raises(ValueError):
		docq.parse_entity("macro:f/1", "m")


def test_show_module(artifact: Path, capsys) -> None:
	assert docq.main(["show", str(artifact)]) == 0
	out = capsys.readouterr().out
	assert "module shapes" in out
	assert "Geometric shapes." in out
	assert 'since: "1.0"' in out


def test_show_function_json(artifact: Path, capsys) -> None:
	assert docq.main(["show", str(artifact), "area/1", "--json"]) == 0
	obj = json.loads(capsys.readouterr().out)
	assert obj["kind"] == "function"
	assert obj["content"] == {"kind": "authored", "text": "Area of a shape."}
	assert obj["line"] == 6


def test_show_hidden_entry(artifact: Path, capsys) -> None:
	assert docq.main(["show", str(artifact), "scale/2", "--json"]) == 0
	assert json.loads(capsys.readouterr().out)["content"] == {"kind": "hidden"}


def test_show_missing_entity(artifact: Path, capsys) -> None:
	assert docq.main(["show", str(artifact), "area/3"]) == 1
	assert "no documentation entry for function area/3" in capsys.readouterr().err


def test_list_skips_hidden_by_default(artifact: Path, capsys) -> None:
	assert docq.main(["list", str(artifact)]) == 0
	lines = capsys.readouterr().out.splitlines()
	assert lines == ["module shapes", "function area/1", "type shape/0"]
	assert docq.main(["list", str(artifact), "--all", "--kind", "function"]) == 0
	lines = capsys.readouterr().out.splitlines()
	assert lines == ["function area/1", "function scale/2 (hidden)"]


def test_info(artifact: Path, capsys) -> None:
	assert docq.main(["info", str(artifact), "--json"]) == 0
	obj = json.loads(capsys.readouterr().out)
	assert [c["name"] for c in obj["chunks"]] == ["Attr", "Docs"]
	assert obj["docs"] == {"version": 1, "format": "text/markdown", "module": "shapes", "entries": 3}


def test_missing_docs_chunk(tmp_path: Path, capsys) -> None:
	path = tmp_path / "plain.dca"
	write_artifact(path, {"Attr": b"{}"})
	assert docq.main(["show", str(path), "--json"]) == 2
	assert json.loads(capsys.readouterr().out)["error"] == "ChunkNotFoundError"


def test_future_chunk_version(artifact: Path, capsys) -> None:
	chunks = dict(load_artifact(artifact).chunks)
	docs = bytearray(chunks["Docs"])
	struct.pack_into("<H", docs, 4, 2)
	chunks["Docs"] = bytes(docs)
	write_artifact(artifact, chunks)
	assert docq.main(["list", str(artifact)]) == 2
	assert "upgrade your tooling" in capsys.readouterr().err


def test_show_rejects_malformed_entity(artifact: Path, capsys) -> None:
	with pytest.raises(SystemExit) as info:
		docq.main(["show", str(artifact), "area"])
	assert info.value.code == 2
	assert "expected name/arity" in capsys.readouterr().err
