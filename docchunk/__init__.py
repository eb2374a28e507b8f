# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
docchunk: structured documentation chunks for compiled modules.

Write path (per compilation unit):
  parser     attribute source -> ordered events (includes expanded)
  collector  events -> per-entity contribution log (duplicate docs rejected)
  merger     contributions -> draft entries (metadata last-write-wins)
  normalizer drafts -> canonical UTF-8 entries (known metadata validated)
  chunk      entries -> versioned binary `Docs` chunk in the artifact

Read path: `docchunk.chunk.reader` (`load`, `lookup`, `list_visible`).

CLI entrypoints: `docchunk.docc:main` (compile) and `docchunk.docq:main` (query).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
