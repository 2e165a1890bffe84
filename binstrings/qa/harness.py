from __future__ import annotations
from pathlib import Path
import json
import subprocess
import sys

from binstrings.config import load_config
from binstrings.strings import strings

def _check_document(doc, fx: Path) -> None:
    assert isinstance(doc, list), f"{fx.name}: top level is not a JSON array"
    for item in doc:
        assert isinstance(item, list) and len(item) == 2, f"{fx.name}: element is not a pair: {item!r}"
        text, offset = item
        assert isinstance(text, str) and text, f"{fx.name}: empty or non-string text: {item!r}"
        assert isinstance(offset, int) and offset >= 0, f"{fx.name}: bad offset: {item!r}"

def run_qa(fixtures_dir: Path, config_path: str | None) -> None:
    fixtures_dir = fixtures_dir.resolve()
    if not fixtures_dir.exists():
        raise AssertionError(f"Fixtures directory missing: {fixtures_dir}")

    fixture_files = [p for p in fixtures_dir.iterdir() if p.is_file()]
    if not fixture_files:
        raise AssertionError(f"No fixtures found in: {fixtures_dir}")

    cfg = load_config(config_path)
    outdir = fixtures_dir / "_qa_out"
    outdir.mkdir(parents=True, exist_ok=True)

    for fx in fixture_files:
        out_json = outdir / f"{fx.name}.json"
        cmd = [sys.executable, "-m", "binstrings.cli", "dump", str(fx), "--output", str(out_json)]
        if config_path:
            cmd += ["--config", config_path]

        r = subprocess.run(cmd, capture_output=True, text=True)
        if r.returncode != 0:
            raise AssertionError(f"Dump failed for {fx}:\nSTDOUT:\n{r.stdout}\nSTDERR:\n{r.stderr}")
        if not out_json.exists():
            raise AssertionError(f"No JSON produced for {fx}")

        doc = json.loads(out_json.read_text(encoding="utf-8"))
        _check_document(doc, fx)

        # streamed output must match the in-memory result
        expected = strings(
            fx,
            min_length=cfg.extraction.min_length,
            encodings=cfg.extraction.encodings,
            buffer_size=cfg.source.buffer_size,
            wide_controls=cfg.extraction.wide_controls,
        )
        got = [(text, offset) for text, offset in doc]
        assert got == [tuple(s) for s in expected], f"{fx.name}: JSON dump differs from in-memory extraction"

    print(f"[QA] OK: {len(fixture_files)} fixture(s) passed. Output: {outdir}")
