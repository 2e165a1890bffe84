from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import List, Optional

import typer

from binstrings.config import AppConfig, load_config
from binstrings.encodings import Encoding, parse_encodings
from binstrings.exceptions import StringsError
from binstrings.reporters.console import render_console
from binstrings.strings import dump_strings, strings, strings_by_encoding

app = typer.Typer(add_completion=False)


def version_callback(value: bool):
    if value:
        try:
            v = metadata.version("binstrings")
        except metadata.PackageNotFoundError:
            v = "0.1.0-dev"
        typer.echo(f"binstrings version: {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
):
    """
    Extract printable strings from binary data.
    """
    pass


@dataclass(frozen=True)
class RunOptions:
    file_path: str
    min_length: int
    encodings: List[Encoding]
    buffer_size: int
    wide_controls: bool


def _resolve_file_path(file_path_arg: Optional[str], file_path_flag: Optional[str]) -> str:
    if file_path_arg and file_path_flag:
        raise typer.BadParameter("You can't specify file path as argument and as flag together")
    file_path = file_path_arg or file_path_flag
    if not file_path:
        raise typer.BadParameter("Missing file path (use '-' for stdin)")
    if file_path == "-":
        return file_path
    p = Path(file_path).expanduser().resolve()
    if not p.is_file():
        raise typer.BadParameter(f"File does not exist: {p}")
    return str(p)


def _run_options(
    cfg: AppConfig,
    file_path: str,
    min_length: Optional[int],
    encoding: Optional[List[str]],
    buffer_size: Optional[int],
    wide_controls: Optional[bool],
) -> RunOptions:
    ex = cfg.extraction
    names = encoding if encoding else ex.encodings
    try:
        encodings = parse_encodings(names)
    except StringsError as e:
        raise typer.BadParameter(str(e))

    return RunOptions(
        file_path=file_path,
        min_length=min_length if min_length is not None else ex.min_length,
        encodings=encodings,
        buffer_size=buffer_size if buffer_size is not None else cfg.source.buffer_size,
        wide_controls=wide_controls if wide_controls is not None else ex.wide_controls,
    )


def _fail(e: Exception) -> None:
    typer.secho(f"Error: {type(e).__name__}: {e}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command()
def extract(
    file_path_arg: Optional[str] = typer.Argument(None, help="File to scan, '-' for stdin."),
    file_path: Optional[str] = typer.Option(None, "--file-path", "-f", help="File to scan, '-' for stdin."),
    min_length: Optional[int] = typer.Option(None, "--min-length", "-m", min=1, help="Minimum string length."),
    encoding: Optional[List[str]] = typer.Option(
        None, "--encoding", "-e", help="ascii, utf-16le or utf-16be (repeatable)."
    ),
    offset: bool = typer.Option(False, "--offset", "-o", help="Prefix each string with its offset."),
    table: bool = typer.Option(False, "--table", help="Render results as a table."),
    buffer_size: Optional[int] = typer.Option(None, "--buffer-size", min=1, help="Read buffer size in bytes."),
    wide_controls: Optional[bool] = typer.Option(
        None, "--wide-controls/--narrow-controls", help="Also treat VT and FF as printable."
    ),
    config: str = typer.Option(None, "--config", help="Path to YAML config."),
):
    """
    Print the strings found in a file.
    """
    cfg = load_config(config)
    path = _resolve_file_path(file_path_arg, file_path)
    opts = _run_options(cfg, path, min_length, encoding, buffer_size, wide_controls)

    kwargs = dict(
        file_path=opts.file_path,
        min_length=opts.min_length,
        encodings=opts.encodings,
        buffer_size=opts.buffer_size,
        wide_controls=opts.wide_controls,
    )
    try:
        if table:
            results = strings_by_encoding(**kwargs)
        else:
            found = strings(**kwargs)
    except StringsError as e:
        _fail(e)

    if table:
        source_name = "<stdin>" if opts.file_path == "-" else Path(opts.file_path).name
        render_console(results, source_name, opts.min_length)
        return

    for text, off in found:
        if offset:
            typer.echo(f"{off:>10}: {text}")
        else:
            typer.echo(text)


@app.command()
def dump(
    file_path_arg: Optional[str] = typer.Argument(None, help="File to scan, '-' for stdin."),
    output: str = typer.Option(..., "--output", "-O", help="JSON file to write."),
    file_path: Optional[str] = typer.Option(None, "--file-path", "-f", help="File to scan, '-' for stdin."),
    min_length: Optional[int] = typer.Option(None, "--min-length", "-m", min=1, help="Minimum string length."),
    encoding: Optional[List[str]] = typer.Option(
        None, "--encoding", "-e", help="ascii, utf-16le or utf-16be (repeatable)."
    ),
    buffer_size: Optional[int] = typer.Option(None, "--buffer-size", min=1, help="Read buffer size in bytes."),
    wide_controls: Optional[bool] = typer.Option(
        None, "--wide-controls/--narrow-controls", help="Also treat VT and FF as printable."
    ),
    config: str = typer.Option(None, "--config", help="Path to YAML config."),
):
    """
    Stream the strings found in a file to a JSON document.
    """
    cfg = load_config(config)
    path = _resolve_file_path(file_path_arg, file_path)
    opts = _run_options(cfg, path, min_length, encoding, buffer_size, wide_controls)
    out_path = Path(output).expanduser().resolve()

    try:
        dump_strings(
            out_path,
            file_path=opts.file_path,
            min_length=opts.min_length,
            encodings=opts.encodings,
            buffer_size=opts.buffer_size,
            wide_controls=opts.wide_controls,
        )
    except StringsError as e:
        _fail(e)

    typer.echo(f"Strings written: {out_path}", err=True)


@app.command()
def qa(
    fixtures: str = typer.Option("./tests/fixtures", "--fixtures", help="Path to QA fixtures directory."),
    config: str = typer.Option(None, "--config", help="Config file to use for QA run."),
):
    """
    Functional Q&A harness: dumps every fixture and checks the JSON against in-memory extraction.
    """
    from binstrings.qa.harness import run_qa

    run_qa(fixtures_dir=Path(fixtures), config_path=config)


if __name__ == "__main__":
    app()
