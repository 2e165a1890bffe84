from __future__ import annotations
from rich.console import Console
from rich.table import Table
from rich.text import Text
from typing import Dict, List, Optional

from binstrings.encodings import Encoding
from binstrings.writers import ExtractedString

console = Console()

def render_console(
    results: Dict[Encoding, List[ExtractedString]],
    source_name: str,
    min_length: int,
    out: Optional[Console] = None,
) -> None:
    out = out or console
    t = Table(title=Text(f"Strings in {source_name} (min length {min_length})"))
    t.add_column("Encoding")
    t.add_column("Offset", justify="right")
    t.add_column("String", overflow="fold")
    total = 0
    for enc, items in results.items():
        for s in items:
            t.add_row(str(enc), str(s.offset), Text(s.text))
            total += 1
    out.print(t)
    out.print(f"[green]{total} string(s) found[/green]")
