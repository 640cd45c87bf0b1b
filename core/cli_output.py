"""CLI output formatting.

Renders command results as text, JSON, YAML or a table.
"""
from __future__ import annotations

import datetime as _dt
import json
import sys
from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, TextIO

from .yamlio import dumps as yaml_dumps


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"
    TABLE = "table"


@dataclass
class OutputConfig:
    format: OutputFormat = OutputFormat.TEXT
    verbose: bool = False
    quiet: bool = False
    file: Optional[TextIO] = None  # defaults to sys.stdout at print time

    @property
    def stream(self) -> TextIO:
        return self.file or sys.stdout


class OutputWriter:
    """Writes command results in the configured format.

    ``quiet`` silences results; errors always reach stderr.
    """

    def __init__(self, config: Optional[OutputConfig] = None):
        self.config = config or OutputConfig()

    def print(self, *args, **kwargs) -> None:
        if self.config.quiet:
            return
        kwargs.setdefault("file", self.config.stream)
        print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        print(f"Error: {message}", file=sys.stderr)

    def print_data(self, data: Any, headers: Optional[List[str]] = None) -> None:
        """Print ``data`` (str, dict, list or dataclass) in the configured format.

        ``headers`` picks and orders the table columns; by default they come
        from the first row.
        """
        fmt = OutputFormat(self.config.format)
        if fmt == OutputFormat.JSON:
            self.print(json.dumps(normalize(data), indent=2, default=str))
        elif fmt == OutputFormat.YAML:
            self.print(yaml_dumps(normalize(data)), end="")
        elif fmt == OutputFormat.TABLE:
            for line in render_table(normalize(data), headers):
                self.print(line)
        else:
            self._print_text(normalize(data))

    def _print_text(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                self.print(f"{key}: {value}")
        elif isinstance(data, list):
            for item in data:
                self.print(item)
        else:
            self.print(data)


def render_table(data: Any, headers: Optional[Sequence[str]] = None) -> List[str]:
    """Lines of a ``|``-separated table with a dashed rule under the header."""
    rows = data if isinstance(data, list) else [data]
    if not rows:
        return []
    if headers is None and isinstance(rows[0], dict):
        headers = list(rows[0])
    if not headers:
        return [" | ".join(map(str, row)) if isinstance(row, list) else str(row) for row in rows]

    cells = [_cells(row, headers) for row in rows]
    widths = [max([len(h)] + [len(r[i]) for r in cells if i < len(r)]) for i, h in enumerate(headers)]

    def line(values: Sequence[str]) -> str:
        return " | ".join(v.ljust(widths[i]) if i < len(widths) else v for i, v in enumerate(values))

    header = line(list(headers))
    return [header, "-" * len(header)] + [line(r) for r in cells]


def _cells(row: Any, headers: Sequence[str]) -> List[str]:
    if isinstance(row, dict):
        return [str(row.get(h, "")) for h in headers]
    if isinstance(row, list):
        return [str(v) for v in row]
    return [str(row)]


def normalize(data: Any) -> Any:
    """Convert dataclasses, enums, tuples and datetimes into plain JSON/YAML values."""
    if is_dataclass(data) and not isinstance(data, type):
        return normalize(asdict(data))
    if isinstance(data, dict):
        return {k: normalize(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [normalize(v) for v in data]
    if isinstance(data, Enum):
        return data.value
    if isinstance(data, (_dt.date, _dt.datetime)):
        return data.isoformat()
    return data
