"""YAML read/write helpers for rule files and phrase tables."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

__all__ = ["load_config", "dump_config", "dumps"]

PathLike = Union[str, Path]


def _yaml():
    # Imported lazily so the codecs and the finder load without PyYAML
    try:
        import yaml  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime guard
        raise RuntimeError("PyYAML is needed for rule files and phrase tables: pip install PyYAML") from exc
    return yaml


def load_config(path: Optional[PathLike]) -> Any:
    """Read one YAML document.

    Returns ``{}`` when the path is unset, missing or blank. Other roots
    (lists, scalars) come back unchanged so the caller can reject them.
    """
    if not path:
        return {}
    source = Path(path).expanduser()
    if not source.is_file():
        return {}
    with source.open("r", encoding="utf-8") as fh:
        data = _yaml().safe_load(fh)
    return {} if data is None else data


def dumps(data: Any) -> str:
    """YAML text for ``data``, keeping key order and non-ASCII text."""
    return _yaml().safe_dump(data, sort_keys=False, allow_unicode=True)


def dump_config(path: PathLike, data: Any) -> None:
    """Write ``data`` to ``path``, creating parent directories."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dumps(data), encoding="utf-8")
