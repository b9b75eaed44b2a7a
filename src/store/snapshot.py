from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from domain.models import Custodian

_CUSTODIANS = TypeAdapter(list[Custodian])


class SnapshotError(Exception):
    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


def load_custodians(path: Path) -> list[Custodian]:
    """Read a snapshot file. A missing or empty file yields no custodians."""
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise SnapshotError(f"Failed to read snapshot {path}", path=path) from exc

    if not raw.strip():
        return []

    try:
        return _CUSTODIANS.validate_json(raw)
    except ValidationError as exc:
        raise SnapshotError(f"Snapshot {path} is malformed: {exc}", path=path) from exc


def dump_custodians(custodians: Sequence[Custodian], path: Path) -> None:
    """Write custodians as a JSON array, replacing `path` atomically."""
    try:
        payload = _CUSTODIANS.dump_python(list(custodians), mode="json")
        text = json.dumps(payload, indent="\t")
    except ValueError as exc:
        raise SnapshotError(f"Failed to encode snapshot {path}", path=path) from exc

    directory = path.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as exc:
        raise SnapshotError(f"Failed to create temporary snapshot next to {path}", path=path) from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise SnapshotError(f"Failed to write snapshot {path}", path=path) from exc


__all__ = ["SnapshotError", "dump_custodians", "load_custodians"]
