from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path


_SAFE_NAME_PATTERN = re.compile(r"[^a-zA-Z0-9_-]+")


def safe_name(name: str) -> str:
    cleaned = _SAFE_NAME_PATTERN.sub("-", name).strip("-_")
    return cleaned or "image"


def stage_bytes(destination: str, data: bytes) -> str:
    """Write `data` to a hidden temp file beside `destination` and return its path.

    The final path is untouched until `promote` renames the staged file.
    """
    target = Path(destination)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
            fp.flush()
            os.fsync(fp.fileno())
    except BaseException:
        discard(tmp_path)
        raise
    return tmp_path


def stage_text(destination: str, text: str) -> str:
    return stage_bytes(destination, text.encode("utf-8"))


def promote(staged_path: str, destination: str) -> None:
    os.replace(staged_path, destination)


def discard(staged_path: str) -> None:
    try:
        os.unlink(staged_path)
    except FileNotFoundError:
        pass


def outputs_exist(*paths: str) -> bool:
    return all(Path(p).is_file() for p in paths)
