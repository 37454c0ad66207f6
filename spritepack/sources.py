from __future__ import annotations

import glob
from pathlib import Path
from typing import Iterable


def expand_sources(patterns: Iterable[str]) -> list[str]:
    """Expand glob patterns into an ordered, de-duplicated list of absolute paths.

    Patterns are expanded in the order given and matches of each pattern are
    sorted, so the result is stable across runs. A pattern without glob
    characters is kept as-is even when the file does not exist; the build
    reports it as a decode failure instead.
    """
    expanded: list[str] = []
    seen: set[str] = set()
    for pattern in patterns:
        if glob.has_magic(pattern):
            matches = sorted(p for p in glob.glob(pattern, recursive=True) if Path(p).is_file())
        else:
            matches = [pattern]
        for match in matches:
            resolved = str(Path(match).resolve())
            if resolved in seen:
                continue
            seen.add(resolved)
            expanded.append(resolved)

    if not expanded:
        raise ValueError("source patterns matched no files")
    return expanded
