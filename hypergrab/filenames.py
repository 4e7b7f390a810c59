from __future__ import annotations

from itertools import count
from pathlib import Path
from typing import Iterator


PLACEHOLDER = "_"
EXTENSION = ".png"


def sanitize_identifier(identifier: str) -> str:
    safe = "".join(c if c.isalnum() else PLACEHOLDER for c in identifier)
    return safe or PLACEHOLDER


def candidate_names(identifier: str) -> Iterator[str]:
    stem = sanitize_identifier(identifier)
    yield f"{stem}{EXTENSION}"
    for i in count(1):
        yield f"{stem}_{i}{EXTENSION}"


def allocate_capture_path(directory: str | Path, identifier: str) -> Path:
    """
    Return the first free `<stem>.png`, `<stem>_1.png`, ... in `directory`.

    The file is not created. Another writer can still take the name between
    this check and the write (no cross-process locking).
    """
    base = Path(directory)
    names = candidate_names(identifier)
    p = base / next(names)
    while p.exists():
        p = base / next(names)
    return p
