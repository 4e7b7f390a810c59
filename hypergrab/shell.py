from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def open_path(path: str | Path) -> None:
    """Open a file or folder with the desktop's default handler. Does not wait."""
    p = str(path)
    if sys.platform == "win32":
        os.startfile(p)  # type: ignore[attr-defined]
    elif sys.platform == "darwin":
        subprocess.Popen(["open", p], close_fds=True)
    else:
        subprocess.Popen(["xdg-open", p], close_fds=True)
