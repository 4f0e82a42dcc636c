"""Permission checking utilities."""

import os
from pathlib import Path


def check_path_writable(path: str) -> bool:
    """Check if a path (or its nearest existing parent) is writable."""
    p = Path(path)
    if p.exists():
        return os.access(str(p), os.W_OK)
    parent = p.parent
    while not parent.exists() and parent != parent.parent:
        parent = parent.parent
    return os.access(str(parent), os.W_OK)
