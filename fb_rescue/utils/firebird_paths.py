"""Locate the Firebird 2.5 command-line tools."""

import os
from pathlib import Path
from typing import Optional

from ..models.service import BinCheck, BinDetection


def tool_name(tool: str) -> str:
    return f"{tool}.exe" if os.name == "nt" else tool


def tool_path(bin_dir, tool: str) -> Path:
    return Path(bin_dir) / tool_name(tool)


def candidate_bin_dirs() -> list[Path]:
    candidates = [Path.cwd() / "Firebird_2_5" / "bin"]
    if os.name == "nt":
        for var, fallback in (
            ("ProgramFiles", "C:/Program Files"),
            ("ProgramFiles(x86)", "C:/Program Files (x86)"),
        ):
            root = Path(os.environ.get(var) or fallback)
            candidates.append(root / "Firebird" / "Firebird_2_5" / "bin")
    else:
        candidates.append(Path("/opt/firebird/bin"))
        candidates.append(Path("/usr/lib/firebird/2.5/bin"))
    return candidates


def check_bin_dir(bin_dir: str) -> BinCheck:
    """Report which of isql, gfix and gbak exist in a directory."""
    try:
        has = {
            tool: tool_path(bin_dir, tool).is_file()
            for tool in ("isql", "gfix", "gbak")
        }
    except OSError:
        return BinCheck(bin_dir=str(bin_dir))
    return BinCheck(
        bin_dir=str(bin_dir),
        ok=has["gfix"] and has["gbak"],
        has_isql=has["isql"],
        has_gfix=has["gfix"],
        has_gbak=has["gbak"],
    )


def detect_bin_dir(candidates: Optional[list[Path]] = None) -> BinDetection:
    for path in candidates if candidates is not None else candidate_bin_dirs():
        if check_bin_dir(str(path)).ok:
            return BinDetection(found=True, bin_dir=str(path))
    return BinDetection()
