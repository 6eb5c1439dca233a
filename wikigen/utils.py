from __future__ import annotations

import posixpath
import shutil
from pathlib import Path
from typing import Optional

from .errors import OutputDirError


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def root_for(output_path: str) -> str:
    depth = output_path.count("/")
    if depth == 0:
        return "."
    return "/".join([".."] * depth)


def relative_url(from_page: str, to_page: str) -> str:
    start = posixpath.dirname(from_page) or "."
    return posixpath.relpath(to_page, start)


def md_to_html_path(path: str) -> str:
    return posixpath.splitext(path)[0] + ".html"


def check_output_dir(output_dir: Path, protected: list[Path], sources: Optional[list[Path]] = None) -> None:
    output_resolved = output_dir.resolve()
    for path in sources or []:
        if output_resolved.is_relative_to(path.resolve()):
            raise OutputDirError(f"output directory may not be inside {path}", output_dir)
    for path in protected:
        resolved = path.resolve()
        if output_resolved == resolved or resolved.is_relative_to(output_resolved):
            raise OutputDirError(f"refusing to replace a directory containing {path}", output_dir)


def replace_dir(staging_dir: Path, output_dir: Path) -> None:
    backup = None
    if output_dir.exists():
        backup = output_dir.with_name(f".{output_dir.name}.old")
        if backup.exists():
            shutil.rmtree(backup)
        output_dir.rename(backup)
    staging_dir.rename(output_dir)
    if backup is not None:
        shutil.rmtree(backup)
