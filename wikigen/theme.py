from __future__ import annotations

import re
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

THEMES_DIR = Path(__file__).resolve().parent / "themes"
DEFAULT_THEME = "default"
TEMPLATE_NAME = "base.html"
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


def render_template(template: str, **context: str) -> str:
    # Single pass: substituted values are never scanned for placeholders.
    return PLACEHOLDER_RE.sub(lambda match: context.get(match.group(1), match.group(0)), template)


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def copy_static(static_dir: Path, output_dir: Path) -> None:
    for item in sorted(static_dir.iterdir()):
        dest = output_dir / item.name
        if item.is_dir():
            shutil.copytree(item, dest, dirs_exist_ok=True)
        else:
            output_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, dest)


def builtin_themes() -> list[str]:
    if not THEMES_DIR.is_dir():
        return []
    return sorted(p.name for p in THEMES_DIR.iterdir() if (p / TEMPLATE_NAME).is_file())


@dataclass
class Theme:
    name: str
    dirs: list[Path] = field(default_factory=list)
    options: dict = field(default_factory=dict)

    @classmethod
    def from_config(cls, theme: dict, project_dir: Path) -> Theme:
        name = theme.get("name") or DEFAULT_THEME
        if name not in builtin_themes():
            print(f"Warning: theme {name!r} is not available, using {DEFAULT_THEME!r}.", file=sys.stderr)
            name = DEFAULT_THEME
        dirs = [THEMES_DIR / name]
        custom_dir = theme.get("custom_dir")
        if custom_dir:
            path = Path(custom_dir)
            if not path.is_absolute():
                path = project_dir / path
            if path.is_dir():
                dirs.insert(0, path)
            else:
                print(f"Warning: theme custom_dir not found: {path}", file=sys.stderr)
        return cls(name=name, dirs=dirs, options=dict(theme))

    def find(self, name: str) -> Optional[Path]:
        for directory in self.dirs:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None

    def template(self) -> str:
        path = self.find(TEMPLATE_NAME)
        if path is None:
            raise FileNotFoundError(f"{TEMPLATE_NAME} not found in theme {self.name!r}")
        return path.read_text(encoding="utf-8")

    def copy_static(self, output_dir: Path) -> None:
        for directory in reversed(self.dirs):
            static_dir = directory / "static"
            if static_dir.is_dir():
                copy_static(static_dir, output_dir)
