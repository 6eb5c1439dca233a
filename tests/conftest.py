"""Test setup for wikigen."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest
import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Write a config file plus docs and return the config path."""

    def _make(config: dict, files: dict[str, str] | None = None) -> Path:
        docs = tmp_path / "docs"
        docs.mkdir(exist_ok=True)
        for rel, text in (files or {}).items():
            path = docs / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        data = {"site_name": "Test Wiki", **config}
        config_path = tmp_path / "mkdocs.yml"
        config_path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return config_path

    return _make
