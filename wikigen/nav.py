from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from .errors import ConfigParseError

MAX_DEPTH = 32


@dataclass
class NavNode:
    title: str
    path: Optional[str] = None
    children: list[NavNode] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return self.path is not None


def title_from_path(path: str) -> str:
    stem = posixpath.splitext(posixpath.basename(path))[0]
    if stem == "index":
        parent = posixpath.basename(posixpath.dirname(path))
        stem = parent or "Home"
    text = stem.replace("_", " ").replace("-", " ").strip()
    return text[:1].upper() + text[1:] if text else "Untitled"


def normalize_doc_path(path: str, where: str) -> str:
    value = path.strip().replace("\\", "/")
    if not value:
        raise ConfigParseError("empty document path", where)
    if not value.lower().endswith(".md"):
        raise ConfigParseError(f"expected a Markdown file, got {value!r}", where)
    value = posixpath.normpath(value.lstrip("/"))
    if value.startswith("../") or value == "..":
        raise ConfigParseError(f"document path leaves the docs directory: {path!r}", where)
    return value


def _parse_value(title: str, value: object, where: str, depth: int) -> NavNode:
    if depth > MAX_DEPTH:
        raise ConfigParseError("navigation is nested too deeply", where)
    if isinstance(value, str):
        return NavNode(title=title, path=normalize_doc_path(value, where))
    if isinstance(value, list):
        return NavNode(title=title, children=_parse_items(value, where, depth + 1))
    if isinstance(value, dict):
        children = []
        for key, child in value.items():
            child_title = _parse_title(key, where)
            children.append(_parse_value(child_title, child, f"{where}.{child_title}", depth + 1))
        return NavNode(title=title, children=children)
    raise ConfigParseError(
        f"nav entry must be a path or a nested section, got {type(value).__name__}", where
    )


def _parse_title(key: object, where: str) -> str:
    if isinstance(key, (int, float)) and not isinstance(key, bool):
        key = str(key)
    if not isinstance(key, str) or not key.strip():
        raise ConfigParseError(f"nav title must be a non-empty string, got {key!r}", where)
    return key.strip()


def _parse_items(items: list, where: str, depth: int) -> list[NavNode]:
    nodes = []
    for index, item in enumerate(items):
        item_where = f"{where}[{index}]"
        if isinstance(item, str):
            path = normalize_doc_path(item, item_where)
            nodes.append(NavNode(title=title_from_path(path), path=path))
            continue
        if isinstance(item, dict) and len(item) == 1:
            key, value = next(iter(item.items()))
            title = _parse_title(key, item_where)
            nodes.append(_parse_value(title, value, f"{item_where}.{title}", depth))
            continue
        if isinstance(item, dict):
            raise ConfigParseError("nav list items must have exactly one title", item_where)
        raise ConfigParseError(
            f"nav entry must be a path or a single-key mapping, got {type(item).__name__}", item_where
        )
    return nodes


def parse_nav(raw: object) -> list[NavNode]:
    if raw is None:
        return []
    if isinstance(raw, list):
        return _parse_items(raw, "nav", 1)
    if isinstance(raw, dict):
        return _parse_value("nav", raw, "nav", 1).children
    raise ConfigParseError(f"nav must be a list, got {type(raw).__name__}", "nav")


def iter_leaves(nodes: list[NavNode]) -> Iterator[NavNode]:
    for node in nodes:
        if node.is_leaf:
            yield node
        else:
            yield from iter_leaves(node.children)


def leaf_paths(nodes: list[NavNode]) -> list[str]:
    seen: dict[str, None] = {}
    for leaf in iter_leaves(nodes):
        seen.setdefault(leaf.path, None)
    return list(seen)


def nav_from_docs_dir(docs_dir: Path) -> list[NavNode]:
    def walk(directory: Path) -> list[NavNode]:
        files = sorted(
            (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".md"),
            key=lambda p: (p.stem.lower() != "index", p.name.lower()),
        )
        nodes = []
        for file in files:
            rel = file.relative_to(docs_dir).as_posix()
            nodes.append(NavNode(title=title_from_path(rel), path=rel))
        for sub in sorted((p for p in directory.iterdir() if p.is_dir()), key=lambda p: p.name.lower()):
            if sub.name.startswith("."):
                continue
            children = walk(sub)
            if children:
                nodes.append(NavNode(title=title_from_path(f"{sub.name}.md"), children=children))
        return nodes

    if not docs_dir.is_dir():
        return []
    return walk(docs_dir)
