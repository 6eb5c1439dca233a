from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ContentNotFoundError, FrontMatterError

LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
KEY_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_ -]*$")
LIST_KEYS = {"tags", "categories", "authors"}


@dataclass(frozen=True)
class Document:
    path: str
    source: Path
    body: str
    title: Optional[str] = None
    date: Optional[dt.date] = None
    author: Optional[str] = None
    tags: tuple[str, ...] = ()
    meta: dict = field(default_factory=dict, compare=False)


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "section"


def parse_list(value: str) -> list[str]:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1]
        items = [item.strip().strip("'\"") for item in inner.split(",")]
    else:
        items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def parse_front_matter(text: str, path: object = "") -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        raise FrontMatterError("metadata block is not closed with '---'", path)

    meta: dict = {}
    for lineno, line in enumerate(lines[1:end], start=2):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            raise FrontMatterError(f"line {lineno}: expected 'key: value', got {line!r}", path)
        key, value = line.split(":", 1)
        key = key.strip().lower()
        if not key or not KEY_RE.match(key):
            raise FrontMatterError(f"line {lineno}: invalid key {key!r}", path)
        if key in meta:
            raise FrontMatterError(f"line {lineno}: duplicate key {key!r}", path)
        value = value.strip()
        if key in LIST_KEYS:
            meta[key] = parse_list(value)
        else:
            meta[key] = unquote(value)
    body = "\n".join(lines[end + 1 :])
    return meta, body


def parse_date(value: str, path: object = "") -> Optional[dt.date]:
    value = value.strip()
    if not value:
        return None
    try:
        if "T" in value or " " in value:
            return dt.datetime.fromisoformat(value).date()
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise FrontMatterError(f"invalid date {value!r}", path) from exc


def resolve_source(docs_dir: Path, rel_path: str) -> Path:
    docs_resolved = docs_dir.resolve()
    source = (docs_resolved / rel_path).resolve()
    if not source.is_relative_to(docs_resolved):
        raise ContentNotFoundError("path resolves outside the docs directory", rel_path)
    return source


def document_exists(docs_dir: Path, rel_path: str) -> bool:
    try:
        return resolve_source(docs_dir, rel_path).is_file()
    except ContentNotFoundError:
        return False


def load_document(docs_dir: Path, rel_path: str) -> Document:
    source = resolve_source(docs_dir, rel_path)
    if not source.is_file():
        raise ContentNotFoundError("document not found", rel_path)
    raw_text = source.read_text(encoding="utf-8")
    meta, body = parse_front_matter(raw_text, rel_path)
    title = meta.get("title") or None
    author = meta.get("author") or None
    if not author and meta.get("authors"):
        author = ", ".join(meta["authors"])
    tags = meta.get("tags") or meta.get("categories") or []
    return Document(
        path=rel_path,
        source=source,
        body=body,
        title=title,
        date=parse_date(meta.get("date", ""), rel_path),
        author=author,
        tags=tuple(tags),
        meta=meta,
    )


def first_heading(body: str) -> Optional[str]:
    in_fence = False
    for line in body.splitlines():
        if FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        stripped = line.strip()
        if not in_fence and stripped.startswith("# "):
            return stripped[2:].strip().rstrip("#").strip() or None
    return None


def normalize_list_spacing(text: str) -> tuple[str, bool]:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker[0] == fence_marker[0] and len(marker) >= len(fence_marker):
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out), in_fence
