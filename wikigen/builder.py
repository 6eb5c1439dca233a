from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, TypeVar

from .config import SiteConfig
from .content import Document, document_exists, load_document
from .errors import MarkupWarning, StrictModeError
from .nav import leaf_paths, nav_from_docs_dir
from .render import RenderedFragment, Renderer
from .site import build_site_tree, write_site
from .theme import Theme

T = TypeVar("T")
R = TypeVar("R")
MAX_WORKERS = 32


@dataclass
class BuildResult:
    output_dir: Path
    pages: list[str] = field(default_factory=list)
    sections: list[str] = field(default_factory=list)
    warnings: list[MarkupWarning] = field(default_factory=list)


def map_in_order(func: Callable[[T], R], items: list[T], workers: int = 1) -> list[R]:
    workers = max(1, min(int(workers or 1), MAX_WORKERS))
    if workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        return list(executor.map(func, items))


def load_documents(docs_dir: Path, paths: list[str], workers: int = 1) -> dict[str, Document]:
    loaded = map_in_order(lambda path: load_document(docs_dir, path), paths, workers)
    return {document.path: document for document in loaded}


def render_documents(
    renderer: Renderer, documents: dict[str, Document], workers: int = 1
) -> dict[str, RenderedFragment]:
    fragments = map_in_order(renderer.render, list(documents.values()), workers)
    return {fragment.path: fragment for fragment in fragments}


def report_warnings(warnings: list[MarkupWarning]) -> None:
    for warning in warnings:
        print(f"Warning: {warning}", file=sys.stderr)


def build(
    config: SiteConfig,
    output_dir: Optional[Path] = None,
    workers: int = 1,
    strict: bool = False,
) -> BuildResult:
    output_dir = Path(output_dir) if output_dir is not None else config.site_dir
    nav = config.nav if config.nav is not None else nav_from_docs_dir(config.docs_dir)
    paths = leaf_paths(nav)
    # Missing leaves are reported by the assembler as broken links.
    existing = [path for path in paths if document_exists(config.docs_dir, path)]
    documents = load_documents(config.docs_dir, existing, workers)

    renderer = Renderer(config.markdown_extensions, docs=frozenset(documents))
    fragments = render_documents(renderer, documents, workers)
    tree = build_site_tree(nav, fragments, documents)

    warnings = list(renderer.config_warnings)
    for path in existing:
        warnings.extend(fragments[path].warnings)
    report_warnings(warnings)
    if strict and warnings:
        raise StrictModeError(f"{len(warnings)} markup warning(s) in strict mode", config.config_path)

    theme = Theme.from_config(config.theme, config.project_dir)
    written = write_site(tree, config, output_dir, theme)
    return BuildResult(
        output_dir=output_dir,
        pages=[page.output for page in written.pages],
        sections=[section.output for section in written.sections],
        warnings=warnings,
    )
