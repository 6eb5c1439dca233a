from __future__ import annotations

import posixpath
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from .utils import md_to_html_path, relative_url


class CrossReferenceProcessor(Treeprocessor):
    def __init__(self, md, page_path: str, known_docs: frozenset, warnings: list[str]):
        super().__init__(md)
        self.page_path = page_path
        self.known_docs = known_docs
        self.warnings = warnings

    def run(self, root):
        for el in root.iter("a"):
            href = el.get("href")
            if href:
                el.set("href", self.rewrite(href))
        return None

    def rewrite(self, href: str) -> str:
        parts = urlsplit(href)
        if parts.scheme or parts.netloc or not parts.path or href.startswith("/"):
            return href
        if not parts.path.lower().endswith(".md"):
            return href
        base = posixpath.dirname(self.page_path)
        target = posixpath.normpath(posixpath.join(base, parts.path))
        if target not in self.known_docs:
            self.warnings.append(f"link to unknown document {parts.path!r}")
            return href
        url = relative_url(md_to_html_path(self.page_path), md_to_html_path(target))
        if parts.query:
            url = f"{url}?{parts.query}"
        if parts.fragment:
            url = f"{url}#{parts.fragment}"
        return url


class CrossReferenceExtension(Extension):
    def __init__(self, page_path: str, known_docs: frozenset, warnings: list[str], **kwargs):
        super().__init__(**kwargs)
        self.page_path = page_path
        self.known_docs = known_docs
        self.warnings = warnings

    def extendMarkdown(self, md):
        md.treeprocessors.register(
            CrossReferenceProcessor(md, self.page_path, self.known_docs, self.warnings),
            "wikigen_xref",
            # after inline processing so links built by inline patterns exist
            15,
        )
