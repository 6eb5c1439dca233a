from __future__ import annotations

import copy
import html
from dataclasses import dataclass
from typing import Optional

import markdown
from pygments.formatters import HtmlFormatter

from .content import Document, first_heading, normalize_list_spacing
from .errors import ConfigParseError, MarkupWarning
from .xref import CrossReferenceExtension

BUILTIN_EXTENSIONS = {
    "admonition",
    "attr_list",
    "codehilite",
    "def_list",
    "fenced_code",
    "footnotes",
    "tables",
    "toc",
}
PYMDOWNX_EXTENSIONS = {
    "arithmatex",
    "betterem",
    "caret",
    "critic",
    "details",
    "emoji",
    "highlight",
    "inlinehilite",
    "keys",
    "magiclink",
    "mark",
    "smartsymbols",
    "superfences",
    "tabbed",
    "tasklist",
    "tilde",
}
# Front matter is split off by the content loader before conversion.
LOADER_EXTENSIONS = {"meta"}
HIGHLIGHT_SELECTORS = [".highlight", ".codehilite"]


@dataclass(frozen=True)
class TocEntry:
    level: int
    id: str
    title: str


@dataclass(frozen=True)
class RenderedFragment:
    path: str
    html: str
    toc: tuple[TocEntry, ...] = ()
    title: Optional[str] = None
    warnings: tuple[MarkupWarning, ...] = ()


def canonical_extension(name: str) -> Optional[str]:
    short = name.strip()
    if short.startswith("markdown.extensions."):
        short = short[len("markdown.extensions.") :]
    if short in BUILTIN_EXTENSIONS or short in LOADER_EXTENSIONS:
        return short
    if short.startswith("pymdownx.") and short[len("pymdownx.") :] in PYMDOWNX_EXTENSIONS:
        return short
    return None


def flatten_toc(tokens: list[dict]) -> list[TocEntry]:
    entries = []
    for token in tokens:
        entries.append(TocEntry(level=token["level"], id=token["id"], title=html.unescape(token["name"])))
        entries.extend(flatten_toc(token.get("children", [])))
    return entries


def pygments_css(style: str = "default") -> str:
    return HtmlFormatter(style=style).get_style_defs(HIGHLIGHT_SELECTORS)


class Renderer:
    def __init__(self, extensions: list[tuple[str, dict]], docs: frozenset = frozenset()) -> None:
        self.docs = frozenset(docs)
        self.config_warnings: list[MarkupWarning] = []
        self.extensions: list[str] = []
        self.extension_configs: dict[str, dict] = {}
        for name, options in extensions:
            canonical = canonical_extension(name)
            if canonical is None:
                self.config_warnings.append(
                    MarkupWarning("markdown_extensions", f"unsupported extension {name!r} ignored")
                )
                continue
            if canonical in LOADER_EXTENSIONS or canonical in self.extension_configs:
                continue
            self._check_extension(canonical, options)
            self.extensions.append(canonical)
            self.extension_configs[canonical] = dict(options)
        if "toc" not in self.extension_configs:
            self.extensions.append("toc")
            self.extension_configs["toc"] = {}

    @staticmethod
    def _check_extension(name: str, options: dict) -> None:
        try:
            markdown.Markdown(extensions=[name], extension_configs={name: copy.copy(options)})
        except (ImportError, KeyError, TypeError, ValueError) as exc:
            raise ConfigParseError(f"invalid markdown extension {name!r}: {exc}", "markdown_extensions") from exc

    def _markdown(self, page_path: str, messages: list[str]) -> markdown.Markdown:
        configs = {name: copy.copy(options) for name, options in self.extension_configs.items()}
        return markdown.Markdown(
            extensions=[*self.extensions, CrossReferenceExtension(page_path, self.docs, messages)],
            extension_configs=configs,
        )

    def render(self, document: Document) -> RenderedFragment:
        messages: list[str] = []
        body, open_fence = normalize_list_spacing(document.body)
        if open_fence:
            messages.append("fenced code block is never closed")
        md = self._markdown(document.path, messages)
        html_content = md.convert(body)
        toc = tuple(flatten_toc(getattr(md, "toc_tokens", [])))
        title = document.title or first_heading(document.body)
        return RenderedFragment(
            path=document.path,
            html=html_content,
            toc=toc,
            title=title,
            warnings=tuple(MarkupWarning(document.path, message) for message in messages),
        )
