from __future__ import annotations

import html
import posixpath
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .config import SiteConfig
from .content import Document, slugify
from .errors import BrokenLinkError
from .nav import NavNode, iter_leaves
from .render import RenderedFragment, pygments_css
from .theme import Theme, render_template, write_text
from .utils import check_output_dir, join_url, md_to_html_path, replace_dir, root_for

PYGMENTS_CSS = "assets/css/pygments.css"


@dataclass
class SitePage:
    title: str
    source: str
    output: str
    fragment: RenderedFragment
    document: Optional[Document] = None

    @property
    def page_title(self) -> str:
        return self.fragment.title or self.title


@dataclass
class SiteSection:
    title: str
    output: str
    children: list[Union[SitePage, SiteSection]] = field(default_factory=list)


SiteItem = Union[SitePage, SiteSection]


def build_site_tree(
    nav: list[NavNode],
    fragments: dict[str, RenderedFragment],
    documents: Optional[dict[str, Document]] = None,
) -> list[SiteItem]:
    documents = documents or {}
    for leaf in iter_leaves(nav):
        if leaf.path not in fragments:
            raise BrokenLinkError(f"nav entry {leaf.title!r} has no document", leaf.path)

    used = {md_to_html_path(leaf.path) for leaf in iter_leaves(nav)}

    def section_dir(prefix: str, title: str) -> str:
        base = posixpath.join(prefix, slugify(title)) if prefix else slugify(title)
        candidate = base
        counter = 2
        while f"{candidate}/index.html" in used:
            candidate = f"{base}-{counter}"
            counter += 1
        used.add(f"{candidate}/index.html")
        return candidate

    def convert(node: NavNode, prefix: str) -> SiteItem:
        if node.is_leaf:
            return SitePage(
                title=node.title,
                source=node.path,
                output=md_to_html_path(node.path),
                fragment=fragments[node.path],
                document=documents.get(node.path),
            )
        directory = section_dir(prefix, node.title)
        return SiteSection(
            title=node.title,
            output=f"{directory}/index.html",
            children=[convert(child, directory) for child in node.children],
        )

    return [convert(node, "") for node in nav]


def iter_pages(items: list[SiteItem]):
    for item in items:
        if isinstance(item, SitePage):
            yield item
        else:
            yield from iter_pages(item.children)


def iter_sections(items: list[SiteItem]):
    for item in items:
        if isinstance(item, SiteSection):
            yield item
            yield from iter_sections(item.children)


def unique_pages(items: list[SiteItem]) -> list[SitePage]:
    pages: dict[str, SitePage] = {}
    for page in iter_pages(items):
        pages.setdefault(page.output, page)
    return list(pages.values())


def ancestor_map(items: list[SiteItem]) -> dict[str, set[str]]:
    trails: dict[str, set[str]] = {}

    def walk(nodes: list[SiteItem], trail: tuple[str, ...]) -> None:
        for node in nodes:
            trails.setdefault(node.output, set()).update(trail)
            if isinstance(node, SiteSection):
                walk(node.children, trail + (node.output,))

    walk(items, ())
    return trails


def build_nav_html(items: list[SiteItem], root: str, current: str, trail: set[str]) -> str:
    rows = []
    for item in items:
        title = html.escape(item.title)
        url = f"{root}/{item.output}"
        if isinstance(item, SiteSection):
            classes = ["nav-item", "nav-section"]
            if item.output in trail or item.output == current:
                classes.append("is-open")
            if item.output == current:
                classes.append("is-active")
            children = build_nav_html(item.children, root, current, trail)
            rows.append(
                f'<li class="{" ".join(classes)}">'
                '<button class="nav-toggle" type="button" aria-label="Toggle section">+</button>'
                f'<a href="{url}">{title}</a>{children}</li>'
            )
        else:
            active = " is-active" if item.output == current else ""
            rows.append(f'<li class="nav-item{active}"><a href="{url}">{title}</a></li>')
    return f'<ul>{"".join(rows)}</ul>' if rows else ""


def build_toc_html(fragment: RenderedFragment) -> str:
    if not fragment.toc:
        return ""
    items = "".join(
        f'<li class="toc-level-{entry.level}"><a href="#{html.escape(entry.id)}">{html.escape(entry.title)}</a></li>'
        for entry in fragment.toc
    )
    return f'<div class="panel"><h3>Contents</h3><ul class="toc">{items}</ul></div>'


def build_page_meta(document: Optional[Document]) -> str:
    if document is None:
        return ""
    parts = []
    if document.date:
        parts.append(f'<span class="page-date">{document.date.isoformat()}</span>')
    if document.author:
        parts.append(f'<span class="page-author">{html.escape(document.author)}</span>')
    if document.tags:
        chips = " ".join(f'<span class="chip">{html.escape(tag)}</span>' for tag in document.tags)
        parts.append(f'<span class="page-tags">{chips}</span>')
    if not parts:
        return ""
    return f'<div class="page-meta">{"".join(parts)}</div>'


def build_pager(pages: list[SitePage], index: int, root: str) -> str:
    links = []
    if index > 0:
        prev_page = pages[index - 1]
        links.append(
            f'<a class="page-prev" href="{root}/{prev_page.output}">&larr; {html.escape(prev_page.title)}</a>'
        )
    else:
        links.append("<span></span>")
    if index < len(pages) - 1:
        next_page = pages[index + 1]
        links.append(
            f'<a class="page-next" href="{root}/{next_page.output}">{html.escape(next_page.title)} &rarr;</a>'
        )
    return f'<nav class="page-footer">{"".join(links)}</nav>'


def build_section_list(section: SiteSection, root: str) -> str:
    rows = []
    for child in section.children:
        url = f"{root}/{child.output}"
        css = "is-section" if isinstance(child, SiteSection) else "is-page"
        rows.append(f'<li class="{css}"><a href="{url}">{html.escape(child.title)}</a></li>')
    if not rows:
        return '<p class="section-empty">This section is empty.</p>'
    return f'<ul class="section-list">{"".join(rows)}</ul>'


def build_social_html(extra: dict) -> str:
    links = []
    social = extra.get("social")
    for entry in social if isinstance(social, list) else []:
        if not isinstance(entry, dict) or not isinstance(entry.get("link"), str):
            continue
        label = str(entry.get("type") or entry.get("name") or entry["link"])
        links.append(f'<a class="social-link" href="{html.escape(entry["link"])}">{html.escape(label)}</a>')
    if not links:
        return ""
    return f'<div class="social-links">{" ".join(links)}</div>'


def asset_url(root: str, path: str) -> str:
    if "://" in path or path.startswith("//"):
        return path
    return f"{root}/{path.lstrip('/')}"


class SiteWriter:
    def __init__(self, tree: list[SiteItem], config: SiteConfig, theme: Theme) -> None:
        self.tree = tree
        self.config = config
        self.theme = theme
        self.template = theme.template()
        self.trails = ancestor_map(tree)

    def render(self, output: str, title: str, content: str, sidebar: str = "") -> str:
        config = self.config
        root = root_for(output)
        extra_head = [f'<link rel="stylesheet" href="{html.escape(asset_url(root, css))}">' for css in config.extra_css]
        extra_head += [f'<script src="{html.escape(asset_url(root, js))}" defer></script>' for js in config.extra_js]
        logo = self.theme.options.get("logo")
        logo_html = (
            f'<img class="site-logo" src="{html.escape(asset_url(root, str(logo)))}" alt="logo">' if logo else ""
        )
        repo_html = ""
        if config.repo_url:
            label = config.repo_name or config.repo_url
            repo_html = f'<a class="repo-link" href="{html.escape(config.repo_url)}">{html.escape(label)}</a>'
        footer = config.copyright or ""
        return render_template(
            self.template,
            title=html.escape(f"{title} - {config.site_name}" if title != config.site_name else title),
            root=root,
            site_name=html.escape(config.site_name),
            site_description=html.escape(config.site_description),
            site_author=html.escape(config.site_author),
            extra_head="\n".join(extra_head),
            logo=logo_html,
            repo=repo_html,
            footer=footer,
            social=build_social_html(config.extra),
            nav=build_nav_html(self.tree, root, output, self.trails.get(output, set())),
            sidebar=sidebar,
            content=content,
        )

    def write_pages(self, target: Path) -> list[SitePage]:
        pages = unique_pages(self.tree)
        for index, page in enumerate(pages):
            root = root_for(page.output)
            content = (
                '<article class="page">'
                f"{build_page_meta(page.document)}"
                f'<div class="page-body">{page.fragment.html}</div>'
                f"{build_pager(pages, index, root)}"
                "</article>"
            )
            html_doc = self.render(page.output, page.page_title, content, build_toc_html(page.fragment))
            write_text(target / page.output, html_doc)
        return pages

    def write_sections(self, target: Path) -> list[SiteSection]:
        sections = list(iter_sections(self.tree))
        for section in sections:
            root = root_for(section.output)
            content = (
                '<article class="page section-index">'
                f'<div class="section-head"><h1>{html.escape(section.title)}</h1></div>'
                f"{build_section_list(section, root)}"
                "</article>"
            )
            write_text(target / section.output, self.render(section.output, section.title, content))
        return sections

    def write_sitemap(self, target: Path) -> None:
        site_url = self.config.site_url
        if not site_url:
            return
        entries = []
        for page in unique_pages(self.tree):
            lastmod = page.document.date if page.document and page.document.date else None
            entries.append((join_url(site_url, page.output), lastmod))
        for section in iter_sections(self.tree):
            entries.append((join_url(site_url, section.output), None))
        items = []
        for url, lastmod in entries:
            lines = ["<url>", f"<loc>{html.escape(url)}</loc>"]
            if lastmod:
                lines.append(f"<lastmod>{lastmod.isoformat()}</lastmod>")
            lines.append("</url>")
            items.append("\n".join(lines))
        sitemap = "\n".join(
            [
                '<?xml version="1.0" encoding="UTF-8"?>',
                '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
                "\n".join(items),
                "</urlset>",
            ]
        )
        write_text(target / "sitemap.xml", sitemap)


def copy_docs_assets(docs_dir: Path, target: Path) -> None:
    if not docs_dir.is_dir():
        return
    for path in sorted(docs_dir.rglob("*"), key=lambda p: p.as_posix()):
        rel = path.relative_to(docs_dir)
        if not path.is_file() or path.suffix.lower() == ".md":
            continue
        if any(part.startswith(".") for part in rel.parts):
            continue
        dest = target / rel
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, dest)


@dataclass
class WriteResult:
    pages: list[SitePage]
    sections: list[SiteSection]


def write_site(tree: list[SiteItem], config: SiteConfig, output_dir: Path, theme: Theme) -> WriteResult:
    check_output_dir(output_dir, [config.docs_dir, config.project_dir], sources=[config.docs_dir])
    writer = SiteWriter(tree, config, theme)
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}-", dir=output_dir.parent))
    try:
        staging.chmod(0o755)
        theme.copy_static(staging)
        copy_docs_assets(config.docs_dir, staging)
        write_text(staging / PYGMENTS_CSS, pygments_css(str(theme.options.get("pygments_style", "default"))))
        pages = writer.write_pages(staging)
        sections = writer.write_sections(staging)
        writer.write_sitemap(staging)
        replace_dir(staging, output_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    return WriteResult(pages=pages, sections=sections)
