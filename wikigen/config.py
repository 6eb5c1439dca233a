from __future__ import annotations

import importlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigParseError
from .nav import NavNode, parse_nav
from .utils import parse_bool, parse_int

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

KNOWN_KEYS = {
    "site_name",
    "site_description",
    "site_author",
    "site_url",
    "copyright",
    "repo_name",
    "repo_url",
    "docs_dir",
    "site_dir",
    "nav",
    "markdown_extensions",
    "theme",
    "extra_css",
    "extra_js",
    "extra",
    "strict",
    "build_workers",
}


class ConfigLoader(yaml.SafeLoader):
    pass


def _construct_python_name(loader: ConfigLoader, suffix: str, node: yaml.Node) -> object:
    module_name, _, attr = suffix.rpartition(".")
    if not module_name or not attr:
        raise yaml.constructor.ConstructorError(
            None, None, f"invalid python name {suffix!r}", node.start_mark
        )
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise yaml.constructor.ConstructorError(
            None, None, f"cannot import {suffix!r}: {exc}", node.start_mark
        ) from exc


ConfigLoader.add_multi_constructor("tag:yaml.org,2002:python/name:", _construct_python_name)


def load_config(path: Path) -> dict:
    if not path.exists():
        raise ConfigParseError("config file not found", path)
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigParseError(f"invalid TOML: {exc}", path) from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.load(text, Loader=ConfigLoader)
        except yaml.YAMLError as exc:
            raise ConfigParseError(f"invalid YAML: {exc}", path) from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigParseError(f"invalid JSON: {exc}", path) from exc
    if not isinstance(data, dict):
        raise ConfigParseError("config must be a mapping", path)
    return data


@dataclass
class SiteConfig:
    site_name: str
    config_path: Path
    docs_dir: Path
    site_dir: Path
    site_description: str = ""
    site_author: str = ""
    site_url: str = ""
    copyright: str = ""
    repo_name: str = ""
    repo_url: str = ""
    nav: Optional[list[NavNode]] = None
    markdown_extensions: list[tuple[str, dict]] = field(default_factory=list)
    theme: dict = field(default_factory=lambda: {"name": "default"})
    extra_css: list[str] = field(default_factory=list)
    extra_js: list[str] = field(default_factory=list)
    extra: dict = field(default_factory=dict)
    strict: bool = False
    build_workers: int = 1
    unknown: dict = field(default_factory=dict)

    @property
    def project_dir(self) -> Path:
        return self.config_path.parent


def _get_str(data: dict, key: str, path: Path, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        raise ConfigParseError(f"{key} must be a string", path)
    return str(value).strip()


def _get_str_list(data: dict, key: str, path: Path) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigParseError(f"{key} must be a list of strings", path)
    return [item.strip() for item in value if item.strip()]


def parse_extensions(value: object, path: Path) -> list[tuple[str, dict]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigParseError("markdown_extensions must be a list", path)
    extensions = []
    for index, item in enumerate(value):
        if isinstance(item, str) and item.strip():
            extensions.append((item.strip(), {}))
            continue
        if isinstance(item, dict) and len(item) == 1:
            name, options = next(iter(item.items()))
            if options is None:
                options = {}
            if isinstance(name, str) and name.strip() and isinstance(options, dict):
                extensions.append((name.strip(), dict(options)))
                continue
        raise ConfigParseError(
            f"markdown_extensions[{index}] must be a name or a single-key mapping of options", path
        )
    return extensions


def parse_theme(value: object, path: Path) -> dict:
    if value is None:
        return {"name": "default"}
    if isinstance(value, str):
        return {"name": value.strip() or "default"}
    if isinstance(value, dict):
        theme = dict(value)
        name = theme.get("name") or "default"
        if not isinstance(name, str):
            raise ConfigParseError("theme.name must be a string", path)
        theme["name"] = name.strip()
        custom_dir = theme.get("custom_dir")
        if custom_dir is not None and not isinstance(custom_dir, str):
            raise ConfigParseError("theme.custom_dir must be a string", path)
        return theme
    raise ConfigParseError("theme must be a name or a mapping", path)


def parse_config(data: dict, config_path: Path) -> SiteConfig:
    site_name = _get_str(data, "site_name", config_path)
    if not site_name:
        raise ConfigParseError("site_name is required", config_path)
    project_dir = config_path.parent
    nav_value = data.get("nav")
    try:
        nav = parse_nav(nav_value) if nav_value is not None else None
    except ConfigParseError as exc:
        raise ConfigParseError(str(exc), config_path) from exc
    extra = data.get("extra")
    if extra is None:
        extra = {}
    if not isinstance(extra, dict):
        raise ConfigParseError("extra must be a mapping", config_path)
    return SiteConfig(
        site_name=site_name,
        config_path=config_path,
        docs_dir=project_dir / _get_str(data, "docs_dir", config_path, "docs"),
        site_dir=project_dir / _get_str(data, "site_dir", config_path, "site"),
        site_description=_get_str(data, "site_description", config_path),
        site_author=_get_str(data, "site_author", config_path),
        site_url=_get_str(data, "site_url", config_path),
        copyright=_get_str(data, "copyright", config_path),
        repo_name=_get_str(data, "repo_name", config_path),
        repo_url=_get_str(data, "repo_url", config_path),
        nav=nav,
        markdown_extensions=parse_extensions(data.get("markdown_extensions"), config_path),
        theme=parse_theme(data.get("theme"), config_path),
        extra_css=_get_str_list(data, "extra_css", config_path),
        extra_js=_get_str_list(data, "extra_js", config_path),
        extra=extra,
        strict=parse_bool(data.get("strict")),
        build_workers=max(1, parse_int(data.get("build_workers"), 1)),
        unknown={key: value for key, value in data.items() if key not in KNOWN_KEYS},
    )


def read_config(path: Path) -> SiteConfig:
    config_path = path.resolve()
    return parse_config(load_config(config_path), config_path)
