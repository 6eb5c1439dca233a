from __future__ import annotations

import argparse
import functools
import sys
import tempfile
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional

from .builder import BuildResult, build
from .config import SiteConfig, read_config
from .errors import WikigenError

DEFAULT_CONFIG = "mkdocs.yml"
DEFAULT_DEV_ADDR = "127.0.0.1:8000"


def parse_dev_addr(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    try:
        port_number = int(port)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port in {value!r}") from exc
    if not 0 <= port_number <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range in {value!r}")
    return host, port_number


def load_site_config(args: argparse.Namespace) -> SiteConfig:
    config = read_config(Path(args.config))
    if getattr(args, "docs_dir", None):
        config.docs_dir = Path(args.docs_dir).resolve()
    if getattr(args, "site_dir", None):
        config.site_dir = Path(args.site_dir).resolve()
    return config


def run_build(config: SiteConfig, args: argparse.Namespace, output_dir: Optional[Path] = None) -> BuildResult:
    workers = args.workers if args.workers is not None else config.build_workers
    strict = args.strict if args.strict is not None else config.strict
    return build(config, output_dir=output_dir, workers=workers, strict=strict)


def build_command(args: argparse.Namespace) -> None:
    config = load_site_config(args)
    start = time.perf_counter()
    result = run_build(config, args)
    elapsed = time.perf_counter() - start
    print(f"Built {len(result.pages)} pages and {len(result.sections)} section indexes in {elapsed:.2f}s.")
    print(f"Site generated in: {result.output_dir}")


def serve_command(args: argparse.Namespace) -> None:
    config = load_site_config(args)
    host, port = args.dev_addr
    with tempfile.TemporaryDirectory(prefix="wikigen-") as tmp:
        output_dir = Path(tmp) / "site"
        result = run_build(config, args, output_dir)
        print(f"Built {len(result.pages)} pages.")
        handler = functools.partial(SimpleHTTPRequestHandler, directory=str(output_dir))
        with ThreadingHTTPServer((host, port), handler) as server:
            print(f"Serving on http://{host}:{port}/ (Ctrl+C to stop)")
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                print("Server stopped.")


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wikigen", description="Markdown wiki static site generator.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        "-f",
        default=DEFAULT_CONFIG,
        help="Path to site config file (YAML/TOML/JSON).",
    )
    common.add_argument("--docs-dir", default=None, help="Directory containing Markdown documents.")
    common.add_argument(
        "--workers",
        default=None,
        type=int,
        help="Number of worker threads for loading/rendering (default from config, 1).",
    )
    common.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Abort the build when markup warnings are produced.",
    )

    build_parser = subparsers.add_parser("build", parents=[common], help="Build the site.")
    build_parser.add_argument("--site-dir", "-d", default=None, help="Output directory for the site.")
    build_parser.set_defaults(func=build_command)

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Build and preview the site locally.")
    serve_parser.add_argument(
        "--dev-addr",
        "-a",
        default=parse_dev_addr(DEFAULT_DEV_ADDR),
        type=parse_dev_addr,
        help=f"Address to serve on (default {DEFAULT_DEV_ADDR}).",
    )
    serve_parser.set_defaults(func=serve_command)
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = make_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except WikigenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
