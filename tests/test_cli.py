"""Tests for the command-line interface."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable

import pytest

from wikigen.cli import main, make_parser, parse_dev_addr

MakeProject = Callable[..., Path]


class TestBuildCommand:
    """Tests for `wikigen build`."""

    def test_build(self, make_project: MakeProject, capsys: pytest.CaptureFixture[str]) -> None:
        """The build command writes the site and reports what it did."""
        config_path = make_project({"nav": [{"Home": "index.md"}, {"About": "about.md"}]}, {"index.md": "x", "about.md": "y"})

        main(["build", "--config", str(config_path)])

        out = capsys.readouterr().out
        assert "Built 2 pages and 0 section indexes" in out
        assert (config_path.parent / "site" / "about.html").is_file()

    def test_site_dir_override(self, make_project: MakeProject, tmp_path: Path) -> None:
        """--site-dir wins over the config file."""
        config_path = make_project({"nav": [{"Home": "index.md"}]}, {"index.md": "x"})
        target = tmp_path / "public"

        main(["build", "-f", str(config_path), "--site-dir", str(target)])

        assert (target / "index.html").is_file()
        assert not (config_path.parent / "site").exists()

    def test_error_exit(self, make_project: MakeProject, capsys: pytest.CaptureFixture[str]) -> None:
        """Fatal errors print the offending path and exit with status 1."""
        config_path = make_project({"nav": [{"Missing": "missing.md"}]}, {})

        with pytest.raises(SystemExit) as excinfo:
            main(["build", "--config", str(config_path)])

        assert excinfo.value.code == 1
        assert "Error: missing.md:" in capsys.readouterr().err

    def test_strict_from_config(self, make_project: MakeProject) -> None:
        """strict in the config applies unless overridden on the command line."""
        config_path = make_project({"nav": [{"Home": "index.md"}], "strict": True}, {"index.md": "[x](nope.md)"})

        with pytest.raises(SystemExit):
            main(["build", "--config", str(config_path)])
        main(["build", "--config", str(config_path), "--no-strict"])

        assert (config_path.parent / "site" / "index.html").is_file()

    def test_missing_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A missing config file is a clean error."""
        with pytest.raises(SystemExit) as excinfo:
            main(["build", "--config", str(tmp_path / "mkdocs.yml")])
        assert excinfo.value.code == 1
        assert "config file not found" in capsys.readouterr().err


class TestParser:
    """Tests for argument parsing."""

    def test_command_required(self) -> None:
        """A sub-command must be given."""
        with pytest.raises(SystemExit):
            make_parser().parse_args([])

    def test_serve_defaults(self) -> None:
        """serve listens on localhost:8000 by default."""
        args = make_parser().parse_args(["serve"])
        assert args.dev_addr == ("127.0.0.1", 8000)
        assert args.config == "mkdocs.yml"

    def test_parse_dev_addr(self) -> None:
        """HOST:PORT is split into a tuple."""
        assert parse_dev_addr("0.0.0.0:9000") == ("0.0.0.0", 9000)

    @pytest.mark.parametrize("value", ["8000", ":8000", "host:http", "host:70000"])
    def test_parse_dev_addr_invalid(self, value: str) -> None:
        """Malformed addresses are rejected."""
        with pytest.raises(argparse.ArgumentTypeError):
            parse_dev_addr(value)
