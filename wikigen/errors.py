from __future__ import annotations

from dataclasses import dataclass


class WikigenError(Exception):
    """Base class for fatal build errors."""

    def __init__(self, message: str, path: object = "") -> None:
        self.path = str(path) if path else ""
        self.message = message
        super().__init__(f"{self.path}: {message}" if self.path else message)


class ConfigParseError(WikigenError):
    """The config document or its nav tree is malformed."""


class ContentNotFoundError(WikigenError):
    """A document path does not exist inside the docs directory."""


class FrontMatterError(WikigenError):
    """A metadata block is present but malformed."""


class BrokenLinkError(WikigenError):
    """A nav leaf has no corresponding document."""


class StrictModeError(WikigenError):
    """Markup warnings were produced while building in strict mode."""


class OutputDirError(WikigenError):
    """The output directory cannot be safely replaced."""


@dataclass(frozen=True)
class MarkupWarning:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"
