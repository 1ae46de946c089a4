"""Exception hierarchy for rendering, parsing and model collaborators."""

from __future__ import annotations

from typing import Optional


class DistillError(Exception):
    """Base class for every error raised by product_distill."""


class RenderError(DistillError):
    """A page could not be rendered."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url


class RenderTimeout(RenderError):
    """Navigation exceeded the per-render timeout."""


class NavigationError(RenderError):
    """The browser failed to navigate to or serialize the page."""


class ParseRecoverable(DistillError):
    """Markup was rejected because of an embedded stylesheet."""


class ParseFatal(DistillError):
    """Markup could not be parsed at all."""


class SearchUnavailable(DistillError):
    """The search provider could not return results."""


class ServiceError(DistillError):
    """A model-backed service failed to produce output."""


class SchemaValidationError(ServiceError):
    """Model output did not validate against the requested schema."""

    def __init__(self, message: str, raw_output: Optional[str] = None) -> None:
        super().__init__(message)
        self.raw_output = raw_output
