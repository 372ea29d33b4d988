"""Exceptions raised by the slide deck pipeline."""

from __future__ import annotations


class SlideDeckError(Exception):
    """Base class for all slidedeck errors."""


class InsufficientSlidesError(SlideDeckError, ValueError):
    """Raised when an outline yields fewer slides than were requested.

    The outline has to be regenerated; the parser never retries.
    """

    def __init__(self, produced: int, requested: int):
        self.produced = produced
        self.requested = requested
        super().__init__(
            f"Outline contains only {produced} slides instead of the requested "
            f"{requested} slides. Please generate it again."
        )


class UnsafeUrlRejected(SlideDeckError):
    """A URL failed the protocol allow-list. Handled locally by the renderer."""

    def __init__(self, url: object):
        self.url = url
        super().__init__(f"Rejected unsafe URL: {url!r}")


class GenerationTaskFailed(SlideDeckError):
    """A queued generation call failed. Resolved as ``None`` inside the queue."""

    def __init__(self, payload: str, cause: BaseException):
        self.payload = payload
        self.cause = cause
        super().__init__(f"Generation failed for {payload[:40]!r}: {cause}")


class ViewNotReadyError(SlideDeckError):
    """The navigator has no initialized live view."""


class ExportUnavailableError(SlideDeckError):
    """Export cannot start: no live view, or another export is running."""


class ExportFailedError(SlideDeckError):
    """Capturing a slide failed and the whole export was aborted."""

    def __init__(self, message: str, slide_index: int | None = None):
        self.slide_index = slide_index
        super().__init__(message)
