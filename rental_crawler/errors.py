"""
Error taxonomy for crawl runs.

Fatal errors abort the run, section errors skip one section, job errors are
retried and then counted.
"""

from __future__ import annotations

from typing import Optional


class CrawlError(Exception):
    """Base class for every failure raised by the crawl core."""

    def __init__(self, message: str, *, url: Optional[str] = None, timed_out: bool = False) -> None:
        super().__init__(message)
        self.url = url
        self.timed_out = timed_out


class FatalCrawlError(CrawlError):
    """Setup failure that aborts the whole run."""

    stage = "setup"


class LaunchFailure(FatalCrawlError):
    """Raised when the browser process cannot be started."""

    stage = "browser launch"


class NoSectionsFound(FatalCrawlError):
    """Raised when the homepage yields no section links."""

    stage = "section discovery"


class SectionError(CrawlError):
    """Section enumeration failure; the section is skipped."""


class SectionLoadFailure(SectionError):
    """Raised when a section page does not load or show listing cards."""


class PaginationFailure(SectionError):
    """Raised when the next-page control was clicked but page two never loaded."""


class JobError(CrawlError):
    """Retryable failure while extracting one property."""


class NavigationFailure(JobError):
    """Raised when a property page cannot be opened or never shows its heading."""


class ExtractionFailure(JobError):
    """Raised when the page snapshot cannot be read."""


class AllAttemptsFailed(CrawlError):
    """Raised by the retry controller once every attempt has failed."""

    def __init__(self, attempts: int, last_error: BaseException, *, label: str = "operation") -> None:
        super().__init__(
            f"all {attempts} attempts failed for {label}: {last_error}",
            url=getattr(last_error, "url", None),
            timed_out=getattr(last_error, "timed_out", False),
        )
        self.attempts = attempts
        self.last_error = last_error
