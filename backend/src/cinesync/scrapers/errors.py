"""Exceptions raised while talking to the external sources."""


class FetchError(Exception):
    """A request failed: non-success status, timeout or connection error."""

    def __init__(self, url: str, status_code: int | None = None, reason: str | None = None) -> None:
        self.url = url
        self.status_code = status_code
        detail = f"HTTP {status_code}" if status_code is not None else (reason or "request failed")
        super().__init__(f"{detail} for {url}")


class BlockedError(FetchError):
    """The listing source refused the request (HTTP 403), usually rate limiting."""

    def __init__(self, url: str) -> None:
        super().__init__(url, status_code=403)


class ParseError(Exception):
    """Expected markup or fields were missing from a fetched page or payload."""
