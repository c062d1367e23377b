"""Error types shared by the gateway and its callers."""

from __future__ import annotations


class TransportError(Exception):
    """A feed or detail fetch failed.

    Covers network failures, non-200 responses and undecodable bodies alike;
    callers treat every instance as retryable.
    """

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason
        self.status_code = status_code
