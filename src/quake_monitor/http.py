"""Shared HTTP session with retry/backoff."""

from __future__ import annotations

from typing import Any

from requests import Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from quake_monitor import __version__
from quake_monitor.errors import TransportError

USER_AGENT = f"quake-monitor/{__version__}"


def create_session(
    retries: int = 2,
    backoff_factor: float = 0.5,
    status_forcelist: tuple[int, ...] = (429, 502, 503, 504),
) -> Session:
    """Create a requests Session that retries idempotent GETs.

    Once retries are exhausted the final response is returned as-is, so
    callers still see the non-200 status and classify it themselves.
    """
    retry = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = Session()
    session.headers["User-Agent"] = USER_AGENT
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def get_json(session: Session, url: str, timeout: float) -> Any:
    """GET ``url`` and decode the JSON body.

    Raises TransportError for connection problems, any non-200 status and
    bodies that are not valid JSON.
    """
    try:
        resp = session.get(url, timeout=timeout)
    except RequestException as exc:
        raise TransportError(url, f"request failed: {exc.__class__.__name__}") from exc

    if resp.status_code != 200:
        raise TransportError(url, f"HTTP {resp.status_code}", status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as exc:
        raise TransportError(url, "response body is not valid JSON") from exc
