"""
Shared HTTP session factory for remote playlist and guide downloads.
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .. import __version__
from ..infra.settings import settings


def create_session(retries: int | None = None) -> requests.Session:
    """Create a requests session with retry logic for provider endpoints."""
    session = requests.Session()

    retry_strategy = Retry(
        total=settings.http_retries if retries is None else retries,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    # Some panels reject the default python-requests agent
    session.headers.update({"User-Agent": f"StreamHaven/{__version__}", "Accept": "*/*"})
    return session
