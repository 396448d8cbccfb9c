"""Authentication and transport helpers for TeamCity.

This module centralizes creation of the ``requests`` session used to talk to
TeamCity: bearer-token authentication, the transport-level retry policy and a
small normalization of the server address to avoid malformed API URLs.
"""

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase
from urllib3.util.retry import Retry

DEFAULT_MAX_RETRIES = 10
DEFAULT_BACKOFF_FACTOR = 0.5
RETRY_STATUSES = (429, 500, 502, 503, 504)


class TokenAuth(AuthBase):
    """Attach a TeamCity access token as a bearer ``Authorization`` header."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request):
        request.headers["Authorization"] = f"Bearer {self.token}"
        return request


def sanitize_addr(addr: str | None) -> str | None:
    """
    Normalize a TeamCity server address.

    - Removes query strings (e.g. '?mode=builds')
    - Removes trailing slashes

    This keeps ``{addr}/app/rest/...`` URLs well formed.
    """
    if not addr:
        return addr
    addr = addr.split("?", 1)[0]
    return addr.rstrip("/")


def get_session(
    token: str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> requests.Session:
    """
    Create a ``requests`` session configured for the TeamCity REST API.

    Connection errors, read errors and transient statuses (429 and 5xx) are
    retried with exponential backoff for GET requests. Once retries are
    exhausted the final response (or error) is handed back to the caller.
    """
    retries = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    session = requests.Session()
    session.auth = TokenAuth(token)
    session.headers["Accept"] = "application/json"
    session.mount("https://", HTTPAdapter(max_retries=retries))
    session.mount("http://", HTTPAdapter(max_retries=retries))
    return session
