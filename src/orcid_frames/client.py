"""Make requests to the ORCID public API.

Every function here takes its token and base URL as explicit arguments.
Reading them from the environment is left to :mod:`orcid_frames.api`.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from orcid_frames.errors import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    MalformedResponseError,
    NotFoundError,
    RateLimitError,
)
from orcid_frames.version import VERSION

__all__ = [
    "DEFAULT_BASE_URL",
    "build_session",
    "get_headers",
    "orcid_request",
    "ping",
    "search_request",
]

logger = logging.getLogger(__name__)

#: The production endpoint of the ORCID public API
DEFAULT_BASE_URL = "https://pub.orcid.org/v3.0"

USER_AGENT = f"orcid_frames/{VERSION} (Python; ORCID public API client)"

#: The total number of attempts for a request, including the first
MAX_ATTEMPTS = 3
#: Wall-clock seconds that all attempts of a single request get together
TIME_BUDGET = 10.0
#: With urllib3's exponential backoff, the sleeps between 3 attempts are 0 and 2x this
BACKOFF_FACTOR = 0.5
#: Seconds per attempt, sized so all attempts plus their backoff fit in the budget
TIMEOUT = (TIME_BUDGET - 2 * BACKOFF_FACTOR) / MAX_ATTEMPTS


def get_retry() -> Retry:
    """Get a retry policy that only retries connection-level failures.

    HTTP error statuses are never retried, since they are classified by
    :func:`_raise_for_status` instead.
    """
    return Retry(
        total=MAX_ATTEMPTS - 1,
        connect=MAX_ATTEMPTS - 1,
        read=MAX_ATTEMPTS - 1,
        status=0,
        redirect=None,
        status_forcelist=(),
        allowed_methods=frozenset({"GET"}),
        backoff_factor=BACKOFF_FACTOR,
        raise_on_status=False,
        respect_retry_after_header=False,
    )


def build_session() -> requests.Session:
    """Build a session that retries connection failures."""
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=get_retry())
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def get_headers(token: str | None = None) -> dict[str, str]:
    """Get the headers for a request, with a bearer token if one is given."""
    headers = {
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def orcid_request(
    endpoint: str,
    orcid: str,
    *,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> Any:
    """Get a section of an ORCID record, decoded from JSON.

    :param endpoint: The API endpoint, e.g., ``employments`` or ``works``
    :param orcid: A canonical ORCID identifier
    :param token: An optional bearer token. The public API doesn't need one.
    :param base_url: The base URL of the API, defaults to :data:`DEFAULT_BASE_URL`
    :param session: A session to reuse. If none is given, a new one is built
        and closed for this request.
    :returns: The decoded JSON
    :raises APIConnectionError: if the host can't be reached
    :raises NotFoundError: on a 404
    :raises AuthenticationError: on a 401
    :raises RateLimitError: on a 429
    :raises APIError: on any other status of 400 or above
    :raises MalformedResponseError: if the body isn't valid JSON
    """
    url = f"{_norm_base_url(base_url)}/{orcid}/{endpoint}"
    target = f"{orcid}/{endpoint}"
    response = _get(url, target=target, headers=get_headers(token), session=session)
    _raise_for_status(response, target)
    return _decode(response, target)


def search_request(
    query: str,
    *,
    rows: int = 10,
    start: int = 0,
    token: str | None = None,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> Any:
    """Run a query against the ORCID expanded search endpoint, decoded from JSON.

    The same errors as :func:`orcid_request` are raised.
    """
    url = f"{_norm_base_url(base_url)}/expanded-search/"
    target = f"search for '{query}'"
    response = _get(
        url,
        target=target,
        headers=get_headers(token),
        params={"q": query, "rows": rows, "start": start},
        session=session,
    )
    _raise_for_status(response, target)
    return _decode(response, target)


def ping(*, base_url: str | None = None, session: requests.Session | None = None) -> str:
    """Check the status of the ORCID API.

    :returns: ``OK`` if the API reports itself as healthy, otherwise the raw
        status text it returned
    """
    url = f"{_norm_base_url(base_url)}/status"
    response = _get(url, target="status", headers=get_headers(), session=session)
    _raise_for_status(response, "status")
    text = response.text.strip()
    if text.strip('"').upper() == "OK":
        return "OK"
    try:
        data = response.json()
    except ValueError:
        return text
    if isinstance(data, dict) and data and all(data.values()):
        return "OK"
    return text


def _norm_base_url(base_url: str | None) -> str:
    return (base_url or DEFAULT_BASE_URL).rstrip("/")


def _get(
    url: str,
    *,
    target: str,
    headers: dict[str, str],
    params: dict[str, Any] | None = None,
    session: requests.Session | None = None,
) -> requests.Response:
    if session is None:
        with build_session() as new_session:
            return _get(url, target=target, headers=headers, params=params, session=new_session)

    logger.debug("requesting %s", url)
    # TIMEOUT bounds each socket operation and TIME_BUDGET bounds the whole
    # request with its retries. A worker still running at the deadline is abandoned.
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="orcid_frames")
    future = executor.submit(session.get, url, headers=headers, params=params, timeout=TIMEOUT)
    try:
        return future.result(timeout=TIME_BUDGET)
    except FutureTimeoutError as e:
        raise APIConnectionError(
            f"no complete response from the ORCID API for {target} "
            f"within {TIME_BUDGET:g} seconds"
        ) from e
    except requests.RequestException as e:
        raise APIConnectionError(f"failed to connect to the ORCID API for {target}: {e}") from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _get_description(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("user-message", "developer-message", "error_description", "error"):
            if isinstance(value := data.get(key), str) and value:
                return value
    return response.reason or ""


def _raise_for_status(response: requests.Response, target: str) -> None:
    status = response.status_code
    if status < 400:
        return
    description = _get_description(response)
    if status == 404:
        raise NotFoundError(
            f"ORCID record or endpoint not found: {target}", status=status, description=description
        )
    if status == 401:
        raise AuthenticationError(
            f"authentication failed for {target}. Check the ORCID token: {description}",
            status=status,
            description=description,
        )
    if status == 429:
        raise RateLimitError(
            f"rate limit exceeded for {target}. Wait before making more requests",
            status=status,
            description=description,
        )
    raise APIError(
        f"ORCID API request for {target} failed with status {status}: {description}",
        status=status,
        description=description,
    )


def _decode(response: requests.Response, target: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(
            f"failed to parse the ORCID API response for {target}: {e}"
        ) from e
