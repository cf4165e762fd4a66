"""HTTP helpers shared by the Ollama clients."""

from typing import Any

import requests

from docindex.errors import ApiError, ErrorKind

Timeout = float | tuple[float, float]


def post_json(
    session: requests.Session,
    url: str,
    payload: dict[str, Any],
    timeout: Timeout,
) -> requests.Response:
    """POST a JSON body, classifying transport and status failures.

    Raises:
        ApiError: NETWORK if the request did not complete, HTTP for a
            non-2xx status.
    """
    try:
        response = session.post(url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        raise ApiError(ErrorKind.NETWORK, f"POST {url}: {e}") from e

    if not response.ok:
        body = response.text[:200] if response.text else ""
        raise ApiError(
            ErrorKind.HTTP,
            f"POST {url} returned {response.status_code}: {body}",
            status_code=response.status_code,
        )
    return response
