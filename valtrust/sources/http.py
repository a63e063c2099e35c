from __future__ import annotations

from typing import Any, Dict, Optional

import requests


JSON_HEADERS = {"accept": "application/json"}


class SourceError(RuntimeError):
    """An external source could not be reached or returned unusable data."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _decode(r: requests.Response, url: str) -> Any:
    if r.status_code >= 400:
        raise SourceError(f"{url} -> HTTP {r.status_code}", status_code=r.status_code)
    try:
        return r.json()
    except ValueError as e:
        raise SourceError(f"{url} -> invalid JSON: {e}", status_code=r.status_code) from e


def get_json(url: str, *, timeout_s: float) -> Any:
    try:
        r = requests.get(url, headers=JSON_HEADERS, timeout=timeout_s)
    except requests.RequestException as e:
        raise SourceError(f"{url} -> {e}") from e
    return _decode(r, url)


def post_json(url: str, payload: Dict[str, Any], *, timeout_s: float) -> Any:
    headers = dict(JSON_HEADERS)
    headers["content-type"] = "application/json"
    try:
        r = requests.post(url, json=payload, headers=headers, timeout=timeout_s)
    except requests.RequestException as e:
        raise SourceError(f"{url} -> {e}") from e
    return _decode(r, url)
