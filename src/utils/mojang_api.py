"""Player profile lookups (UUID -> current username).

The lookup service answers ``{"username": ..., "uuid": ...}`` (some mirrors
use ``name``). Only one attempt is made per call: callers treat any failure
as "no answer" and move on, so there is no retry or back-off here.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from core.utils.common_functions import flat_uuid

DEFAULT_LOOKUP_URL = "https://api.ashcon.app/mojang/v2/user/{uuid}"
DEFAULT_TIMEOUT = 5  # seconds


def get_profile(
    uuid: str,
    *,
    url_template: str = DEFAULT_LOOKUP_URL,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    """GET the profile for *uuid* and return decoded JSON.

    Raises ``requests.HTTPError`` on non-2xx and ``requests.RequestException``
    on transport errors.
    """
    url = url_template.format(uuid=flat_uuid(uuid))
    http = session or requests
    resp = http.get(url, timeout=timeout, headers={"Accept": "application/json"})
    resp.raise_for_status()
    return resp.json()


def fetch_username(
    uuid: str,
    *,
    url_template: str = DEFAULT_LOOKUP_URL,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """Return the current username for *uuid*, or None when the payload has none."""
    data = get_profile(uuid, url_template=url_template, timeout=timeout, session=session)
    if not isinstance(data, dict):
        return None
    return data.get("username") or data.get("name") or None
