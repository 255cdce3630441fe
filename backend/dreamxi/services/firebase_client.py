from __future__ import annotations

import json
from typing import Any, Optional, Tuple

import requests


def make_url(base_url: str, path: str, auth: Optional[str] = None) -> str:
    cleaned = path.strip("/")
    url = f"{base_url.rstrip('/')}/{cleaned}.json"
    if auth:
        return f"{url}?auth={auth}"
    return url


def get(url: str, timeout: int = 10) -> Tuple[bool, int, Any]:
    """Read the node at url; returns (ok, status, json-or-detail)."""
    try:
        res = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        return False, 0, str(exc)
    if 200 <= res.status_code < 300:
        try:
            return True, res.status_code, res.json()
        except ValueError as exc:
            return False, res.status_code, f"Invalid JSON from Firebase: {exc}"
    return False, res.status_code, res.text


def post(url: str, data: Any, timeout: int = 10) -> Tuple[bool, int, Any]:
    """Push a child under url; on success the payload is {"name": <push id>}."""
    try:
        payload = json.dumps(data, allow_nan=False)
        res = requests.post(
            url,
            data=payload,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
    except ValueError as exc:  # JSON encoding issues
        return False, 0, f"JSON encoding error: {exc}"
    except requests.RequestException as exc:
        return False, 0, str(exc)
    if 200 <= res.status_code < 300:
        try:
            return True, res.status_code, res.json()
        except ValueError as exc:
            return False, res.status_code, f"Invalid JSON from Firebase: {exc}"
    return False, res.status_code, res.text


def delete(url: str, timeout: int = 10) -> Tuple[bool, int, str]:
    """Delete data at url; returns (ok, status, detail)."""
    try:
        res = requests.delete(url, timeout=timeout)
        return (200 <= res.status_code < 300, res.status_code, res.text)
    except requests.RequestException as exc:
        return False, 0, str(exc)
