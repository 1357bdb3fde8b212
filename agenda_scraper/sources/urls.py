from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from requests.utils import requote_uri

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(href: Any, base: str) -> Optional[str]:
    """
    Resolve a (possibly relative) link against the page it was found on.

    The result is canonical so that spellings of the same URL compare
    equal: lowercase scheme and host, no default port, "/" for an empty
    path, percent-encoded path and query, no fragment.

    Returns None for anything that is not a usable absolute http(s) URL.
    Never raises; callers skip None silently.
    """
    if not isinstance(href, str):
        return None
    raw = href.strip()
    if not raw:
        return None

    try:
        resolved, _fragment = urldefrag(urljoin(base or "", raw))
        parts = urlsplit(resolved)
        scheme = parts.scheme.lower()
        host = parts.hostname
        port = parts.port
    except ValueError:
        return None

    if scheme not in _DEFAULT_PORTS or not host:
        return None

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    userinfo, at, _ = parts.netloc.rpartition("@")
    if at:
        netloc = f"{userinfo}@{netloc}"

    try:
        return requote_uri(urlunsplit((scheme, netloc, parts.path or "/", parts.query, "")))
    except ValueError:
        return None
