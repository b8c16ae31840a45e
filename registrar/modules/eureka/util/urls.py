"""Endpoint URL construction for the registry REST API."""

from __future__ import annotations

from typing import Iterable, List
from urllib.parse import quote

import httpx

from registrar.modules.eureka.domain import ApiVersion

EUREKA_SEGMENT = "eureka"

# RFC 3986 pchar minus "%": instance ids keep their ":" separators while
# "?", "#" and stray "%" are escaped.
_SEGMENT_SAFE = "-._~!$&'()*+,;=:@"


def _segments(path: str) -> List[str]:
    return [part for part in path.split("/") if part and part != EUREKA_SEGMENT]


def _join(parts: Iterable[str]) -> str:
    return "/" + "/".join(quote(part, safe=_SEGMENT_SAFE) for part in parts)


def build_url(server_address: str, path: str, api_version: ApiVersion = ApiVersion.V1) -> str:
    """Return ``{scheme}://{host}[:{port}]/eureka[/v{N}]/{path}``.

    ``eureka`` segments already present in either input are dropped first, so
    ``http://h:8761``, ``http://h:8761/`` and ``http://h:8761/eureka/`` give
    the same result, as do ``apps/X``, ``/apps/X`` and ``/eureka/apps/X``.
    Each segment is percent-encoded.
    """
    try:
        url = httpx.URL(server_address)
    except httpx.InvalidURL as exc:
        raise ValueError(f"Invalid registry server address: {server_address!r}") from exc
    if not url.scheme or not url.host:
        raise ValueError(f"Invalid registry server address: {server_address!r}")

    parts = _segments(url.path)
    parts.append(EUREKA_SEGMENT)
    version = ApiVersion(api_version).path_segment
    if version:
        parts.append(version)
    parts.extend(_segments(path))
    return str(url.copy_with(path=_join(parts)))
