from types import MappingProxyType
from typing import Dict, Mapping

CORS_HEADERS: Mapping[str, str] = MappingProxyType(
    {
        "access-control-allow-origin": "*",
        "access-control-allow-methods": "*",
        "access-control-allow-headers": "*",
    }
)

# Connection-scoped headers (RFC 2616), meaningless once the upstream hop ends
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


def compose_response_headers(upstream_headers: Mapping[str, str]) -> Dict[str, str]:
    """
    Merge the CORS defaults with the headers returned by upstream.

    Upstream headers are laid over the defaults, so an upstream
    ``access-control-allow-origin`` replaces the permissive ``*``.
    """
    headers = dict(CORS_HEADERS)
    for name, value in upstream_headers.items():
        name_lower = name.lower()
        if name_lower in HOP_BY_HOP_HEADERS:
            continue
        headers[name_lower] = value
    return headers
