from typing import Iterable, Tuple
from urllib.parse import urlencode, urljoin

import httpx

from palm_proxy.vars import RESERVED_QUERY_KEY, UPSTREAM_ORIGIN


def build_target_url(
    path: str,
    query_items: Iterable[Tuple[str, str]],
    origin: str = UPSTREAM_ORIGIN,
) -> str:
    """
    Map the incoming path and query onto the upstream origin.

    The reserved routing key is dropped; every other pair is appended in
    its original order, duplicate keys included. Raises ``httpx.InvalidURL``
    when the result cannot be parsed.
    """
    # "//host/..." would otherwise be resolved as a network-path reference
    target = urljoin(origin, "/" + path.lstrip("/"))

    params = [(key, value) for key, value in query_items if key != RESERVED_QUERY_KEY]
    if params:
        target = f"{target}?{urlencode(params)}"

    httpx.URL(target)
    return target
