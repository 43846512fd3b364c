from typing import Dict, Iterable, Mapping

from palm_proxy.vars import FORWARD_HEADERS, HeaderRule


def header_matches(name: str, rule: HeaderRule) -> bool:
    if isinstance(rule, str):
        return name == rule
    return rule.search(name) is not None


def pick_headers(
    headers: Mapping[str, str],
    allow_list: Iterable[HeaderRule] = FORWARD_HEADERS,
) -> Dict[str, str]:
    """
    Keep only the request headers matched by the allow list.

    Names are compared as delivered; Starlette lower-cases them. Anything
    without a matching rule is dropped.
    """
    rules = tuple(allow_list)
    picked = {}
    for name, value in headers.items():
        if any(header_matches(name, rule) for rule in rules):
            picked[name] = value
    return picked
