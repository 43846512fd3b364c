import os
import re
from typing import Pattern, Tuple, Union

SERVICE_NAME = os.getenv("SERVICE_NAME", "palm-proxy")

UPSTREAM_ORIGIN = os.getenv(
    "UPSTREAM_ORIGIN", "https://generativelanguage.googleapis.com"
)
# Injected by the path rewrite in front of the proxy, never sent upstream
RESERVED_QUERY_KEY = "_path"

# Only the literal "True" enables the rewrite
MODIFY_SAFETY_SETTINGS = os.getenv("MODIFY_SAFETY_SETTINGS") == "True"

HeaderRule = Union[str, Pattern[str]]

DEFAULT_FORWARD_HEADERS: Tuple[HeaderRule, ...] = (
    "content-type",
    "x-goog-api-client",
    "x-goog-api-key",
)


def parse_allow_list(raw: str) -> Tuple[HeaderRule, ...]:
    """Turn ``a,b,/^x-goog-.*$/`` into exact names and compiled patterns."""
    rules: list = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if len(entry) > 2 and entry.startswith("/") and entry.endswith("/"):
            rules.append(re.compile(entry[1:-1]))
        else:
            rules.append(entry)
    return tuple(rules) if rules else DEFAULT_FORWARD_HEADERS


FORWARD_HEADERS = parse_allow_list(os.getenv("FORWARD_HEADERS", ""))

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
