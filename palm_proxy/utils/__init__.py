from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def mask_token(text: str, token: Optional[str]) -> str:
    return text.replace(token, f"{token[:4]}****") if token else text


def mask_url_key(url: str) -> str:
    """Hide the ``key`` query parameter of a Google API URL for logging."""
    parts = urlsplit(url)
    params = parse_qsl(parts.query, keep_blank_values=True)
    if not any(name == "key" for name, _ in params):
        return url
    # Masked on decoded values so percent-encoded keys are hidden too
    masked = [
        (name, mask_token(value, value) if name == "key" else value)
        for name, value in params
    ]
    return urlunsplit(parts._replace(query=urlencode(masked, safe="*")))
