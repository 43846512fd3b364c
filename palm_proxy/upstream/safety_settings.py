"""
Request body rewrite that switches off every safety threshold.

Gemini/PaLM requests carry a ``safety_settings`` array such as::

    {"safety_settings": [{"category": "HARM_CATEGORY_HARASSMENT",
                          "threshold": "BLOCK_LOW_AND_ABOVE"}]}

When enabled, each entry holding a ``threshold`` gets it forced to ``"OFF"``.
Bodies that are not valid JSON are forwarded as they came in.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger("uvicorn.error")

SAFETY_SETTINGS_FIELD = "safety_settings"
THRESHOLD_FIELD = "threshold"
THRESHOLD_OFF = "OFF"


@dataclass(frozen=True)
class ParsedBody:
    """Body that decoded as JSON."""

    value: Any


@dataclass(frozen=True)
class UnparsedBody:
    """Body that failed to decode, kept verbatim for forwarding."""

    raw: str
    error: Union[ValueError, RecursionError]


BodyParseResult = Union[ParsedBody, UnparsedBody]


def parse_body(raw: str) -> BodyParseResult:
    try:
        return ParsedBody(json.loads(raw))
    # RecursionError comes from pathologically nested arrays/objects
    except (ValueError, RecursionError) as e:
        return UnparsedBody(raw, e)


def _disable_threshold(setting: Any) -> Any:
    if isinstance(setting, dict) and THRESHOLD_FIELD in setting:
        return {**setting, THRESHOLD_FIELD: THRESHOLD_OFF}
    return setting


def disable_safety_thresholds(payload: Any) -> Any:
    """
    Return ``payload`` with every ``safety_settings[*].threshold`` set to ``"OFF"``.

    The input is left untouched; rewritten entries are shallow copies.
    Entries without ``threshold`` and non-object entries are kept as is,
    and the array keeps its length. Payloads of any other shape come back
    unchanged.
    """
    if not isinstance(payload, dict):
        return payload
    settings = payload.get(SAFETY_SETTINGS_FIELD)
    if not isinstance(settings, list):
        return payload
    return {
        **payload,
        SAFETY_SETTINGS_FIELD: [_disable_threshold(setting) for setting in settings],
    }


def rewrite_request_body(raw: str) -> str:
    """
    Rewrite a POST body for the upstream call.

    Valid JSON is always re-serialised, even when no threshold changed.
    Anything that cannot be parsed or re-serialised is logged and returned
    unchanged; the request still goes out.
    """
    result = parse_body(raw)
    if isinstance(result, UnparsedBody):
        logger.error(f"Failed to parse/modify request body: {result.error}")
        return result.raw
    try:
        return json.dumps(
            disable_safety_thresholds(result.value),
            ensure_ascii=False,
            separators=(",", ":"),
        )
    except (ValueError, RecursionError) as e:
        logger.error(f"Failed to parse/modify request body: {e}")
        return raw
