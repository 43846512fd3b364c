import logging
from contextlib import contextmanager
from typing import Dict, Optional

from opentelemetry.trace import Tracer

from palm_proxy.utils import mask_token, mask_url_key

logger = logging.getLogger("uvicorn.error")


@contextmanager
def traced_proxy_request(
    tracer: Tracer,
    method: str,
    target_url: str,
    api_key: Optional[str] = None,
    extra_attrs: Optional[Dict] = None,
):
    """
    Open a ``proxy_request`` span for one upstream call and log where it goes.

    The API key never reaches the span or the log in clear, whether it was
    sent as the ``x-goog-api-key`` header or as the ``key`` query parameter.
    """
    safe_url = mask_token(mask_url_key(target_url), api_key)
    with tracer.start_as_current_span("proxy_request") as span:
        span.set_attribute("proxy.target_url", safe_url)
        span.set_attribute("proxy.method", method)
        if extra_attrs:
            for k, v in extra_attrs.items():
                span.set_attribute(k, v)
        logger.info(f"[Proxy] {method} -> {safe_url}")
        yield span
