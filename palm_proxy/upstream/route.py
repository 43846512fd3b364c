import logging
from typing import AsyncIterator, Optional, Union

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import Response, StreamingResponse
from opentelemetry import trace
from starlette.background import BackgroundTask

from palm_proxy.cors import CORS_HEADERS, compose_response_headers
from palm_proxy.landing_page import landing_page_response
from palm_proxy.upstream.headers import pick_headers
from palm_proxy.upstream.safety_settings import rewrite_request_body
from palm_proxy.upstream.target_url import build_target_url
from palm_proxy.utils.traced_requests import traced_proxy_request
from palm_proxy.vars import MODIFY_SAFETY_SETTINGS

router = APIRouter()
tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

PREFLIGHT_METHOD = "OPTIONS"
PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
# Methods that never carry a request body upstream
BODYLESS_METHODS = {"GET", "HEAD"}
API_KEY_HEADER = "x-goog-api-key"

RequestBody = Optional[Union[str, AsyncIterator[bytes]]]


def build_upstream_client() -> httpx.AsyncClient:
    """One client per request: no timeout, redirects are relayed to the caller."""
    return httpx.AsyncClient(timeout=None, follow_redirects=False)


def preflight_response() -> Response:
    return Response(headers=dict(CORS_HEADERS))


def should_rewrite_body(method: str) -> bool:
    return method == "POST" and MODIFY_SAFETY_SETTINGS


async def prepare_body(request: Request) -> RequestBody:
    """
    Body for the upstream call.

    Eligible POSTs are drained once and rewritten; every other request hands
    its body stream to httpx untouched.
    """
    if request.method in BODYLESS_METHODS:
        return None
    if should_rewrite_body(request.method):
        raw = (await request.body()).decode("utf-8", errors="replace")
        return rewrite_request_body(raw)
    return request.stream()


async def _close_upstream(response: httpx.Response, client: httpx.AsyncClient) -> None:
    await response.aclose()
    await client.aclose()


async def relay_body(
    response: httpx.Response, client: httpx.AsyncClient
) -> AsyncIterator[bytes]:
    """
    Yield the upstream body as received, content-encoding untouched.

    Upstream response and client are closed however the relay ends,
    including a client disconnect halfway through.
    """
    try:
        async for chunk in response.aiter_raw():
            yield chunk
    finally:
        await _close_upstream(response, client)


async def forward_to_upstream(request: Request) -> Response:
    """
    Relay the request to the upstream API and stream its answer back.

    Dispatch failures are logged and re-raised; there is no fallback
    response and no retry.
    """
    target_url = build_target_url(request.url.path, request.query_params.multi_items())
    rewrite = should_rewrite_body(request.method)
    body = await prepare_body(request)
    headers = pick_headers(request.headers)

    logger.debug(
        f"Forwarding {request.method} {request.url.path} with headers {sorted(headers)}"
    )

    with traced_proxy_request(
        tracer,
        request.method,
        target_url,
        api_key=headers.get(API_KEY_HEADER),
        extra_attrs={"proxy.safety_rewrite": rewrite},
    ) as span:
        client = build_upstream_client()
        try:
            upstream_request = client.build_request(
                method=request.method,
                url=target_url,
                headers=headers,
                content=body,
            )
            upstream = await client.send(upstream_request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"[Proxy] Upstream request failed: {type(e).__name__}: {e}")
            span.set_attribute("proxy.error", type(e).__name__)
            await client.aclose()
            raise

        span.set_attribute("proxy.status_code", upstream.status_code)

    return StreamingResponse(
        relay_body(upstream, client),
        status_code=upstream.status_code,
        headers=compose_response_headers(upstream.headers),
        background=BackgroundTask(_close_upstream, upstream, client),
    )


async def handle_request(request: Request) -> Response:
    # Preflight goes first; nothing else may see it
    if request.method == PREFLIGHT_METHOD:
        return preflight_response()
    if request.url.path == "/":
        return landing_page_response()
    return await forward_to_upstream(request)


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy_all(request: Request, path: str):
    """Catch-all route that proxies every request to the upstream API."""
    return await handle_request(request)
