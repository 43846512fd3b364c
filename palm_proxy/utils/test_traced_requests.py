import logging

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)

from palm_proxy.utils import mask_token, mask_url_key
from palm_proxy.utils.traced_requests import traced_proxy_request


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer(__name__)


def test_mask_token():
    assert mask_token("key=AIzaSy123456", "AIzaSy123456") == "key=AIza****"
    assert mask_token("nothing to hide", None) == "nothing to hide"


def test_mask_url_key():
    url = "https://generativelanguage.googleapis.com/v1/models?key=AIzaSy123456&alt=sse"

    assert mask_url_key(url) == (
        "https://generativelanguage.googleapis.com/v1/models?key=AIza****&alt=sse"
    )


def test_mask_url_key_without_key():
    url = "https://generativelanguage.googleapis.com/v1/models?alt=sse"

    assert mask_url_key(url) == url


def test_mask_url_key_percent_encoded_value():
    url = "https://generativelanguage.googleapis.com/v1/models?key=AIza%2BSecret%2Fvalue"

    masked = mask_url_key(url)

    assert "Secret" not in masked
    assert masked.endswith("?key=AIza****")


def test_mask_url_key_every_key_param():
    url = "https://generativelanguage.googleapis.com/v1/models?key=AIzaOne&key=AIzaTwo"

    masked = mask_url_key(url)

    assert "One" not in masked
    assert "Two" not in masked


def test_traced_proxy_request_records_span(tracer, span_exporter, caplog):
    url = "https://generativelanguage.googleapis.com/v1/models?key=AIzaSyQUERY"

    with caplog.at_level(logging.INFO, logger="uvicorn.error"):
        with traced_proxy_request(
            tracer,
            "POST",
            url,
            api_key="AIzaSyHEADER",
            extra_attrs={"proxy.safety_rewrite": True},
        ) as span:
            span.set_attribute("proxy.status_code", 200)

    (finished,) = span_exporter.get_finished_spans()
    assert finished.name == "proxy_request"
    assert finished.attributes["proxy.method"] == "POST"
    assert finished.attributes["proxy.safety_rewrite"] is True
    assert finished.attributes["proxy.status_code"] == 200
    assert "AIzaSyQUERY" not in finished.attributes["proxy.target_url"]
    assert "AIzaSyQUERY" not in caplog.text
    assert "AIzaSyHEADER" not in caplog.text
    assert "POST" in caplog.text


def test_traced_proxy_request_masks_header_key_in_url(tracer, span_exporter):
    url = "https://generativelanguage.googleapis.com/v1/AIzaSyHEADER/models"

    with traced_proxy_request(tracer, "GET", url, api_key="AIzaSyHEADER"):
        pass

    (finished,) = span_exporter.get_finished_spans()
    assert "AIzaSyHEADER" not in finished.attributes["proxy.target_url"]


def test_traced_proxy_request_lets_errors_through(tracer, span_exporter):
    with pytest.raises(RuntimeError):
        with traced_proxy_request(tracer, "GET", "https://example.com/"):
            raise RuntimeError("boom")

    assert len(span_exporter.get_finished_spans()) == 1
