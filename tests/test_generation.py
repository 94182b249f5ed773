import asyncio
import logging

import httpx
import pytest

from assistify.errors import GenerationNotConfigured, UpstreamAuthError, UpstreamError
from assistify.services.generation import (
    DEFAULT_SYSTEM_PROMPT,
    FALLBACK_ANSWER,
    CompletionClient,
    DeltaReply,
    EmptyReply,
    MessageReply,
    OutputReply,
    TextReply,
    classify_completion,
    reply_text,
)

from conftest import (
    TEST_API_KEY,
    completion_body,
    json_transport,
    raising_transport,
    request_json,
)


def test_request_payload_and_headers(settings):
    seen = []
    client = CompletionClient(settings, transport=json_transport(body=completion_body("Hi"), requests=seen))

    answer = asyncio.run(client.generate("What is Python?"))

    assert answer == "Hi"
    assert len(seen) == 1
    request = seen[0]
    assert str(request.url) == settings.openrouter_url
    assert request.headers["Authorization"] == f"Bearer {TEST_API_KEY}"
    body = request_json(request)
    assert body["model"] == settings.openrouter_model
    assert body["temperature"] == settings.openrouter_temperature
    assert body["max_tokens"] == settings.openrouter_max_tokens
    assert body["messages"] == [
        {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
        {"role": "user", "content": "What is Python?"},
    ]


def test_system_prompt_override(settings):
    client = CompletionClient(settings)
    payload = client.build_payload("q", "Answer like a pirate.")
    assert payload["messages"][0] == {"role": "system", "content": "Answer like a pirate."}

    assert client.build_payload("q", "   ")["messages"][0]["content"] == DEFAULT_SYSTEM_PROMPT
    assert client.build_payload("q", None)["messages"][0]["content"] == DEFAULT_SYSTEM_PROMPT


@pytest.mark.parametrize(
    "payload, expected",
    [
        (completion_body("from message"), MessageReply("from message")),
        ({"choices": [{"text": "from text"}]}, TextReply("from text")),
        ({"choices": [{"delta": {"content": "from delta"}}]}, DeltaReply("from delta")),
        ({"output": ["line one", "line two"]}, OutputReply("line one\nline two")),
        ({"output": "single"}, OutputReply("single")),
        ({"output": 42}, OutputReply("42")),
        (
            {"choices": [{"message": {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}}]},
            MessageReply("ab"),
        ),
        ({"choices": []}, EmptyReply()),
        ({"choices": [{"message": {"content": ""}}]}, EmptyReply()),
        ({}, EmptyReply()),
        ("not a dict", EmptyReply()),
        (None, EmptyReply()),
    ],
)
def test_classify_completion(payload, expected):
    assert classify_completion(payload) == expected


def test_empty_reply_renders_fallback():
    assert reply_text(EmptyReply()) == FALLBACK_ANSWER
    assert reply_text(TextReply("x")) == "x"


def test_unusable_body_returns_fallback(settings):
    client = CompletionClient(settings, transport=json_transport(body={"choices": []}))
    assert asyncio.run(client.generate("q")) == FALLBACK_ANSWER


def test_missing_key_fails_before_any_request(unconfigured_settings):
    seen = []
    client = CompletionClient(unconfigured_settings, transport=json_transport(requests=seen))

    with pytest.raises(GenerationNotConfigured):
        asyncio.run(client.generate("q"))
    assert seen == []


def test_auth_failure_is_distinct_and_redacted(settings, caplog):
    body = {"error": {"message": f"Invalid key {TEST_API_KEY}", "code": 401}}
    client = CompletionClient(settings, transport=json_transport(401, body))

    with caplog.at_level(logging.DEBUG):
        with pytest.raises(UpstreamAuthError) as excinfo:
            asyncio.run(client.generate("q"))

    err = excinfo.value
    assert err.status_code == 502
    assert err.code == "UPSTREAM_AUTH_FAILED"
    assert TEST_API_KEY not in str(err.to_payload())
    assert err.diagnostic["error"]["message"] == "Invalid key ***"
    assert TEST_API_KEY not in caplog.text


def test_error_code_401_in_body_counts_as_auth_failure(settings):
    body = {"error": {"message": "No auth credentials found", "code": 401}}
    client = CompletionClient(settings, transport=json_transport(400, body))

    with pytest.raises(UpstreamAuthError):
        asyncio.run(client.generate("q"))


def test_server_error_maps_to_upstream_error(settings):
    client = CompletionClient(settings, transport=json_transport(503, {"error": {"message": "overloaded"}}))

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.generate("q"))

    assert not isinstance(excinfo.value, UpstreamAuthError)
    assert excinfo.value.code == "UPSTREAM_ERROR"
    assert excinfo.value.diagnostic == {"error": {"message": "overloaded"}}


def test_timeout_maps_to_upstream_error(settings):
    transport = raising_transport(lambda request: httpx.ReadTimeout("timed out", request=request))
    client = CompletionClient(settings, transport=transport)

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.generate("q"))
    assert "timed out" in excinfo.value.message


def test_connection_error_maps_to_upstream_error(settings):
    transport = raising_transport(lambda request: httpx.ConnectError("connection refused", request=request))
    client = CompletionClient(settings, transport=transport)

    with pytest.raises(UpstreamError):
        asyncio.run(client.generate("q"))
