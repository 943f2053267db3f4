from unittest.mock import MagicMock

import pytest
import requests

from fal_queue import configure, default_client
from fal_queue.client import FalClient
from fal_queue.config import ClientConfig
from fal_queue.errors import (
    ConfigurationError,
    DecodeError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from fal_queue.stream import Stream


class FakeResponse:
    def __init__(self, status_code=200, text="", chunks=()):
        self.status_code = status_code
        self.text = text
        self.chunks = list(chunks)

    @property
    def ok(self):
        return self.status_code < 400

    def iter_content(self, chunk_size=None):
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


def _client(response=None, api_key="secret", **config):
    session = MagicMock()
    session.request.return_value = response or FakeResponse(text="{}")
    session.post.return_value = response or FakeResponse()
    return FalClient(ClientConfig(api_key=api_key, **config), session=session), session


def test_get_builds_url_query_and_auth_header():
    client, session = _client(FakeResponse(text='{"status": "IN_QUEUE"}'))

    result = client.get("/fal-ai/flux/requests/r1/status", query={"logs": 1})

    assert result == {"status": "IN_QUEUE"}
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "GET"
    assert url == "https://queue.fal.run/fal-ai/flux/requests/r1/status"
    assert kwargs["params"] == {"logs": 1}
    assert kwargs["headers"]["Authorization"] == "Key secret"
    assert kwargs["data"] is None
    assert kwargs["timeout"] == 120.0


def test_post_drops_top_level_none_values():
    client, session = _client()
    client.post("/fal-ai/flux/dev", {"prompt": "cat", "seed": None, "extra": {"a": None}})
    kwargs = session.request.call_args.kwargs
    assert kwargs["data"] == '{"prompt": "cat", "extra": {"a": null}}'
    assert kwargs["headers"]["Content-Type"] == "application/json"


def test_api_calls_use_platform_base():
    client, session = _client()
    client.get_api("/models", query={"limit": 50})
    assert session.request.call_args.args[1] == "https://api.fal.ai/v1/models"
    client.post_api("/models/pricing/estimate", {"estimate_type": "unit_price"})
    assert session.request.call_args.args[1] == "https://api.fal.ai/v1/models/pricing/estimate"


def test_no_auth_header_without_key():
    client, session = _client(api_key=None)
    client.put("/fal-ai/flux/requests/r1/cancel")
    assert "Authorization" not in session.request.call_args.kwargs["headers"]
    assert session.request.call_args.kwargs["data"] == "{}"


def test_empty_body_is_none():
    client, _ = _client(FakeResponse(text="  "))
    assert client.get("/x") is None


@pytest.mark.parametrize(
    "status_code, error_cls",
    [
        (401, UnauthorizedError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (422, ServerError),
        (500, ServerError),
    ],
)
def test_http_errors_are_mapped(status_code, error_cls):
    client, _ = _client(FakeResponse(status_code=status_code, text='{"detail": "nope"}'))
    with pytest.raises(error_cls) as exc_info:
        client.get("/x")
    assert exc_info.value.status_code == status_code
    assert exc_info.value.body == '{"detail": "nope"}'


def test_malformed_json_body():
    client, _ = _client(FakeResponse(text="<html>oops</html>"))
    with pytest.raises(DecodeError):
        client.get("/x")


def test_connection_errors_become_transport_errors():
    client, session = _client()
    session.request.side_effect = requests.exceptions.ConnectTimeout("timed out")
    with pytest.raises(TransportError) as exc_info:
        client.get("/x")
    assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectTimeout)


def test_post_stream_feeds_chunks_to_stream():
    response = FakeResponse(chunks=[b'data: {"a": 1}\n', b'\ndata: {"b": 2}\n\n'])
    client, session = _client(response)

    events = list(Stream(path="/fal-ai/flux/dev/stream", input={"prompt": "x"}, client=client))

    assert [e.data for e in events] == [{"a": 1}, {"b": 2}]
    args, kwargs = session.post.call_args
    assert args[0] == "https://fal.run/fal-ai/flux/dev/stream"
    assert kwargs["stream"] is True
    assert kwargs["headers"]["Accept"] == "text/event-stream"
    assert kwargs["headers"]["Cache-Control"] == "no-store"


def test_post_stream_http_error():
    client, _ = _client(FakeResponse(status_code=401, text="unauthorized"))
    with pytest.raises(UnauthorizedError):
        client.post_stream("/x/stream", {}, on_chunk=lambda chunk: None)


def test_post_stream_broken_connection():
    response = FakeResponse(
        chunks=[b"data: 1\n\n", requests.exceptions.ChunkedEncodingError("reset")]
    )
    client, _ = _client(response)
    received = []
    with pytest.raises(TransportError):
        client.post_stream("/x/stream", {}, on_chunk=received.append)
    assert received == [b"data: 1\n\n"]


def test_config_validation():
    config = ClientConfig(api_key="k", queue_base="http://localhost:8000/")
    assert config.queue_base == "http://localhost:8000"

    with pytest.raises(ConfigurationError):
        ClientConfig(api_key="k", api_base="ftp://example.com")
    with pytest.raises(ConfigurationError):
        ClientConfig(api_key="k", request_timeout=0)
    with pytest.raises(ConfigurationError):
        ClientConfig(api_key=None).require_key()


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("FAL_KEY", "env-key")
    monkeypatch.setenv("FAL_QUEUE_BASE", "https://queue.example.com")
    monkeypatch.setenv("FAL_REQUEST_TIMEOUT", "30")

    config = ClientConfig.from_env(verbose=True)
    assert config.api_key == "env-key"
    assert config.queue_base == "https://queue.example.com"
    assert config.sync_base == "https://fal.run"
    assert config.request_timeout == 30.0
    assert config.verbose

    monkeypatch.setenv("FAL_REQUEST_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError):
        ClientConfig.from_env()


def test_configure_replaces_default_client(monkeypatch):
    monkeypatch.setenv("FAL_KEY", "first")
    client = configure(api_key="second")
    assert client.config.api_key == "second"
    assert default_client() is client


@pytest.mark.parametrize(
    "overrides",
    [{"request_timeout": "abc"}, {"queue_base": 123}, {"verbose": "sometimes"}],
)
def test_config_type_errors_are_configuration_errors(overrides):
    with pytest.raises(ConfigurationError):
        ClientConfig(api_key="k", **overrides)


def test_require_key_fails_fast_without_key(monkeypatch):
    monkeypatch.delenv("FAL_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        FalClient(ClientConfig(api_key=None), session=MagicMock(), require_key=True)
    with pytest.raises(ConfigurationError):
        configure(require_key=True)

    client = FalClient(ClientConfig(api_key="k"), session=MagicMock(), require_key=True)
    assert client.config.api_key == "k"
