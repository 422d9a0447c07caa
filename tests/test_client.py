"""Tests for the sync and async document clients."""
import asyncio
import json

import httpx
import pytest
import requests

from reviewshelf.async_client import AsyncDataClient
from reviewshelf.client import DataClient, is_remote, join_url
from reviewshelf.errors import LoadFailure


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.payload = payload
        self.text = ""

    def json(self):
        if self.payload is None:
            raise ValueError("no JSON")
        return self.payload


def scripted_session(monkeypatch, client, outcomes):
    """Make ``client.session.get`` return or raise the given outcomes in order."""
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(client.session, "get", fake_get)
    monkeypatch.setattr(client, "_backoff", lambda attempt: None)
    return calls


def test_is_remote():
    assert is_remote("https://example.com/data/")
    assert not is_remote("data/")


def test_join_url():
    assert join_url("https://example.com/data/", "books.json") == "https://example.com/data/books.json"
    assert join_url("https://example.com/data", "books.json") == "https://example.com/data/books.json"


def test_fetch_local_document(tmp_path):
    (tmp_path / "books.json").write_text(json.dumps({"books": []}), encoding="utf-8")

    with DataClient(base_url=str(tmp_path)) as client:
        assert client.fetch("books.json") == {"books": []}


def test_fetch_local_missing(tmp_path):
    with DataClient(base_url=str(tmp_path)) as client:
        with pytest.raises(LoadFailure) as exc:
            client.fetch("books.json")
    assert exc.value.name == "books.json"


def test_fetch_local_invalid_json(tmp_path):
    (tmp_path / "books.json").write_text("{not json", encoding="utf-8")

    with DataClient(base_url=str(tmp_path)) as client:
        with pytest.raises(LoadFailure, match="invalid JSON"):
            client.fetch("books.json")


def test_remote_success(monkeypatch):
    client = DataClient(base_url="https://example.com/data")
    calls = scripted_session(monkeypatch, client, [FakeResponse(200, {"books": []})])

    assert client.fetch("books.json") == {"books": []}
    assert calls == ["https://example.com/data/books.json"]


def test_remote_retries_server_errors(monkeypatch):
    """5xx, 429 and timeouts are retried until a success."""
    client = DataClient(base_url="https://example.com/data", max_retries=4)
    calls = scripted_session(monkeypatch, client, [
        FakeResponse(503),
        FakeResponse(429),
        requests.exceptions.Timeout(),
        FakeResponse(200, {"genres": []}),
    ])

    assert client.fetch("categories.json") == {"genres": []}
    assert len(calls) == 4


def test_remote_client_error_is_not_retried(monkeypatch):
    client = DataClient(base_url="https://example.com/data")
    calls = scripted_session(monkeypatch, client, [FakeResponse(404)])

    with pytest.raises(LoadFailure, match="HTTP 404"):
        client.fetch("books.json")
    assert len(calls) == 1


def test_remote_retries_exhausted(monkeypatch):
    client = DataClient(base_url="https://example.com/data", max_retries=2)
    scripted_session(monkeypatch, client, [
        requests.exceptions.ConnectionError("refused"),
        FakeResponse(500),
    ])

    with pytest.raises(LoadFailure, match="HTTP 500"):
        client.fetch("books.json")


def test_remote_invalid_json(monkeypatch):
    client = DataClient(base_url="https://example.com/data")
    scripted_session(monkeypatch, client, [FakeResponse(200)])

    with pytest.raises(LoadFailure, match="invalid JSON"):
        client.fetch("books.json")


def mock_async_client(handler):
    client = AsyncDataClient(base_url="https://example.com/data")
    client.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


def test_async_fetch_error_status():
    async def run():
        async with mock_async_client(lambda request: httpx.Response(500)) as client:
            await client.fetch("books.json")

    with pytest.raises(LoadFailure, match="HTTP 500"):
        asyncio.run(run())


def test_async_fetch_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async def run():
        async with mock_async_client(handler) as client:
            await client.fetch("books.json")

    with pytest.raises(LoadFailure):
        asyncio.run(run())


def test_async_fetch_local(tmp_path):
    (tmp_path / "site.json").write_text(json.dumps({"title": "Shelf"}), encoding="utf-8")

    async def run():
        async with AsyncDataClient(base_url=str(tmp_path)) as client:
            return await client.fetch("site.json")

    assert asyncio.run(run()) == {"title": "Shelf"}
