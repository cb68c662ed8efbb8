from types import SimpleNamespace

import pytest

from osc_cost.errors import CatalogError
from osc_cost.pricing import public_catalog
from osc_cost.pricing.http_policy import HttpRetryPolicy


class DummyResponse:
    def __init__(self, status_code, payload=None, headers=None):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise DummyStatusError(self.status_code)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class DummyStatusError(Exception):
    pass


class NoWaitPolicy(HttpRetryPolicy):
    def __init__(self, max_retries=3):
        super().__init__(max_retries=max_retries)
        self.waits = []

    def wait(self, attempt, retry_after=None):
        self.waits.append((attempt, retry_after))


def _install(monkeypatch, responses, requests):
    class DummyClient:
        def __init__(self, *args, **kwargs):
            pass

        def post(self, url, json=None):
            requests.append((url, json))
            return responses.pop(0)

        def close(self):
            return None

    monkeypatch.setattr(
        public_catalog,
        "httpx",
        SimpleNamespace(
            Client=DummyClient,
            Timeout=lambda *a, **k: None,
            HTTPError=OSError,
            HTTPStatusError=DummyStatusError,
        ),
    )


def test_fetch_public_catalog_retries_throttling(monkeypatch):
    requests = []
    entries = [{"Service": "S", "Type": "T", "Operation": "O", "UnitPrice": 1.0}]
    responses = [
        DummyResponse(429, headers={"Retry-After": "0"}),
        DummyResponse(200, {"Catalog": {"Entries": entries}}),
    ]
    _install(monkeypatch, responses, requests)
    policy = NoWaitPolicy()

    result = public_catalog.fetch_public_catalog("eu-west-2", retry_policy=policy)

    assert result == entries
    assert len(requests) == 2
    assert requests[0] == ("https://api.eu-west-2.outscale.com/api/v1/ReadPublicCatalog", {})
    assert policy.waits == [(0, "0")]


def test_fetch_public_catalog_gives_up_after_max_retries(monkeypatch):
    requests = []
    responses = [DummyResponse(503) for _ in range(3)]
    _install(monkeypatch, responses, requests)

    with pytest.raises(CatalogError):
        public_catalog.fetch_public_catalog("eu-west-2", retry_policy=NoWaitPolicy(max_retries=2))

    assert len(requests) == 3


def test_fetch_public_catalog_rejects_unexpected_payload(monkeypatch):
    _install(monkeypatch, [DummyResponse(200, {"Unexpected": True})], [])

    with pytest.raises(CatalogError):
        public_catalog.fetch_public_catalog("eu-west-2", retry_policy=NoWaitPolicy())


def test_retry_policy_delay_honours_retry_after_and_caps():
    policy = HttpRetryPolicy(base_delay=1.0, max_delay=10.0)

    assert policy.delay(0, retry_after="3") == 3.0
    assert 8.0 <= policy.delay(3) <= 10.0
    assert policy.should_retry(429, 0)
    assert not policy.should_retry(400, 0)
    assert not policy.should_retry(503, policy.max_retries)


def test_fetch_public_catalog_rejects_non_json_body(monkeypatch):
    _install(monkeypatch, [DummyResponse(200, ValueError("Expecting value"))], [])

    with pytest.raises(CatalogError):
        public_catalog.fetch_public_catalog("eu-west-2", retry_policy=NoWaitPolicy())
