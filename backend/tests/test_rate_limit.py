"""Tests for rate-limit client keys."""

from starlette.requests import Request

from campaign.api.rate_limit import client_key


def _request(forwarded: str | None = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "headers": headers, "client": ("9.9.9.9", 4321)})


def test_uses_peer_address_by_default():
    assert client_key(_request("1.2.3.4")) == "9.9.9.9"


def test_uses_first_forwarded_hop_behind_proxy(monkeypatch):
    monkeypatch.setattr("campaign.api.rate_limit.settings.trust_proxy_headers", True)

    assert client_key(_request("1.2.3.4, 10.0.0.1")) == "1.2.3.4"
    assert client_key(_request()) == "9.9.9.9"
