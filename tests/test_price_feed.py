from decimal import Decimal

import pytest
import requests

from phoenixmm.errors import PriceFeedError
from phoenixmm.providers import price_feed
from phoenixmm.providers.price_feed import CoinbasePriceFeed, to_quote_atoms_per_raw_base_unit


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code}')

    def json(self):
        return self.payload


def test_get_price_parses_amount(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse({'data': {'base': 'SOL', 'currency': 'USD', 'amount': '23.456789'}})

    monkeypatch.setattr(price_feed.requests, 'get', fake_get)
    px = CoinbasePriceFeed('https://api.example.com/').get_price('SOL-USD')
    assert px == Decimal('23.456789')
    assert calls == ['https://api.example.com/v2/prices/SOL-USD/spot']


def test_http_error_raises_price_feed_error(monkeypatch):
    monkeypatch.setattr(price_feed.requests, 'get', lambda url, timeout: FakeResponse({}, status=503))
    with pytest.raises(PriceFeedError):
        CoinbasePriceFeed().get_price('SOL-USD')


def test_connection_error_raises_price_feed_error(monkeypatch):
    def boom(url, timeout):
        raise requests.ConnectionError('down')

    monkeypatch.setattr(price_feed.requests, 'get', boom)
    with pytest.raises(PriceFeedError):
        CoinbasePriceFeed().get_price('SOL-USD')


def test_unexpected_payload_raises_price_feed_error(monkeypatch):
    monkeypatch.setattr(price_feed.requests, 'get', lambda url, timeout: FakeResponse({'errors': []}))
    with pytest.raises(PriceFeedError):
        CoinbasePriceFeed().get_price('SOL-USD')


def test_price_scaling_truncates():
    assert to_quote_atoms_per_raw_base_unit(Decimal('23.456789'), 1_000_000) == 23_456_789
    assert to_quote_atoms_per_raw_base_unit(Decimal('0.0000019'), 1_000_000) == 1


@pytest.mark.parametrize('amount', ['NaN', 'Infinity', '-inf'])
def test_non_finite_price_raises_price_feed_error(monkeypatch, amount):
    monkeypatch.setattr(price_feed.requests, 'get', lambda url, timeout: FakeResponse({'data': {'amount': amount}}))
    with pytest.raises(PriceFeedError):
        CoinbasePriceFeed().get_price('SOL-USD')
