import logging
from decimal import Decimal, InvalidOperation

import requests

from ..errors import PriceFeedError
from .base import PriceFeed

logger = logging.getLogger(__name__)


class CoinbasePriceFeed(PriceFeed):
    """Spot price lookup: GET {base_url}/v2/prices/{ticker}/spot -> data.amount.

    Tickers follow the Coinbase format; USDC-quoted markets should use USD.
    """

    def __init__(self, base_url: str = 'https://api.coinbase.com', timeout: float = 5.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _endpoint(self, ticker: str) -> str:
        return f"{self.base_url}/v2/prices/{ticker}/spot"

    def get_price(self, ticker: str) -> Decimal:
        try:
            r = requests.get(self._endpoint(ticker), timeout=self.timeout)
            r.raise_for_status()
            j = r.json()
        except (requests.RequestException, ValueError) as e:
            raise PriceFeedError(f'price request for {ticker} failed: {e}') from e
        try:
            price = Decimal(str(j['data']['amount']))
        except (KeyError, TypeError, InvalidOperation) as e:
            logger.error('unexpected price payload for %s: %r', ticker, j)
            raise PriceFeedError(f'unexpected price payload for {ticker}') from e
        if not price.is_finite():
            raise PriceFeedError(f'non-finite price for {ticker}: {price}')
        return price


def to_quote_atoms_per_raw_base_unit(price: Decimal, scale: int) -> int:
    """Convert a decimal feed price to integer quote atoms (truncating)."""
    return int(Decimal(price) * scale)
