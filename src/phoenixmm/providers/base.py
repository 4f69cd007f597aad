from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from ..state.market import MarketAccount
from ..state.models import OrderId, Side


@dataclass(frozen=True)
class LimitOrder:
    side: Side
    price_in_ticks: int
    size_in_base_lots: int


class OrderBookView:
    """Abstract-ish read-only view of one market's book.

    Methods:
      - market_account() -> MarketAccount: owner + raw data holding the header
      - best_opposing_quote(side, excluding) -> best price on `side` among
        orders not owned by `excluding`, or None if there are none
      - lookup_order(order_id) -> (price_in_ticks, size_in_base_lots) or None
      - next_sequence_number() -> the raw counter the next resting order gets
    """

    def market_account(self) -> MarketAccount:
        raise NotImplementedError()

    def best_opposing_quote(self, side: Side, excluding: str) -> Optional[int]:
        raise NotImplementedError()

    def lookup_order(self, order_id: OrderId) -> Optional[Tuple[int, int]]:
        raise NotImplementedError()

    def next_sequence_number(self) -> int:
        raise NotImplementedError()


class OrderGateway:
    """Abstract-ish cancel/place surface. Failures raise OrderGatewayError."""

    def cancel_orders(self, trader: str, order_ids: List[OrderId]) -> None:
        raise NotImplementedError()

    def place_orders_atomic(self, trader: str, orders: List[LimitOrder], post_only: bool) -> None:
        raise NotImplementedError()

    def place_order(self, trader: str, order: LimitOrder) -> None:
        raise NotImplementedError()


class PriceFeed:
    def get_price(self, ticker: str) -> Decimal:
        raise NotImplementedError()
