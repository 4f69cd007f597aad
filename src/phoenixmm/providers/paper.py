"""In-memory venue used for paper trading and tests.

Implements both OrderBookView and OrderGateway over a single market. Only
orders that rest consume a sequence number; bids are keyed with the
complemented counter like the real venue.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import OrderRejected
from ..state.market import PHOENIX_PROGRAM_ID, MarketAccount, MarketHeader
from ..state.models import OrderId, Side, bid_sequence_number
from ..utils.logging import json_msg
from .base import LimitOrder, OrderBookView, OrderGateway

logger = logging.getLogger(__name__)


@dataclass
class RestingOrder:
    trader: str
    num_base_lots: int


class PaperVenue(OrderBookView, OrderGateway):
    def __init__(self, header: MarketHeader, program_id: str = PHOENIX_PROGRAM_ID):
        self.header = header
        self.program_id = program_id
        self.books: Dict[Side, Dict[OrderId, RestingOrder]] = {Side.BID: {}, Side.ASK: {}}
        self._sequence_number = 0
        self.cancel_requests: List[List[OrderId]] = []
        self.place_requests: List[List[LimitOrder]] = []

    # OrderBookView

    def market_account(self) -> MarketAccount:
        return MarketAccount(owner=self.program_id, data=self.header.to_bytes())

    def best_opposing_quote(self, side: Side, excluding: str) -> Optional[int]:
        prices = [oid.price_in_ticks for oid, o in self.books[side].items() if o.trader != excluding]
        if not prices:
            return None
        return max(prices) if side is Side.BID else min(prices)

    def lookup_order(self, order_id: OrderId) -> Optional[Tuple[int, int]]:
        o = self.books[order_id.side].get(order_id)
        if o is None:
            return None
        return order_id.price_in_ticks, o.num_base_lots

    def next_sequence_number(self) -> int:
        return self._sequence_number

    # OrderGateway

    def cancel_orders(self, trader: str, order_ids: List[OrderId]) -> None:
        self.cancel_requests.append(list(order_ids))
        for oid in order_ids:
            book = self.books[oid.side]
            o = book.get(oid)
            if o is not None and o.trader == trader:
                del book[oid]

    def place_orders_atomic(self, trader: str, orders: List[LimitOrder], post_only: bool) -> None:
        self.place_requests.append(list(orders))
        # validate the whole batch before touching the book
        for order in orders:
            self._check(trader, order, post_only)
        for order in orders:
            self._execute(trader, order)

    def place_order(self, trader: str, order: LimitOrder) -> None:
        self.place_requests.append([order])
        self._check(trader, order, False)
        self._execute(trader, order)

    # helpers for simulating other market participants

    def add_order(self, trader: str, side: Side, price_in_ticks: int, num_base_lots: int) -> OrderId:
        return self._rest(trader, LimitOrder(side, price_in_ticks, num_base_lots))

    def fill_order(self, order_id: OrderId, num_base_lots: Optional[int] = None) -> None:
        book = self.books[order_id.side]
        o = book.get(order_id)
        if o is None:
            return
        if num_base_lots is None or num_base_lots >= o.num_base_lots:
            del book[order_id]
        else:
            o.num_base_lots -= num_base_lots

    def orders_for(self, trader: str) -> Dict[OrderId, RestingOrder]:
        out = {}
        for book in self.books.values():
            out.update({oid: o for oid, o in book.items() if o.trader == trader})
        return out

    def _crossing(self, trader: str, order: LimitOrder) -> List[OrderId]:
        if order.side is Side.BID:
            ids = [oid for oid, o in self.books[Side.ASK].items() if o.trader != trader and oid.price_in_ticks <= order.price_in_ticks]
            return sorted(ids, key=lambda oid: oid.price_in_ticks)
        ids = [oid for oid, o in self.books[Side.BID].items() if o.trader != trader and oid.price_in_ticks >= order.price_in_ticks]
        return sorted(ids, key=lambda oid: -oid.price_in_ticks)

    def _check(self, trader: str, order: LimitOrder, post_only: bool) -> None:
        if order.price_in_ticks <= 0 or order.size_in_base_lots <= 0:
            raise OrderRejected(f'invalid order {order}')
        if post_only and self._crossing(trader, order):
            raise OrderRejected(f'post-only order would cross: {order}')

    def _execute(self, trader: str, order: LimitOrder) -> None:
        remaining = order.size_in_base_lots
        opposing = Side.ASK if order.side is Side.BID else Side.BID
        for oid in self._crossing(trader, order):
            if remaining == 0:
                break
            maker = self.books[opposing][oid]
            traded = min(remaining, maker.num_base_lots)
            remaining -= traded
            maker.num_base_lots -= traded
            if maker.num_base_lots == 0:
                del self.books[opposing][oid]
            logger.debug(json_msg({'event': 'paper_fill', 'taker': trader, 'maker': maker.trader, 'price': oid.price_in_ticks, 'size': traded}))
        if remaining > 0:
            self._rest(trader, LimitOrder(order.side, order.price_in_ticks, remaining))

    def _rest(self, trader: str, order: LimitOrder) -> OrderId:
        seq = self._sequence_number
        if order.side is Side.BID:
            seq = bid_sequence_number(seq)
        oid = OrderId(order.price_in_ticks, seq)
        self.books[order.side][oid] = RestingOrder(trader=trader, num_base_lots=order.size_in_base_lots)
        self._sequence_number += 1
        return oid
