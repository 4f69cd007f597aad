from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .errors import OrderGatewayError, StrategyNotInitialized
from .providers.base import LimitOrder, OrderBookView, OrderGateway
from .state.market import PHOENIX_PROGRAM_ID, MarketHeader, load_header
from .state.models import (
    OrderId,
    OrderParams,
    PriceImprovementBehavior,
    QuoteParams,
    Side,
    StrategyParams,
    StrategyState,
    TrackedOrder,
    bid_sequence_number,
)
from .strategy.price_improvement import apply_price_improvement
from .strategy import price_math
from .utils.logging import json_msg
from .utils.time import now_ms, now_unix

logger = logging.getLogger(__name__)


def default_clock() -> Tuple[int, int]:
    """(slot, unix_timestamp). Off-venue the slot is wall-clock milliseconds."""
    return now_ms(), now_unix()


@dataclass
class TargetQuote:
    bid_price_in_ticks: int
    bid_size_in_base_lots: int
    ask_price_in_ticks: int
    ask_size_in_base_lots: int

    def price(self, side: Side) -> int:
        return self.bid_price_in_ticks if side is Side.BID else self.ask_price_in_ticks

    def size(self, side: Side) -> int:
        return self.bid_size_in_base_lots if side is Side.BID else self.ask_size_in_base_lots


@dataclass
class QuoteUpdate:
    """What one UpdateQuotes pass decided and did."""
    target: TargetQuote
    best_bid: Optional[int]
    best_ask: Optional[int]
    changed: List[Side] = field(default_factory=list)
    cancelled: List[OrderId] = field(default_factory=list)
    placed: List[Side] = field(default_factory=list)
    missing_sides: List[Side] = field(default_factory=list)


def compute_target_quote(
    fair_price_in_quote_atoms_per_raw_base_unit: int,
    header: MarketHeader,
    params: QuoteParams,
    best_bid: Optional[int],
    best_ask: Optional[int],
) -> TargetQuote:
    fair_ticks = price_math.fair_price_in_ticks(
        fair_price_in_quote_atoms_per_raw_base_unit,
        header.raw_base_units_per_base_unit,
        header.tick_size_in_quote_atoms_per_base_unit,
    )
    bid = price_math.bid_price_in_ticks(fair_ticks, params.quote_edge_in_bps)
    ask = price_math.ask_price_in_ticks(fair_ticks, params.quote_edge_in_bps)
    bid, ask = apply_price_improvement(params.price_improvement_behavior, bid, ask, best_bid, best_ask)

    size_in_quote_lots = price_math.quote_size_in_quote_lots(params.quote_size_in_quote_atoms, header.quote_lot_size)
    tick_size = header.tick_size_in_quote_lots_per_base_unit
    return TargetQuote(
        bid_price_in_ticks=bid,
        bid_size_in_base_lots=price_math.size_in_base_lots(size_in_quote_lots, bid, tick_size),
        ask_price_in_ticks=ask,
        ask_size_in_base_lots=price_math.size_in_base_lots(size_in_quote_lots, ask, tick_size),
    )


class QuotingEngine:
    """Keeps one bid and one ask resting around a fair price for each trader on a market.

    Each update_quotes call is one reconciliation pass: compute the target
    quote, diff it against the tracked orders still live in the book, cancel
    what changed, place replacements, confirm them and persist the state.
    Passes for the same (trader, market) are serialized by the store's lock,
    and the state is only written when the pass completes.
    """

    def __init__(
        self,
        store,
        book: OrderBookView,
        gateway: OrderGateway,
        program_id: str = PHOENIX_PROGRAM_ID,
        clock: Callable[[], Tuple[int, int]] = default_clock,
    ):
        self.store = store
        self.book = book
        self.gateway = gateway
        self.program_id = program_id
        self.clock = clock

    def initialize(self, trader: str, market: str, params: StrategyParams) -> StrategyState:
        quote_params = QuoteParams.from_init(params)
        load_header(self.book.market_account(), self.program_id)
        slot, ts = self.clock()
        logger.info(json_msg({'event': 'initialize', 'trader': trader, 'market': market, 'params': quote_params}))
        state = StrategyState(
            trader=trader,
            market=market,
            params=quote_params,
            last_update_slot=slot,
            last_update_unix_timestamp=ts,
        )
        with self.store.lock(trader, market):
            self.store.create(state)
        return state

    def update_quotes(self, trader: str, market: str, order_params: OrderParams) -> QuoteUpdate:
        with self.store.lock(trader, market):
            state = self.store.get(trader, market)
            if state is None:
                raise StrategyNotInitialized(f'no strategy state for trader={trader} market={market}')
            update = self._reconcile(state, order_params)
            self.store.save(state)
            return update

    def _reconcile(self, state: StrategyState, order_params: OrderParams) -> QuoteUpdate:
        state.last_update_slot, state.last_update_unix_timestamp = self.clock()
        state.params = state.params.merge(order_params.strategy_params)
        params = state.params

        header = load_header(self.book.market_account(), self.program_id)
        best_bid = self.book.best_opposing_quote(Side.BID, excluding=state.trader)
        best_ask = self.book.best_opposing_quote(Side.ASK, excluding=state.trader)
        logger.info(json_msg({'event': 'market', 'market': state.market, 'best_bid': best_bid, 'best_ask': best_ask}))

        target = compute_target_quote(
            order_params.fair_price_in_quote_atoms_per_raw_base_unit, header, params, best_bid, best_ask
        )
        logger.info(json_msg({
            'event': 'our_market',
            'market': state.market,
            'bid_sz': target.bid_size_in_base_lots,
            'bid_px': target.bid_price_in_ticks,
            'ask_px': target.ask_price_in_ticks,
            'ask_sz': target.ask_size_in_base_lots,
        }))
        update = QuoteUpdate(target=target, best_bid=best_bid, best_ask=best_ask)

        cancelled_sides = []
        for side in (Side.BID, Side.ASK):
            tracked = state.tracked(side)
            live = None if tracked.is_empty else self.book.lookup_order(tracked.order_id)
            if live is not None and live == (target.price(side), target.size(side)):
                continue
            if live is not None:
                update.cancelled.append(tracked.order_id)
                cancelled_sides.append(side)
            if target.size(side) == 0:
                # quote size is below one base lot at this price; leave the side empty
                logger.info(json_msg({'event': 'side_below_one_lot', 'market': state.market, 'side': side.value}))
                state.set_tracked(side, TrackedOrder())
                continue
            update.changed.append(side)

        order_sequence_number = self.book.next_sequence_number()

        if update.cancelled:
            logger.info(json_msg({'event': 'cancel_orders', 'market': state.market, 'orders': update.cancelled}))
            self.gateway.cancel_orders(state.trader, update.cancelled)
            for side in cancelled_sides:
                state.set_tracked(side, TrackedOrder())

        if not update.changed:
            logger.info(json_msg({'event': 'no_orders_to_change', 'market': state.market}))
            return update

        orders = [LimitOrder(side, target.price(side), target.size(side)) for side in update.changed]
        logger.info(json_msg({'event': 'place_orders', 'market': state.market, 'orders': orders, 'post_only': params.post_only}))
        try:
            if params.post_only or params.price_improvement_behavior is not PriceImprovementBehavior.JOIN:
                self.gateway.place_orders_atomic(state.trader, orders, params.post_only)
                update.placed = list(update.changed)
            else:
                for order in orders:
                    self.gateway.place_order(state.trader, order)
                    update.placed.append(order.side)
        except OrderGatewayError:
            # record whatever landed before the failure so the next pass does not place it twice
            self._confirm(state, target, update, order_sequence_number)
            self.store.save(state)
            raise

        self._confirm(state, target, update, order_sequence_number)
        return update

    def _confirm(self, state: StrategyState, target: TargetQuote, update: QuoteUpdate, order_sequence_number: int):
        for side in update.placed:
            if side is Side.BID:
                order_id = OrderId(target.bid_price_in_ticks, bid_sequence_number(order_sequence_number))
            else:
                order_id = OrderId(target.ask_price_in_ticks, order_sequence_number)
            live = self.book.lookup_order(order_id)
            if live is None:
                # filled on arrival or rejected; the next pass starts this side over
                logger.warning(json_msg({'event': 'order_not_found', 'market': state.market, 'side': side.value, 'order_id': order_id}))
                state.set_tracked(side, TrackedOrder())
                update.missing_sides.append(side)
                continue
            price, size = live
            state.set_tracked(side, TrackedOrder(order_id.order_sequence_number, price, size))
            logger.info(json_msg({'event': 'order_placed', 'market': state.market, 'side': side.value, 'order_id': order_id, 'size': size}))
            if side is Side.BID:
                order_sequence_number += 1
