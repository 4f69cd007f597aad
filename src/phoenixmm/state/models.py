from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from ..errors import EdgeMustBeNonZero, InvalidStrategyParams

logger = logging.getLogger(__name__)

U64_MAX = (1 << 64) - 1


class Side(Enum):
    BID = 'BID'
    ASK = 'ASK'

    @classmethod
    def from_order_sequence_number(cls, sequence_number: int) -> 'Side':
        # bids carry the complemented counter, so their top bit is set
        if sequence_number >> 63:
            return cls.BID
        return cls.ASK


class PriceImprovementBehavior(Enum):
    JOIN = 0
    DIME = 1
    IGNORE = 2

    def to_u8(self) -> int:
        return self.value

    @classmethod
    def from_u8(cls, byte: int) -> 'PriceImprovementBehavior':
        try:
            return cls(byte)
        except ValueError:
            raise ValueError(f'Invalid PriceImprovementBehavior: {byte!r}') from None

    @classmethod
    def parse(cls, raw: Optional[str]) -> 'PriceImprovementBehavior':
        """Parse 'join'|'dime'|'ignore' (any case). Unknown values fall back to JOIN."""
        name = (raw or '').strip().upper()
        if name in cls.__members__:
            return cls[name]
        logger.warning('unknown price improvement behavior %r, using join', raw)
        return cls.JOIN


def bid_sequence_number(counter: int) -> int:
    """Bid order ids use the bitwise complement of the venue's raw counter."""
    return ~counter & U64_MAX


@dataclass(frozen=True)
class OrderId:
    price_in_ticks: int
    order_sequence_number: int

    @property
    def side(self) -> Side:
        return Side.from_order_sequence_number(self.order_sequence_number)


@dataclass
class StrategyParams:
    """Partial parameter set sent with Initialize and UpdateQuotes.

    None means "keep the current value". post_only is always taken as given.
    """
    quote_edge_in_bps: Optional[int] = None
    quote_size_in_quote_atoms: Optional[int] = None
    price_improvement_behavior: Optional[PriceImprovementBehavior] = None
    post_only: bool = False


@dataclass(frozen=True)
class QuoteParams:
    quote_edge_in_bps: int
    quote_size_in_quote_atoms: int
    price_improvement_behavior: PriceImprovementBehavior
    post_only: bool

    @classmethod
    def from_init(cls, params: StrategyParams) -> 'QuoteParams':
        if (
            params.quote_edge_in_bps is None
            or params.quote_size_in_quote_atoms is None
            or params.price_improvement_behavior is None
        ):
            raise InvalidStrategyParams('edge, size and price improvement behavior are all required')
        if params.quote_edge_in_bps <= 0:
            raise EdgeMustBeNonZero('quote_edge_in_bps must be > 0')
        return cls(
            quote_edge_in_bps=int(params.quote_edge_in_bps),
            quote_size_in_quote_atoms=int(params.quote_size_in_quote_atoms),
            price_improvement_behavior=params.price_improvement_behavior,
            post_only=bool(params.post_only),
        )

    def merge(self, update: StrategyParams) -> 'QuoteParams':
        merged = self
        # an edge of 0 on update is a client default, not an instruction
        if update.quote_edge_in_bps is not None and update.quote_edge_in_bps > 0:
            merged = replace(merged, quote_edge_in_bps=int(update.quote_edge_in_bps))
        if update.quote_size_in_quote_atoms is not None:
            merged = replace(merged, quote_size_in_quote_atoms=int(update.quote_size_in_quote_atoms))
        if update.price_improvement_behavior is not None:
            merged = replace(merged, price_improvement_behavior=update.price_improvement_behavior)
        return replace(merged, post_only=bool(update.post_only))


@dataclass
class OrderParams:
    fair_price_in_quote_atoms_per_raw_base_unit: int
    strategy_params: StrategyParams = field(default_factory=StrategyParams)


@dataclass
class TrackedOrder:
    """The resting order we believe we have on one side. size 0 means none."""
    sequence_number: int = 0
    price_in_ticks: int = 0
    size_in_base_lots: int = 0

    @property
    def order_id(self) -> OrderId:
        return OrderId(self.price_in_ticks, self.sequence_number)

    @property
    def is_empty(self) -> bool:
        return self.size_in_base_lots == 0


@dataclass
class StrategyState:
    trader: str
    market: str
    params: QuoteParams
    bid: TrackedOrder = field(default_factory=TrackedOrder)
    ask: TrackedOrder = field(default_factory=TrackedOrder)
    last_update_slot: int = 0
    last_update_unix_timestamp: int = 0

    @property
    def key(self):
        return (self.trader, self.market)

    def tracked(self, side: Side) -> TrackedOrder:
        return self.bid if side is Side.BID else self.ask

    def set_tracked(self, side: Side, order: TrackedOrder) -> None:
        if side is Side.BID:
            self.bid = order
        else:
            self.ask = order

    def copy(self) -> 'StrategyState':
        return replace(self, bid=replace(self.bid), ask=replace(self.ask))
