import pytest

from phoenixmm.engine import QuotingEngine
from phoenixmm.errors import (
    EdgeMustBeNonZero,
    FailedToDeserializeMarket,
    InvalidStrategyParams,
    InvalidVenueProgram,
    StrategyAlreadyInitialized,
)
from phoenixmm.providers.paper import PaperVenue
from phoenixmm.state.market import PHOENIX_PROGRAM_ID, MarketAccount, MarketHeader
from phoenixmm.state.models import PriceImprovementBehavior, StrategyParams, TrackedOrder
from phoenixmm.state.store import StrategyStateStore

HEADER = MarketHeader(raw_base_units_per_base_unit=1, tick_size_in_quote_atoms_per_base_unit=10_000, base_lot_size=1_000, quote_lot_size=1)


class FakeBook:
    def __init__(self, account):
        self.account = account

    def market_account(self):
        return self.account


def make_engine(book=None):
    book = book or PaperVenue(HEADER)
    store = StrategyStateStore()
    return QuotingEngine(store, book, book, clock=lambda: (42, 1_700_000_000)), store


def test_initialize_creates_zeroed_state():
    eng, store = make_engine()
    eng.initialize('mm', 'M1', StrategyParams(3, 1000, PriceImprovementBehavior.DIME, True))
    st = store.get('mm', 'M1')
    assert st.bid == TrackedOrder() and st.ask == TrackedOrder()
    assert st.params.quote_edge_in_bps == 3
    assert st.params.price_improvement_behavior is PriceImprovementBehavior.DIME
    assert st.params.post_only is True
    assert (st.last_update_slot, st.last_update_unix_timestamp) == (42, 1_700_000_000)


def test_zero_edge_rejected():
    eng, store = make_engine()
    with pytest.raises(EdgeMustBeNonZero):
        eng.initialize('mm', 'M1', StrategyParams(0, 1000, PriceImprovementBehavior.JOIN))
    assert store.get('mm', 'M1') is None


@pytest.mark.parametrize('params', [
    StrategyParams(None, 1000, PriceImprovementBehavior.JOIN),
    StrategyParams(3, None, PriceImprovementBehavior.JOIN),
    StrategyParams(3, 1000, None),
])
def test_missing_param_rejected(params):
    eng, store = make_engine()
    with pytest.raises(InvalidStrategyParams):
        eng.initialize('mm', 'M1', params)


def test_foreign_owner_rejected():
    eng, _ = make_engine(FakeBook(MarketAccount(owner='SomeOtherProgram', data=HEADER.to_bytes())))
    with pytest.raises(InvalidVenueProgram):
        eng.initialize('mm', 'M1', StrategyParams(3, 1000, PriceImprovementBehavior.JOIN))


def test_bad_discriminant_rejected():
    data = bytearray(HEADER.to_bytes())
    data[0] ^= 0xFF
    eng, _ = make_engine(FakeBook(MarketAccount(owner=PHOENIX_PROGRAM_ID, data=bytes(data))))
    with pytest.raises(InvalidVenueProgram):
        eng.initialize('mm', 'M1', StrategyParams(3, 1000, PriceImprovementBehavior.JOIN))


def test_truncated_market_rejected():
    eng, _ = make_engine(FakeBook(MarketAccount(owner=PHOENIX_PROGRAM_ID, data=HEADER.to_bytes()[:10])))
    with pytest.raises(FailedToDeserializeMarket):
        eng.initialize('mm', 'M1', StrategyParams(3, 1000, PriceImprovementBehavior.JOIN))


def test_initialize_twice_rejected():
    eng, _ = make_engine()
    eng.initialize('mm', 'M1', StrategyParams(3, 1000, PriceImprovementBehavior.JOIN))
    with pytest.raises(StrategyAlreadyInitialized):
        eng.initialize('mm', 'M1', StrategyParams(5, 1000, PriceImprovementBehavior.JOIN))
