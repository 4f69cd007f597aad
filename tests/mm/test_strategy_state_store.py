from phoenixmm.state.models import PriceImprovementBehavior, QuoteParams, StrategyState, TrackedOrder, U64_MAX
from phoenixmm.state.store import StrategyStateStore
from phoenixmm.storage.sqlite_store import SQLiteStrategyStateStore
import pytest

from phoenixmm.errors import StrategyAlreadyInitialized


def _state():
    return StrategyState(
        trader='mm',
        market='M1',
        params=QuoteParams(3, 1000, PriceImprovementBehavior.IGNORE, True),
        bid=TrackedOrder(U64_MAX - 7, 9997, 10),
        ask=TrackedOrder(8, 10003, 9),
        last_update_slot=5,
        last_update_unix_timestamp=1_700_000_000,
    )


def test_store_hands_out_copies():
    store = StrategyStateStore()
    store.create(_state())
    st = store.get('mm', 'M1')
    st.bid.size_in_base_lots = 0
    assert store.get('mm', 'M1').bid.size_in_base_lots == 10


def test_store_lock_is_per_key():
    store = StrategyStateStore()
    assert store.lock('mm', 'M1') is store.lock('mm', 'M1')
    assert store.lock('mm', 'M1') is not store.lock('mm', 'M2')


def test_sqlite_round_trip(tmp_path):
    store = SQLiteStrategyStateStore(str(tmp_path / 'mm.sqlite3'))
    assert store.get('mm', 'M1') is None
    store.create(_state())
    assert store.get('mm', 'M1') == _state()

    st = store.get('mm', 'M1')
    st.ask = TrackedOrder()
    store.save(st)
    assert store.get('mm', 'M1').ask.is_empty


def test_sqlite_create_twice(tmp_path):
    store = SQLiteStrategyStateStore(str(tmp_path / 'mm.sqlite3'))
    store.create(_state())
    with pytest.raises(StrategyAlreadyInitialized):
        store.create(_state())
