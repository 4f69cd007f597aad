import asyncio
from dataclasses import replace
from decimal import Decimal

import pytest

from phoenixmm.config import load_config
from phoenixmm.errors import ConfigurationError, PriceFeedError
from phoenixmm.runner import Runner
from phoenixmm.state.models import Side


class FakeFeed:
    def __init__(self, prices):
        self.prices = list(prices)
        self.calls = 0

    def get_price(self, ticker):
        self.calls += 1
        px = self.prices.pop(0)
        if isinstance(px, Exception):
            raise px
        return px


@pytest.fixture
def cfg(monkeypatch):
    for name in ('MM_SQLITE_PATH', 'MM_TRADING_ENABLED', 'MM_QUOTE_EDGE_BPS', 'MM_QUOTE_SIZE', 'MM_POST_ONLY', 'MM_PRICE_IMPROVEMENT'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('MM_MARKET', 'SOL-USDC')
    monkeypatch.setenv('MM_TRADER', 'paper')
    return load_config()


def test_paper_cycle_quotes_both_sides(cfg):
    runner = Runner.build(cfg, feed=FakeFeed([Decimal('20'), Decimal('20')]))
    runner.ensure_initialized()

    upd = asyncio.run(runner.run_once())
    assert upd.placed == [Side.BID, Side.ASK]
    st = runner.engine.store.get('paper', 'SOL-USDC')
    assert st.bid.price_in_ticks == 19994
    assert st.ask.price_in_ticks == 20006
    assert st.bid.size_in_base_lots == 5
    assert st.ask.size_in_base_lots == 4

    upd = asyncio.run(runner.run_once())
    assert upd.changed == []


def test_feed_failure_skips_cycle(cfg):
    feed = FakeFeed([PriceFeedError('down'), Decimal('20')])
    runner = Runner.build(cfg, feed=feed)
    runner.ensure_initialized()

    assert asyncio.run(runner.run_once()) is None
    st = runner.engine.store.get('paper', 'SOL-USDC')
    assert st.bid.is_empty and st.ask.is_empty

    assert asyncio.run(runner.run_once()) is not None


def test_ensure_initialized_is_idempotent(cfg, tmp_path):
    cfg = replace(cfg, sqlite_path=str(tmp_path / 'mm.sqlite3'))
    runner = Runner.build(cfg, feed=FakeFeed([]))
    runner.ensure_initialized()
    runner.ensure_initialized()
    assert runner.engine.store.get('paper', 'SOL-USDC').params.quote_edge_in_bps == 3


def test_run_forever_stops(cfg):
    cfg = replace(cfg, quote_refresh_ms=1)
    feed = FakeFeed([Decimal('20')] * 100)
    runner = Runner.build(cfg, feed=feed)

    async def _run():
        task = asyncio.create_task(runner.run_forever())
        while feed.calls < 3:
            await asyncio.sleep(0.01)
        runner.stop()
        await asyncio.wait_for(task, timeout=5)

    asyncio.run(_run())
    assert feed.calls >= 3


def test_missing_market_rejected(cfg):
    with pytest.raises(ConfigurationError):
        Runner.build(replace(cfg, market=''))


def test_live_trading_needs_a_gateway(cfg):
    with pytest.raises(ConfigurationError):
        Runner.build(replace(cfg, trading_enabled=True))
