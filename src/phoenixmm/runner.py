from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .config import MMConfig, load_config
from .engine import QuoteUpdate, QuotingEngine
from .errors import ArithmeticGuardError, ConfigurationError, TransportError
from .providers.base import OrderBookView, OrderGateway, PriceFeed
from .providers.paper import PaperVenue
from .providers.price_feed import CoinbasePriceFeed, to_quote_atoms_per_raw_base_unit
from .state.market import MarketHeader
from .state.models import OrderParams, StrategyParams
from .state.store import StrategyStateStore
from .storage.sqlite_store import SQLiteStrategyStateStore
from .utils.logging import json_msg

log = logging.getLogger(__name__)


@dataclass
class Runner:
    """Fetch a fair price, run one quote update, sleep; repeat.

    Cycles never overlap. A failed price fetch or order submission is logged
    and the next cycle starts from the stored StrategyState.
    """
    cfg: MMConfig
    engine: QuotingEngine
    feed: PriceFeed
    _running: bool = False

    @classmethod
    def build(
        cls,
        cfg: Optional[MMConfig] = None,
        book: Optional[OrderBookView] = None,
        gateway: Optional[OrderGateway] = None,
        feed: Optional[PriceFeed] = None,
    ) -> "Runner":
        if cfg is None:
            load_dotenv(dotenv_path=os.getenv("DOTENV_PATH", None))
            cfg = load_config()
        if not cfg.market:
            raise ConfigurationError("Missing MM_MARKET")

        if book is None or gateway is None:
            if cfg.trading_enabled:
                raise ConfigurationError("MM_TRADING_ENABLED requires a venue book and gateway from the host")
            venue = PaperVenue(
                MarketHeader(
                    raw_base_units_per_base_unit=cfg.paper_raw_base_units,
                    tick_size_in_quote_atoms_per_base_unit=cfg.paper_tick_size,
                    base_lot_size=cfg.paper_base_lot_size,
                    quote_lot_size=cfg.paper_quote_lot_size,
                )
            )
            book = book or venue
            gateway = gateway or venue

        store = SQLiteStrategyStateStore(cfg.sqlite_path) if cfg.sqlite_path else StrategyStateStore()
        engine = QuotingEngine(store, book, gateway)
        return cls(cfg=cfg, engine=engine, feed=feed or CoinbasePriceFeed(cfg.price_feed_url))

    def strategy_params(self) -> StrategyParams:
        return StrategyParams(
            quote_edge_in_bps=self.cfg.quote_edge_in_bps,
            quote_size_in_quote_atoms=self.cfg.quote_size,
            price_improvement_behavior=self.cfg.price_improvement_behavior,
            post_only=self.cfg.post_only,
        )

    def ensure_initialized(self) -> None:
        if self.engine.store.get(self.cfg.trader, self.cfg.market) is not None:
            return
        log.info(json_msg({"event": "create_strategy", "trader": self.cfg.trader, "market": self.cfg.market}))
        self.engine.initialize(self.cfg.trader, self.cfg.market, self.strategy_params())

    async def run_once(self) -> Optional[QuoteUpdate]:
        try:
            price = await asyncio.to_thread(self.feed.get_price, self.cfg.ticker)
        except TransportError:
            log.exception("price fetch failed")
            return None

        fair = to_quote_atoms_per_raw_base_unit(price, self.cfg.price_scale)
        log.info(json_msg({"event": "fair_price", "ticker": self.cfg.ticker, "price": str(price), "fair_atoms": fair}))

        order_params = OrderParams(fair_price_in_quote_atoms_per_raw_base_unit=fair, strategy_params=self.strategy_params())
        try:
            return await asyncio.to_thread(self.engine.update_quotes, self.cfg.trader, self.cfg.market, order_params)
        except (TransportError, ArithmeticGuardError) as e:
            log.warning(json_msg({"event": "update_quotes_failed", "error": repr(e)}))
            return None

    async def run_forever(self) -> None:
        self._running = True
        await asyncio.to_thread(self.ensure_initialized)
        log.info(json_msg({"event": "mm_start", "market": self.cfg.market, "trading_enabled": self.cfg.trading_enabled}))
        try:
            while self._running:
                await self.run_once()
                await asyncio.sleep(self.cfg.quote_refresh_ms / 1000.0)
        finally:
            self._running = False

    def stop(self) -> None:
        self._running = False
