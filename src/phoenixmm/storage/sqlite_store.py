from __future__ import annotations

import sqlite3
import threading
from typing import Dict, Optional, Tuple

from ..errors import StrategyAlreadyInitialized
from ..state.models import PriceImprovementBehavior, QuoteParams, StrategyState, TrackedOrder

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS strategy_state (
  trader TEXT NOT NULL,
  market TEXT NOT NULL,
  bid_order_sequence_number TEXT NOT NULL,
  bid_price_in_ticks INTEGER NOT NULL,
  initial_bid_size_in_base_lots INTEGER NOT NULL,
  ask_order_sequence_number TEXT NOT NULL,
  ask_price_in_ticks INTEGER NOT NULL,
  initial_ask_size_in_base_lots INTEGER NOT NULL,
  last_update_slot INTEGER NOT NULL,
  last_update_unix_timestamp INTEGER NOT NULL,
  quote_edge_in_bps INTEGER NOT NULL,
  quote_size_in_quote_atoms INTEGER NOT NULL,
  post_only INTEGER NOT NULL,
  price_improvement_behavior INTEGER NOT NULL,
  PRIMARY KEY (trader, market)
);
"""

# sequence numbers are u64 and overflow SQLite's signed INTEGER, so they are stored as text
_COLUMNS = (
    'trader', 'market',
    'bid_order_sequence_number', 'bid_price_in_ticks', 'initial_bid_size_in_base_lots',
    'ask_order_sequence_number', 'ask_price_in_ticks', 'initial_ask_size_in_base_lots',
    'last_update_slot', 'last_update_unix_timestamp',
    'quote_edge_in_bps', 'quote_size_in_quote_atoms', 'post_only', 'price_improvement_behavior',
)


def _to_row(s: StrategyState) -> tuple:
    return (
        s.trader, s.market,
        str(s.bid.sequence_number), s.bid.price_in_ticks, s.bid.size_in_base_lots,
        str(s.ask.sequence_number), s.ask.price_in_ticks, s.ask.size_in_base_lots,
        s.last_update_slot, s.last_update_unix_timestamp,
        s.params.quote_edge_in_bps, s.params.quote_size_in_quote_atoms,
        1 if s.params.post_only else 0, s.params.price_improvement_behavior.to_u8(),
    )


def _from_row(r: sqlite3.Row) -> StrategyState:
    return StrategyState(
        trader=r['trader'],
        market=r['market'],
        params=QuoteParams(
            quote_edge_in_bps=r['quote_edge_in_bps'],
            quote_size_in_quote_atoms=r['quote_size_in_quote_atoms'],
            price_improvement_behavior=PriceImprovementBehavior.from_u8(r['price_improvement_behavior']),
            post_only=bool(r['post_only']),
        ),
        bid=TrackedOrder(int(r['bid_order_sequence_number']), r['bid_price_in_ticks'], r['initial_bid_size_in_base_lots']),
        ask=TrackedOrder(int(r['ask_order_sequence_number']), r['ask_price_in_ticks'], r['initial_ask_size_in_base_lots']),
        last_update_slot=r['last_update_slot'],
        last_update_unix_timestamp=r['last_update_unix_timestamp'],
    )


class SQLiteStrategyStateStore:
    """StrategyState persisted in SQLite; same interface as StrategyStateStore."""

    def __init__(self, path: str):
        self.path = path
        self._locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._guard = threading.Lock()
        self.ensure_schema()

    def connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.path)
        con.row_factory = sqlite3.Row
        return con

    def ensure_schema(self) -> None:
        con = self.connect()
        try:
            con.executescript(SCHEMA_SQL)
            con.commit()
        finally:
            con.close()

    def lock(self, trader: str, market: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault((trader, market), threading.Lock())

    def get(self, trader: str, market: str) -> Optional[StrategyState]:
        con = self.connect()
        try:
            row = con.execute(
                'SELECT * FROM strategy_state WHERE trader = ? AND market = ?', (trader, market)
            ).fetchone()
        finally:
            con.close()
        return _from_row(row) if row is not None else None

    def create(self, state: StrategyState) -> None:
        placeholders = ','.join('?' for _ in _COLUMNS)
        con = self.connect()
        try:
            with con:
                con.execute(f"INSERT INTO strategy_state ({','.join(_COLUMNS)}) VALUES ({placeholders})", _to_row(state))
        except sqlite3.IntegrityError:
            raise StrategyAlreadyInitialized(f'strategy state exists for {state.key}') from None
        finally:
            con.close()

    def save(self, state: StrategyState) -> None:
        placeholders = ','.join('?' for _ in _COLUMNS)
        con = self.connect()
        try:
            with con:
                con.execute(f"INSERT OR REPLACE INTO strategy_state ({','.join(_COLUMNS)}) VALUES ({placeholders})", _to_row(state))
        finally:
            con.close()
