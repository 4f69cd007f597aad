from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .state.models import PriceImprovementBehavior

NETWORKS = {
    'devnet': 'https://api.devnet.solana.com',
    'dev': 'https://api.devnet.solana.com',
    'd': 'https://api.devnet.solana.com',
    'mainnet': 'https://api.mainnet-beta.solana.com',
    'main': 'https://api.mainnet-beta.solana.com',
    'm': 'https://api.mainnet-beta.solana.com',
    'mainnet-beta': 'https://api.mainnet-beta.solana.com',
    'localnet': 'http://localhost:8899',
    'localhost': 'http://localhost:8899',
    'l': 'http://localhost:8899',
    'local': 'http://localhost:8899',
}


def get_network(network: str) -> str:
    return NETWORKS.get(network, network)


@dataclass(frozen=True)
class MMConfig:
    # Market
    market: str
    trader: str
    ticker: str

    # Quoting
    quote_refresh_ms: int
    quote_edge_in_bps: int
    quote_size: int
    price_improvement_behavior: PriceImprovementBehavior
    post_only: bool
    price_scale: int

    # Price feed
    price_feed_url: str

    # Execution
    trading_enabled: bool
    sqlite_path: Optional[str]

    # Host-owned network / credentials
    url: str
    keypair_path: str
    commitment: str

    # Paper venue geometry
    paper_tick_size: int
    paper_quote_lot_size: int
    paper_base_lot_size: int
    paper_raw_base_units: int

    # Logging
    log_level: str
    log_file: Optional[str]


def _get_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def load_config() -> MMConfig:
    return MMConfig(
        market=os.getenv("MM_MARKET", "").strip(),
        trader=os.getenv("MM_TRADER", "paper-trader").strip(),
        ticker=os.getenv("MM_TICKER", "SOL-USD"),
        quote_refresh_ms=_get_int("MM_QUOTE_REFRESH_MS", 2000),
        quote_edge_in_bps=_get_int("MM_QUOTE_EDGE_BPS", 3),
        quote_size=_get_int("MM_QUOTE_SIZE", 100_000_000),
        price_improvement_behavior=PriceImprovementBehavior.parse(os.getenv("MM_PRICE_IMPROVEMENT", "join")),
        post_only=_get_bool("MM_POST_ONLY", True),
        price_scale=_get_int("MM_PRICE_SCALE", 1_000_000),
        price_feed_url=os.getenv("MM_PRICE_FEED_URL", "https://api.coinbase.com").rstrip("/"),
        trading_enabled=_get_bool("MM_TRADING_ENABLED", False),
        sqlite_path=os.getenv("MM_SQLITE_PATH") or None,
        url=get_network(os.getenv("MM_URL", "local")),
        keypair_path=os.getenv("MM_KEYPAIR_PATH", "~/.config/solana/id.json"),
        commitment=os.getenv("MM_COMMITMENT", "confirmed"),
        paper_tick_size=_get_int("MM_PAPER_TICK_SIZE", 1000),
        paper_quote_lot_size=_get_int("MM_PAPER_QUOTE_LOT_SIZE", 1),
        paper_base_lot_size=_get_int("MM_PAPER_BASE_LOT_SIZE", 1000),
        paper_raw_base_units=_get_int("MM_PAPER_RAW_BASE_UNITS", 1),
        log_level=os.getenv("MM_LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("MM_LOG_FILE") or None,
    )
