"""Run the quoting loop.

Usage:
    python -m phoenixmm.main MARKET --ticker SOL-USD --quote-edge-in-bps 3 --price-improvement-behavior join

Flags override the MM_* environment variables (a .env file is read first).
"""
import argparse
import asyncio
import logging
import os
import signal
from dataclasses import replace

from dotenv import load_dotenv

from .config import MMConfig, get_network, load_config
from .errors import StrategyError
from .runner import Runner
from .state.models import PriceImprovementBehavior
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _parse_bool(raw: str) -> bool:
    v = raw.strip().lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got {raw!r}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="phoenixmm", description="Quote both sides of a market around a spot price")
    parser.add_argument("market", nargs="?", default=None, help="Market to provide on")
    parser.add_argument("-k", "--keypair-path", default=None, help="Keypair path, owned by the host environment")
    parser.add_argument("-u", "--url", default=None, help='RPC endpoint; "local", "dev", "main" select the defaults')
    parser.add_argument("-c", "--commitment", default=None, help="Commitment level")
    parser.add_argument("--trader", default=None, help="Trader identity the strategy state is keyed by")
    parser.add_argument("-t", "--ticker", default=None, help="Price feed ticker, e.g. SOL-USD (use USD for USDC markets)")
    parser.add_argument("--quote-refresh-frequency-in-ms", type=int, default=None)
    parser.add_argument("--quote-edge-in-bps", type=int, default=None)
    parser.add_argument("--quote-size", type=int, default=None, help="Quote size per side in quote atoms")
    parser.add_argument("--price-improvement-behavior", default=None, help="join | dime | ignore")
    parser.add_argument("--post-only", type=_parse_bool, default=None)
    return parser.parse_args(argv)


def apply_args(cfg: MMConfig, args) -> MMConfig:
    overrides = {}
    if args.market:
        overrides["market"] = args.market
    if args.trader:
        overrides["trader"] = args.trader
    if args.ticker:
        overrides["ticker"] = args.ticker
    if args.keypair_path:
        overrides["keypair_path"] = args.keypair_path
    if args.url:
        overrides["url"] = get_network(args.url)
    if args.commitment:
        overrides["commitment"] = args.commitment
    if args.quote_refresh_frequency_in_ms is not None:
        overrides["quote_refresh_ms"] = args.quote_refresh_frequency_in_ms
    if args.quote_edge_in_bps is not None:
        overrides["quote_edge_in_bps"] = args.quote_edge_in_bps
    if args.quote_size is not None:
        overrides["quote_size"] = args.quote_size
    if args.price_improvement_behavior is not None:
        overrides["price_improvement_behavior"] = PriceImprovementBehavior.parse(args.price_improvement_behavior)
    if args.post_only is not None:
        overrides["post_only"] = args.post_only
    return replace(cfg, **overrides)


def run(argv=None) -> int:
    load_dotenv(dotenv_path=os.getenv("DOTENV_PATH", None))
    args = parse_args(argv)
    cfg = apply_args(load_config(), args)
    setup_logging(getattr(logging, cfg.log_level, logging.INFO), cfg.log_file)

    try:
        runner = Runner.build(cfg)
    except StrategyError as e:
        logger.error("failed_to_build_runner err=%r", e)
        return 1

    loop = asyncio.new_event_loop()

    def _stop(*_):
        runner.stop()

    for s in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(s, _stop)
        except NotImplementedError:
            pass

    try:
        loop.run_until_complete(runner.run_forever())
        return 0
    except StrategyError:
        logger.exception("runner stopped")
        return 1
    finally:
        loop.close()


if __name__ == '__main__':
    raise SystemExit(run())
