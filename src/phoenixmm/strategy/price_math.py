"""
Fixed-point price and size helpers.

All quantities are integers; every division floors.
"""
from ..errors import ArithmeticGuardError

BPS_DENOMINATOR = 10_000


def fair_price_in_ticks(fair_price_per_raw_base_unit: int, raw_base_units_per_base_unit: int, tick_size_in_quote_atoms_per_base_unit: int) -> int:
    if tick_size_in_quote_atoms_per_base_unit <= 0:
        raise ArithmeticGuardError('tick size must be positive')
    return fair_price_per_raw_base_unit * raw_base_units_per_base_unit // tick_size_in_quote_atoms_per_base_unit


def edge_in_ticks(fair_ticks: int, edge_bps: int) -> int:
    return edge_bps * fair_ticks // BPS_DENOMINATOR


def bid_price_in_ticks(fair_ticks: int, edge_bps: int) -> int:
    return fair_ticks - edge_in_ticks(fair_ticks, edge_bps)


def ask_price_in_ticks(fair_ticks: int, edge_bps: int) -> int:
    return fair_ticks + edge_in_ticks(fair_ticks, edge_bps)


def quote_size_in_quote_lots(quote_size_in_quote_atoms: int, quote_lot_size: int) -> int:
    return quote_size_in_quote_atoms * quote_lot_size


def size_in_base_lots(size_in_quote_lots: int, price_in_ticks: int, tick_size_in_quote_lots_per_base_unit: int) -> int:
    """Order size for a notional at a price. Bid and ask sizes differ on purpose."""
    if price_in_ticks <= 0:
        raise ArithmeticGuardError(f'price must be positive, got {price_in_ticks} ticks')
    if tick_size_in_quote_lots_per_base_unit <= 0:
        raise ArithmeticGuardError('tick size in quote lots must be positive')
    return size_in_quote_lots // (price_in_ticks * tick_size_in_quote_lots_per_base_unit)
