from typing import Optional, Tuple

from ..state.models import PriceImprovementBehavior


def apply_price_improvement(
    behavior: PriceImprovementBehavior,
    bid_price_in_ticks: int,
    ask_price_in_ticks: int,
    best_bid: Optional[int],
    best_ask: Optional[int],
) -> Tuple[int, int]:
    """Clamp our prices against the best quotes of other traders.

    JOIN never posts better than the current best; DIME improves by at most
    one tick; IGNORE leaves prices alone. A None best means that side of the
    book has no other orders and imposes no constraint.
    """
    bid, ask = bid_price_in_ticks, ask_price_in_ticks
    if behavior is PriceImprovementBehavior.JOIN:
        if best_ask is not None:
            ask = max(ask, best_ask)
        if best_bid is not None:
            bid = min(bid, best_bid)
    elif behavior is PriceImprovementBehavior.DIME:
        if best_ask is not None:
            ask = max(ask, best_ask - 1)
        if best_bid is not None:
            bid = min(bid, best_bid + 1)
    return bid, ask
