from phoenixmm.state.models import PriceImprovementBehavior as PIB
from phoenixmm.strategy.price_improvement import apply_price_improvement


def test_join_never_beats_best():
    assert apply_price_improvement(PIB.JOIN, 9997, 10003, 9990, 10010) == (9990, 10010)
    # already behind the best: unchanged
    assert apply_price_improvement(PIB.JOIN, 9980, 10020, 9990, 10010) == (9980, 10020)


def test_dime_bounds_improvement_to_one_tick():
    bid, ask = apply_price_improvement(PIB.DIME, 9997, 10003, 9990, 10010)
    assert (bid, ask) == (9991, 10009)
    assert bid <= 9990 + 1 and ask >= 10010 - 1


def test_ignore_is_untouched():
    assert apply_price_improvement(PIB.IGNORE, 9997, 10003, 9990, 10010) == (9997, 10003)


def test_empty_side_imposes_no_constraint():
    assert apply_price_improvement(PIB.JOIN, 9997, 10003, None, None) == (9997, 10003)
    assert apply_price_improvement(PIB.DIME, 9997, 10003, 9990, None) == (9991, 10003)
