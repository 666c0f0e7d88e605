import math

import numpy as np
import pytest

from surprisemetrics.calculator import MetricsCalculator
from surprisemetrics.models import Quote, Trade
from surprisemetrics.simd_ops import compute_returns


def _trades_from_prices(prices, start=1_000_000_000, step=1_000_000):
    return [
        Trade(timestamp=start + i * step, price=price, size=100)
        for i, price in enumerate(prices)
    ]


def _jump_prices(count=51, jump_at=30, small=0.001, jump=0.05):
    prices = [100.0]
    for i in range(count - 1):
        move = jump if i == jump_at else (small if i % 2 == 0 else -small)
        prices.append(prices[-1] * math.exp(move))
    return prices


def test_metric_count_and_timestamps_follow_window():
    trades = _trades_from_prices(_jump_prices(count=41))
    calc = MetricsCalculator(window_size=10)
    calc.process_trades(trades)
    result = calc.metrics()
    assert len(result) == len(trades) - 1 - 10
    assert [m.timestamp for m in result] == [t.timestamp for t in trades[10:40]]


def test_trade_intensity_is_zero():
    calc = MetricsCalculator(window_size=5)
    calc.process_trades(_trades_from_prices(_jump_prices(count=20)))
    assert calc.metrics()
    assert all(m.trade_intensity_zscore == 0.0 for m in calc.metrics())


def test_detects_single_large_jump():
    trades = _trades_from_prices(_jump_prices(count=51, jump_at=30))
    calc = MetricsCalculator(window_size=10)
    calc.process_trades(trades)
    flagged = [m.timestamp for m in calc.metrics() if m.jump_detected]
    assert flagged == [trades[30].timestamp]


def test_jump_flag_matches_critical_value():
    trades = _trades_from_prices(_jump_prices(count=51, jump_at=25))
    calc = MetricsCalculator(window_size=10)
    calc.process_trades(trades)
    critical = 0.49 * math.sqrt(2.0 * math.log(len(trades) - 1))
    for metric in calc.metrics():
        assert metric.jump_detected == (metric.lee_mykland_stat > critical + 1e-6) or (
            abs(metric.lee_mykland_stat - critical) < 1e-5
        )


def test_constant_prices_give_zero_statistics():
    calc = MetricsCalculator(window_size=3)
    calc.process_trades(_trades_from_prices([50.0] * 12))
    result = calc.metrics()
    assert len(result) == 8
    for metric in result:
        assert metric.standardized_return == 0.0
        assert metric.lee_mykland_stat == 0.0
        assert metric.bns_stat == 0.0
        assert metric.jump_detected is False


def test_standardized_return_uses_constant_sigma_without_garch_memory():
    prices = _jump_prices(count=30)
    calc = MetricsCalculator(window_size=4)
    calc.set_garch_params(1e-4, 0.0, 0.0)
    calc.process_trades(_trades_from_prices(prices))
    returns = compute_returns(prices)
    sigma = math.sqrt(1e-4)
    for offset, metric in enumerate(calc.metrics()):
        assert metric.standardized_return == pytest.approx(
            float(returns[4 + offset]) / sigma, rel=1e-4
        )


def test_unit_persistence_gives_infinite_sigma_and_zero_standardized_return():
    calc = MetricsCalculator(window_size=2)
    calc.set_garch_params(1e-5, 0.5, 0.5)
    calc.process_trades(_trades_from_prices(_jump_prices(count=10)))
    assert calc.metrics()
    assert all(m.standardized_return == 0.0 for m in calc.metrics())


def test_bns_zero_where_realized_variance_window_runs_out():
    trades = _trades_from_prices(_jump_prices(count=41, jump_at=15))
    window = 10
    calc = MetricsCalculator(window_size=window)
    calc.process_trades(trades)
    n_returns = len(trades) - 1
    for offset, metric in enumerate(calc.metrics()):
        index = window + offset
        assert metric.bns_stat >= 0.0
        if index >= n_returns - window:
            assert metric.bns_stat == 0.0


def test_garch_params_round_trip():
    calc = MetricsCalculator()
    calc.set_garch_params(0.00001, 0.05, 0.94)
    assert calc.garch_params == (0.00001, 0.05, 0.94)


def test_negative_window_is_rejected():
    with pytest.raises(ValueError):
        MetricsCalculator(window_size=-1)
    calc = MetricsCalculator()
    with pytest.raises(ValueError):
        calc.window_size = -5


def test_empty_and_single_trade_keep_previous_metrics():
    calc = MetricsCalculator(window_size=3)
    calc.process_trades(_trades_from_prices(_jump_prices(count=12)))
    before = calc.metrics()
    assert len(before) == 8
    calc.process_trades([])
    assert calc.metrics() == before
    calc.process_trades([Trade(timestamp=1, price=10.0, size=1)])
    assert calc.metrics() == before


def test_window_larger_than_data_gives_no_metrics():
    calc = MetricsCalculator(window_size=100)
    calc.process_trades(_trades_from_prices(_jump_prices(count=20)))
    assert calc.metrics() == []


def test_metrics_returns_a_copy():
    calc = MetricsCalculator(window_size=2)
    calc.process_trades(_trades_from_prices(_jump_prices(count=10)))
    snapshot = calc.metrics()
    snapshot.clear()
    assert len(calc.metrics()) == 7


def test_process_quotes_records_quotes():
    quotes = [
        Quote(timestamp=1, bid_price=9.9, ask_price=10.1, bid_size=5, ask_size=7),
        Quote(timestamp=2, bid_price=9.8, ask_price=10.2, bid_size=3, ask_size=4),
    ]
    calc = MetricsCalculator()
    calc.process_quotes(iter(quotes))
    assert calc.quotes == quotes
    assert calc.metrics() == []


def test_batch_matches_process_trades():
    prices = _jump_prices(count=41, jump_at=20)
    timestamps = np.arange(41, dtype=np.int64) * 1000
    sizes = np.full(41, 100, dtype=np.int64)

    batch_calc = MetricsCalculator(window_size=10)
    rows = batch_calc.process_trades_batch(timestamps, np.array(prices), sizes)

    reference = MetricsCalculator(window_size=10)
    reference.process_trades(
        [
            Trade(timestamp=int(t), price=float(np.float32(p)), size=100)
            for t, p in zip(timestamps, prices)
        ]
    )
    expected = reference.metrics()

    assert rows.dtype == np.float32
    assert rows.shape == (len(expected), 6)
    np.testing.assert_array_equal(
        rows[:, 0], np.array([m.timestamp for m in expected], dtype=np.float32)
    )
    np.testing.assert_allclose(
        rows[:, 2], [m.lee_mykland_stat for m in expected], rtol=1e-6
    )
    assert set(rows[:, 5].tolist()) <= {0.0, 1.0}
    assert rows[:, 5].sum() == sum(m.jump_detected for m in expected)


def test_batch_rejects_mismatched_lengths():
    calc = MetricsCalculator()
    with pytest.raises(ValueError):
        calc.process_trades_batch([1, 2, 3], [10.0, 11.0], [1, 1, 1])


def test_batch_with_too_little_data_returns_empty_rows():
    calc = MetricsCalculator(window_size=5)
    rows = calc.process_trades_batch([1, 2], [10.0, 10.5], [1, 1])
    assert rows.shape == (0, 6)