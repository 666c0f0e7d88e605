"""Per-trade surprise metrics: GARCH-standardised returns and jump tests."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

import numpy as np

from surprisemetrics.models import Quote, SurpriseMetrics, Trade
from surprisemetrics.simd_ops import (
    compute_bipower_variation,
    compute_realized_variance,
    compute_returns,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 100
DEFAULT_JUMP_THRESHOLD = 2.0
DEFAULT_GARCH_OMEGA = 0.00001
DEFAULT_GARCH_ALPHA = 0.05
DEFAULT_GARCH_BETA = 0.94

# Lee-Mykland scaling of the critical value.
BETA_STAR = np.float32(0.49)

METRIC_COLUMNS = 6


class MetricsCalculator:
    """Computes surprise metrics for a batch of trades.

    For every trade past the first ``window_size`` returns the calculator
    reports the GARCH(1,1)-standardised log return, a Lee-Mykland statistic
    scaled by local bipower variation, a BNS-style ratio of the jump
    component to realized variance, and a jump flag.
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        jump_threshold: float = DEFAULT_JUMP_THRESHOLD,
        garch_omega: float = DEFAULT_GARCH_OMEGA,
        garch_alpha: float = DEFAULT_GARCH_ALPHA,
        garch_beta: float = DEFAULT_GARCH_BETA,
    ) -> None:
        self.window_size = window_size
        self.jump_threshold = float(jump_threshold)
        self.set_garch_params(garch_omega, garch_alpha, garch_beta)
        self.quotes: list[Quote] = []
        self._metrics: list[SurpriseMetrics] = []

    @property
    def window_size(self) -> int:
        """Number of leading returns skipped and used for realized variance."""
        return self._window_size

    @window_size.setter
    def window_size(self, window: int) -> None:
        window = int(window)
        if window < 0:
            raise ValueError(f"window size must not be negative, got {window}")
        self._window_size = window

    @property
    def garch_params(self) -> tuple[float, float, float]:
        """The GARCH(1,1) parameters ``(omega, alpha, beta)``."""
        return (self._omega, self._alpha, self._beta)

    def set_garch_params(self, omega: float, alpha: float, beta: float) -> None:
        """Set the GARCH(1,1) parameters used to estimate volatility."""
        self._omega = float(omega)
        self._alpha = float(alpha)
        self._beta = float(beta)

    def process_quotes(self, quotes: Iterable[Quote]) -> None:
        """Record quotes; they do not contribute to the trade metrics."""
        self.quotes = list(quotes)

    def metrics(self) -> list[SurpriseMetrics]:
        """Return the metrics computed by the last successful run."""
        return list(self._metrics)

    def process_trades(self, trades: Iterable[Trade]) -> None:
        """Compute metrics for ``trades``, replacing the previous results.

        With fewer than two trades nothing is computed and the previous
        results are kept.
        """
        trades = list(trades)
        if not trades:
            logger.error("No trades to process")
            return
        prices = np.fromiter(
            (trade.price for trade in trades), dtype=np.float32, count=len(trades)
        )
        logger.info("Extracted %d prices", prices.size)
        if prices.size < 2:
            logger.error("Not enough prices for returns")
            return
        returns = compute_returns(prices)
        logger.info("Computed %d returns", returns.size)
        self._metrics = self._compute_metrics(trades, returns)
        logger.info("Computed %d metrics", len(self._metrics))

    def process_trades_batch(
        self,
        timestamps: Sequence[int] | np.ndarray,
        prices: Sequence[float] | np.ndarray,
        sizes: Sequence[int] | np.ndarray,
    ) -> np.ndarray:
        """Process column arrays of trades and return the metrics as rows.

        The result is a float32 array of shape ``(count, 6)`` with columns
        timestamp, standardised return, Lee-Mykland statistic, BNS statistic,
        trade intensity z-score and jump flag (1.0 or 0.0).
        """
        ts = np.asarray(timestamps, dtype=np.int64).ravel()
        px = np.asarray(prices, dtype=np.float32).ravel()
        sz = np.asarray(sizes, dtype=np.int64).ravel()
        if not ts.size == px.size == sz.size:
            raise ValueError(
                "timestamps, prices and sizes must have the same length, got "
                f"{ts.size}, {px.size} and {sz.size}"
            )
        trades = [
            Trade(timestamp=int(t), price=float(p), size=int(s))
            for t, p, s in zip(ts, px, sz)
        ]
        self.process_trades(trades)
        rows = [metric.as_row() for metric in self._metrics]
        if not rows:
            return np.zeros((0, METRIC_COLUMNS), dtype=np.float32)
        return np.array(rows, dtype=np.float32)

    def _volatility(self, returns: np.ndarray) -> np.ndarray:
        """GARCH(1,1) conditional volatility, seeded with the unconditional level."""
        omega, alpha, beta = self.garch_params
        sigma = np.empty(returns.size, dtype=np.float32)
        with np.errstate(all="ignore"):
            sigma[0] = np.sqrt(np.float64(omega) / np.float64(1.0 - alpha - beta))
            previous = float(sigma[0])
            for index, last_return in enumerate(returns[:-1], start=1):
                squared = float(last_return * last_return)
                variance = omega + alpha * squared + beta * previous * previous
                sigma[index] = math.sqrt(variance) if variance >= 0 else math.nan
                previous = float(sigma[index])
        return sigma

    def _compute_metrics(
        self, trades: list[Trade], returns: np.ndarray
    ) -> list[SurpriseMetrics]:
        window = self.window_size
        count = returns.size
        stop = min(count, len(trades))
        if window >= stop:
            return []

        sigma = self._volatility(returns)

        realized = np.zeros(count, dtype=np.float32)
        rv_values = compute_realized_variance(returns, window)
        realized[: rv_values.size] = rv_values

        bipower = np.zeros(count, dtype=np.float32)
        if count > 1:
            bipower[: count - 1] = compute_bipower_variation(returns)

        one = np.float32(1.0)
        zero = np.float32(0.0)
        with np.errstate(all="ignore"):
            standardized = returns / np.where(sigma > 0, sigma, one)
            local_vol = np.sqrt(np.maximum(zero, bipower))
            lee_mykland = np.abs(returns) / np.where(local_vol > 0, local_vol, one)

            jump_component = np.maximum(zero, realized - bipower).astype(np.float64)
            has_variation = (realized > 0) & (bipower > 0)
            bns = np.where(
                has_variation,
                math.sqrt(window) * jump_component / realized.astype(np.float64),
                0.0,
            ).astype(np.float32)

            cn = np.sqrt(np.float32(2.0) * np.log(np.float32(count)))
            critical = BETA_STAR * cn
        jumps = lee_mykland > critical

        return [
            SurpriseMetrics(
                standardized_return=float(standardized[i]),
                lee_mykland_stat=float(lee_mykland[i]),
                bns_stat=float(bns[i]),
                trade_intensity_zscore=0.0,
                jump_detected=bool(jumps[i]),
                timestamp=trades[i].timestamp,
            )
            for i in range(window, stop)
        ]