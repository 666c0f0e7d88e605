"""Market data records and per-trade surprise metrics."""

from __future__ import annotations

from dataclasses import dataclass

CONDITION_SLOTS = 4


def _check_exchange(value: str, field_name: str) -> None:
    if len(value) > 1:
        raise ValueError(f"{field_name} must be a single character, got {value!r}")


@dataclass(frozen=True)
class Trade:
    """A single executed trade.

    ``timestamp`` is in nanoseconds since the Unix epoch. ``conditions`` holds
    up to four condition codes as byte values; shorter inputs are padded with
    zeros.
    """

    timestamp: int
    price: float
    size: int
    exchange: str = ""
    conditions: tuple[int, ...] = (0,) * CONDITION_SLOTS

    def __post_init__(self) -> None:
        _check_exchange(self.exchange, "exchange")
        codes = tuple(self.conditions)
        if len(codes) > CONDITION_SLOTS:
            raise ValueError(
                f"at most {CONDITION_SLOTS} condition codes are allowed, got {len(codes)}"
            )
        if any(not 0 <= code <= 0xFF for code in codes):
            raise ValueError(f"condition codes must be byte values, got {codes!r}")
        padded = codes + (0,) * (CONDITION_SLOTS - len(codes))
        object.__setattr__(self, "conditions", padded)


@dataclass(frozen=True)
class Quote:
    """A top-of-book quote; ``timestamp`` is in nanoseconds."""

    timestamp: int
    bid_price: float
    ask_price: float
    bid_size: int
    ask_size: int
    bid_exchange: str = ""
    ask_exchange: str = ""

    def __post_init__(self) -> None:
        _check_exchange(self.bid_exchange, "bid_exchange")
        _check_exchange(self.ask_exchange, "ask_exchange")


@dataclass(frozen=True)
class SurpriseMetrics:
    """Surprise statistics computed for one trade."""

    standardized_return: float
    lee_mykland_stat: float
    bns_stat: float
    trade_intensity_zscore: float
    jump_detected: bool
    timestamp: int

    def as_row(self) -> tuple[float, float, float, float, float, float]:
        """Return the metric as a flat row, with the jump flag as 1.0 or 0.0."""
        return (
            float(self.timestamp),
            self.standardized_return,
            self.lee_mykland_stat,
            self.bns_stat,
            self.trade_intensity_zscore,
            1.0 if self.jump_detected else 0.0,
        )