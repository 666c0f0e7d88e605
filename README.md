# surprisemetrics

Surprise metrics for market microstructure trade data, computed with NumPy.
Given a series of trades, the package takes log returns between consecutive
prices and, for every trade from index `window_size` on, reports:

- a **standardised return**: the log return divided by a GARCH(1,1)
  volatility estimate (seeded with the unconditional level
  `sqrt(omega / (1 - alpha - beta))`),
- the **Lee-Mykland statistic**: the absolute return divided by a local
  volatility, the square root of the bipower variation at that point,
- a **BNS statistic**: `sqrt(window_size) * max(0, RV - BV) / RV`, where RV is
  the realised variance over the window and BV the bipower variation; 0 when
  either is not positive,
- a **jump flag**, set when the Lee-Mykland statistic exceeds
  `0.49 * sqrt(2 * ln(n))`, with `n` the number of returns,
- a **trade intensity z-score**, which is always reported as 0.0.

It also reads trade and quote flat files in the Polygon CSV layout, plain or
gzip-compressed.

## Installation

```
pip install surprisemetrics
```

The only runtime dependency is NumPy. To run the tests:

```
pip install "surprisemetrics[test]"
pytest
```

## Computing metrics

```python
import numpy as np
from surprisemetrics.calculator import MetricsCalculator

calculator = MetricsCalculator(window_size=20)
calculator.set_garch_params(0.00001, 0.05, 0.94)

timestamps = np.arange(1_000, dtype=np.int64) * 1_000_000   # nanoseconds
prices = 100.0 * np.cumprod(1.0 + np.random.default_rng(0).normal(0, 0.001, 1_000))
sizes = np.full(1_000, 100, dtype=np.int64)

table = calculator.process_trades_batch(timestamps, prices.astype(np.float32), sizes)
```

`process_trades_batch` takes three arrays of equal length (a `ValueError` is
raised otherwise) and returns a float32 array with one row per metric and six
columns: timestamp, standardised return, Lee-Mykland statistic, BNS
statistic, trade intensity z-score and the jump flag (1.0 or 0.0). Being
float32, the timestamp column does not keep full nanosecond precision.

If you already have `Trade` records (from `surprisemetrics.models`), hand
them to `MetricsCalculator.process_trades` and read the results back with
`MetricsCalculator.metrics()`, which returns `SurpriseMetrics` records;
`SurpriseMetrics.as_row()` gives the same six-column row. With fewer than
two trades nothing is computed and the previous results are kept.

The calculator's settings:

- `window_size` (default 100, must not be negative),
- `set_garch_params(omega, alpha, beta)` and the read-only `garch_params`
  (defaults 0.00001, 0.05, 0.94),
- `jump_threshold` (default 2.0), stored on the calculator; the jump flag is
  decided by the critical value above.

## Reading Polygon flat files

```python
from surprisemetrics.polygon import load_trades_from_file, load_quotes_from_file

trades = load_trades_from_file("AAPL-trades.csv.gz")
quotes = load_quotes_from_file("AAPL-quotes.csv")
```

Files are read whole; gzip data is recognised by its magic bytes and
decompressed. The header line is skipped, and rows that cannot be parsed are
logged as warnings and left out. `parse_polygon_trades` and
`parse_polygon_quotes` do the same on CSV text or bytes you already hold, and
`decompress_gzip` inflates a gzip payload, raising `ValueError` if it is not
gzip data.

`PolygonDataLoader` fetches the compressed flat files for a date and ticker
and returns the raw bytes:

```python
from surprisemetrics.polygon import PolygonDataLoader

loader = PolygonDataLoader(api_key="placeholder")
raw = loader.download_trades_file("2024-01-02", "AAPL")
trades = parse_polygon_trades(decompress_gzip(raw))
```

## Building blocks

`surprisemetrics.simd_ops` holds the array routines the calculator is built
on, all working in float32:

- `compute_returns(prices)`: log returns between consecutive prices,
- `compute_realized_variance(returns, window)`: element `i` is the sum of
  squared returns over `returns[i:i + window]`, for `i` below
  `len(returns) - window`,
- `compute_bipower_variation(returns)`: π/2 times the product of adjacent
  absolute returns.

## Demonstration run

```
surprise-metrics-runner [--seed N]
```

generates a thousand synthetic trades, with uniform shocks of up to ±5%
inserted at fixed positions, runs the calculator with a window of 20, and
prints the first ten metrics and a summary: number of metrics, jumps
detected, largest z-score, largest Lee-Mykland and BNS statistics, and
throughput. `--seed` makes the generated data repeatable.

## What it does not do

- Quotes can be loaded and handed to `MetricsCalculator.process_quotes`, but
  they are only stored; no spread or order-book metrics are computed.
- Trade intensity is not modelled: its z-score is always 0.0.
- Downloads are single plain HTTP requests, with no retries or caching.