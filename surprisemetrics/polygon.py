"""Downloading, decompressing and parsing Polygon flat-file trade and quote data."""

from __future__ import annotations

import logging
import os
import re
import urllib.parse
import urllib.request
import zlib
from collections.abc import Callable, Iterator
from typing import TypeVar

from surprisemetrics.models import CONDITION_SLOTS, Quote, Trade

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.polygon.io/v3/files/flatfiles"
GZIP_MAGIC = b"\x1f\x8b"

_UINT_PREFIX = re.compile(r"\s*\+?(\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)

_Record = TypeVar("_Record")


class PolygonDataLoader:
    """Fetches compressed trade and quote flat files for one ticker and day."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    def download_trades_file(self, date: str, ticker: str) -> bytes:
        """Download the gzip-compressed trades file for ``ticker`` on ``date``."""
        return self._download(self._url("trades", date, ticker))

    def download_quotes_file(self, date: str, ticker: str) -> bytes:
        """Download the gzip-compressed quotes file for ``ticker`` on ``date``."""
        return self._download(self._url("quotes", date, ticker))

    def _url(self, kind: str, date: str, ticker: str) -> str:
        return f"{self.base_url}/us/stocks/{kind}/{date}/{ticker}.csv.gz"

    def _download(self, url: str) -> bytes:
        query = urllib.parse.urlencode({"apiKey": self.api_key})
        request = urllib.request.Request(
            f"{url}?{query}", headers={"User-Agent": "surprisemetrics-agent/1.0"}
        )
        with urllib.request.urlopen(request, timeout=self.timeout) as response:
            return response.read()


def decompress_gzip(compressed_data: bytes) -> bytes:
    """Inflate the first gzip member of ``compressed_data``.

    A truncated stream yields whatever could be recovered; a stream that is
    not gzip at all raises ``ValueError``.
    """
    inflater = zlib.decompressobj(16 + zlib.MAX_WBITS)
    try:
        return inflater.decompress(compressed_data) + inflater.flush()
    except zlib.error as exc:
        raise ValueError(f"invalid gzip data: {exc}") from exc


def _leading_uint(field: str) -> int:
    match = _UINT_PREFIX.match(field)
    if match is None:
        raise ValueError(f"expected an unsigned integer, got {field!r}")
    return int(match.group(1))


def _leading_float(field: str) -> float:
    match = _FLOAT_PREFIX.match(field)
    if match is None:
        raise ValueError(f"expected a number, got {field!r}")
    return float(match.group(0))


def _as_text(data: str | bytes) -> str:
    return data.decode("latin-1") if isinstance(data, bytes) else data


def _data_rows(csv_data: str | bytes, width: int) -> Iterator[list[str]]:
    """Yield the comma-split fields of each non-empty line after the header."""
    lines = _as_text(csv_data).split("\n")
    for line in lines[1:]:
        if not line:
            continue
        fields = line.split(",")
        yield fields + [""] * (width - len(fields))


def _parse_rows(
    csv_data: str | bytes,
    width: int,
    build: Callable[[list[str]], _Record],
    label: str,
) -> list[_Record]:
    records = []
    for fields in _data_rows(csv_data, width):
        try:
            records.append(build(fields))
        except ValueError as exc:
            logger.warning("Error parsing %s: %s", label, exc)
    return records


def _build_trade(fields: list[str]) -> Trade:
    # participant_timestamp,sip_timestamp,trf_timestamp,sequence,symbol,
    # size,price,conditions,tape
    conditions = tuple(ord(ch) & 0xFF for ch in fields[7][:CONDITION_SLOTS])
    return Trade(
        timestamp=_leading_uint(fields[0]),
        size=_leading_uint(fields[5]),
        price=_leading_float(fields[6]),
        conditions=conditions,
        exchange=fields[8][:1],
    )


def _build_quote(fields: list[str]) -> Quote:
    # participant_timestamp,sip_timestamp,trf_timestamp,sequence,symbol,
    # bid_price,bid_size,bid_exchange,ask_price,ask_size,ask_exchange,tape
    return Quote(
        timestamp=_leading_uint(fields[0]),
        bid_price=_leading_float(fields[5]),
        bid_size=_leading_uint(fields[6]),
        bid_exchange=fields[7][:1],
        ask_price=_leading_float(fields[8]),
        ask_size=_leading_uint(fields[9]),
        ask_exchange=fields[10][:1],
    )


def parse_polygon_trades(csv_data: str | bytes) -> list[Trade]:
    """Parse trades CSV text, skipping the header and any malformed lines."""
    return _parse_rows(csv_data, 9, _build_trade, "trade")


def parse_polygon_quotes(csv_data: str | bytes) -> list[Quote]:
    """Parse quotes CSV text, skipping the header and any malformed lines."""
    return _parse_rows(csv_data, 11, _build_quote, "quote")


def _read_maybe_gzipped(filename: str | os.PathLike[str]) -> bytes:
    with open(filename, "rb") as handle:
        data = handle.read()
    if data.startswith(GZIP_MAGIC):
        data = decompress_gzip(data)
    return data


def load_trades_from_file(filename: str | os.PathLike[str]) -> list[Trade]:
    """Load trades from a plain or gzip-compressed CSV file."""
    return parse_polygon_trades(_read_maybe_gzipped(filename))


def load_quotes_from_file(filename: str | os.PathLike[str]) -> list[Quote]:
    """Load quotes from a plain or gzip-compressed CSV file."""
    return parse_polygon_quotes(_read_maybe_gzipped(filename))