"""
Data Fetcher Module
Downloads daily closing prices from yfinance
Failed tickers are isolated as all-NaN columns instead of aborting the run
"""

import time
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

import pandas as pd
import yfinance as yf

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class SourceUnavailableError(Exception):
    """Raised when no price data can be retrieved for a ticker"""
    pass


def _normalize_index(index: pd.Index) -> pd.DatetimeIndex:
    """Timezone-naive, midnight-normalized dates"""
    index = pd.DatetimeIndex(index)
    if index.tz is not None:
        index = index.tz_localize(None)
    return index.normalize()


def _extract_close(batch: pd.DataFrame, ticker: str) -> pd.Series:
    """Pull the Close column for one ticker out of a yf.download result"""
    columns = batch.columns

    if isinstance(columns, pd.MultiIndex):
        if ticker in columns.get_level_values(0):
            frame = batch[ticker]
        elif ticker in columns.get_level_values(1):
            frame = batch.xs(ticker, level=1, axis=1)
        else:
            return pd.Series(dtype=float)
    else:
        frame = batch

    if 'Close' not in frame.columns:
        return pd.Series(dtype=float)

    return frame['Close'].dropna()


class DataFetcher:
    """
    Fetches and caches daily closing prices
    """

    def __init__(self, cache_enabled: bool = True, retry_delay: float = 1.0):
        self.cache_enabled = cache_enabled
        self.retry_delay = retry_delay
        self._price_cache: Dict[str, pd.Series] = {}
        self.failed_tickers: List[str] = []

    @staticmethod
    def _cache_key(ticker: str, start_date: datetime, end_date: datetime) -> str:
        return f"{ticker}_{start_date.date()}_{end_date.date()}"

    def fetch_single_close(
        self,
        ticker: str,
        start_date: datetime,
        end_date: datetime,
        max_retries: int = 3
    ) -> pd.Series:
        """
        Fetch closing prices for one ticker, retrying on empty or failed responses

        Raises:
            SourceUnavailableError: if every attempt fails
        """
        cache_key = self._cache_key(ticker, start_date, end_date)
        if self.cache_enabled and cache_key in self._price_cache:
            logger.info(f"Using cached data for {ticker}")
            return self._price_cache[cache_key]

        last_error: Optional[Exception] = None

        for attempt in range(max_retries):
            try:
                logger.info(f"Fetching data for {ticker} (attempt {attempt + 1})")
                # yfinance treats end as exclusive
                df = yf.Ticker(ticker).history(
                    start=start_date,
                    end=end_date + timedelta(days=1),
                    auto_adjust=True
                )

                if df is None or df.empty or 'Close' not in df.columns:
                    last_error = SourceUnavailableError(f"No data returned for {ticker}")
                else:
                    close = df['Close'].dropna()
                    close.index = _normalize_index(close.index)
                    close.name = ticker

                    if self.cache_enabled:
                        self._price_cache[cache_key] = close
                    return close

            except Exception as e:
                logger.error(f"Error fetching data for {ticker} (attempt {attempt + 1}): {e}")
                last_error = e

            if attempt < max_retries - 1:
                time.sleep(self.retry_delay)

        raise SourceUnavailableError(
            f"No data for {ticker} after {max_retries} attempts: {last_error}"
        )

    def _batch_download(
        self,
        tickers: List[str],
        start_date: datetime,
        end_date: datetime
    ) -> Dict[str, pd.Series]:
        """Single yf.download call; tickers it cannot serve are simply absent"""
        closes = {}

        try:
            logger.info(f"Batch downloading data for {len(tickers)} tickers")

            batch_data = yf.download(
                tickers,
                start=start_date,
                end=end_date + timedelta(days=1),
                progress=False,
                auto_adjust=True,
                threads=False,
                group_by="ticker"
            )

            if batch_data is None or batch_data.empty:
                return closes

            for ticker in tickers:
                try:
                    close = _extract_close(batch_data, ticker)
                    if close.empty:
                        continue

                    close.index = _normalize_index(close.index)
                    close.name = ticker
                    closes[ticker] = close
                    logger.info(f"Got {len(close)} rows for {ticker}")
                except Exception as e:
                    logger.warning(f"Error processing batch data for {ticker}: {e}")
                    continue

        except Exception as e:
            logger.warning(f"Batch download failed: {e}. Falling back to individual downloads.")

        return closes

    def fetch_close_prices(
        self,
        tickers: Union[str, List[str]],
        start_date: datetime,
        end_date: datetime,
        max_retries: int = 3
    ) -> pd.DataFrame:
        """
        Fetch daily closing prices for several tickers

        Returns:
            DataFrame indexed by date with one column per requested ticker.
            Tickers that could not be fetched are all-NaN columns and are
            listed in self.failed_tickers.
        """
        if isinstance(tickers, str):
            tickers = [tickers]
        tickers = list(dict.fromkeys(tickers))

        self.failed_tickers = []
        all_data = self._batch_download(tickers, start_date, end_date)

        # Fallback: fetch individually for any missing tickers
        for ticker in [t for t in tickers if t not in all_data]:
            try:
                all_data[ticker] = self.fetch_single_close(ticker, start_date, end_date, max_retries)
            except SourceUnavailableError as e:
                logger.warning(f"Skipping {ticker}: {e}")
                self.failed_tickers.append(ticker)

        if not all_data:
            return pd.DataFrame(columns=tickers, dtype=float)

        combined = pd.DataFrame(all_data).sort_index()
        combined.index.name = 'date'
        return combined.reindex(columns=tickers)

    def clear_cache(self):
        """Clear all cached data"""
        self._price_cache.clear()
        logger.info("Cache cleared")


if __name__ == "__main__":
    # Test the data fetcher
    fetcher = DataFetcher()

    print("Testing multiple ticker fetch...")
    df = fetcher.fetch_close_prices(["XOM", "CCJ", "NEE"], datetime(2024, 1, 1), datetime(2024, 6, 30))
    print(f"Fetched {len(df)} rows")
    print(df.tail())
    print(f"Failed tickers: {fetcher.failed_tickers}")
