"""
Sector Metrics Engine
Return and risk calculations for energy sector price series

Undefined values are NaN inside a series and None for a scalar metric.
"""

import functools
import logging
from dataclasses import dataclass, asdict, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from config import AnalysisConfig, SectorConfig, PERIOD_FREQUENCIES

logger = logging.getLogger(__name__)

SeriesLike = Union[pd.Series, Sequence[float]]


class MetricsError(Exception):
    """A metric cannot be computed from the given input"""


class MissingDataError(MetricsError):
    """No usable observations for the computation"""


class DegenerateInputError(MetricsError):
    """Input is present but mathematically unusable (zero base, zero variance, ...)"""


def undefined_on_error(func):
    """Resolve MetricsError raised by func to None"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MetricsError as e:
            logger.debug(f"{func.__name__} is undefined: {e}")
            return None
    return wrapper


def _as_series(values: SeriesLike) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.astype(float)
    return pd.Series(list(values), dtype=float)


@dataclass
class SeriesMetrics:
    """Risk/return statistics for one return series"""
    standard_deviation: Optional[float]
    sharpe_ratio: Optional[float]
    total_return: Optional[float]
    cagr: Optional[float]
    final_value: Optional[float]
    max_drawdown: Optional[float]
    periods: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


METRIC_COLUMNS = [
    'standard_deviation', 'sharpe_ratio', 'total_return',
    'cagr', 'final_value', 'max_drawdown',
]


# =============================================================================
# RESAMPLING & AVERAGING
# =============================================================================

def resample_to_period(
    prices: Union[pd.Series, pd.DataFrame],
    period: str = 'quarter'
) -> Union[pd.Series, pd.DataFrame]:
    """
    Keep the last observed price of each calendar period

    Each value is stamped with the last calendar day of its period.
    Periods without any observation are NaN.
    """
    if period not in PERIOD_FREQUENCIES:
        raise ValueError(f"Unsupported period: {period}")

    if len(prices) == 0:
        return prices.copy()

    prices = prices.copy()
    prices.index = pd.DatetimeIndex(prices.index)
    return prices.sort_index().resample(PERIOD_FREQUENCIES[period]).last()


def average_across_instruments(*series: pd.Series) -> pd.Series:
    """
    Mean of the defined values at each date over the union of all dates

    A date is NaN only when every instrument is NaN there.
    """
    if not series:
        raise ValueError("At least one series is required")

    aligned = pd.concat([s.astype(float) for s in series], axis=1).sort_index()
    return aligned.mean(axis=1, skipna=True)


# =============================================================================
# METRICS ENGINE
# =============================================================================

class MetricsEngine:
    """
    Stateless return/risk calculations

    Returns are percentages (5.0 means +5%).
    """

    @staticmethod
    def derive_returns(prices: SeriesLike) -> pd.Series:
        """
        Period-over-period percentage change

        Same length as prices; the first value is always NaN, as is any value
        whose previous price is zero or missing.
        """
        prices = _as_series(prices)
        previous = prices.shift(1)

        with np.errstate(divide='ignore', invalid='ignore'):
            returns = (prices - previous) / previous * 100

        return returns.where(previous != 0)

    @staticmethod
    def realized_returns(returns: SeriesLike) -> pd.Series:
        """Drop undefined returns and order the rest chronologically"""
        return _as_series(returns).dropna().sort_index()

    @staticmethod
    def reconstruct_price_path(returns: SeriesLike, start_value: float = 100.0) -> pd.Series:
        """
        Compound realized returns into a price path

        path[i] = start_value * prod(1 + r_j / 100 for j <= i)
        A return of -100% or worse takes the path to 0, where it stays.
        """
        realized = MetricsEngine.realized_returns(returns)
        factors = 1 + realized / 100

        if (factors < 0).any():
            logger.warning(
                f"{int((factors < 0).sum())} return(s) below -100% treated as a total loss"
            )
            factors = factors.clip(lower=0)

        return start_value * factors.cumprod()

    @staticmethod
    @undefined_on_error
    def cagr(path: SeriesLike, years: Optional[float]) -> Optional[float]:
        """
        Compound annual growth rate between the first and last path values
        CAGR = ((path[-1] / path[0]) ^ (1 / years) - 1) * 100

        years is supplied by the caller, not inferred from the path.
        """
        path = _as_series(path)
        if len(path) < 2:
            raise MissingDataError(f"need at least 2 path values, got {len(path)}")

        first, last = path.iloc[0], path.iloc[-1]
        if pd.isna(first) or pd.isna(last):
            raise MissingDataError("first or last path value is missing")
        if first == 0:
            raise DegenerateInputError("path starts at zero")
        if years is None or years <= 0:
            raise DegenerateInputError(f"non-positive horizon: {years}")

        ratio = last / first
        if ratio == 0:
            return -100.0
        if ratio < 0 or not np.isfinite(ratio):
            raise DegenerateInputError(f"growth ratio {ratio} has no real root")

        return float((ratio ** (1 / years) - 1) * 100)

    @staticmethod
    def drawdown_series(path: SeriesLike) -> pd.Series:
        """Percentage distance below the running maximum at each point"""
        path = _as_series(path).dropna()
        running_max = path.cummax()
        with np.errstate(divide='ignore', invalid='ignore'):
            return (path - running_max) / running_max * 100

    @staticmethod
    @undefined_on_error
    def max_drawdown(path: SeriesLike) -> Optional[float]:
        """
        Largest peak-to-trough decline, in percent (0 or negative)
        MDD = min((path[i] - max(path[:i+1])) / max(path[:i+1]))
        """
        path = _as_series(path).dropna()
        if path.empty:
            raise MissingDataError("empty path")

        drawdown = MetricsEngine.drawdown_series(path)
        worst = drawdown.min()
        if pd.isna(worst):
            raise DegenerateInputError("path never rises above zero")

        return float(worst)

    @staticmethod
    @undefined_on_error
    def standard_deviation(returns: SeriesLike) -> Optional[float]:
        """Sample standard deviation (N-1) of the defined returns"""
        realized = MetricsEngine.realized_returns(returns)
        if len(realized) < 2:
            raise MissingDataError(f"need at least 2 returns, got {len(realized)}")

        # identical values have exactly zero dispersion
        if realized.nunique() == 1:
            return 0.0
        return float(realized.std(ddof=1))

    @staticmethod
    @undefined_on_error
    def sharpe_ratio(
        returns: SeriesLike,
        risk_free_rate: float = 0.00125,
        periods_per_year: int = 4
    ) -> Optional[float]:
        """
        Annualized Sharpe Ratio
        Sharpe = (mean(R) - Rf) / σ * sqrt(periods_per_year)

        risk_free_rate is per period, in the same units as returns.
        """
        realized = MetricsEngine.realized_returns(returns)
        sd = MetricsEngine.standard_deviation(realized)
        if sd is None:
            raise MissingDataError("standard deviation is undefined")
        if sd == 0:
            raise DegenerateInputError("zero variance")

        return float((realized.mean() - risk_free_rate) / sd * np.sqrt(periods_per_year))

    @staticmethod
    def dispersion_and_sharpe(
        returns: SeriesLike,
        risk_free_rate: float = 0.00125,
        periods_per_year: int = 4
    ) -> Tuple[Optional[float], Optional[float]]:
        """Standard deviation and annualized Sharpe ratio of a return series"""
        return (
            MetricsEngine.standard_deviation(returns),
            MetricsEngine.sharpe_ratio(returns, risk_free_rate, periods_per_year),
        )

    @staticmethod
    @undefined_on_error
    def total_return(path: SeriesLike, start_value: float = 100.0) -> Optional[float]:
        """Percentage gain of the final path value over the starting notional"""
        path = _as_series(path).dropna()
        if path.empty:
            raise MissingDataError("empty path")
        if start_value == 0:
            raise DegenerateInputError("zero starting value")

        return float((path.iloc[-1] - start_value) / start_value * 100)

    @staticmethod
    def elapsed_years(returns: SeriesLike) -> Optional[float]:
        """Years between the first and last realized return dates"""
        realized = MetricsEngine.realized_returns(returns)
        if len(realized) < 2 or not isinstance(realized.index, pd.DatetimeIndex):
            return None

        days = (realized.index[-1] - realized.index[0]).days
        return days / 365.25 if days > 0 else None

    @staticmethod
    def compute_metrics(
        returns: SeriesLike,
        risk_free_rate: float = 0.00125,
        periods_per_year: int = 4,
        cagr_years: Optional[float] = 10,
        start_value: float = 100.0
    ) -> SeriesMetrics:
        """
        All statistics for one return series

        cagr_years=None derives the CAGR horizon from the realized dates.

        The two growth figures use different bases. total_return compares the
        final path value with start_value. cagr compounds from path[0], the
        value after the first realized return, to the final value, so a large
        first-period move separates the two.
        """
        realized = MetricsEngine.realized_returns(returns)
        path = MetricsEngine.reconstruct_price_path(realized, start_value)

        years = cagr_years if cagr_years is not None else MetricsEngine.elapsed_years(realized)
        sd, sharpe = MetricsEngine.dispersion_and_sharpe(realized, risk_free_rate, periods_per_year)

        return SeriesMetrics(
            standard_deviation=sd,
            sharpe_ratio=sharpe,
            total_return=MetricsEngine.total_return(path, start_value),
            cagr=MetricsEngine.cagr(path, years),
            final_value=float(path.iloc[-1]) if len(path) > 0 else None,
            max_drawdown=MetricsEngine.max_drawdown(path),
            periods=len(realized),
        )


# =============================================================================
# SECTOR ANALYSIS
# =============================================================================

@dataclass
class SeriesAnalysis:
    """Prices, returns, path and metrics for one instrument or sector average"""
    label: str
    prices: pd.Series
    returns: pd.Series
    path: pd.Series
    drawdown: pd.Series
    metrics: SeriesMetrics


@dataclass
class SectorResult:
    """Everything computed for one sector"""
    sector: SectorConfig
    constituent_prices: pd.DataFrame
    average: SeriesAnalysis
    etf: SeriesAnalysis
    constituents: Dict[str, SeriesAnalysis] = field(default_factory=dict)


class SectorAnalyzer:
    """
    Runs the resample -> average -> returns -> metrics pipeline for one sector
    """

    def __init__(self, sector: SectorConfig, config: AnalysisConfig = None):
        self.sector = sector
        self.config = config or AnalysisConfig()

    def _select(self, daily_prices: pd.DataFrame, tickers: List[str]) -> pd.DataFrame:
        """Columns for tickers; absent tickers become all-NaN columns"""
        tickers = list(dict.fromkeys(tickers))
        missing = [t for t in tickers if t not in daily_prices.columns]
        if missing:
            logger.warning(f"{self.sector.name}: no price data for {', '.join(missing)}")
        return daily_prices.reindex(columns=tickers).astype(float)

    def analyze_series(self, label: str, prices: pd.Series) -> SeriesAnalysis:
        returns = MetricsEngine.derive_returns(prices)
        path = MetricsEngine.reconstruct_price_path(returns, self.config.start_value)
        metrics = MetricsEngine.compute_metrics(
            returns,
            risk_free_rate=self.config.risk_free_rate,
            periods_per_year=self.config.periods_per_year,
            cagr_years=self.config.cagr_years,
            start_value=self.config.start_value,
        )

        return SeriesAnalysis(
            label=label,
            prices=prices,
            returns=returns,
            path=path,
            drawdown=MetricsEngine.drawdown_series(path),
            metrics=metrics,
        )

    def analyze(self, daily_prices: pd.DataFrame) -> SectorResult:
        """Analyze the sector basket, its ETF and each constituent"""
        tickers = self.sector.constituents
        selected = self._select(daily_prices, self.sector.all_tickers)
        periodic = resample_to_period(selected, self.config.period)

        constituent_prices = periodic[tickers]
        average_prices = average_across_instruments(
            *[constituent_prices[t] for t in tickers]
        ).rename(self.sector.name)

        logger.info(
            f"Analyzing {self.sector.name}: {len(tickers)} constituents, "
            f"{len(periodic)} periods"
        )

        constituents = {
            t: self.analyze_series(t, constituent_prices[t]) for t in tickers
        }

        return SectorResult(
            sector=self.sector,
            constituent_prices=constituent_prices,
            average=self.analyze_series(f'{self.sector.name} Avg', average_prices),
            etf=self.analyze_series(self.sector.etf, periodic[self.sector.etf]),
            constituents=constituents,
        )


def analyze_all_sectors(
    daily_prices: pd.DataFrame,
    config: AnalysisConfig = None
) -> Dict[str, SectorResult]:
    """Run SectorAnalyzer for each configured sector"""
    config = config or AnalysisConfig()
    return {
        sector.name: SectorAnalyzer(sector, config).analyze(daily_prices)
        for sector in config.sectors
    }


def summary_table(results: Dict[str, SectorResult], include_constituents: bool = False) -> pd.DataFrame:
    """
    One row per sector average and ETF (optionally per constituent)

    Undefined metrics are NaN in the table.
    """
    rows = []
    for name, result in results.items():
        entries = [('Sector Average', result.average), ('ETF', result.etf)]
        if include_constituents:
            entries += [('Equity', a) for a in result.constituents.values()]

        for kind, analysis in entries:
            row = {'sector': name, 'series': analysis.label, 'type': kind}
            row.update(analysis.metrics.to_dict())
            rows.append(row)

    if not rows:
        return pd.DataFrame()

    table = pd.DataFrame(rows)
    table[METRIC_COLUMNS] = table[METRIC_COLUMNS].astype(float)
    return table


def returns_frame(results: Dict[str, SectorResult], use_etf: bool = False) -> pd.DataFrame:
    """Periodic returns, one column per sector (average or ETF)"""
    columns = {}
    for name, result in results.items():
        analysis = result.etf if use_etf else result.average
        columns[name] = analysis.returns
    return pd.DataFrame(columns)


if __name__ == "__main__":
    # Quick check with synthetic quarterly returns
    np.random.seed(42)
    dates = pd.date_range(start='2015-03-31', periods=40, freq='QE')
    prices = pd.Series(100 * np.cumprod(1 + np.random.normal(0.02, 0.08, 40)), index=dates)

    returns = MetricsEngine.derive_returns(prices)
    metrics = MetricsEngine.compute_metrics(returns)

    print("Sample Quarterly Statistics:")
    print(f"Std Dev: {metrics.standard_deviation:.2f}%")
    print(f"Sharpe Ratio: {metrics.sharpe_ratio:.2f}")
    print(f"Total Return: {metrics.total_return:.2f}%")
    print(f"CAGR: {metrics.cagr:.2f}%")
    print(f"Max Drawdown: {metrics.max_drawdown:.2f}%")
