"""
Analysis Configuration
Sector definitions and analysis parameters, with env / YAML overrides
"""

import os
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectorConfig:
    """One energy sub-sector: a basket of equities plus a tracking ETF"""
    name: str
    tickers: Tuple[str, ...]
    etf: str
    color: str = '#2563eb'

    @property
    def constituents(self) -> List[str]:
        """Equity tickers in order, without repeats"""
        return list(dict.fromkeys(self.tickers))

    @property
    def all_tickers(self) -> List[str]:
        return list(dict.fromkeys(self.constituents + [self.etf]))


DEFAULT_SECTORS: Tuple[SectorConfig, ...] = (
    SectorConfig(
        name='Nuclear',
        tickers=('CCJ', 'BWXT', 'LEU', 'UEC', 'DNN'),
        etf='URA',
        color='#f59e0b',   # Amber
    ),
    SectorConfig(
        name='Fossil Fuel',
        tickers=('XOM', 'CVX', 'COP', 'OXY', 'EOG'),
        etf='XLE',
        color='#6b7280',   # Gray
    ),
    SectorConfig(
        name='Renewables',
        tickers=('NEE', 'ENPH', 'FSLR', 'BEP', 'ORA'),
        etf='ICLN',
        color='#10b981',   # Green
    ),
)


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Parameters for one analysis run

    cagr_years: fixed CAGR horizon in years. None derives the horizon from
    the first and last realized return dates instead.
    risk_free_rate: per-period rate, in the same units as the return series
    """
    start_date: datetime = datetime(2015, 1, 1)
    end_date: datetime = datetime(2024, 12, 31)
    period: str = 'quarter'
    periods_per_year: int = 4
    risk_free_rate: float = 0.00125
    cagr_years: Optional[float] = 10
    start_value: float = 100.0
    sectors: Tuple[SectorConfig, ...] = field(default=DEFAULT_SECTORS)

    @property
    def all_tickers(self) -> List[str]:
        tickers = []
        for sector in self.sectors:
            for ticker in sector.all_tickers:
                if ticker not in tickers:
                    tickers.append(ticker)
        return tickers

    def get_sector(self, name: str) -> SectorConfig:
        for sector in self.sectors:
            if sector.name == name:
                return sector
        raise KeyError(f"Unknown sector: {name}")


PERIOD_FREQUENCIES = {
    'month': 'ME',
    'quarter': 'QE',
    'year': 'YE',
}

PERIODS_PER_YEAR = {
    'month': 12,
    'quarter': 4,
    'year': 1,
}


def _parse_date(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.strptime(str(value), '%Y-%m-%d')


def _parse_years(value) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in ('', 'none', 'auto'):
        return None
    return float(value)


def _parse_sector(raw: dict) -> SectorConfig:
    missing = [key for key in ('name', 'tickers', 'etf') if key not in raw]
    if missing:
        raise ValueError(f"Sector definition missing keys: {', '.join(missing)}")

    tickers = tuple(dict.fromkeys(str(t).upper().strip() for t in raw['tickers']))
    if not tickers:
        raise ValueError(f"Sector {raw['name']} has no tickers")

    etf = str(raw['etf']).upper().strip()
    if etf in tickers:
        raise ValueError(f"Sector {raw['name']} lists its ETF {etf} among the equities")

    return SectorConfig(
        name=str(raw['name']),
        tickers=tickers,
        etf=etf,
        color=raw.get('color', '#2563eb'),
    )


def _apply_overrides(config: AnalysisConfig, values: dict) -> AnalysisConfig:
    known = {
        'start_date', 'end_date', 'period', 'risk_free_rate',
        'cagr_years', 'start_value', 'sectors',
    }
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    changes = {}
    if 'start_date' in values:
        changes['start_date'] = _parse_date(values['start_date'])
    if 'end_date' in values:
        changes['end_date'] = _parse_date(values['end_date'])
    if 'period' in values:
        period = str(values['period']).lower()
        if period not in PERIOD_FREQUENCIES:
            raise ValueError(f"Unsupported period: {period}")
        changes['period'] = period
        changes['periods_per_year'] = PERIODS_PER_YEAR[period]
    if 'risk_free_rate' in values:
        changes['risk_free_rate'] = float(values['risk_free_rate'])
    if 'cagr_years' in values:
        changes['cagr_years'] = _parse_years(values['cagr_years'])
    if 'start_value' in values:
        changes['start_value'] = float(values['start_value'])
    if 'sectors' in values:
        changes['sectors'] = tuple(_parse_sector(s) for s in values['sectors'])

    updated = replace(config, **changes)
    if updated.start_date >= updated.end_date:
        raise ValueError("start_date must be before end_date")
    return updated


def config_from_env(config: AnalysisConfig = None) -> AnalysisConfig:
    """Apply ENERGY_* environment variable overrides"""
    config = config or AnalysisConfig()

    env_map = {
        'ENERGY_START_DATE': 'start_date',
        'ENERGY_END_DATE': 'end_date',
        'ENERGY_PERIOD': 'period',
        'ENERGY_RISK_FREE_RATE': 'risk_free_rate',
        'ENERGY_CAGR_YEARS': 'cagr_years',
        'ENERGY_START_VALUE': 'start_value',
    }

    values = {}
    for env_name, key in env_map.items():
        raw = os.getenv(env_name)
        if raw is not None:
            values[key] = raw

    if values:
        logger.info(f"Applying environment overrides: {', '.join(sorted(values))}")
    return _apply_overrides(config, values)


def load_config(path: Union[str, Path, None] = None) -> AnalysisConfig:
    """
    Load analysis configuration

    Defaults first, then the YAML file (if given), then ENERGY_* env vars.
    """
    config = AnalysisConfig()

    if path is not None:
        path = Path(path)
        with path.open('r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        logger.info(f"Loaded configuration from {path}")
        config = _apply_overrides(config, raw)

    return config_from_env(config)


def configure_logging(level: str = None):
    """Set the root log level, defaulting to ENERGY_LOG_LEVEL or INFO"""
    level = level or os.getenv('ENERGY_LOG_LEVEL', 'INFO')
    # force: data_fetcher configures the root logger on import
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), force=True)
