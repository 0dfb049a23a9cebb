"""
Utility Functions
Formatting and export helpers for the energy sector dashboard
"""

import re
import logging
from typing import List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

NA_DISPLAY = '--'

# Display label and formatter kind for each metric column
METRIC_DISPLAY = {
    'standard_deviation': ('Std Dev', 'percentage'),
    'sharpe_ratio': ('Sharpe Ratio', 'number'),
    'total_return': ('Total Return', 'percentage'),
    'cagr': ('CAGR', 'percentage'),
    'final_value': ('Final Value', 'number'),
    'max_drawdown': ('Max Drawdown', 'percentage'),
}


def is_missing(value) -> bool:
    """True for None and NaN"""
    return value is None or bool(pd.isna(value))


def format_percentage(value: Optional[float], decimals: int = 2, with_sign: bool = False) -> str:
    """Format a number that is already in percent"""
    if is_missing(value):
        return NA_DISPLAY

    if with_sign and value > 0:
        return f'+{value:.{decimals}f}%'
    return f'{value:.{decimals}f}%'


def format_number(value: Optional[float], decimals: int = 2) -> str:
    """Format a number with commas"""
    if is_missing(value):
        return NA_DISPLAY
    return f'{value:,.{decimals}f}'


def format_metric(name: str, value: Optional[float], decimals: int = 2) -> str:
    """Format a metric value by its column name"""
    _, kind = METRIC_DISPLAY.get(name, (name, 'number'))
    if kind == 'percentage':
        return format_percentage(value, decimals)
    return format_number(value, decimals)


def format_metrics_table(table: pd.DataFrame, decimals: int = 2) -> pd.DataFrame:
    """
    Render a summary table for display

    Metric columns become strings with undefined values shown as '--',
    and are renamed to their display labels.
    """
    if table.empty:
        return table.copy()

    display = table.copy()
    for column, (label, _) in METRIC_DISPLAY.items():
        if column not in display.columns:
            continue
        display[column] = [format_metric(column, v, decimals) for v in display[column]]

    renames = {col: label for col, (label, _) in METRIC_DISPLAY.items()}
    renames.update({'sector': 'Sector', 'series': 'Series', 'type': 'Type', 'periods': 'Periods'})
    return display.rename(columns=renames)


def get_color_for_value(value: Optional[float], positive_good: bool = True) -> str:
    """
    Get color code based on value sign
    """
    if is_missing(value):
        return '#6b7280'  # Gray
    if positive_good:
        return '#10b981' if value >= 0 else '#ef4444'  # Green or Red
    else:
        return '#ef4444' if value >= 0 else '#10b981'  # Red or Green


def validate_ticker_format(ticker: str) -> bool:
    """
    Validate ticker symbol format
    """
    if not ticker:
        return False

    clean_ticker = ticker.upper().strip()

    # Basic validation: alphanumeric, 1-10 characters, may contain dots and hyphens
    pattern = r'^[A-Z0-9][A-Z0-9\.\-]{0,9}$'
    return bool(re.match(pattern, clean_ticker))


def parse_ticker_list(text: str) -> List[str]:
    """
    Parse a comma/space separated ticker list

    Invalid symbols are dropped with a warning; order is kept, duplicates removed.
    """
    if not text:
        return []

    tickers = []
    for raw in re.split(r'[,\s]+', text):
        ticker = raw.upper().strip()
        if not ticker:
            continue
        if not validate_ticker_format(ticker):
            logger.warning(f"Ignoring invalid ticker: {raw}")
            continue
        if ticker not in tickers:
            tickers.append(ticker)
    return tickers


def export_to_csv(df: pd.DataFrame) -> bytes:
    """
    Export DataFrame to CSV bytes
    """
    return df.to_csv(index=False, na_rep='NA').encode('utf-8')
