"""
Energy Sector Returns Dashboard
Main Streamlit Application

Compares quarterly risk/return statistics of nuclear, fossil fuel and
renewable energy equities against their sector ETFs.
"""

import streamlit as st
import pandas as pd
from dataclasses import replace
from datetime import datetime
import warnings

warnings.filterwarnings('ignore')

# Import our modules
from config import AnalysisConfig, SectorConfig, load_config, configure_logging
from data_fetcher import DataFetcher
from calculations import analyze_all_sectors, summary_table
from visualizations import (
    plot_sector_prices, plot_average_prices, plot_quarterly_returns,
    plot_cumulative_paths, plot_drawdown, plot_metric_comparison, plot_risk_return
)
from utils import (
    format_percentage, format_number, format_metrics_table,
    get_color_for_value, parse_ticker_list, export_to_csv
)

configure_logging()

# Page config
st.set_page_config(
    page_title="Energy Sector Returns",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for dark theme styling
st.markdown("""
<style>
    .main {
        background-color: #0f172a;
    }

    [data-testid="stSidebar"] {
        background-color: #1e293b;
    }

    h1, h2, h3 {
        color: #f1f5f9 !important;
    }

    .metric-card {
        background: linear-gradient(135deg, #1e293b 0%, #334155 100%);
        padding: 1.2rem;
        border-radius: 12px;
        border: 1px solid rgba(148, 163, 184, 0.1);
        box-shadow: 0 4px 6px -1px rgba(0, 0, 0, 0.3);
    }

    .metric-value {
        font-size: 1.6rem;
        font-weight: 700;
        margin: 0;
    }

    .metric-label {
        font-size: 0.875rem;
        color: #94a3b8;
        margin-top: 0.25rem;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# Initialize session state
if 'fetcher' not in st.session_state:
    st.session_state.fetcher = DataFetcher()
if 'base_config' not in st.session_state:
    st.session_state.base_config = load_config()


def create_metric_card(value: str, label: str, color: str = '#f1f5f9'):
    """Create a custom metric card"""
    st.markdown(f"""
    <div class="metric-card">
        <p class="metric-value" style="color: {color};">{value}</p>
        <p class="metric-label">{label}</p>
    </div>
    """, unsafe_allow_html=True)


def fetch_prices(config: AnalysisConfig) -> pd.DataFrame:
    """Fetch daily closes for every configured ticker"""
    fetcher = st.session_state.fetcher

    with st.spinner('Fetching market data... (this may take a moment)'):
        prices = fetcher.fetch_close_prices(config.all_tickers, config.start_date, config.end_date)

    if fetcher.failed_tickers:
        st.warning(f"⚠️ Could not fetch data for: {', '.join(fetcher.failed_tickers)}")

    return prices


# =============================================================================
# SIDEBAR
# =============================================================================

base_config: AnalysisConfig = st.session_state.base_config

with st.sidebar:
    st.markdown("## ⚡ Energy Sectors")
    st.markdown("---")

    st.markdown("### Date Range")
    start_date = st.date_input("Start", value=base_config.start_date.date())
    end_date = st.date_input("End", value=base_config.end_date.date())

    st.markdown("### Sectors")
    sectors = []
    for sector in base_config.sectors:
        with st.expander(f"{sector.name} ({sector.etf})"):
            ticker_text = st.text_input(
                "Equities",
                value=", ".join(sector.tickers),
                key=f"tickers_{sector.name}"
            )
            etf = st.text_input("ETF", value=sector.etf, key=f"etf_{sector.name}")

        tickers = parse_ticker_list(ticker_text)
        etf_list = parse_ticker_list(etf)
        if tickers and etf_list:
            sectors.append(SectorConfig(sector.name, tuple(tickers), etf_list[0], sector.color))
        else:
            st.warning(f"{sector.name}: needs at least one equity and an ETF")

    st.markdown("### Risk Parameters")
    risk_free_rate = st.number_input(
        "Risk-Free Rate (per quarter)",
        min_value=0.0,
        max_value=10.0,
        value=float(base_config.risk_free_rate),
        step=0.00025,
        format="%.5f"
    )
    derive_years = st.checkbox("Derive CAGR horizon from dates", value=base_config.cagr_years is None)
    cagr_years = None
    if not derive_years:
        cagr_years = st.number_input(
            "CAGR Horizon (years)",
            min_value=0.5,
            max_value=50.0,
            value=float(base_config.cagr_years or 10),
            step=0.5
        )
    start_value = st.number_input(
        "Starting Value ($)",
        min_value=1.0,
        value=float(base_config.start_value),
        step=10.0
    )

    st.markdown("---")
    include_constituents = st.checkbox("Show individual equities in table", value=False)


# =============================================================================
# MAIN CONTENT
# =============================================================================

st.markdown("# ⚡ Energy Sector Returns Dashboard")
st.markdown("Quarterly risk and return across nuclear, fossil fuel and renewable energy")
st.markdown("---")

if not sectors:
    st.info("Configure at least one sector in the sidebar.")
    st.stop()

if start_date >= end_date:
    st.error("Start date must be before end date.")
    st.stop()

config = replace(
    base_config,
    start_date=datetime.combine(start_date, datetime.min.time()),
    end_date=datetime.combine(end_date, datetime.min.time()),
    risk_free_rate=risk_free_rate,
    cagr_years=cagr_years,
    start_value=start_value,
    sectors=tuple(sectors),
)

try:
    prices = fetch_prices(config)
except Exception as e:
    st.error(f"Error fetching data: {e}")
    st.stop()

if prices.dropna(how='all').empty:
    st.warning("Could not fetch any price data. Please check the tickers and try again.")
    st.stop()

results = analyze_all_sectors(prices, config)
table = summary_table(results, include_constituents=include_constituents)
sector_colors = {s.name: s.color for s in config.sectors}

# =============================================================================
# KEY METRICS ROW
# =============================================================================

st.markdown("## Sector Averages")

columns = st.columns(len(results))
for col, (name, result) in zip(columns, results.items()):
    metrics = result.average.metrics
    with col:
        st.markdown(f"### {name}")
        create_metric_card(
            format_percentage(metrics.cagr, with_sign=True),
            "CAGR",
            get_color_for_value(metrics.cagr)
        )
        st.metric("Sharpe Ratio", format_number(metrics.sharpe_ratio))
        st.metric("Max Drawdown", format_percentage(metrics.max_drawdown))

st.markdown("---")

# =============================================================================
# MAIN CHARTS
# =============================================================================

tab1, tab2, tab3, tab4 = st.tabs([
    "📈 Prices",
    "📊 Returns",
    "⚠️ Risk",
    "📋 Summary"
])

# TAB 1: Prices
with tab1:
    st.plotly_chart(plot_average_prices(results), use_container_width=True)

    for name, result in results.items():
        st.plotly_chart(plot_sector_prices(result), use_container_width=True)

# TAB 2: Returns
with tab2:
    st.plotly_chart(plot_quarterly_returns(results), use_container_width=True)
    st.plotly_chart(plot_quarterly_returns(results, use_etf=True), use_container_width=True)
    st.plotly_chart(plot_cumulative_paths(results, config.start_value), use_container_width=True)

# TAB 3: Risk
with tab3:
    col1, col2 = st.columns(2)

    with col1:
        st.plotly_chart(plot_drawdown(results, title="Sector Average Drawdown"), use_container_width=True)

    with col2:
        st.plotly_chart(plot_drawdown(results, use_etf=True, title="ETF Drawdown"), use_container_width=True)

    st.plotly_chart(plot_risk_return(table, sector_colors), use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(plot_metric_comparison(table, 'sharpe_ratio', sector_colors), use_container_width=True)
    with col2:
        st.plotly_chart(plot_metric_comparison(table, 'standard_deviation', sector_colors), use_container_width=True)

# TAB 4: Summary
with tab4:
    st.markdown("### Risk / Return Summary")

    st.dataframe(
        format_metrics_table(table),
        use_container_width=True,
        hide_index=True
    )

    years_note = (
        f"{config.cagr_years:g} years (fixed)" if config.cagr_years is not None
        else "derived from first and last quarter"
    )
    st.caption(
        f"Quarterly data from {config.start_date:%Y-%m-%d} to {config.end_date:%Y-%m-%d}. "
        f"Risk-free rate {config.risk_free_rate:g} per quarter. CAGR horizon: {years_note}, "
        "compounded from the value after the first quarterly return; total return is "
        f"measured from the {config.start_value:g} start value. "
        "'--' marks a metric that could not be computed."
    )

    st.download_button(
        "📥 Download Summary CSV",
        export_to_csv(table),
        file_name="energy_sector_summary.csv",
        mime="text/csv"
    )
