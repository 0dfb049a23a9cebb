"""
Visualization Module
Creates the sector comparison charts for the energy dashboard
"""

from typing import Dict, Optional

import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from calculations import SectorResult
from utils import METRIC_DISPLAY


# Color palette for consistent styling
COLORS = {
    'primary': '#2563eb',      # Blue
    'secondary': '#7c3aed',    # Purple
    'success': '#10b981',      # Green
    'danger': '#ef4444',       # Red
    'warning': '#f59e0b',      # Amber
    'neutral': '#6b7280',      # Gray
    'background': '#0f172a',   # Dark blue-gray
    'surface': '#1e293b',      # Lighter dark
    'text': '#f1f5f9',         # Light text
    'muted': '#94a3b8',        # Muted text
}


def _hex_to_rgba(color: str, alpha: float) -> str:
    color = color.lstrip('#')
    r, g, b = (int(color[i:i + 2], 16) for i in (0, 2, 4))
    return f'rgba({r}, {g}, {b}, {alpha})'


def apply_chart_styling(fig: go.Figure) -> go.Figure:
    """Apply consistent styling to a Plotly figure"""
    fig.update_layout(
        font=dict(family='Inter, system-ui, sans-serif', color=COLORS['text']),
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        margin=dict(l=40, r=40, t=60, b=40),
        xaxis=dict(
            gridcolor='rgba(148, 163, 184, 0.1)',
            zerolinecolor='rgba(148, 163, 184, 0.2)',
            tickfont=dict(size=11),
        ),
        yaxis=dict(
            gridcolor='rgba(148, 163, 184, 0.1)',
            zerolinecolor='rgba(148, 163, 184, 0.2)',
            tickfont=dict(size=11),
        ),
        legend=dict(bgcolor='rgba(0,0,0,0)', font=dict(size=11)),
        hoverlabel=dict(bgcolor=COLORS['surface'], font_size=12),
        hovermode='x unified',
    )
    return fig


def _horizontal_legend() -> dict:
    return dict(orientation='h', yanchor='bottom', y=1.02, xanchor='right', x=1)


def plot_sector_prices(result: SectorResult, title: str = None) -> go.Figure:
    """
    Quarterly closes of each constituent, the sector average and the ETF
    """
    sector = result.sector
    if title is None:
        title = f'{sector.name} Quarterly Closing Prices'

    fig = go.Figure()
    palette = px.colors.qualitative.Pastel

    for i, ticker in enumerate(result.constituent_prices.columns):
        prices = result.constituent_prices[ticker].dropna()
        if prices.empty:
            continue
        fig.add_trace(go.Scatter(
            x=prices.index,
            y=prices.values,
            name=ticker,
            line=dict(color=palette[i % len(palette)], width=1),
            opacity=0.6,
            hovertemplate='$%{y:.2f}<extra>' + ticker + '</extra>'
        ))

    average = result.average.prices.dropna()
    fig.add_trace(go.Scatter(
        x=average.index,
        y=average.values,
        name='Sector Average',
        line=dict(color=sector.color, width=3),
        hovertemplate='$%{y:.2f}<extra>Average</extra>'
    ))

    etf = result.etf.prices.dropna()
    if not etf.empty:
        fig.add_trace(go.Scatter(
            x=etf.index,
            y=etf.values,
            name=sector.etf,
            line=dict(color=COLORS['text'], width=2, dash='dash'),
            hovertemplate='$%{y:.2f}<extra>' + sector.etf + '</extra>'
        ))

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        yaxis_title='Price ($)',
        showlegend=True,
        legend=_horizontal_legend(),
    )

    return apply_chart_styling(fig)


def plot_average_prices(results: Dict[str, SectorResult], title: str = 'Sector Average Prices') -> go.Figure:
    """
    Sector average quarterly close for every sector on one chart
    """
    fig = go.Figure()

    for name, result in results.items():
        prices = result.average.prices.dropna()
        fig.add_trace(go.Scatter(
            x=prices.index,
            y=prices.values,
            name=name,
            line=dict(color=result.sector.color, width=2.5),
            hovertemplate='$%{y:.2f}<extra>' + name + '</extra>'
        ))

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        yaxis_title='Average Price ($)',
        showlegend=True,
        legend=_horizontal_legend(),
    )

    return apply_chart_styling(fig)


def plot_quarterly_returns(
    results: Dict[str, SectorResult],
    use_etf: bool = False,
    title: str = None
) -> go.Figure:
    """
    Grouped bar chart of periodic returns per sector
    """
    if title is None:
        title = 'ETF Quarterly Returns' if use_etf else 'Sector Average Quarterly Returns'

    fig = go.Figure()

    for name, result in results.items():
        analysis = result.etf if use_etf else result.average
        returns = analysis.returns.dropna()
        fig.add_trace(go.Bar(
            x=returns.index,
            y=returns.values,
            name=analysis.label,
            marker=dict(color=result.sector.color),
            hovertemplate='%{y:.2f}%<extra>' + analysis.label + '</extra>'
        ))

    fig.add_hline(y=0, line_dash='solid', line_color='rgba(148, 163, 184, 0.5)', line_width=1)

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        yaxis_title='Return (%)',
        barmode='group',
        bargap=0.15,
        showlegend=True,
        legend=_horizontal_legend(),
    )

    return apply_chart_styling(fig)


def plot_cumulative_paths(
    results: Dict[str, SectorResult],
    start_value: float = 100.0,
    title: str = None
) -> go.Figure:
    """
    Growth of the starting notional for each sector average (solid) and ETF (dashed)
    """
    if title is None:
        title = f'Growth of ${start_value:,.0f}'

    fig = go.Figure()

    for name, result in results.items():
        for analysis, dash in ((result.average, 'solid'), (result.etf, 'dash')):
            if analysis.path.empty:
                continue
            fig.add_trace(go.Scatter(
                x=analysis.path.index,
                y=analysis.path.values,
                name=analysis.label,
                line=dict(color=result.sector.color, width=2.5 if dash == 'solid' else 1.5, dash=dash),
                hovertemplate='$%{y:.2f}<extra>' + analysis.label + '</extra>'
            ))

    fig.add_hline(y=start_value, line_dash='dot', line_color='rgba(148, 163, 184, 0.4)', line_width=1)

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        yaxis_title='Value ($)',
        showlegend=True,
        legend=_horizontal_legend(),
    )

    return apply_chart_styling(fig)


def plot_drawdown(results: Dict[str, SectorResult], use_etf: bool = False, title: str = 'Drawdown') -> go.Figure:
    """
    Create drawdown chart with the worst point of each sector annotated
    """
    fig = go.Figure()

    for name, result in results.items():
        analysis = result.etf if use_etf else result.average
        drawdown = analysis.drawdown.dropna()
        if drawdown.empty:
            continue

        fig.add_trace(go.Scatter(
            x=drawdown.index,
            y=drawdown.values,
            fill='tozeroy',
            fillcolor=_hex_to_rgba(result.sector.color, 0.15),
            line=dict(color=result.sector.color, width=1.5),
            name=analysis.label,
            hovertemplate='%{y:.2f}%<extra>' + analysis.label + '</extra>'
        ))

        min_dd = drawdown.min()
        if min_dd < 0:
            fig.add_annotation(
                x=drawdown.idxmin(),
                y=min_dd,
                text=f'{analysis.label}: {min_dd:.1f}%',
                showarrow=True,
                arrowhead=2,
                arrowcolor=result.sector.color,
                font=dict(color=COLORS['text'], size=11),
                bgcolor=COLORS['surface'],
                borderpad=4,
            )

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        yaxis_title='Drawdown (%)',
        showlegend=True,
        legend=_horizontal_legend(),
    )

    return apply_chart_styling(fig)


def plot_metric_comparison(
    table: pd.DataFrame,
    metric: str,
    colors: Optional[Dict[str, str]] = None,
    title: str = None
) -> go.Figure:
    """
    Bar chart of one metric across every row of a summary table

    Rows where the metric is undefined are labelled N/A with no bar.
    """
    label, kind = METRIC_DISPLAY.get(metric, (metric, 'number'))
    if title is None:
        title = label

    colors = colors or {}
    values = table[metric]
    bar_colors = [colors.get(sector, COLORS['primary']) for sector in table['sector']]
    suffix = '%' if kind == 'percentage' else ''

    fig = go.Figure(data=[go.Bar(
        x=table['series'],
        y=values,
        marker=dict(color=bar_colors),
        text=['N/A' if pd.isna(v) else f'{v:.2f}{suffix}' for v in values],
        textposition='outside',
        textfont=dict(size=11),
        hovertemplate='<b>%{x}</b><br>' + label + ': %{y:.2f}' + suffix + '<extra></extra>'
    )])

    fig.add_hline(y=0, line_dash='solid', line_color='rgba(148, 163, 184, 0.5)', line_width=1)

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        yaxis_title=f'{label} ({suffix})' if suffix else label,
        showlegend=False,
    )

    return apply_chart_styling(fig)


def plot_risk_return(
    table: pd.DataFrame,
    colors: Optional[Dict[str, str]] = None,
    title: str = 'Risk vs Return'
) -> go.Figure:
    """
    Scatter of standard deviation against CAGR; rows missing either are skipped
    """
    colors = colors or {}
    plotted = table.dropna(subset=['standard_deviation', 'cagr'])

    fig = go.Figure()

    for _, row in plotted.iterrows():
        is_etf = row['type'] == 'ETF'
        fig.add_trace(go.Scatter(
            x=[row['standard_deviation']],
            y=[row['cagr']],
            mode='markers+text',
            text=[row['series']],
            textposition='top center',
            marker=dict(
                color=colors.get(row['sector'], COLORS['primary']),
                size=12 if is_etf else 16,
                symbol='diamond' if is_etf else 'circle',
                line=dict(color=COLORS['background'], width=1),
            ),
            name=row['series'],
            hovertemplate='Std Dev: %{x:.2f}%<br>CAGR: %{y:.2f}%<extra>' + row['series'] + '</extra>'
        ))

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        xaxis_title='Quarterly Std Dev (%)',
        yaxis_title='CAGR (%)',
        showlegend=False,
    )

    # points hover individually
    fig = apply_chart_styling(fig)
    fig.update_layout(hovermode='closest')
    return fig
