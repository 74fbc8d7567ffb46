# gazadamage/plots.py
"""
Chart and table presenters: damage status bar chart and the destroyed-share trend table.
"""

import base64
import io
import html
from typing import Dict, Optional
import matplotlib
matplotlib.use("Agg")
import matplotlib.ticker as mticker
from matplotlib.figure import Figure
import numpy as np
import pandas as pd
from gazadamage.analysis import DamageCounts
from gazadamage.constants import STATUS_COLOR_MAP, TREND_METRIC, COLUMN_NAMES, TREND_TABLE_HEIGHT_PX


def render_damage_chart(counts: Optional[DamageCounts], governorate: str, sensor_date) -> Figure:
    """
    Bar chart of building counts per damage status for the current selection.
    Renders a "No data available" placeholder (no bars) for an empty selection.
    """
    # kept out of the pyplot registry
    fig = Figure(figsize=(7, 4.5))
    ax = fig.add_subplot()

    if counts is None or counts.total == 0:
        ax.set_axis_off()
        ax.set_title("No data available", fontsize=14, fontweight='bold')
        return fig

    data = counts.as_dict()
    labels = list(data.keys())
    positions = range(len(labels))
    ax.bar(positions, list(data.values()), color=[STATUS_COLOR_MAP[l] for l in labels])
    ax.set_xticks(list(positions))
    ax.set_xticklabels(labels, fontsize=10, fontweight='bold')
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda v, _: f"{v:,.0f}"))

    fig.suptitle(f"Damage Status - {governorate}", fontsize=14, fontweight='bold')
    ax.set_title(f"As of Date: {sensor_date}", fontsize=10)
    ax.set_ylabel("Number of Buildings", fontsize=12, fontweight='bold')
    ax.spines[['top', 'right']].set_visible(False)
    ax.grid(axis='y', linestyle=':', alpha=0.5)
    return fig


def trend_rows(summaries: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Destroyed-metric rows of the trend summaries, newest sensor date first."""
    if summaries is None or summaries.empty:
        return pd.DataFrame(columns=["Governorate", "sensor_date", "value", "dmg_split"])
    rows = summaries[summaries["name"] == TREND_METRIC]
    return rows.sort_values("sensor_date", ascending=False, kind="stable").reset_index(drop=True)


def smooth_trend(x: np.ndarray, y: np.ndarray, n_points: int = 50):
    """
    Least-squares polynomial smoothing (degree <= 2) of a short series.
    Series with fewer than three points are returned as-is.
    """
    order = np.argsort(x)
    x, y = x[order], y[order]
    if len(x) < 3:
        return x, y
    deg = min(2, len(x) - 1)
    coeffs = np.polyfit(x, y, deg)
    xs = np.linspace(x.min(), x.max(), n_points)
    return xs, np.polyval(coeffs, xs)


def _sparkline_figure(x: np.ndarray, y: np.ndarray) -> Figure:
    fig = Figure(figsize=(1.6, 0.45))
    ax = fig.add_subplot()
    xs, ys = smooth_trend(x, y)
    # a lone observation has no segment to draw
    marker = 'o' if len(xs) == 1 else None
    ax.plot(xs, ys, color='black', linewidth=1.7, marker=marker, markersize=3)
    ax.set_axis_off()
    fig.patch.set_alpha(0.0)
    return fig


def _sparkline_png(x: np.ndarray, y: np.ndarray) -> str:
    fig = _sparkline_figure(x, y)
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=100, bbox_inches='tight', transparent=True)
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def render_sparklines(summaries: Optional[pd.DataFrame]) -> Dict[str, str]:
    """
    One smoothed destroyed-share curve per governorate, keyed by governorate name.
    Each curve only uses that governorate's own dates.
    """
    rows = trend_rows(summaries).dropna(subset=["sensor_date", "dmg_split"])
    sparklines = {}
    for gov, group in rows.groupby("Governorate", sort=False):
        # days since epoch keeps the polynomial fit well conditioned
        x = (group["sensor_date"] - pd.Timestamp("1970-01-01")).dt.days.to_numpy(dtype=float)
        y = group["dmg_split"].to_numpy(dtype=float)
        sparklines[gov] = _sparkline_png(x, y)
    return sparklines


def format_percent(value, decimals: int = 2) -> str:
    """Fraction -> percentage text (0.1234 -> '12.34%')."""
    if value is None or pd.isna(value):
        return ""
    return f"{value * 100:.{decimals}f}%"


def format_count(value) -> str:
    if value is None or pd.isna(value):
        return ""
    return f"{value:,.0f}"


TABLE_CSS = """
#sticky_headers { font-family: 'Franklin Gothic Medium', 'Libre Franklin', Arial, sans-serif; font-weight: bold; }
#sticky_headers table { border-collapse: separate; border-spacing: 0; width: 100%; }
#sticky_headers th { position: sticky; top: 0; background: white; z-index: 3; text-align: left;
                     font-size: 12px; text-transform: uppercase; color: #6b7280; border-bottom: 2px solid #111; padding: 6px 8px; }
#sticky_headers td { padding: 6px 8px; border-bottom: 1px solid #e5e7eb; font-size: 13px; }
#sticky_headers td:first-child { position: sticky; left: 0; background: white; z-index: 2; }
"""


def render_trend_table_html(summaries: Optional[pd.DataFrame]) -> str:
    """
    HTML trend table over all governorates and sensor dates (not the current selection).
    The last column holds the governorate's destroyed-share sparkline.
    """
    rows = trend_rows(summaries)
    if rows.empty:
        return "<div style='padding:20px;color:#6b7280;'>No trend data available</div>"

    sparklines = render_sparklines(summaries)
    headers = [COLUMN_NAMES['Governorate'], COLUMN_NAMES['sensor_date'], COLUMN_NAMES['value'],
               COLUMN_NAMES['dmg_split'], "Destroyed (%) Across Sensor Dates"]

    body = []
    for row in rows.itertuples(index=False):
        date = pd.Timestamp(row.sensor_date).strftime("%Y-%m-%d") if pd.notna(row.sensor_date) else ""
        spark = sparklines.get(row.Governorate)
        spark_html = f"<img src='{spark}' alt='trend' style='height:24px;'/>" if spark else ""
        body.append(
            "<tr>"
            f"<td>{html.escape(str(row.Governorate))}</td>"
            f"<td>{date}</td>"
            f"<td>{format_count(row.value)}</td>"
            f"<td>{format_percent(row.dmg_split)}</td>"
            f"<td>{spark_html}</td>"
            "</tr>"
        )

    height = TREND_TABLE_HEIGHT_PX
    return f'''
    <style>{TABLE_CSS}</style>
    <div id="sticky_headers" style="height:{height}px; overflow-y:auto; overflow-x:auto; width:100%;">
      <table>
        <thead><tr>{''.join(f"<th>{h}</th>" for h in headers)}</tr></thead>
        <tbody>{''.join(body)}</tbody>
      </table>
    </div>'''
