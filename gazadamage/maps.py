# gazadamage/maps.py
"""
Map rendering for the filtered building records (folium / Leaflet).
"""

import html
from typing import Optional
import folium
import pandas as pd
from folium.plugins import MiniMap
from gazadamage.analysis import DamageAnalysis
from gazadamage.constants import (
    STATUS_COLOR_MAP, MAP_MAX_POINTS, MAP_WARNING_THRESHOLD, MAP_CENTER, MAP_ZOOM,
    MARKER_RADIUS_DESTROYED, MARKER_RADIUS_DEFAULT, MAPBOX_STYLE, MAPBOX_USERNAME, MAPBOX_TILE_URL,
)


def needs_size_warning(df: Optional[pd.DataFrame]) -> bool:
    """True when the unsampled selection is too large to draw in full."""
    return df is not None and len(df) > MAP_WARNING_THRESHOLD


def prepare_map_points(df: Optional[pd.DataFrame], max_points: int = MAP_MAX_POINTS, random_state=None) -> pd.DataFrame:
    """
    Coordinate-complete records to draw, with their marker styling.
    Rows without lat/lon are dropped first; if more than `max_points` remain a
    uniform random sample of that size is drawn.
    """
    columns = ["lat", "lon", "dmg_status", "Governorate", "Municipality", "Neighborhood",
               "sensor_date", "status_text", "map_color", "radius"]
    if df is None or df.empty:
        return pd.DataFrame(columns=columns)

    points = df.dropna(subset=["lat", "lon"])
    if len(points) > max_points:
        points = points.sample(n=max_points, random_state=random_state)

    points = points.copy()
    points["status_text"] = DamageAnalysis.classify_status(points["dmg_status"]).fillna("No Damage")
    points["map_color"] = points["status_text"].map(STATUS_COLOR_MAP)
    points["radius"] = [MARKER_RADIUS_DESTROYED if s == 1 else MARKER_RADIUS_DEFAULT for s in points["dmg_status"]]
    return points[columns]


def _popup_html(row) -> str:
    date = pd.Timestamp(row.sensor_date).strftime("%Y-%m-%d") if pd.notna(row.sensor_date) else ""
    return (
        "<div style='font-family: Inter, sans-serif; padding: 8px;'>"
        f"<h6 style='margin: 0 0 8px 0; color: #1f2937; font-weight: 600;'>{html.escape(str(row.status_text))}</h6>"
        f"<div style='margin: 4px 0;'><strong>Governorate:</strong> {html.escape(str(row.Governorate))}</div>"
        f"<div style='margin: 4px 0;'><strong>Municipality:</strong> {html.escape(str(row.Municipality))}</div>"
        f"<div style='margin: 4px 0;'><strong>Neighborhood:</strong> {html.escape(str(row.Neighborhood))}</div>"
        f"<div style='margin: 4px 0;'><strong>Date:</strong> {date}</div>"
        "</div>"
    )


def _legend_html() -> str:
    rows = ''.join([f'''<div style="display:flex;align-items:center;margin:2px 0;">
        <span style="display:inline-block;width:12px;height:12px;border-radius:50%;background:{c};border:1px solid #fff;margin-right:6px;"></span>
        <span style="font-size:11px;color:#333;">{lbl}</span></div>''' for lbl, c in STATUS_COLOR_MAP.items()])
    return f'''
    <div style="position:fixed; bottom:30px; left:15px; z-index:1000;
                padding:6px 10px; background:rgba(255,255,255,0.8); border:1px solid #999;
                border-radius:4px; font-family:Arial,sans-serif; box-shadow:0 2px 6px rgba(0,0,0,0.2);">
      <div style="font-weight:600; font-size:12px; color:#333; margin-bottom:4px;">Damage Status</div>
      {rows}
    </div>'''


def _add_base_tiles(m: folium.Map, mapbox_token: Optional[str]) -> None:
    if mapbox_token:
        url = MAPBOX_TILE_URL.format(username=MAPBOX_USERNAME, style=MAPBOX_STYLE, token=mapbox_token)
        folium.TileLayer(
            tiles=url,
            attr='&copy; <a href="https://www.mapbox.com/">Mapbox</a> &copy; OpenStreetMap',
            name="Mapbox Light",
            tile_size=512,
            zoom_offset=-1,
        ).add_to(m)
    else:
        print("[WARN] MAPBOX_SECRET_TOKEN is not set, falling back to OpenStreetMap tiles")
        folium.TileLayer("OpenStreetMap", name="OpenStreetMap").add_to(m)


def build_damage_map(points: pd.DataFrame, mapbox_token: Optional[str] = None) -> folium.Map:
    """
    Base map with one circle marker per prepared point.
    Markers and legend are only added when there is something to show.
    """
    m = folium.Map(location=list(MAP_CENTER), zoom_start=MAP_ZOOM, tiles=None, control_scale=True)
    _add_base_tiles(m, mapbox_token)
    MiniMap(tile_layer="OpenStreetMap", toggle_display=True, minimized=True).add_to(m)

    if points is None or points.empty:
        return m

    for row in points.itertuples(index=False):
        folium.CircleMarker(
            location=[row.lat, row.lon],
            radius=row.radius,
            color="white",
            weight=1,
            opacity=0.8,
            stroke=True,
            fill=True,
            fill_color=row.map_color,
            fill_opacity=0.7,
            popup=folium.Popup(_popup_html(row), max_width=300),
        ).add_to(m)

    m.get_root().html.add_child(folium.Element(_legend_html()))
    return m


def render_map_html(m: folium.Map, height_px: int = 700) -> str:
    """Embeddable HTML for a folium map, stretched to the given height."""
    base_html = m._repr_html_()
    return f'''
    <div style="position:relative; width:100%; height:{height_px}px;">
        <div style="position:absolute; top:0; left:0; right:0; bottom:0; height:100% !important;">
            {base_html}
        </div>
    </div>'''
