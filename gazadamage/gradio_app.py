# gazadamage/gradio_app.py
"""
Gaza Damage Assessment - Gradio Application
Includes: governorate/date filters, damage map, impact cards, status chart,
destroyed-share trend table, Excel and GeoJSON exports
"""

import gradio as gr
import pandas as pd
import os
from typing import Optional
from gazadamage.service import DamageDataService
from gazadamage.analysis import DamageAnalysis, DamageCounts
from gazadamage.exporter import DamageExporter
from gazadamage.maps import prepare_map_points, build_damage_map, render_map_html, needs_size_warning
from gazadamage.plots import render_damage_chart, render_trend_table_html
from gazadamage.constants import (
    DAMAGE_CLASSES, ALL_REGIONS, FALLBACK_GOVERNORATES, PROCESSING_NOTICE_THRESHOLD,
    ENV_MAPBOX_TOKEN, ENV_DATA_DIR, ENV_EXPORT_DIR, DEFAULT_DATA_DIR, DEFAULT_EXPORT_DIR,
)

MAPBOX_TOKEN = os.environ.get(ENV_MAPBOX_TOKEN, "")
EXPORTS_DIR = os.environ.get(ENV_EXPORT_DIR, DEFAULT_EXPORT_DIR)

# Global service instance, loaded once and shared by every session
service = DamageDataService(data_dir=os.environ.get(ENV_DATA_DIR, DEFAULT_DATA_DIR))
service.load()


def _render_stat_cards(counts: DamageCounts, stats: Optional[dict]) -> str:
    """Impact overview cards (one per damage status) plus the share line."""
    values = [counts.destroyed, counts.severely_damaged, counts.moderately_damaged, counts.no_damage]
    cards = ''.join([f'''
        <div class="stat-card" style="border-left:6px solid {DAMAGE_CLASSES[code]['color']};">
          <div class="stat-number">{value:,}</div>
          <div class="stat-label">{DAMAGE_CLASSES[code]['card']}</div>
        </div>''' for code, value in zip((1, 2, 3, 4), values)])

    shares = ""
    if stats:
        shares = (f"<div class='stat-shares'>Destroyed {stats['destroyed_pct']}% &middot; "
                  f"Damaged {stats['damaged_pct']}% &middot; No damage {stats['intact_pct']}%</div>")
    return f"<div class='stats-section'>{cards}{shares}</div>"


def _empty_map_html() -> str:
    return render_map_html(build_damage_map(None, MAPBOX_TOKEN))


def on_app_load():
    """Fill the dropdowns from the lookups and report how the data load went."""
    errors = service.load_errors
    if "buildings" in errors:
        raise gr.Error(f"Error loading data: {errors['buildings']}")
    if not service.snapshot.has_buildings:
        return gr.update(), gr.update()

    gr.Info("Data loaded successfully", duration=2)

    selection = service.default_selection()
    return (
        gr.update(choices=service.governorates(), value=selection["governorate"]),
        gr.update(choices=service.sensor_dates(), value=selection["sensor_date"]),
    )


def update_dashboard(governorate, sensor_date):
    """Recompute every selection-dependent output for the current governorate and date."""
    if service.snapshot.has_buildings and len(service.snapshot.buildings) > PROCESSING_NOTICE_THRESHOLD:
        gr.Info("Processing data...", duration=2)

    filtered = service.filter_records(governorate, sensor_date)
    if filtered is None and service.snapshot.has_buildings:
        # Selection not complete yet, leave the outputs as they are
        return gr.update(), gr.update(), gr.update(), gr.update()

    counts = DamageAnalysis.count_by_status(filtered)
    stats = DamageAnalysis.summary_stats(filtered)
    status = DamageAnalysis.status_text(filtered, governorate)

    if needs_size_warning(filtered):
        gr.Warning("Large dataset detected. Map showing sample of data points for performance.")

    try:
        points = prepare_map_points(filtered)
        map_html = render_map_html(build_damage_map(points, MAPBOX_TOKEN))
    except Exception as e:
        print(f"[WARN] Map rendering error: {e}")
        map_html = f"<div style='padding:20px;color:red;'>Map rendering failed: {str(e)}</div>"

    fig = render_damage_chart(counts if stats else None, governorate, sensor_date)
    return status, _render_stat_cards(counts, stats), map_html, fig


def on_governorate_change(governorate):
    if governorate and governorate != ALL_REGIONS:
        gr.Info(f"Filtering data for {governorate}", duration=2)


def on_date_change(sensor_date):
    if not sensor_date:
        return
    try:
        formatted = pd.Timestamp(sensor_date).strftime("%B %d, %Y")
    except (ValueError, TypeError):
        return
    gr.Info(f"Updated to {formatted}", duration=2)


def export_excel():
    """Export all damage summaries to Excel, falling back to a plain dump on failure."""
    summaries = service.snapshot.summaries
    if summaries is None:
        raise gr.Error("No damage summaries available to export.")

    os.makedirs(EXPORTS_DIR, exist_ok=True)
    path = os.path.join(EXPORTS_DIR, DamageExporter.excel_filename())

    try:
        DamageExporter.export_excel_report(path, summaries)
    except Exception as e:
        gr.Warning(f"Export error: {str(e)}")
        print(f"[Exporter] Full Excel export failed, writing raw summaries: {e}")
        try:
            DamageExporter.export_raw_summaries(path, summaries)
        except Exception as raw_err:
            print(f"[Exporter] Raw Excel export failed: {raw_err}")
            raise gr.Error(f"Excel export failed: {str(raw_err)}")

    gr.Info(f"✅ Excel Export Saved: {path}", duration=10)
    return path


def export_geojson():
    """Export the sample geometry collection as GeoJSON. No file is offered on failure."""
    os.makedirs(EXPORTS_DIR, exist_ok=True)
    path = os.path.join(EXPORTS_DIR, DamageExporter.geojson_filename())

    try:
        DamageExporter.export_sample_geometry(path, service.snapshot.sample_geometry)
    except Exception as e:
        gr.Warning(f"GeoJSON export error: {str(e)}")
        print(f"[Exporter] GeoJSON export failed: {e}")
        return None

    gr.Info(f"✅ GeoJSON Export Saved: {path}", duration=10)
    return path


# ===================== BUILD GRADIO UI =====================

css = """
.app-title { font-weight: 700; text-align: center; margin-bottom: 2px; }
.subtitle { text-align: center; color: #6b7280; font-size: 13px; }
.stats-section { display: flex; flex-direction: column; gap: 10px; }
.stat-card { background: #ffffff; border-radius: 10px; padding: 10px 14px;
             box-shadow: 0 1px 3px rgba(0,0,0,0.08); }
.stat-number { font-size: 22px; font-weight: 700; color: #111827; }
.stat-label { font-size: 13px; color: #6b7280; }
.stat-shares { font-size: 12px; color: #374151; margin-top: 4px; }

/* Ensure HTML containers fill space properly */
#map-container, #map-container > div {
    width: 100%;
    min-height: 100px;
}
"""

_initial = service.default_selection() if service.snapshot.has_buildings else {"governorate": ALL_REGIONS, "sensor_date": None}

with gr.Blocks(title="Gaza Damage Assessment", css=css, theme=gr.themes.Soft()) as app:

    with gr.Row():
        with gr.Column(scale=1, min_width=280):
            gr.HTML("""
            <h3 class="app-title">Gaza Damage Assessment</h3>
            <p class="subtitle">Source of Data:
              <a href="https://unosat.org/" target="_blank" style="color:#3b82f6;text-decoration:underline;">https://unosat.org/</a>
            </p>""")

            gov_dd = gr.Dropdown(
                choices=service.governorates() if service.snapshot.has_buildings else FALLBACK_GOVERNORATES,
                value=_initial["governorate"],
                label="Governorate",
                interactive=True,
            )
            date_dd = gr.Dropdown(
                choices=service.sensor_dates(),
                value=_initial["sensor_date"],
                label="Sensor Date",
                interactive=True,
            )

            status_out = gr.Textbox(label="Status", interactive=False, lines=1)

            gr.Markdown("### Impact Overview")
            cards_out = gr.HTML()

            gr.Markdown("### 📤 Export")
            with gr.Row():
                export_excel_btn = gr.Button("📥 Export Tabular Data", size="sm")
                export_geojson_btn = gr.Button("🗺️ Export Map Data", size="sm")
            export_out = gr.File(label="Download", height=60)

        with gr.Column(scale=3):
            map_out = gr.HTML(value=_empty_map_html(), elem_id="map-container")

        with gr.Column(scale=2):
            gr.Markdown("#### Damage Analysis\nStatistical overview and trends")
            chart_out = gr.Plot(label="Damage Status")
            gr.Markdown("#### Destroyed Buildings Over Time")
            trend_out = gr.HTML(value=render_trend_table_html(service.snapshot.summaries))

    dashboard_outputs = [status_out, cards_out, map_out, chart_out]

    app.load(on_app_load, outputs=[gov_dd, date_dd]).then(
        update_dashboard, inputs=[gov_dd, date_dd], outputs=dashboard_outputs
    )

    # user edits only; the initial values set by on_app_load are handled by .then above
    gov_dd.input(on_governorate_change, inputs=[gov_dd], outputs=None)
    date_dd.input(on_date_change, inputs=[date_dd], outputs=None)
    gov_dd.input(update_dashboard, inputs=[gov_dd, date_dd], outputs=dashboard_outputs)
    date_dd.input(update_dashboard, inputs=[gov_dd, date_dd], outputs=dashboard_outputs)

    export_excel_btn.click(export_excel, inputs=None, outputs=[export_out])
    export_geojson_btn.click(export_geojson, inputs=None, outputs=[export_out])


if __name__ == "__main__":
    app.launch()
