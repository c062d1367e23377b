"""HTML/Leaflet.js exporter for the derived overview."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from quake_monitor.classify import legend
from quake_monitor.formatting import format_depth, format_time_ms
from quake_monitor.models import DerivedView


def _build_page_data(view: DerivedView) -> dict[str, Any]:
    """Build the data structure embedded in the page.

    The page does no classification of its own: colors, sizes and the
    viewport all come from the derived view.
    """
    markers = []
    items = []
    for event in view.events:
        marker = view.markers[event.id]
        item = {
            "id": event.id,
            "title": event.title,
            "place": event.place,
            "magnitude": event.magnitude,
            "magnitude_label": f"M {event.magnitude:.1f}",
            "time": format_time_ms(event.time_ms),
            "depth": format_depth(event.depth_km),
            "tsunami": event.tsunami,
            "url": event.url,
            "tier": marker.tier,
            "badge": marker.badge,
            "color": marker.color,
        }
        items.append(item)
        if event.has_valid_coordinates:
            markers.append({
                **item,
                "lat": event.latitude,
                "lon": event.longitude,
                "radius": marker.size,
            })

    viewport = view.viewport
    return {
        "stats": {
            "total": view.stats.total,
            "significant": view.stats.significant,
            "tsunami_warnings": view.stats.tsunami_warnings,
            "average_magnitude": view.stats.average_magnitude,
        },
        "bounds": viewport.as_leaflet_bounds() if viewport is not None else None,
        "padding": viewport.padding_px if viewport is not None else 0,
        "markers": markers,
        "items": items,
        "legend": legend(),
    }


# HTML template with placeholders that won't conflict with CSS/JS braces
_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Seismic Monitor</title>
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css"
          integrity="sha256-p4NxAoJBhIIN+hmNHrzRCf9tD/miZyoHS5obTRR9BMY="
          crossorigin=""/>
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"
            integrity="sha256-20nQCchB9co0qIjJZRGuk2/Z9VM+kNiyxNV1lvTlZBo="
            crossorigin=""></script>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont,
                'Segoe UI', Roboto, sans-serif;
            background: #0f172a;
            color: #e2e8f0;
        }
        header { padding: 16px 24px; border-bottom: 1px solid #1e293b; }
        header h1 { font-size: 22px; }
        header p { font-size: 13px; color: #94a3b8; }
        .stats {
            display: grid;
            grid-template-columns: repeat(4, 1fr);
            gap: 12px;
            padding: 16px 24px;
        }
        .stat {
            background: #1e293b;
            border-radius: 8px;
            padding: 12px 16px;
        }
        .stat .label { font-size: 12px; color: #94a3b8; }
        .stat .value { font-size: 24px; font-weight: bold; }
        .layout {
            display: grid;
            grid-template-columns: 2fr 1fr;
            gap: 16px;
            padding: 0 24px 24px;
        }
        #map { height: 600px; border-radius: 8px; }
        .list {
            height: 600px;
            overflow-y: auto;
            background: #1e293b;
            border-radius: 8px;
        }
        .list h2 { font-size: 18px; padding: 12px 16px 0; }
        .list .count { font-size: 12px; color: #94a3b8; padding: 0 16px 8px; }
        .item {
            padding: 10px 16px;
            border-top: 1px solid #334155;
            cursor: pointer;
        }
        .item:hover { background: #334155; }
        .badge {
            display: inline-block;
            font-size: 11px;
            font-weight: bold;
            padding: 2px 8px;
            border-radius: 10px;
            color: #0f172a;
        }
        .badge.tsunami { background: #dc2626; color: white; margin-left: 4px; }
        .item .place { font-size: 13px; margin-top: 4px; }
        .item .meta { font-size: 11px; color: #94a3b8; }
        .legend {
            background: #1e293b;
            border-radius: 8px;
            padding: 10px 16px;
            margin-top: 12px;
        }
        .legend h4 { font-size: 13px; margin-bottom: 6px; }
        .legend-item {
            display: flex;
            align-items: center;
            justify-content: space-between;
            font-size: 12px;
            padding: 2px 0;
        }
        .legend-item .dot {
            width: 12px;
            height: 12px;
            border-radius: 50%;
            margin-right: 8px;
            display: inline-block;
        }
        footer {
            text-align: center;
            font-size: 11px;
            color: #64748b;
            padding-bottom: 16px;
        }
        footer a { color: #14b8a6; }
    </style>
</head>
<body>
    <header>
        <h1>Seismic Monitor</h1>
        <p>Global Earthquake Visualization &bull; USGS Data</p>
    </header>
    <div class="stats" id="stats"></div>
    <div class="layout">
        <div>
            <div id="map"></div>
            <div class="legend" id="legend"><h4>Magnitude Scale</h4></div>
        </div>
        <div class="list" id="list">
            <h2>Recent Earthquakes</h2>
        </div>
    </div>
    <footer>
        <p>Data provided by
            <a href="https://earthquake.usgs.gov/" target="_blank"
               rel="noopener noreferrer">USGS Earthquake Hazards Program</a></p>
        <p>Last updated: __FEED_TIME__ &bull; Generated: __GENERATED_TIME__</p>
    </footer>
    <script>
        var data = __PAGE_DATA__;

        function escapeHtml(s) {
            return String(s).replace(/[&<>"']/g, function(c) {
                return {'&': '&amp;', '<': '&lt;', '>': '&gt;',
                        '"': '&quot;', "'": '&#39;'}[c];
            });
        }

        var statCards = [
            ['Total Events', data.stats.total],
            ['Significant (M\\u22654.5)', data.stats.significant],
            ['Tsunami Warnings', data.stats.tsunami_warnings],
            ['Avg Magnitude', data.stats.average_magnitude]
        ];
        var statsEl = document.getElementById('stats');
        statCards.forEach(function(s) {
            statsEl.innerHTML += '<div class="stat"><div class="label">'
                + s[0] + '</div><div class="value">' + s[1] + '</div></div>';
        });

        var map = L.map('map').setView([20, 0], 2);
        L.tileLayer('https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png', {
            attribution: '&copy; OpenStreetMap contributors &copy; CARTO'
        }).addTo(map);

        var layers = {};
        data.markers.forEach(function(m) {
            var popup = '<strong>' + escapeHtml(m.title) + '</strong><br>'
                + 'Magnitude: ' + m.magnitude + '<br>'
                + 'Location: ' + escapeHtml(m.place) + '<br>'
                + 'Depth: ' + m.depth + '<br>'
                + 'Time: ' + m.time
                + (m.tsunami ? '<br><strong style="color:#dc2626">Tsunami Warning</strong>' : '')
                + '<br><a href="' + escapeHtml(m.url) + '" target="_blank"'
                + ' rel="noopener noreferrer">View USGS Details</a>';
            layers[m.id] = L.circleMarker([m.lat, m.lon], {
                radius: m.radius,
                fillColor: m.color,
                color: m.color,
                weight: 1,
                opacity: 0.8,
                fillOpacity: 0.6
            }).bindPopup(popup).addTo(map);
        });

        if (data.bounds) {
            map.fitBounds(data.bounds, {padding: [data.padding, data.padding]});
        }

        var listEl = document.getElementById('list');
        listEl.innerHTML += '<div class="count">' + data.items.length
            + ' events in this feed</div>';
        data.items.forEach(function(it) {
            var div = document.createElement('div');
            div.className = 'item';
            div.innerHTML = '<span class="badge" style="background:' + it.color + '">'
                + it.magnitude_label + '</span>'
                + (it.tsunami ? '<span class="badge tsunami">Tsunami</span>' : '')
                + '<div class="place">' + escapeHtml(it.place) + '</div>'
                + '<div class="meta">' + it.time + '</div>'
                + '<div class="meta">Depth: ' + it.depth + '</div>';
            div.addEventListener('click', function() {
                var layer = layers[it.id];
                if (layer) {
                    map.setView(layer.getLatLng(), 6);
                    layer.openPopup();
                }
            });
            listEl.appendChild(div);
        });

        var legendEl = document.getElementById('legend');
        data.legend.forEach(function(row) {
            legendEl.innerHTML += '<div class="legend-item"><span>'
                + '<span class="dot" style="background:' + row.color + '"></span>'
                + row.label + '</span><span>' + row.description + '</span></div>';
        });
    </script>
</body>
</html>"""


def export_html(
    view: DerivedView,
    output_path: Path,
) -> Path:
    """Export the overview as a standalone HTML file with a Leaflet.js map."""
    generated_time = datetime.now(tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M UTC"
    )

    html_content = _HTML_TEMPLATE.replace(
        "__PAGE_DATA__", json.dumps(_build_page_data(view)).replace("</", "<\\/")
    ).replace(
        "__FEED_TIME__", format_time_ms(view.generated_ms)
    ).replace(
        "__GENERATED_TIME__", generated_time
    )

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html_content)

    return output_path
