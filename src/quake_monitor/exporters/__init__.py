"""Exporters for the derived earthquake overview."""

from quake_monitor.exporters.csv_export import export_csv
from quake_monitor.exporters.geojson_export import export_geojson
from quake_monitor.exporters.html_export import export_html
from quake_monitor.exporters.json_export import export_json, view_to_dict
from quake_monitor.exporters.markdown_export import export_markdown

__all__ = [
    "export_csv",
    "export_geojson",
    "export_html",
    "export_json",
    "export_markdown",
    "view_to_dict",
]
