"""JSON exporter for the derived overview."""

from __future__ import annotations

import json
import math
from dataclasses import asdict
from pathlib import Path
from typing import Any

from quake_monitor.models import DerivedView


def json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value


def view_to_dict(view: DerivedView) -> dict[str, Any]:
    """JSON-safe dict of a derived view. NaN coordinates become null."""
    data = asdict(view)
    data["events"] = [
        {**event, "marker": data["markers"][event["id"]]} for event in data["events"]
    ]
    del data["markers"]
    return json_safe(data)


def export_json(
    view: DerivedView,
    output_path: Path,
    indent: int = 2,
) -> Path:
    """Export the derived overview to a JSON file."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(view_to_dict(view), f, indent=indent, ensure_ascii=False)
    return output_path
